"""
Prompt templates for the engineering specification review.
"""

import json

# Handle both package imports and standalone imports
try:
    from ...models import RequirementCategory
except ImportError:
    from models import RequirementCategory


# =============================================================================
# Review System Prompt
# =============================================================================

REVIEW_SYSTEM_PROMPT = """You are a senior mechanical engineer and ASME code expert performing a comprehensive specification review of pressure vessel design, fabrication, and inspection documents.
Extract EVERY requirement from the document. Be extremely thorough and detailed.
Return only valid JSON."""


REVIEW_AREAS = """1. DESIGN PARAMETERS: Operating pressure, temperature, flow rates, dimensions, wall thickness, corrosion allowance, stress limits, fatigue requirements, seismic design, wind loads, foundation requirements, piping connections, nozzle details, support configurations

2. MATERIALS: Exact material grades, chemical composition limits, mechanical properties, impact test temperatures, heat treatment requirements, material certificates (MTCs), traceability, welding consumables, bolting materials, gasket specifications

3. CODES & STANDARDS: ASME Section VIII Div 1/2, ASME B31.3, API standards, AWS welding codes, ASTM material specs, local regulations, exemptions, special design cases, code edition years

4. FABRICATION: Welding procedures (WPS), welder qualifications, joint designs, weld profiles, fit-up tolerances, heat treatment procedures, forming methods, machining requirements, assembly sequences

5. TESTING & INSPECTION: Hydrostatic test pressure and duration, pneumatic test requirements, radiographic testing (RT) requirements and acceptance, ultrasonic testing (UT), magnetic particle testing (MT), liquid penetrant testing (PT), visual inspection criteria, hardness testing, impact testing, dimensional inspection

6. QUALITY ASSURANCE: Quality control procedures, hold points, witness points, third-party inspection requirements, NDE procedures, calibration requirements, documentation requirements

7. DOCUMENTATION: Material test certificates, welding records, NDE reports, test certificates, data reports, nameplates, drawings, operation manuals, spare parts lists

8. DELIVERY & INSTALLATION: Shipping requirements, preservation methods, storage requirements, installation procedures, commissioning requirements, training requirements

9. TOLERANCES: Manufacturing tolerances, assembly tolerances, straightness, roundness, surface finish, machining tolerances, welding tolerances

10. OPERATIONAL REQUIREMENTS: Operating procedures, maintenance requirements, inspection schedules, safety procedures, emergency procedures"""


def build_review_prompt(
    text: str,
    file_name: str,
    part: int = 1,
    total_parts: int = 1,
) -> str:
    """
    Build the user prompt for one chunk of a document.

    Args:
        text: Document text (or one chunk of it).
        file_name: Name used in the ``source.fileName`` of every record.
        part: 1-based chunk number.
        total_parts: Number of chunks the document was split into.

    Returns:
        The user prompt string.
    """
    categories = "|".join(c.value for c in RequirementCategory)
    example = [
        {
            "id": "unique_id",
            "category": categories,
            "requirement": "SPECIFIC requirement with exact values, tolerances, procedures",
            "rationale": "detailed explanation of why this requirement exists and its impact",
            "source": {"fileName": file_name, "section": "section if identifiable"},
        }
    ]

    part_note = ""
    if total_parts > 1:
        part_note = (
            f"\n\nThis is PART {part} of {total_parts} of the document. "
            "Extract the requirements found in this part only."
        )

    return f"""PERFORM A COMPREHENSIVE, LINE-BY-LINE SPECIFICATION REVIEW. You must extract EVERY single requirement, parameter, tolerance, procedure, standard, and compliance item from this document. Read through the ENTIRE document systematically and capture ALL technical details.{part_note}

MANDATORY REVIEW AREAS - Extract EVERYTHING you find:

{REVIEW_AREAS}

READ EVERY SECTION, TABLE, NOTE, APPENDIX, AND REFERENCE. Extract specific values, not generalities.

DOCUMENT: {text}

Return a comprehensive JSON array with this exact structure:
{json.dumps(example, indent=2)}

BE EXHAUSTIVE. Include every specification detail, every tolerance, every test requirement, every material property, every procedure.

Return ONLY the JSON array."""
