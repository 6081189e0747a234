"""
Post-processing of LLM output: JSON extraction, deduplication and
normalization into requirement records.
"""

import json
import logging
from typing import Any

# Handle both package imports and standalone imports
try:
    from ...models import RequirementRecord, RequirementSource
except ImportError:
    from models import RequirementRecord, RequirementSource

from .exceptions import AIServiceError

logger = logging.getLogger(__name__)

DEDUPE_KEY_LENGTH = 100


def parse_requirements_json(response_text: str) -> list[Any]:
    """
    Parse a JSON array out of a model response.

    The whole response is tried first; models often wrap the array in prose
    or a code fence, so the span from the first ``[`` to the last ``]`` is
    tried next. A response without an array, or whose JSON is not a list,
    yields no results.

    Raises:
        AIServiceError: If an array span is present but is not valid JSON.
    """
    try:
        parsed = json.loads(response_text)
    except json.JSONDecodeError:
        start = response_text.find("[")
        end = response_text.rfind("]")
        if start == -1 or end == -1 or end <= start:
            logger.warning("No JSON array in model response: %s", response_text[:200])
            return []
        try:
            parsed = json.loads(response_text[start : end + 1])
        except json.JSONDecodeError as e:
            logger.error("Failed to parse model response: %s", response_text[:500])
            raise AIServiceError(f"Invalid JSON in model response: {e}") from e

    if not isinstance(parsed, list):
        return []
    return parsed


def _dedupe_key(entry: Any) -> str:
    requirement = entry.get("requirement") or ""
    return str(requirement).strip().lower()[:DEDUPE_KEY_LENGTH]


def dedupe_requirements(entries: list[Any]) -> list[dict[str, Any]]:
    """
    Drop repeated requirements, keeping the first occurrence.

    Two entries are duplicates when the first 100 characters of their
    stripped, lower-cased requirement text match. Entries that are not
    objects or have no requirement text are dropped.
    """
    seen: set[str] = set()
    unique = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        key = _dedupe_key(entry)
        if not key or key in seen:
            continue
        seen.add(key)
        unique.append(entry)
    return unique


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def _normalize_source(value: Any, file_name: str | None) -> RequirementSource | None:
    if isinstance(value, dict):
        source = RequirementSource.model_validate(value)
        if source.file_name is None:
            source.file_name = file_name
        return source
    if isinstance(value, str) and value.strip():
        return RequirementSource(file_name=file_name, section=value.strip())
    if file_name is None:
        return None
    return RequirementSource(file_name=file_name)


def normalize_requirements(entries: list[dict[str, Any]]) -> list[RequirementRecord]:
    """
    Coerce raw entries into requirement records.

    ``id`` falls back to the 1-based position, ``severity`` to "Medium" and
    ``category`` to "Design". Each entry may carry a ``_file_name`` hint
    (set by the reviewer) used when the model omitted the source.
    """
    records = []
    for index, entry in enumerate(entries):
        file_name = entry.get("_file_name")
        records.append(
            RequirementRecord(
                id=_as_text(entry.get("id") or index + 1),
                severity=_as_text(entry.get("severity")) or "Medium",
                category=_as_text(entry.get("category")) or "Design",
                requirement=_as_text(entry.get("requirement")),
                rationale=_as_text(entry.get("rationale")),
                source=_normalize_source(entry.get("source"), file_name),
            )
        )
    return records
