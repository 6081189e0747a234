"""
Requirement extraction from document text.

Long documents are split into chunks that each fit one LLM call; every
chunk is reviewed independently and failures are recorded per chunk so
that one bad response does not discard the rest of the document.
"""

import logging
from typing import Any, Awaitable, Callable

# Handle both package imports and standalone imports
try:
    from ...models import ExtractedDocument
except ImportError:
    from models import ExtractedDocument

from .exceptions import AIServiceError
from .parsing import parse_requirements_json
from .prompts import REVIEW_SYSTEM_PROMPT, build_review_prompt

logger = logging.getLogger(__name__)

# (system_prompt, user_prompt, model) -> response text
CompletionFn = Callable[[str, str, str], Awaitable[str]]


def chunk_text(text: str, max_chars: int) -> list[str]:
    """
    Split text into chunks of at most ``max_chars`` characters.

    Each cut is placed after the last paragraph break (or, failing that,
    line break) in the second half of the window so sections are not split
    mid-sentence where avoidable. Concatenating the chunks gives back the
    original text.
    """
    if max_chars <= 0:
        raise ValueError("max_chars must be positive")
    if len(text) <= max_chars:
        return [text]

    chunks = []
    start = 0
    while start < len(text):
        end = start + max_chars
        if end >= len(text):
            chunks.append(text[start:])
            break

        window = text[start:end]
        min_cut = max_chars // 2
        cut = window.rfind("\n\n")
        if cut >= min_cut:
            end = start + cut + 2
        else:
            cut = window.rfind("\n")
            if cut >= min_cut:
                end = start + cut + 1

        chunks.append(text[start:end])
        start = end
    return chunks


class ReviewOutcome:
    """Raw requirement entries from one document plus call statistics."""

    def __init__(self) -> None:
        self.entries: list[dict[str, Any]] = []
        self.calls = 0
        self.failures = 0
        self.last_error: str | None = None


async def review_document(
    document: ExtractedDocument,
    complete: CompletionFn,
    model: str,
    chunk_chars: int,
    diagnostics: list[str],
) -> ReviewOutcome:
    """
    Extract raw requirement entries from one document.

    Args:
        document: Document with readable text.
        complete: Coroutine function performing one LLM completion.
        model: Model name passed to ``complete``.
        chunk_chars: Maximum characters of document text per call.
        diagnostics: List that progress and failure messages are appended to.

    Returns:
        ReviewOutcome whose entries carry a ``_file_name`` hint.
    """
    outcome = ReviewOutcome()
    chunks = chunk_text(document.text, chunk_chars)
    total = len(chunks)
    logger.info(
        "Reviewing %s: %d chars in %d chunk(s) with %s",
        document.name,
        len(document.text),
        total,
        model,
    )

    for part, chunk in enumerate(chunks, start=1):
        outcome.calls += 1
        prompt = build_review_prompt(chunk, document.name, part, total)
        try:
            response_text = await complete(REVIEW_SYSTEM_PROMPT, prompt, model)
            entries = parse_requirements_json(response_text)
        except AIServiceError as e:
            outcome.failures += 1
            outcome.last_error = str(e)
            diagnostics.append(f"LLM: chunk {part}/{total} failed - {e}")
            logger.error("Chunk %d/%d of %s failed: %s", part, total, document.name, e)
            continue

        for entry in entries:
            if isinstance(entry, dict):
                entry.setdefault("_file_name", document.name)
        outcome.entries.extend(entries)
        diagnostics.append(
            f"LLM: chunk {part}/{total} extracted {len(entries)} requirements"
        )

    return outcome
