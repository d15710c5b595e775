"""Helpers turning already-extracted text into engine inputs.

Binary extraction (PDF and friends) happens upstream; these functions only
see plain text.
"""

import logging
import re
import uuid
from datetime import datetime
from typing import Callable

from app.models import AuditQuestion, PolicyDocument, utc_now

logger = logging.getLogger(__name__)

# "1. text", "1) text", "Q1: text", "Question 1 - text"
_QUESTION_START = re.compile(
    r"^\s*(?:q(?:uestion)?\s*)?(\d{1,4})\s*[.):\-]\s+(\S.*)$", re.IGNORECASE
)
_REFERENCE = re.compile(r"\(\s*reference\s*:", re.IGNORECASE)


def new_document_id() -> str:
    return uuid.uuid4().hex


def policy_from_text(
    name: str,
    content: str | None,
    pages: int = 0,
    id_factory: Callable[[], str] = new_document_id,
    clock: Callable[[], datetime] = utc_now,
) -> PolicyDocument:
    """Create a PolicyDocument from extracted text.

    Args:
        name: Display name of the document.
        content: Extracted text; None is stored as an empty string.
        pages: Page count reported by the extractor.
        id_factory: Identifier source.
        clock: Upload timestamp source.

    Returns:
        New PolicyDocument.
    """
    return PolicyDocument(
        id=id_factory(),
        name=name,
        content=content or "",
        pages=max(0, int(pages or 0)),
        uploaded_at=clock(),
    )


def _split_reference(text: str) -> tuple[str, str | None]:
    matches = list(_REFERENCE.finditer(text))
    if not matches:
        return text.strip(), None
    start = matches[-1].start()
    question = text[:start].strip()
    if not question:
        return text.strip(), None
    return question, text[start:].strip()


def parse_questions(text: str) -> list[AuditQuestion]:
    """Extract numbered audit questions from questionnaire text.

    A question starts on a numbered line and continues over following
    unnumbered lines. A trailing ``(Reference: ...)`` is split off into the
    question's reference. Questions are numbered by position so identifiers
    stay unique even when the source restarts its numbering.

    Args:
        text: Plain questionnaire text.

    Returns:
        Questions in document order.
    """
    blocks: list[list[str]] = []
    for line in (text or "").splitlines():
        line = line.strip()
        if not line:
            continue
        match = _QUESTION_START.match(line)
        if match:
            blocks.append([match.group(2).strip()])
        elif blocks:
            blocks[-1].append(line)

    questions: list[AuditQuestion] = []
    for block in blocks:
        question_text, reference = _split_reference(" ".join(block))
        if not question_text:
            continue
        number = len(questions) + 1
        questions.append(
            AuditQuestion(
                id=str(number),
                number=number,
                text=question_text,
                reference=reference,
            )
        )

    logger.info(f"Extracted {len(questions)} questions from {len(blocks)} numbered blocks")
    return questions
