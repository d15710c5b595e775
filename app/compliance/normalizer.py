"""Normalization of parsed verdicts into AnalysisResult objects."""

import math
import uuid
from datetime import datetime
from typing import Any, Callable

from app.compliance.parser import ParsedVerdict
from app.models import (
    AnalysisResult,
    AuditQuestion,
    Citation,
    PolicyDocument,
    VerdictStatus,
    utc_now,
)

DEFAULT_CONFIDENCE = 0.5
NO_CITATION_TEXT = "No specific citation provided"
DEFAULT_FILE_NAME = "policy.pdf"
# Source pages are not resolved from the reply yet; every citation points at
# page 1 and is flagged as unverified.
PLACEHOLDER_PAGE = 1

FAILED_CITATION_TEXT = "Analysis failed - please try again"
FAILED_FILE_NAME = "error"
FAILED_REASONING = "Analysis failed due to technical error"

_STATUS_LOOKUP = {status.value.lower(): status for status in VerdictStatus}


def new_result_id() -> str:
    return uuid.uuid4().hex


def normalize_status(value: Any) -> VerdictStatus:
    if isinstance(value, VerdictStatus):
        return value
    if isinstance(value, str):
        return _STATUS_LOOKUP.get(value.strip().lower(), VerdictStatus.MAYBE)
    return VerdictStatus.MAYBE


def normalize_confidence(value: Any) -> float:
    """Coerce a confidence value into [0, 1].

    Missing, boolean, non-numeric and NaN values fall back to 0.5. Integers
    beyond float range clamp by sign.
    """
    if value is None or isinstance(value, bool):
        return DEFAULT_CONFIDENCE
    try:
        number = float(value)
    except (TypeError, ValueError):
        return DEFAULT_CONFIDENCE
    except OverflowError:
        # Integers too large for a float still have a sign.
        return 1.0 if value > 0 else 0.0
    if math.isnan(number):
        return DEFAULT_CONFIDENCE
    return max(0.0, min(1.0, number))


def normalize_result(
    verdict: ParsedVerdict,
    question: AuditQuestion,
    policies: list[PolicyDocument],
    id_factory: Callable[[], str] = new_result_id,
    clock: Callable[[], datetime] = utc_now,
) -> AnalysisResult:
    """Build the canonical result for one question.

    Args:
        verdict: Parsed (or fallback) verdict.
        question: Question the verdict answers.
        policies: Policy documents used as grounding context.
        id_factory: Produces the result identifier.
        clock: Produces the result timestamp.

    Returns:
        AnalysisResult with a valid status, a clamped confidence and exactly
        one citation.
    """
    confidence = normalize_confidence(verdict.confidence)
    file_name = policies[0].name if policies else DEFAULT_FILE_NAME
    citation = Citation(
        text=verdict.citation or NO_CITATION_TEXT,
        page=PLACEHOLDER_PAGE,
        file_name=file_name or DEFAULT_FILE_NAME,
        relevance_score=confidence,
        page_verified=False,
    )
    return AnalysisResult(
        id=id_factory(),
        question_id=question.id,
        question=question.text,
        status=normalize_status(verdict.status),
        confidence=confidence,
        citations=[citation],
        timestamp=clock(),
        reasoning=verdict.reasoning,
        degraded=verdict.fallback,
    )


def degraded_result(
    question: AuditQuestion,
    id_factory: Callable[[], str] = new_result_id,
    clock: Callable[[], datetime] = utc_now,
) -> AnalysisResult:
    """Result recorded when a question could not be analyzed at all."""
    return AnalysisResult(
        id=id_factory(),
        question_id=question.id,
        question=question.text,
        status=VerdictStatus.MAYBE,
        confidence=DEFAULT_CONFIDENCE,
        citations=[
            Citation(
                text=FAILED_CITATION_TEXT,
                page=PLACEHOLDER_PAGE,
                file_name=FAILED_FILE_NAME,
                relevance_score=DEFAULT_CONFIDENCE,
            )
        ],
        timestamp=clock(),
        reasoning=FAILED_REASONING,
        degraded=True,
    )
