"""Data models for compliance analysis.

This module defines Pydantic models for policy documents, audit questions
and the analysis results produced for them. JSON field names are camelCase
to match the front-end payloads; Python code populates them by field name.
"""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class VerdictStatus(str, Enum):
    """Verdict returned for an audit question."""

    YES = "Yes"
    NO = "No"
    MAYBE = "Maybe"


class PolicyDocument(_CamelModel):
    """Policy document whose text has already been extracted upstream.

    Attributes:
        id: Unique document identifier, generated at ingestion.
        name: Display name, usually the uploaded file name.
        content: Extracted plain text. May be empty.
        pages: Page count of the source document.
        uploaded_at: Ingestion timestamp.
    """

    id: str
    name: str
    content: str = ""
    pages: int = Field(default=0, ge=0)
    uploaded_at: datetime = Field(default_factory=utc_now)


class AuditQuestion(_CamelModel):
    """Single question from an audit questionnaire.

    Attributes:
        id: Unique question identifier.
        number: Position in the questionnaire, starting at 1.
        text: Question text.
        reference: Optional regulatory reference, e.g. "GDPR Article 5".
    """

    model_config = ConfigDict(frozen=True)

    id: str
    number: int = Field(ge=1)
    text: str = Field(min_length=1)
    reference: str | None = None


class Citation(_CamelModel):
    """Evidence quoted from a policy document.

    Page numbers are best-effort and not verified against the source text;
    ``page_verified`` stays False until something actually resolves them.
    """

    text: str
    page: int = Field(default=1, ge=1)
    file_name: str
    relevance_score: float | None = Field(default=None, ge=0.0, le=1.0)
    page_verified: bool = False


class AnalysisResult(_CamelModel):
    """Verdict for one audit question.

    Attributes:
        id: Unique result identifier.
        question_id: Identifier of the originating question.
        question: Copy of the question text.
        status: Yes, No or Maybe.
        confidence: Self-reported certainty in [0, 1].
        citations: Supporting evidence, currently always one entry.
        timestamp: Creation time (UTC).
        reasoning: Optional explanation from the model.
        degraded: True when the result came from a fallback path.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    question_id: str
    question: str
    status: VerdictStatus
    confidence: float = Field(ge=0.0, le=1.0)
    citations: list[Citation]
    timestamp: datetime
    reasoning: str | None = None
    degraded: bool = False


class AnalyzeRequest(_CamelModel):
    """Request body for a batch analysis."""

    questions: list[AuditQuestion] | None = None
    policies: list[PolicyDocument] | None = None


class AnalyzeResponse(_CamelModel):
    """Response body for a batch analysis."""

    success: bool
    results: list[AnalysisResult] = Field(default_factory=list)
    message: str
