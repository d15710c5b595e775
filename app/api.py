"""HTTP boundary for the compliance analyzer.

Exposes the batch analysis plus the text ingestion helpers as a small
FastAPI application. Run with ``python -m app.api``.
"""

import logging
import os

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from app.compliance.analyzer import ComplianceAnalyzer, summarize
from app.compliance.errors import BackendUnavailable, InvalidInput
from app.compliance.ingest import parse_questions, policy_from_text
from app.config import Settings
from app.models import AnalyzeRequest, AnalyzeResponse, AuditQuestion, PolicyDocument

logger = logging.getLogger(__name__)


class PolicyText(BaseModel):
    """Extracted text of one uploaded policy document."""

    name: str
    content: str = ""
    pages: int = Field(default=0, ge=0)


class PoliciesRequest(BaseModel):
    documents: list[PolicyText]


class PoliciesResponse(BaseModel):
    success: bool
    policies: list[PolicyDocument]
    message: str


class QuestionsRequest(BaseModel):
    text: str


class QuestionsResponse(BaseModel):
    success: bool
    questions: list[AuditQuestion]
    message: str


def get_settings() -> Settings:
    """Load application settings.

    Returns:
        Settings instance loaded from environment variables.
    """
    load_dotenv()
    return Settings.from_env()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "results": [], "message": message},
    )


def create_app(
    settings: Settings | None = None, analyzer: ComplianceAnalyzer | None = None
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Application settings; loaded from the environment if None.
        analyzer: Analyzer to serve; built from ``settings`` if None.

    Returns:
        Configured FastAPI application.
    """
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    analyzer = analyzer or ComplianceAnalyzer(settings)

    api = FastAPI(title="Policy Compliance Analyzer")

    @api.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        logger.info(f"Rejected malformed request to {request.url.path}: {exc.errors()}")
        return _error(400, "Malformed request body")

    @api.exception_handler(InvalidInput)
    async def handle_invalid_input(request: Request, exc: InvalidInput):
        return _error(400, str(exc))

    @api.exception_handler(BackendUnavailable)
    async def handle_backend_unavailable(request: Request, exc: BackendUnavailable):
        logger.error(f"Backend unavailable: {exc}")
        return _error(503, str(exc))

    @api.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.url.path}")
        return _error(500, "Internal server error")

    @api.get("/api")
    def describe() -> dict:
        return {
            "message": "Policy Compliance Analyzer API",
            "endpoints": [
                "POST /api/policies - Register extracted policy texts",
                "POST /api/questions - Extract questions from questionnaire text",
                "POST /api/analyze - Analyze policies against questions",
            ],
        }

    @api.post("/api/policies", response_model=PoliciesResponse)
    def upload_policies(body: PoliciesRequest) -> PoliciesResponse:
        if not body.documents:
            raise InvalidInput("No documents provided")
        policies = [
            policy_from_text(doc.name, doc.content, doc.pages) for doc in body.documents
        ]
        return PoliciesResponse(
            success=True,
            policies=policies,
            message=f"Successfully processed {len(policies)} policy documents",
        )

    @api.post("/api/questions", response_model=QuestionsResponse)
    def upload_questions(body: QuestionsRequest) -> QuestionsResponse:
        questions = parse_questions(body.text)
        if not questions:
            raise InvalidInput("No numbered questions found in text")
        return QuestionsResponse(
            success=True,
            questions=questions,
            message=f"Successfully extracted {len(questions)} questions",
        )

    @api.post("/api/analyze", response_model=AnalyzeResponse)
    def analyze(body: AnalyzeRequest) -> AnalyzeResponse:
        results = analyzer.analyze(body.questions, body.policies)
        summary = summarize(results)
        return AnalyzeResponse(
            success=True,
            results=results,
            message=(
                f"Successfully analyzed {summary['total']} questions "
                f"({summary['degraded']} could not be fully analyzed)"
            ),
        )

    return api


def main() -> None:
    uvicorn.run(
        "app.api:create_app",
        factory=True,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
    )


if __name__ == "__main__":
    main()
