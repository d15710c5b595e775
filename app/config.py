"""Application configuration settings.

This module defines the Settings dataclass that loads configuration
from environment variables.
"""

from dataclasses import dataclass
import os


@dataclass
class Settings:
    """Application settings loaded from environment variables.

    Attributes:
        ibm_cloud_api_key: IBM Cloud API key for authentication.
        watsonx_region: Watsonx.ai service region.
        watsonx_project_id: Watsonx.ai project ID.
        watsonx_gen_model: Generation model ID.
        temperature: Generation temperature.
        max_new_tokens: Maximum tokens generated per answer.
        request_timeout: Seconds before a single backend call is abandoned.
        max_context_chars: Character budget for the policy grounding context.
        pacing_seconds: Minimum spacing between successive backend calls.
        max_workers: Number of questions analyzed concurrently.
        log_level: Root logging level.
    """

    ibm_cloud_api_key: str
    watsonx_region: str
    watsonx_project_id: str
    watsonx_gen_model: str

    temperature: float
    max_new_tokens: int
    request_timeout: float

    max_context_chars: int
    pacing_seconds: float
    max_workers: int

    log_level: str

    @property
    def backend_configured(self) -> bool:
        """Whether the credentials needed to reach watsonx.ai are present."""
        return bool(self.ibm_cloud_api_key and self.watsonx_project_id)

    @property
    def watsonx_url(self) -> str:
        return f"https://{self.watsonx_region}.ml.cloud.ibm.com"

    @classmethod
    def from_env(cls) -> "Settings":
        """Create Settings instance from environment variables.

        Returns:
            Settings instance with values loaded from environment.
        """
        return cls(
            ibm_cloud_api_key=os.getenv("IBM_CLOUD_API_KEY", ""),
            watsonx_region=os.getenv("WATSONX_REGION", "us-south"),
            watsonx_project_id=os.getenv("WATSONX_PROJECT_ID", ""),
            watsonx_gen_model=os.getenv(
                "WATSONX_GEN_MODEL", "ibm/granite-13b-instruct-v2"
            ),
            temperature=float(os.getenv("TEMPERATURE", "0.0")),
            max_new_tokens=int(os.getenv("MAX_NEW_TOKENS", "1024")),
            request_timeout=float(os.getenv("WATSONX_REQUEST_TIMEOUT", "60")),
            max_context_chars=int(os.getenv("MAX_CONTEXT_CHARS", "8000")),
            pacing_seconds=float(os.getenv("ANALYSIS_PACING_SECONDS", "1.0")),
            max_workers=max(1, int(os.getenv("ANALYSIS_MAX_WORKERS", "1"))),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
