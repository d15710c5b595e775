"""watsonx.ai client performing one generation per compliance question."""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from concurrent.futures import wait as futures_wait

from ibm_watsonx_ai import Credentials
from ibm_watsonx_ai.foundation_models import ModelInference
from ibm_watsonx_ai.metanames import GenTextParamsMetaNames as GenParams

from app.compliance.errors import (
    BackendEmptyReply,
    BackendRequestFailed,
    BackendUnavailable,
)
from app.config import Settings

logger = logging.getLogger(__name__)


class GeneratorClient:
    """Sends a single prompt to a watsonx.ai foundation model.

    The client never retries and never caches; retry policy, if any, belongs
    to the caller.
    """

    def __init__(self, settings: Settings, model: ModelInference | None = None):
        if not settings.ibm_cloud_api_key:
            raise BackendUnavailable(
                "Missing IBM Cloud API key. Please set IBM_CLOUD_API_KEY."
            )
        if not settings.watsonx_project_id:
            raise BackendUnavailable(
                "Missing watsonx.ai project. Please set WATSONX_PROJECT_ID."
            )
        self.settings = settings
        self._client = model
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(
            max_workers=max(1, settings.max_workers),
            thread_name_prefix="watsonx",
        )
        self._abandoned: set[Future] = set()
        self._abandoned_lock = threading.Lock()

    @property
    def client(self) -> ModelInference:
        with self._lock:
            if self._client is None:
                credentials = Credentials(
                    api_key=self.settings.ibm_cloud_api_key,
                    url=self.settings.watsonx_url,
                )
                self._client = ModelInference(
                    model_id=self.settings.watsonx_gen_model,
                    project_id=self.settings.watsonx_project_id,
                    credentials=credentials,
                )
            return self._client

    def _params(self) -> dict:
        return {
            GenParams.TEMPERATURE: float(self.settings.temperature),
            GenParams.MAX_NEW_TOKENS: self.settings.max_new_tokens,
            GenParams.TRUNCATE_INPUT_TOKENS: 0,
        }

    @staticmethod
    def extract_text(response) -> str:
        """Pull the generated text out of a watsonx.ai response.

        Args:
            response: Raw response from ``ModelInference.generate``.

        Returns:
            Generated text, or an empty string when none is present.
        """
        data = response.get_result() if hasattr(response, "get_result") else response
        if isinstance(data, str):
            return data
        if isinstance(data, dict):
            results = data.get("results")
            if results and isinstance(results[0], dict):
                return results[0].get("generated_text") or ""
            return data.get("generated_text") or ""
        if hasattr(response, "generated_text"):
            return response.generated_text or ""  # type: ignore[attr-defined]
        return ""

    def _call(self, prompt: str):
        return self.client.generate(prompt=prompt, params=self._params())

    def _forget(self, future: Future) -> None:
        with self._abandoned_lock:
            self._abandoned.discard(future)
        logger.info("Abandoned watsonx.ai call finished")

    def _abandon(self, future: Future) -> None:
        with self._abandoned_lock:
            self._abandoned.add(future)
        logger.warning("Timed-out watsonx.ai call is still running; later calls wait for it")
        future.add_done_callback(self._forget)

    def wait_idle(self) -> None:
        """Block until calls abandoned after a timeout have finished.

        A timed-out request keeps running on its worker thread; no new call
        may start while one is still in flight.
        """
        with self._abandoned_lock:
            pending = list(self._abandoned)
        if pending:
            logger.warning(
                f"Waiting for {len(pending)} timed-out watsonx.ai call(s) to finish"
            )
            futures_wait(pending)

    def generate(self, prompt: str) -> str:
        """Run one request/response exchange with the backend.

        Args:
            prompt: Complete prompt text.

        Returns:
            Raw generated text.

        Raises:
            BackendRequestFailed: The call raised, returned an error or
                exceeded ``request_timeout``.
            BackendEmptyReply: The call succeeded without generated text.
        """
        self.wait_idle()
        timeout = self.settings.request_timeout
        future = self._executor.submit(self._call, prompt)
        try:
            response = future.result(timeout=timeout if timeout > 0 else None)
        except FutureTimeoutError as e:
            self._abandon(future)
            raise BackendRequestFailed(
                f"watsonx.ai call timed out after {timeout}s"
            ) from e
        except Exception as e:
            raise BackendRequestFailed(f"watsonx.ai call failed: {e}") from e

        text = self.extract_text(response).strip()
        if not text:
            raise BackendEmptyReply("watsonx.ai returned no generated text")
        logger.debug(f"Generated {len(text)} characters")
        return text
