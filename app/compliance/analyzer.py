"""Batch orchestration of compliance analysis.

This module provides the ComplianceAnalyzer class that runs every audit
question through prompt building, generation, parsing and normalization,
and the CallPacer that spaces out backend calls.
"""

import logging
import threading
import time
from contextlib import contextmanager
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Callable, Iterator

from app.compliance.errors import BackendError, BackendUnavailable, InvalidInput
from app.compliance.generator import GeneratorClient
from app.compliance.normalizer import (
    degraded_result,
    new_result_id,
    normalize_result,
)
from app.compliance.parser import parse_response
from app.compliance.prompts import build_prompt
from app.config import Settings
from app.models import (
    AnalysisResult,
    AuditQuestion,
    PolicyDocument,
    VerdictStatus,
    utc_now,
)

logger = logging.getLogger(__name__)


class CallPacer:
    """Enforces a minimum delay between successive backend calls.

    The delay runs from the moment the previous call finished, so a batch
    takes roughly N x (call latency + interval). Shared by all workers; a
    call that starts also reserves the next slot, so concurrent workers are
    spaced out as well. The first call never waits.
    """

    def __init__(
        self,
        interval: float,
        sleep: Callable[[float], None] = time.sleep,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self.interval = max(0.0, interval)
        self._sleep = sleep
        self._monotonic = monotonic
        self._lock = threading.Lock()
        self._next_slot: float | None = None

    def wait(self) -> None:
        with self._lock:
            now = self._monotonic()
            if self._next_slot is not None and now < self._next_slot:
                self._sleep(self._next_slot - now)
                now = self._next_slot
            self._next_slot = now + self.interval

    def finished(self) -> None:
        """Record that a call returned or raised; the next one waits a full interval."""
        with self._lock:
            slot = self._monotonic() + self.interval
            if self._next_slot is None or slot > self._next_slot:
                self._next_slot = slot

    @contextmanager
    def slot(self) -> Iterator[None]:
        self.wait()
        try:
            yield
        finally:
            self.finished()


class ComplianceAnalyzer:
    """Analyzes audit questions against policy documents.

    Every question yields exactly one AnalysisResult. Per-question failures
    become degraded results; only missing inputs and missing backend
    configuration abort a batch.
    """

    def __init__(
        self,
        settings: Settings,
        generator: GeneratorClient | None = None,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = new_result_id,
        sleep: Callable[[float], None] = time.sleep,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize analyzer.

        Args:
            settings: Application settings.
            generator: Object with a ``generate(prompt) -> str`` method.
                Defaults to a GeneratorClient built on first use.
            clock: Timestamp source for results.
            id_factory: Identifier source for results.
            sleep: Blocking sleep used for pacing.
            monotonic: Monotonic clock used for pacing.
        """
        self.settings = settings
        self._generator = generator
        self.clock = clock
        self.id_factory = id_factory
        self.pacer = CallPacer(settings.pacing_seconds, sleep=sleep, monotonic=monotonic)

    @property
    def generator(self) -> GeneratorClient:
        if self._generator is None:
            self._generator = GeneratorClient(self.settings)
        return self._generator

    def analyze(
        self,
        questions: list[AuditQuestion] | None,
        policies: list[PolicyDocument] | None,
    ) -> list[AnalysisResult]:
        """Analyze every question against the policies.

        Args:
            questions: Audit questions to answer.
            policies: Policy documents used as grounding context.

        Returns:
            One result per question, in input order.

        Raises:
            InvalidInput: Either list is missing or empty.
            BackendUnavailable: Backend credentials are not configured.
        """
        if not questions:
            raise InvalidInput("At least one question is required")
        if not policies:
            raise InvalidInput("At least one policy document is required")
        if not self.settings.backend_configured:
            raise BackendUnavailable(
                "watsonx.ai is not configured. "
                "Please set IBM_CLOUD_API_KEY and WATSONX_PROJECT_ID."
            )
        generator = self.generator

        workers = min(self.settings.max_workers, len(questions))
        logger.info(
            f"Analyzing {len(questions)} questions against {len(policies)} policies "
            f"with {workers} worker(s)"
        )

        if workers <= 1:
            results = [
                self.analyze_question(generator, question, policies)
                for question in questions
            ]
        else:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                futures = [
                    pool.submit(self.analyze_question, generator, question, policies)
                    for question in questions
                ]
                results = [future.result() for future in futures]

        summary = summarize(results)
        logger.info(
            f"Analysis complete: {summary['counts']} "
            f"({summary['degraded']} degraded, mean confidence {summary['mean_confidence']})"
        )
        return results

    def analyze_question(
        self,
        generator: GeneratorClient,
        question: AuditQuestion,
        policies: list[PolicyDocument],
    ) -> AnalysisResult:
        """Run one question through the pipeline. Never raises."""
        try:
            prompt = build_prompt(question, policies, self.settings.max_context_chars)
            # A call abandoned after a timeout still counts as in flight.
            if hasattr(generator, "wait_idle"):
                generator.wait_idle()
            with self.pacer.slot():
                reply = generator.generate(prompt)
            verdict = parse_response(reply)
            return normalize_result(
                verdict,
                question,
                policies,
                id_factory=self.id_factory,
                clock=self.clock,
            )
        except BackendError as e:
            logger.warning(f"Backend error analyzing question {question.id}: {e}")
        except Exception:
            logger.exception(f"Error analyzing question {question.id}")
        return degraded_result(question, id_factory=self.id_factory, clock=self.clock)


def summarize(results: list[AnalysisResult]) -> dict:
    """Aggregate counts for a batch of results.

    Returns:
        Dict with per-status ``counts``, the ``degraded`` count, the ``total``
        and the ``mean_confidence`` rounded to three decimals.
    """
    counts = {status.value: 0 for status in VerdictStatus}
    for result in results:
        counts[result.status.value] += 1
    mean = sum(r.confidence for r in results) / len(results) if results else 0.0
    return {
        "total": len(results),
        "counts": counts,
        "degraded": sum(1 for r in results if r.degraded),
        "mean_confidence": round(mean, 3),
    }
