"""
Test doubles shared across test modules
"""
from app.config import Settings


class FakeGenerator:
    """Generator double returning canned replies in call order.

    A reply that is an Exception instance is raised instead of returned.
    """

    def __init__(self, replies):
        self.replies = list(replies)
        self.prompts: list[str] = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        reply = self.replies[len(self.prompts) - 1]
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeClock:
    """Monotonic clock that only moves when something sleeps on it."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: list[float] = []

    def monotonic(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def make_settings(**overrides) -> Settings:
    values = dict(
        ibm_cloud_api_key="test-key",
        watsonx_region="us-south",
        watsonx_project_id="test-project",
        watsonx_gen_model="ibm/granite-13b-instruct-v2",
        temperature=0.0,
        max_new_tokens=256,
        request_timeout=5.0,
        max_context_chars=8000,
        pacing_seconds=1.0,
        max_workers=1,
        log_level="INFO",
    )
    values.update(overrides)
    return Settings(**values)
