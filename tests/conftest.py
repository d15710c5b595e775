"""
Pytest configuration and fixtures
"""
from datetime import datetime, timezone

import pytest

from app.compliance.analyzer import ComplianceAnalyzer
from app.models import AuditQuestion, PolicyDocument
from tests.fakes import FakeClock, FakeGenerator, make_settings


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def questions():
    return [
        AuditQuestion(
            id="1",
            number=1,
            text="Does the P&P establish clear data retention policies for sensitive information?",
            reference="(Reference: GDPR Article 5(1)(e))",
        ),
        AuditQuestion(
            id="2",
            number=2,
            text="Does the P&P require regular security assessments of third-party vendors?",
        ),
        AuditQuestion(
            id="3",
            number=3,
            text="Does the P&P mandate employee training on data privacy and security protocols?",
        ),
    ]


@pytest.fixture
def policies():
    uploaded = datetime(2024, 1, 1, tzinfo=timezone.utc)
    return [
        PolicyDocument(
            id="p1",
            name="retention.pdf",
            content="Sensitive records are retained for seven years and then destroyed.",
            pages=4,
            uploaded_at=uploaded,
        ),
        PolicyDocument(
            id="p2",
            name="vendors.pdf",
            content="Vendors undergo an annual security assessment.",
            pages=2,
            uploaded_at=uploaded,
        ),
    ]


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def make_analyzer(settings, fake_clock):
    """Build an analyzer around a FakeGenerator with recorded, non-blocking sleeps."""

    def _make(replies, **overrides):
        generator = FakeGenerator(replies)
        analyzer = ComplianceAnalyzer(
            make_settings(**overrides) if overrides else settings,
            generator=generator,
            sleep=fake_clock.sleep,
            monotonic=fake_clock.monotonic,
        )
        return analyzer, generator

    return _make
