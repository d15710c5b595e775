"""
Tests for text ingestion helpers
"""
from datetime import datetime, timezone

from app.compliance.ingest import parse_questions, policy_from_text

QUESTIONNAIRE = """
Compliance Questionnaire 2024

1. Does the P&P establish clear data retention policies for sensitive information?
(Reference: GDPR Article 5(1)(e))
2) Does the P&P require regular security assessments
   of third-party vendors? (Reference: SOX Section 404)
Q3: Does the P&P mandate employee training on data privacy and security protocols?
"""


def test_parse_numbered_questions():
    questions = parse_questions(QUESTIONNAIRE)

    assert [q.number for q in questions] == [1, 2, 3]
    assert [q.id for q in questions] == ["1", "2", "3"]
    assert questions[0].text == (
        "Does the P&P establish clear data retention policies for sensitive information?"
    )
    assert questions[0].reference == "(Reference: GDPR Article 5(1)(e))"
    assert questions[1].text == (
        "Does the P&P require regular security assessments of third-party vendors?"
    )
    assert questions[1].reference == "(Reference: SOX Section 404)"
    assert questions[2].reference is None


def test_restarted_numbering_keeps_ids_unique():
    text = "1. First section question?\n1. Second section question?"

    questions = parse_questions(text)

    assert [q.id for q in questions] == ["1", "2"]


def test_text_without_numbered_lines_yields_nothing():
    assert parse_questions("Just a paragraph of prose.\nAnother line.") == []
    assert parse_questions("") == []


def test_decimal_numbers_do_not_start_questions():
    text = "1. Are records kept for\n1.5 years or longer?"

    questions = parse_questions(text)

    assert len(questions) == 1
    assert questions[0].text == "Are records kept for 1.5 years or longer?"


def test_policy_from_text():
    when = datetime(2024, 3, 1, tzinfo=timezone.utc)

    policy = policy_from_text(
        "handbook.pdf", None, pages=12, id_factory=lambda: "doc-1", clock=lambda: when
    )

    assert policy.id == "doc-1"
    assert policy.name == "handbook.pdf"
    assert policy.content == ""
    assert policy.pages == 12
    assert policy.uploaded_at == when


def test_policy_ids_are_unique():
    ids = {policy_from_text("a.pdf", "text").id for _ in range(20)}

    assert len(ids) == 20
