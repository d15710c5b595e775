"""Prompt construction for compliance analysis."""

from app.models import AuditQuestion, PolicyDocument

DEFAULT_MAX_CONTEXT_CHARS = 8000

SYSTEM_PROMPT = (
    "You are a compliance analyst reviewing an organization's policies and procedures (P&P). "
    "Analyze whether the following question is satisfied by the provided policies. "
    "Answer only using the provided policy documents."
)

OUTPUT_CONTRACT = """Respond with a JSON object containing:
{
  "status": "Yes|No|Maybe",
  "confidence": 0.85,
  "reasoning": "Brief explanation",
  "citation": "Relevant quote from policies"
}

Guidelines:
- "Yes": Policy clearly and explicitly addresses the requirement
- "No": Policy clearly does not address or contradicts it
- "Maybe": Policy partially addresses or is ambiguous
- Confidence: 0.0 to 1.0
- Citation: Exact quote from the most relevant policy section"""


def format_policy(policy: PolicyDocument) -> str:
    return f"[Document: {policy.name}]\n{policy.content}"


def build_policy_context(
    policies: list[PolicyDocument], max_chars: int = DEFAULT_MAX_CONTEXT_CHARS
) -> str:
    """Concatenate policy documents into a bounded grounding context.

    Documents are joined in the order given and the result is cut to
    ``max_chars`` afterwards, so earlier documents win when the budget is
    exceeded and the context is always a contiguous prefix.

    Args:
        policies: Policy documents to include.
        max_chars: Character budget for the whole context.

    Returns:
        Context string of at most ``max_chars`` characters.
    """
    joined = "\n\n".join(format_policy(p) for p in policies)
    return joined[: max(0, max_chars)]


def build_prompt(
    question: AuditQuestion,
    policies: list[PolicyDocument],
    max_chars: int = DEFAULT_MAX_CONTEXT_CHARS,
) -> str:
    context = build_policy_context(policies, max_chars)
    question_line = question.text
    if question.reference:
        question_line = f"{question.text} {question.reference}"
    return (
        f"{SYSTEM_PROMPT}\n\n"
        f"Question: {question_line}\n\n"
        f"Policy Documents:\n{context}\n\n"
        f"{OUTPUT_CONTRACT}"
    )
