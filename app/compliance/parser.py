"""Parsing of free-text model replies into verdict payloads.

Models are asked for a JSON object but routinely wrap it in prose or
markdown fences. The parser locates the first balanced ``{...}`` span and
decodes it; anything it cannot decode becomes a fallback verdict instead of
an exception.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any

from app.compliance.errors import MalformedResponse

logger = logging.getLogger(__name__)

FALLBACK_STATUS = "Maybe"
FALLBACK_CONFIDENCE = 0.5
FALLBACK_REASONING = "Response format unclear"
FALLBACK_CITATION_CHARS = 200


@dataclass(frozen=True)
class ParsedVerdict:
    """Verdict fields as decoded from a reply, not yet validated.

    Attributes:
        status: Raw status value, expected to be Yes, No or Maybe.
        confidence: Raw confidence value, expected to be a number in [0, 1].
        reasoning: Explanation given by the model.
        citation: Quoted evidence given by the model.
        fallback: True when the reply could not be decoded.
    """

    status: Any = None
    confidence: Any = None
    reasoning: str | None = None
    citation: str | None = None
    fallback: bool = False


def find_json_object(text: str) -> str | None:
    """Return the first balanced ``{...}`` span in ``text``.

    Braces inside JSON string literals are ignored.

    Args:
        text: Text to search.

    Returns:
        The span including both braces, or None if no balanced span exists.
    """
    start_idx = text.find("{")
    while start_idx >= 0:
        depth = 0
        in_string = False
        escaped = False
        for i in range(start_idx, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return text[start_idx : i + 1]
        # Unbalanced from this brace; try the next opening brace.
        start_idx = text.find("{", start_idx + 1)
    return None


def extract_payload(text: str) -> dict[str, Any]:
    """Decode the verdict payload embedded in a reply.

    Raises:
        MalformedResponse: No balanced object was found, or it is not a
            valid JSON object.
    """
    span = find_json_object(text or "")
    if span is None:
        raise MalformedResponse("No JSON object found in reply")
    try:
        payload = json.loads(span)
    except (ValueError, RecursionError) as e:
        # JSONDecodeError is a ValueError, as is an over-long integer literal.
        raise MalformedResponse(f"Invalid JSON payload: {e}") from e
    if not isinstance(payload, dict):
        raise MalformedResponse("Payload is not a JSON object")
    return payload


def _as_text(value: Any) -> str | None:
    while isinstance(value, (list, dict)):
        if isinstance(value, list):
            value = value[0] if value else None
        else:
            value = value.get("text") or value.get("quote")
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def fallback_verdict(text: str) -> ParsedVerdict:
    return ParsedVerdict(
        status=FALLBACK_STATUS,
        confidence=FALLBACK_CONFIDENCE,
        reasoning=FALLBACK_REASONING,
        citation=(text or "")[:FALLBACK_CITATION_CHARS],
        fallback=True,
    )


def parse_response(text: str) -> ParsedVerdict:
    """Turn a raw model reply into a verdict. Never raises.

    Args:
        text: Raw reply from the backend.

    Returns:
        Decoded verdict, or the fallback verdict when decoding fails.
    """
    try:
        payload = extract_payload(text)
    except MalformedResponse as e:
        logger.warning(f"Falling back to default verdict: {e}")
        return fallback_verdict(text)

    reasoning = payload.get("reasoning")
    if reasoning is None:
        reasoning = payload.get("rationale")
    return ParsedVerdict(
        status=payload.get("status"),
        confidence=payload.get("confidence"),
        reasoning=_as_text(reasoning),
        citation=_as_text(payload.get("citation")),
    )
