import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Optional

logger = logging.getLogger(__name__)

CODE_FENCE_PATTERN = re.compile(r"```(?:json)?", re.IGNORECASE)


@dataclass(frozen=True)
class ParseResult:
    ok: bool
    questions: Any = None
    reason: Optional[str] = None


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences Gemini sometimes wraps around JSON."""
    return CODE_FENCE_PATTERN.sub("", text or "").strip()


def parse_generated_questions(raw_text: str) -> ParseResult:
    """
    Parse generated text into the ``questions`` payload.

    Any JSON document is accepted. When it has no usable ``questions`` field
    the value is passed through as-is (``None`` when absent).
    """
    cleaned = strip_code_fences(raw_text)
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.error("Failed to parse Gemini JSON response: %s", e)
        return ParseResult(ok=False, reason=f"Invalid JSON: {e}")

    questions = parsed.get("questions") if isinstance(parsed, dict) else None
    return ParseResult(ok=True, questions=questions)
