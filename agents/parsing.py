"""
Tolerant JSON extraction for string responses.

Generation capabilities backed by a language model tend to wrap their
JSON in prose or code fences, leave trailing commas, or use single quotes.
extract_json() tries progressively more forgiving strategies and reports
whether any repair was needed.
"""

from __future__ import annotations

import ast
import json
import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

_FENCED_JSON = re.compile(r"```json\s*(.*?)```", re.DOTALL | re.IGNORECASE)
_FENCED_ANY = re.compile(r"```\s*(.*?)```", re.DOTALL)
_TRAILING_COMMA = re.compile(r",\s*([}\]])")


def _loads_object(text: str) -> dict[str, Any] | None:
    try:
        value = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return None
    return value if isinstance(value, dict) else None


def _brace_span(text: str) -> str | None:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    return text[start:end + 1]


def _strip_trailing_commas(text: str) -> str:
    return _TRAILING_COMMA.sub(r"\1", text)


def _from_python_literal(text: str) -> dict[str, Any] | None:
    try:
        value = ast.literal_eval(text)
    except (ValueError, SyntaxError, TypeError):
        return None
    return value if isinstance(value, dict) else None


def _close_braces(text: str) -> str:
    start = text.find("{")
    if start == -1:
        return text
    candidate = text[start:].rstrip().rstrip(",")
    missing_brackets = candidate.count("[") - candidate.count("]")
    missing_braces = candidate.count("{") - candidate.count("}")
    return candidate + "]" * max(0, missing_brackets) + "}" * max(0, missing_braces)


def extract_json(text: str) -> tuple[dict[str, Any], bool]:
    """
    Extract a JSON object from free-form text.

    Strategies, in order:
        1. direct parse
        2. ```json fenced block
        3. any ``` fenced block
        4. outermost {...} span inside prose
        5. trailing commas removed
        6. single-quoted (Python literal) dicts
        7. unbalanced braces closed

    Returns:
        (parsed_dict, repaired) where repaired is False only for strategy 1.

    Raises:
        ValueError: if every strategy fails.
    """
    if not text or not text.strip():
        raise ValueError("All JSON extraction strategies failed: empty response")

    stripped = text.strip()

    direct = _loads_object(stripped)
    if direct is not None:
        return direct, False

    candidates: list[str] = []
    for pattern in (_FENCED_JSON, _FENCED_ANY):
        match = pattern.search(stripped)
        if match:
            candidates.append(match.group(1).strip())
    span = _brace_span(stripped)
    if span:
        candidates.append(span)

    for candidate in candidates:
        parsed = _loads_object(candidate)
        if parsed is not None:
            return parsed, True

    for candidate in candidates or [stripped]:
        parsed = _loads_object(_strip_trailing_commas(candidate))
        if parsed is not None:
            return parsed, True
        parsed = _from_python_literal(_strip_trailing_commas(candidate))
        if parsed is not None:
            return parsed, True

    closed = _strip_trailing_commas(_close_braces(stripped))
    parsed = _loads_object(closed)
    if parsed is not None:
        return parsed, True

    logger.debug(f"JSON extraction failed for response: {stripped[:120]!r}")
    raise ValueError("All JSON extraction strategies failed")
