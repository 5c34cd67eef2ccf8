import json
import re
from typing import Any, Dict, Optional

from docintel.utils.logging import get_logger

LOGGER = get_logger(__name__)

_FENCE_PATTERN = re.compile(r"```(?:json)?", re.IGNORECASE)
_LEADING_NOISE = re.compile(r"^[^{\[]+")
_TRAILING_NOISE = re.compile(r"[^}\]]+$")
_ITEMS_ARRAY = re.compile(r'"items"\s*:\s*\[([\s\S]*?)\]')


def _clean(text: str) -> str:
    cleaned = _FENCE_PATTERN.sub("", text)
    cleaned = _LEADING_NOISE.sub("", cleaned)
    cleaned = _TRAILING_NOISE.sub("", cleaned)
    return cleaned.strip()


def _as_items_payload(parsed: Any) -> Optional[Dict[str, Any]]:
    if isinstance(parsed, dict):
        return parsed
    if isinstance(parsed, list):
        return {"items": parsed}
    return None


def parse_extraction_response(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """Parse a model's ``{"items": [...]}`` answer.

    Models wrap JSON in prose or code fences often enough that a plain
    ``json.loads`` is not sufficient. Strategies, in order:

    1. Strip fences and surrounding prose, then parse directly.
    2. Parse the span from the first ``{`` to the last ``}``.
    3. Pull the ``"items"`` array out with a regex and parse only that.

    Args:
        text: Raw text returned by the provider

    Returns:
        The parsed object (a bare list is wrapped as ``{"items": [...]}``),
        or None when every strategy fails
    """
    if not text:
        return None

    cleaned = _clean(text)

    try:
        return _as_items_payload(json.loads(cleaned))
    except json.JSONDecodeError as e:
        LOGGER.debug(f"Direct JSON parse failed: {e}")

    first_brace = cleaned.find("{")
    last_brace = cleaned.rfind("}")
    if first_brace != -1 and last_brace > first_brace:
        try:
            return _as_items_payload(json.loads(cleaned[first_brace : last_brace + 1]))
        except json.JSONDecodeError as e:
            LOGGER.debug(f"Brace-span JSON parse failed: {e}")

    match = _ITEMS_ARRAY.search(cleaned)
    if match:
        try:
            return json.loads(f'{{"items":[{match.group(1)}]}}')
        except json.JSONDecodeError as e:
            LOGGER.debug(f"Items-array JSON parse failed: {e}")

    LOGGER.warning(
        "Failed to parse extraction response",
        extra={"response_preview": text[:200]},
    )
    return None
