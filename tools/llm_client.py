"""JSON parsing for analysis payloads returned by an LLM or pasted by hand.

Both sources share the same quirks: markdown code fences, prose around the
object, raw control characters inside strings and trailing commas.
"""

import json
import re

_JSON_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?\s*```", re.DOTALL)
_TRAILING_COMMA_RE = re.compile(r",(\s*[}\]])")

# Allows raw newlines and tabs inside JSON strings
_LENIENT_DECODER = json.JSONDecoder(strict=False)


def _try_loads(text: str):
    """Try parsing JSON strictly, then leniently, then without trailing commas."""
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    try:
        return _LENIENT_DECODER.decode(text)
    except json.JSONDecodeError:
        pass
    cleaned = _TRAILING_COMMA_RE.sub(r"\1", text)
    if cleaned != text:
        return _LENIENT_DECODER.decode(cleaned)
    raise json.JSONDecodeError("Unparseable JSON", text, 0)


def _ensure_dict(result) -> dict:
    """Analyses are objects; a list holding one is unwrapped."""
    if isinstance(result, dict):
        return result
    if isinstance(result, list):
        for item in result:
            if isinstance(item, dict):
                return item
    raise ValueError(f"Expected a JSON object, got {type(result).__name__}")


def parse_json_response(text: str) -> dict:
    """Extract and parse a JSON object from free-form text.

    Raises:
        ValueError: If no JSON object can be recovered.
    """
    text = text.strip()

    try:
        return _ensure_dict(_try_loads(text))
    except json.JSONDecodeError:
        pass

    match = _JSON_FENCE_RE.search(text)
    if match:
        try:
            return _ensure_dict(_try_loads(match.group(1).strip()))
        except json.JSONDecodeError:
            pass

    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        try:
            return _ensure_dict(_try_loads(text[start:end + 1]))
        except json.JSONDecodeError:
            pass

    raise ValueError(f"Failed to parse JSON from response: {text[:200]}...")
