"""Text utilities: token estimates for chapter lists and prompt sizing."""

import string

# Weights in twentieths of a token
_CJK_WEIGHT = 30
_ASCII_WORD_WEIGHT = 6
_ASCII_SEPARATOR_WEIGHT = 5
_SEPARATORS = frozenset(string.whitespace + string.punctuation)


def estimate_tokens(text: str) -> int:
    """Estimate the token count of a text, rounded up.

    Conservative heuristic: CJK characters count 1.5 tokens each, ASCII
    letters and digits 0.3 (about four per token), ASCII whitespace and
    punctuation 0.25.
    """
    units = 0
    for ch in text:
        if not ch.isascii():
            units += _CJK_WEIGHT
        elif ch in _SEPARATORS:
            units += _ASCII_SEPARATOR_WEIGHT
        else:
            units += _ASCII_WORD_WEIGHT
    return -(-units // 20)


def truncate_for_log(text: str, limit: int = 80) -> str:
    """Shorten text for a single log line."""
    text = text.replace("\n", " ")
    if len(text) <= limit:
        return text
    return text[:limit] + "..."
