"""Cleanup of raw OCR output before date matching."""

import re

# Applied in order, each over the previous output. Reordering changes results
# on text containing several confusable characters.
OCR_CONFUSIONS: list[tuple[str, str]] = [
    (r"[|]", "I"),  # Vertical bar read for I
    (r"[0O]", "0"),
    (r"[1l]", "1"),
    (r"[5S]", "5"),
    (r"[8B]", "8"),
    (r"[6G]", "6"),
    (r"[9g]", "9"),
    (r"[2Z]", "2"),
    (r"[3E]", "3"),
    (r"[7T]", "7"),
]

_WHITESPACE = re.compile(r"\s+")
_CONFUSION_PATTERNS = [(re.compile(pattern), repl) for pattern, repl in OCR_CONFUSIONS]


def clean_ocr_text(text: str) -> str:
    """Normalize whitespace and fix common OCR digit/letter confusions.

    The substitutions are context-free: letters outside dates are rewritten
    too (e.g. "SEPT" becomes "53P7"). Date matching therefore runs on the
    raw text first and only falls back to the cleaned text.

    Args:
        text: Raw OCR text.

    Returns:
        Single-line cleaned text.
    """
    cleaned = _WHITESPACE.sub(" ", text).strip()
    for pattern, repl in _CONFUSION_PATTERNS:
        cleaned = pattern.sub(repl, cleaned)
    return cleaned
