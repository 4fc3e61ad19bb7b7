"""Expiration date extraction from OCR text.

Candidates are collected with an ordered list of patterns, normalized to
calendar dates, and the latest valid date wins: expiration dates are
usually the most future-looking date printed on a card or certificate.
"""

import logging
import re
from datetime import date
from typing import Optional, Union

from shiftguard.ocr.text import clean_ocr_text

logger = logging.getLogger(__name__)

MONTH_SHORT = r"(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*"
MONTH_FULL = (
    r"(?:January|February|March|April|May|June|July|August|September|October|"
    r"November|December)"
)
# Includes common OCR misreads of "expiry"
KEYWORD = r"(?:exp\w*|valid|expires|date|expiration|expiry|exp1ry|3xpiry)"
KEYWORD_GAP = r"[^\w\n\r]{0,10}"

DAY_MONTH_YEAR = rf"[0-9]{{1,2}}\s+{MONTH_SHORT}\s+[0-9]{{4}}"
MONTH_DAY_YEAR = rf"{MONTH_SHORT}\s+[0-9]{{1,2}}\s+[0-9]{{4}}"
FULL_MONTH_DAY_YEAR = rf"{MONTH_FULL}\s+[0-9]{{1,2}},?\s+[0-9]{{4}}"

_I = re.IGNORECASE

# Order matters only for the order candidates are collected in.
DATE_PATTERNS: list[re.Pattern] = [
    # Keyword followed by a date
    re.compile(rf"{KEYWORD}{KEYWORD_GAP}({DAY_MONTH_YEAR})", _I),
    re.compile(rf"{KEYWORD}{KEYWORD_GAP}({MONTH_DAY_YEAR})", _I),
    re.compile(rf"{KEYWORD}{KEYWORD_GAP}({FULL_MONTH_DAY_YEAR})", _I),
    # "Date: January 10, 2028" and similar
    re.compile(rf"Date{KEYWORD_GAP}({DAY_MONTH_YEAR})", _I),
    re.compile(rf"Date{KEYWORD_GAP}({MONTH_DAY_YEAR})", _I),
    re.compile(rf"Date{KEYWORD_GAP}({FULL_MONTH_DAY_YEAR})", _I),
    # Catch-all: month name with a 4-digit year anywhere
    re.compile(rf"({DAY_MONTH_YEAR})", _I),
    re.compile(rf"({MONTH_DAY_YEAR})", _I),
    re.compile(rf"({FULL_MONTH_DAY_YEAR})", _I),
    # 2029-Jun-27, 2024-December-25
    re.compile(rf"([0-9]{{4}}-{MONTH_SHORT}-[0-9]{{1,2}})", _I),
    re.compile(rf"([0-9]{{4}}-{MONTH_FULL}-[0-9]{{1,2}})", _I),
    # Numeric
    re.compile(r"([0-9]{1,2}[/-][0-9]{1,2}[/-][0-9]{2,4})"),
    re.compile(r"([0-9]{4}[/-][0-9]{1,2}[/-][0-9]{1,2})"),
    # Month name + day + 2-digit year (Apr 6/23, April 6/23)
    re.compile(rf"({MONTH_SHORT}\s+[0-9]{{1,2}}/[0-9]{{2}})", _I),
    re.compile(rf"({MONTH_FULL}\s+[0-9]{{1,2}}/[0-9]{{2}})", _I),
    re.compile(r"([0-9]{1,2}[/-][0-9]{1,2}[/-][0-9]{2})"),
]

_LINE_BREAK = re.compile(r"[\n\r]")

_MONTH_NUMBERS = {
    name: number
    for number, name in enumerate(
        ["jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec"],
        start=1,
    )
}

_YEAR_MONTH_DAY_TEXT = re.compile(r"^([0-9]{4})-([A-Za-z]+)-([0-9]{1,2})$")
_MONTH_DAY_SHORT_YEAR = re.compile(r"^([A-Za-z]+)\s+([0-9]{1,2})/([0-9]{2})$")
_DAY_MONTH_YEAR_TEXT = re.compile(r"^([0-9]{1,2})\s+([A-Za-z]+)\s+([0-9]{4})$")
_MONTH_DAY_YEAR_TEXT = re.compile(r"^([A-Za-z]+)\s+([0-9]{1,2}),?\s+([0-9]{4})$")
_NUMERIC_YEAR_FIRST = re.compile(r"^([0-9]{4})-([0-9]{1,2})-([0-9]{1,2})$")
_NUMERIC_YEAR_LAST = re.compile(r"^([0-9]{1,2})-([0-9]{1,2})-([0-9]{2}|[0-9]{4})$")


def expand_two_digit_year(year: Union[int, str]) -> int:
    """Expand a 2-digit year: 00-29 -> 2000s, 30-99 -> 1900s."""
    value = int(year)
    return 2000 + value if value < 30 else 1900 + value


def extract_date_candidates(text: str) -> list[str]:
    """Collect every date-like substring, line by line, pattern by pattern.

    Args:
        text: OCR text (raw or cleaned).

    Returns:
        Candidate strings in discovery order (duplicates kept).
    """
    candidates = []
    for line in _LINE_BREAK.split(text):
        for pattern in DATE_PATTERNS:
            for match in pattern.finditer(line):
                if match.group(1):
                    candidates.append(match.group(1))
    return candidates


def _month_number(word: str) -> Optional[int]:
    return _MONTH_NUMBERS.get(word[:3].lower())


def _safe_date(year: int, month: Optional[int], day: int) -> Optional[date]:
    if month is None:
        return None
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_candidate_date(candidate: str) -> Optional[date]:
    """Parse one candidate string into a calendar date.

    Numeric dates are always read month-first (4/6/23 is April 6, 2023),
    so 31/12/2025 is not a date.

    Args:
        candidate: A string produced by extract_date_candidates().

    Returns:
        The date, or None if the candidate is not a valid date.
    """
    value = candidate.strip()

    match = _YEAR_MONTH_DAY_TEXT.match(value)
    if match:
        year, month, day = match.groups()
        return _safe_date(int(year), _month_number(month), int(day))

    match = _MONTH_DAY_SHORT_YEAR.match(value)
    if match:
        month, day, year = match.groups()
        return _safe_date(expand_two_digit_year(year), _month_number(month), int(day))

    match = _DAY_MONTH_YEAR_TEXT.match(value)
    if match:
        day, month, year = match.groups()
        return _safe_date(int(year), _month_number(month), int(day))

    match = _MONTH_DAY_YEAR_TEXT.match(value)
    if match:
        month, day, year = match.groups()
        return _safe_date(int(year), _month_number(month), int(day))

    numeric = re.sub(r"[/.]", "-", value)

    match = _NUMERIC_YEAR_FIRST.match(numeric)
    if match:
        year, month, day = (int(part) for part in match.groups())
        return _safe_date(year, month, day)

    match = _NUMERIC_YEAR_LAST.match(numeric)
    if match:
        first, second, year = match.groups()
        full_year = expand_two_digit_year(year) if len(year) == 2 else int(year)
        return _safe_date(full_year, int(first), int(second))

    logger.debug("Discarding unparseable date candidate %r", candidate)
    return None


def extract_expiration_date(text: str) -> Optional[str]:
    """Extract the best-guess expiration date from OCR text.

    The raw text is searched first; the cleaned text is only used when the
    raw text yields no candidates at all.

    Args:
        text: Raw OCR text.

    Returns:
        The latest valid date as "YYYY-MM-DD", or None if nothing parses.
    """
    candidates = extract_date_candidates(text)
    if not candidates:
        candidates = extract_date_candidates(clean_ocr_text(text))

    parsed = sorted(d for d in map(parse_candidate_date, candidates) if d is not None)
    if not parsed:
        return None
    return parsed[-1].isoformat()
