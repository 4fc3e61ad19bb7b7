"""OCR-based expiration date extraction for certifications and licences."""

from shiftguard.ocr.dates import (
    expand_two_digit_year,
    extract_date_candidates,
    extract_expiration_date,
    parse_candidate_date,
)
from shiftguard.ocr.engine import (
    OCREngine,
    OCRExtractionError,
    OCRResult,
    analyze_document,
    extract_expiration_date_from_image,
    extract_text_from_image,
    is_ocr_supported,
)
from shiftguard.ocr.text import clean_ocr_text

__all__ = [
    # Engine
    "OCREngine",
    "OCRExtractionError",
    "OCRResult",
    "analyze_document",
    "extract_expiration_date_from_image",
    "extract_text_from_image",
    "is_ocr_supported",
    # Text and dates
    "clean_ocr_text",
    "expand_two_digit_year",
    "extract_date_candidates",
    "extract_expiration_date",
    "parse_candidate_date",
]
