"""Text recognition for document photos using Tesseract.

The engine is acquired explicitly for the duration of a ``with`` block;
there is no module-level engine state. Any failure while reading the
image or running Tesseract surfaces as OCRExtractionError.
"""

import io
import logging
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional, Union

import pytesseract
from PIL import Image

from shiftguard.config import Settings, load_settings
from shiftguard.ocr.dates import extract_expiration_date

logger = logging.getLogger(__name__)

# Restricting the alphabet reduces misreads on cards and certificates
OCR_CHAR_WHITELIST = (
    "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz/:.- "
)

ImageSource = Union[str, Path, bytes, BinaryIO, Image.Image]

_ENGINE_ERRORS = (RuntimeError, OSError, ValueError)


class OCRExtractionError(RuntimeError):
    """Raised when text cannot be extracted from an image."""

    def __init__(self, message: str = "Failed to extract text from image"):
        super().__init__(message)


@dataclass
class OCRResult:
    """Recognized text from a document image.

    Attributes:
        text: Recognized text, one line per detected text line.
        confidence: Mean word confidence (0-100).
        expiration_date: Extracted expiration date ("YYYY-MM-DD"), if any.
    """

    text: str
    confidence: float
    expiration_date: Optional[str] = None


class OCREngine:
    """Scoped handle on the Tesseract engine.

    Example:
        >>> with OCREngine(lang="eng") as engine:
        ...     result = engine.recognize("licence.jpg")
        >>> result.text, result.confidence
    """

    def __init__(
        self,
        lang: str = "eng",
        tesseract_cmd: Optional[str] = None,
        whitelist: str = OCR_CHAR_WHITELIST,
    ):
        self.lang = lang
        self.tesseract_cmd = tesseract_cmd
        self.whitelist = whitelist
        self._active = False
        self._previous_cmd: Optional[str] = None
        self._opened: list[Image.Image] = []

    @classmethod
    def from_settings(cls, settings: Settings) -> "OCREngine":
        return cls(lang=settings.ocr_lang, tesseract_cmd=settings.tesseract_cmd)

    @property
    def config(self) -> str:
        """Tesseract command-line config for whitelist and spacing."""
        return " ".join(
            [
                "-c",
                shlex.quote(f"tessedit_char_whitelist={self.whitelist}"),
                "-c",
                "preserve_interword_spaces=1",
            ]
        )

    def __enter__(self) -> "OCREngine":
        self._previous_cmd = pytesseract.pytesseract.tesseract_cmd
        if self.tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = self.tesseract_cmd
        try:
            version = pytesseract.get_tesseract_version()
        except _ENGINE_ERRORS as exc:
            self._restore_cmd()
            logger.warning("Tesseract is not available: %s", exc)
            raise OCRExtractionError() from exc
        logger.debug("Using Tesseract %s (lang=%s)", version, self.lang)
        self._active = True
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        """Release images opened by this engine and restore the binary path."""
        for image in self._opened:
            image.close()
        self._opened.clear()
        if self._active:
            self._restore_cmd()
        self._active = False

    def recognize(self, image: ImageSource) -> OCRResult:
        """Run OCR on an image.

        Args:
            image: Path, raw bytes, binary file object, or PIL image.

        Returns:
            OCRResult with text and confidence.

        Raises:
            OCRExtractionError: If the image can't be read or Tesseract fails.
        """
        if not self._active:
            raise RuntimeError("OCREngine must be entered with 'with' before use")

        try:
            loaded = self._load(image)
            data = pytesseract.image_to_data(
                loaded,
                lang=self.lang,
                config=self.config,
                output_type=pytesseract.Output.DICT,
            )
        except _ENGINE_ERRORS as exc:
            logger.exception("OCR extraction failed")
            raise OCRExtractionError() from exc

        return OCRResult(text=_join_lines(data), confidence=_mean_confidence(data))

    def _load(self, image: ImageSource) -> Image.Image:
        if isinstance(image, Image.Image):
            return image
        if isinstance(image, (str, Path)):
            opened = Image.open(image)
        elif isinstance(image, (bytes, bytearray)):
            opened = Image.open(io.BytesIO(image))
        else:
            opened = Image.open(image)
        self._opened.append(opened)
        opened.load()
        return opened

    def _restore_cmd(self) -> None:
        if self._previous_cmd is not None:
            pytesseract.pytesseract.tesseract_cmd = self._previous_cmd


def _join_lines(data: dict) -> str:
    """Rebuild text from Tesseract word boxes, one line per text line."""
    lines: list[str] = []
    current_key = None
    words: list[str] = []

    for i, word in enumerate(data.get("text", [])):
        key = (data["block_num"][i], data["par_num"][i], data["line_num"][i])
        if key != current_key:
            if words:
                lines.append(" ".join(words))
            words = []
            current_key = key
        if word and word.strip():
            words.append(word.strip())

    if words:
        lines.append(" ".join(words))
    return "\n".join(lines)


def _mean_confidence(data: dict) -> float:
    """Mean confidence of recognized words; non-word boxes report -1."""
    scores = []
    for word, conf in zip(data.get("text", []), data.get("conf", [])):
        try:
            score = float(conf)
        except (TypeError, ValueError):
            continue
        if score >= 0 and word and word.strip():
            scores.append(score)
    if not scores:
        return 0.0
    return sum(scores) / len(scores)


def extract_text_from_image(
    image: ImageSource,
    settings: Optional[Settings] = None,
) -> OCRResult:
    """Recognize text in an image with a short-lived engine.

    Raises:
        OCRExtractionError: If recognition fails.
    """
    with OCREngine.from_settings(settings or load_settings()) as engine:
        return engine.recognize(image)


def analyze_document(
    image: ImageSource,
    settings: Optional[Settings] = None,
) -> OCRResult:
    """Recognize text in an image and extract its expiration date.

    Raises:
        OCRExtractionError: If recognition fails.
    """
    result = extract_text_from_image(image, settings)
    result.expiration_date = extract_expiration_date(result.text)
    return result


def extract_expiration_date_from_image(
    image: ImageSource,
    settings: Optional[Settings] = None,
) -> Optional[str]:
    """Best-guess expiration date for a document image.

    Recognition failures are logged and treated as "no date found", since
    the date only pre-fills a field a person can still edit.

    Returns:
        "YYYY-MM-DD", or None.
    """
    try:
        return analyze_document(image, settings).expiration_date
    except OCRExtractionError:
        logger.warning("Failed to extract expiration date from image", exc_info=True)
        return None


def is_ocr_supported(settings: Optional[Settings] = None) -> bool:
    """Check whether the Tesseract binary can be reached."""
    try:
        with OCREngine.from_settings(settings or load_settings()):
            return True
    except OCRExtractionError:
        return False
