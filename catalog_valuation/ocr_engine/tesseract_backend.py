"""
Tesseract OCR Backend.

This module provides OCR functionality using Tesseract (pytesseract).
Only plain text is needed downstream; layout is left to the extraction
model.

Requirements:
    - Tesseract OCR installed on the system
    - pytesseract Python package
"""

from PIL import Image
import pytesseract

from config import get_config
from catalog_valuation.utils.logger import get_logger
from catalog_valuation.utils.exceptions import OCREngineNotAvailableError, OCRProcessingError

# Initialize module logger
logger = get_logger(__name__)


class TesseractBackend:
    """
    Tesseract OCR backend implementation.

    Attributes:
        language: Tesseract language code (e.g., "eng")
        psm: Page Segmentation Mode (1-13)
        oem: OCR Engine Mode (0-3)

    Example:
        >>> backend = TesseractBackend()
        >>> text = backend.get_raw_text(image)
    """

    def __init__(self) -> None:
        """Initialize the Tesseract backend with configuration."""
        self.language = get_config("ocr.tesseract.lang", "eng")
        self.psm = get_config("ocr.tesseract.psm", 3)
        self.oem = get_config("ocr.tesseract.oem", 3)
        self.extra_config = get_config("ocr.tesseract.config", "")

        self._check_dependencies()

        logger.debug(
            f"TesseractBackend initialized (lang={self.language}, "
            f"psm={self.psm}, oem={self.oem})"
        )

    def _check_dependencies(self) -> None:
        """
        Check that the Tesseract binary is reachable.

        Raises:
            OCREngineNotAvailableError: If Tesseract is not installed.
        """
        try:
            version = pytesseract.get_tesseract_version()
            logger.info(f"Tesseract version: {version}")
        except pytesseract.TesseractNotFoundError as e:
            raise OCREngineNotAvailableError(
                f"Tesseract OCR (not installed or not in PATH): {e}"
            )

    def _build_config(self) -> str:
        config_parts = [
            f"--psm {self.psm}",
            f"--oem {self.oem}"
        ]

        if self.extra_config:
            config_parts.append(self.extra_config)

        return ' '.join(config_parts)

    def get_raw_text(self, image: Image.Image) -> str:
        """
        Extract the text content of an image.

        Args:
            image: PIL Image to process.

        Returns:
            Extracted text, stripped.

        Raises:
            OCRProcessingError: If Tesseract fails on the image.
        """
        if image.mode not in ('RGB', 'L'):
            image = image.convert('RGB')

        try:
            text = pytesseract.image_to_string(
                image,
                lang=self.language,
                config=self._build_config()
            )
        except (pytesseract.TesseractError, RuntimeError) as e:
            raise OCRProcessingError("image", str(e))

        return text.strip()
