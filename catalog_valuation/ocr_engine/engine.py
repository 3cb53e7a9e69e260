"""
Main OCR Engine Module.

This module provides the OCREngine class, the asynchronous OCR
capability used by the ingestion pipeline. Recognition runs in a worker
thread so the event loop keeps serving other files meanwhile.

Usage:
    from catalog_valuation.ocr_engine import OCREngine

    engine = OCREngine()
    text = await engine.recognize_text(png_bytes)
"""

import asyncio
import io
import time
from typing import Optional, Union

from PIL import Image, UnidentifiedImageError

from config import get_config
from catalog_valuation.utils.logger import get_logger
from catalog_valuation.utils.exceptions import OCRProcessingError
from .tesseract_backend import TesseractBackend

# Initialize module logger
logger = get_logger(__name__)


class OCREngine:
    """
    Asynchronous text recognition over a Tesseract backend.

    Attributes:
        backend_name: Name of the active OCR backend
        backend: The active OCR backend instance

    Example:
        >>> engine = OCREngine()
        >>> text = await engine.recognize_text(image_bytes)
    """

    SUPPORTED_BACKENDS = ['tesseract']

    def __init__(self, backend: Optional[TesseractBackend] = None) -> None:
        """
        Initialize the OCR engine.

        Args:
            backend: Backend instance. If None, one is built from configuration.
        """
        self.backend_name = get_config("ocr.engine", "pytesseract")
        if self.backend_name == "pytesseract":
            self.backend_name = "tesseract"

        if self.backend_name not in self.SUPPORTED_BACKENDS:
            logger.warning(
                f"Unknown backend '{self.backend_name}', falling back to tesseract"
            )
            self.backend_name = "tesseract"

        self.backend = backend or TesseractBackend()

        logger.info(f"OCR Engine initialized with backend: {self.backend_name}")

    async def recognize_text(self, image: Union[bytes, Image.Image]) -> str:
        """
        Recognize the text in an image.

        Args:
            image: Encoded image bytes or a PIL Image.

        Returns:
            Recognized text.

        Raises:
            OCRProcessingError: If the image cannot be decoded or read.
        """
        return await asyncio.to_thread(self._recognize_sync, image)

    def _recognize_sync(self, image: Union[bytes, Image.Image]) -> str:
        start_time = time.time()

        if isinstance(image, (bytes, bytearray)):
            try:
                with Image.open(io.BytesIO(image)) as opened:
                    opened.load()
                    text = self.backend.get_raw_text(opened)
            except (UnidentifiedImageError, OSError) as e:
                raise OCRProcessingError("image bytes", f"Failed to load image: {e}")
        elif isinstance(image, Image.Image):
            text = self.backend.get_raw_text(image)
        else:
            raise OCRProcessingError("unknown", "Invalid image input")

        logger.debug(
            f"OCR completed: {len(text)} chars ({time.time() - start_time:.2f}s)"
        )
        return text
