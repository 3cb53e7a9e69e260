"""
PDF Processor Module.

This module turns PDF statements into plain text:
    - Digital pages: embedded text via pdfplumber
    - Scanned pages: rendered with PyMuPDF and passed through OCR
    - Multi-page documents, continuing past pages that fail

Author: ML Engineering Team
"""

import asyncio
import io
from dataclasses import dataclass
from typing import List, Optional

import fitz  # PyMuPDF
import pdfplumber

from config import get_config
from catalog_valuation.ocr_engine import OCREngine
from catalog_valuation.utils.logger import get_logger
from catalog_valuation.utils.exceptions import CorruptedFileError, ExtractionError

# Initialize module logger
logger = get_logger(__name__)


@dataclass
class PageContent:
    """
    One loaded PDF page.

    Attributes:
        number: 1-based page number
        text: Embedded text (may be empty for scanned pages)
        image_png: Rendered page, present only when OCR is needed
    """
    number: int
    text: str = ""
    image_png: Optional[bytes] = None


class PDFProcessor:
    """
    Processor for PDF statements.

    Attributes:
        dpi: Resolution for rendering scanned pages
        max_pages: Maximum number of pages to read
        min_text_chars: Embedded text shorter than this triggers OCR

    Example:
        >>> processor = PDFProcessor()
        >>> text = await processor.extract_text(pdf_bytes, "statement.pdf")
    """

    def __init__(self, ocr_engine: Optional[OCREngine] = None) -> None:
        """
        Initialize the PDF processor with configuration.

        Args:
            ocr_engine: OCR engine for scanned pages. Created on first
                use when not given.
        """
        self.dpi = get_config("input.pdf.dpi", 300)
        self.max_pages = get_config("input.pdf.max_pages", 50)
        self.min_text_chars = get_config("input.pdf.min_embedded_text_chars", 20)
        self._ocr_engine = ocr_engine

        logger.debug(f"PDFProcessor initialized (DPI={self.dpi}, max_pages={self.max_pages})")

    @property
    def ocr_engine(self) -> OCREngine:
        """Get or create the OCR engine."""
        if self._ocr_engine is None:
            self._ocr_engine = OCREngine()
        return self._ocr_engine

    async def extract_text(self, content: bytes, filename: str = "document.pdf") -> str:
        """
        Extract the combined text of a PDF.

        Args:
            content: Raw PDF bytes.
            filename: Name used in log and error messages.

        Returns:
            Page texts joined by newlines.

        Raises:
            CorruptedFileError: If the PDF cannot be opened.
            ExtractionError: If no page yields any text.
        """
        pages = await asyncio.to_thread(self._load_pages, content, filename)
        logger.info(f"Processing {len(pages)} page(s) of {filename}")

        texts = []
        for page in pages:
            try:
                text = page.text
                if page.image_png is not None:
                    logger.debug(f"Running OCR on page {page.number}")
                    text = await self.ocr_engine.recognize_text(page.image_png)
            except Exception as e:
                logger.error(f"Error processing page {page.number} of {filename}: {e}")
                continue

            if text.strip():
                texts.append(text)
                logger.debug(f"Extracted text from page {page.number}: {text[:100]!r}")

        if not texts:
            raise ExtractionError("No text could be extracted from the PDF", {"filepath": filename})

        return '\n'.join(texts)

    def _load_pages(self, content: bytes, filename: str) -> List[PageContent]:
        """Read embedded text for every page and render pages that lack it."""
        try:
            pdf = pdfplumber.open(io.BytesIO(content))
        except Exception as e:
            logger.error(f"Could not open PDF {filename}: {e}")
            raise CorruptedFileError(filename, str(e))

        with pdf:
            try:
                doc = fitz.open(stream=content, filetype="pdf")
            except Exception as e:
                logger.error(f"Could not render PDF {filename}: {e}")
                raise CorruptedFileError(filename, str(e))

            with doc:
                return self._read_pages(pdf, doc, filename)

    def _read_pages(self, pdf, doc, filename: str) -> List[PageContent]:
        page_count = min(len(doc), self.max_pages)
        if len(doc) > self.max_pages:
            logger.warning(
                f"PDF has {len(doc)} pages, limiting to {self.max_pages}"
            )

        pages = []
        for index in range(page_count):
            page = PageContent(number=index + 1)
            try:
                page.text = pdf.pages[index].extract_text() or ""
                if len(page.text.strip()) < self.min_text_chars:
                    page.image_png = self._render_page(doc, index)
            except Exception as e:
                logger.error(f"Error loading page {index + 1} of {filename}: {e}")
                continue
            pages.append(page)

        return pages

    def _render_page(self, doc, index: int) -> bytes:
        # Default PDF resolution is 72 DPI
        zoom = self.dpi / 72.0
        pix = doc.load_page(index).get_pixmap(matrix=fitz.Matrix(zoom, zoom))
        return pix.tobytes("png")
