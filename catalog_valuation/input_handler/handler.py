"""
Main Input Handler Module.

This module provides the FormatDispatcher class, the single entry point
that turns one uploaded file into stream records. It detects the file
type from the submitted name and routes the bytes to the matching
processor:

    tabular (.csv/.tsv/.xlsx) -> TabularProcessor -> RecordNormalizer
    pdf                       -> PDFProcessor -> ExtractionGateway.analyze_text
    image (.png/.jpg/.jpeg)   -> ImageProcessor -> ExtractionGateway.analyze_image

Usage:
    from catalog_valuation.input_handler import FormatDispatcher, UploadedFile

    dispatcher = FormatDispatcher(gateway)
    records = await dispatcher.extract(UploadedFile.from_path("statement.csv"))

Classes:
    FormatDispatcher: Type detection and per-format extraction
"""

from typing import List, Optional

from config import get_config
from catalog_valuation.model_inference import ExtractionGateway
from catalog_valuation.postprocessor import RecordNormalizer, StreamRecord
from catalog_valuation.utils.logger import get_logger
from catalog_valuation.utils.helpers import get_file_extension
from catalog_valuation.utils.exceptions import (
    CorruptedFileError,
    FileTooLargeError,
    UnsupportedFormatError,
)

from .file_access import LocalFileAccess, UploadedFile
from .image_processor import ImageProcessor
from .pdf_processor import PDFProcessor
from .tabular_processor import TabularProcessor


# Initialize module logger
logger = get_logger(__name__)


class FormatDispatcher:
    """
    Routes uploaded files to the processor for their format.

    Every file handed to extract() is released afterwards, whether
    extraction succeeded or not.

    Attributes:
        gateway: Rate-limited extraction gateway for PDFs and images
        file_access: Reads and releases uploaded files
        max_file_size: Upper size limit in bytes

    Example:
        >>> dispatcher = FormatDispatcher(gateway)
        >>> dispatcher.detect_file_type("royalties.XLSX")
        'tabular'
    """

    TABULAR_EXTENSIONS = {'.csv', '.tsv', '.xlsx'}
    PDF_EXTENSIONS = {'.pdf'}
    IMAGE_EXTENSIONS = {'.png', '.jpg', '.jpeg'}

    def __init__(
        self,
        gateway: ExtractionGateway,
        file_access: Optional[LocalFileAccess] = None,
        normalizer: Optional[RecordNormalizer] = None,
        tabular_processor: Optional[TabularProcessor] = None,
        pdf_processor: Optional[PDFProcessor] = None,
        image_processor: Optional[ImageProcessor] = None,
        max_file_size: Optional[int] = None
    ) -> None:
        """
        Initialize the dispatcher.

        Args:
            gateway: Extraction gateway used for PDF text and images.
            file_access: File access. Defaults to LocalFileAccess configured
                from input.delete_after_processing.
            normalizer: Normalizer for tabular rows.
            tabular_processor: Parser for CSV/TSV/XLSX files.
            pdf_processor: Text extractor for PDFs.
            image_processor: Encoder for image files.
            max_file_size: Size limit in bytes. Defaults to
                input.max_file_size_mb.
        """
        self.gateway = gateway
        self.file_access = file_access or LocalFileAccess(
            delete_on_release=get_config("input.delete_after_processing", False)
        )
        self.normalizer = normalizer or RecordNormalizer()
        self.tabular_processor = tabular_processor or TabularProcessor()
        self.pdf_processor = pdf_processor or PDFProcessor()
        self.image_processor = image_processor or ImageProcessor()

        if max_file_size is None:
            max_file_size = int(get_config("input.max_file_size_mb", 50) * 1024 * 1024)
        self.max_file_size = max_file_size

        self.tabular_extensions = self._extensions("input.tabular_extensions", self.TABULAR_EXTENSIONS)
        self.pdf_extensions = self._extensions("input.pdf_extensions", self.PDF_EXTENSIONS)
        self.image_extensions = self._extensions("input.image_extensions", self.IMAGE_EXTENSIONS)

        logger.info(
            f"FormatDispatcher initialized with extensions: {sorted(self.supported_extensions)}"
        )

    @staticmethod
    def _extensions(key: str, default: set) -> set:
        return {ext.lower() for ext in get_config(key, sorted(default))}

    @property
    def supported_extensions(self) -> set:
        return self.tabular_extensions | self.pdf_extensions | self.image_extensions

    def detect_file_type(self, filename: str) -> str:
        """
        Detect the type of an uploaded file from its name.

        Args:
            filename: Submitted file name; the extension is matched
                case-insensitively.

        Returns:
            File type string: 'tabular', 'pdf' or 'image'.

        Raises:
            UnsupportedFormatError: If the extension is not supported.
        """
        extension = get_file_extension(filename)

        if extension in self.tabular_extensions:
            return 'tabular'
        elif extension in self.pdf_extensions:
            return 'pdf'
        elif extension in self.image_extensions:
            return 'image'

        raise UnsupportedFormatError(extension or filename, sorted(self.supported_extensions))

    async def extract(self, file: UploadedFile) -> List[StreamRecord]:
        """
        Extract stream records from one uploaded file.

        Args:
            file: Handle of the uploaded file.

        Returns:
            Validated stream records. May be empty for tabular files
            without usable rows.

        Raises:
            UnsupportedFormatError: If the format is not supported.
            FileTooLargeError: If the file exceeds the size limit.
            CorruptedFileError: If the file is empty or unreadable.
            ExtractionError: If model extraction fails or yields nothing.
            RateLimitExceededError: If throttling outlasts every retry.
        """
        name = file.original_name
        logger.info(f"Extracting records from: {name}")

        try:
            file_type = self.detect_file_type(name)

            if file.size > self.max_file_size:
                raise FileTooLargeError(name, file.size, self.max_file_size)

            content = await self.file_access.read_file(file)
            if not content:
                raise CorruptedFileError(name, "File is empty")

            if file_type == 'tabular':
                records = self._extract_tabular(content, name)
            elif file_type == 'pdf':
                text = await self.pdf_processor.extract_text(content, name)
                records = await self.gateway.analyze_text(text)
            else:
                image_base64, media_type = self.image_processor.prepare(content, name)
                records = await self.gateway.analyze_image(image_base64, media_type)

            logger.info(f"Extracted {len(records)} record(s) from {name} ({file_type})")
            return records

        finally:
            await self.file_access.release_file(file)

    def _extract_tabular(self, content: bytes, filename: str) -> List[StreamRecord]:
        rows = self.tabular_processor.read_rows(content, get_file_extension(filename), filename)
        return self.normalizer.normalize_rows(rows)
