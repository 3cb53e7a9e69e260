"""
Input Handler Module for the Catalog Valuation System.

This module provides functionality for:
    - Detecting file types from the submitted name
    - Reading and releasing uploaded files
    - Parsing tabular statements
    - Extracting text from digital and scanned PDFs
    - Preparing statement images for the extraction model

Supported formats:
    - Tabular: CSV, TSV, XLSX
    - PDF (digital and scanned)
    - Images: PNG, JPG, JPEG

Author: ML Engineering Team
"""

from .file_access import LocalFileAccess, UploadedFile
from .handler import FormatDispatcher
from .image_processor import ImageProcessor
from .pdf_processor import PDFProcessor
from .tabular_processor import TabularProcessor

__all__ = [
    'FormatDispatcher',
    'LocalFileAccess',
    'UploadedFile',
    'TabularProcessor',
    'PDFProcessor',
    'ImageProcessor',
]
