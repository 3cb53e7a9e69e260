"""
OCR Engine Module for the Catalog Valuation System.

This module provides asynchronous text recognition for scanned
statements and rendered PDF pages.

Supported backends:
    - Tesseract (pytesseract)
"""

from .engine import OCREngine
from .tesseract_backend import TesseractBackend

__all__ = ['OCREngine', 'TesseractBackend']
