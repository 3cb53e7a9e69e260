"""
Post-Processing Module for the Catalog Valuation System.

This module provides functionality for:
    - The canonical StreamRecord shape
    - Date, revenue and stream-count normalization
    - Strict validation of extraction-service records
    - Row and payload normalization into StreamRecord lists
"""

from .stream_record import StreamRecord
from .processor import RecordNormalizer, DEFAULT_PLATFORM
from .validators import StreamRecordValidator
from .normalizers import DateNormalizer, AmountNormalizer, StreamCountNormalizer

__all__ = [
    'StreamRecord',
    'RecordNormalizer',
    'DEFAULT_PLATFORM',
    'StreamRecordValidator',
    'DateNormalizer',
    'AmountNormalizer',
    'StreamCountNormalizer',
]
