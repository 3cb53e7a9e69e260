"""
Output Handler Module for the Catalog Valuation System.

This module provides functionality for:
    - The batch record and its lifecycle states
    - The abstract RecordStore persistence interface
    - SQLite storage of batches and valuation reports

Author: ML Engineering Team
"""

from .batch import Batch, BatchStatus
from .base import RecordStore
from .database_handler import SQLiteRecordStore

__all__ = ['Batch', 'BatchStatus', 'RecordStore', 'SQLiteRecordStore']
