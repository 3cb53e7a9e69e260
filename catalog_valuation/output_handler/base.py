"""
Record Store Interface.

Every read and write of batches and valuation reports goes through a
RecordStore. Each method is one atomic operation.
"""

from abc import ABC, abstractmethod
from typing import Optional

from catalog_valuation.valuation.report import ValuationReport
from .batch import Batch


class RecordStore(ABC):
    """Asynchronous persistence for batches and valuation reports."""

    @abstractmethod
    async def create_batch(self, total_files: int) -> str:
        """Persist a new pending batch and return its id."""

    @abstractmethod
    async def update_batch(self, batch_id: str, **fields) -> None:
        """
        Update several batch fields in one write.

        Raises:
            BatchNotFoundError: If the batch does not exist.
        """

    @abstractmethod
    async def get_batch(self, batch_id: str) -> Optional[Batch]:
        """Return the batch, or None when unknown."""

    @abstractmethod
    async def get_latest_complete_batch(self) -> Optional[Batch]:
        """Return the most recently completed batch, or None."""

    @abstractmethod
    async def create_valuation(self, report: ValuationReport) -> int:
        """Persist a report and return its id."""

    @abstractmethod
    async def get_valuation(self, valuation_id: int) -> Optional[ValuationReport]:
        """Return the report, or None when unknown."""
