"""
Batch Data Class.

A batch groups the files submitted together for ingestion and records
their processing lifecycle:

    pending -> processing -> complete | error
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from catalog_valuation.postprocessor import StreamRecord


class BatchStatus(str, Enum):
    """Lifecycle states of a batch."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass
class Batch:
    """
    Persisted state of one ingestion batch.

    Attributes:
        batch_id: Unique identifier (uuid4 hex)
        status: Current lifecycle state
        progress: Percentage of files processed (0-100)
        total_files: Number of files submitted
        files_processed: Number of files finished, successfully or not
        results: Extracted records, set when the batch completes
        error: Failure message, set when the batch errors
        created_at: Creation time (UTC ISO-8601)
        updated_at: Last update time (UTC ISO-8601)
        completed_at: Completion time (UTC ISO-8601)
    """
    batch_id: str
    status: BatchStatus = BatchStatus.PENDING
    progress: int = 0
    total_files: int = 0
    files_processed: int = 0
    results: Optional[List[StreamRecord]] = None
    error: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    completed_at: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (BatchStatus.COMPLETE, BatchStatus.ERROR)

    @property
    def record_count(self) -> int:
        return len(self.results) if self.results else 0

    def to_status_dict(self) -> Dict[str, Any]:
        """
        Status view returned to callers polling a batch.

        Returns:
            Dictionary with batchId, status, progress, file counts,
            record count, error and timestamps.
        """
        return {
            'batchId': self.batch_id,
            'status': self.status.value,
            'progress': self.progress,
            'totalFiles': self.total_files,
            'filesProcessed': self.files_processed,
            'recordCount': self.record_count,
            'error': self.error,
            'createdAt': self.created_at,
            'updatedAt': self.updated_at,
            'completedAt': self.completed_at,
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'Batch':
        """
        Build a Batch from a database row.

        Args:
            row: Mapping of column name to value; `results` holds JSON text.
        """
        results = None
        if row.get('results') is not None:
            results = [StreamRecord.from_dict(item) for item in json.loads(row['results'])]

        return cls(
            batch_id=row['batch_id'],
            status=BatchStatus(row['status']),
            progress=row['progress'],
            total_files=row['total_files'],
            files_processed=row['files_processed'],
            results=results,
            error=row.get('error'),
            created_at=row.get('created_at'),
            updated_at=row.get('updated_at'),
            completed_at=row.get('completed_at'),
        )
