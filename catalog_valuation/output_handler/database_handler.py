"""
Database Handler Module.

This module provides SQLite storage for batches and valuation reports.

Features:
    - Automatic schema creation
    - One connection and one transaction per operation
    - Blocking sqlite3 work moved off the event loop
    - Records and reports stored as JSON text columns

Author: ML Engineering Team
"""

import asyncio
import json
import sqlite3
import uuid
from pathlib import Path
from typing import Any, Dict, Optional, Union

from config import get_config
from catalog_valuation.utils.logger import get_logger
from catalog_valuation.utils.helpers import ensure_directory, utc_timestamp
from catalog_valuation.utils.exceptions import BatchNotFoundError, DatabaseError
from catalog_valuation.valuation.report import ValuationReport

from .base import RecordStore
from .batch import Batch, BatchStatus

# Initialize module logger
logger = get_logger(__name__)


_SCHEMA = """
CREATE TABLE IF NOT EXISTS batches (
    batch_id TEXT PRIMARY KEY,
    status TEXT NOT NULL,
    progress INTEGER NOT NULL DEFAULT 0,
    total_files INTEGER NOT NULL,
    files_processed INTEGER NOT NULL DEFAULT 0,
    results TEXT,
    error TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    completed_at TEXT
);

CREATE INDEX IF NOT EXISTS idx_batches_status_completed
ON batches (status, completed_at);

CREATE TABLE IF NOT EXISTS valuations (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    batch_id TEXT,
    config TEXT NOT NULL,
    summary TEXT NOT NULL,
    projections TEXT NOT NULL,
    created_at TEXT NOT NULL
);
"""


class SQLiteRecordStore(RecordStore):
    """
    RecordStore backed by a SQLite file.

    Attributes:
        db_path: Path to the SQLite database file

    Example:
        >>> store = SQLiteRecordStore("data/catalog_valuation.db")
        >>> batch_id = await store.create_batch(total_files=2)
        >>> batch = await store.get_batch(batch_id)
    """

    # Columns update_batch may write
    BATCH_COLUMNS = {
        'status', 'progress', 'total_files', 'files_processed',
        'results', 'error', 'completed_at',
    }

    def __init__(self, db_path: Optional[Union[str, Path]] = None) -> None:
        """
        Initialize the store and create tables if needed.

        Args:
            db_path: Path to database file. If None, uses paths.database.
        """
        if db_path is None:
            db_path = get_config("paths.database", "data/catalog_valuation.db")
        self.db_path = Path(db_path)

        ensure_directory(self.db_path.parent)
        self._create_tables()

        logger.info(f"SQLiteRecordStore initialized (db: {self.db_path})")

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _create_tables(self) -> None:
        try:
            conn = self._connect()
            try:
                conn.executescript(_SCHEMA)
                conn.commit()
            finally:
                conn.close()
            logger.debug("Database tables created/verified")
        except sqlite3.Error as e:
            raise DatabaseError("create tables", str(e))

    def _execute(self, operation: str, query: str, params: tuple = ()) -> sqlite3.Cursor:
        """Run one statement in its own transaction."""
        try:
            conn = self._connect()
            try:
                with conn:
                    return conn.execute(query, params)
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.error(f"Database operation '{operation}' failed: {e}")
            raise DatabaseError(operation, str(e))

    def _fetch_one(self, operation: str, query: str, params: tuple = ()) -> Optional[Dict[str, Any]]:
        try:
            conn = self._connect()
            try:
                row = conn.execute(query, params).fetchone()
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.error(f"Database operation '{operation}' failed: {e}")
            raise DatabaseError(operation, str(e))
        return dict(row) if row else None

    # ------------------------------------------------------------------
    # Batches
    # ------------------------------------------------------------------

    async def create_batch(self, total_files: int) -> str:
        batch_id = uuid.uuid4().hex
        now = utc_timestamp()
        await asyncio.to_thread(
            self._execute,
            "create_batch",
            "INSERT INTO batches (batch_id, status, progress, total_files, files_processed, "
            "created_at, updated_at) VALUES (?, ?, 0, ?, 0, ?, ?)",
            (batch_id, BatchStatus.PENDING.value, total_files, now, now),
        )
        logger.debug(f"Created batch {batch_id} ({total_files} files)")
        return batch_id

    async def update_batch(self, batch_id: str, **fields) -> None:
        unknown = set(fields) - self.BATCH_COLUMNS
        if unknown:
            raise DatabaseError("update_batch", f"Unknown batch fields: {sorted(unknown)}")

        columns = []
        params = []
        for name, value in fields.items():
            columns.append(f"{name} = ?")
            params.append(self._to_column(name, value))
        columns.append("updated_at = ?")
        params.append(utc_timestamp())
        params.append(batch_id)

        cursor = await asyncio.to_thread(
            self._execute,
            "update_batch",
            f"UPDATE batches SET {', '.join(columns)} WHERE batch_id = ?",
            tuple(params),
        )
        if cursor.rowcount == 0:
            raise BatchNotFoundError(batch_id)

    @staticmethod
    def _to_column(name: str, value: Any) -> Any:
        if name == 'status' and isinstance(value, BatchStatus):
            return value.value
        if name == 'results' and value is not None:
            return json.dumps([record.to_dict() for record in value])
        return value

    async def get_batch(self, batch_id: str) -> Optional[Batch]:
        row = await asyncio.to_thread(
            self._fetch_one,
            "get_batch",
            "SELECT * FROM batches WHERE batch_id = ?",
            (batch_id,),
        )
        return Batch.from_row(row) if row else None

    async def get_latest_complete_batch(self) -> Optional[Batch]:
        row = await asyncio.to_thread(
            self._fetch_one,
            "get_latest_complete_batch",
            "SELECT * FROM batches WHERE status = ? "
            "ORDER BY completed_at DESC, rowid DESC LIMIT 1",
            (BatchStatus.COMPLETE.value,),
        )
        return Batch.from_row(row) if row else None

    # ------------------------------------------------------------------
    # Valuations
    # ------------------------------------------------------------------

    async def create_valuation(self, report: ValuationReport) -> int:
        data = report.to_dict()
        cursor = await asyncio.to_thread(
            self._execute,
            "create_valuation",
            "INSERT INTO valuations (batch_id, config, summary, projections, created_at) "
            "VALUES (?, ?, ?, ?, ?)",
            (
                report.batch_id,
                json.dumps(data['config']),
                json.dumps(data['summary']),
                json.dumps(data['projections']),
                report.created_at,
            ),
        )
        logger.debug(f"Stored valuation {cursor.lastrowid}")
        return cursor.lastrowid

    async def get_valuation(self, valuation_id: int) -> Optional[ValuationReport]:
        row = await asyncio.to_thread(
            self._fetch_one,
            "get_valuation",
            "SELECT * FROM valuations WHERE id = ?",
            (valuation_id,),
        )
        if row is None:
            return None

        return ValuationReport.from_dict({
            'id': row['id'],
            'batchId': row['batch_id'],
            'config': json.loads(row['config']),
            'summary': json.loads(row['summary']),
            'projections': json.loads(row['projections']),
            'createdAt': row['created_at'],
        })
