"""
Batch Orchestrator Module.

This module runs ingestion batches end to end: it creates the batch,
fans its files out to the format dispatcher with bounded concurrency,
tracks progress, and records the outcome.

Batch lifecycle:
    pending -> processing -> complete | error

A file that fails contributes no records and does not stop the batch.
A batch whose files yield no records at all ends in error.

Usage:
    from catalog_valuation.orchestrator import BatchOrchestrator

    orchestrator = BatchOrchestrator(store, dispatcher)
    batch_id = await orchestrator.process_batch(files)
    status = await orchestrator.get_batch_status(batch_id)
"""

import asyncio
import time
from typing import Any, Dict, List, Optional, Sequence, Set

from config import get_config
from catalog_valuation.input_handler import FormatDispatcher, UploadedFile
from catalog_valuation.output_handler import Batch, BatchStatus, RecordStore
from catalog_valuation.postprocessor import StreamRecord
from catalog_valuation.utils.logger import get_logger
from catalog_valuation.utils.helpers import round_half_up, utc_timestamp
from catalog_valuation.utils.exceptions import (
    BatchNotFoundError,
    CatalogValuationError,
    PipelineError,
    ValidationError,
)

# Initialize module logger
logger = get_logger(__name__)


NO_DATA_MESSAGE = "No valid data could be extracted from the files"


class BatchOrchestrator:
    """
    Coordinates the processing of file batches.

    Attributes:
        store: RecordStore holding batch state
        dispatcher: FormatDispatcher extracting records per file
        max_concurrency: Maximum number of files processed at once

    Example:
        >>> orchestrator = BatchOrchestrator(store, dispatcher, max_concurrency=3)
        >>> batch_id = await orchestrator.submit_batch(files)
        >>> (await orchestrator.get_batch_status(batch_id))['status']
        'processing'
    """

    def __init__(
        self,
        store: RecordStore,
        dispatcher: FormatDispatcher,
        max_concurrency: Optional[int] = None
    ) -> None:
        self.store = store
        self.dispatcher = dispatcher
        if max_concurrency is None:
            max_concurrency = get_config("orchestrator.max_concurrency", 3)
        self.max_concurrency = max_concurrency
        if self.max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")

        # Strong references to background runs until they finish
        self._tasks: Set[asyncio.Task] = set()

        logger.info(f"BatchOrchestrator initialized (max_concurrency={self.max_concurrency})")

    async def create_batch(self, files: Sequence[UploadedFile]) -> str:
        """
        Create a pending batch for the given files.

        Raises:
            ValidationError: If no files are given.
        """
        if not files:
            raise ValidationError("files", files, "At least one file is required")

        batch_id = await self.store.create_batch(total_files=len(files))
        logger.info(f"Created batch {batch_id} with {len(files)} file(s)")
        return batch_id

    async def process_batch(self, files: Sequence[UploadedFile]) -> str:
        """
        Create a batch and process it to completion.

        Returns:
            The batch id.

        Raises:
            ValidationError: If no files are given.
            PipelineError: If the batch ends in error.
        """
        batch_id = await self.create_batch(files)
        await self.run_batch(batch_id, files)
        return batch_id

    async def submit_batch(self, files: Sequence[UploadedFile]) -> str:
        """
        Create a batch and process it in the background.

        Must be called from within a running event loop. Poll
        get_batch_status() for the outcome.

        Returns:
            The batch id, before any file is processed.
        """
        batch_id = await self.create_batch(files)

        task = asyncio.create_task(self._run_in_background(batch_id, list(files)))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

        return batch_id

    async def wait_for_background(self) -> None:
        """Wait until every submitted batch has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _run_in_background(self, batch_id: str, files: List[UploadedFile]) -> None:
        try:
            await self.run_batch(batch_id, files)
        except PipelineError as e:
            logger.error(f"Background batch {batch_id} failed: {e.message}")

    async def run_batch(self, batch_id: str, files: Sequence[UploadedFile]) -> List[StreamRecord]:
        """
        Process every file of a pending batch.

        Args:
            batch_id: Id returned by create_batch().
            files: The batch's files, in submission order.

        Returns:
            All extracted records, in submission order of their files.

        Raises:
            PipelineError: If no records were extracted or the batch
                could not be processed. The batch is left in error.
        """
        start_time = time.time()
        total = len(files)

        try:
            await self.store.update_batch(batch_id, status=BatchStatus.PROCESSING)
            logger.info(f"Processing batch {batch_id} ({total} file(s))")

            semaphore = asyncio.Semaphore(self.max_concurrency)
            lock = asyncio.Lock()
            counter = {'processed': 0}
            aborted = asyncio.Event()

            async def process_one(index: int, file: UploadedFile) -> List[StreamRecord]:
                async with semaphore:
                    if aborted.is_set():
                        return []
                    records = await self._extract_file(batch_id, index, total, file)

                async with lock:
                    if aborted.is_set():
                        return records
                    counter['processed'] += 1
                    processed = counter['processed']
                    try:
                        await self.store.update_batch(
                            batch_id,
                            files_processed=processed,
                            progress=min(round_half_up(processed / total * 100), 99),
                        )
                    except Exception:
                        aborted.set()
                        raise
                return records

            # Every worker settles before the outcome is written
            per_file = await asyncio.gather(
                *(process_one(i, file) for i, file in enumerate(files, 1)),
                return_exceptions=True,
            )
            failures = [outcome for outcome in per_file if isinstance(outcome, BaseException)]
            if failures:
                raise failures[0]

            results = [record for records in per_file for record in records]

            if not results:
                raise PipelineError(NO_DATA_MESSAGE, batch_id)

            await self.store.update_batch(
                batch_id,
                status=BatchStatus.COMPLETE,
                progress=100,
                results=results,
                completed_at=utc_timestamp(),
            )

        except Exception as e:
            await self._mark_error(batch_id, e)
            if isinstance(e, PipelineError):
                raise
            message = e.message if isinstance(e, CatalogValuationError) else str(e)
            raise PipelineError(message, batch_id) from e

        logger.info(
            f"Batch {batch_id} complete: {len(results)} record(s) from {total} file(s) "
            f"({time.time() - start_time:.2f}s)"
        )
        return results

    async def _extract_file(self, batch_id: str, index: int, total: int, file: UploadedFile) -> List[StreamRecord]:
        logger.info(f"Batch {batch_id}: processing file {index}/{total}: {file.original_name}")
        try:
            return await self.dispatcher.extract(file)
        except Exception as e:
            logger.error(f"Batch {batch_id}: failed to process {file.original_name}: {e}")
            return []

    async def _mark_error(self, batch_id: str, error: Exception) -> None:
        message = error.message if isinstance(error, CatalogValuationError) else str(error)
        logger.error(f"Batch {batch_id} failed: {message}")
        try:
            await self.store.update_batch(batch_id, status=BatchStatus.ERROR, error=message)
        except CatalogValuationError as e:
            logger.error(f"Could not record failure of batch {batch_id}: {e}")

    async def get_batch(self, batch_id: str) -> Batch:
        """
        Raises:
            BatchNotFoundError: If the batch does not exist.
        """
        batch = await self.store.get_batch(batch_id)
        if batch is None:
            raise BatchNotFoundError(batch_id)
        return batch

    async def get_batch_status(self, batch_id: str) -> Dict[str, Any]:
        """
        Current status view of a batch.

        Raises:
            BatchNotFoundError: If the batch does not exist.
        """
        batch = await self.get_batch(batch_id)
        return batch.to_status_dict()
