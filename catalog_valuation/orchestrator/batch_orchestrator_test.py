import asyncio

import pytest

from catalog_valuation.conftest import FakeExtractionClient, make_record
from catalog_valuation.input_handler import FormatDispatcher
from catalog_valuation.model_inference import ExtractionGateway
from catalog_valuation.orchestrator import NO_DATA_MESSAGE, BatchOrchestrator
from catalog_valuation.output_handler import BatchStatus, SQLiteRecordStore
from catalog_valuation.utils.exceptions import (
    BatchNotFoundError,
    CorruptedFileError,
    DatabaseError,
    PipelineError,
    ValidationError,
)

CSV = 'Platform,Streams,Revenue,Date\nSpotify,1000,40.00,2024-01-01\n'


class RecordingStore(SQLiteRecordStore):
    """SQLite store that remembers every batch update."""

    def __init__(self, db_path):
        super().__init__(db_path)
        self.updates = []

    async def update_batch(self, batch_id, **fields):
        self.updates.append(fields)
        await super().update_batch(batch_id, **fields)


class FailingProgressStore(RecordingStore):
    """Fails the first progress update, as a broken disk would."""

    async def update_batch(self, batch_id, **fields):
        if fields.get('files_processed') == 1:
            self.updates.append(fields)
            raise DatabaseError('update_batch', 'disk I/O error')
        await super().update_batch(batch_id, **fields)


class ScriptedDispatcher:
    """Returns or raises a scripted outcome per file name."""

    def __init__(self, outcomes, delay=0.0):
        self.outcomes = outcomes
        self.delay = delay
        self.active = 0
        self.max_active = 0

    async def extract(self, file):
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delay)
            outcome = self.outcomes[file.original_name]
            if isinstance(outcome, Exception):
                raise outcome
            return outcome
        finally:
            self.active -= 1


@pytest.fixture
def recording_store(tmp_path) -> RecordingStore:
    return RecordingStore(tmp_path / 'batches.db')


class TestBatchOrchestrator:

    def test_csv_and_unsupported_file(self, recording_store, write_file, make_limiter, clock):
        """A bad file does not stop the batch; the good one yields its record."""
        files = [write_file('statement.csv', CSV), write_file('notes.txt', 'hello')]

        async def run():
            gateway = ExtractionGateway(FakeExtractionClient('[]'), make_limiter(), sleep=clock.sleep)
            orchestrator = BatchOrchestrator(recording_store, FormatDispatcher(gateway))
            batch_id = await orchestrator.process_batch(files)
            return await orchestrator.get_batch(batch_id)

        batch = asyncio.run(run())

        assert batch.status == BatchStatus.COMPLETE
        assert batch.total_files == 2
        assert batch.files_processed == 2
        assert batch.progress == 100
        assert len(batch.results) == 1
        assert batch.results[0].platform == 'Spotify'
        assert batch.completed_at is not None

    def test_all_files_fail(self, recording_store, write_file):
        files = [write_file('a.csv', 'x'), write_file('b.csv', 'y')]
        dispatcher = ScriptedDispatcher({
            'a.csv': CorruptedFileError('a.csv'),
            'b.csv': [],
        })

        async def run():
            orchestrator = BatchOrchestrator(recording_store, dispatcher)
            batch_id = await orchestrator.create_batch(files)
            with pytest.raises(PipelineError) as exc:
                await orchestrator.run_batch(batch_id, files)
            return exc.value, await orchestrator.get_batch(batch_id)

        error, batch = asyncio.run(run())

        assert error.message == NO_DATA_MESSAGE
        assert batch.status == BatchStatus.ERROR
        assert batch.error == NO_DATA_MESSAGE
        assert batch.files_processed == 2
        assert batch.progress < 100

    def test_progress_is_monotonic(self, recording_store, write_file):
        names = [f'file{i}.csv' for i in range(7)]
        files = [write_file(name, 'x') for name in names]
        dispatcher = ScriptedDispatcher({name: [make_record()] for name in names}, delay=0.01)

        async def run():
            orchestrator = BatchOrchestrator(recording_store, dispatcher, max_concurrency=3)
            return await orchestrator.process_batch(files)

        asyncio.run(run())

        progress = [u['progress'] for u in recording_store.updates if 'progress' in u]
        processed = [u['files_processed'] for u in recording_store.updates if 'files_processed' in u]
        assert progress == sorted(progress)
        assert progress[-1] == 100
        assert max(progress[:-1]) == 99
        assert processed == list(range(1, 8))

    def test_status_transitions(self, recording_store, write_file):
        files = [write_file('a.csv', 'x')]
        dispatcher = ScriptedDispatcher({'a.csv': [make_record()]})

        async def run():
            orchestrator = BatchOrchestrator(recording_store, dispatcher)
            await orchestrator.process_batch(files)

        asyncio.run(run())

        statuses = [u['status'] for u in recording_store.updates if 'status' in u]
        assert statuses == [BatchStatus.PROCESSING, BatchStatus.COMPLETE]

    def test_concurrency_is_bounded(self, recording_store, write_file):
        names = [f'file{i}.csv' for i in range(6)]
        files = [write_file(name, 'x') for name in names]
        dispatcher = ScriptedDispatcher({name: [make_record()] for name in names}, delay=0.01)

        async def run():
            orchestrator = BatchOrchestrator(recording_store, dispatcher, max_concurrency=2)
            await orchestrator.process_batch(files)

        asyncio.run(run())

        assert dispatcher.max_active == 2

    def test_results_keep_submission_order(self, recording_store, write_file):
        files = [write_file('slow.csv', 'x'), write_file('fast.csv', 'y')]
        dispatcher = ScriptedDispatcher({
            'slow.csv': [make_record('Slow')],
            'fast.csv': [make_record('Fast')],
        })

        async def run():
            orchestrator = BatchOrchestrator(recording_store, dispatcher)
            batch_id = await orchestrator.create_batch(files)
            return await orchestrator.run_batch(batch_id, files)

        records = asyncio.run(run())

        assert [r.platform for r in records] == ['Slow', 'Fast']

    def test_empty_file_list(self, recording_store):
        orchestrator = BatchOrchestrator(recording_store, ScriptedDispatcher({}))

        with pytest.raises(ValidationError):
            asyncio.run(orchestrator.process_batch([]))

        assert recording_store.updates == []

    def test_submit_batch_runs_in_background(self, recording_store, write_file):
        files = [write_file('a.csv', 'x')]
        dispatcher = ScriptedDispatcher({'a.csv': [make_record()]}, delay=0.01)

        async def run():
            orchestrator = BatchOrchestrator(recording_store, dispatcher)
            batch_id = await orchestrator.submit_batch(files)
            before = await orchestrator.get_batch_status(batch_id)
            await orchestrator.wait_for_background()
            after = await orchestrator.get_batch_status(batch_id)
            return before, after

        before, after = asyncio.run(run())

        assert before['status'] in ('pending', 'processing')
        assert after['status'] == 'complete'
        assert after['progress'] == 100
        assert after['recordCount'] == 1

    def test_background_failure_recorded(self, recording_store, write_file):
        files = [write_file('a.csv', 'x')]
        dispatcher = ScriptedDispatcher({'a.csv': []})

        async def run():
            orchestrator = BatchOrchestrator(recording_store, dispatcher)
            batch_id = await orchestrator.submit_batch(files)
            await orchestrator.wait_for_background()
            return await orchestrator.get_batch_status(batch_id)

        status = asyncio.run(run())

        assert status['status'] == 'error'
        assert status['error'] == NO_DATA_MESSAGE

    def test_unknown_batch(self, recording_store):
        orchestrator = BatchOrchestrator(recording_store, ScriptedDispatcher({}))

        with pytest.raises(BatchNotFoundError):
            asyncio.run(orchestrator.get_batch_status('missing'))

    def test_store_failure_mid_batch(self, tmp_path, write_file):
        """A failed progress write ends the batch in error and nothing writes after."""
        store = FailingProgressStore(tmp_path / 'failing.db')
        names = ['a.csv', 'b.csv', 'c.csv']
        files = [write_file(name, 'x') for name in names]
        dispatcher = ScriptedDispatcher({name: [make_record()] for name in names}, delay=0.01)

        async def run():
            orchestrator = BatchOrchestrator(store, dispatcher, max_concurrency=3)
            batch_id = await orchestrator.create_batch(files)
            with pytest.raises(PipelineError) as exc:
                await orchestrator.run_batch(batch_id, files)
            await asyncio.sleep(0.05)
            return exc.value, await orchestrator.get_batch(batch_id)

        error, batch = asyncio.run(run())

        assert error.message == 'Database operation failed: update_batch'
        assert batch.status == BatchStatus.ERROR
        assert batch.error == error.message
        assert (batch.files_processed, batch.progress) == (0, 0)
        assert store.updates[-1]['status'] == BatchStatus.ERROR

    def test_zero_concurrency_rejected(self, recording_store):
        with pytest.raises(ValueError):
            BatchOrchestrator(recording_store, ScriptedDispatcher({}), max_concurrency=0)
