import asyncio
from datetime import date

import pytest

from catalog_valuation.conftest import make_record
from catalog_valuation.output_handler import BatchStatus, SQLiteRecordStore
from catalog_valuation.utils.exceptions import BatchNotFoundError, DatabaseError
from catalog_valuation.valuation import (
    ProjectionYear,
    ValuationConfig,
    ValuationReport,
    ValuationSummary,
)


def _report() -> ValuationReport:
    return ValuationReport(
        config=ValuationConfig(30, 20, 10, 0.004, 0.008),
        summary=ValuationSummary(
            total_tracks=1,
            current_annual_revenue=28,
            total_streams=1000,
            projected_value=25,
            platform_breakdown={'Spotify': {'streams': 1000, 'revenue': 40.0}},
        ),
        projections=[ProjectionYear(2024, 28, 30)],
        created_at='2024-06-30T00:00:00+00:00',
        batch_id='abc',
    )


class TestBatches:

    def test_create_batch(self, store):
        """New batches start pending with zero progress."""

        async def run():
            batch_id = await store.create_batch(total_files=3)
            return batch_id, await store.get_batch(batch_id)

        batch_id, batch = asyncio.run(run())

        assert len(batch_id) == 32
        assert batch.status == BatchStatus.PENDING
        assert batch.progress == 0
        assert batch.total_files == 3
        assert batch.files_processed == 0
        assert batch.results is None
        assert batch.created_at is not None

    def test_update_batch_with_results(self, store):
        records = [make_record(), make_record('Apple Music', 500, 12.345, date(2024, 2, 1))]

        async def run():
            batch_id = await store.create_batch(total_files=1)
            await store.update_batch(
                batch_id,
                status=BatchStatus.COMPLETE,
                progress=100,
                results=records,
                completed_at='2024-06-30T00:00:00+00:00',
            )
            return await store.get_batch(batch_id)

        batch = asyncio.run(run())

        assert batch.status == BatchStatus.COMPLETE
        assert batch.is_terminal
        assert batch.results == records
        assert batch.to_status_dict()['recordCount'] == 2

    def test_update_unknown_batch(self, store):
        with pytest.raises(BatchNotFoundError):
            asyncio.run(store.update_batch('missing', progress=10))

    def test_update_rejects_unknown_columns(self, store):

        async def run():
            batch_id = await store.create_batch(total_files=1)
            await store.update_batch(batch_id, created_at='x')

        with pytest.raises(DatabaseError):
            asyncio.run(run())

    def test_get_unknown_batch(self, store):
        assert asyncio.run(store.get_batch('missing')) is None

    def test_latest_complete_batch(self, store):
        """Only complete batches count; the latest completion wins."""

        async def run():
            first = await store.create_batch(total_files=1)
            second = await store.create_batch(total_files=1)
            pending = await store.create_batch(total_files=1)
            await store.update_batch(first, status=BatchStatus.COMPLETE, results=[make_record()],
                                     completed_at='2024-06-02T00:00:00+00:00')
            await store.update_batch(second, status=BatchStatus.COMPLETE, results=[make_record()],
                                     completed_at='2024-06-01T00:00:00+00:00')
            await store.update_batch(pending, status=BatchStatus.ERROR, error='boom')
            latest = await store.get_latest_complete_batch()
            return first, latest

        first, latest = asyncio.run(run())

        assert latest.batch_id == first

    def test_no_complete_batch(self, store):
        assert asyncio.run(store.get_latest_complete_batch()) is None


class TestValuations:

    def test_round_trip(self, store):

        async def run():
            report_id = await store.create_valuation(_report())
            return report_id, await store.get_valuation(report_id)

        report_id, stored = asyncio.run(run())

        assert stored == _report().with_id(report_id)

    def test_ids_increase(self, store):

        async def run():
            return [await store.create_valuation(_report()) for _ in range(2)]

        first, second = asyncio.run(run())

        assert second > first

    def test_unknown_valuation(self, store):
        assert asyncio.run(store.get_valuation(999)) is None

    def test_data_survives_reopen(self, tmp_path):
        path = tmp_path / 'reopen.db'
        report_id = asyncio.run(SQLiteRecordStore(path).create_valuation(_report()))

        assert asyncio.run(SQLiteRecordStore(path).get_valuation(report_id)) is not None
