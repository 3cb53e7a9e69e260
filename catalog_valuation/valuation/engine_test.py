import asyncio
from datetime import date

import pytest

from catalog_valuation.conftest import make_record
from catalog_valuation.output_handler import BatchStatus
from catalog_valuation.utils.exceptions import (
    InvalidConfigError,
    NoDataAvailableError,
    ValuationNotFoundError,
)
from catalog_valuation.valuation import (
    ValuationConfig,
    ValuationEngine,
    calculate_base_revenue,
    calculate_npv,
    calculate_platform_breakdown,
    count_distinct_dates,
    get_decay_rate,
    project_revenue,
)

TODAY = date(2024, 6, 30)
CONFIG = ValuationConfig(30, 20, 10, spotify_rate=0.004, apple_music_rate=0.008)


async def _complete_batch(store, records):
    batch_id = await store.create_batch(total_files=1)
    await store.update_batch(
        batch_id,
        status=BatchStatus.COMPLETE,
        progress=100,
        results=records,
        completed_at='2024-06-30T00:00:00+00:00',
    )
    return batch_id


class TestHelpers:

    def test_platform_breakdown(self):
        records = [
            make_record('Spotify', 1000, 10.004),
            make_record('Spotify', 500, 10.005),
            make_record('Apple Music', 200, 5.0),
        ]

        assert calculate_platform_breakdown(records) == {
            'Spotify': {'streams': 1500, 'revenue': 20.01},
            'Apple Music': {'streams': 200, 'revenue': 5.0},
        }

    def test_base_revenue(self):
        records = [make_record('Spotify', revenue=30000.0), make_record('Deezer', revenue=10000.0)]

        assert calculate_base_revenue(records) == 40000.0

    @pytest.mark.parametrize('index, expected', [
        (0, 30), (1, 30), (2, 20), (3, 20), (4, 10), (5, 10), (6, 10),
    ])
    def test_decay_tiers(self, index, expected):
        assert get_decay_rate(index, CONFIG) == expected

    def test_projection_regression(self):
        projections = project_revenue(40000, CONFIG, horizon=7, start_year=2024)

        assert [p.revenue for p in projections] == [28000, 19600, 15680, 12544, 11290, 10161, 9145]
        assert [p.year for p in projections] == list(range(2024, 2031))
        assert [p.decay_rate for p in projections] == [30, 30, 20, 20, 10, 10, 10]

    def test_npv_regression(self):
        projections = project_revenue(40000, CONFIG, horizon=7, start_year=2024)

        assert calculate_npv(projections, 0.10) == 79440

    def test_zero_decay_keeps_revenue_flat(self):
        config = ValuationConfig(0, 0, 0, spotify_rate=0.004, apple_music_rate=0.008)

        projections = project_revenue(1234.56, config, horizon=7, start_year=2024)

        assert [p.revenue for p in projections] == [1235] * 7

    def test_projection_non_increasing(self):
        config = ValuationConfig(5, 50, 1, spotify_rate=0.004, apple_music_rate=0.008)

        revenues = [p.revenue for p in project_revenue(987654.32, config, start_year=2024)]

        assert revenues == sorted(revenues, reverse=True)

    def test_count_distinct_dates(self):
        records = [
            make_record(day=date(2024, 1, 1)),
            make_record('Apple Music', day=date(2024, 1, 1)),
            make_record(day=date(2024, 2, 1)),
        ]

        assert count_distinct_dates(records) == 2


class TestValuationEngine:

    def test_calculate(self, store):
        records = [
            make_record('Spotify', 600000, 30000.0, date(2024, 1, 1)),
            make_record('Apple Music', 200000, 10000.0, date(2024, 2, 1)),
        ]

        async def run():
            batch_id = await _complete_batch(store, records)
            report = await ValuationEngine(store).calculate(CONFIG, today=TODAY)
            return batch_id, report

        batch_id, report = asyncio.run(run())

        assert report.id is not None
        assert report.batch_id == batch_id
        assert len(report.projections) == 7
        assert report.projections[0].year == 2024
        assert report.summary.current_annual_revenue == 28000
        assert report.summary.projected_value == 79440
        assert report.summary.total_streams == 800000
        assert report.summary.total_tracks == 2
        assert report.summary.platform_breakdown['Apple Music'] == {'streams': 200000, 'revenue': 10000.0}

    def test_report_is_persisted(self, store):

        async def run():
            await _complete_batch(store, [make_record()])
            engine = ValuationEngine(store)
            report = await engine.calculate(CONFIG, today=TODAY)
            return report, await engine.get_report(report.id)

        report, stored = asyncio.run(run())

        assert stored == report

    def test_uses_latest_complete_batch(self, store):

        async def run():
            await _complete_batch(store, [make_record(revenue=100.0)])
            await _complete_batch(store, [make_record(revenue=200.0)])
            return await ValuationEngine(store).calculate(CONFIG, today=TODAY)

        report = asyncio.run(run())

        assert report.summary.current_annual_revenue == 140

    def test_no_complete_batch(self, store):
        with pytest.raises(NoDataAvailableError) as exc:
            asyncio.run(ValuationEngine(store).calculate(CONFIG, today=TODAY))

        assert exc.value.message == (
            'No valid streaming data found. Please ensure files are processed correctly.'
        )

    def test_invalid_config_checked_first(self, store):
        """Bad configs fail before the store is consulted."""
        config = ValuationConfig(101, 20, 10, spotify_rate=0.004, apple_music_rate=0.008)

        with pytest.raises(InvalidConfigError):
            asyncio.run(ValuationEngine(store).calculate(config, today=TODAY))

    def test_unknown_report(self, store):
        with pytest.raises(ValuationNotFoundError):
            asyncio.run(ValuationEngine(store).get_report(12345))
