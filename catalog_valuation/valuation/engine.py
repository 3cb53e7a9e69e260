"""
Valuation Engine Module.

This module turns the records of the latest complete batch into a
catalog valuation:

    1. Base revenue: per-platform revenue totals, summed
    2. Projection: tiered annual decay over a fixed horizon
    3. Projected value: NPV of the projection at a fixed discount rate

The calculation helpers are plain functions so they can be used and
tested without a store.

Usage:
    from catalog_valuation.valuation import ValuationEngine, ValuationConfig

    engine = ValuationEngine(store)
    report = await engine.calculate(ValuationConfig(30, 20, 10, 0.004, 0.008))
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence

from config import get_config
from catalog_valuation.postprocessor import StreamRecord
from catalog_valuation.utils.logger import get_logger
from catalog_valuation.utils.helpers import round_half_up, utc_timestamp
from catalog_valuation.utils.exceptions import NoDataAvailableError, ValuationNotFoundError

from .config import ValuationConfig
from .report import ProjectionYear, ValuationReport, ValuationSummary

# Initialize module logger
logger = get_logger(__name__)


# =============================================================================
# CALCULATION HELPERS
# =============================================================================

def calculate_platform_breakdown(records: Iterable[StreamRecord]) -> Dict[str, Dict[str, float]]:
    """
    Total streams and revenue per platform.

    Revenue is rounded to cents per record before summing.

    Example:
        >>> calculate_platform_breakdown(records)
        {'Spotify': {'streams': 3000, 'revenue': 120.0}}
    """
    streams = defaultdict(int)
    revenue = defaultdict(Decimal)

    for record in records:
        streams[record.platform] += record.streams
        revenue[record.platform] += Decimal(str(record.rounded_revenue))

    return {
        platform: {'streams': streams[platform], 'revenue': float(revenue[platform])}
        for platform in streams
    }


def calculate_base_revenue(records: Iterable[StreamRecord]) -> float:
    """Sum of the per-platform revenue totals."""
    breakdown = calculate_platform_breakdown(records)
    total = sum((Decimal(str(totals['revenue'])) for totals in breakdown.values()), Decimal(0))
    return float(total)


def get_decay_rate(year_index: int, config: ValuationConfig) -> float:
    """
    Decay rate (percent) for a 0-based projection year.

    Years 0-1 use year_one_decay, 2-3 use year_two_decay, 4 and later
    use year_three_decay.
    """
    if year_index < 2:
        return config.year_one_decay
    if year_index < 4:
        return config.year_two_decay
    return config.year_three_decay


def project_revenue(
    base_revenue: float,
    config: ValuationConfig,
    horizon: int = 7,
    start_year: Optional[int] = None
) -> List[ProjectionYear]:
    """
    Project annual revenue over the horizon.

    Each year is the previous year's revenue reduced by that year's
    decay rate and rounded to a whole amount; the year before the first
    is the base revenue.

    Args:
        base_revenue: Current revenue.
        config: Decay rates.
        horizon: Number of years to project.
        start_year: Calendar year of the first projection. Defaults to
            the current year.

    Returns:
        One ProjectionYear per year, oldest first.
    """
    if start_year is None:
        start_year = date.today().year

    projections = []
    previous = base_revenue
    for i in range(horizon):
        rate = get_decay_rate(i, config)
        revenue = round_half_up(previous * (1 - rate / 100))
        projections.append(ProjectionYear(year=start_year + i, revenue=revenue, decay_rate=rate))
        previous = revenue

    return projections


def calculate_npv(projections: Sequence[ProjectionYear], discount_rate: float = 0.10) -> int:
    """
    Net present value of the projection, rounded to a whole amount.

    Year i (0-based) is discounted over i + 1 periods.
    """
    total = sum(
        p.revenue / (1 + discount_rate) ** (i + 1)
        for i, p in enumerate(projections)
    )
    return round_half_up(total)


def count_distinct_dates(records: Iterable[StreamRecord]) -> int:
    return len({record.date for record in records})


# =============================================================================
# ENGINE
# =============================================================================

class ValuationEngine:
    """
    Produces and retrieves valuation reports.

    Attributes:
        store: RecordStore holding batches and reports
        horizon: Number of projected years
        discount_rate: Annual discount rate used for NPV

    Example:
        >>> engine = ValuationEngine(store)
        >>> report = await engine.calculate(config)
        >>> report.summary.projected_value
        79440
    """

    def __init__(
        self,
        store,
        horizon: Optional[int] = None,
        discount_rate: Optional[float] = None
    ) -> None:
        self.store = store
        self.horizon = horizon if horizon is not None else get_config("valuation.horizon_years", 7)
        self.discount_rate = discount_rate if discount_rate is not None else \
            get_config("valuation.discount_rate", 0.10)

        logger.debug(
            f"ValuationEngine initialized (horizon={self.horizon}, "
            f"discount_rate={self.discount_rate})"
        )

    async def calculate(self, config: ValuationConfig, today: Optional[date] = None) -> ValuationReport:
        """
        Value the catalog using the latest complete batch.

        Args:
            config: Valuation parameters.
            today: Reference date for the projection years.

        Returns:
            The persisted report, including its id.

        Raises:
            InvalidConfigError: If any config field is out of range.
            NoDataAvailableError: If no complete batch with records exists.
        """
        config.validate()

        batch = await self.store.get_latest_complete_batch()
        if batch is None:
            raise NoDataAvailableError("no completed batch")
        if not batch.results:
            raise NoDataAvailableError(f"batch {batch.batch_id} has no records")

        records = batch.results
        today = today or date.today()

        breakdown = calculate_platform_breakdown(records)
        base_revenue = calculate_base_revenue(records)
        projections = project_revenue(base_revenue, config, self.horizon, today.year)
        projected_value = calculate_npv(projections, self.discount_rate)

        summary = ValuationSummary(
            total_tracks=count_distinct_dates(records),
            current_annual_revenue=projections[0].revenue if projections else 0,
            total_streams=sum(record.streams for record in records),
            projected_value=projected_value,
            platform_breakdown=breakdown,
        )

        report = ValuationReport(
            config=config,
            summary=summary,
            projections=projections,
            created_at=utc_timestamp(),
            batch_id=batch.batch_id,
        )
        report_id = await self.store.create_valuation(report)

        logger.info(
            f"Valuation {report_id} complete: base revenue {base_revenue:.2f}, "
            f"projected value {projected_value} ({len(records)} records, batch {batch.batch_id})"
        )
        return report.with_id(report_id)

    async def get_report(self, valuation_id: int) -> ValuationReport:
        """
        Retrieve a stored report.

        Raises:
            ValuationNotFoundError: If no report has this id.
        """
        report = await self.store.get_valuation(valuation_id)
        if report is None:
            raise ValuationNotFoundError(valuation_id)
        return report
