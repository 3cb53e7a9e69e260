"""
Valuation Module for the Catalog Valuation System.

This module provides functionality for:
    - Valuation parameters and their validation
    - Tiered-decay revenue projection
    - Net present value of the projection
    - Valuation reports
"""

from .config import ValuationConfig
from .report import ProjectionYear, ValuationReport, ValuationSummary
from .engine import (
    ValuationEngine,
    calculate_base_revenue,
    calculate_npv,
    calculate_platform_breakdown,
    count_distinct_dates,
    get_decay_rate,
    project_revenue,
)

__all__ = [
    'ValuationConfig',
    'ValuationReport',
    'ValuationSummary',
    'ProjectionYear',
    'ValuationEngine',
    'calculate_base_revenue',
    'calculate_platform_breakdown',
    'get_decay_rate',
    'project_revenue',
    'calculate_npv',
    'count_distinct_dates',
]
