"""
Valuation Report Data Classes.

Immutable result of one valuation run, as persisted and returned to
callers.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from .config import ValuationConfig


@dataclass(frozen=True)
class ProjectionYear:
    """Projected revenue for one calendar year."""
    year: int
    revenue: int
    decay_rate: float

    def to_dict(self) -> Dict[str, Any]:
        return {'year': self.year, 'revenue': self.revenue, 'decayRate': self.decay_rate}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProjectionYear':
        return cls(year=data['year'], revenue=data['revenue'], decay_rate=data['decayRate'])


@dataclass(frozen=True)
class ValuationSummary:
    """
    Aggregate figures of a valuation.

    Attributes:
        total_tracks: Number of distinct statement dates in the batch
        current_annual_revenue: First projected year's revenue
        total_streams: Sum of streams over all records
        projected_value: Discounted value of the projection
        platform_breakdown: Per-platform {streams, revenue} totals
    """
    total_tracks: int
    current_annual_revenue: int
    total_streams: int
    projected_value: int
    platform_breakdown: Dict[str, Dict[str, float]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'totalTracks': self.total_tracks,
            'currentAnnualRevenue': self.current_annual_revenue,
            'totalStreams': self.total_streams,
            'projectedValue': self.projected_value,
            'platformBreakdown': self.platform_breakdown,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ValuationSummary':
        return cls(
            total_tracks=data['totalTracks'],
            current_annual_revenue=data['currentAnnualRevenue'],
            total_streams=data['totalStreams'],
            projected_value=data['projectedValue'],
            platform_breakdown=data.get('platformBreakdown', {}),
        )


@dataclass(frozen=True)
class ValuationReport:
    """
    A complete valuation.

    Attributes:
        id: Identifier assigned by the store (None until persisted)
        config: Parameters the valuation was run with
        summary: Aggregate figures
        projections: One entry per projected year
        created_at: Creation time (UTC ISO-8601)
        batch_id: Batch whose records were valued
    """
    config: ValuationConfig
    summary: ValuationSummary
    projections: List[ProjectionYear]
    created_at: str
    batch_id: Optional[str] = None
    id: Optional[int] = None

    def with_id(self, report_id: int) -> 'ValuationReport':
        return replace(self, id=report_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'batchId': self.batch_id,
            'config': self.config.to_dict(),
            'summary': self.summary.to_dict(),
            'projections': [p.to_dict() for p in self.projections],
            'createdAt': self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ValuationReport':
        return cls(
            id=data.get('id'),
            batch_id=data.get('batchId'),
            config=ValuationConfig.from_dict(data['config']),
            summary=ValuationSummary.from_dict(data['summary']),
            projections=[ProjectionYear.from_dict(p) for p in data['projections']],
            created_at=data['createdAt'],
        )
