"""
Stream Record Data Class.

Defines the canonical shape every extracted observation is reduced to
before it can be stored in a batch or used by the valuation engine.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict

from catalog_valuation.utils.helpers import round_half_up


DATE_FORMAT = "%Y-%m-%d"


@dataclass(frozen=True)
class StreamRecord:
    """
    One normalized observation of streaming activity.

    Attributes:
        platform: Streaming service name ("Unknown" when not stated)
        streams: Non-negative stream count
        revenue: Non-negative revenue, raw precision as parsed
        date: Statement date

    Example:
        >>> record = StreamRecord("Spotify", 1000, 40.0, date(2024, 1, 1))
        >>> record.to_dict()
        {'platform': 'Spotify', 'streams': 1000, 'revenue': 40.0, 'date': '2024-01-01'}
    """
    platform: str
    streams: int
    revenue: float
    date: date

    @property
    def rounded_revenue(self) -> float:
        """Revenue rounded to cents, as used in aggregations."""
        return round_half_up(self.revenue, 2)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'platform': self.platform,
            'streams': self.streams,
            'revenue': self.revenue,
            'date': self.date.strftime(DATE_FORMAT),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StreamRecord':
        """Rebuild a record previously produced by to_dict()."""
        return cls(
            platform=data['platform'],
            streams=int(data['streams']),
            revenue=float(data['revenue']),
            date=date.fromisoformat(data['date']),
        )
