"""
Record Normalizer Module.

This module provides the RecordNormalizer class that turns raw tabular
rows or decoded extraction-service payloads into StreamRecord objects.

Operations:
    - Match column names against a fixed alias set
    - Parse stream counts, revenue and dates
    - Apply defaults for missing platform and date
    - Drop disqualified rows
    - Enforce the strict record shape on external payloads

The normalizer performs no I/O.
"""

import math
from collections.abc import Mapping, Sequence
from datetime import date
from typing import Any, Callable, Dict, List, Optional

from catalog_valuation.utils.exceptions import ValidationError
from catalog_valuation.utils.helpers import round_half_up
from catalog_valuation.utils.logger import get_logger
from .normalizers import AmountNormalizer, DateNormalizer, StreamCountNormalizer
from .stream_record import StreamRecord
from .validators import StreamRecordValidator

# Initialize module logger
logger = get_logger(__name__)


DEFAULT_PLATFORM = "Unknown"

# Canonical field -> accepted column names (compared lower-cased)
COLUMN_ALIASES: Dict[str, List[str]] = {
    'streams': ['streams', 'stream count', 'plays', 'total streams'],
    'revenue': ['revenue', 'earnings', 'amount', 'royalties', 'net revenue'],
    'platform': ['platform', 'store', 'service', 'dsp'],
    'date': ['date', 'period', 'statement date', 'reporting date'],
}


def _is_row_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


class RecordNormalizer:
    """
    Canonicalizes raw rows and payloads into StreamRecord objects.

    Attributes:
        date_normalizer: DateNormalizer instance
        amount_normalizer: AmountNormalizer instance
        count_normalizer: StreamCountNormalizer instance
        validator: StreamRecordValidator for external payloads

    Example:
        >>> normalizer = RecordNormalizer()
        >>> normalizer.normalize_rows([
        ...     {"Streams": "1000", "Revenue": "40.00",
        ...      "Platform": "Spotify", "Date": "2024-01-01"}
        ... ])
        [StreamRecord(platform='Spotify', streams=1000, revenue=40.0, date=datetime.date(2024, 1, 1))]
    """

    def __init__(self, today: Optional[Callable[[], date]] = None) -> None:
        """
        Initialize the normalizer.

        Args:
            today: Callable giving the default date for undated rows.
        """
        self.date_normalizer = DateNormalizer()
        self.amount_normalizer = AmountNormalizer()
        self.count_normalizer = StreamCountNormalizer()
        self.validator = StreamRecordValidator()
        self._today = today or date.today

    def normalize_rows(self, rows: Any) -> List[StreamRecord]:
        """
        Normalize tabular rows (column name -> cell text).

        Rows with an unusable stream count, revenue or date are silently
        excluded. Revenue keeps the precision it was written with.

        Args:
            rows: Sequence of mappings, one per table row.

        Returns:
            List of StreamRecord for every qualifying row.

        Raises:
            ValidationError: If rows is not a sequence of mappings.
        """
        if not _is_row_sequence(rows):
            raise ValidationError("rows", type(rows).__name__, "expected a sequence of rows")

        records = []
        for index, row in enumerate(rows):
            if not isinstance(row, Mapping):
                raise ValidationError(
                    f"rows[{index}]", type(row).__name__, "expected a mapping of column to value"
                )

            record = self._normalize_row(row)
            if record is None:
                logger.debug(f"Row {index} disqualified: {dict(row)}")
                continue
            records.append(record)

        logger.info(f"Normalized {len(records)} of {len(rows)} rows")
        return records

    def normalize_payload(self, payload: Any) -> List[StreamRecord]:
        """
        Normalize a decoded extraction-service payload.

        Each element must already have the exact record shape; anything
        else is filtered out. Stream counts are floored and revenue is
        rounded to cents.

        Args:
            payload: Decoded JSON, expected to be a list of objects.

        Returns:
            List of StreamRecord for every element that passed validation.

        Raises:
            ValidationError: If the payload is not a list.
        """
        if not isinstance(payload, list):
            raise ValidationError("payload", type(payload).__name__, "response data must be an array")

        records = []
        for item in payload:
            valid, reason = self.validator.validate(item)
            if not valid:
                logger.debug(f"Filtered out invalid record ({reason}): {item!r}")
                continue

            records.append(StreamRecord(
                platform=item['platform'].strip(),
                streams=int(math.floor(item['streams'])),
                revenue=round_half_up(item['revenue'], 2),
                date=date.fromisoformat(item['date']),
            ))

        return records

    def _normalize_row(self, row: Mapping) -> Optional[StreamRecord]:
        fields = self._resolve_columns(row)

        streams = self.count_normalizer.normalize(fields.get('streams'))
        if streams is None:
            return None

        revenue = self.amount_normalizer.normalize(fields.get('revenue'))
        if revenue is None or revenue < 0:
            return None

        platform = fields.get('platform')
        platform = str(platform).strip() if platform is not None else ""
        if not platform or platform.lower() == 'nan':
            platform = DEFAULT_PLATFORM

        raw_date = fields.get('date')
        if raw_date is None or not str(raw_date).strip():
            record_date = self._today()
        else:
            record_date = self.date_normalizer.normalize(raw_date)
            if record_date is None:
                return None

        return StreamRecord(
            platform=platform,
            streams=streams,
            revenue=revenue,
            date=record_date,
        )

    @staticmethod
    def _resolve_columns(row: Mapping) -> Dict[str, Any]:
        """Map a row's columns onto canonical field names, first alias wins."""
        lowered = {}
        for key, value in row.items():
            name = str(key).strip().lower()
            lowered.setdefault(name, value)

        resolved = {}
        for field_name, aliases in COLUMN_ALIASES.items():
            for alias in aliases:
                value = lowered.get(alias)
                if value is not None and str(value).strip() != "":
                    resolved[field_name] = value
                    break
        return resolved
