"""
Data Validators Module.

Strict shape checks applied to records returned by the external
extraction service. Nothing returned by the service is trusted until it
passes these checks.
"""

from numbers import Real
from typing import Any, Tuple

from catalog_valuation.utils.logger import get_logger
from .normalizers import DateNormalizer

# Initialize module logger
logger = get_logger(__name__)


class StreamRecordValidator:
    """
    Validates one loosely-typed record against the StreamRecord shape.

    Checks for:
        - platform: non-empty string
        - streams: whole, non-negative number
        - revenue: non-negative number
        - date: real calendar date spelled YYYY-MM-DD

    Example:
        >>> validator = StreamRecordValidator()
        >>> validator.validate({"platform": "Spotify", "streams": 10,
        ...                     "revenue": 0.4, "date": "2024-01-01"})
        (True, 'Valid record')
        >>> validator.validate({"platform": "Spotify", "streams": "10"})[0]
        False
    """

    def __init__(self) -> None:
        self.date_normalizer = DateNormalizer()

    def is_valid(self, item: Any) -> bool:
        valid, _ = self.validate(item)
        return valid

    def validate(self, item: Any) -> Tuple[bool, str]:
        """
        Validate a record with detailed feedback.

        Args:
            item: Candidate record, usually a dict decoded from JSON.

        Returns:
            Tuple of (is_valid, message).
        """
        if not isinstance(item, dict):
            return False, "Record is not an object"

        platform = item.get('platform')
        if not isinstance(platform, str) or not platform.strip():
            return False, "platform must be a non-empty string"

        streams = item.get('streams')
        if not self._is_number(streams):
            return False, "streams must be a number"
        if isinstance(streams, float) and not streams.is_integer():
            return False, "streams must be a whole number"
        if streams < 0:
            return False, "streams must not be negative"

        revenue = item.get('revenue')
        if not self._is_number(revenue):
            return False, "revenue must be a number"
        if revenue != revenue or revenue in (float('inf'), float('-inf')):
            return False, "revenue must be finite"
        if revenue < 0:
            return False, "revenue must not be negative"

        if not self.date_normalizer.is_iso_date(item.get('date')):
            return False, "date must be YYYY-MM-DD"

        return True, "Valid record"

    @staticmethod
    def _is_number(value: Any) -> bool:
        # bool is a Real subclass but never a valid count or amount
        return isinstance(value, Real) and not isinstance(value, bool)
