"""
Data Normalizers Module.

This module provides normalization functions for:
    - Statement dates
    - Revenue / currency values
    - Stream counts

Each normalizer returns None when a value cannot be interpreted; the
caller decides whether that disqualifies the row.
"""

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from dateutil import parser as date_parser

from config import get_config
from catalog_valuation.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)


def _to_text(value: Any) -> str:
    """Render a raw cell value as stripped text ('' for missing)."""
    if value is None:
        return ""
    if isinstance(value, float) and value != value:  # NaN from spreadsheets
        return ""
    return str(value).strip()


class DateNormalizer:
    """
    Normalizes statement date strings to calendar dates.

    Handles ISO dates, ISO timestamps, and the common US/European
    spellings found on royalty statements.

    Example:
        >>> normalizer = DateNormalizer()
        >>> normalizer.normalize("01/15/2024")
        datetime.date(2024, 1, 15)
        >>> normalizer.normalize("2024-01-15T00:00:00Z")
        datetime.date(2024, 1, 15)
    """

    ISO_DATE = re.compile(r'^\d{4}-\d{2}-\d{2}$')

    # Partial dates ("2024-03", "March 2024") resolve to the first of the month
    PARTIAL_DEFAULT = datetime(2000, 1, 1)

    def __init__(self) -> None:
        self.input_formats = get_config(
            "postprocessing.date.input_formats",
            [
                "%Y-%m-%d",
                "%Y/%m/%d",
                "%m/%d/%Y",
                "%d/%m/%Y",
                "%B %d, %Y",
                "%b %d, %Y",
                "%d %B %Y",
                "%d-%m-%Y",
                "%m-%d-%Y",
                "%d.%m.%Y"
            ]
        )

    def normalize(self, value: Any) -> Optional[date]:
        """
        Normalize a date value.

        Args:
            value: Raw date (string, date or datetime).

        Returns:
            Parsed date, or None if parsing fails.
        """
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value

        date_str = _to_text(value)
        if not date_str:
            return None

        # Remove ordinal suffixes (1st, 2nd, 3rd, 4th, etc.)
        date_str = re.sub(r'(\d+)(st|nd|rd|th)\b', r'\1', date_str, flags=re.IGNORECASE)

        parsed = self._try_explicit_formats(date_str)
        if parsed is None:
            parsed = self._try_dateutil_parser(date_str)

        if parsed is None:
            logger.debug(f"Could not parse date: {date_str}")
            return None
        return parsed.date()

    def is_iso_date(self, value: Any) -> bool:
        """Check that a value is a real calendar date spelled YYYY-MM-DD."""
        if not isinstance(value, str) or not self.ISO_DATE.match(value):
            return False
        try:
            datetime.strptime(value, "%Y-%m-%d")
        except ValueError:
            return False
        return True

    def _try_explicit_formats(self, date_str: str) -> Optional[datetime]:
        for fmt in self.input_formats:
            try:
                return datetime.strptime(date_str, fmt)
            except ValueError:
                continue
        return None

    def _try_dateutil_parser(self, date_str: str) -> Optional[datetime]:
        try:
            return date_parser.parse(date_str, dayfirst=False, default=self.PARTIAL_DEFAULT)
        except (ValueError, OverflowError):
            try:
                return date_parser.parse(date_str, dayfirst=True, default=self.PARTIAL_DEFAULT)
            except (ValueError, OverflowError):
                return None


class AmountNormalizer:
    """
    Normalizes revenue strings to floats.

    Handles currency symbols and codes, thousand separators, European
    decimal commas and accounting-style parentheses.

    Example:
        >>> normalizer = AmountNormalizer()
        >>> normalizer.normalize("$1,234.56")
        1234.56
        >>> normalizer.normalize("€ 1.234,56")
        1234.56
        >>> normalizer.normalize("12.345")
        12.345
    """

    CURRENCY_SYMBOLS = ['$', '€', '£', '¥', '₹', '₽', '₩', '₫', '₴', '₦']
    CURRENCY_CODES = ['USD', 'EUR', 'GBP', 'JPY', 'INR', 'CAD', 'AUD', 'CNY', 'SEK']

    def normalize(self, value: Any) -> Optional[float]:
        """
        Normalize an amount value.

        Args:
            value: Raw amount (string or number).

        Returns:
            Parsed float (raw precision kept) or None.
        """
        if isinstance(value, bool):
            return None
        if isinstance(value, (int, float, Decimal)):
            return float(value) if value == value else None

        amount_str = _to_text(value)
        if not amount_str:
            return None

        negative = amount_str.startswith('(') and amount_str.endswith(')')

        amount_str = self._clean_amount_string(amount_str)
        if not amount_str:
            return None

        amount_str = self._handle_european_format(amount_str)
        amount_str = amount_str.replace(',', '')

        try:
            amount = Decimal(amount_str)
        except InvalidOperation:
            logger.debug(f"Could not parse amount: {value!r}")
            return None

        if not amount.is_finite():
            return None
        return float(-amount if negative else amount)

    def _clean_amount_string(self, amount_str: str) -> str:
        amount_str = ' '.join(amount_str.split())

        for symbol in self.CURRENCY_SYMBOLS:
            amount_str = amount_str.replace(symbol, '')

        for code in self.CURRENCY_CODES:
            amount_str = re.sub(rf'\b{code}\b', '', amount_str, flags=re.IGNORECASE)

        amount_str = amount_str.strip().strip('()').strip()

        # Anything other than digits and separators is not an amount
        if re.search(r'[^\d,.\-\s]', amount_str):
            return ""

        return amount_str.replace(' ', '')

    def _handle_european_format(self, amount_str: str) -> str:
        """
        Convert European format (comma decimal) to US format (dot decimal).
        """
        if amount_str.count(',') == 1:
            comma_pos = amount_str.rfind(',')
            dot_pos = amount_str.rfind('.')

            if comma_pos > dot_pos:
                after_comma = amount_str[comma_pos + 1:]
                # A single comma followed by up to 2 digits is a decimal separator
                if len(after_comma) <= 2 and after_comma.isdigit():
                    amount_str = amount_str.replace('.', '')
                    amount_str = amount_str.replace(',', '.')

        return amount_str


class StreamCountNormalizer:
    """
    Normalizes stream counts to non-negative integers.

    Thousand separators are accepted, integral decimals ("1000.0") are
    accepted, anything fractional or non-numeric is rejected.

    Example:
        >>> StreamCountNormalizer().normalize("1,000,000")
        1000000
        >>> StreamCountNormalizer().normalize("12.5") is None
        True
    """

    def normalize(self, value: Any) -> Optional[int]:
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value if value >= 0 else None

        count_str = _to_text(value)
        if not count_str:
            return None

        count_str = re.sub(r'[,\s_]', '', count_str)

        try:
            count = Decimal(count_str)
        except InvalidOperation:
            logger.debug(f"Could not parse stream count: {value!r}")
            return None

        if not count.is_finite() or count < 0 or count != count.to_integral_value():
            return None
        return int(count)
