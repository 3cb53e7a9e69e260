"""
Helper Utilities Module.

Generic functions shared across the catalog valuation system.

Functions:
    - ensure_directory: Create directory if it doesn't exist
    - get_file_extension: Extract file extension safely
    - utc_timestamp: ISO-8601 UTC timestamp for persisted records
    - round_half_up: Round money values the way statements do
"""

from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from pathlib import Path
from typing import Union


def ensure_directory(path: Union[str, Path]) -> Path:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        path: Directory path to ensure exists.

    Returns:
        Path object pointing to the directory.
    """
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path


def get_file_extension(filepath: Union[str, Path]) -> str:
    """
    Extract the file extension from a filepath.

    Returns the extension in lowercase, including the dot.
    Returns empty string if no extension exists.

    Example:
        >>> get_file_extension("statement.CSV")
        ".csv"
        >>> get_file_extension("noextension")
        ""
    """
    return Path(filepath).suffix.lower()


def utc_timestamp() -> str:
    """Return the current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def round_half_up(value: Union[int, float, Decimal], places: int = 0) -> Union[int, float]:
    """
    Round a number with halves going up instead of to the nearest even.

    Args:
        value: Number to round.
        places: Decimal places to keep. 0 returns an int.

    Returns:
        Rounded value (int when places is 0, float otherwise).

    Example:
        >>> round_half_up(2.5)
        3
        >>> round_half_up(12.345, 2)
        12.35
    """
    quantum = Decimal(1).scaleb(-places)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    if places == 0:
        return int(rounded)
    return float(rounded)
