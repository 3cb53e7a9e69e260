"""
Valuation Configuration.

User-supplied parameters of a valuation request. Values are checked as a
whole so the caller learns about every bad field at once.
"""

from dataclasses import dataclass
from numbers import Real
from typing import Any, Dict, Mapping

from catalog_valuation.utils.exceptions import InvalidConfigError


# snake_case field -> accepted camelCase key
_CAMEL_KEYS = {
    'spotify_rate': 'spotifyRate',
    'apple_music_rate': 'appleMusicRate',
    'year_one_decay': 'yearOneDecay',
    'year_two_decay': 'yearTwoDecay',
    'year_three_decay': 'yearThreeDecay',
}

RATE_FIELDS = ('spotify_rate', 'apple_music_rate')
DECAY_FIELDS = ('year_one_decay', 'year_two_decay', 'year_three_decay')


@dataclass(frozen=True)
class ValuationConfig:
    """
    Parameters of one valuation.

    Attributes:
        year_one_decay: Annual decline in percent applied to years 1-2
        year_two_decay: Annual decline in percent applied to years 3-4
        year_three_decay: Annual decline in percent applied to years 5+
        spotify_rate: Per-stream rate in [0, 1]; stored with the report
        apple_music_rate: Per-stream rate in [0, 1]; stored with the report

    Example:
        >>> config = ValuationConfig.from_dict(
        ...     {"yearOneDecay": 30, "yearTwoDecay": 20, "yearThreeDecay": 10,
        ...      "spotifyRate": 0.004, "appleMusicRate": 0.008})
        >>> config.validate()
    """
    year_one_decay: Any
    year_two_decay: Any
    year_three_decay: Any
    spotify_rate: Any
    apple_music_rate: Any

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'ValuationConfig':
        """
        Build a config from snake_case or camelCase keys.

        Missing keys become None and are reported by validate().
        """
        values = {}
        for name, camel in _CAMEL_KEYS.items():
            if name in data:
                values[name] = data[name]
            elif camel in data:
                values[name] = data[camel]
            else:
                values[name] = None
        return cls(**values)

    def validate(self) -> None:
        """
        Check every field.

        Raises:
            InvalidConfigError: With one entry per invalid field.
        """
        errors = {}

        for name in RATE_FIELDS:
            value = getattr(self, name)
            if not _is_number(value) or not 0 <= value <= 1:
                errors[name] = f"must be a number between 0 and 1, got {value!r}"

        for name in DECAY_FIELDS:
            value = getattr(self, name)
            if not _is_integral(value) or not 0 <= value <= 100:
                errors[name] = f"must be an integer between 0 and 100, got {value!r}"

        if errors:
            raise InvalidConfigError(errors)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'spotifyRate': self.spotify_rate,
            'appleMusicRate': self.apple_music_rate,
            'yearOneDecay': self.year_one_decay,
            'yearTwoDecay': self.year_two_decay,
            'yearThreeDecay': self.year_three_decay,
        }


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and value == value


def _is_integral(value: Any) -> bool:
    return _is_number(value) and float(value).is_integer()
