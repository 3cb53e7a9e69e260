import pytest

from catalog_valuation.utils.exceptions import InvalidConfigError, ValidationError
from catalog_valuation.valuation import ValuationConfig

VALID = {
    'yearOneDecay': 30, 'yearTwoDecay': 20, 'yearThreeDecay': 10,
    'spotifyRate': 0.004, 'appleMusicRate': 0.008,
}


class TestValuationConfig:

    def test_from_camel_case(self):
        config = ValuationConfig.from_dict({
            'spotifyRate': 0.003,
            'appleMusicRate': 0.01,
            'yearOneDecay': 30,
            'yearTwoDecay': 20,
            'yearThreeDecay': 10,
        })

        assert config == ValuationConfig(30, 20, 10, spotify_rate=0.003, apple_music_rate=0.01)
        config.validate()

    def test_from_snake_case(self):
        config = ValuationConfig.from_dict({
            'spotify_rate': 0,
            'apple_music_rate': 1,
            'year_one_decay': 0,
            'year_two_decay': 0,
            'year_three_decay': 100,
        })

        assert config == ValuationConfig(0, 0, 100, spotify_rate=0, apple_music_rate=1)
        config.validate()

    def test_missing_rates_rejected(self):
        """Rates have no defaults; leaving them out is a validation failure."""
        config = ValuationConfig.from_dict({'yearOneDecay': 30, 'yearTwoDecay': 20, 'yearThreeDecay': 10})

        assert config.spotify_rate is None
        with pytest.raises(InvalidConfigError) as exc:
            config.validate()

        assert set(exc.value.errors) == {'spotify_rate', 'apple_music_rate'}

    def test_dict_round_trip(self):
        config = ValuationConfig(30, 20, 10, 0.004, 0.008)

        assert ValuationConfig.from_dict(config.to_dict()) == config

    @pytest.mark.parametrize('override, field', [
        ({'yearOneDecay': -1}, 'year_one_decay'),
        ({'yearTwoDecay': 101}, 'year_two_decay'),
        ({'yearThreeDecay': 12.5}, 'year_three_decay'),
        ({'yearThreeDecay': '10'}, 'year_three_decay'),
        ({'yearOneDecay': True}, 'year_one_decay'),
        ({'spotifyRate': 1.5}, 'spotify_rate'),
        ({'appleMusicRate': -0.1}, 'apple_music_rate'),
        ({'appleMusicRate': float('nan')}, 'apple_music_rate'),
    ])
    def test_out_of_range(self, override, field):
        data = dict(VALID, **override)

        with pytest.raises(InvalidConfigError) as exc:
            ValuationConfig.from_dict(data).validate()

        assert list(exc.value.errors) == [field]

    def test_every_bad_field_reported(self):
        with pytest.raises(InvalidConfigError) as exc:
            ValuationConfig.from_dict({'yearOneDecay': 200, 'spotifyRate': 0.004}).validate()

        assert set(exc.value.errors) == {'year_one_decay', 'year_two_decay', 'year_three_decay', 'apple_music_rate'}

    def test_is_a_validation_error(self):
        with pytest.raises(ValidationError):
            ValuationConfig.from_dict({}).validate()

    def test_integral_float_decay_accepted(self):
        ValuationConfig(30.0, 20, 10, 0.004, 0.008).validate()
