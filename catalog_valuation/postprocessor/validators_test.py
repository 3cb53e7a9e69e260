from datetime import date

import pytest

from catalog_valuation.postprocessor import StreamRecord, StreamRecordValidator

VALID = {'platform': 'Spotify', 'streams': 1000, 'revenue': 40.0, 'date': '2024-01-01'}


class TestStreamRecordValidator:

    def test_valid_record(self):
        assert StreamRecordValidator().validate(VALID) == (True, 'Valid record')

    @pytest.mark.parametrize('override, reason', [
        ({'platform': ''}, 'platform'),
        ({'platform': 7}, 'platform'),
        ({'streams': '1000'}, 'streams'),
        ({'streams': 10.5}, 'streams'),
        ({'streams': -1}, 'streams'),
        ({'streams': False}, 'streams'),
        ({'revenue': '40'}, 'revenue'),
        ({'revenue': float('inf')}, 'revenue'),
        ({'revenue': -0.01}, 'revenue'),
        ({'date': '2024-13-01'}, 'date'),
        ({'date': 'Jan 1 2024'}, 'date'),
    ])
    def test_invalid_fields(self, override, reason):
        valid, message = StreamRecordValidator().validate(dict(VALID, **override))

        assert not valid
        assert message.startswith(reason)

    def test_missing_field(self):
        item = {k: v for k, v in VALID.items() if k != 'date'}

        assert not StreamRecordValidator().is_valid(item)

    def test_not_an_object(self):
        assert not StreamRecordValidator().is_valid(['Spotify', 1000, 40.0, '2024-01-01'])


class TestStreamRecord:

    def test_dict_round_trip(self):
        record = StreamRecord('Spotify', 1000, 12.345, date(2024, 1, 1))

        assert record.to_dict()['date'] == '2024-01-01'
        assert StreamRecord.from_dict(record.to_dict()) == record

    def test_rounded_revenue(self):
        assert StreamRecord('Spotify', 1, 0.125, date(2024, 1, 1)).rounded_revenue == 0.13
