"""Tests del decodificador de payloads.

Ejecutar:
    pytest tests/test_payload_decoder.py -v
"""

import pytest

from sensor_ingest.core.decoding import (
    CSV_LAYOUT_V2,
    PayloadDecoder,
    PayloadShape,
    parse_number,
)
from sensor_ingest.core.domain import ChannelFamily
from sensor_ingest.errors import DecodeError


@pytest.fixture
def decoder() -> PayloadDecoder:
    return PayloadDecoder()


# =============================================================================
# JSON
# =============================================================================

class TestJsonShapes:
    """Formas JSON: array canónico y adaptadores heredados."""

    def test_canonical_array_shape(self, decoder):
        result = decoder.decode(b'{"light": [300, 320], "gas": [180], "current": []}')

        assert len(result.records) == 1
        record = result.records[0]
        assert record.fields[ChannelFamily.LIGHT] == {0: 300.0, 1: 320.0}
        assert record.fields[ChannelFamily.GAS] == {0: 180.0}
        assert record.fields[ChannelFamily.CURRENT] == {}
        assert record.shapes == {PayloadShape.JSON_ARRAY}
        assert record.is_legacy is False

    def test_scalar_shape_with_legacy_keys(self, decoder):
        record = decoder.decode('{"suhu": 25.1, "kelembapan": "60.5", "gas": 180}').records[0]

        assert record.fields[ChannelFamily.TEMPERATURE] == {0: 25.1}
        assert record.fields[ChannelFamily.HUMIDITY] == {0: 60.5}
        assert record.fields[ChannelFamily.GAS] == {0: 180.0}
        assert PayloadShape.JSON_SCALAR in record.shapes
        assert record.legacy_keys is True
        assert record.is_legacy is True

    def test_pair_shape_maps_device_keys(self, decoder):
        record = decoder.decode(
            b'{"cahaya": {"sensor2": 320, "sensor1": 300}, "arus": {"device1": 1.2}}'
        ).records[0]

        assert record.fields[ChannelFamily.LIGHT] == {0: 300.0, 1: 320.0}
        assert record.fields[ChannelFamily.CURRENT] == {0: 1.2}
        assert record.shapes == {PayloadShape.JSON_PAIR}

    def test_unknown_keys_are_ignored(self, decoder):
        record = decoder.decode(b'{"light": [1], "battery": 90}').records[0]
        assert set(record.fields) == {ChannelFamily.LIGHT}

    def test_duplicate_family_keeps_first(self, decoder):
        record = decoder.decode(b'{"temperature": [20], "suhu": [30]}').records[0]
        assert record.fields[ChannelFamily.TEMPERATURE] == {0: 20.0}

    def test_absent_values_are_none_not_zero(self, decoder):
        record = decoder.decode(b'{"light": [0, null, "", "abc", 5]}').records[0]
        assert record.fields[ChannelFamily.LIGHT] == {0: 0.0, 1: None, 2: None, 3: None, 4: 5.0}

    def test_invalid_json_raises(self, decoder):
        with pytest.raises(DecodeError):
            decoder.decode(b'{"light": [1, 2')

    def test_json_without_known_channels_raises(self, decoder):
        with pytest.raises(DecodeError):
            decoder.decode(b'{"foo": 1}')


# =============================================================================
# CSV
# =============================================================================

class TestDelimitedText:
    """CSV sin cabecera en el layout de 11 columnas."""

    def test_full_line_maps_columns(self, decoder):
        result = decoder.decode(b"300,320,310,305,180,190,25.1,25.3,60.2,61.0,1.2")

        record = result.records[0]
        assert record.fields[ChannelFamily.LIGHT] == {0: 300.0, 1: 320.0, 2: 310.0, 3: 305.0}
        assert record.fields[ChannelFamily.GAS] == {0: 180.0, 1: 190.0}
        assert record.fields[ChannelFamily.TEMPERATURE] == {0: 25.1, 1: 25.3}
        assert record.fields[ChannelFamily.HUMIDITY] == {0: 60.2, 1: 61.0}
        assert record.fields[ChannelFamily.CURRENT] == {0: 1.2}
        assert record.shapes == {PayloadShape.DELIMITED_TEXT}

    def test_short_line_leaves_missing_columns_absent(self, decoder):
        record = decoder.decode("1,2,3,4,5").records[0]

        assert record.fields[ChannelFamily.GAS] == {0: 5.0, 1: None}
        assert record.fields[ChannelFamily.CURRENT] == {0: None}

    def test_blank_field_is_absent(self, decoder):
        record = decoder.decode("0,,310,305,180,190,25.1,25.3,60.2,61.0,1.2").records[0]
        assert record.fields[ChannelFamily.LIGHT][0] == 0.0
        assert record.fields[ChannelFamily.LIGHT][1] is None

    def test_multiple_lines_yield_multiple_records(self, decoder):
        result = decoder.decode("1,1,1,1,1,1,1,1,1,1,1\n2,2,2,2,2,2,2,2,2,2,2\n")
        assert len(result.records) == 2
        assert result.records[1].fields[ChannelFamily.CURRENT] == {0: 2.0}

    def test_header_line_is_skipped(self, decoder):
        result = decoder.decode(CSV_LAYOUT_V2.header.encode())

        assert result.header_skipped is True
        assert result.records == []

    def test_line_without_numbers_raises(self, decoder):
        with pytest.raises(DecodeError):
            decoder.decode("a,b,c,d")

    @pytest.mark.parametrize("payload", [b"", b"   ", "\n\n"])
    def test_empty_payload_raises(self, decoder, payload):
        with pytest.raises(DecodeError):
            decoder.decode(payload)

    def test_non_utf8_payload_raises(self, decoder):
        with pytest.raises(DecodeError):
            decoder.decode(b"\xff\xfe\x00")


class TestParseNumber:

    @pytest.mark.parametrize("raw, expected", [
        (5, 5.0),
        ("  7.5 ", 7.5),
        ("0", 0.0),
        (None, None),
        (True, None),
        ("nan", None),
        ("inf", None),
        ([1], None),
    ])
    def test_parse_number(self, raw, expected):
        assert parse_number(raw) == expected
