"""Tests del normalizador de lecturas."""

from datetime import datetime

from sensor_ingest.core.decoding import DecodedRecord, PayloadDecoder
from sensor_ingest.core.domain import ChannelFamily, Reading
from sensor_ingest.core.normalization import ReadingNormalizer


class TestReadingNormalizer:

    def test_orders_by_device_index(self):
        record = DecodedRecord(fields={ChannelFamily.LIGHT: {2: 30.0, 0: 10.0, 1: 20.0}})

        reading = ReadingNormalizer().normalize(record)

        assert reading.light == (10.0, 20.0, 30.0)

    def test_absent_samples_are_dropped(self):
        record = DecodedRecord(fields={ChannelFamily.GAS: {0: None, 1: 0.0, 2: 5.0}})

        reading = ReadingNormalizer().normalize(record)

        # El cero se conserva, el ausente no
        assert reading.gas == (0.0, 5.0)

    def test_every_family_present_even_when_empty(self):
        record = DecodedRecord(fields={ChannelFamily.CURRENT: {0: 1.2}})

        reading = ReadingNormalizer().normalize(record)

        assert reading.current == (1.2,)
        assert reading.light == ()
        assert reading.temperature == ()
        assert set(reading.channels) == set(ChannelFamily)

    def test_uses_received_at(self):
        ts = datetime(2026, 3, 1, 8, 30)
        reading = ReadingNormalizer().normalize(DecodedRecord(), received_at=ts)
        assert reading.timestamp == ts
        assert reading.is_empty

    def test_csv_end_to_end_shape(self):
        record = PayloadDecoder().decode("300,320,310,305,180,190,25.1,25.3,60.2,61.0,1.2").records[0]

        reading = ReadingNormalizer().normalize(record)

        assert reading.light == (300.0, 320.0, 310.0, 305.0)
        assert reading.gas == (180.0, 190.0)
        assert reading.temperature == (25.1, 25.3)
        assert reading.humidity == (60.2, 61.0)
        assert reading.current == (1.2,)


class TestReadingRow:

    def test_row_round_trip(self):
        reading = Reading(
            timestamp=datetime(2026, 1, 1),
            channels={ChannelFamily.LIGHT: [1, 2], ChannelFamily.CURRENT: [0.5]},
        )

        row = reading.to_row()
        row["id"] = 7
        restored = Reading.from_row(row)

        assert row["light"] == [1.0, 2.0]
        assert row["gas"] == []
        assert restored.id == 7
        assert restored.channels == reading.channels
