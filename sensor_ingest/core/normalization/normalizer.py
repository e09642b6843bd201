"""Normalizes decoded field maps into canonical Readings."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, List, Optional

from ..decoding.payload_decoder import DecodedRecord
from ..domain.channels import ChannelFamily
from ..domain.reading import Reading, utcnow

logger = logging.getLogger(__name__)


class ReadingNormalizer:
    """Maps a DecodedRecord to a Reading.

    Reglas:
    - Values are collected in ascending device index order.
    - Absent samples are dropped, never replaced by zero.
    - Channel lists keep their own length (4 light devices next to 1
      current device is normal).
    """

    def normalize(self, record: DecodedRecord, received_at: Optional[datetime] = None) -> Reading:
        channels: Dict[ChannelFamily, List[float]] = {}

        for family in ChannelFamily:
            devices = record.fields.get(family) or {}
            channels[family] = [
                value
                for _, value in sorted(devices.items())
                if value is not None
            ]

        return Reading(timestamp=received_at or utcnow(), channels=channels)
