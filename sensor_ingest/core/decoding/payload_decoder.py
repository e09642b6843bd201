"""Decodificador de payloads del topic de datos.

Detects the payload encoding by sniffing and turns it into a field map
``{ChannelFamily: {device_index: value | None}}`` where ``None`` marks an
absent sample. Absent is never zero: a blank or garbled field must not be
counted as a zero reading downstream.

Supported shapes:

- ``JSON_ARRAY`` (canonical): ``{"light": [300, 320], "gas": [180]}``
- ``JSON_SCALAR`` (legacy): ``{"suhu": 25.1, "gas": 180}``
- ``JSON_PAIR`` (legacy): ``{"suhu": {"sensor1": 25.1, "sensor2": 25.3}}``
- ``DELIMITED_TEXT`` (legacy firmware): headerless CSV in the active
  ``CsvLayout``.

The legacy shapes are compatibility adapters for gateways that have not
been updated; new producers must send the canonical JSON array shape.
"""

from __future__ import annotations

import csv
import io
import logging
import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set

import orjson

from ...errors import DecodeError
from ..domain.channels import ChannelFamily, is_legacy_name, resolve_family
from .csv_layout import ACTIVE_LAYOUT, CsvLayout

logger = logging.getLogger(__name__)

_DEVICE_KEY_RE = re.compile(r"(\d+)$")


class PayloadShape(str, Enum):
    JSON_ARRAY = "json_array"
    JSON_SCALAR = "json_scalar"
    JSON_PAIR = "json_pair"
    DELIMITED_TEXT = "delimited_text"


CANONICAL_SHAPE = PayloadShape.JSON_ARRAY

FieldMap = Dict[ChannelFamily, Dict[int, Optional[float]]]


@dataclass
class DecodedRecord:
    """One record worth of decoded fields."""
    fields: FieldMap = field(default_factory=dict)
    shapes: Set[PayloadShape] = field(default_factory=set)
    legacy_keys: bool = False

    @property
    def is_legacy(self) -> bool:
        return self.legacy_keys or any(s != CANONICAL_SHAPE for s in self.shapes)

    @property
    def present_count(self) -> int:
        return sum(
            1 for devices in self.fields.values() for v in devices.values() if v is not None
        )


@dataclass
class DecodeResult:
    records: List[DecodedRecord] = field(default_factory=list)
    header_skipped: bool = False


def parse_number(value: Any) -> Optional[float]:
    """Parses a sample value; returns None when the sample is absent."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        num = float(value)
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return None
        try:
            num = float(stripped)
        except ValueError:
            return None
    else:
        return None
    if math.isnan(num) or math.isinf(num):
        return None
    return num


class PayloadDecoder:
    """Turns raw MQTT payloads into decoded records.

    Raises DecodeError for payloads that cannot be interpreted. A payload
    carrying the CSV header line yields an empty result with
    ``header_skipped=True``.
    """

    def __init__(self, layout: CsvLayout = ACTIVE_LAYOUT):
        self._layout = layout

    def decode(self, payload: bytes | str) -> DecodeResult:
        text = self._to_text(payload)

        stripped = text.strip()
        if not stripped:
            raise DecodeError("Empty payload", payload)

        if stripped.startswith("{"):
            return DecodeResult(records=[self._decode_json(stripped, payload)])

        if self._layout.is_header(stripped):
            logger.info("[DECODER] Received CSV header, ignoring")
            return DecodeResult(header_skipped=True)

        return DecodeResult(records=self._decode_delimited(stripped, payload))

    def _to_text(self, payload: bytes | str) -> str:
        if isinstance(payload, str):
            return payload
        try:
            return bytes(payload).decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError(f"Payload is not UTF-8: {e}", payload) from e

    # ------------------------------------------------------------------
    # JSON
    # ------------------------------------------------------------------

    def _decode_json(self, text: str, raw: bytes | str) -> DecodedRecord:
        try:
            data = orjson.loads(text)
        except orjson.JSONDecodeError as e:
            raise DecodeError(f"Invalid JSON: {e}", raw) from e

        if not isinstance(data, dict):
            raise DecodeError(f"JSON payload must be an object, got {type(data).__name__}", raw)

        record = DecodedRecord()
        for key, value in data.items():
            family = resolve_family(key)
            if family is None:
                logger.debug("[DECODER] Ignoring unknown key=%s", key)
                continue
            if family in record.fields:
                logger.warning("[DECODER] Duplicate channel key=%s for %s, keeping first", key, family.value)
                continue
            if is_legacy_name(key):
                record.legacy_keys = True

            shape, devices = self._decode_json_channel(value)
            record.fields[family] = devices
            record.shapes.add(shape)

        if not record.fields:
            raise DecodeError("JSON payload has no known channel fields", raw)

        if record.is_legacy:
            logger.debug(
                "[DECODER] Legacy JSON payload shapes=%s legacy_keys=%s",
                sorted(s.value for s in record.shapes),
                record.legacy_keys,
            )
        return record

    def _decode_json_channel(self, value: Any) -> tuple[PayloadShape, Dict[int, Optional[float]]]:
        if isinstance(value, list):
            return PayloadShape.JSON_ARRAY, {i: parse_number(v) for i, v in enumerate(value)}

        if isinstance(value, dict):
            devices: Dict[int, Optional[float]] = {}
            for key, sample in value.items():
                match = _DEVICE_KEY_RE.search(str(key))
                if match is None or int(match.group(1)) < 1:
                    logger.debug("[DECODER] Ignoring device key=%s", key)
                    continue
                devices[int(match.group(1)) - 1] = parse_number(sample)
            return PayloadShape.JSON_PAIR, devices

        return PayloadShape.JSON_SCALAR, {0: parse_number(value)}

    # ------------------------------------------------------------------
    # CSV
    # ------------------------------------------------------------------

    def _decode_delimited(self, text: str, raw: bytes | str) -> List[DecodedRecord]:
        records: List[DecodedRecord] = []

        try:
            rows = list(csv.reader(io.StringIO(text)))
        except csv.Error as e:
            raise DecodeError(f"Invalid delimited payload: {e}", raw) from e

        for line_no, row in enumerate(rows, start=1):
            if not row or all(not cell.strip() for cell in row):
                continue

            if len(row) > self._layout.width:
                logger.debug(
                    "[DECODER] Line %d has %d columns, layout %s uses %d",
                    line_no, len(row), self._layout.version, self._layout.width,
                )

            record = DecodedRecord(shapes={PayloadShape.DELIMITED_TEXT})
            for position, column in enumerate(self._layout.columns):
                value = parse_number(row[position]) if position < len(row) else None
                record.fields.setdefault(column.family, {})[column.device_index] = value

            if record.present_count == 0:
                logger.warning("[DECODER] Line %d has no numeric fields, skipping", line_no)
                continue
            records.append(record)

        if not records:
            raise DecodeError("Delimited payload has no numeric records", raw)
        return records
