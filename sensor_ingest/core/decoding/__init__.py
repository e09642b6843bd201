"""Payload decoding: sniffing, JSON shapes and versioned CSV layouts."""

from .csv_layout import ACTIVE_LAYOUT, CSV_LAYOUT_V2, ColumnSpec, CsvLayout
from .payload_decoder import (
    CANONICAL_SHAPE,
    DecodedRecord,
    DecodeResult,
    PayloadDecoder,
    PayloadShape,
    parse_number,
)

__all__ = [
    "ACTIVE_LAYOUT",
    "CSV_LAYOUT_V2",
    "ColumnSpec",
    "CsvLayout",
    "CANONICAL_SHAPE",
    "DecodedRecord",
    "DecodeResult",
    "PayloadDecoder",
    "PayloadShape",
    "parse_number",
]
