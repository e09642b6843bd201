"""Versioned column layouts for headerless CSV payloads.

The gateway firmware sends one line per sample period with no header.
Column positions map statically to (channel family, device index). The
mapping changed across firmware revisions, so every layout carries a
version and only one is active at a time.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from ..domain.channels import ChannelFamily


@dataclass(frozen=True)
class ColumnSpec:
    family: ChannelFamily
    device_index: int  # 0-based
    name: str


@dataclass(frozen=True)
class CsvLayout:
    version: str
    columns: Tuple[ColumnSpec, ...]
    # Prefijo del header que el firmware imprime al arrancar
    header_marker: str

    @property
    def header(self) -> str:
        return ",".join(c.name for c in self.columns)

    @property
    def width(self) -> int:
        return len(self.columns)

    def is_header(self, text: str) -> bool:
        """True if ``text`` is, or contains, this layout's column-name line."""
        return self.header_marker in text or text.strip() == self.header


def _cols(family: ChannelFamily, prefix: str, count: int) -> Tuple[ColumnSpec, ...]:
    return tuple(ColumnSpec(family, i, f"{prefix}{i + 1}") for i in range(count))


# STM32 layout, 11 columns:
# 0-3: light 1-4
# 4-5: gas 1-2
# 6-7: temperature 1-2
# 8-9: humidity 1-2
# 10:  current 1
CSV_LAYOUT_V2 = CsvLayout(
    version="v2",
    columns=(
        _cols(ChannelFamily.LIGHT, "lux", 4)
        + _cols(ChannelFamily.GAS, "gas", 2)
        + _cols(ChannelFamily.TEMPERATURE, "temp", 2)
        + _cols(ChannelFamily.HUMIDITY, "hum", 2)
        + _cols(ChannelFamily.CURRENT, "current", 1)
    ),
    header_marker="lux1,lux2,lux3,lux4",
)

ACTIVE_LAYOUT = CSV_LAYOUT_V2
