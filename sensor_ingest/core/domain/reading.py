"""Modelo de dominio para lecturas de sensores."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional, Tuple

from .channels import ChannelFamily


def utcnow() -> datetime:
    """Naive UTC timestamp, the form stored in the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


@dataclass(frozen=True)
class Reading:
    """Lectura normalizada - modelo canónico de dominio.

    One Reading per ingested record. Each channel is an ordered list of
    samples where position ``i`` is physical device ``i + 1``; lists are
    independent and may be empty.
    """
    timestamp: datetime
    channels: Mapping[ChannelFamily, Tuple[float, ...]] = field(default_factory=dict)
    id: Optional[int] = None

    def __post_init__(self):
        # Normaliza a tuplas para que la lectura sea inmutable
        normalized = {
            family: tuple(float(v) for v in self.channels.get(family, ()))
            for family in ChannelFamily
        }
        object.__setattr__(self, "channels", normalized)

    def samples(self, family: ChannelFamily) -> Tuple[float, ...]:
        return self.channels[family]

    @property
    def temperature(self) -> Tuple[float, ...]:
        return self.channels[ChannelFamily.TEMPERATURE]

    @property
    def humidity(self) -> Tuple[float, ...]:
        return self.channels[ChannelFamily.HUMIDITY]

    @property
    def light(self) -> Tuple[float, ...]:
        return self.channels[ChannelFamily.LIGHT]

    @property
    def gas(self) -> Tuple[float, ...]:
        return self.channels[ChannelFamily.GAS]

    @property
    def current(self) -> Tuple[float, ...]:
        return self.channels[ChannelFamily.CURRENT]

    @property
    def is_empty(self) -> bool:
        return not any(self.channels.values())

    def to_row(self) -> Dict[str, object]:
        """Convierte a parámetros de inserción."""
        row: Dict[str, object] = {"timestamp": self.timestamp}
        for family in ChannelFamily:
            row[family.value] = list(self.channels[family])
        return row

    @classmethod
    def from_row(cls, row: Mapping[str, object]) -> "Reading":
        channels: Dict[ChannelFamily, List[float]] = {}
        for family in ChannelFamily:
            channels[family] = list(row.get(family.value) or [])
        return cls(timestamp=row["timestamp"], channels=channels, id=row.get("id"))
