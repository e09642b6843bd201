"""Channel families reported by the room sensor gateway."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ChannelFamily(str, Enum):
    """Closed set of sensor channel families."""
    TEMPERATURE = "temperature"
    HUMIDITY = "humidity"
    LIGHT = "light"
    GAS = "gas"
    CURRENT = "current"


# Claves heredadas del firmware original (payloads en indonesio)
LEGACY_ALIASES = {
    "suhu": ChannelFamily.TEMPERATURE,
    "kelembapan": ChannelFamily.HUMIDITY,
    "cahaya": ChannelFamily.LIGHT,
    "arus": ChannelFamily.CURRENT,
}


def resolve_family(name: str) -> Optional[ChannelFamily]:
    """Maps a canonical or legacy channel name to its family.

    Returns None for unknown names.
    """
    if not isinstance(name, str):
        return None
    key = name.strip().lower()
    try:
        return ChannelFamily(key)
    except ValueError:
        return LEGACY_ALIASES.get(key)


def is_legacy_name(name: str) -> bool:
    return name.strip().lower() in LEGACY_ALIASES


def sensor_label(device_index: int) -> str:
    """Human-facing 1-based device label for a 0-based position."""
    return f"sensor{device_index + 1}"
