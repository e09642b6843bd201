"""Domain models."""

from .channels import ChannelFamily, LEGACY_ALIASES, resolve_family, sensor_label
from .reading import Reading, to_naive_utc, utcnow
from .records import Command, CommandUser, Failure

__all__ = [
    "ChannelFamily",
    "LEGACY_ALIASES",
    "resolve_family",
    "sensor_label",
    "Reading",
    "to_naive_utc",
    "utcnow",
    "Command",
    "CommandUser",
    "Failure",
]
