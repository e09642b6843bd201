"""Registros persistidos: fallas de sensores y comandos de actuadores."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional


@dataclass(frozen=True)
class Failure:
    """Failure raised when a sensor reports zero too many times in a row.

    Lifecycle: active (resolved=False) -> resolved, only through an
    operator action. Never deleted.
    """
    id: int
    sensor_type: str
    sensor_index: str
    message: str
    resolved: bool
    timestamp: datetime

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Failure":
        return cls(
            id=int(row["id"]),
            sensor_type=str(row["sensor_type"]),
            sensor_index=str(row["sensor_index"]),
            message=str(row["message"]),
            resolved=bool(row["resolved"]),
            timestamp=row["timestamp"],
        )


@dataclass(frozen=True)
class CommandUser:
    """Snapshot of the operator who issued a command."""
    id: Optional[str] = None
    email: Optional[str] = None


@dataclass(frozen=True)
class Command:
    """Audit entry for an actuator command that reached the broker."""
    id: int
    user: CommandUser
    actuator_type: str
    actuator_index: int
    level: str
    timestamp: datetime

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Command":
        return cls(
            id=int(row["id"]),
            user=CommandUser(id=row.get("user_id"), email=row.get("user_email")),
            actuator_type=str(row["actuator_type"]),
            actuator_index=int(row["actuator_index"]),
            level=str(row["level"]),
            timestamp=row["timestamp"],
        )
