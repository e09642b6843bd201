"""Estadísticas de procesamiento."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime

from ..domain.reading import utcnow


@dataclass
class Stats:
    """Estadísticas de procesamiento de mensajes.

    Counters may be bumped from the MQTT network thread and from worker
    threads, so updates go through ``incr``.
    """

    received: int = 0
    decoded: int = 0
    skipped: int = 0
    failed: int = 0
    stored: int = 0
    store_failed: int = 0
    failures_opened: int = 0
    last_message_at: float = 0
    started_at: datetime = field(default_factory=utcnow)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def incr(self, name: str, amount: int = 1) -> None:
        with self._lock:
            setattr(self, name, getattr(self, name) + amount)

    def __str__(self) -> str:
        return (
            f"Stats: received={self.received} decoded={self.decoded} skipped={self.skipped} "
            f"failed={self.failed} stored={self.stored} store_failed={self.store_failed} "
            f"failures_opened={self.failures_opened}"
        )

    def to_dict(self) -> dict:
        """Convierte a diccionario."""
        with self._lock:
            return {
                "received": self.received,
                "decoded": self.decoded,
                "skipped": self.skipped,
                "failed": self.failed,
                "stored": self.stored,
                "store_failed": self.store_failed,
                "failures_opened": self.failures_opened,
                "last_message_at": self.last_message_at,
                "started_at": self.started_at.isoformat(),
                "success_rate": self._success_rate(),
            }

    def _success_rate(self) -> float:
        """Calcula tasa de éxito."""
        total = self.stored + self.store_failed + self.failed
        if total == 0:
            return 1.0
        return self.stored / total
