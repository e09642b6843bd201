"""Tracker de lecturas consecutivas en cero.

Rastrea, por (familia, índice de dispositivo), cuántas lecturas seguidas
valen 0 para determinar cuándo abrir una falla.

Reglas:
- Si la lectura es 0, incrementa el contador
- Si la lectura es distinta de 0, resetea el contador a 0
- Al llegar al umbral (3) se dispara la falla y el contador vuelve a 0,
  se haya creado la falla o no

Counters live in process memory only. A restart resets every streak, which
at worst delays a real alert by a few samples.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Protocol, Tuple

from ...errors import DetectorError
from ..domain.channels import ChannelFamily, sensor_label
from ..domain.reading import Reading
from ..domain.records import Failure

logger = logging.getLogger(__name__)

StreakKey = Tuple[ChannelFamily, int]


class FailureSink(Protocol):
    def open_failure(self, sensor_type: str, sensor_index: str, message: str) -> Optional[Failure]:
        ...


class StreakState(Enum):
    NORMAL = "NORMAL"
    TRIPPED = "TRIPPED"


@dataclass(frozen=True)
class Trip:
    """A key whose zero streak reached the threshold."""
    family: ChannelFamily
    device_index: int
    threshold: int

    @property
    def sensor_type(self) -> str:
        return self.family.value

    @property
    def sensor_index(self) -> str:
        return sensor_label(self.device_index)

    @property
    def message(self) -> str:
        return (
            f"Sensor {self.sensor_type} ({self.sensor_index}) reported zero value "
            f"{self.threshold} times in a row."
        )


@dataclass
class TripOutcome:
    trip: Trip
    failure: Optional[Failure] = None
    error: Optional[DetectorError] = None

    @property
    def suppressed(self) -> bool:
        return self.failure is None and self.error is None


class ZeroStreakDetector:
    """Detector de rachas de ceros por canal y dispositivo.

    Created once at process start and shared by every message handler.
    Counter updates are serialized by one lock; ledger writes happen
    outside the lock.
    """

    THRESHOLD = 3

    def __init__(self, ledger: FailureSink, threshold: int = THRESHOLD):
        self._ledger = ledger
        self._threshold = threshold
        self._counts: Dict[StreakKey, int] = {}
        self._lock = threading.Lock()
        self._trips = 0
        self._failures_opened = 0
        self._ledger_errors = 0

    @property
    def threshold(self) -> int:
        return self._threshold

    def observe(self, family: ChannelFamily, device_index: int, value: float) -> StreakState:
        """Aplica una muestra al contador de su clave."""
        key = (family, device_index)
        with self._lock:
            if value == 0:
                count = self._counts.get(key, 0) + 1
            else:
                count = 0

            if count >= self._threshold:
                self._counts[key] = 0
                self._trips += 1
                return StreakState.TRIPPED

            self._counts[key] = count
            return StreakState.NORMAL

    def inspect(self, reading: Reading) -> List[TripOutcome]:
        """Evalúa todas las muestras de una lectura y ejecuta los disparos.

        Ledger errors are captured per trip as DetectorError and never
        raised: the reading is already stored at this point.
        """
        trips: List[Trip] = []
        for family in ChannelFamily:
            for device_index, value in enumerate(reading.samples(family)):
                if self.observe(family, device_index, value) is StreakState.TRIPPED:
                    trips.append(Trip(family, device_index, self._threshold))

        return [self._fire(trip) for trip in trips]

    def _fire(self, trip: Trip) -> TripOutcome:
        logger.warning("[DETECTOR] FAILURE DETECTED: %s %s", trip.sensor_type, trip.sensor_index)
        try:
            failure = self._ledger.open_failure(trip.sensor_type, trip.sensor_index, trip.message)
        except Exception as e:
            error = DetectorError(trip.sensor_type, trip.sensor_index, e)
            with self._lock:
                self._ledger_errors += 1
            logger.error("[DETECTOR] %s", error)
            return TripOutcome(trip=trip, error=error)

        if failure is not None:
            with self._lock:
                self._failures_opened += 1
        return TripOutcome(trip=trip, failure=failure)

    def get_count(self, family: ChannelFamily, device_index: int) -> int:
        """Obtiene el conteo actual de ceros consecutivos."""
        with self._lock:
            return self._counts.get((family, device_index), 0)

    def reset(self) -> None:
        with self._lock:
            self._counts.clear()

    @property
    def stats(self) -> dict:
        with self._lock:
            return {
                "threshold": self._threshold,
                "tracked_keys": len(self._counts),
                "trips": self._trips,
                "failures_opened": self._failures_opened,
                "ledger_errors": self._ledger_errors,
            }
