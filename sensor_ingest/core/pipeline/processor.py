"""Procesador principal de lecturas."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from ...errors import StoreError
from ..decoding import PayloadDecoder
from ..detection import TripOutcome, ZeroStreakDetector
from ..domain.reading import Reading
from ..monitoring.stats import Stats
from ..normalization import ReadingNormalizer
from ..storage import ReadingStore

logger = logging.getLogger(__name__)


@dataclass
class ProcessResult:
    reading: Reading
    stored: bool
    outcomes: List[TripOutcome] = field(default_factory=list)
    error: Optional[StoreError] = None


class IngestionPipeline:
    """Procesa lecturas a través del pipeline completo.

    Pipeline:
    1. Decodificación del payload (JSON o CSV)
    2. Normalización a Reading
    3. Persistencia en el store
    4. Detección de rachas de ceros

    Detection runs only for readings that were stored. A store failure is
    logged and the reading is dropped.
    """

    def __init__(
        self,
        store: ReadingStore,
        detector: ZeroStreakDetector,
        decoder: Optional[PayloadDecoder] = None,
        normalizer: Optional[ReadingNormalizer] = None,
        stats: Optional[Stats] = None,
    ):
        self._store = store
        self._detector = detector
        self._decoder = decoder or PayloadDecoder()
        self._normalizer = normalizer or ReadingNormalizer()
        self._stats = stats or Stats()

    @property
    def stats(self) -> Stats:
        return self._stats

    @property
    def detector(self) -> ZeroStreakDetector:
        return self._detector

    def decode(self, payload: bytes | str, received_at: Optional[datetime] = None) -> List[Reading]:
        """Decodifica un payload en lecturas normalizadas.

        Returns:
            Lista vacía cuando el mensaje es la línea de cabecera CSV.

        Raises:
            DecodeError: payload vacío o sin formato reconocible
        """
        result = self._decoder.decode(payload)
        if result.header_skipped:
            logger.debug("[PIPELINE] CSV header line skipped")
            return []

        return [self._normalizer.normalize(record, received_at) for record in result.records]

    def process(self, reading: Reading) -> ProcessResult:
        """Guarda una lectura y luego la evalúa en el detector.

        Never raises for store or ledger failures; they are reported in
        the result.
        """
        return self.detect(self.store(reading))

    def store(self, reading: Reading) -> ProcessResult:
        """Persiste la lectura sin pasar por el detector."""
        try:
            stored = self._store.append(reading)
        except StoreError as e:
            self._stats.incr("store_failed")
            logger.error("[PIPELINE] Reading dropped, store failed: %s", e)
            return ProcessResult(reading=reading, stored=False, error=e)

        self._stats.incr("stored")
        return ProcessResult(reading=stored, stored=True)

    def detect(self, result: ProcessResult) -> ProcessResult:
        """Runs the zero-streak detector on a stored reading.

        Callers must feed results in arrival order; unstored results are
        returned untouched.
        """
        if not result.stored:
            return result

        result.outcomes = self._detector.inspect(result.reading)
        opened = sum(1 for o in result.outcomes if o.failure is not None)
        if opened:
            self._stats.incr("failures_opened", opened)
        return result

    def handle(self, payload: bytes | str) -> List[ProcessResult]:
        """Decodifica y procesa un payload de forma síncrona.

        Raises:
            DecodeError: si el payload no se puede decodificar
        """
        return [self.process(reading) for reading in self.decode(payload)]
