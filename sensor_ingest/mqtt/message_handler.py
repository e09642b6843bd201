"""Handler de mensajes MQTT."""

from __future__ import annotations

import logging
import time
from typing import Optional

from ..core.pipeline import IngestionPipeline
from ..errors import DecodeError
from .async_processor import AsyncReadingProcessor

logger = logging.getLogger(__name__)

STATS_LOG_EVERY = 100


class MessageHandler:
    """Maneja mensajes MQTT y los procesa a través del pipeline.

    Responsabilidades:
    - Decodificación del payload (en el hilo de red de paho)
    - Encolado en el procesador async, o procesamiento síncrono
    - Tracking de estadísticas

    Every error is contained here: one bad message never stops the
    subscription.
    """

    def __init__(
        self,
        pipeline: IngestionPipeline,
        async_processor: Optional[AsyncReadingProcessor] = None,
        command_topic: Optional[str] = None,
    ):
        self._pipeline = pipeline
        self._async = async_processor
        self._command_topic = command_topic
        self._stats = pipeline.stats

    def handle(self, topic: str, payload: bytes):
        """Procesa un mensaje MQTT."""
        if self._command_topic and topic == self._command_topic:
            # Eco de nuestros propios comandos
            logger.info("[HANDLER] Command echo on %s: %r", topic, payload[:200])
            return

        self._stats.incr("received")
        self._stats.last_message_at = time.time()

        try:
            readings = self._pipeline.decode(payload)
        except DecodeError as e:
            self._stats.incr("failed")
            logger.warning("[HANDLER] Decode failed: %s (topic=%s payload=%r)", e, topic, payload[:200])
            return
        except Exception as e:
            self._stats.incr("failed")
            logger.exception("[HANDLER] Error: %s", e)
            return

        if not readings:
            self._stats.incr("skipped")
            return

        self._stats.incr("decoded", len(readings))
        for reading in readings:
            try:
                if self._async is not None:
                    if not self._async.enqueue(reading):
                        self._stats.incr("failed")
                else:
                    self._pipeline.process(reading)
            except Exception as e:
                self._stats.incr("failed")
                logger.exception("[HANDLER] Error: %s", e)

        # Log periódico
        if self._stats.received % STATS_LOG_EVERY == 0:
            logger.info("[HANDLER] %s", self._stats)

    @property
    def stats(self):
        return self._stats
