"""Receptor MQTT principal.

Suscribe el topic de datos (y el de comandos, solo para registrar el eco)
y entrega cada mensaje al MessageHandler.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..common.config import Settings
from ..core.pipeline import IngestionPipeline
from .async_processor import AsyncReadingProcessor, create_async_processor
from .client import MQTTClient
from .message_handler import MessageHandler

logger = logging.getLogger(__name__)


class MQTTReceiver:
    """Receptor MQTT que alimenta el pipeline de ingesta."""

    def __init__(
        self,
        pipeline: IngestionPipeline,
        settings: Settings,
        client: Optional[MQTTClient] = None,
    ):
        self._pipeline = pipeline
        self._settings = settings
        self._client = client or MQTTClient(
            broker_host=settings.mqtt_broker_host,
            broker_port=settings.mqtt_broker_port,
            username=settings.mqtt_username,
            password=settings.mqtt_password,
            client_id=settings.mqtt_client_id,
            topics=[settings.mqtt_data_topic, settings.mqtt_command_topic],
        )
        self._async: Optional[AsyncReadingProcessor] = None
        self._handler: Optional[MessageHandler] = None
        self._running = False

    @property
    def client(self) -> MQTTClient:
        return self._client

    def start(self) -> bool:
        """Inicia el receptor MQTT."""
        self._async = create_async_processor(self._pipeline, self._settings)
        self._handler = MessageHandler(
            self._pipeline,
            async_processor=self._async,
            command_topic=self._settings.mqtt_command_topic,
        )
        self._client.set_message_handler(self._handler.handle)

        connected = self._client.connect()
        self._running = True
        if connected:
            logger.info("[MQTT] Started successfully")
        return connected

    def stop(self):
        """Detiene el receptor."""
        self._running = False
        self._client.disconnect()
        if self._async is not None:
            self._async.stop(drain=True)
            self._async = None
        logger.info("[MQTT] Stopped. %s", self._pipeline.stats)

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_connected(self) -> bool:
        return self._client.is_connected

    @property
    def stats(self) -> dict:
        return {
            "running": self._running,
            "connected": self.is_connected,
            "broker": f"{self._settings.mqtt_broker_host}:{self._settings.mqtt_broker_port}",
            "data_topic": self._settings.mqtt_data_topic,
            "command_topic": self._settings.mqtt_command_topic,
            "pipeline": self._pipeline.stats.to_dict(),
            "detector": self._pipeline.detector.stats,
            "async_processor": self._async.metrics if self._async else None,
        }

    def health_check(self) -> dict:
        stats = self._pipeline.stats
        return {
            "healthy": self._running and self.is_connected,
            "running": self._running,
            "connected": self.is_connected,
            "messages_received": stats.received,
            "messages_failed": stats.failed,
            "readings_stored": stats.stored,
        }

