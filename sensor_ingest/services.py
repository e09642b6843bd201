"""Ensamblado de los servicios del proceso.

One instance per process: the detector counters, the ledger and the MQTT
client are shared by the receiver and the HTTP routes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from .common.config import Settings
from .common.db import get_engine, reset_engine
from .core.detection import ZeroStreakDetector
from .core.pipeline import IngestionPipeline
from .core.resilience import RetryConfig, RetryExecutor
from .core.storage import CommandLog, FailureLedger, ReadingStore, ensure_schema
from .mqtt import CommandPublisher, MQTTReceiver
from .mqtt.command_publisher import CommandTransport

logger = logging.getLogger(__name__)


@dataclass
class Services:
    settings: Settings
    engine: Engine
    store: ReadingStore
    ledger: FailureLedger
    command_log: CommandLog
    detector: ZeroStreakDetector
    pipeline: IngestionPipeline
    publisher: CommandPublisher
    receiver: Optional[MQTTReceiver] = None
    owns_engine: bool = False

    def start(self) -> None:
        ensure_schema(self.engine)
        if self.receiver is not None:
            self.receiver.start()
        else:
            logger.info("[SERVICES] MQTT receiver disabled")

    def stop(self) -> None:
        if self.receiver is not None:
            self.receiver.stop()
        if self.owns_engine:
            reset_engine()


def build_services(
    settings: Settings,
    engine: Optional[Engine] = None,
    transport: Optional[CommandTransport] = None,
) -> Services:
    """Crea los servicios a partir de la configuración.

    ``transport`` overrides the MQTT client used for commands; when given,
    no receiver is created.
    """
    owns_engine = engine is None
    engine = engine or get_engine(settings)
    retry = RetryExecutor(
        RetryConfig(
            max_attempts=settings.store_retry_attempts,
            base_delay=settings.store_retry_base_delay,
            retryable_exceptions=(SQLAlchemyError,),
        )
    )
    store = ReadingStore(engine, retry=retry)
    ledger = FailureLedger(engine)
    command_log = CommandLog(engine)
    detector = ZeroStreakDetector(ledger)
    pipeline = IngestionPipeline(store, detector)

    receiver = None
    if transport is None and settings.mqtt_enabled:
        receiver = MQTTReceiver(pipeline, settings)
        transport = receiver.client

    publisher = CommandPublisher(
        transport,
        command_log,
        topic=settings.mqtt_command_topic,
        timeout=settings.mqtt_publish_timeout_seconds,
    )

    return Services(
        settings=settings,
        engine=engine,
        store=store,
        ledger=ledger,
        command_log=command_log,
        detector=detector,
        pipeline=pipeline,
        publisher=publisher,
        receiver=receiver,
        owns_engine=owns_engine,
    )
