"""Fixtures compartidos: BD SQLite en memoria, servicios y transporte falso."""

from datetime import datetime, timedelta
from typing import List, Tuple
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import SQLAlchemyError

from sensor_ingest.common.config import Settings
from sensor_ingest.common.db import create_db_engine
from sensor_ingest.core.detection import ZeroStreakDetector
from sensor_ingest.core.pipeline import IngestionPipeline
from sensor_ingest.core.resilience import RetryConfig, RetryExecutor
from sensor_ingest.core.storage import CommandLog, FailureLedger, ReadingStore, ensure_schema
from sensor_ingest.errors import PublishError

BASE_TIME = datetime(2026, 1, 15, 12, 0, 0)


def make_settings(**overrides) -> Settings:
    values = dict(
        database_url="sqlite://",
        db_pool_timeout_seconds=5.0,
        mqtt_enabled=False,
        mqtt_broker_host="localhost",
        mqtt_broker_port=1883,
        mqtt_username=None,
        mqtt_password=None,
        mqtt_client_id="sensor-ingest-test",
        mqtt_data_topic="sensor/data/system",
        mqtt_command_topic="building/room/command",
        mqtt_publish_timeout_seconds=1.0,
        async_processing=False,
        queue_size=10,
        num_workers=1,
        store_retry_attempts=2,
        store_retry_base_delay=0.0,
        api_key=None,
        environment="development",
        log_level="INFO",
    )
    values.update(overrides)
    return Settings(**values)


def no_sleep_retry(max_attempts: int = 3) -> RetryExecutor:
    return RetryExecutor(
        RetryConfig(max_attempts=max_attempts, retryable_exceptions=(SQLAlchemyError,)),
        sleep=lambda _: None,
    )


class FakeTransport:
    """Transporte MQTT falso que registra las publicaciones."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.published: List[Tuple[str, bytes]] = []

    def publish(self, topic, payload, qos=None, timeout=5.0):
        if self.fail:
            raise PublishError("broker unreachable")
        self.published.append((topic, payload))


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def engine():
    """Engine SQLite en memoria con el esquema creado."""
    eng = create_db_engine("sqlite://")
    ensure_schema(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def store(engine) -> ReadingStore:
    return ReadingStore(engine, retry=no_sleep_retry())


@pytest.fixture
def ledger(engine) -> FailureLedger:
    return FailureLedger(engine)


@pytest.fixture
def command_log(engine) -> CommandLog:
    return CommandLog(engine)


@pytest.fixture
def detector(ledger) -> ZeroStreakDetector:
    return ZeroStreakDetector(ledger)


@pytest.fixture
def pipeline(store, detector) -> IngestionPipeline:
    return IngestionPipeline(store, detector)


@pytest.fixture
def mock_ledger():
    """Mock del ledger de fallas."""
    ledger = MagicMock()
    ledger.open_failure = MagicMock(return_value=MagicMock(id=1))
    return ledger


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def at():
    """Timestamp relativo a BASE_TIME en segundos."""
    def _at(seconds: float) -> datetime:
        return BASE_TIME + timedelta(seconds=seconds)
    return _at
