from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


def _default_env_file() -> str:
    return str(Path.cwd() / ".env")


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    database_url: str
    db_pool_timeout_seconds: float

    mqtt_enabled: bool
    mqtt_broker_host: str
    mqtt_broker_port: int
    mqtt_username: str | None
    mqtt_password: str | None
    mqtt_client_id: str
    mqtt_data_topic: str
    mqtt_command_topic: str
    mqtt_publish_timeout_seconds: float

    async_processing: bool
    queue_size: int
    num_workers: int

    store_retry_attempts: int
    store_retry_base_delay: float

    api_key: str | None
    environment: str
    log_level: str

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


def get_settings() -> Settings:
    # Load env file (if present) but still allow overriding via real environment variables.
    env_file = os.getenv("SENSOR_INGEST_ENV_FILE", _default_env_file())
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    return Settings(
        database_url=os.getenv("DATABASE_URL", "sqlite:///./sensor_ingest.db"),
        db_pool_timeout_seconds=float(os.getenv("DB_POOL_TIMEOUT_SECONDS", "10")),
        mqtt_enabled=_env_bool("MQTT_ENABLED", "true"),
        mqtt_broker_host=os.getenv("MQTT_BROKER_HOST", "localhost"),
        mqtt_broker_port=int(os.getenv("MQTT_BROKER_PORT", "1883")),
        mqtt_username=os.getenv("MQTT_USERNAME") or None,
        mqtt_password=os.getenv("MQTT_PASSWORD") or None,
        mqtt_client_id=os.getenv("MQTT_CLIENT_ID", "sensor-ingest"),
        # Topics used by the STM32 gateway firmware.
        mqtt_data_topic=os.getenv("MQTT_DATA_TOPIC", "sensor/data/system"),
        mqtt_command_topic=os.getenv("MQTT_COMMAND_TOPIC", "building/room/command"),
        mqtt_publish_timeout_seconds=float(os.getenv("MQTT_PUBLISH_TIMEOUT_SECONDS", "5")),
        async_processing=_env_bool("INGEST_ASYNC_PROCESSING", "true"),
        queue_size=int(os.getenv("INGEST_QUEUE_SIZE", "1000")),
        num_workers=int(os.getenv("INGEST_NUM_WORKERS", "2")),
        store_retry_attempts=max(1, int(os.getenv("STORE_RETRY_ATTEMPTS", "3"))),
        store_retry_base_delay=float(os.getenv("STORE_RETRY_BASE_DELAY", "0.5")),
        api_key=os.getenv("INGEST_API_KEY") or None,
        environment=os.getenv("ENVIRONMENT", "development"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
