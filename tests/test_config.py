"""Tests de configuración por variables de entorno."""

import os

from sensor_ingest.common.config import get_settings


def test_defaults(monkeypatch, tmp_path):
    monkeypatch.setenv("SENSOR_INGEST_ENV_FILE", str(tmp_path / "missing.env"))
    for name in ("MQTT_DATA_TOPIC", "MQTT_COMMAND_TOPIC", "INGEST_API_KEY", "ENVIRONMENT", "MQTT_ENABLED"):
        monkeypatch.delenv(name, raising=False)

    settings = get_settings()

    assert settings.mqtt_data_topic == "sensor/data/system"
    assert settings.mqtt_command_topic == "building/room/command"
    assert settings.api_key is None
    assert settings.mqtt_enabled is True
    assert settings.is_production is False


def test_env_file_does_not_override_real_env(monkeypatch, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("MQTT_BROKER_PORT=2883\nMQTT_DATA_TOPIC=from/file\n")
    monkeypatch.setenv("SENSOR_INGEST_ENV_FILE", str(env_file))
    monkeypatch.setenv("MQTT_DATA_TOPIC", "from/env")
    monkeypatch.delenv("MQTT_BROKER_PORT", raising=False)

    try:
        settings = get_settings()
    finally:
        # load_dotenv escribe en os.environ directamente
        os.environ.pop("MQTT_BROKER_PORT", None)

    assert settings.mqtt_data_topic == "from/env"
    assert settings.mqtt_broker_port == 2883


def test_flags_and_clamps(monkeypatch, tmp_path):
    monkeypatch.setenv("SENSOR_INGEST_ENV_FILE", str(tmp_path / "missing.env"))
    monkeypatch.setenv("MQTT_ENABLED", "false")
    monkeypatch.setenv("STORE_RETRY_ATTEMPTS", "0")
    monkeypatch.setenv("ENVIRONMENT", "production")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = get_settings()

    assert settings.mqtt_enabled is False
    assert settings.store_retry_attempts == 1
    assert settings.is_production is True
    assert settings.log_level == "DEBUG"
