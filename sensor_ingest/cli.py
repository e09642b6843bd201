"""CLI entry point for the ingest service."""

from __future__ import annotations

import argparse
import dataclasses
import logging

import uvicorn

from .common.config import get_settings
from .main import create_app

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()

    p = argparse.ArgumentParser(description="Room sensor ingest service (MQTT + HTTP API)")
    p.add_argument("--host", default="0.0.0.0")
    p.add_argument("--port", type=int, default=8000)
    p.add_argument("--log-level", default=settings.log_level, help="DEBUG, INFO, WARNING, ERROR")
    p.add_argument("--no-mqtt", action="store_true", help="serve the API without the MQTT receiver")
    args = p.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )

    if args.no_mqtt:
        settings = dataclasses.replace(settings, mqtt_enabled=False)

    logger.info("Sensor ingest started on %s:%d", args.host, args.port)
    logger.info(
        "Config: db=%s mqtt=%s broker=%s:%d topic=%s",
        settings.database_url.split("@")[-1],
        settings.mqtt_enabled,
        settings.mqtt_broker_host,
        settings.mqtt_broker_port,
        settings.mqtt_data_topic,
    )

    uvicorn.run(create_app(settings), host=args.host, port=args.port, log_config=None)


if __name__ == "__main__":
    main()
