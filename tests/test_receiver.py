"""Tests del receptor MQTT con cliente simulado."""

from unittest.mock import MagicMock

from sensor_ingest.mqtt import MQTTReceiver
from sensor_ingest.services import build_services

from .conftest import make_settings


class TestMQTTReceiver:

    def test_start_wires_handler_and_connects(self, pipeline, store):
        client = MagicMock()
        client.connect.return_value = True
        client.is_connected = True
        receiver = MQTTReceiver(pipeline, make_settings(), client=client)

        assert receiver.start() is True

        handler = client.set_message_handler.call_args[0][0]
        handler("sensor/data/system", b'{"light": [42]}')
        assert store.latest(1)[0].light == (42.0,)
        assert receiver.health_check()["healthy"] is True

        receiver.stop()
        client.disconnect.assert_called_once()
        assert receiver.is_running is False

    def test_async_mode_drains_on_stop(self, pipeline, store):
        client = MagicMock()
        client.connect.return_value = False
        receiver = MQTTReceiver(pipeline, make_settings(async_processing=True), client=client)
        receiver.start()

        handler = client.set_message_handler.call_args[0][0]
        for _ in range(3):
            handler("sensor/data/system", b"1,2,3,4,5,6,7,8,9,10,11")
        assert receiver.stats["async_processor"] is not None
        receiver.stop()

        assert len(store.latest(10)) == 3


class TestBuildServices:

    def test_receiver_uses_shared_client_for_commands(self, engine):
        services = build_services(make_settings(mqtt_enabled=True), engine=engine)

        assert services.receiver is not None
        assert services.publisher._transport is services.receiver.client

    def test_no_receiver_when_disabled(self, engine):
        services = build_services(make_settings(mqtt_enabled=False), engine=engine)

        assert services.receiver is None
