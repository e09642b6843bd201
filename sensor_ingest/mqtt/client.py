"""Cliente MQTT compartido para recepción de lecturas y envío de comandos."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Iterable, Optional

import paho.mqtt.client as mqtt

from ..errors import PublishError

logger = logging.getLogger(__name__)

MessageCallback = Callable[[str, bytes], None]


class MQTTClient:
    """Cliente MQTT ligero.

    Responsabilidades:
    - Conexión/desconexión a broker MQTT
    - Suscripción a topics (se repite en cada reconexión)
    - Delegación de mensajes a handler
    - Publicación con confirmación QoS 1

    Reconnection is left to paho: ``connect_async`` plus ``loop_start``
    keep retrying in the background when the broker is down.
    """

    def __init__(
        self,
        broker_host: str = "localhost",
        broker_port: int = 1883,
        username: Optional[str] = None,
        password: Optional[str] = None,
        client_id: str = "sensor-ingest",
        topics: Iterable[str] = (),
        qos: int = 1,
    ):
        self.broker_host = broker_host
        self.broker_port = broker_port
        self.username = username
        self.password = password
        self.client_id = f"{client_id}-{int(time.time())}"
        self.topics = list(topics)
        self.qos = qos

        self._client: Optional[mqtt.Client] = None
        self._connected = threading.Event()
        self._message_handler: Optional[MessageCallback] = None

    def set_message_handler(self, handler: MessageCallback):
        """Configura el handler de mensajes."""
        self._message_handler = handler

    def connect(self, wait_seconds: float = 5.0) -> bool:
        """Conecta al broker MQTT.

        Returns:
            True if the broker acknowledged within ``wait_seconds``. A False
            return still leaves the background loop retrying.
        """
        self._client = mqtt.Client(
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
            client_id=self.client_id,
            protocol=mqtt.MQTTv311,
        )

        self._client.on_connect = self._on_connect
        self._client.on_disconnect = self._on_disconnect
        self._client.on_message = self._on_message

        if self.username and self.password:
            self._client.username_pw_set(self.username, self.password)

        self._client.reconnect_delay_set(min_delay=1, max_delay=30)

        logger.info("[MQTT] Connecting to %s:%d", self.broker_host, self.broker_port)
        self._client.connect_async(self.broker_host, self.broker_port, keepalive=60)
        self._client.loop_start()

        if self._connected.wait(wait_seconds):
            return True

        logger.error("[MQTT] Connection timeout, retrying in background")
        return False

    def disconnect(self):
        """Desconecta del broker."""
        if self._client:
            try:
                self._client.disconnect()
                self._client.loop_stop()
            except Exception as e:
                logger.warning("[MQTT] Disconnect error: %s", e)
        self._connected.clear()

    def publish(self, topic: str, payload: bytes, qos: Optional[int] = None, timeout: float = 5.0) -> None:
        """Publica un mensaje y espera la confirmación del broker.

        Raises:
            PublishError: sin conexión, rechazo del cliente o timeout
        """
        if self._client is None or not self._connected.is_set():
            raise PublishError("MQTT client is not connected")

        info = self._client.publish(topic, payload, qos=self.qos if qos is None else qos)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            raise PublishError(f"Publish rejected: {mqtt.error_string(info.rc)}")

        try:
            info.wait_for_publish(timeout=timeout)
        except (RuntimeError, ValueError) as e:
            raise PublishError(f"Publish failed: {e}") from e

        if not info.is_published():
            raise PublishError(f"Publish not acknowledged within {timeout}s")

    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        """Callback de conexión."""
        if reason_code == 0:
            self._connected.set()
            logger.info("[MQTT] Connected to broker")
            for topic in self.topics:
                client.subscribe(topic, qos=self.qos)
                logger.info("[MQTT] Subscribed to %s", topic)
        else:
            self._connected.clear()
            logger.error("[MQTT] Connection failed: rc=%s", reason_code)

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None):
        """Callback de desconexión."""
        self._connected.clear()
        logger.warning("[MQTT] Disconnected (rc=%s)", reason_code)

    def _on_message(self, client, userdata, msg):
        """Callback de mensaje - delega al handler."""
        if self._message_handler:
            self._message_handler(msg.topic, msg.payload)

    @property
    def is_connected(self) -> bool:
        return self._connected.is_set()
