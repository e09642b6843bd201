"""Publicación de comandos de actuadores.

El comando se registra en el log de auditoría SOLO si el broker confirmó
la publicación.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

import orjson
from sqlalchemy.exc import SQLAlchemyError

from ..core.domain.records import Command, CommandUser
from ..core.resilience import RetryConfig, RetryExecutor
from ..core.storage import CommandLog
from ..errors import PublishError

logger = logging.getLogger(__name__)


class CommandTransport(Protocol):
    def publish(self, topic: str, payload: bytes, qos: Optional[int] = None, timeout: float = 5.0) -> None:
        ...


@dataclass(frozen=True)
class CommandResult:
    payload: bytes
    command: Optional[Command]

    @property
    def audited(self) -> bool:
        return self.command is not None


def encode_command(actuator_type: str, device_index: int, level: str) -> bytes:
    return orjson.dumps({"type": actuator_type, "index": device_index, "level": level})


class CommandPublisher:
    """Envía comandos al topic de control y los audita."""

    def __init__(
        self,
        transport: Optional[CommandTransport],
        command_log: CommandLog,
        topic: str,
        timeout: float = 5.0,
        retry: Optional[RetryExecutor] = None,
    ):
        self._transport = transport
        self._command_log = command_log
        self._topic = topic
        self._timeout = timeout
        self._retry = retry or RetryExecutor(
            RetryConfig(max_attempts=2, base_delay=0.2, retryable_exceptions=(SQLAlchemyError,))
        )

    @property
    def topic(self) -> str:
        return self._topic

    def publish(
        self,
        actuator_type: str,
        device_index: int,
        level: str,
        user: Optional[CommandUser] = None,
    ) -> CommandResult:
        """Publica un comando.

        Raises:
            PublishError: transporte no disponible o publicación fallida.
                Nothing is written to the audit log in that case.
        """
        if self._transport is None:
            raise PublishError("MQTT transport is not available")

        payload = encode_command(actuator_type, device_index, level)
        self._transport.publish(self._topic, payload, timeout=self._timeout)
        logger.info(
            "[COMMAND] Sent %s index=%d level=%s to %s",
            actuator_type, device_index, level, self._topic,
        )

        try:
            command = self._retry.execute(
                self._command_log.append, actuator_type, device_index, level, user
            )
        except SQLAlchemyError as e:
            # El comando ya salió; solo falla la auditoría
            logger.error("[COMMAND] Audit write failed after publish: %s", e)
            command = None

        return CommandResult(payload=payload, command=command)
