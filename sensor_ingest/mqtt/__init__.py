"""Transporte MQTT: recepción de lecturas y envío de comandos.

Estructura modular:
- client.py: Cliente paho compartido (suscripción + publicación)
- message_handler.py: Decodificación y despacho de mensajes
- async_processor.py: Cola acotada + workers para la escritura en BD
- receiver.py: Receptor MQTT principal
- command_publisher.py: Publicación y auditoría de comandos
"""

from .async_processor import AsyncReadingProcessor, create_async_processor
from .client import MQTTClient
from .command_publisher import CommandPublisher, CommandResult, encode_command
from .message_handler import MessageHandler
from .receiver import MQTTReceiver

__all__ = [
    "AsyncReadingProcessor",
    "create_async_processor",
    "MQTTClient",
    "CommandPublisher",
    "CommandResult",
    "encode_command",
    "MessageHandler",
    "MQTTReceiver",
]
