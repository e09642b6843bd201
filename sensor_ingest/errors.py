"""Error taxonomy for the ingestion and command paths.

Ingestion errors (DecodeError, StoreError, DetectorError) are contained by
the message handler: they are logged and the message is dropped or
partially processed. Command path errors (PublishError, NotFoundError)
propagate to the API layer.
"""

from __future__ import annotations


class IngestError(Exception):
    """Base class for every error raised by the service."""


class DecodeError(IngestError):
    """Malformed or unrecognized payload."""

    def __init__(self, message: str, payload: bytes | str | None = None):
        super().__init__(message)
        self.payload = payload


class StoreError(IngestError):
    """Persistence layer unavailable or write rejected."""


class DetectorError(IngestError):
    """Failure ledger write failed while handling a zero-streak trip."""

    def __init__(self, sensor_type: str, sensor_index: str, cause: Exception):
        super().__init__(f"Failure write failed for {sensor_type}/{sensor_index}: {cause}")
        self.sensor_type = sensor_type
        self.sensor_index = sensor_index
        self.cause = cause


class PublishError(IngestError):
    """Transport failure while sending a control command."""


class NotFoundError(IngestError):
    """Referenced record does not exist."""
