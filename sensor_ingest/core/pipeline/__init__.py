"""Pipeline layer - Decodificación, persistencia y detección."""

from .processor import IngestionPipeline, ProcessResult

__all__ = ["IngestionPipeline", "ProcessResult"]
