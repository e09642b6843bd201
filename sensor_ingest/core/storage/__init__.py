"""Persistencia: lecturas, fallas y comandos."""

from .bucketing import ChannelStats, ChartBucket
from .command_log import CommandLog
from .failure_ledger import FailureLedger, ResolveResult
from .reading_store import DEFAULT_BUCKET_COUNT, DEFAULT_LATEST_LIMIT, ReadingStore
from .schema import ensure_schema, metadata

__all__ = [
    "ChannelStats",
    "ChartBucket",
    "CommandLog",
    "FailureLedger",
    "ResolveResult",
    "DEFAULT_BUCKET_COUNT",
    "DEFAULT_LATEST_LIMIT",
    "ReadingStore",
    "ensure_schema",
    "metadata",
]
