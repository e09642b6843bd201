from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .core.domain.reading import Reading
from .core.domain.records import Command, Failure
from .core.storage import ChannelStats, ChartBucket

NOT_AVAILABLE = "N/A"


def _as_utc(value: datetime) -> datetime:
    # Stored timestamps are naive UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReadingOut(ApiModel):
    id: Optional[int] = None
    timestamp: datetime
    temperature: List[float] = Field(default_factory=list)
    humidity: List[float] = Field(default_factory=list)
    light: List[float] = Field(default_factory=list)
    gas: List[float] = Field(default_factory=list)
    current: List[float] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, reading: Reading) -> "ReadingOut":
        return cls(
            id=reading.id,
            timestamp=_as_utc(reading.timestamp),
            temperature=list(reading.temperature),
            humidity=list(reading.humidity),
            light=list(reading.light),
            gas=list(reading.gas),
            current=list(reading.current),
        )


class ChannelStatsOut(ApiModel):
    min_value: Union[float, str]
    max_value: Union[float, str]
    avg_value: Union[float, str]
    sample_count: int = 0

    @classmethod
    def from_domain(cls, stats: Optional[ChannelStats]) -> "ChannelStatsOut":
        if stats is None:
            return cls(
                min_value=NOT_AVAILABLE,
                max_value=NOT_AVAILABLE,
                avg_value=NOT_AVAILABLE,
                sample_count=0,
            )
        return cls(
            min_value=stats.min_value,
            max_value=stats.max_value,
            avg_value=stats.avg_value,
            sample_count=stats.sample_count,
        )


class ChartBucketOut(ApiModel):
    bucket_start: datetime
    bucket_end: datetime
    averages: List[Optional[float]]
    reading_count: int

    @classmethod
    def from_domain(cls, bucket: ChartBucket) -> "ChartBucketOut":
        return cls(
            bucket_start=_as_utc(bucket.bucket_start),
            bucket_end=_as_utc(bucket.bucket_end),
            averages=list(bucket.averages),
            reading_count=bucket.reading_count,
        )


class FailureOut(ApiModel):
    id: int
    sensor_type: str
    sensor_index: str
    message: str
    resolved: bool
    timestamp: datetime

    @classmethod
    def from_domain(cls, failure: Failure) -> "FailureOut":
        return cls(
            id=failure.id,
            sensor_type=failure.sensor_type,
            sensor_index=failure.sensor_index,
            message=failure.message,
            resolved=failure.resolved,
            timestamp=_as_utc(failure.timestamp),
        )


class ResolveOut(ApiModel):
    message: str
    already_resolved: bool
    failure: FailureOut


class CommandIn(ApiModel):
    actuator_type: str = Field(..., min_length=1, max_length=64)
    index: int = Field(..., ge=1)
    level: str = Field(..., min_length=1, max_length=64)

    @field_validator("actuator_type", "level")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class CommandUserOut(ApiModel):
    id: Optional[str] = None
    email: Optional[str] = None


class CommandOut(ApiModel):
    id: int
    user: CommandUserOut
    actuator_type: str
    actuator_index: int
    level: str
    timestamp: datetime

    @classmethod
    def from_domain(cls, command: Command) -> "CommandOut":
        return cls(
            id=command.id,
            user=CommandUserOut(id=command.user.id, email=command.user.email),
            actuator_type=command.actuator_type,
            actuator_index=command.actuator_index,
            level=command.level,
            timestamp=_as_utc(command.timestamp),
        )


class CommandSentOut(ApiModel):
    message: str
    topic: str
    command: Optional[CommandOut] = None


class SearchOut(ApiModel):
    failures: List[FailureOut] = Field(default_factory=list)
    commands: List[CommandOut] = Field(default_factory=list)
