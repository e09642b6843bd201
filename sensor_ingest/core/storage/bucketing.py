"""Agregaciones en memoria sobre ventanas de lecturas.

Bucket boundaries follow the data distribution: each bucket holds about
``n / bucket_count`` readings, and readings that share a timestamp always
land in the same bucket.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

import pandas as pd

Sample = Tuple[datetime, Sequence[float]]


@dataclass(frozen=True)
class ChannelStats:
    """min/max/avg over every device sample in a window."""
    min_value: float
    max_value: float
    avg_value: float
    sample_count: int


@dataclass(frozen=True)
class ChartBucket:
    """Per-device averages for one time bucket.

    ``averages[i]`` is the mean of device ``i + 1``; None when that device
    contributed no samples to the bucket.
    """
    bucket_start: datetime
    bucket_end: datetime
    averages: List[Optional[float]] = field(default_factory=list)
    reading_count: int = 0


def channel_stats(samples: Sequence[Sample]) -> Optional[ChannelStats]:
    """Flattens every device sample as a peer observation. None if empty."""
    values = pd.Series([v for _, devices in samples for v in devices], dtype="float64")
    if values.empty:
        return None
    return ChannelStats(
        min_value=float(values.min()),
        max_value=float(values.max()),
        avg_value=float(values.mean()),
        sample_count=int(values.size),
    )


def _device_frame(samples: Sequence[Sample]) -> pd.DataFrame:
    # Una fila por lectura, una columna por dispositivo; NaN donde falta
    return pd.DataFrame([list(devices) for _, devices in samples], dtype="float64")


def _boundaries(samples: Sequence[Sample], bucket_count: int) -> List[Tuple[int, int]]:
    n = len(samples)
    bounds: List[Tuple[int, int]] = []
    start = 0
    for k in range(1, bucket_count + 1):
        if start >= n:
            break
        end = n if k == bucket_count else max(start + 1, (k * n) // bucket_count)
        end = min(end, n)
        # No partir lecturas con el mismo timestamp entre buckets
        while end < n and samples[end][0] == samples[end - 1][0]:
            end += 1
        bounds.append((start, end))
        start = end
    return bounds


def auto_buckets(samples: Sequence[Sample], bucket_count: int) -> List[ChartBucket]:
    """Partitions time-ordered samples into about ``bucket_count`` buckets."""
    if not samples or bucket_count < 1:
        return []

    frame = _device_frame(samples)
    bounds = _boundaries(samples, bucket_count)

    buckets: List[ChartBucket] = []
    for i, (start, end) in enumerate(bounds):
        means = frame.iloc[start:end].mean(axis=0, skipna=True)
        bucket_end = samples[bounds[i + 1][0]][0] if i + 1 < len(bounds) else samples[end - 1][0]
        buckets.append(
            ChartBucket(
                bucket_start=samples[start][0],
                bucket_end=bucket_end,
                averages=[None if pd.isna(v) else float(v) for v in means],
                reading_count=end - start,
            )
        )
    return buckets
