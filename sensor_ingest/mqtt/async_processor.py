"""Async processor: desacopla el callback de paho de la escritura en BD.

The paho network thread only decodes and enqueues; worker threads run the
store write. Zero-streak detection runs after the write, in the order the
readings were enqueued, whatever order the writes finish in. The bounded
queue provides backpressure: when full, the reading is dropped and counted.

Feature flag: INGEST_ASYNC_PROCESSING (default True).
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Dict, Optional

from ..common.config import Settings
from ..core.domain.reading import Reading
from ..core.pipeline import IngestionPipeline, ProcessResult

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 1000
DEFAULT_NUM_WORKERS = 2


class AsyncReadingProcessor:
    """Queue + ThreadPool wrapper for IngestionPipeline.

    - paho callback -> enqueue() tags the reading with a sequence number
    - Worker threads -> store() blocks on the store
    - Finished writes wait in a reorder buffer until every earlier
      reading is done, then go through detect() one at a time
    - Bounded queue provides backpressure
    """

    def __init__(
        self,
        pipeline: IngestionPipeline,
        max_queue_size: int = DEFAULT_QUEUE_SIZE,
        num_workers: int = DEFAULT_NUM_WORKERS,
    ):
        self._pipeline = pipeline
        self._queue: queue.Queue = queue.Queue(maxsize=max_queue_size)
        self._num_workers = max(1, num_workers)
        self._stop_event = threading.Event()

        # Orden de llegada
        self._seq_lock = threading.Lock()
        self._next_seq = 0
        self._detect_lock = threading.Lock()
        self._next_detect = 0
        self._pending: Dict[int, Optional[ProcessResult]] = {}

        # Metrics
        self._enqueued = 0
        self._dropped = 0
        self._processed = 0
        self._errors = 0
        self._lock = threading.Lock()

        self._workers: list[threading.Thread] = []

    def start(self) -> None:
        """Start worker threads."""
        self._stop_event.clear()
        for i in range(self._num_workers):
            t = threading.Thread(
                target=self._worker_loop,
                args=(i,),
                daemon=True,
                name=f"ingest-worker-{i}",
            )
            t.start()
            self._workers.append(t)
        logger.info(
            "[ASYNC_PROC] Started workers=%d queue_max=%d",
            self._num_workers, self._queue.maxsize,
        )

    def stop(self, drain: bool = True) -> None:
        """Stop workers. If drain=True, process remaining items first."""
        if drain:
            self._queue.join()
        self._stop_event.set()
        for t in self._workers:
            t.join(timeout=5.0)
        self._workers.clear()
        logger.info("[ASYNC_PROC] Stopped. %s", self.metrics)

    def enqueue(self, reading: Reading) -> bool:
        """Enqueue a reading for async processing. Returns False if full."""
        with self._seq_lock:
            try:
                self._queue.put_nowait((self._next_seq, reading))
            except queue.Full:
                with self._lock:
                    self._dropped += 1
                logger.warning(
                    "[ASYNC_PROC] Queue full, dropped reading timestamp=%s",
                    reading.timestamp.isoformat(),
                )
                return False
            self._next_seq += 1

        with self._lock:
            self._enqueued += 1
        return True

    def _worker_loop(self, worker_id: int) -> None:
        while not self._stop_event.is_set():
            try:
                seq, reading = self._queue.get(timeout=1.0)
            except queue.Empty:
                continue

            result = None
            try:
                result = self._pipeline.store(reading)
                with self._lock:
                    self._processed += 1
            except Exception as e:
                with self._lock:
                    self._errors += 1
                logger.exception("[ASYNC_PROC] Worker %d error: %s", worker_id, e)
            finally:
                self._release(seq, result)
                self._queue.task_done()

    def _release(self, seq: int, result: Optional[ProcessResult]) -> None:
        """Hands finished writes to the detector in sequence order.

        A None result marks a reading whose write raised; it only advances
        the sequence.
        """
        with self._detect_lock:
            self._pending[seq] = result
            while self._next_detect in self._pending:
                ready = self._pending.pop(self._next_detect)
                self._next_detect += 1
                if ready is None:
                    continue
                try:
                    self._pipeline.detect(ready)
                except Exception as e:
                    with self._lock:
                        self._errors += 1
                    logger.exception("[ASYNC_PROC] Detection error: %s", e)

    @property
    def metrics(self) -> dict:
        with self._lock:
            return {
                "queue_depth": self._queue.qsize(),
                "queue_max": self._queue.maxsize,
                "workers": self._num_workers,
                "enqueued": self._enqueued,
                "dropped": self._dropped,
                "processed": self._processed,
                "errors": self._errors,
                "awaiting_detection": len(self._pending),
            }


def create_async_processor(
    pipeline: IngestionPipeline,
    settings: Settings,
) -> Optional[AsyncReadingProcessor]:
    """Factory: create and start an AsyncReadingProcessor from settings.

    Returns None if INGEST_ASYNC_PROCESSING is disabled.
    """
    if not settings.async_processing:
        logger.info("[ASYNC_PROC] Disabled by INGEST_ASYNC_PROCESSING=false")
        return None

    ap = AsyncReadingProcessor(
        pipeline=pipeline,
        max_queue_size=settings.queue_size,
        num_workers=settings.num_workers,
    )
    ap.start()
    return ap
