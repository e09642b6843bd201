"""Retry con backoff exponencial.

Bounded retries for persistence writes: a store that stays unavailable
must surface an error instead of blocking the subscriber.
"""

from __future__ import annotations

import logging
import random
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryConfig:
    """Configuración para retry con backoff."""

    max_attempts: int = 3
    base_delay: float = 0.5  # segundos
    max_delay: float = 5.0  # segundos
    exponential_base: float = 2.0
    jitter: bool = True  # Añadir variación aleatoria
    retryable_exceptions: Tuple[Type[Exception], ...] = (Exception,)

    def calculate_delay(self, attempt: int) -> float:
        """Calcula el delay para un intento dado (1-indexed)."""
        delay = self.base_delay * (self.exponential_base ** (attempt - 1))
        delay = min(delay, self.max_delay)

        if self.jitter:
            # Añadir jitter de ±25%
            jitter_range = delay * 0.25
            delay += random.uniform(-jitter_range, jitter_range)

        return max(0, delay)


class RetryExecutor:
    """Ejecutor de operaciones con retry."""

    def __init__(
        self,
        config: Optional[RetryConfig] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._config = config or RetryConfig()
        self._sleep = sleep
        self._lock = threading.Lock()
        self._total_attempts = 0
        self._total_retries = 0
        self._total_failures = 0

    @property
    def config(self) -> RetryConfig:
        return self._config

    @property
    def stats(self) -> dict:
        """Estadísticas del ejecutor."""
        with self._lock:
            return {
                "total_attempts": self._total_attempts,
                "total_retries": self._total_retries,
                "total_failures": self._total_failures,
            }

    def execute(self, func: Callable[..., T], *args, **kwargs) -> T:
        """Ejecuta una función con retry.

        Raises:
            La última excepción si se agotan los reintentos
        """
        name = getattr(func, "__name__", repr(func))

        for attempt in range(1, self._config.max_attempts + 1):
            with self._lock:
                self._total_attempts += 1

            try:
                return func(*args, **kwargs)

            except self._config.retryable_exceptions as e:
                if attempt == self._config.max_attempts:
                    with self._lock:
                        self._total_failures += 1
                    logger.error(
                        "RETRY_EXHAUSTED func=%s attempts=%d err=%s",
                        name, attempt, e,
                    )
                    raise

                delay = self._config.calculate_delay(attempt)
                with self._lock:
                    self._total_retries += 1
                logger.warning(
                    "RETRY func=%s attempt=%d/%d delay=%.2fs err=%s",
                    name, attempt, self._config.max_attempts, delay, e,
                )
                self._sleep(delay)

        raise RuntimeError("Retry loop completed without result")
