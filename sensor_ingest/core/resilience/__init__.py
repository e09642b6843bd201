"""Módulo de resiliencia para el pipeline de ingesta."""

from .retry import RetryConfig, RetryExecutor

__all__ = ["RetryConfig", "RetryExecutor"]
