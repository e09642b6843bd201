from .normalizer import ReadingNormalizer

__all__ = ["ReadingNormalizer"]
