from .zero_streak import StreakState, Trip, TripOutcome, ZeroStreakDetector

__all__ = ["StreakState", "Trip", "TripOutcome", "ZeroStreakDetector"]
