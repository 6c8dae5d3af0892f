"""Utility helpers shared by pipeline stages."""

import time
from typing import Optional


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    """Clamp a value into [low, high]."""
    return max(low, min(high, value))


def truncate_text(text: Optional[str], max_length: int) -> str:
    """Return at most ``max_length`` characters of text; None becomes an empty string."""
    if not text:
        return ""
    return text[:max_length] if max_length >= 0 else text


def collapse_whitespace(text: str) -> str:
    """Collapse runs of whitespace (including newlines) into single spaces."""
    return " ".join(text.split())


class Deadline:
    """Wall-clock budget for a pipeline run.

    A deadline of None never expires.
    """

    def __init__(self, seconds: Optional[float] = None) -> None:
        """Start the clock.

        Args:
            seconds: Budget in seconds, or None for no deadline.
        """
        self.seconds = seconds
        self.started = time.monotonic()

    def remaining(self) -> Optional[float]:
        """Seconds left, never negative, or None without a deadline."""
        if self.seconds is None:
            return None
        return max(0.0, self.seconds - (time.monotonic() - self.started))

    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0
