"""Retry policy for submissions whose content has not arrived yet."""

import math
from dataclasses import dataclass

from post_oracle.core.config import Settings


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential backoff with an optional attempt cap.

    Attributes:
        base_delay: Delay before the first retry in seconds
        backoff_factor: Multiplier applied per attempt
        max_delay: Upper bound on any single delay
        max_attempts: Pipeline attempts allowed in total; 0 means unbounded
    """

    base_delay: float = 3.0
    backoff_factor: float = 1.5
    max_delay: float = 60.0
    max_attempts: int = 20

    def __post_init__(self) -> None:
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("Retry delays must be non-negative")
        if self.backoff_factor < 1:
            raise ValueError("backoff_factor must be at least 1")
        if self.max_attempts < 0:
            raise ValueError("max_attempts must be non-negative")

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetryPolicy":
        return cls(
            base_delay=settings.CONTENT_RETRY_DELAY,
            backoff_factor=settings.CONTENT_RETRY_BACKOFF,
            max_delay=settings.CONTENT_RETRY_MAX_DELAY,
            max_attempts=settings.CONTENT_RETRY_MAX_ATTEMPTS,
        )

    @property
    def unbounded(self) -> bool:
        return self.max_attempts == 0

    def delay(self, attempt: int) -> float:
        """Delay after the given failed attempt (1-based).

        Args:
            attempt: Number of attempts made so far

        Returns:
            Seconds to wait before the next attempt
        """
        exponent = max(attempt - 1, 0)
        try:
            delay = self.base_delay * (self.backoff_factor**exponent)
        except OverflowError:
            # Past float range; only the cap matters from here on
            delay = math.inf if self.base_delay else 0.0
        return min(delay, self.max_delay)

    def should_retry(self, attempt: int) -> bool:
        """Whether another attempt is allowed after ``attempt`` attempts."""
        return self.unbounded or attempt < self.max_attempts
