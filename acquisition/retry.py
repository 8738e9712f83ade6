"""
Retry pacing for failed page fetches.
"""

from dataclasses import dataclass

from config.settings import Config


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    backoff_seconds: float = 2.0
    backoff_factor: float = 1.0
    max_backoff_seconds: float = 30.0

    @classmethod
    def from_config(cls, config: Config) -> "RetryPolicy":
        return cls(
            max_attempts=config.max_consecutive_errors,
            backoff_seconds=config.retry_backoff_seconds,
            backoff_factor=config.retry_backoff_factor,
            max_backoff_seconds=config.max_backoff_seconds,
        )

    def exhausted(self, consecutive_errors: int) -> bool:
        return consecutive_errors >= self.max_attempts

    def delay(self, attempt: int) -> float:
        """Pause before retry number `attempt` (1-based)."""
        delay = self.backoff_seconds * (self.backoff_factor ** max(0, attempt - 1))
        return max(0.0, min(delay, self.max_backoff_seconds))
