"""
Retry Scheduler.

Pure backoff decision, no I/O. Consulted after an attempt has failed:
the delay before attempt n+1 is ``base_delay * 2^n`` where n counts the
attempts made so far, including the failed one. With a 1 minute base
and 5 attempts: 2, 4, 8, 16 minutes, then terminal.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta


@dataclass(frozen=True)
class RetryPolicy:
    """Backoff policy passed explicitly into ``decide``."""

    max_attempts: int
    base_delay: timedelta

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay <= timedelta(0):
            raise ValueError("base_delay must be positive")

    def delay_for(self, retry_count: int) -> timedelta:
        """Delay before the next attempt after ``retry_count`` attempts."""
        return self.base_delay * (2 ** retry_count)


@dataclass(frozen=True)
class Retry:
    next_retry_at: datetime
    delay: timedelta


@dataclass(frozen=True)
class Terminal:
    attempts: int


RetryDecision = Retry | Terminal


def decide(
    retry_count_after_this_attempt: int,
    policy: RetryPolicy,
    now: datetime,
) -> RetryDecision:
    """
    Decide whether a failed job gets another attempt.

    Args:
        retry_count_after_this_attempt: Attempts made so far, including
            the one that just failed (>= 1)
        policy: Backoff policy
        now: Time the attempt failed

    Returns:
        Retry with the earliest time for the next attempt, or Terminal
        once ``max_attempts`` attempts have been made
    """
    if retry_count_after_this_attempt < 1:
        raise ValueError("retry_count_after_this_attempt must be at least 1")

    if retry_count_after_this_attempt >= policy.max_attempts:
        return Terminal(attempts=retry_count_after_this_attempt)

    delay = policy.delay_for(retry_count_after_this_attempt)
    return Retry(next_retry_at=now + delay, delay=delay)
