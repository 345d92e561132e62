"""
Exception handling utilities.

Defines the charge processor's error taxonomy and the categories
used to decide how a failure is handled.
"""


class ChargeProcessingError(Exception):
    """Base class for charge processor errors."""
    pass


class ConfigurationError(ChargeProcessingError):
    """
    Subscription data cannot be charged as configured.

    Raised when the subscription's token has no matching PlanToken.
    Retrying cannot fix it, so it never consumes a retry slot.
    """
    pass


class ChainExecutionError(ChargeProcessingError):
    """
    The chain adapter failed, reverted or timed out.

    Args:
        message: Human-readable cause
        tx_signature: Signature if a transaction was broadcast before failing
    """

    def __init__(self, message: str, tx_signature: str | None = None) -> None:
        super().__init__(message)
        self.tx_signature = tx_signature


class PersistenceError(ChargeProcessingError):
    """A ledger, subscription or job write failed."""
    pass


class DuplicateExecutionError(PersistenceError):
    """A SUCCESS ledger entry for the same signature already exists."""

    def __init__(self, tx_signature: str) -> None:
        super().__init__(
            f"Transaction {tx_signature} already recorded as SUCCESS"
        )
        self.tx_signature = tx_signature


class FatalProcessError(ChargeProcessingError):
    """The invocation cannot run at all (e.g. store unreachable)."""
    pass


# Abort the job without recording an outcome; the batch continues
JOB_FATAL_ERRORS = (
    PersistenceError,
)
