"""
Charge Processor - Statistics Module.

Counters emitted at the end of an invocation.
"""

from dataclasses import asdict, dataclass

from .types import JobOutcome


@dataclass
class BatchSummary:
    """Per-invocation counters."""

    processed: int = 0
    succeeded: int = 0
    retried: int = 0
    failed: int = 0
    skipped: int = 0
    errored: int = 0

    def record(self, outcome: JobOutcome) -> None:
        """Count a job outcome."""
        if outcome is JobOutcome.SKIPPED:
            self.skipped += 1
            return

        self.processed += 1
        if outcome is JobOutcome.SUCCEEDED:
            self.succeeded += 1
        elif outcome is JobOutcome.RETRIED:
            self.retried += 1
        elif outcome is JobOutcome.FAILED:
            self.failed += 1

    def record_error(self) -> None:
        """Count a job aborted by a persistence or unexpected error."""
        self.processed += 1
        self.errored += 1

    def as_dict(self) -> dict[str, int]:
        return asdict(self)

    def __str__(self) -> str:
        return (
            f"Processed: {self.processed} | Success: {self.succeeded} | "
            f"Retry: {self.retried} | Failed: {self.failed} | "
            f"Skipped: {self.skipped} | Errored: {self.errored}"
        )
