"""
Status constants for billing models.

Plain string constants, stored as VARCHAR.
"""


class SubscriptionStatus:
    """Subscription status constants."""

    ACTIVE = "ACTIVE"
    CANCELLED = "CANCELLED"  # By the payer through the API, never by the processor
    EXPIRED = "EXPIRED"  # A charge job exhausted its retries


class RelayerJobStatus:
    """Relayer job status constants."""

    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class PaymentExecutionStatus:
    """Ledger entry status constants."""

    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class PlanStatus:
    """Plan status constants."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
