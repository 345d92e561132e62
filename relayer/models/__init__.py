"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from relayer.models.base import Base
from relayer.models.enums import (
    PaymentExecutionStatus,
    PlanStatus,
    RelayerJobStatus,
    SubscriptionStatus,
)
from relayer.models.payer import Payer
from relayer.models.payment_execution import PaymentExecution
from relayer.models.plan import Plan, PlanToken
from relayer.models.relayer_job import RelayerJob
from relayer.models.subscription import Subscription

__all__ = [
    # Base
    "Base",
    # Enums
    "PaymentExecutionStatus",
    "PlanStatus",
    "RelayerJobStatus",
    "SubscriptionStatus",
    # Billing catalogue (read-only for the processor)
    "Payer",
    "Plan",
    "PlanToken",
    "Subscription",
    # Processor-owned
    "RelayerJob",
    "PaymentExecution",
]
