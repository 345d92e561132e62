"""
Subscription model.

Recurring billing agreement backed by an on-chain delegation.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from relayer.models.base import Base, new_uuid
from relayer.models.enums import SubscriptionStatus
from relayer.models.types import (
    ADDRESS_LENGTH,
    ID_LENGTH,
    SIGNATURE_LENGTH,
    MoneyType,
)


if TYPE_CHECKING:
    from relayer.models.payer import Payer
    from relayer.models.plan import Plan
    from relayer.models.relayer_job import RelayerJob


class Subscription(Base):
    """
    Recurring billing agreement.

    Lifecycle:
    - Created by the API once the payer approves the delegation on-chain
    - ACTIVE: charged every plan period, next_due_at advanced on success
    - EXPIRED: a charge job exhausted its retries (set by the processor)
    - CANCELLED: cancelled through the API (never set by the processor)
    """

    __tablename__ = "subscriptions"

    id: Mapped[str] = mapped_column(
        String(ID_LENGTH), primary_key=True, default=new_uuid
    )
    plan_id: Mapped[str] = mapped_column(
        ForeignKey("plans.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    payer_id: Mapped[str] = mapped_column(
        ForeignKey("payers.id", ondelete="RESTRICT"), nullable=False, index=True
    )

    # Chosen token
    token_mint: Mapped[str] = mapped_column(
        String(ADDRESS_LENGTH), nullable=False
    )
    token_decimals: Mapped[int] = mapped_column(Integer, nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=SubscriptionStatus.ACTIVE,
        index=True,
        comment="ACTIVE, CANCELLED, EXPIRED",
    )

    # Billing schedule
    next_due_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
    last_paid_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Delegation proof
    delegate_authority: Mapped[str] = mapped_column(
        String(ADDRESS_LENGTH), nullable=False,
        comment="Address allowed to move the payer's tokens",
    )
    delegate_approval_tx: Mapped[str] = mapped_column(
        String(SIGNATURE_LENGTH), nullable=False,
        comment="Transaction that approved the delegation",
    )
    delegate_approved_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    total_approved_amount: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False,
        comment="Amount pre-approved for the subscription lifetime",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    plan: Mapped["Plan"] = relationship("Plan")
    payer: Mapped["Payer"] = relationship("Payer", back_populates="subscriptions")
    relayer_jobs: Mapped[list["RelayerJob"]] = relationship(
        "RelayerJob", back_populates="subscription"
    )

    def __repr__(self) -> str:
        return (
            f"<Subscription(id={self.id}, status={self.status}, "
            f"next_due_at={self.next_due_at})>"
        )
