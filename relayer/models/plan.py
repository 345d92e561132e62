"""
Plan and PlanToken models.

A plan defines the billing period; each PlanToken defines the price
in one accepted token. Both are read-only for the processor.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from relayer.models.base import Base, new_uuid
from relayer.models.enums import PlanStatus
from relayer.models.types import ADDRESS_LENGTH, ID_LENGTH, MoneyType


class Plan(Base):
    """
    Billing plan.

    Charges are due every ``period_seconds``; funds go to
    ``receiver_wallet``.
    """

    __tablename__ = "plans"
    __table_args__ = (
        CheckConstraint(
            "period_seconds IS NULL OR period_seconds > 0",
            name="check_plan_period_positive",
        ),
    )

    id: Mapped[str] = mapped_column(
        String(ID_LENGTH), primary_key=True, default=new_uuid
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    receiver_wallet: Mapped[str] = mapped_column(
        String(ADDRESS_LENGTH), nullable=False
    )
    is_recurring: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    period_seconds: Mapped[int | None] = mapped_column(
        Integer, nullable=True, comment="Billing period; NULL for one-time plans"
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PlanStatus.ACTIVE
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    plan_tokens: Mapped[list["PlanToken"]] = relationship(
        "PlanToken", back_populates="plan", lazy="selectin"
    )

    def __repr__(self) -> str:
        return f"<Plan(id={self.id}, period={self.period_seconds}s)>"


class PlanToken(Base):
    """Price of a plan in one accepted token."""

    __tablename__ = "plan_tokens"
    __table_args__ = (
        UniqueConstraint("plan_id", "token_mint", name="uq_plan_tokens_plan_mint"),
        CheckConstraint("price > 0", name="check_plan_token_price_positive"),
    )

    id: Mapped[str] = mapped_column(
        String(ID_LENGTH), primary_key=True, default=new_uuid
    )
    plan_id: Mapped[str] = mapped_column(
        ForeignKey("plans.id", ondelete="CASCADE"), nullable=False, index=True
    )
    symbol: Mapped[str] = mapped_column(String(20), nullable=False)
    token_mint: Mapped[str] = mapped_column(
        String(ADDRESS_LENGTH), nullable=False
    )
    decimals: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)

    plan: Mapped["Plan"] = relationship("Plan", back_populates="plan_tokens")

    def __repr__(self) -> str:
        return (
            f"<PlanToken(plan_id={self.plan_id}, symbol={self.symbol}, "
            f"price={self.price})>"
        )
