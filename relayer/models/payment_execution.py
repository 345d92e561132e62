"""
PaymentExecution model.

Append-only ledger of charge attempts.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from relayer.models.base import Base, new_uuid
from relayer.models.types import (
    ADDRESS_LENGTH,
    ID_LENGTH,
    SIGNATURE_LENGTH,
    MoneyType,
)


class PaymentExecution(Base):
    """
    Ledger entry for one attempted charge.

    Rows are never updated. One row per (relayer_job_id, attempt);
    one SUCCESS row per transaction signature. Failed attempts carry
    the sentinel signature "FAILED".
    """

    __tablename__ = "payment_executions"
    __table_args__ = (
        UniqueConstraint(
            "relayer_job_id", "attempt", name="uq_payment_executions_job_attempt"
        ),
        Index(
            "uq_payment_executions_success_signature",
            "tx_signature",
            unique=True,
            postgresql_where=text("status = 'SUCCESS'"),
            sqlite_where=text("status = 'SUCCESS'"),
        ),
    )

    id: Mapped[str] = mapped_column(
        String(ID_LENGTH), primary_key=True, default=new_uuid
    )
    plan_id: Mapped[str] = mapped_column(
        ForeignKey("plans.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    subscription_id: Mapped[str | None] = mapped_column(
        ForeignKey("subscriptions.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        comment="NULL for one-time payments",
    )
    relayer_job_id: Mapped[str | None] = mapped_column(
        ForeignKey("relayer_jobs.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    attempt: Mapped[int | None] = mapped_column(
        Integer, nullable=True, comment="1-based attempt number of the job"
    )

    tx_signature: Mapped[str] = mapped_column(
        String(SIGNATURE_LENGTH), nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, comment="SUCCESS, FAILED"
    )
    amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    token_mint: Mapped[str] = mapped_column(
        String(ADDRESS_LENGTH), nullable=False
    )
    executed_by: Mapped[str | None] = mapped_column(
        String(ADDRESS_LENGTH), nullable=True
    )
    executed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<PaymentExecution(id={self.id}, status={self.status}, "
            f"tx={self.tx_signature})>"
        )
