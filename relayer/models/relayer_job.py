"""
RelayerJob model.

One outstanding charge obligation for a subscription.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from relayer.models.base import Base, new_uuid
from relayer.models.enums import RelayerJobStatus
from relayer.models.types import ID_LENGTH


if TYPE_CHECKING:
    from relayer.models.subscription import Subscription


class RelayerJob(Base):
    """
    Charge job.

    PENDING jobs are eligible once next_retry_at <= now and no live claim
    exists. SUCCESS and FAILED are terminal.
    """

    __tablename__ = "relayer_jobs"
    __table_args__ = (
        Index("ix_relayer_jobs_status_next_retry_at", "status", "next_retry_at"),
    )

    id: Mapped[str] = mapped_column(
        String(ID_LENGTH), primary_key=True, default=new_uuid
    )
    subscription_id: Mapped[str] = mapped_column(
        ForeignKey("subscriptions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=RelayerJobStatus.PENDING,
        comment="PENDING, SUCCESS, FAILED",
    )
    retry_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    next_retry_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    executed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # In-progress marker
    claimed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    claim_token: Mapped[str | None] = mapped_column(
        String(ID_LENGTH), nullable=True
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

    subscription: Mapped["Subscription"] = relationship(
        "Subscription", back_populates="relayer_jobs"
    )

    def __repr__(self) -> str:
        return (
            f"<RelayerJob(id={self.id}, status={self.status}, "
            f"retry_count={self.retry_count})>"
        )
