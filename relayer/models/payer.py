"""
Payer model.

Wallet owner that approves delegated spending for subscriptions.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from relayer.models.base import Base, new_uuid
from relayer.models.types import ADDRESS_LENGTH, ID_LENGTH


if TYPE_CHECKING:
    from relayer.models.subscription import Subscription


class Payer(Base):
    """Subscriber wallet. Read-only for the processor."""

    __tablename__ = "payers"

    id: Mapped[str] = mapped_column(
        String(ID_LENGTH), primary_key=True, default=new_uuid
    )
    wallet_address: Mapped[str] = mapped_column(
        String(ADDRESS_LENGTH), nullable=False, unique=True, index=True
    )
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    subscriptions: Mapped[list["Subscription"]] = relationship(
        "Subscription", back_populates="payer"
    )

    def __repr__(self) -> str:
        return f"<Payer(id={self.id}, wallet={self.wallet_address})>"
