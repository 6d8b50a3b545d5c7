"""Offer model.

A business-created, quantity- and time-limited reward. Stock lives in
`remaining_quantity` and is only ever decreased, by the claim path, through a
single conditional UPDATE (see rewards.stores.offers.decrement_if_available).
"""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import CheckConstraint, DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from rewards.stores.postgres import Base


def generate_offer_id() -> str:
    """Generate unique offer ID."""
    return uuid4().hex


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from SQLite."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Offer(Base):
    """Redeemable offer created by a business."""

    __tablename__ = "offers"
    __table_args__ = (
        CheckConstraint("remaining_quantity >= 0", name="ck_offers_remaining_non_negative"),
        CheckConstraint("units_consumed >= 0", name="ck_offers_consumed_non_negative"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    # Public offer ID (used in URLs and claim ids)
    offer_id: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        index=True,
        default=generate_offer_id,
    )

    # Stock
    initial_quantity: Mapped[int] = mapped_column()
    remaining_quantity: Mapped[int] = mapped_column(index=True)
    units_consumed: Mapped[int] = mapped_column(default=0)

    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)

    # Free-form address; the zip code is extracted heuristically
    location_text: Mapped[str] = mapped_column(String(500), default="")

    # Display payload (opaque to allocation)
    title: Mapped[str] = mapped_column(String(200))
    subtitle: Mapped[str | None] = mapped_column(Text)
    logo_key: Mapped[str | None] = mapped_column(String(500))
    address_url: Mapped[str | None] = mapped_column(Text)
    business_id: Mapped[str | None] = mapped_column(String(100), index=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    def is_expired(self, now: datetime) -> bool:
        return now >= as_utc(self.expires_at)

    def is_claimable(self, now: datetime) -> bool:
        return self.remaining_quantity > 0 and not self.is_expired(now)

    def __repr__(self) -> str:
        return f"<Offer {self.offer_id} qty={self.remaining_quantity}>"
