"""Claim model.

One visitor's reservation of one unit of an offer's stock. Offer content is
copied onto the claim so the reward page can render it without the offer.

State only moves CLAIMED -> REDEEMED.
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from rewards.stores.postgres import Base


class ClaimState(Enum):
    """Claim lifecycle state."""

    CLAIMED = "CLAIMED"
    REDEEMED = "REDEEMED"


class Claim(Base):
    """Claimed reward awaiting (or after) in-store redemption."""

    __tablename__ = "claims"

    id: Mapped[int] = mapped_column(primary_key=True)

    # "{offer_id}-{claimed_at_ms}-{unit}"
    claim_id: Mapped[str] = mapped_column(String(200), unique=True, index=True)

    offer_id: Mapped[str] = mapped_column(ForeignKey("offers.offer_id"), index=True)

    # Delivery destination (email or phone), not validated beyond presence
    contact_handle: Mapped[str] = mapped_column(String(320))
    delivery_method: Mapped[str | None] = mapped_column(String(16))

    state: Mapped[ClaimState] = mapped_column(
        SAEnum(ClaimState, name="claim_state"),
        default=ClaimState.CLAIMED,
        index=True,
    )
    claimed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    redeemed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Denormalized offer content
    title: Mapped[str] = mapped_column(String(200))
    subtitle: Mapped[str | None] = mapped_column(Text)
    logo_key: Mapped[str | None] = mapped_column(String(500))
    address_url: Mapped[str | None] = mapped_column(Text)
    location_text: Mapped[str] = mapped_column(String(500), default="")
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    business_id: Mapped[str | None] = mapped_column(String(100))

    def __repr__(self) -> str:
        return f"<Claim {self.claim_id} ({self.state.value})>"
