"""SQLAlchemy ORM models.

Models represent database tables:
- offers: Business-created rewards with remaining stock and expiry
- claims: Visitor claims against an offer, CLAIMED until redeemed in store
"""

from rewards.models.claim import Claim, ClaimState
from rewards.models.offer import Offer

__all__ = ["Claim", "ClaimState", "Offer"]
