"""Visitor-side client: cooldown guard and API client."""

from rewards.client.cooldown import (
    COOLDOWN_WINDOW_MS,
    CooldownGuard,
    CooldownStatus,
    InMemoryMarkStore,
    IpResolver,
    MarkStore,
)
from rewards.client.visitor import VisitorClient

__all__ = [
    "COOLDOWN_WINDOW_MS",
    "CooldownGuard",
    "CooldownStatus",
    "InMemoryMarkStore",
    "IpResolver",
    "MarkStore",
    "VisitorClient",
]
