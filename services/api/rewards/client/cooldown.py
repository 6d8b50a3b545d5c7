"""Visitor-side cooldown guard.

After a successful claim the visitor's client stores the claim time locally.
On the next visit, if less than the cooldown window has passed, the client
shows "please wait" and does not ask the API for an offer at all.

Marks are keyed by the visitor's public IP when an IP lookup succeeds
(`rewardClaimedAt:{ip}`), else by a single local fallback key
(`rewardClaimedAt`). Reads check the IP key first and then the fallback key,
so marks written while the lookup was failing still count.

This is advisory: the visitor owns the storage and can clear it. The server
has its own optional throttle (rewards.services.claims).
"""

import logging
import time
from dataclasses import dataclass
from typing import Protocol

import httpx

from rewards.settings import get_settings

logger = logging.getLogger("uvicorn.error")

COOLDOWN_WINDOW_MS = 900_000  # 15 minutes
STORAGE_KEY_PREFIX = "rewardClaimedAt:"
FALLBACK_STORAGE_KEY = "rewardClaimedAt"


def now_ms() -> int:
    return int(time.time() * 1000)


class MarkStore(Protocol):
    """Client-local key/value storage (browser localStorage, a file, ...)."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class InMemoryMarkStore:
    """MarkStore kept in a dict."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class IpResolver:
    """Best-effort public IP lookup.

    Expects `GET url` -> 200, JSON content-type, body `{"ip": "..."}`.
    Any other outcome (timeout, network error, status, content-type, body)
    resolves to None.
    """

    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        settings = get_settings()
        self.url = url or settings.ip_lookup_url
        self.timeout = timeout if timeout is not None else settings.ip_lookup_timeout_seconds
        self._http_client = http_client

    async def resolve(self) -> str | None:
        try:
            if self._http_client is not None:
                resp = await self._http_client.get(self.url, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    resp = await client.get(self.url)
        except httpx.HTTPError as e:
            logger.warning(f"IP lookup failed ({type(e).__name__}), using fallback cooldown key")
            return None

        if resp.status_code != 200:
            logger.warning(f"IP lookup returned {resp.status_code}, using fallback cooldown key")
            return None
        content_type = resp.headers.get("content-type", "").lower()
        if "application/json" not in content_type:
            logger.warning(f"IP lookup returned {content_type or 'no content-type'}, using fallback cooldown key")
            return None

        try:
            data = resp.json()
        except ValueError:
            logger.warning("IP lookup returned invalid JSON, using fallback cooldown key")
            return None

        ip = data.get("ip") if isinstance(data, dict) else None
        if not isinstance(ip, str) or not ip.strip():
            return None
        return ip.strip()


@dataclass(frozen=True)
class CooldownStatus:
    active: bool
    remaining_ms: int
    visitor_key: str


class CooldownGuard:
    """Decides whether a visitor may be shown a new offer."""

    def __init__(
        self,
        store: MarkStore,
        resolver: IpResolver | None = None,
        window_ms: int = COOLDOWN_WINDOW_MS,
    ):
        self.store = store
        self.resolver = resolver or IpResolver()
        self.window_ms = window_ms
        self._resolved = False
        self._ip: str | None = None

    @classmethod
    def from_settings(cls, store: MarkStore, resolver: IpResolver | None = None) -> "CooldownGuard":
        return cls(store, resolver, window_ms=get_settings().cooldown_window_ms)

    async def _visitor_ip(self) -> str | None:
        # One lookup per page visit; check() and record_claim() share it.
        if not self._resolved:
            self._ip = await self.resolver.resolve()
            self._resolved = True
        return self._ip

    async def visitor_key(self) -> str:
        ip = await self._visitor_ip()
        return f"{STORAGE_KEY_PREFIX}{ip}" if ip else FALLBACK_STORAGE_KEY

    async def check(self, now: int | None = None) -> CooldownStatus:
        """Check the visitor's last claim mark against the window.

        Args:
            now: Current time in epoch milliseconds.
        """
        now = now_ms() if now is None else now
        key = await self.visitor_key()

        raw = self.store.get(key)
        if raw is None and key != FALLBACK_STORAGE_KEY:
            raw = self.store.get(FALLBACK_STORAGE_KEY)

        marked_at = _parse_mark(raw)
        if marked_at is None:
            return CooldownStatus(active=False, remaining_ms=0, visitor_key=key)

        remaining = self.window_ms - (now - marked_at)
        if remaining > 0:
            return CooldownStatus(active=True, remaining_ms=remaining, visitor_key=key)
        return CooldownStatus(active=False, remaining_ms=0, visitor_key=key)

    async def record_claim(self, now: int | None = None) -> str:
        """Store the claim time under the IP key (or the fallback key).

        Returns:
            The key the mark was written under.
        """
        now = now_ms() if now is None else now
        key = await self.visitor_key()
        self.store.set(key, str(now))
        return key


def _parse_mark(raw: str | None) -> int | None:
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring unreadable cooldown mark {raw!r}")
        return None
