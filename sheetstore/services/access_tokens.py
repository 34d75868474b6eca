"""
Access token cache with single-flight refresh.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Tuple

from sheetstore.core.errors import AuthenticationError

logger = logging.getLogger(__name__)


class AssertionSource(Protocol):
    def sign(self) -> str: ...


class TokenExchanger(Protocol):
    async def exchange_assertion(self, assertion: str) -> Tuple[str, int]: ...


@dataclass(frozen=True)
class CachedToken:
    """Bearer token together with the instant it stops being served."""

    value: str
    expires_at: float

    def is_fresh(self, now: float) -> bool:
        return now < self.expires_at


class AccessTokenManager:
    """Hands out bearer tokens, redeeming a new assertion only when required.

    Concurrent callers that find no usable token share one exchange: the first
    caller starts it and everyone else awaits the same task.
    """

    def __init__(
        self,
        signer: AssertionSource,
        exchanger: TokenExchanger,
        *,
        safety_margin_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._signer = signer
        self._exchanger = exchanger
        self._margin = safety_margin_seconds
        self._clock = clock
        self._token: Optional[CachedToken] = None
        self._inflight: Optional[asyncio.Task[CachedToken]] = None

    @property
    def cached_token(self) -> Optional[CachedToken]:
        return self._token

    async def get_access_token(self) -> str:
        """Return a bearer token that is still inside its validity window."""
        token = self._token
        if token is not None and token.is_fresh(self._clock()):
            return token.value

        # No await between the check and the assignment, so only one task is
        # ever created per refresh on the event loop.
        if self._inflight is None:
            self._inflight = asyncio.ensure_future(self._refresh())
            self._inflight.add_done_callback(_collect_outcome)
        inflight = self._inflight

        cached = await asyncio.shield(inflight)
        return cached.value

    def invalidate(self) -> None:
        """Forget the cached token, e.g. after the API rejected it."""
        if self._token is not None:
            logger.info("Discarding cached access token.")
        self._token = None

    async def _refresh(self) -> CachedToken:
        try:
            logger.info("Requesting a new access token.")
            assertion = self._signer.sign()
            started = self._clock()
            value, expires_in = await self._exchanger.exchange_assertion(assertion)
            cached = CachedToken(
                value=value,
                expires_at=started + expires_in - self._margin,
            )
            self._token = cached
            logger.info("Access token refreshed; valid for %ss.", expires_in)
            return cached
        except AuthenticationError:
            logger.exception("Access token refresh failed.")
            raise
        finally:
            self._inflight = None


def _collect_outcome(task: "asyncio.Task[CachedToken]") -> None:
    # Mark the failure as retrieved even when every waiter was cancelled.
    if not task.cancelled():
        task.exception()


__all__ = ["AccessTokenManager", "AssertionSource", "CachedToken", "TokenExchanger"]
