# services/jquants/auth.py
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import httpx

from utils.common_helpers import safe_json

logger = logging.getLogger(__name__)

ID_TOKEN_LIFETIME = timedelta(hours=24)
REFRESH_MARGIN = timedelta(hours=1)


class JQuantsServiceError(Exception):
    """Domain-level error for the J-Quants client."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JQuantsTokenCache:
    """
    Holds the J-Quants id token used as the bearer for quote requests.

    The token is reused until it is within REFRESH_MARGIN of expiring. Refresh
    runs under a lock, so concurrent callers that find a stale token wait for
    a single refresh instead of each logging in again.
    """

    def __init__(
        self,
        base_url: str,
        username: Optional[str],
        password: Optional[str],
        *,
        timeout: float = 10.0,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.base_url = base_url.rstrip("/")
        self.username = username
        self.password = password
        self.timeout = timeout
        self._clock = clock
        self._id_token: Optional[str] = None
        self._expires_at: Optional[datetime] = None
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def _client(self, client: Optional[httpx.AsyncClient] = None):
        if client is not None:
            yield client
            return
        async with httpx.AsyncClient(timeout=self.timeout) as c:
            yield c

    def is_valid(self) -> bool:
        if not self._id_token or self._expires_at is None:
            return False
        return self._expires_at > self._clock() + REFRESH_MARGIN

    def invalidate(self) -> None:
        self._id_token = None
        self._expires_at = None

    async def get_id_token(self, client: Optional[httpx.AsyncClient] = None) -> str:
        if self.is_valid():
            return self._id_token  # type: ignore[return-value]

        async with self._lock:
            # another caller may have refreshed while we waited
            if self.is_valid():
                return self._id_token  # type: ignore[return-value]
            return await self._refresh(client)

    async def _get_refresh_token(self, c: httpx.AsyncClient) -> str:
        if not self.username or not self.password:
            raise JQuantsServiceError("JQUANTS_USERNAME or JQUANTS_PASSWORD is not set")

        logger.info("Requesting J-Quants refresh token")
        r = await c.post(
            f"{self.base_url}/token/auth_user",
            json={"mailaddress": self.username, "password": self.password},
        )
        try:
            r.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise JQuantsServiceError(f"J-Quants auth_user failed: {e.response.status_code}") from e

        data = safe_json(r) or {}
        refresh_token = data.get("refreshToken")
        if not refresh_token:
            raise JQuantsServiceError("Refresh token not found in response")
        return str(refresh_token)

    async def _refresh(self, client: Optional[httpx.AsyncClient]) -> str:
        async with self._client(client) as c:
            refresh_token = await self._get_refresh_token(c)

            logger.info("Refreshing J-Quants id token")
            r = await c.post(
                f"{self.base_url}/token/auth_refresh",
                params={"refreshtoken": refresh_token},
            )
            try:
                r.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise JQuantsServiceError(f"J-Quants auth_refresh failed: {e.response.status_code}") from e

            data = safe_json(r) or {}
            id_token = data.get("idToken")
            if not id_token:
                raise JQuantsServiceError("Id token not found in response")

        self._id_token = str(id_token)
        self._expires_at = self._clock() + ID_TOKEN_LIFETIME
        return self._id_token
