# services/jquants/client.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

import httpx

from config import settings
from services.jquants.auth import JQuantsServiceError, JQuantsTokenCache
from utils.common_helpers import safe_json

logger = logging.getLogger(__name__)


class JQuantsClient:
    """
    Async client for the J-Quants daily quotes API.

    Quotes come back in ascending date order, one dict per trading day with
    Date, Open, High, Low, Close, MorningClose, AfternoonClose and Volume.
    """

    def __init__(self, token_cache: JQuantsTokenCache, timeout: float = 10.0):
        self.token_cache = token_cache
        self.base_url = token_cache.base_url
        self.timeout = timeout

    @asynccontextmanager
    async def _client(self, client: Optional[httpx.AsyncClient] = None):
        if client is not None:
            yield client
            return
        async with httpx.AsyncClient(timeout=self.timeout) as c:
            yield c

    async def _auth_headers(self, client: httpx.AsyncClient) -> Dict[str, str]:
        token = await self.token_cache.get_id_token(client)
        return {"Authorization": f"Bearer {token}"}

    async def get_daily_quotes(
        self,
        code: str,
        date_from: str,
        date_to: str,
        client: Optional[httpx.AsyncClient] = None,
    ) -> List[Dict[str, Any]]:
        """Raises JQuantsServiceError when the request fails or the body has no quotes list."""
        code = (code or "").strip()
        if not code:
            raise JQuantsServiceError("Missing stock code")

        logger.info("Fetching daily quotes code=%s from=%s to=%s", code, date_from, date_to)
        async with self._client(client) as c:
            r = await c.get(
                f"{self.base_url}/prices/daily_quotes",
                params={"code": code, "from": date_from, "to": date_to},
                headers=await self._auth_headers(c),
            )
            if r.status_code == 401:
                # token revoked early; next call logs in again
                self.token_cache.invalidate()
            try:
                r.raise_for_status()
            except httpx.HTTPStatusError as e:
                logger.warning("Daily quotes request failed code=%s status=%s", code, e.response.status_code)
                raise JQuantsServiceError(f"Failed to fetch daily quotes: {e.response.status_code}") from e

            data = safe_json(r) or {}
            quotes = data.get("daily_quotes")
            if not isinstance(quotes, list):
                raise JQuantsServiceError("Daily quotes not found in response")
            return quotes

    async def validate_stock_code(self, code: str, client: Optional[httpx.AsyncClient] = None) -> bool:
        async with self._client(client) as c:
            r = await c.get(
                f"{self.base_url}/listed/info",
                params={"code": code},
                headers=await self._auth_headers(c),
            )
            if r.is_error:
                return False
            data = safe_json(r) or {}
            return bool(data.get("info"))


_default_client: Optional[JQuantsClient] = None


def get_jquants_client() -> JQuantsClient:
    """Process-wide client; usable directly or as a FastAPI dependency."""
    global _default_client
    if _default_client is None:
        cache = JQuantsTokenCache(
            settings.JQUANTS_BASE_URL,
            settings.JQUANTS_USERNAME,
            settings.JQUANTS_PASSWORD,
            timeout=settings.JQUANTS_TIMEOUT_SEC,
        )
        _default_client = JQuantsClient(cache, timeout=settings.JQUANTS_TIMEOUT_SEC)
    return _default_client
