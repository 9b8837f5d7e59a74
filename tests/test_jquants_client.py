import asyncio
import os
import unittest
from datetime import datetime, timedelta, timezone

import httpx

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from services.jquants.auth import JQuantsServiceError, JQuantsTokenCache
from services.jquants.client import JQuantsClient

BASE_URL = "https://jquants.test/v1"


class _Clock:
    def __init__(self):
        self.now = datetime(2024, 3, 8, 0, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now


class _FakeJQuantsApi:
    """Counts token calls and serves daily quotes."""

    def __init__(self, quotes_status=200, quotes_body=None):
        self.auth_user_calls = 0
        self.auth_refresh_calls = 0
        self.quote_requests = []
        self.quotes_status = quotes_status
        self.quotes_body = quotes_body if quotes_body is not None else {
            "daily_quotes": [{"Date": "2024-03-08", "Close": 2500.0}]
        }

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.endswith("/token/auth_user"):
            self.auth_user_calls += 1
            return httpx.Response(200, json={"refreshToken": "refresh-1"})
        if path.endswith("/token/auth_refresh"):
            self.auth_refresh_calls += 1
            assert request.url.params["refreshtoken"] == "refresh-1"
            return httpx.Response(200, json={"idToken": f"id-{self.auth_refresh_calls}"})
        if path.endswith("/prices/daily_quotes"):
            self.quote_requests.append(request)
            return httpx.Response(self.quotes_status, json=self.quotes_body)
        return httpx.Response(404)


def _cache(clock=None, username="user@example.com", password="secret"):
    return JQuantsTokenCache(BASE_URL, username, password, clock=clock or _Clock())


class TestTokenCache(unittest.TestCase):
    def test_token_is_reused_while_valid(self):
        api = _FakeJQuantsApi()
        clock = _Clock()
        cache = _cache(clock)

        async def _run():
            async with httpx.AsyncClient(transport=httpx.MockTransport(api)) as client:
                first = await cache.get_id_token(client)
                clock.now += timedelta(hours=22)
                second = await cache.get_id_token(client)
                return first, second

        first, second = asyncio.run(_run())
        self.assertEqual(first, "id-1")
        self.assertEqual(second, "id-1")
        self.assertEqual(api.auth_user_calls, 1)

    def test_token_refreshed_inside_the_margin(self):
        api = _FakeJQuantsApi()
        clock = _Clock()
        cache = _cache(clock)

        async def _run():
            async with httpx.AsyncClient(transport=httpx.MockTransport(api)) as client:
                await cache.get_id_token(client)
                clock.now += timedelta(hours=23, minutes=30)
                return await cache.get_id_token(client)

        self.assertEqual(asyncio.run(_run()), "id-2")
        self.assertEqual(api.auth_refresh_calls, 2)

    def test_concurrent_callers_share_one_refresh(self):
        api = _FakeJQuantsApi()
        cache = _cache()

        async def _run():
            async with httpx.AsyncClient(transport=httpx.MockTransport(api)) as client:
                return await asyncio.gather(*(cache.get_id_token(client) for _ in range(5)))

        tokens = asyncio.run(_run())
        self.assertEqual(set(tokens), {"id-1"})
        self.assertEqual(api.auth_user_calls, 1)
        self.assertEqual(api.auth_refresh_calls, 1)

    def test_missing_credentials(self):
        cache = _cache(username=None, password=None)

        async def _run():
            async with httpx.AsyncClient(transport=httpx.MockTransport(_FakeJQuantsApi())) as client:
                await cache.get_id_token(client)

        with self.assertRaises(JQuantsServiceError):
            asyncio.run(_run())

    def test_missing_id_token_in_response(self):
        def handler(request):
            if request.url.path.endswith("/token/auth_user"):
                return httpx.Response(200, json={"refreshToken": "refresh-1"})
            return httpx.Response(200, json={})

        cache = _cache()

        async def _run():
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
                await cache.get_id_token(client)

        with self.assertRaises(JQuantsServiceError):
            asyncio.run(_run())
        self.assertFalse(cache.is_valid())


class TestDailyQuotes(unittest.TestCase):
    def _get_quotes(self, api, code="7203"):
        client = JQuantsClient(_cache())

        async def _run():
            async with httpx.AsyncClient(transport=httpx.MockTransport(api)) as http:
                return await client.get_daily_quotes(code, "2024-03-01", "2024-03-08", client=http)

        return client, asyncio.run(_run())

    def test_quotes_request_carries_bearer_and_window(self):
        api = _FakeJQuantsApi()
        _, quotes = self._get_quotes(api)
        self.assertEqual(quotes, [{"Date": "2024-03-08", "Close": 2500.0}])

        request = api.quote_requests[0]
        self.assertEqual(request.headers["Authorization"], "Bearer id-1")
        self.assertEqual(request.url.params["code"], "7203")
        self.assertEqual(request.url.params["from"], "2024-03-01")
        self.assertEqual(request.url.params["to"], "2024-03-08")

    def test_error_status_raises(self):
        with self.assertRaises(JQuantsServiceError):
            self._get_quotes(_FakeJQuantsApi(quotes_status=500))

    def test_body_without_quotes_raises(self):
        with self.assertRaises(JQuantsServiceError):
            self._get_quotes(_FakeJQuantsApi(quotes_body={"message": "nope"}))

    def test_unauthorized_drops_cached_token(self):
        api = _FakeJQuantsApi(quotes_status=401)
        client = JQuantsClient(_cache())

        async def _run():
            async with httpx.AsyncClient(transport=httpx.MockTransport(api)) as http:
                await client.get_daily_quotes("7203", "2024-03-01", "2024-03-08", client=http)

        with self.assertRaises(JQuantsServiceError):
            asyncio.run(_run())
        self.assertFalse(client.token_cache.is_valid())

    def test_validate_stock_code(self):
        def handler(request):
            if request.url.path.endswith("/token/auth_user"):
                return httpx.Response(200, json={"refreshToken": "refresh-1"})
            if request.url.path.endswith("/token/auth_refresh"):
                return httpx.Response(200, json={"idToken": "id-1"})
            if request.url.params["code"] == "7203":
                return httpx.Response(200, json={"info": [{"Code": "72030", "CompanyName": "TOYOTA"}]})
            if request.url.params["code"] == "0000":
                return httpx.Response(200, json={"info": []})
            return httpx.Response(400, json={"message": "bad code"})

        client = JQuantsClient(_cache())

        async def _run():
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
                return [await client.validate_stock_code(code, client=http) for code in ("7203", "0000", "x")]

        self.assertEqual(asyncio.run(_run()), [True, False, False])

    def test_blank_code_rejected(self):
        with self.assertRaises(JQuantsServiceError):
            self._get_quotes(_FakeJQuantsApi(), code="  ")


if __name__ == "__main__":
    unittest.main()
