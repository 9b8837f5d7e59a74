import os
import unittest
from types import SimpleNamespace

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from fastapi.testclient import TestClient

from database import Base, engine
from main import app
from middleware.rate_limit import limiter
from services.auth import get_current_user
from services.jquants.client import get_jquants_client


class _FakeJQuants:
    def __init__(self, prices):
        self.prices = prices

    async def get_daily_quotes(self, code, date_from, date_to, client=None):
        price = self.prices.get(code)
        if price is None:
            return []
        return [{
            "Date": "2024-03-08",
            "Open": price - 10,
            "High": price + 5,
            "Low": price - 15,
            "Close": price,
            "MorningClose": price,
            "AfternoonClose": price,
            "Volume": 1200000,
        }]


PAIR_BODY = {
    "name": "Toyota / Honda",
    "buyShares": 100,
    "buyPrice": 1000,
    "sellShares": 50,
    "sellPrice": 2000,
    "buyStockCode": "7203",
    "sellStockCode": "7267",
}


def _reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    limiter.reset()


class TestAuthRoutes(unittest.TestCase):
    def setUp(self):
        _reset_db()
        app.dependency_overrides.clear()
        self.client = TestClient(app)

    def test_register_login_me_logout(self):
        r = self.client.post(
            "/api/auth/register",
            json={"email": "Trader@Example.com", "password": "hunter22", "name": "Trader"},
        )
        self.assertEqual(r.status_code, 201)
        self.assertEqual(r.json()["user"]["email"], "trader@example.com")
        self.assertIn("auth-token", r.cookies)

        r = self.client.get("/api/auth/me")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["user"]["name"], "Trader")

        self.client.post("/api/auth/logout")
        self.client.cookies.clear()
        r = self.client.get("/api/auth/me")
        self.assertEqual(r.status_code, 401)
        self.assertEqual(r.json(), {"error": "Not authenticated"})

        r = self.client.post("/api/auth/login", json={"email": "trader@example.com", "password": "hunter22"})
        self.assertEqual(r.status_code, 200)
        token = r.cookies.get("auth-token")
        self.client.cookies.clear()

        r = self.client.get("/api/companies", headers={"Authorization": f"Bearer {token}"})
        self.assertEqual(r.status_code, 200)

    def test_duplicate_email(self):
        body = {"email": "a@example.com", "password": "hunter22"}
        self.assertEqual(self.client.post("/api/auth/register", json=body).status_code, 201)
        r = self.client.post("/api/auth/register", json=body)
        self.assertEqual(r.status_code, 409)
        self.assertIn("error", r.json())

    def test_wrong_password(self):
        self.client.post("/api/auth/register", json={"email": "a@example.com", "password": "hunter22"})
        self.client.cookies.clear()
        r = self.client.post("/api/auth/login", json={"email": "a@example.com", "password": "wrong-one"})
        self.assertEqual(r.status_code, 401)

    def test_short_password(self):
        r = self.client.post("/api/auth/register", json={"email": "a@example.com", "password": "abc"})
        self.assertEqual(r.status_code, 400)

    def test_request_id_echoed(self):
        r = self.client.get("/api/auth/me", headers={"X-Request-ID": "trace-123"})
        self.assertEqual(r.headers["X-Request-ID"], "trace-123")
        self.assertTrue(self.client.get("/api/auth/me").headers["X-Request-ID"])

    def test_unexpected_error_keeps_request_id(self):
        def _boom():
            raise RuntimeError("session store down")

        app.dependency_overrides[get_current_user] = _boom
        try:
            client = TestClient(app, raise_server_exceptions=False)
            r = client.get("/api/companies", headers={"X-Request-ID": "trace-9"})
        finally:
            app.dependency_overrides.clear()

        self.assertEqual(r.status_code, 500)
        self.assertEqual(r.json(), {"error": "Internal server error"})
        self.assertEqual(r.headers.get("X-Request-ID"), "trace-9")

    def test_data_routes_require_auth(self):
        for path in ("/api/companies", "/api/pairs", "/api/stock-price?code=7203"):
            with self.subTest(path=path):
                r = self.client.get(path)
                self.assertEqual(r.status_code, 401)
                self.assertIn("error", r.json())


class _ApiTestCase(unittest.TestCase):
    prices = {"7203": 1100.0, "7267": 1900.0}

    def setUp(self):
        _reset_db()
        self.jquants = _FakeJQuants(self.prices)
        app.dependency_overrides[get_current_user] = lambda: SimpleNamespace(id=1, email="t@example.com")
        app.dependency_overrides[get_jquants_client] = lambda: self.jquants
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()

    def _company(self, name="Alpha Capital"):
        r = self.client.post("/api/companies", json={"name": name})
        self.assertEqual(r.status_code, 201)
        return r.json()

    def _pair(self, company_id, **overrides):
        body = dict(PAIR_BODY)
        body.update(overrides)
        r = self.client.post(f"/api/companies/{company_id}/pairs", json=body)
        self.assertEqual(r.status_code, 201, r.text)
        return r.json()


class TestCompanyRoutes(_ApiTestCase):
    def test_crud(self):
        company = self._company()
        self.assertEqual(company["name"], "Alpha Capital")

        r = self.client.put(f"/api/companies/{company['id']}", json={"name": "Beta Capital"})
        self.assertEqual(r.json()["name"], "Beta Capital")

        r = self.client.get(f"/api/companies/{company['id']}")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["pairs"], [])
        self.assertEqual(r.json()["assets"], [])

        r = self.client.delete(f"/api/companies/{company['id']}")
        self.assertEqual(r.json(), {"success": True})
        r = self.client.get(f"/api/companies/{company['id']}")
        self.assertEqual(r.status_code, 404)
        self.assertEqual(r.json(), {"error": "Company not found"})

    def test_blank_name_rejected(self):
        r = self.client.post("/api/companies", json={"name": "   "})
        self.assertEqual(r.status_code, 400)
        self.assertIn("error", r.json())

    def test_pagination_and_totals(self):
        first = self._company("A")
        self._company("B")
        self._company("C")
        self._pair(first["id"])
        self.client.post(f"/api/companies/{first['id']}/calculate-profit-loss")

        r = self.client.get("/api/companies", params={"page": 1, "limit": 2})
        body = r.json()
        self.assertEqual([c["name"] for c in body["companies"]], ["A", "B"])
        self.assertEqual(body["companies"][0]["totalProfitLoss"], 15000.0)
        self.assertEqual(body["pagination"]["totalPages"], 2)
        self.assertTrue(body["pagination"]["hasNext"])
        self.assertFalse(body["pagination"]["hasPrev"])

    def test_assets(self):
        company = self._company()
        r = self.client.post(
            f"/api/companies/{company['id']}/assets",
            json={"name": "Operating cash", "type": "cash", "amount": 1000000},
        )
        self.assertEqual(r.status_code, 201)
        asset = r.json()
        self.assertEqual(asset["unit"], "円")

        r = self.client.put(
            f"/api/assets/{asset['id']}",
            json={"name": "Operating cash", "type": "deposit", "amount": 5, "unit": "USD"},
        )
        self.assertEqual(r.json()["type"], "deposit")

        r = self.client.post(
            f"/api/companies/{company['id']}/assets",
            json={"name": "Gold", "type": "metal", "amount": 1},
        )
        self.assertEqual(r.status_code, 400)

        self.assertEqual(self.client.delete(f"/api/assets/{asset['id']}").json(), {"success": True})
        self.assertEqual(self.client.get(f"/api/assets/{asset['id']}").status_code, 404)

    def test_assets_of_unknown_company(self):
        self.assertEqual(self.client.get("/api/companies/999/assets").status_code, 404)


class TestPairRoutes(_ApiTestCase):
    def test_create_and_settle(self):
        company = self._company()
        pair = self._pair(company["id"])
        self.assertFalse(pair["isSettled"])
        self.assertEqual(pair["buyStockCode"], "7203")

        r = self.client.post(f"/api/pairs/{pair['id']}/settle")
        self.assertEqual(r.status_code, 200)
        self.assertTrue(r.json()["isSettled"])
        self.assertIsNotNone(r.json()["settledAt"])

        r = self.client.post(f"/api/pairs/{pair['id']}/settle")
        self.assertEqual(r.status_code, 409)
        self.assertEqual(r.json(), {"error": "Pair is already settled"})

    def test_blank_codes_stored_as_null(self):
        company = self._company()
        pair = self._pair(company["id"], buyStockCode="", sellStockCode="  ")
        self.assertIsNone(pair["buyStockCode"])
        self.assertIsNone(pair["sellStockCode"])

    def test_negative_shares_rejected(self):
        company = self._company()
        r = self.client.post(f"/api/companies/{company['id']}/pairs", json={**PAIR_BODY, "buyShares": -1})
        self.assertEqual(r.status_code, 400)

    def test_trading_history(self):
        company = self._company()
        open_pair = self._pair(company["id"], name="open")
        closed = self._pair(company["id"], name="closed")
        self.client.post(f"/api/pairs/{closed['id']}/settle")

        r = self.client.get("/api/pairs", params={"status": "settled", "companyId": company["id"]})
        self.assertEqual([p["id"] for p in r.json()], [closed["id"]])
        self.assertEqual(r.json()[0]["company"]["name"], "Alpha Capital")

        r = self.client.get("/api/pairs", params={"status": "active"})
        self.assertEqual([p["id"] for p in r.json()], [open_pair["id"]])

        self.assertEqual(self.client.get("/api/pairs", params={"status": "bogus"}).status_code, 400)

    def test_edit_settled_pair_recomputes(self):
        company = self._company()
        pair = self._pair(company["id"])
        self.client.post(f"/api/pairs/{pair['id']}/settle")
        r = self.client.put(
            f"/api/pairs/{pair['id']}",
            json={**PAIR_BODY, "currentBuyPrice": 1100, "currentSellPrice": 1900},
        )
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["profitLoss"], 15000.0)

    def test_delete(self):
        company = self._company()
        pair = self._pair(company["id"])
        self.assertEqual(self.client.delete(f"/api/pairs/{pair['id']}").json(), {"success": True})
        self.assertEqual(self.client.get(f"/api/pairs/{pair['id']}").status_code, 404)


class TestPricingRoutes(_ApiTestCase):
    def test_stock_price(self):
        r = self.client.get("/api/stock-price", params={"code": "7203"})
        self.assertEqual(r.status_code, 200)
        body = r.json()
        self.assertEqual(body["code"], "7203")
        self.assertEqual(body["price"], 1100.0)

    def test_stock_price_requires_code(self):
        r = self.client.get("/api/stock-price")
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json(), {"error": "Stock code is required"})

    def test_stock_price_unknown_code(self):
        r = self.client.get("/api/stock-price", params={"code": "0000"})
        self.assertEqual(r.status_code, 404)

    def test_bulk_recalculation(self):
        company = self._company()
        pair = self._pair(company["id"])
        settled = self._pair(company["id"])
        self.client.post(f"/api/pairs/{settled['id']}/settle")

        r = self.client.post("/api/calculate-profit-loss")
        body = r.json()
        self.assertEqual(r.status_code, 200)
        self.assertNotIn("companyId", body)
        self.assertEqual(body["totalProcessed"], 1)
        self.assertEqual(body["successCount"], 1)
        self.assertEqual(body["results"][0]["pairId"], pair["id"])
        self.assertEqual(body["results"][0]["profitLoss"], 15000.0)

        r = self.client.get("/api/calculate-profit-loss")
        companies = r.json()["companies"]
        self.assertEqual(len(companies), 1)
        self.assertEqual(companies[0]["totalProfitLoss"], 15000.0)

    def test_company_recalculation(self):
        company = self._company()
        self._pair(company["id"])
        r = self.client.post(f"/api/companies/{company['id']}/calculate-profit-loss")
        self.assertEqual(r.json()["companyId"], company["id"])
        self.assertEqual(r.json()["successCount"], 1)

        r = self.client.get(f"/api/companies/{company['id']}/calculate-profit-loss")
        self.assertEqual(r.json()["totalProfitLoss"], 15000.0)

    def test_duplicate_pairs(self):
        company = self._company()
        self._pair(company["id"])
        self._pair(company["id"], buyStockCode="7267", sellStockCode="7203")
        r = self.client.get("/api/duplicate-pairs")
        self.assertEqual(r.status_code, 200)
        groups = r.json()["duplicatePairGroups"]
        self.assertEqual(len(groups), 1)
        self.assertEqual(groups[0]["stockCodes"], {"buyStockCode": "7203", "sellStockCode": "7267"})
        self.assertEqual(len(groups[0]["pairs"]), 2)


if __name__ == "__main__":
    unittest.main()
