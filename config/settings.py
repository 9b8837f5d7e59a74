# config/settings.py
"""
Environment-driven settings shared by the services.

Values are read once at import time (after load_dotenv), so tests that need
different values should patch the module attributes rather than os.environ.
"""
import os

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "y", "on")


# ─── J-Quants (daily quotes provider) ──────────────────────────────
JQUANTS_USERNAME = os.getenv("JQUANTS_USERNAME")
JQUANTS_PASSWORD = os.getenv("JQUANTS_PASSWORD")
JQUANTS_BASE_URL = os.getenv("JQUANTS_BASE_URL", "https://api.jquants.com/v1").rstrip("/")
JQUANTS_TIMEOUT_SEC = float(os.getenv("JQUANTS_TIMEOUT_SEC", "10"))

# ─── Pricing ───────────────────────────────────────────────────────
MARKET_TIMEZONE = os.getenv("MARKET_TIMEZONE", "Asia/Tokyo")
PRICE_LOOKBACK_DAYS = int(os.getenv("PRICE_LOOKBACK_DAYS", "7"))
PRICE_FETCH_BATCH_SIZE = int(os.getenv("PRICE_FETCH_BATCH_SIZE", "10"))

# ─── Auth ──────────────────────────────────────────────────────────
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me-in-prod")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 7)))
AUTH_COOKIE_NAME = os.getenv("AUTH_COOKIE_NAME", "auth-token")
AUTH_COOKIE_SECURE = _env_bool("AUTH_COOKIE_SECURE", False)

# ─── HTTP ──────────────────────────────────────────────────────────
CORS_ALLOW_ORIGINS = [
    o.strip()
    for o in os.getenv("CORS_ALLOW_ORIGINS", "http://localhost:3000").split(",")
    if o.strip()
]
RATE_LIMIT_QUOTES = os.getenv("RATE_LIMIT_QUOTES", "30/minute")
