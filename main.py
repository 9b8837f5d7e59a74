# main.py
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import settings
from config.logging_config import configure_logging
from middleware.rate_limit import limiter
from middleware.request_logging import REQUEST_ID_HEADER, RequestLoggingMiddleware
from routers.asset_routes import router as asset_router
from routers.auth_routes import router as auth_router
from routers.company_routes import router as company_router
from routers.pair_routes import router as pair_router
from routers.profit_loss_routes import router as profit_loss_router
from routers.stock_price_routes import router as stock_price_router
from services.errors import (
    DuplicateEmailError,
    NotFoundError,
    PairAlreadySettledError,
    PairTradeError,
    ValidationError,
)

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Pair Trade API")

app.state.limiter = limiter

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

# ─── Error bodies are always {"error": "<message>"} ─────────────────

_DOMAIN_STATUS = {
    NotFoundError: 404,
    ValidationError: 400,
    PairAlreadySettledError: 409,
    DuplicateEmailError: 409,
}


def _error(status_code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return _error(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        loc = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
        message = f"{loc}: {first.get('msg')}" if loc else str(first.get("msg"))
    else:
        message = "Invalid request"
    return _error(400, message)


@app.exception_handler(PairTradeError)
async def domain_exception_handler(request: Request, exc: PairTradeError):
    status_code = next((code for cls, code in _DOMAIN_STATUS.items() if isinstance(exc, cls)), 400)
    return _error(status_code, str(exc))


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return _error(429, f"Rate limit exceeded: {exc.detail}")


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    request_id = getattr(request.state, "request_id", None)
    logger.exception(
        "Unhandled error path=%s", request.scope.get("path", ""),
        extra={"request_id": request_id},
    )
    headers = {REQUEST_ID_HEADER: request_id} if request_id else None
    return _error(500, "Internal server error", headers)


# Include routers
app.include_router(auth_router, prefix="/api/auth")
app.include_router(company_router, prefix="/api/companies")
app.include_router(pair_router, prefix="/api/pairs")
app.include_router(asset_router, prefix="/api/assets")
app.include_router(profit_loss_router, prefix="/api")
app.include_router(stock_price_router, prefix="/api")

# db startup
from database import Base, engine
import models  # registers every table on Base.metadata

Base.metadata.create_all(bind=engine)
