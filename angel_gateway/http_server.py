"""
HTTP gateway for the Angel One SmartAPI.
- Auth / refresh / logout: forwarded to Angel One, tokens kept per client
- Market data: LTP passthrough and a demo-mode options chain
"""
from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import BackgroundTasks, Depends, FastAPI, Header, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from angel_gateway.broker_client import LTP_TIMEOUT, AngelOneClient
from angel_gateway.config import settings
from angel_gateway.logging_config import get_http_server_logger
from angel_gateway.models import AuthRequest, LogoutRequest, LtpRequest, RefreshTokenRequest
from angel_gateway.options_chain import build_strike_quotes
from angel_gateway.session_store import InMemorySessionStore, SessionRecord, SessionStore
from angel_gateway.utils.errors import (
    AuthError,
    GatewayError,
    ValidationError,
    error_envelope,
    upstream_error,
)
from angel_gateway.utils.strikes import generate_strikes_around_price, parse_expiry
from angel_gateway.utils.symbols import get_symbol_token, strip_digits

logger = get_http_server_logger()

# Active sessions keyed by client id
session_store = InMemorySessionStore()

# Shared upstream client (created in lifespan, or lazily on first use)
broker_client: AngelOneClient | None = None


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def create_broker_client() -> AngelOneClient:
    return AngelOneClient(
        base_url=settings.angel_one_base_url,
        default_timeout=settings.upstream_timeout_seconds,
        rate_limit=settings.broker_rate_limit,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Owns the upstream HTTP client for the lifetime of the server."""
    global broker_client

    from angel_gateway.logging_config import initialize_gateway_loggers
    initialize_gateway_loggers()

    broker_client = create_broker_client()
    logger.info(f"Angel One gateway started (upstream {settings.angel_one_base_url}, environment {settings.environment})")

    yield

    # Cleanup on shutdown
    await broker_client.aclose()
    broker_client = None
    session_store.clear()


app = FastAPI(
    title=settings.api_title,
    description=settings.api_description,
    version=settings.api_version,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# DEPENDENCIES
# =============================================================================

def get_session_store() -> SessionStore:
    return session_store


def get_broker_client() -> AngelOneClient:
    global broker_client
    if broker_client is None:
        broker_client = create_broker_client()
    return broker_client


def get_bearer_token(authorization: str | None = Header(None)) -> str | None:
    """Bearer token from the Authorization header, if any."""
    value = (authorization or "").strip()
    if not value or value == "Bearer":
        return None
    token = value.replace("Bearer ", "", 1).strip()
    return token or None


def require_bearer_token(token: str | None = Depends(get_bearer_token)) -> str:
    if not token:
        raise AuthError("Authorization token required")
    return token


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(GatewayError)
async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_envelope())


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning(f"Invalid request body on {request.method} {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_envelope("Invalid request body")
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    content = error_envelope("Internal server error")
    if not settings.is_production:
        content["error"] = str(exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


# =============================================================================
# HEALTH
# =============================================================================

@app.get("/api/health", tags=["Health"])
async def health_check() -> dict[str, Any]:
    """Health check endpoint (no authentication required)."""
    return {
        "success": True,
        "message": "Angel One API Backend is running!",
        "timestamp": _now_iso()
    }


# =============================================================================
# SESSION ENDPOINTS
# =============================================================================

@app.post("/api/auth/angel-one", tags=["Auth"])
async def authenticate(
    request: Request,
    payload: AuthRequest | None = None,
    broker: AngelOneClient = Depends(get_broker_client),
    store: SessionStore = Depends(get_session_store)
) -> dict[str, Any]:
    """Log in to Angel One and remember the client's tokens."""
    payload = payload or AuthRequest()
    if payload.missing_fields():
        raise ValidationError("All fields are required: apiKey, clientId, password, totp")

    client_ip = request.client.host if request.client else None
    try:
        tokens = await broker.login(
            api_key=payload.apiKey,
            client_id=payload.clientId,
            password=payload.password,
            totp=payload.totp,
            client_ip=client_ip
        )
    except Exception as e:
        logger.error(f"Authentication error for client {payload.clientId}: {e}")
        raise upstream_error(e, "AUTH_FAILED", error_cls=AuthError, status_code=status.HTTP_400_BAD_REQUEST) from e

    store.put(payload.clientId, SessionRecord(
        client_id=payload.clientId,
        api_key=payload.apiKey,
        jwt_token=tokens.jwt_token,
        feed_token=tokens.feed_token,
        refresh_token=tokens.refresh_token or ""
    ))
    logger.info(f"Authentication successful for client {payload.clientId}")

    return {
        "success": True,
        "data": {
            "jwtToken": tokens.jwt_token,
            "feedToken": tokens.feed_token
        },
        "message": "Authentication successful"
    }


@app.post("/api/refresh-token", tags=["Auth"])
async def refresh_token(
    payload: RefreshTokenRequest | None = None,
    broker: AngelOneClient = Depends(get_broker_client),
    store: SessionStore = Depends(get_session_store)
) -> dict[str, Any]:
    """Exchange the refresh token for new jwt/feed tokens on a stored session."""
    payload = payload or RefreshTokenRequest()
    if not payload.clientId or not payload.refreshToken:
        raise ValidationError("All fields are required: clientId, refreshToken")

    session = store.get(payload.clientId)
    if session is None:
        raise AuthError("Session not found")

    try:
        tokens = await broker.refresh_tokens(session.api_key, payload.refreshToken)
    except Exception as e:
        logger.error(f"Token refresh error for client {payload.clientId}: {e}")
        raise upstream_error(e) from e

    # A logout during the upstream call wins
    session = store.update_tokens(payload.clientId, tokens.jwt_token, tokens.feed_token)
    if session is None:
        logger.warning(f"Session for client {payload.clientId} ended during token refresh")
        raise AuthError("Session not found")
    logger.info(f"Tokens refreshed for client {payload.clientId}")

    return {
        "success": True,
        "data": {
            "jwtToken": session.jwt_token,
            "feedToken": session.feed_token
        }
    }


@app.post("/api/logout", tags=["Auth"])
async def logout(
    background_tasks: BackgroundTasks,
    payload: LogoutRequest | None = None,
    auth_token: str | None = Depends(get_bearer_token),
    broker: AngelOneClient = Depends(get_broker_client),
    store: SessionStore = Depends(get_session_store)
) -> dict[str, Any]:
    """
    Drop the local session and log out upstream in the background.

    Always succeeds: the upstream call is detached and its outcome only logged.
    """
    client_id = payload.clientId if payload else None
    if client_id:
        store.delete(client_id)
        logger.info(f"Cleared session for client {client_id}")
    if auth_token:
        background_tasks.add_task(broker.logout_quietly, client_id, auth_token)

    return {"success": True, "message": "Logged out successfully"}


# =============================================================================
# MARKET DATA ENDPOINTS
# =============================================================================

@app.post("/api/ltp", tags=["Market Data"])
async def get_ltp(
    payload: LtpRequest | None = None,
    auth_token: str = Depends(require_bearer_token),
    broker: AngelOneClient = Depends(get_broker_client)
) -> dict[str, Any]:
    """Last traded price for a symbol (NIFTY, BANKNIFTY, FINNIFTY)."""
    payload = payload or LtpRequest()
    if not payload.symbol:
        raise ValidationError("Symbol is required")

    try:
        data = await broker.get_ltp(
            symbol=payload.symbol,
            symbol_token=get_symbol_token(strip_digits(payload.symbol)),
            auth_token=auth_token,
            exchange=payload.exchange or "NSE"
        )
    except Exception as e:
        logger.error(f"LTP fetch error for {payload.symbol}: {e}")
        raise upstream_error(e) from e

    return {"success": True, "data": data}


@app.get("/api/options/{symbol}", tags=["Market Data"])
async def get_options_chain(
    symbol: str,
    expiry: str | None = Query(None, description="Expiry date in YYYY-MM-DD format"),
    auth_token: str = Depends(require_bearer_token),
    broker: AngelOneClient = Depends(get_broker_client)
) -> dict[str, Any]:
    """
    Options chain around the underlying's current price.

    Strikes are derived from the live LTP; per-strike OI/LTP/volume are
    synthetic demo values and the payload is marked `synthetic`.
    """
    if not expiry:
        raise ValidationError("Expiry date is required")
    try:
        parse_expiry(expiry)
    except ValueError as e:
        raise ValidationError(str(e)) from e

    logger.info(f"Fetching options chain for {symbol} expiry: {expiry}")

    try:
        underlying = await broker.get_ltp(
            symbol=symbol,
            symbol_token=get_symbol_token(symbol),
            auth_token=auth_token,
            exchange="NSE",
            timeout=LTP_TIMEOUT
        )
        current_price = underlying.get("ltp") if isinstance(underlying, dict) else None
        strikes = generate_strikes_around_price(current_price, symbol)
    except Exception as e:
        logger.error(f"Options chain fetch error for {symbol}: {e}")
        raise upstream_error(e, "OPTIONS_FETCH_FAILED") from e

    quotes = await build_strike_quotes(strikes, symbol, expiry)

    return {
        "success": True,
        "data": {
            "currentPrice": current_price,
            "strikes": [quote.to_dict() for quote in quotes],
            "timestamp": _now_iso(),
            "symbol": symbol,
            "expiry": expiry,
            "synthetic": True
        }
    }


# =============================================================================
# STATIC FRONT-END
# =============================================================================

# Mounted last so the API routes above take precedence
if settings.static_dir.is_dir():
    app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="static")


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================

def main():
    """Run the HTTP gateway."""
    import uvicorn

    from angel_gateway.logging_config import initialize_gateway_loggers
    initialize_gateway_loggers()

    logger.info(f"Starting Angel One gateway on {settings.host}:{settings.port}")
    logger.info(f"Health check: http://localhost:{settings.port}/api/health")
    logger.info(f"Environment: {settings.environment}")

    if __name__ == "__main__":
        uvicorn.run(
            app,
            host=settings.host,
            port=settings.port,
            reload=False,
            log_level=settings.log_level
        )
    else:
        uvicorn.run(
            "angel_gateway.http_server:app",
            host=settings.host,
            port=settings.port,
            reload=settings.reload,
            log_level=settings.log_level
        )


if __name__ == "__main__":
    main()
