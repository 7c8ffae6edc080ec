"""
Angel One SmartAPI REST client.

Builds and sends the four outbound calls the gateway needs (login, LTP,
token refresh, logout) over one shared httpx.AsyncClient. Every failure is
raised as BrokerError carrying the upstream message and error code when the
broker supplied them.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx
from aiolimiter import AsyncLimiter

from angel_gateway.logging_config import get_broker_client_logger
from angel_gateway.utils.errors import BrokerError

logger = get_broker_client_logger()

DEFAULT_BASE_URL = "https://apiconnect.angelbroking.com"

LOGIN_PATH = "/rest/auth/angelbroking/user/v1/loginByPassword"
LTP_PATH = "/rest/secure/angelbroking/order/v1/getLTP"
REFRESH_TOKENS_PATH = "/rest/auth/angelbroking/jwt/v1/generateTokens"
LOGOUT_PATH = "/rest/secure/angelbroking/user/v1/logout"

LOGIN_TIMEOUT = 10.0
LTP_TIMEOUT = 5.0
DEFAULT_TIMEOUT = 30.0

USER_TYPE = "USER"
SOURCE_ID = "WEB"
DEFAULT_CLIENT_IP = "127.0.0.1"
MAC_ADDRESS = "fe80::216e:6507:4b90:3719"


@dataclass
class LoginTokens:
    """Tokens returned by loginByPassword / generateTokens."""

    jwt_token: str
    feed_token: str
    refresh_token: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> LoginTokens:
        return cls(
            jwt_token=data["jwtToken"],
            feed_token=data["feedToken"],
            refresh_token=data.get("refreshToken"),
        )


def _preview(value: str) -> str:
    return value[:8] + "..." if len(value) > 8 else value


class AngelOneClient:
    """Async client for the Angel One SmartAPI endpoints used by the gateway."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        default_timeout: float = DEFAULT_TIMEOUT,
        rate_limit: float = 10,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Args:
            base_url: SmartAPI root URL
            default_timeout: Timeout for calls without a fixed one (refresh, logout)
            rate_limit: Maximum outbound calls per second
            client: Pre-built httpx client (tests pass one with a mock transport)
        """
        self.base_url = base_url.rstrip("/")
        self.default_timeout = default_timeout
        self._client = client or httpx.AsyncClient(base_url=self.base_url)
        self._limiter = AsyncLimiter(rate_limit, 1)

    async def aclose(self) -> None:
        await self._client.aclose()

    def _headers(self, auth_token: str | None = None, private_key: str | None = None) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "X-UserType": USER_TYPE,
            "X-SourceID": SOURCE_ID,
        }
        if auth_token:
            headers["Authorization"] = f"Bearer {auth_token}"
        if private_key:
            headers["X-PrivateKey"] = private_key
        return headers

    async def _post(
        self,
        path: str,
        payload: dict[str, Any],
        headers: dict[str, str],
        timeout: float,
        operation: str,
    ) -> dict[str, Any]:
        """POST a JSON payload and return the decoded response body."""
        url = f"{self.base_url}{path}"
        try:
            async with self._limiter:
                response = await self._client.post(url, json=payload, headers=headers, timeout=timeout)
        except httpx.TimeoutException as e:
            logger.warning(f"{operation} timed out after {timeout:g}s")
            raise BrokerError(f"{operation} timed out after {timeout:g}s") from e
        except httpx.RequestError as e:
            logger.warning(f"{operation} network error: {e}")
            raise BrokerError(str(e) or f"{operation} failed: {type(e).__name__}") from e

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.status_code >= 400:
            message = f"Request failed with status code {response.status_code}"
            error_code = None
            if isinstance(body, dict):
                message = body.get("message") or message
                error_code = body.get("errorcode") or None
            logger.warning(f"{operation} returned HTTP {response.status_code}: {message}")
            raise BrokerError(message, error_code=error_code, status_code=response.status_code)

        if not isinstance(body, dict):
            raise BrokerError(f"{operation} returned an invalid response", status_code=response.status_code)
        return body

    @staticmethod
    def _rejection(body: dict[str, Any], default_message: str) -> BrokerError:
        return BrokerError(body.get("message") or default_message, error_code=body.get("errorcode") or None)

    def _tokens(self, body: dict[str, Any], operation: str, default_message: str) -> LoginTokens:
        """Tokens from a login/refresh body; both jwtToken and feedToken must be present."""
        if not body.get("status"):
            raise self._rejection(body, default_message)
        data = body.get("data")
        if not isinstance(data, dict) or not data.get("jwtToken") or not data.get("feedToken"):
            logger.warning(f"{operation} succeeded upstream but returned no tokens")
            raise BrokerError(default_message, error_code=body.get("errorcode") or None)
        return LoginTokens.from_api(data)

    async def login(
        self,
        api_key: str,
        client_id: str,
        password: str,
        totp: str,
        client_ip: str | None = None,
    ) -> LoginTokens:
        """Log a client in with password + TOTP and return its tokens."""
        ip = client_ip or DEFAULT_CLIENT_IP
        headers = self._headers(private_key=api_key)
        headers.update({
            "X-ClientLocalIP": ip,
            "X-ClientPublicIP": ip,
            "X-MACAddress": MAC_ADDRESS,
        })
        payload = {"clientcode": client_id, "password": password, "totp": totp}

        logger.info(f"Attempting Angel One authentication for client {client_id} (API key {_preview(api_key)})")
        body = await self._post(LOGIN_PATH, payload, headers, LOGIN_TIMEOUT, "Login")

        return self._tokens(body, "Login", "Authentication failed")

    async def get_ltp(
        self,
        symbol: str,
        symbol_token: str,
        auth_token: str,
        exchange: str = "NSE",
        timeout: float = LTP_TIMEOUT,
    ) -> Any:
        """Fetch the last traded price payload for one instrument."""
        payload = {"exchange": exchange, "tradingsymbol": symbol, "symboltoken": symbol_token}
        body = await self._post(LTP_PATH, payload, self._headers(auth_token=auth_token), timeout, "LTP fetch")

        data = body.get("data")
        if data is None:
            raise self._rejection(body, "LTP data unavailable")
        return data

    async def refresh_tokens(self, api_key: str, refresh_token: str) -> LoginTokens:
        """Exchange a refresh token for a new jwt/feed token pair."""
        body = await self._post(
            REFRESH_TOKENS_PATH,
            {"refreshToken": refresh_token},
            self._headers(private_key=api_key),
            self.default_timeout,
            "Token refresh",
        )
        return self._tokens(body, "Token refresh", "Token refresh failed")

    async def logout(self, client_id: str | None, auth_token: str) -> dict[str, Any]:
        """Invalidate the bearer token upstream."""
        return await self._post(
            LOGOUT_PATH,
            {"clientcode": client_id},
            self._headers(auth_token=auth_token),
            self.default_timeout,
            "Logout",
        )

    async def logout_quietly(self, client_id: str | None, auth_token: str) -> None:
        """Run logout as a detached operation whose outcome is only logged."""
        try:
            await self.logout(client_id, auth_token)
            logger.info(f"Upstream logout completed for client {client_id}")
        except Exception as e:
            logger.warning(f"Upstream logout failed for client {client_id}: {e}")
