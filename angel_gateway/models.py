"""Request bodies accepted by the gateway.

Fields are optional at the schema level so missing values reach the handlers
and are reported with the gateway's own messages instead of a 422.
"""
from pydantic import BaseModel, ConfigDict, Field


class GatewayRequest(BaseModel):
    """Base for request bodies; numeric values such as a TOTP arrive as strings."""
    model_config = ConfigDict(coerce_numbers_to_str=True)


class AuthRequest(GatewayRequest):
    """Credentials for loginByPassword."""
    apiKey: str | None = Field(None, description="SmartAPI private key")
    clientId: str | None = Field(None, description="Angel One client code")
    password: str | None = Field(None, description="Client PIN/password")
    totp: str | None = Field(None, description="Current TOTP code")

    def missing_fields(self) -> list[str]:
        return [name for name in ("apiKey", "clientId", "password", "totp") if not getattr(self, name)]


class LtpRequest(GatewayRequest):
    """Last traded price lookup."""
    symbol: str | None = Field(None, description="Trading symbol, e.g. 'NIFTY'")
    exchange: str | None = Field("NSE", description="Exchange segment")


class RefreshTokenRequest(GatewayRequest):
    """Token refresh for a stored session."""
    clientId: str | None = Field(None, description="Client code used at login")
    refreshToken: str | None = Field(None, description="Refresh token from login")


class LogoutRequest(GatewayRequest):
    """Logout; clientId is optional."""
    clientId: str | None = Field(None, description="Client code used at login")
