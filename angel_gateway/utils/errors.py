"""Error types and envelope mapping for the gateway."""
from typing import Any


class BrokerError(Exception):
    """Raised by the broker client when an Angel One call fails."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code


class GatewayError(Exception):
    """Base class for failures rendered as a `{success: false}` envelope."""

    status_code = 400

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        if status_code is not None:
            self.status_code = status_code

    def to_envelope(self) -> dict[str, Any]:
        return error_envelope(self.message, self.error_code)


class ValidationError(GatewayError):
    """A required request field is missing or malformed."""

    status_code = 400


class AuthError(GatewayError):
    """Missing bearer token, unknown session, or a failed upstream login."""

    status_code = 401


class UpstreamError(GatewayError):
    """The broker answered with a failure or could not be reached."""

    status_code = 400


def error_envelope(message: str, error_code: str | None = None) -> dict[str, Any]:
    """Build the failure envelope, omitting `errorCode` when there is none."""
    envelope: dict[str, Any] = {"success": False, "message": message}
    if error_code:
        envelope["errorCode"] = error_code
    return envelope


def upstream_error(
    e: Exception,
    default_code: str | None = None,
    error_cls: type[GatewayError] = UpstreamError,
    status_code: int | None = None,
) -> GatewayError:
    """
    Convert a broker or local failure into a gateway error.

    Uses the upstream's message and error code when the broker supplied them,
    otherwise the local exception message and `default_code`.

    Args:
        e: The exception raised while talking to the broker
        default_code: Error code to use when the upstream gave none
        error_cls: Gateway error class to build
        status_code: Optional HTTP status override

    Returns:
        Gateway error ready to be raised from a handler
    """
    if isinstance(e, BrokerError):
        message = e.message
        error_code = e.error_code or default_code
    else:
        message = str(e) or type(e).__name__
        error_code = default_code
    return error_cls(message, error_code=error_code, status_code=status_code)
