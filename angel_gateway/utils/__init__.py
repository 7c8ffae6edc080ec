"""Utility modules for the Angel One gateway."""
from angel_gateway.utils.errors import BrokerError, GatewayError, upstream_error
from angel_gateway.utils.strikes import format_expiry_for_symbol, generate_strikes_around_price
from angel_gateway.utils.symbols import get_symbol_token

__all__ = [
    "BrokerError",
    "GatewayError",
    "upstream_error",
    "format_expiry_for_symbol",
    "generate_strikes_around_price",
    "get_symbol_token",
]
