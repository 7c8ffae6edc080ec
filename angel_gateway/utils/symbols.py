"""Static index symbol to Angel One instrument token mapping."""
import re

DEFAULT_SYMBOL = "NIFTY"

# Only the three NSE indices are known; add entries here for new instruments.
SYMBOL_TOKENS: dict[str, str] = {
    "NIFTY": "99926000",
    "BANKNIFTY": "99926009",
    "FINNIFTY": "99926037",
}

_DIGITS = re.compile(r"\d+")


def get_symbol_token(symbol: str) -> str:
    """Return the instrument token for an index, falling back to NIFTY."""
    return SYMBOL_TOKENS.get(symbol, SYMBOL_TOKENS[DEFAULT_SYMBOL])


def strip_digits(symbol: str) -> str:
    """Drop every digit run, e.g. 'NIFTY24MAR' -> 'NIFTYMAR'."""
    return _DIGITS.sub("", symbol)
