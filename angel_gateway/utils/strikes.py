"""Strike ladder and expiry encoding helpers for index options."""
import math
from datetime import date, datetime
from typing import Any

from angel_gateway.logging_config import IST

STRIKES_EACH_SIDE = 15
DEFAULT_STRIKE_STEP = 50

# Instruments whose strikes are not spaced by DEFAULT_STRIKE_STEP
STRIKE_STEPS: dict[str, int] = {
    "BANKNIFTY": 100,
}

MONTHS = ("JAN", "FEB", "MAR", "APR", "MAY", "JUN", "JUL", "AUG", "SEP", "OCT", "NOV", "DEC")


def strike_step(symbol: str) -> int:
    """Price distance between adjacent strikes for an index."""
    return STRIKE_STEPS.get(symbol, DEFAULT_STRIKE_STEP)


def validate_underlying_price(price: Any) -> float:
    """Validate and convert an underlying price to float."""
    try:
        value = float(price)
    except (ValueError, TypeError) as e:
        raise ValueError(f"Invalid underlying price '{price}'. Expected positive number.") from e
    if not math.isfinite(value) or value <= 0:
        raise ValueError(f"Invalid underlying price '{price}'. Must be a positive finite number.")
    return value


def generate_strikes_around_price(current_price: Any, symbol: str) -> list[int]:
    """
    Build a symmetric ladder of strikes around the current price.

    The centre strike is the price rounded to the nearest step (ties go to the
    even multiple), with STRIKES_EACH_SIDE strikes above and below it.

    Args:
        current_price: Underlying last traded price
        symbol: Index name, used to pick the step

    Returns:
        Ascending list of 2 * STRIKES_EACH_SIDE + 1 strikes

    Raises:
        ValueError: If the price is not a positive finite number
    """
    price = validate_underlying_price(current_price)
    step = strike_step(symbol)
    base_strike = round(price / step) * step
    return [base_strike + k * step for k in range(-STRIKES_EACH_SIDE, STRIKES_EACH_SIDE + 1)]


def parse_expiry(value: str | date | datetime) -> date | datetime:
    """Parse an expiry given as a date, datetime or ISO-8601 string."""
    if isinstance(value, (date, datetime)):
        return value
    text = str(value).strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text)
    except ValueError as e:
        raise ValueError(f"Invalid expiry date '{value}'. Expected YYYY-MM-DD format.") from e


def format_expiry_for_symbol(value: str | date | datetime) -> str:
    """
    Encode an expiry as DDMMMYY, e.g. 2024-03-28 -> '28MAR24'.

    Naive values use their calendar fields as given. Timezone-aware datetimes
    are converted to exchange-local (IST) time first.
    """
    expiry = parse_expiry(value)
    if isinstance(expiry, datetime) and expiry.tzinfo is not None:
        expiry = expiry.astimezone(IST)
    return f"{expiry.day:02d}{MONTHS[expiry.month - 1]}{expiry.year % 100:02d}"


def build_option_symbol(symbol: str, expiry_code: str, strike: int, option_type: str) -> str:
    """Broker trading symbol for an index option, e.g. NIFTY28MAR2422500CE."""
    return f"{symbol}{expiry_code}{strike}{option_type}"
