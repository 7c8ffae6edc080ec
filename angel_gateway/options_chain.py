"""
Options-chain assembly in demo mode.

Per-strike analytics are synthetic placeholders: strikes are real (derived
from the underlying LTP) but OI, LTP and volume for each call/put are random
values. The chain payload is flagged with `synthetic: True`.
"""
import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any

from angel_gateway.utils.strikes import build_option_symbol, format_expiry_for_symbol

logger = logging.getLogger("http_server.options_chain")

OI_RANGE = (10_000, 110_000)
LTP_RANGE = (10.0, 210.0)
VOLUME_RANGE = (0, 50_000)


@dataclass
class StrikeQuote:
    """Call/put analytics for a single strike."""
    strike: int
    call_symbol: str
    put_symbol: str
    call_oi: int
    call_ltp: float
    call_volume: int
    put_oi: int
    put_ltp: float
    put_volume: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "strike": self.strike,
            "callSymbol": self.call_symbol,
            "putSymbol": self.put_symbol,
            "callOI": self.call_oi,
            "callLTP": self.call_ltp,
            "callVolume": self.call_volume,
            "putOI": self.put_oi,
            "putLTP": self.put_ltp,
            "putVolume": self.put_volume,
        }


def _oi(rng: random.Random) -> int:
    return rng.randrange(*OI_RANGE)


def _ltp(rng: random.Random) -> float:
    low, high = LTP_RANGE
    return low + rng.random() * (high - low)


def _volume(rng: random.Random) -> int:
    return rng.randrange(*VOLUME_RANGE)


async def synthesize_strike(strike: int, symbol: str, expiry_code: str, rng: random.Random) -> StrikeQuote:
    """Placeholder analytics for one strike."""
    return StrikeQuote(
        strike=strike,
        call_symbol=build_option_symbol(symbol, expiry_code, strike, "CE"),
        put_symbol=build_option_symbol(symbol, expiry_code, strike, "PE"),
        call_oi=_oi(rng),
        call_ltp=_ltp(rng),
        call_volume=_volume(rng),
        put_oi=_oi(rng),
        put_ltp=_ltp(rng),
        put_volume=_volume(rng),
    )


async def build_strike_quotes(
    strikes: list[int],
    symbol: str,
    expiry: Any,
    rng: random.Random | None = None,
) -> list[StrikeQuote]:
    """
    Synthesize every strike concurrently and keep the ones that succeed.

    A strike whose synthesis raises is logged and left out; the others are
    returned in the order of `strikes`.
    """
    rng = rng or random.Random()
    expiry_code = format_expiry_for_symbol(expiry)
    results = await asyncio.gather(
        *[synthesize_strike(strike, symbol, expiry_code, rng) for strike in strikes],
        return_exceptions=True,
    )

    quotes: list[StrikeQuote] = []
    for strike, result in zip(strikes, results, strict=True):
        if isinstance(result, Exception):
            logger.error(f"Error building strike {strike} for {symbol}: {result}")
            continue
        quotes.append(result)
    return quotes
