"""Unit tests for demo-mode options-chain synthesis."""

import asyncio
import random

from angel_gateway import options_chain
from angel_gateway.options_chain import build_strike_quotes, synthesize_strike
from angel_gateway.utils.strikes import generate_strikes_around_price


class TestSynthesizeStrike:
    """Tests for synthesize_strike."""

    def test_values_within_ranges(self):
        rng = random.Random(7)
        for _ in range(50):
            quote = asyncio.run(synthesize_strike(22500, "NIFTY", "28MAR24", rng))
            assert 10_000 <= quote.call_oi < 110_000
            assert 10_000 <= quote.put_oi < 110_000
            assert 10.0 <= quote.call_ltp < 210.0
            assert 10.0 <= quote.put_ltp < 210.0
            assert 0 <= quote.call_volume < 50_000
            assert 0 <= quote.put_volume < 50_000

    def test_option_symbols(self):
        quote = asyncio.run(synthesize_strike(48200, "BANKNIFTY", "05NOV24", random.Random(1)))
        assert quote.call_symbol == "BANKNIFTY05NOV2448200CE"
        assert quote.put_symbol == "BANKNIFTY05NOV2448200PE"

    def test_to_dict_keys(self):
        quote = asyncio.run(synthesize_strike(22500, "NIFTY", "28MAR24", random.Random(1)))
        assert set(quote.to_dict()) == {
            "strike", "callSymbol", "putSymbol",
            "callOI", "callLTP", "callVolume",
            "putOI", "putLTP", "putVolume",
        }


class TestBuildStrikeQuotes:
    """Tests for build_strike_quotes."""

    def test_keeps_strike_order(self):
        strikes = generate_strikes_around_price(22500, "NIFTY")
        quotes = asyncio.run(build_strike_quotes(strikes, "NIFTY", "2024-03-28", random.Random(3)))
        assert [q.strike for q in quotes] == strikes

    def test_failed_strike_is_dropped(self, monkeypatch):
        real = options_chain.synthesize_strike

        async def flaky(strike, symbol, expiry_code, rng):
            if strike == 22500:
                raise RuntimeError("quote unavailable")
            return await real(strike, symbol, expiry_code, rng)

        monkeypatch.setattr(options_chain, "synthesize_strike", flaky)
        strikes = [22450, 22500, 22550]

        quotes = asyncio.run(build_strike_quotes(strikes, "NIFTY", "2024-03-28"))

        assert [q.strike for q in quotes] == [22450, 22550]

    def test_all_failed_returns_empty(self, monkeypatch):
        async def broken(strike, symbol, expiry_code, rng):
            raise RuntimeError("down")

        monkeypatch.setattr(options_chain, "synthesize_strike", broken)

        assert asyncio.run(build_strike_quotes([22500], "NIFTY", "2024-03-28")) == []
