"""Tests for the yfinance-backed market data helpers."""

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import numpy as np
import pandas as pd
import pytest
from fastapi import HTTPException

from helpers import data_fetcher
from helpers.data_fetcher import (
    fetch_gamma_snapshot,
    fetch_option_chain,
    get_latest_close,
    select_expiry,
    years_to_expiry,
)


def _chain_frame(rows):
    return pd.DataFrame(rows, columns=["contractSymbol", "strike", "openInterest", "impliedVolatility"])


@pytest.fixture
def ticker():
    tk = MagicMock()
    tk.history.return_value = pd.DataFrame({"Close": [99.0, 101.5]})
    tk.options = ("2099-01-16", "2099-01-23")
    tk.option_chain.return_value = SimpleNamespace(
        calls=_chain_frame([
            ("SPY990116C00100000", 100.0, 1200, 0.2),
            ("SPY990116C00105000", 105.0, np.nan, 0.2),
            ("SPY990116C00110000", 110.0, 300, np.nan),
        ]),
        puts=_chain_frame([
            ("SPY990116P00095000", 95.0, 800, 0.25),
        ]),
    )
    with patch.object(data_fetcher.yf, "Ticker", return_value=tk):
        yield tk


class TestPriceAndExpiry:
    def test_latest_close(self, ticker):
        assert get_latest_close("SPY") == 101.5

    def test_no_history_is_404(self, ticker):
        ticker.history.return_value = pd.DataFrame({"Close": []})
        with pytest.raises(HTTPException) as exc:
            get_latest_close("ZZZZ")
        assert exc.value.status_code == 404
        assert "ZZZZ" in exc.value.detail

    @pytest.mark.parametrize("param,expected", [
        ("front", "2099-01-16"),
        ("today", "2099-01-16"),
        ("next", "2099-01-23"),
        ("2099-01-23", "2099-01-23"),
    ])
    def test_select_expiry(self, ticker, param, expected):
        assert select_expiry("SPY", param) == expected

    def test_invalid_expiry_is_400(self, ticker):
        with pytest.raises(HTTPException) as exc:
            select_expiry("SPY", "2001-01-01")
        assert exc.value.status_code == 400

    def test_no_expiries_is_404(self, ticker):
        ticker.options = ()
        with pytest.raises(HTTPException) as exc:
            select_expiry("SPY", "front")
        assert exc.value.status_code == 404


class TestChain:
    def test_years_to_expiry(self):
        now = datetime(2024, 1, 19, 8, 0, tzinfo=timezone.utc)
        # 12 hours to the 20:00 UTC close
        assert years_to_expiry("2024-01-19", now) == pytest.approx(12 / (365 * 24))

    def test_fetch_option_chain(self, ticker):
        calls, puts = fetch_option_chain("SPY", "2099-01-16", spot=101.5)

        assert [c.strike for c in calls] == [100.0, 110.0]
        assert calls[0].open_interest == 1200
        assert calls[0].gamma > 0
        assert calls[0].implied_volatility == 0.2
        # no IV, no model gamma
        assert calls[1].gamma == 0.0
        assert calls[1].implied_volatility is None
        assert len(puts) == 1 and puts[0].gamma > 0

    def test_fetch_gamma_snapshot(self, ticker):
        price, calls, puts = fetch_gamma_snapshot("SPY", "next")
        assert price == 101.5
        ticker.option_chain.assert_called_once_with("2099-01-23")
        assert len(calls) == 2 and len(puts) == 1
