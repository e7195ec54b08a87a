"""Shared fixtures: option chain builders and an API client with injected market data."""

import pytest
from fastapi.testclient import TestClient

from models import OptionContract


def _contracts(rows):
    return [
        OptionContract(strike=s, open_interest=oi, gamma=g, implied_volatility=iv)
        for s, oi, g, iv in rows
    ]


@pytest.fixture
def contracts():
    """Build OptionContracts from (strike, open_interest, gamma, iv) tuples."""
    return _contracts


@pytest.fixture
def positive_chain():
    """
    Three strikes around 101 where call gamma dominates at 100.

    Net gamma per strike: 95 -> -580, 100 -> 2000, 105 -> 850.
    """
    calls = _contracts([
        (95.0, 100, 0.02, 0.20),
        (100.0, 500, 0.05, 0.20),
        (105.0, 300, 0.03, 0.20),
    ])
    puts = _contracts([
        (95.0, 390, 0.02, 0.20),
        (100.0, 100, 0.05, None),
        (105.0, 50, 0.01, 0.20),
    ])
    return 101.0, calls, puts


@pytest.fixture
def fake_market_data(positive_chain):
    """Market-data stand-in keyed by ticker; unknown tickers have no chain."""
    price, calls, puts = positive_chain
    snapshots = {
        "SPY": (price, calls, puts),
        "EMPTY": (50.0, [], puts),
        "NOPRICE": (None, calls, puts),
    }

    def fetch(ticker, expiry="front"):
        if ticker == "BOOM":
            raise RuntimeError("provider timeout")
        return snapshots.get(ticker, (10.0, [], []))

    return fetch


@pytest.fixture
def client(fake_market_data):
    from main import app, get_market_data

    app.dependency_overrides[get_market_data] = lambda: fake_market_data
    yield TestClient(app)
    app.dependency_overrides.clear()
