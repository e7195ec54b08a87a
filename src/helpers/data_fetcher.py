import logging
from datetime import datetime, timezone
from typing import List, Tuple

import numpy as np
import pandas as pd
import yfinance as yf
from fastapi import HTTPException

from helpers.metrics import bs_gamma
from models import OptionContract

logger = logging.getLogger(__name__)

# US equity options stop trading at 16:00 ET
EXPIRY_CLOSE_UTC = pd.Timedelta(hours=20)


def get_latest_close(ticker: str) -> float:
    tk = yf.Ticker(ticker)
    hist = tk.history(period="1d")
    if hist.empty:
        raise HTTPException(status_code=404, detail=f"Unable to fetch price for {ticker}")
    return float(hist["Close"].iloc[-1])


def select_expiry(ticker: str, expiry_param: str) -> str:
    tk = yf.Ticker(ticker)
    options = tk.options

    logger.debug("Available expiries for %s: %s", ticker, options[:5])
    if not options:
        raise HTTPException(status_code=404, detail=f"No expiries for {ticker}")
    if expiry_param in ("today", "front"):
        return options[0]
    if expiry_param in ("next", "tomorrow"):
        if len(options) < 2:
            raise HTTPException(status_code=404, detail=f"No next expiry for {ticker}")
        return options[1]
    if expiry_param in options:
        return expiry_param
    raise HTTPException(status_code=400, detail="Invalid expiry")


def years_to_expiry(expiry: str, now: datetime = None) -> float:
    now = now or datetime.now(timezone.utc)
    close = pd.Timestamp(expiry, tz="UTC") + EXPIRY_CLOSE_UTC
    return (close - pd.Timestamp(now)).total_seconds() / (365 * 24 * 3600)


def _to_contracts(df: pd.DataFrame, spot: float, T: float, r: float) -> List[OptionContract]:
    df = df.dropna(subset=["openInterest", "strike"])
    df = df[df["strike"] > 0]
    contracts = []
    for row in df.itertuples(index=False):
        iv = float(row.impliedVolatility) if not np.isnan(row.impliedVolatility) else None
        gamma = bs_gamma(spot, float(row.strike), T, r, iv) if iv else 0.0
        contracts.append(OptionContract(
            strike=float(row.strike),
            open_interest=int(row.openInterest),
            gamma=gamma,
            implied_volatility=iv or None,
        ))
    return contracts


def fetch_option_chain(
        ticker: str,
        expiry: str,
        spot: float,
        r: float = 0.01
) -> Tuple[List[OptionContract], List[OptionContract]]:
    """
    Fetch calls and puts for one expiry. yfinance has no greeks, so gamma is
    Black-Scholes at each contract's implied vol.
    """
    chain = yf.Ticker(ticker).option_chain(expiry)
    T = years_to_expiry(expiry)
    logger.debug("Chain for %s @ %s: %d calls, %d puts, T=%.5f",
                 ticker, expiry, len(chain.calls), len(chain.puts), T)
    return _to_contracts(chain.calls, spot, T, r), _to_contracts(chain.puts, spot, T, r)


def fetch_gamma_snapshot(ticker: str, expiry: str = "front", r: float = 0.01):
    """(price, calls, puts) for `ticker` at the selected expiry."""
    price = get_latest_close(ticker)
    exp = select_expiry(ticker, expiry)
    calls, puts = fetch_option_chain(ticker, exp, price, r)
    logger.info("Fetched %s %s: price=%.2f calls=%d puts=%d", ticker, exp, price, len(calls), len(puts))
    return price, calls, puts
