#!/usr/bin/env python3
"""
run_gamma_scenario.py

Simulates a batch gamma request against live yfinance data, the way the
POST /api/market/gamma route runs it, and prints the JSON result.

Run (from the repo root, with the package installed):
  python scripts/run_gamma_scenario.py --tickers SPY QQQ IWM --expiry next
"""

import argparse
import json
import logging
from functools import partial

from config import settings
from helpers.data_fetcher import fetch_gamma_snapshot
from services.gamma_service import batch_gamma_exposure


def run_scenario(tickers, expiry):
    fetch = partial(fetch_gamma_snapshot, expiry=expiry, r=settings.risk_free_rate)
    results = batch_gamma_exposure(
        tickers,
        fetch,
        thresholds=settings.gamma_thresholds(),
        max_symbols=settings.max_batch_symbols,
    )
    print(json.dumps({k: v.model_dump() for k, v in results.items()}, indent=2))


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    p = argparse.ArgumentParser()
    p.add_argument("--tickers", nargs="+", default=["SPY", "QQQ"])
    p.add_argument("--expiry", default="front")
    a = p.parse_args()
    run_scenario(a.tickers, a.expiry)
