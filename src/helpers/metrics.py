import math
from typing import List, Sequence

import numpy as np
import pandas as pd
from scipy.stats import norm

from models import OptionContract

LEVEL_COLUMNS = ["strike", "call_oi", "put_oi", "call_gamma", "put_gamma", "net_gamma"]


def bs_gamma(S, K, T, r, sigma, q=0):
    if T <= 0 or sigma <= 0 or np.isnan(S) or np.isnan(K) or np.isnan(T) or np.isnan(sigma):
        return 0.0
    d1 = (np.log(S/K) + (r - q + 0.5*sigma**2)*T) / (sigma*np.sqrt(T))
    return math.exp(-q*T) * norm.pdf(d1) / (S * sigma * math.sqrt(T))


def expected_move(spot: float, iv: float, days: int = 1, trading_days: int = 252) -> float:
    """
    Dollar move one expects over `days` trading days, given annualised IV.

    Parameters
    ----------
    spot : float
        Current underlying price.
    iv : float
        Annualised implied volatility (as a decimal, e.g. 0.24 for 24 %).
    days : int, default 1
        Number of forward days.
    trading_days : int, default 252
        Trading days used for annualisation.

    Returns
    -------
    float
        Expected price change (± one standard deviation) in dollars.
    """
    return spot * iv * math.sqrt(days / trading_days)


def _side_by_strike(contracts: Sequence[OptionContract], prefix: str, multiplier: int) -> pd.DataFrame:
    df = pd.DataFrame(
        [(c.strike, c.open_interest, c.gamma or 0.0) for c in contracts],
        columns=["strike", "oi", "gamma"],
    ).astype({"strike": "float64", "oi": "int64", "gamma": "float64"})
    # gamma per share * OI * shares per contract
    df["exposure"] = df["gamma"] * df["oi"] * multiplier
    grouped = df.groupby("strike", sort=True)[["oi", "exposure"]].sum()
    return grouped.rename(columns={"oi": f"{prefix}_oi", "exposure": f"{prefix}_gamma"})


def aggregate_strikes(
        calls: Sequence[OptionContract],
        puts: Sequence[OptionContract],
        multiplier: int = 100
) -> pd.DataFrame:
    """
    One row per distinct strike across calls and puts, ascending by strike.
    A strike missing from one side gets zero OI and gamma for that side.
    """
    levels = _side_by_strike(calls, "call", multiplier).join(
        _side_by_strike(puts, "put", multiplier), how="outer"
    ).fillna(0)
    levels = levels.reset_index().sort_values("strike", kind="stable").reset_index(drop=True)
    levels[["call_oi", "put_oi"]] = levels[["call_oi", "put_oi"]].astype("int64")
    levels["net_gamma"] = levels["call_gamma"] - levels["put_gamma"]
    return levels[LEVEL_COLUMNS]


def option_pain(strikes: np.ndarray, call_oi: np.ndarray, put_oi: np.ndarray, multiplier: int = 100) -> np.ndarray:
    """
    Total intrinsic value owed to option holders if price settles at each strike.
    Row i is the candidate settlement strike, column j the contributing strike.
    """
    diff = strikes[:, None] - strikes[None, :]
    calls_itm = np.where(diff > 0, call_oi[None, :] * diff, 0.0)
    puts_itm = np.where(diff < 0, put_oi[None, :] * -diff, 0.0)
    return (calls_itm + puts_itm).sum(axis=1) * multiplier


def max_pain(levels: pd.DataFrame, default: float, multiplier: int = 100) -> float:
    if levels.empty:
        return default
    strikes = levels["strike"].to_numpy(dtype=float)
    pain = option_pain(
        strikes,
        levels["call_oi"].to_numpy(dtype=float),
        levels["put_oi"].to_numpy(dtype=float),
        multiplier,
    )
    # argmin keeps the lowest strike on ties
    return float(strikes[int(np.argmin(pain))])


def cumulative_gamma_flip(strikes: List[float], net_gamma: List[float], default: float) -> float:
    """
    Midpoint of the first strike interval where running net gamma changes sign.
    """
    cumulative = 0.0
    for i in range(len(strikes) - 1):
        prev = cumulative
        cumulative += net_gamma[i]
        if prev * cumulative < 0:
            return (strikes[i] + strikes[i + 1]) / 2.0
    return default
