import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from fastapi import HTTPException

from helpers.metrics import aggregate_strikes, cumulative_gamma_flip, expected_move, max_pain
from models import (
    ExpectedMove,
    GammaAnalysis,
    GammaError,
    GammaExposure,
    GammaLevel,
    OptionContract,
)

logger = logging.getLogger(__name__)

# (price, calls, puts) for one underlying
Snapshot = Tuple[Optional[float], List[OptionContract], List[OptionContract]]

NARRATIVES = {
    "positive": (
        "{symbol} is in a positive gamma environment. Dealers are long gamma, "
        "providing liquidity and dampening volatility.",
        "Mean reversion favored. Price gravitates to max pain. Consider selling premium.",
    ),
    "negative": (
        "{symbol} is in a negative gamma environment. Dealers are short gamma, "
        "amplifying directional moves.",
        "Trend-following favored. Breakouts can accelerate. Watch for gamma squeezes.",
    ),
    "neutral": (
        "{symbol} is in a neutral gamma zone near the flip level.",
        "Watch for regime shift. Mixed strategies recommended.",
    ),
}


@dataclass(frozen=True)
class GammaThresholds:
    """Multipliers of the chain's largest |net gamma|, plus chain constants."""
    high_significance: float = 0.7
    medium_significance: float = 0.3
    regime: float = 0.1
    positioning: float = 0.5
    contract_multiplier: int = 100
    default_iv: float = 0.25
    trading_days: int = 252


def _significance(net_gamma: float, max_abs: float, t: GammaThresholds) -> str:
    if max_abs == 0:
        return "low"
    if abs(net_gamma) > t.high_significance * max_abs:
        return "high"
    if abs(net_gamma) > t.medium_significance * max_abs:
        return "medium"
    return "low"


def _regime(nearest_net: float, max_abs: float, t: GammaThresholds) -> str:
    if max_abs == 0:
        return "neutral"
    if nearest_net > t.regime * max_abs:
        return "positive"
    if nearest_net < -t.regime * max_abs:
        return "negative"
    return "neutral"


def _dealer_positioning(total_net: float, max_abs: float, t: GammaThresholds) -> str:
    if max_abs == 0:
        return "neutral"
    if total_net > t.positioning * max_abs:
        return "long_gamma"
    if total_net < -t.positioning * max_abs:
        return "short_gamma"
    return "neutral"


def _average_iv(contracts: Iterable[OptionContract], default_iv: float) -> float:
    ivs = [c.implied_volatility or default_iv for c in contracts]
    return sum(ivs) / max(len(ivs), 1)


def compute_gamma_exposure(
        symbol: str,
        current_price: float,
        calls: Sequence[OptionContract],
        puts: Sequence[OptionContract],
        thresholds: Optional[GammaThresholds] = None,
        timestamp: Optional[str] = None
) -> GammaExposure:
    """
    Dealer-positioning analytics for one underlying from a single chain snapshot.

    Callers reject empty chains before getting here; an all-zero gamma chain
    is still handled and reports low significance with neutral regime and
    positioning.
    """
    t = thresholds or GammaThresholds()
    frame = aggregate_strikes(calls, puts, t.contract_multiplier)

    max_abs = float(frame["net_gamma"].abs().max()) if not frame.empty else 0.0
    levels = [
        GammaLevel(
            strike=float(row.strike),
            call_oi=int(row.call_oi),
            put_oi=int(row.put_oi),
            call_gamma=float(row.call_gamma),
            put_gamma=float(row.put_gamma),
            net_gamma=float(row.net_gamma),
            significance=_significance(float(row.net_gamma), max_abs, t),
        )
        for row in frame.itertuples(index=False)
    ]

    pain_strike = max_pain(frame, current_price, t.contract_multiplier)

    above = [l for l in levels if l.strike > current_price]
    below = [l for l in levels if l.strike < current_price]
    # max() returns the first maximum, i.e. the lowest strike on ties
    call_wall = max(above, key=lambda l: l.call_oi).strike if above else current_price * 1.05
    put_wall = max(below, key=lambda l: l.put_oi).strike if below else current_price * 0.95

    gamma_flip = cumulative_gamma_flip(
        [l.strike for l in levels], [l.net_gamma for l in levels], current_price
    )

    nearest_net = (
        min(levels, key=lambda l: abs(l.strike - current_price)).net_gamma if levels else 0.0
    )
    regime = _regime(nearest_net, max_abs, t)
    positioning = _dealer_positioning(sum(l.net_gamma for l in levels), max_abs, t)

    avg_iv = _average_iv(list(calls) + list(puts), t.default_iv)
    move = ExpectedMove(
        daily=round(expected_move(current_price, avg_iv, 1, t.trading_days), 2),
        weekly=round(expected_move(current_price, avg_iv, 5, t.trading_days), 2),
    )

    significant = [l for l in levels if l.significance != "low"]
    resistance = [l.strike for l in significant if l.strike > current_price][:3]
    support = [l.strike for l in significant if l.strike < current_price][-3:][::-1]

    summary, implication = NARRATIVES[regime]
    logger.debug("%s: %d strikes, max |net gamma| %.2f, regime %s", symbol, len(levels), max_abs, regime)

    return GammaExposure(
        symbol=symbol,
        timestamp=timestamp or datetime.now(timezone.utc).isoformat(),
        current_price=current_price,
        max_pain=pain_strike,
        gamma_flip=gamma_flip,
        zero_gamma_level=gamma_flip,
        call_wall=call_wall,
        put_wall=put_wall,
        regime=regime,
        dealer_positioning=positioning,
        expected_move=move,
        key_levels=significant,
        analysis=GammaAnalysis(
            summary=summary.format(symbol=symbol),
            trading_implication=implication,
            support_levels=support,
            resistance_levels=resistance,
        ),
    )


def batch_gamma_exposure(
        symbols: Iterable[str],
        fetch_snapshot: Callable[[str], Snapshot],
        thresholds: Optional[GammaThresholds] = None,
        max_symbols: int = 10
) -> Dict[str, Union[GammaExposure, GammaError]]:
    """
    Run compute_gamma_exposure per symbol. Every failure becomes a GammaError
    entry for that symbol and the remaining symbols still run.
    """
    unique = list(dict.fromkeys(s.strip().upper() for s in symbols if s and s.strip()))
    results: Dict[str, Union[GammaExposure, GammaError]] = {}

    for symbol in unique[:max_symbols]:
        try:
            price, calls, puts = fetch_snapshot(symbol)
            if not price:
                results[symbol] = GammaError(error="Unable to fetch price")
            elif not calls or not puts:
                results[symbol] = GammaError(error="Options chain data unavailable")
            else:
                results[symbol] = compute_gamma_exposure(symbol, price, calls, puts, thresholds)
        except HTTPException as e:
            logger.info("%s skipped: %s", symbol, e.detail)
            results[symbol] = GammaError(error=str(e.detail))
        except Exception:
            logger.exception("Gamma analysis failed for %s", symbol)
            results[symbol] = GammaError(error="Failed to analyze")

    return results
