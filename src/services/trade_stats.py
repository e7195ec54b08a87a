from datetime import datetime, timezone
from typing import Dict, Optional, Sequence

import pandas as pd
from dateutil.relativedelta import relativedelta

from models import BreakdownEntry, TradeRecord, TradeStats

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)

# Look-back window per reporting period; "all" has none
PERIODS = {
    "week": relativedelta(days=7),
    "month": relativedelta(months=1),
    "year": relativedelta(years=1),
    "all": None,
}


def _pnl(trade: TradeRecord) -> float:
    return trade.pnl or 0.0


def _utc(ts: datetime) -> datetime:
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


def _entry_key(trade: TradeRecord) -> datetime:
    return _utc(trade.entry_time) if trade.entry_time else _EPOCH


def _ltp_compliant(trade: TradeRecord) -> bool:
    return trade.had_level and trade.had_trend and trade.had_patience_candle and trade.followed_rules


def filter_period(trades: Sequence[TradeRecord], period: str = "all", now: Optional[datetime] = None):
    """
    Trades entered at or after `now - period`. Trades without an entry time
    only survive the "all" period.
    """
    window = PERIODS[period]
    if window is None:
        return list(trades)
    start = _utc(now or datetime.now(timezone.utc)) - window
    return [t for t in trades if t.entry_time and _utc(t.entry_time) >= start]


def _breakdowns(trades: Sequence[TradeRecord]):
    """Per-emotion and per-setup count, win rate and average pnl."""
    df = pd.DataFrame({
        "emotion": [t.emotions or "unknown" for t in trades],
        "setup": [t.setup_type or "unknown" for t in trades],
        "pnl": [_pnl(t) for t in trades],
    })
    df["win"] = (df["pnl"] > 0) * 100.0

    def by(column: str) -> Dict[str, BreakdownEntry]:
        agg = df.groupby(column, sort=False).agg(
            count=("pnl", "size"), win_rate=("win", "mean"), avg_pnl=("pnl", "mean")
        )
        return {
            key: BreakdownEntry(
                count=int(row["count"]), win_rate=float(row["win_rate"]), avg_pnl=float(row["avg_pnl"])
            )
            for key, row in agg.iterrows()
        }

    return by("emotion"), by("setup")


def _streaks(trades: Sequence[TradeRecord]):
    """(longest win run, longest loss run, signed final run) in entry order."""
    best = {"win": 0, "loss": 0}
    run, last = 0, None
    for trade in sorted(trades, key=_entry_key):
        result = "win" if _pnl(trade) > 0 else "loss"
        run = run + 1 if result == last else 1
        last = result
        best[result] = max(best[result], run)
    current = run if last == "win" else -run
    return best["win"], best["loss"], current


def compute_trade_stats(
        trades: Sequence[TradeRecord],
        period: str = "all",
        now: Optional[datetime] = None
) -> TradeStats:
    trades = filter_period(trades, period, now)
    if not trades:
        return TradeStats()

    n = len(trades)
    winners = [_pnl(t) for t in trades if _pnl(t) > 0]
    losers = [_pnl(t) for t in trades if _pnl(t) < 0]
    total_pnl = sum(_pnl(t) for t in trades)
    total_wins = sum(winners)
    total_losses = abs(sum(losers))

    if total_losses > 0:
        profit_factor = total_wins / total_losses
    else:
        profit_factor = None if total_wins > 0 else 0.0

    win_streak, loss_streak, current = _streaks(trades)
    emotion_breakdown, setup_breakdown = _breakdowns(trades)

    return TradeStats(
        total_trades=n,
        win_rate=len(winners) / n * 100,
        total_pnl=total_pnl,
        avg_pnl=total_pnl / n,
        profit_factor=profit_factor,
        avg_win=total_wins / len(winners) if winners else 0.0,
        avg_loss=total_losses / len(losers) if losers else 0.0,
        largest_win=max(winners) if winners else 0.0,
        largest_loss=min(losers) if losers else 0.0,
        ltp_compliance=sum(1 for t in trades if _ltp_compliant(t)) / n * 100,
        avg_ltp_score=sum(t.ltp_grade.score if t.ltp_grade else 0 for t in trades) / n,
        winning_streak=win_streak,
        losing_streak=loss_streak,
        current_streak=current,
        emotion_breakdown=emotion_breakdown,
        setup_breakdown=setup_breakdown,
    )
