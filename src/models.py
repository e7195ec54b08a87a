from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Literal, Optional, Union


class ChecklistInput(BaseModel):
    """LTP checklist for one trade. Omitted items count as not met."""
    model_config = ConfigDict(populate_by_name=True)

    had_level: bool = Field(False, alias="hadLevel")
    had_trend: bool = Field(False, alias="hadTrend")
    had_patience_candle: bool = Field(False, alias="hadPatienceCandle")
    followed_rules: bool = Field(False, alias="followedRules")


class GradeResult(BaseModel):
    score: int
    grade: Literal["A", "B", "C", "D", "F"]
    feedback: List[str]


class OptionContract(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    strike: float = Field(..., gt=0)
    open_interest: int = Field(0, ge=0, alias="openInterest")
    gamma: Optional[float] = None
    implied_volatility: Optional[float] = Field(None, alias="impliedVolatility")


class GammaLevel(BaseModel):
    strike: float
    call_oi: int
    put_oi: int
    call_gamma: float
    put_gamma: float
    net_gamma: float
    significance: Literal["high", "medium", "low"]


class ExpectedMove(BaseModel):
    daily: float
    weekly: float


class GammaAnalysis(BaseModel):
    summary: str
    trading_implication: str
    support_levels: List[float]
    resistance_levels: List[float]


class GammaExposure(BaseModel):
    symbol: str
    timestamp: str
    current_price: float
    max_pain: float
    gamma_flip: float
    zero_gamma_level: float
    call_wall: float
    put_wall: float
    regime: Literal["positive", "negative", "neutral"]
    dealer_positioning: Literal["long_gamma", "short_gamma", "neutral"]
    expected_move: ExpectedMove
    key_levels: List[GammaLevel]
    analysis: GammaAnalysis


class GammaError(BaseModel):
    error: str


class BatchGammaRequest(BaseModel):
    symbols: List[str] = Field(..., min_length=1)


class BatchGammaResponse(BaseModel):
    success: bool = True
    data: Dict[str, Union[GammaExposure, GammaError]]
    timestamp: str


class TradeRecord(BaseModel):
    pnl: Optional[float] = None
    entry_time: Optional[datetime] = None
    emotions: Optional[str] = None
    setup_type: Optional[str] = None
    had_level: bool = False
    had_trend: bool = False
    had_patience_candle: bool = False
    followed_rules: bool = False
    ltp_grade: Optional[GradeResult] = None


class TradeStatsRequest(BaseModel):
    trades: List[TradeRecord]
    period: Literal["week", "month", "year", "all"] = "all"


class BreakdownEntry(BaseModel):
    count: int
    win_rate: float
    avg_pnl: float


class TradeStats(BaseModel):
    total_trades: int = 0
    win_rate: float = 0.0
    total_pnl: float = 0.0
    avg_pnl: float = 0.0
    # None when there are wins but no losses
    profit_factor: Optional[float] = 0.0
    avg_win: float = 0.0
    avg_loss: float = 0.0
    largest_win: float = 0.0
    largest_loss: float = 0.0
    ltp_compliance: float = 0.0
    avg_ltp_score: float = 0.0
    winning_streak: int = 0
    losing_streak: int = 0
    current_streak: int = 0
    emotion_breakdown: Dict[str, BreakdownEntry] = {}
    setup_breakdown: Dict[str, BreakdownEntry] = {}


class TradeStatsResponse(BaseModel):
    stats: TradeStats
