import logging
from datetime import datetime, timezone
from functools import partial

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Query
from mangum import Mangum

from config import Settings, settings
from helpers.data_fetcher import fetch_gamma_snapshot
from models import (
    BatchGammaRequest,
    BatchGammaResponse,
    ChecklistInput,
    GammaError,
    GammaExposure,
    GradeResult,
    TradeStatsRequest,
    TradeStatsResponse,
)
from services.gamma_service import batch_gamma_exposure, compute_gamma_exposure
from services.trade_grader import grade
from services.trade_stats import compute_trade_stats

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def get_settings() -> Settings:
    return settings


def get_market_data(cfg: Settings = Depends(get_settings)):
    """Callable (ticker, expiry) -> (price, calls, puts)."""
    return partial(fetch_gamma_snapshot, r=cfg.risk_free_rate)


app = FastAPI(title=settings.app_name)


@app.get("/ping")
def ping():
    return {"status": "ok"}


@app.post("/api/trades/grade", response_model=GradeResult)
def grade_trade(checklist: ChecklistInput):
    return grade(checklist)


@app.post("/api/trades/stats", response_model=TradeStatsResponse)
def trade_stats(body: TradeStatsRequest):
    return TradeStatsResponse(stats=compute_trade_stats(body.trades, body.period))


@app.get("/api/market/gamma", response_model=GammaExposure)
def get_gamma_exposure(
        symbol: str = Query(..., min_length=1, description="Ticker symbol, e.g. SPY"),
        expiry: str = Query("front", description="Expiry: 'front', 'next', or exact YYYY-MM-DD"),
        fetch=Depends(get_market_data),
        cfg: Settings = Depends(get_settings)
):
    ticker = symbol.strip().upper()

    price, calls, puts = fetch(ticker, expiry)
    if not price:
        raise HTTPException(status_code=404, detail=f"Unable to fetch price for {ticker}")
    if not calls or not puts:
        raise HTTPException(status_code=404, detail=f"Options chain data unavailable for {ticker}")

    return compute_gamma_exposure(ticker, price, calls, puts, cfg.gamma_thresholds())


@app.post("/api/market/gamma", response_model=BatchGammaResponse)
def batch_gamma(
        body: BatchGammaRequest,
        fetch=Depends(get_market_data),
        cfg: Settings = Depends(get_settings)
):
    results = batch_gamma_exposure(
        body.symbols,
        fetch,
        thresholds=cfg.gamma_thresholds(),
        max_symbols=cfg.max_batch_symbols,
    )
    failed = sum(1 for r in results.values() if isinstance(r, GammaError))
    logger.info("Batch gamma: %d symbols, %d failed", len(results), failed)
    return BatchGammaResponse(
        data=results,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )

# Lambda handler for API Gateway
api_handler = Mangum(app)

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
