"""Tests for environment-driven settings."""

from config import Settings
from services.gamma_service import GammaThresholds


def test_defaults_match_calculator_defaults(monkeypatch):
    for var in ("LTP_HIGH_SIGNIFICANCE_RATIO", "LTP_MAX_BATCH_SYMBOLS"):
        monkeypatch.delenv(var, raising=False)
    cfg = Settings()
    assert cfg.gamma_thresholds() == GammaThresholds()
    assert cfg.max_batch_symbols == 10


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("LTP_HIGH_SIGNIFICANCE_RATIO", "0.8")
    monkeypatch.setenv("LTP_TRADING_DAYS", "365")
    thresholds = Settings().gamma_thresholds()
    assert thresholds.high_significance == 0.8
    assert thresholds.trading_days == 365
