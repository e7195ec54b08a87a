"""Runtime configuration, read from ``LTP_``-prefixed environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict

from services.gamma_service import GammaThresholds


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="LTP_", case_sensitive=False)

    app_name: str = "LTP Levels API"
    log_level: str = "INFO"

    risk_free_rate: float = 0.01
    max_batch_symbols: int = 10

    # Empirical multipliers of the largest |net gamma| in the chain
    high_significance_ratio: float = 0.7
    medium_significance_ratio: float = 0.3
    regime_ratio: float = 0.1
    positioning_ratio: float = 0.5

    contract_multiplier: int = 100
    default_iv: float = 0.25
    trading_days: int = 252

    def gamma_thresholds(self) -> GammaThresholds:
        return GammaThresholds(
            high_significance=self.high_significance_ratio,
            medium_significance=self.medium_significance_ratio,
            regime=self.regime_ratio,
            positioning=self.positioning_ratio,
            contract_multiplier=self.contract_multiplier,
            default_iv=self.default_iv,
            trading_days=self.trading_days,
        )


settings = Settings()
