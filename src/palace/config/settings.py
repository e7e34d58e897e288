"""Engine settings and configuration management using Pydantic."""

from functools import lru_cache
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings

from ..constants import (
    DEFAULT_ASSET_VOLATILITY,
    DEFAULT_DAILY_VOLUME,
    DEFAULT_MARKET_RETURN,
    DEFAULT_REFERENCE_CAPITAL,
    DEFAULT_RISK_FREE_RATE,
    LIQUIDITY_PARTICIPATION_RATE,
    STRESS_BASE_VOLATILITY,
    STRESS_SCENARIO_PROBABILITY,
    TRADING_DAYS_PER_YEAR,
)


class Settings(BaseSettings):
    """Main engine settings combining all configuration sections."""

    # Environment and deployment
    environment: str = "development"
    debug: bool = False

    # Market assumptions
    risk_free_rate: float = DEFAULT_RISK_FREE_RATE
    market_return: float = DEFAULT_MARKET_RETURN
    trading_days_per_year: int = TRADING_DAYS_PER_YEAR

    # Performance statistics
    reference_capital: float = DEFAULT_REFERENCE_CAPITAL

    # Liquidity and position risk
    liquidity_participation_rate: float = LIQUIDITY_PARTICIPATION_RATE
    default_daily_volume: float = DEFAULT_DAILY_VOLUME
    default_asset_volatility: float = DEFAULT_ASSET_VOLATILITY

    # Stress testing
    stress_base_volatility: float = STRESS_BASE_VOLATILITY
    stress_scenario_probability: float = STRESS_SCENARIO_PROBABILITY

    # Monte Carlo
    monte_carlo_path_sample: int = 100
    monte_carlo_max_simulations: int = 100_000

    # Snapshot cache
    snapshot_cache_ttl_seconds: int = 300
    snapshot_cache_max_entries: int = 1024

    # Database settings
    database_url: Optional[str] = None
    data_directory: str = "data"
    database_echo_sql: bool = False
    database_pool_pre_ping: bool = True
    database_pool_recycle: int = 3600

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "structured"  # 'structured' or 'plain'
    log_file_enabled: bool = False
    log_file_path: str = "data/palace.log"
    log_max_file_size: str = "10MB"
    log_backup_count: int = 5

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment setting."""
        valid_environments = ["development", "testing", "production"]
        if v.lower() not in valid_environments:
            raise ValueError(f"Environment must be one of: {valid_environments}")
        return v.lower()

    @field_validator("risk_free_rate", "market_return")
    @classmethod
    def validate_rate(cls, v):
        """Validate annual rates are expressed as fractions."""
        if v < -1 or v > 1:
            raise ValueError("Annual rates must be fractions between -1 and 1")
        return v

    @field_validator("liquidity_participation_rate")
    @classmethod
    def validate_participation(cls, v):
        """Validate share of daily volume that can be traded."""
        if v <= 0 or v > 1:
            raise ValueError("Participation rate must be between 0 and 1")
        return v

    @field_validator(
        "trading_days_per_year",
        "reference_capital",
        "default_daily_volume",
        "default_asset_volatility",
        "stress_base_volatility",
        "monte_carlo_path_sample",
        "monte_carlo_max_simulations",
        "snapshot_cache_ttl_seconds",
        "snapshot_cache_max_entries",
    )
    @classmethod
    def validate_positive(cls, v):
        """Validate that sizing parameters are positive."""
        if v <= 0:
            raise ValueError("Value must be positive")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        """Validate log format."""
        valid_formats = ["structured", "plain"]
        if v.lower() not in valid_formats:
            raise ValueError(f"Log format must be one of: {valid_formats}")
        return v.lower()

    def get_database_url(self) -> str:
        """Get the complete database URL."""
        if self.database_url:
            return self.database_url

        # Default to SQLite in data directory
        from pathlib import Path

        db_dir = Path(self.data_directory)
        db_dir.mkdir(exist_ok=True)
        db_path = db_dir / "palace.db"
        return f"sqlite:///{db_path}"

    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    def is_testing(self) -> bool:
        """Check if running in testing mode."""
        return self.environment == "testing"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached engine settings.

    Returns:
        Settings: Engine configuration instance
    """
    return Settings()
