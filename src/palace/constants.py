"""Market and analytics defaults shared by settings and calculators."""

TRADING_DAYS_PER_YEAR = 252

# One-sided 95% normal quantile for parametric VaR
Z_95 = 1.645

DEFAULT_RISK_FREE_RATE = 0.045
DEFAULT_MARKET_RETURN = 0.10
DEFAULT_REFERENCE_CAPITAL = 10000.0
DEFAULT_ASSET_VOLATILITY = 0.20
DEFAULT_DAILY_VOLUME = 1_000_000.0
LIQUIDITY_PARTICIPATION_RATE = 0.10
STRESS_BASE_VOLATILITY = 0.30
STRESS_SCENARIO_PROBABILITY = 0.05
