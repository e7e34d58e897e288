"""Data models for portfolio risk and performance analytics."""

from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class RiskLevel(Enum):
    """Risk classification derived from a 0-100 score."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    EXTREME = "EXTREME"

    @classmethod
    def from_score(cls, score: float) -> "RiskLevel":
        if score < 25:
            return cls.LOW
        if score < 50:
            return cls.MEDIUM
        if score < 75:
            return cls.HIGH
        return cls.EXTREME


class TimeHorizon(Enum):
    """Analysis horizon."""

    ONE_DAY = "1D"
    ONE_WEEK = "1W"
    ONE_MONTH = "1M"
    THREE_MONTHS = "3M"
    SIX_MONTHS = "6M"
    ONE_YEAR = "1Y"

    @property
    def days(self) -> int:
        """Calendar days simulated for the horizon."""
        return _HORIZON_DAYS[self]


_HORIZON_DAYS = {
    TimeHorizon.ONE_DAY: 1,
    TimeHorizon.ONE_WEEK: 7,
    TimeHorizon.ONE_MONTH: 30,
    TimeHorizon.THREE_MONTHS: 90,
    TimeHorizon.SIX_MONTHS: 180,
    TimeHorizon.ONE_YEAR: 365,
}


class ReportType(Enum):
    """Risk report depth."""

    SUMMARY = "SUMMARY"
    DETAILED = "DETAILED"
    REGULATORY = "REGULATORY"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Portfolio inputs


@dataclass(frozen=True)
class Portfolio:
    """Portfolio snapshot as seen by the analytics layer."""

    id: str
    owner_id: str
    name: str
    total_value: float


@dataclass(frozen=True)
class Holding:
    """Single asset held by a portfolio."""

    id: str
    symbol: str
    quantity: float
    current_price: float

    @property
    def total_value(self) -> float:
        return self.quantity * self.current_price


@dataclass(frozen=True)
class ValuePoint:
    """Portfolio value observed on a given day."""

    date: date
    value: float


# Performance


@dataclass
class PerformanceStats:
    """Statistics over a sequence of realized trade pnl."""

    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    win_rate: float = 0.0
    total_pnl: float = 0.0
    average_win: float = 0.0
    average_loss: float = 0.0
    best_trade: float = 0.0
    worst_trade: float = 0.0
    profit_factor: float = 0.0
    sharpe_ratio: float = 0.0
    max_drawdown: float = 0.0
    current_streak: int = 0
    longest_win_streak: int = 0
    longest_loss_streak: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# Risk metrics


@dataclass
class RiskMetrics:
    """Timestamped risk snapshot for a portfolio."""

    portfolio_id: str
    time_horizon: TimeHorizon
    confidence_level: float
    value_at_risk: float
    conditional_var: float
    expected_shortfall: float
    volatility: float
    annualized_volatility: float
    downside_volatility: float
    sharpe_ratio: float
    sortino_ratio: float
    calmar_ratio: float
    beta: float
    alpha: float
    treynor_ratio: float
    max_drawdown: float
    current_drawdown: float
    risk_score: float
    risk_level: RiskLevel
    correlation: Dict[str, float] = field(default_factory=dict)
    calculated_at: datetime = field(default_factory=_utcnow)
    degraded: List[str] = field(default_factory=list)

    @property
    def is_degraded(self) -> bool:
        return bool(self.degraded)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["time_horizon"] = self.time_horizon.value
        data["risk_level"] = self.risk_level.value
        data["calculated_at"] = self.calculated_at.isoformat()
        return data


@dataclass
class PositionRisk:
    """Risk contribution of a single holding."""

    holding_id: str
    symbol: str
    exposure: float
    percentage_of_portfolio: float
    individual_var: float
    marginal_var: float
    component_var: float
    volatility: float
    concentration_risk: float


# Stress testing


class StressScenario(BaseModel):
    """Hypothetical market shock."""

    model_config = {"frozen": True}

    name: str = Field(..., min_length=1)
    market_change_percent: float = Field(..., ge=-100, le=100)
    volatility_multiplier: float = Field(1.0, gt=0)


@dataclass
class AssetImpact:
    """Effect of a scenario on one holding."""

    symbol: str
    current_value: float
    stressed_value: float
    loss: float
    loss_percentage: float


@dataclass
class StressedMetrics:
    """Portfolio metrics under a scenario."""

    value_at_risk: float
    volatility: float
    sharpe_ratio: float
    max_drawdown: float


@dataclass
class StressTestResult:
    """Outcome of one stress scenario."""

    scenario_name: str
    portfolio_value: float
    portfolio_loss: float
    loss_percentage: float
    asset_impacts: List[AssetImpact]
    metrics_under_stress: StressedMetrics
    probability: float
    severity: RiskLevel


# Monte Carlo


@dataclass
class SimulationPath:
    """One retained simulated value path."""

    simulation_id: int
    final_value: float
    max_value: float
    min_value: float
    path: List[float]


@dataclass
class ScenarioOutcome:
    """Terminal value with its estimated probability."""

    value: float
    probability: float


@dataclass
class MonteCarloSimulation:
    """Distribution of simulated terminal portfolio values."""

    portfolio_id: str
    number_of_simulations: int
    time_horizon: TimeHorizon
    starting_value: float
    expected_return: float
    expected_volatility: float
    percentiles: Dict[int, float]
    probability_of_loss: float
    best_case: ScenarioOutcome
    worst_case: ScenarioOutcome
    most_likely: ScenarioOutcome
    paths: List[SimulationPath] = field(default_factory=list)


# Liquidity


@dataclass
class AssetLiquidity:
    """Liquidation profile of one holding."""

    symbol: str
    value: float
    average_daily_volume: float
    days_to_liquidate: float
    market_impact: float
    liquidity_score: float


@dataclass
class StressedLiquidity:
    """Liquidity assumptions under market stress."""

    market_stress: float
    volume_reduction: float
    spread_widening: float
    estimated_cost: float


@dataclass
class LiquidityRisk:
    """Portfolio liquidity profile."""

    portfolio_id: str
    liquidity_score: float
    days_to_liquidate: float
    immediately_liquid: float
    liquid_within_1_day: float
    liquid_within_1_week: float
    illiquid: float
    by_asset: List[AssetLiquidity]
    stressed_liquidity: StressedLiquidity
    degraded: List[str] = field(default_factory=list)


# Risk limits


class RiskLimits(BaseModel):
    """Risk thresholds configured for a portfolio."""

    portfolio_id: str = Field(..., min_length=1)
    max_drawdown: float = Field(..., gt=0, le=100)
    max_var: float = Field(..., gt=0)
    max_leverage: float = Field(1.0, gt=0)
    max_concentration: float = Field(100.0, gt=0, le=100)
    max_volatility: float = Field(..., gt=0)
    min_sharpe_ratio: Optional[float] = None
    active: bool = True
    created_at: datetime = Field(default_factory=_utcnow)

    @field_validator("portfolio_id")
    @classmethod
    def validate_portfolio_id(cls, v):
        """Reject blank identifiers."""
        if not v.strip():
            raise ValueError("Portfolio id is required")
        return v.strip()


@dataclass
class RiskLimitBreach:
    """A single limit exceeded by a metrics snapshot."""

    limit_type: str
    current_value: float
    limit_value: float
    breach_amount: float
    breach_percentage: float
    breached_at: datetime = field(default_factory=_utcnow)
    resolved: bool = False


@dataclass
class RiskLimitCheck:
    """Result of checking a metrics snapshot against risk limits."""

    portfolio_id: str
    breaches: List[RiskLimitBreach] = field(default_factory=list)

    @property
    def all_within_limits(self) -> bool:
        return not self.breaches


# Reporting


@dataclass
class DayMove:
    """Largest single-day move in a value history."""

    date: Optional[date]
    amount: float


@dataclass
class VarBacktest:
    """Count of returns that breached the reported VaR."""

    violations: int
    expected_violations: float
    statistic: float
    passed: bool


@dataclass
class RiskReport:
    """Risk report combining metrics, position risks and history."""

    portfolio_id: str
    report_type: ReportType
    period_start: datetime
    period_end: datetime
    risk_level: RiskLevel
    risk_score: float
    key_risks: List[str]
    recommendations: List[str]
    metrics: RiskMetrics
    position_risks: List[PositionRisk]
    worst_day: DayMove
    best_day: DayMove
    var_backtest: Optional[VarBacktest] = None
    generated_at: datetime = field(default_factory=_utcnow)
