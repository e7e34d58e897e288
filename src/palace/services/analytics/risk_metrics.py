"""Value-at-risk, volatility and risk-adjusted return metrics."""

import math
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from ...config.logging import get_logger
from ...constants import (
    DEFAULT_MARKET_RETURN,
    DEFAULT_REFERENCE_CAPITAL,
    DEFAULT_RISK_FREE_RATE,
    TRADING_DAYS_PER_YEAR,
)
from ...exceptions import ValidationException
from .models import RiskLevel, RiskMetrics, TimeHorizon

logger = get_logger(__name__)

BENCHMARK_UNAVAILABLE = "benchmark_unavailable"


def var_index(count: int, confidence_level: float) -> int:
    """Position of the VaR return in an ascending sort of ``count`` returns."""
    # Rounding first keeps 100 * (1 - 0.95) at 5 rather than 4.999...
    index = math.floor(round(count * (1 - confidence_level), 9))
    return min(max(index, 0), count - 1)


def drawdown_from_values(values: Sequence[float]) -> Tuple[float, float]:
    """Maximum and current drawdown, in percent, of a value series."""
    if len(values) == 0:
        return 0.0, 0.0

    peak = values[0]
    max_drawdown = 0.0
    for value in values:
        peak = max(peak, value)
        if peak > 0:
            max_drawdown = max(max_drawdown, (peak - value) / peak * 100)

    current = (peak - values[-1]) / peak * 100 if peak > 0 else 0.0
    return max_drawdown, max(0.0, current)


def compounded_curve(returns: Sequence[float]) -> List[float]:
    """Growth of one unit of capital under ``returns``, starting at 1."""
    curve = np.concatenate(([1.0], np.cumprod(1 + np.asarray(returns, dtype=float))))
    return curve.tolist()


class RiskMetricsCalculator:
    """Historical-simulation risk metrics for a series of periodic returns."""

    def __init__(
        self,
        trading_days: int = TRADING_DAYS_PER_YEAR,
        reference_capital: float = DEFAULT_REFERENCE_CAPITAL,
    ):
        self.trading_days = trading_days
        self.reference_capital = reference_capital
        self.logger = logger.bind(component="risk_metrics")

    def compute(
        self,
        portfolio_value: float,
        returns: Sequence[float],
        confidence_level: float = 0.95,
        risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
        market_return: float = DEFAULT_MARKET_RETURN,
        benchmark_returns: Optional[Sequence[float]] = None,
        value_history: Optional[Sequence[float]] = None,
        portfolio_id: str = "",
        time_horizon: TimeHorizon = TimeHorizon.ONE_MONTH,
        correlation: Optional[Dict[str, float]] = None,
    ) -> RiskMetrics:
        """
        Compute a risk snapshot.

        Args:
            portfolio_value: Current portfolio value used to scale VaR
            returns: Periodic returns ordered oldest to newest
            confidence_level: VaR confidence, strictly between 0 and 1
            risk_free_rate: Annual risk-free rate
            market_return: Annual market return used for alpha
            benchmark_returns: Benchmark returns aligned with ``returns``
            value_history: Portfolio values for drawdown; the compounded
                return curve is used when omitted
            portfolio_id: Portfolio the snapshot belongs to
            time_horizon: Horizon label stored on the snapshot
            correlation: Optional per-symbol correlations to carry through

        Returns:
            RiskMetrics snapshot, with degradation markers when the benchmark
            could not be used
        """
        if len(returns) == 0:
            raise ValidationException(
                "Returns are required to calculate risk metrics",
                field_errors={"returns": "must not be empty"},
            )
        if not 0 < confidence_level < 1:
            raise ValidationException(
                "Confidence level must be between 0 and 1",
                field_errors={"confidence_level": str(confidence_level)},
            )
        if portfolio_value < 0:
            raise ValidationException(
                "Portfolio value cannot be negative",
                field_errors={"portfolio_value": str(portfolio_value)},
            )

        degraded: List[str] = []
        r = np.asarray(returns, dtype=float)
        annualizer = math.sqrt(self.trading_days)

        value_at_risk, conditional_var = self.value_at_risk(
            r, portfolio_value, confidence_level
        )

        volatility = float(np.std(r))
        annualized_volatility = volatility * annualizer
        downside_volatility = self.downside_volatility(r)

        annual_mean = float(np.mean(r)) * self.trading_days
        excess_return = annual_mean - risk_free_rate
        sharpe_ratio = (
            excess_return / annualized_volatility if annualized_volatility > 0 else 0.0
        )
        sortino_ratio = (
            excess_return / downside_volatility if downside_volatility > 0 else 0.0
        )

        if value_history is not None and len(value_history) > 0:
            max_drawdown, current_drawdown = drawdown_from_values(value_history)
        else:
            max_drawdown, current_drawdown = drawdown_from_values(compounded_curve(r))

        calmar_ratio = annual_mean / (max_drawdown / 100) if max_drawdown > 0 else 0.0

        beta_alpha = self.beta_alpha(
            r, benchmark_returns, risk_free_rate, market_return
        )
        if beta_alpha is None:
            self.logger.warning(
                "Benchmark returns unavailable, defaulting beta and alpha",
                portfolio_id=portfolio_id,
            )
            degraded.append(BENCHMARK_UNAVAILABLE)
            beta, alpha = 1.0, 0.0
        else:
            beta, alpha = beta_alpha

        treynor_ratio = excess_return / beta if beta > 0 else 0.0

        risk_score = self.risk_score(
            annualized_volatility, value_at_risk, max_drawdown, sharpe_ratio
        )

        return RiskMetrics(
            portfolio_id=portfolio_id,
            time_horizon=time_horizon,
            confidence_level=confidence_level,
            value_at_risk=value_at_risk,
            conditional_var=conditional_var,
            expected_shortfall=conditional_var,
            volatility=volatility,
            annualized_volatility=annualized_volatility,
            downside_volatility=downside_volatility,
            sharpe_ratio=sharpe_ratio,
            sortino_ratio=sortino_ratio,
            calmar_ratio=calmar_ratio,
            beta=beta,
            alpha=alpha,
            treynor_ratio=treynor_ratio,
            max_drawdown=max_drawdown,
            current_drawdown=current_drawdown,
            risk_score=risk_score,
            risk_level=RiskLevel.from_score(risk_score),
            correlation=dict(correlation or {}),
            degraded=degraded,
        )

    @staticmethod
    def value_at_risk(
        returns: np.ndarray, portfolio_value: float, confidence_level: float
    ) -> Tuple[float, float]:
        """Historical VaR and CVaR in currency units."""
        ordered = np.sort(returns)
        index = var_index(len(ordered), confidence_level)
        value_at_risk = abs(float(ordered[index])) * portfolio_value
        tail = ordered[: index + 1]
        conditional_var = abs(float(np.mean(tail))) * portfolio_value if len(tail) else 0.0
        return value_at_risk, conditional_var

    def downside_volatility(self, returns: np.ndarray) -> float:
        """Annualized root-mean-square of the negative returns."""
        negative = returns[returns < 0]
        if len(negative) == 0:
            return 0.0
        return math.sqrt(float(np.mean(negative**2))) * math.sqrt(self.trading_days)

    def beta_alpha(
        self,
        returns: np.ndarray,
        benchmark_returns: Optional[Sequence[float]],
        risk_free_rate: float,
        market_return: float = DEFAULT_MARKET_RETURN,
    ) -> Optional[Tuple[float, float]]:
        """
        Beta from the covariance with a benchmark, and Jensen's alpha
        against the expected annual ``market_return``.

        Series of different length are aligned on their most recent
        observations. Returns None when no usable benchmark is available.
        """
        if benchmark_returns is None:
            return None

        length = min(len(returns), len(benchmark_returns))
        if length < 2:
            return None

        portfolio = returns[-length:]
        benchmark = np.asarray(benchmark_returns, dtype=float)[-length:]
        benchmark_variance = float(np.var(benchmark))
        if np.isclose(benchmark_variance, 0.0, atol=1e-12):
            return None

        covariance = float(
            np.mean((portfolio - portfolio.mean()) * (benchmark - benchmark.mean()))
        )
        beta = covariance / benchmark_variance

        annual_mean = float(returns.mean()) * self.trading_days
        alpha = annual_mean - (risk_free_rate + beta * (market_return - risk_free_rate))
        return beta, alpha

    def risk_score(
        self,
        annualized_volatility: float,
        value_at_risk: float,
        max_drawdown: float,
        sharpe_ratio: float,
    ) -> float:
        """
        Weighted 0-100 score.

        Volatility and VaR contribute up to 30 each, drawdown and a Sharpe
        shortfall below 2 up to 20 each.
        """
        volatility_score = min(30.0, annualized_volatility * 100)
        var_score = min(30.0, value_at_risk / self.reference_capital * 30)
        drawdown_score = min(20.0, max_drawdown)
        sharpe_penalty = min(20.0, max(0.0, 2 - sharpe_ratio) * 10)
        return min(100.0, volatility_score + var_score + drawdown_score + sharpe_penalty)
