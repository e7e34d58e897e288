"""Risk limit checks against a metrics snapshot."""

from typing import List, Optional

from ...config.logging import get_logger
from .models import RiskLimitBreach, RiskLimitCheck, RiskLimits, RiskMetrics

logger = get_logger(__name__)


def _breach(limit_type: str, current: float, limit: float) -> RiskLimitBreach:
    amount = current - limit
    return RiskLimitBreach(
        limit_type=limit_type,
        current_value=current,
        limit_value=limit,
        breach_amount=amount,
        breach_percentage=amount / abs(limit) * 100 if limit else 0.0,
    )


def check_risk_limits(metrics: RiskMetrics, limits: RiskLimits) -> RiskLimitCheck:
    """
    Compare a metrics snapshot with configured limits.

    Maximum limits breach when the metric is strictly above them; the
    minimum Sharpe ratio breaches when the metric is strictly below it.
    Inactive limits never breach.

    Args:
        metrics: Latest metrics snapshot
        limits: Limits for the same portfolio

    Returns:
        RiskLimitCheck listing every breach
    """
    breaches: List[RiskLimitBreach] = []
    if not limits.active:
        return RiskLimitCheck(portfolio_id=limits.portfolio_id, breaches=breaches)

    if metrics.max_drawdown > limits.max_drawdown:
        breaches.append(
            _breach("max_drawdown", metrics.max_drawdown, limits.max_drawdown)
        )
    if metrics.value_at_risk > limits.max_var:
        breaches.append(_breach("max_var", metrics.value_at_risk, limits.max_var))
    if metrics.annualized_volatility > limits.max_volatility:
        breaches.append(
            _breach(
                "max_volatility", metrics.annualized_volatility, limits.max_volatility
            )
        )

    min_sharpe: Optional[float] = limits.min_sharpe_ratio
    if min_sharpe is not None and metrics.sharpe_ratio < min_sharpe:
        # Shortfall reported as a positive amount below the floor
        breach = _breach("min_sharpe_ratio", metrics.sharpe_ratio, min_sharpe)
        breach.breach_amount = min_sharpe - metrics.sharpe_ratio
        breach.breach_percentage = (
            breach.breach_amount / abs(min_sharpe) * 100 if min_sharpe else 0.0
        )
        breaches.append(breach)

    if breaches:
        logger.warning(
            "Risk limits breached",
            portfolio_id=limits.portfolio_id,
            breaches=[b.limit_type for b in breaches],
        )

    return RiskLimitCheck(portfolio_id=limits.portfolio_id, breaches=breaches)
