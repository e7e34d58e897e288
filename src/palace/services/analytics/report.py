"""Risk report assembly."""

from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from .models import (
    DayMove,
    PositionRisk,
    ReportType,
    RiskMetrics,
    RiskReport,
    ValuePoint,
    VarBacktest,
)

HIGH_VOLATILITY = 0.30
LOW_SHARPE = 0.5
SIGNIFICANT_DRAWDOWN = 20.0
HIGH_VAR = 1000.0


def identify_key_risks(metrics: RiskMetrics, high_var: float = HIGH_VAR) -> List[str]:
    risks = []
    if metrics.annualized_volatility > HIGH_VOLATILITY:
        risks.append("High volatility")
    if metrics.sharpe_ratio < LOW_SHARPE:
        risks.append("Low risk-adjusted returns")
    if metrics.max_drawdown > SIGNIFICANT_DRAWDOWN:
        risks.append("Significant drawdown risk")
    if metrics.value_at_risk > high_var:
        risks.append("High Value at Risk")
    return risks


def generate_recommendations(metrics: RiskMetrics) -> List[str]:
    recommendations = []
    if metrics.annualized_volatility > HIGH_VOLATILITY:
        recommendations.append("Consider diversifying portfolio")
    if metrics.sharpe_ratio < LOW_SHARPE:
        recommendations.append("Improve risk-adjusted returns")
    if metrics.max_drawdown > SIGNIFICANT_DRAWDOWN:
        recommendations.append("Implement stop-loss strategies")
    return recommendations


def best_and_worst_day(history: Sequence[ValuePoint]) -> Tuple[DayMove, DayMove]:
    """
    Largest one-day gain and loss in a value history.

    Loss is reported as a positive amount. Days without a move of the right
    sign leave the corresponding result at zero with no date.
    """
    best = DayMove(date=None, amount=0.0)
    worst = DayMove(date=None, amount=0.0)

    for previous, current in zip(history, history[1:]):
        change = current.value - previous.value
        if change > best.amount:
            best = DayMove(date=current.date, amount=change)
        if -change > worst.amount:
            worst = DayMove(date=current.date, amount=-change)

    return best, worst


def backtest_var(
    returns: Sequence[float],
    value_at_risk: float,
    portfolio_value: float,
    confidence_level: float,
) -> VarBacktest:
    """Count returns worse than the VaR threshold against the expected count."""
    threshold = -value_at_risk / portfolio_value if portfolio_value else 0.0
    violations = sum(1 for r in returns if r < threshold)
    expected = len(returns) * (1 - confidence_level)
    statistic = abs(violations - expected)
    return VarBacktest(
        violations=violations,
        expected_violations=expected,
        statistic=statistic,
        passed=statistic < expected * 0.5,
    )


class RiskReportBuilder:
    """Combines computed analytics into a RiskReport."""

    def __init__(self, high_var: float = HIGH_VAR):
        self.high_var = high_var

    def build(
        self,
        portfolio_id: str,
        report_type: ReportType,
        period_start: datetime,
        period_end: datetime,
        metrics: RiskMetrics,
        position_risks: List[PositionRisk],
        history: Sequence[ValuePoint] = (),
        returns: Optional[Sequence[float]] = None,
        portfolio_value: float = 0.0,
    ) -> RiskReport:
        """
        Build a report for one portfolio and period.

        Args:
            portfolio_id: Portfolio reported on
            report_type: SUMMARY, DETAILED or REGULATORY
            period_start: Start of the reporting period
            period_end: End of the reporting period
            metrics: Metrics snapshot summarized by the report
            position_risks: Per-holding risks
            history: Value history within the period
            returns: Returns used for the VaR backtest (REGULATORY only)
            portfolio_value: Value used to express VaR as a return

        Returns:
            RiskReport
        """
        best_day, worst_day = best_and_worst_day(list(history))

        var_backtest = None
        if report_type is ReportType.REGULATORY and returns:
            var_backtest = backtest_var(
                returns,
                metrics.value_at_risk,
                portfolio_value,
                metrics.confidence_level,
            )

        return RiskReport(
            portfolio_id=portfolio_id,
            report_type=report_type,
            period_start=period_start,
            period_end=period_end,
            risk_level=metrics.risk_level,
            risk_score=metrics.risk_score,
            key_risks=identify_key_risks(metrics, self.high_var),
            recommendations=generate_recommendations(metrics),
            metrics=metrics,
            position_risks=position_risks,
            worst_day=worst_day,
            best_day=best_day,
            var_backtest=var_backtest,
        )
