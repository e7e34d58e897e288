"""Tests for liquidity, position risk, risk limits and reports."""

import math
from datetime import date, datetime

import pytest
from pydantic import ValidationError

from palace.services.analytics.liquidity import VOLUME_DEFAULTED, LiquidityRiskCalculator
from palace.services.analytics.models import (
    Holding,
    Portfolio,
    ReportType,
    RiskLevel,
    RiskLimits,
    RiskMetrics,
    TimeHorizon,
    ValuePoint,
)
from palace.services.analytics.position_risk import PositionRiskCalculator
from palace.services.analytics.report import (
    RiskReportBuilder,
    backtest_var,
    best_and_worst_day,
    identify_key_risks,
)
from palace.services.analytics.risk_limits import check_risk_limits


def make_metrics(**overrides):
    values = dict(
        portfolio_id="pf-1",
        time_horizon=TimeHorizon.ONE_MONTH,
        confidence_level=0.95,
        value_at_risk=200.0,
        conditional_var=250.0,
        expected_shortfall=250.0,
        volatility=0.01,
        annualized_volatility=0.15,
        downside_volatility=0.1,
        sharpe_ratio=1.2,
        sortino_ratio=1.5,
        calmar_ratio=2.0,
        beta=1.0,
        alpha=0.0,
        treynor_ratio=0.1,
        max_drawdown=8.0,
        current_drawdown=2.0,
        risk_score=30.0,
        risk_level=RiskLevel.MEDIUM,
    )
    values.update(overrides)
    return RiskMetrics(**values)


class TestLiquidityRiskCalculator:
    """Test liquidation estimates."""

    def test_single_liquid_holding(self):
        portfolio = Portfolio(id="pf-1", owner_id="u", name="p", total_value=10000)
        holdings = [Holding(id="h", symbol="AAPL", quantity=100, current_price=100)]

        result = LiquidityRiskCalculator().compute(
            portfolio, holdings, {"AAPL": 1_000_000}
        )

        [asset] = result.by_asset
        assert asset.days_to_liquidate == pytest.approx(0.1)
        assert asset.market_impact == pytest.approx(0.01)
        assert asset.liquidity_score == pytest.approx(99.0)
        assert result.immediately_liquid == 0
        assert result.liquid_within_1_day == pytest.approx(10000)
        assert result.degraded == []

    def test_day_and_week_buckets_include_boundary(self):
        portfolio = Portfolio(id="pf-1", owner_id="u", name="p", total_value=800_000)
        holdings = [
            Holding(id="h1", symbol="ONE", quantity=1_000, current_price=100),
            Holding(id="h2", symbol="SEVEN", quantity=7_000, current_price=100),
        ]
        volumes = {"ONE": 1_000_000, "SEVEN": 1_000_000}

        result = LiquidityRiskCalculator().compute(portfolio, holdings, volumes)

        assert [a.days_to_liquidate for a in result.by_asset] == [1.0, 7.0]
        assert result.immediately_liquid == 0
        assert result.liquid_within_1_day == pytest.approx(100_000)
        assert result.liquid_within_1_week == pytest.approx(800_000)
        assert result.illiquid == pytest.approx(0)

    def test_value_weighted_overall(self):
        portfolio = Portfolio(id="pf-1", owner_id="u", name="p", total_value=5_010_000)
        holdings = [
            Holding(id="h1", symbol="AAPL", quantity=100, current_price=100),
            Holding(id="h2", symbol="TINY", quantity=50_000, current_price=100),
        ]
        volumes = {"AAPL": 1_000_000, "TINY": 1_000_000}

        result = LiquidityRiskCalculator().compute(portfolio, holdings, volumes)

        assert result.days_to_liquidate == pytest.approx(
            (0.1 * 10_000 + 50 * 5_000_000) / 5_010_000
        )
        assert result.liquidity_score == 0.0
        assert result.liquid_within_1_week == pytest.approx(10_000)
        assert result.illiquid == pytest.approx(5_000_000)
        assert result.by_asset[1].market_impact == 0.05
        assert result.stressed_liquidity.estimated_cost == pytest.approx(100_200)
        assert result.stressed_liquidity.volume_reduction == 0.7

    def test_missing_volume_uses_default(self):
        portfolio = Portfolio(id="pf-1", owner_id="u", name="p", total_value=10000)
        holdings = [Holding(id="h", symbol="AAPL", quantity=100, current_price=100)]

        result = LiquidityRiskCalculator().compute(portfolio, holdings, {})

        assert result.by_asset[0].average_daily_volume == 1_000_000
        assert result.degraded == [VOLUME_DEFAULTED]


class TestPositionRiskCalculator:
    """Test per-holding risk."""

    def test_half_weight_holding(self):
        portfolio = Portfolio(id="pf-1", owner_id="u", name="p", total_value=10000)
        holdings = [Holding(id="h", symbol="AAPL", quantity=50, current_price=100)]

        [risk] = PositionRiskCalculator().compute(portfolio, holdings)

        individual = 5000 * 0.2 * 1.645 / math.sqrt(252)
        assert risk.volatility == 0.2
        assert risk.percentage_of_portfolio == pytest.approx(50.0)
        assert risk.individual_var == pytest.approx(individual)
        assert risk.marginal_var == pytest.approx(individual * 0.5)
        assert risk.component_var == pytest.approx(individual * 0.25)
        assert risk.concentration_risk == pytest.approx(25.0)

    def test_supplied_volatility(self):
        portfolio = Portfolio(id="pf-1", owner_id="u", name="p", total_value=1000)
        holdings = [Holding(id="h", symbol="AAPL", quantity=10, current_price=100)]

        [risk] = PositionRiskCalculator().compute(portfolio, holdings, {"AAPL": 0.4})

        assert risk.volatility == 0.4


class TestRiskLimits:
    """Test limit validation and breach detection."""

    def test_drawdown_limit_over_100_rejected(self):
        with pytest.raises(ValidationError):
            RiskLimits(portfolio_id="pf-1", max_drawdown=150, max_var=1000, max_volatility=0.3)

    def test_within_limits(self):
        limits = RiskLimits(
            portfolio_id="pf-1", max_drawdown=20, max_var=1000, max_volatility=0.3
        )

        check = check_risk_limits(make_metrics(), limits)

        assert check.all_within_limits is True

    def test_breaches_reported(self):
        limits = RiskLimits(
            portfolio_id="pf-1",
            max_drawdown=20,
            max_var=100,
            max_volatility=0.3,
            min_sharpe_ratio=1.0,
        )
        metrics = make_metrics(max_drawdown=30.0, sharpe_ratio=0.5)

        check = check_risk_limits(metrics, limits)

        by_type = {b.limit_type: b for b in check.breaches}
        assert set(by_type) == {"max_drawdown", "max_var", "min_sharpe_ratio"}
        assert by_type["max_drawdown"].breach_amount == pytest.approx(10.0)
        assert by_type["max_drawdown"].breach_percentage == pytest.approx(50.0)
        assert by_type["max_var"].breach_amount == pytest.approx(100.0)
        assert by_type["min_sharpe_ratio"].breach_amount == pytest.approx(0.5)
        assert by_type["min_sharpe_ratio"].breach_percentage == pytest.approx(50.0)
        assert check.all_within_limits is False

    def test_inactive_limits_never_breach(self):
        limits = RiskLimits(
            portfolio_id="pf-1",
            max_drawdown=1,
            max_var=1,
            max_volatility=0.01,
            active=False,
        )
        assert check_risk_limits(make_metrics(), limits).breaches == []


class TestRiskReport:
    """Test report helpers."""

    def test_best_and_worst_day(self):
        history = [
            ValuePoint(date(2024, 1, 1), 100.0),
            ValuePoint(date(2024, 1, 2), 110.0),
            ValuePoint(date(2024, 1, 3), 95.0),
            ValuePoint(date(2024, 1, 4), 97.0),
        ]

        best, worst = best_and_worst_day(history)

        assert best.date == date(2024, 1, 2)
        assert best.amount == pytest.approx(10.0)
        assert worst.date == date(2024, 1, 3)
        assert worst.amount == pytest.approx(15.0)

    def test_flat_history(self):
        best, worst = best_and_worst_day([ValuePoint(date(2024, 1, 1), 100.0)])
        assert best.date is None and worst.amount == 0.0

    def test_var_backtest(self):
        returns = [-0.05, -0.03, 0.01, 0.02] * 5

        result = backtest_var(returns, 400.0, 10000.0, 0.95)

        assert result.violations == 5
        assert result.expected_violations == pytest.approx(1.0)
        assert result.passed is False

    def test_key_risks(self):
        metrics = make_metrics(
            annualized_volatility=0.4, sharpe_ratio=0.2, max_drawdown=25, value_at_risk=5000
        )
        assert identify_key_risks(metrics) == [
            "High volatility",
            "Low risk-adjusted returns",
            "Significant drawdown risk",
            "High Value at Risk",
        ]

    def test_regulatory_report_includes_backtest(self):
        builder = RiskReportBuilder()
        start, end = datetime(2024, 1, 1), datetime(2024, 3, 31)

        summary = builder.build("pf-1", ReportType.SUMMARY, start, end, make_metrics(), [])
        regulatory = builder.build(
            "pf-1",
            ReportType.REGULATORY,
            start,
            end,
            make_metrics(),
            [],
            returns=[-0.05, 0.01],
            portfolio_value=10000,
        )

        assert summary.var_backtest is None
        assert regulatory.var_backtest.violations == 1
        assert regulatory.risk_level is RiskLevel.MEDIUM
        assert regulatory.key_risks == []
