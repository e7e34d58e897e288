"""Tests for the risk analytics service."""

from datetime import date, datetime
from unittest.mock import Mock

import numpy as np
import pytest

from palace.exceptions import NotFoundError, OperationFailedError
from palace.services.analytics.models import (
    Holding,
    Portfolio,
    ReportType,
    RiskLimits,
    StressScenario,
    TimeHorizon,
    ValuePoint,
)
from palace.services.analytics.monte_carlo import MonteCarloSimulator
from palace.services.analytics.providers import StaticMarketData
from palace.services.analytics.risk_metrics import BENCHMARK_UNAVAILABLE
from palace.services.analytics.service import SNAPSHOT_NOT_PERSISTED, RiskAnalyticsService
from palace.services.snapshot_cache import SnapshotCache

RETURNS = [-0.05 + i * 0.001 for i in range(100)]


@pytest.fixture
def portfolio_store():
    store = Mock()
    store.find_by_id.return_value = Portfolio(
        id="pf-1", owner_id="user-1", name="Core", total_value=10000.0
    )
    store.find_holdings.return_value = [
        Holding(id="h-1", symbol="AAPL", quantity=50, current_price=100.0),
        Holding(id="h-2", symbol="MSFT", quantity=25, current_price=200.0),
    ]
    store.get_returns.return_value = RETURNS
    store.get_historical_values.return_value = []
    return store


@pytest.fixture
def snapshot_store():
    store = Mock()
    store.find_latest.return_value = None
    return store


@pytest.fixture
def service(portfolio_store, snapshot_store, test_settings):
    return RiskAnalyticsService(
        portfolio_store,
        market_data=StaticMarketData(),
        snapshot_store=snapshot_store,
        cache=SnapshotCache(ttl_seconds=60, max_entries=10),
        settings=test_settings,
        monte_carlo=MonteCarloSimulator(rng=np.random.default_rng(11)),
    )


class TestCalculateRiskMetrics:
    """Test snapshot calculation and its side effects."""

    @pytest.mark.asyncio
    async def test_calculates_and_persists(self, service, snapshot_store):
        metrics = await service.calculate_risk_metrics("pf-1")

        assert metrics.portfolio_id == "pf-1"
        assert metrics.value_at_risk == pytest.approx(450.0)
        assert BENCHMARK_UNAVAILABLE in metrics.degraded
        snapshot_store.save_metrics.assert_called_once_with(metrics)

    @pytest.mark.asyncio
    async def test_unknown_portfolio(self, service, portfolio_store):
        portfolio_store.find_by_id.return_value = None

        with pytest.raises(NotFoundError):
            await service.calculate_risk_metrics("missing")

    @pytest.mark.asyncio
    async def test_store_failure_wrapped(self, service, portfolio_store):
        cause = RuntimeError("connection reset")
        portfolio_store.get_returns.side_effect = cause

        with pytest.raises(OperationFailedError) as exc_info:
            await service.calculate_risk_metrics("pf-1")

        assert exc_info.value.cause is cause
        assert exc_info.value.__cause__ is cause
        assert exc_info.value.message == "Failed to load portfolio returns"

    @pytest.mark.asyncio
    async def test_persistence_failure_degrades(self, service, snapshot_store):
        snapshot_store.save_metrics.side_effect = RuntimeError("disk full")

        metrics = await service.calculate_risk_metrics("pf-1")

        assert SNAPSHOT_NOT_PERSISTED in metrics.degraded
        assert metrics.value_at_risk == pytest.approx(450.0)

    @pytest.mark.asyncio
    async def test_market_data_failure_degrades(
        self, portfolio_store, test_settings
    ):
        market_data = Mock()
        market_data.get_risk_free_rate.side_effect = TimeoutError()
        market_data.get_market_return.return_value = 0.10
        market_data.get_benchmark_returns.return_value = [2 * r for r in RETURNS]
        market_data.get_correlations.return_value = {"AAPL": 0.8}
        service = RiskAnalyticsService(
            portfolio_store, market_data=market_data, settings=test_settings
        )

        metrics = await service.calculate_risk_metrics("pf-1")

        assert metrics.degraded == ["risk_free_rate_unavailable"]
        assert metrics.beta == pytest.approx(0.5)
        assert metrics.correlation == {"AAPL": 0.8}

    @pytest.mark.asyncio
    async def test_value_history_used_for_drawdown(self, service, portfolio_store):
        portfolio_store.get_historical_values.return_value = [
            ValuePoint(date(2024, 1, 1), 100.0),
            ValuePoint(date(2024, 1, 2), 80.0),
        ]

        metrics = await service.calculate_risk_metrics("pf-1")

        assert metrics.max_drawdown == pytest.approx(20.0)

    @pytest.mark.asyncio
    async def test_latest_served_from_cache(self, service, snapshot_store):
        metrics = await service.calculate_risk_metrics("pf-1")

        assert await service.get_latest_metrics("pf-1") is metrics
        snapshot_store.find_latest.assert_not_called()


class TestPortfolioAnalytics:
    """Test the remaining service operations."""

    @pytest.mark.asyncio
    async def test_position_risks(self, service):
        risks = await service.calculate_position_risks("pf-1")
        assert [r.symbol for r in risks] == ["AAPL", "MSFT"]

    @pytest.mark.asyncio
    async def test_stress_tests(self, service):
        results = await service.run_stress_tests(
            "pf-1", [StressScenario(name="Crash", market_change_percent=-30)]
        )
        assert results[0].portfolio_loss == pytest.approx(3000.0)

    @pytest.mark.asyncio
    async def test_monte_carlo(self, service):
        result = await service.run_monte_carlo_simulation(
            "pf-1", 50, TimeHorizon.ONE_WEEK
        )
        assert result.portfolio_id == "pf-1"
        assert result.number_of_simulations == 50
        assert result.starting_value == 10000.0

    @pytest.mark.asyncio
    async def test_liquidity_degrades_without_volume(self, service):
        result = await service.calculate_liquidity_risk("pf-1")
        assert result.degraded == ["volume_defaulted"]

    @pytest.mark.asyncio
    async def test_check_limits_computes_when_no_snapshot(self, service, snapshot_store):
        limits = RiskLimits(
            portfolio_id="pf-1", max_drawdown=100, max_var=100, max_volatility=5
        )

        check = await service.check_risk_limits("pf-1", limits)

        snapshot_store.find_latest.assert_called_once_with("pf-1")
        assert [b.limit_type for b in check.breaches] == ["max_var"]

    @pytest.mark.asyncio
    async def test_regulatory_report(self, service):
        report = await service.generate_risk_report(
            "pf-1",
            ReportType.REGULATORY,
            datetime(2024, 1, 1),
            datetime(2024, 3, 31),
        )

        assert report.portfolio_id == "pf-1"
        assert len(report.position_risks) == 2
        assert report.var_backtest.expected_violations == pytest.approx(5.0)

    @pytest.mark.asyncio
    async def test_performance_stats(self, service):
        stats = await service.calculate_performance_stats([100, -150, 50])
        assert stats.max_drawdown == pytest.approx(150.0)
