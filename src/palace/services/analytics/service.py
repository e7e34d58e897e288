"""Risk analytics service orchestration."""

import time
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Iterable, List, Optional, Sequence, TypeVar

from ...config.logging import get_logger, log_performance
from ...config.settings import Settings, get_settings
from ...exceptions import NotFoundError, OperationFailedError
from ..snapshot_cache import SnapshotCache
from .liquidity import LiquidityRiskCalculator
from .models import (
    Holding,
    LiquidityRisk,
    MonteCarloSimulation,
    PerformanceStats,
    Portfolio,
    PositionRisk,
    ReportType,
    RiskLimitCheck,
    RiskLimits,
    RiskMetrics,
    RiskReport,
    StressScenario,
    StressTestResult,
    TimeHorizon,
)
from .monte_carlo import MonteCarloSimulator
from .performance import PerformanceCalculator
from .position_risk import PositionRiskCalculator
from .providers import MarketDataProvider, PortfolioStore, RiskSnapshotStore, StaticMarketData
from .report import RiskReportBuilder
from .risk_limits import check_risk_limits
from .risk_metrics import RiskMetricsCalculator
from .stress_test import StressTestRunner

logger = get_logger(__name__)

T = TypeVar("T")

DRAWDOWN_LOOKBACK_DAYS = 90

SNAPSHOT_NOT_PERSISTED = "snapshot_not_persisted"


class RiskAnalyticsService:
    """
    Portfolio risk analytics over injected stores and market data.

    Portfolio data is required: a missing portfolio raises NotFoundError and a
    failing store raises OperationFailedError. Market data and snapshot
    persistence are optional; their failures fall back to defaults and are
    reported through ``RiskMetrics.degraded``.
    """

    def __init__(
        self,
        portfolio_store: PortfolioStore,
        market_data: Optional[MarketDataProvider] = None,
        snapshot_store: Optional[RiskSnapshotStore] = None,
        cache: Optional[SnapshotCache] = None,
        settings: Optional[Settings] = None,
        monte_carlo: Optional[MonteCarloSimulator] = None,
    ):
        self.settings = settings or get_settings()
        self.portfolio_store = portfolio_store
        self.market_data = market_data or StaticMarketData(
            self.settings.risk_free_rate, self.settings.market_return
        )
        self.snapshot_store = snapshot_store
        self.cache = cache or SnapshotCache(
            ttl_seconds=self.settings.snapshot_cache_ttl_seconds,
            max_entries=self.settings.snapshot_cache_max_entries,
        )
        self.logger = logger.bind(service="risk_analytics")

        days = self.settings.trading_days_per_year
        self.performance = PerformanceCalculator(
            self.settings.reference_capital, days
        )
        self.risk_metrics = RiskMetricsCalculator(
            days, self.settings.reference_capital
        )
        self.position_risk = PositionRiskCalculator(
            self.settings.default_asset_volatility, days
        )
        self.stress_test = StressTestRunner(
            self.settings.stress_base_volatility,
            self.settings.stress_scenario_probability,
            self.settings.risk_free_rate,
            days,
        )
        self.monte_carlo = monte_carlo or MonteCarloSimulator(
            path_sample_size=self.settings.monte_carlo_path_sample,
            max_simulations=self.settings.monte_carlo_max_simulations,
        )
        self.liquidity = LiquidityRiskCalculator(
            self.settings.liquidity_participation_rate,
            self.settings.default_daily_volume,
        )
        self.report_builder = RiskReportBuilder(
            high_var=self.settings.reference_capital * 0.1
        )

    async def calculate_risk_metrics(
        self,
        portfolio_id: str,
        time_horizon: TimeHorizon = TimeHorizon.ONE_MONTH,
        confidence_level: float = 0.95,
        include_correlations: bool = True,
    ) -> RiskMetrics:
        """
        Calculate, persist and cache a risk snapshot for a portfolio.

        Args:
            portfolio_id: Portfolio identifier
            time_horizon: Horizon for the return series
            confidence_level: VaR confidence level
            include_correlations: Whether to fetch symbol correlations

        Returns:
            RiskMetrics snapshot
        """
        start = time.perf_counter()
        degraded: List[str] = []

        portfolio = self._load_portfolio(portfolio_id)
        holdings = self._load_holdings(portfolio_id)
        returns = self._call(
            "load portfolio returns",
            self.portfolio_store.get_returns,
            portfolio_id,
            time_horizon,
        )

        now = datetime.now(timezone.utc)
        history = self._optional(
            "value_history",
            degraded,
            None,
            self.portfolio_store.get_historical_values,
            portfolio_id,
            now - timedelta(days=DRAWDOWN_LOOKBACK_DAYS),
            now,
        )
        risk_free_rate = self._optional(
            "risk_free_rate",
            degraded,
            self.settings.risk_free_rate,
            self.market_data.get_risk_free_rate,
        )
        market_return = self._optional(
            "market_return",
            degraded,
            self.settings.market_return,
            self.market_data.get_market_return,
        )
        benchmark = self._optional(
            "benchmark_returns",
            degraded,
            None,
            self.market_data.get_benchmark_returns,
            time_horizon,
        )
        correlation = {}
        if include_correlations:
            correlation = self._optional(
                "correlations",
                degraded,
                {},
                self.market_data.get_correlations,
                [h.symbol for h in holdings],
            )

        metrics = self.risk_metrics.compute(
            portfolio.total_value,
            returns,
            confidence_level=confidence_level,
            risk_free_rate=risk_free_rate,
            market_return=market_return,
            benchmark_returns=benchmark,
            value_history=[p.value for p in history] if history else None,
            portfolio_id=portfolio_id,
            time_horizon=time_horizon,
            correlation=correlation,
        )
        metrics.degraded = degraded + metrics.degraded

        self._persist(metrics)
        self.cache.put(portfolio_id, metrics)

        log_performance(
            "calculate_risk_metrics",
            (time.perf_counter() - start) * 1000,
            portfolio_id=portfolio_id,
            risk_level=metrics.risk_level.value,
            degraded=metrics.degraded,
        )
        return metrics

    async def get_latest_metrics(self, portfolio_id: str) -> Optional[RiskMetrics]:
        """
        Latest known snapshot: cache first, then the snapshot store.

        Args:
            portfolio_id: Portfolio identifier

        Returns:
            RiskMetrics or None if nothing has been computed yet
        """
        cached = self.cache.get(portfolio_id)
        if cached is not None:
            return cached
        if self.snapshot_store is None:
            return None

        latest = self._call(
            "load latest risk metrics", self.snapshot_store.find_latest, portfolio_id
        )
        if latest is not None:
            self.cache.put(portfolio_id, latest)
        return latest

    async def calculate_performance_stats(
        self, pnls: Sequence[float]
    ) -> PerformanceStats:
        """Performance statistics for realized pnl, oldest first."""
        return self.performance.compute(pnls)

    async def calculate_position_risks(self, portfolio_id: str) -> List[PositionRisk]:
        """
        Per-holding risk contributions.

        Args:
            portfolio_id: Portfolio identifier

        Returns:
            List of PositionRisk
        """
        portfolio = self._load_portfolio(portfolio_id)
        holdings = self._load_holdings(portfolio_id)
        volatilities = self._optional(
            "volatility",
            [],
            {},
            self.market_data.get_volatility,
            [h.symbol for h in holdings],
        )
        return self.position_risk.compute(portfolio, holdings, volatilities)

    async def run_stress_tests(
        self, portfolio_id: str, scenarios: Iterable[StressScenario]
    ) -> List[StressTestResult]:
        """
        Apply stress scenarios to a portfolio.

        Args:
            portfolio_id: Portfolio identifier
            scenarios: Market shocks to evaluate

        Returns:
            One StressTestResult per scenario
        """
        portfolio = self._load_portfolio(portfolio_id)
        holdings = self._load_holdings(portfolio_id)
        return self.stress_test.run(portfolio, holdings, list(scenarios))

    async def run_monte_carlo_simulation(
        self,
        portfolio_id: str,
        number_of_simulations: int,
        time_horizon: TimeHorizon = TimeHorizon.ONE_MONTH,
    ) -> MonteCarloSimulation:
        """
        Simulate the portfolio value distribution over a horizon.

        Args:
            portfolio_id: Portfolio identifier
            number_of_simulations: Number of simulated paths
            time_horizon: Simulation horizon

        Returns:
            MonteCarloSimulation
        """
        portfolio = self._load_portfolio(portfolio_id)
        returns = self._call(
            "load portfolio returns",
            self.portfolio_store.get_returns,
            portfolio_id,
            time_horizon,
        )
        return self.monte_carlo.simulate(
            portfolio.total_value,
            returns,
            number_of_simulations,
            time_horizon,
            portfolio_id=portfolio_id,
        )

    async def calculate_liquidity_risk(self, portfolio_id: str) -> LiquidityRisk:
        """Liquidation profile of a portfolio's holdings."""
        portfolio = self._load_portfolio(portfolio_id)
        holdings = self._load_holdings(portfolio_id)
        degraded: List[str] = []
        volumes = self._optional(
            "volume",
            degraded,
            {},
            self.market_data.get_volume,
            [h.symbol for h in holdings],
        )
        result = self.liquidity.compute(portfolio, holdings, volumes)
        result.degraded = degraded + result.degraded
        return result

    async def check_risk_limits(
        self, portfolio_id: str, limits: RiskLimits
    ) -> RiskLimitCheck:
        """
        Check the latest snapshot against limits, computing one if needed.

        Args:
            portfolio_id: Portfolio identifier
            limits: Limits to enforce

        Returns:
            RiskLimitCheck with any breaches
        """
        self._load_portfolio(portfolio_id)
        metrics = await self.get_latest_metrics(portfolio_id)
        if metrics is None:
            metrics = await self.calculate_risk_metrics(portfolio_id)
        return check_risk_limits(metrics, limits)

    async def generate_risk_report(
        self,
        portfolio_id: str,
        report_type: ReportType,
        start_date: datetime,
        end_date: datetime,
    ) -> RiskReport:
        """
        Generate a risk report for a period.

        Args:
            portfolio_id: Portfolio identifier
            report_type: SUMMARY, DETAILED or REGULATORY
            start_date: Period start
            end_date: Period end

        Returns:
            RiskReport
        """
        portfolio = self._load_portfolio(portfolio_id)
        metrics = await self.get_latest_metrics(portfolio_id)
        if metrics is None:
            metrics = await self.calculate_risk_metrics(portfolio_id)

        position_risks = await self.calculate_position_risks(portfolio_id)
        history = self._optional(
            "value_history",
            [],
            [],
            self.portfolio_store.get_historical_values,
            portfolio_id,
            start_date,
            end_date,
        )

        returns = None
        if report_type is ReportType.REGULATORY:
            returns = self._call(
                "load portfolio returns",
                self.portfolio_store.get_returns,
                portfolio_id,
                metrics.time_horizon,
            )

        self.logger.info(
            "Generated risk report",
            portfolio_id=portfolio_id,
            report_type=report_type.value,
        )
        return self.report_builder.build(
            portfolio_id,
            report_type,
            start_date,
            end_date,
            metrics,
            position_risks,
            history=history or [],
            returns=returns,
            portfolio_value=portfolio.total_value,
        )

    def _load_portfolio(self, portfolio_id: str) -> Portfolio:
        portfolio = self._call(
            "load portfolio", self.portfolio_store.find_by_id, portfolio_id
        )
        if portfolio is None:
            raise NotFoundError("Portfolio", portfolio_id)
        return portfolio

    def _load_holdings(self, portfolio_id: str) -> List[Holding]:
        return self._call(
            "load holdings", self.portfolio_store.find_holdings, portfolio_id
        )

    def _call(self, operation: str, fn: Callable[..., T], *args: Any) -> T:
        try:
            return fn(*args)
        except Exception as e:
            self.logger.error(
                f"Failed to {operation}", error=str(e), exc_info=True
            )
            raise OperationFailedError(operation, e) from e

    def _optional(
        self,
        name: str,
        degraded: List[str],
        default: Any,
        fn: Callable[..., Any],
        *args: Any,
    ) -> Any:
        try:
            return fn(*args)
        except Exception as e:
            self.logger.warning(
                "Optional data unavailable, using default",
                source=name,
                error=str(e),
            )
            degraded.append(f"{name}_unavailable")
            return default

    def _persist(self, metrics: RiskMetrics) -> None:
        if self.snapshot_store is None:
            return
        try:
            self.snapshot_store.save_metrics(metrics)
        except Exception as e:
            self.logger.warning(
                "Failed to persist risk metrics snapshot",
                portfolio_id=metrics.portfolio_id,
                error=str(e),
            )
            metrics.degraded.append(SNAPSHOT_NOT_PERSISTED)
