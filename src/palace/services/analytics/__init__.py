"""Portfolio risk and performance analytics."""

from .liquidity import LiquidityRiskCalculator
from .models import (
    Holding,
    LiquidityRisk,
    MonteCarloSimulation,
    PerformanceStats,
    Portfolio,
    PositionRisk,
    ReportType,
    RiskLevel,
    RiskLimitCheck,
    RiskLimits,
    RiskMetrics,
    RiskReport,
    StressScenario,
    StressTestResult,
    TimeHorizon,
    ValuePoint,
)
from .monte_carlo import MonteCarloSimulator
from .performance import PerformanceCalculator
from .position_risk import PositionRiskCalculator
from .providers import (
    MarketDataProvider,
    PortfolioStore,
    RiskSnapshotStore,
    StaticMarketData,
)
from .report import RiskReportBuilder
from .risk_limits import check_risk_limits
from .risk_metrics import RiskMetricsCalculator
from .service import RiskAnalyticsService
from .stress_test import StressTestRunner

__all__ = [
    "RiskAnalyticsService",
    "PerformanceCalculator",
    "RiskMetricsCalculator",
    "StressTestRunner",
    "MonteCarloSimulator",
    "LiquidityRiskCalculator",
    "PositionRiskCalculator",
    "RiskReportBuilder",
    "check_risk_limits",
    "PortfolioStore",
    "MarketDataProvider",
    "RiskSnapshotStore",
    "StaticMarketData",
    "Portfolio",
    "Holding",
    "ValuePoint",
    "PerformanceStats",
    "RiskMetrics",
    "RiskLevel",
    "TimeHorizon",
    "ReportType",
    "PositionRisk",
    "StressScenario",
    "StressTestResult",
    "MonteCarloSimulation",
    "LiquidityRisk",
    "RiskLimits",
    "RiskLimitCheck",
    "RiskReport",
]
