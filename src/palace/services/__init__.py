"""Service layer: market-driven execution and risk analytics."""

from .analytics import RiskAnalyticsService
from .execution import TradeExecutionService
from .snapshot_cache import SnapshotCache

__all__ = [
    "RiskAnalyticsService",
    "SnapshotCache",
    "TradeExecutionService",
]
