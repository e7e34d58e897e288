"""Collaborators supplying portfolio data and market assumptions."""

from datetime import datetime
from typing import Dict, List, Optional, Protocol, Sequence

from ...constants import DEFAULT_MARKET_RETURN, DEFAULT_RISK_FREE_RATE
from .models import Holding, Portfolio, RiskMetrics, TimeHorizon, ValuePoint


class PortfolioStore(Protocol):
    """Read access to portfolios, holdings and their history."""

    def find_by_id(self, portfolio_id: str) -> Optional[Portfolio]:
        ...

    def find_holdings(self, portfolio_id: str) -> List[Holding]:
        ...

    def get_historical_values(
        self, portfolio_id: str, start: datetime, end: datetime
    ) -> List[ValuePoint]:
        ...

    def get_returns(self, portfolio_id: str, horizon: TimeHorizon) -> List[float]:
        ...


class MarketDataProvider(Protocol):
    """Market assumptions. Every method may fail; callers fall back to defaults."""

    def get_risk_free_rate(self) -> float:
        ...

    def get_market_return(self) -> float:
        ...

    def get_benchmark_returns(self, horizon: TimeHorizon) -> Optional[List[float]]:
        ...

    def get_correlations(self, symbols: Sequence[str]) -> Dict[str, float]:
        ...

    def get_volatility(self, symbols: Sequence[str]) -> Dict[str, float]:
        ...

    def get_volume(self, symbols: Sequence[str]) -> Dict[str, float]:
        ...


class RiskSnapshotStore(Protocol):
    """Append-only storage of computed metrics."""

    def save_metrics(self, metrics: RiskMetrics) -> None:
        ...

    def find_latest(self, portfolio_id: str) -> Optional[RiskMetrics]:
        ...


class StaticMarketData:
    """Fixed market assumptions with no benchmark, volatility or volume data."""

    def __init__(
        self,
        risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
        market_return: float = DEFAULT_MARKET_RETURN,
    ):
        self.risk_free_rate = risk_free_rate
        self.market_return = market_return

    def get_risk_free_rate(self) -> float:
        return self.risk_free_rate

    def get_market_return(self) -> float:
        return self.market_return

    def get_benchmark_returns(self, horizon: TimeHorizon) -> Optional[List[float]]:
        return None

    def get_correlations(self, symbols: Sequence[str]) -> Dict[str, float]:
        return {}

    def get_volatility(self, symbols: Sequence[str]) -> Dict[str, float]:
        return {}

    def get_volume(self, symbols: Sequence[str]) -> Dict[str, float]:
        return {}
