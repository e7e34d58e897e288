"""Repository classes for database operations using SQLAlchemy ORM."""

from .base import BaseRepository
from .paper_position import PaperPositionRepository
from .portfolio import PortfolioRepository
from .price_alert import PriceAlertRepository
from .risk_metrics import RiskMetricsRepository
from .trade_idea import TradeIdeaRepository

__all__ = [
    "BaseRepository",
    "PaperPositionRepository",
    "PortfolioRepository",
    "PriceAlertRepository",
    "RiskMetricsRepository",
    "TradeIdeaRepository",
]
