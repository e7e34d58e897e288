"""SQLAlchemy storage for positions, trade ideas, alerts, portfolios and risk snapshots."""

from .database import (
    Base,
    check_database_health,
    create_engine_for_url,
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    get_session_factory,
    get_session_sync,
)
from .models import (
    PaperPosition,
    PortfolioHolding,
    PortfolioRecord,
    PortfolioValue,
    PriceAlert,
    RiskMetricSnapshot,
    TradeIdeaRecord,
)
from .repositories import (
    BaseRepository,
    PaperPositionRepository,
    PortfolioRepository,
    PriceAlertRepository,
    RiskMetricsRepository,
    TradeIdeaRepository,
)

__all__ = [
    # Database components
    "Base",
    "check_database_health",
    "create_engine_for_url",
    "create_tables",
    "drop_tables",
    "get_engine",
    "get_session",
    "get_session_factory",
    "get_session_sync",
    # Models
    "PaperPosition",
    "PortfolioHolding",
    "PortfolioRecord",
    "PortfolioValue",
    "PriceAlert",
    "RiskMetricSnapshot",
    "TradeIdeaRecord",
    # Repositories
    "BaseRepository",
    "PaperPositionRepository",
    "PortfolioRepository",
    "PriceAlertRepository",
    "RiskMetricsRepository",
    "TradeIdeaRepository",
]
