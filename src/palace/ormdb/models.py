"""SQLAlchemy ORM models for positions, trade ideas, alerts and portfolios."""

import datetime
import uuid

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.types import JSON

from .database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class PaperPosition(Base):
    """Simulated position opened by a user."""

    __tablename__ = "paper_positions"

    id = Column(String(36), primary_key=True, default=_new_id)
    owner_id = Column(String, nullable=False, index=True)
    symbol = Column(String(20), nullable=False, index=True)
    direction = Column(String(5), nullable=False, default="LONG")
    quantity = Column(Float, nullable=False)
    entry_price = Column(Float, nullable=False)
    current_price = Column(Float, nullable=False)
    stop_loss = Column(Float, nullable=True)
    take_profit = Column(Float, nullable=True)
    pnl = Column(Float, nullable=False, default=0.0)
    pnl_percent = Column(Float, nullable=False, default=0.0)
    status = Column(String(10), nullable=False, default="OPEN", index=True)
    opened_at = Column(DateTime, nullable=False, default=_utcnow)
    closed_at = Column(DateTime, nullable=True)
    closed_price = Column(Float, nullable=True)
    close_reason = Column(String, nullable=True)
    group_id = Column(String, nullable=True)
    trade_idea_id = Column(String, nullable=True)

    def __repr__(self):
        return (
            f"<PaperPosition(id='{self.id}', symbol='{self.symbol}', "
            f"status='{self.status}')>"
        )


class TradeIdeaRecord(Base):
    """Trade idea shared with a group."""

    __tablename__ = "trade_ideas"

    id = Column(String(36), primary_key=True, default=_new_id)
    owner_id = Column(String, nullable=False, index=True)
    group_id = Column(String, nullable=False, index=True)
    symbol = Column(String(20), nullable=False, index=True)
    direction = Column(String(5), nullable=False)
    entry_price = Column(Float, nullable=False)
    stop_loss = Column(Float, nullable=True)
    take_profit_1 = Column(Float, nullable=True)
    take_profit_2 = Column(Float, nullable=True)
    take_profit_3 = Column(Float, nullable=True)
    status = Column(String(10), nullable=False, default="ACTIVE", index=True)
    closed_price = Column(Float, nullable=True)
    closed_at = Column(DateTime, nullable=True)
    pnl = Column(Float, nullable=True)
    created_at = Column(DateTime, nullable=False, default=_utcnow)

    def __repr__(self):
        return f"<TradeIdeaRecord(id='{self.id}', symbol='{self.symbol}')>"


class PriceAlert(Base):
    """Price alert owned by a user."""

    __tablename__ = "price_alerts"

    id = Column(String(36), primary_key=True, default=_new_id)
    owner_id = Column(String, nullable=False, index=True)
    symbol = Column(String(20), nullable=False, index=True)
    condition = Column(String(15), nullable=False)
    target_price = Column(Float, nullable=False)
    status = Column(String(10), nullable=False, default="ACTIVE", index=True)
    triggered_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=_utcnow)

    def __repr__(self):
        return f"<PriceAlert(id='{self.id}', symbol='{self.symbol}')>"


class PortfolioRecord(Base):
    """Portfolio whose risk is analyzed."""

    __tablename__ = "portfolios"

    id = Column(String(36), primary_key=True, default=_new_id)
    owner_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    total_value = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime, nullable=False, default=_utcnow)

    holdings = relationship(
        "PortfolioHolding", back_populates="portfolio", cascade="all, delete-orphan"
    )
    values = relationship(
        "PortfolioValue", back_populates="portfolio", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<PortfolioRecord(id='{self.id}', name='{self.name}')>"


class PortfolioHolding(Base):
    """Asset held by a portfolio."""

    __tablename__ = "portfolio_holdings"

    id = Column(String(36), primary_key=True, default=_new_id)
    portfolio_id = Column(
        String(36), ForeignKey("portfolios.id"), nullable=False, index=True
    )
    symbol = Column(String(20), nullable=False)
    quantity = Column(Float, nullable=False)
    current_price = Column(Float, nullable=False)

    portfolio = relationship("PortfolioRecord", back_populates="holdings")


class PortfolioValue(Base):
    """Daily portfolio valuation."""

    __tablename__ = "portfolio_values"
    __table_args__ = (UniqueConstraint("portfolio_id", "date"),)

    id = Column(Integer, primary_key=True, index=True)
    portfolio_id = Column(
        String(36), ForeignKey("portfolios.id"), nullable=False, index=True
    )
    date = Column(Date, nullable=False)
    value = Column(Float, nullable=False)

    portfolio = relationship("PortfolioRecord", back_populates="values")


class RiskMetricSnapshot(Base):
    """Append-only record of computed risk metrics."""

    __tablename__ = "risk_metric_snapshots"

    id = Column(Integer, primary_key=True, index=True)
    portfolio_id = Column(String(36), nullable=False, index=True)
    calculated_at = Column(DateTime, nullable=False, default=_utcnow, index=True)
    value_at_risk = Column(Float, nullable=False)
    risk_score = Column(Float, nullable=False)
    risk_level = Column(String(10), nullable=False)
    payload = Column(JSON, nullable=False)

    def __repr__(self):
        return (
            f"<RiskMetricSnapshot(portfolio_id='{self.portfolio_id}', "
            f"risk_level='{self.risk_level}')>"
        )
