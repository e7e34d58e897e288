"""Repository for portfolios, holdings and value history."""

import datetime
from typing import List, Optional

from sqlalchemy import asc, desc

from ...exceptions import NotFoundError
from ...services.analytics.models import Holding, Portfolio, TimeHorizon, ValuePoint
from ..models import PortfolioHolding, PortfolioRecord, PortfolioValue
from .base import BaseRepository


def to_portfolio(record: PortfolioRecord) -> Portfolio:
    return Portfolio(
        id=record.id,
        owner_id=record.owner_id,
        name=record.name,
        total_value=record.total_value,
    )


def to_holding(record: PortfolioHolding) -> Holding:
    return Holding(
        id=record.id,
        symbol=record.symbol,
        quantity=record.quantity,
        current_price=record.current_price,
    )


def _as_date(value) -> datetime.date:
    if isinstance(value, datetime.datetime):
        return value.date()
    return value


class PortfolioRepository(BaseRepository):
    """Repository for portfolios used by risk analytics."""

    def create_portfolio(
        self, owner_id: str, name: str, total_value: float = 0.0
    ) -> Portfolio:
        record = PortfolioRecord(owner_id=owner_id, name=name, total_value=total_value)
        self.session.add(record)
        self.session.commit()
        self.session.refresh(record)
        return to_portfolio(record)

    def add_holding(
        self, portfolio_id: str, symbol: str, quantity: float, current_price: float
    ) -> Holding:
        """Add a holding and fold its value into the portfolio total."""
        portfolio = self.session.get(PortfolioRecord, portfolio_id)
        if portfolio is None:
            raise NotFoundError("Portfolio", portfolio_id)

        record = PortfolioHolding(
            portfolio_id=portfolio_id,
            symbol=symbol.upper(),
            quantity=quantity,
            current_price=current_price,
        )
        portfolio.total_value += quantity * current_price
        self.session.add(record)
        self.session.commit()
        self.session.refresh(record)
        return to_holding(record)

    def record_value(
        self, portfolio_id: str, on: datetime.date, value: float
    ) -> ValuePoint:
        """Insert or replace the valuation for a day."""
        record = (
            self.session.query(PortfolioValue)
            .filter(
                PortfolioValue.portfolio_id == portfolio_id,
                PortfolioValue.date == on,
            )
            .first()
        )
        if record is None:
            record = PortfolioValue(portfolio_id=portfolio_id, date=on, value=value)
            self.session.add(record)
        else:
            record.value = value
        self.session.commit()
        return ValuePoint(date=on, value=value)

    def find_by_id(self, portfolio_id: str) -> Optional[Portfolio]:
        record = self.session.get(PortfolioRecord, portfolio_id)
        return to_portfolio(record) if record else None

    def find_holdings(self, portfolio_id: str) -> List[Holding]:
        records = (
            self.session.query(PortfolioHolding)
            .filter(PortfolioHolding.portfolio_id == portfolio_id)
            .order_by(asc(PortfolioHolding.symbol))
            .all()
        )
        return [to_holding(r) for r in records]

    def get_historical_values(
        self,
        portfolio_id: str,
        start: datetime.datetime,
        end: datetime.datetime,
    ) -> List[ValuePoint]:
        """Valuations between ``start`` and ``end`` inclusive, oldest first."""
        records = (
            self.session.query(PortfolioValue)
            .filter(
                PortfolioValue.portfolio_id == portfolio_id,
                PortfolioValue.date >= _as_date(start),
                PortfolioValue.date <= _as_date(end),
            )
            .order_by(asc(PortfolioValue.date))
            .all()
        )
        return [ValuePoint(date=r.date, value=r.value) for r in records]

    def get_returns(self, portfolio_id: str, horizon: TimeHorizon) -> List[float]:
        """Simple returns over the most recent ``horizon.days`` valuations."""
        records = (
            self.session.query(PortfolioValue)
            .filter(PortfolioValue.portfolio_id == portfolio_id)
            .order_by(desc(PortfolioValue.date))
            .limit(horizon.days + 1)
            .all()
        )
        values = [r.value for r in reversed(records)]
        return [
            (current - previous) / previous
            for previous, current in zip(values, values[1:])
            if previous
        ]
