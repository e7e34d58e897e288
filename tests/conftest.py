"""Shared test configuration and fixtures."""

from datetime import datetime, timezone
from unittest.mock import Mock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from palace.config.settings import Settings
from palace.services.execution.models import (
    Alert,
    AlertCondition,
    Direction,
    MarketQuote,
    TradeIdea,
    open_position,
)


@pytest.fixture
def isolated_db():
    """Create an isolated in-memory database for testing."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=engine, expire_on_commit=False
    )

    from palace.ormdb.models import Base

    Base.metadata.create_all(bind=engine)

    yield {"engine": engine, "session_factory": SessionLocal}

    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(isolated_db):
    """Session bound to the isolated database."""
    session = isolated_db["session_factory"]()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def test_settings():
    """Settings with defaults, independent of the environment."""
    return Settings(environment="testing", _env_file=None)


@pytest.fixture
def make_quote():
    """Factory for market quotes."""

    def _make(symbol="AAPL", price=150.0, previous_close=None, **kwargs):
        return MarketQuote(
            symbol=symbol,
            price=price,
            previous_close=price if previous_close is None else previous_close,
            timestamp=datetime(2024, 1, 2, 15, 30, tzinfo=timezone.utc),
            **kwargs,
        )

    return _make


@pytest.fixture
def make_position():
    """Factory for open positions."""

    def _make(
        id="pos-1",
        owner_id="user-1",
        symbol="AAPL",
        quantity=10,
        entry_price=150.0,
        direction=Direction.LONG,
        stop_loss=None,
        take_profit=None,
    ):
        return open_position(
            id=id,
            owner_id=owner_id,
            symbol=symbol,
            quantity=quantity,
            entry_price=entry_price,
            direction=direction,
            stop_loss=stop_loss,
            take_profit=take_profit,
        )

    return _make


@pytest.fixture
def make_idea():
    """Factory for active trade ideas."""

    def _make(
        id="idea-1",
        symbol="AAPL",
        direction=Direction.LONG,
        entry_price=150.50,
        stop_loss=None,
        take_profit_1=None,
        take_profit_2=None,
        take_profit_3=None,
    ):
        return TradeIdea(
            id=id,
            owner_id="user-1",
            group_id="group-1",
            symbol=symbol,
            direction=direction,
            entry_price=entry_price,
            stop_loss=stop_loss,
            take_profit_1=take_profit_1,
            take_profit_2=take_profit_2,
            take_profit_3=take_profit_3,
        )

    return _make


@pytest.fixture
def make_alert():
    """Factory for active price alerts."""

    def _make(
        id="alert-1",
        symbol="AAPL",
        condition=AlertCondition.ABOVE,
        target_price=155.0,
    ):
        return Alert(
            id=id,
            owner_id="user-1",
            symbol=symbol,
            condition=condition,
            target_price=target_price,
        )

    return _make


@pytest.fixture
def mock_stores():
    """Mock position, trade idea and alert stores with empty defaults."""
    position_store = Mock()
    position_store.find_open_positions_by_symbol.return_value = []
    position_store.update_current_price.return_value = 0

    trade_idea_store = Mock()
    trade_idea_store.find_active_ideas.return_value = []

    alert_store = Mock()
    alert_store.find_active_alerts_by_symbol.return_value = []
    alert_store.trigger.return_value = True

    return {
        "positions": position_store,
        "ideas": trade_idea_store,
        "alerts": alert_store,
    }
