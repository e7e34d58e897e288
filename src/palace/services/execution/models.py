"""Data models for price-driven execution of positions, trade ideas and alerts."""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

from ...exceptions import AlertStateError, PositionStateError


class Direction(Enum):
    """Trade direction."""

    LONG = "LONG"
    SHORT = "SHORT"


class PositionStatus(Enum):
    """Lifecycle of a simulated position. CLOSED and STOPPED are terminal."""

    OPEN = "OPEN"
    CLOSED = "CLOSED"
    STOPPED = "STOPPED"


class TradeIdeaStatus(Enum):
    """Lifecycle of a trade idea. Only ACTIVE ideas are evaluated."""

    ACTIVE = "ACTIVE"
    CLOSED = "CLOSED"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"


class AlertCondition(Enum):
    """Price alert conditions."""

    ABOVE = "ABOVE"
    BELOW = "BELOW"
    CROSSES_ABOVE = "CROSSES_ABOVE"
    CROSSES_BELOW = "CROSSES_BELOW"


class AlertStatus(Enum):
    """Alert lifecycle: ACTIVE -> TRIGGERED, once."""

    ACTIVE = "ACTIVE"
    TRIGGERED = "TRIGGERED"


class TriggerKind(Enum):
    """Which protective level fired."""

    STOP_LOSS = "STOP_LOSS"
    TAKE_PROFIT = "TAKE_PROFIT"


STOP_LOSS_REASON = "Stop loss triggered"
TAKE_PROFIT_REASON = "Take profit triggered"

CLOSE_REASONS = {
    TriggerKind.STOP_LOSS: STOP_LOSS_REASON,
    TriggerKind.TAKE_PROFIT: TAKE_PROFIT_REASON,
}

CLOSE_STATUSES = {
    TriggerKind.STOP_LOSS: PositionStatus.STOPPED,
    TriggerKind.TAKE_PROFIT: PositionStatus.CLOSED,
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MarketQuote(BaseModel):
    """Normalized market quote, one per symbol per update cycle."""

    model_config = {"frozen": True}

    symbol: str = Field(..., min_length=1, max_length=20)
    price: float = Field(..., gt=0)
    change: float = 0.0
    change_percent: float = 0.0
    volume: float = Field(0.0, ge=0)
    high: float = 0.0
    low: float = 0.0
    open: float = 0.0
    previous_close: Optional[float] = Field(None, gt=0)
    timestamp: datetime = Field(default_factory=_utcnow)

    @field_validator("symbol")
    @classmethod
    def normalize_symbol(cls, v):
        """Symbols are matched case-insensitively."""
        return v.strip().upper()


@dataclass(frozen=True)
class PnL:
    """Profit and loss of a position at a given price."""

    pnl: float
    pnl_percent: float


def calculate_pnl(
    direction: Direction, entry_price: float, price: float, quantity: float
) -> PnL:
    """
    Derive pnl and pnl percent for a position.

    This is the only place position pnl is computed; every call site that
    needs pnl goes through here.

    Args:
        direction: LONG or SHORT
        entry_price: Price the position was opened at
        price: Mark or close price
        quantity: Position size (unsigned)

    Returns:
        PnL with absolute and percentage values
    """
    if direction is Direction.LONG:
        per_unit = price - entry_price
    else:
        per_unit = entry_price - price

    pnl_percent = (per_unit / entry_price) * 100 if entry_price else 0.0
    return PnL(pnl=per_unit * quantity, pnl_percent=pnl_percent)


@dataclass(frozen=True)
class Position:
    """Simulated position snapshot."""

    id: str
    owner_id: str
    symbol: str
    quantity: float
    entry_price: float
    current_price: float
    direction: Direction = Direction.LONG
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None
    pnl: float = 0.0
    pnl_percent: float = 0.0
    status: PositionStatus = PositionStatus.OPEN
    opened_at: datetime = field(default_factory=_utcnow)
    closed_at: Optional[datetime] = None
    closed_price: Optional[float] = None
    close_reason: Optional[str] = None
    group_id: Optional[str] = None
    trade_idea_id: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.status is PositionStatus.OPEN


def open_position(
    id: str,
    owner_id: str,
    symbol: str,
    quantity: float,
    entry_price: float,
    direction: Direction = Direction.LONG,
    stop_loss: Optional[float] = None,
    take_profit: Optional[float] = None,
    **extra,
) -> Position:
    """Create an OPEN position marked at its entry price."""
    return Position(
        id=id,
        owner_id=owner_id,
        symbol=symbol.upper(),
        quantity=quantity,
        entry_price=entry_price,
        current_price=entry_price,
        direction=direction,
        stop_loss=stop_loss,
        take_profit=take_profit,
        **extra,
    )


def mark_to_market(position: Position, price: float) -> Position:
    """Return a copy of an OPEN position re-priced at ``price``."""
    if not position.is_open:
        raise PositionStateError(position.id, position.status.value)

    result = calculate_pnl(
        position.direction, position.entry_price, price, position.quantity
    )
    return replace(
        position,
        current_price=price,
        pnl=result.pnl,
        pnl_percent=result.pnl_percent,
    )


def close_position(
    position: Position,
    price: float,
    reason: Optional[str] = None,
    status: PositionStatus = PositionStatus.CLOSED,
    at: Optional[datetime] = None,
) -> Position:
    """Return a terminal copy of ``position`` closed at ``price``."""
    if not position.is_open:
        raise PositionStateError(position.id, position.status.value)
    if status is PositionStatus.OPEN:
        raise ValueError("Closing status must be CLOSED or STOPPED")

    result = calculate_pnl(
        position.direction, position.entry_price, price, position.quantity
    )
    return replace(
        position,
        status=status,
        current_price=price,
        closed_price=price,
        closed_at=at or _utcnow(),
        close_reason=reason or "Manual close",
        pnl=result.pnl,
        pnl_percent=result.pnl_percent,
    )


@dataclass(frozen=True)
class TradeIdea:
    """Shared trade idea with up to three take-profit tiers."""

    id: str
    owner_id: str
    group_id: str
    symbol: str
    direction: Direction
    entry_price: float
    stop_loss: Optional[float] = None
    take_profit_1: Optional[float] = None
    take_profit_2: Optional[float] = None
    take_profit_3: Optional[float] = None
    status: TradeIdeaStatus = TradeIdeaStatus.ACTIVE
    closed_price: Optional[float] = None
    closed_at: Optional[datetime] = None
    pnl: Optional[float] = None

    @property
    def is_active(self) -> bool:
        return self.status is TradeIdeaStatus.ACTIVE

    def take_profit_levels(self) -> List[Tuple[int, float]]:
        """
        Configured take-profit tiers as ``(tier, price)`` ordered by proximity
        to entry: ascending for LONG, descending for SHORT.
        """
        tiers = [
            (tier, level)
            for tier, level in (
                (1, self.take_profit_1),
                (2, self.take_profit_2),
                (3, self.take_profit_3),
            )
            if level is not None
        ]
        return sorted(
            tiers,
            key=lambda item: item[1],
            reverse=self.direction is Direction.SHORT,
        )


def idea_pnl(idea: TradeIdea, close_price: float) -> float:
    """Per-unit pnl of a trade idea closed at ``close_price``."""
    return calculate_pnl(idea.direction, idea.entry_price, close_price, 1).pnl


@dataclass(frozen=True)
class Alert:
    """Price alert owned by a user."""

    id: str
    owner_id: str
    symbol: str
    condition: AlertCondition
    target_price: float
    status: AlertStatus = AlertStatus.ACTIVE
    triggered_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status is AlertStatus.ACTIVE


def trigger_alert(alert: Alert, at: Optional[datetime] = None) -> Alert:
    """Move an ACTIVE alert to TRIGGERED. Raises if it already fired."""
    if not alert.is_active:
        raise AlertStateError(alert.id)
    return replace(alert, status=AlertStatus.TRIGGERED, triggered_at=at or _utcnow())


@dataclass(frozen=True)
class ExecutionDecision:
    """Close instruction produced by an evaluator.

    ``close_price`` is always the configured level (fill-at-limit), never
    the raw quote price.
    """

    kind: TriggerKind
    close_price: float
    quote_price: float
    reason: str
    status: PositionStatus
    pnl: float = 0.0
    tier: Optional[int] = None

    @classmethod
    def for_level(
        cls,
        kind: TriggerKind,
        level: float,
        quote_price: float,
        pnl: float = 0.0,
        tier: Optional[int] = None,
    ) -> "ExecutionDecision":
        return cls(
            kind=kind,
            close_price=level,
            quote_price=quote_price,
            reason=CLOSE_REASONS[kind],
            status=CLOSE_STATUSES[kind],
            pnl=pnl,
            tier=tier,
        )


@dataclass
class ExecutionResult:
    """Result of an explicit stop-loss / take-profit execution request."""

    success: bool
    position: Optional[Position] = None
    decision: Optional[ExecutionDecision] = None
    error_message: Optional[str] = None


@dataclass
class MarketUpdateResult:
    """Aggregated counts for one market update batch."""

    success: bool
    positions_updated: int = 0
    positions_closed: int = 0
    alerts_triggered: int = 0
    trades_executed: int = 0
    error_message: Optional[str] = None
    error: Optional[BaseException] = None
    failed_symbol: Optional[str] = None

    def to_dict(self) -> dict:
        """Counts in the shape reported to callers."""
        return {
            "positions_updated": self.positions_updated,
            "positions_closed": self.positions_closed,
            "alerts_triggered": self.alerts_triggered,
            "trades_executed": self.trades_executed,
        }
