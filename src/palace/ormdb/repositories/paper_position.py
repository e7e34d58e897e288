"""Repository for simulated position operations."""

from typing import Dict, List, Optional

from sqlalchemy import asc

from ...exceptions import NotFoundError
from ...services.execution.models import (
    Direction,
    Position,
    PositionStatus,
    close_position,
    mark_to_market,
)
from ..models import PaperPosition
from .base import BaseRepository


def to_position(record: PaperPosition) -> Position:
    """Map a row to a position snapshot."""
    return Position(
        id=record.id,
        owner_id=record.owner_id,
        symbol=record.symbol,
        quantity=record.quantity,
        entry_price=record.entry_price,
        current_price=record.current_price,
        direction=Direction(record.direction),
        stop_loss=record.stop_loss,
        take_profit=record.take_profit,
        pnl=record.pnl,
        pnl_percent=record.pnl_percent,
        status=PositionStatus(record.status),
        opened_at=record.opened_at,
        closed_at=record.closed_at,
        closed_price=record.closed_price,
        close_reason=record.close_reason,
        group_id=record.group_id,
        trade_idea_id=record.trade_idea_id,
    )


def _apply(record: PaperPosition, position: Position) -> None:
    record.current_price = position.current_price
    record.pnl = position.pnl
    record.pnl_percent = position.pnl_percent
    record.status = position.status.value
    record.closed_at = position.closed_at
    record.closed_price = position.closed_price
    record.close_reason = position.close_reason


class PaperPositionRepository(BaseRepository):
    """Repository for simulated positions."""

    def add(self, position: Position) -> Position:
        """Persist a new position."""
        record = PaperPosition(
            id=position.id,
            owner_id=position.owner_id,
            symbol=position.symbol.upper(),
            direction=position.direction.value,
            quantity=position.quantity,
            entry_price=position.entry_price,
            current_price=position.current_price,
            stop_loss=position.stop_loss,
            take_profit=position.take_profit,
            pnl=position.pnl,
            pnl_percent=position.pnl_percent,
            status=position.status.value,
            opened_at=position.opened_at,
            group_id=position.group_id,
            trade_idea_id=position.trade_idea_id,
        )
        self.session.add(record)
        self.session.commit()
        self.session.refresh(record)
        return to_position(record)

    def find_by_id(self, position_id: str) -> Optional[Position]:
        record = self.session.get(PaperPosition, position_id)
        return to_position(record) if record else None

    def find_open_positions_by_symbol(self, symbol: str) -> List[Position]:
        records = (
            self.session.query(PaperPosition)
            .filter(
                PaperPosition.symbol == symbol.upper(),
                PaperPosition.status == PositionStatus.OPEN.value,
            )
            .order_by(asc(PaperPosition.opened_at))
            .all()
        )
        return [to_position(r) for r in records]

    def close(
        self,
        position_id: str,
        price: float,
        reason: str,
        status: PositionStatus = PositionStatus.CLOSED,
    ) -> Position:
        """
        Close a position at ``price``.

        Raises:
            NotFoundError: If the position does not exist
            PositionStateError: If the position is already closed or stopped
        """
        record = self.session.get(PaperPosition, position_id)
        if record is None:
            raise NotFoundError("Position", position_id)

        closed = close_position(to_position(record), price, reason, status)
        _apply(record, closed)
        self.session.commit()
        return closed

    def update_current_price(self, owner_id: str, prices: Dict[str, float]) -> int:
        """Re-price an owner's open positions. Returns the number updated."""
        symbols = [s.upper() for s in prices]
        if not symbols:
            return 0

        normalized = {s.upper(): p for s, p in prices.items()}
        records = (
            self.session.query(PaperPosition)
            .filter(
                PaperPosition.owner_id == owner_id,
                PaperPosition.status == PositionStatus.OPEN.value,
                PaperPosition.symbol.in_(symbols),
            )
            .all()
        )
        for record in records:
            _apply(record, mark_to_market(to_position(record), normalized[record.symbol]))

        self.session.commit()
        return len(records)

    def get_closed_pnls(self, owner_id: str) -> List[float]:
        """Realized pnl of an owner's closed positions, oldest close first."""
        records = (
            self.session.query(PaperPosition)
            .filter(
                PaperPosition.owner_id == owner_id,
                PaperPosition.status != PositionStatus.OPEN.value,
            )
            .order_by(asc(PaperPosition.closed_at))
            .all()
        )
        return [r.pnl for r in records]
