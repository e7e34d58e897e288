"""Repository for trade idea operations."""

from typing import Any, Dict, List, Optional

from ...exceptions import NotFoundError, TradeIdeaStateError, ValidationException
from ...services.execution.models import Direction, TradeIdea, TradeIdeaStatus
from ..models import TradeIdeaRecord
from .base import BaseRepository

UPDATABLE_FIELDS = {
    "status",
    "stop_loss",
    "take_profit_1",
    "take_profit_2",
    "take_profit_3",
    "closed_price",
    "closed_at",
    "pnl",
}


def to_trade_idea(record: TradeIdeaRecord) -> TradeIdea:
    """Map a row to a trade idea snapshot."""
    return TradeIdea(
        id=record.id,
        owner_id=record.owner_id,
        group_id=record.group_id,
        symbol=record.symbol,
        direction=Direction(record.direction),
        entry_price=record.entry_price,
        stop_loss=record.stop_loss,
        take_profit_1=record.take_profit_1,
        take_profit_2=record.take_profit_2,
        take_profit_3=record.take_profit_3,
        status=TradeIdeaStatus(record.status),
        closed_price=record.closed_price,
        closed_at=record.closed_at,
        pnl=record.pnl,
    )


class TradeIdeaRepository(BaseRepository):
    """Repository for shared trade ideas."""

    def add(self, idea: TradeIdea) -> TradeIdea:
        record = TradeIdeaRecord(
            id=idea.id,
            owner_id=idea.owner_id,
            group_id=idea.group_id,
            symbol=idea.symbol.upper(),
            direction=idea.direction.value,
            entry_price=idea.entry_price,
            stop_loss=idea.stop_loss,
            take_profit_1=idea.take_profit_1,
            take_profit_2=idea.take_profit_2,
            take_profit_3=idea.take_profit_3,
            status=idea.status.value,
        )
        self.session.add(record)
        self.session.commit()
        self.session.refresh(record)
        return to_trade_idea(record)

    def find_by_id(self, idea_id: str) -> Optional[TradeIdea]:
        record = self.session.get(TradeIdeaRecord, idea_id)
        return to_trade_idea(record) if record else None

    def find_active_ideas(self) -> List[TradeIdea]:
        records = (
            self.session.query(TradeIdeaRecord)
            .filter(TradeIdeaRecord.status == TradeIdeaStatus.ACTIVE.value)
            .all()
        )
        return [to_trade_idea(r) for r in records]

    def update(self, idea_id: str, patch: Dict[str, Any]) -> TradeIdea:
        """
        Apply a partial update to an ACTIVE idea.

        Raises:
            ValidationException: If the patch names a field that cannot change
            NotFoundError: If the idea does not exist
            TradeIdeaStateError: If the idea is closed, cancelled or expired
        """
        unknown = set(patch) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationException(
                "Unknown trade idea fields",
                field_errors={name: "not updatable" for name in sorted(unknown)},
            )

        record = self.session.get(TradeIdeaRecord, idea_id)
        if record is None:
            raise NotFoundError("TradeIdea", idea_id)
        if record.status != TradeIdeaStatus.ACTIVE.value:
            raise TradeIdeaStateError(idea_id, record.status)

        for name, value in patch.items():
            if isinstance(value, TradeIdeaStatus):
                value = value.value
            setattr(record, name, value)

        self.session.commit()
        return to_trade_idea(record)
