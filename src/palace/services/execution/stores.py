"""Storage collaborators used by the execution service."""

from typing import Any, Dict, List, Protocol

from .models import Alert, Position, PositionStatus, TradeIdea


class PositionStore(Protocol):
    """Persistence for simulated positions."""

    def find_open_positions_by_symbol(self, symbol: str) -> List[Position]:
        ...

    def close(
        self, position_id: str, price: float, reason: str, status: PositionStatus
    ) -> Position:
        ...

    def update_current_price(self, owner_id: str, prices: Dict[str, float]) -> int:
        ...


class TradeIdeaStore(Protocol):
    """Persistence for shared trade ideas."""

    def find_active_ideas(self) -> List[TradeIdea]:
        ...

    def update(self, idea_id: str, patch: Dict[str, Any]) -> TradeIdea:
        ...


class AlertStore(Protocol):
    """Persistence for price alerts."""

    def find_active_alerts_by_symbol(self, symbol: str) -> List[Alert]:
        ...

    def trigger(self, alert_id: str) -> bool:
        ...
