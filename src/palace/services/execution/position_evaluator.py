"""Stop-loss and take-profit evaluation for open simulated positions."""

from typing import Optional, Tuple

from ...config.logging import get_logger
from ...exceptions import ValidationException
from .models import (
    Direction,
    ExecutionDecision,
    MarketQuote,
    Position,
    TriggerKind,
    calculate_pnl,
)

logger = get_logger(__name__)

# Evaluation order. Stop-loss is checked first so that a gap through both
# levels closes at the stop.
TRIGGER_PRIORITY: Tuple[TriggerKind, ...] = (
    TriggerKind.STOP_LOSS,
    TriggerKind.TAKE_PROFIT,
)


def level_reached(
    direction: Direction, kind: TriggerKind, level: float, price: float
) -> bool:
    """
    Check whether ``price`` has reached a protective level.

    LONG: stop fires at or below the level, take-profit at or above it.
    SHORT: both inequalities invert.
    """
    adverse = (kind is TriggerKind.STOP_LOSS) == (direction is Direction.LONG)
    if adverse:
        return price <= level
    return price >= level


class PositionExecutionEvaluator:
    """Decides whether a quote closes an open position."""

    def __init__(self):
        self.logger = logger.bind(component="position_evaluator")

    def evaluate(
        self, position: Position, quote: MarketQuote
    ) -> Optional[ExecutionDecision]:
        """
        Evaluate one position against one quote.

        Args:
            position: Position snapshot
            quote: Market quote for the position's symbol

        Returns:
            ExecutionDecision closing at the configured level, or None
        """
        if not position.is_open or position.symbol.upper() != quote.symbol:
            return None

        for kind in TRIGGER_PRIORITY:
            level = self._level(position, kind)
            if level is None:
                continue

            if level_reached(position.direction, kind, level, quote.price):
                pnl = calculate_pnl(
                    position.direction, position.entry_price, level, position.quantity
                ).pnl
                self.logger.debug(
                    "Position level reached",
                    position_id=position.id,
                    symbol=position.symbol,
                    kind=kind.value,
                    level=level,
                    price=quote.price,
                )
                return ExecutionDecision.for_level(kind, level, quote.price, pnl=pnl)

        return None

    def check_stop_loss(self, position: Position, price: float) -> bool:
        """Explicit stop-loss query. Raises if the position has no stop."""
        if position.stop_loss is None:
            raise ValidationException("No stop loss set for this position")
        return level_reached(
            position.direction, TriggerKind.STOP_LOSS, position.stop_loss, price
        )

    def check_take_profit(self, position: Position, price: float) -> bool:
        """Explicit take-profit query. Raises if the position has no target."""
        if position.take_profit is None:
            raise ValidationException("No take profit set for this position")
        return level_reached(
            position.direction, TriggerKind.TAKE_PROFIT, position.take_profit, price
        )

    @staticmethod
    def _level(position: Position, kind: TriggerKind) -> Optional[float]:
        if kind is TriggerKind.STOP_LOSS:
            return position.stop_loss
        return position.take_profit
