"""Market update orchestration for positions, trade ideas and alerts."""

import time
from collections import defaultdict
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from ...config.logging import get_logger, log_performance
from ...exceptions import ValidationException
from .alert_evaluator import AlertEvaluator
from .models import (
    ExecutionDecision,
    ExecutionResult,
    MarketQuote,
    MarketUpdateResult,
    Position,
    TradeIdea,
    TradeIdeaStatus,
    TriggerKind,
    calculate_pnl,
    mark_to_market,
)
from .position_evaluator import PositionExecutionEvaluator
from .stores import AlertStore, PositionStore, TradeIdeaStore
from .trade_idea_evaluator import TradeIdeaExecutionEvaluator

logger = get_logger(__name__)


class TradeExecutionService:
    """
    Applies market quotes to open positions, trade ideas and price alerts.

    A batch is processed symbol by symbol. Store errors abort the batch;
    work already committed for earlier symbols stays committed.
    """

    def __init__(
        self,
        position_store: PositionStore,
        trade_idea_store: TradeIdeaStore,
        alert_store: AlertStore,
        position_evaluator: Optional[PositionExecutionEvaluator] = None,
        trade_idea_evaluator: Optional[TradeIdeaExecutionEvaluator] = None,
        alert_evaluator: Optional[AlertEvaluator] = None,
    ):
        self.position_store = position_store
        self.trade_idea_store = trade_idea_store
        self.alert_store = alert_store
        self.position_evaluator = position_evaluator or PositionExecutionEvaluator()
        self.trade_idea_evaluator = (
            trade_idea_evaluator or TradeIdeaExecutionEvaluator()
        )
        self.alert_evaluator = alert_evaluator or AlertEvaluator()
        self.logger = logger.bind(service="trade_execution")

    async def process(self, quotes: Iterable[MarketQuote]) -> MarketUpdateResult:
        """
        Process a batch of market quotes.

        Args:
            quotes: Quotes for this update cycle; a later quote for the same
                symbol replaces an earlier one

        Returns:
            MarketUpdateResult with per-batch counts
        """
        latest = self._latest_by_symbol(quotes)
        if not latest:
            return MarketUpdateResult(
                success=False, error_message="No market quotes provided"
            )

        start = time.perf_counter()
        result = MarketUpdateResult(success=True)
        current_symbol = None

        try:
            active_ideas = self.trade_idea_store.find_active_ideas()
            ideas_by_symbol: Dict[str, List[TradeIdea]] = defaultdict(list)
            for idea in active_ideas:
                ideas_by_symbol[idea.symbol.upper()].append(idea)

            for symbol, quote in latest.items():
                current_symbol = symbol
                updated, closed = self._apply_to_positions(quote)
                result.positions_updated += updated
                result.positions_closed += closed
                result.trades_executed += self._apply_to_trade_ideas(
                    ideas_by_symbol.get(symbol, []), quote
                )
                result.alerts_triggered += self._apply_to_alerts(quote)

        except Exception as e:
            self.logger.error(
                "Failed to process market update",
                symbol=current_symbol,
                error=str(e),
                exc_info=True,
            )
            result.success = False
            result.error_message = "Failed to process market update"
            result.error = e
            result.failed_symbol = current_symbol
            return result

        log_performance(
            "market_update",
            (time.perf_counter() - start) * 1000,
            symbols=len(latest),
            **result.to_dict(),
        )
        return result

    async def execute_stop_loss(
        self, position: Position, price: float
    ) -> ExecutionResult:
        """
        Close a position at its stop-loss if ``price`` has reached it.

        Args:
            position: Open position
            price: Current market price

        Returns:
            ExecutionResult with the closed position on success
        """
        return self._execute_level(position, price, TriggerKind.STOP_LOSS)

    async def execute_take_profit(
        self, position: Position, price: float
    ) -> ExecutionResult:
        """Close a position at its take-profit if ``price`` has reached it."""
        return self._execute_level(position, price, TriggerKind.TAKE_PROFIT)

    async def check_price_alerts(self, quote: MarketQuote) -> int:
        """Trigger alerts for a single quote. Returns the number fired."""
        return self._apply_to_alerts(quote)

    async def auto_execute_trade_ideas(self, quotes: Iterable[MarketQuote]) -> int:
        """
        Close active trade ideas whose levels were reached.

        Args:
            quotes: Market quotes keyed implicitly by symbol

        Returns:
            Number of trade ideas closed
        """
        latest = self._latest_by_symbol(quotes)
        if not latest:
            return 0

        executed = 0
        for idea in self.trade_idea_store.find_active_ideas():
            quote = latest.get(idea.symbol.upper())
            if quote is not None:
                executed += self._apply_to_trade_ideas([idea], quote)
        return executed

    def _apply_to_positions(self, quote: MarketQuote):
        positions = self.position_store.find_open_positions_by_symbol(quote.symbol)
        if not positions:
            return 0, 0

        owners = {p.owner_id for p in positions}
        for owner_id in sorted(owners):
            self.position_store.update_current_price(
                owner_id, {quote.symbol: quote.price}
            )

        closed = 0
        for position in positions:
            if not position.is_open:
                continue
            marked = mark_to_market(position, quote.price)
            decision = self.position_evaluator.evaluate(marked, quote)
            if decision is None:
                continue

            self.position_store.close(
                marked.id, decision.close_price, decision.reason, decision.status
            )
            closed += 1
            self.logger.info(
                "Position closed",
                position_id=marked.id,
                owner_id=marked.owner_id,
                symbol=marked.symbol,
                kind=decision.kind.value,
                close_price=decision.close_price,
                quote_price=quote.price,
                pnl=decision.pnl,
            )

        return len(positions), closed

    def _apply_to_trade_ideas(self, ideas: List[TradeIdea], quote: MarketQuote) -> int:
        executed = 0
        for idea in ideas:
            decision = self.trade_idea_evaluator.evaluate(idea, quote)
            if decision is None:
                continue

            self.trade_idea_store.update(idea.id, self._idea_patch(decision))
            executed += 1
            self.logger.info(
                "Trade idea closed",
                idea_id=idea.id,
                group_id=idea.group_id,
                symbol=idea.symbol,
                kind=decision.kind.value,
                tier=decision.tier,
                close_price=decision.close_price,
                pnl=decision.pnl,
            )
        return executed

    def _apply_to_alerts(self, quote: MarketQuote) -> int:
        triggered = 0
        for alert in self.alert_store.find_active_alerts_by_symbol(quote.symbol):
            if not self.alert_evaluator.evaluate(alert, quote):
                continue

            if not self.alert_store.trigger(alert.id):
                continue
            triggered += 1
            self.logger.info(
                "Price alert triggered",
                alert_id=alert.id,
                owner_id=alert.owner_id,
                symbol=alert.symbol,
                condition=alert.condition.value,
                target_price=alert.target_price,
                price=quote.price,
            )
        return triggered

    def _execute_level(
        self, position: Position, price: float, kind: TriggerKind
    ) -> ExecutionResult:
        label = "stop loss" if kind is TriggerKind.STOP_LOSS else "take profit"
        try:
            if kind is TriggerKind.STOP_LOSS:
                reached = self.position_evaluator.check_stop_loss(position, price)
                level = position.stop_loss
            else:
                reached = self.position_evaluator.check_take_profit(position, price)
                level = position.take_profit
        except ValidationException as e:
            return ExecutionResult(success=False, error_message=e.message)

        if not position.is_open:
            return ExecutionResult(
                success=False, error_message="Position is not open"
            )
        if not reached:
            return ExecutionResult(
                success=False,
                error_message=f"{label.capitalize()} conditions not met",
            )

        pnl = calculate_pnl(
            position.direction, position.entry_price, level, position.quantity
        ).pnl
        decision = ExecutionDecision.for_level(kind, level, price, pnl=pnl)

        try:
            closed = self.position_store.close(
                position.id, decision.close_price, decision.reason, decision.status
            )
        except Exception as e:
            self.logger.error(
                f"Failed to execute {label}",
                position_id=position.id,
                error=str(e),
                exc_info=True,
            )
            return ExecutionResult(
                success=False,
                decision=decision,
                error_message=f"Failed to execute {label}: {e}",
            )

        self.logger.info(
            f"Executed {label}",
            position_id=position.id,
            symbol=position.symbol,
            close_price=decision.close_price,
            price=price,
        )
        return ExecutionResult(success=True, position=closed, decision=decision)

    @staticmethod
    def _idea_patch(decision: ExecutionDecision) -> dict:
        return {
            "status": TradeIdeaStatus.CLOSED,
            "closed_price": decision.close_price,
            "closed_at": datetime.now(timezone.utc),
            "pnl": decision.pnl,
        }

    @staticmethod
    def _latest_by_symbol(quotes: Optional[Iterable[MarketQuote]]) -> Dict[str, MarketQuote]:
        latest: Dict[str, MarketQuote] = {}
        for quote in quotes or ():
            latest[quote.symbol] = quote
        return latest
