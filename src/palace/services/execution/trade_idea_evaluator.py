"""Multi-tier take-profit and stop-loss evaluation for active trade ideas."""

from typing import Optional

from ...config.logging import get_logger
from .models import (
    ExecutionDecision,
    MarketQuote,
    TradeIdea,
    TriggerKind,
    idea_pnl,
)
from .position_evaluator import level_reached

logger = get_logger(__name__)


class TradeIdeaExecutionEvaluator:
    """
    Decides whether a quote closes an active trade idea.

    Rules, in order:
      1. Stop-loss wins over every take-profit tier.
      2. Tiers are checked nearest-to-entry first; the first tier reached
         closes the idea at that tier's price, even when the quote has
         overshot later tiers.
    """

    def __init__(self):
        self.logger = logger.bind(component="trade_idea_evaluator")

    def evaluate(
        self, idea: TradeIdea, quote: MarketQuote
    ) -> Optional[ExecutionDecision]:
        """
        Evaluate one trade idea against one quote.

        Args:
            idea: Trade idea snapshot
            quote: Market quote for the idea's symbol

        Returns:
            ExecutionDecision with per-unit pnl, or None
        """
        if not idea.is_active or idea.symbol.upper() != quote.symbol:
            return None

        price = quote.price

        if idea.stop_loss is not None and level_reached(
            idea.direction, TriggerKind.STOP_LOSS, idea.stop_loss, price
        ):
            return ExecutionDecision.for_level(
                TriggerKind.STOP_LOSS,
                idea.stop_loss,
                price,
                pnl=idea_pnl(idea, idea.stop_loss),
            )

        for tier, level in idea.take_profit_levels():
            if level_reached(idea.direction, TriggerKind.TAKE_PROFIT, level, price):
                self.logger.debug(
                    "Trade idea target reached",
                    idea_id=idea.id,
                    symbol=idea.symbol,
                    tier=tier,
                    level=level,
                    price=price,
                )
                return ExecutionDecision.for_level(
                    TriggerKind.TAKE_PROFIT,
                    level,
                    price,
                    pnl=idea_pnl(idea, level),
                    tier=tier,
                )

        return None
