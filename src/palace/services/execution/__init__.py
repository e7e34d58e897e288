"""Price-driven execution of simulated positions, trade ideas and alerts."""

from .alert_evaluator import AlertEvaluator
from .models import (
    Alert,
    AlertCondition,
    AlertStatus,
    Direction,
    ExecutionDecision,
    ExecutionResult,
    MarketQuote,
    MarketUpdateResult,
    Position,
    PositionStatus,
    TradeIdea,
    TradeIdeaStatus,
    TriggerKind,
    calculate_pnl,
    close_position,
    mark_to_market,
    open_position,
    trigger_alert,
)
from .position_evaluator import TRIGGER_PRIORITY, PositionExecutionEvaluator
from .service import TradeExecutionService
from .stores import AlertStore, PositionStore, TradeIdeaStore
from .trade_idea_evaluator import TradeIdeaExecutionEvaluator

__all__ = [
    "TradeExecutionService",
    "PositionExecutionEvaluator",
    "TradeIdeaExecutionEvaluator",
    "AlertEvaluator",
    "TRIGGER_PRIORITY",
    "PositionStore",
    "TradeIdeaStore",
    "AlertStore",
    "MarketQuote",
    "Position",
    "TradeIdea",
    "Alert",
    "Direction",
    "PositionStatus",
    "TradeIdeaStatus",
    "AlertCondition",
    "AlertStatus",
    "TriggerKind",
    "ExecutionDecision",
    "ExecutionResult",
    "MarketUpdateResult",
    "calculate_pnl",
    "open_position",
    "mark_to_market",
    "close_position",
    "trigger_alert",
]
