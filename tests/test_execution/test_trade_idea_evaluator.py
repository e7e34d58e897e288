"""Tests for multi-tier trade idea evaluation."""

from dataclasses import replace

import pytest

from palace.services.execution.models import Direction, TradeIdeaStatus, TriggerKind
from palace.services.execution.trade_idea_evaluator import TradeIdeaExecutionEvaluator


@pytest.fixture
def evaluator():
    return TradeIdeaExecutionEvaluator()


@pytest.fixture
def tiered_idea(make_idea):
    return make_idea(
        entry_price=150.50,
        stop_loss=145.0,
        take_profit_1=155.0,
        take_profit_2=160.0,
        take_profit_3=165.0,
    )


class TestTradeIdeaExecutionEvaluator:
    """Test trade idea trigger decisions."""

    def test_first_tier_reached_wins(self, evaluator, tiered_idea, make_quote):
        decision = evaluator.evaluate(tiered_idea, make_quote(price=156.0))

        assert decision.kind is TriggerKind.TAKE_PROFIT
        assert decision.tier == 1
        assert decision.close_price == 155.0
        assert decision.pnl == pytest.approx(4.50)

    def test_overshoot_still_closes_at_first_tier(
        self, evaluator, tiered_idea, make_quote
    ):
        decision = evaluator.evaluate(tiered_idea, make_quote(price=170.0))

        assert decision.tier == 1
        assert decision.close_price == 155.0

    def test_below_all_tiers(self, evaluator, tiered_idea, make_quote):
        assert evaluator.evaluate(tiered_idea, make_quote(price=152.0)) is None

    def test_stop_loss_priority(self, evaluator, tiered_idea, make_quote):
        decision = evaluator.evaluate(tiered_idea, make_quote(price=144.0))

        assert decision.kind is TriggerKind.STOP_LOSS
        assert decision.close_price == 145.0
        assert decision.tier is None
        assert decision.pnl == pytest.approx(-5.50)

    def test_nearest_tier_used_when_tiers_unordered(
        self, evaluator, make_idea, make_quote
    ):
        idea = make_idea(entry_price=150.0, take_profit_1=160.0, take_profit_2=155.0)

        decision = evaluator.evaluate(idea, make_quote(price=161.0))

        assert decision.tier == 2
        assert decision.close_price == 155.0

    def test_short_idea(self, evaluator, make_idea, make_quote):
        idea = make_idea(
            direction=Direction.SHORT,
            entry_price=100.0,
            stop_loss=104.0,
            take_profit_1=95.0,
            take_profit_2=90.0,
        )

        decision = evaluator.evaluate(idea, make_quote(price=89.0))

        assert decision.tier == 1
        assert decision.close_price == 95.0
        assert decision.pnl == pytest.approx(5.0)

    def test_inactive_idea_skipped(self, evaluator, tiered_idea, make_quote):
        closed = replace(tiered_idea, status=TradeIdeaStatus.CLOSED)
        assert evaluator.evaluate(closed, make_quote(price=170.0)) is None
