"""Performance statistics over realized trade pnl."""

import math
from typing import Sequence

import numpy as np

from ...config.logging import get_logger
from ...constants import DEFAULT_REFERENCE_CAPITAL, TRADING_DAYS_PER_YEAR
from .models import PerformanceStats

logger = get_logger(__name__)


class PerformanceCalculator:
    """Computes win/loss, drawdown and streak statistics for closed trades."""

    def __init__(
        self,
        reference_capital: float = DEFAULT_REFERENCE_CAPITAL,
        trading_days: int = TRADING_DAYS_PER_YEAR,
    ):
        self.reference_capital = reference_capital
        self.trading_days = trading_days

    def compute(self, pnls: Sequence[float]) -> PerformanceStats:
        """
        Compute statistics over realized pnl ordered oldest to newest.

        ``average_loss`` is the mean of the losing trades and so is negative.

        Args:
            pnls: Realized pnl per closed trade

        Returns:
            PerformanceStats, all zero for an empty sequence
        """
        values = [float(p) for p in pnls]
        if not values:
            return PerformanceStats()

        winners = [p for p in values if p > 0]
        losers = [p for p in values if p < 0]
        gross_profit = sum(winners)
        gross_loss = abs(sum(losers))

        longest_win, longest_loss = self.longest_streaks(values)

        return PerformanceStats(
            total_trades=len(values),
            winning_trades=len(winners),
            losing_trades=len(losers),
            win_rate=len(winners) / len(values) * 100,
            total_pnl=sum(values),
            average_win=gross_profit / len(winners) if winners else 0.0,
            average_loss=sum(losers) / len(losers) if losers else 0.0,
            best_trade=max(values),
            worst_trade=min(values),
            profit_factor=gross_profit / gross_loss if gross_loss > 0 else 0.0,
            sharpe_ratio=self.sharpe_ratio(values),
            max_drawdown=self.max_drawdown(values),
            current_streak=self.current_streak(values),
            longest_win_streak=longest_win,
            longest_loss_streak=longest_loss,
        )

    def sharpe_ratio(self, pnls: Sequence[float]) -> float:
        """Annualized mean/std of pnl normalized by the reference capital."""
        if not pnls:
            return 0.0
        returns = np.asarray(pnls, dtype=float) / self.reference_capital
        std = float(np.std(returns))
        if std == 0:
            return 0.0
        return float(np.mean(returns)) / std * math.sqrt(self.trading_days)

    @staticmethod
    def max_drawdown(pnls: Sequence[float]) -> float:
        """Largest percentage fall of cumulative pnl from its running peak."""
        peak = 0.0
        running = 0.0
        worst = 0.0
        for pnl in pnls:
            running += pnl
            peak = max(peak, running)
            # No positive peak yet means nothing to draw down from
            if peak <= 0:
                continue
            worst = max(worst, (peak - running) / peak * 100)
        return worst

    @staticmethod
    def current_streak(pnls: Sequence[float]) -> int:
        """
        Signed run length ending at the most recent trade.

        Positive for wins, negative for losses. A sign change or a zero pnl
        ends the run.
        """
        streak = 0
        for pnl in reversed(pnls):
            if pnl > 0 and streak >= 0:
                streak += 1
            elif pnl < 0 and streak <= 0:
                streak -= 1
            else:
                break
        return streak

    @staticmethod
    def longest_streaks(pnls: Sequence[float]):
        """Longest win and loss runs. Zero pnl neither extends nor resets."""
        longest_win = longest_loss = 0
        wins = losses = 0
        for pnl in pnls:
            if pnl > 0:
                wins += 1
                losses = 0
                longest_win = max(longest_win, wins)
            elif pnl < 0:
                losses += 1
                wins = 0
                longest_loss = max(longest_loss, losses)
        return longest_win, longest_loss
