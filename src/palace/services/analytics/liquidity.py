"""Liquidation horizon and market impact of portfolio holdings."""

from typing import Mapping, Optional, Sequence

from ...config.logging import get_logger
from ...constants import DEFAULT_DAILY_VOLUME, LIQUIDITY_PARTICIPATION_RATE
from .models import AssetLiquidity, Holding, LiquidityRisk, Portfolio, StressedLiquidity

logger = get_logger(__name__)

MAX_MARKET_IMPACT = 0.05

VOLUME_DEFAULTED = "volume_defaulted"


def liquidity_score(days_to_liquidate: float) -> float:
    """100 for instantly liquid, minus 10 per day, floored at 0."""
    return max(0.0, min(100.0, 100 - days_to_liquidate * 10))


class LiquidityRiskCalculator:
    """Estimates how long holdings take to sell at a share of daily volume."""

    def __init__(
        self,
        participation_rate: float = LIQUIDITY_PARTICIPATION_RATE,
        default_daily_volume: float = DEFAULT_DAILY_VOLUME,
    ):
        self.participation_rate = participation_rate
        self.default_daily_volume = default_daily_volume

    def compute(
        self,
        portfolio: Portfolio,
        holdings: Sequence[Holding],
        volumes: Optional[Mapping[str, float]] = None,
    ) -> LiquidityRisk:
        """
        Compute the liquidity profile of a portfolio.

        Args:
            portfolio: Portfolio being assessed
            holdings: Holdings with current prices
            volumes: Average daily volume by symbol; missing entries fall back
                to the default volume and mark the result degraded

        Returns:
            LiquidityRisk with per-asset and aggregate figures
        """
        volumes = volumes or {}
        degraded = []
        by_asset = []

        for holding in holdings:
            volume = volumes.get(holding.symbol)
            if not volume or volume <= 0:
                volume = self.default_daily_volume
                if VOLUME_DEFAULTED not in degraded:
                    degraded.append(VOLUME_DEFAULTED)
                logger.debug(
                    "Using default daily volume",
                    portfolio_id=portfolio.id,
                    symbol=holding.symbol,
                )

            value = holding.total_value
            days = value / (volume * self.participation_rate)
            by_asset.append(
                AssetLiquidity(
                    symbol=holding.symbol,
                    value=value,
                    average_daily_volume=volume,
                    days_to_liquidate=days,
                    market_impact=min(MAX_MARKET_IMPACT, value / volume),
                    liquidity_score=liquidity_score(days),
                )
            )

        total_value = portfolio.total_value
        within_week = _value_where(by_asset, 7, inclusive=True)
        if total_value > 0:
            average_days = (
                sum(a.days_to_liquidate * a.value for a in by_asset) / total_value
            )
        else:
            average_days = 0.0

        return LiquidityRisk(
            portfolio_id=portfolio.id,
            liquidity_score=liquidity_score(average_days),
            days_to_liquidate=average_days,
            immediately_liquid=_value_where(by_asset, 0.1),
            liquid_within_1_day=_value_where(by_asset, 1, inclusive=True),
            liquid_within_1_week=within_week,
            illiquid=total_value - within_week,
            by_asset=by_asset,
            stressed_liquidity=StressedLiquidity(
                market_stress=0.5,
                volume_reduction=0.7,
                spread_widening=2.0,
                estimated_cost=total_value * 0.02,
            ),
            degraded=degraded,
        )


def _value_where(assets, max_days: float, inclusive: bool = False) -> float:
    if inclusive:
        return sum(a.value for a in assets if a.days_to_liquidate <= max_days)
    return sum(a.value for a in assets if a.days_to_liquidate < max_days)
