"""Per-holding risk contribution."""

import math
from typing import List, Mapping, Optional, Sequence

from ...constants import DEFAULT_ASSET_VOLATILITY, TRADING_DAYS_PER_YEAR, Z_95
from .models import Holding, Portfolio, PositionRisk


class PositionRiskCalculator:
    """Parametric 95% VaR and concentration for each holding."""

    def __init__(
        self,
        default_volatility: float = DEFAULT_ASSET_VOLATILITY,
        trading_days: int = TRADING_DAYS_PER_YEAR,
    ):
        self.default_volatility = default_volatility
        self.trading_days = trading_days

    def compute(
        self,
        portfolio: Portfolio,
        holdings: Sequence[Holding],
        volatilities: Optional[Mapping[str, float]] = None,
    ) -> List[PositionRisk]:
        """
        Compute risk for each holding.

        Args:
            portfolio: Portfolio providing the total value
            holdings: Holdings to assess
            volatilities: Annual volatility by symbol, default 20% when absent

        Returns:
            PositionRisk per holding, in input order
        """
        volatilities = volatilities or {}
        total_value = portfolio.total_value
        risks = []

        for holding in holdings:
            volatility = volatilities.get(holding.symbol) or self.default_volatility
            exposure = holding.total_value
            weight = exposure / total_value if total_value else 0.0

            individual_var = (
                exposure * volatility * Z_95 / math.sqrt(self.trading_days)
            )
            marginal_var = individual_var * weight

            risks.append(
                PositionRisk(
                    holding_id=holding.id,
                    symbol=holding.symbol,
                    exposure=exposure,
                    percentage_of_portfolio=weight * 100,
                    individual_var=individual_var,
                    marginal_var=marginal_var,
                    component_var=marginal_var * weight,
                    volatility=volatility,
                    concentration_risk=weight**2 * 100,
                )
            )

        return risks
