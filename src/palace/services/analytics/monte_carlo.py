"""Monte Carlo simulation of portfolio value."""

import math
from typing import Optional, Sequence

import numpy as np

from ...config.logging import get_logger
from ...exceptions import ValidationException
from .models import (
    MonteCarloSimulation,
    ScenarioOutcome,
    SimulationPath,
    TimeHorizon,
)

logger = get_logger(__name__)

PERCENTILES = (5, 10, 25, 50, 75, 90, 95)
DEFAULT_PATH_SAMPLE = 100


def standard_normals(rng: np.random.Generator, size: int) -> np.ndarray:
    """Box-Muller draws from pairs of uniforms in (0, 1]."""
    u = 1.0 - rng.random(size)
    v = 1.0 - rng.random(size)
    return np.sqrt(-2.0 * np.log(u)) * np.cos(2.0 * np.pi * v)


class MonteCarloSimulator:
    """Random-walk simulation of daily returns over a horizon."""

    def __init__(
        self,
        rng: Optional[np.random.Generator] = None,
        path_sample_size: int = DEFAULT_PATH_SAMPLE,
        max_simulations: Optional[int] = None,
    ):
        self.rng = rng or np.random.default_rng()
        self.path_sample_size = path_sample_size
        self.max_simulations = max_simulations

    def simulate(
        self,
        starting_value: float,
        returns: Sequence[float],
        number_of_simulations: int,
        time_horizon: TimeHorizon,
        portfolio_id: str = "",
    ) -> MonteCarloSimulation:
        """
        Simulate terminal portfolio values.

        Each step multiplies the value by ``1 + mean + stddev * z`` where mean
        and stddev are estimated from ``returns``.

        Args:
            starting_value: Current portfolio value
            returns: Historical daily returns used to estimate drift and spread
            number_of_simulations: Paths to simulate
            time_horizon: Horizon; one step per day
            portfolio_id: Portfolio label for the result

        Returns:
            MonteCarloSimulation with percentiles and a sample of paths
        """
        self._validate(starting_value, returns, number_of_simulations)

        r = np.asarray(returns, dtype=float)
        mean = float(np.mean(r))
        stddev = float(np.std(r))
        days = time_horizon.days

        terminal = []
        paths = []
        for sim in range(number_of_simulations):
            steps = 1 + mean + stddev * standard_normals(self.rng, days)
            values = starting_value * np.cumprod(steps)
            value = float(values[-1])
            terminal.append(value)

            if sim < self.path_sample_size:
                path = [starting_value] + values.tolist()
                paths.append(
                    SimulationPath(
                        simulation_id=sim,
                        final_value=value,
                        max_value=max(path),
                        min_value=min(path),
                        path=path,
                    )
                )

        terminal.sort()
        n = len(terminal)
        percentiles = {p: terminal[math.floor(n * p / 100)] for p in PERCENTILES}
        probability_of_loss = sum(1 for v in terminal if v < starting_value) / n
        expected_return = (sum(terminal) / n - starting_value) / starting_value

        logger.debug(
            "Monte Carlo simulation complete",
            portfolio_id=portfolio_id,
            simulations=n,
            days=days,
            probability_of_loss=probability_of_loss,
        )

        return MonteCarloSimulation(
            portfolio_id=portfolio_id,
            number_of_simulations=n,
            time_horizon=time_horizon,
            starting_value=starting_value,
            expected_return=expected_return,
            expected_volatility=stddev * math.sqrt(days),
            percentiles=percentiles,
            probability_of_loss=probability_of_loss,
            best_case=ScenarioOutcome(value=terminal[-1], probability=1 / n),
            worst_case=ScenarioOutcome(value=terminal[0], probability=1 / n),
            most_likely=ScenarioOutcome(value=percentiles[50], probability=0.5),
            paths=paths,
        )

    def _validate(
        self, starting_value: float, returns: Sequence[float], simulations: int
    ) -> None:
        errors = {}
        if simulations < 1:
            errors["number_of_simulations"] = "must be at least 1"
        elif self.max_simulations is not None and simulations > self.max_simulations:
            errors["number_of_simulations"] = f"must not exceed {self.max_simulations}"
        if starting_value <= 0:
            errors["starting_value"] = "must be positive"
        if len(returns) == 0:
            errors["returns"] = "must not be empty"
        if errors:
            raise ValidationException("Invalid Monte Carlo parameters", errors)
