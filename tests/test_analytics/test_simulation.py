"""Tests for stress testing and Monte Carlo simulation."""

import math

import numpy as np
import pytest
from pydantic import ValidationError

from palace.exceptions import ValidationException
from palace.services.analytics.models import (
    Holding,
    Portfolio,
    RiskLevel,
    StressScenario,
    TimeHorizon,
)
from palace.services.analytics.monte_carlo import (
    PERCENTILES,
    MonteCarloSimulator,
    standard_normals,
)
from palace.services.analytics.stress_test import StressTestRunner, severity_for_loss


@pytest.fixture
def portfolio():
    return Portfolio(id="pf-1", owner_id="user-1", name="Core", total_value=10000.0)


@pytest.fixture
def holdings():
    return [
        Holding(id="h-1", symbol="AAPL", quantity=50, current_price=100.0),
        Holding(id="h-2", symbol="MSFT", quantity=25, current_price=200.0),
    ]


class TestStressTestRunner:
    """Test scenario impacts."""

    def test_market_drop(self, portfolio, holdings):
        scenario = StressScenario(
            name="Correction", market_change_percent=-20, volatility_multiplier=2
        )

        [result] = StressTestRunner().run(portfolio, holdings, [scenario])

        assert result.scenario_name == "Correction"
        assert result.portfolio_loss == pytest.approx(2000.0)
        assert result.loss_percentage == pytest.approx(20.0)
        assert result.portfolio_value == pytest.approx(8000.0)
        assert [i.loss for i in result.asset_impacts] == pytest.approx([1000.0, 1000.0])
        assert result.asset_impacts[0].loss_percentage == pytest.approx(20.0)
        assert result.metrics_under_stress.volatility == pytest.approx(0.6)
        assert result.metrics_under_stress.value_at_risk == pytest.approx(
            10000 * 0.6 * 1.645 / math.sqrt(252)
        )
        assert result.metrics_under_stress.max_drawdown == pytest.approx(20.0)
        assert result.probability == 0.05
        assert result.severity is RiskLevel.MEDIUM

    def test_results_follow_scenario_order(self, portfolio, holdings):
        scenarios = [
            StressScenario(name="Crash", market_change_percent=-35),
            StressScenario(name="Dip", market_change_percent=-5),
        ]

        results = StressTestRunner().run(portfolio, holdings, scenarios)

        assert [r.scenario_name for r in results] == ["Crash", "Dip"]
        assert results[0].severity is RiskLevel.EXTREME
        assert results[1].severity is RiskLevel.LOW

    @pytest.mark.parametrize(
        "loss,level",
        [
            (30.01, RiskLevel.EXTREME),
            (30, RiskLevel.HIGH),
            (20.5, RiskLevel.HIGH),
            (10.5, RiskLevel.MEDIUM),
            (10, RiskLevel.LOW),
            (-25, RiskLevel.HIGH),
        ],
    )
    def test_severity_thresholds(self, loss, level):
        assert severity_for_loss(loss) is level

    def test_scenario_validation(self):
        with pytest.raises(ValidationError):
            StressScenario(name="Bad", market_change_percent=-150)
        with pytest.raises(ValidationError):
            StressScenario(name="Bad", market_change_percent=-10, volatility_multiplier=0)


class TestMonteCarloSimulator:
    """Test simulated value distributions."""

    def test_box_muller_draws(self):
        draws = standard_normals(np.random.default_rng(7), 20000)

        assert np.all(np.isfinite(draws))
        assert abs(float(np.mean(draws))) < 0.05
        assert float(np.std(draws)) == pytest.approx(1.0, abs=0.05)

    def test_zero_volatility_is_deterministic(self):
        simulator = MonteCarloSimulator(rng=np.random.default_rng(1))

        result = simulator.simulate(
            10000, [0.001] * 10, 50, TimeHorizon.ONE_MONTH, portfolio_id="pf-1"
        )

        expected = 10000 * 1.001**30
        for p in PERCENTILES:
            assert result.percentiles[p] == pytest.approx(expected)
        assert result.best_case.value == pytest.approx(expected)
        assert result.worst_case.value == pytest.approx(expected)
        assert result.probability_of_loss == 0.0
        assert result.expected_volatility == pytest.approx(0.0, abs=1e-12)

    def test_negative_drift_always_loses(self):
        result = MonteCarloSimulator().simulate(
            10000, [-0.001] * 5, 20, TimeHorizon.ONE_WEEK
        )
        assert result.probability_of_loss == 1.0
        assert result.expected_return < 0

    def test_seeded_runs_repeat(self):
        returns = [0.01, -0.02, 0.015, -0.005, 0.0]

        first = MonteCarloSimulator(rng=np.random.default_rng(42)).simulate(
            10000, returns, 200, TimeHorizon.ONE_MONTH
        )
        second = MonteCarloSimulator(rng=np.random.default_rng(42)).simulate(
            10000, returns, 200, TimeHorizon.ONE_MONTH
        )

        assert first.percentiles == second.percentiles

    def test_percentiles_are_ordered(self):
        result = MonteCarloSimulator(rng=np.random.default_rng(3)).simulate(
            10000, [0.01, -0.01, 0.02, -0.015], 500, TimeHorizon.THREE_MONTHS
        )

        values = [result.percentiles[p] for p in PERCENTILES]
        assert values == sorted(values)
        assert result.worst_case.value <= values[0]
        assert result.best_case.value >= values[-1]
        assert result.most_likely.value == result.percentiles[50]

    def test_path_sample_is_bounded(self):
        simulator = MonteCarloSimulator(
            rng=np.random.default_rng(5), path_sample_size=100
        )

        result = simulator.simulate(
            10000, [0.01, -0.01], 150, TimeHorizon.ONE_WEEK
        )

        assert result.number_of_simulations == 150
        assert len(result.paths) == 100
        path = result.paths[0]
        assert len(path.path) == 8
        assert path.path[0] == 10000
        assert path.min_value <= path.final_value <= path.max_value

    @pytest.mark.parametrize(
        "starting_value,returns,simulations",
        [(10000, [0.01], 0), (0, [0.01], 10), (10000, [], 10)],
    )
    def test_validation(self, starting_value, returns, simulations):
        with pytest.raises(ValidationException):
            MonteCarloSimulator().simulate(
                starting_value, returns, simulations, TimeHorizon.ONE_DAY
            )

    def test_simulation_cap(self):
        with pytest.raises(ValidationException):
            MonteCarloSimulator(max_simulations=10).simulate(
                10000, [0.01], 11, TimeHorizon.ONE_DAY
            )

    def test_horizon_days(self):
        assert [h.days for h in TimeHorizon] == [1, 7, 30, 90, 180, 365]
