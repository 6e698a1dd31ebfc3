"""Tests for the delta-hedging simulator.

Deterministic cases replace the real-world step with a fixed growth factor
and the pricing engine with a linear stub, so the cash account can be
reproduced by hand.
"""

import math
import numpy as np
import pytest

from hedgepricer.core import (
    MarketModel, OptionSpec, CALL, PUT, BARRIER, ASIAN, LOOKBACK,
    UP_AND_OUT, UP_AND_IN,
)
from hedgepricer.black_scholes import AnalyticEngine
from hedgepricer.errors import InvalidConfiguration, NumericDegeneracy
from hedgepricer.hedging import HedgeSimulator, default_engine, hedge_cost
from hedgepricer.monte_carlo import MonteCarloEngine

MODEL = MarketModel(spot=100.0, rate=0.05, sigma=0.2)
GROWTH = 1.05


class LinearEngine:
    """Price = slope * spot, so the central-difference delta is ``slope``."""

    def __init__(self, slope):
        self.slope = slope
        self.calls = []

    def price(self, model, n_steps, horizon=None):
        self.calls.append((model.spot, n_steps, horizon))
        return self.slope * model.spot


@pytest.fixture
def fixed_growth(monkeypatch):
    monkeypatch.setattr("hedgepricer.hedging.real_world_step",
                        lambda spot, model, dt, rng: spot * GROWTH)


def _barrier(barrier, barrier_type):
    return OptionSpec(K=100.0, T=1.0, kind=CALL, variant=BARRIER,
                      barrier=barrier, barrier_type=barrier_type)


# ---------------------------------------------------------------------------
# Vanilla, closed-form engine
# ---------------------------------------------------------------------------
class TestVanillaHedge:
    def test_deep_itm_call_holds_one_share(self):
        """Delta stays at 1: cost is the financed initial share less the strike."""
        spec = OptionSpec(K=1.0, T=1.0, kind=CALL)
        n = 50
        result = HedgeSimulator(spec, AnalyticEngine(spec), seed=3).run(MODEL, n)
        dt = spec.T / n
        expected = MODEL.spot * math.exp(MODEL.rate * dt) ** (n - 1) - spec.K
        assert np.allclose(result.deltas, 1.0)
        assert abs(result.cost - expected) < 1e-8

    def test_deep_otm_put_costs_nothing(self):
        spec = OptionSpec(K=1.0, T=1.0, kind=PUT)
        assert abs(hedge_cost(spec, MODEL, 50, seed=3)) < 1e-10

    def test_reproducible_with_seed(self):
        spec = OptionSpec(K=100.0, T=1.0)
        assert hedge_cost(spec, MODEL, 40, seed=7) == hedge_cost(spec, MODEL, 40, seed=7)
        assert hedge_cost(spec, MODEL, 40, seed=7) != hedge_cost(spec, MODEL, 40, seed=8)

    def test_result_layout(self):
        spec = OptionSpec(K=100.0, T=1.0)
        result = HedgeSimulator(spec, AnalyticEngine(spec), seed=1).run(MODEL, 25)
        assert result.path.shape == (25,)
        assert result.deltas.shape == (25,)
        assert result.path[0] == MODEL.spot
        assert result.barrier_touched is None
        assert np.all((result.deltas > -1e-12) & (result.deltas < 1 + 1e-12))

    def test_single_step(self):
        spec = OptionSpec(K=100.0, T=1.0)
        result = HedgeSimulator(spec, AnalyticEngine(spec), seed=1).run(MODEL, 1)
        # no rebalancing: cash - delta*S cancels, the terminal payoff remains
        assert result.cost == pytest.approx(0.0, abs=1e-12)

    def test_default_engine_choice(self):
        assert isinstance(default_engine(OptionSpec(K=100.0, T=1.0)), AnalyticEngine)
        assert isinstance(default_engine(OptionSpec(K=100.0, T=1.0, variant=ASIAN)),
                          MonteCarloEngine)


# ---------------------------------------------------------------------------
# Re-pricing schedule
# ---------------------------------------------------------------------------
class TestRepricing:
    def test_nested_horizon_and_steps(self, fixed_growth):
        spec = OptionSpec(K=100.0, T=1.0, variant=ASIAN)
        engine = LinearEngine(0.5)
        HedgeSimulator(spec, engine, seed=0).run(MODEL, 4)
        steps = [c[1] for c in engine.calls]
        horizons = [c[2] for c in engine.calls]
        assert steps == [4, 4, 3, 3, 2, 2, 1, 1]
        assert horizons == pytest.approx([1.0, 1.0, 0.75, 0.75, 0.5, 0.5, 0.25, 0.25])

    def test_bump_proportional_to_current_spot(self, fixed_growth):
        spec = OptionSpec(K=100.0, T=1.0, variant=LOOKBACK)
        engine = LinearEngine(0.5)
        result = HedgeSimulator(spec, engine, bump_pct=0.02, seed=0).run(MODEL, 4)
        bumped = [c[0] for c in engine.calls]
        for i, spot in enumerate(result.path):
            up, dn = bumped[2 * i], bumped[2 * i + 1]
            assert up == pytest.approx(spot * 1.02)
            assert dn == pytest.approx(spot * 0.98)

    def test_hedge_held_below_min_tau(self, fixed_growth):
        spec = OptionSpec(K=100.0, T=1.0, variant=ASIAN)
        engine = LinearEngine(0.5)
        result = HedgeSimulator(spec, engine, min_tau=0.6, seed=0).run(MODEL, 4)
        assert len(engine.calls) == 4  # t=0 and the first rebalancing date only
        assert np.allclose(result.deltas, 0.5)

    def test_non_finite_cash_is_rejected(self):
        class NanEngine:
            def price(self, model, n_steps, horizon=None):
                return float("nan")

        spec = OptionSpec(K=100.0, T=1.0, variant=ASIAN)
        with pytest.raises(NumericDegeneracy):
            HedgeSimulator(spec, NanEngine(), seed=0).run(MODEL, 3)

    def test_invalid_steps(self):
        spec = OptionSpec(K=100.0, T=1.0)
        with pytest.raises(InvalidConfiguration):
            HedgeSimulator(spec, AnalyticEngine(spec)).run(MODEL, 0)
        asian = OptionSpec(K=100.0, T=1.0, variant=ASIAN)
        with pytest.raises(InvalidConfiguration):
            HedgeSimulator(asian, LinearEngine(0.5)).run(MODEL, 1)

    def test_invalid_bump(self):
        spec = OptionSpec(K=100.0, T=1.0)
        with pytest.raises(InvalidConfiguration):
            HedgeSimulator(spec, AnalyticEngine(spec), bump_pct=0.0)


# ---------------------------------------------------------------------------
# Path-dependent settlement
# ---------------------------------------------------------------------------
class TestPathDependentHedge:
    def test_knock_out_zeroes_delta_for_good(self, fixed_growth):
        # path 100, 105, 110.25, 115.7625 crosses 108 between steps 1 and 2
        spec = _barrier(108.0, UP_AND_OUT)
        engine = LinearEngine(0.5)
        n = 4
        result = HedgeSimulator(spec, engine, seed=0).run(MODEL, n)
        assert result.barrier_touched is True
        np.testing.assert_allclose(result.deltas, [0.5, 0.5, 0.0, 0.0])
        assert len(engine.calls) == 4

        g = math.exp(MODEL.rate * spec.T / n)
        cash = 0.5 * 100.0
        cash = cash * g
        cash = (cash - 0.5 * 110.25) * g
        cash = cash * g
        # knocked out: no payoff, no shares left
        assert result.cost == pytest.approx(cash)

    def test_knock_in_switches_engine(self, fixed_growth):
        spec = _barrier(108.0, UP_AND_IN)
        result = HedgeSimulator(spec, LinearEngine(0.5), knocked_in_engine=LinearEngine(0.8),
                                seed=0).run(MODEL, 4)
        np.testing.assert_allclose(result.deltas, [0.5, 0.5, 0.8, 0.8])
        assert result.barrier_touched is True

    def test_knock_in_defaults_to_vanilla_closed_form(self):
        sim = HedgeSimulator(_barrier(108.0, UP_AND_IN), LinearEngine(0.5))
        assert isinstance(sim.knocked_in_engine, AnalyticEngine)
        assert sim.knocked_in_engine.spec == OptionSpec(K=100.0, T=1.0)

    def test_lookback_settles_on_recorded_path(self, fixed_growth):
        spec = OptionSpec(K=100.0, T=1.0, kind=CALL, variant=LOOKBACK)
        n = 4
        result = HedgeSimulator(spec, LinearEngine(0.5), seed=0).run(MODEL, n)
        g = math.exp(MODEL.rate * spec.T / n)
        path = [100.0 * GROWTH ** i for i in range(n)]
        np.testing.assert_allclose(result.path, path)
        cash = 50.0 * g ** (n - 1)
        expected = cash - 0.5 * path[-1] + (max(path) - spec.K)
        assert result.cost == pytest.approx(expected)

    def test_asian_settles_on_recorded_average(self, fixed_growth):
        spec = OptionSpec(K=100.0, T=1.0, kind=CALL, variant=ASIAN)
        n = 3
        result = HedgeSimulator(spec, LinearEngine(0.0), seed=0).run(MODEL, n)
        path = [100.0, 105.0, 110.25]
        # starting spot is not averaged
        assert result.cost == pytest.approx(np.mean(path[1:]) - spec.K)

    @pytest.mark.parametrize("variant", [ASIAN, LOOKBACK])
    def test_monte_carlo_hedge_smoke(self, variant):
        spec = OptionSpec(K=100.0, T=1.0, variant=variant)
        a = hedge_cost(spec, MODEL, 5, n_paths=200, seed=21)
        b = hedge_cost(spec, MODEL, 5, n_paths=200, seed=21)
        assert math.isfinite(a)
        assert a == b

    def test_barrier_monte_carlo_hedge_smoke(self):
        spec = _barrier(120.0, UP_AND_OUT)
        result = HedgeSimulator(spec, MonteCarloEngine(spec, 200, seed=1), seed=2).run(MODEL, 5)
        assert math.isfinite(result.cost)
        assert result.barrier_touched in (True, False)
