"""Delta-hedging simulator.

Drives one real-world trajectory of the underlying, re-estimates the hedge
ratio at every rebalancing date by bump-and-reprice on a pluggable pricing
engine, and tracks the self-financing cash account. The reported hedge cost
is ``cash - delta * S + payoff`` at the end of the trajectory.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional, Protocol

import numpy as np

from .black_scholes import AnalyticEngine
from .config import DEFAULT_CONFIG, SimulationConfig
from .core import MarketModel, OptionSpec, BARRIER
from .errors import InvalidConfiguration, NumericDegeneracy
from .monte_carlo import MonteCarloEngine
from .payoffs import payoff_for
from .processes import as_seed_sequence, real_world_step

__all__ = [
    "PricingEngine",
    "HedgeResult",
    "HedgeSimulator",
    "central_delta",
    "default_engine",
    "hedge_cost",
]

logger = logging.getLogger(__name__)


class PricingEngine(Protocol):
    """Anything that prices a contract at a given spot and remaining horizon."""

    def price(self, model: MarketModel, n_steps: int,
              horizon: Optional[float] = None) -> float: ...


@dataclass(frozen=True)
class HedgeResult:
    """Outcome of one hedging run.

    Attributes
    ----------
    cost : float
        Replication cost ``cash - delta * S + payoff``.
    path : ndarray, shape (n_steps,)
        Recorded real-world trajectory, seed price first.
    deltas : ndarray, shape (n_steps,)
        Hedge ratio held after each rebalancing date (index 0 is t=0).
    cash : float
        Cash account before settlement.
    barrier_touched : bool or None
        Final knock state for barrier contracts, ``None`` otherwise.
    """
    cost: float
    path: np.ndarray
    deltas: np.ndarray
    cash: float
    barrier_touched: Optional[bool] = None


# ---------------------------------------------------------------------------
# Bump-and-reprice delta
# ---------------------------------------------------------------------------

def central_delta(
    engine: PricingEngine,
    model: MarketModel,
    n_steps: int,
    horizon: float,
    *,
    bump_pct: float = 0.01,
) -> float:
    """Central finite-difference delta on an arbitrary pricing engine.

    ``delta = [P(S + eps) - P(S - eps)] / (2 eps)`` with ``eps = bump_pct * S``,
    both legs priced on independent bumped copies of ``model``.
    """
    eps = bump_pct * model.spot
    P_up = engine.price(model.bumped(model.spot + eps), n_steps, horizon)
    P_dn = engine.price(model.bumped(model.spot - eps), n_steps, horizon)
    return (P_up - P_dn) / (2.0 * eps)


def default_engine(
    spec: OptionSpec,
    n_paths: Optional[int] = None,
    *,
    seed=None,
    config: SimulationConfig = DEFAULT_CONFIG,
) -> PricingEngine:
    """Closed form for vanilla contracts, Monte Carlo for the path-dependent ones."""
    if not spec.is_path_dependent:
        return AnalyticEngine(spec)
    return MonteCarloEngine(spec, n_paths, seed=seed, config=config)


# ---------------------------------------------------------------------------
# Simulator
# ---------------------------------------------------------------------------

class HedgeSimulator:
    """Dynamic delta hedge of a single contract.

    Parameters
    ----------
    spec : OptionSpec
        Contract being replicated.
    engine : PricingEngine
        Engine used for every re-price. Each rebalancing date costs two
        calls, so a Monte Carlo engine makes a run
        O(n_steps * n_paths * n_steps).
    bump_pct : float, optional
        Relative spot bump for the delta (default from ``config``).
    seed : int or SeedSequence, optional
        Root of the real-world trajectory streams; each :meth:`run` spawns
        a fresh child.
    min_tau : float, optional
        Remaining horizon at or below which the hedge is held, not re-estimated.
    knocked_in_engine : PricingEngine, optional
        Engine for a knock-in contract once its barrier has been crossed;
        defaults to the closed form on the equivalent vanilla.
    config : SimulationConfig
        Source of defaults.
    """

    def __init__(
        self,
        spec: OptionSpec,
        engine: PricingEngine,
        *,
        bump_pct: Optional[float] = None,
        seed=None,
        min_tau: Optional[float] = None,
        knocked_in_engine: Optional[PricingEngine] = None,
        config: SimulationConfig = DEFAULT_CONFIG,
    ):
        self.spec = spec
        self.engine = engine
        self.payoff = payoff_for(spec)
        self.bump_pct = config.bump_pct if bump_pct is None else float(bump_pct)
        self.min_tau = config.min_tau if min_tau is None else float(min_tau)
        if not 0.0 < self.bump_pct < 1.0:
            raise InvalidConfiguration(f"bump_pct must be in (0, 1), got {self.bump_pct}")
        if spec.variant == BARRIER and not spec.is_knock_out and knocked_in_engine is None:
            knocked_in_engine = AnalyticEngine(spec.vanilla())
        self.knocked_in_engine = knocked_in_engine
        if seed is None:
            seed = config.seed
        self._root = as_seed_sequence(seed)

    def _delta(self, engine: PricingEngine, model: MarketModel, spot: float,
               n_steps: int, tau: float) -> float:
        return central_delta(engine, model.bumped(spot), n_steps, tau,
                             bump_pct=self.bump_pct)

    def run(self, model: MarketModel, n_steps: int) -> HedgeResult:
        """Simulate one hedged trajectory with ``n_steps`` rebalancing dates."""
        spec = self.spec
        if n_steps <= 0:
            raise InvalidConfiguration(f"n_steps must be positive, got {n_steps}")
        if spec.is_path_dependent and n_steps < 2:
            raise InvalidConfiguration(
                f"path-dependent hedging needs at least 2 steps, got {n_steps}"
            )

        rng = np.random.default_rng(self._root.spawn(1)[0])
        is_barrier = spec.variant == BARRIER
        dt = spec.T / n_steps
        growth = math.exp(model.rate * dt)

        # Init
        spot = model.spot
        delta = self._delta(self.engine, model, spot, n_steps, spec.T)
        cash = delta * spot
        path = [spot]
        deltas = [delta]
        touched = False

        for i in range(1, n_steps):
            # Simulate
            spot = real_world_step(spot, model, dt, rng)
            path.append(spot)
            # remaining horizon matches the nested engine's n_steps - i steps of size dt
            tau = (n_steps - i) * dt
            if is_barrier and not touched:
                touched = self.payoff.touched(np.array(path[-2:]))

            # Reprice
            previous = delta
            if is_barrier and touched and spec.is_knock_out:
                delta = 0.0
            elif tau <= self.min_tau:
                logger.debug("step %d: remaining horizon %.3g below min_tau, hedge held", i, tau)
            elif is_barrier and touched:
                delta = self._delta(self.knocked_in_engine, model, spot, n_steps - i, tau)
            else:
                delta = self._delta(self.engine, model, spot, n_steps - i, tau)

            # Rebalance
            cash += (delta - previous) * spot
            cash *= growth
            if not math.isfinite(cash):
                raise NumericDegeneracy(
                    f"cash account became {cash} at step {i} (spot={spot}, delta={delta})"
                )
            deltas.append(delta)
            logger.debug("step %d: spot=%.6g tau=%.6g delta=%.6g cash=%.6g",
                         i, spot, tau, delta, cash)

        # Finalize
        trajectory = np.asarray(path, dtype=float)
        if spec.is_path_dependent:
            payoff = float(self.payoff.path(trajectory))
        else:
            payoff = float(self.payoff.terminal(spot))
        cost = cash - delta * spot + payoff
        if not math.isfinite(cost):
            raise NumericDegeneracy(f"hedge cost is {cost}")

        logger.info("%s %s hedge over %d steps: cost=%.6g (payoff %.6g)",
                    spec.variant, spec.kind, n_steps, cost, payoff)
        return HedgeResult(
            cost=cost,
            path=trajectory,
            deltas=np.asarray(deltas, dtype=float),
            cash=cash,
            barrier_touched=touched if is_barrier else None,
        )


def hedge_cost(
    spec: OptionSpec,
    model: MarketModel,
    n_steps: Optional[int] = None,
    *,
    n_paths: Optional[int] = None,
    seed: Optional[int | np.random.SeedSequence] = None,
    engine: Optional[PricingEngine] = None,
    config: SimulationConfig = DEFAULT_CONFIG,
) -> float:
    """Replication cost of ``spec`` from one simulated hedging run.

    Vanilla contracts are re-priced in closed form, the others by Monte
    Carlo with ``n_paths`` paths per re-price, unless ``engine`` is given.
    """
    n_steps = config.n_steps if n_steps is None else n_steps
    if seed is None:
        seed = config.seed
    trajectory_seed, engine_seed = as_seed_sequence(seed).spawn(2)
    if engine is None:
        engine = default_engine(spec, n_paths, seed=engine_seed, config=config)
    simulator = HedgeSimulator(spec, engine, seed=trajectory_seed, config=config)
    return simulator.run(model, n_steps).cost
