# hedgepricer/monte_carlo.py

from __future__ import annotations
import logging
import math
import numpy as np
from concurrent.futures import ProcessPoolExecutor
from typing import Optional

from .config import DEFAULT_CONFIG, SimulationConfig
from .core import MarketModel, OptionSpec
from .errors import InvalidConfiguration
from .payoffs import Payoff, evaluate, payoff_for
from .processes import as_seed_sequence, gbm_paths

__all__ = ["MonteCarloEngine", "mc_price"]

logger = logging.getLogger(__name__)


# ---- helper: one simulation chunk (paths are dropped after the payoff) ----

def _mc_chunk_sumstats(
    n: int,
    *,
    payoff: Payoff, model: MarketModel, horizon: float, n_steps: int,
    seed: np.random.SeedSequence,
):
    """
    Simulate `n` risk-neutral paths, evaluate the undiscounted payoff X and
    return the sufficient statistics needed to aggregate:
        n, sumX, sumX2
    """
    paths = gbm_paths(model, horizon, n_steps, n, seed=seed)
    X = evaluate(payoff, paths)
    return (X.size, math.fsum(X), math.fsum(X * X))


def _aggregate_stats(stats_list):
    # chunk order is fixed by the caller, so the reduction is deterministic
    n = sum(s[0] for s in stats_list)
    sumX  = math.fsum(s[1] for s in stats_list)
    sumX2 = math.fsum(s[2] for s in stats_list)
    return n, sumX, sumX2


def _plan_chunks(n_paths: int, chunk_size: int) -> list[int]:
    chunks = []
    remaining = int(n_paths)
    while remaining > 0:
        m = min(chunk_size, remaining)
        chunks.append(m)
        remaining -= m
    return chunks


class MonteCarloEngine:
    """
    Monte Carlo pricer for any contract in the variant set.

    Each call to :meth:`price` simulates ``n_paths`` GBM paths over the
    requested horizon, evaluates the contract payoff on every path and
    returns the discounted average.

    - Paths are streamed in chunks to cap memory.
    - Every ``price`` call spawns a fresh child of the engine's
      ``SeedSequence``; every chunk gets its own grandchild stream. A seeded
      engine is therefore reproducible call-for-call, and successive calls
      are independent.
    - Optional process-level parallelism over chunks; serial and parallel
      runs with the same seed return the same estimate.

    Parameters
    ----------
    spec : OptionSpec
        Contract to price.
    n_paths : int, optional
        Paths per price (default from ``config``).
    seed : int or SeedSequence, optional
        Root of the engine's random streams.
    chunk_size, n_workers : int, optional
        Chunking and parallelism (defaults from ``config``).
    config : SimulationConfig
        Source of defaults.
    """

    def __init__(
        self,
        spec: OptionSpec,
        n_paths: Optional[int] = None,
        *,
        seed: Optional[int | np.random.SeedSequence] = None,
        chunk_size: Optional[int] = None,
        n_workers: Optional[int] = None,
        config: SimulationConfig = DEFAULT_CONFIG,
    ):
        self.spec = spec
        self.payoff = payoff_for(spec)
        self.n_paths = config.n_paths if n_paths is None else int(n_paths)
        self.chunk_size = config.chunk_size if chunk_size is None else int(chunk_size)
        self.n_workers = config.n_workers if n_workers is None else int(n_workers)
        self.default_steps = config.n_steps
        if self.n_paths <= 0:
            raise InvalidConfiguration(f"n_paths must be positive, got {self.n_paths}")
        if self.chunk_size <= 0:
            raise InvalidConfiguration(f"chunk_size must be positive, got {self.chunk_size}")
        if seed is None:
            seed = config.seed
        self._root = as_seed_sequence(seed)

    def price(
        self,
        model: MarketModel,
        n_steps: Optional[int] = None,
        horizon: Optional[float] = None,
        *,
        return_stderr: bool = False,
    ):
        """
        Discounted expected payoff ``exp(-r * horizon) * mean(payoff)``.

        Parameters
        ----------
        model : MarketModel
            Market snapshot the paths start from.
        n_steps : int, optional
            Time steps per path (default from the engine config).
        horizon : float, optional
            Time to maturity in years; defaults to the contract's ``T``.
            Hedging passes the remaining maturity here.
        return_stderr : bool
            Also return the standard error of the estimate.

        Returns
        -------
        float, or (float, float) when ``return_stderr`` is set
        """
        n_steps = self.default_steps if n_steps is None else int(n_steps)
        horizon = self.spec.T if horizon is None else float(horizon)
        if n_steps <= 0:
            raise InvalidConfiguration(f"n_steps must be positive, got {n_steps}")
        if horizon <= 0:
            raise InvalidConfiguration(f"horizon must be positive, got {horizon}")

        chunks = _plan_chunks(self.n_paths, self.chunk_size)
        call_seed = self._root.spawn(1)[0]
        child_seeds = call_seed.spawn(len(chunks))
        kwargs = dict(payoff=self.payoff, model=model, horizon=horizon, n_steps=n_steps)

        if self.n_workers <= 1 or len(chunks) == 1:
            stats_list = [
                _mc_chunk_sumstats(m, seed=ss, **kwargs)
                for m, ss in zip(chunks, child_seeds)
            ]
        else:
            with ProcessPoolExecutor(max_workers=self.n_workers) as ex:
                futs = [
                    ex.submit(_mc_chunk_sumstats, m, seed=ss, **kwargs)
                    for m, ss in zip(chunks, child_seeds)
                ]
                stats_list = [f.result() for f in futs]

        n, sumX, sumX2 = _aggregate_stats(stats_list)
        meanX = sumX / n
        varX = max(0.0, sumX2 / n - meanX * meanX)
        if n > 1:
            varX *= n / (n - 1)

        df = math.exp(-model.rate * horizon)
        px = df * meanX
        se = df * math.sqrt(varX / n)
        logger.debug(
            "%s price: spot=%.6g horizon=%.6g steps=%d paths=%d -> %.6g (se %.3g)",
            self.spec.variant, model.spot, horizon, n_steps, n, px, se,
        )
        return (float(px), float(se)) if return_stderr else float(px)

    def __repr__(self) -> str:
        return (f"MonteCarloEngine({self.spec!r}, n_paths={self.n_paths}, "
                f"chunk_size={self.chunk_size}, n_workers={self.n_workers})")


def mc_price(
    spec: OptionSpec,
    model: MarketModel,
    n_paths: Optional[int] = None,
    n_steps: Optional[int] = None,
    *,
    horizon: Optional[float] = None,
    seed: Optional[int | np.random.SeedSequence] = None,
    chunk_size: Optional[int] = None,
    n_workers: Optional[int] = None,
    return_stderr: bool = False,
    config: SimulationConfig = DEFAULT_CONFIG,
):
    """One-shot Monte Carlo price of ``spec`` under ``model``.

    See :class:`MonteCarloEngine` for the parameters.
    """
    engine = MonteCarloEngine(
        spec, n_paths, seed=seed, chunk_size=chunk_size,
        n_workers=n_workers, config=config,
    )
    return engine.price(model, n_steps, horizon, return_stderr=return_stderr)
