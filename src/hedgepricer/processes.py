# processes.py
# Path generators for Monte Carlo pricing and delta hedging.
# Pricing paths are returned as an array of shape (n_steps+1, n_paths)
# that includes the t=0 row with the model spot.

from __future__ import annotations
import logging
import numpy as np
from typing import Optional, Union

from .core import MarketModel
from .errors import InvalidConfiguration


__all__ = [
    "SeedLike",
    "make_rng",
    "as_seed_sequence",
    "gbm_paths",
    "gbm_path",
    "real_world_step",
]

logger = logging.getLogger(__name__)

SeedLike = Optional[Union[int, np.random.SeedSequence, np.random.Generator]]


def make_rng(seed: SeedLike) -> np.random.Generator:
    """Own a generator for one simulation call.

    A ``Generator`` passed in is used as-is; anything else seeds a new one
    (``None`` pulls fresh OS entropy).
    """
    if isinstance(seed, np.random.Generator):
        return seed
    return np.random.default_rng(seed)


def as_seed_sequence(seed) -> np.random.SeedSequence:
    """Root ``SeedSequence`` for an engine or simulator that spawns per-call streams."""
    if isinstance(seed, np.random.SeedSequence):
        return seed
    return np.random.SeedSequence(seed)


def _check_grid(horizon: float, n_steps: int, n_paths: int = 1) -> None:
    if n_steps <= 0:
        raise InvalidConfiguration(f"n_steps must be positive, got {n_steps}")
    if n_paths <= 0:
        raise InvalidConfiguration(f"n_paths must be positive, got {n_paths}")
    if horizon <= 0:
        raise InvalidConfiguration(f"horizon must be positive, got {horizon}")


# -----------------------------
# Risk-neutral GBM
# -----------------------------
def gbm_paths(
    model: MarketModel, horizon: float, n_steps: int, n_paths: int,
    *, seed: SeedLike = None,
) -> np.ndarray:
    """
    Exact-discretization GBM under Q:
        dS/S = (r - q) dt + sigma dW
        S_{t+dt} = S_t * exp((r - q - 0.5*sigma^2) dt + sigma * sqrt(dt) * Z)

    Parameters
    ----------
    model : MarketModel
        Spot, rate, dividend yield and volatility.
    horizon : float
        Time covered by the path in years.
    n_steps : int
        Number of time steps; ``dt = horizon / n_steps``.
    n_paths : int
        Number of independent paths.
    seed : int, SeedSequence, Generator or None
        Random source owned by this call.

    Returns
    -------
    ndarray, shape (n_steps+1, n_paths)
    """
    _check_grid(horizon, n_steps, n_paths)

    rng = make_rng(seed)
    dt = horizon / n_steps
    drift = model.drift * dt
    vol = model.sigma * np.sqrt(dt)

    Z = rng.standard_normal((n_steps, n_paths))

    log_increments = drift + vol * Z
    log_paths = np.cumsum(log_increments, axis=0)
    S = model.spot * np.exp(log_paths)
    S = np.vstack([np.full((1, n_paths), model.spot, dtype=S.dtype), S])
    logger.debug("gbm_paths: %d paths x %d steps, dt=%.6g", n_paths, n_steps, dt)
    return S


def gbm_path(
    model: MarketModel, horizon: float, n_steps: int,
    *, seed: SeedLike = None,
) -> np.ndarray:
    """One risk-neutral trajectory of length ``n_steps+1`` (seed price first)."""
    return gbm_paths(model, horizon, n_steps, 1, seed=seed)[:, 0]


# ---------------------------------------------------------------------------
# Real-world hedging step
# ---------------------------------------------------------------------------
def real_world_step(
    spot: float, model: MarketModel, dt: float, rng: np.random.Generator
) -> float:
    """Advance the hedged trajectory by one rebalancing interval.

    Uses a centred uniform shock rather than a normal draw::

        S_{t+dt} = S_t * exp((r - q - 0.5*sigma^2) dt + sigma * sqrt(dt) * (U - 0.5))

    with ``U ~ Uniform[0, 1)``. The hedged trajectory and the nested pricing
    paths are generated independently and under different shocks.
    """
    if dt <= 0:
        raise InvalidConfiguration(f"dt must be positive, got {dt}")
    shock = rng.random() - 0.5
    return float(spot * np.exp(model.drift * dt + model.sigma * np.sqrt(dt) * shock))
