"""
Frozen simulation settings.

Defaults match an interactive pricing session (10 000 paths, 100 steps).
Every field can be overridden through a ``HEDGEPRICER_<FIELD>`` environment
variable via :meth:`SimulationConfig.from_env`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from typing import Optional

from .errors import InvalidConfiguration

__all__ = ["SimulationConfig", "DEFAULT_CONFIG", "ENV_PREFIX"]

ENV_PREFIX = "HEDGEPRICER_"


@dataclass(frozen=True)
class SimulationConfig:
    """
    Immutable Monte Carlo / hedging configuration.

    Attributes
    ----------
    n_paths : int
        Paths per Monte Carlo price (also used for every nested re-price).
    n_steps : int
        Time steps per path and rebalancing dates per hedge run.
    bump_pct : float
        Relative spot bump for the central-difference delta.
    chunk_size : int
        Paths simulated per chunk (caps memory at ``chunk_size * (n_steps+1)``).
    n_workers : int
        Worker processes for chunked pricing; 1 runs in-process.
    min_tau : float
        Remaining horizon below which the hedge is no longer re-estimated.
    seed : int, optional
        Root seed; ``None`` draws fresh OS entropy.
    """

    n_paths: int = 10_000
    n_steps: int = 100
    bump_pct: float = 0.01
    chunk_size: int = 10_000
    n_workers: int = 1
    min_tau: float = 1e-10
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        for name in ("n_paths", "n_steps", "chunk_size", "n_workers"):
            if getattr(self, name) <= 0:
                raise InvalidConfiguration(f"{name} must be positive, got {getattr(self, name)}")
        if not 0.0 < self.bump_pct < 1.0:
            raise InvalidConfiguration(f"bump_pct must be in (0, 1), got {self.bump_pct}")
        if self.min_tau < 0:
            raise InvalidConfiguration(f"min_tau must be non-negative, got {self.min_tau}")

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> SimulationConfig:
        """
        Build a config from ``HEDGEPRICER_*`` variables, falling back to defaults.

        Parameters
        ----------
        environ : dict, optional
            Mapping to read instead of ``os.environ``.
        """
        environ = os.environ if environ is None else environ
        overrides = {}
        for f in fields(cls):
            raw = environ.get(ENV_PREFIX + f.name.upper())
            if raw is None or raw == "":
                continue
            cast = float if f.name in ("bump_pct", "min_tau") else int
            try:
                overrides[f.name] = cast(raw)
            except ValueError as exc:
                raise InvalidConfiguration(
                    f"{ENV_PREFIX + f.name.upper()}={raw!r} is not a valid {cast.__name__}"
                ) from exc
        return cls(**overrides)

    def with_overrides(self, **overrides) -> SimulationConfig:
        """Copy with every non-``None`` override applied (and re-validated)."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


DEFAULT_CONFIG = SimulationConfig()
