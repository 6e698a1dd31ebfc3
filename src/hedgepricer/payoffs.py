# payoffs.py
# Payoff evaluators for the closed variant set {vanilla, barrier, asian, lookback}.
#
# Every evaluator declares which entry points it supports:
#   TERMINAL -> terminal(spot)  : payoff of a terminal price
#   PATH     -> path(paths)     : payoff of a whole trajectory
# Calling an undeclared entry point raises UnsupportedOperation.
#
# Paths follow the generator layout: shape (n_steps+1, n_paths) with the
# t=0 row first, or a single 1-D trajectory (seed price first).

from __future__ import annotations
from dataclasses import dataclass
from typing import ClassVar, FrozenSet

import numpy as np

from .core import (
    OptionSpec, CALL, VANILLA, BARRIER, ASIAN, LOOKBACK,
    UP_AND_OUT, UP_AND_IN, BARRIER_TYPES,
)
from .errors import InvalidConfiguration, UnsupportedOperation

__all__ = [
    "TERMINAL",
    "PATH",
    "Payoff",
    "VanillaPayoff",
    "BarrierPayoff",
    "AsianPayoff",
    "LookbackPayoff",
    "payoff_for",
    "evaluate",
    "is_barrier_touched",
]

TERMINAL = "terminal"
PATH = "path"


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------
def _intrinsic(spot, K: float, kind: str):
    spot = np.asarray(spot, dtype=float)
    if kind == CALL:
        value = np.maximum(spot - K, 0.0)
    else:
        value = np.maximum(K - spot, 0.0)
    return float(value) if value.ndim == 0 else value


def _as_columns(paths) -> tuple[np.ndarray, bool]:
    """Return ``(paths as (n_rows, n_paths), was_single_path)``."""
    arr = np.asarray(paths, dtype=float)
    single = arr.ndim == 1
    if single:
        arr = arr[:, np.newaxis]
    if arr.ndim != 2:
        raise InvalidConfiguration(f"paths must be 1-D or 2-D, got {arr.ndim} dimensions")
    if arr.shape[0] < 2:
        raise InvalidConfiguration(
            "a path needs the seed price and at least one monitoring date"
        )
    return arr, single


def _unwrap(values: np.ndarray, single: bool):
    return values.item() if single else values


def _crossed(cols: np.ndarray, barrier: float, up: bool) -> np.ndarray:
    prev, nxt = cols[:-1], cols[1:]
    if up:
        hit = (prev < barrier) & (nxt >= barrier)
    else:
        hit = (prev > barrier) & (nxt <= barrier)
    return hit.any(axis=0)


def is_barrier_touched(path, barrier: float, barrier_type: str):
    """Directional crossing test with discrete monitoring.

    Up barriers are touched at the first ``i`` with
    ``path[i-1] < barrier <= path[i]``; down barriers at the first
    ``path[i-1] > barrier >= path[i]``. A path that starts beyond the
    barrier is not touched until it crosses back over it.

    Parameters
    ----------
    path : array-like
        One trajectory (1-D) or paths of shape ``(n_steps+1, n_paths)``.
    barrier : float
        Barrier level.
    barrier_type : str
        One of ``"up-and-out"``, ``"up-and-in"``, ``"down-and-out"``,
        ``"down-and-in"``.

    Returns
    -------
    bool or ndarray of bool
    """
    if barrier_type not in BARRIER_TYPES:
        raise InvalidConfiguration(
            f"barrier_type must be one of {BARRIER_TYPES}, got {barrier_type!r}"
        )
    cols, single = _as_columns(path)
    touched = _crossed(cols, barrier, barrier_type in (UP_AND_OUT, UP_AND_IN))
    return bool(touched[0]) if single else touched


# ---------------------------------------------------------------------------
# Evaluators
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class Payoff:
    """Base evaluator; subclasses list their entry points in ``capabilities``."""
    spec: OptionSpec
    capabilities: ClassVar[FrozenSet[str]] = frozenset()

    def supports(self, capability: str) -> bool:
        return capability in self.capabilities

    def terminal(self, spot):
        raise UnsupportedOperation(
            f"{type(self).__name__} is path-dependent; terminal(spot) is not applicable"
        )

    def path(self, paths):
        raise UnsupportedOperation(
            f"{type(self).__name__} is terminal-only; path(paths) is not applicable"
        )


@dataclass(frozen=True)
class VanillaPayoff(Payoff):
    capabilities: ClassVar[FrozenSet[str]] = frozenset({TERMINAL})

    def terminal(self, spot):
        return _intrinsic(spot, self.spec.K, self.spec.kind)


@dataclass(frozen=True)
class BarrierPayoff(Payoff):
    """Knock-in / knock-out on a vanilla payoff, discretely monitored.

    ``terminal`` is the ungated vanilla payoff of a price; ``path`` applies
    the knock state accumulated over the trajectory.
    """
    capabilities: ClassVar[FrozenSet[str]] = frozenset({TERMINAL, PATH})

    def terminal(self, spot):
        return _intrinsic(spot, self.spec.K, self.spec.kind)

    def touched(self, paths):
        return is_barrier_touched(paths, self.spec.barrier, self.spec.barrier_type)

    def path(self, paths):
        cols, single = _as_columns(paths)
        crossed = _crossed(cols, self.spec.barrier, self.spec.is_up_barrier)
        vanilla = _intrinsic(cols[-1, :], self.spec.K, self.spec.kind)
        rebate = self.spec.rebate
        if self.spec.is_knock_out:
            payoff = np.where(crossed, rebate, vanilla)
        else:
            payoff = np.where(crossed, vanilla, rebate)
        return _unwrap(payoff, single)


@dataclass(frozen=True)
class AsianPayoff(Payoff):
    """Fixed-strike arithmetic-average payoff.

    The seed price (row 0) is not a monitoring date and is excluded from the
    average. The same rule settles a hedged trajectory: the hedge pays the
    average of the spots recorded after inception, not of the whole recorded
    path including the starting spot.
    """
    capabilities: ClassVar[FrozenSet[str]] = frozenset({PATH})

    def path(self, paths):
        cols, single = _as_columns(paths)
        avg = cols[1:, :].mean(axis=0)
        return _unwrap(_intrinsic(avg, self.spec.K, self.spec.kind), single)


@dataclass(frozen=True)
class LookbackPayoff(Payoff):
    """Fixed-strike lookback: call on the running max, put on the running min."""
    capabilities: ClassVar[FrozenSet[str]] = frozenset({PATH})

    def path(self, paths):
        cols, single = _as_columns(paths)
        if self.spec.kind == CALL:
            extreme = cols.max(axis=0)
        else:
            extreme = cols.min(axis=0)
        return _unwrap(_intrinsic(extreme, self.spec.K, self.spec.kind), single)


_EVALUATORS = {
    VANILLA: VanillaPayoff,
    BARRIER: BarrierPayoff,
    ASIAN: AsianPayoff,
    LOOKBACK: LookbackPayoff,
}


def payoff_for(spec: OptionSpec) -> Payoff:
    """Build the evaluator matching ``spec.variant``."""
    return _EVALUATORS[spec.variant](spec)


def evaluate(payoff: Payoff, paths: np.ndarray) -> np.ndarray:
    """Per-path payoffs for paths of shape ``(n_steps+1, n_paths)``.

    Path-capable evaluators see the whole trajectory; terminal-only ones see
    the last row.
    """
    if payoff.supports(PATH):
        return np.asarray(payoff.path(paths), dtype=float)
    if payoff.supports(TERMINAL):
        return np.asarray(payoff.terminal(np.asarray(paths)[-1]), dtype=float)
    raise UnsupportedOperation(f"{type(payoff).__name__} declares no payoff entry point")
