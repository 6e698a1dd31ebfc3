from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Optional

from .errors import InvalidConfiguration


CALL = "call"
PUT  = "put"

VANILLA  = "vanilla"
BARRIER  = "barrier"
ASIAN    = "asian"
LOOKBACK = "lookback"

UP_AND_OUT   = "up-and-out"
DOWN_AND_OUT = "down-and-out"
UP_AND_IN    = "up-and-in"
DOWN_AND_IN  = "down-and-in"

KINDS = (CALL, PUT)
VARIANTS = (VANILLA, BARRIER, ASIAN, LOOKBACK)
BARRIER_TYPES = (UP_AND_OUT, DOWN_AND_OUT, UP_AND_IN, DOWN_AND_IN)


# ---------------------------------------------------------------------------
# Market snapshot
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class MarketModel:
    """Black-Scholes market snapshot: what is *moving*.

    Parameters
    ----------
    spot : float
        Current underlying price.
    rate : float
        Continuously-compounded risk-free rate.
    sigma : float
        Lognormal volatility.
    q : float
        Continuous dividend yield (default 0).
    """
    spot: float
    rate: float
    sigma: float
    q: float = 0.0

    def __post_init__(self):
        if self.spot <= 0:
            raise InvalidConfiguration(f"spot must be positive, got {self.spot}")
        if self.sigma <= 0:
            raise InvalidConfiguration(f"sigma must be positive, got {self.sigma}")

    def bumped(self, spot: float) -> MarketModel:
        """Independent copy of the snapshot with ``spot`` overridden."""
        return replace(self, spot=spot)

    @property
    def drift(self) -> float:
        """Log-drift per unit time under the risk-neutral measure."""
        return self.rate - self.q - 0.5 * self.sigma * self.sigma


# ---------------------------------------------------------------------------
# Contract
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class OptionSpec:
    """What the contract *is*: static, does not change when markets move.

    Parameters
    ----------
    K : float
        Strike price.
    T : float
        Time to expiry in years.
    kind : str
        ``"call"`` or ``"put"``.
    variant : str
        ``"vanilla"`` (default), ``"barrier"``, ``"asian"`` or ``"lookback"``.
    barrier : float, optional
        Barrier level, barrier variant only.
    barrier_type : str, optional
        One of ``"up-and-out"``, ``"down-and-out"``, ``"up-and-in"``,
        ``"down-and-in"``; barrier variant only.
    rebate : float
        Paid at expiry when a barrier option ends inactive (default 0).
    """
    K: float
    T: float
    kind: str = CALL
    variant: str = VANILLA
    barrier: Optional[float] = None
    barrier_type: Optional[str] = None
    rebate: float = 0.0

    def __post_init__(self):
        if self.K <= 0:
            raise InvalidConfiguration(f"K must be positive, got {self.K}")
        if self.T <= 0:
            raise InvalidConfiguration(f"T must be positive, got {self.T}")
        if self.kind not in KINDS:
            raise InvalidConfiguration(f"kind must be 'call' or 'put', got {self.kind!r}")
        if self.variant not in VARIANTS:
            raise InvalidConfiguration(
                f"variant must be one of {VARIANTS}, got {self.variant!r}"
            )
        if self.variant == BARRIER:
            if self.barrier is None or self.barrier <= 0:
                raise InvalidConfiguration(
                    f"barrier must be positive for a barrier option, got {self.barrier}"
                )
            if self.barrier_type not in BARRIER_TYPES:
                raise InvalidConfiguration(
                    f"barrier_type must be one of {BARRIER_TYPES}, got {self.barrier_type!r}"
                )
            if self.rebate < 0:
                raise InvalidConfiguration(f"rebate must be non-negative, got {self.rebate}")
        elif self.barrier is not None or self.barrier_type is not None:
            raise InvalidConfiguration(
                f"only barrier options carry a barrier, got variant {self.variant!r}"
            )

    @property
    def is_path_dependent(self) -> bool:
        return self.variant != VANILLA

    @property
    def is_knock_out(self) -> bool:
        return self.barrier_type in (UP_AND_OUT, DOWN_AND_OUT)

    @property
    def is_up_barrier(self) -> bool:
        return self.barrier_type in (UP_AND_OUT, UP_AND_IN)

    def vanilla(self) -> OptionSpec:
        """The European vanilla with the same strike, expiry and kind."""
        return OptionSpec(K=self.K, T=self.T, kind=self.kind)
