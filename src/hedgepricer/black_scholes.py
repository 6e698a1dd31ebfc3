# black_scholes.py
# Closed-form Black-Scholes price and Greeks for European vanilla contracts.
# Used as a cheap pricing engine when hedging vanilla options.

from __future__ import annotations
import math
from typing import Dict, Optional

from scipy.stats import norm

from .core import MarketModel, OptionSpec, CALL, VANILLA
from .errors import NumericDegeneracy, UnsupportedOperation

__all__ = ["price", "greeks", "AnalyticEngine"]

_N = norm.cdf
_n = norm.pdf


def _check_vanilla(spec: OptionSpec) -> None:
    if spec.variant != VANILLA:
        raise UnsupportedOperation(
            f"closed-form pricing covers vanilla contracts only, got {spec.variant!r}"
        )


def _d1_d2(S: float, K: float, T: float, r: float, q: float, sigma: float):
    rt = sigma * math.sqrt(T)
    d1 = (math.log(S / K) + (r - q + 0.5 * sigma * sigma) * T) / rt
    d2 = d1 - rt
    if math.isnan(d1) or math.isnan(d2):
        raise NumericDegeneracy(f"d1/d2 undefined for S={S}, K={K}, T={T}, sigma={sigma}")
    return d1, d2


def _expiry_delta(spot: float, spec: OptionSpec) -> float:
    # step function of moneyness; at-the-money counts as out of the money
    if spec.kind == CALL:
        return 1.0 if spot > spec.K else 0.0
    return -1.0 if spot < spec.K else 0.0


def price(spec: OptionSpec, model: MarketModel, horizon: Optional[float] = None) -> float:
    """Black-Scholes price with ``horizon`` years left (default ``spec.T``).

    A horizon at or below zero returns the intrinsic value.
    """
    _check_vanilla(spec)
    T = spec.T if horizon is None else horizon
    S, K, r, q, sigma = model.spot, spec.K, model.rate, model.q, model.sigma
    if T <= 0:
        return max(S - K, 0.0) if spec.kind == CALL else max(K - S, 0.0)

    d1, d2 = _d1_d2(S, K, T, r, q, sigma)
    disc_r = math.exp(-r * T)
    disc_q = math.exp(-q * T)
    if spec.kind == CALL:
        return float(disc_q * S * _N(d1) - disc_r * K * _N(d2))
    return float(disc_r * K * _N(-d2) - disc_q * S * _N(-d1))


def greeks(
    spec: OptionSpec, model: MarketModel, horizon: Optional[float] = None
) -> Dict[str, float]:
    """Returns greeks with sigma in absolute units (vega is dPrice/dSigma, not per 1%).

    Theta is dPrice/dt per year. At or past expiry only delta is non-zero.
    """
    _check_vanilla(spec)
    T = spec.T if horizon is None else horizon
    S, K, r, q, sigma = model.spot, spec.K, model.rate, model.q, model.sigma
    if T <= 0:
        return {"delta": _expiry_delta(S, spec), "gamma": 0.0, "vega": 0.0,
                "theta": 0.0, "rho": 0.0}

    d1, d2 = _d1_d2(S, K, T, r, q, sigma)
    n_d1   = _n(d1)
    disc_r = math.exp(-r * T)
    disc_q = math.exp(-q * T)
    sqrt_T = math.sqrt(T)

    # Common
    gamma = disc_q * n_d1 / (S * sigma * sqrt_T)
    vega  = S * disc_q * n_d1 * sqrt_T

    if spec.kind == CALL:
        delta = disc_q * _N(d1)
        theta = (-S * disc_q * n_d1 * sigma / (2 * sqrt_T)
                 - r * K * disc_r * _N(d2)
                 + q * S * disc_q * _N(d1))
        rho   = K * T * disc_r * _N(d2)
    else:
        delta = disc_q * (_N(d1) - 1.0)
        theta = (-S * disc_q * n_d1 * sigma / (2 * sqrt_T)
                 + r * K * disc_r * _N(-d2)
                 - q * S * disc_q * _N(-d1))
        rho   = -K * T * disc_r * _N(-d2)

    return {"delta": float(delta), "gamma": float(gamma), "vega": float(vega),
            "theta": float(theta), "rho": float(rho)}


class AnalyticEngine:
    """Pricing-engine adapter over the closed form.

    Exposes the same ``price(model, n_steps, horizon)`` capability as
    :class:`~hedgepricer.monte_carlo.MonteCarloEngine`; ``n_steps`` is
    accepted and ignored.
    """

    def __init__(self, spec: OptionSpec):
        _check_vanilla(spec)
        self.spec = spec

    def price(self, model: MarketModel, n_steps: int = 1,
              horizon: Optional[float] = None) -> float:
        return price(self.spec, model, horizon)

    def delta(self, model: MarketModel, horizon: Optional[float] = None) -> float:
        return greeks(self.spec, model, horizon)["delta"]

    def __repr__(self) -> str:
        return f"AnalyticEngine({self.spec!r})"
