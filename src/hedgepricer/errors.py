"""Error taxonomy for the pricing and hedging core.

All three are caller-visible; none are retried.
"""

from __future__ import annotations

__all__ = [
    "PricingError",
    "UnsupportedOperation",
    "InvalidConfiguration",
    "NumericDegeneracy",
]


class PricingError(Exception):
    """Base class for every error raised by ``hedgepricer``."""


class UnsupportedOperation(PricingError, NotImplementedError):
    """A payoff entry point was called on a variant that does not declare it."""


class InvalidConfiguration(PricingError, ValueError):
    """Non-positive steps / paths / volatility / maturity or an ill-formed contract."""


class NumericDegeneracy(PricingError, ArithmeticError):
    """A computation hit a zero horizon or produced a non-finite value."""
