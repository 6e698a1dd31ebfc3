# hedgepricer: option pricing and delta-hedging cost under Black-Scholes
# Public API

# Data model
from .core import (
    MarketModel, OptionSpec,
    CALL, PUT, VANILLA, BARRIER, ASIAN, LOOKBACK,
    UP_AND_OUT, DOWN_AND_OUT, UP_AND_IN, DOWN_AND_IN,
)
from .errors import (
    PricingError, UnsupportedOperation, InvalidConfiguration, NumericDegeneracy,
)
from .config import SimulationConfig, DEFAULT_CONFIG

# Paths and payoffs
from .processes import gbm_paths, gbm_path, real_world_step
from .payoffs import payoff_for, evaluate, is_barrier_touched

# Engines
from .black_scholes import price as bs_price, greeks as bs_greeks, AnalyticEngine
from .monte_carlo import MonteCarloEngine, mc_price

# Hedging
from .hedging import HedgeSimulator, HedgeResult, central_delta, hedge_cost

__all__ = [
    # Data model
    "MarketModel", "OptionSpec",
    "CALL", "PUT", "VANILLA", "BARRIER", "ASIAN", "LOOKBACK",
    "UP_AND_OUT", "DOWN_AND_OUT", "UP_AND_IN", "DOWN_AND_IN",
    # Errors / config
    "PricingError", "UnsupportedOperation", "InvalidConfiguration", "NumericDegeneracy",
    "SimulationConfig", "DEFAULT_CONFIG",
    # Paths and payoffs
    "gbm_paths", "gbm_path", "real_world_step",
    "payoff_for", "evaluate", "is_barrier_touched",
    # Engines
    "bs_price", "bs_greeks", "AnalyticEngine",
    "MonteCarloEngine", "mc_price",
    # Hedging
    "HedgeSimulator", "HedgeResult", "central_delta", "hedge_cost",
]

__version__ = "0.1.0"
