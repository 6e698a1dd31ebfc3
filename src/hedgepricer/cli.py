import argparse
import logging
import sys

import numpy as np

from .black_scholes import price as bs_price
from .config import SimulationConfig
from .core import (
    MarketModel, OptionSpec, CALL, PUT, VARIANTS, BARRIER_TYPES,
)
from .errors import PricingError
from .hedging import HedgeSimulator, default_engine
from .monte_carlo import mc_price

def _kind(s: str):
    s = s.lower()
    if s in {"call", "c"}:
        return CALL
    if s in {"put", "p"}:
        return PUT
    raise argparse.ArgumentTypeError("kind must be 'call' or 'put'")


def add_common(parser: argparse.ArgumentParser, config: SimulationConfig):
    parser.add_argument("--spot", type=float, required=True)
    parser.add_argument("--rate", type=float, required=True, help="cont. risk-free")
    parser.add_argument("--sigma", type=float, required=True)
    parser.add_argument("--q", type=float, default=0.0, help="cont. dividend yield")
    parser.add_argument("--K", type=float, required=True)
    parser.add_argument("--T", type=float, required=True, help="years")
    parser.add_argument("--kind", type=_kind, default=CALL, help="call|put")
    parser.add_argument("--variant", choices=VARIANTS, default="vanilla")
    parser.add_argument("--barrier", type=float, default=None)
    parser.add_argument("--barrier-type", dest="barrier_type", choices=BARRIER_TYPES, default=None)
    parser.add_argument("--rebate", type=float, default=0.0)
    parser.add_argument("--n-steps", dest="n_steps", type=int, default=config.n_steps)
    parser.add_argument("--n-paths", dest="n_paths", type=int, default=config.n_paths)
    parser.add_argument("--seed", type=int, default=config.seed)


def _inputs(args):
    model = MarketModel(spot=args.spot, rate=args.rate, sigma=args.sigma, q=args.q)
    spec = OptionSpec(K=args.K, T=args.T, kind=args.kind, variant=args.variant,
                      barrier=args.barrier, barrier_type=args.barrier_type,
                      rebate=args.rebate)
    return spec, model


def cmd_price(args):
    spec, model = _inputs(args)
    if args.method == "bs":
        print(f"{bs_price(spec, model):.10f}")
        return
    px, se = mc_price(spec, model, args.n_paths, args.n_steps, seed=args.seed,
                      n_workers=args.workers, return_stderr=True, config=args.config)
    print(f"{px:.10f}  (stderr {se:.10f})")


def cmd_hedge(args):
    spec, model = _inputs(args)
    trajectory_seed, engine_seed = np.random.SeedSequence(args.seed).spawn(2)
    engine = default_engine(spec, args.n_paths, seed=engine_seed, config=args.config)
    result = HedgeSimulator(spec, engine, bump_pct=args.bump_pct,
                            seed=trajectory_seed, config=args.config).run(model, args.n_steps)
    print(f"{result.cost:.10f}")


def main(argv=None):
    try:
        config = SimulationConfig.from_env()
    except PricingError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    p = argparse.ArgumentParser(prog="hedgepricer",
                                description="Option pricing and delta-hedging cost")
    p.add_argument("-v", "--verbose", action="count", default=0,
                   help="-v for run summaries, -vv for per-step detail")
    sub = p.add_subparsers(dest="cmd", required=True)

    # Price
    p_px = sub.add_parser("price", help="Monte Carlo (or closed-form) price")
    add_common(p_px, config)
    p_px.add_argument("--method", choices=("mc", "bs"), default="mc")
    p_px.add_argument("--workers", type=int, default=config.n_workers)
    p_px.set_defaults(func=cmd_price, config=config)

    # Hedge
    p_hg = sub.add_parser("hedge", help="Delta-hedging replication cost")
    add_common(p_hg, config)
    p_hg.add_argument("--bump-pct", dest="bump_pct", type=float, default=config.bump_pct)
    p_hg.set_defaults(func=cmd_hedge, config=config)

    args = p.parse_args(argv)
    level = {0: logging.WARNING, 1: logging.INFO}.get(args.verbose, logging.DEBUG)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    try:
        args.func(args)
    except PricingError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
