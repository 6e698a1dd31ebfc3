#!/usr/bin/env python3
"""Batch script: price a book of contracts and estimate their hedge cost.

Usage
-----
    python scripts/hedge_book.py --input book.csv --output report.csv
    python scripts/hedge_book.py --input book.csv --output report.json --n-paths 5000

Input CSV format
----------------
    id,spot,rate,sigma,q,K,T,kind,variant,barrier,barrier_type
    1,100,0.05,0.20,0.0,100,1.0,call,vanilla,,
    2,100,0.05,0.20,0.0,100,1.0,put,asian,,
    3,100,0.05,0.20,0.0,100,1.0,call,barrier,120,up-and-out

Output
------
    CSV or JSON with columns: id, price, stderr, hedge_cost
"""

from __future__ import annotations
import argparse
import csv
import json
import logging
import sys
from pathlib import Path

import numpy as np

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from hedgepricer.black_scholes import price as bs_price
from hedgepricer.config import SimulationConfig
from hedgepricer.core import MarketModel, OptionSpec
from hedgepricer.errors import PricingError
from hedgepricer.hedging import hedge_cost
from hedgepricer.monte_carlo import mc_price

logger = logging.getLogger("hedge_book")


def _optional_float(row: dict, key: str):
    raw = (row.get(key) or "").strip()
    return float(raw) if raw else None


def _book_row(row: dict, config: SimulationConfig, seed: np.random.SeedSequence) -> dict:
    """Price and hedge a single book row and return the result dict."""
    model = MarketModel(
        spot=float(row["spot"]),
        rate=float(row["rate"]),
        sigma=float(row["sigma"]),
        q=float(row.get("q") or 0.0),
    )
    spec = OptionSpec(
        K=float(row["K"]),
        T=float(row["T"]),
        kind=row["kind"].strip().lower(),
        variant=(row.get("variant") or "vanilla").strip().lower(),
        barrier=_optional_float(row, "barrier"),
        barrier_type=(row.get("barrier_type") or "").strip().lower() or None,
        rebate=_optional_float(row, "rebate") or 0.0,
    )
    price_seed, hedge_seed = seed.spawn(2)

    result = {"id": row.get("id", ""), "price": None, "stderr": None}
    if spec.is_path_dependent:
        px, se = mc_price(spec, model, config.n_paths, config.n_steps,
                          seed=price_seed, return_stderr=True, config=config)
        result["price"], result["stderr"] = px, se
    else:
        result["price"] = bs_price(spec, model)
    result["hedge_cost"] = hedge_cost(spec, model, config.n_steps, n_paths=config.n_paths,
                                      seed=hedge_seed, config=config)
    return result


def main(argv=None):
    parser = argparse.ArgumentParser(description="Price and hedge a book of options.")
    parser.add_argument("--input", required=True, help="Path to book CSV")
    parser.add_argument("--output", required=True, help="Output path (.csv or .json)")
    parser.add_argument("--n-paths", dest="n_paths", type=int, default=None)
    parser.add_argument("--n-steps", dest="n_steps", type=int, default=None)
    parser.add_argument("--seed", type=int, default=None)
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    env = SimulationConfig.from_env()
    config = env.with_overrides(n_paths=args.n_paths, n_steps=args.n_steps, seed=args.seed)

    with open(args.input, newline="") as f:
        rows = list(csv.DictReader(f))

    logger.info("Pricing and hedging %d positions...", len(rows))
    row_seeds = np.random.SeedSequence(config.seed).spawn(len(rows))

    results = []
    for i, (row, seed) in enumerate(zip(rows, row_seeds)):
        try:
            results.append(_book_row(row, config, seed))
        except (PricingError, KeyError, ValueError) as e:
            logger.warning("  Row %d (id=%s): ERROR: %s", i, row.get("id", "?"), e)
            results.append({"id": row.get("id", ""), "price": None, "error": str(e)})

    output_path = Path(args.output)
    if output_path.suffix == ".json":
        with open(output_path, "w") as f:
            json.dump(results, f, indent=2, default=str)
    else:
        if not results:
            logger.info("No results to write.")
            return
        fieldnames = list(results[0].keys())
        for r in results:
            for k in r:
                if k not in fieldnames:
                    fieldnames.append(k)
        with open(output_path, "w", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames, extrasaction="ignore")
            writer.writeheader()
            writer.writerows(results)

    logger.info("Results written to %s", args.output)
    priced = [r for r in results if r.get("price") is not None]
    logger.info("  Priced: %d  |  Failed: %d", len(priced), len(results) - len(priced))


if __name__ == "__main__":
    main()
