"""Projected OUSD APY from a strategy allocation.

Usage:

    apy-sim --offline --alloc USDC:aave=0.3 --alloc USDC:compound=0.2 --boost 1.2
    apy-sim --holdings snapshot.json --static-fallback --csv rows.csv
"""
import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional, Tuple

import pandas as pd
from dotenv import load_dotenv

from apy_model.catalog import Catalog, load_catalog
from apy_model.config import DEFAULT_BOOST, SAMPLE_HOLDINGS, STATIC_QUOTES
from apy_model.engine import ProjectionResult, Simulator
from apy_model.errors import ApyModelError
from apy_model.fetch import fetch_cycle_inputs
from apy_model.quotes import merge_quotes, normalize_static

logger = logging.getLogger(__name__)


def parse_fraction(text: str) -> float:
    text = text.strip()
    try:
        if text.endswith("%"):
            return float(text[:-1]) / 100.0
        return float(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid fraction {text!r}")


def parse_alloc(text: str) -> Tuple[str, str, float]:
    """ASSET:STRATEGY=FRACTION, e.g. ``USDC:aave=0.4`` or ``DAI:convex=55%``."""
    cell, sep, value = text.partition("=")
    asset, colon, strategy = cell.partition(":")
    if not sep or not colon or not asset or not strategy:
        raise argparse.ArgumentTypeError(f"expected ASSET:STRATEGY=FRACTION, got {text!r}")
    return asset.strip().upper(), strategy.strip().lower(), parse_fraction(value)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Project the blended APY of the OUSD reserve for a given allocation",
    )
    parser.add_argument("--offline", action="store_true",
                        help="Use sample holdings and hardcoded venue APYs (no network)")
    parser.add_argument("--holdings", type=str, default=None,
                        help="JSON file {strategy: {asset: amount}} used instead of live holdings")
    parser.add_argument("--alloc", type=parse_alloc, action="append", default=[],
                        help="Override one allocation cell, ASSET:STRATEGY=FRACTION (repeatable)")
    parser.add_argument("--boost", type=float, default=DEFAULT_BOOST,
                        help="Yield boost multiplier applied to every strategy")
    parser.add_argument("--static-fallback", action="store_true",
                        help="Fill venue quotes that failed to load from the hardcoded table")
    parser.add_argument("--csv", type=str, default=None, help="Write the row table to this CSV file")
    parser.add_argument("--log-level", type=str, default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser.parse_args(argv)


def load_snapshot(path: str):
    p = Path(path).expanduser()
    if not p.exists():
        raise SystemExit(f"Holdings file not found: {p}")
    with p.open() as fh:
        return json.load(fh)


def load_inputs(args: argparse.Namespace, catalog: Catalog):
    snapshot = load_snapshot(args.holdings) if args.holdings else None
    static = normalize_static(STATIC_QUOTES, catalog.quote_keys)
    if args.offline:
        return snapshot if snapshot is not None else SAMPLE_HOLDINGS, static, None
    inputs = fetch_cycle_inputs(catalog, os.environ, snapshot=snapshot)
    quotes = merge_quotes(static, inputs.quotes) if args.static_fallback else inputs.quotes
    return inputs.snapshot, quotes, inputs.supply


def render(sim: Simulator, result: ProjectionResult, supply=None) -> str:
    lines = []
    holdings = sim.holdings.to_dataframe()
    lines.append("Reserve holdings")
    lines.append(holdings.to_string(index=False, float_format=lambda v: f"{v:,.2f}"))
    lines.append(f"Total: ${result.total_value:,.0f}")
    if supply is not None:
        lines.append(f"OUSD supply: {supply:,.0f}")
    lines.append("")
    lines.append(f"Boost: {sim.model.boost:g}x")
    table = result.to_dataframe()
    with pd.option_context("display.width", 200, "display.max_columns", None):
        lines.append(table.to_string(index=False, float_format=lambda v: f"{v:,.2f}"))
    for asset in sim.catalog.assets:
        total = sim.model.row_sum(asset)
        if abs(total - 1.0) > 1e-9 and sim.holdings.per_asset_total.get(asset):
            lines.append(f"Note: {asset} allocations sum to {total:.2%}, not 100%")
    if result.missing:
        lines.append("Data unavailable: " + ", ".join(e.label for e in result.missing))
    lines.append("")
    lines.append(f"Projected OUSD APY: {result.blended_apy:.2%}")
    return "\n".join(lines)


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    catalog = load_catalog()
    try:
        snapshot, quotes, supply = load_inputs(args, catalog)
        sim = Simulator(catalog)
        sim.load(snapshot, quotes)
        for asset, strategy, fraction in args.alloc:
            sim.set_allocation(asset, strategy, fraction)
        sim.set_boost(args.boost)
        result = sim.result()
    except (ApyModelError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    print(render(sim, result, supply))
    if args.csv:
        result.to_dataframe().to_csv(args.csv, index=False)
        logger.info("Wrote %d rows to %s", len(result.rows), args.csv)
    return 0


if __name__ == "__main__":
    sys.exit(main())
