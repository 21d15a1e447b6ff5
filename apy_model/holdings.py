import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Mapping

import pandas as pd

from apy_model.catalog import Catalog

logger = logging.getLogger(__name__)

Snapshot = Mapping[str, Mapping[str, float]]


@dataclass(frozen=True)
class AggregatedHoldings:
    per_asset_total: Dict[str, float]
    grand_total: float
    baseline: Dict[str, Dict[str, float]] = field(default_factory=dict)

    def to_dataframe(self) -> pd.DataFrame:
        records = []
        for asset, total in self.per_asset_total.items():
            rec = {"Asset": asset, "Total_$": total,
                   "Share_%": (total / self.grand_total * 100.0) if self.grand_total else 0.0}
            for strategy, frac in self.baseline.get(asset, {}).items():
                rec[f"{strategy}_%"] = frac * 100.0
            records.append(rec)
        return pd.DataFrame(records)


def _amount(value, where: str) -> float:
    if value is None or value == "":
        return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        logger.warning("Unparseable holding %r at %s, using 0", value, where)
        return 0.0
    if not math.isfinite(amount):
        logger.warning("Non-finite holding %r at %s, using 0", value, where)
        return 0.0
    if amount < 0:
        raise ValueError(f"negative holding {amount} at {where}")
    return amount


def holdings_from_response(raw, catalog: Catalog) -> Dict[str, Dict[str, float]]:
    """Reduce an analytics ``{"strategies": {src: {"holdings": {...}}}}`` payload to a snapshot.

    Unknown strategies and symbols are dropped.
    """
    by_source = catalog.holdings_keys()
    snapshot: Dict[str, Dict[str, float]] = {}
    strategies = raw.get("strategies") if isinstance(raw, dict) else None
    for src, obj in (strategies if isinstance(strategies, dict) else {}).items():
        strategy = by_source.get(src)
        if strategy is None or not isinstance(obj, dict):
            continue
        held = snapshot.setdefault(strategy, {})
        holdings = obj.get("holdings")
        for symbol, value in (holdings if isinstance(holdings, dict) else {}).items():
            symbol = str(symbol).upper()
            if symbol not in catalog.assets:
                continue
            held[symbol] = held.get(symbol, 0.0) + _amount(value, f"{src}.{symbol}")
    return snapshot


def aggregate_holdings(snapshot: Snapshot, catalog: Catalog) -> AggregatedHoldings:
    """Per-asset totals, grand total and baseline allocation fractions.

    A strategy missing from the snapshot holds 0 of everything. An asset whose
    total is 0 gets a baseline of 0 for every strategy instead of a division error.
    """
    snapshot = snapshot or {}
    held = {
        (s, a): _amount((snapshot.get(s) or {}).get(a), f"{s}.{a}")
        for s in catalog.strategies for a in catalog.assets
    }
    per_asset: Dict[str, float] = {}
    for asset in catalog.assets:
        per_asset[asset] = sum(held[(s, asset)] for s in catalog.strategies)
    grand_total = 0.0
    for asset in catalog.assets:
        grand_total += per_asset[asset]

    baseline: Dict[str, Dict[str, float]] = {}
    for asset in catalog.assets:
        total = per_asset[asset]
        if total == 0:
            logger.debug("No %s held by any strategy, baseline is 0", asset)
        baseline[asset] = {
            s: (held[(s, asset)] / total) if total else 0.0
            for s in catalog.strategies_for(asset)
        }
    return AggregatedHoldings(per_asset, grand_total, baseline)
