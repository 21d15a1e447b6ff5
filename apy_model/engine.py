import logging
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Tuple

import pandas as pd

from apy_model.allocation import AllocationModel
from apy_model.catalog import Catalog, CatalogEntry
from apy_model.holdings import AggregatedHoldings, Snapshot, aggregate_holdings
from apy_model.quotes import YieldQuote

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProjectionRow:
    strategy: str
    name: str
    assets: Tuple[str, ...]
    quote_key: str
    allocation: float          # share of the whole reserve
    allocation_amount: float
    base: float
    reward: float
    strategy_rate: float
    boosted_rate: float
    weighted: float


@dataclass(frozen=True)
class ProjectionResult:
    rows: Tuple[ProjectionRow, ...]
    blended_apy: float
    total_value: float
    missing: Tuple[CatalogEntry, ...] = field(default_factory=tuple)

    @property
    def complete(self) -> bool:
        return not self.missing

    def row(self, strategy: str, asset: Optional[str] = None) -> Optional[ProjectionRow]:
        for r in self.rows:
            if r.strategy == strategy and (asset is None or asset in r.assets):
                return r
        return None

    def to_dataframe(self) -> pd.DataFrame:
        records = [{
            "Strategy": r.name,
            "Assets": "/".join(r.assets),
            "Quote_Key": r.quote_key,
            "Alloc_%": r.allocation * 100.0,
            "Alloc_$": r.allocation_amount,
            "Base_%": r.base * 100.0,
            "Reward_%": r.reward * 100.0,
            "Strategy_%": r.strategy_rate * 100.0,
            "Boosted_%": r.boosted_rate * 100.0,
            "Weighted_%": r.weighted * 100.0,
        } for r in self.rows]
        columns = ["Strategy", "Assets", "Quote_Key", "Alloc_%", "Alloc_$", "Base_%",
                   "Reward_%", "Strategy_%", "Boosted_%", "Weighted_%"]
        return pd.DataFrame(records, columns=columns)


def _cross_asset_allocation(entry: CatalogEntry, matrix, per_asset_total, grand_total) -> float:
    if not grand_total:
        return 0.0
    held = 0.0
    for asset in entry.assets:
        fraction = (matrix.get(asset) or {}).get(entry.strategy, 0.0)
        held += fraction * per_asset_total.get(asset, 0.0)
    return held / grand_total


def project(
    matrix: Mapping[str, Mapping[str, float]],
    boost: float,
    holdings: AggregatedHoldings,
    quotes: Mapping[str, YieldQuote],
    catalog: Catalog,
) -> ProjectionResult:
    """Blend every catalog entry into one reserve-wide APY.

    Each entry's within-asset fraction is converted to a share of the whole
    reserve, multiplied by its boosted base+reward rate, and summed. Entries
    without a quote are left out of ``rows`` and listed in ``missing``.
    """
    grand_total = holdings.grand_total
    rows = []
    missing = []
    for entry in catalog.entries:
        quote = quotes.get(entry.quote_key)
        if quote is None:
            missing.append(entry)
            continue
        allocation = _cross_asset_allocation(entry, matrix, holdings.per_asset_total, grand_total)
        strategy_rate = quote.base + quote.reward
        boosted_rate = strategy_rate * boost
        rows.append(ProjectionRow(
            strategy=entry.strategy,
            name=entry.name,
            assets=entry.assets,
            quote_key=entry.quote_key,
            allocation=allocation,
            allocation_amount=allocation * grand_total,
            base=quote.base,
            reward=quote.reward,
            strategy_rate=strategy_rate,
            boosted_rate=boosted_rate,
            weighted=allocation * boosted_rate,
        ))
    blended = 0.0
    for r in rows:
        blended += r.weighted
    if missing:
        logger.info("No quote for %s; left out of projection", ", ".join(e.quote_key for e in missing))
    return ProjectionResult(tuple(rows), blended, grand_total, tuple(missing))


class Simulator:
    """One allocation model plus the immutable inputs of the current cycle.

    ``result()`` recomputes only when the model was mutated or a new cycle
    was loaded since the last call.
    """

    def __init__(self, catalog: Catalog, model: Optional[AllocationModel] = None):
        self.catalog = catalog
        self.model = model or AllocationModel(catalog)
        self.holdings = aggregate_holdings({}, catalog)
        self.quotes: Dict[str, YieldQuote] = {}
        self._cycle = 0
        self._cached: Optional[ProjectionResult] = None
        self._cached_key = None

    def load(self, snapshot: Snapshot, quotes: Mapping[str, YieldQuote], seed: bool = True):
        self.holdings = aggregate_holdings(snapshot, self.catalog)
        self.quotes = dict(quotes)
        self._cycle += 1
        logger.debug("cycle %d: grand total %.2f, %d quotes",
                     self._cycle, self.holdings.grand_total, len(self.quotes))
        if seed:
            self.reset()

    def reset(self):
        self.model.seed(self.holdings.baseline)

    def set_allocation(self, asset: str, strategy: str, fraction: float):
        self.model.set_allocation(asset, strategy, fraction)

    def set_boost(self, value: float):
        self.model.set_boost(value)

    def result(self) -> ProjectionResult:
        key = (self._cycle, self.model.revision)
        if self._cached is None or key != self._cached_key:
            self._cached = project(self.model.matrix, self.model.boost, self.holdings,
                                   self.quotes, self.catalog)
            self._cached_key = key
        return self._cached
