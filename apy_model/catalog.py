from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from apy_model.config import ASSETS, STRATEGY_CATALOG


@dataclass(frozen=True)
class CatalogEntry:
    strategy: str
    name: str
    assets: Tuple[str, ...]
    quote_key: str
    holdings_key: Optional[str] = None
    venue: Optional[str] = None

    @property
    def is_basket(self) -> bool:
        return len(self.assets) > 1

    @property
    def label(self) -> str:
        return f"{self.name} ({'/'.join(self.assets)})"


class Catalog:
    """Fixed, ordered table of strategy entries.

    Entry order is the row order of every projection. A strategy id may appear
    in several entries (one per asset) or once with a basket scope.
    """

    def __init__(self, entries: List[CatalogEntry], assets: Optional[List[str]] = None):
        self.entries: Tuple[CatalogEntry, ...] = tuple(entries)
        seen_assets = list(assets or [])
        strategies: List[str] = []
        names: Dict[str, str] = {}
        for e in self.entries:
            for a in e.assets:
                if a not in seen_assets:
                    seen_assets.append(a)
            if e.strategy not in strategies:
                strategies.append(e.strategy)
                names[e.strategy] = e.name
        self.assets: Tuple[str, ...] = tuple(seen_assets)
        self.strategies: Tuple[str, ...] = tuple(strategies)
        self._names = names

    def __len__(self):
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def display_name(self, strategy: str) -> str:
        return self._names.get(strategy, strategy)

    def holds(self, strategy: str, asset: str) -> bool:
        return any(e.strategy == strategy and asset in e.assets for e in self.entries)

    def strategies_for(self, asset: str) -> List[str]:
        return [s for s in self.strategies if self.holds(s, asset)]

    def entries_for(self, strategy: str) -> List[CatalogEntry]:
        return [e for e in self.entries if e.strategy == strategy]

    @property
    def quote_keys(self) -> Tuple[str, ...]:
        keys: List[str] = []
        for e in self.entries:
            if e.quote_key not in keys:
                keys.append(e.quote_key)
        return tuple(keys)

    def holdings_keys(self) -> Dict[str, str]:
        """Upstream holdings source key -> strategy id."""
        return {e.holdings_key: e.strategy for e in self.entries if e.holdings_key}


def load_catalog(rows=None, assets=None) -> Catalog:
    rows = STRATEGY_CATALOG if rows is None else rows
    assets = ASSETS if assets is None else assets
    entries = []
    for row in rows:
        scope = tuple(row.get("assets") or ())
        if not scope:
            raise ValueError(f"catalog row for {row.get('strategy')!r} has no assets")
        entries.append(CatalogEntry(
            strategy=row["strategy"],
            name=row.get("name", row["strategy"]),
            assets=scope,
            quote_key=row["quote_key"],
            holdings_key=row.get("holdings_key"),
            venue=row.get("venue"),
        ))
    return Catalog(entries, assets)
