import copy
import logging
from typing import Dict, Mapping

from apy_model.catalog import Catalog
from apy_model.config import DEFAULT_BOOST
from apy_model.errors import InvalidArgument

logger = logging.getLogger(__name__)

Matrix = Dict[str, Dict[str, float]]


class AllocationModel:
    """User-editable allocation matrix (asset -> strategy -> fraction) and boost.

    Values are stored as given. Fractions are not clamped and rows are not
    required to sum to 1; only catalog membership is checked. Every mutation
    bumps ``revision`` so holders of a cached projection know it is stale.
    """

    def __init__(self, catalog: Catalog, boost: float = DEFAULT_BOOST):
        self.catalog = catalog
        self.boost = float(boost)
        self.matrix: Matrix = {
            a: {s: 0.0 for s in catalog.strategies_for(a)} for a in catalog.assets
        }
        self.revision = 0

    def _check(self, asset: str, strategy: str):
        if asset not in self.catalog.assets:
            raise InvalidArgument(f"unknown asset {asset!r}")
        if strategy not in self.catalog.strategies:
            raise InvalidArgument(f"unknown strategy {strategy!r}")

    def _touch(self):
        self.revision += 1

    def allocation(self, asset: str, strategy: str) -> float:
        self._check(asset, strategy)
        return self.matrix.get(asset, {}).get(strategy, 0.0)

    def set_allocation(self, asset: str, strategy: str, fraction: float):
        self._check(asset, strategy)
        self.matrix.setdefault(asset, {})[strategy] = float(fraction)
        logger.debug("allocation[%s][%s] = %s", asset, strategy, fraction)
        self._touch()

    def set_boost(self, value: float):
        self.boost = float(value)
        logger.debug("boost = %s", value)
        self._touch()

    def seed(self, baseline: Mapping[str, Mapping[str, float]]):
        """Replace the whole matrix, typically with baseline fractions from live holdings."""
        fresh: Matrix = {a: {} for a in self.catalog.assets}
        for asset, row in (baseline or {}).items():
            for strategy, fraction in (row or {}).items():
                self._check(asset, strategy)
                fresh[asset][strategy] = float(fraction)
        self.matrix = fresh
        self._touch()

    def snapshot(self) -> Matrix:
        return copy.deepcopy(self.matrix)

    def row_sum(self, asset: str) -> float:
        """Sum of fractions for one asset; 1.0 when the allocation fully reconciles."""
        if asset not in self.catalog.assets:
            raise InvalidArgument(f"unknown asset {asset!r}")
        return sum(self.matrix.get(asset, {}).values())
