"""Shared fixtures: the live catalog and a small two-asset basket catalog."""
import pytest

from apy_model.catalog import load_catalog
from apy_model.config import SAMPLE_HOLDINGS, STATIC_QUOTES
from apy_model.quotes import YieldQuote, normalize_static


@pytest.fixture
def catalog():
    return load_catalog()


@pytest.fixture
def snapshot():
    return {s: dict(h) for s, h in SAMPLE_HOLDINGS.items()}


@pytest.fixture
def quotes(catalog):
    return normalize_static(STATIC_QUOTES, catalog.quote_keys)


@pytest.fixture
def basket_catalog():
    rows = [
        {"strategy": "s", "name": "Basket", "assets": ["A", "B"], "quote_key": "s-ab"},
        {"strategy": "t", "name": "Single", "assets": ["A"], "quote_key": "t-a"},
    ]
    return load_catalog(rows, ["A", "B"])


@pytest.fixture
def basket_snapshot():
    return {"s": {"A": 50, "B": 300}, "t": {"A": 50}}


@pytest.fixture
def basket_quotes():
    return {"s-ab": YieldQuote(0.04, 0.01), "t-a": YieldQuote(0.02, 0.0)}
