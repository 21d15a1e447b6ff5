"""HTTP retrieval of holdings and venue quotes.

All fetches for one projection cycle run concurrently and must finish before
the cycle starts. A venue that fails simply contributes no quotes; missing
holdings abort the cycle with FetchError.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

import requests

from apy_model.catalog import Catalog
from apy_model.config import CONVEX_POOLS, ENDPOINTS, FETCH_TIMEOUT
from apy_model.errors import FetchError
from apy_model.holdings import holdings_from_response
from apy_model.quotes import (YieldQuote, merge_quotes, normalize_aave, normalize_compound,
                              normalize_convex, normalize_defillama)

logger = logging.getLogger(__name__)


@dataclass
class CycleInputs:
    snapshot: Dict[str, Dict[str, float]]
    quotes: Dict[str, YieldQuote]
    supply: Optional[float] = None


def _endpoint(secrets, name):
    return (secrets or {}).get(name) or ENDPOINTS[name]


def _timeout(secrets):
    try:
        return float((secrets or {}).get("FETCH_TIMEOUT") or FETCH_TIMEOUT)
    except (TypeError, ValueError):
        return FETCH_TIMEOUT


def fetch_json(url, secrets=None):
    """GET a JSON document. Returns None on transport errors or non-200 responses."""
    try:
        r = requests.get(url, timeout=_timeout(secrets))
    except requests.RequestException as e:
        logger.warning("GET %s failed: %s", url, e)
        return None
    if r.status_code != 200:
        logger.warning("GET %s returned %s", url, r.status_code)
        return None
    try:
        return r.json()
    except ValueError:
        logger.warning("GET %s returned invalid JSON", url)
        return None


def fetch_holdings(catalog: Catalog, secrets=None):
    data = fetch_json(f"{_endpoint(secrets, 'OUSD_ANALYTICS_BASE')}/strategies", secrets)
    if data is None:
        return None
    return holdings_from_response(data, catalog)


def fetch_supply(secrets=None) -> Optional[float]:
    data = fetch_json(f"{_endpoint(secrets, 'OUSD_API_BASE')}/total-ousd", secrets)
    try:
        return float(data) if data is not None else None
    except (TypeError, ValueError):
        logger.warning("Unexpected total-ousd payload %r", data)
        return None


def fetch_compound(catalog: Catalog, secrets=None):
    return normalize_compound(fetch_json(_endpoint(secrets, "COMPOUND_API"), secrets), catalog.quote_keys)


def fetch_aave(catalog: Catalog, secrets=None):
    return normalize_aave(fetch_json(_endpoint(secrets, "AAVE_API"), secrets), catalog.quote_keys)


def fetch_convex(catalog: Catalog, secrets=None):
    raw = fetch_json(_endpoint(secrets, "CONVEX_API"), secrets)
    return normalize_convex(raw, catalog.quote_keys, CONVEX_POOLS)


def fetch_defillama(charts: Mapping[str, str], catalog: Catalog, secrets=None):
    """charts: {quote_key: DefiLlama pool id}."""
    base = _endpoint(secrets, "DEFILLAMA_BASE")
    raw = {}
    for key, pool in (charts or {}).items():
        data = fetch_json(f"{base}/chart/{pool}", secrets)
        if data is not None:
            raw[key] = data
    return normalize_defillama(raw, catalog.quote_keys)


def _venue_quotes(fetcher, *args):
    """Run one venue fetcher; a payload it cannot read leaves that venue out."""
    try:
        return fetcher(*args)
    except (AttributeError, TypeError, ValueError, KeyError, IndexError) as e:
        logger.warning("Could not read %s response: %s", fetcher.__name__, e)
        return {}


def fetch_cycle_inputs(catalog: Catalog, secrets=None, llama_charts=None, snapshot=None) -> CycleInputs:
    """Fetch everything one cycle needs. A caller-supplied snapshot skips the holdings request."""
    with ThreadPoolExecutor(max_workers=6) as pool:
        holdings = pool.submit(fetch_holdings, catalog, secrets) if snapshot is None else None
        supply = pool.submit(fetch_supply, secrets)
        venues = [
            pool.submit(_venue_quotes, fetch_compound, catalog, secrets),
            pool.submit(_venue_quotes, fetch_aave, catalog, secrets),
            pool.submit(_venue_quotes, fetch_convex, catalog, secrets),
        ]
        if llama_charts:
            venues.append(pool.submit(_venue_quotes, fetch_defillama, llama_charts, catalog, secrets))
        if holdings is not None:
            snapshot = holdings.result()
        quotes = merge_quotes(*[f.result() for f in venues])
        total_supply = supply.result()
    if snapshot is None:
        raise FetchError("strategy holdings unavailable")
    logger.info("Fetched holdings for %d strategies and %d quotes", len(snapshot), len(quotes))
    return CycleInputs(snapshot, quotes, total_supply)
