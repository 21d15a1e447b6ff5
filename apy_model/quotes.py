"""Per-venue yield quote normalizers.

Every venue reports rates differently (percent strings, fractions, ray
integers). Each normalizer here reduces one raw response to
``{quote_key: YieldQuote}`` with annualized fractional rates.
"""
import logging
import math
from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional

logger = logging.getLogger(__name__)

FRACTION = 1.0
PERCENT = 100.0
BPS = 10_000.0
RAY = 1e27


@dataclass(frozen=True)
class YieldQuote:
    base: float = 0.0
    reward: float = 0.0

    @property
    def total(self) -> float:
        return self.base + self.reward


def to_rate(value, scale: float = FRACTION, field: str = "") -> float:
    """Convert a raw rate to an annualized fraction. Absent values are 0."""
    if value is None or value == "":
        return 0.0
    try:
        rate = float(value) / scale
    except (TypeError, ValueError):
        logger.warning("Unparseable rate %r for %s, using 0", value, field or "quote")
        return 0.0
    if not math.isfinite(rate):
        logger.warning("Non-finite rate %r for %s, using 0", value, field or "quote")
        return 0.0
    if rate < 0:
        logger.warning("Negative rate %r for %s, clamped to 0", value, field or "quote")
        return 0.0
    return rate


def _known(known: Optional[Iterable[str]]):
    return None if known is None else set(known)


def _dict(value) -> dict:
    return value if isinstance(value, dict) else {}


def _list(value) -> list:
    return value if isinstance(value, list) else []


def normalize_compound(raw, known=None) -> Dict[str, YieldQuote]:
    known = _known(known)
    out = {}
    for item in _list(_dict(raw).get("cToken")):
        if not isinstance(item, dict):
            continue
        symbol = str(item.get("underlying_symbol") or "").upper()
        key = f"compound-{symbol}"
        if known is not None and key not in known:
            continue
        base = to_rate(_dict(item.get("supply_rate")).get("value"), FRACTION, key)
        reward = to_rate(_dict(item.get("comp_supply_apy")).get("value"), PERCENT, key)
        out[key] = YieldQuote(base, reward)
    return out


def normalize_aave(raw, known=None) -> Dict[str, YieldQuote]:
    known = _known(known)
    out = {}
    for reserve in _list(_dict(raw).get("reserves")):
        if not isinstance(reserve, dict):
            continue
        key = f"aave-{str(reserve.get('symbol') or '').upper()}"
        if known is not None and key not in known:
            continue
        out[key] = YieldQuote(
            to_rate(reserve.get("liquidityRate"), RAY, key),
            to_rate(reserve.get("aIncentivesAPY"), FRACTION, key),
        )
    return out


def normalize_convex(raw, known=None, pools: Optional[Mapping[str, str]] = None) -> Dict[str, YieldQuote]:
    """Convex reports percentages; CRV and any extra reward tokens add up to the reward rate."""
    known = _known(known)
    pools = pools or {}
    out = {}
    for pool, obj in _dict(_dict(raw).get("apys")).items():
        key = pools.get(pool)
        if key is None or (known is not None and key not in known) or not isinstance(obj, dict):
            continue
        reward = to_rate(obj.get("crvApy"), PERCENT, key)
        for extra in _list(obj.get("additionalRewards")):
            reward += to_rate(_dict(extra).get("apy"), PERCENT, key)
        out[key] = YieldQuote(to_rate(obj.get("baseApy"), PERCENT, key), reward)
    return out


def normalize_defillama(charts: Mapping[str, dict], known=None) -> Dict[str, YieldQuote]:
    """charts: {quote_key: /chart/<pool> response}. The latest point is the live quote."""
    known = _known(known)
    out = {}
    for key, raw in _dict(charts).items():
        if known is not None and key not in known:
            continue
        series = [p for p in _list(_dict(raw).get("data")) if isinstance(p, dict)]
        if not series:
            continue
        last = series[-1]
        out[key] = YieldQuote(
            to_rate(last.get("apyBase"), PERCENT, key),
            to_rate(last.get("apyReward"), PERCENT, key),
        )
    return out


def normalize_static(table: Mapping[str, dict], known=None, scale: float = PERCENT) -> Dict[str, YieldQuote]:
    known = _known(known)
    out = {}
    for key, obj in _dict(table).items():
        if known is not None and key not in known:
            continue
        out[key] = YieldQuote(
            to_rate(_dict(obj).get("base"), scale, key),
            to_rate(_dict(obj).get("reward"), scale, key),
        )
    return out


def merge_quotes(*mappings) -> Dict[str, YieldQuote]:
    merged: Dict[str, YieldQuote] = {}
    for m in mappings:
        merged.update(m or {})
    return merged
