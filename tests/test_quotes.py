"""Venue quote normalization."""
import math

import pytest

from apy_model.quotes import (BPS, PERCENT, RAY, YieldQuote, merge_quotes, normalize_aave,
                              normalize_compound, normalize_convex, normalize_defillama,
                              normalize_static, to_rate)


class TestToRate:
    def test_percent_string(self):
        """Percent string "5.00" becomes 0.05."""
        assert to_rate("5.00", PERCENT) == pytest.approx(0.05)

    def test_basis_points(self):
        """Basis points divide by 10 000."""
        assert to_rate(250, BPS) == pytest.approx(0.025)

    def test_ray(self):
        """Ray integers divide by 1e27."""
        assert to_rate("31000000000000000000000000", RAY) == pytest.approx(0.031)

    @pytest.mark.parametrize("value", [None, ""])
    def test_absent_is_zero(self, value):
        """Missing values are zero."""
        assert to_rate(value, PERCENT) == 0.0

    @pytest.mark.parametrize("value", ["abc", {"x": 1}, float("nan"), float("inf")])
    def test_garbage_is_zero(self, value):
        """Unparseable and non-finite values are zero."""
        assert to_rate(value) == 0.0

    def test_negative_clamped(self):
        """Negative rates clamp to zero."""
        assert to_rate(-1.5, PERCENT) == 0.0


class TestCompound:
    def test_mixed_scales(self):
        """Fractional supply rate and percent COMP APY."""
        raw = {"cToken": [
            {"underlying_symbol": "DAI", "supply_rate": {"value": "0.0213"}, "comp_supply_apy": {"value": "1.10"}},
            {"underlying_symbol": "USDC", "supply_rate": {"value": "0.0250"}},
        ]}
        out = normalize_compound(raw, {"compound-DAI", "compound-USDC"})
        assert out["compound-DAI"].base == pytest.approx(0.0213)
        assert out["compound-DAI"].reward == pytest.approx(0.011)
        assert out["compound-USDC"] == YieldQuote(0.025, 0.0)

    def test_unknown_symbols_dropped(self):
        """Symbols outside the catalog are dropped."""
        raw = {"cToken": [{"underlying_symbol": "WBTC", "supply_rate": {"value": "0.001"}}]}
        assert normalize_compound(raw, {"compound-DAI"}) == {}

    def test_empty_response(self):
        """No payload gives no quotes."""
        assert normalize_compound(None) == {}


class TestAave:
    def test_ray_and_incentives(self):
        """Ray liquidity rate plus fractional incentives."""
        raw = {"reserves": [
            {"symbol": "usdt", "liquidityRate": "36000000000000000000000000", "aIncentivesAPY": "0.0045"},
            {"symbol": "GUSD", "liquidityRate": "1"},
        ]}
        out = normalize_aave(raw, {"aave-USDT"})
        assert list(out) == ["aave-USDT"]
        assert out["aave-USDT"].base == pytest.approx(0.036)
        assert out["aave-USDT"].reward == pytest.approx(0.0045)


class TestConvex:
    def test_rewards_add_up(self):
        """CRV and extra rewards sum into the reward rate."""
        raw = {"apys": {
            "3pool": {"baseApy": 0.65, "crvApy": 3.5, "additionalRewards": [{"apy": 0.5}, {"apy": 0.2}]},
            "frax": {"baseApy": 1.0, "crvApy": 2.0},
        }}
        out = normalize_convex(raw, None, {"3pool": "convex-3pool"})
        assert list(out) == ["convex-3pool"]
        assert out["convex-3pool"].base == pytest.approx(0.0065)
        assert out["convex-3pool"].reward == pytest.approx(0.042)


class TestDefiLlama:
    def test_latest_point_wins(self):
        """Last chart point is the live quote."""
        charts = {
            "aave-DAI": {"data": [{"apyBase": 1.0, "apyReward": None}, {"apyBase": 2.5, "apyReward": 0.3}]},
            "aave-USDC": {"data": []},
        }
        out = normalize_defillama(charts, {"aave-DAI", "aave-USDC"})
        assert list(out) == ["aave-DAI"]
        assert out["aave-DAI"].base == pytest.approx(0.025)
        assert out["aave-DAI"].reward == pytest.approx(0.003)


class TestStatic:
    def test_all_catalog_keys_present(self, catalog, quotes):
        """Static table covers every catalog key."""
        assert set(quotes) == set(catalog.quote_keys)
        assert quotes["convex-3pool"].total == pytest.approx(0.0485)

    def test_merge_later_overrides(self):
        """Later mappings win on shared keys."""
        a = normalize_static({"k": {"base": "1"}, "j": {"base": "2"}})
        b = {"k": YieldQuote(0.5, 0.0)}
        merged = merge_quotes(a, b)
        assert merged["k"].base == 0.5
        assert math.isclose(merged["j"].base, 0.02)


class TestMalformedPayloads:
    def test_compound_scalar_rate(self):
        """A scalar where an object is expected reads as a missing rate."""
        raw = {"cToken": [{"underlying_symbol": "DAI", "supply_rate": "0.02"}, None, "junk"]}
        assert normalize_compound(raw, {"compound-DAI"}) == {"compound-DAI": YieldQuote(0.0, 0.0)}

    @pytest.mark.parametrize("raw", [[{"underlying_symbol": "DAI"}], "oops", {"cToken": {"DAI": 1}}])
    def test_compound_wrong_container(self, raw):
        """Lists, strings or dicts in the wrong place give no quotes."""
        assert normalize_compound(raw) == {}

    @pytest.mark.parametrize("raw", [[{"symbol": "DAI"}], {"reserves": [None, 3, "DAI"]}, {"reserves": "DAI"}])
    def test_aave_wrong_shapes(self, raw):
        """Top-level lists and non-dict reserves are skipped."""
        assert normalize_aave(raw, {"aave-DAI"}) == {}

    def test_convex_bad_pool_and_rewards(self):
        """A non-dict pool is skipped and non-dict extra rewards add nothing."""
        raw = {"apys": {
            "3pool": {"baseApy": 1.0, "crvApy": 2.0, "additionalRewards": [None, 0.5, {"apy": 1.0}]},
            "other": "x",
        }}
        out = normalize_convex(raw, None, {"3pool": "convex-3pool", "other": "convex-other"})
        assert list(out) == ["convex-3pool"]
        assert out["convex-3pool"].reward == pytest.approx(0.03)
        assert normalize_convex(["3pool"], None, {"3pool": "convex-3pool"}) == {}

    def test_defillama_bad_series(self):
        """Non-dict points are ignored; a series with none left gives no quote."""
        charts = {
            "aave-DAI": {"data": [{"apyBase": 2.0}, None]},
            "aave-USDC": {"data": ["x"]},
            "aave-USDT": ["not a chart"],
        }
        out = normalize_defillama(charts)
        assert list(out) == ["aave-DAI"]
        assert out["aave-DAI"].base == pytest.approx(0.02)

    def test_static_non_dict_row(self):
        """A static row that is not a dict gives a zero quote."""
        assert normalize_static({"k": "2.0"}) == {"k": YieldQuote(0.0, 0.0)}
