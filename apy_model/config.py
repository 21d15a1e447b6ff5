ASSETS = ["DAI", "USDC", "USDT"]

STRATEGY_CATALOG = [
    {"strategy": "compound", "name": "Compound",      "assets": ["DAI"],                 "quote_key": "compound-DAI",  "holdings_key": "compstrat",   "venue": "compound"},
    {"strategy": "compound", "name": "Compound",      "assets": ["USDC"],                "quote_key": "compound-USDC", "holdings_key": "compstrat",   "venue": "compound"},
    {"strategy": "compound", "name": "Compound",      "assets": ["USDT"],                "quote_key": "compound-USDT", "holdings_key": "compstrat",   "venue": "compound"},
    {"strategy": "aave",     "name": "Aave",          "assets": ["DAI"],                 "quote_key": "aave-DAI",      "holdings_key": "aavestrat",   "venue": "aave"},
    {"strategy": "aave",     "name": "Aave",          "assets": ["USDC"],                "quote_key": "aave-USDC",     "holdings_key": "aavestrat",   "venue": "aave"},
    {"strategy": "aave",     "name": "Aave",          "assets": ["USDT"],                "quote_key": "aave-USDT",     "holdings_key": "aavestrat",   "venue": "aave"},
    {"strategy": "convex",   "name": "Convex 3pool",  "assets": ["DAI", "USDC", "USDT"], "quote_key": "convex-3pool",  "holdings_key": "convexstrat", "venue": "convex"},
]

# Convex pool name -> quote key
CONVEX_POOLS = {"3pool": "convex-3pool"}

DEFAULT_BOOST = 1.0

ENDPOINTS = {
    "OUSD_ANALYTICS_BASE": "https://analytics.ousd.com/api/v1",
    "OUSD_API_BASE":       "https://api.originprotocol.com",
    "COMPOUND_API":        "https://api.compound.finance/api/v2/ctoken",
    "AAVE_API":            "https://aave-api-v2.aave.com/data/markets-data",
    "CONVEX_API":          "https://www.convexfinance.com/api/curve-apys",
    "DEFILLAMA_BASE":      "https://yields.llama.fi",
}
FETCH_TIMEOUT = 20

# Hardcoded venue APYs in percent, used offline or to fill gaps.
STATIC_QUOTES = {
    "compound-DAI":  {"base": "2.10", "reward": "0.85"},
    "compound-USDC": {"base": "2.45", "reward": "0.90"},
    "compound-USDT": {"base": "2.70", "reward": "1.05"},
    "aave-DAI":      {"base": "2.95", "reward": "0.40"},
    "aave-USDC":     {"base": "3.10", "reward": "0.35"},
    "aave-USDT":     {"base": "3.60", "reward": "0.45"},
    "convex-3pool":  {"base": "0.65", "reward": "4.20"},
}

SAMPLE_HOLDINGS = {
    "compound": {"DAI": 4_200_000, "USDC": 6_100_000, "USDT": 1_900_000},
    "aave":     {"DAI": 1_300_000, "USDC": 0,         "USDT": 2_400_000},
    "convex":   {"DAI": 9_800_000, "USDC": 12_500_000, "USDT": 8_700_000},
}
