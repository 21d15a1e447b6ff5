import streamlit as st
import plotly.express as px
from apy_model.catalog import load_catalog
from apy_model.config import DEFAULT_BOOST, SAMPLE_HOLDINGS, STATIC_QUOTES
from apy_model.engine import Simulator
from apy_model.errors import FetchError
from apy_model.fetch import fetch_cycle_inputs
from apy_model.quotes import merge_quotes, normalize_static

st.set_page_config(page_title="OUSD APY Simulator", layout="wide")

st.title("OUSD Strategy Allocation Simulator")

catalog = load_catalog()

# --- Sidebar controls ---
st.sidebar.header("Settings")
offline = st.sidebar.checkbox("Offline (sample holdings, hardcoded APYs)", False)
static_fallback = st.sidebar.checkbox("Fill missing APYs from hardcoded table", False)
boost = st.sidebar.slider("Yield boost multiplier", 0.0, 3.0, float(DEFAULT_BOOST), step=0.05)

st.sidebar.write("—")
if st.sidebar.button("Refresh data"):
    st.session_state.pop("cycle", None)
    st.rerun()


def _clear_edits():
    for k in [k for k in st.session_state if str(k).startswith("alloc_")]:
        del st.session_state[k]


if st.sidebar.button("Reset to live allocation"):
    _clear_edits()


# --- Load one projection cycle ---
def _load_cycle():
    static = normalize_static(STATIC_QUOTES, catalog.quote_keys)
    if offline:
        return SAMPLE_HOLDINGS, static, None
    inputs = fetch_cycle_inputs(catalog, st.secrets)
    quotes = merge_quotes(static, inputs.quotes) if static_fallback else inputs.quotes
    return inputs.snapshot, quotes, inputs.supply


cycle_key = (offline, static_fallback)
if st.session_state.get("cycle_key") != cycle_key or "cycle" not in st.session_state:
    try:
        st.session_state["cycle"] = _load_cycle()
    except FetchError as e:
        st.error(f"Could not load reserve holdings: {e}. Try offline mode.")
        st.stop()
    st.session_state["cycle_key"] = cycle_key
    _clear_edits()

snapshot, quotes, supply = st.session_state["cycle"]
sim = Simulator(catalog)
sim.load(snapshot, quotes)

# --- Holdings ---
hold = sim.holdings
c1, c2 = st.columns(2)
c1.metric("Reserve value (sum of strategies)", f"${hold.grand_total:,.0f}")
if supply is not None:
    c2.metric("OUSD supply", f"{supply:,.0f}")

# --- Allocation editors, one column per asset ---
st.subheader("Allocations (% of each stablecoin)")
cols = st.columns(len(catalog.assets))
for col, asset in zip(cols, catalog.assets):
    with col:
        st.markdown(f"**{asset}**: ${hold.per_asset_total[asset]:,.0f}")
        for strategy in catalog.strategies_for(asset):
            key = f"{asset}:{strategy}"
            live = hold.baseline[asset].get(strategy, 0.0)
            pct = st.number_input(
                catalog.display_name(strategy),
                min_value=0.0, max_value=100.0, step=1.0,
                value=live * 100.0,
                key=f"alloc_{key}",
            )
            if abs(pct - live * 100.0) > 1e-9:
                sim.set_allocation(asset, strategy, pct / 100.0)
        total = sim.model.row_sum(asset)
        if hold.per_asset_total[asset] and abs(total - 1.0) > 1e-6:
            st.caption(f"⚠ {asset} allocations sum to {total:.1%}")

sim.set_boost(boost)
result = sim.result()

# --- Headline ---
st.metric("Projected OUSD APY", f"{result.blended_apy:.2%}")
if result.missing:
    st.warning("APY data unavailable for: " + ", ".join(e.label for e in result.missing))

# --- Row table ---
df = result.to_dataframe()
st.dataframe(
    df,
    use_container_width=True,
    column_config={
        "Alloc_%": st.column_config.NumberColumn("Alloc %", format="%.2f%%"),
        "Alloc_$": st.column_config.NumberColumn("Allocated", format="$%.0f"),
        "Base_%": st.column_config.NumberColumn("Base APY", format="%.2f%%"),
        "Reward_%": st.column_config.NumberColumn("Reward APY", format="%.2f%%"),
        "Strategy_%": st.column_config.NumberColumn("Strategy APY", format="%.2f%%"),
        "Boosted_%": st.column_config.NumberColumn("Boosted APY", format="%.2f%%"),
        "Weighted_%": st.column_config.NumberColumn("Contribution", format="%.3f%%"),
    }
)

if not df.empty:
    chart = df.assign(Row=df["Strategy"] + " " + df["Assets"])
    fig = px.bar(chart, x="Row", y="Weighted_%", color="Strategy",
                 labels={"Weighted_%": "Contribution to APY (%)", "Row": ""})
    st.plotly_chart(fig, use_container_width=True)

# --- Downloads ---
st.subheader("Download")
st.download_button(
    "Download projection (CSV)",
    df.to_csv(index=False),
    file_name="ousd_apy_projection.csv",
    mime="text/csv"
)
st.download_button(
    "Download holdings (CSV)",
    hold.to_dataframe().to_csv(index=False),
    file_name="ousd_holdings.csv",
    mime="text/csv"
)
