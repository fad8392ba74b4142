"""Runtime estimate page."""

import math

import streamlit as st

from opaltools.core.errors import EstimationError
from opaltools.core.runtime import estimate_runtime
from opaltools.experiment.analysis import fixed_horizon_sample_size
from opaltools.tools.runtime_tool import describe_error
from opaltools.tools.server_config import ServerConfig

st.set_page_config(page_title="Runtime - Planner", page_icon="⏱️", layout="wide")

st.title("⏱️ Experiment Runtime")

config = st.session_state.get("server_config", ServerConfig())

with st.sidebar:
    st.header("Test Parameters")

    bcr = st.number_input(
        "Baseline conversion rate (BCR)",
        min_value=0.0001, max_value=0.9999, value=0.05, step=0.001, format="%.4f",
        help="Conversion rate of the control as a decimal, e.g. 5% = 0.05",
    )
    mde = st.number_input(
        "Minimum detectable effect (relative)",
        min_value=0.001, max_value=5.0, value=0.10, step=0.01, format="%.3f",
        help="Relative lift to detect, e.g. 10% = 0.10",
    )
    sig_level = st.slider(
        "Significance level (%)",
        min_value=80.0, max_value=99.9, value=95.0, step=0.1,
    )
    num_variations = st.number_input(
        "Number of variations (including control)",
        min_value=2, value=2, step=1,
    )
    daily_visitors = st.number_input(
        "Daily visitors in the experiment",
        min_value=1, value=5000, step=100,
    )

try:
    estimate = estimate_runtime(
        bcr, mde, sig_level, int(num_variations), daily_visitors,
        max_days=config.max_duration_days,
    )
except EstimationError as e:
    st.session_state.last_estimate = None
    st.error(describe_error(e))
    with st.expander("Error details"):
        st.json(e.to_dict())
    st.stop()

st.session_state.last_estimate = estimate

col1, col2, col3 = st.columns(3)
with col1:
    st.metric("Estimated Duration", f"{estimate.days} days")
with col2:
    st.metric("Visitors per Variation", f"{estimate.per_variation_sample_size:,}")
with col3:
    st.metric("Total Visitors", f"{estimate.total_sample_size:,.0f}")

st.divider()

st.header("Breakdown")
breakdown_cols = st.columns(4)
with breakdown_cols[0]:
    st.metric("Absolute Effect", f"{estimate.absolute_mde:.4%}")
with breakdown_cols[1]:
    st.metric("Lower Alternative", f"{estimate.lower_rate:.4%}")
with breakdown_cols[2]:
    st.metric("Upper Alternative", f"{estimate.upper_rate:.4%}")
with breakdown_cols[3]:
    st.metric("Alpha", f"{estimate.alpha:.3f}")

st.markdown(f"""
The estimate checks the effect applied **below** and **above** the baseline
and keeps the larger requirement:

| Side | Pooled variance | Visitors per variation |
|---|---|---|
| Lower ({estimate.lower_rate:.2%}) | {estimate.variance_lower:.4f} | {estimate.sample_estimate_lower:,.0f} |
| Upper ({estimate.upper_rate:.2%}) | {estimate.variance_upper:.4f} | {estimate.sample_estimate_upper:,.0f} |
""")

st.divider()

st.header("Fixed-Horizon Comparison")
st.markdown(
    "A classical two-sided z-test, evaluated once at the end, needs the "
    "following sample at the chosen power."
)

power = st.slider("Power", min_value=0.5, max_value=0.99, value=0.8, step=0.01)
try:
    fixed_n = fixed_horizon_sample_size(bcr, mde, sig_level, power=power)
except (EstimationError, ValueError) as e:
    st.warning(f"Fixed-horizon estimate unavailable: {e}")
else:
    fixed_days = math.ceil(fixed_n * int(num_variations) / daily_visitors)
    fh_col1, fh_col2 = st.columns(2)
    with fh_col1:
        st.metric("Visitors per Variation (fixed)", f"{fixed_n:,}")
    with fh_col2:
        st.metric("Duration (fixed)", f"{fixed_days} days")
