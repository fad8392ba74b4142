"""Runtime Sensitivity Page."""

import numpy as np
import plotly.graph_objects as go
import streamlit as st

from opaltools.core.errors import EstimationError
from opaltools.core.inputs import RuntimeInputs
from opaltools.experiment.analysis import find_minimum_mde, runtime_sweep
from opaltools.tools.runtime_tool import describe_error
from opaltools.tools.server_config import ServerConfig

st.set_page_config(page_title="Sensitivity - Planner", page_icon="📈", layout="wide")

st.title("📈 Runtime Sensitivity")

st.info("""
**What this does**: See how changing one input affects how long a test runs.

**Use it for**:
- Choosing a realistic MDE for your traffic
- Seeing what an extra variation costs in days
- Finding the smallest effect you can detect before a deadline
""")

config = st.session_state.get("server_config", ServerConfig())

mode = st.radio(
    "Analysis Type",
    ["Runtime Sweep", "Smallest Detectable Effect"],
    help="Sweep: test a range of values. Smallest effect: find the MDE that fits a deadline.",
)

st.divider()

if "runtime_sweep" not in st.session_state:
    st.session_state.runtime_sweep = None
if "minimum_mde_result" not in st.session_state:
    st.session_state.minimum_mde_result = None

st.subheader("Base Parameters")
base_cols = st.columns(5)
with base_cols[0]:
    bcr = st.number_input("BCR", min_value=0.0001, max_value=0.9999, value=0.05, step=0.001, format="%.4f")
with base_cols[1]:
    mde = st.number_input("MDE", min_value=0.001, max_value=5.0, value=0.10, step=0.01, format="%.3f")
with base_cols[2]:
    sig_level = st.number_input("Significance (%)", min_value=50.0, max_value=99.9, value=95.0, step=0.5)
with base_cols[3]:
    num_variations = st.number_input("Variations", min_value=2, value=2, step=1)
with base_cols[4]:
    daily_visitors = st.number_input("Daily Visitors", min_value=1, value=5000, step=100)

base_inputs = RuntimeInputs(bcr, mde, sig_level, int(num_variations), daily_visitors)

# ===== RUNTIME SWEEP =====
if mode == "Runtime Sweep":
    st.header("Parameter Sweep")

    param_options = {
        'mde': 'Minimum Detectable Effect',
        'daily_visitors': 'Daily Visitors',
        'sig_level': 'Significance Level',
        'num_variations': 'Number of Variations',
        'bcr': 'Baseline Conversion Rate',
    }

    param = st.selectbox(
        "Parameter",
        options=list(param_options.keys()),
        format_func=lambda x: param_options[x],
    )

    defaults = {
        'mde': (0.02, 0.30),
        'daily_visitors': (500.0, 20000.0),
        'sig_level': (80.0, 99.0),
        'num_variations': (2.0, 6.0),
        'bcr': (0.01, 0.30),
    }
    col1, col2, col3 = st.columns(3)
    with col1:
        min_val = st.number_input("Minimum", value=defaults[param][0], key=f"min_{param}")
    with col2:
        max_val = st.number_input("Maximum", value=defaults[param][1], key=f"max_{param}")
    with col3:
        steps = st.number_input("Steps", value=10, min_value=3, max_value=50)

    if st.button("🔬 Run Sweep", type="primary", use_container_width=True):
        values = list(np.linspace(min_val, max_val, int(steps)))
        if param == 'num_variations':
            values = sorted({int(round(v)) for v in values})
        st.session_state.runtime_sweep = runtime_sweep(
            base_inputs, param, values, max_days=config.max_duration_days
        )

    if st.session_state.runtime_sweep is not None:
        result = st.session_state.runtime_sweep
        df = result.to_dataframe()
        feasible = result.feasible()

        fig = go.Figure()
        fig.add_trace(go.Scatter(
            x=feasible['value'],
            y=feasible['days'],
            mode='lines+markers',
            name='Estimated days',
            line=dict(color='#636efa'),
        ))
        fig.add_hline(
            y=config.max_duration_days,
            line_dash="dash",
            line_color="gray",
            annotation_text="Duration limit",
        )
        label = param_options.get(result.parameter, result.parameter)
        fig.update_layout(
            title=f"Effect of {label} on Runtime",
            xaxis_title=label,
            yaxis_title="Days",
        )
        st.plotly_chart(fig, use_container_width=True)

        failed = df[df['error'].notna()]
        if len(failed):
            st.warning(
                f"{len(failed)} of {len(df)} values could not be estimated: "
                + ", ".join(sorted(set(failed['error'])))
            )

        with st.expander("View Data"):
            st.dataframe(df, use_container_width=True)

# ===== SMALLEST DETECTABLE EFFECT =====
else:
    st.header("Smallest Detectable Effect")

    st.markdown("""
    **Example questions this answers**:
    - "With 5,000 visitors a day, what lift can we detect in two weeks?"
    - "Is a 3% lift realistic before the end of the quarter?"
    """)

    target_days = st.number_input(
        "Deadline (days)", min_value=1, max_value=config.max_duration_days, value=14
    )
    col1, col2 = st.columns(2)
    with col1:
        search_min = st.number_input("Search Min MDE", value=0.001, min_value=0.0001, format="%.4f")
    with col2:
        search_max = st.number_input("Search Max MDE", value=1.0, min_value=0.001, format="%.3f")

    if st.button("🔍 Find Smallest Effect", type="primary", use_container_width=True):
        try:
            st.session_state.minimum_mde_result = find_minimum_mde(
                base_inputs,
                int(target_days),
                search_range=(search_min, search_max),
            )
        except EstimationError as e:
            st.session_state.minimum_mde_result = None
            st.error(describe_error(e))
        except ValueError as e:
            st.session_state.minimum_mde_result = None
            st.error(str(e))

    if st.session_state.minimum_mde_result is not None:
        result = st.session_state.minimum_mde_result
        if result.found:
            st.success(result.summary())
        else:
            st.warning(result.summary())

        if result.search_history:
            with st.expander("Search History"):
                st.dataframe(result.search_history, use_container_width=True)
