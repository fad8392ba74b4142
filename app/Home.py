"""Opal Experiment Tools - Home page."""

import streamlit as st

from opaltools.tools.server_config import configure_logging, load_default_config

st.set_page_config(
    page_title="Experiment Runtime Planner",
    page_icon="⏱️",
    layout="wide",
)

if "server_config" not in st.session_state:
    st.session_state.server_config = load_default_config()
    configure_logging(st.session_state.server_config.log_level)

st.title("⏱️ Experiment Runtime Planner")

st.markdown("""
## What does it do?

Estimates how many days an A/B(/n) test must run before it can reach
statistical significance, from five numbers you already know:

- **Baseline conversion rate (BCR)** - current conversion rate of the control, as a decimal
- **Minimum detectable effect (MDE)** - the relative lift you want to detect
- **Significance level** - how confident you need to be, e.g. 95
- **Number of variations** - control included
- **Daily visitors** - traffic entering the experiment each day

The same calculation backs the `calculate_experiment_runtime` tool that
Opal calls.

---

**Use the sidebar** to navigate:
1. **Runtime** - Estimate a single test and see the breakdown
2. **Sensitivity** - See how runtime changes with one input, and find the
   smallest effect you can detect within a deadline
""")

config = st.session_state.server_config
st.caption(
    f"Duration limit: {config.max_duration_days} days · "
    f"Failures masked: {'yes' if config.mask_failures else 'no'}"
)
