"""
Opal Experiment Tools - experiment planning tools for the Opal orchestration layer.

Estimates how long an A/B(/n) experiment must run to reach statistical
significance, with planning analysis and a Streamlit front end.
"""

__version__ = "0.1.0"

from opaltools.core.runtime import estimate_runtime, estimate_runtime_days
from opaltools.core.errors import EstimationError

__all__ = ["estimate_runtime", "estimate_runtime_days", "EstimationError", "__version__"]
