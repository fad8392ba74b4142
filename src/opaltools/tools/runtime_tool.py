"""calculate_experiment_runtime tool.

Maps a request body onto the runtime estimator and every estimator error
onto a user-facing message that tells the caller how to fix the input.
"""

import logging
from typing import Any, Dict, Mapping, Optional

from opaltools.core.errors import EstimationError, EstimationErrorKind
from opaltools.core.inputs import RuntimeInputs
from opaltools.core.runtime import estimate_runtime_days
from opaltools.tools.registry import (
    ParameterType,
    ToolDefinition,
    ToolError,
    ToolParameter,
    ToolRegistry,
)
from opaltools.tools.server_config import ServerConfig

logger = logging.getLogger(__name__)

TOOL_NAME = "calculate_experiment_runtime"

RUNTIME_PARAMETERS = [
    ToolParameter(
        "BCR",
        ParameterType.NUMBER,
        "The conversion rate of the control group (e.g., 0.1 for 10%)",
    ),
    ToolParameter(
        "MDE",
        ParameterType.NUMBER,
        "The relative lift you want to detect (e.g., 0.05 for 5%)",
    ),
    ToolParameter(
        "sigLevel",
        ParameterType.NUMBER,
        "The desired statistical significance (e.g., 95 for 95%)",
    ),
    ToolParameter(
        "numVariations",
        ParameterType.NUMBER,
        "The total number of variations, including control",
    ),
    ToolParameter(
        "dailyVisitors",
        ParameterType.NUMBER,
        "The number of visitors per day participating in the experiment",
    ),
]

# Error kind -> (heading, guidance appended after the estimator message)
ERROR_GUIDANCE: Dict[EstimationErrorKind, tuple] = {
    EstimationErrorKind.INVALID_BCR: (
        "Invalid Baseline Conversion Rate",
        "The BCR is your current conversion rate as a decimal (e.g., 0.05 for 5%), "
        "not a percentage. Please check your analytics data and provide the "
        "correct conversion rate.",
    ),
    EstimationErrorKind.INVALID_MDE: (
        "Invalid Minimum Detectable Effect",
        "The MDE is the relative improvement you want to detect as a positive "
        "decimal (e.g., 0.10 for a 10% improvement). Consider what meaningful "
        "business impact you want to measure.",
    ),
    EstimationErrorKind.INVALID_SIGNIFICANCE_LEVEL: (
        "Invalid Statistical Significance Level",
        "This is how confident you want to be in your results, as a percentage "
        "such as 90, 95, or 99 (not 0.95). Higher values require longer tests.",
    ),
    EstimationErrorKind.INVALID_NUM_VARIATIONS: (
        "Invalid Number of Variations",
        "Count the control plus every variation: use 2 for a simple A/B test, "
        "3 for A/B/C testing, and so on.",
    ),
    EstimationErrorKind.INVALID_DAILY_VISITORS: (
        "Invalid Daily Visitors",
        "This should be the number of visitors per day who will see your "
        "experiment. Check your website analytics for accurate traffic numbers.",
    ),
    EstimationErrorKind.MDE_TOO_LARGE: (
        "Minimum Detectable Effect is too large",
        "Applied below the baseline, your MDE would give a negative conversion "
        "rate. Try reducing the MDE to a more realistic value, or verify your "
        "BCR is correct.",
    ),
    EstimationErrorKind.ZERO_EFFECT_SIZE: (
        "Minimum Detectable Effect is too small",
        "BCR multiplied by MDE must give a nonzero change in conversion rate. "
        "Use a larger MDE.",
    ),
    EstimationErrorKind.CALCULATION_OVERFLOW: (
        "Runtime calculation failed",
        "This parameter combination cannot be evaluated. Check for extreme "
        "values, such as a very high BCR combined with a large MDE.",
    ),
    EstimationErrorKind.DURATION_TOO_LONG: (
        "Experiment duration too long",
        "To reduce the duration, you can: 1) Increase the MDE (detect larger "
        "effects), 2) Lower the significance level (accept more uncertainty), "
        "or 3) Get more daily traffic to the test.",
    ),
}


def describe_error(error: EstimationError) -> str:
    """User-facing message for an estimation error."""
    heading, guidance = ERROR_GUIDANCE[error.kind]
    return f"{heading}: {error.message} {guidance}"


def calculate_experiment_runtime(
    params: Mapping[str, Any],
    config: Optional[ServerConfig] = None,
) -> Dict[str, Optional[int]]:
    """Estimate experiment runtime from a tool request body.

    Args:
        params: Request body with BCR, MDE, sigLevel, numVariations and
            dailyVisitors. None are defaulted.
        config: Server settings. Uses defaults if None.

    Returns:
        {"days": <int>}, or {"days": None} for a failed estimate when
        config.mask_failures is set.

    Raises:
        ToolError: Status 400 with a descriptive message when the estimate
            fails (unless failures are masked).
    """
    config = config or ServerConfig()
    inputs = RuntimeInputs.from_params(params)

    try:
        days = estimate_runtime_days(*inputs.as_tuple(), max_days=config.max_duration_days)
    except EstimationError as e:
        if config.mask_failures:
            logger.warning(f"Masked runtime estimate failure [{e.code}]: {e.message}")
            return {"days": None}
        raise ToolError(describe_error(e), status_code=400, code=e.code) from e

    logger.info(f"Estimated {days} days for {inputs.describe()}")
    return {"days": days}


def runtime_tool_definition(config: Optional[ServerConfig] = None) -> ToolDefinition:
    """ToolDefinition for calculate_experiment_runtime bound to config."""
    config = config or ServerConfig()

    def handler(params: dict) -> dict:
        return calculate_experiment_runtime(params, config)

    return ToolDefinition(
        name=TOOL_NAME,
        description="Calculates the estimated time to run an experiment.",
        parameters=list(RUNTIME_PARAMETERS),
        handler=handler,
    )


def build_default_registry(config: Optional[ServerConfig] = None) -> ToolRegistry:
    """Registry with every tool this package provides."""
    config = config or ServerConfig()
    registry = ToolRegistry(service_name=config.service_name)
    registry.register(runtime_tool_definition(config))
    return registry
