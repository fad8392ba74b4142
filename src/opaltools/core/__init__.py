"""Core layer: runtime estimator, its inputs and error taxonomy."""

from opaltools.core.inputs import RuntimeInputs
from opaltools.core.errors import (
    EstimationError,
    EstimationErrorKind,
    InvalidBCRError,
    InvalidMDEError,
    InvalidSignificanceLevelError,
    InvalidNumVariationsError,
    InvalidDailyVisitorsError,
    MDETooLargeError,
    ZeroEffectSizeError,
    CalculationOverflowError,
    DurationTooLongError,
)
from opaltools.core.runtime import (
    MAX_DURATION_DAYS,
    RuntimeEstimate,
    estimate_runtime,
    estimate_runtime_days,
    validate_inputs,
)

__all__ = [
    "RuntimeInputs",
    "EstimationError",
    "EstimationErrorKind",
    "InvalidBCRError",
    "InvalidMDEError",
    "InvalidSignificanceLevelError",
    "InvalidNumVariationsError",
    "InvalidDailyVisitorsError",
    "MDETooLargeError",
    "ZeroEffectSizeError",
    "CalculationOverflowError",
    "DurationTooLongError",
    "MAX_DURATION_DAYS",
    "RuntimeEstimate",
    "estimate_runtime",
    "estimate_runtime_days",
    "validate_inputs",
]
