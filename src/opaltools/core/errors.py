"""Error taxonomy for the runtime estimator.

Every condition that stops an estimate has its own exception class and
EstimationErrorKind code. All of them derive from EstimationError, which
carries the full input record so callers can render an actionable message.
"""

import math
from enum import Enum
from typing import Any, Dict, Optional

from opaltools.core.inputs import RuntimeInputs


class EstimationErrorKind(Enum):
    """Codes for every way a runtime estimate can fail."""
    INVALID_BCR = "INVALID_BCR"
    INVALID_MDE = "INVALID_MDE"
    INVALID_SIGNIFICANCE_LEVEL = "INVALID_SIGNIFICANCE_LEVEL"
    INVALID_NUM_VARIATIONS = "INVALID_NUM_VARIATIONS"
    INVALID_DAILY_VISITORS = "INVALID_DAILY_VISITORS"
    MDE_TOO_LARGE = "MDE_TOO_LARGE"
    ZERO_EFFECT_SIZE = "ZERO_EFFECT_SIZE"
    CALCULATION_OVERFLOW = "CALCULATION_OVERFLOW"
    DURATION_TOO_LONG = "DURATION_TOO_LONG"


class EstimationError(ValueError):
    """Base class for runtime estimation failures.

    Attributes:
        kind: EstimationErrorKind identifying the failure.
        message: Human-readable explanation, echoing the offending value.
        details: Short hint on what a valid value looks like.
        value: The offending value, if a single input is at fault.
        inputs: The full input record of the failed call.
    """

    kind: EstimationErrorKind

    def __init__(
        self,
        message: str,
        inputs: RuntimeInputs,
        value: Any = None,
        details: str = "",
    ):
        super().__init__(message)
        self.message = message
        self.inputs = inputs
        self.value = value
        self.details = details

    @property
    def code(self) -> str:
        """String code of the error kind."""
        return self.kind.value

    def to_dict(self) -> Dict[str, Any]:
        """Serializable representation for tool responses and logs."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "inputs": self.inputs.to_params(),
        }


class InvalidBCRError(EstimationError):
    kind = EstimationErrorKind.INVALID_BCR

    def __init__(self, inputs: RuntimeInputs):
        super().__init__(
            "Baseline Conversion Rate (BCR) must be a number between 0 and 1 "
            f"(exclusive). Received: {inputs.bcr}. For example, use 0.05 for a "
            "5% conversion rate.",
            inputs,
            value=inputs.bcr,
            details="BCR should be a decimal like 0.05 (5%) or 0.23 (23%), "
                    "not a percentage like 5 or 23",
        )


class InvalidMDEError(EstimationError):
    kind = EstimationErrorKind.INVALID_MDE

    def __init__(self, inputs: RuntimeInputs):
        super().__init__(
            "Minimum Detectable Effect (MDE) must be a positive number. "
            f"Received: {inputs.mde}. For example, use 0.05 to detect a 5% "
            "relative improvement.",
            inputs,
            value=inputs.mde,
            details="MDE should be a relative lift as a decimal, like 0.05 (5%) "
                    "or 0.10 (10%)",
        )


class InvalidSignificanceLevelError(EstimationError):
    kind = EstimationErrorKind.INVALID_SIGNIFICANCE_LEVEL

    def __init__(self, inputs: RuntimeInputs):
        super().__init__(
            "Significance Level must be a number between 0 and 100 (exclusive). "
            f"Received: {inputs.sig_level}. Common values are 90, 95, or 99.",
            inputs,
            value=inputs.sig_level,
            details="Use 95 for a 95% confidence level, not 0.95",
        )


class InvalidNumVariationsError(EstimationError):
    kind = EstimationErrorKind.INVALID_NUM_VARIATIONS

    def __init__(self, inputs: RuntimeInputs):
        super().__init__(
            "Number of Variations must be an integer of 2 or more. "
            f"Received: {inputs.num_variations}. This includes the control plus "
            "all test variations.",
            inputs,
            value=inputs.num_variations,
            details="Use 2 for an A/B test (control + 1 variation), 3 for A/B/C, etc.",
        )


class InvalidDailyVisitorsError(EstimationError):
    kind = EstimationErrorKind.INVALID_DAILY_VISITORS

    def __init__(self, inputs: RuntimeInputs):
        super().__init__(
            "Daily Visitors must be a positive number. "
            f"Received: {inputs.daily_visitors}. This should be the number of "
            "visitors per day that will be included in the experiment.",
            inputs,
            value=inputs.daily_visitors,
            details="Use the expected daily experiment traffic, like 1000 or 5000",
        )


class MDETooLargeError(EstimationError):
    kind = EstimationErrorKind.MDE_TOO_LARGE

    def __init__(self, inputs: RuntimeInputs, lower_rate: float):
        super().__init__(
            f"The Minimum Detectable Effect ({inputs.mde}) is too large relative "
            f"to the Baseline Conversion Rate ({inputs.bcr}). This would result "
            "in a negative conversion rate. Please use a smaller MDE or check "
            "your BCR value.",
            inputs,
            value=inputs.mde,
            details=f"MDE of {inputs.mde} on BCR of {inputs.bcr} would create a "
                    f"negative conversion rate of {lower_rate:.4f}",
        )
        self.lower_rate = lower_rate


class ZeroEffectSizeError(EstimationError):
    kind = EstimationErrorKind.ZERO_EFFECT_SIZE

    def __init__(self, inputs: RuntimeInputs):
        super().__init__(
            "The Minimum Detectable Effect produces no detectable difference "
            f"from the baseline (BCR={inputs.bcr}, MDE={inputs.mde}). Please "
            "specify a meaningful effect size to detect.",
            inputs,
            value=inputs.mde,
            details="BCR * MDE must be greater than 0 to calculate statistical power",
        )


class CalculationOverflowError(EstimationError):
    kind = EstimationErrorKind.CALCULATION_OVERFLOW

    def __init__(self, inputs: RuntimeInputs, sample_estimate: Optional[float] = None):
        super().__init__(
            "Statistical calculation resulted in an invalid sample size "
            f"({sample_estimate}). This is caused by extreme parameter values. "
            "Please check your inputs and try with more moderate values.",
            inputs,
            details=f"Parameters: {inputs.describe()}",
        )
        self.sample_estimate = sample_estimate


class DurationTooLongError(EstimationError):
    kind = EstimationErrorKind.DURATION_TOO_LONG

    def __init__(self, inputs: RuntimeInputs, days: float, max_days: int):
        shown = str(int(days)) if math.isfinite(days) else "an unbounded number of"
        super().__init__(
            f"Calculated experiment duration is {shown} days (limit {max_days}). "
            "The effect size is too small to detect with the given traffic. "
            "Consider increasing the MDE, lowering the significance level, or "
            "increasing daily visitors.",
            inputs,
            details=f"With {inputs.daily_visitors} daily visitors, detecting a "
                    f"{inputs.mde * 100:.1f}% relative change at {inputs.sig_level}% "
                    f"confidence would take {shown} days",
        )
        self.days = days
        self.max_days = max_days


ERROR_TYPES: Dict[EstimationErrorKind, type] = {
    cls.kind: cls
    for cls in (
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
}
