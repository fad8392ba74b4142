"""Experiment runtime estimator.

Estimates how many days an A/B(/n) experiment on a conversion metric must
run before it can reach statistical significance.

Inputs:
    bcr: Baseline conversion rate as a decimal (0.23 means 23%).
    mde: Relative minimum detectable effect (0.06 means 6% relative to bcr).
    sig_level: Desired significance as a percentage (90, 95, 99...).
    num_variations: Number of variations, control included.
    daily_visitors: Visitors per day entering the experiment.

The per-variation sample size uses a log-based sequential test
approximation, evaluated for the effect applied both below and above the
baseline, keeping the larger of the two:

    n = 2 * (1 - alpha) * var * ln(1 + sqrt(var) / theta) / theta^2

where theta = bcr * mde and var is the pooled Bernoulli variance of the
baseline and the shifted rate.
"""

import logging
import math
import numbers
from dataclasses import dataclass
from typing import Any

import numpy as np

from opaltools.core.errors import (
    CalculationOverflowError,
    DurationTooLongError,
    InvalidBCRError,
    InvalidDailyVisitorsError,
    InvalidMDEError,
    InvalidNumVariationsError,
    InvalidSignificanceLevelError,
    MDETooLargeError,
    ZeroEffectSizeError,
)
from opaltools.core.inputs import RuntimeInputs

logger = logging.getLogger(__name__)

# Sanity ceiling: longer tests are reported as impractical
MAX_DURATION_DAYS = 365


@dataclass(frozen=True)
class RuntimeEstimate:
    """Runtime estimate with every intermediate of the calculation.

    Attributes:
        inputs: The validated inputs.
        days: Estimated days to reach significance.
        absolute_mde: bcr * mde, the effect as an absolute rate delta.
        lower_rate: Baseline shifted down by the effect (c2).
        upper_rate: Baseline shifted up by the effect (c3).
        alpha: 1 - sig_level / 100.
        variance_lower: Pooled variance for the downward alternative.
        variance_upper: Pooled variance for the upward alternative.
        sample_estimate_lower: Per-variation sample size, downward side.
        sample_estimate_upper: Per-variation sample size, upward side.
        sample_estimate: The larger of the two sides.
        total_sample_size: sample_estimate * num_variations.
    """
    inputs: RuntimeInputs
    days: int
    absolute_mde: float
    lower_rate: float
    upper_rate: float
    alpha: float
    variance_lower: float
    variance_upper: float
    sample_estimate_lower: float
    sample_estimate_upper: float
    sample_estimate: float
    total_sample_size: float

    @property
    def per_variation_sample_size(self) -> int:
        """Visitors needed in each variation, rounded up."""
        return int(math.ceil(self.sample_estimate))

    def to_dict(self) -> dict:
        """Serializable breakdown of the estimate."""
        return {
            "days": self.days,
            "absolute_mde": self.absolute_mde,
            "lower_rate": self.lower_rate,
            "upper_rate": self.upper_rate,
            "alpha": self.alpha,
            "sample_estimate": self.sample_estimate,
            "per_variation_sample_size": self.per_variation_sample_size,
            "total_sample_size": self.total_sample_size,
        }


def _is_finite_number(value: Any) -> bool:
    """True for real, finite, non-boolean numbers (NumPy scalars included)."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    if isinstance(value, numbers.Integral):
        # ints are exact, even beyond float range
        return True
    return math.isfinite(value)


def _is_whole_number(value: Any) -> bool:
    if not _is_finite_number(value):
        return False
    if isinstance(value, numbers.Integral):
        return True
    return float(value).is_integer()


def validate_inputs(
    bcr: Any,
    mde: Any,
    sig_level: Any,
    num_variations: Any,
    daily_visitors: Any,
) -> RuntimeInputs:
    """Check estimator inputs, first violated rule wins.

    Returns:
        RuntimeInputs holding the values as given.

    Raises:
        InvalidBCRError: bcr not a finite number in (0, 1).
        InvalidMDEError: mde not a finite number > 0.
        InvalidSignificanceLevelError: sig_level not a finite number in (0, 100).
        InvalidNumVariationsError: num_variations not an integer >= 2.
        InvalidDailyVisitorsError: daily_visitors not a finite number > 0.
    """
    inputs = RuntimeInputs(bcr, mde, sig_level, num_variations, daily_visitors)

    if not (_is_finite_number(bcr) and 0 < bcr < 1):
        raise InvalidBCRError(inputs)
    if not (_is_finite_number(mde) and mde > 0):
        raise InvalidMDEError(inputs)
    if not (_is_finite_number(sig_level) and 0 < sig_level < 100):
        raise InvalidSignificanceLevelError(inputs)
    if not (_is_whole_number(num_variations) and num_variations >= 2):
        raise InvalidNumVariationsError(inputs)
    if not (_is_finite_number(daily_visitors) and daily_visitors > 0):
        raise InvalidDailyVisitorsError(inputs)

    return inputs


def _as_float64(value: Any) -> np.float64:
    try:
        return np.float64(value)
    except OverflowError:
        # int beyond float range
        return np.float64(np.inf)


def _sample_estimate(variance: np.float64, theta: np.float64, alpha: np.float64) -> np.float64:
    return (2 * (1 - alpha) * variance * np.log(1 + np.sqrt(variance) / theta)) / (theta * theta)


def estimate_runtime(
    bcr: float,
    mde: float,
    sig_level: float,
    num_variations: int,
    daily_visitors: float,
    max_days: int = MAX_DURATION_DAYS,
) -> RuntimeEstimate:
    """Estimate experiment runtime and return the full breakdown.

    Args:
        bcr: Baseline conversion rate, decimal in (0, 1).
        mde: Relative minimum detectable effect, > 0.
        sig_level: Significance level as a percentage in (0, 100).
        num_variations: Variations including control, integer >= 2.
        daily_visitors: Daily experiment traffic, > 0.
        max_days: Longest duration reported as a result.

    Returns:
        RuntimeEstimate with days and all intermediate values.

    Raises:
        EstimationError: One of the subclasses in opaltools.core.errors,
            depending on which input or intermediate is invalid.
    """
    inputs = validate_inputs(bcr, mde, sig_level, num_variations, daily_visitors)

    # IEEE semantics: overflow and division by zero yield inf/nan, checked below
    with np.errstate(all="ignore"):
        c1 = np.float64(bcr)
        absolute_mde = c1 * _as_float64(mde)

        c2 = c1 - absolute_mde
        if c2 < 0:
            raise MDETooLargeError(inputs, float(c2))
        c3 = c1 + absolute_mde

        alpha = 1 - np.float64(sig_level) / 100

        variance1 = c1 * (1 - c1) + c2 * (1 - c2)
        variance2 = c1 * (1 - c1) + c3 * (1 - c3)

        theta = np.abs(absolute_mde)
        if theta == 0:
            raise ZeroEffectSizeError(inputs)

        sample_estimate1 = _sample_estimate(variance1, theta, alpha)
        sample_estimate2 = _sample_estimate(variance2, theta, alpha)
        # np.maximum propagates nan from a negative variance on either side
        sample_estimate = np.maximum(np.abs(sample_estimate1), np.abs(sample_estimate2))

        # zero when 1 - alpha rounds away for a vanishing sig_level
        if not np.isfinite(sample_estimate) or sample_estimate <= 0:
            raise CalculationOverflowError(inputs, float(sample_estimate))

        total_sample_size = sample_estimate * _as_float64(num_variations)
        # a positive sample takes at least one day, even with unbounded traffic
        days = np.maximum(np.ceil(total_sample_size / _as_float64(daily_visitors)), 1)

    if not np.isfinite(days) or days > max_days:
        raise DurationTooLongError(inputs, float(days), max_days)

    estimate = RuntimeEstimate(
        inputs=inputs,
        days=int(days),
        absolute_mde=float(absolute_mde),
        lower_rate=float(c2),
        upper_rate=float(c3),
        alpha=float(alpha),
        variance_lower=float(variance1),
        variance_upper=float(variance2),
        sample_estimate_lower=float(sample_estimate1),
        sample_estimate_upper=float(sample_estimate2),
        sample_estimate=float(sample_estimate),
        total_sample_size=float(total_sample_size),
    )
    logger.debug(f"Runtime estimate for {inputs.describe()}: {estimate.days} days")
    return estimate


def estimate_runtime_days(
    bcr: float,
    mde: float,
    sig_level: float,
    num_variations: int,
    daily_visitors: float,
    max_days: int = MAX_DURATION_DAYS,
) -> int:
    """Estimated number of days for an experiment to reach significance.

    Same arguments and errors as estimate_runtime().
    """
    return estimate_runtime(
        bcr, mde, sig_level, num_variations, daily_visitors, max_days=max_days
    ).days
