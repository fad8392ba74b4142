"""Experiment planning tools built on the runtime estimator.

- runtime_sweep(): Vary one input, measure the runtime impact
- find_minimum_mde(): Binary search for the smallest effect that fits a deadline
- max_valid_mde(): Upper end of the MDE range the estimator accepts for a BCR
- fixed_horizon_sample_size(): Classical z-test sample size, for comparison
- RuntimeSweepResult, MinimumEffectResult: Structured result classes
"""

import dataclasses
import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd
from scipy import stats

from opaltools.core.errors import DurationTooLongError, EstimationError
from opaltools.core.inputs import RuntimeInputs
from opaltools.core.runtime import MAX_DURATION_DAYS, estimate_runtime, validate_inputs

logger = logging.getLogger(__name__)

SWEEPABLE_PARAMETERS = tuple(f.name for f in dataclasses.fields(RuntimeInputs))


@dataclass
class RuntimeSweepResult:
    """Result of a runtime sweep.

    Attributes:
        parameter: Name of the input that was varied.
        values: List of input values tested.
        base_inputs: Inputs held fixed for every other parameter.
        results: DataFrame with columns: value, days, sample_estimate,
            total_sample_size, error.
    """
    parameter: str
    values: List[float]
    base_inputs: RuntimeInputs
    results: pd.DataFrame

    def to_dataframe(self) -> pd.DataFrame:
        """Return results as DataFrame."""
        return self.results

    def feasible(self) -> pd.DataFrame:
        """Rows where an estimate was produced."""
        return self.results[self.results["error"].isna()]


@dataclass
class MinimumEffectResult:
    """Result of a minimum detectable effect search.

    Attributes:
        target_days: Longest acceptable runtime.
        found: Whether any MDE in the search range fits the target.
        minimum_mde: Smallest MDE found that fits, None if not found.
        days_at_minimum: Estimated runtime at minimum_mde.
        search_history: List of dicts recording the binary search progress.
    """
    target_days: int
    found: bool
    minimum_mde: Optional[float]
    days_at_minimum: Optional[int]
    search_history: List[Dict]

    def summary(self) -> str:
        """Human-readable summary of the search."""
        if not self.found:
            return (
                f"No MDE in the search range finishes within {self.target_days} days. "
                "Increase traffic or lower the significance level."
            )
        return (
            f"The smallest detectable relative effect within {self.target_days} days "
            f"is {self.minimum_mde:.2%} ({self.days_at_minimum} days)"
        )


def runtime_sweep(
    base_inputs: RuntimeInputs,
    parameter: str,
    values: Sequence[float],
    max_days: int = MAX_DURATION_DAYS,
) -> RuntimeSweepResult:
    """Vary one input across values, estimating runtime at each.

    Values that make the estimate fail are kept in the results with
    days = NaN and the error code, so a chart can show where the plan
    stops being feasible.

    Args:
        base_inputs: Starting inputs.
        parameter: Input to vary ('bcr', 'mde', 'sig_level',
            'num_variations' or 'daily_visitors').
        values: Values to test.
        max_days: Duration ceiling passed to the estimator.

    Returns:
        RuntimeSweepResult with one row per value.

    Raises:
        ValueError: If parameter is not an estimator input.

    Example:
        >>> base = RuntimeInputs(0.1, 0.05, 95, 2, 5000)
        >>> result = runtime_sweep(base, 'daily_visitors', [1000, 2000, 5000])
        >>> print(result.to_dataframe())
    """
    if parameter not in SWEEPABLE_PARAMETERS:
        raise ValueError(
            f"Unknown parameter '{parameter}'. Use one of: {', '.join(SWEEPABLE_PARAMETERS)}"
        )

    rows = []
    for value in values:
        inputs = dataclasses.replace(base_inputs, **{parameter: value})
        try:
            estimate = estimate_runtime(*inputs.as_tuple(), max_days=max_days)
        except EstimationError as e:
            rows.append({
                'value': value,
                'days': np.nan,
                'sample_estimate': np.nan,
                'total_sample_size': np.nan,
                'error': e.code,
            })
            continue

        rows.append({
            'value': value,
            'days': estimate.days,
            'sample_estimate': estimate.sample_estimate,
            'total_sample_size': estimate.total_sample_size,
            'error': None,
        })

    logger.debug(f"Sweep over {parameter}: {len(rows)} values")

    return RuntimeSweepResult(
        parameter=parameter,
        values=list(values),
        base_inputs=base_inputs,
        results=pd.DataFrame(rows, columns=['value', 'days', 'sample_estimate', 'total_sample_size', 'error']),
    )


def max_valid_mde(bcr: float) -> float:
    """Largest MDE keeping both shifted rates within [0, 1] for this BCR."""
    return min(1.0, (1 - bcr) / bcr)


def find_minimum_mde(
    base_inputs: RuntimeInputs,
    target_days: int,
    search_range: tuple = (0.001, 1.0),
    tolerance: float = 1e-4,
    max_iterations: int = 50,
) -> MinimumEffectResult:
    """Find the smallest MDE whose estimated runtime fits target_days.

    Runtime never increases as MDE grows, so a binary search over the
    range converges on the boundary. The upper end of the range is
    clipped to max_valid_mde(bcr), past which the estimate is undefined.

    Args:
        base_inputs: Inputs; the mde field is ignored.
        target_days: Longest acceptable runtime, at least 1.
        search_range: (min, max) MDE range to search.
        tolerance: Stop when the range is narrower than this.
        max_iterations: Maximum search iterations.

    Returns:
        MinimumEffectResult with the boundary MDE and search history.

    Raises:
        ValueError: If target_days < 1, the range is empty, or the range
            starts at or beyond max_valid_mde(bcr).
        EstimationError: If the other inputs are invalid.

    Plain Language:
        Answers "with our traffic, what is the smallest lift we could
        detect in four weeks?"
    """
    if target_days < 1:
        raise ValueError("target_days must be at least 1")
    low, high = search_range
    if not 0 < low < high:
        raise ValueError("search_range must be (min, max) with 0 < min < max")

    validate_inputs(*dataclasses.replace(base_inputs, mde=low).as_tuple())
    mde_limit = max_valid_mde(base_inputs.bcr)
    if low >= mde_limit:
        raise ValueError(
            f"search_range starts at {low}, beyond the largest usable MDE "
            f"of {mde_limit:.4f} for a BCR of {base_inputs.bcr}"
        )
    if high > mde_limit:
        logger.debug(f"Clipping MDE search from {high} to {mde_limit:.4f}")
        high = mde_limit

    history = []

    def evaluate(mde):
        """Days at this MDE, or None when it exceeds target_days."""
        inputs = dataclasses.replace(base_inputs, mde=mde)
        try:
            return estimate_runtime(*inputs.as_tuple(), max_days=target_days).days
        except DurationTooLongError:
            return None

    days_high = evaluate(high)
    if days_high is None:
        return MinimumEffectResult(
            target_days=target_days,
            found=False,
            minimum_mde=None,
            days_at_minimum=None,
            search_history=history,
        )

    days_low = evaluate(low)
    if days_low is not None:
        return MinimumEffectResult(
            target_days=target_days,
            found=True,
            minimum_mde=low,
            days_at_minimum=days_low,
            search_history=history,
        )

    for iteration in range(max_iterations):
        if high - low <= tolerance:
            break

        mid = (low + high) / 2
        days = evaluate(mid)

        history.append({
            'iteration': iteration,
            'mde': mid,
            'days': days,
            'low': low,
            'high': high,
        })

        if days is not None:
            high, days_high = mid, days
        else:
            low = mid

    return MinimumEffectResult(
        target_days=target_days,
        found=True,
        minimum_mde=high,
        days_at_minimum=days_high,
        search_history=history,
    )


def fixed_horizon_sample_size(
    bcr: float,
    mde: float,
    sig_level: float,
    power: float = 0.8,
) -> int:
    """Per-variation sample size of a classical two-sided z-test.

    Two-proportion test evaluated once at the end of the experiment,
    for comparison with the sequential estimate.

    Args:
        bcr: Baseline conversion rate, decimal in (0, 1).
        mde: Relative minimum detectable effect, > 0.
        sig_level: Significance level as a percentage in (0, 100).
        power: Desired statistical power in (0, 1).

    Returns:
        Visitors needed in each variation.

    Raises:
        EstimationError: If bcr, mde or sig_level is invalid.
        ValueError: If power is out of range or the variant rate reaches 1.
    """
    # Variations and traffic do not enter the per-variation size
    validate_inputs(bcr, mde, sig_level, 2, 1)
    if not 0 < power < 1:
        raise ValueError(f"power must be between 0 and 1, got {power}")

    p1 = bcr
    p2 = bcr * (1 + mde)
    if p2 >= 1:
        raise ValueError(
            f"MDE of {mde} on BCR of {bcr} gives a variant rate of {p2:.4f}, which must be below 1"
        )

    alpha = 1 - sig_level / 100
    z_alpha = stats.norm.ppf(1 - alpha / 2)
    z_beta = stats.norm.ppf(power)

    p_bar = (p1 + p2) / 2
    numerator = (
        z_alpha * np.sqrt(2 * p_bar * (1 - p_bar))
        + z_beta * np.sqrt(p1 * (1 - p1) + p2 * (1 - p2))
    ) ** 2
    return int(math.ceil(numerator / (p2 - p1) ** 2))
