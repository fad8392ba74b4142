"""Tests for the experiment runtime estimator."""

import math

import numpy as np
import pytest

from opaltools.core.errors import (
    CalculationOverflowError,
    DurationTooLongError,
    EstimationError,
    EstimationErrorKind,
    InvalidBCRError,
    InvalidDailyVisitorsError,
    InvalidMDEError,
    InvalidNumVariationsError,
    InvalidSignificanceLevelError,
    MDETooLargeError,
    ZeroEffectSizeError,
)
from opaltools.core.runtime import (
    MAX_DURATION_DAYS,
    RuntimeEstimate,
    estimate_runtime,
    estimate_runtime_days,
    validate_inputs,
)


class TestReferenceScenarios:
    """Worked examples used as regression baselines."""

    def test_ab_test_high_traffic(self):
        """20% BCR, 10% lift, 95%, 2 variations, 5000/day takes 3 days."""
        assert estimate_runtime_days(0.2, 0.1, 95, 2, 5000) == 3

    def test_abc_test_low_traffic(self):
        """5% BCR, 50% lift, 90%, 3 variations, 1000/day takes 3 days."""
        days = estimate_runtime_days(0.05, 0.5, 90, 3, 1000)

        assert days == 3
        assert days >= estimate_runtime_days(0.2, 0.1, 95, 2, 5000)

    def test_mde_too_large(self):
        """An absolute effect equal to twice the baseline is rejected."""
        with pytest.raises(MDETooLargeError) as exc_info:
            estimate_runtime_days(0.5, 2.0, 95, 2, 1000)

        assert exc_info.value.lower_rate == pytest.approx(-0.5)

    def test_duration_too_long(self):
        """Tiny effect, 99.9% confidence and 10 visitors/day is impractical."""
        with pytest.raises(DurationTooLongError) as exc_info:
            estimate_runtime_days(0.2, 0.05, 99.9, 2, 10)

        assert exc_info.value.days > MAX_DURATION_DAYS
        assert exc_info.value.max_days == MAX_DURATION_DAYS

    def test_bcr_out_of_range(self):
        """BCR above 1 fails regardless of other inputs."""
        with pytest.raises(InvalidBCRError):
            estimate_runtime_days(1.5, 0.1, 95, 2, 5000)

    def test_fractional_variations(self):
        """2.5 variations is not a valid count."""
        with pytest.raises(InvalidNumVariationsError):
            estimate_runtime_days(0.2, 0.1, 95, 2.5, 5000)


class TestBreakdown:
    """Test the intermediate values returned by estimate_runtime."""

    def test_returns_runtime_estimate(self):
        """estimate_runtime returns the full breakdown."""
        estimate = estimate_runtime(0.2, 0.1, 95, 2, 5000)

        assert isinstance(estimate, RuntimeEstimate)
        assert estimate.days == 3
        assert isinstance(estimate.days, int)

    def test_intermediates(self):
        """Derived rates and alpha follow from the inputs."""
        estimate = estimate_runtime(0.2, 0.1, 95, 2, 5000)

        assert estimate.absolute_mde == pytest.approx(0.02)
        assert estimate.lower_rate == pytest.approx(0.18)
        assert estimate.upper_rate == pytest.approx(0.22)
        assert estimate.alpha == pytest.approx(0.05)
        assert estimate.variance_lower == pytest.approx(0.16 + 0.18 * 0.82)
        assert estimate.variance_upper == pytest.approx(0.16 + 0.22 * 0.78)

    def test_larger_side_is_kept(self):
        """The conservative (larger) side drives the sample size."""
        estimate = estimate_runtime(0.2, 0.1, 95, 2, 5000)

        assert estimate.sample_estimate == max(
            abs(estimate.sample_estimate_lower), abs(estimate.sample_estimate_upper)
        )
        assert estimate.sample_estimate == pytest.approx(5346, rel=0.01)

    def test_formula(self):
        """Sample estimate matches the closed-form approximation."""
        estimate = estimate_runtime(0.2, 0.1, 95, 2, 5000)
        theta = 0.02
        variance = estimate.variance_upper
        expected = 2 * 0.95 * variance * math.log(1 + math.sqrt(variance) / theta) / theta ** 2

        assert estimate.sample_estimate_upper == pytest.approx(expected)

    def test_total_sample_scales_with_variations(self):
        """Total sample is per-variation sample times variations."""
        estimate = estimate_runtime(0.2, 0.1, 95, 4, 5000)

        assert estimate.total_sample_size == pytest.approx(estimate.sample_estimate * 4)
        assert estimate.per_variation_sample_size == math.ceil(estimate.sample_estimate)

    def test_to_dict(self):
        """to_dict exposes days and sample sizes."""
        result = estimate_runtime(0.2, 0.1, 95, 2, 5000).to_dict()

        assert result["days"] == 3
        assert result["per_variation_sample_size"] > 5000


class TestValidation:
    """Test input validation and its order."""

    @pytest.mark.parametrize("bcr", [0, 1, -0.1, 1.5, 23, float("nan"), float("inf"), None, "0.2", True])
    def test_invalid_bcr(self, bcr):
        """BCR must be a finite decimal strictly between 0 and 1."""
        with pytest.raises(InvalidBCRError):
            estimate_runtime_days(bcr, 0.1, 95, 2, 5000)

    @pytest.mark.parametrize("mde", [0, -0.05, float("nan"), float("inf"), None])
    def test_invalid_mde(self, mde):
        """MDE must be a finite positive number."""
        with pytest.raises(InvalidMDEError):
            estimate_runtime_days(0.2, mde, 95, 2, 5000)

    @pytest.mark.parametrize("sig_level", [0, 100, -5, 150, float("nan"), None])
    def test_invalid_significance(self, sig_level):
        """Significance must be strictly between 0 and 100."""
        with pytest.raises(InvalidSignificanceLevelError):
            estimate_runtime_days(0.2, 0.1, sig_level, 2, 5000)

    @pytest.mark.parametrize("num_variations", [1, 0, -2, 2.5, float("nan"), float("inf"), None, True])
    def test_invalid_num_variations(self, num_variations):
        """Variations must be an integer of at least 2."""
        with pytest.raises(InvalidNumVariationsError):
            estimate_runtime_days(0.2, 0.1, 95, num_variations, 5000)

    @pytest.mark.parametrize("daily_visitors", [0, -100, float("nan"), float("inf"), None])
    def test_invalid_daily_visitors(self, daily_visitors):
        """Daily visitors must be a finite positive number."""
        with pytest.raises(InvalidDailyVisitorsError):
            estimate_runtime_days(0.2, 0.1, 95, 2, daily_visitors)

    def test_first_violation_wins(self):
        """With several bad inputs, the earliest rule is reported."""
        with pytest.raises(InvalidBCRError):
            estimate_runtime_days(0, -1, 0, 1, 0)
        with pytest.raises(InvalidMDEError):
            estimate_runtime_days(0.2, -1, 0, 1, 0)
        with pytest.raises(InvalidSignificanceLevelError):
            estimate_runtime_days(0.2, 0.1, 0, 1, 0)
        with pytest.raises(InvalidNumVariationsError):
            estimate_runtime_days(0.2, 0.1, 95, 1, 0)

    def test_integral_float_variations_accepted(self):
        """3.0 variations (as decoded from JSON) is an integer."""
        assert estimate_runtime_days(0.2, 0.1, 95, 3.0, 5000) == estimate_runtime_days(0.2, 0.1, 95, 3, 5000)

    def test_huge_integers_accepted(self):
        """Exact ints too large for a float are finite numbers."""
        inputs = validate_inputs(0.2, 0.1, 95, 10 ** 400, 10 ** 400)

        assert inputs.daily_visitors == 10 ** 400

    def test_numpy_scalars_accepted(self):
        """NumPy scalars are valid numbers."""
        days = estimate_runtime_days(
            np.float64(0.2), np.float64(0.1), np.float64(95), np.int64(2), np.float64(5000)
        )

        assert days == 3

    def test_validate_inputs_returns_record(self):
        """validate_inputs returns the inputs unchanged."""
        inputs = validate_inputs(0.2, 0.1, 95, 2, 5000)

        assert inputs.as_tuple() == (0.2, 0.1, 95, 2, 5000)

    def test_errors_carry_inputs(self):
        """Every error carries the full input record."""
        with pytest.raises(EstimationError) as exc_info:
            estimate_runtime_days(0.2, 0.1, 0.95, 1, 5000)

        error = exc_info.value
        assert error.kind == EstimationErrorKind.INVALID_NUM_VARIATIONS
        assert error.value == 1
        assert error.inputs.sig_level == 0.95
        assert error.inputs.daily_visitors == 5000


class TestDegenerateMath:
    """Test failures raised after validation passes."""

    def test_mde_of_one_is_allowed(self):
        """A 100% drop reaches exactly zero, which is not negative."""
        assert estimate_runtime_days(0.5, 1.0, 95, 2, 1000) == 1

    def test_zero_effect_size(self):
        """An effect that underflows to zero cannot be powered."""
        with pytest.raises(ZeroEffectSizeError):
            estimate_runtime_days(1e-200, 1e-200, 95, 2, 5000)

    def test_overflow_from_subnormal_effect(self):
        """An effect so small its square underflows overflows the estimate."""
        with pytest.raises(CalculationOverflowError) as exc_info:
            estimate_runtime_days(0.5, 1e-310, 95, 2, 5000)

        assert "BCR=0.5" in exc_info.value.details

    def test_overflow_from_negative_variance(self):
        """Upper alternative above 100% gives a negative variance."""
        with pytest.raises(CalculationOverflowError):
            estimate_runtime_days(0.9, 1.0, 95, 2, 5000)

    def test_unbounded_duration(self):
        """A quotient that overflows is reported as too long."""
        with pytest.raises(DurationTooLongError) as exc_info:
            estimate_runtime_days(0.2, 0.1, 95, 2, 5e-324)

        assert math.isinf(exc_info.value.days)
        assert "unbounded" in exc_info.value.message

    def test_custom_ceiling(self):
        """max_days lowers the sanity ceiling."""
        with pytest.raises(DurationTooLongError) as exc_info:
            estimate_runtime_days(0.2, 0.1, 95, 2, 5000, max_days=2)

        assert exc_info.value.days == 3

    def test_ceiling_is_inclusive(self):
        """A duration equal to the ceiling is returned."""
        assert estimate_runtime_days(0.2, 0.1, 95, 2, 5000, max_days=3) == 3

    def test_vanishing_significance(self):
        """A sig_level too small to move alpha gives a zero sample, reported as overflow."""
        with pytest.raises(CalculationOverflowError) as exc_info:
            estimate_runtime_days(0.2, 0.1, 1e-17, 2, 5000)

        assert exc_info.value.sample_estimate == 0

    def test_huge_integer_traffic(self):
        """Integers beyond float range are valid and still take one day."""
        assert estimate_runtime_days(0.2, 0.1, 95, 2, 10 ** 400) == 1

    def test_huge_integer_variations(self):
        """Integers beyond float range give an unbounded duration."""
        with pytest.raises(DurationTooLongError) as exc_info:
            estimate_runtime_days(0.2, 0.1, 95, 10 ** 400, 5000)

        assert math.isinf(exc_info.value.days)


class TestProperties:
    """Monotonicity and determinism."""

    @pytest.mark.parametrize("sig_level", [50, 1e-3, 1e-12])
    def test_days_at_least_one(self, sig_level):
        """Valid inputs never give zero days."""
        assert estimate_runtime_days(0.5, 1.0, sig_level, 2, 1e9) >= 1

    def test_non_increasing_in_mde(self):
        """Larger effects need no more time."""
        days = [estimate_runtime_days(0.2, mde, 95, 2, 1000) for mde in (0.05, 0.075, 0.1, 0.15, 0.2, 0.3)]

        assert days == sorted(days, reverse=True)
        assert days[0] > days[-1]

    def test_non_increasing_in_traffic(self):
        """More traffic needs no more time."""
        days = [estimate_runtime_days(0.2, 0.1, 95, 2, v) for v in (500, 1000, 2000, 5000, 10000)]

        assert days == sorted(days, reverse=True)

    def test_non_decreasing_in_significance(self):
        """Stricter confidence needs no less time."""
        days = [estimate_runtime_days(0.2, 0.1, s, 2, 1000) for s in (80, 90, 95, 99)]

        assert days == sorted(days)
        assert days[-1] > days[0]

    def test_non_decreasing_in_variations(self):
        """Each extra variation needs no less time."""
        days = [estimate_runtime_days(0.2, 0.1, 95, n, 1000) for n in (2, 3, 4, 5)]

        assert days == sorted(days)

    def test_deterministic(self):
        """Identical inputs give identical results."""
        first = estimate_runtime(0.13, 0.07, 93.5, 3, 2500)
        second = estimate_runtime(0.13, 0.07, 93.5, 3, 2500)

        assert first == second

    def test_deterministic_failures(self):
        """Identical bad inputs give the same failure kind."""
        kinds = []
        for _ in range(2):
            with pytest.raises(EstimationError) as exc_info:
                estimate_runtime_days(0.2, 0.05, 99.9, 2, 10)
            kinds.append(exc_info.value.kind)

        assert kinds == [EstimationErrorKind.DURATION_TOO_LONG] * 2
