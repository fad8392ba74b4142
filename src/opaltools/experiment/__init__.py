"""Planning layer: runtime sweeps, minimum-effect search, fixed-horizon reference."""

from opaltools.experiment.analysis import (
    RuntimeSweepResult,
    MinimumEffectResult,
    runtime_sweep,
    find_minimum_mde,
    max_valid_mde,
    fixed_horizon_sample_size,
)

__all__ = [
    "RuntimeSweepResult",
    "MinimumEffectResult",
    "runtime_sweep",
    "find_minimum_mde",
    "max_valid_mde",
    "fixed_horizon_sample_size",
]
