"""Runtime estimator input record.

Holds the five values the runtime estimator needs, and maps them from the
parameter names the orchestration layer sends in a tool request body.
"""

from dataclasses import dataclass
from typing import Any, Dict, Mapping


# Tool parameter name -> RuntimeInputs field
PARAMETER_FIELDS: Dict[str, str] = {
    "BCR": "bcr",
    "MDE": "mde",
    "sigLevel": "sig_level",
    "numVariations": "num_variations",
    "dailyVisitors": "daily_visitors",
}


@dataclass(frozen=True)
class RuntimeInputs:
    """The five inputs of a runtime estimate.

    Values are stored exactly as received so that error messages can echo
    what the caller actually sent. Validation happens in the estimator.

    Attributes:
        bcr: Baseline conversion rate as a decimal (0.05 for 5%).
        mde: Minimum detectable effect, relative to bcr (0.1 for 10% lift).
        sig_level: Significance level as a percentage (95 for 95%).
        num_variations: Number of variations including control.
        daily_visitors: Visitors entering the experiment per day.
    """
    bcr: Any
    mde: Any
    sig_level: Any
    num_variations: Any
    daily_visitors: Any

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> "RuntimeInputs":
        """Build inputs from a tool request body.

        Missing parameters are carried as None and fail validation for
        their field; nothing is defaulted.
        """
        return cls(**{field: params.get(name) for name, field in PARAMETER_FIELDS.items()})

    def as_tuple(self) -> tuple:
        """Inputs in estimator argument order."""
        return (self.bcr, self.mde, self.sig_level, self.num_variations, self.daily_visitors)

    def to_params(self) -> Dict[str, Any]:
        """Inputs keyed by tool parameter name."""
        return {name: getattr(self, field) for name, field in PARAMETER_FIELDS.items()}

    def describe(self) -> str:
        """One-line summary for logs and error details."""
        return (
            f"BCR={self.bcr}, MDE={self.mde}, sigLevel={self.sig_level}, "
            f"numVariations={self.num_variations}, dailyVisitors={self.daily_visitors}"
        )
