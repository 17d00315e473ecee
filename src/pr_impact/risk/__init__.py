"""Risk scoring."""

from pr_impact.risk.calculator import calculate_risk, score_to_level, validate_factor_specs
from pr_impact.risk.factors import RiskFactorSpec, RiskInputs, default_factor_specs

__all__ = [
    "RiskFactorSpec",
    "RiskInputs",
    "calculate_risk",
    "default_factor_specs",
    "score_to_level",
    "validate_factor_specs",
]
