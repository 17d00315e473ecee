"""Combine weighted risk factors into one score and level."""

from __future__ import annotations

import math

from pr_impact.exceptions import RiskConfigError
from pr_impact.models import RiskAssessment, RiskFactor, RiskLevel
from pr_impact.risk.factors import RiskFactorSpec, RiskInputs, default_factor_specs

WEIGHT_TOLERANCE = 1e-6
DEFAULT_THRESHOLDS = (25, 50, 75)


def validate_factor_specs(specs: list[RiskFactorSpec]) -> None:
    """Reject a weight table with duplicate keys, bad weights, or a sum other than 1."""
    if not specs:
        raise RiskConfigError("At least one risk factor is required")
    keys = [s.key for s in specs]
    duplicates = sorted({k for k in keys if keys.count(k) > 1})
    if duplicates:
        raise RiskConfigError(f"Duplicate risk factor(s): {', '.join(duplicates)}")
    for spec in specs:
        if not 0 < spec.weight <= 1:
            raise RiskConfigError(
                f"Weight of risk factor '{spec.key}' must be in (0, 1], got {spec.weight}"
            )
    total = math.fsum(s.weight for s in specs)
    if abs(total - 1.0) > WEIGHT_TOLERANCE:
        raise RiskConfigError(f"Risk factor weights must sum to 1.0, got {total:g}")


def validate_thresholds(thresholds: tuple[int, ...] | list[int]) -> None:
    if len(thresholds) != 3:
        raise RiskConfigError("Exactly three risk thresholds are required (low, medium, high)")
    if list(thresholds) != sorted(thresholds) or len(set(thresholds)) != 3:
        raise RiskConfigError(f"Risk thresholds must be strictly ascending, got {list(thresholds)}")


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def score_to_level(
    score: float, thresholds: tuple[int, ...] | list[int] = DEFAULT_THRESHOLDS
) -> RiskLevel:
    """Map a 0-100 score to a level; each threshold is an inclusive upper bound."""
    low, medium, high = thresholds
    if score <= low:
        return RiskLevel.LOW
    if score <= medium:
        return RiskLevel.MEDIUM
    if score <= high:
        return RiskLevel.HIGH
    return RiskLevel.CRITICAL


def _clamp(value: float, lower: float = 0, upper: float = 100) -> float:
    return max(lower, min(upper, value))


def calculate_risk(
    inputs: RiskInputs,
    specs: list[RiskFactorSpec] | None = None,
    thresholds: tuple[int, ...] | list[int] = DEFAULT_THRESHOLDS,
) -> RiskAssessment:
    """Score every factor and combine them into a RiskAssessment."""
    specs = specs if specs is not None else default_factor_specs()
    validate_factor_specs(specs)
    validate_thresholds(thresholds)

    factors = []
    for spec in specs:
        result = spec.scorer(inputs)
        factors.append(RiskFactor(
            name=spec.name,
            score=_clamp(result.score),
            weight=spec.weight,
            description=result.description,
            details=list(result.details),
        ))

    weighted = math.fsum(f.score * f.weight for f in factors)
    score = int(_clamp(round_half_up(weighted)))
    return RiskAssessment(
        score=score,
        level=score_to_level(score, thresholds),
        factors=factors,
    )
