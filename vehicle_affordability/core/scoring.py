from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Sequence

import numpy as np

from .config import ScoringConfig
from .numbers import round_half_up
from .results import CashFlowAnalysis, Depreciation, Flag, Scores, Severity

# Interpretation bands shown next to each sub-score.
SCORE_BANDS = (
    (85, "excellent"),
    (70, "good"),
    (50, "moderate"),
    (0, "limited"),
)


def _clamp_score(value: float) -> float:
    return float(np.clip(value, 0.0, 100.0))


def tax_score(dep: Depreciation, business_use_pct: float, marginal_rate: float, config: ScoringConfig) -> float:
    tx = config.tax
    score = tx.base
    if dep.instant_write_off_eligible:
        score += tx.write_off_bonus
    score += min(business_use_pct * tx.business_use_bonus_per_pct, tx.business_use_bonus_cap)
    if marginal_rate < tx.low_rate_threshold:
        score -= tx.low_rate_penalty
    return _clamp_score(score)


def cash_flow_score(payment_to_income_ratio: float, config: ScoringConfig) -> float:
    """Piecewise-linear decline over the ratio knots; flat at the last knot's floor."""
    return _clamp_score(np.interp(payment_to_income_ratio, config.cash_flow_ratios, config.cash_flow_scores))


def safety_score(months_of_reserves: float, config: ScoringConfig) -> float:
    return _clamp_score(np.interp(months_of_reserves, config.safety_months, config.safety_scores))


def flag_penalty(flags: Sequence[Flag], config: ScoringConfig) -> float:
    penalties = {
        Severity.CRITICAL: config.critical_penalty,
        Severity.WARNING: config.warning_penalty,
        Severity.ADVISORY: config.advisory_penalty,
    }
    return sum(penalties.get(flag.severity, 0.0) for flag in flags)


def calculate_scores(
    dep: Depreciation,
    cash_flow: CashFlowAnalysis,
    business_use_pct: float,
    marginal_rate: float,
    risk: Sequence[Flag],
    config: ScoringConfig,
) -> Scores:
    """
    Weighted composite of three sub-scores, less a flat penalty per risk flag.

    Sub-scores are clamped to [0, 100] before weighting, and the composite is
    clamped again after penalties, so every field of the result is in range.
    """
    tax = tax_score(dep, business_use_pct, marginal_rate, config)
    cash = cash_flow_score(cash_flow.payment_to_income_ratio, config)
    safety = safety_score(cash_flow.months_of_reserves, config)

    overall = tax * config.tax_weight + cash * config.cash_flow_weight + safety * config.safety_weight
    overall -= flag_penalty(risk, config)

    return Scores(
        overall=round_half_up(_clamp_score(overall)),
        tax_score=round_half_up(tax),
        cash_flow_score=round_half_up(cash),
        safety_score=round_half_up(safety),
    )


def verdict(overall: int, risk: Sequence[Flag], config: ScoringConfig) -> str:
    if overall >= config.sensible_threshold:
        return "This looks like a sensible purchase based on the numbers."
    if overall >= config.caution_threshold:
        return "This could work but be mindful of the risks highlighted below."
    if any(flag.severity is Severity.CRITICAL for flag in risk):
        return "This purchase looks quite risky - see critical concerns below."
    return "This purchase looks aggressive - consider adjusting price or timing."


def score_band(score: float) -> str:
    for floor, label in SCORE_BANDS:
        if score >= floor:
            return label
    return SCORE_BANDS[-1][1]


def score_bands(scores: Scores) -> Mapping[str, str]:
    return MappingProxyType(
        {
            "tax": score_band(scores.tax_score),
            "cash_flow": score_band(scores.cash_flow_score),
            "safety": score_band(scores.safety_score),
        }
    )
