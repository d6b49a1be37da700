from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional

from vehicle_affordability.validation.checks import ValidationIssue, validate_inputs

from .cash_flow import analyze_cash_flow, total_cost
from .config import EngineConfig, default_config
from .finance import finance_for
from .flags import opportunity_flags, positive_flags, risk_flags
from .inputs import VehicleInputs, resolve_inputs
from .results import TaxPosition, VehicleResult
from .running_costs import running_costs
from .scoring import calculate_scores, score_bands, verdict
from .taxes import depreciation, fringe_benefit_warnings, luxury_tax, marginal_tax_rate
from .what_if import run_stress_tests

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class EngineOutput:
    issues: List[ValidationIssue]
    result: VehicleResult


def validate(inputs: Any, config: Optional[EngineConfig] = None) -> List[ValidationIssue]:
    return validate_inputs(inputs, config)


def run_engine(
    inputs: Any,
    config: Optional[EngineConfig] = None,
    clock: Optional[Clock] = None,
) -> EngineOutput:
    """
    Validate and evaluate one purchase snapshot.

    Issues never block the calculation: the result is always built, from
    fallback values where inputs are missing or malformed. `clock` supplies
    the result timestamp and defaults to the current UTC time.
    Without `config` the default rates are loaded, which raises
    `ConfigurationError` if the configured rates file is missing or malformed.
    """
    config = config or default_config()
    clock = clock or utc_now
    snapshot = VehicleInputs.coerce(inputs)

    issues = validate_inputs(snapshot, config)
    resolved = resolve_inputs(snapshot, config)

    finance = finance_for(resolved, config)
    lux = luxury_tax(resolved.price, resolved.vehicle_category, config.luxury_tax)
    tax_rate = marginal_tax_rate(resolved.taxable_income, resolved.entity_type, config.income_tax)
    dep = depreciation(
        resolved.price,
        resolved.vehicle_category,
        resolved.business_use_pct,
        resolved.ownership_years,
        tax_rate,
        config.depreciation,
    )
    running = running_costs(
        resolved.vehicle_category,
        resolved.annual_distance,
        resolved.business_use_pct,
        resolved.ownership_years,
        config.running_costs,
    )
    fbt = fringe_benefit_warnings(
        resolved.price, resolved.business_use_pct, resolved.entity_type, config.fringe_benefits
    )
    cost = total_cost(resolved.price, finance.total_interest, running.total_running_cost, dep.total_tax_savings)
    cash_flow = analyze_cash_flow(
        resolved.annual_income,
        resolved.annual_expenses,
        resolved.cash_reserves,
        finance.monthly_payment,
        running.monthly_running_cost,
        finance.cash_portion,
        config.reserves_sentinel_months,
    )

    risk = risk_flags(
        cash_flow,
        lux,
        fbt,
        resolved.business_use_pct,
        resolved.annual_distance,
        resolved.price,
        resolved.annual_income,
        config.flags,
    )
    positive = positive_flags(
        cash_flow, dep, resolved.business_use_pct, resolved.price, resolved.cash_reserves, config.flags
    )
    opportunities = opportunity_flags(resolved.price, dep, resolved.business_use_pct, cash_flow, finance, config.flags)

    scores = calculate_scores(dep, cash_flow, resolved.business_use_pct, tax_rate, risk, config.scoring)
    stress_tests = run_stress_tests(resolved, finance, running, cash_flow, config)

    result = VehicleResult(
        scores=scores,
        finance=finance,
        tax=TaxPosition(
            has_luxury_tax=lux.has_luxury_tax,
            luxury_tax_amount=lux.amount,
            luxury_tax_threshold=lux.threshold,
            instant_write_off_eligible=dep.instant_write_off_eligible,
            tax_savings_year1=dep.tax_savings_year1,
            total_tax_savings=dep.total_tax_savings,
            marginal_rate=tax_rate,
            method=dep.method,
        ),
        running=running,
        cash_flow=cash_flow,
        total_cost=cost,
        risk_flags=tuple(risk),
        positive_flags=tuple(positive),
        opportunity_flags=tuple(opportunities),
        fbt_warnings=tuple(fbt),
        stress_tests=tuple(stress_tests),
        summary=verdict(scores.overall, risk, config.scoring),
        calculated_at=clock(),
        score_bands=score_bands(scores),
    )

    logger.debug(
        "Engine run complete",
        extra={
            "overall_score": scores.overall,
            "issue_count": len(issues),
            "risk_flag_count": len(risk),
            "payment_method": resolved.payment_method.value,
        },
    )
    return EngineOutput(issues=issues, result=result)
