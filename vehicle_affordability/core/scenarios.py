from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from typing import Any, List, Optional, Sequence

import pandas as pd

from vehicle_affordability.validation.checks import ValidationIssue

from .config import EngineConfig, default_config
from .engine import Clock, run_engine
from .inputs import PaymentMethod, SplitAnchor, VehicleInputs, parse_enum
from .numbers import clamp, format_number, round_half_up, to_number
from .results import VehicleResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScenarioResult:
    id: str
    name: str
    inputs: Optional[VehicleInputs]
    issues: List[ValidationIssue]
    result: VehicleResult


def base_inputs() -> VehicleInputs:
    """Form defaults before the user has entered anything."""
    return VehicleInputs(
        price="",
        business_use=80,
        payment_method=PaymentMethod.FINANCE,
        cash_amount="",
        finance_amount="",
        loan_term=5,
        interest_rate=7.5,
        annual_income="",
        annual_expenses="",
        cash_reserves="",
        annual_distance=15_000,
        vehicle_category="sedan",
        ownership_period=5,
        entity_type="individual",
    )


def _is_split(inputs: VehicleInputs) -> bool:
    return parse_enum(PaymentMethod, inputs.payment_method) is PaymentMethod.SPLIT


def _hold_cash(inputs: VehicleInputs, price: float, cash: float) -> VehicleInputs:
    held = clamp(round_half_up(cash), 0, price)
    return replace(inputs, cash_amount=held, finance_amount=clamp(price - held, 0, price))


def _hold_finance(inputs: VehicleInputs, price: float, financed: float) -> VehicleInputs:
    held = clamp(round_half_up(financed), 0, price)
    return replace(inputs, finance_amount=held, cash_amount=clamp(price - held, 0, price))


def normalize_split(inputs: VehicleInputs, config: EngineConfig) -> VehicleInputs:
    """
    Make split amounts add up to the price.

    The side the user last edited (`split_anchor`) is held fixed and the other
    recomputed; without an anchor the cash deposit wins, then the finance
    amount, then the default deposit fraction.
    """
    if not _is_split(inputs):
        return inputs

    price = to_number(inputs.price)
    if math.isnan(price) or price <= 0:
        return inputs

    cash = to_number(inputs.cash_amount)
    financed = to_number(inputs.finance_amount)
    anchor = parse_enum(SplitAnchor, inputs.split_anchor)

    if anchor is SplitAnchor.FINANCE and not math.isnan(financed):
        return _hold_finance(inputs, price, financed)
    if not math.isnan(cash):
        return _hold_cash(inputs, price, cash)
    if not math.isnan(financed):
        return _hold_finance(inputs, price, financed)
    return _hold_cash(inputs, price, price * config.fallbacks.split_cash_fraction)


def with_price(inputs: VehicleInputs, new_price: float, config: EngineConfig) -> VehicleInputs:
    """Change the price, rebalancing split amounts so they still reconcile."""
    return normalize_split(replace(inputs, price=max(0, round_half_up(new_price))), config)


def with_interest_rate(inputs: VehicleInputs, delta_pct: float, config: EngineConfig) -> VehicleInputs:
    current = to_number(inputs.interest_rate, config.fallbacks.interest_rate_pct)
    return normalize_split(replace(inputs, interest_rate=current + delta_pct), config)


def with_business_use(inputs: VehicleInputs, pct: float, config: EngineConfig) -> VehicleInputs:
    return normalize_split(replace(inputs, business_use=clamp(round_half_up(pct), 0, 100)), config)


def with_extra_deposit(inputs: VehicleInputs, amount: float, config: EngineConfig) -> VehicleInputs:
    """Put more cash down. A financed purchase becomes a split one."""
    method = parse_enum(PaymentMethod, inputs.payment_method) or PaymentMethod(config.fallbacks.payment_method)
    if method is PaymentMethod.CASH:
        return inputs

    price = to_number(inputs.price, 0.0)
    current_cash = to_number(inputs.cash_amount, 0.0) if method is PaymentMethod.SPLIT else 0.0
    deposited = replace(inputs, payment_method=PaymentMethod.SPLIT, split_anchor=SplitAnchor.CASH)
    return _hold_cash(deposited, price, current_cash + amount)


def with_shorter_term(inputs: VehicleInputs, years: int, config: EngineConfig) -> VehicleInputs:
    current = round_half_up(to_number(inputs.loan_term, config.fallbacks.loan_term_years))
    return replace(inputs, loan_term=max(1, current - years))


def generate_scenarios(
    inputs: Any,
    config: Optional[EngineConfig] = None,
    clock: Optional[Clock] = None,
) -> List[ScenarioResult]:
    """
    Run the current inputs plus a fixed set of what-if variants.

    The "current" entry runs the snapshot exactly as given, so it matches a
    direct `run_engine` call. Variants are derived from a split-normalised
    copy and never share state. Without a usable price only "current" is
    returned.
    """
    config = config or default_config()
    snapshot = VehicleInputs.coerce(inputs)
    price = to_number(snapshot.price) if snapshot is not None else math.nan

    variants = [("current", "Current", snapshot)]

    if not math.isnan(price) and price > 0:
        sc = config.scenarios
        base = normalize_split(snapshot, config)
        variants += [
            (
                "price_20pct",
                f"{format_number(sc.price_cut * 100)}% Cheaper",
                with_price(base, price * (1 - sc.price_cut), config),
            ),
            (
                "rate_stress",
                f"Interest +{format_number(sc.rate_rise_pct)}%",
                with_interest_rate(base, sc.rate_rise_pct, config),
            ),
            ("business_max", "Max Business Use", with_business_use(base, sc.business_use_pct, config)),
            (
                "extra_deposit",
                f"Extra ${round_half_up(sc.extra_deposit):,} Deposit",
                with_extra_deposit(base, sc.extra_deposit, config),
            ),
            (
                "shorter_term",
                f"Term -{sc.term_reduction_years} Years",
                with_shorter_term(base, sc.term_reduction_years, config),
            ),
        ]

    results = []
    for scenario_id, name, scenario_inputs in variants:
        output = run_engine(scenario_inputs, config=config, clock=clock)
        results.append(
            ScenarioResult(
                id=scenario_id,
                name=name,
                inputs=scenario_inputs,
                issues=output.issues,
                result=output.result,
            )
        )

    logger.debug("Generated scenarios", extra={"scenario_count": len(results)})
    return results


def comparison_frame(scenarios: Sequence[ScenarioResult]) -> pd.DataFrame:
    """Side-by-side table of the headline numbers, one row per scenario."""
    rows = []
    for scenario in scenarios:
        result = scenario.result
        rows.append(
            {
                "id": scenario.id,
                "name": scenario.name,
                "overall": result.scores.overall,
                "tax_score": result.scores.tax_score,
                "cash_flow_score": result.scores.cash_flow_score,
                "safety_score": result.scores.safety_score,
                "monthly_payment": result.finance.monthly_payment,
                "total_interest": result.finance.total_interest,
                "months_of_reserves": result.cash_flow.months_of_reserves,
                "payment_to_income_ratio": result.cash_flow.payment_to_income_ratio,
                "total_cost_of_ownership": result.total_cost_of_ownership,
                "risk_flags": len(result.risk_flags),
            }
        )
    columns = [
        "id",
        "name",
        "overall",
        "tax_score",
        "cash_flow_score",
        "safety_score",
        "monthly_payment",
        "total_interest",
        "months_of_reserves",
        "payment_to_income_ratio",
        "total_cost_of_ownership",
        "risk_flags",
    ]
    return pd.DataFrame.from_records(rows, columns=columns).set_index("id")
