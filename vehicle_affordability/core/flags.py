from __future__ import annotations

from typing import List, Sequence

from .config import FlagThresholds
from .numbers import format_dollars, format_number, round_half_up
from .results import CashFlowAnalysis, Depreciation, FinanceDetail, Flag, LuxuryTax, Severity


def _pct(fraction: float) -> str:
    return f"{format_number(fraction * 100)}%"


def risk_flags(
    cash_flow: CashFlowAnalysis,
    lux: LuxuryTax,
    fbt_warnings: Sequence[Flag],
    business_use_pct: float,
    annual_distance: float,
    price: float,
    annual_income: float,
    thresholds: FlagThresholds,
) -> List[Flag]:
    """Every rule is evaluated; tiered rules report only their worst band."""
    flags: List[Flag] = []

    months = cash_flow.months_of_reserves
    if months < thresholds.reserves_critical_months:
        flags.append(
            Flag(
                f"Less than {format_number(thresholds.reserves_critical_months)} month expenses in reserves "
                "after purchase - very risky.",
                Severity.CRITICAL,
            )
        )
    elif months < thresholds.reserves_warning_months:
        flags.append(
            Flag(
                f"Less than {format_number(thresholds.reserves_warning_months)} months expenses in reserves "
                "- limited buffer.",
                Severity.WARNING,
            )
        )

    ratio = cash_flow.payment_to_income_ratio
    if ratio > thresholds.ratio_critical:
        flags.append(
            Flag(
                f"Total vehicle costs exceed {_pct(thresholds.ratio_critical)} of monthly income - serious strain.",
                Severity.CRITICAL,
            )
        )
    elif ratio > thresholds.ratio_warning:
        flags.append(
            Flag(
                f"Vehicle costs exceed {_pct(thresholds.ratio_warning)} of income - above recommended level.",
                Severity.WARNING,
            )
        )

    if lux.has_luxury_tax:
        flags.append(
            Flag(
                f"Luxury car tax of {format_dollars(lux.amount)} applies - adds to total cost.",
                Severity.WARNING,
            )
        )

    business_km = annual_distance * (business_use_pct / 100.0)
    if business_use_pct > thresholds.audit_business_use_pct and business_km < thresholds.audit_min_business_km:
        flags.append(
            Flag(
                f"Claiming {format_number(business_use_pct)}% business use but only "
                f"{format_number(business_km)}km - may face ATO scrutiny.",
                Severity.WARNING,
            )
        )

    if annual_income > 0 and price / annual_income > thresholds.price_to_income_advisory:
        flags.append(
            Flag(
                f"Vehicle price exceeds {_pct(thresholds.price_to_income_advisory)} of annual income "
                "- consider if appropriate.",
                Severity.ADVISORY,
            )
        )

    flags.extend(fbt_warnings)
    return flags


def positive_flags(
    cash_flow: CashFlowAnalysis,
    dep: Depreciation,
    business_use_pct: float,
    price: float,
    cash_reserves: float,
    thresholds: FlagThresholds,
) -> List[Flag]:
    flags: List[Flag] = []
    months = cash_flow.months_of_reserves
    ratio = cash_flow.payment_to_income_ratio

    if months > thresholds.reserves_strong_months and ratio < thresholds.ratio_comfortable:
        flags.append(Flag("Strong financial position - healthy reserves with manageable commitments."))

    if dep.instant_write_off_eligible and business_use_pct >= thresholds.target_business_use_pct:
        flags.append(
            Flag("Excellent tax position - instant write-off with high business use maximizes benefits.")
        )

    if price < cash_reserves * thresholds.price_to_reserves_conservative:
        flags.append(Flag("Conservative purchase - vehicle cost is less than half your reserves."))

    if not flags and months >= thresholds.reserves_warning_months and ratio < thresholds.ratio_solid:
        flags.append(Flag("Solid position - reserves and monthly commitments are within comfortable limits."))

    return flags


def opportunity_flags(
    price: float,
    dep: Depreciation,
    business_use_pct: float,
    cash_flow: CashFlowAnalysis,
    finance: FinanceDetail,
    thresholds: FlagThresholds,
) -> List[Flag]:
    flags: List[Flag] = []

    if cash_flow.payment_to_income_ratio > thresholds.ratio_warning:
        better_price = round_half_up(price * thresholds.cheaper_vehicle_fraction)
        flags.append(
            Flag(
                f"A ${better_price:,} vehicle would significantly improve cash flow "
                "and reduce financial strain."
            )
        )

    if 50 < business_use_pct < thresholds.target_business_use_pct and dep.instant_write_off_eligible:
        flags.append(
            Flag(
                f"Increasing business use to {format_number(thresholds.target_business_use_pct)}% could "
                "provide additional tax benefits while staying under instant write-off threshold."
            )
        )

    if (
        finance.finance_portion > 0
        and cash_flow.months_of_reserves > thresholds.reserves_strong_months
        and finance.total_interest > thresholds.deposit_min_interest
    ):
        savings = finance.total_interest * thresholds.deposit_interest_saving
        flags.append(
            Flag(
                f"With strong reserves, increasing cash deposit could save "
                f"~{format_dollars(savings)} in interest."
            )
        )

    if not flags:
        if business_use_pct < thresholds.target_business_use_pct:
            flags.append(
                Flag(
                    "Review your logbook - if business use is genuinely higher, "
                    "deductions and running-cost claims increase."
                )
            )
        flags.append(
            Flag("Compare the scenarios to see how price, rate and term changes move your score.")
        )

    return flags
