from __future__ import annotations

from typing import List

import pandas as pd

from .config import DepreciationConfig, FringeBenefitConfig, IncomeTaxConfig, LuxuryTaxConfig
from .inputs import EntityType
from .numbers import format_dollars, format_number
from .results import Depreciation, Flag, LuxuryTax, Severity

WRITE_OFF_METHOD = "Instant Write-Off"
DEPRECIATION_METHOD = "Depreciation"


def luxury_tax(price: float, category: str, config: LuxuryTaxConfig) -> LuxuryTax:
    """Luxury-car tax on the portion of price above the applicable threshold."""
    if category == config.luxury_category or price > config.threshold_standard:
        threshold = config.threshold_standard
    else:
        threshold = config.threshold_fuel_efficient

    has_tax = price > threshold
    amount = (price - threshold) * config.rate if has_tax else 0.0
    return LuxuryTax(has_luxury_tax=has_tax, amount=amount, threshold=threshold)


def marginal_tax_rate(taxable_income: float, entity_type: EntityType, config: IncomeTaxConfig) -> float:
    if entity_type is EntityType.COMPANY:
        return config.company_rate
    for bracket in config.brackets:
        if bracket.lower <= taxable_income < bracket.upper:
            return bracket.rate
    return config.top_rate


def depreciation_schedule(
    business_portion: float,
    rate: float,
    years: int,
    tax_rate: float,
    write_off_threshold: float,
) -> pd.DataFrame:
    """Year-by-year deductions. A write-off is a single year-1 row for the full amount."""
    records = []
    if 0 < business_portion <= write_off_threshold:
        records.append(
            {
                "year": 1,
                "opening_value": business_portion,
                "depreciation": business_portion,
                "tax_saving": business_portion * tax_rate,
                "closing_value": 0.0,
            }
        )
    else:
        remaining = business_portion
        for year in range(1, years + 1):
            amount = remaining * rate
            records.append(
                {
                    "year": year,
                    "opening_value": remaining,
                    "depreciation": amount,
                    "tax_saving": amount * tax_rate,
                    "closing_value": remaining - amount,
                }
            )
            remaining -= amount

    columns = ["year", "opening_value", "depreciation", "tax_saving", "closing_value"]
    return pd.DataFrame.from_records(records, columns=columns).set_index("year")


def depreciation(
    price: float,
    category: str,
    business_use_pct: float,
    years: int,
    tax_rate: float,
    config: DepreciationConfig,
) -> Depreciation:
    business_portion = price * (business_use_pct / 100.0)
    eligible = 0 < business_portion <= config.instant_write_off_threshold

    schedule = depreciation_schedule(
        business_portion,
        config.rate_for(category),
        years,
        tax_rate,
        config.instant_write_off_threshold,
    )
    savings = schedule["tax_saving"]

    return Depreciation(
        method=WRITE_OFF_METHOD if eligible else DEPRECIATION_METHOD,
        business_portion=business_portion,
        instant_write_off_eligible=eligible,
        tax_savings_year1=float(savings.iloc[0]) if len(savings) else 0.0,
        total_tax_savings=float(savings.sum()),
    )


def fringe_benefit_warnings(
    price: float, business_use_pct: float, entity_type: EntityType, config: FringeBenefitConfig
) -> List[Flag]:
    """Private use of a vehicle held by a company, trust or partnership may attract FBT."""
    if business_use_pct >= 100 or entity_type is EntityType.INDIVIDUAL:
        return []

    private_use_pct = 100 - business_use_pct
    liability = price * config.statutory_rate * config.fbt_rate * (private_use_pct / 100.0)
    return [
        Flag(
            severity=Severity.WARNING,
            message=(
                f"{format_number(private_use_pct)}% private use may trigger "
                f"~{format_dollars(liability)} annual FBT liability."
            ),
        )
    ]
