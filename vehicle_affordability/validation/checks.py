from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional

from vehicle_affordability.core.config import EngineConfig, default_config
from vehicle_affordability.core.inputs import EntityType, PaymentMethod, VehicleInputs, parse_enum
from vehicle_affordability.core.numbers import to_number


class IssueSeverity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class ValidationIssue:
    field: str
    severity: IssueSeverity
    message: str
    suggestion: Optional[str] = None


def _issue(
    issues: List[ValidationIssue],
    condition: bool,
    field: str,
    severity: IssueSeverity,
    message: str,
    suggestion: Optional[str] = None,
) -> None:
    """Record an issue when `condition` fails. Never raises."""
    if not condition:
        issues.append(ValidationIssue(field, severity, message, suggestion))


def _finite(value: float) -> bool:
    return math.isfinite(value)


def validate_vehicle(inputs: VehicleInputs, issues: List[ValidationIssue]) -> None:
    price = to_number(inputs.price)
    business_use = to_number(inputs.business_use)

    _issue(
        issues,
        _finite(price) and price > 0,
        "price",
        IssueSeverity.ERROR,
        "Vehicle price must be a positive number.",
        "Enter a value greater than 0.",
    )
    _issue(
        issues,
        _finite(business_use) and 0 <= business_use <= 100,
        "business_use",
        IssueSeverity.ERROR,
        "Business use must be between 0 and 100.",
        "Use a percentage from 0 to 100.",
    )


def validate_ownership(inputs: VehicleInputs, issues: List[ValidationIssue], config: EngineConfig) -> None:
    ownership = to_number(inputs.ownership_period)
    _issue(
        issues,
        _finite(ownership) and 0 < ownership <= config.fallbacks.max_ownership_years,
        "ownership_period",
        IssueSeverity.WARNING,
        "Ownership period looks missing or unusual.",
        "Use a realistic ownership period (e.g., 3-7 years).",
    )


def validate_finances(inputs: VehicleInputs, issues: List[ValidationIssue]) -> None:
    checks = (
        ("annual_income", inputs.annual_income, "Annual income",
         "Enter a realistic annual income for better affordability signals."),
        ("annual_expenses", inputs.annual_expenses, "Annual expenses",
         "Enter annual expenses for a more accurate cash-flow check."),
        ("cash_reserves", inputs.cash_reserves, "Cash reserves",
         "Enter your cash buffer to assess safety after purchase."),
    )
    for field, raw, label, suggestion in checks:
        value = to_number(raw)
        _issue(
            issues,
            _finite(value) and value >= 0,
            field,
            IssueSeverity.WARNING,
            f"{label} is missing or invalid.",
            suggestion,
        )


def validate_payment(inputs: VehicleInputs, issues: List[ValidationIssue], config: EngineConfig) -> None:
    method = parse_enum(PaymentMethod, inputs.payment_method)
    _issue(
        issues,
        method is not None or inputs.payment_method in (None, ""),
        "payment_method",
        IssueSeverity.WARNING,
        f"Unrecognised payment method; assuming {config.fallbacks.payment_method}.",
        "Choose cash, finance or split.",
    )
    method = method or PaymentMethod(config.fallbacks.payment_method)

    if method in (PaymentMethod.FINANCE, PaymentMethod.SPLIT):
        term = to_number(inputs.loan_term)
        rate = to_number(inputs.interest_rate)
        _issue(
            issues,
            _finite(term) and term > 0,
            "loan_term",
            IssueSeverity.ERROR,
            "Loan term must be a positive number of years.",
            "Use 1-7 years typically.",
        )
        max_term = config.fallbacks.max_loan_term_years
        _issue(
            issues,
            not (_finite(term) and term > max_term),
            "loan_term",
            IssueSeverity.WARNING,
            f"Loan term is longer than {max_term} years; it will be capped at {max_term}.",
            "Use 1-7 years typically.",
        )
        _issue(
            issues,
            _finite(rate) and 0 <= rate <= 30,
            "interest_rate",
            IssueSeverity.WARNING,
            "Interest rate looks missing or unrealistic.",
            "Enter an annual interest rate in % (e.g., 7.5).",
        )

    if method is PaymentMethod.SPLIT:
        price = to_number(inputs.price)
        cash = to_number(inputs.cash_amount)
        financed = to_number(inputs.finance_amount)
        _issue(
            issues,
            not (_finite(cash) and cash < 0),
            "cash_amount",
            IssueSeverity.ERROR,
            "Cash deposit cannot be negative.",
        )
        _issue(
            issues,
            not (_finite(financed) and financed < 0),
            "finance_amount",
            IssueSeverity.ERROR,
            "Finance amount cannot be negative.",
        )
        if _finite(price) and _finite(cash) and _finite(financed):
            _issue(
                issues,
                abs(cash + financed - price) <= config.fallbacks.split_tolerance,
                "finance_amount",
                IssueSeverity.WARNING,
                "Cash + finance does not match the vehicle price.",
                "Ensure cash deposit + finance amount equals the vehicle price.",
            )


def validate_entity(inputs: VehicleInputs, issues: List[ValidationIssue], config: EngineConfig) -> None:
    _issue(
        issues,
        parse_enum(EntityType, inputs.entity_type) is not None or inputs.entity_type in (None, ""),
        "entity_type",
        IssueSeverity.WARNING,
        f"Unrecognised ownership entity; assuming {config.fallbacks.entity_type}.",
        "Choose individual, company, trust or partnership.",
    )


def validate_inputs(inputs: Any, config: Optional[EngineConfig] = None) -> List[ValidationIssue]:
    """Annotate a form snapshot with issues. Computation proceeds regardless."""
    config = config or default_config()
    snapshot = VehicleInputs.coerce(inputs)
    if snapshot is None:
        return [
            ValidationIssue(
                "inputs",
                IssueSeverity.ERROR,
                "No inputs provided.",
                "Enter details before running the analysis.",
            )
        ]

    issues: List[ValidationIssue] = []
    validate_vehicle(snapshot, issues)
    validate_finances(snapshot, issues)
    validate_payment(snapshot, issues, config)
    validate_ownership(snapshot, issues, config)
    validate_entity(snapshot, issues, config)
    return issues
