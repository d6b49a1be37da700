from __future__ import annotations

import math
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Mapping, Optional, Type, TypeVar

from .config import EngineConfig
from .numbers import clamp, round_half_up, to_number

E = TypeVar("E", bound=Enum)


class PaymentMethod(str, Enum):
    CASH = "cash"
    FINANCE = "finance"
    SPLIT = "split"


class EntityType(str, Enum):
    INDIVIDUAL = "individual"
    COMPANY = "company"
    TRUST = "trust"
    PARTNERSHIP = "partnership"


class SplitAnchor(str, Enum):
    """Which side of a split purchase the user last edited."""

    CASH = "cash"
    FINANCE = "finance"


def parse_enum(enum_cls: Type[E], value: Any) -> Optional[E]:
    """Return the matching member, or None for blank/unknown values."""
    if isinstance(value, enum_cls):
        return value
    if value is None:
        return None
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        return None


# Form keys used by the UI, mapped onto snapshot fields.
_FORM_KEYS = {
    "vehiclePrice": "price",
    "businessUse": "business_use",
    "paymentMethod": "payment_method",
    "cashAmount": "cash_amount",
    "financeAmount": "finance_amount",
    "loanTerm": "loan_term",
    "interestRate": "interest_rate",
    "annualIncome": "annual_income",
    "annualExpenses": "annual_expenses",
    "cashReserves": "cash_reserves",
    "annualKm": "annual_distance",
    "vehicleType": "vehicle_category",
    "ownershipPeriod": "ownership_period",
    "entityType": "entity_type",
    "splitAnchor": "split_anchor",
}


@dataclass(frozen=True)
class VehicleInputs:
    """Raw form snapshot. Values may be numbers, numeric text, blanks or None."""

    price: Any = None
    business_use: Any = None
    payment_method: Any = None
    cash_amount: Any = None
    finance_amount: Any = None
    loan_term: Any = None
    interest_rate: Any = None  # annual %
    annual_income: Any = None
    annual_expenses: Any = None
    cash_reserves: Any = None
    annual_distance: Any = None
    vehicle_category: Any = None
    ownership_period: Any = None
    entity_type: Any = None
    split_anchor: Any = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "VehicleInputs":
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in data.items():
            name = _FORM_KEYS.get(key, key)
            if name in known:
                values[name] = value
        return cls(**values)

    @classmethod
    def coerce(cls, inputs: Any) -> Optional["VehicleInputs"]:
        """Accept a snapshot, a mapping, or None."""
        if inputs is None or isinstance(inputs, cls):
            return inputs
        if isinstance(inputs, Mapping):
            return cls.from_mapping(inputs)
        return None


@dataclass(frozen=True)
class ResolvedInputs:
    """Typed values after fallbacks; what the calculators consume."""

    price: float
    business_use_pct: float
    payment_method: PaymentMethod
    cash_amount: Optional[float]
    finance_amount: Optional[float]
    loan_term_years: int
    annual_rate: float  # decimal
    annual_income: float
    annual_expenses: float
    cash_reserves: float
    annual_distance: float
    vehicle_category: str
    ownership_years: int
    entity_type: EntityType

    @property
    def taxable_income(self) -> float:
        return max(0.0, self.annual_income - self.annual_expenses)


def _non_negative(value: Any) -> float:
    return max(0.0, to_number(value, 0.0))


def _optional_amount(value: Any) -> Optional[float]:
    number = to_number(value)
    return None if math.isnan(number) else number


def resolve_inputs(inputs: Optional[VehicleInputs], config: EngineConfig) -> ResolvedInputs:
    fb = config.fallbacks
    raw = inputs or VehicleInputs()

    category = raw.vehicle_category
    category = str(category).strip().lower() if category not in (None, "") else fb.vehicle_category

    ownership = round_half_up(to_number(raw.ownership_period, fb.ownership_years))
    loan_term = round_half_up(to_number(raw.loan_term, fb.loan_term_years))

    return ResolvedInputs(
        price=_non_negative(raw.price),
        business_use_pct=clamp(to_number(raw.business_use, 0.0), 0.0, 100.0),
        payment_method=parse_enum(PaymentMethod, raw.payment_method) or PaymentMethod(fb.payment_method),
        cash_amount=_optional_amount(raw.cash_amount),
        finance_amount=_optional_amount(raw.finance_amount),
        loan_term_years=int(clamp(loan_term, 1, fb.max_loan_term_years)),
        annual_rate=to_number(raw.interest_rate, fb.interest_rate_pct) / 100.0,
        annual_income=_non_negative(raw.annual_income),
        annual_expenses=_non_negative(raw.annual_expenses),
        cash_reserves=_non_negative(raw.cash_reserves),
        annual_distance=_non_negative(to_number(raw.annual_distance, fb.annual_distance)),
        vehicle_category=category or fb.vehicle_category,
        ownership_years=int(clamp(ownership, 1, fb.max_ownership_years)),
        entity_type=parse_enum(EntityType, raw.entity_type) or EntityType(fb.entity_type),
    )
