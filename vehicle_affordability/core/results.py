from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple


class Severity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    ADVISORY = "advisory"
    POSITIVE = "positive"
    INFO = "info"


@dataclass(frozen=True)
class Flag:
    message: str
    severity: Optional[Severity] = None


@dataclass(frozen=True)
class FinanceDetail:
    cash_portion: float
    finance_portion: float
    monthly_payment: float
    total_interest: float


@dataclass(frozen=True)
class LuxuryTax:
    has_luxury_tax: bool
    amount: float
    threshold: float


@dataclass(frozen=True)
class Depreciation:
    method: str
    business_portion: float
    instant_write_off_eligible: bool
    tax_savings_year1: float
    total_tax_savings: float


@dataclass(frozen=True)
class TaxPosition:
    has_luxury_tax: bool
    luxury_tax_amount: float
    luxury_tax_threshold: float
    instant_write_off_eligible: bool
    tax_savings_year1: float
    total_tax_savings: float
    marginal_rate: float
    method: str


@dataclass(frozen=True)
class RunningCost:
    annual_running_cost: float
    monthly_running_cost: float
    total_running_cost: float


@dataclass(frozen=True)
class CashFlowAnalysis:
    monthly_income: float
    monthly_expenses: float
    total_monthly_commitment: float
    cash_after_purchase: float
    months_of_reserves: float
    payment_to_income_ratio: float


@dataclass(frozen=True)
class TotalCost:
    total_outlay: float
    net_cost: float
    tax_savings: float


@dataclass(frozen=True)
class StressTest:
    id: str
    name: str
    severity: Severity
    message: str
    baseline: float
    stressed: float


@dataclass(frozen=True)
class Scores:
    overall: int
    tax_score: int
    cash_flow_score: int
    safety_score: int


@dataclass(frozen=True)
class VehicleResult:
    scores: Scores
    finance: FinanceDetail
    tax: TaxPosition
    running: RunningCost
    cash_flow: CashFlowAnalysis
    total_cost: TotalCost
    risk_flags: Tuple[Flag, ...]
    positive_flags: Tuple[Flag, ...]
    opportunity_flags: Tuple[Flag, ...]
    fbt_warnings: Tuple[Flag, ...]
    stress_tests: Tuple[StressTest, ...]
    summary: str
    calculated_at: datetime
    score_bands: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def total_cost_of_ownership(self) -> float:
        return self.total_cost.net_cost
