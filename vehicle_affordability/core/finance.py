from __future__ import annotations

import math
from typing import Optional, Tuple

import pandas as pd

from .config import EngineConfig
from .inputs import PaymentMethod, ResolvedInputs
from .results import FinanceDetail

MAX_GROWTH_EXPONENT = 700.0


def monthly_payment(principal: float, annual_rate: float, term_months: int) -> float:
    monthly_rate = annual_rate / 12.0
    if term_months <= 0 or principal <= 0:
        return 0.0
    if monthly_rate <= 0:
        return principal / term_months
    # Beyond this factor / (factor - 1) is 1 to double precision.
    if term_months * math.log1p(monthly_rate) > MAX_GROWTH_EXPONENT:
        return principal * monthly_rate
    factor = (1 + monthly_rate) ** term_months
    return principal * monthly_rate * factor / (factor - 1)


def split_portions(
    price: float,
    method: PaymentMethod,
    cash_amount: Optional[float],
    finance_amount: Optional[float],
    default_cash_fraction: float = 0.20,
) -> Tuple[float, float]:
    """Return (cash_portion, finance_portion) for the payment method."""
    if method is PaymentMethod.CASH:
        return price, 0.0
    if method is PaymentMethod.FINANCE:
        return 0.0, price

    has_cash = cash_amount is not None and cash_amount > 0
    has_finance = finance_amount is not None and finance_amount > 0
    if has_cash:
        cash = cash_amount
    elif has_finance:
        cash = price - finance_amount
    else:
        cash = price * default_cash_fraction
    financed = finance_amount if has_finance else price - cash
    return max(0.0, cash), max(0.0, financed)


def finance_details(
    price: float,
    method: PaymentMethod,
    term_years: int,
    annual_rate: float,
    cash_amount: Optional[float] = None,
    finance_amount: Optional[float] = None,
    default_cash_fraction: float = 0.20,
) -> FinanceDetail:
    cash_portion, finance_portion = split_portions(
        price, method, cash_amount, finance_amount, default_cash_fraction
    )

    payment = 0.0
    total_interest = 0.0
    if finance_portion > 0 and term_years > 0:
        n = term_years * 12
        payment = monthly_payment(finance_portion, annual_rate, n)
        if annual_rate > 0:
            total_interest = payment * n - finance_portion

    return FinanceDetail(
        cash_portion=cash_portion,
        finance_portion=finance_portion,
        monthly_payment=payment,
        total_interest=total_interest,
    )


def finance_for(resolved: ResolvedInputs, config: EngineConfig, annual_rate: Optional[float] = None) -> FinanceDetail:
    """Finance detail for a resolved snapshot, optionally at a different rate."""
    return finance_details(
        resolved.price,
        resolved.payment_method,
        resolved.loan_term_years,
        resolved.annual_rate if annual_rate is None else annual_rate,
        resolved.cash_amount,
        resolved.finance_amount,
        config.fallbacks.split_cash_fraction,
    )


def amortization_schedule(principal: float, annual_rate: float, term_months: int) -> pd.DataFrame:
    payment = monthly_payment(principal, annual_rate, term_months)
    monthly_rate = max(annual_rate, 0.0) / 12.0

    balance = principal
    records = []
    for month in range(1, term_months + 1):
        interest = balance * monthly_rate
        principal_paid = min(payment - interest, balance)
        ending_balance = max(balance - principal_paid, 0.0)
        records.append(
            {
                "month": month,
                "payment": payment,
                "interest": interest,
                "principal": principal_paid,
                "ending_balance": ending_balance,
            }
        )
        balance = ending_balance

    columns = ["month", "payment", "interest", "principal", "ending_balance"]
    return pd.DataFrame.from_records(records, columns=columns).set_index("month")
