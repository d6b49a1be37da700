from __future__ import annotations

from .results import CashFlowAnalysis, TotalCost

RESERVES_SENTINEL_MONTHS = 99.0


def analyze_cash_flow(
    annual_income: float,
    annual_expenses: float,
    cash_reserves: float,
    loan_payment: float,
    monthly_running_cost: float,
    cash_portion: float,
    sentinel_months: float = RESERVES_SENTINEL_MONTHS,
) -> CashFlowAnalysis:
    monthly_income = annual_income / 12.0
    monthly_expenses = annual_expenses / 12.0
    commitment = loan_payment + monthly_running_cost
    cash_after = cash_reserves - cash_portion

    # No expenses means the runway is unbounded; report a large finite value instead.
    if monthly_expenses > 0:
        months_of_reserves = cash_after / monthly_expenses
    else:
        months_of_reserves = sentinel_months if cash_after > 0 else 0.0

    ratio = commitment / monthly_income if monthly_income > 0 else 0.0

    return CashFlowAnalysis(
        monthly_income=monthly_income,
        monthly_expenses=monthly_expenses,
        total_monthly_commitment=commitment,
        cash_after_purchase=cash_after,
        months_of_reserves=months_of_reserves,
        payment_to_income_ratio=ratio,
    )


def total_cost(price: float, total_interest: float, running_cost: float, tax_savings: float) -> TotalCost:
    outlay = price + total_interest + running_cost
    return TotalCost(total_outlay=outlay, net_cost=outlay - tax_savings, tax_savings=tax_savings)
