from __future__ import annotations

from typing import List, Optional

from .cash_flow import analyze_cash_flow
from .config import EngineConfig, FlagThresholds
from .finance import finance_for
from .inputs import ResolvedInputs
from .numbers import format_dollars, format_number
from .results import CashFlowAnalysis, FinanceDetail, RunningCost, Severity, StressTest


def _pct(ratio: float) -> str:
    return f"{ratio * 100:.1f}%"


def _ratio_severity(ratio: float, thresholds: FlagThresholds) -> Severity:
    if ratio > thresholds.ratio_critical:
        return Severity.CRITICAL
    if ratio > thresholds.ratio_warning:
        return Severity.WARNING
    if ratio < thresholds.ratio_comfortable:
        return Severity.POSITIVE
    return Severity.INFO


def _reserves_severity(months: float, thresholds: FlagThresholds) -> Severity:
    if months < thresholds.reserves_critical_months:
        return Severity.CRITICAL
    if months < thresholds.reserves_warning_months:
        return Severity.WARNING
    if months >= thresholds.reserves_strong_months:
        return Severity.POSITIVE
    return Severity.INFO


def _rerun(
    resolved: ResolvedInputs,
    finance: FinanceDetail,
    running: RunningCost,
    config: EngineConfig,
    annual_income: Optional[float] = None,
    annual_expenses: Optional[float] = None,
) -> CashFlowAnalysis:
    return analyze_cash_flow(
        resolved.annual_income if annual_income is None else annual_income,
        resolved.annual_expenses if annual_expenses is None else annual_expenses,
        resolved.cash_reserves,
        finance.monthly_payment,
        running.monthly_running_cost,
        finance.cash_portion,
        config.reserves_sentinel_months,
    )


def income_drop_test(
    resolved: ResolvedInputs,
    finance: FinanceDetail,
    running: RunningCost,
    baseline: CashFlowAnalysis,
    config: EngineConfig,
) -> StressTest:
    drop = config.stress.income_drop
    stressed = _rerun(resolved, finance, running, config, annual_income=resolved.annual_income * (1 - drop))
    before, after = baseline.payment_to_income_ratio, stressed.payment_to_income_ratio

    if resolved.annual_income <= 0:
        severity = Severity.INFO
        message = "No income entered - an income drop cannot be assessed."
    else:
        severity = _ratio_severity(after, config.flags)
        message = (
            f"A {format_number(drop * 100)}% income drop lifts vehicle costs to {_pct(after)} "
            f"of income (from {_pct(before)})."
        )
    return StressTest("income_drop", f"Income -{format_number(drop * 100)}%", severity, message, before, after)


def rate_rise_test(
    resolved: ResolvedInputs,
    running: RunningCost,
    baseline_finance: FinanceDetail,
    baseline: CashFlowAnalysis,
    config: EngineConfig,
) -> StressTest:
    rise = config.stress.rate_rise_pct
    finance = finance_for(resolved, config, annual_rate=resolved.annual_rate + rise / 100.0)
    stressed = _rerun(resolved, finance, running, config)

    if finance.finance_portion <= 0:
        severity = Severity.INFO
        message = "Nothing is financed - interest rate rises do not affect this purchase."
    else:
        delta = finance.monthly_payment - baseline_finance.monthly_payment
        severity = _ratio_severity(stressed.payment_to_income_ratio, config.flags)
        message = (
            f"A {format_number(rise)} point rate rise adds {format_dollars(delta)}/month "
            f"and {format_dollars(finance.total_interest - baseline_finance.total_interest)} total interest."
        )
    return StressTest(
        "rate_rise",
        f"Interest +{format_number(rise)}%",
        severity,
        message,
        baseline_finance.monthly_payment,
        finance.monthly_payment,
    )


def expense_rise_test(
    resolved: ResolvedInputs,
    finance: FinanceDetail,
    running: RunningCost,
    baseline: CashFlowAnalysis,
    config: EngineConfig,
) -> StressTest:
    rise = config.stress.expense_rise
    stressed = _rerun(resolved, finance, running, config, annual_expenses=resolved.annual_expenses * (1 + rise))
    before, after = baseline.months_of_reserves, stressed.months_of_reserves

    severity = _reserves_severity(after, config.flags)
    message = (
        f"With expenses up {format_number(rise * 100)}%, reserves cover {after:.1f} months "
        f"(from {before:.1f})."
    )
    return StressTest("expense_rise", f"Expenses +{format_number(rise * 100)}%", severity, message, before, after)


def income_free_test(baseline: CashFlowAnalysis, config: EngineConfig) -> StressTest:
    """Burn reserves for a run of months with no income at all."""
    months = config.stress.income_free_months
    shortfall = months * (baseline.monthly_expenses + baseline.total_monthly_commitment)
    remaining = baseline.cash_after_purchase - shortfall

    if remaining < 0:
        severity = Severity.CRITICAL
        message = (
            f"{months} months without income would leave you {format_dollars(-remaining)} short "
            f"after covering {format_dollars(shortfall)} of commitments."
        )
    else:
        if remaining < baseline.monthly_expenses * config.flags.reserves_warning_months:
            severity = Severity.WARNING
        else:
            severity = Severity.POSITIVE
        message = (
            f"You could ride out {months} months without income, with "
            f"{format_dollars(remaining)} left after {format_dollars(shortfall)} of commitments."
        )
    return StressTest(
        "income_free",
        f"{months} Months No Income",
        severity,
        message,
        baseline.cash_after_purchase,
        remaining,
    )


def run_stress_tests(
    resolved: ResolvedInputs,
    finance: FinanceDetail,
    running: RunningCost,
    baseline: CashFlowAnalysis,
    config: EngineConfig,
) -> List[StressTest]:
    """Each test perturbs the baseline independently; none feed into each other."""
    return [
        income_drop_test(resolved, finance, running, baseline, config),
        rate_rise_test(resolved, running, finance, baseline, config),
        expense_rise_test(resolved, finance, running, baseline, config),
        income_free_test(baseline, config),
    ]
