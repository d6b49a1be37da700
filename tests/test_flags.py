"""Unit tests for cash-flow analysis and the flag rule tables"""

import math

import pytest

from vehicle_affordability.core.cash_flow import analyze_cash_flow, total_cost
from vehicle_affordability.core.flags import opportunity_flags, positive_flags, risk_flags
from vehicle_affordability.core.results import (
    CashFlowAnalysis,
    Depreciation,
    FinanceDetail,
    Flag,
    LuxuryTax,
    Severity,
)

NO_LCT = LuxuryTax(has_luxury_tax=False, amount=0.0, threshold=84916.0)
NOT_ELIGIBLE = Depreciation("Depreciation", 52000.0, False, 4225.0, 12889.55)
ELIGIBLE = Depreciation("Instant Write-Off", 15000.0, True, 4875.0, 4875.0)
NO_FINANCE = FinanceDetail(cash_portion=30000.0, finance_portion=0.0, monthly_payment=0.0, total_interest=0.0)


def _cash_flow(months: float, ratio: float) -> CashFlowAnalysis:
    return CashFlowAnalysis(
        monthly_income=10000.0,
        monthly_expenses=5000.0,
        total_monthly_commitment=ratio * 10000.0,
        cash_after_purchase=months * 5000.0,
        months_of_reserves=months,
        payment_to_income_ratio=ratio,
    )


def _risk(cash_flow, thresholds, lux=NO_LCT, fbt=(), business_use=70, distance=20000, price=40000, income=120000):
    return risk_flags(cash_flow, lux, list(fbt), business_use, distance, price, income, thresholds)


def test_cash_flow_ratios():
    cf = analyze_cash_flow(180000, 120000, 30000, 1302.47, 650.0, 0.0)

    assert cf.monthly_income == 15000
    assert cf.monthly_expenses == 10000
    assert cf.total_monthly_commitment == pytest.approx(1952.47)
    assert cf.cash_after_purchase == 30000
    assert cf.months_of_reserves == pytest.approx(3.0)
    assert cf.payment_to_income_ratio == pytest.approx(1952.47 / 15000)


@pytest.mark.parametrize(
    "expenses, reserves, cash_portion, expected_months",
    [(0, 50000, 10000, 99.0), (0, 10000, 10000, 0.0), (0, 0, 20000, 0.0)],
)
def test_months_of_reserves_fallback_without_expenses(expenses, reserves, cash_portion, expected_months):
    cf = analyze_cash_flow(100000, expenses, reserves, 500.0, 100.0, cash_portion)

    assert cf.months_of_reserves == expected_months
    assert math.isfinite(cf.payment_to_income_ratio)


def test_ratio_is_zero_without_income():
    cf = analyze_cash_flow(0, 60000, 10000, 800.0, 200.0, 0.0)
    assert cf.payment_to_income_ratio == 0.0


def test_total_cost_nets_off_tax_savings():
    cost = total_cost(65000, 13148.0, 39000, 12889.55)

    assert cost.total_outlay == pytest.approx(117148.0)
    assert cost.net_cost == pytest.approx(117148.0 - 12889.55)


def test_reserves_below_one_month_is_critical_only(config):
    flags = _risk(_cash_flow(0.5, 0.05), config.flags)

    assert [f.severity for f in flags] == [Severity.CRITICAL]
    assert "very risky" in flags[0].message


def test_reserves_below_three_months_is_warning(config):
    flags = _risk(_cash_flow(2.0, 0.05), config.flags)
    assert [f.severity for f in flags] == [Severity.WARNING]


def test_ratio_bands(config):
    critical = _risk(_cash_flow(8, 0.30), config.flags)
    warning = _risk(_cash_flow(8, 0.18), config.flags)

    assert [f.severity for f in critical] == [Severity.CRITICAL]
    assert "25% of monthly income" in critical[0].message
    assert [f.severity for f in warning] == [Severity.WARNING]
    assert "15% of income" in warning[0].message


def test_luxury_tax_flag(config):
    lux = LuxuryTax(has_luxury_tax=True, amount=1192.29, threshold=91387.0)
    flags = _risk(_cash_flow(8, 0.05), config.flags, lux=lux)

    assert flags == [Flag("Luxury car tax of $1,192 applies - adds to total cost.", Severity.WARNING)]


def test_high_business_use_with_low_distance_is_audit_signal(config):
    flags = _risk(_cash_flow(8, 0.05), config.flags, business_use=90, distance=10000)

    assert len(flags) == 1
    assert flags[0].message == "Claiming 90% business use but only 9,000km - may face ATO scrutiny."


def test_price_to_income_advisory_and_fbt_appended(config):
    fbt = Flag("20% private use may trigger ~$1,880 annual FBT liability.", Severity.WARNING)
    flags = _risk(_cash_flow(8, 0.05), config.flags, price=90000, income=100000, fbt=[fbt])

    assert [f.severity for f in flags] == [Severity.ADVISORY, Severity.WARNING]
    assert flags[-1] is fbt


def test_all_matching_rules_fire_together(config):
    lux = LuxuryTax(has_luxury_tax=True, amount=5000.0, threshold=91387.0)
    flags = _risk(_cash_flow(0.2, 0.4), config.flags, lux=lux, business_use=95, distance=5000, price=150000, income=100000)

    assert [f.severity for f in flags] == [
        Severity.CRITICAL,
        Severity.CRITICAL,
        Severity.WARNING,
        Severity.WARNING,
        Severity.ADVISORY,
    ]


def test_positive_flags(config):
    flags = positive_flags(_cash_flow(8, 0.05), ELIGIBLE, 100, 15000, 40000, config.flags)

    assert len(flags) == 3
    assert all(f.severity is None for f in flags)


def test_positive_fallback_for_solid_position(config):
    flags = positive_flags(_cash_flow(3.0, 0.13), NOT_ELIGIBLE, 80, 65000, 30000, config.flags)

    assert len(flags) == 1
    assert flags[0].message.startswith("Solid position")


def test_no_positive_flags_when_stretched(config):
    assert positive_flags(_cash_flow(1.5, 0.22), NOT_ELIGIBLE, 80, 65000, 30000, config.flags) == []


def test_cheaper_vehicle_opportunity_restates_price(config):
    flags = opportunity_flags(65000, NOT_ELIGIBLE, 80, _cash_flow(2, 0.2), NO_FINANCE, config.flags)

    assert flags[0].message.startswith("A $45,500 vehicle")


def test_business_use_opportunity(config):
    flags = opportunity_flags(15000, ELIGIBLE, 60, _cash_flow(8, 0.05), NO_FINANCE, config.flags)

    assert len(flags) == 1
    assert "Increasing business use to 80%" in flags[0].message


def test_deposit_opportunity_estimates_interest_saving(config):
    finance = FinanceDetail(cash_portion=0.0, finance_portion=65000.0, monthly_payment=1302.47, total_interest=13148.0)
    flags = opportunity_flags(65000, NOT_ELIGIBLE, 80, _cash_flow(8, 0.05), finance, config.flags)

    assert len(flags) == 1
    assert "~$3,944 in interest" in flags[0].message


def test_opportunity_fallbacks(config):
    high_use = opportunity_flags(65000, NOT_ELIGIBLE, 85, _cash_flow(4, 0.05), NO_FINANCE, config.flags)
    low_use = opportunity_flags(65000, NOT_ELIGIBLE, 40, _cash_flow(4, 0.05), NO_FINANCE, config.flags)

    assert len(high_use) == 1
    assert "scenarios" in high_use[0].message
    assert len(low_use) == 2
    assert "logbook" in low_use[0].message
