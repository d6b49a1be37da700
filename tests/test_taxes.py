"""Unit tests for luxury tax, marginal rate, depreciation and FBT"""

import pytest

from vehicle_affordability.core.inputs import EntityType
from vehicle_affordability.core.results import Severity
from vehicle_affordability.core.taxes import (
    depreciation,
    depreciation_schedule,
    fringe_benefit_warnings,
    luxury_tax,
    marginal_tax_rate,
)


def test_luxury_tax_applies_above_standard_threshold(config):
    """A non-luxury category over the standard threshold uses the standard threshold"""
    lux = luxury_tax(95000, "standard", config.luxury_tax)

    assert lux.has_luxury_tax
    assert lux.threshold == 91387
    assert lux.amount == pytest.approx((95000 - 91387) * 0.33)


def test_luxury_tax_uses_fuel_efficient_threshold_for_cheaper_cars(config):
    lux = luxury_tax(88000, "sedan", config.luxury_tax)

    assert lux.threshold == 84916
    assert lux.has_luxury_tax
    assert lux.amount == pytest.approx((88000 - 84916) * 0.33)


def test_luxury_category_always_uses_standard_threshold(config):
    lux = luxury_tax(88000, "luxury", config.luxury_tax)

    assert lux.threshold == 91387
    assert not lux.has_luxury_tax
    assert lux.amount == 0


@pytest.mark.parametrize(
    "income, expected",
    [
        (0, 0.0),
        (18199, 0.0),
        (18200, 0.19),
        (44999, 0.19),
        (45000, 0.325),
        (60000, 0.325),
        (120000, 0.37),
        (180000, 0.45),
        (2_000_000, 0.45),
    ],
)
def test_marginal_rate_brackets(config, income, expected):
    """Brackets are lower-inclusive, upper-exclusive"""
    assert marginal_tax_rate(income, EntityType.INDIVIDUAL, config.income_tax) == expected


def test_company_pays_flat_rate(config):
    assert marginal_tax_rate(10_000, EntityType.COMPANY, config.income_tax) == 0.25
    assert marginal_tax_rate(500_000, EntityType.COMPANY, config.income_tax) == 0.25


def test_trust_uses_brackets(config):
    assert marginal_tax_rate(60000, EntityType.TRUST, config.income_tax) == 0.325


def test_instant_write_off_for_cheap_full_business_vehicle(config):
    dep = depreciation(15000, "sedan", 100, 5, 0.325, config.depreciation)

    assert dep.instant_write_off_eligible
    assert dep.method == "Instant Write-Off"
    assert dep.tax_savings_year1 == dep.total_tax_savings == pytest.approx(15000 * 0.325)


@pytest.mark.parametrize(
    "price, business_use, eligible",
    [(20000, 100, True), (20001, 100, False), (40000, 50, True), (40000, 0, False), (0, 100, False)],
)
def test_write_off_eligibility_boundary(config, price, business_use, eligible):
    dep = depreciation(price, "sedan", business_use, 5, 0.3, config.depreciation)
    assert dep.instant_write_off_eligible is eligible


def test_diminishing_value_depreciation(config):
    """80% of $65k is over the write-off threshold, so sedan 25% diminishing value applies"""
    dep = depreciation(65000, "sedan", 80, 5, 0.325, config.depreciation)

    assert not dep.instant_write_off_eligible
    assert dep.business_portion == pytest.approx(52000)
    assert dep.tax_savings_year1 == pytest.approx(52000 * 0.25 * 0.325)
    assert dep.total_tax_savings == pytest.approx(52000 * (1 - 0.75**5) * 0.325)


@pytest.mark.parametrize("years", range(1, 16))
def test_schedule_sums_to_total_savings(config, years):
    dep = depreciation(80000, "truck", 90, years, 0.37, config.depreciation)
    schedule = depreciation_schedule(72000, 0.15, years, 0.37, config.depreciation.instant_write_off_threshold)

    assert len(schedule) == years
    assert schedule["tax_saving"].sum() == pytest.approx(dep.total_tax_savings)
    assert schedule["closing_value"].iloc[-1] == pytest.approx(72000 * 0.85**years)


def test_unknown_category_uses_default_rate(config):
    dep = depreciation(100000, "hovercraft", 100, 1, 0.45, config.depreciation)
    assert dep.total_tax_savings == pytest.approx(100000 * 0.25 * 0.45)


def test_fbt_warning_for_company_with_private_use(config):
    warnings = fringe_benefit_warnings(50000, 60, EntityType.COMPANY, config.fringe_benefits)

    assert len(warnings) == 1
    assert warnings[0].severity is Severity.WARNING
    assert warnings[0].message == "40% private use may trigger ~$1,880 annual FBT liability."


@pytest.mark.parametrize(
    "business_use, entity",
    [(60, EntityType.INDIVIDUAL), (100, EntityType.COMPANY), (100, EntityType.TRUST)],
)
def test_no_fbt_warning(config, business_use, entity):
    assert fringe_benefit_warnings(50000, business_use, entity, config.fringe_benefits) == []
