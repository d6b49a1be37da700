"""Pytest fixtures for engine tests"""

from datetime import datetime, timezone

import pytest

from vehicle_affordability.core.config import EngineConfig, default_config
from vehicle_affordability.core.inputs import VehicleInputs

FIXED_TIME = datetime(2024, 7, 1, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def config() -> EngineConfig:
    return default_config()


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_TIME


@pytest.fixture
def sedan_inputs() -> VehicleInputs:
    """Financed sedan for an individual on a solid income"""
    return VehicleInputs(
        price=65000,
        business_use=80,
        payment_method="finance",
        loan_term=5,
        interest_rate=7.5,
        annual_income=180000,
        annual_expenses=120000,
        cash_reserves=30000,
        annual_distance=15000,
        vehicle_category="sedan",
        ownership_period=5,
        entity_type="individual",
    )


@pytest.fixture
def split_inputs() -> VehicleInputs:
    return VehicleInputs(
        price=60000,
        business_use=90,
        payment_method="split",
        cash_amount=15000,
        finance_amount=45000,
        loan_term=5,
        interest_rate=8,
        annual_income=150000,
        annual_expenses=90000,
        cash_reserves=60000,
        annual_distance=25000,
        vehicle_category="ute",
        ownership_period=6,
        entity_type="company",
    )
