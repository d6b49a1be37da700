from __future__ import annotations

from .config import RunningCostConfig
from .results import RunningCost


def running_costs(
    category: str, annual_distance: float, business_use_pct: float, years: int, config: RunningCostConfig
) -> RunningCost:
    """Business share of fuel, servicing, tyres and insurance, priced per km."""
    annual_cost = annual_distance * config.cost_for(category)
    business_cost = annual_cost * (business_use_pct / 100.0)
    return RunningCost(
        annual_running_cost=business_cost,
        monthly_running_cost=business_cost / 12.0,
        total_running_cost=business_cost * years,
    )
