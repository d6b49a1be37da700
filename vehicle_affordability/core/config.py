from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

RATES_ENV_VAR = "VEHICLE_AFFORDABILITY_RATES"
DEFAULT_RATES_PATH = Path(__file__).with_name("rates.yaml")


class ConfigurationError(Exception):
    """Raised when a rates file is missing or malformed."""


def _frozen(mapping: Mapping[str, float]) -> Mapping[str, float]:
    return MappingProxyType({str(k).lower(): float(v) for k, v in mapping.items()})


@dataclass(frozen=True)
class Fallbacks:
    annual_distance: float = 15_000.0
    vehicle_category: str = "sedan"
    ownership_years: float = 5.0
    max_ownership_years: int = 15
    loan_term_years: float = 5.0
    max_loan_term_years: int = 30
    interest_rate_pct: float = 7.5
    payment_method: str = "finance"
    entity_type: str = "individual"
    split_cash_fraction: float = 0.20
    split_tolerance: float = 2.0


@dataclass(frozen=True)
class LuxuryTaxConfig:
    threshold_standard: float = 91_387.0
    threshold_fuel_efficient: float = 84_916.0
    rate: float = 0.33
    luxury_category: str = "luxury"


@dataclass(frozen=True)
class TaxBracket:
    lower: float
    upper: float  # math.inf for the top bracket
    rate: float


@dataclass(frozen=True)
class IncomeTaxConfig:
    company_rate: float = 0.25
    brackets: Tuple[TaxBracket, ...] = (
        TaxBracket(0.0, 18_200.0, 0.0),
        TaxBracket(18_200.0, 45_000.0, 0.19),
        TaxBracket(45_000.0, 120_000.0, 0.325),
        TaxBracket(120_000.0, 180_000.0, 0.37),
        TaxBracket(180_000.0, math.inf, 0.45),
    )

    @property
    def top_rate(self) -> float:
        return self.brackets[-1].rate


@dataclass(frozen=True)
class DepreciationConfig:
    instant_write_off_threshold: float = 20_000.0
    default_rate: float = 0.25
    rates: Mapping[str, float] = field(
        default_factory=lambda: _frozen(
            {"sedan": 0.25, "suv": 0.25, "ute": 0.20, "van": 0.20, "truck": 0.15, "luxury": 0.25}
        )
    )

    def rate_for(self, category: str) -> float:
        return self.rates.get(category, self.default_rate)


@dataclass(frozen=True)
class RunningCostConfig:
    default_per_km: float = 0.70
    per_km: Mapping[str, float] = field(
        default_factory=lambda: _frozen(
            {"sedan": 0.65, "suv": 0.85, "ute": 0.75, "van": 0.80, "truck": 1.20, "luxury": 1.50}
        )
    )

    def cost_for(self, category: str) -> float:
        return self.per_km.get(category, self.default_per_km)


@dataclass(frozen=True)
class FringeBenefitConfig:
    statutory_rate: float = 0.20
    fbt_rate: float = 0.47


@dataclass(frozen=True)
class FlagThresholds:
    reserves_critical_months: float = 1.0
    reserves_warning_months: float = 3.0
    reserves_strong_months: float = 6.0
    ratio_critical: float = 0.25
    ratio_warning: float = 0.15
    ratio_comfortable: float = 0.10
    ratio_solid: float = 0.20
    audit_business_use_pct: float = 80.0
    audit_min_business_km: float = 10_000.0
    price_to_income_advisory: float = 0.70
    price_to_reserves_conservative: float = 0.50
    target_business_use_pct: float = 80.0
    cheaper_vehicle_fraction: float = 0.70
    deposit_min_interest: float = 5_000.0
    deposit_interest_saving: float = 0.30


@dataclass(frozen=True)
class TaxScoreConfig:
    base: float = 55.0
    write_off_bonus: float = 20.0
    business_use_bonus_per_pct: float = 0.25
    business_use_bonus_cap: float = 25.0
    low_rate_threshold: float = 0.19
    low_rate_penalty: float = 10.0


@dataclass(frozen=True)
class ScoringConfig:
    tax_weight: float = 0.30
    cash_flow_weight: float = 0.40
    safety_weight: float = 0.30
    critical_penalty: float = 8.0
    warning_penalty: float = 4.0
    advisory_penalty: float = 2.0
    tax: TaxScoreConfig = field(default_factory=TaxScoreConfig)
    cash_flow_ratios: Tuple[float, ...] = (0.0, 0.05, 0.10, 0.15, 0.25, 0.30)
    cash_flow_scores: Tuple[float, ...] = (100.0, 95.0, 85.0, 70.0, 45.0, 20.0)
    safety_months: Tuple[float, ...] = (0.0, 1.0, 3.0, 6.0, 12.0)
    safety_scores: Tuple[float, ...] = (10.0, 30.0, 60.0, 85.0, 100.0)
    sensible_threshold: float = 80.0
    caution_threshold: float = 60.0


@dataclass(frozen=True)
class StressConfig:
    income_drop: float = 0.20
    rate_rise_pct: float = 2.0
    expense_rise: float = 0.15
    income_free_months: int = 3


@dataclass(frozen=True)
class ScenarioConfig:
    price_cut: float = 0.20
    rate_rise_pct: float = 2.0
    business_use_pct: float = 100.0
    extra_deposit: float = 10_000.0
    term_reduction_years: int = 2


@dataclass(frozen=True)
class EngineConfig:
    fallbacks: Fallbacks = field(default_factory=Fallbacks)
    luxury_tax: LuxuryTaxConfig = field(default_factory=LuxuryTaxConfig)
    income_tax: IncomeTaxConfig = field(default_factory=IncomeTaxConfig)
    depreciation: DepreciationConfig = field(default_factory=DepreciationConfig)
    running_costs: RunningCostConfig = field(default_factory=RunningCostConfig)
    fringe_benefits: FringeBenefitConfig = field(default_factory=FringeBenefitConfig)
    reserves_sentinel_months: float = 99.0
    flags: FlagThresholds = field(default_factory=FlagThresholds)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    stress: StressConfig = field(default_factory=StressConfig)
    scenarios: ScenarioConfig = field(default_factory=ScenarioConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EngineConfig":
        """Build a config from parsed YAML; missing keys keep their defaults."""
        defaults = cls()

        fb = data.get("fallbacks") or {}
        fallbacks = Fallbacks(
            annual_distance=float(fb.get("annual_distance", defaults.fallbacks.annual_distance)),
            vehicle_category=str(fb.get("vehicle_category", defaults.fallbacks.vehicle_category)).lower(),
            ownership_years=float(fb.get("ownership_years", defaults.fallbacks.ownership_years)),
            max_ownership_years=int(fb.get("max_ownership_years", defaults.fallbacks.max_ownership_years)),
            loan_term_years=float(fb.get("loan_term_years", defaults.fallbacks.loan_term_years)),
            max_loan_term_years=int(fb.get("max_loan_term_years", defaults.fallbacks.max_loan_term_years)),
            interest_rate_pct=float(fb.get("interest_rate_pct", defaults.fallbacks.interest_rate_pct)),
            payment_method=str(fb.get("payment_method", defaults.fallbacks.payment_method)),
            entity_type=str(fb.get("entity_type", defaults.fallbacks.entity_type)),
            split_cash_fraction=float(fb.get("split_cash_fraction", defaults.fallbacks.split_cash_fraction)),
            split_tolerance=float(fb.get("split_tolerance", defaults.fallbacks.split_tolerance)),
        )

        lt = data.get("luxury_tax") or {}
        luxury_tax = LuxuryTaxConfig(
            threshold_standard=float(lt.get("threshold_standard", defaults.luxury_tax.threshold_standard)),
            threshold_fuel_efficient=float(
                lt.get("threshold_fuel_efficient", defaults.luxury_tax.threshold_fuel_efficient)
            ),
            rate=float(lt.get("rate", defaults.luxury_tax.rate)),
            luxury_category=str(lt.get("luxury_category", defaults.luxury_tax.luxury_category)).lower(),
        )

        it = data.get("income_tax") or {}
        brackets = defaults.income_tax.brackets
        if it.get("brackets"):
            brackets = tuple(
                TaxBracket(
                    lower=float(b.get("min", 0.0)),
                    upper=math.inf if b.get("max") is None else float(b["max"]),
                    rate=float(b["rate"]),
                )
                for b in sorted(it["brackets"], key=lambda b: float(b.get("min", 0.0)))
            )
        income_tax = IncomeTaxConfig(
            company_rate=float(it.get("company_rate", defaults.income_tax.company_rate)),
            brackets=brackets,
        )

        dp = data.get("depreciation") or {}
        depreciation = DepreciationConfig(
            instant_write_off_threshold=float(
                dp.get("instant_write_off_threshold", defaults.depreciation.instant_write_off_threshold)
            ),
            default_rate=float(dp.get("default_rate", defaults.depreciation.default_rate)),
            rates=_frozen(dp["rates"]) if dp.get("rates") else defaults.depreciation.rates,
        )

        rc = data.get("running_costs") or {}
        running_costs = RunningCostConfig(
            default_per_km=float(rc.get("default_per_km", defaults.running_costs.default_per_km)),
            per_km=_frozen(rc["per_km"]) if rc.get("per_km") else defaults.running_costs.per_km,
        )

        fbt = data.get("fringe_benefits") or {}
        fringe_benefits = FringeBenefitConfig(
            statutory_rate=float(fbt.get("statutory_rate", defaults.fringe_benefits.statutory_rate)),
            fbt_rate=float(fbt.get("fbt_rate", defaults.fringe_benefits.fbt_rate)),
        )

        cf = data.get("cash_flow") or {}
        sentinel = float(cf.get("reserves_sentinel_months", defaults.reserves_sentinel_months))

        fl = data.get("flags") or {}
        flags = FlagThresholds(
            **{name: float(fl.get(name, getattr(defaults.flags, name))) for name in FlagThresholds.__dataclass_fields__}
        )

        sc = data.get("scoring") or {}
        weights = sc.get("weights") or {}
        penalties = sc.get("penalties") or {}
        tx = sc.get("tax") or {}
        cf_curve = sc.get("cash_flow_curve") or {}
        safety_curve = sc.get("safety_curve") or {}
        verdicts = sc.get("verdicts") or {}
        d_sc = defaults.scoring
        scoring = ScoringConfig(
            tax_weight=float(weights.get("tax", d_sc.tax_weight)),
            cash_flow_weight=float(weights.get("cash_flow", d_sc.cash_flow_weight)),
            safety_weight=float(weights.get("safety", d_sc.safety_weight)),
            critical_penalty=float(penalties.get("critical", d_sc.critical_penalty)),
            warning_penalty=float(penalties.get("warning", d_sc.warning_penalty)),
            advisory_penalty=float(penalties.get("advisory", d_sc.advisory_penalty)),
            tax=TaxScoreConfig(
                **{name: float(tx.get(name, getattr(d_sc.tax, name))) for name in TaxScoreConfig.__dataclass_fields__}
            ),
            cash_flow_ratios=tuple(float(x) for x in cf_curve.get("ratios", d_sc.cash_flow_ratios)),
            cash_flow_scores=tuple(float(x) for x in cf_curve.get("scores", d_sc.cash_flow_scores)),
            safety_months=tuple(float(x) for x in safety_curve.get("months", d_sc.safety_months)),
            safety_scores=tuple(float(x) for x in safety_curve.get("scores", d_sc.safety_scores)),
            sensible_threshold=float(verdicts.get("sensible", d_sc.sensible_threshold)),
            caution_threshold=float(verdicts.get("caution", d_sc.caution_threshold)),
        )
        if len(scoring.cash_flow_ratios) != len(scoring.cash_flow_scores):
            raise ConfigurationError("scoring.cash_flow_curve ratios and scores must be the same length")
        if len(scoring.safety_months) != len(scoring.safety_scores):
            raise ConfigurationError("scoring.safety_curve months and scores must be the same length")

        st = data.get("stress") or {}
        stress = StressConfig(
            income_drop=float(st.get("income_drop", defaults.stress.income_drop)),
            rate_rise_pct=float(st.get("rate_rise_pct", defaults.stress.rate_rise_pct)),
            expense_rise=float(st.get("expense_rise", defaults.stress.expense_rise)),
            income_free_months=int(st.get("income_free_months", defaults.stress.income_free_months)),
        )

        sn = data.get("scenarios") or {}
        scenarios = ScenarioConfig(
            price_cut=float(sn.get("price_cut", defaults.scenarios.price_cut)),
            rate_rise_pct=float(sn.get("rate_rise_pct", defaults.scenarios.rate_rise_pct)),
            business_use_pct=float(sn.get("business_use_pct", defaults.scenarios.business_use_pct)),
            extra_deposit=float(sn.get("extra_deposit", defaults.scenarios.extra_deposit)),
            term_reduction_years=int(sn.get("term_reduction_years", defaults.scenarios.term_reduction_years)),
        )

        return cls(
            fallbacks=fallbacks,
            luxury_tax=luxury_tax,
            income_tax=income_tax,
            depreciation=depreciation,
            running_costs=running_costs,
            fringe_benefits=fringe_benefits,
            reserves_sentinel_months=sentinel,
            flags=flags,
            scoring=scoring,
            stress=stress,
            scenarios=scenarios,
        )


def load_config(path: Optional[str | Path] = None) -> EngineConfig:
    """Load rate tables from YAML. The env var overrides the packaged file."""
    env_path = os.getenv(RATES_ENV_VAR)
    cfg_path = Path(path or env_path or DEFAULT_RATES_PATH).expanduser()
    if not cfg_path.exists():
        raise ConfigurationError(f"Rates file not found: {cfg_path}")
    try:
        with open(cfg_path, "r") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Rates file is not valid YAML: {cfg_path}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Rates file must contain a mapping: {cfg_path}")
    try:
        config = EngineConfig.from_dict(data)
    except (KeyError, TypeError, ValueError) as exc:
        raise ConfigurationError(f"Rates file has an invalid value: {exc}") from exc
    logger.debug("Loaded rate tables", extra={"path": str(cfg_path)})
    return config


@lru_cache(maxsize=1)
def default_config() -> EngineConfig:
    return load_config()
