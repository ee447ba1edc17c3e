"""
Economic aggregation: cost-of-manufacturing proxy, total annual cost,
simple payback and net present value.
"""

from __future__ import annotations

import math
from typing import Any, Dict, Optional

import numpy as np

from . import schemas

COOLING_PRICE = 2.0  # $/GJ
SHIFT_COVERAGE_FACTOR = 4.8  # operators employed per position for 3-shift cover


def _kpi(kpis: Dict[str, Any], key: str) -> float:
    value = kpis.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    if math.isnan(value):
        return 0.0
    return float(value)


def compute_com(kpis: Dict[str, Any], economics: Optional[schemas.EconomicConfig] = None) -> float:
    """
    Simplified cost of manufacturing, $/h on the KPI rate basis.

    Missing or non-numeric KPIs contribute zero.
    """
    econ = economics or schemas.EconomicConfig()
    return (
        _kpi(kpis, "steam") * econ.steam_price
        + _kpi(kpis, "electricity") * econ.electricity_price
        + _kpi(kpis, "CO2_emissions") * econ.co2_price
        + _kpi(kpis, "CAPEX_proxy") * econ.capex_factor
    )


def calculate_total_annual_cost(
    kpis: Dict[str, Any],
    equipment_capex: float,
    economics: Optional[schemas.ExtendedEconomicConfig] = None,
) -> schemas.TotalAnnualCost:
    """
    Annualised capital plus operating cost.

    Utilities are priced per hour (steam and cooling in GJ/h, electricity
    in kW) and scaled by the operating hours.
    """
    econ = economics or schemas.ExtendedEconomicConfig()
    installed = equipment_capex * econ.installation_factor * (1.0 + econ.contingency_factor)
    annualized = installed * econ.annualization_factor

    hourly_utility = (
        _kpi(kpis, "steam") * econ.steam_price
        + _kpi(kpis, "electricity") * econ.electricity_price
        + _kpi(kpis, "cooling") * COOLING_PRICE
    )
    utility = hourly_utility * econ.operating_hours
    labor = econ.operators_per_shift * SHIFT_COVERAGE_FACTOR * econ.labor_cost
    maintenance = installed * econ.maintenance_factor
    opex = utility + labor + maintenance

    return schemas.TotalAnnualCost(
        installed_capex=installed,
        annualized_capex=annualized,
        utility_cost=utility,
        labor_cost=labor,
        maintenance_cost=maintenance,
        total_opex=opex,
        total_annual_cost=annualized + opex,
    )


def calculate_payback_period(installed_capex: float, annual_savings: float) -> float:
    if annual_savings <= 0:
        return math.inf
    return installed_capex / annual_savings


def calculate_npv(
    installed_capex: float, annual_cash_flow: float, rate: float = 0.10, life: int = 20
) -> float:
    years = np.arange(1, life + 1)
    discounted = annual_cash_flow / np.power(1.0 + rate, years)
    return float(-installed_capex + discounted.sum())
