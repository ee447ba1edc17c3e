"""
Thermodynamic property library.

Ideal-gas heat capacity and enthalpy polynomials, Clausius-Clapeyron vapor
pressure, Raoult K-values and a Rachford-Rice flash.  Component identity and
constants (CAS, MW, Tb, Tc, Pc, omega, Hf) come from `chemicals`;
:class:`ThermoEngine` binds a project's component list and is what the unit
operations receive.

Units: T in K, P in bar, flow in kmol/h, molar enthalpy in kJ/mol,
heat capacity in J/(mol·K).
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from functools import lru_cache
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np
from chemicals import MW, Pc, Tb, Tc, heat_capacity, identifiers, omega
from chemicals.reaction import Hfg
from loguru import logger
from numpy.polynomial import polynomial as poly
from scipy.optimize import brentq

R = 8.314  # J/(mol·K)
T_REF = 298.15  # K
P_ATM = 1.01325  # bar
TROUTON_CONSTANT = 88.0  # J/(mol·K), ΔHvap/Tb
LIQUID_DENSITY = 1000.0  # kg/m³


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ComponentProperties:
    """Pure-component property record."""

    id: str
    name: str
    cas: str
    MW: float  # g/mol
    Tb: float  # K
    cp_coeffs: Tuple[float, ...]  # J/(mol·K), a + bT + cT² + dT³ + eT⁴
    Hf: float = 0.0  # kJ/mol, ideal gas at 298.15 K
    Tc: Optional[float] = None  # K
    Pc: Optional[float] = None  # bar
    omega: Optional[float] = None


@dataclass
class StreamState:
    """Solved state of a material stream."""

    id: str
    name: str
    temperature: float  # K
    pressure: float  # bar
    flow: float  # kmol/h
    composition: Dict[str, float]
    phase: str = "L"  # "V", "L" or "VL"
    enthalpy: float = 0.0  # kJ/mol
    vapor_fraction: Optional[float] = None

    def component_flow(self, component: str) -> float:
        return self.flow * self.composition.get(component, 0.0)

    def copy(self, **changes) -> "StreamState":
        changes.setdefault("composition", dict(self.composition))
        return replace(self, **changes)


@dataclass
class FlashResult:
    vapor_fraction: float
    x: Dict[str, float]
    y: Dict[str, float]
    k_values: Dict[str, float] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Component resolution
# ---------------------------------------------------------------------------

# Ideal-gas Cp polynomials, J/(mol·K) = a + bT + cT² + dT³ + eT⁴, keyed by CAS.
# Species not listed here fall back to the Poling coefficients in `chemicals`.
CP_COEFFICIENTS: Dict[str, Tuple[float, float, float, float, float]] = {
    "1333-74-0": (27.14, 9.274e-3, -1.381e-5, 7.645e-9, 0.0),  # hydrogen
    "7440-37-1": (20.786, 0.0, 0.0, 0.0, 0.0),  # argon
    "74-82-8": (19.25, 5.213e-2, 1.197e-5, -1.132e-8, 0.0),  # methane
    "74-84-0": (6.90, 1.730e-1, -6.406e-5, 7.285e-9, 0.0),  # ethane
    "74-98-6": (-4.22, 3.063e-1, -1.586e-4, 3.215e-8, 0.0),  # propane
    "7727-37-9": (31.15, -1.357e-2, 2.680e-5, -1.168e-8, 0.0),  # nitrogen
    "7782-44-7": (25.46, 1.520e-2, -7.155e-6, 1.312e-9, 0.0),  # oxygen
    "124-38-9": (19.80, 7.344e-2, -5.602e-5, 1.715e-8, 0.0),  # carbon dioxide
    "7732-18-5": (33.46, 6.880e-3, 7.604e-6, -3.593e-9, 0.0),  # water
    "630-08-0": (30.87, -1.285e-2, 2.789e-5, -1.272e-8, 0.0),  # carbon monoxide
    "7446-09-5": (25.72, 5.786e-2, -3.812e-5, 8.612e-9, 0.0),  # sulfur dioxide
    "7783-06-4": (31.94, 1.436e-3, 2.432e-5, -1.176e-8, 0.0),  # hydrogen sulfide
    "71-43-2": (-36.19, 4.840e-1, -3.142e-4, 7.659e-8, 0.0),  # benzene
    "108-88-3": (-43.33, 5.853e-1, -3.827e-4, 9.335e-8, 0.0),  # toluene
    "67-56-1": (21.15, 7.092e-2, 2.587e-5, -2.852e-8, 0.0),  # methanol
    "64-17-5": (9.01, 2.141e-1, -8.390e-5, 1.373e-9, 0.0),  # ethanol
    "7664-41-7": (27.31, 2.383e-2, 1.707e-5, -1.185e-8, 0.0),  # ammonia
    "141-43-5": (61.50, 2.800e-1, -1.600e-4, 3.500e-8, 0.0),  # monoethanolamine
    "111-42-2": (47.20, 4.950e-1, -2.850e-4, 6.500e-8, 0.0),  # diethanolamine
    "105-59-9": (52.30, 5.420e-1, -3.120e-4, 7.100e-8, 0.0),  # methyldiethanolamine
    "110-85-0": (38.50, 3.650e-1, -2.100e-4, 4.800e-8, 0.0),  # piperazine
}

# Formula-style ids and shorthand used in flowsheets
_COMPOUND_ALIASES: Dict[str, str] = {
    "h2": "hydrogen",
    "ar": "argon",
    "ch4": "methane",
    "c2h6": "ethane",
    "c3h8": "propane",
    "n2": "nitrogen",
    "o2": "oxygen",
    "co2": "carbon dioxide",
    "co": "carbon monoxide",
    "h2o": "water",
    "steam": "water",
    "so2": "sulfur dioxide",
    "h2s": "hydrogen sulfide",
    "c6h6": "benzene",
    "c7h8": "toluene",
    "ch3oh": "methanol",
    "meoh": "methanol",
    "c2h5oh": "ethanol",
    "etoh": "ethanol",
    "nh3": "ammonia",
    "mea": "monoethanolamine",
    "dea": "diethanolamine",
    "mdea": "methyl diethanolamine",
    "methyldiethanolamine": "methyl diethanolamine",
    "pz": "piperazine",
    "n_hexane": "n-hexane",
    "n_heptane": "n-heptane",
}


def _normalize_compound_name(key: str) -> str:
    lower = key.strip().lower()
    if lower in _COMPOUND_ALIASES:
        return _COMPOUND_ALIASES[lower]
    normalized = key.replace("_", " ").strip()
    return _COMPOUND_ALIASES.get(normalized.lower(), normalized)


def resolve_cas(key: str) -> Optional[str]:
    """CAS number for a component id, name, formula or alias; None if unrecognised."""
    if not key or not key.strip():
        return None
    for candidate in (_normalize_compound_name(key), key):
        try:
            return identifiers.CAS_from_any(candidate)
        except Exception:
            continue
    logger.debug("Could not resolve compound '{}'", key)
    return None


def _poling_cp(cas: str) -> Optional[Tuple[float, ...]]:
    """Cp coefficients from the Poling databank, scaled from Cp/R to J/(mol·K)."""
    data = heat_capacity.Cp_data_Poling
    if cas not in data.index:
        return None
    row = data.loc[cas]
    coeffs = [float(row[c]) for c in ("a0", "a1", "a2", "a3", "a4")]
    if not any(math.isnan(a) for a in coeffs):
        return tuple(R * a for a in coeffs)
    cpg = float(row["Cpg"])
    if math.isnan(cpg):
        return None
    return (cpg, 0.0, 0.0, 0.0, 0.0)


def _optional(getter, cas: str) -> Optional[float]:
    value = getter(cas)
    return None if value is None else float(value)


@lru_cache(maxsize=None)
def lookup_component(key: str) -> Optional[ComponentProperties]:
    """
    Pure-component record for an id, name, formula or alias.

    Identity and constants come from `chemicals`; a component is only usable
    when its molecular weight, normal boiling point and ideal-gas Cp are all
    known, otherwise None is returned.
    """
    cas = resolve_cas(key)
    if cas is None:
        return None
    cp = CP_COEFFICIENTS.get(cas) or _poling_cp(cas)
    mw = _optional(MW, cas)
    tb = _optional(Tb, cas)
    if cp is None or mw is None or tb is None:
        logger.debug("Incomplete property data for '{}' ({})", key, cas)
        return None
    pc = _optional(Pc, cas)
    hf = _optional(Hfg, cas)
    return ComponentProperties(
        id=key,
        name=_normalize_compound_name(key),
        cas=cas,
        MW=mw,
        Tb=tb,
        cp_coeffs=tuple(cp),
        Hf=0.0 if hf is None else hf / 1000.0,
        Tc=_optional(Tc, cas),
        Pc=None if pc is None else pc / 1e5,
        omega=_optional(omega, cas),
    )


def require_component(key: str) -> ComponentProperties:
    comp = lookup_component(key)
    if comp is None:
        raise ValueError(f"No property data for component '{key}'")
    return comp


# ---------------------------------------------------------------------------
# Pure-component properties
# ---------------------------------------------------------------------------


def ideal_gas_cp(comp: ComponentProperties, T: float) -> float:
    """Ideal-gas heat capacity, J/(mol·K)."""
    return float(poly.polyval(T, comp.cp_coeffs))


def ideal_gas_enthalpy(comp: ComponentProperties, T: float) -> float:
    """Ideal-gas enthalpy relative to the elements at 298.15 K, kJ/mol."""
    integral = poly.polyint(comp.cp_coeffs)
    sensible = float(poly.polyval(T, integral) - poly.polyval(T_REF, integral))
    return comp.Hf + sensible / 1000.0


def vapor_pressure(comp: ComponentProperties, T: float) -> float:
    """
    Vapor pressure (bar) from Clausius-Clapeyron anchored at the normal
    boiling point, with Trouton's rule for the heat of vaporization.
    """
    if T <= 0:
        raise ValueError(f"Temperature must be positive, got {T}")
    hvap = TROUTON_CONSTANT * comp.Tb  # J/mol
    exponent = (hvap / R) * (1.0 / comp.Tb - 1.0 / T)
    exponent = max(-50.0, min(50.0, exponent))
    return P_ATM * math.exp(exponent)


# ---------------------------------------------------------------------------
# Mixture properties
# ---------------------------------------------------------------------------


def mixture_enthalpy(composition: Dict[str, float], T: float, P: float = P_ATM) -> float:
    """Mole-fraction-weighted ideal-gas enthalpy, kJ/mol.  Unknown species contribute nothing."""
    total = 0.0
    for key, z in composition.items():
        comp = lookup_component(key)
        if comp is None or z == 0:
            continue
        total += z * ideal_gas_enthalpy(comp, T)
    return total


def average_molecular_weight(composition: Dict[str, float], default: float = 50.0) -> float:
    mw = 0.0
    known = 0.0
    for key, z in composition.items():
        comp = lookup_component(key)
        if comp is None:
            continue
        mw += z * comp.MW
        known += z
    return mw if known > 0 else default


def density(composition: Dict[str, float], T: float, P: float, phase: str) -> float:
    """Mixture density, kg/m³.  Ideal gas for vapor, a constant for liquid."""
    if phase == "V":
        mw = average_molecular_weight(composition)
        return P * 1e5 * mw / (R * T * 1000.0)
    return LIQUID_DENSITY


def k_values(components: Iterable[str], T: float, P: float) -> Dict[str, float]:
    """Raoult's-law equilibrium ratios Psat/P."""
    if P <= 0:
        raise ValueError(f"Pressure must be positive, got {P}")
    return {c: vapor_pressure(require_component(c), T) / P for c in components}


def rachford_rice_residual(z: Dict[str, float], K: Dict[str, float], V: float) -> float:
    return sum(z[c] * (K[c] - 1.0) / (1.0 + V * (K[c] - 1.0)) for c in z)


def rachford_rice(z: Dict[str, float], K: Dict[str, float]) -> float:
    """
    Solve Σ zᵢ(Kᵢ−1)/(1+V(Kᵢ−1)) = 0 for the vapor fraction V in [0, 1].

    The residual is monotonically decreasing in V, so the signs at the
    bracket ends decide the single-phase cases.
    """
    present = {c: zi for c, zi in z.items() if zi > 0}
    if not present:
        raise ValueError("Flash feed has an empty composition")
    f0 = rachford_rice_residual(present, K, 0.0)
    if f0 <= 0:
        return 0.0
    f1 = rachford_rice_residual(present, K, 1.0)
    if f1 >= 0:
        return 1.0
    return float(
        brentq(lambda V: rachford_rice_residual(present, K, V), 0.0, 1.0, xtol=1e-12, rtol=1e-12)
    )


def _normalize(fractions: Dict[str, float]) -> Dict[str, float]:
    total = sum(fractions.values())
    if total <= 0:
        return dict(fractions)
    return {c: v / total for c, v in fractions.items()}


def flash_composition(
    z: Dict[str, float], K: Dict[str, float], V: float
) -> Tuple[Dict[str, float], Dict[str, float]]:
    """Liquid (x) and vapor (y) compositions at vapor fraction V."""
    x = {c: zi / (1.0 + V * (K[c] - 1.0)) for c, zi in z.items() if zi > 0}
    y = {c: K[c] * xi for c, xi in x.items()}
    return _normalize(x), _normalize(y)


def normalize_phase(phase: Optional[str], default: str = "L") -> str:
    if phase is None:
        return default
    p = phase.strip().upper()
    if p in ("V", "VAPOR", "GAS", "G"):
        return "V"
    if p in ("L", "LIQUID"):
        return "L"
    if p in ("VL", "LV", "MIXED", "TWO-PHASE"):
        return "VL"
    return default


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class ThermoEngine:
    """Property calculations bound to a project's component list."""

    def __init__(self, components: Optional[List] = None) -> None:
        self.components = list(components or [])
        self.solute = "CO2"
        self.solvent: Optional[str] = None
        for comp in self.components:
            if comp.role == "solute":
                self.solute = comp.id
            elif comp.role == "solvent" and self.solvent is None:
                self.solvent = comp.id
        missing = [c.id for c in self.components if lookup_component(c.id) is None]
        if missing:
            logger.debug("Components without property data: {}", missing)

    def enthalpy(self, composition: Dict[str, float], T: float, P: float = P_ATM) -> float:
        return mixture_enthalpy(composition, T, P)

    def molecular_weight(self, composition: Dict[str, float]) -> float:
        return average_molecular_weight(composition)

    def density(self, composition: Dict[str, float], T: float, P: float, phase: str) -> float:
        return density(composition, T, P, phase)

    def flash(self, z: Dict[str, float], T: float, P: float) -> FlashResult:
        present = [c for c, zi in z.items() if zi > 0]
        K = k_values(present, T, P)
        V = rachford_rice(z, K)
        x, y = flash_composition(z, K, V)
        return FlashResult(vapor_fraction=V, x=x, y=y, k_values=K)

    def temperature_for_enthalpy(
        self, composition: Dict[str, float], H_target: float, T_guess: float, P: float = P_ATM
    ) -> float:
        """Invert the mixture enthalpy for temperature by bracketed root finding."""
        def residual(T: float) -> float:
            return self.enthalpy(composition, T, P) - H_target

        lo, hi = max(10.0, T_guess - 100.0), T_guess + 100.0
        for _ in range(30):
            if residual(lo) <= 0 <= residual(hi):
                return float(brentq(residual, lo, hi, xtol=1e-8))
            lo, hi = max(10.0, lo - 200.0), hi + 200.0
        raise ValueError("Could not bracket outlet temperature for the specified duty")

    def make_stream(
        self,
        id: str,
        name: str,
        T: float,
        P: float,
        flow: float,
        composition: Dict[str, float],
        phase: str = "L",
        vapor_fraction: Optional[float] = None,
    ) -> StreamState:
        return StreamState(
            id=id,
            name=name,
            temperature=T,
            pressure=P,
            flow=max(flow, 0.0),
            composition=dict(composition),
            phase=phase,
            enthalpy=self.enthalpy(composition, T, P),
            vapor_fraction=vapor_fraction,
        )


def composition_sum(composition: Dict[str, float]) -> float:
    return float(np.sum(list(composition.values()))) if composition else 0.0
