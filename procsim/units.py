"""
Unit conversion helpers.

Canonical internal units: temperature K, pressure bar, molar flow kmol/h,
duty and power kW.  Unknown unit strings are returned unchanged.
"""

from __future__ import annotations

from typing import Dict, Optional

from loguru import logger

from .schemas import CountParam, NumberParam, Quantity, QuantityParam, param_value

_PRESSURE_TO_BAR: Dict[str, float] = {
    "bar": 1.0,
    "bara": 1.0,
    "Pa": 1e-5,
    "kPa": 1e-2,
    "MPa": 10.0,
    "atm": 1.01325,
    "psi": 0.0689476,
}

_FLOW_TO_KMOL_H: Dict[str, float] = {
    "kmol/h": 1.0,
    "mol/h": 1e-3,
    "mol/s": 3.6,
    "kmol/s": 3600.0,
}

_POWER_TO_KW: Dict[str, float] = {
    "kW": 1.0,
    "W": 1e-3,
    "MW": 1e3,
    "kJ/h": 1.0 / 3600.0,
    "MJ/h": 1.0 / 3.6,
}


def convert_temperature(value: float, unit: str) -> float:
    """Convert a temperature to K."""
    if unit == "K":
        return value
    if unit in ("C", "degC", "°C"):
        return value + 273.15
    if unit in ("F", "degF", "°F"):
        return (value - 32.0) * 5.0 / 9.0 + 273.15
    if unit == "R":
        return value * 5.0 / 9.0
    logger.debug("Unknown temperature unit '{}', using value as K", unit)
    return value


def convert_pressure(value: float, unit: str) -> float:
    """Convert a pressure to bar."""
    factor = _PRESSURE_TO_BAR.get(unit)
    if factor is None:
        logger.debug("Unknown pressure unit '{}', using value as bar", unit)
        return value
    return value * factor


def convert_molar_flow(value: float, unit: str) -> float:
    """Convert a molar flow to kmol/h."""
    factor = _FLOW_TO_KMOL_H.get(unit)
    if factor is None:
        logger.debug("Unknown flow unit '{}', using value as kmol/h", unit)
        return value
    return value * factor


def convert_power(value: float, unit: str) -> float:
    """Convert a duty or power to kW."""
    factor = _POWER_TO_KW.get(unit)
    if factor is None:
        logger.debug("Unknown power unit '{}', using value as kW", unit)
        return value
    return value * factor


# ---------------------------------------------------------------------------
# Parameter readers
#
# Plain numbers and integer counts are taken as already canonical.
# ---------------------------------------------------------------------------


def _read(param, converter) -> Optional[float]:
    if param is None:
        return None
    if isinstance(param, QuantityParam):
        return converter(param.q.value, param.q.unit)
    if isinstance(param, (NumberParam, CountParam)):
        return param_value(param)
    raise TypeError(f"Unsupported parameter value: {param!r}")


def read_temperature(param) -> Optional[float]:
    return _read(param, convert_temperature)


def read_pressure(param) -> Optional[float]:
    return _read(param, convert_pressure)


def read_power(param) -> Optional[float]:
    return _read(param, convert_power)


def read_number(param) -> Optional[float]:
    if param is None:
        return None
    return param_value(param)


def quantity_temperature(q: Optional[Quantity]) -> Optional[float]:
    return None if q is None else convert_temperature(q.value, q.unit)


def quantity_pressure(q: Optional[Quantity]) -> Optional[float]:
    return None if q is None else convert_pressure(q.value, q.unit)


def quantity_flow(q: Optional[Quantity]) -> Optional[float]:
    return None if q is None else convert_molar_flow(q.value, q.unit)
