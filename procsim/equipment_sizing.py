"""
Equipment sizing estimates and purchased-cost correlations.

Preliminary sizing from solved block results (duty, power, flows) and
Guthrie/Turton power-law costs, cost = k·(x/x_ref)^n in USD.
"""

from __future__ import annotations

import math
from typing import Dict, Optional, Tuple

from loguru import logger

from . import schemas
from .thermo_engine import StreamState, average_molecular_weight, density

U_DEFAULT = 500.0  # W/(m²·K)
STEAM_T = 453.0  # K, condensing
COOLING_WATER_IN = 298.0  # K
COOLING_WATER_OUT = 308.0  # K

MIN_HX_AREA = 1.0  # m²
MIN_PUMP_POWER = 0.1  # kW
MIN_COMPRESSOR_POWER = 1.0  # kW
MIN_VESSEL_VOLUME = 0.1  # m³
MIN_LMTD = 5.0  # K
CROSS_LMTD = 10.0  # K

COLUMN_RADIUS = 1.0  # m
COLUMN_HEIGHT = 10.0  # m
COLUMN_COST_FACTOR = 3.0
REACTOR_RESIDENCE_H = 1.0
MIN_REACTOR_VOLUME = 1.0  # m³
REACTOR_COST_FACTOR = 2.0
VALVE_COST = 5000.0

_COLUMN_TYPES = ("Absorber", "Stripper", "DistillationColumn")


def lmtd(dT1: float, dT2: float) -> float:
    """Log-mean temperature difference with degenerate-case handling."""
    if abs(dT1 - dT2) < 0.1:
        value = (dT1 + dT2) / 2.0
    elif dT1 <= 0 or dT2 <= 0:
        value = CROSS_LMTD
    else:
        value = (dT1 - dT2) / math.log(dT1 / dT2)
    return max(value, MIN_LMTD)


def size_heat_exchanger(
    duty_kw: float, Th_in: float, Th_out: float, Tc_in: float, Tc_out: float
) -> Tuple[float, float]:
    """
    Area from Q = U·A·LMTD for a counter-current exchanger.

    Returns (area m², cost USD); cost = 32800·(A/100)^0.65.
    """
    q_w = abs(duty_kw) * 1000.0
    area = max(q_w / (U_DEFAULT * lmtd(Th_in - Tc_out, Th_out - Tc_in)), MIN_HX_AREA)
    return area, 32800.0 * (area / 100.0) ** 0.65


def size_pump(power_kw: float) -> Tuple[float, float]:
    p = max(abs(power_kw), MIN_PUMP_POWER)
    return p, 9840.0 * (p / 10.0) ** 0.55


def size_compressor(power_kw: float) -> Tuple[float, float]:
    p = max(abs(power_kw), MIN_COMPRESSOR_POWER)
    return p, 98400.0 * (p / 100.0) ** 0.46


def size_vessel(volume_m3: float) -> Tuple[float, float]:
    v = max(abs(volume_m3), MIN_VESSEL_VOLUME)
    return v, 17640.0 * (v / 1.0) ** 0.62


def size_column() -> Tuple[float, float]:
    """Fixed 1 m radius × 10 m shell; (volume m³, cost USD)."""
    volume, cost = size_vessel(math.pi * COLUMN_RADIUS ** 2 * COLUMN_HEIGHT)
    return volume, cost * COLUMN_COST_FACTOR


def size_reactor(inlet_flow_m3_h: float) -> Tuple[float, float]:
    volume = max(inlet_flow_m3_h * REACTOR_RESIDENCE_H, MIN_REACTOR_VOLUME)
    volume, cost = size_vessel(volume)
    return volume, cost * REACTOR_COST_FACTOR


def size_valve() -> Tuple[float, float]:
    return 1.0, VALVE_COST


def estimate_flash_volume(liquid_flow_m3_h: float) -> float:
    """Drum volume for 5 minutes of liquid residence at 50 % holdup."""
    residence_h = 5.0 / 60.0
    holdup = 0.5
    return max(liquid_flow_m3_h * residence_h / holdup, MIN_VESSEL_VOLUME)


def liquid_volumetric_flow(stream: StreamState) -> float:
    """m³/h of a stream treated as liquid."""
    mw = average_molecular_weight(stream.composition)
    rho = density(stream.composition, stream.temperature, stream.pressure, "L")
    return stream.flow * mw / rho


# ---------------------------------------------------------------------------
# Aggregate
# ---------------------------------------------------------------------------


def _first(ports: Dict[str, str], streams: Dict[str, StreamState]) -> Optional[StreamState]:
    for stream_id in ports.values():
        if stream_id in streams:
            return streams[stream_id]
    return None


def _liquid_outlet(result, streams: Dict[str, StreamState]) -> Optional[StreamState]:
    for stream_id in result.outlets.values():
        state = streams.get(stream_id)
        if state is not None and state.phase == "L":
            return state
    return None


def size_block(result, streams: Dict[str, StreamState]) -> Optional[schemas.EquipmentSize]:
    """Size one solved block; None for zero-cost or unsized blocks."""
    inlet = _first(result.inlets, streams)
    outlet = _first(result.outlets, streams)

    def entry(param: str, value: float, unit: str, cost: float) -> schemas.EquipmentSize:
        return schemas.EquipmentSize(
            block_id=result.block_id, block_type=result.block_type,
            sizing_param=param, value=value, unit=unit, cost=cost,
        )

    kind = result.block_type
    if kind in ("Heater", "Cooler"):
        if not result.duty_kw or inlet is None or outlet is None:
            return None
        if result.duty_kw > 0:
            temps = (STEAM_T, STEAM_T, inlet.temperature, outlet.temperature)
        else:
            temps = (inlet.temperature, outlet.temperature, COOLING_WATER_IN, COOLING_WATER_OUT)
        area, cost = size_heat_exchanger(result.duty_kw, *temps)
        return entry("area", area, "m²", cost)

    if kind == "HeatExchanger":
        if not result.duty_kw:
            return None
        d = result.details
        area, cost = size_heat_exchanger(
            result.duty_kw, d["hot_T_in"], d["hot_T_out"], d["cold_T_in"], d["cold_T_out"]
        )
        return entry("area", area, "m²", cost)

    if kind == "Pump":
        if not result.power_kw:
            return None
        power, cost = size_pump(result.power_kw)
        return entry("power", power, "kW", cost)

    if kind == "Compressor":
        if not result.power_kw:
            return None
        power, cost = size_compressor(result.power_kw)
        return entry("power", power, "kW", cost)

    if kind in ("Flash", "Separator"):
        source = _liquid_outlet(result, streams) or inlet
        if source is None:
            return None
        volume, cost = size_vessel(estimate_flash_volume(liquid_volumetric_flow(source)))
        return entry("volume", volume, "m³", cost)

    if kind in _COLUMN_TYPES:
        volume, cost = size_column()
        return entry("volume", volume, "m³", cost)

    if kind == "Reactor":
        if inlet is None:
            return None
        volume, cost = size_reactor(liquid_volumetric_flow(inlet))
        return entry("volume", volume, "m³", cost)

    if kind == "Valve":
        count, cost = size_valve()
        return entry("count", count, "unit", cost)

    return None


def calculate_equipment_capex(block_results: Dict, streams: Dict[str, StreamState]) -> schemas.CAPEXResult:
    """Sum purchased equipment cost over all solved blocks."""
    equipment = []
    for result in block_results.values():
        if result.status != "done":
            continue
        sizing = size_block(result, streams)
        if sizing is not None:
            equipment.append(sizing)
            logger.debug(
                "{}: {} = {:.2f} {}, cost = ${:.0f}",
                sizing.block_id, sizing.sizing_param, sizing.value, sizing.unit, sizing.cost,
            )
    total = sum(e.cost for e in equipment)
    logger.info("Total equipment CAPEX: ${:.0f}", total)
    return schemas.CAPEXResult(equipment=equipment, total_capex=total)
