"""
Unit operation models for the sequential-modular solver.

Each unit operation takes its solved inlet StreamState(s) and its own
parameter set, and returns outlet StreamState(s) keyed by port name.
Duty and power are reported in kW; positive duty means heat added.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple, Type

from loguru import logger

from . import schemas
from .thermo_engine import P_ATM, R, StreamState, ThermoEngine, ideal_gas_cp, lookup_component
from .units import read_number, read_power, read_pressure, read_temperature

NON_PROCESS_TYPES = {"Sink", "TextBox", "Annotation"}

_VAPOR_PORT_HINTS = ("vapor", "gas", "overhead", "top", "light")
_LIQUID_PORT_HINTS = ("liquid", "heavy", "bottom", "rich", "lean", "solvent")


def _port_kind(port: str) -> Optional[str]:
    lowered = port.lower()
    if any(h in lowered for h in _VAPOR_PORT_HINTS):
        return "V"
    if any(h in lowered for h in _LIQUID_PORT_HINTS):
        return "L"
    return None


def classify_ports(ports: List[str]) -> Tuple[Optional[str], Optional[str]]:
    """
    Pick the (vapor, liquid) ports from a list of port names.

    Names are matched first; unmatched ports fill the remaining slots in
    order, vapor before liquid.
    """
    vapor = next((p for p in ports if _port_kind(p) == "V"), None)
    liquid = next((p for p in ports if _port_kind(p) == "L"), None)
    for port in ports:
        if port in (vapor, liquid):
            continue
        if vapor is None:
            vapor = port
        elif liquid is None:
            liquid = port
    return vapor, liquid


def _kw(flow_kmol_h: float, dH_kj_mol: float) -> float:
    return flow_kmol_h * dH_kj_mol * 1000.0 / 3600.0


def _enthalpy_flow_kw(streams) -> float:
    return sum(_kw(s.flow, s.enthalpy) for s in streams)


# ---------------------------------------------------------------------------
# Base class
# ---------------------------------------------------------------------------


class UnitOpBase(ABC):
    """Abstract base for all unit operations."""

    def __init__(self, block: schemas.Block, engine: ThermoEngine) -> None:
        self.id = block.id
        self.name = block.label
        self.type = block.type
        self.params = block.params
        self.engine = engine
        self.duty_kw: float = 0.0
        self.power_kw: float = 0.0
        self.details: Dict[str, float] = {}

    @abstractmethod
    def calculate(
        self, inlets: Dict[str, StreamState], outlet_ports: List[str]
    ) -> Dict[str, StreamState]:
        """
        Calculate outlet streams from inlet streams.

        Parameters
        ----------
        inlets : dict mapping inlet port name -> StreamState
        outlet_ports : connected outlet port names, in stream order

        Returns
        -------
        dict mapping outlet port name -> StreamState
        """

    def _temperature(self, key: str) -> Optional[float]:
        return read_temperature(self.params.get(key))

    def _pressure(self, key: str) -> Optional[float]:
        return read_pressure(self.params.get(key))

    def _number(self, key: str, default: Optional[float] = None) -> Optional[float]:
        value = read_number(self.params.get(key))
        return default if value is None else value

    def _single_inlet(self, inlets: Dict[str, StreamState]) -> StreamState:
        if not inlets:
            raise ValueError(f"{self.type} '{self.name}' has no inlet stream")
        if len(inlets) > 1:
            raise ValueError(f"{self.type} '{self.name}' expects a single inlet, got {len(inlets)}")
        return next(iter(inlets.values()))

    def _stream(self, T, P, flow, composition, phase, vapor_fraction=None) -> StreamState:
        return self.engine.make_stream("", "", T, P, flow, composition, phase, vapor_fraction)


# ---------------------------------------------------------------------------
# Flash / Separator
# ---------------------------------------------------------------------------


class FlashOp(UnitOpBase):
    """
    Isothermal two-phase flash.

    K-values from Raoult's law at drum conditions, vapor fraction from
    Rachford-Rice.  Drum T and P default to the inlet conditions; when
    they are not overridden the flash is adiabatic with zero duty.
    """

    def calculate(self, inlets, outlet_ports):
        feed = self._single_inlet(inlets)
        T = self._temperature("T")
        P = self._pressure("P")
        drum_T = feed.temperature if T is None else T
        drum_P = feed.pressure if P is None else P

        result = self.engine.flash(feed.composition, drum_T, drum_P)
        V = result.vapor_fraction
        vapor_port, liquid_port = classify_ports(outlet_ports)

        outlets: Dict[str, StreamState] = {}
        if vapor_port is not None:
            outlets[vapor_port] = self._stream(drum_T, drum_P, feed.flow * V, result.y, "V", 1.0)
        if liquid_port is not None:
            outlets[liquid_port] = self._stream(drum_T, drum_P, feed.flow * (1.0 - V), result.x, "L", 0.0)

        if T is not None or P is not None:
            product_h = _kw(feed.flow * V, self.engine.enthalpy(result.y, drum_T, drum_P)) + _kw(
                feed.flow * (1.0 - V), self.engine.enthalpy(result.x, drum_T, drum_P)
            )
            self.duty_kw = product_h - _kw(feed.flow, feed.enthalpy)
        self.details = {"vapor_fraction": V, "T": drum_T, "P": drum_P}
        logger.debug("Flash '{}': V={:.4f} at {:.2f} K, {:.3f} bar", self.name, V, drum_T, drum_P)
        return outlets


# ---------------------------------------------------------------------------
# Mixer
# ---------------------------------------------------------------------------


class MixerOp(UnitOpBase):
    """
    Adiabatic mixer.

    Flow is summed, composition and molar enthalpy are flow-weighted, outlet
    pressure is the lowest inlet pressure.  Outlet temperature is the
    flow-weighted mean of the inlet temperatures, a linear approximation
    rather than an inversion of the enthalpy balance.
    """

    def calculate(self, inlets, outlet_ports):
        if not inlets:
            raise ValueError(f"Mixer '{self.name}' has no inlet stream")
        streams = list(inlets.values())
        total = sum(s.flow for s in streams)

        if total > 0:
            weights = [s.flow / total for s in streams]
        else:
            weights = [1.0 / len(streams)] * len(streams)

        composition: Dict[str, float] = {}
        for s, w in zip(streams, weights):
            for comp, z in s.composition.items():
                composition[comp] = composition.get(comp, 0.0) + w * z

        phases = {s.phase for s in streams}
        mixed = StreamState(
            id="",
            name="",
            temperature=sum(w * s.temperature for s, w in zip(streams, weights)),
            pressure=min(s.pressure for s in streams),
            flow=total,
            composition=composition,
            phase=phases.pop() if len(phases) == 1 else "VL",
            enthalpy=sum(w * s.enthalpy for s, w in zip(streams, weights)),
        )
        return {port: mixed.copy() for port in outlet_ports}


# ---------------------------------------------------------------------------
# Splitter
# ---------------------------------------------------------------------------


class SplitterOp(UnitOpBase):
    """
    Flow splitter.  Intensive properties are copied; only flow scales.

    ``split1`` .. ``splitK`` give fractions for outlets in port order
    (``split`` is accepted for the first outlet).  Outlets without a fraction
    share the remainder equally.  When every outlet is given a fraction they
    must total 1.
    """

    def _fractions(self, n: int) -> List[Optional[float]]:
        fractions: List[Optional[float]] = [self._number(f"split{i + 1}") for i in range(n)]
        if fractions and fractions[0] is None:
            fractions[0] = self._number("split")
        return fractions

    def calculate(self, inlets, outlet_ports):
        feed = self._single_inlet(inlets)
        n = len(outlet_ports)
        if n == 0:
            return {}

        given = self._fractions(n)
        for f in given:
            if f is not None and not 0.0 <= f <= 1.0:
                raise ValueError(f"Splitter '{self.name}' fraction {f} outside [0, 1]")
        specified = sum(f for f in given if f is not None)
        if specified > 1.0 + 1e-9:
            raise ValueError(f"Splitter '{self.name}' fractions sum to {specified:.4f} > 1")

        free = [i for i, f in enumerate(given) if f is None]
        if free:
            share = (1.0 - specified) / len(free)
            fractions = [share if f is None else f for f in given]
        else:
            if abs(specified - 1.0) > 1e-6:
                raise ValueError(
                    f"Splitter '{self.name}' fractions sum to {specified:.4f}; "
                    "they must total 1 when every outlet is specified"
                )
            fractions = list(given)

        self.details = {f"fraction_{port}": f for port, f in zip(outlet_ports, fractions)}
        return {port: feed.copy(flow=feed.flow * f) for port, f in zip(outlet_ports, fractions)}


# ---------------------------------------------------------------------------
# Pump
# ---------------------------------------------------------------------------


class PumpOp(UnitOpBase):
    """
    Liquid pump.  Pressure rise ``dP`` (default 5 bar) or ``outletP``.

    Power [kW] = (F·MW/3600)·ΔP[Pa] / (ρ·η·1000) with η = 0.75.
    """

    EFFICIENCY = 0.75
    DEFAULT_RISE = 5.0  # bar

    def calculate(self, inlets, outlet_ports):
        feed = self._single_inlet(inlets)
        outlet_p = self._pressure("outletP")
        dP = self._pressure("dP")
        if outlet_p is not None:
            dP = outlet_p - feed.pressure
        elif dP is None:
            dP = self.DEFAULT_RISE
        if dP < 0:
            raise ValueError(f"Pump '{self.name}' outlet pressure below inlet pressure")

        mw = self.engine.molecular_weight(feed.composition)
        rho = self.engine.density(feed.composition, feed.temperature, feed.pressure, "L")
        mass_flow = feed.flow * mw / 3600.0  # kg/s
        self.power_kw = mass_flow * dP * 1e5 / (rho * self.EFFICIENCY * 1000.0)
        self.details = {"dP": dP, "efficiency": self.EFFICIENCY}

        out = feed.copy(pressure=feed.pressure + dP)
        return {port: out.copy() for port in outlet_ports}


# ---------------------------------------------------------------------------
# Heater / Cooler
# ---------------------------------------------------------------------------


class HeaterCoolerOp(UnitOpBase):
    """
    Heater or cooler.

    Outlet temperature from ``outletT``; otherwise solved from ``duty`` (kW);
    otherwise inlet ± 50 K.  Optional ``dP`` pressure drop.
    """

    DEFAULT_DELTA_T = 50.0

    def calculate(self, inlets, outlet_ports):
        feed = self._single_inlet(inlets)
        dP = self._pressure("dP") or 0.0
        P_out = feed.pressure - dP
        if P_out <= 0:
            raise ValueError(f"{self.type} '{self.name}' pressure drop exceeds inlet pressure")

        T_out = self._temperature("outletT")
        duty = read_power(self.params.get("duty"))
        if T_out is None and duty is not None:
            if feed.flow <= 0:
                raise ValueError(f"{self.type} '{self.name}' cannot apply a duty to a zero-flow stream")
            if self.type == "Cooler" and duty > 0:
                duty = -duty
            H_target = feed.enthalpy + duty * 3600.0 / (feed.flow * 1000.0)
            T_out = self.engine.temperature_for_enthalpy(feed.composition, H_target, feed.temperature, P_out)
        elif T_out is None:
            sign = -1.0 if self.type == "Cooler" else 1.0
            T_out = feed.temperature + sign * self.DEFAULT_DELTA_T

        if T_out <= 0:
            raise ValueError(f"{self.type} '{self.name}' outlet temperature {T_out:.2f} K is not physical")

        H_out = self.engine.enthalpy(feed.composition, T_out, P_out)
        self.duty_kw = _kw(feed.flow, H_out - feed.enthalpy)
        self.details = {"T_in": feed.temperature, "T_out": T_out}
        out = feed.copy(temperature=T_out, pressure=P_out, enthalpy=H_out)
        return {port: out.copy() for port in outlet_ports}


# ---------------------------------------------------------------------------
# Heat exchanger
# ---------------------------------------------------------------------------


class HeatExchangerOp(UnitOpBase):
    """
    Two-stream counter-current exchanger: hot side ``in`` → ``out``, cold
    side ``cold-in`` → ``cold-out``.

    The exchanged duty Q (kW, heat moved from hot to cold) comes from, in
    order of precedence:
      - ``hotOutletT``
      - ``coldOutletT``
      - ``duty``
      - ``effectiveness`` (default 0.80) times the smaller of the two
        enthalpy changes that would bring each side to the other's inlet
        temperature.
    Both outlet temperatures are then solved from the enthalpy balance.
    """

    DEFAULT_EFFECTIVENESS = 0.80

    @staticmethod
    def _is_cold(port: str) -> bool:
        return "cold" in port.lower()

    def _split_inlets(self, inlets: Dict[str, StreamState]) -> Tuple[StreamState, StreamState]:
        if len(inlets) != 2:
            raise ValueError(f"HeatExchanger '{self.name}' expects hot and cold inlets, got {len(inlets)}")
        cold = [s for p, s in inlets.items() if self._is_cold(p)]
        hot = [s for p, s in inlets.items() if not self._is_cold(p)]
        if len(cold) == 1 and len(hot) == 1:
            return hot[0], cold[0]
        a, b = inlets.values()
        return (a, b) if a.temperature >= b.temperature else (b, a)

    def _split_outlets(self, outlet_ports: List[str]) -> Tuple[Optional[str], Optional[str]]:
        cold = next((p for p in outlet_ports if self._is_cold(p)), None)
        hot = next((p for p in outlet_ports if p != cold), None)
        if cold is None and len(outlet_ports) > 1:
            cold = outlet_ports[1]
        return hot, cold

    def _side_duty(self, stream: StreamState, T: float) -> float:
        """kW needed to take ``stream`` from its inlet state to T."""
        return _kw(stream.flow, self.engine.enthalpy(stream.composition, T, stream.pressure) - stream.enthalpy)

    def _duty(self, hot: StreamState, cold: StreamState) -> float:
        T_hot_out = self._temperature("hotOutletT")
        if T_hot_out is not None:
            return -self._side_duty(hot, T_hot_out)
        T_cold_out = self._temperature("coldOutletT")
        if T_cold_out is not None:
            return self._side_duty(cold, T_cold_out)
        duty = read_power(self.params.get("duty"))
        if duty is not None:
            return abs(duty)

        eff = self._number("effectiveness", self.DEFAULT_EFFECTIVENESS)
        if not 0.0 <= eff <= 1.0:
            raise ValueError(f"HeatExchanger '{self.name}' effectiveness {eff} outside [0, 1]")
        if hot.temperature <= cold.temperature:
            return 0.0
        q_max = min(-self._side_duty(hot, cold.temperature), self._side_duty(cold, hot.temperature))
        return eff * max(q_max, 0.0)

    def _outlet(self, stream: StreamState, q_kw: float) -> StreamState:
        if q_kw == 0.0 or stream.flow <= 0:
            return stream.copy()
        H_out = stream.enthalpy + q_kw * 3600.0 / (stream.flow * 1000.0)
        T_out = self.engine.temperature_for_enthalpy(stream.composition, H_out, stream.temperature, stream.pressure)
        return stream.copy(temperature=T_out, enthalpy=H_out)

    def calculate(self, inlets, outlet_ports):
        hot, cold = self._split_inlets(inlets)
        Q = self._duty(hot, cold)
        if Q > 0 and (hot.flow <= 0 or cold.flow <= 0):
            raise ValueError(f"HeatExchanger '{self.name}' cannot exchange heat with a zero-flow side")

        hot_out = self._outlet(hot, -Q)
        cold_out = self._outlet(cold, Q)
        if Q > 0 and hot_out.temperature < cold.temperature - 1e-6:
            raise ValueError(
                f"HeatExchanger '{self.name}' temperature cross: hot outlet {hot_out.temperature:.2f} K "
                f"below cold inlet {cold.temperature:.2f} K"
            )

        self.duty_kw = Q
        self.details = {
            "hot_T_in": hot.temperature,
            "hot_T_out": hot_out.temperature,
            "cold_T_in": cold.temperature,
            "cold_T_out": cold_out.temperature,
        }
        logger.debug("HeatExchanger '{}': Q={:.3f} kW", self.name, Q)

        hot_port, cold_port = self._split_outlets(outlet_ports)
        outlets: Dict[str, StreamState] = {}
        if hot_port is not None:
            outlets[hot_port] = hot_out
        if cold_port is not None:
            outlets[cold_port] = cold_out
        return outlets


# ---------------------------------------------------------------------------
# Compressor
# ---------------------------------------------------------------------------


class CompressorOp(UnitOpBase):
    """
    Ideal-gas compressor.

    Isentropic outlet temperature T·(P2/P1)^((γ−1)/γ) with γ from the inlet
    Cp; the actual temperature rise is the isentropic rise over the
    efficiency (default 0.75).  Power is the enthalpy rise of the gas.
    """

    DEFAULT_EFFICIENCY = 0.75

    def _cp(self, composition: Dict[str, float], T: float) -> float:
        cp = 0.0
        for key, z in composition.items():
            comp = lookup_component(key)
            if comp is not None:
                cp += z * ideal_gas_cp(comp, T)
        return cp

    def calculate(self, inlets, outlet_ports):
        feed = self._single_inlet(inlets)
        P_out = self._pressure("outletP")
        if P_out is None:
            ratio = self._number("ratio")
            if ratio is None:
                raise ValueError(f"Compressor '{self.name}' needs outletP or ratio")
            P_out = feed.pressure * ratio
        if P_out <= feed.pressure:
            raise ValueError(f"Compressor '{self.name}' outlet pressure must exceed inlet pressure")

        eta = self._number("efficiency", self.DEFAULT_EFFICIENCY)
        if not 0.0 < eta <= 1.0:
            raise ValueError(f"Compressor '{self.name}' efficiency {eta} outside (0, 1]")

        cp = self._cp(feed.composition, feed.temperature)
        if cp <= R:
            raise ValueError(f"Compressor '{self.name}' has no heat capacity data for its feed")
        gamma = cp / (cp - R)
        T_s = feed.temperature * (P_out / feed.pressure) ** ((gamma - 1.0) / gamma)
        T_out = feed.temperature + (T_s - feed.temperature) / eta

        H_out = self.engine.enthalpy(feed.composition, T_out, P_out)
        self.power_kw = _kw(feed.flow, H_out - feed.enthalpy)
        self.details = {"ratio": P_out / feed.pressure, "efficiency": eta, "T_isentropic": T_s}
        out = feed.copy(temperature=T_out, pressure=P_out, enthalpy=H_out, phase="V")
        return {port: out.copy() for port in outlet_ports}


# ---------------------------------------------------------------------------
# Valve
# ---------------------------------------------------------------------------


class ValveOp(UnitOpBase):
    """
    Throttling valve.  Isenthalpic; with ideal-gas enthalpy the temperature
    is unchanged.  Outlet pressure from ``outletP``, else ``P_in − dP``,
    else 70 % of the inlet pressure (not below atmospheric).
    """

    def calculate(self, inlets, outlet_ports):
        feed = self._single_inlet(inlets)
        P_out = self._pressure("outletP")
        if P_out is None:
            dP = self._pressure("dP")
            if dP is not None:
                P_out = feed.pressure - dP
            else:
                P_out = max(P_ATM, 0.7 * feed.pressure)
        if P_out <= 0 or P_out > feed.pressure:
            raise ValueError(f"Valve '{self.name}' outlet pressure {P_out:.3f} bar is invalid")

        self.details = {"dP": feed.pressure - P_out}
        out = feed.copy(pressure=P_out)
        return {port: out.copy() for port in outlet_ports}


# ---------------------------------------------------------------------------
# Absorber / Stripper
# ---------------------------------------------------------------------------


class AbsorberOp(UnitOpBase):
    """
    Gas absorber with a fixed solute capture fraction.

    With a gas and a solvent inlet, ``captureEfficiency`` (default 0.90) of
    the solute in the gas moves to the solvent; both outlets leave 5 K
    warmer and the gas loses 0.05 bar.  With a single inlet the column is a
    pass-through.
    """

    DEFAULT_CAPTURE = 0.90

    def _split_inlets(self, inlets: Dict[str, StreamState]) -> Tuple[StreamState, StreamState]:
        items = list(inlets.items())
        gas = next((s for p, s in items if _port_kind(p) == "V"), None)
        liquid = next((s for p, s in items if _port_kind(p) == "L"), None)
        if gas is None or liquid is None:
            gas = next((s for _, s in items if s.phase == "V"), None)
            liquid = next((s for _, s in items if s.phase == "L"), None)
        if gas is None or liquid is None:
            # Positional: gas first, solvent second.
            return items[0][1], items[1][1]
        return gas, liquid

    def calculate(self, inlets, outlet_ports):
        if len(inlets) == 1:
            feed = next(iter(inlets.values()))
            return {port: feed.copy() for port in outlet_ports}
        if len(inlets) != 2:
            raise ValueError(f"Absorber '{self.name}' expects gas and solvent inlets, got {len(inlets)}")

        gas, solvent = self._split_inlets(inlets)
        solute = self.engine.solute
        eff = self._number("captureEfficiency", self.DEFAULT_CAPTURE)
        if not 0.0 <= eff <= 1.0:
            raise ValueError(f"Absorber '{self.name}' capture efficiency {eff} outside [0, 1]")

        captured = gas.component_flow(solute) * eff
        gas_flow = gas.flow - captured
        gas_moles = {c: gas.component_flow(c) for c in gas.composition}
        gas_moles[solute] = gas_moles.get(solute, 0.0) - captured
        liq_flow = solvent.flow + captured
        liq_moles = {c: solvent.component_flow(c) for c in solvent.composition}
        liq_moles[solute] = liq_moles.get(solute, 0.0) + captured

        gas_comp = {c: n / gas_flow for c, n in gas_moles.items()} if gas_flow > 0 else dict(gas.composition)
        liq_comp = {c: n / liq_flow for c, n in liq_moles.items()} if liq_flow > 0 else dict(solvent.composition)

        gas_out = self._stream(gas.temperature + 5.0, max(gas.pressure - 0.05, 0.01), gas_flow, gas_comp, "V")
        liq_out = self._stream(solvent.temperature + 5.0, solvent.pressure, liq_flow, liq_comp, "L")

        self.details = {"captured_kmol_h": captured, "captureEfficiency": eff}
        gas_port, liquid_port = classify_ports(outlet_ports)
        outlets: Dict[str, StreamState] = {}
        if gas_port is not None:
            outlets[gas_port] = gas_out
        if liquid_port is not None:
            outlets[liquid_port] = liq_out
        return outlets


class StripperOp(UnitOpBase):
    """
    Solvent regenerator.  ``stripEfficiency`` (default 0.95) of the solute
    leaves overhead as a pure vapor; products leave at the reboiler
    temperature ``T`` (default inlet + 70 K).  Duty is the enthalpy rise.
    """

    DEFAULT_STRIP = 0.95
    DEFAULT_DELTA_T = 70.0

    def calculate(self, inlets, outlet_ports):
        feed = self._single_inlet(inlets)
        solute = self.engine.solute
        eff = self._number("stripEfficiency", self.DEFAULT_STRIP)
        if not 0.0 <= eff <= 1.0:
            raise ValueError(f"Stripper '{self.name}' strip efficiency {eff} outside [0, 1]")

        T_reb = self._temperature("T")
        if T_reb is None:
            T_reb = feed.temperature + self.DEFAULT_DELTA_T
        P = self._pressure("P")
        if P is None:
            P = feed.pressure

        stripped = feed.component_flow(solute) * eff
        bottoms_flow = feed.flow - stripped
        if bottoms_flow > 0:
            moles = {c: feed.component_flow(c) for c in feed.composition}
            moles[solute] = moles.get(solute, 0.0) - stripped
            bottoms_comp = {c: n / bottoms_flow for c, n in moles.items()}
        else:
            bottoms_comp = dict(feed.composition)

        overhead = self._stream(T_reb, P, stripped, {solute: 1.0}, "V", 1.0)
        bottoms = self._stream(T_reb, P, bottoms_flow, bottoms_comp, "L", 0.0)
        self.duty_kw = _enthalpy_flow_kw([overhead, bottoms]) - _kw(feed.flow, feed.enthalpy)
        self.details = {"stripped_kmol_h": stripped, "stripEfficiency": eff, "T_reboiler": T_reb}

        overhead_port, bottoms_port = classify_ports(outlet_ports)
        outlets: Dict[str, StreamState] = {}
        if overhead_port is not None:
            outlets[overhead_port] = overhead
        if bottoms_port is not None:
            outlets[bottoms_port] = bottoms
        return outlets


# ---------------------------------------------------------------------------
# Placeholder models
# ---------------------------------------------------------------------------


class PassThroughOp(UnitOpBase):
    """Unmodeled block: the single inlet is copied verbatim to every outlet."""

    def calculate(self, inlets, outlet_ports):
        feed = self._single_inlet(inlets)
        return {port: feed.copy() for port in outlet_ports}


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

UNIT_OP_REGISTRY: Dict[str, Type[UnitOpBase]] = {
    "Flash": FlashOp,
    "Separator": FlashOp,
    "Mixer": MixerOp,
    "Splitter": SplitterOp,
    "Pump": PumpOp,
    "Compressor": CompressorOp,
    "Heater": HeaterCoolerOp,
    "Cooler": HeaterCoolerOp,
    "HeatExchanger": HeatExchangerOp,
    "Valve": ValveOp,
    "Absorber": AbsorberOp,
    "Stripper": StripperOp,
    "DistillationColumn": PassThroughOp,
    "Reactor": PassThroughOp,
}
