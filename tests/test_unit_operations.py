"""
Tests for the individual unit operation models.
"""

import pytest

from procsim import schemas
from procsim.thermo_engine import ThermoEngine
from procsim.unit_operations import (
    UNIT_OP_REGISTRY,
    AbsorberOp,
    CompressorOp,
    FlashOp,
    HeatExchangerOp,
    HeaterCoolerOp,
    MixerOp,
    PassThroughOp,
    PumpOp,
    SplitterOp,
    StripperOp,
    ValveOp,
    classify_ports,
)


@pytest.fixture
def engine():
    return ThermoEngine([schemas.Component(id="CO2", role="solute"), schemas.Component(id="N2")])


def _block(type_: str, **params) -> schemas.Block:
    return schemas.Block(id=f"{type_.lower()}-1", type=type_, name=type_, params=params)


def _num(x: float) -> schemas.NumberParam:
    return schemas.NumberParam(x=x)


def _qty(value: float, unit: str) -> schemas.QuantityParam:
    return schemas.QuantityParam(q=schemas.Quantity(value=value, unit=unit))


def _stream(engine, T=313.15, P=1.0, flow=100.0, composition=None, phase="V"):
    return engine.make_stream("s", "s", T, P, flow, composition or {"CO2": 0.12, "N2": 0.88}, phase)


# ---------------------------------------------------------------------------
# Ports
# ---------------------------------------------------------------------------


class TestPortClassification:
    def test_by_name(self):
        assert classify_ports(["liquid-out", "vapor-out"]) == ("vapor-out", "liquid-out")
        assert classify_ports(["heavy", "gas"]) == ("gas", "heavy")

    def test_positional_fallback(self):
        assert classify_ports(["out1", "out2"]) == ("out1", "out2")

    def test_partial_names(self):
        assert classify_ports(["bottoms", "out"]) == ("out", "bottoms")


# ---------------------------------------------------------------------------
# Mixer / Splitter
# ---------------------------------------------------------------------------


class TestMixer:
    @pytest.mark.parametrize("n", [1, 2, 3, 5])
    def test_outlet_flow_is_sum_of_inlets(self, engine, n):
        inlets = {f"in{i}": _stream(engine, flow=10.0 * (i + 1) + 0.1) for i in range(n)}
        out = MixerOp(_block("Mixer"), engine).calculate(inlets, ["out"])["out"]
        assert out.flow == sum(s.flow for s in inlets.values())

    def test_flow_weighted_properties(self, engine):
        a = _stream(engine, T=300.0, P=2.0, flow=30.0, composition={"CO2": 1.0})
        b = _stream(engine, T=400.0, P=1.5, flow=10.0, composition={"N2": 1.0})
        out = MixerOp(_block("Mixer"), engine).calculate({"in1": a, "in2": b}, ["out"])["out"]
        assert out.pressure == 1.5
        assert out.temperature == pytest.approx(325.0)
        assert out.composition["CO2"] == pytest.approx(0.75)
        assert out.composition["N2"] == pytest.approx(0.25)
        assert out.enthalpy == pytest.approx(0.75 * a.enthalpy + 0.25 * b.enthalpy)

    def test_mixed_phases_give_two_phase_outlet(self, engine):
        a = _stream(engine, phase="V")
        b = _stream(engine, phase="L")
        out = MixerOp(_block("Mixer"), engine).calculate({"in1": a, "in2": b}, ["out"])["out"]
        assert out.phase == "VL"


class TestSplitter:
    def test_equal_split(self, engine):
        feed = _stream(engine, flow=90.0)
        outs = SplitterOp(_block("Splitter"), engine).calculate({"in": feed}, ["a", "b", "c"])
        assert [o.flow for o in outs.values()] == pytest.approx([30.0, 30.0, 30.0])
        assert sum(o.flow for o in outs.values()) == pytest.approx(feed.flow)
        for o in outs.values():
            assert o.temperature == feed.temperature
            assert o.composition == feed.composition

    def test_specified_fraction_with_remainder_shared(self, engine):
        feed = _stream(engine, flow=100.0)
        op = SplitterOp(_block("Splitter", split1=_num(0.3)), engine)
        outs = op.calculate({"in": feed}, ["a", "b", "c"])
        assert outs["a"].flow == pytest.approx(30.0)
        assert outs["b"].flow == pytest.approx(35.0)
        assert outs["c"].flow == pytest.approx(35.0)

    def test_fractions_above_one_raise(self, engine):
        op = SplitterOp(_block("Splitter", split1=_num(0.8), split2=_num(0.4)), engine)
        with pytest.raises(ValueError):
            op.calculate({"in": _stream(engine)}, ["a", "b"])

    def test_fully_specified_fractions_must_total_one(self, engine):
        op = SplitterOp(_block("Splitter", split1=_num(0.2), split2=_num(0.2)), engine)
        with pytest.raises(ValueError, match="must total 1"):
            op.calculate({"in": _stream(engine)}, ["a", "b"])

    def test_outlets_do_not_share_composition(self, engine):
        outs = SplitterOp(_block("Splitter"), engine).calculate({"in": _stream(engine)}, ["a", "b"])
        outs["a"].composition["CO2"] = 0.0
        assert outs["b"].composition["CO2"] == pytest.approx(0.12)


# ---------------------------------------------------------------------------
# Pressure changers
# ---------------------------------------------------------------------------


class TestPump:
    def test_power_formula(self, engine):
        feed = _stream(engine, T=300.0, P=1.0, flow=100.0, composition={"H2O": 1.0}, phase="L")
        op = PumpOp(_block("Pump", dP=_qty(5.0, "bar")), engine)
        out = op.calculate({"in": feed}, ["out"])["out"]
        expected = (100.0 * 18.015 / 3600.0) * 5.0e5 / (1000.0 * 0.75 * 1000.0)
        assert out.pressure == pytest.approx(6.0)
        assert op.power_kw == pytest.approx(expected, rel=1e-3)
        assert out.temperature == feed.temperature

    def test_default_rise_is_five_bar(self, engine):
        feed = _stream(engine, P=2.0, composition={"H2O": 1.0}, phase="L")
        out = PumpOp(_block("Pump"), engine).calculate({"in": feed}, ["out"])["out"]
        assert out.pressure == pytest.approx(7.0)

    def test_pressure_rise_in_kpa(self, engine):
        feed = _stream(engine, P=1.0, composition={"H2O": 1.0}, phase="L")
        out = PumpOp(_block("Pump", dP=_qty(300.0, "kPa")), engine).calculate({"in": feed}, ["out"])["out"]
        assert out.pressure == pytest.approx(4.0)


class TestCompressor:
    def test_ratio_compression_heats_gas(self, engine):
        feed = _stream(engine, T=300.0, P=1.0, composition={"N2": 1.0})
        op = CompressorOp(_block("Compressor", ratio=_num(3.0)), engine)
        out = op.calculate({"in": feed}, ["out"])["out"]
        assert out.pressure == pytest.approx(3.0)
        assert out.temperature > op.details["T_isentropic"] > feed.temperature
        assert op.power_kw > 0
        assert out.phase == "V"

    def test_missing_specification_raises(self, engine):
        with pytest.raises(ValueError, match="outletP or ratio"):
            CompressorOp(_block("Compressor"), engine).calculate({"in": _stream(engine)}, ["out"])


class TestValve:
    def test_default_drop_to_seventy_percent(self, engine):
        out = ValveOp(_block("Valve"), engine).calculate({"in": _stream(engine, P=10.0)}, ["out"])["out"]
        assert out.pressure == pytest.approx(7.0)

    def test_default_drop_floored_at_atmospheric(self, engine):
        out = ValveOp(_block("Valve"), engine).calculate({"in": _stream(engine, P=1.2)}, ["out"])["out"]
        assert out.pressure == pytest.approx(1.01325)

    def test_temperature_unchanged(self, engine):
        feed = _stream(engine, T=350.0, P=5.0)
        out = ValveOp(_block("Valve", outletP=_num(2.0)), engine).calculate({"in": feed}, ["out"])["out"]
        assert out.temperature == 350.0
        assert out.pressure == 2.0


# ---------------------------------------------------------------------------
# Heat transfer
# ---------------------------------------------------------------------------


class TestHeaterCooler:
    def test_outlet_temperature_in_celsius(self, engine):
        feed = _stream(engine, T=313.15)
        op = HeaterCoolerOp(_block("Heater", outletT=_qty(80.0, "C")), engine)
        out = op.calculate({"in": feed}, ["out"])["out"]
        assert out.temperature == pytest.approx(353.15)
        expected = feed.flow * (out.enthalpy - feed.enthalpy) * 1000.0 / 3600.0
        assert op.duty_kw == pytest.approx(expected)
        assert op.duty_kw > 0

    def test_default_heater_adds_fifty_kelvin(self, engine):
        out = HeaterCoolerOp(_block("Heater"), engine).calculate({"in": _stream(engine, T=300.0)}, ["out"])["out"]
        assert out.temperature == pytest.approx(350.0)

    def test_default_cooler_removes_fifty_kelvin(self, engine):
        op = HeaterCoolerOp(_block("Cooler"), engine)
        out = op.calculate({"in": _stream(engine, T=400.0)}, ["out"])["out"]
        assert out.temperature == pytest.approx(350.0)
        assert op.duty_kw < 0

    def test_duty_specification_solves_outlet_temperature(self, engine):
        op = HeaterCoolerOp(_block("Heater", duty=_qty(100.0, "kW")), engine)
        out = op.calculate({"in": _stream(engine, T=300.0)}, ["out"])["out"]
        assert op.duty_kw == pytest.approx(100.0, rel=1e-6)
        assert out.temperature > 300.0


class TestHeatExchanger:
    def _inlets(self, engine, hot_T=450.0, cold_T=300.0, cold_flow=100.0):
        return {
            "in": _stream(engine, T=hot_T),
            "cold-in": _stream(engine, T=cold_T, flow=cold_flow),
        }

    def test_default_effectiveness_balances_energy(self, engine):
        inlets = self._inlets(engine)
        op = HeatExchangerOp(_block("HeatExchanger"), engine)
        outs = op.calculate(inlets, ["out", "cold-out"])
        hot_in, cold_in = inlets["in"], inlets["cold-in"]
        hot_out, cold_out = outs["out"], outs["cold-out"]

        assert op.duty_kw > 0
        hot_released = hot_in.flow * (hot_in.enthalpy - hot_out.enthalpy) * 1000.0 / 3600.0
        cold_absorbed = cold_in.flow * (cold_out.enthalpy - cold_in.enthalpy) * 1000.0 / 3600.0
        assert hot_released == pytest.approx(op.duty_kw)
        assert cold_absorbed == pytest.approx(op.duty_kw)
        assert hot_out.temperature < hot_in.temperature
        assert cold_out.temperature > cold_in.temperature
        # equal flows of the same gas: 80 % of the 150 K approach
        assert cold_out.temperature == pytest.approx(420.0, abs=2.0)
        assert op.details["hot_T_in"] == 450.0
        assert op.details["cold_T_out"] == pytest.approx(cold_out.temperature)

    def test_hot_outlet_temperature_sets_duty(self, engine):
        op = HeatExchangerOp(_block("HeatExchanger", hotOutletT=_num(400.0)), engine)
        outs = op.calculate(self._inlets(engine), ["out", "cold-out"])
        assert outs["out"].temperature == pytest.approx(400.0)
        assert 350.0 < outs["cold-out"].temperature < 355.0

    def test_sides_told_apart_by_temperature(self, engine):
        inlets = {"in1": _stream(engine, T=300.0), "in2": _stream(engine, T=450.0)}
        op = HeatExchangerOp(_block("HeatExchanger"), engine)
        outs = op.calculate(inlets, ["out1", "out2"])
        assert op.details["hot_T_in"] == 450.0
        assert outs["out1"].temperature < 450.0
        assert outs["out2"].temperature > 300.0

    def test_no_driving_force_means_no_duty(self, engine):
        op = HeatExchangerOp(_block("HeatExchanger"), engine)
        outs = op.calculate(self._inlets(engine, hot_T=320.0, cold_T=320.0), ["out", "cold-out"])
        assert op.duty_kw == 0.0
        assert outs["out"].temperature == 320.0

    def test_temperature_cross_raises(self, engine):
        op = HeatExchangerOp(_block("HeatExchanger", hotOutletT=_num(280.0)), engine)
        with pytest.raises(ValueError, match="temperature cross"):
            op.calculate(self._inlets(engine), ["out", "cold-out"])

    def test_single_inlet_raises(self, engine):
        op = HeatExchangerOp(_block("HeatExchanger"), engine)
        with pytest.raises(ValueError, match="expects hot and cold inlets"):
            op.calculate({"in": _stream(engine)}, ["out"])

    def test_effectiveness_out_of_range(self, engine):
        op = HeatExchangerOp(_block("HeatExchanger", effectiveness=_num(1.5)), engine)
        with pytest.raises(ValueError):
            op.calculate(self._inlets(engine), ["out", "cold-out"])


# ---------------------------------------------------------------------------
# Flash
# ---------------------------------------------------------------------------


class TestFlash:
    def test_two_phase_split_closes_balances(self, engine):
        z = {"C6H6": 0.5, "C7H8": 0.5}
        feed = _stream(engine, T=368.0, P=1.01325, flow=100.0, composition=z, phase="VL")
        op = FlashOp(_block("Flash"), engine)
        outs = op.calculate({"in": feed}, ["vapor", "liquid"])
        V = op.details["vapor_fraction"]
        assert 0.0 < V < 1.0
        assert outs["vapor"].flow + outs["liquid"].flow == pytest.approx(100.0)
        for c, zc in z.items():
            total = outs["vapor"].component_flow(c) + outs["liquid"].component_flow(c)
            assert total == pytest.approx(100.0 * zc, rel=1e-6)
        assert outs["vapor"].composition["C6H6"] > outs["liquid"].composition["C6H6"]
        assert outs["vapor"].temperature == feed.temperature
        assert op.duty_kw == 0.0

    def test_light_gas_feed_goes_all_vapor(self, engine):
        op = FlashOp(_block("Separator"), engine)
        outs = op.calculate({"in": _stream(engine)}, ["out1", "out2"])
        assert outs["out1"].flow == pytest.approx(100.0)
        assert outs["out2"].flow == pytest.approx(0.0)

    def test_unknown_component_raises(self, engine):
        feed = _stream(engine, composition={"XYZ": 1.0})
        with pytest.raises(ValueError, match="No property data"):
            FlashOp(_block("Flash"), engine).calculate({"in": feed}, ["vapor", "liquid"])


# ---------------------------------------------------------------------------
# Absorption / regeneration
# ---------------------------------------------------------------------------


class TestAbsorber:
    def test_two_inlet_capture(self, engine):
        gas = _stream(engine, flow=100.0, phase="V")
        solvent = _stream(engine, T=313.15, P=1.2, flow=500.0, composition={"MEA": 0.3, "H2O": 0.7}, phase="L")
        op = AbsorberOp(_block("Absorber", stages=schemas.CountParam(n=20)), engine)
        outs = op.calculate({"gas-in": gas, "liquid-in": solvent}, ["gas-out", "liquid-out"])

        assert op.details["captured_kmol_h"] == pytest.approx(10.8)
        assert outs["gas-out"].flow == pytest.approx(89.2)
        assert outs["gas-out"].component_flow("CO2") == pytest.approx(1.2)
        assert outs["liquid-out"].flow == pytest.approx(510.8)
        assert outs["liquid-out"].component_flow("CO2") == pytest.approx(10.8)
        assert outs["gas-out"].temperature == pytest.approx(318.15)
        assert outs["gas-out"].pressure == pytest.approx(0.95)

    def test_single_inlet_passes_through(self, engine):
        feed = _stream(engine)
        outs = AbsorberOp(_block("Absorber"), engine).calculate({"in": feed}, ["out"])
        assert outs["out"].flow == feed.flow
        assert outs["out"].composition == feed.composition


class TestStripper:
    def test_overhead_is_stripped_solute(self, engine):
        rich = _stream(engine, T=320.0, flow=100.0, composition={"CO2": 0.1, "MEA": 0.3, "H2O": 0.6}, phase="L")
        op = StripperOp(_block("Stripper", stages=schemas.CountParam(n=10)), engine)
        outs = op.calculate({"feed": rich}, ["overhead", "bottoms"])
        assert outs["overhead"].flow == pytest.approx(9.5)
        assert outs["overhead"].composition == {"CO2": 1.0}
        assert outs["bottoms"].flow == pytest.approx(90.5)
        assert outs["bottoms"].component_flow("CO2") == pytest.approx(0.5)
        assert outs["bottoms"].temperature == pytest.approx(390.0)
        assert op.duty_kw > 0


class TestRegistry:
    def test_placeholder_types_pass_through(self, engine):
        assert UNIT_OP_REGISTRY["Reactor"] is PassThroughOp
        assert UNIT_OP_REGISTRY["HeatExchanger"] is HeatExchangerOp
        feed = _stream(engine)
        outs = PassThroughOp(_block("Reactor"), engine).calculate({"in": feed}, ["a", "b"])
        assert outs["a"].flow == feed.flow == outs["b"].flow

    def test_feed_and_sink_are_not_models(self):
        assert "Feed" not in UNIT_OP_REGISTRY
        assert "Sink" not in UNIT_OP_REGISTRY
