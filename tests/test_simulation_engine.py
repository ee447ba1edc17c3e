"""
End-to-end tests for the simulation engine.

A run must always come back as a record: validation failures, solver
failures and unexpected errors all surface as ``status == "error"``.
"""

import pytest

from procsim import schemas
from procsim.metrics import resolve_metric
from procsim.simulation_engine import SimulationEngine, compute_inputs_hash


def _q(value, unit):
    return schemas.Quantity(value=value, unit=unit)


def _feed_spec(composition=None):
    return schemas.StreamDesignSpec(
        temperature=_q(313.15, "K"),
        pressure=_q(1.0, "bar"),
        flow=_q(100.0, "kmol/h"),
        composition=composition or {"CO2": 0.12, "N2": 0.88},
        phase="V",
    )


def _edge(id_, src, dst, spec=None, src_port="out", dst_port="in"):
    return schemas.StreamEdge(
        id=id_,
        name=id_,
        source=schemas.PortRef(block_id=src, port=src_port),
        target=schemas.PortRef(block_id=dst, port=dst_port),
        spec=spec,
    )


def _make_project(composition=None, constraints=()) -> schemas.Project:
    """Feed → Absorber → Sink"""
    return schemas.Project(
        project_id="capture",
        name="Absorber demo",
        components=[schemas.Component(id="CO2", role="solute"), schemas.Component(id="N2")],
        flowsheet=schemas.FlowsheetGraph(
            blocks=[
                schemas.Block(id="feed", type="Feed", name="Flue gas"),
                schemas.Block(id="abs", type="Absorber", name="Absorber", params={"stages": schemas.CountParam(n=20)}),
                schemas.Block(id="sink", type="Sink", name="Vent"),
            ],
            streams=[
                _edge("s1", "feed", "abs", _feed_spec(composition)),
                _edge("s2", "abs", "sink"),
            ],
        ),
        constraints=list(constraints),
    )


def _recycle_project() -> schemas.Project:
    heater = {"outletT": schemas.NumberParam(x=350.0)}
    return schemas.Project(
        components=[schemas.Component(id="CO2"), schemas.Component(id="N2")],
        flowsheet=schemas.FlowsheetGraph(
            blocks=[
                schemas.Block(id="feed", type="Feed"),
                schemas.Block(id="mix", type="Mixer"),
                schemas.Block(id="heat", type="Heater", params=heater),
                schemas.Block(id="split", type="Splitter", params={"split1": schemas.NumberParam(x=0.5)}),
                schemas.Block(id="sink", type="Sink"),
            ],
            streams=[
                _edge("s1", "feed", "mix", _feed_spec(), dst_port="in1"),
                _edge("s2", "mix", "heat"),
                _edge("s3", "heat", "split"),
                _edge("s4", "split", "mix", src_port="out1", dst_port="in2"),
                _edge("s5", "split", "sink", src_port="out2"),
            ],
        ),
    )


@pytest.fixture
def engine():
    return SimulationEngine()


class TestSuccessfulRun:
    def test_absorber_scenario(self, engine):
        project = _make_project(
            constraints=[
                schemas.MaxConstraint(id="steam", ref=schemas.KpiMetricRef(metric="steam"), limit=1000),
                schemas.MaxConstraint(id="power", ref=schemas.KpiMetricRef(metric="electricity"), limit=500),
            ]
        )
        run = engine.run(project, "v1")

        assert run.status == "done"
        assert run.converged
        assert run.violations == []
        assert run.simulator == "procsim"
        for key in ("electricity", "steam", "cooling", "totalFlow", "equipmentCAPEX", "COM", "totalAnnualCost"):
            assert key in run.kpis
        assert run.kpis["totalStages"] == 20.0
        assert run.raw_outputs["order"] == ["feed", "abs"]
        assert run.raw_outputs["streams"]["s2"]["flow_kmol_per_h"] == pytest.approx(100.0)

    def test_column_is_costed(self, engine):
        run = engine.run(_make_project(), "v1")
        [sizing] = run.raw_outputs["equipment_sizing"]
        assert sizing["block_id"] == "abs"
        assert run.kpis["equipmentCAPEX"] == pytest.approx(sizing["cost"])
        assert run.kpis["CAPEX_proxy"] == run.kpis["equipmentCAPEX"]

    def test_violations_reported(self, engine):
        project = _make_project(
            constraints=[
                schemas.MinConstraint(id="T", ref=schemas.StreamMetricRef(stream_id="s2", metric="T"), limit=400, hard=True),
                schemas.MaxConstraint(id="stages", ref=schemas.UnitMetricRef(block_id="abs", metric="stages"), limit=30),
            ]
        )
        run = engine.run(project, "v1")
        assert run.status == "done"
        assert [v.constraint_id for v in run.violations] == ["T"]
        assert run.violations[0].hard
        assert "s2.T = 313.15 below min limit 400" == run.violations[0].message

    def test_run_is_immutable(self, engine):
        run = engine.run(_make_project(), "v1")
        with pytest.raises(Exception):
            run.status = "error"


class TestFailedRuns:
    def test_validation_failure(self, engine):
        run = engine.run(_make_project(composition={"CO2": 0.15, "N2": 0.90}), "v1")
        assert run.status == "error"
        assert not run.converged
        assert run.raw_outputs["validation"]["errors"]
        assert run.raw_outputs["error_summary"].startswith("Validation failed")

    def test_recycle_is_a_solver_error(self, engine):
        run = engine.run(_recycle_project(), "v1")
        assert run.status == "error"
        assert "Recycle not supported" in run.raw_outputs["error_summary"]

    def test_resolver_exception_is_captured(self):
        def boom(ref, project, run):
            raise RuntimeError("resolver offline")

        project = _make_project(
            constraints=[schemas.MaxConstraint(id="c", ref=schemas.KpiMetricRef(metric="steam"), limit=1)]
        )
        run = SimulationEngine(resolver=boom).run(project, "v1")
        assert run.status == "error"
        assert "resolver offline" in run.raw_outputs["error_summary"]


class TestInputsHash:
    def test_deterministic(self):
        assert compute_inputs_hash(_make_project(), "v1") == compute_inputs_hash(_make_project(), "v1")

    def test_depends_on_version(self):
        assert compute_inputs_hash(_make_project(), "v1") != compute_inputs_hash(_make_project(), "v2")

    def test_failed_run_keeps_hash(self, engine):
        project = _make_project(composition={"CO2": 0.5})
        run = engine.run(project, "v7")
        assert run.inputs_hash == compute_inputs_hash(project, "v7")


class TestMetricResolver:
    def test_stream_falls_back_to_design_spec(self):
        ref = schemas.StreamMetricRef(stream_id="s1", metric="flow")
        assert resolve_metric(ref, _make_project()) == pytest.approx(100.0)

    def test_unknown_targets_resolve_to_none(self):
        project = _make_project()
        assert resolve_metric(schemas.StreamMetricRef(stream_id="nope", metric="T"), project) is None
        assert resolve_metric(schemas.UnitMetricRef(block_id="nope", metric="duty"), project) is None
        assert resolve_metric(schemas.KpiMetricRef(metric="steam"), project) is None
