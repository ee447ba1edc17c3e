"""
Plant KPIs, design-spec checks and constraint checks for a solved flowsheet.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from loguru import logger

from . import schemas
from .flowsheet_solver import SolverResult
from .metrics import MetricResolver, resolve_metric
from .thermo_engine import ThermoEngine
from .unit_operations import classify_ports
from .units import read_number

COLUMN_TYPES = ("Absorber", "Stripper", "DistillationColumn")
KW_TO_GJ_PER_H = 3.6 / 1000.0
# Process-to-process heat recovery draws no utility
HEAT_RECOVERY_TYPES = ("HeatExchanger",)


# ---------------------------------------------------------------------------
# KPIs
# ---------------------------------------------------------------------------


def _solute_flows(project: schemas.Project, result: SolverResult, solute: str):
    graph = project.flowsheet
    feed_side = 0.0
    sink_side = 0.0
    for edge in graph.streams:
        state = result.streams.get(edge.id)
        if state is None:
            continue
        source = graph.block(edge.source.block_id)
        target = graph.block(edge.target.block_id)
        if source is not None and source.type == "Feed":
            feed_side += state.component_flow(solute)
        if target is not None and target.type == "Sink":
            sink_side += state.component_flow(solute)
    return feed_side, sink_side


def _circulation_rate(project: schemas.Project, result: SolverResult) -> float:
    """Solvent flow (kmol/h) entering absorbers on their liquid inlet."""
    graph = project.flowsheet
    total = 0.0
    for block in graph.blocks:
        if block.type != "Absorber":
            continue
        incoming = graph.incoming(block.id)
        if len(incoming) < 2:
            continue
        _, liquid_port = classify_ports([e.target.port for e in incoming])
        for edge in incoming:
            if edge.target.port == liquid_port and edge.id in result.streams:
                total += result.streams[edge.id].flow
    return total


def extract_kpis(project: schemas.Project, result: SolverResult) -> Dict[str, float]:
    done = [r for r in result.block_results.values() if r.status == "done"]
    utility = [r for r in done if r.block_type not in HEAT_RECOVERY_TYPES]
    heating = sum(r.duty_kw for r in utility if r.duty_kw > 0)
    cooling = sum(-r.duty_kw for r in utility if r.duty_kw < 0)

    kpis: Dict[str, float] = {
        "electricity": sum(r.power_kw for r in done),  # kW
        "steam": heating * KW_TO_GJ_PER_H,  # GJ/h
        "cooling": cooling * KW_TO_GJ_PER_H,  # GJ/h
        "totalFlow": sum(s.flow for s in result.streams.values()),  # kmol/h
    }

    solute = ThermoEngine(project.components).solute
    solute_in, solute_out = _solute_flows(project, result, solute)
    if solute_in > 0:
        kpis["CO2_captured"] = solute_in - solute_out  # kmol/h
        kpis["captureEfficiency"] = (solute_in - solute_out) / solute_in

    stages = 0.0
    for block in project.flowsheet.blocks:
        if block.type in COLUMN_TYPES and "stages" in block.params:
            stages += read_number(block.params["stages"])
    kpis["totalStages"] = stages
    kpis["circulationRate"] = _circulation_rate(project, result)
    return kpis


# ---------------------------------------------------------------------------
# Specs
# ---------------------------------------------------------------------------


def achieved_value(spec, kpis: Dict[str, float]) -> float:
    stages = kpis.get("totalStages", 0.0)
    circulation = kpis.get("circulationRate", 0.0)
    if isinstance(spec, schemas.CaptureSpec):
        return kpis.get("captureEfficiency", 0.0)
    if isinstance(spec, schemas.PuritySpec):
        return min(0.99, 0.7 + (stages / 100.0) * 0.25 + (circulation / 1000.0) * 0.1)
    if isinstance(spec, schemas.RecoverySpec):
        return min(0.99, 0.6 + (stages / 80.0) * 0.3)
    raise TypeError(f"Unsupported spec: {spec!r}")


def evaluate_specs(project: schemas.Project, kpis: Dict[str, float]) -> List[schemas.SpecResult]:
    results = []
    for spec in project.specs:
        target = spec.target_removal if isinstance(spec, schemas.CaptureSpec) else spec.target
        achieved = achieved_value(spec, kpis)
        results.append(
            schemas.SpecResult(spec_id=spec.id, achieved=achieved, target=target, ok=achieved >= target)
        )
    return results


# ---------------------------------------------------------------------------
# Constraints
# ---------------------------------------------------------------------------


def _metric_label(ref) -> str:
    if isinstance(ref, schemas.KpiMetricRef):
        return ref.metric
    if isinstance(ref, schemas.UnitMetricRef):
        return f"{ref.block_id}.{ref.metric}"
    return f"{ref.stream_id}.{ref.metric}"


def check_constraint(constraint, value: float) -> Optional[schemas.Violation]:
    label = _metric_label(constraint.ref)
    message = None
    if isinstance(constraint, schemas.MaxConstraint):
        if value > constraint.limit:
            message = f"{label} = {value:.2f} exceeds max limit {constraint.limit:g}"
    elif isinstance(constraint, schemas.MinConstraint):
        if value < constraint.limit:
            message = f"{label} = {value:.2f} below min limit {constraint.limit:g}"
    elif isinstance(constraint, schemas.RangeConstraint):
        if value < constraint.min or value > constraint.max:
            message = f"{label} = {value:.2f} outside range [{constraint.min:g}, {constraint.max:g}]"
    else:
        raise TypeError(f"Unsupported constraint: {constraint!r}")

    if message is None:
        return None
    return schemas.Violation(constraint_id=constraint.id, value=value, message=message, hard=constraint.hard)


def evaluate_constraints(
    project: schemas.Project,
    run: Optional[schemas.SimulationRun],
    resolver: MetricResolver = resolve_metric,
) -> List[schemas.Violation]:
    violations = []
    for constraint in project.constraints:
        value = resolver(constraint.ref, project, run)
        if value is None:
            continue
        violation = check_constraint(constraint, value)
        if violation is not None:
            logger.info("Constraint '{}' violated: {}", constraint.id, violation.message)
            violations.append(violation)
    return violations
