"""
Simulation engine: validate, solve, derive KPIs, size and cost equipment,
aggregate economics, then check specs and constraints.

Every failure is captured into the returned :class:`schemas.SimulationRun`;
the engine never raises to its caller.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any, Dict, List

from loguru import logger

from . import schemas
from .economics import calculate_total_annual_cost, compute_com
from .equipment_sizing import calculate_equipment_capex
from .flowsheet_solver import BlockResult, solve
from .kpi_evaluator import evaluate_constraints, evaluate_specs, extract_kpis
from .metrics import MetricResolver, resolve_metric
from .thermo_engine import StreamState
from .validator import validate_flowsheet


def compute_inputs_hash(project: schemas.Project, version_id: str) -> str:
    payload = {"project": project.model_dump(mode="json"), "version_id": version_id}
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def stream_result(state: StreamState) -> schemas.StreamResult:
    return schemas.StreamResult(
        id=state.id,
        name=state.name,
        temperature_k=state.temperature,
        pressure_bar=state.pressure,
        flow_kmol_per_h=state.flow,
        composition=dict(state.composition),
        phase=state.phase,
        enthalpy_kj_per_mol=state.enthalpy,
        vapor_fraction=state.vapor_fraction,
    )


def block_result_model(result: BlockResult) -> schemas.BlockResultModel:
    return schemas.BlockResultModel(
        id=result.block_id,
        type=result.block_type,
        status=result.status,
        duty_kw=result.duty_kw,
        power_kw=result.power_kw,
        details=dict(result.details),
        error=result.error,
    )


def _issues(issues: List[schemas.ValidationIssue]) -> List[Dict[str, Any]]:
    return [i.model_dump() for i in issues]


class SimulationEngine:
    """Runs a project end to end and returns an immutable run record."""

    def __init__(
        self,
        resolver: MetricResolver = resolve_metric,
        strategy: str = "sequential",
        simulator: str = "procsim",
    ) -> None:
        self.resolver = resolver
        self.strategy = strategy
        self.simulator = simulator

    def run(self, project: schemas.Project, version_id: str) -> schemas.SimulationRun:
        inputs_hash = compute_inputs_hash(project, version_id)
        try:
            return self._run(project, inputs_hash)
        except Exception as exc:
            logger.exception("Simulation run failed")
            return self._error_run(inputs_hash, {"error_summary": f"Simulation error: {exc}"})

    def _error_run(self, inputs_hash: str, raw_outputs: Dict[str, Any]) -> schemas.SimulationRun:
        return schemas.SimulationRun(
            simulator=self.simulator,
            status="error",
            inputs_hash=inputs_hash,
            converged=False,
            raw_outputs=raw_outputs,
        )

    def _run(self, project: schemas.Project, inputs_hash: str) -> schemas.SimulationRun:
        validation = validate_flowsheet(project)
        if not validation.valid:
            summary = "\n".join(
                [f"Validation failed with {len(validation.errors)} error(s):"]
                + [f"- [{e.category}] {e.message}" for e in validation.errors]
            )
            return self._error_run(
                inputs_hash,
                {
                    "validation": {
                        "errors": _issues(validation.errors),
                        "warnings": _issues(validation.warnings),
                    },
                    "error_summary": summary,
                },
            )

        result = solve(project, strategy=self.strategy)
        if not result.converged:
            return self._error_run(
                inputs_hash,
                {
                    "validation": {"errors": [], "warnings": _issues(validation.warnings)},
                    "blocks": {bid: block_result_model(r).model_dump() for bid, r in result.block_results.items()},
                    "error_summary": f"Solver error: {result.error}",
                },
            )

        kpis = extract_kpis(project, result)

        capex = calculate_equipment_capex(result.block_results, result.streams)
        kpis["equipmentCAPEX"] = capex.total_capex
        kpis["CAPEX_proxy"] = capex.total_capex

        economics = project.economics or schemas.ExtendedEconomicConfig()
        tac = calculate_total_annual_cost(kpis, capex.total_capex, economics)
        kpis["installedCAPEX"] = tac.installed_capex
        kpis["totalOPEX"] = tac.total_opex
        kpis["totalAnnualCost"] = tac.total_annual_cost
        kpis["COM"] = compute_com(kpis, economics)

        spec_results = evaluate_specs(project, kpis)

        raw_outputs = {
            "validation": {"errors": [], "warnings": _issues(validation.warnings)},
            "order": list(result.order),
            "warnings": list(result.warnings),
            "streams": {sid: stream_result(s).model_dump() for sid, s in result.streams.items()},
            "blocks": {bid: block_result_model(r).model_dump() for bid, r in result.block_results.items()},
            "equipment_sizing": [e.model_dump() for e in capex.equipment],
            "economics": tac.model_dump(),
        }
        run = schemas.SimulationRun(
            simulator=self.simulator,
            status="done",
            inputs_hash=inputs_hash,
            converged=True,
            kpis=kpis,
            spec_results=spec_results,
            raw_outputs=raw_outputs,
        )

        violations = evaluate_constraints(project, run, self.resolver)
        logger.info(
            "Run complete: {} KPIs, {} spec(s), {} violation(s)", len(kpis), len(spec_results), len(violations)
        )
        return run.model_copy(update={"violations": violations})
