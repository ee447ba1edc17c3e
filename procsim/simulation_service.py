from __future__ import annotations

from . import schemas
from .flowsheet_solver import solve
from .simulation_engine import SimulationEngine, block_result_model, stream_result
from .validator import validate_flowsheet


class SimulationService:
    def __init__(self, engine: SimulationEngine | None = None) -> None:
        self._engine = engine or SimulationEngine()

    def validate(self, project: schemas.Project) -> schemas.ValidationResult:
        return validate_flowsheet(project)

    def solve(self, request: schemas.SolveRequest) -> schemas.SolveResponse:
        result = solve(request.project, strategy=request.strategy)
        return schemas.SolveResponse(
            converged=result.converged,
            order=list(result.order),
            streams=[stream_result(s) for s in result.streams.values()],
            blocks=[block_result_model(r) for r in result.block_results.values()],
            warnings=list(result.warnings),
            error=result.error,
        )

    def run(self, request: schemas.RunRequest) -> schemas.SimulationRun:
        return self._engine.run(request.project, request.version_id)
