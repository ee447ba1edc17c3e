from __future__ import annotations

from fastapi import FastAPI, HTTPException

from . import schemas
from .simulation_service import SimulationService

app = FastAPI(title="Process Simulation API", version="0.1.0")
service = SimulationService()


@app.get("/healthz")
def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/validate", response_model=schemas.ValidationResult)
def validate_project(project: schemas.Project) -> schemas.ValidationResult:
    try:
        return service.validate(project)
    except Exception as exc:  # pragma: no cover
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@app.post("/solve", response_model=schemas.SolveResponse)
def solve_flowsheet(request: schemas.SolveRequest) -> schemas.SolveResponse:
    try:
        return service.solve(request)
    except Exception as exc:  # pragma: no cover
        raise HTTPException(status_code=500, detail=str(exc)) from exc


@app.post("/run", response_model=schemas.SimulationRun)
def run_simulation(request: schemas.RunRequest) -> schemas.SimulationRun:
    return service.run(request)
