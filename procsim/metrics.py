"""
Default metric-reference resolver.

Maps a :data:`schemas.MetricRef` to a number, or None when the reference
cannot be resolved.  Stream references prefer the solved stream in the run's
raw outputs and fall back to the design specification; unit references
read block parameters, then the run's block results; KPI references read
the run's KPI map.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from . import schemas
from .units import quantity_flow, quantity_pressure, quantity_temperature, read_number

MetricResolver = Callable[[Any, schemas.Project, Optional[schemas.SimulationRun]], Optional[float]]

_STREAM_FIELDS = {
    "T": "temperature_k",
    "P": "pressure_bar",
    "flow": "flow_kmol_per_h",
    "vaporFrac": "vapor_fraction",
}


def _solved_stream(run: Optional[schemas.SimulationRun], stream_id: str) -> Optional[Dict[str, Any]]:
    if run is None:
        return None
    streams = run.raw_outputs.get("streams") or {}
    return streams.get(stream_id)


def _resolve_stream(ref: schemas.StreamMetricRef, project, run) -> Optional[float]:
    solved = _solved_stream(run, ref.stream_id)
    if solved is not None:
        value = solved.get(_STREAM_FIELDS[ref.metric])
        if value is None and ref.metric == "vaporFrac":
            phase = solved.get("phase")
            value = {"V": 1.0, "L": 0.0}.get(phase)
        return None if value is None else float(value)

    edge = project.flowsheet.stream(ref.stream_id)
    if edge is None or edge.spec is None:
        return None
    spec = edge.spec
    if ref.metric == "T":
        return quantity_temperature(spec.temperature)
    if ref.metric == "P":
        return quantity_pressure(spec.pressure)
    if ref.metric == "flow":
        return quantity_flow(spec.flow)
    return {"V": 1.0, "L": 0.0}.get((spec.phase or "").upper())


def _resolve_unit(ref: schemas.UnitMetricRef, project, run) -> Optional[float]:
    block = project.flowsheet.block(ref.block_id)
    if block is None:
        return None
    param = block.params.get(ref.metric)
    if param is not None:
        return read_number(param)
    if run is not None:
        result = (run.raw_outputs.get("blocks") or {}).get(ref.block_id) or {}
        key = {"duty": "duty_kw", "power": "power_kw"}.get(ref.metric)
        if key is not None and result.get(key) is not None:
            return float(result[key])
        detail = (result.get("details") or {}).get(ref.metric)
        if isinstance(detail, (int, float)):
            return float(detail)
    return None


def resolve_metric(
    ref, project: schemas.Project, run: Optional[schemas.SimulationRun] = None
) -> Optional[float]:
    if isinstance(ref, schemas.StreamMetricRef):
        return _resolve_stream(ref, project, run)
    if isinstance(ref, schemas.UnitMetricRef):
        return _resolve_unit(ref, project, run)
    if isinstance(ref, schemas.KpiMetricRef):
        if run is None:
            return None
        value = run.kpis.get(ref.metric)
        return None if value is None else float(value)
    raise TypeError(f"Unsupported metric reference: {ref!r}")
