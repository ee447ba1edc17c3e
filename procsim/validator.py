"""
Pre-flight flowsheet validation.

Read-only structural and specification checks run before any solve.  Each
finding is a :class:`schemas.ValidationIssue` tagged with a category and a
severity; the flowsheet is valid when there are no errors.  Warnings never
block solving.
"""

from __future__ import annotations

from collections import Counter
from typing import List, Optional

from loguru import logger

from . import schemas
from .thermo_engine import composition_sum, lookup_component
from .unit_operations import NON_PROCESS_TYPES
from .units import read_number

COMPOSITION_TOLERANCE = 0.01


class _Collector:
    def __init__(self) -> None:
        self.errors: List[schemas.ValidationIssue] = []
        self.warnings: List[schemas.ValidationIssue] = []

    def error(self, category: str, message: str, block_id: Optional[str] = None, stream_id: Optional[str] = None):
        self.errors.append(
            schemas.ValidationIssue(
                severity="error", category=category, message=message, block_id=block_id, stream_id=stream_id
            )
        )

    def warning(self, category: str, message: str, block_id: Optional[str] = None, stream_id: Optional[str] = None):
        self.warnings.append(
            schemas.ValidationIssue(
                severity="warning", category=category, message=message, block_id=block_id, stream_id=stream_id
            )
        )


def validate_flowsheet(project: schemas.Project) -> schemas.ValidationResult:
    graph = project.flowsheet
    out = _Collector()

    if not graph.blocks:
        out.error("connectivity", "Flowsheet is empty - add unit operations")
        return _finish(out)

    if not project.components:
        out.error("specification", "No components declared - add the chemical species in the process")

    _check_duplicates(graph, out)

    if not any(b.type == "Feed" for b in graph.blocks):
        out.error("connectivity", "Flowsheet has no Feed block")

    for block in graph.blocks:
        _validate_block(block, graph, out)

    for stream in graph.streams:
        _validate_stream(stream, graph, out)

    for block in graph.blocks:
        if block.type in ("TextBox", "Annotation"):
            continue
        if not graph.incoming(block.id) and not graph.outgoing(block.id):
            out.warning("connectivity", f'Block "{block.label}" is not connected to any streams', block_id=block.id)

    _check_shared_ports(graph, out)
    return _finish(out)


def _finish(out: _Collector) -> schemas.ValidationResult:
    result = schemas.ValidationResult(valid=not out.errors, errors=out.errors, warnings=out.warnings)
    if not result.valid:
        logger.warning("Validation failed with {} error(s)", len(out.errors))
    return result


# ---------------------------------------------------------------------------
# Graph-level checks
# ---------------------------------------------------------------------------


def _check_duplicates(graph: schemas.FlowsheetGraph, out: _Collector) -> None:
    for block_id, count in Counter(b.id for b in graph.blocks).items():
        if count > 1:
            out.error("connectivity", f'Block id "{block_id}" is used {count} times', block_id=block_id)
    for stream_id, count in Counter(s.id for s in graph.streams).items():
        if count > 1:
            out.error("connectivity", f'Stream id "{stream_id}" is used {count} times', stream_id=stream_id)


def _check_shared_ports(graph: schemas.FlowsheetGraph, out: _Collector) -> None:
    counts = Counter((s.source.block_id, s.source.port) for s in graph.streams)
    for (block_id, port), count in counts.items():
        if count > 1:
            out.warning(
                "connectivity",
                f'Outlet port "{port}" of block "{block_id}" feeds {count} streams - each receives the full flow',
                block_id=block_id,
            )


# ---------------------------------------------------------------------------
# Block checks
# ---------------------------------------------------------------------------


def _validate_block(block: schemas.Block, graph: schemas.FlowsheetGraph, out: _Collector) -> None:
    if block.type in NON_PROCESS_TYPES:
        return
    if block.type == "Feed":
        _validate_feed(block, graph, out)
    elif block.type in ("Flash", "Separator"):
        _validate_separator(block, graph, out)
    elif block.type == "Pump":
        dP = block.params.get("dP")
        if (dP is None or read_number(dP) <= 0) and "outletP" not in block.params:
            out.warning(
                "parameter", f'Pump "{block.label}" has no pressure rise specified - will use default', block_id=block.id
            )
    elif block.type == "Compressor":
        if "outletP" not in block.params and "ratio" not in block.params:
            out.error(
                "parameter", f'Compressor "{block.label}" needs outlet pressure or compression ratio', block_id=block.id
            )
    elif block.type in ("Heater", "Cooler"):
        if "duty" not in block.params and "outletT" not in block.params:
            out.error("parameter", f'{block.type} "{block.label}" needs duty or outlet temperature', block_id=block.id)
    elif block.type == "HeatExchanger":
        if len(graph.incoming(block.id)) != 2:
            out.error(
                "connectivity",
                f'Heat exchanger "{block.label}" needs a hot inlet and a cold inlet stream',
                block_id=block.id,
            )
    elif block.type in ("Absorber", "Stripper", "DistillationColumn"):
        stages = block.params.get("stages")
        if stages is None or read_number(stages) <= 0:
            out.error("parameter", f'Column "{block.label}" needs number of stages specified', block_id=block.id)


def _validate_feed(block: schemas.Block, graph: schemas.FlowsheetGraph, out: _Collector) -> None:
    outlets = graph.outgoing(block.id)
    if not outlets:
        out.error(
            "connectivity",
            f'Feed "{block.label}" has no outlet stream - connect to downstream equipment',
            block_id=block.id,
        )
        return

    for stream in outlets:
        spec = stream.spec
        if spec is None:
            out.error(
                "specification",
                f'Feed "{block.label}" outlet stream "{stream.label}" is not specified',
                block_id=block.id,
                stream_id=stream.id,
            )
            continue
        if spec.flow is None or spec.flow.value <= 0:
            out.error(
                "specification",
                f'Stream "{stream.label}" from "{block.label}" has no flow rate specified',
                stream_id=stream.id,
            )
        if spec.temperature is None:
            out.error(
                "specification",
                f'Stream "{stream.label}" from "{block.label}" has no temperature specified',
                stream_id=stream.id,
            )
        if spec.pressure is None:
            out.error(
                "specification",
                f'Stream "{stream.label}" from "{block.label}" has no pressure specified',
                stream_id=stream.id,
            )
        if not spec.composition:
            out.error(
                "composition",
                f'Stream "{stream.label}" from "{block.label}" has no composition specified',
                stream_id=stream.id,
            )
            continue

        total = composition_sum(spec.composition)
        if abs(total - 1.0) > COMPOSITION_TOLERANCE:
            out.error(
                "composition",
                f'Stream "{stream.label}" composition sums to {total:.3f}, must equal 1.0',
                stream_id=stream.id,
            )
        unknown = [c for c in spec.composition if lookup_component(c) is None]
        if unknown:
            out.warning(
                "specification",
                f'Stream "{stream.label}" has components without property data: {", ".join(unknown)}',
                stream_id=stream.id,
            )


def _validate_separator(block: schemas.Block, graph: schemas.FlowsheetGraph, out: _Collector) -> None:
    if not graph.incoming(block.id):
        out.error("connectivity", f'{block.type} "{block.label}" has no inlet stream', block_id=block.id)
    if len(graph.outgoing(block.id)) < 2:
        out.error(
            "connectivity",
            f'{block.type} "{block.label}" needs at least 2 outlet streams (vapor & liquid)',
            block_id=block.id,
        )


# ---------------------------------------------------------------------------
# Stream checks
# ---------------------------------------------------------------------------


def _validate_stream(stream: schemas.StreamEdge, graph: schemas.FlowsheetGraph, out: _Collector) -> None:
    source = graph.block(stream.source.block_id)
    target = graph.block(stream.target.block_id)
    if source is None:
        out.error("connectivity", f'Stream "{stream.label}" source block not found', stream_id=stream.id)
    else:
        _check_port(stream, source, stream.source.port, "out", out)
    if target is None:
        out.error("connectivity", f'Stream "{stream.label}" target block not found', stream_id=stream.id)
    else:
        _check_port(stream, target, stream.target.port, "in", out)


def _check_port(
    stream: schemas.StreamEdge, block: schemas.Block, port: str, direction: str, out: _Collector
) -> None:
    if not block.ports:
        return
    declared = {p.name: p.direction for p in block.ports}
    if port not in declared:
        out.error(
            "connectivity",
            f'Stream "{stream.label}" references undeclared port "{port}" on "{block.label}"',
            block_id=block.id,
            stream_id=stream.id,
        )
    elif declared[port] != direction:
        out.error(
            "connectivity",
            f'Stream "{stream.label}" uses port "{port}" of "{block.label}" in the wrong direction',
            block_id=block.id,
            stream_id=stream.id,
        )
