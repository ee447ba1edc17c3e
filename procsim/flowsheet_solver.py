"""
Sequential-modular flowsheet solver.

  1. Initialise every Feed stream from its design specification
  2. Order the process blocks with a depth-first topological sort
  3. Reject flowsheets with recycle loops
  4. Calculate each block in order from the shared stream table

All run-scoped state (stream table, block results, block status) lives in a
:class:`RunContext` created fresh for every solve.  The first failure aborts
the run and is reported as ``converged=False`` with the error message.

:class:`PropagatingExecutor` is the push-based variant: it starts from the
feeds and works a queue of downstream blocks, calculating each one once all
of its inlets are populated.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from loguru import logger

from . import schemas
from .sequencer import sequence
from .thermo_engine import StreamState, ThermoEngine, normalize_phase
from .unit_operations import NON_PROCESS_TYPES, UNIT_OP_REGISTRY
from .units import quantity_flow, quantity_pressure, quantity_temperature


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class SolverError(Exception):
    """Fatal condition that aborts an in-progress solve."""


class MissingStreamError(SolverError):
    pass


class UnknownBlockTypeError(SolverError):
    pass


class CircularDependencyError(SolverError):
    pass


class RecycleNotSupportedError(SolverError):
    pass


class BlockCalculationError(SolverError):
    def __init__(self, block_id: str, message: str) -> None:
        super().__init__(message)
        self.block_id = block_id


# ---------------------------------------------------------------------------
# Data types
# ---------------------------------------------------------------------------


@dataclass
class BlockResult:
    block_id: str
    block_type: str
    status: str = "idle"  # idle -> computing -> done | error
    inlets: Dict[str, str] = field(default_factory=dict)  # port -> stream id
    outlets: Dict[str, str] = field(default_factory=dict)  # port -> stream id
    duty_kw: float = 0.0
    power_kw: float = 0.0
    details: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None


@dataclass
class SolverResult:
    converged: bool
    streams: Dict[str, StreamState]
    block_results: Dict[str, BlockResult]
    order: List[str] = field(default_factory=list)
    error: Optional[str] = None
    warnings: List[str] = field(default_factory=list)


class RunContext:
    """Stream and block-result tables owned by a single solve."""

    def __init__(self, project: schemas.Project) -> None:
        self.graph = project.flowsheet
        self.streams: Dict[str, StreamState] = {}
        self.block_results: Dict[str, BlockResult] = {
            b.id: BlockResult(block_id=b.id, block_type=b.type) for b in self.graph.blocks
        }
        self.order: List[str] = []
        self.warnings: List[str] = []

    def status(self, block_id: str) -> str:
        return self.block_results[block_id].status

    def result(self, converged: bool, error: Optional[str] = None) -> SolverResult:
        return SolverResult(
            converged=converged,
            streams=self.streams,
            block_results=self.block_results,
            order=self.order,
            error=error,
            warnings=self.warnings,
        )


# ---------------------------------------------------------------------------
# Shared block execution
# ---------------------------------------------------------------------------


class _ExecutorBase:
    def __init__(self, project: schemas.Project) -> None:
        self.project = project
        self.graph = project.flowsheet
        self.engine = ThermoEngine(project.components)

    def _initialize_feeds(self, ctx: RunContext) -> None:
        for block in self.graph.blocks:
            if block.type != "Feed":
                continue
            result = ctx.block_results[block.id]
            for edge in self.graph.outgoing(block.id):
                ctx.streams[edge.id] = self._feed_state(block, edge)
                result.outlets[edge.source.port] = edge.id
            result.status = "done"

    def _feed_state(self, block: schemas.Block, edge: schemas.StreamEdge) -> StreamState:
        spec = edge.spec
        if spec is None:
            raise MissingStreamError(f"Feed '{block.label}' outlet stream '{edge.label}' has no specification")
        T = quantity_temperature(spec.temperature)
        P = quantity_pressure(spec.pressure)
        flow = quantity_flow(spec.flow)
        if T is None or P is None or flow is None:
            raise MissingStreamError(f"Feed stream '{edge.label}' needs temperature, pressure and flow")
        return self.engine.make_stream(
            edge.id, edge.label, T, P, flow, spec.composition, normalize_phase(spec.phase)
        )

    def _is_isolated(self, block_id: str) -> bool:
        return not self.graph.incoming(block_id) and not self.graph.outgoing(block_id)

    def _skip_isolated(self, ctx: RunContext, block: schemas.Block) -> None:
        msg = f"Block '{block.label}' has no connections and was skipped"
        logger.warning(msg)
        ctx.warnings.append(msg)

    def _execute_block(self, ctx: RunContext, block: schemas.Block) -> None:
        result = ctx.block_results[block.id]
        incoming = self.graph.incoming(block.id)
        outgoing = self.graph.outgoing(block.id)

        inlets: Dict[str, StreamState] = {}
        for edge in incoming:
            state = ctx.streams.get(edge.id)
            if state is None:
                result.status = "error"
                result.error = f"Inlet stream '{edge.label}' has not been calculated"
                raise MissingStreamError(f"Block '{block.label}': {result.error}")
            port = edge.target.port if edge.target.port not in inlets else f"{edge.target.port}:{edge.id}"
            inlets[port] = state
            result.inlets[port] = edge.id

        op_cls = UNIT_OP_REGISTRY.get(block.type)
        if op_cls is None:
            result.status = "error"
            result.error = f"Unknown block type '{block.type}'"
            raise UnknownBlockTypeError(f"Block '{block.label}': {result.error}")

        result.status = "computing"
        outlet_ports: List[str] = []
        for edge in outgoing:
            if edge.source.port not in outlet_ports:
                outlet_ports.append(edge.source.port)

        op = op_cls(block, self.engine)
        try:
            outlets = op.calculate(inlets, outlet_ports)
        except Exception as exc:
            result.status = "error"
            result.error = str(exc)
            raise BlockCalculationError(block.id, f"{block.type} '{block.label}' failed: {exc}") from exc

        for edge in outgoing:
            state = outlets.get(edge.source.port)
            if state is None:
                result.status = "error"
                result.error = f"No stream produced for outlet port '{edge.source.port}'"
                raise MissingStreamError(f"Block '{block.label}': {result.error}")
            ctx.streams[edge.id] = state.copy(id=edge.id, name=edge.label)
            result.outlets[edge.source.port] = edge.id

        result.duty_kw = op.duty_kw
        result.power_kw = op.power_kw
        result.details = dict(op.details)
        result.status = "done"
        ctx.order.append(block.id)
        logger.debug(
            "Block '{}' ({}) done: duty={:.3f} kW, power={:.3f} kW",
            block.label, block.type, op.duty_kw, op.power_kw,
        )


# ---------------------------------------------------------------------------
# Solvers
# ---------------------------------------------------------------------------


class FlowsheetSolver(_ExecutorBase):
    """Executes blocks strictly in topological order; recycles are rejected."""

    def solve(self) -> SolverResult:
        ctx = RunContext(self.project)
        try:
            self._initialize_feeds(ctx)
            seq = sequence(self.graph)
            if seq.has_cycle:
                loops = ", ".join(f"{u} -> {v}" for u, v in seq.back_edges)
                raise RecycleNotSupportedError(f"Recycle not supported: flowsheet contains a cycle ({loops})")
            logger.info("Execution order: {}", seq.order)

            for block_id in seq.order:
                block = self.graph.block(block_id)
                if block.type == "Feed":
                    ctx.order.append(block_id)
                    continue
                if self._is_isolated(block_id):
                    self._skip_isolated(ctx, block)
                    continue
                self._execute_block(ctx, block)
        except SolverError as exc:
            logger.error("Flowsheet solve failed: {}", exc)
            return ctx.result(converged=False, error=str(exc))

        return ctx.result(converged=True)


class PropagatingExecutor(_ExecutorBase):
    """
    Push-based executor.

    Blocks are pulled from a work queue seeded with the feeds' downstream
    neighbours; a block is calculated once every incoming stream is populated
    and then enqueues its own downstream neighbours.  Blocks left waiting
    when the queue drains are reported as a circular dependency if the graph
    has a cycle, otherwise as missing inlet streams.
    """

    def _downstream(self, block_id: str) -> List[str]:
        targets: List[str] = []
        for edge in self.graph.outgoing(block_id):
            target = self.graph.block(edge.target.block_id)
            if target is not None and target.type not in NON_PROCESS_TYPES and target.id not in targets:
                targets.append(target.id)
        return targets

    def solve(self) -> SolverResult:
        ctx = RunContext(self.project)
        try:
            self._initialize_feeds(ctx)
            queue = deque()
            for block in self.graph.blocks:
                if block.type == "Feed":
                    ctx.order.append(block.id)
                    queue.extend(self._downstream(block.id))

            while queue:
                block_id = queue.popleft()
                if ctx.status(block_id) == "done":
                    continue
                if not all(e.id in ctx.streams for e in self.graph.incoming(block_id)):
                    continue
                self._execute_block(ctx, self.graph.block(block_id))
                queue.extend(self._downstream(block_id))

            stalled = []
            for block in self.graph.blocks:
                if block.type in NON_PROCESS_TYPES or block.type == "Feed":
                    continue
                if self._is_isolated(block.id):
                    self._skip_isolated(ctx, block)
                elif ctx.status(block.id) != "done":
                    stalled.append(block.id)

            if stalled:
                if sequence(self.graph).has_cycle:
                    raise CircularDependencyError(
                        f"Circular dependency detected involving blocks: {', '.join(stalled)}"
                    )
                raise MissingStreamError(f"Blocks never received all inlet streams: {', '.join(stalled)}")
        except SolverError as exc:
            logger.error("Flowsheet solve failed: {}", exc)
            return ctx.result(converged=False, error=str(exc))

        return ctx.result(converged=True)


_STRATEGIES = {
    "sequential": FlowsheetSolver,
    "propagate": PropagatingExecutor,
}


def solve(project: schemas.Project, strategy: str = "sequential") -> SolverResult:
    try:
        solver_cls = _STRATEGIES[strategy]
    except KeyError:
        raise ValueError(f"Unknown solve strategy '{strategy}'") from None
    return solver_cls(project).solve()
