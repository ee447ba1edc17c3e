from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Parameters
# ---------------------------------------------------------------------------


class Quantity(BaseModel):
    value: float
    unit: str


class NumberParam(BaseModel):
    kind: Literal["number"] = "number"
    x: float


class QuantityParam(BaseModel):
    kind: Literal["quantity"] = "quantity"
    q: Quantity


class CountParam(BaseModel):
    kind: Literal["int"] = "int"
    n: int


ParamValue = Annotated[
    Union[NumberParam, QuantityParam, CountParam], Field(discriminator="kind")
]


def param_value(param: Any) -> float:
    """Return the raw numeric payload of a parameter, ignoring any unit."""
    if isinstance(param, NumberParam):
        return float(param.x)
    if isinstance(param, QuantityParam):
        return float(param.q.value)
    if isinstance(param, CountParam):
        return float(param.n)
    raise TypeError(f"Unsupported parameter value: {param!r}")


# ---------------------------------------------------------------------------
# Flowsheet graph
# ---------------------------------------------------------------------------


class Component(BaseModel):
    id: str
    name: Optional[str] = None
    formula: Optional[str] = None
    cas: Optional[str] = None
    role: Optional[Literal["solute", "solvent", "inert"]] = None


class Port(BaseModel):
    name: str
    direction: Literal["in", "out"]
    phase: Optional[Literal["V", "L", "VL"]] = None


class Block(BaseModel):
    id: str
    type: str
    name: str = ""
    params: Dict[str, ParamValue] = Field(default_factory=dict)
    ports: List[Port] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)

    @property
    def label(self) -> str:
        return self.name or self.id

    def port_names(self, direction: str) -> List[str]:
        return [p.name for p in self.ports if p.direction == direction]


class PortRef(BaseModel):
    block_id: str
    port: str


class StreamDesignSpec(BaseModel):
    temperature: Optional[Quantity] = None
    pressure: Optional[Quantity] = None
    flow: Optional[Quantity] = None
    composition: Dict[str, float] = Field(default_factory=dict)
    phase: Optional[str] = None


class StreamEdge(BaseModel):
    id: str
    name: str = ""
    source: PortRef
    target: PortRef
    spec: Optional[StreamDesignSpec] = None

    @property
    def label(self) -> str:
        return self.name or self.id


class FlowsheetGraph(BaseModel):
    blocks: List[Block] = Field(default_factory=list)
    streams: List[StreamEdge] = Field(default_factory=list)

    def block(self, block_id: str) -> Optional[Block]:
        for block in self.blocks:
            if block.id == block_id:
                return block
        return None

    def stream(self, stream_id: str) -> Optional[StreamEdge]:
        for stream in self.streams:
            if stream.id == stream_id:
                return stream
        return None

    def incoming(self, block_id: str) -> List[StreamEdge]:
        return [s for s in self.streams if s.target.block_id == block_id]

    def outgoing(self, block_id: str) -> List[StreamEdge]:
        return [s for s in self.streams if s.source.block_id == block_id]


# ---------------------------------------------------------------------------
# Specs, metric references and constraints
# ---------------------------------------------------------------------------


class PuritySpec(BaseModel):
    type: Literal["purity"] = "purity"
    id: str
    stream_id: str
    component: str
    target: float


class RecoverySpec(BaseModel):
    type: Literal["recovery"] = "recovery"
    id: str
    component: str
    feed_stream_id: str
    product_stream_id: str
    target: float


class CaptureSpec(BaseModel):
    type: Literal["capture"] = "capture"
    id: str
    component: str = "CO2"
    vent_stream_id: Optional[str] = None
    target_removal: float


Spec = Annotated[Union[PuritySpec, RecoverySpec, CaptureSpec], Field(discriminator="type")]


class StreamMetricRef(BaseModel):
    kind: Literal["stream"] = "stream"
    stream_id: str
    metric: Literal["T", "P", "flow", "vaporFrac"]


class UnitMetricRef(BaseModel):
    kind: Literal["unit"] = "unit"
    block_id: str
    metric: str


class KpiMetricRef(BaseModel):
    kind: Literal["kpi"] = "kpi"
    metric: str


MetricRef = Annotated[
    Union[StreamMetricRef, UnitMetricRef, KpiMetricRef], Field(discriminator="kind")
]


class MaxConstraint(BaseModel):
    type: Literal["max"] = "max"
    id: str
    ref: MetricRef
    limit: float
    hard: bool = False


class MinConstraint(BaseModel):
    type: Literal["min"] = "min"
    id: str
    ref: MetricRef
    limit: float
    hard: bool = False


class RangeConstraint(BaseModel):
    type: Literal["range"] = "range"
    id: str
    ref: MetricRef
    min: float
    max: float
    hard: bool = False


Constraint = Annotated[
    Union[MaxConstraint, MinConstraint, RangeConstraint], Field(discriminator="type")
]


# ---------------------------------------------------------------------------
# Economics
# ---------------------------------------------------------------------------


class EconomicConfig(BaseModel):
    steam_price: float = 10.0  # $/GJ
    electricity_price: float = 0.1  # $/kWh
    co2_price: float = 50.0  # $/t
    capex_factor: float = 0.1


class ExtendedEconomicConfig(EconomicConfig):
    annualization_factor: float = 0.15
    installation_factor: float = 3.0
    contingency_factor: float = 0.15
    operating_hours: float = 8000.0  # h/yr
    labor_cost: float = 75000.0  # $/operator-yr
    operators_per_shift: float = 2.0
    maintenance_factor: float = 0.03


class Project(BaseModel):
    project_id: str = "project"
    name: str = "untitled"
    components: List[Component] = Field(default_factory=list)
    flowsheet: FlowsheetGraph = Field(default_factory=FlowsheetGraph)
    specs: List[Spec] = Field(default_factory=list)
    constraints: List[Constraint] = Field(default_factory=list)
    economics: Optional[ExtendedEconomicConfig] = None


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class ValidationIssue(BaseModel):
    severity: Literal["error", "warning"]
    category: Literal["connectivity", "specification", "composition", "parameter"]
    message: str
    block_id: Optional[str] = None
    stream_id: Optional[str] = None


class ValidationResult(BaseModel):
    valid: bool
    errors: List[ValidationIssue] = Field(default_factory=list)
    warnings: List[ValidationIssue] = Field(default_factory=list)


class EquipmentSize(BaseModel):
    block_id: str
    block_type: str
    sizing_param: str
    value: float
    unit: str
    cost: float


class CAPEXResult(BaseModel):
    equipment: List[EquipmentSize] = Field(default_factory=list)
    total_capex: float = 0.0


class TotalAnnualCost(BaseModel):
    installed_capex: float
    annualized_capex: float
    utility_cost: float
    labor_cost: float
    maintenance_cost: float
    total_opex: float
    total_annual_cost: float


class SpecResult(BaseModel):
    spec_id: str
    achieved: float
    target: float
    ok: bool


class Violation(BaseModel):
    constraint_id: str
    value: float
    message: str
    hard: bool


class SimulationRun(BaseModel):
    model_config = ConfigDict(frozen=True)

    simulator: str = "procsim"
    status: Literal["done", "error"]
    inputs_hash: str
    converged: bool
    kpis: Dict[str, float] = Field(default_factory=dict)
    spec_results: List[SpecResult] = Field(default_factory=list)
    violations: List[Violation] = Field(default_factory=list)
    raw_outputs: Dict[str, Any] = Field(default_factory=dict)


class StreamResult(BaseModel):
    id: str
    name: str = ""
    temperature_k: float
    pressure_bar: float
    flow_kmol_per_h: float
    composition: Dict[str, float] = Field(default_factory=dict)
    phase: str
    enthalpy_kj_per_mol: float
    vapor_fraction: Optional[float] = None


class BlockResultModel(BaseModel):
    id: str
    type: str
    status: str
    duty_kw: float = 0.0
    power_kw: float = 0.0
    details: Dict[str, Any] = Field(default_factory=dict)
    error: Optional[str] = None


class SolveResponse(BaseModel):
    converged: bool
    order: List[str] = Field(default_factory=list)
    streams: List[StreamResult] = Field(default_factory=list)
    blocks: List[BlockResultModel] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    error: Optional[str] = None


class SolveRequest(BaseModel):
    project: Project
    strategy: Literal["sequential", "propagate"] = "sequential"


class RunRequest(BaseModel):
    project: Project
    version_id: str = "v1"
