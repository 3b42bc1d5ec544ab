"""Per-zone, per-stage consumption and thrust tables."""

from __future__ import annotations

import logging
import math
import numbers
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set, Tuple

from .errors import ConfigurationError
from .types import LF, LF_PER_OX, OX, EngineSpec, FuelZone, PropellantType, StageFlow, VesselSnapshot

log = logging.getLogger(__name__)

CURRENT = "current"


def resolve_pressure(pressure: Any, snapshot: VesselSnapshot) -> float:
    """
    Pressure (atm) used for ambient thrust.

    Numbers must lie in [0, 100]; anything non-numeric selects the vessel's
    current ambient pressure.
    """
    if isinstance(pressure, bool) or not isinstance(pressure, numbers.Real):
        return float(snapshot.ambient_pressure)
    p = float(pressure)
    if math.isnan(p) or p < 0.0 or p > 100.0:
        raise ConfigurationError(f"atmospheric pressure must be within [0, 100] atm, got {pressure!r}")
    return p


def engine_demand(spec: EngineSpec) -> Optional[Tuple[PropellantType, float]]:
    """
    Propellant slot an engine is booked against and its rate in that slot.

    Engines burning LiquidFuel and Oxidizer together are booked on the
    Oxidizer slot with their LiquidFuel share implied by the 9:11 ratio, so
    they never double-count against LiquidFuel-only engines. Returns None
    for engines that need a propellant the simulator does not track.
    """
    flows: Dict[PropellantType, float] = {}
    for name, rate in spec.max_fuel_flow.items():
        p = PropellantType.from_resource(name)
        if p is None:
            if rate > 0.0:
                return None
            continue
        flows[p] = flows.get(p, 0.0) + rate * spec.thrust_limit
    if LF in flows and OX in flows and len(flows) == 2:
        total = flows[LF] + flows[OX]
        return OX, total / (1.0 + LF_PER_OX)
    if len(flows) == 1:
        return next(iter(flows.items()))
    return None


def total_flow(slot: PropellantType, con: float) -> float:
    """Mass flow of a slot entry including the implied LiquidFuel of dual engines."""
    return con * (1.0 + LF_PER_OX) if slot is OX else con


@dataclass
class FlowTables:
    top: int
    zone_flows: List[Dict[int, StageFlow]] = field(default_factory=list)
    initial_con: List[float] = field(default_factory=list)
    initial_thrust_vac: List[float] = field(default_factory=list)
    initial_thrust_amb: List[float] = field(default_factory=list)
    ignitions: Set[int] = field(default_factory=set)

    def flow(self, zone: int, stage: int) -> StageFlow:
        return self.zone_flows[zone].get(stage) or StageFlow()


def build_flow_tables(
    snapshot: VesselSnapshot,
    zones: List[FuelZone],
    claimed: Dict[str, int],
    pressure: float,
    logger: logging.Logger | None = None,
) -> FlowTables:
    logger = logger or log
    top = max(snapshot.current_stage, 0)
    tables = FlowTables(
        top=top,
        zone_flows=[{} for _ in zones],
        initial_con=[0.0] * (top + 1),
        initial_thrust_vac=[0.0] * (top + 1),
        initial_thrust_amb=[0.0] * (top + 1),
    )
    for part in snapshot.engines():
        zone = claimed.get(part.uid)
        spec = part.engine
        if zone is None or spec is None:
            continue
        demand = engine_demand(spec)
        if demand is None:
            logger.debug("engine %s (%s) uses untracked propellants; skipped", part.uid, part.name)
            continue
        slot, con = demand
        if con <= 0.0:
            continue
        thrust_vac = spec.thrust_at(0.0)
        thrust_amb = spec.thrust_at(pressure)
        tables.ignitions.add(part.stage)
        for s in range(max(part.decouple_stage + 1, 0), min(part.stage, top) + 1):
            sf = tables.zone_flows[zone].setdefault(s, StageFlow())
            sf.con[slot] += con
            sf.thrust_vac[slot] += thrust_vac
            sf.thrust_amb[slot] += thrust_amb
            tables.initial_con[s] += total_flow(slot, con)
            tables.initial_thrust_vac[s] += thrust_vac
            tables.initial_thrust_amb[s] += thrust_amb
    return tables
