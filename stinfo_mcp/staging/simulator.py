"""
Substage burn simulation.

Each stage is split into intervals during which every burning engine group
and every draining tank is fixed. Within an interval consumption and thrust
are constant, so mass-flow physics can be integrated in closed form. An
interval ends when the first (zone, propellant) supply that is being drawn
runs dry; fuel amounts and routing are then recomputed.

Fuel flows along duct edges from source zones to destination zones. Engines
drain the farthest upstream zone first, split evenly across upstream
branches that still hold the propellant, and only then their own tanks.
SolidFuel never leaves its zone.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from .config import StagingOptions
from .errors import InvariantViolation
from .flow import FlowTables
from .types import LF, LF_PER_OX, OX, PROPELLANTS, FuelZone, PropellantType, StageRecord, Substage, zeros

log = logging.getLogger(__name__)


@dataclass
class EngineGroup:
    """All engines of one zone booked on one propellant slot."""

    zone: int
    slot: PropellantType
    needs: Dict[PropellantType, float]
    thrust_vac: float
    thrust_amb: float

    @property
    def consumption(self) -> float:
        return sum(self.needs.values())


def engine_groups(tables: FlowTables, zone: int, stage: int) -> List[EngineGroup]:
    flow = tables.flow(zone, stage)
    groups = []
    for slot in PROPELLANTS:
        con = flow.con[slot]
        if con <= 0.0:
            continue
        if slot is OX:
            needs = {OX: con, LF: con * LF_PER_OX}
        else:
            needs = {slot: con}
        groups.append(EngineGroup(zone, slot, needs, flow.thrust_vac[slot], flow.thrust_amb[slot]))
    return groups


@dataclass
class StageLayout:
    """Duct topology restricted to the zones still attached in one stage."""

    stage: int
    active: List[int]
    upstream: Dict[int, List[int]]
    order: List[int]  # upstream zones before the zones they feed

    @classmethod
    def build(cls, zones: List[FuelZone], stage: int) -> "StageLayout":
        active = [z.index for z in zones if z.decouple_stage < stage]
        live = set(active)
        upstream = {i: [e.source for e in zones[i].incoming if e.source in live] for i in active}
        pending = {i: len(upstream[i]) for i in active}
        ready = deque(i for i in active if pending[i] == 0)
        order: List[int] = []
        while ready:
            i = ready.popleft()
            order.append(i)
            edge = zones[i].outgoing
            if edge is not None and edge.destination in live:
                pending[edge.destination] -= 1
                if pending[edge.destination] == 0:
                    ready.append(edge.destination)
        if len(order) != len(active):
            raise InvariantViolation(f"stage {stage}: fuel duct graph is not acyclic")
        return cls(stage, active, upstream, order)

    def supply_zones(self, zone: int, prop: PropellantType) -> List[int]:
        """The zone itself plus every zone that can feed `prop` into it."""
        out = [zone]
        if not prop.crosses_ducts:
            return out
        work = list(self.upstream.get(zone, ()))
        while work:
            z = work.pop()
            out.append(z)
            work.extend(self.upstream.get(z, ()))
        return out


@dataclass
class StageSimulationContext:
    """All mutable state of one staging computation."""

    zones: List[FuelZone]
    tables: FlowTables
    options: StagingOptions
    logger: logging.Logger = field(default_factory=lambda: log)
    fuel: List[List[float]] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.fuel:
            self.fuel = [[self._snap(m) for m in z.fuel] for z in self.zones]

    def _snap(self, mass: float) -> float:
        return 0.0 if abs(mass) < self.options.epsilon else mass

    def has(self, zone: int, prop: PropellantType) -> bool:
        return self.fuel[zone][prop] > self.options.epsilon

    # fuel reachable from each zone, its own plus everything upstream
    def available(self, layout: StageLayout) -> Dict[int, List[float]]:
        avail: Dict[int, List[float]] = {}
        for z in layout.order:
            row = list(self.fuel[z])
            for src in layout.upstream[z]:
                for p in PROPELLANTS:
                    if p.crosses_ducts:
                        row[p] += avail[src][p]
            avail[z] = row
        return avail

    def burning_groups(self, layout: StageLayout, avail: Dict[int, List[float]]) -> List[EngineGroup]:
        eps = self.options.epsilon
        out = []
        for z in layout.active:
            for g in engine_groups(self.tables, z, layout.stage):
                if all(avail[z][p] > eps for p in g.needs):
                    out.append(g)
        return out

    def route(self, layout: StageLayout, avail: Dict[int, List[float]], groups: List[EngineGroup]) -> Dict[int, List[float]]:
        """Per-zone, per-propellant drain rate (t/s) for the burning groups."""
        eps = self.options.epsilon
        drain: Dict[int, List[float]] = {z: zeros() for z in layout.active}
        work: List[Tuple[int, PropellantType, float]] = [
            (g.zone, p, rate) for g in groups for p, rate in g.needs.items()
        ]
        while work:
            z, p, rate = work.pop()
            ups = [u for u in layout.upstream[z] if avail[u][p] > eps] if p.crosses_ducts else []
            if ups:
                share = rate / len(ups)
                work.extend((u, p, share) for u in ups)
            else:
                drain[z][p] += rate
        return drain

    def consumable(self, layout: StageLayout, groups: List[EngineGroup]) -> Set[Tuple[int, PropellantType]]:
        """(zone, propellant) pairs that some burning group can still draw."""
        out: Set[Tuple[int, PropellantType]] = set()
        for g in groups:
            for p in g.needs:
                for z in layout.supply_zones(g.zone, p):
                    if self.has(z, p):
                        out.add((z, p))
        return out

    def dropped_after(self, stage: int) -> List[int]:
        top = self.tables.top
        return [
            z.index for z in self.zones
            if z.decouple_stage == stage - 1 or (stage == top and z.decouple_stage >= top)
        ]

    def may_separate(self, layout: StageLayout, groups: List[EngineGroup]) -> bool:
        if not groups:
            return True
        dropped = [z for z in self.dropped_after(layout.stage) if z in layout.upstream]
        if not dropped and layout.stage - 1 not in self.tables.ignitions and layout.stage > 0:
            # nothing changes at the next staging, keep burning in this one
            dropped = list(layout.active)
        reachable = self.consumable(layout, groups)
        return not any((z, p) in reachable for z in dropped for p in PROPELLANTS)

    def _consume(self, drain: Dict[int, List[float]], dt: float, limiting: Tuple[int, PropellantType]) -> None:
        tol = self.options.fuel_tolerance
        for z, row in drain.items():
            for p in PROPELLANTS:
                if row[p] <= 0.0:
                    continue
                left = self.fuel[z][p] - row[p] * dt
                if (z, p) == limiting:
                    left = 0.0
                if left < -tol:
                    raise InvariantViolation(f"zone {z}: {p.resource_name} went negative ({left:.6g} t)")
                self.fuel[z][p] = self._snap(max(left, 0.0))

    def run_stage(self, record: StageRecord) -> None:
        stage = record.stage
        layout = StageLayout.build(self.zones, stage)
        before = sum(sum(self.fuel[z]) for z in layout.active)
        while True:
            avail = self.available(layout)
            groups = self.burning_groups(layout, avail)
            if self.may_separate(layout, groups):
                break
            if len(record.substages) >= self.options.max_substages:
                raise InvariantViolation(f"stage {stage}: substage limit {self.options.max_substages} reached")
            drain = self.route(layout, avail, groups)
            best: Optional[Tuple[float, Tuple[int, PropellantType]]] = None
            for z, row in drain.items():
                for p in PROPELLANTS:
                    if row[p] > 0.0 and self.fuel[z][p] > 0.0:
                        t = self.fuel[z][p] / row[p]
                        if best is None or t < best[0]:
                            best = (t, (z, p))
            if best is None:
                raise InvariantViolation(f"stage {stage}: engines are burning but no tank is draining")
            dt, limiting = best
            sub = Substage(
                duration=dt,
                consumption=sum(g.consumption for g in groups),
                thrust_vac=sum(g.thrust_vac for g in groups),
                thrust_amb=sum(g.thrust_amb for g in groups),
            )
            self.logger.debug(
                "stage %d substage %d: %.3f s, %.4f t/s, %.1f kN vac; %s empties zone %d",
                stage, len(record.substages), dt, sub.consumption, sub.thrust_vac,
                limiting[1].resource_name, limiting[0],
            )
            self._consume(drain, dt, limiting)
            record.substages.append(sub)

        after = sum(sum(self.fuel[z]) for z in layout.active)
        record.fuel_burned = max(before - after, 0.0)
        for z in self.dropped_after(stage):
            left = sum(self.fuel[z])
            if left > 0.0:
                self.logger.debug("stage %d: zone %d dropped with %.4f t unburned", stage, z, left)
            record.discarded_fuel += left
            self.fuel[z] = zeros()


def simulate_stages(ctx: StageSimulationContext, inert: List[float]) -> List[StageRecord]:
    """Run every stage from the current one down to 0; result is indexed by stage."""
    top = ctx.tables.top
    records = [
        StageRecord(
            stage=s,
            inert_mass=inert[s],
            initial_con=ctx.tables.initial_con[s],
            initial_thrust_vac=ctx.tables.initial_thrust_vac[s],
            initial_thrust_amb=ctx.tables.initial_thrust_amb[s],
        )
        for s in range(top + 1)
    ]
    for s in range(top, -1, -1):
        ctx.run_stage(records[s])
    return records
