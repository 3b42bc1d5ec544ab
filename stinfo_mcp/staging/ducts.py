"""Resolve fuel ducts into directed zone-to-zone transfer edges."""

from __future__ import annotations

import logging
from collections import deque
from typing import Dict, List, Optional

from .errors import TopologyError
from .types import DECOUPLER_KINDS, FuelDuctEdge, FuelZone, Part, PartKind, VesselSnapshot

log = logging.getLogger(__name__)


class DuctResolver:
    def __init__(
        self,
        snapshot: VesselSnapshot,
        kinds: Dict[str, PartKind],
        zones: List[FuelZone],
        claimed: Dict[str, int],
        logger: logging.Logger | None = None,
        diagnostics: List[str] | None = None,
    ):
        self.snapshot = snapshot
        self.kinds = kinds
        self.zones = zones
        self.claimed = claimed
        self.log = logger or log
        self.diagnostics = diagnostics if diagnostics is not None else []

    def _warn(self, msg: str) -> None:
        self.log.warning(msg)
        self.diagnostics.append(msg)

    def _zone_near(self, start: Optional[Part], barrier: Part, source: int) -> Optional[int]:
        """First zone other than `source` reachable from `start` without crossing decouplers."""
        if start is None:
            return None
        seen = {start.uid, barrier.uid}
        work = deque([start])
        while work:
            part = work.popleft()
            z = self.claimed.get(part.uid)
            if z is not None and z != source:
                return z
            if self.kinds[part.uid] in DECOUPLER_KINDS:
                continue
            for uid in (part.parent, *part.children):
                nb = self.snapshot.get(uid)
                if nb is not None and nb.uid not in seen:
                    seen.add(nb.uid)
                    work.append(nb)
        return None

    def far_side(self, duct: Part, source: int) -> Optional[int]:
        """Zone on the side of the enclosing decoupler that is not the source."""
        cur = self.snapshot.get(duct.parent)
        while cur is not None and self.kinds[cur.uid] not in DECOUPLER_KINDS:
            cur = self.snapshot.get(cur.parent)
        if cur is None:
            return None
        sides = [self.snapshot.get(cur.parent)] + [self.snapshot.get(c) for c in cur.children]
        for side in sides:
            z = self._zone_near(side, cur, source)
            if z is not None:
                return z
        return None

    def destination(self, duct: Part, source: int) -> Optional[int]:
        if duct.duct_target is not None:
            z = self.claimed.get(duct.duct_target)
            if z is not None:
                return z
            self._warn(f"fuel duct {duct.uid}: target {duct.duct_target} belongs to no fuel zone")
            return None

        if duct.tag.strip():
            tag = duct.tag.strip().lower()
            matches = [p for p in self.snapshot.parts if p.uid != duct.uid and p.tag.strip().lower() == tag]
            if len(matches) == 1 and self.claimed.get(matches[0].uid) is not None:
                return self.claimed[matches[0].uid]
            self._warn(
                f"fuel duct {duct.uid}: tag '{duct.tag}' matches {len(matches)} fuel part(s); "
                "falling back to decoupler inference"
            )
            z = self.far_side(duct, source)
            if z is None:
                raise TopologyError(f"fuel duct {duct.uid}: tag '{duct.tag}' is ambiguous and no decoupler side could be inferred")
            return z

        z = self.far_side(duct, source)
        if z is None:
            self._warn(f"fuel duct {duct.uid} has no tag and no enclosing decoupler; ignored")
        return z

    def resolve(self) -> List[FuelDuctEdge]:
        edges: List[FuelDuctEdge] = []
        for zone in self.zones:
            targets: Dict[int, str] = {}
            for uid in zone.ducts:
                dest = self.destination(self.snapshot.part(uid), zone.index)
                if dest is None or dest == zone.index:
                    self.log.debug("fuel duct %s in zone %d is a no-op", uid, zone.index)
                    continue
                targets.setdefault(dest, uid)
            if len(targets) > 1:
                raise TopologyError(
                    f"zone {zone.index} has fuel ducts into {len(targets)} different zones "
                    f"({', '.join(sorted(targets.values()))}); only one outgoing duct per zone is supported"
                )
            for dest, uid in targets.items():
                edge = FuelDuctEdge(source=zone.index, destination=dest, duct=uid)
                zone.outgoing = edge
                self.zones[dest].incoming.append(edge)
                edges.append(edge)
        check_acyclic(self.zones)
        for e in edges:
            src, dst = self.zones[e.source], self.zones[e.destination]
            if src.decouple_stage < dst.decouple_stage:
                self._warn(
                    f"fuel duct {e.duct}: source zone {src.index} stays attached longer than "
                    f"destination zone {dst.index}"
                )
        return edges


def check_acyclic(zones: List[FuelZone]) -> None:
    for zone in zones:
        seen = {zone.index}
        edge = zone.outgoing
        while edge is not None:
            if edge.destination in seen:
                raise TopologyError(f"fuel ducts form a cycle through zone {edge.destination}")
            seen.add(edge.destination)
            edge = zones[edge.destination].outgoing


def resolve_ducts(
    snapshot: VesselSnapshot,
    kinds: Dict[str, PartKind],
    zones: List[FuelZone],
    claimed: Dict[str, int],
    logger: logging.Logger | None = None,
    diagnostics: List[str] | None = None,
) -> List[FuelDuctEdge]:
    return DuctResolver(snapshot, kinds, zones, claimed, logger, diagnostics).resolve()
