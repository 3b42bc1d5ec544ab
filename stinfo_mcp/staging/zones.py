"""Partition a vessel into fuel zones (engine groups sharing one reservoir)."""

from __future__ import annotations

import logging
from collections import deque
from typing import Dict, Iterator, List, Set, Tuple

from .config import StagingOptions
from .types import DECOUPLER_KINDS, FuelZone, Part, PartKind, PropellantType, VesselSnapshot, classify_part

log = logging.getLogger(__name__)


def classify_parts(snapshot: VesselSnapshot) -> Dict[str, PartKind]:
    return {p.uid: classify_part(p) for p in snapshot.parts}


def _has_propellant(part: Part) -> bool:
    return any(PropellantType.from_resource(r.name) is not None for r in part.resources)


def plate_keeps(plate: Part, other: Part, kinds: Dict[str, PartKind], options: StagingOptions) -> bool:
    """Whether `other` (a neighbour of an engine plate) stays on the plate's side."""
    if options.detached_tag in other.tags:
        return False
    if options.attached_tag in other.tags:
        return True
    if other.uid == plate.parent:
        return plate.self_node in (None, "top")
    return other.attach_node == "top" or kinds[other.uid] is PartKind.ENGINE


def _neighbours(snapshot: VesselSnapshot, part: Part) -> Iterator[Part]:
    if part.parent is not None:
        parent = snapshot.get(part.parent)
        if parent is not None:
            yield parent
    for uid in part.children:
        child = snapshot.get(uid)
        if child is not None:
            yield child


class _Walker:
    """One traversal from an unclaimed engine."""

    def __init__(self, snapshot: VesselSnapshot, kinds: Dict[str, PartKind], claimed: Dict[str, int], options: StagingOptions):
        self.snapshot = snapshot
        self.kinds = kinds
        self.claimed = claimed
        self.options = options

    def _can_enter(self, src: Part, dst: Part) -> bool:
        kind = self.kinds[dst.uid]
        if self.kinds[src.uid] is PartKind.ENGINE_PLATE:
            return plate_keeps(src, dst, self.kinds, self.options)
        if kind is PartKind.ENGINE_PLATE:
            return plate_keeps(dst, src, self.kinds, self.options)
        if kind in DECOUPLER_KINDS and not dst.crossfeed:
            return False
        return True

    def _expands(self, part: Part) -> bool:
        kind = self.kinds[part.uid]
        if kind is PartKind.FUEL_DUCT:
            return False
        if kind in DECOUPLER_KINDS:
            # entry was already checked; crossfeed-enabled decouplers are transited
            return True
        return part.crossfeed

    def _claimable(self, part: Part) -> bool:
        kind = self.kinds[part.uid]
        if kind in (PartKind.ENGINE, PartKind.FUEL_DUCT):
            return True
        if kind in DECOUPLER_KINDS:
            return _has_propellant(part)
        return _has_propellant(part) or not part.crossfeed

    def walk(self, start: Part, zone: FuelZone) -> None:
        seen: Set[str] = {start.uid}
        work = deque([start])
        while work:
            part = work.popleft()
            owner = self.claimed.get(part.uid)
            if owner is not None and owner != zone.index:
                continue
            if owner is None and self._claimable(part):
                self.claim(part, zone)
            if not self._expands(part):
                continue
            for nb in _neighbours(self.snapshot, part):
                if nb.uid in seen or not self._can_enter(part, nb):
                    continue
                seen.add(nb.uid)
                work.append(nb)

    def claim(self, part: Part, zone: FuelZone) -> None:
        self.claimed[part.uid] = zone.index
        zone.parts.append(part.uid)
        kind = self.kinds[part.uid]
        if kind is PartKind.FUEL_DUCT:
            zone.ducts.append(part.uid)
            return
        bounded = False
        if kind is PartKind.ENGINE:
            zone.engines.append(part.uid)
            zone.activation_stage = max(zone.activation_stage, part.stage)
            bounded = True
        if _has_propellant(part):
            zone.tanks.append(part.uid)
            for slot, mass in enumerate(part.propellant_mass()):
                zone.fuel[slot] += mass
            bounded = True
        if bounded:
            # the zone survives as long as its last member does
            zone.decouple_stage = min(zone.decouple_stage, part.decouple_stage)


def build_zones(
    snapshot: VesselSnapshot,
    kinds: Dict[str, PartKind],
    options: StagingOptions,
    logger: logging.Logger | None = None,
) -> Tuple[List[FuelZone], Dict[str, int]]:
    """
    Group parts into fuel zones, one traversal per engine not yet claimed.

    Returns (zones, claimed) where `claimed` maps part uid to zone index.
    A part belongs to at most one zone; parts with no fuel that are merely
    transited (structural parts, crossfeed decouplers) belong to none.
    """
    logger = logger or log
    claimed: Dict[str, int] = {}
    zones: List[FuelZone] = []
    walker = _Walker(snapshot, kinds, claimed, options)
    for eng in snapshot.engines():
        if eng.uid in claimed:
            continue
        zone = FuelZone(index=len(zones), activation_stage=eng.stage, decouple_stage=eng.decouple_stage)
        walker.walk(eng, zone)
        zones.append(zone)
        if len(zone.engines) > 1:
            stages = {snapshot.part(u).stage for u in zone.engines}
            if len(stages) > 1:
                logger.debug("zone %d: engines activate in stages %s; bounds widened to %d..%d",
                              zone.index, sorted(stages), zone.activation_stage, zone.decouple_stage)

    # Drop tanks without engines still feed other zones through their ducts
    for duct in snapshot.parts:
        if kinds[duct.uid] is not PartKind.FUEL_DUCT or duct.uid in claimed:
            continue
        seed = snapshot.get(duct.parent)
        if seed is None or seed.uid in claimed:
            logger.debug("fuel duct %s has no unclaimed source tank; ignored", duct.uid)
            continue
        zone = FuelZone(index=len(zones), activation_stage=-1, decouple_stage=seed.decouple_stage)
        walker.walk(seed, zone)
        if duct.uid not in claimed:
            walker.claim(duct, zone)
        zones.append(zone)
    return zones, claimed
