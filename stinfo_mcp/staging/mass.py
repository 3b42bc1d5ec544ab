"""Assign inert (non-burnable) mass to the stage at which it is dropped."""

from __future__ import annotations

import logging
from typing import Dict, List

from .config import StagingOptions
from .errors import ConfigurationError
from .types import DECOUPLER_KINDS, Part, PartKind, VesselSnapshot

log = logging.getLogger(__name__)


def _leaves_with_jettison(part: Part, kind: PartKind, options: StagingOptions) -> bool:
    """Orientation heuristic: does the decoupler go away with the part it releases?"""
    leaves = kind in (PartKind.DECOUPLER, PartKind.SEPARATOR)
    if kind is PartKind.DECOUPLER and part.self_node == "bottom":
        leaves = False
    if options.reverse_tag in part.tags:
        leaves = not leaves
    return leaves


def _kept_side_stage(snapshot: VesselSnapshot, part: Part) -> int:
    stages = []
    for uid in (part.parent, *part.children):
        nb = snapshot.get(uid)
        if nb is not None and nb.decouple_stage < part.stage:
            stages.append(nb.decouple_stage)
    if stages:
        return max(stages)
    return part.decouple_stage if part.decouple_stage < part.stage else -1


def mass_stage(snapshot: VesselSnapshot, part: Part, kind: PartKind, options: StagingOptions) -> int:
    """Stage index in which the part's mass is last carried."""
    if kind in DECOUPLER_KINDS and part.stage >= 0:
        if _leaves_with_jettison(part, kind, options):
            return part.stage + 1
        return _kept_side_stage(snapshot, part) + 1
    return part.decouple_stage + 1


def account_masses(
    snapshot: VesselSnapshot,
    kinds: Dict[str, PartKind],
    claimed: Dict[str, int],
    options: StagingOptions,
    logger: logging.Logger | None = None,
    diagnostics: List[str] | None = None,
) -> List[float]:
    """
    Per-stage inert mass (t), indexed by stage number 0..current_stage.

    Propellant held in zone members is excluded; it is tracked by the
    simulator and ends up either burned or discarded.
    """
    logger = logger or log
    top = max(snapshot.current_stage, 0)
    inert = [0.0] * (top + 1)

    def add(stage: int, mass: float) -> None:
        inert[min(max(stage, 0), top)] += mass

    for part in snapshot.parts:
        kind = kinds[part.uid]
        if kind is PartKind.LAUNCH_CLAMP:
            continue
        mass = part.mass
        if part.uid in claimed:
            mass -= sum(part.propellant_mass())
        stage = mass_stage(snapshot, part, kind, options)

        if kind is PartKind.FAIRING:
            base = options.fairing_bases.get(part.name)
            if base is None:
                msg = f"unknown fairing part '{part.name}' ({part.uid})"
                if options.strict_fairings:
                    raise ConfigurationError(msg)
                logger.warning("%s; counting its whole mass with the base", msg)
                if diagnostics is not None:
                    diagnostics.append(msg)
            else:
                panels = max(0.0, mass - base)
                panel_stage = part.stage + 1 if part.stage >= 0 else stage
                add(max(panel_stage, stage), panels)
                mass -= panels
        add(stage, mass)
    return inert
