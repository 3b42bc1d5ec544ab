"""
Split a requested delta-v across the stages that will deliver it.

This is the consumer side of the stage table: a maneuver executor reads
delta-v, burn duration and start mass per stage to estimate how long a
burn lasts and when to start it (half the delta-v before the node).
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Sequence

from .errors import ConfigurationError
from .types import G0, StageSummary


@dataclass(frozen=True)
class BurnSegment:
    stage: int
    delta_v: float
    duration: float
    full_stage: bool


@dataclass
class BurnPlan:
    requested_delta_v: float
    segments: List[BurnSegment] = field(default_factory=list)
    half_delta_v_time: float = 0.0
    shortfall: float = 0.0

    @property
    def delta_v(self) -> float:
        return sum(s.delta_v for s in self.segments)

    @property
    def duration(self) -> float:
        return sum(s.duration for s in self.segments)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "requested_delta_v": self.requested_delta_v,
            "delta_v": self.delta_v,
            "duration": self.duration,
            "half_delta_v_time": self.half_delta_v_time,
            "shortfall": self.shortfall,
            "segments": [asdict(s) for s in self.segments],
        }


def _stage_dv(stage: StageSummary, vacuum: bool) -> float:
    return stage.delta_v_vac if vacuum else stage.delta_v_amb


def partial_duration(stage: StageSummary, delta_v: float, *, vacuum: bool = True) -> float:
    """Seconds for `stage` to deliver `delta_v`, assuming its mean mass flow."""
    full = _stage_dv(stage, vacuum)
    if delta_v <= 0.0 or full <= 0.0:
        return 0.0
    if delta_v >= full:
        return stage.burn_duration
    isp = stage.isp_vac if vacuum else stage.isp_amb
    if isp <= 0.0 or stage.burn_duration <= 0.0:
        return stage.burn_duration * delta_v / full
    mdot = stage.fuel_burned / stage.burn_duration
    burned = stage.start_mass * (1.0 - math.exp(-delta_v / (isp * G0)))
    return min(burned / mdot, stage.burn_duration)


def plan_burn(stages: Sequence[StageSummary], delta_v: float, *, vacuum: bool = True) -> BurnPlan:
    """
    Spend `delta_v` (m/s) starting from the active (highest) stage.

    Stages without delta-v are skipped. When the vessel cannot deliver the
    full amount the plan covers what it can and reports the rest as
    `shortfall`.
    """
    if delta_v < 0.0 or math.isnan(delta_v):
        raise ConfigurationError(f"delta-v must be non-negative, got {delta_v!r}")
    plan = BurnPlan(requested_delta_v=delta_v)
    remaining = delta_v
    half = delta_v / 2.0
    spent = 0.0
    elapsed = 0.0
    for stage in sorted(stages, key=lambda s: s.stage, reverse=True):
        if remaining <= 0.0:
            break
        available = _stage_dv(stage, vacuum)
        if available <= 0.0:
            continue
        take = min(remaining, available)
        duration = partial_duration(stage, take, vacuum=vacuum)
        if spent < half <= spent + take:
            plan.half_delta_v_time = elapsed + partial_duration(stage, half - spent, vacuum=vacuum)
        plan.segments.append(BurnSegment(stage.stage, take, duration, take >= available))
        spent += take
        elapsed += duration
        remaining -= take
    plan.shortfall = max(remaining, 0.0)
    if spent < half:
        # never reached half of the request; centre on what the vessel can do
        plan.half_delta_v_time = elapsed / 2.0
    return plan
