"""
Staging engine entry points.

`compute_stage_info` runs the whole pipeline over one immutable snapshot:
classify parts, build fuel zones, resolve ducts, account inert mass, build
consumption/thrust tables, simulate every stage and summarize. Staging
errors come back as a `Failure`; `run_stage_info` raises them instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .config import StagingOptions
from .ducts import resolve_ducts
from .errors import StagingError
from .flow import CURRENT, build_flow_tables, resolve_pressure
from .mass import account_masses
from .simulator import StageSimulationContext, simulate_stages
from .summary import summarize
from .types import StageSummary, VesselSnapshot
from .zones import build_zones, classify_parts

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Failure:
    kind: str
    reason: str

    @classmethod
    def from_error(cls, err: StagingError) -> "Failure":
        return cls(kind=err.kind, reason=str(err))


@dataclass
class StageInfoResult:
    stages: List[StageSummary] = field(default_factory=list)
    failure: Optional[Failure] = None
    diagnostics: List[str] = field(default_factory=list)
    pressure: Optional[float] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "ok": self.ok,
            "pressure_atm": self.pressure,
            "stages": [s.as_dict() for s in self.stages],
            "diagnostics": list(self.diagnostics),
        }
        if self.failure is not None:
            out["error"] = {"kind": self.failure.kind, "reason": self.failure.reason}
        return out


def _compute(
    snapshot: VesselSnapshot,
    pressure: Any,
    options: Optional[StagingOptions],
    logger: logging.Logger,
    result: StageInfoResult,
) -> None:
    options = (options or StagingOptions()).validate()
    diagnostics = result.diagnostics
    result.pressure = resolve_pressure(pressure, snapshot)
    kinds = classify_parts(snapshot)
    zones, claimed = build_zones(snapshot, kinds, options, logger=logger)
    resolve_ducts(snapshot, kinds, zones, claimed, logger=logger, diagnostics=diagnostics)
    inert = account_masses(snapshot, kinds, claimed, options, logger=logger, diagnostics=diagnostics)
    tables = build_flow_tables(snapshot, zones, claimed, result.pressure, logger=logger)
    logger.debug(
        "%s: %d parts, %d fuel zones, stages 0..%d, %.2f atm",
        snapshot.name, len(snapshot.parts), len(zones), tables.top, result.pressure,
    )
    ctx = StageSimulationContext(zones=zones, tables=tables, options=options, logger=logger)
    records = simulate_stages(ctx, inert)
    result.stages = summarize(records, result.pressure, options, logger=logger, diagnostics=diagnostics)


def compute_stage_info(
    snapshot: VesselSnapshot,
    pressure: Any = CURRENT,
    *,
    options: Optional[StagingOptions] = None,
    logger: Optional[logging.Logger] = None,
) -> StageInfoResult:
    """
    Per-stage performance of `snapshot`.

    `pressure` is an ambient pressure in atm within [0, 100]; any
    non-numeric value (conventionally "current") uses the snapshot's
    ambient pressure. `result.stages[i]` describes stage i, so the last
    entry is the currently active stage.
    """
    logger = logger or log
    result = StageInfoResult()
    try:
        _compute(snapshot, pressure, options, logger, result)
    except StagingError as e:
        logger.error("stage info for %s failed (%s): %s", snapshot.name, e.kind, e)
        result.failure = Failure.from_error(e)
        result.stages = []
    return result


def run_stage_info(
    snapshot: VesselSnapshot,
    pressure: Any = CURRENT,
    *,
    options: Optional[StagingOptions] = None,
    logger: Optional[logging.Logger] = None,
) -> StageInfoResult:
    """Like compute_stage_info but raises the StagingError instead of returning a Failure."""
    result = StageInfoResult()
    _compute(snapshot, pressure, options, logger or log, result)
    return result
