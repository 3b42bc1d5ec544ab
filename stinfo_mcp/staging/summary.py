"""Turn simulated stage records into per-stage performance summaries."""

from __future__ import annotations

import logging
import math
from typing import List, Tuple

from .config import StagingOptions
from .types import G0, StageRecord, StageSummary

log = logging.getLogger(__name__)


def _ratio(num: float, den: float) -> float:
    return num / den if den > 0.0 else 0.0


def _substage_dv(thrust: float, con: float, m0: float, m1: float) -> float:
    if con <= 0.0 or m1 <= 0.0 or m0 <= m1:
        return 0.0
    return thrust / con * math.log(m0 / m1)


def _weight(mass: float) -> float:
    return mass * G0


def summarize_stage(
    record: StageRecord,
    below: float,
    pressure: float,
) -> Tuple[StageSummary, float]:
    """Summary for one stage sitting on `below` tonnes; also returns summed substage fuel."""
    end = below + record.inert_mass + record.discarded_fuel
    start = end + record.fuel_burned
    staged = record.inert_mass + record.discarded_fuel

    dv_vac = dv_amb = 0.0
    burned = 0.0
    start_twr = start_slt = 0.0
    max_twr = max_slt = 0.0
    m = start
    for i, sub in enumerate(record.substages):
        if i == 0:
            start_twr = _ratio(sub.thrust_vac, _weight(m))
            start_slt = _ratio(sub.thrust_amb, _weight(m))
            max_twr, max_slt = start_twr, start_slt
        m1 = m - sub.fuel_burned
        dv_vac += _substage_dv(sub.thrust_vac, sub.consumption, m, m1)
        dv_amb += _substage_dv(sub.thrust_amb, sub.consumption, m, m1)
        # thrust is constant within a substage, so the peak is at its end
        max_twr = max(max_twr, _ratio(sub.thrust_vac, _weight(m1)))
        max_slt = max(max_slt, _ratio(sub.thrust_amb, _weight(m1)))
        burned += sub.fuel_burned
        m = m1

    log_ratio = math.log(start / end) if end > 0.0 and start > end else 0.0
    summary = StageSummary(
        stage=record.stage,
        start_mass=start,
        end_mass=end,
        staged_mass=staged,
        fuel_burned=record.fuel_burned,
        discarded_fuel=record.discarded_fuel,
        start_twr=start_twr,
        max_twr=max_twr,
        start_slt=start_slt,
        max_slt=max_slt,
        thrust_vac=record.initial_thrust_vac,
        thrust_amb=record.initial_thrust_amb,
        isp_vac=_ratio(dv_vac, G0 * log_ratio),
        isp_amb=_ratio(dv_amb, G0 * log_ratio),
        ispi_vac=_ratio(record.initial_thrust_vac, record.initial_con * G0),
        ispi_amb=_ratio(record.initial_thrust_amb, record.initial_con * G0),
        delta_v_vac=dv_vac,
        delta_v_amb=dv_amb,
        burn_duration=record.burn_duration,
        pressure=pressure,
        substage_count=len(record.substages),
    )
    return summary, burned


def summarize(
    records: List[StageRecord],
    pressure: float,
    options: StagingOptions,
    logger: logging.Logger | None = None,
    diagnostics: List[str] | None = None,
) -> List[StageSummary]:
    """
    Walk stages from 0 upward, stacking each stage on the mass of those below.

    Delta-v is integrated per substage with the substage's own exhaust
    velocity (thrust / mass flow), so a stage whose boosters burn out early
    is not credited with their ISP for the whole burn.
    """
    logger = logger or log
    out: List[StageSummary] = []
    below = 0.0
    for record in sorted(records, key=lambda r: r.stage):
        summary, burned = summarize_stage(record, below, pressure)
        if abs(burned - record.fuel_burned) > options.fuel_tolerance:
            msg = (
                f"stage {record.stage}: substages burned {burned:.6f} t but the stage "
                f"recorded {record.fuel_burned:.6f} t"
            )
            logger.warning(msg)
            if diagnostics is not None:
                diagnostics.append(msg)
        out.append(summary)
        below = summary.start_mass
    return out
