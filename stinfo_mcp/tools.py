from __future__ import annotations

import json
import logging
from typing import Any, Dict

from .server import mcp
from .stage_cache import set_latest_stage_info
from .staging import (
    StagingError,
    VesselSnapshot,
    loads_snapshot,
    options_from_env,
    plan_burn,
    run_stage_info,
)

log = logging.getLogger(__name__)


def coerce_pressure(value: Any) -> Any:
    """Numeric strings become floats; anything else is passed through ("current")."""
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return value
    return value


def error_payload(err: Exception) -> Dict[str, str]:
    return {"error": str(err), "kind": getattr(err, "kind", "error")}


def stage_info_payload(snapshot: VesselSnapshot, pressure: Any = "current") -> Dict[str, Any]:
    """Run the staging engine and shape the result for tools; raises StagingError."""
    result = run_stage_info(snapshot, coerce_pressure(pressure), options=options_from_env(), logger=log)
    payload = {"vessel": snapshot.name, "current_stage": snapshot.current_stage}
    payload.update(result.to_dict())
    set_latest_stage_info(payload)
    return payload


def burn_plan_payload(snapshot: VesselSnapshot, dv_m_s: float, pressure: Any = "current", vacuum: bool = True) -> Dict[str, Any]:
    result = run_stage_info(snapshot, coerce_pressure(pressure), options=options_from_env(), logger=log)
    plan = plan_burn(result.stages, dv_m_s, vacuum=vacuum)
    out = {"vessel": snapshot.name, "vacuum": vacuum}
    out.update(plan.to_dict())
    return out


@mcp.tool()
def compute_stage_info_from_snapshot(snapshot_json: str, pressure: str = "current") -> str:
    """
    Per-stage mass, thrust, Isp, TWR and delta-v for a vessel snapshot document.

    When to use:
        - Offline analysis of a craft exported earlier with export_vessel_snapshot.
    Args:
        snapshot_json: Vessel snapshot as a JSON string
        pressure: Ambient pressure in atm within [0, 100], or 'current' for the
            pressure stored in the snapshot
    Returns:
        JSON: { vessel, current_stage, ok, pressure_atm, stages: [ { stage, start_mass,
        end_mass, staged_mass, fuel_burned, discarded_fuel, start_twr, max_twr,
        start_slt, max_slt, thrust_vac, thrust_amb, isp_vac, isp_amb, ispi_vac,
        ispi_amb, delta_v_vac, delta_v_amb, burn_duration, pressure, substage_count } ],
        diagnostics } with masses in t, thrust in kN and delta-v in m/s;
        or { error, kind } on failure.
    """
    try:
        snapshot = loads_snapshot(snapshot_json)
        return json.dumps(stage_info_payload(snapshot, pressure))
    except StagingError as e:
        return json.dumps(error_payload(e))
