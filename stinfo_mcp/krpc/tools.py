from __future__ import annotations

from .client import connect_to_game, KRPCConnectionError
from ..server import mcp
from ..staging import StagingError, snapshot_to_dict
from ..tools import burn_plan_payload, error_payload, stage_info_payload
from . import readers
import json


@mcp.tool()
def krpc_get_status(address: str, rpc_port: int = 50000, stream_port: int = 50001, name: str | None = None, timeout: float = 5.0) -> str:
    """
    Connect to a running kRPC server and return its version (and active vessel if available).

    When to use:
        - Quick connectivity check before calling the staging tools.

    Args:
        address: LAN IP or hostname of the KSP PC
        rpc_port: RPC port (default 50000)
        stream_port: Stream port (default 50001)
        name: Optional connection name shown in kRPC UI
        timeout: Connection timeout in seconds
    Returns:
        A short status string, or an error message if connection fails.
    """
    try:
        conn = connect_to_game(address, rpc_port=rpc_port, stream_port=stream_port, name=name, timeout=timeout)
    except KRPCConnectionError as e:
        return f"Connection failed: {e}"

    try:
        version = conn.krpc.get_status().version
    except Exception:
        return "Connected but failed to read server version."

    vessel = None
    try:
        vessel = conn.space_center.active_vessel.name
    except Exception:
        pass
    if vessel:
        return f"kRPC version {version}; active vessel: {vessel}"
    return f"kRPC version {version}"


def _connect(address: str, rpc_port: int, stream_port: int, name: str | None, timeout: float):
    return connect_to_game(address, rpc_port=rpc_port, stream_port=stream_port, name=name, timeout=timeout)


@mcp.tool()
def get_vessel_info(address: str, rpc_port: int = 50000, stream_port: int = 50001, name: str | None = None, timeout: float = 5.0) -> str:
    """
    Basic vessel info for the active craft.

    Returns:
      JSON string: { name, mass_kg, current_stage, situation }
    """
    try:
        conn = _connect(address, rpc_port, stream_port, name, timeout)
    except KRPCConnectionError as e:
        return json.dumps({"error": str(e), "kind": "connection"})
    return json.dumps(readers.vessel_info(conn))


@mcp.tool()
def get_stage_info(address: str, rpc_port: int = 50000, stream_port: int = 50001, name: str | None = None, timeout: float = 5.0, pressure: str = "current") -> str:
    """
    Per-stage mass, thrust, Isp, TWR and delta-v for the active vessel.

    Simulates every stage from the current one down to 0, following fuel
    crossfeed, fuel ducts and boosters that burn out before their stage ends.

    When to use:
      - Staging analysis, delta-v budgets, and checking whether a burn fits a stage.

    Args:
      pressure: Ambient pressure in atm within [0, 100] for the ambient columns,
        or 'current' for the pressure around the vessel

    Returns:
      JSON: { vessel, current_stage, ok, pressure_atm, stages: [ { stage, start_mass,
      end_mass, staged_mass, fuel_burned, start_twr, max_twr, start_slt, max_slt,
      thrust_vac, thrust_amb, isp_vac, isp_amb, ispi_vac, ispi_amb, delta_v_vac,
      delta_v_amb, burn_duration, ... } ], diagnostics }. Masses in t, thrust in kN.
      On failure: { error, kind }.
    """
    try:
        conn = _connect(address, rpc_port, stream_port, name, timeout)
    except KRPCConnectionError as e:
        return json.dumps({"error": str(e), "kind": "connection"})
    try:
        return json.dumps(stage_info_payload(readers.vessel_snapshot(conn), pressure))
    except StagingError as e:
        return json.dumps(error_payload(e))


@mcp.tool()
def export_vessel_snapshot(address: str, rpc_port: int = 50000, stream_port: int = 50001, name: str | None = None, timeout: float = 5.0) -> str:
    """
    Export the active vessel as a snapshot document for offline stage analysis.

    When to use:
      - Save a craft once, then iterate with compute_stage_info_from_snapshot
        without keeping the game connected.

    Returns:
      JSON snapshot: { name, current_stage, ambient_pressure, parts: [ { uid, name, mass,
      dry_mass, stage, decouple_stage, resources, modules, parent, children, crossfeed,
      duct_target, engine } ] }, or { error, kind }.
    """
    try:
        conn = _connect(address, rpc_port, stream_port, name, timeout)
    except KRPCConnectionError as e:
        return json.dumps({"error": str(e), "kind": "connection"})
    return json.dumps(snapshot_to_dict(readers.vessel_snapshot(conn)))


@mcp.tool()
def plan_multistage_burn(address: str, dv_m_s: float, pressure: str = "current", vacuum: bool = True, rpc_port: int = 50000, stream_port: int = 50001, name: str | None = None, timeout: float = 5.0) -> str:
    """
    Split a burn across stages and estimate its duration and lead time.

    When to use:
      - Size a maneuver node burn that may need more than the active stage.

    Args:
      dv_m_s: Desired delta-v in m/s
      vacuum: Use vacuum delta-v (True) or delta-v at `pressure` (False)

    Returns:
      JSON: { vessel, vacuum, requested_delta_v, delta_v, duration, half_delta_v_time,
      shortfall, segments: [ { stage, delta_v, duration, full_stage } ] }.
      Start the burn half_delta_v_time seconds before the node.
    """
    try:
        conn = _connect(address, rpc_port, stream_port, name, timeout)
    except KRPCConnectionError as e:
        return json.dumps({"error": str(e), "kind": "connection"})
    try:
        return json.dumps(burn_plan_payload(readers.vessel_snapshot(conn), dv_m_s, pressure, vacuum))
    except StagingError as e:
        return json.dumps(error_payload(e))
