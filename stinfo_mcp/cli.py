"""Command-line interface for the staging engine.

Usage:
    python -m stinfo_mcp.cli snapshot craft.json [--pressure 1.0] [--json]
    python -m stinfo_mcp.cli live --address 192.168.1.10 [--export craft.json]
    python -m stinfo_mcp.cli burn craft.json 1200

Subcommands:
    snapshot   Stage table for a vessel snapshot JSON file
    live       Stage table for the active vessel of a running kRPC server
    burn       Split a delta-v across the stages of a snapshot file
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List, Optional, TextIO

from .staging import (
    StageSummary,
    StagingError,
    VesselSnapshot,
    load_snapshot,
    options_from_env,
    plan_burn,
    run_stage_info,
)
from .staging.snapshot import dump_snapshot
from .tools import coerce_pressure

log = logging.getLogger("stinfo_mcp")

COLUMNS = (
    ("stage", "Stg", "{:>3d}"),
    ("start_mass", "Mass0 t", "{:>9.3f}"),
    ("end_mass", "Mass1 t", "{:>9.3f}"),
    ("staged_mass", "Drop t", "{:>8.3f}"),
    ("start_twr", "TWR", "{:>6.2f}"),
    ("max_twr", "maxTWR", "{:>7.2f}"),
    ("start_slt", "SLT", "{:>6.2f}"),
    ("isp_vac", "ISPv", "{:>6.1f}"),
    ("isp_amb", "ISPa", "{:>6.1f}"),
    ("delta_v_vac", "dVv m/s", "{:>8.1f}"),
    ("delta_v_amb", "dVa m/s", "{:>8.1f}"),
    ("burn_duration", "Time s", "{:>7.1f}"),
)


def format_table(stages: List[StageSummary]) -> str:
    widths = [len(fmt.format(0 if key == "stage" else 0.0)) for key, _, fmt in COLUMNS]
    head = " ".join(title.rjust(w) for (_, title, _), w in zip(COLUMNS, widths))
    lines = [head, "-" * len(head)]
    for s in reversed(stages):
        row = s.as_dict()
        lines.append(" ".join(fmt.format(row[key]) for key, _, fmt in COLUMNS))
    total_vac = sum(s.delta_v_vac for s in stages)
    total_amb = sum(s.delta_v_amb for s in stages)
    lines.append(f"Total delta-v: {total_vac:.1f} m/s vacuum, {total_amb:.1f} m/s ambient")
    return "\n".join(lines)


def _report(snapshot: VesselSnapshot, pressure: str, as_json: bool, out: TextIO) -> int:
    try:
        result = run_stage_info(snapshot, coerce_pressure(pressure), options=options_from_env(), logger=log)
    except StagingError as e:
        print(f"stage info failed ({e.kind}): {e}", file=sys.stderr)
        return 1
    if as_json:
        payload = {"vessel": snapshot.name, "current_stage": snapshot.current_stage}
        payload.update(result.to_dict())
        print(json.dumps(payload, indent=2), file=out)
    else:
        print(f"{snapshot.name}: {len(snapshot.parts)} parts, pressure {result.pressure:.3f} atm", file=out)
        print(format_table(result.stages), file=out)
        for d in result.diagnostics:
            print(f"warning: {d}", file=out)
    return 0


def _cmd_snapshot(args: argparse.Namespace, out: TextIO) -> int:
    try:
        snapshot = load_snapshot(args.file)
    except StagingError as e:
        print(f"{e}", file=sys.stderr)
        for err in getattr(e, "errors", [])[1:]:
            print(f"  {err}", file=sys.stderr)
        return 1
    return _report(snapshot, args.pressure, args.json, out)


def _cmd_live(args: argparse.Namespace, out: TextIO) -> int:
    from .krpc.client import ConnectionSettings, KRPCConnectionError, connect_with_settings
    from .krpc.readers import vessel_snapshot

    try:
        defaults = ConnectionSettings.from_env()
        settings = ConnectionSettings(
            address=args.address or defaults.address,
            rpc_port=args.rpc_port if args.rpc_port is not None else defaults.rpc_port,
            stream_port=args.stream_port if args.stream_port is not None else defaults.stream_port,
            timeout=args.timeout if args.timeout is not None else defaults.timeout,
        )
        conn = connect_with_settings(settings, name=args.name)
    except KRPCConnectionError as e:
        print(f"Connection failed: {e}", file=sys.stderr)
        return 1
    snapshot = vessel_snapshot(conn)
    if args.export:
        path = dump_snapshot(snapshot, args.export)
        log.info("snapshot written to %s", path)
    return _report(snapshot, args.pressure, args.json, out)


def _cmd_burn(args: argparse.Namespace, out: TextIO) -> int:
    try:
        snapshot = load_snapshot(args.file)
        result = run_stage_info(snapshot, coerce_pressure(args.pressure), options=options_from_env(), logger=log)
        plan = plan_burn(result.stages, args.dv, vacuum=not args.ambient)
    except StagingError as e:
        print(f"burn plan failed ({e.kind}): {e}", file=sys.stderr)
        return 1
    if args.json:
        print(json.dumps(plan.to_dict(), indent=2), file=out)
        return 0
    for seg in plan.segments:
        print(f"stage {seg.stage:>3d}: {seg.delta_v:9.1f} m/s in {seg.duration:7.1f} s", file=out)
    print(f"total: {plan.delta_v:.1f} m/s in {plan.duration:.1f} s; "
          f"start {plan.half_delta_v_time:.1f} s before the node", file=out)
    if plan.shortfall > 0:
        print(f"shortfall: {plan.shortfall:.1f} m/s", file=out)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stinfo",
        description="Per-stage mass, thrust, Isp, TWR and delta-v for KSP vessels.",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0, help="More logging (-vv for debug)")
    sub = parser.add_subparsers(dest="cmd", metavar="command")

    p_snap = sub.add_parser("snapshot", help="Stage table for a vessel snapshot JSON file")
    p_snap.add_argument("file", help="Path to a vessel snapshot JSON file")
    p_snap.add_argument("--pressure", default="current", help="Ambient pressure in atm, or 'current'")
    p_snap.add_argument("--json", action="store_true", help="Print JSON instead of a table")

    p_live = sub.add_parser("live", help="Stage table for the active vessel in a running game")
    p_live.add_argument("--address", default=None, help="LAN IP or hostname of the PC running KSP+kRPC (default: STINFO_KRPC_ADDRESS)")
    p_live.add_argument("--rpc-port", type=int, default=None, help="Default: STINFO_KRPC_RPC_PORT or 50000")
    p_live.add_argument("--stream-port", type=int, default=None, help="Default: STINFO_KRPC_STREAM_PORT or 50001")
    p_live.add_argument("--name", default="stinfo CLI")
    p_live.add_argument("--timeout", type=float, default=None, help="Default: STINFO_KRPC_TIMEOUT or 5")
    p_live.add_argument("--pressure", default="current", help="Ambient pressure in atm, or 'current'")
    p_live.add_argument("--export", default=None, help="Also write the snapshot JSON to this path")
    p_live.add_argument("--json", action="store_true", help="Print JSON instead of a table")

    p_burn = sub.add_parser("burn", help="Split a delta-v across the stages of a snapshot file")
    p_burn.add_argument("file", help="Path to a vessel snapshot JSON file")
    p_burn.add_argument("dv", type=float, help="Delta-v in m/s")
    p_burn.add_argument("--pressure", default="current", help="Ambient pressure in atm, or 'current'")
    p_burn.add_argument("--ambient", action="store_true", help="Budget with ambient instead of vacuum delta-v")
    p_burn.add_argument("--json", action="store_true", help="Print JSON instead of text")
    return parser


def main(argv: Optional[List[str]] = None, out: TextIO | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    level = logging.WARNING if args.verbose == 0 else (logging.INFO if args.verbose == 1 else logging.DEBUG)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr)
    out = out or sys.stdout
    handlers = {"snapshot": _cmd_snapshot, "live": _cmd_live, "burn": _cmd_burn}
    handler = handlers.get(args.cmd)
    if handler is None:
        parser.print_help()
        return 1
    return handler(args, out)


if __name__ == "__main__":
    raise SystemExit(main())
