"""Read and write vessel snapshots as JSON documents."""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Union

import jsonschema

from .errors import SnapshotError
from .types import EngineSpec, Part, PartResource, VesselSnapshot


@lru_cache(maxsize=1)
def _load_schema() -> Dict[str, Any]:
    here = Path(__file__).resolve().parents[1]
    schema_path = here / "schemas" / "vessel_snapshot.schema.json"
    return json.loads(schema_path.read_text(encoding="utf-8"))


def validate_snapshot(obj: Any) -> List[str]:
    """Return a list of validation error messages. Empty list means valid."""
    validator = jsonschema.Draft7Validator(_load_schema())
    errs = []
    for err in sorted(validator.iter_errors(obj), key=lambda e: "/".join(str(x) for x in e.path)):
        loc = "/".join(str(x) for x in err.path) or "<root>"
        errs.append(f"{loc}: {err.message}")
    if errs:
        return errs

    seen: Dict[str, int] = {}
    for i, p in enumerate(obj["parts"]):
        if p["uid"] in seen:
            errs.append(f"parts/{i}/uid: duplicate uid '{p['uid']}' (first at parts/{seen[p['uid']]})")
        seen.setdefault(p["uid"], i)
    for i, p in enumerate(obj["parts"]):
        for key in ("parent", "duct_target"):
            ref = p.get(key)
            if ref is not None and ref not in seen:
                errs.append(f"parts/{i}/{key}: unknown part '{ref}'")
        for j, c in enumerate(p.get("children", [])):
            if c not in seen:
                errs.append(f"parts/{i}/children/{j}: unknown part '{c}'")
    return errs


def _engine_from_dict(d: Dict[str, Any]) -> EngineSpec:
    return EngineSpec(
        max_fuel_flow={k: float(v) for k, v in d["max_fuel_flow"].items()},
        isp_curve=tuple((float(p), float(i)) for p, i in d["isp_curve"]),
        thrust_limit=float(d.get("thrust_limit", 1.0)),
    )


def _part_from_dict(d: Dict[str, Any]) -> Part:
    engine = d.get("engine")
    return Part(
        uid=d["uid"],
        name=d["name"],
        title=d.get("title", ""),
        mass=float(d["mass"]),
        dry_mass=float(d.get("dry_mass", d["mass"])),
        stage=int(d.get("stage", -1)),
        decouple_stage=int(d.get("decouple_stage", -1)),
        tag=d.get("tag", ""),
        resources=tuple(PartResource(r["name"], float(r["amount"]), float(r["density"])) for r in d.get("resources", [])),
        modules=tuple(d.get("modules", [])),
        parent=d.get("parent"),
        children=tuple(d.get("children", [])),
        crossfeed=bool(d.get("crossfeed", True)),
        attach_node=d.get("attach_node"),
        self_node=d.get("self_node"),
        duct_target=d.get("duct_target"),
        engine=_engine_from_dict(engine) if engine else None,
    )


def snapshot_from_dict(obj: Any) -> VesselSnapshot:
    errs = validate_snapshot(obj)
    if errs:
        raise SnapshotError(f"invalid vessel snapshot ({len(errs)} error(s)): {errs[0]}", errs)
    return VesselSnapshot(
        name=obj["name"],
        current_stage=int(obj["current_stage"]),
        ambient_pressure=float(obj.get("ambient_pressure", 0.0)),
        parts=tuple(_part_from_dict(p) for p in obj["parts"]),
    )


def snapshot_to_dict(snapshot: VesselSnapshot) -> Dict[str, Any]:
    parts = []
    for p in snapshot.parts:
        d: Dict[str, Any] = {
            "uid": p.uid,
            "name": p.name,
            "title": p.title,
            "mass": p.mass,
            "dry_mass": p.dry_mass,
            "stage": p.stage,
            "decouple_stage": p.decouple_stage,
            "tag": p.tag,
            "resources": [{"name": r.name, "amount": r.amount, "density": r.density} for r in p.resources],
            "modules": list(p.modules),
            "parent": p.parent,
            "children": list(p.children),
            "crossfeed": p.crossfeed,
            "attach_node": p.attach_node,
            "self_node": p.self_node,
            "duct_target": p.duct_target,
            "engine": None,
        }
        if p.engine is not None:
            d["engine"] = {
                "max_fuel_flow": dict(p.engine.max_fuel_flow),
                "isp_curve": [list(k) for k in p.engine.isp_curve],
                "thrust_limit": p.engine.thrust_limit,
            }
        parts.append(d)
    return {
        "name": snapshot.name,
        "current_stage": snapshot.current_stage,
        "ambient_pressure": snapshot.ambient_pressure,
        "parts": parts,
    }


def loads_snapshot(text: str) -> VesselSnapshot:
    try:
        obj = json.loads(text)
    except json.JSONDecodeError as e:
        raise SnapshotError(f"snapshot is not valid JSON: {e}") from e
    return snapshot_from_dict(obj)


def load_snapshot(path: Union[str, Path]) -> VesselSnapshot:
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise SnapshotError(f"cannot read snapshot {p}: {e}") from e
    return loads_snapshot(text)


def dump_snapshot(snapshot: VesselSnapshot, path: Union[str, Path]) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(snapshot_to_dict(snapshot), indent=2), encoding="utf-8")
    return p
