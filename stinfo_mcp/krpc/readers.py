from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from ..staging.types import G0, EngineSpec, Part, PartResource, VesselSnapshot

PA_PER_ATM = 101325.0

# Pressures (atm) at which engine Isp curves are sampled
ISP_SAMPLE_PRESSURES = (0.0, 0.25, 0.5, 0.75, 1.0, 2.0, 5.0, 10.0)

# Used only to split an engine's mass flow across its propellants when the
# part carries none of them (kRPC reports ratios by volume)
RESOURCE_DENSITY_KG_PER_UNIT = {
    "LiquidFuel": 5.0,
    "Oxidizer": 5.0,
    "MonoPropellant": 4.0,
    "SolidFuel": 7.5,
    "XenonGas": 0.1,
    "Ore": 10.0,
    "ElectricCharge": 0.0,
}


def _enum_name(x: Any) -> str:
    try:
        return getattr(x, "name", str(x))
    except Exception:
        return str(x)


def vessel_info(conn) -> Dict[str, Any]:
    v = conn.space_center.active_vessel
    ctrl = v.control
    return {
        "name": v.name,
        "mass_kg": v.mass,  # kg
        "current_stage": ctrl.current_stage,
        "situation": _enum_name(v.situation),
    }


def ambient_pressure_atm(vessel) -> float:
    """Static pressure around the vessel in atm (0 when unavailable)."""
    try:
        pa = float(vessel.flight().static_pressure)
    except Exception:
        return 0.0
    return max(pa, 0.0) / PA_PER_ATM


def _resources(p) -> Tuple[PartResource, ...]:
    out = []
    try:
        for r in p.resources.all:
            # kRPC densities are kg/unit
            out.append(PartResource(r.name, float(r.amount), float(r.density) / 1000.0))
    except Exception:
        pass
    return tuple(out)


def _modules(p) -> Tuple[str, ...]:
    names: List[str] = []
    try:
        names = [m.name for m in p.modules]
    except Exception:
        pass
    # Some part types are easier to recognize from their typed accessors
    if getattr(p, "is_fuel_line", False) and "CModuleFuelLine" not in names:
        names.append("CModuleFuelLine")
    if getattr(p, "launch_clamp", None) is not None and "LaunchClamp" not in names:
        names.append("LaunchClamp")
    return tuple(names)


def _propellant_densities(p, engine) -> Dict[str, float]:
    dens = {r.name: r.density * 1000.0 for r in _resources(p)}
    out = {}
    for prop in engine.propellants:
        d = dens.get(prop.name)
        if d is None:
            d = RESOURCE_DENSITY_KG_PER_UNIT.get(prop.name, 0.0)
        out[prop.name] = d
    return out


def engine_spec(p) -> Optional[EngineSpec]:
    """EngineSpec from a kRPC part, or None if the part has no engine."""
    e = getattr(p, "engine", None)
    if e is None:
        return None
    vac_isp = float(e.vacuum_specific_impulse or 0.0)
    thrust_n = float(e.max_vacuum_thrust or 0.0)
    total_flow = thrust_n / (vac_isp * G0) / 1000.0 if vac_isp > 0 else 0.0  # t/s

    densities = _propellant_densities(p, e)
    weights = {}
    for prop in e.propellants:
        w = float(prop.ratio) * densities.get(prop.name, 0.0)
        weights[prop.name] = weights.get(prop.name, 0.0) + w
    wsum = sum(weights.values())
    flows = {k: (total_flow * w / wsum if wsum > 0 else 0.0) for k, w in weights.items()}

    curve = []
    for pressure in ISP_SAMPLE_PRESSURES:
        try:
            curve.append((pressure, float(e.specific_impulse_at(pressure))))
        except Exception:
            continue
    if not curve:
        curve = [(0.0, vac_isp)]
    return EngineSpec(
        max_fuel_flow=flows,
        isp_curve=tuple(curve),
        thrust_limit=float(getattr(e, "thrust_limit", 1.0)),
    )


def vessel_snapshot(conn) -> VesselSnapshot:
    """
    Immutable staging snapshot of the active vessel.

    Units are converted on the way in: kg to t, Pa to atm. Part ids are
    positions in `vessel.parts.all`, stable only within one snapshot.
    """
    v = conn.space_center.active_vessel
    raw = list(v.parts.all)
    ids = {p: f"p{i}" for i, p in enumerate(raw)}

    def uid(p) -> Optional[str]:
        if p is None:
            return None
        return ids.get(p)

    parts = []
    for p in raw:
        duct_target = None
        if getattr(p, "is_fuel_line", False):
            try:
                targets = [uid(t) for t in p.fuel_lines_to]
                duct_target = next((t for t in targets if t is not None), None)
            except Exception:
                duct_target = None
        parts.append(Part(
            uid=ids[p],
            name=p.name,
            title=getattr(p, "title", "") or "",
            tag=getattr(p, "tag", "") or "",
            mass=float(p.mass) / 1000.0,
            dry_mass=float(p.dry_mass) / 1000.0,
            stage=int(p.stage),
            decouple_stage=int(p.decouple_stage),
            resources=_resources(p),
            modules=_modules(p),
            parent=uid(p.parent),
            children=tuple(u for u in (uid(c) for c in p.children) if u is not None),
            crossfeed=bool(getattr(p, "crossfeed", True)),
            duct_target=duct_target,
            engine=engine_spec(p),
        ))
    return VesselSnapshot(
        name=v.name,
        current_stage=int(v.control.current_stage),
        parts=tuple(parts),
        ambient_pressure=ambient_pressure_atm(v),
    )
