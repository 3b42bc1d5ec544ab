"""Helpers to assemble small vessels for the staging tests."""

from __future__ import annotations

from typing import Dict, List, Optional

from stinfo_mcp.staging.types import G0, EngineSpec, Part, PartResource, PropellantType, VesselSnapshot


def rocket_engine(thrust_kn: float, isp_vac: float, isp_asl: Optional[float] = None, *, limit: float = 1.0) -> EngineSpec:
    """LiquidFuel + Oxidizer engine burning at the stock 9:11 mass ratio."""
    flow = thrust_kn / (isp_vac * G0)
    return EngineSpec(
        max_fuel_flow={"LiquidFuel": flow * 0.45, "Oxidizer": flow * 0.55},
        isp_curve=((0.0, isp_vac), (1.0, isp_asl if isp_asl is not None else isp_vac)),
        thrust_limit=limit,
    )


def nerv_engine(thrust_kn: float, isp_vac: float) -> EngineSpec:
    flow = thrust_kn / (isp_vac * G0)
    return EngineSpec(max_fuel_flow={"LiquidFuel": flow}, isp_curve=((0.0, isp_vac), (1.0, isp_vac / 4)))


def srb_engine(thrust_kn: float, isp_vac: float, isp_asl: Optional[float] = None) -> EngineSpec:
    flow = thrust_kn / (isp_vac * G0)
    return EngineSpec(
        max_fuel_flow={"SolidFuel": flow},
        isp_curve=((0.0, isp_vac), (1.0, isp_asl if isp_asl is not None else isp_vac)),
    )


class Craft:
    """Mutable part list; `build()` wires up children from parent links."""

    def __init__(self, name: str = "test craft", ambient_pressure: float = 0.0):
        self.name = name
        self.ambient_pressure = ambient_pressure
        self._parts: Dict[str, dict] = {}

    def add(
        self,
        uid: str,
        *,
        parent: Optional[str] = None,
        dry: float = 0.1,
        lf: float = 0.0,
        ox: float = 0.0,
        sf: float = 0.0,
        xe: float = 0.0,
        stage: int = -1,
        decouple: int = -1,
        modules: tuple = (),
        name: Optional[str] = None,
        tag: str = "",
        crossfeed: bool = True,
        engine: Optional[EngineSpec] = None,
        attach_node: Optional[str] = None,
        self_node: Optional[str] = None,
        duct_target: Optional[str] = None,
        extra_resources: tuple = (),
    ) -> str:
        """Add a part; propellant amounts are given in tonnes."""
        resources: List[PartResource] = []
        for prop, tonnes in (
            (PropellantType.LIQUID_FUEL, lf),
            (PropellantType.OXIDIZER, ox),
            (PropellantType.SOLID_FUEL, sf),
            (PropellantType.XENON_GAS, xe),
        ):
            if tonnes:
                resources.append(PartResource(prop.resource_name, tonnes / prop.density, prop.density))
        resources.extend(extra_resources)
        mods = tuple(modules)
        if engine is not None and "ModuleEngines" not in mods:
            mods = mods + ("ModuleEngines",)
        self._parts[uid] = dict(
            uid=uid,
            name=name or uid,
            dry_mass=dry,
            mass=dry + sum(r.mass for r in resources),
            stage=stage,
            decouple_stage=decouple,
            tag=tag,
            resources=tuple(resources),
            modules=mods,
            parent=parent,
            crossfeed=crossfeed,
            attach_node=attach_node,
            self_node=self_node,
            duct_target=duct_target,
            engine=engine,
        )
        return uid

    def build(self, current_stage: int) -> VesselSnapshot:
        children: Dict[str, List[str]] = {uid: [] for uid in self._parts}
        for uid, d in self._parts.items():
            if d["parent"] is not None:
                children[d["parent"]].append(uid)
        parts = tuple(Part(children=tuple(children[uid]), **d) for uid, d in self._parts.items())
        return VesselSnapshot(
            name=self.name,
            current_stage=current_stage,
            parts=parts,
            ambient_pressure=self.ambient_pressure,
        )


DECOUPLER = ("ModuleDecouple",)
RADIAL = ("ModuleAnchoredDecoupler",)
FUEL_LINE = ("CModuleFuelLine",)


def single_stage(lf: float = 2.25, ox: float = 2.75, thrust: float = 200.0, isp: float = 300.0) -> VesselSnapshot:
    """10 t dry: 2 t engine under an 8 t (dry) tank."""
    c = Craft("single")
    c.add("tank", dry=8.0, lf=lf, ox=ox)
    c.add("engine", parent="tank", dry=2.0, stage=0, engine=rocket_engine(thrust, isp, isp * 0.85))
    return c.build(current_stage=0)


def two_stage(lower_lf: float = 3.6, lower_ox: float = 4.4, ambient_pressure: float = 0.0) -> VesselSnapshot:
    """Upper stage on a stack decoupler above a lower stage. Total 14.55 t."""
    c = Craft("two stage", ambient_pressure=ambient_pressure)
    c.add("cmd", dry=1.0, modules=("ModuleCommand",))
    c.add("ut", parent="cmd", dry=0.5, lf=0.9, ox=1.1)
    c.add("ue", parent="ut", dry=0.5, stage=1, engine=rocket_engine(60.0, 345.0, 85.0))
    c.add("dec", parent="ue", dry=0.05, stage=1, decouple=1, modules=DECOUPLER, crossfeed=False)
    c.add("lt", parent="dec", dry=1.0, lf=lower_lf, ox=lower_ox, decouple=1)
    c.add("le", parent="lt", dry=1.5, stage=2, decouple=1, engine=rocket_engine(215.0, 310.0, 280.0))
    return c.build(current_stage=2)


def drop_tank(duct_target: Optional[str] = "core", duct_tag: str = "") -> VesselSnapshot:
    """Core holding only LiquidFuel, fed Oxidizer through a duct from a radial drop tank."""
    c = Craft("drop tank")
    c.add("core", dry=1.0, lf=2.25, tag="core")
    c.add("engine", parent="core", dry=1.0, stage=1, engine=rocket_engine(100.0, 300.0))
    c.add("sep", parent="core", dry=0.05, stage=0, decouple=0, modules=RADIAL, crossfeed=False)
    c.add("drop", parent="sep", dry=0.5, ox=2.75, decouple=0)
    c.add("duct", parent="drop", dry=0.05, decouple=0, modules=FUEL_LINE, tag=duct_tag, duct_target=duct_target)
    return c.build(current_stage=1)


def asparagus_boosters() -> VesselSnapshot:
    """Core stage with two radial SRBs that are dropped after they burn out."""
    c = Craft("boosters")
    c.add("core", dry=1.0, lf=4.5, ox=5.5)
    c.add("engine", parent="core", dry=1.5, stage=1, engine=rocket_engine(200.0, 320.0, 290.0))
    for side in ("l", "r"):
        c.add(f"sep_{side}", parent="core", dry=0.05, stage=0, decouple=0, modules=RADIAL, crossfeed=False)
        c.add(f"srb_{side}", parent=f"sep_{side}", dry=0.75, sf=3.0, stage=1, decouple=0,
              engine=srb_engine(250.0, 195.0, 170.0))
    return c.build(current_stage=1)
