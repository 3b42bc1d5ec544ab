"""Minimal stand-ins for the kRPC SpaceCenter objects the readers touch."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Dict, List, Optional


class FakeResource:
    def __init__(self, name: str, amount: float, density_kg: float):
        self.name = name
        self.amount = amount
        self.density = density_kg


class FakePropellant:
    def __init__(self, name: str, ratio: float):
        self.name = name
        self.ratio = ratio


class FakeEngine:
    def __init__(self, thrust_n: float, isp_vac: float, isp_asl: float, propellants: Dict[str, float], thrust_limit: float = 1.0):
        self.max_vacuum_thrust = thrust_n
        self.vacuum_specific_impulse = isp_vac
        self._isp_asl = isp_asl
        self.propellants = [FakePropellant(n, r) for n, r in propellants.items()]
        self.thrust_limit = thrust_limit

    def specific_impulse_at(self, pressure: float) -> float:
        if pressure >= 1.0:
            return self._isp_asl
        return self.vacuum_specific_impulse + (self._isp_asl - self.vacuum_specific_impulse) * pressure


class FakePart:
    def __init__(
        self,
        name: str,
        *,
        mass_kg: float,
        dry_kg: Optional[float] = None,
        stage: int = -1,
        decouple_stage: int = -1,
        modules: tuple = (),
        resources: tuple = (),
        engine: Optional[FakeEngine] = None,
        crossfeed: bool = True,
        tag: str = "",
        is_fuel_line: bool = False,
    ):
        self.name = name
        self.title = name.title()
        self.tag = tag
        self.mass = mass_kg
        self.dry_mass = dry_kg if dry_kg is not None else mass_kg
        self.stage = stage
        self.decouple_stage = decouple_stage
        self.modules = [SimpleNamespace(name=m) for m in modules]
        self.resources = SimpleNamespace(all=list(resources))
        self.engine = engine
        self.crossfeed = crossfeed
        self.is_fuel_line = is_fuel_line
        self.fuel_lines_to: List["FakePart"] = []
        self.launch_clamp = None
        self.parent: Optional["FakePart"] = None
        self.children: List["FakePart"] = []

    def attach(self, child: "FakePart") -> "FakePart":
        child.parent = self
        self.children.append(child)
        return child


class FakeVessel:
    def __init__(self, name: str, parts: List[FakePart], current_stage: int, static_pressure_pa: float = 0.0):
        self.name = name
        self.parts = SimpleNamespace(all=parts)
        self.control = SimpleNamespace(current_stage=current_stage)
        self.situation = SimpleNamespace(name="pre_launch")
        self.mass = sum(p.mass for p in parts)
        self._pressure = static_pressure_pa

    def flight(self, reference_frame=None):
        return SimpleNamespace(static_pressure=self._pressure)


def fake_conn(vessel: FakeVessel):
    return SimpleNamespace(
        space_center=SimpleNamespace(active_vessel=vessel),
        krpc=SimpleNamespace(get_status=lambda: SimpleNamespace(version="0.5.4")),
    )


def two_stage_vessel(static_pressure_pa: float = 0.0) -> FakeVessel:
    """Same layout as builders.two_stage, in kRPC units (kg, N, kg/unit)."""

    def tank(name, dry_kg, lf_units, ox_units, **kw):
        res = (FakeResource("LiquidFuel", lf_units, 5.0), FakeResource("Oxidizer", ox_units, 5.0))
        return FakePart(name, mass_kg=dry_kg + 5.0 * (lf_units + ox_units), dry_kg=dry_kg, resources=res, **kw)

    cmd = FakePart("mk1pod", mass_kg=1000.0, modules=("ModuleCommand",))
    ut = cmd.attach(tank("fuelTank", 500.0, 180.0, 220.0))
    ue = ut.attach(FakePart(
        "liquidEngine3", mass_kg=500.0, stage=1, modules=("ModuleEnginesFX",),
        engine=FakeEngine(60000.0, 345.0, 85.0, {"LiquidFuel": 0.9, "Oxidizer": 1.1}),
    ))
    dec = ue.attach(FakePart("stackDecoupler", mass_kg=50.0, stage=1, decouple_stage=1,
                             modules=("ModuleDecouple",), crossfeed=False))
    lt = dec.attach(tank("fuelTank_long", 1000.0, 720.0, 880.0, decouple_stage=1))
    lt.attach(FakePart(
        "liquidEngine", mass_kg=1500.0, stage=2, decouple_stage=1, modules=("ModuleEnginesFX", "ModuleAlternator"),
        engine=FakeEngine(215000.0, 310.0, 280.0, {"LiquidFuel": 0.9, "Oxidizer": 1.1, "ElectricCharge": 0.0}),
    ))
    parts = [cmd]
    i = 0
    while i < len(parts):
        parts.extend(parts[i].children)
        i += 1
    return FakeVessel("Kerbal X", parts, current_stage=2, static_pressure_pa=static_pressure_pa)
