from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum, IntEnum
from typing import Dict, List, Optional, Tuple

from .errors import ConfigurationError

G0 = 9.80665  # m/s^2

# LiquidFuel:Oxidizer mass ratio of a standard rocket engine
LF_PER_OX = 9.0 / 11.0


class PropellantType(IntEnum):
    """Propellants the staging engine simulates. The value is the array slot."""

    LIQUID_FUEL = 0
    OXIDIZER = 1
    SOLID_FUEL = 2
    XENON_GAS = 3

    @property
    def resource_name(self) -> str:
        return _RESOURCE_NAMES[self]

    @property
    def density(self) -> float:
        """Tonnes per resource unit."""
        return _DENSITIES[self]

    @property
    def crosses_ducts(self) -> bool:
        return self is not PropellantType.SOLID_FUEL

    @classmethod
    def from_resource(cls, name: str) -> Optional["PropellantType"]:
        return _BY_NAME.get(name)


_RESOURCE_NAMES = {
    PropellantType.LIQUID_FUEL: "LiquidFuel",
    PropellantType.OXIDIZER: "Oxidizer",
    PropellantType.SOLID_FUEL: "SolidFuel",
    PropellantType.XENON_GAS: "XenonGas",
}
_DENSITIES = {
    PropellantType.LIQUID_FUEL: 0.005,
    PropellantType.OXIDIZER: 0.005,
    PropellantType.SOLID_FUEL: 0.0075,
    PropellantType.XENON_GAS: 0.0001,
}
_BY_NAME = {v: k for k, v in _RESOURCE_NAMES.items()}

LF = PropellantType.LIQUID_FUEL
OX = PropellantType.OXIDIZER
SF = PropellantType.SOLID_FUEL
XE = PropellantType.XENON_GAS
PROPELLANTS: Tuple[PropellantType, ...] = tuple(PropellantType)


def zeros() -> List[float]:
    """One slot per PropellantType."""
    return [0.0] * len(PROPELLANTS)


class PartKind(Enum):
    PART = "part"
    ENGINE = "engine"
    DECOUPLER = "decoupler"
    SEPARATOR = "separator"
    DOCKING_PORT = "docking_port"
    ENGINE_PLATE = "engine_plate"
    FUEL_DUCT = "fuel_duct"
    FAIRING = "fairing"
    LAUNCH_CLAMP = "launch_clamp"


DECOUPLER_KINDS = frozenset({
    PartKind.DECOUPLER,
    PartKind.SEPARATOR,
    PartKind.DOCKING_PORT,
    PartKind.ENGINE_PLATE,
})

ENGINE_MODULES = frozenset({"ModuleEngines", "ModuleEnginesFX"})
KNOWN_DECOUPLE_MODULES = frozenset({"ModuleDecouple", "ModuleAnchoredDecoupler", "ModuleDecouplerShroud"})


@dataclass(frozen=True)
class PartResource:
    name: str
    amount: float
    density: float

    @property
    def mass(self) -> float:
        return self.amount * self.density


@dataclass(frozen=True)
class EngineSpec:
    """Engine performance at full throttle.

    `max_fuel_flow` maps resource name to mass flow (t/s) before the thrust
    limiter is applied. `isp_curve` holds (pressure atm, isp s) keys.
    """

    max_fuel_flow: Dict[str, float]
    isp_curve: Tuple[Tuple[float, float], ...]
    thrust_limit: float = 1.0

    def isp_at(self, pressure: float) -> float:
        keys = sorted(self.isp_curve)
        if not keys:
            return 0.0
        if pressure <= keys[0][0]:
            return keys[0][1]
        for (p0, i0), (p1, i1) in zip(keys, keys[1:]):
            if pressure <= p1:
                if p1 == p0:
                    return i1
                return i0 + (i1 - i0) * (pressure - p0) / (p1 - p0)
        return keys[-1][1]

    def mass_flow(self) -> float:
        """Total propellant mass flow with the thrust limiter applied (t/s)."""
        return sum(self.max_fuel_flow.values()) * self.thrust_limit

    def thrust_at(self, pressure: float) -> float:
        """Thrust (kN) at the given static pressure (atm)."""
        return self.mass_flow() * G0 * self.isp_at(pressure)


@dataclass(frozen=True)
class Part:
    uid: str
    name: str
    mass: float
    dry_mass: float
    stage: int = -1
    decouple_stage: int = -1
    title: str = ""
    tag: str = ""
    resources: Tuple[PartResource, ...] = ()
    modules: Tuple[str, ...] = ()
    parent: Optional[str] = None
    children: Tuple[str, ...] = ()
    crossfeed: bool = True
    attach_node: Optional[str] = None
    self_node: Optional[str] = None
    duct_target: Optional[str] = None
    engine: Optional[EngineSpec] = None

    @property
    def tags(self) -> Tuple[str, ...]:
        """Whitespace/comma separated tokens of the user tag, lowercased."""
        return tuple(t for t in self.tag.lower().replace(",", " ").split() if t)

    def propellant_mass(self) -> List[float]:
        out = zeros()
        for r in self.resources:
            p = PropellantType.from_resource(r.name)
            if p is not None:
                out[p] += r.mass
        return out


def classify_part(part: Part) -> PartKind:
    """Map a part's modules to the kind the staging engine cares about."""
    mods = set(part.modules)
    if part.engine is not None or mods & ENGINE_MODULES:
        return PartKind.ENGINE
    if "CModuleFuelLine" in mods:
        return PartKind.FUEL_DUCT
    if "LaunchClamp" in mods:
        return PartKind.LAUNCH_CLAMP
    if "ModuleProceduralFairing" in mods:
        return PartKind.FAIRING
    for m in mods:
        if "decouple" in m.lower() and m not in KNOWN_DECOUPLE_MODULES:
            raise ConfigurationError(f"Unrecognized decoupler module '{m}' on part {part.name} ({part.uid})")
    if "ModuleDynamicNodes" in mods and "ModuleDecouple" in mods:
        return PartKind.ENGINE_PLATE
    if "ModuleAnchoredDecoupler" in mods:
        return PartKind.SEPARATOR
    if "ModuleDecouple" in mods:
        return PartKind.DECOUPLER
    if "ModuleDockingNode" in mods:
        return PartKind.DOCKING_PORT
    return PartKind.PART


@dataclass(frozen=True)
class VesselSnapshot:
    """Immutable point-in-time view of a vessel."""

    name: str
    current_stage: int
    parts: Tuple[Part, ...]
    ambient_pressure: float = 0.0
    _by_uid: Dict[str, Part] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_by_uid", {p.uid: p for p in self.parts})

    def part(self, uid: str) -> Part:
        return self._by_uid[uid]

    def get(self, uid: Optional[str]) -> Optional[Part]:
        if uid is None:
            return None
        return self._by_uid.get(uid)

    def engines(self) -> List[Part]:
        return [p for p in self.parts if p.engine is not None]

    @property
    def mass(self) -> float:
        return sum(p.mass for p in self.parts)


@dataclass
class FuelDuctEdge:
    source: int
    destination: int
    duct: str


@dataclass
class FuelZone:
    """Parts sharing one propellant reservoir through crossfeed."""

    index: int
    parts: List[str] = field(default_factory=list)
    engines: List[str] = field(default_factory=list)
    tanks: List[str] = field(default_factory=list)
    ducts: List[str] = field(default_factory=list)
    activation_stage: int = -1
    decouple_stage: int = -1
    fuel: List[float] = field(default_factory=zeros)
    outgoing: Optional[FuelDuctEdge] = None
    incoming: List[FuelDuctEdge] = field(default_factory=list)


@dataclass
class StageFlow:
    """Per-propellant consumption (t/s) and thrust (kN) of one zone in one stage."""

    con: List[float] = field(default_factory=zeros)
    thrust_vac: List[float] = field(default_factory=zeros)
    thrust_amb: List[float] = field(default_factory=zeros)

    def is_empty(self) -> bool:
        return not any(self.con)


@dataclass(frozen=True)
class Substage:
    duration: float
    consumption: float
    thrust_vac: float
    thrust_amb: float

    @property
    def fuel_burned(self) -> float:
        return self.consumption * self.duration


@dataclass
class StageRecord:
    stage: int
    inert_mass: float = 0.0
    substages: List[Substage] = field(default_factory=list)
    fuel_burned: float = 0.0
    discarded_fuel: float = 0.0
    initial_con: float = 0.0
    initial_thrust_vac: float = 0.0
    initial_thrust_amb: float = 0.0

    @property
    def burn_duration(self) -> float:
        return sum(s.duration for s in self.substages)


@dataclass(frozen=True)
class StageSummary:
    stage: int
    start_mass: float
    end_mass: float
    staged_mass: float
    fuel_burned: float
    discarded_fuel: float
    start_twr: float
    max_twr: float
    start_slt: float
    max_slt: float
    thrust_vac: float
    thrust_amb: float
    isp_vac: float
    isp_amb: float
    ispi_vac: float
    ispi_amb: float
    delta_v_vac: float
    delta_v_amb: float
    burn_duration: float
    pressure: float
    substage_count: int = 0

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)
