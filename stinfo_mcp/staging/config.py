from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Dict, Mapping, Optional

from .errors import ConfigurationError

# Base (non-panel) mass in tonnes of the stock procedural fairings
DEFAULT_FAIRING_BASES: Dict[str, float] = {
    "fairingSize1": 0.075,
    "fairingSize1p5": 0.15,
    "fairingSize2": 0.175,
    "fairingSize3": 0.475,
    "fairingSize4": 0.8,
}


@dataclass(frozen=True)
class StagingOptions:
    epsilon: float = 1e-6  # fuel below this (t) counts as empty
    fuel_tolerance: float = 1e-4  # t, allowed drift in the fuel checks
    strict_fairings: bool = True
    fairing_bases: Mapping[str, float] = field(default_factory=lambda: dict(DEFAULT_FAIRING_BASES))
    reverse_tag: str = "reverse"
    attached_tag: str = "attached"
    detached_tag: str = "detached"
    max_substages: int = 1000

    def validate(self) -> "StagingOptions":
        if self.epsilon <= 0 or self.fuel_tolerance <= 0:
            raise ConfigurationError("epsilon and fuel_tolerance must be positive")
        if self.max_substages < 1:
            raise ConfigurationError("max_substages must be at least 1")
        return self


_TRUE = {"1", "true", "yes", "on"}


def _parse_bases(raw: str) -> Dict[str, float]:
    out: Dict[str, float] = {}
    for item in raw.split(","):
        item = item.strip()
        if not item:
            continue
        if "=" not in item:
            raise ConfigurationError(f"Bad fairing base entry '{item}' (expected name=mass)")
        k, v = item.split("=", 1)
        try:
            out[k.strip()] = float(v)
        except ValueError as e:
            raise ConfigurationError(f"Bad fairing base mass for '{k.strip()}': {v}") from e
    return out


def options_from_env(env: Optional[Mapping[str, str]] = None, *, load_dotenv: bool = True) -> StagingOptions:
    """
    Build StagingOptions from STINFO_* variables.

    Recognized: STINFO_EPSILON, STINFO_FUEL_TOLERANCE,
    STINFO_STRICT_FAIRINGS, STINFO_FAIRING_BASES ("name=mass,..." merged over
    the defaults), STINFO_MAX_SUBSTAGES.
    """
    if env is None:
        if load_dotenv:
            from ..utils.env import load_env_defaults

            load_env_defaults()
        env = os.environ
    opts = StagingOptions()
    changes: Dict[str, object] = {}
    try:
        if env.get("STINFO_EPSILON"):
            changes["epsilon"] = float(env["STINFO_EPSILON"])
        if env.get("STINFO_FUEL_TOLERANCE"):
            changes["fuel_tolerance"] = float(env["STINFO_FUEL_TOLERANCE"])
        if env.get("STINFO_MAX_SUBSTAGES"):
            changes["max_substages"] = int(env["STINFO_MAX_SUBSTAGES"])
    except ValueError as e:
        raise ConfigurationError(f"Invalid STINFO_* setting: {e}") from e
    if env.get("STINFO_STRICT_FAIRINGS"):
        changes["strict_fairings"] = env["STINFO_STRICT_FAIRINGS"].strip().lower() in _TRUE
    if env.get("STINFO_FAIRING_BASES"):
        bases = dict(DEFAULT_FAIRING_BASES)
        bases.update(_parse_bases(env["STINFO_FAIRING_BASES"]))
        changes["fairing_bases"] = bases
    return replace(opts, **changes).validate()
