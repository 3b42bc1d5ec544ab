"""Per-stage mass, thrust, ISP and delta-v of a staged vessel."""

from .budget import BurnPlan, BurnSegment, plan_burn
from .config import StagingOptions, options_from_env
from .engine import Failure, StageInfoResult, compute_stage_info, run_stage_info
from .errors import ConfigurationError, InvariantViolation, SnapshotError, StagingError, TopologyError
from .snapshot import load_snapshot, loads_snapshot, snapshot_from_dict, snapshot_to_dict
from .types import EngineSpec, Part, PartResource, PropellantType, StageSummary, VesselSnapshot

__all__ = [
    "BurnPlan",
    "BurnSegment",
    "ConfigurationError",
    "EngineSpec",
    "Failure",
    "InvariantViolation",
    "Part",
    "PartResource",
    "PropellantType",
    "SnapshotError",
    "StageInfoResult",
    "StageSummary",
    "StagingError",
    "StagingOptions",
    "TopologyError",
    "VesselSnapshot",
    "compute_stage_info",
    "load_snapshot",
    "loads_snapshot",
    "options_from_env",
    "plan_burn",
    "run_stage_info",
    "snapshot_from_dict",
    "snapshot_to_dict",
]
