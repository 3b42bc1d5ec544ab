from __future__ import annotations

import json
from typing import Any, Dict

from .server import mcp

_LATEST_STAGE_INFO_JSON: str | None = None


def set_latest_stage_info(info: Dict[str, Any] | str) -> None:
    global _LATEST_STAGE_INFO_JSON
    if isinstance(info, str):
        _LATEST_STAGE_INFO_JSON = info
    else:
        _LATEST_STAGE_INFO_JSON = json.dumps(info)


def clear_latest_stage_info() -> None:
    global _LATEST_STAGE_INFO_JSON
    _LATEST_STAGE_INFO_JSON = None


@mcp.resource("resource://staging/latest")
def get_latest_stage_info() -> str:
    """Return the most recently computed stage table as JSON, if available.

    Call get_stage_info or compute_stage_info_from_snapshot first to refresh this cache.
    """
    return _LATEST_STAGE_INFO_JSON or json.dumps(
        {"error": "No cached stage info. Call get_stage_info first."}
    )
