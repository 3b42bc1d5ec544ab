from __future__ import annotations

from .server import mcp


MULTI_STAGE_BURN = '''
Multi-Stage Burn Playbook

1) Read the stage table
- get_stage_info(address, pressure="current")
- stages[i] describes stage i; the last entry is the active stage
- Masses in t, thrust in kN, delta-v in m/s, burn_duration in s

2) Pick the right columns
- In vacuum: delta_v_vac, max_twr, isp_vac
- In atmosphere: delta_v_amb, start_slt (pass pressure=1.0 for sea level on Kerbin)
- isp_* is log-integrated over the whole stage; ispi_* is the value at ignition
- A stage with delta_v 0 and staged_mass > 0 only drops hardware (decouplers, spent tanks)

3) Size the burn
- plan_multistage_burn(address, dv_m_s) splits the burn across stages
- segments[] list delta-v and duration per stage, highest stage first
- shortfall > 0 means the vessel cannot deliver the full delta-v

4) Time the burn
- Start half_delta_v_time seconds before the node, not duration/2
- Staging mid-burn changes acceleration; re-read get_stage_info after each staging event

5) Diagnostics
- diagnostics[] lists input problems that were worked around (untagged fuel ducts,
  unknown fairings in lenient mode); tag fuel ducts with the tag of their target tank
  when the inferred destination is wrong
- { error, kind } with kind 'topology' means the duct layout is not supported
  (e.g. one tank group feeding two others); 'configuration' means bad input such as
  pressure outside [0, 100]

Offline analysis
- export_vessel_snapshot(address) -> save the JSON
- compute_stage_info_from_snapshot(snapshot_json, pressure) -> same table, no game needed
- resource://staging/latest holds the last computed table
'''


@mcp.resource("resource://playbooks/multi-stage-burn")
def get_multi_stage_burn_playbook() -> str:
    return MULTI_STAGE_BURN
