import math

import pytest

from builders import nerv_engine, rocket_engine, srb_engine
from stinfo_mcp.staging.errors import ConfigurationError
from stinfo_mcp.staging.flow import build_flow_tables, engine_demand, resolve_pressure, total_flow
from stinfo_mcp.staging.types import G0, LF, LF_PER_OX, OX, SF, XE, EngineSpec
from stinfo_mcp.staging.zones import build_zones, classify_parts


def test_resolve_pressure_accepts_range(two):
    assert resolve_pressure(0, two) == 0.0
    assert resolve_pressure(100, two) == 100.0
    assert resolve_pressure(0.5, two) == 0.5


@pytest.mark.parametrize("value", [-0.1, 100.01, math.nan])
def test_resolve_pressure_rejects_out_of_range(two, value):
    with pytest.raises(ConfigurationError):
        resolve_pressure(value, two)


@pytest.mark.parametrize("value", ["current", None, "sea level", True])
def test_non_numeric_pressure_uses_ambient(value):
    from builders import two_stage

    snap = two_stage(ambient_pressure=0.42)
    assert resolve_pressure(value, snap) == pytest.approx(0.42)


def test_dual_engine_is_booked_on_oxidizer():
    spec = rocket_engine(200.0, 300.0)
    slot, con = engine_demand(spec)
    assert slot is OX
    total = 200.0 / (300.0 * G0)
    assert con == pytest.approx(total * 0.55)
    assert con * LF_PER_OX == pytest.approx(total * 0.45)
    assert total_flow(slot, con) == pytest.approx(total)


def test_single_propellant_engines():
    assert engine_demand(nerv_engine(60.0, 800.0))[0] is LF
    assert engine_demand(srb_engine(250.0, 195.0))[0] is SF
    ion = EngineSpec(max_fuel_flow={"XenonGas": 1e-5, "ElectricCharge": 0.0}, isp_curve=((0.0, 4200.0),))
    assert engine_demand(ion) == (XE, 1e-5)


def test_thrust_limiter_scales_flow():
    full = engine_demand(rocket_engine(200.0, 300.0))[1]
    half = engine_demand(rocket_engine(200.0, 300.0, limit=0.5))[1]
    assert half == pytest.approx(full / 2)


def test_air_breathing_engine_is_excluded():
    jet = EngineSpec(max_fuel_flow={"LiquidFuel": 0.001, "IntakeAir": 0.01}, isp_curve=((0.0, 6400.0),))
    assert engine_demand(jet) is None


def test_isp_curve_interpolates_and_clamps():
    spec = rocket_engine(200.0, 300.0, 260.0)
    assert spec.isp_at(0.5) == pytest.approx(280.0)
    assert spec.isp_at(5.0) == pytest.approx(260.0)
    assert spec.thrust_at(0.0) == pytest.approx(200.0)
    assert spec.thrust_at(1.0) == pytest.approx(200.0 * 260.0 / 300.0)


def test_flow_tables_cover_active_stages(two, options):
    kinds = classify_parts(two)
    zones, claimed = build_zones(two, kinds, options)
    tables = build_flow_tables(two, zones, claimed, pressure=1.0)
    upper, lower = claimed["ue"], claimed["le"]
    assert tables.top == 2
    assert tables.flow(lower, 2).con[OX] > 0
    assert tables.flow(lower, 1).is_empty()
    assert tables.flow(upper, 1).con[OX] > 0
    assert tables.flow(upper, 0).con[OX] > 0
    assert tables.flow(upper, 2).is_empty()
    assert tables.flow(lower, 2).con[LF] == 0.0
    assert tables.ignitions == {1, 2}
    assert tables.initial_thrust_vac[2] == pytest.approx(215.0)
    assert tables.initial_thrust_amb[2] == pytest.approx(215.0 * 280.0 / 310.0)
    assert tables.initial_thrust_vac[1] == pytest.approx(60.0)
