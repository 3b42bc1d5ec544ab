import logging

import pytest

from builders import asparagus_boosters, drop_tank, single_stage, two_stage
from stinfo_mcp.staging.config import StagingOptions


@pytest.fixture
def options():
    return StagingOptions()


@pytest.fixture
def single():
    return single_stage()


@pytest.fixture
def two():
    return two_stage()


@pytest.fixture
def dropped_tank():
    return drop_tank()


@pytest.fixture
def boosters():
    return asparagus_boosters()


@pytest.fixture
def quiet_logger():
    logger = logging.getLogger("stinfo_mcp.tests")
    logger.setLevel(logging.DEBUG)
    return logger


@pytest.fixture(autouse=True)
def _no_env_overrides(monkeypatch):
    for key in ("STINFO_EPSILON", "STINFO_FUEL_TOLERANCE", "STINFO_MAX_SUBSTAGES",
                "STINFO_STRICT_FAIRINGS", "STINFO_FAIRING_BASES", "STINFO_KRPC_ADDRESS",
                "STINFO_KRPC_RPC_PORT", "STINFO_KRPC_STREAM_PORT", "STINFO_KRPC_TIMEOUT"):
        monkeypatch.delenv(key, raising=False)
