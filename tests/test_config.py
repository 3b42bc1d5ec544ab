import os

import pytest

from stinfo_mcp.staging.config import DEFAULT_FAIRING_BASES, StagingOptions, options_from_env
from stinfo_mcp.staging.errors import ConfigurationError
from stinfo_mcp.utils.env import load_env_defaults


def test_defaults():
    opts = options_from_env({})
    assert opts == StagingOptions()
    assert opts.epsilon == 1e-6
    assert opts.strict_fairings is True


def test_env_overrides():
    opts = options_from_env({
        "STINFO_EPSILON": "1e-5",
        "STINFO_FUEL_TOLERANCE": "0.01",
        "STINFO_MAX_SUBSTAGES": "50",
        "STINFO_STRICT_FAIRINGS": "no",
        "STINFO_FAIRING_BASES": "fairingSize4=0.9, fairingSize1=0.08",
    })
    assert opts.epsilon == 1e-5
    assert opts.fuel_tolerance == 0.01
    assert opts.max_substages == 50
    assert opts.strict_fairings is False
    assert opts.fairing_bases["fairingSize4"] == 0.9
    assert opts.fairing_bases["fairingSize1"] == 0.08
    assert opts.fairing_bases["fairingSize2"] == DEFAULT_FAIRING_BASES["fairingSize2"]


@pytest.mark.parametrize("env", [
    {"STINFO_EPSILON": "tiny"},
    {"STINFO_MAX_SUBSTAGES": "0"},
    {"STINFO_FAIRING_BASES": "fairingSize1"},
    {"STINFO_FAIRING_BASES": "fairingSize1=heavy"},
])
def test_bad_settings(env):
    with pytest.raises(ConfigurationError):
        options_from_env(env)


def test_dotenv_does_not_override_environment(tmp_path, monkeypatch):
    env_file = tmp_path / ".env"
    env_file.write_text(
        "# comment\n"
        "export STINFO_EPSILON=1e-4\n"
        "STINFO_MAX_SUBSTAGES='77'\n"
        "not a setting\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("STINFO_EPSILON", "1e-3")
    try:
        set_vars = load_env_defaults(env_file)
        assert set_vars == {"STINFO_MAX_SUBSTAGES": "77"}
        assert os.environ["STINFO_EPSILON"] == "1e-3"
        assert options_from_env(load_dotenv=False).max_substages == 77
    finally:
        os.environ.pop("STINFO_MAX_SUBSTAGES", None)


def test_missing_dotenv_is_fine(tmp_path):
    assert load_env_defaults(tmp_path / "absent.env") == {}
