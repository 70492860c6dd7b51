"""Configuration loading precedence and validation."""
from __future__ import annotations

import json
import logging

import pytest
from pydantic import ValidationError

from recipe_sim.config import ENV_PREFIX, HarnessConfig, load_config
from recipe_sim.constants import DEFAULT_FORK_BLOCK, DEV_ACCOUNTS
from recipe_sim.errors import ConfigError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ("FORK_BLOCK", "SIGNER_COUNT", "SIGNER_BALANCE", "LOG_LEVEL"):
        monkeypatch.delenv(ENV_PREFIX + key, raising=False)
    return monkeypatch


def test_defaults_without_file_or_environment():
    config = load_config()

    assert config == HarnessConfig()
    assert config.fork_block == DEFAULT_FORK_BLOCK
    assert config.signers == DEV_ACCOUNTS[:4]
    assert config.logging_level == logging.WARNING


def test_environment_overrides_file(tmp_path, clean_env):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"fork_block": 100, "signer_count": 2, "log_level": "info"}))
    clean_env.setenv("RECIPE_SIM_FORK_BLOCK", "200")

    config = load_config(path)

    assert config.fork_block == 200
    assert config.signer_count == 2
    assert config.log_level == "INFO"
    assert config.logging_level == logging.INFO


def test_flags_override_environment(clean_env):
    clean_env.setenv("RECIPE_SIM_FORK_BLOCK", "200")
    clean_env.setenv("RECIPE_SIM_LOG_LEVEL", "error")

    config = load_config(fork_block=300, log_level=None)

    assert config.fork_block == 300
    assert config.log_level == "ERROR"


def test_empty_environment_values_are_ignored(clean_env):
    clean_env.setenv("RECIPE_SIM_SIGNER_COUNT", "")
    assert load_config().signer_count == 4


def test_config_is_immutable():
    config = load_config()
    with pytest.raises(ValidationError):
        config.fork_block = 1


@pytest.mark.parametrize(
    ("payload", "field"),
    [
        ({"fork_blok": 1}, "fork_blok"),
        ({"fork_block": "soon"}, "fork_block"),
        ({"fork_block": True}, "fork_block"),
        ({"fork_block": -1}, "fork_block"),
        ({"signer_count": 0}, "signer_count"),
        ({"signer_count": 11}, "signer_count"),
        ({"log_level": "LOUD"}, "log_level"),
    ],
)
def test_invalid_file_values_raise(tmp_path, payload, field):
    path = tmp_path / "config.json"
    path.write_text(json.dumps(payload))
    with pytest.raises(ConfigError, match=field):
        load_config(path)


def test_non_object_or_unreadable_file_raises(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("[1, 2]")
    with pytest.raises(ConfigError, match="object"):
        load_config(path)
    with pytest.raises(ConfigError, match="Cannot read"):
        load_config(tmp_path / "missing.json")


def test_invalid_environment_value_raises(clean_env):
    clean_env.setenv("RECIPE_SIM_SIGNER_BALANCE", "-5")
    with pytest.raises(ConfigError, match="signer_balance"):
        load_config()


def test_invalid_flag_raises():
    with pytest.raises(ConfigError, match="fork_block"):
        load_config(fork_block=-3)
