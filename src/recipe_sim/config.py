"""Harness configuration: defaults, JSON file, ``RECIPE_SIM_*`` environment, CLI flags."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Literal

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from .constants import DEFAULT_FORK_BLOCK, DEFAULT_SIGNER_BALANCE, DEV_ACCOUNTS
from .errors import ConfigError

__all__ = ["ENV_PREFIX", "HarnessConfig", "load_config"]

ENV_PREFIX = "RECIPE_SIM_"

LogLevel = Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]


class HarnessConfig(BaseSettings):
    """Settings for building a fork fixture.

    Keyword arguments are the config file's values; ``RECIPE_SIM_*``
    variables take precedence over them.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_ignore_empty=True,
        case_sensitive=False,
        extra="forbid",
        frozen=True,
    )

    fork_block: int = Field(default=DEFAULT_FORK_BLOCK, ge=0)
    signer_count: int = Field(default=4, ge=1, le=len(DEV_ACCOUNTS))
    signer_balance: int = Field(default=DEFAULT_SIGNER_BALANCE, ge=0)
    log_level: LogLevel = "WARNING"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return env_settings, init_settings

    @field_validator("fork_block", "signer_count", "signer_balance", mode="before")
    @classmethod
    def _reject_bool(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("must be an integer, not a boolean")
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value

    @property
    def signers(self) -> tuple[str, ...]:
        return DEV_ACCOUNTS[: self.signer_count]

    @property
    def logging_level(self) -> int:
        return getattr(logging, self.log_level)


def _describe(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in error['loc']) or 'config'}: {error['msg']}" for error in exc.errors()
    )


def _read_file(path: str | Path) -> dict[str, Any]:
    try:
        payload = json.loads(Path(path).read_text())
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid config JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise ConfigError("Config root must be an object")
    return payload


def load_config(path: str | Path | None = None, **overrides: Any) -> HarnessConfig:
    """Load configuration.

    Precedence, lowest first: defaults, the JSON file at *path*,
    ``RECIPE_SIM_*`` environment variables, then *overrides* (CLI flags).
    ``None`` overrides are ignored.
    """
    values = _read_file(path) if path is not None else {}
    overrides = {key: value for key, value in overrides.items() if value is not None}
    try:
        config = HarnessConfig(**values)
        if overrides:
            # model_validate skips the settings sources, so flags beat the environment.
            config = HarnessConfig.model_validate(config.model_dump() | overrides)
    except ValidationError as exc:
        raise ConfigError(_describe(exc)) from exc
    return config
