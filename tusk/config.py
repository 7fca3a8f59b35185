"""Configuration loading and connection profile resolution."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Sequence

import tomllib

from pydantic import BaseModel, ConfigDict, Field, PositiveFloat, ValidationError, field_validator

from .errors import ConfigError, ProfileNotFound
from .models import ConnectionProfile

LOG = logging.getLogger(__name__)

CONFIG_ENV_VAR = "TUSKCONFIG"
CONFIG_FILE = Path.home() / ".tusk" / "config.toml"


class ConnectionProfileConfig(BaseModel):
    """Connection profile stored as a ``[[connection]]`` table in config.toml."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    user: str
    password: str | None = Field(default=None, repr=False)
    host: str = "localhost"
    port: int = Field(default=5432, ge=1, le=65535)
    database: str

    def to_profile(self) -> ConnectionProfile:
        return ConnectionProfile(
            name=self.name,
            user=self.user,
            password=self.password,
            host=self.host,
            port=self.port,
            database=self.database,
        )


class AppConfig(BaseModel):
    """Shape of the configuration file."""

    model_config = ConfigDict(frozen=True)

    default: str
    connection: list[ConnectionProfileConfig] = Field(default_factory=list)
    connect_timeout: PositiveFloat = 10.0
    query_timeout: PositiveFloat | None = 30.0

    @field_validator("connection")
    @classmethod
    def _unique_names(cls, profiles: list[ConnectionProfileConfig]) -> list[ConnectionProfileConfig]:
        seen: set[str] = set()
        for profile in profiles:
            if profile.name in seen:
                raise ValueError(f"duplicate connection profile '{profile.name}'")
            seen.add(profile.name)
        return profiles

    def get(self, requested: str | None = None) -> ConnectionProfile:
        """Return the runtime profile for `requested`, or the default one."""

        return resolve_profile(self.connection, self.default, requested).to_profile()

    def profile_names(self) -> list[tuple[str, bool]]:
        """Profile names in file order, paired with a default marker."""

        return [(profile.name, profile.name == self.default) for profile in self.connection]


def resolve_profile(
    profiles: Sequence[ConnectionProfileConfig],
    default_name: str,
    requested: str | None,
) -> ConnectionProfileConfig:
    """Pick the requested profile, falling back to `default_name`."""

    name = requested if requested is not None else default_name
    for profile in profiles:
        if profile.name == name:
            LOG.debug("Resolved connection profile '%s'", name)
            return profile
    raise ProfileNotFound(name)


def config_path(override: str | os.PathLike[str] | None = None) -> Path:
    """Location of the config file: explicit override, then $TUSKCONFIG, then ~/.tusk."""

    if override is not None:
        return Path(override)
    env_value = os.environ.get(CONFIG_ENV_VAR)
    if env_value:
        return Path(env_value)
    return CONFIG_FILE


def load_config(path: str | os.PathLike[str] | None = None) -> AppConfig:
    """Read and validate the configuration file once per invocation."""

    location = config_path(path)
    LOG.debug("Loading configuration from %s", location)
    try:
        with location.open("rb") as handle:
            raw = tomllib.load(handle)
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file not found: {location}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Could not parse config file {location}: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Could not read config file {location}: {exc}") from exc
    try:
        return AppConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config file {location}:\n{_describe_errors(exc)}") from None


def _describe_errors(exc: ValidationError) -> str:
    # Input values are left out; they may hold passwords.
    lines = []
    for error in exc.errors(include_url=False, include_context=False, include_input=False):
        location = ".".join(str(part) for part in error["loc"]) or "<root>"
        lines.append(f"  {location}: {error['msg']}")
    return "\n".join(lines)


__all__ = [
    "AppConfig",
    "CONFIG_ENV_VAR",
    "CONFIG_FILE",
    "ConnectionProfileConfig",
    "config_path",
    "load_config",
    "resolve_profile",
]
