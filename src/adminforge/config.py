"""
Admin configuration.

Configuration is loaded from the [admin] table of a TOML file, with
credentials and database overridable from the environment.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from adminforge.core.errors import ConfigurationError

# Environment variables that override file values
ENV_OVERRIDES = {
    "ADMINFORGE_USERNAME": "username",
    "ADMINFORGE_PASSWORD": "password",
    "ADMINFORGE_DATABASE": "database",
}


class AdminConfig(BaseModel):
    """Settings for one admin instance."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(default="/admin", description="URL prefix the admin is mounted under")
    database: str = Field(default=":memory:", description="SQLite database file")
    title: str = Field(default="Admin", description="Page title")
    username: str = ""
    password: str = Field(default="", repr=False)
    templates_dir: Path | None = Field(
        default=None, description="Project templates overriding the built-in ones"
    )
    session_ttl_seconds: int = Field(default=7 * 24 * 3600, gt=0)
    cookie_name: str = "adminforge_session"
    foreign_key_suffix: str = Field(default="Id", min_length=1)

    @property
    def root(self) -> str:
        """URL prefix without a trailing slash ("" when mounted at /)."""
        return self.path.rstrip("/")


def load_config(path: Path | str, environ: dict[str, str] | None = None) -> AdminConfig:
    """
    Load AdminConfig from a TOML file.

    Args:
        path: TOML file with an [admin] table
        environ: Environment to read overrides from (default: os.environ)

    Raises:
        ConfigurationError: file missing, not TOML, or values invalid
    """
    path = Path(path)
    environ = os.environ if environ is None else environ

    try:
        with path.open("rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError:
        raise ConfigurationError(f"Config file not found: {path}") from None
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"Invalid TOML in {path}: {exc}") from exc

    values: dict[str, Any] = dict(data.get("admin", {}))
    for env_key, option in ENV_OVERRIDES.items():
        if environ.get(env_key):
            values[option] = environ[env_key]

    if "templates_dir" in values:
        values["templates_dir"] = path.parent / values["templates_dir"]

    try:
        return AdminConfig(**values)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid [admin] config in {path}: {exc}") from exc
