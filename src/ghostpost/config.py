"""Configuration loaded from .ghostpost.toml, env vars, and CLI flags.

Later sources win: built-in defaults, then the TOML file, then
``GHOSTPOST_*`` environment variables, then flags given on the command line.
"""

from __future__ import annotations

import logging
import os
import tomllib
from collections.abc import Mapping
from pathlib import Path, PurePosixPath

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".ghostpost.toml"
CONFIG_SEARCH_PATHS = [
    Path("."),
]
GLOBAL_CONFIG_PATH = Path.home() / ".config" / "ghostpost" / "config.toml"

DEFAULT_API_KEY_NAME = "ghost-admin-api-key"


class GhostSectionConfig(BaseModel):
    """[ghost] section."""

    url: str = ""
    api_key_name: str = DEFAULT_API_KEY_NAME


class VaultSectionConfig(BaseModel):
    """[vault] section."""

    root: str = "."
    writing_folder: str = "writing"
    published_folder: str = "published"


class GhostPostConfig(BaseModel):
    """Top-level configuration passed into each publish operation."""

    ghost: GhostSectionConfig = Field(default_factory=GhostSectionConfig)
    vault: VaultSectionConfig = Field(default_factory=VaultSectionConfig)

    @property
    def blog_url(self) -> str:
        return self.ghost.url.strip().rstrip("/")

    @property
    def published_path(self) -> str:
        """Vault folder that published documents are moved into."""
        parts = [
            p.strip("/")
            for p in (self.vault.writing_folder, self.vault.published_folder)
            if p.strip("/")
        ]
        return str(PurePosixPath(*parts)) if parts else ""


ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "GHOSTPOST_BLOG_URL": ("ghost", "url"),
    "GHOSTPOST_API_KEY_NAME": ("ghost", "api_key_name"),
    "GHOSTPOST_VAULT": ("vault", "root"),
    "GHOSTPOST_WRITING_FOLDER": ("vault", "writing_folder"),
    "GHOSTPOST_PUBLISHED_FOLDER": ("vault", "published_folder"),
}

CLI_OVERRIDES: dict[str, tuple[str, str]] = {
    "blog_url": ("ghost", "url"),
    "api_key_name": ("ghost", "api_key_name"),
    "vault_root": ("vault", "root"),
    "writing_folder": ("vault", "writing_folder"),
    "published_folder": ("vault", "published_folder"),
}


def load_config(path: str | Path | None = None) -> GhostPostConfig:
    """Build the configuration for a publish run.

    An explicit ``path`` is the only file read; if it is missing the
    defaults are used.  Without one, the first ``.ghostpost.toml`` found in
    ``CONFIG_SEARCH_PATHS`` is used, else the per-user file at
    ``GLOBAL_CONFIG_PATH``.  ``GHOSTPOST_*`` environment variables are
    applied on top either way.
    """
    data = _read_config_file(Path(path) if path is not None else None)
    config = GhostPostConfig.model_validate(data) if data else GhostPostConfig()
    return _overlay(config, ENV_OVERRIDES, os.environ)


def merge_cli_overrides(config: GhostPostConfig, **cli_kwargs: object) -> GhostPostConfig:
    """Apply command-line flags; flags left at ``None`` keep the loaded value."""
    values = {key: str(value) for key, value in cli_kwargs.items() if value is not None}
    return _overlay(config, CLI_OVERRIDES, values)


def _read_config_file(explicit: Path | None) -> dict[str, object]:
    if explicit is not None:
        if explicit.exists():
            return _load_toml(explicit)
        logger.warning("Config file not found: %s", explicit)
        return {}

    candidates = [d / CONFIG_FILENAME for d in CONFIG_SEARCH_PATHS] + [GLOBAL_CONFIG_PATH]
    for candidate in candidates:
        if candidate.exists():
            data = _load_toml(candidate)
            if data:
                logger.info("Loaded config from %s", candidate)
                return data
    return {}


def _load_toml(path: Path) -> dict[str, object]:
    """Parse a TOML config file; an unreadable or invalid file counts as empty."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError) as exc:
        logger.warning("Failed to parse %s: %s", path, exc)
        return {}


def _overlay(
    config: GhostPostConfig,
    mapping: dict[str, tuple[str, str]],
    values: Mapping[str, str],
) -> GhostPostConfig:
    """Copy ``values`` onto the config sections named in ``mapping``."""
    data = config.model_dump()
    for key, (section, field) in mapping.items():
        if key in values:
            data[section][field] = values[key]
    return GhostPostConfig.model_validate(data)
