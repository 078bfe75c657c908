# Author: PB
# Maintainer: PB
# Original date: 2025.07.03
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# src/gitmarks/config/manager.py

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional, Final

import yaml
from loguru import logger
from pydantic import BaseModel, Field, field_validator

from gitmarks import __version__
from gitmarks.system.exceptions import ConfigError


# ---- Constants ----

USER_CFG: Final = "gitmarks.yml"


def _get_config_search_paths() -> tuple[Path, ...]:
    """Get config file search paths (ordered by priority: lowest to highest).

    Evaluated at call time so environment overrides set by tests are honored.
    """
    return (
        Path("/etc/gitmarks") / USER_CFG,
        Path.home() / ".config" / "gitmarks" / USER_CFG,
        Path(os.getenv("XDG_CONFIG_HOME", "")) / "gitmarks" / USER_CFG,
        Path(os.getenv("GITMARKS_CONFIG_HOME", "")) / USER_CFG,
    )


def _load_merged_config_data(candidates: tuple[Path, ...]) -> tuple[dict, list[str]]:
    """Load and merge config data from candidate paths.

    Returns:
        Tuple of (merged data, list of files that contributed)
    """
    merged_data: dict = {}
    found_configs: list[str] = []

    for candidate in candidates:
        # Unset env vars collapse to a relative path; skip those
        if not candidate.is_absolute() or not candidate.exists():
            continue
        try:
            with candidate.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load config from {candidate}: {e}")
            continue

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {candidate} must contain a mapping")

        merged_data.update(data)  # Later configs override earlier ones
        found_configs.append(str(candidate))
        logger.debug(f"Loaded config from {candidate}")

    return merged_data, found_configs


class SyncConfig(BaseModel):
    """Settings for the git mirror of a bookmark database."""
    # Where repositories live; defaults to <db dir>/git when unset
    git_root: Optional[Path] = None

    # Overwrite record files even when their checksum is unchanged
    force: bool = False

    # Bulk-load pool size; None means twice the CPU count
    workers: Optional[int] = Field(default=None, ge=1)

    local_log: Optional[Path] = None
    progress: bool = True

    git_command: str = "git"
    gpg_command: str = "gpg"
    app_version: str = __version__

    @field_validator("git_root", "local_log", mode="after")
    @classmethod
    def expand_home(cls, value: Optional[Path]) -> Optional[Path]:
        if value is None:
            return None
        return value.expanduser()

    @property
    def pool_size(self) -> int:
        """Number of concurrent loaders used by bulk reads."""
        if self.workers:
            return self.workers
        return (os.cpu_count() or 1) * 2

    @classmethod
    def load(cls, config_path: Path) -> "SyncConfig":
        """Load config from a single file."""
        with config_path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        try:
            return cls.model_validate(data)
        except Exception as e:
            raise ConfigError(str(e)) from e

    def save(self, config_path: Path) -> None:
        """Write config to file, omitting unset optional fields."""
        config_dict = self.model_dump(mode="json", exclude_none=True)
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with config_path.open("w", encoding="utf-8") as f:
            yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False)


def load_merged_config() -> SyncConfig:
    """Load and merge config from all locations (system defaults + user overrides).

    Missing config files are not an error; defaults apply.
    """
    merged_data, found = _load_merged_config_data(_get_config_search_paths())
    if found:
        logger.debug(f"Merged config from: {', '.join(found)}")
    else:
        logger.debug(f"No {USER_CFG} found, using defaults")

    try:
        return SyncConfig.model_validate(merged_data)
    except Exception as e:
        raise ConfigError(str(e)) from e


def validate_config(config: SyncConfig | None = None) -> list[str]:
    """Return a list of validation errors. Empty list means config is valid."""
    errors: list[str] = []

    if config is None:
        try:
            config = load_merged_config()
        except ConfigError as e:
            errors.append(f"Error in config: {e}")
            return errors

    if config.git_root is not None and config.git_root.exists() and not config.git_root.is_dir():
        errors.append(f"git_root exists but is not a directory: {config.git_root}")

    if config.local_log is not None:
        log_path = config.local_log
        if not log_path.is_absolute():
            errors.append(f"local_log path must be absolute: {log_path}")
        elif log_path.exists() and not log_path.is_dir():
            errors.append(f"local_log path exists but is not a directory: {log_path}")

    return errors


# done.
