"""TOML config loading, defaults, and environment overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path

# Python 3.11+ stdlib
import tomllib

from sweatyboot.errors import ConfigError


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

_DEFAULTS = {
    "upstream_repo": "aspain/git-sweaty",
    "fork_repo": "",
    "setup_script": "scripts/setup_auth.py",
    "github_host": "github.com",
    "raw_host": "raw.githubusercontent.com",
    "wsl_mount_prefix": "/mnt",
}

_DEFAULT_USERS_ROOTS = ("/mnt/c/Users", "/mnt/d/Users", "/mnt/e/Users")

# Environment variable -> config field.  Applied after the TOML file.
_ENV_OVERRIDES: dict[str, str] = {
    "GIT_SWEATY_UPSTREAM_REPO": "upstream_repo",
    "GIT_SWEATY_FORK_REPO": "fork_repo",
    "GIT_SWEATY_WSL_MOUNT_PREFIX": "wsl_mount_prefix",
    "GIT_SWEATY_WSL_USERS_ROOTS": "wsl_users_roots",
}


@dataclass
class BootstrapConfig:
    """Merged configuration (hardcoded defaults < sweatyboot.toml < environment)."""

    upstream_repo: str = _DEFAULTS["upstream_repo"]
    fork_repo: str = _DEFAULTS["fork_repo"]
    setup_script: str = _DEFAULTS["setup_script"]
    github_host: str = _DEFAULTS["github_host"]
    raw_host: str = _DEFAULTS["raw_host"]
    wsl_mount_prefix: str = _DEFAULTS["wsl_mount_prefix"]
    wsl_users_roots: tuple[str, ...] = field(default=_DEFAULT_USERS_ROOTS)


def _flatten_toml(data: dict, prefix: str = "") -> dict[str, object]:
    """Flatten nested TOML dict into underscore-joined keys.

    ``{"wsl": {"mount_prefix": "x"}}`` → ``{"wsl_mount_prefix": "x"}``
    """
    out: dict[str, object] = {}
    for k, v in data.items():
        key = f"{prefix}_{k}" if prefix else k
        if isinstance(v, dict):
            out.update(_flatten_toml(v, key))
        else:
            out[key] = v
    return out


def split_roots(value: str) -> tuple[str, ...]:
    """Split a ``:``-separated roots list, dropping empty entries."""
    return tuple(part for part in value.split(":") if part.strip())


def _coerce(key: str, value: object) -> object:
    if key == "wsl_users_roots":
        if isinstance(value, str):
            return split_roots(value)
        if isinstance(value, list):
            return tuple(str(v) for v in value)
        raise ConfigError(f"wsl users roots must be a string or list, got {value!r}")
    return str(value)


def config_file_path(config_home: Path) -> Path:
    """Return the path to sweatyboot.toml under *config_home*."""
    return config_home / "sweatyboot.toml"


def load_config(path: Path) -> BootstrapConfig:
    """Read a single TOML file and return a BootstrapConfig with defaults filled in."""
    cfg = BootstrapConfig()
    if not path.exists():
        return cfg
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Malformed config file {path}: {e}") from e
    valid_keys = {fld.name for fld in fields(cfg)}
    for k, v in _flatten_toml(data).items():
        if k in valid_keys:
            setattr(cfg, k, _coerce(k, v))
    return cfg


def apply_env_overrides(
    cfg: BootstrapConfig, environ: dict[str, str] | None = None,
) -> BootstrapConfig:
    """Overlay ``GIT_SWEATY_*`` environment variables onto *cfg* (in place)."""
    env = os.environ if environ is None else environ
    for var, key in _ENV_OVERRIDES.items():
        val = env.get(var, "")
        if val:
            setattr(cfg, key, _coerce(key, val))
    return cfg


def load_merged_config(path: Path, environ: dict[str, str] | None = None) -> BootstrapConfig:
    """Load *path* then apply environment overrides."""
    return apply_env_overrides(load_config(path), environ)
