"""Windows-to-WSL path translation and Windows home clone scanning."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterator, Mapping

from sweatyboot.config import BootstrapConfig
from sweatyboot.log import get_logger

logger = get_logger("paths")

_DRIVE_PATH_RE = re.compile(r"^([A-Za-z]):[\\/](.*)$")
_USERS_MARKER_RE = re.compile(r"^users[\\/](.*)$", re.IGNORECASE)

# Conventional clone locations under a Windows user home.
_CLONE_BASES = (
    "source/repos",
    "repos",
    "source",
    "Documents/GitHub",
    "Documents/repos",
    "code",
    "dev",
)


def is_wsl(environ: Mapping[str, str] | None = None, proc_version: Path = Path("/proc/version")) -> bool:
    """Detect a Linux environment running on top of a Windows host."""
    env = os.environ if environ is None else environ
    if env.get("WSL_DISTRO_NAME") or env.get("WSL_INTEROP"):
        return True
    try:
        return "microsoft" in proc_version.read_text().lower()
    except OSError:
        return False


@dataclass(frozen=True)
class EnvironmentHints:
    """What the path normalizer needs to know about the host."""

    wsl: bool = False
    mount_prefix: str = "/mnt"
    users_roots: tuple[str, ...] = field(default=())
    home: str = ""

    @classmethod
    def detect(
        cls, config: BootstrapConfig, environ: Mapping[str, str] | None = None,
    ) -> EnvironmentHints:
        env = os.environ if environ is None else environ
        return cls(
            wsl=is_wsl(env),
            mount_prefix=config.wsl_mount_prefix,
            users_roots=tuple(config.wsl_users_roots),
            home=env.get("HOME", ""),
        )


def normalize(raw_path: str, hints: EnvironmentHints) -> str:
    """Translate a Windows drive-letter path into its WSL mount path.

    ``C:\\Users\\me\\src`` becomes ``<users_root>/me/src`` for the first
    configured users root on drive ``c`` where that directory exists, else
    ``<mount_prefix>/c/Users/me/src``.  Anything else, or any path when not
    running under WSL, is returned unchanged.  The result is not validated.
    """
    if not hints.wsl:
        return raw_path
    m = _DRIVE_PATH_RE.match(raw_path)
    if not m:
        return raw_path

    drive = m.group(1).lower()
    rest = m.group(2).replace("\\", "/")

    users = _USERS_MARKER_RE.match(rest)
    if users:
        tail = users.group(1).strip("/")
        for root in hints.users_roots:
            # A root serves only its own drive: ``/mnt/w/c/Users`` is drive c.
            if Path(root).parent.name.lower() != drive:
                continue
            candidate = f"{root.rstrip('/')}/{tail}" if tail else root.rstrip("/")
            logger.debug("Trying users root candidate %s", candidate)
            if os.path.isdir(candidate):
                return candidate

    prefix = hints.mount_prefix.rstrip("/")
    return f"{prefix}/{drive}/{rest}"


def expand_path(raw_path: str, hints: EnvironmentHints) -> str:
    """Expand ``~`` against the home directory, then :func:`normalize`."""
    home = hints.home or str(Path.home())
    if raw_path == "~":
        return home
    if raw_path.startswith("~/"):
        return f"{home}/{raw_path[2:]}"
    return normalize(raw_path, hints)


def _subdirs(path: Path) -> Iterator[Path]:
    try:
        entries = sorted(path.iterdir())
    except OSError:
        return
    for entry in entries:
        if entry.is_dir():
            yield entry


def find_windows_clone(
    repo_name: str,
    hints: EnvironmentHints,
    is_clone: Callable[[Path], bool],
) -> Path | None:
    """Scan Windows user homes (via WSL mounts) for a clone named *repo_name*.

    Looks in each user home's conventional clone bases, both directly
    (``<base>/<name>``) and one owner level down (``<base>/<owner>/<name>``).
    The first directory accepted by *is_clone* wins.
    """
    if not hints.wsl or not repo_name:
        return None
    for root in hints.users_roots:
        users_root = Path(root)
        if not users_root.is_dir():
            continue
        for user_home in _subdirs(users_root):
            for base_rel in _CLONE_BASES:
                base = user_home / base_rel
                if not base.is_dir():
                    continue
                candidate = base / repo_name
                if is_clone(candidate):
                    return candidate
                for owner_dir in _subdirs(base):
                    candidate = owner_dir / repo_name
                    if is_clone(candidate):
                        return candidate
    return None
