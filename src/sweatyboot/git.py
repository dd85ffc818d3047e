"""Git probes (worktree, clone markers) and the few git writes we make."""

from __future__ import annotations

import subprocess
from pathlib import Path

from sweatyboot.errors import GitError
from sweatyboot.log import get_logger
from sweatyboot.repos import RepositoryIdentity, identity_from_url

logger = get_logger("git")


def _git(args: list[str], cwd: Path | None = None) -> subprocess.CompletedProcess:
    logger.debug("git %s (cwd=%s)", " ".join(args), cwd or ".")
    try:
        return subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
        )
    except FileNotFoundError:
        raise GitError("Missing required command: git")


def is_inside_worktree(cwd: Path | None = None) -> bool:
    """Return True if *cwd* (default: process cwd) is inside a git work tree.

    Any failure, including git not being installed, counts as False.
    """
    try:
        result = _git(["rev-parse", "--is-inside-work-tree"], cwd=cwd)
    except GitError:
        return False
    return result.returncode == 0 and result.stdout.strip() == "true"


def work_tree_root(cwd: Path | None = None) -> Path | None:
    """Return the top-level directory of the enclosing work tree, or None."""
    if not is_inside_worktree(cwd):
        return None
    result = _git(["rev-parse", "--show-toplevel"], cwd=cwd)
    if result.returncode != 0:
        return None
    root = result.stdout.strip()
    return Path(root) if root else None


def is_valid_clone(path: Path) -> bool:
    """Return True if *path* has a ``.git`` directory or a ``gitdir:`` pointer file."""
    marker = path / ".git"
    if marker.is_dir():
        return True
    if marker.is_file():
        try:
            with open(marker, encoding="utf-8", errors="replace") as f:
                return f.read(7) == "gitdir:"
        except OSError:
            return False
    return False


def is_compatible_clone(path: Path, setup_script: str) -> bool:
    """A valid clone that also carries the setup helper at *setup_script*."""
    return is_valid_clone(path) and (path / setup_script).is_file()


def clone(url: str, target: Path) -> None:
    """Clone *url* into *target*, streaming git's progress output."""
    logger.debug("git clone %s %s", url, target)
    try:
        result = subprocess.run(["git", "clone", url, str(target)])
    except FileNotFoundError:
        raise GitError("Missing required command: git")
    if result.returncode != 0:
        raise GitError(f"git clone {url} failed (exit {result.returncode}).")


def get_remote_url(path: Path, remote: str = "origin") -> str | None:
    """Return the URL of *remote* in the clone at *path*, or None if unset."""
    result = _git(["remote", "get-url", remote], cwd=path)
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


def set_remote_url(path: Path, remote: str, url: str, *, add: bool = False) -> None:
    """Point *remote* at *url*; with *add*, create the remote instead."""
    if add:
        result = _git(["remote", "add", remote, url], cwd=path)
    else:
        result = _git(["remote", "set-url", remote, url], cwd=path)
    if result.returncode != 0:
        raise GitError(
            f"Failed to set remote {remote} to {url} in {path}:\n{result.stderr}"
        )


def configure_fork_remotes(path: Path, fork_url: str, upstream_url: str) -> bool:
    """Bind ``origin`` to the fork and ``upstream`` to the upstream repository.

    ``origin`` is only rewritten when its URL differs.  Returns True if
    ``origin`` changed.
    """
    origin = get_remote_url(path, "origin")
    if origin != fork_url:
        set_remote_url(path, "origin", fork_url, add=origin is None)
    upstream = get_remote_url(path, "upstream")
    if upstream != upstream_url:
        set_remote_url(path, "upstream", upstream_url, add=upstream is None)
    return origin != fork_url


def origin_identity(path: Path, host: str = "github.com") -> RepositoryIdentity | None:
    """Return the ``owner/name`` that ``origin`` points at, if it is on *host*."""
    url = get_remote_url(path, "origin")
    if url is None:
        return None
    return identity_from_url(url, host)
