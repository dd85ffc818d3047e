"""Repository identities, setup modes, and resolution outcomes."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Union

_SLUG_RE = re.compile(r"^[^/\s]+/[^/\s]+$")
_FORK_NAME_RE = re.compile(r"^[A-Za-z0-9._-]+$")


def is_valid_slug(slug: str) -> bool:
    """Return True if *slug* has the ``OWNER/REPO`` shape."""
    return bool(_SLUG_RE.match(slug))


def is_valid_fork_name(name: str) -> bool:
    """Return True if *name* is usable as a repository name."""
    return bool(_FORK_NAME_RE.match(name))


@dataclass(frozen=True)
class RepositoryIdentity:
    """A hosted repository, serialized as ``owner/name``."""

    owner: str
    name: str

    @classmethod
    def parse(cls, slug: str) -> RepositoryIdentity:
        """Parse ``owner/name``.  Raises ValueError on any other shape."""
        slug = slug.strip()
        if not is_valid_slug(slug):
            raise ValueError(f"Not an OWNER/REPO slug: {slug!r}")
        owner, name = slug.split("/", 1)
        return cls(owner=owner, name=name)

    def __str__(self) -> str:
        return f"{self.owner}/{self.name}"

    def clone_url(self, host: str = "github.com") -> str:
        return f"https://{host}/{self}.git"


def identity_from_url(url: str, host: str = "github.com") -> RepositoryIdentity | None:
    """Extract ``owner/name`` from an https or scp-style remote URL on *host*.

    Returns None for URLs on other hosts or with an unexpected shape.
    """
    url = url.strip()
    for prefix in (f"https://{host}/", f"http://{host}/", f"git@{host}:", f"ssh://git@{host}/"):
        if url.startswith(prefix):
            rest = url[len(prefix):].rstrip("/")
            if rest.endswith(".git"):
                rest = rest[:-4]
            try:
                return RepositoryIdentity.parse(rest)
            except ValueError:
                return None
    return None


class Mode(Enum):
    """Whether the run manages a local working copy."""

    local = "local"
    online = "online"


@dataclass(frozen=True)
class ForkCandidate:
    """One entry from a fork discovery query.

    *is_fork_of_upstream* is None when the query could not report parentage.
    """

    identity: RepositoryIdentity
    is_fork_of_upstream: bool | None


# ---------------------------------------------------------------------------
# Resolution outcomes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ReuseWorktree:
    """The process already runs inside a compatible working copy."""

    path: Path


@dataclass(frozen=True)
class ReuseClone:
    """An existing compatible clone is used as-is."""

    path: Path
    remote: RepositoryIdentity | None


@dataclass(frozen=True)
class RepointRemote:
    """An existing clone is reused; its ``origin`` is pointed at *remote*."""

    path: Path
    remote: RepositoryIdentity


@dataclass(frozen=True)
class CloneFresh:
    """*remote* is cloned into *target*, which does not exist yet."""

    remote: RepositoryIdentity
    target: Path


@dataclass(frozen=True)
class NoLocalPath:
    """Online mode: only a remote identity, no local working copy."""

    remote: RepositoryIdentity


@dataclass(frozen=True)
class NoAction:
    """The user declined every repository action."""


ResolutionOutcome = Union[
    ReuseWorktree, ReuseClone, RepointRemote, CloneFresh, NoLocalPath, NoAction,
]
