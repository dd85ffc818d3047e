"""Fork discovery: an ordered chain of strategies, first accessible match wins.

Each strategy issues one query and returns :class:`ForkCandidate` entries in
the order the service returned them.  :func:`pick_candidate` applies the
match policy; :class:`ForkDiscovery` walks the chain and confirms the pick
with a repository-view query before accepting it.  A configured fork
override is final: if it cannot be viewed, discovery reports no fork
rather than falling back to a listing.  An empty chain result means "no
fork exists", which callers handle by creating one.
"""

from __future__ import annotations

import sys
from typing import Protocol, Sequence

from sweatyboot.github import GitHubCLI
from sweatyboot.log import get_logger
from sweatyboot.repos import ForkCandidate, RepositoryIdentity

logger = get_logger("discovery")


class DiscoveryStrategy(Protocol):
    name: str
    # When set, the chain ends after this stage whether or not it found a fork.
    final: bool

    def candidates(
        self, gh: GitHubCLI, account: str, upstream: RepositoryIdentity,
    ) -> list[ForkCandidate]: ...


def _parent_slug(parent: object) -> str | None:
    """Read the parent's ``owner/name`` from either shape gh may report."""
    if not isinstance(parent, dict):
        return None
    if parent.get("nameWithOwner"):
        return str(parent["nameWithOwner"])
    owner = parent.get("owner")
    login = owner.get("login") if isinstance(owner, dict) else None
    name = parent.get("name")
    if login and name:
        return f"{login}/{name}"
    return None


class ExplicitFork:
    """A fork named in configuration (``GIT_SWEATY_FORK_REPO``); never replaced by a listing."""

    name = "explicit"
    final = True

    def __init__(self, slug: str) -> None:
        self.slug = slug

    def candidates(self, gh, account, upstream):
        try:
            return [ForkCandidate(RepositoryIdentity.parse(self.slug), True)]
        except ValueError:
            print(f"WARN: Ignoring malformed fork override: {self.slug}", file=sys.stderr)
            return []


class OwnedForkListing:
    """``gh repo list <account> --fork``, filtered on the declared parent."""

    name = "repo-list"
    final = False

    def candidates(self, gh, account, upstream):
        found: list[ForkCandidate] = []
        for entry in gh.list_forks(account):
            try:
                identity = RepositoryIdentity.parse(str(entry.get("nameWithOwner", "")))
            except ValueError:
                continue
            parent = _parent_slug(entry.get("parent"))
            found.append(ForkCandidate(
                identity,
                None if parent is None else parent.lower() == str(upstream).lower(),
            ))
        return found


class UpstreamForksApi:
    """The upstream's paginated forks endpoint, filtered on owner."""

    name = "forks-api"
    final = False

    def candidates(self, gh, account, upstream):
        found: list[ForkCandidate] = []
        for slug in gh.list_forks_of(upstream, account):
            try:
                found.append(ForkCandidate(RepositoryIdentity.parse(slug), True))
            except ValueError:
                continue
        return found


def pick_candidate(candidates: Sequence[ForkCandidate]) -> RepositoryIdentity | None:
    """First candidate known to fork the upstream.

    When no entry reports parentage at all, the first entry is taken: the
    query was already scoped to the account's forks.
    """
    for candidate in candidates:
        if candidate.is_fork_of_upstream:
            return candidate.identity
    if candidates and all(c.is_fork_of_upstream is None for c in candidates):
        return candidates[0].identity
    return None


def default_strategies(fork_override: str = "") -> list[DiscoveryStrategy]:
    strategies: list[DiscoveryStrategy] = [OwnedForkListing(), UpstreamForksApi()]
    if fork_override:
        strategies.insert(0, ExplicitFork(fork_override))
    return strategies


class ForkDiscovery:
    """Run the strategy chain sequentially until one yields an accessible fork."""

    def __init__(
        self, gh: GitHubCLI, strategies: Sequence[DiscoveryStrategy] | None = None,
    ) -> None:
        self.gh = gh
        self.strategies = list(strategies) if strategies is not None else default_strategies()

    def discover(self, account: str, upstream: RepositoryIdentity) -> RepositoryIdentity | None:
        for strategy in self.strategies:
            chosen = pick_candidate(strategy.candidates(self.gh, account, upstream))
            logger.debug("Discovery stage %s -> %s", strategy.name, chosen)
            if chosen is not None and self.gh.repo_exists(chosen):
                return chosen
            if strategy.final:
                logger.debug("Stage %s is final; no fork", strategy.name)
                return None
            if chosen is not None:
                logger.debug("Discovered fork %s is not accessible; trying next stage", chosen)
        return None
