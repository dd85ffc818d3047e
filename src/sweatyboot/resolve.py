"""Resolve which local directory, bound to which remote, this run should use.

The decision tree lives in :func:`decide`, a pure function of the run
context and the facts gathered so far.  It either returns a terminal
outcome or a :class:`Need` naming the next fact it requires.
:class:`Resolver` is the imperative shell: it probes git, queries gh and
prompts the user to satisfy each need, then calls :func:`decide` again.
Nothing is cloned, forked or rewritten until the outcome is known, except
fork creation, whose result is itself a fact.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Mapping

from sweatyboot import git, prompts
from sweatyboot.config import BootstrapConfig
from sweatyboot.discovery import ForkDiscovery
from sweatyboot.errors import GitHubError, InputError
from sweatyboot.github import GitHubCLI, ensure_authenticated
from sweatyboot.log import get_logger
from sweatyboot.paths import EnvironmentHints, expand_path, find_windows_clone
from sweatyboot.repos import (
    CloneFresh,
    Mode,
    NoAction,
    NoLocalPath,
    RepointRemote,
    RepositoryIdentity,
    ResolutionOutcome,
    ReuseClone,
    ReuseWorktree,
)

logger = get_logger("resolve")


class Fact(Enum):
    """Signals the decision tree may ask for, each gathered at most once."""

    worktree_root = "worktree_root"      # Path | None
    mode = "mode"                        # Mode (mirrored on RunContext.mode)
    detected_clone = "detected_clone"    # DetectedClone | None
    existing_path = "existing_path"      # ExistingPath | None
    use_fork = "use_fork"                # bool
    discovered_fork = "discovered_fork"  # RepositoryIdentity | None
    created_fork = "created_fork"        # RepositoryIdentity
    clone_upstream = "clone_upstream"    # bool
    target_state = "target_state"        # TargetState
    repo_slug = "repo_slug"              # RepositoryIdentity


class TargetState(Enum):
    """What currently sits at a fresh-clone target path."""

    absent = "absent"
    compatible = "compatible"
    occupied = "occupied"


@dataclass(frozen=True)
class DetectedClone:
    """A compatible clone found without asking the user."""

    path: Path
    fork: RepositoryIdentity | None = None
    origin: RepositoryIdentity | None = None


@dataclass(frozen=True)
class ExistingPath:
    """A user-supplied clone path after normalization and validation."""

    path: Path
    compatible: bool
    origin: RepositoryIdentity | None = None


@dataclass(frozen=True)
class Need:
    """The next fact :func:`decide` requires; *target* is set for path probes."""

    fact: Fact
    target: Path | None = None


@dataclass
class RunContext:
    """Everything a run knows up front, plus the account once looked up."""

    config: BootstrapConfig
    upstream: RepositoryIdentity
    cwd: Path
    hints: EnvironmentHints
    mode: Mode | None = None
    account: str | None = None

    @property
    def default_target(self) -> Path:
        return self.target_for(self.upstream)

    def target_for(self, remote: RepositoryIdentity) -> Path:
        """Fresh clones go to ``<cwd>/<name of the remote being cloned>``."""
        return self.cwd / remote.name

    def is_fork(self, remote: RepositoryIdentity) -> bool:
        return remote != self.upstream

    def is_compatible_clone(self, path: Path) -> bool:
        return git.is_compatible_clone(path, self.config.setup_script)


# ---------------------------------------------------------------------------
# Pure decision core
# ---------------------------------------------------------------------------


def decide(ctx: RunContext, facts: Mapping[Fact, object]) -> Need | ResolutionOutcome:
    """Return the terminal outcome, or the next fact needed to reach one."""
    if Fact.worktree_root not in facts:
        return Need(Fact.worktree_root)
    root = facts[Fact.worktree_root]
    if root is not None:
        return ReuseWorktree(root)  # type: ignore[arg-type]

    if ctx.mode is None:
        return Need(Fact.mode)
    if ctx.mode is Mode.online:
        return _decide_online(ctx, facts)
    return _decide_local(ctx, facts)


def _fork(facts: Mapping[Fact, object]) -> RepositoryIdentity | Need:
    """The discovered fork, else the one created for this run."""
    if Fact.discovered_fork not in facts:
        return Need(Fact.discovered_fork)
    fork = facts[Fact.discovered_fork]
    if fork is not None:
        return fork  # type: ignore[return-value]
    if Fact.created_fork not in facts:
        return Need(Fact.created_fork)
    return facts[Fact.created_fork]  # type: ignore[return-value]


def _decide_online(ctx: RunContext, facts: Mapping[Fact, object]) -> Need | ResolutionOutcome:
    if Fact.use_fork not in facts:
        return Need(Fact.use_fork)
    if facts[Fact.use_fork]:
        fork = _fork(facts)
        if isinstance(fork, Need):
            return fork
        return NoLocalPath(fork)
    if Fact.repo_slug not in facts:
        return Need(Fact.repo_slug)
    return NoLocalPath(facts[Fact.repo_slug])  # type: ignore[arg-type]


def _decide_local(ctx: RunContext, facts: Mapping[Fact, object]) -> Need | ResolutionOutcome:
    if Fact.detected_clone not in facts:
        return Need(Fact.detected_clone)
    detected = facts[Fact.detected_clone]
    if isinstance(detected, DetectedClone):
        if detected.fork is not None:
            return RepointRemote(detected.path, detected.fork)
        return ReuseClone(detected.path, detected.origin)

    if Fact.existing_path not in facts:
        return Need(Fact.existing_path, ctx.default_target)
    existing = facts[Fact.existing_path]
    if isinstance(existing, ExistingPath):
        if not existing.compatible:
            raise InputError(
                f"Not a compatible clone: {existing.path}\n"
                f"Expected both: {existing.path / '.git'} and "
                f"{existing.path / ctx.config.setup_script}"
            )
        return ReuseClone(existing.path, existing.origin)

    if Fact.use_fork not in facts:
        return Need(Fact.use_fork)
    if facts[Fact.use_fork]:
        remote = _fork(facts)
        if isinstance(remote, Need):
            return remote
    else:
        if Fact.clone_upstream not in facts:
            return Need(Fact.clone_upstream)
        if not facts[Fact.clone_upstream]:
            return NoAction()
        remote = ctx.upstream

    target = ctx.target_for(remote)
    if Fact.target_state not in facts:
        return Need(Fact.target_state, target)
    state = facts[Fact.target_state]
    if state is TargetState.occupied:
        raise InputError(f"Path already exists and is not a compatible clone: {target}")
    if state is TargetState.compatible:
        if ctx.is_fork(remote):
            return RepointRemote(target, remote)
        return ReuseClone(target, remote)
    return CloneFresh(remote, target)


# ---------------------------------------------------------------------------
# Imperative shell
# ---------------------------------------------------------------------------

_UNSET = object()


class Resolver:
    """Gathers the facts :func:`decide` asks for until it yields an outcome."""

    def __init__(
        self, ctx: RunContext, gh: GitHubCLI, discovery: ForkDiscovery | None = None,
    ) -> None:
        self.ctx = ctx
        self.gh = gh
        self.discovery = discovery or ForkDiscovery(gh)
        self._known_fork: object = _UNSET
        self._gatherers = {
            Fact.worktree_root: self._probe_worktree,
            Fact.mode: self._ask_mode,
            Fact.detected_clone: self._auto_detect,
            Fact.existing_path: self._ask_existing_path,
            Fact.use_fork: self._ask_use_fork,
            Fact.discovered_fork: self._discover_fork,
            Fact.created_fork: self._create_fork,
            Fact.clone_upstream: self._ask_clone_upstream,
            Fact.target_state: self._probe_target,
            Fact.repo_slug: self._ask_repo_slug,
        }

    def resolve(self) -> ResolutionOutcome:
        facts: dict[Fact, object] = {}
        while True:
            step = decide(self.ctx, facts)
            if not isinstance(step, Need):
                logger.debug("Resolved: %s", step)
                return step
            logger.debug("Gathering %s", step.fact.value)
            facts[step.fact] = self._gatherers[step.fact](step)

    # ------------------------------------------------------------------
    # Account and fork lookups
    # ------------------------------------------------------------------

    def account(self) -> str:
        """The authenticated login; prompts for ``gh auth login`` if needed."""
        if self.ctx.account is None:
            ensure_authenticated(self.gh)
            login = self.gh.current_login()
            if not login:
                raise GitHubError(
                    "Unable to resolve GitHub username from current gh auth session."
                )
            self.ctx.account = login
        return self.ctx.account

    def _existing_fork(self, account: str) -> RepositoryIdentity | None:
        if self._known_fork is _UNSET:
            self._known_fork = self.discovery.discover(account, self.ctx.upstream)
        return self._known_fork  # type: ignore[return-value]

    # ------------------------------------------------------------------
    # Gatherers
    # ------------------------------------------------------------------

    def _probe_worktree(self, need: Need) -> Path | None:
        root = git.work_tree_root(self.ctx.cwd)
        if root is None or not self.ctx.is_compatible_clone(root):
            return None
        print(f"Detected local clone: {root}")
        return root

    def _ask_mode(self, need: Need) -> Mode:
        self.ctx.mode = prompts.choose_mode()
        if self.ctx.mode is Mode.local:
            print("No compatible local clone detected in current working tree.")
            print(f"Upstream repository: {self.ctx.upstream}")
            print(f"Default clone directory: {self.ctx.default_target}")
        return self.ctx.mode

    def _auto_detect(self, need: Need) -> DetectedClone | None:
        ctx = self.ctx
        is_clone = ctx.is_compatible_clone
        host = ctx.config.github_host

        default = ctx.default_target
        if is_clone(default):
            return self._announce(DetectedClone(default, origin=git.origin_identity(default, host)))

        # Only consult GitHub if a session already exists; no login prompt here.
        if self.gh.available() and self.gh.is_authenticated():
            login = ctx.account or self.gh.current_login()
            if login:
                ctx.account = login
                fork = self._existing_fork(login)
                if fork is not None:
                    candidate = ctx.target_for(fork)
                    if is_clone(candidate):
                        return self._announce(DetectedClone(candidate, fork=fork))
                    found = find_windows_clone(fork.name, ctx.hints, is_clone)
                    if found is not None:
                        return self._announce(DetectedClone(found, fork=fork))

        # An upstream-named clone is not known to be the fork; its remotes stay as they are.
        found = find_windows_clone(ctx.upstream.name, ctx.hints, is_clone)
        if found is not None:
            return self._announce(DetectedClone(found, origin=git.origin_identity(found, host)))
        return None

    @staticmethod
    def _announce(detected: DetectedClone) -> DetectedClone:
        print(f"Detected existing compatible local clone at {detected.path}")
        return detected

    def _ask_existing_path(self, need: Need) -> ExistingPath | None:
        raw = prompts.ask_existing_path(str(need.target))
        if not raw:
            return None
        path = Path(expand_path(raw, self.ctx.hints))
        logger.debug("Existing clone path %r -> %s", raw, path)
        if not self.ctx.is_compatible_clone(path):
            return ExistingPath(path, compatible=False)
        return ExistingPath(
            path, compatible=True,
            origin=git.origin_identity(path, self.ctx.config.github_host),
        )

    def _ask_use_fork(self, need: Need) -> bool:
        return prompts.yes_no("Fork the repo to your GitHub account first?", default=True)

    def _discover_fork(self, need: Need) -> RepositoryIdentity | None:
        fork = self._existing_fork(self.account())
        if fork is not None:
            print(f"Using existing fork repository: {fork}")
        return fork

    def _create_fork(self, need: Need) -> RepositoryIdentity:
        account = self.account()
        upstream = self.ctx.upstream
        default_name = upstream.name
        fork_name = prompts.ask_fork_name(default_name)
        fork = RepositoryIdentity(account, fork_name)
        print(f"Creating fork repository: {fork}")
        if not self.gh.create_fork(upstream, None if fork_name == default_name else fork_name):
            print(
                "WARN: Fork creation command did not succeed cleanly. "
                "Continuing if fork already exists.",
                file=sys.stderr,
            )
        if self.gh.repo_exists(fork):
            return fork
        # The service may have kept an older fork under another name.
        found = self.discovery.discover(account, upstream)
        if found is None:
            raise GitHubError(
                f"Unable to find an accessible fork for {upstream} under {account}. "
                "Set GIT_SWEATY_FORK_REPO=<owner>/<repo> and retry."
            )
        return found

    def _ask_clone_upstream(self, need: Need) -> bool:
        if prompts.yes_no("Clone upstream directly (without forking)?", default=True):
            return True
        print("No repository action selected. Exiting.")
        return False

    def _probe_target(self, need: Need) -> TargetState:
        target = need.target
        if target is None:
            raise ValueError("target_state needs a target path")
        if self.ctx.is_compatible_clone(target):
            return TargetState.compatible
        if target.exists():
            return TargetState.occupied
        return TargetState.absent

    def _ask_repo_slug(self, need: Need) -> RepositoryIdentity:
        default = self._existing_fork(self.account())
        return prompts.ask_repo_slug(default, self.gh.repo_exists)


# ---------------------------------------------------------------------------
# Applying an outcome
# ---------------------------------------------------------------------------


def materialize(ctx: RunContext, outcome: ResolutionOutcome) -> Path:
    """Put the resolved directory in place and return it.

    Only :class:`CloneFresh` clones; only fork outcomes touch remotes.
    Outcomes without a local directory raise ValueError.
    """
    host = ctx.config.github_host
    upstream_url = ctx.upstream.clone_url(host)

    if isinstance(outcome, ReuseWorktree):
        return outcome.path
    if isinstance(outcome, ReuseClone):
        print(f"Using existing clone at {outcome.path}")
        return outcome.path
    if isinstance(outcome, RepointRemote):
        print(f"Using existing fork clone at {outcome.path}")
        if git.configure_fork_remotes(outcome.path, outcome.remote.clone_url(host), upstream_url):
            print(f"Pointed origin at {outcome.remote}")
        return outcome.path
    if isinstance(outcome, CloneFresh):
        url = outcome.remote.clone_url(host)
        if ctx.is_fork(outcome.remote):
            print(f"Cloning fork into {outcome.target}")
            git.clone(url, outcome.target)
            git.configure_fork_remotes(outcome.target, url, upstream_url)
        else:
            print(f"Cloning upstream repository into {outcome.target}")
            git.clone(url, outcome.target)
        return outcome.target
    raise ValueError(f"No local directory for {outcome!r}")
