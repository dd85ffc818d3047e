"""GitHubCLI: thin wrapper around the ``gh`` command line."""

from __future__ import annotations

import json
import os
import shutil
import subprocess

from sweatyboot.errors import GitHubError
from sweatyboot.log import get_logger
from sweatyboot.prompts import yes_no
from sweatyboot.repos import RepositoryIdentity

logger = get_logger("github")

FORK_LIST_LIMIT = 1000
FORKS_PAGE_SIZE = 100


class GitHubCLI:
    """Wrapper around the gh CLI.

    Query methods treat a failed or empty answer as "nothing found"; only
    :meth:`_run` raises, and only when gh itself is missing.
    """

    def __init__(self, command: str | None = None) -> None:
        self.cmd = command or os.environ.get("SWEATYBOOT_GH_CMD") or "gh"

    def available(self) -> bool:
        return shutil.which(self.cmd) is not None

    def _run(self, args: list[str], *, capture: bool = True) -> subprocess.CompletedProcess:
        logger.debug("gh %s", " ".join(args))
        try:
            return subprocess.run(
                [self.cmd, *args],
                capture_output=capture,
                text=True,
            )
        except FileNotFoundError:
            raise GitHubError(f"Missing required command: {self.cmd}")

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def is_authenticated(self) -> bool:
        return self._run(["auth", "status"]).returncode == 0

    def login(self) -> int:
        """Run ``gh auth login`` attached to the terminal. Returns its exit code."""
        return self._run(["auth", "login"], capture=False).returncode

    def current_login(self) -> str | None:
        """Return the authenticated account's login, or None."""
        result = self._run(["api", "user", "--jq", ".login"])
        if result.returncode != 0:
            return None
        return result.stdout.strip() or None

    # ------------------------------------------------------------------
    # Repository queries
    # ------------------------------------------------------------------

    def repo_exists(self, repo: RepositoryIdentity) -> bool:
        """True if the current session can view *repo*."""
        return self._run(["repo", "view", str(repo)]).returncode == 0

    def list_forks(self, owner: str) -> list[dict]:
        """List *owner*'s fork repositories with ``nameWithOwner`` and ``parent``."""
        result = self._run([
            "repo", "list", owner,
            "--fork",
            "--limit", str(FORK_LIST_LIMIT),
            "--json", "nameWithOwner,parent",
        ])
        if result.returncode != 0:
            logger.debug("gh repo list failed: %s", result.stderr.strip())
            return []
        try:
            entries = json.loads(result.stdout or "[]")
        except json.JSONDecodeError:
            logger.debug("gh repo list returned non-JSON output")
            return []
        return [e for e in entries if isinstance(e, dict)]

    def list_forks_of(self, upstream: RepositoryIdentity, owner: str) -> list[str]:
        """Return ``owner/name`` of every fork of *upstream* owned by *owner*."""
        result = self._run([
            "api", f"repos/{upstream}/forks?per_page={FORKS_PAGE_SIZE}",
            "--paginate",
            "--jq", f'.[] | select(.owner.login == "{owner}") | .full_name',
        ])
        if result.returncode != 0:
            logger.debug("gh api forks failed: %s", result.stderr.strip())
            return []
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def default_branch(self, repo: RepositoryIdentity) -> str | None:
        result = self._run(["api", f"repos/{repo}", "--jq", ".default_branch"])
        if result.returncode != 0:
            return None
        return result.stdout.strip() or None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_fork(self, upstream: RepositoryIdentity, fork_name: str | None = None) -> bool:
        """Fork *upstream* without cloning. Returns True if gh reported success."""
        args = ["repo", "fork", str(upstream), "--clone=false", "--remote=false"]
        if fork_name:
            args += ["--fork-name", fork_name]
        result = self._run(args)
        if result.returncode != 0:
            logger.debug("gh repo fork failed: %s", result.stderr.strip())
        return result.returncode == 0


def ensure_authenticated(gh: GitHubCLI) -> None:
    """Make sure gh has a session, offering ``gh auth login`` if it does not."""
    if gh.is_authenticated():
        return
    print("GitHub CLI is not authenticated.")
    if yes_no("Run gh auth login now?", default=True):
        gh.login()
    if not gh.is_authenticated():
        raise GitHubError(
            "GitHub CLI auth is required. Run 'gh auth login' and re-run bootstrap."
        )
