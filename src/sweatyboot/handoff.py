"""Hand off to the project's own setup helper, locally or fetched over HTTP."""

from __future__ import annotations

import subprocess
import sys
import tempfile
import urllib.error
import urllib.request
from pathlib import Path

from sweatyboot import __version__
from sweatyboot.errors import FetchError, InputError, SetupError
from sweatyboot.github import GitHubCLI, ensure_authenticated
from sweatyboot.log import get_logger
from sweatyboot.repos import (
    CloneFresh,
    RepointRemote,
    RepositoryIdentity,
    ResolutionOutcome,
)

logger = get_logger("handoff")

_FALLBACK_BRANCH = "main"


def repo_flag(outcome: ResolutionOutcome, upstream: RepositoryIdentity) -> RepositoryIdentity | None:
    """The fork to pass as ``--repo`` so the helper need not read git remotes."""
    if isinstance(outcome, (RepointRemote, CloneFresh)) and outcome.remote != upstream:
        return outcome.remote
    return None


def _check(returncode: int) -> None:
    if returncode != 0:
        raise SetupError(returncode)


def run_local_setup(
    repo_root: Path,
    setup_script: str,
    forwarded: list[str],
    gh: GitHubCLI,
    repo: RepositoryIdentity | None = None,
) -> None:
    """Run *setup_script* from inside *repo_root*. Raises SetupError on failure."""
    script = repo_root / setup_script
    if not script.is_file():
        raise InputError(f"Missing setup script: {script}")
    ensure_authenticated(gh)

    cmd = [sys.executable, setup_script]
    if repo is not None:
        cmd += ["--repo", str(repo)]
    cmd += forwarded

    print()
    print("Launching setup script...")
    logger.debug("Running %s in %s", cmd, repo_root)
    _check(subprocess.run(cmd, cwd=repo_root).returncode)


def setup_url(raw_host: str, upstream: RepositoryIdentity, branch: str, setup_script: str) -> str:
    return f"https://{raw_host}/{upstream}/{branch}/{setup_script}"


def fetch_setup_script(url: str, dest: Path) -> None:
    """Download *url* to *dest*. Raises FetchError on any HTTP or network failure."""
    req = urllib.request.Request(url, headers={"User-Agent": f"sweatyboot/{__version__}"})
    try:
        with urllib.request.urlopen(req) as resp:
            dest.write_bytes(resp.read())
    except (urllib.error.URLError, OSError) as e:
        raise FetchError(f"Unable to download setup helper from {url}: {e}") from e


def run_online_setup(
    upstream: RepositoryIdentity,
    repo: RepositoryIdentity,
    forwarded: list[str],
    gh: GitHubCLI,
    *,
    raw_host: str,
    setup_script: str,
) -> None:
    """Fetch the helper from the upstream's default branch and run it for *repo*.

    The download lives in a temporary directory removed once the helper exits.
    """
    branch = gh.default_branch(upstream) or _FALLBACK_BRANCH
    url = setup_url(raw_host, upstream, branch, setup_script)

    with tempfile.TemporaryDirectory(prefix="sweatyboot-") as tmp:
        script = Path(tmp) / Path(setup_script).name
        print(f"Downloading setup helper from {url}")
        fetch_setup_script(url, script)

        print()
        print("Launching online setup (no local clone)...")
        cmd = [sys.executable, str(script), "--repo", str(repo), *forwarded]
        logger.debug("Running %s", cmd)
        returncode = subprocess.run(cmd).returncode
    _check(returncode)
