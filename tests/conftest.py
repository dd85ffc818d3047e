"""Shared fixtures for sweatyboot tests."""

from __future__ import annotations

pytest_plugins = ["tests.conftest_integration"]

import io
import json
import subprocess
import sys
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from sweatyboot.config import BootstrapConfig
from sweatyboot.paths import EnvironmentHints
from sweatyboot.repos import RepositoryIdentity
from sweatyboot.resolve import RunContext

UPSTREAM = RepositoryIdentity("aspain", "git-sweaty")
SETUP_SCRIPT = "scripts/setup_auth.py"


def make_clone(path: Path, *, gitdir_file: bool = False, setup_script: bool = True) -> Path:
    """Create a directory that looks like a compatible clone."""
    path.mkdir(parents=True, exist_ok=True)
    if gitdir_file:
        (path / ".git").write_text("gitdir: /tmp/fake-worktree\n")
    else:
        (path / ".git").mkdir(exist_ok=True)
    if setup_script:
        (path / "scripts").mkdir(exist_ok=True)
        (path / SETUP_SCRIPT).write_text("# test\n")
    return path


@dataclass
class FakeTools:
    """Stands in for git, gh and the setup helper's interpreter.

    Every invocation is recorded in ``calls`` as ``(tool, args, cwd)``.
    """

    inside_worktree: bool = False
    toplevel: Path | None = None
    authenticated: bool = True
    login_succeeds: bool = True
    login: str = "tester"
    repo_list: list = field(default_factory=list)
    forks_api: list = field(default_factory=list)
    view_fail: set = field(default_factory=set)
    fork_ok: bool = True
    default_branch: str = "main"
    clone_rc: int = 0
    setup_rc: int = 0
    remotes: dict = field(default_factory=dict)
    calls: list = field(default_factory=list)

    def __call__(self, cmd, cwd=None, capture_output=False, text=False, **kwargs):
        argv = [str(c) for c in cmd]
        if argv[0] == sys.executable:
            tool = "python"
        else:
            tool = Path(argv[0]).name
        args = argv[1:]
        self.calls.append((tool, args, None if cwd is None else str(cwd)))
        handler = {"git": self._git, "gh": self._gh, "python": self._python}[tool]
        rc, out = handler(args, cwd)
        return subprocess.CompletedProcess(argv, rc, out, "")

    # -- tool behaviour ------------------------------------------------

    def _git(self, args, cwd):
        if args == ["rev-parse", "--is-inside-work-tree"]:
            return (0, "true\n") if self.inside_worktree else (128, "")
        if args == ["rev-parse", "--show-toplevel"]:
            return (0, f"{self.toplevel}\n") if self.toplevel else (128, "")
        if args[0] == "clone":
            url, target = args[1], Path(args[2])
            if self.clone_rc == 0:
                make_clone(target)
                self.remotes[(str(target), "origin")] = url
            return self.clone_rc, ""
        if args[:2] == ["remote", "get-url"]:
            url = self.remotes.get((str(cwd), args[2]))
            return (0, f"{url}\n") if url else (2, "")
        if args[:2] in (["remote", "set-url"], ["remote", "add"]):
            self.remotes[(str(cwd), args[2])] = args[3]
            return 0, ""
        return 0, ""

    def _gh(self, args, cwd):
        if args[:2] == ["auth", "status"]:
            return (0, "") if self.authenticated else (1, "")
        if args[:2] == ["auth", "login"]:
            self.authenticated = self.login_succeeds
            return (0, "") if self.login_succeeds else (1, "")
        if args[:2] == ["api", "user"]:
            return 0, f"{self.login}\n"
        if args[0] == "api" and "/forks?" in args[1]:
            return 0, "".join(f"{slug}\n" for slug in self.forks_api)
        if args[0] == "api" and args[1].startswith("repos/"):
            return 0, f"{self.default_branch}\n"
        if args[:2] == ["repo", "view"]:
            return (1, "") if args[2] in self.view_fail else (0, "")
        if args[:2] == ["repo", "list"]:
            return 0, json.dumps(self.repo_list)
        if args[:2] == ["repo", "fork"]:
            return (0, "") if self.fork_ok else (1, "")
        return 0, ""

    def _python(self, args, cwd):
        return self.setup_rc, ""

    # -- views ----------------------------------------------------------

    def tool_calls(self, tool: str) -> list[list[str]]:
        return [args for t, args, _ in self.calls if t == tool]

    def clones(self) -> list[list[str]]:
        return [args for args in self.tool_calls("git") if args[0] == "clone"]

    def forks_created(self) -> list[list[str]]:
        return [args for args in self.tool_calls("gh") if args[:2] == ["repo", "fork"]]

    def setup_runs(self) -> list[tuple[list[str], str | None]]:
        return [(args, cwd) for t, args, cwd in self.calls if t == "python"]


@pytest.fixture
def fake_tools(monkeypatch):
    """Route every subprocess.run through a FakeTools instance."""
    tools = FakeTools()
    monkeypatch.setattr("sweatyboot.git.subprocess.run", tools)
    monkeypatch.setattr("sweatyboot.github.shutil.which", lambda name: f"/usr/bin/{name}")
    monkeypatch.delenv("SWEATYBOOT_GH_CMD", raising=False)
    return tools


@pytest.fixture
def answers(monkeypatch):
    """Script the user's answers: ``answers("1", "n", ...)``.

    Running out of answers behaves like Ctrl-D at the prompt.
    """
    queue: list[str] = []

    def fake_input(prompt: str = "") -> str:
        if not queue:
            raise EOFError
        return queue.pop(0)

    monkeypatch.setattr("builtins.input", fake_input)

    def script(*lines: str) -> list[str]:
        queue.extend(lines)
        return queue

    return script


@pytest.fixture
def fetched(monkeypatch):
    """Replace urlopen; returns the list of requested URLs."""
    urls: list[str] = []

    class _Response(io.BytesIO):
        def __enter__(self):
            return self

        def __exit__(self, *exc):
            return False

    def fake_urlopen(req, *args, **kwargs):
        urls.append(req.full_url)
        return _Response(b"# setup helper\n")

    monkeypatch.setattr("sweatyboot.handoff.urllib.request.urlopen", fake_urlopen)
    return urls


@pytest.fixture
def run_dir(tmp_path, monkeypatch):
    """An empty working directory the run starts from, with a clean environment."""
    d = tmp_path / "runner"
    d.mkdir()
    monkeypatch.chdir(d)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    for var in (
        "GIT_SWEATY_UPSTREAM_REPO", "GIT_SWEATY_FORK_REPO",
        "GIT_SWEATY_WSL_MOUNT_PREFIX", "GIT_SWEATY_WSL_USERS_ROOTS",
        "WSL_DISTRO_NAME", "WSL_INTEROP",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr("sweatyboot.paths.is_wsl", lambda environ=None: False)
    return Path.cwd()


@pytest.fixture
def ctx(tmp_path):
    """A RunContext rooted in a fresh directory, not under WSL."""
    cwd = tmp_path / "runner"
    cwd.mkdir(exist_ok=True)
    return RunContext(
        config=BootstrapConfig(),
        upstream=UPSTREAM,
        cwd=cwd,
        hints=EnvironmentHints(wsl=False, users_roots=()),
    )
