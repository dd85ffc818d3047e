"""Interactive prompts. Every answer the resolver needs from the user comes through here."""

from __future__ import annotations

import sys
from typing import Callable

from sweatyboot.errors import UserCancelled
from sweatyboot.repos import Mode, RepositoryIdentity, is_valid_fork_name, is_valid_slug


def _read(message: str) -> str:
    """Print *message*, read a line, raise UserCancelled on EOF."""
    print(message, end="", flush=True)
    try:
        response = input()
    except EOFError:
        print()
        raise UserCancelled("Aborted.")
    return response.strip()


def yes_no(question: str, default: bool = True) -> bool:
    suffix = "[y/n] (default: y)" if default else "[y/n] (default: n)"
    while True:
        answer = _read(f"{question} {suffix} ").lower()
        if not answer:
            return default
        if answer in ("y", "yes"):
            return True
        if answer in ("n", "no"):
            return False
        print("Please enter y or n.", file=sys.stderr)


def choose_mode() -> Mode:
    print()
    print("Choose setup mode:")
    print("  1) Local mode (fork + clone + local setup)")
    print("  2) Online mode (no local clone; configure GitHub directly)")
    while True:
        choice = _read("Select option [1/2] (default: 1): ").lower()
        if choice in ("", "1", "local", "local mode"):
            return Mode.local
        if choice in ("2", "online", "online mode"):
            return Mode.online
        print("Please enter 1 or 2.", file=sys.stderr)


def ask_existing_path(default_dir: str) -> str:
    """Ask for an existing clone path. Returns "" when the user declines."""
    print()
    print(f"Default clone directory is: {default_dir}")
    print("Choose this for a fresh setup, or point to an existing compatible clone.")
    if not yes_no("Use an existing local clone path?", default=False):
        return ""
    return _read("Existing clone path (press Enter to cancel): ")


def ask_fork_name(default_name: str) -> str:
    if not yes_no("Use a custom name for your fork?", default=False):
        return default_name
    while True:
        answer = _read(f"Fork name (repo only, default: {default_name}): ") or default_name
        if is_valid_fork_name(answer):
            return answer
        print(
            "WARN: Invalid fork name. Use only letters, numbers, '.', '_' or '-'.",
            file=sys.stderr,
        )


def ask_repo_slug(
    default: RepositoryIdentity | None,
    exists: Callable[[RepositoryIdentity], bool],
) -> RepositoryIdentity:
    """Ask for ``OWNER/REPO`` until the answer is well-formed and *exists*."""
    message = "Repository to configure (OWNER/REPO)"
    if default is not None:
        message += f" (default: {default})"
    message += ": "
    while True:
        answer = _read(message)
        if not answer:
            if default is None:
                print("A repository slug is required.", file=sys.stderr)
                continue
            answer = str(default)
        if not is_valid_slug(answer):
            print("Invalid format. Please enter OWNER/REPO.", file=sys.stderr)
            continue
        repo = RepositoryIdentity.parse(answer)
        if not exists(repo):
            print(
                f"WARN: Repository is not accessible with current gh auth: {repo}",
                file=sys.stderr,
            )
            continue
        return repo
