"""Argument parsing, the bootstrap run, and main() entry point."""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from sweatyboot import __version__
from sweatyboot.errors import BootstrapError, ConfigError, SetupError, UserCancelled


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sweatyboot",
        description=(
            "Find or create the git-sweaty working copy to use on this machine, "
            "bound to the right GitHub remote, then run its setup helper."
        ),
        epilog=(
            "environment:\n"
            "  GIT_SWEATY_UPSTREAM_REPO     upstream OWNER/REPO (default: aspain/git-sweaty)\n"
            "  GIT_SWEATY_FORK_REPO         use this fork instead of discovering one\n"
            "  GIT_SWEATY_WSL_MOUNT_PREFIX  where Windows drives are mounted (default: /mnt)\n"
            "  GIT_SWEATY_WSL_USERS_ROOTS   ':'-separated Windows Users directories to search"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--source", default=None,
        help="Data source for the setup helper (passed through unchanged)",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Show debug output (git/gh commands, discovery stages)",
    )
    parser.add_argument(
        "--version", action="version", version=f"sweatyboot {__version__}",
    )
    return parser


def forwarded_args(args: argparse.Namespace) -> list[str]:
    """Flags handed to the setup helper verbatim."""
    if args.source:
        return ["--source", args.source]
    return []


def build_context(cwd: Path | None = None, environ: dict[str, str] | None = None):
    from sweatyboot.config import config_file_path, load_merged_config
    from sweatyboot.paths import EnvironmentHints
    from sweatyboot.repos import RepositoryIdentity
    from sweatyboot.resolve import RunContext

    env = os.environ if environ is None else environ
    config_home = Path(env.get("XDG_CONFIG_HOME") or Path.home() / ".config")
    config = load_merged_config(config_file_path(config_home), env)
    try:
        upstream = RepositoryIdentity.parse(config.upstream_repo)
    except ValueError as e:
        raise ConfigError(f"Invalid upstream repository: {e}") from e
    return RunContext(
        config=config,
        upstream=upstream,
        cwd=cwd or Path.cwd(),
        hints=EnvironmentHints.detect(config, env),
    )


def run(args: argparse.Namespace) -> int:
    from sweatyboot import prompts
    from sweatyboot.discovery import ForkDiscovery, default_strategies
    from sweatyboot.github import GitHubCLI
    from sweatyboot.handoff import repo_flag, run_local_setup, run_online_setup
    from sweatyboot.repos import NoAction, NoLocalPath
    from sweatyboot.resolve import Resolver, materialize

    ctx = build_context()
    gh = GitHubCLI()
    discovery = ForkDiscovery(gh, default_strategies(ctx.config.fork_repo))
    outcome = Resolver(ctx, gh, discovery).resolve()
    forwarded = forwarded_args(args)

    if isinstance(outcome, NoAction):
        return 0
    if isinstance(outcome, NoLocalPath):
        run_online_setup(
            ctx.upstream, outcome.remote, forwarded, gh,
            raw_host=ctx.config.raw_host,
            setup_script=ctx.config.setup_script,
        )
        return 0

    repo_dir = materialize(ctx, outcome)
    if not prompts.yes_no("Run setup now?", default=True):
        print("Setup not run. Next step:")
        print(f'  (cd "{repo_dir}" && ./scripts/bootstrap.sh)')
        return 0
    run_local_setup(
        repo_dir, ctx.config.setup_script, forwarded, gh,
        repo=repo_flag(outcome, ctx.upstream),
    )
    return 0


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()

    import argcomplete
    argcomplete.autocomplete(parser)

    args = parser.parse_args(argv)

    from sweatyboot.log import setup_logging
    setup_logging(verbose=args.verbose)

    try:
        rc = run(args)
    except SetupError as e:
        print(f"Error: {e}", file=sys.stderr)
        rc = e.returncode
    except UserCancelled:
        print("Aborted.")
        rc = 2
    except BootstrapError as e:
        print(f"Error: {e}", file=sys.stderr)
        rc = 1
    except KeyboardInterrupt:
        print()
        rc = 130

    sys.exit(rc)
