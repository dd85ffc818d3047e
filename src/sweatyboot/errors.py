"""sweatyboot error hierarchy."""


class BootstrapError(Exception):
    """Base exception for all sweatyboot errors."""


class ConfigError(BootstrapError):
    """Configuration file or environment override is malformed."""


class InputError(BootstrapError):
    """User-supplied path or repository cannot be used."""


class GitError(BootstrapError):
    """A git command failed where success was required."""


class GitHubError(BootstrapError):
    """A gh command failed or the session cannot see a repository."""


class FetchError(BootstrapError):
    """Downloading the setup helper failed."""


class SetupError(BootstrapError):
    """The downstream setup routine exited non-zero."""

    def __init__(self, returncode: int) -> None:
        super().__init__(f"Setup routine exited with status {returncode}.")
        self.returncode = returncode


class UserCancelled(BootstrapError):
    """User cancelled an interactive prompt."""
