"""sweatyboot: onboarding bootstrapper for git-sweaty working copies."""

__version__ = "0.3.0"
