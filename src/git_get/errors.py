"""Fatal error types.

Anything raised from this hierarchy ends the whole run. Per-repository git
failures are never raised; they are recorded on the repository status.
"""

from __future__ import annotations


class GitGetError(Exception):
    """Base class for errors that terminate a git-get run."""


class ConfigError(GitGetError):
    """Configuration file is missing, unreadable or malformed."""


class WorkspaceError(GitGetError):
    """A working directory does not exist or cannot be created."""


class ProviderError(GitGetError):
    """A mirror provider cannot be selected or refused an operation."""


class MissingCredentialError(ProviderError):
    """A credential required by a provider is not set in the environment."""


class InvalidURLError(GitGetError):
    """A git URL cannot be split into host and owner path."""
