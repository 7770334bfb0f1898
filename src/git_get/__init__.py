"""git-get: all your project repositories in one go."""

# Guard against deleted CWD (e.g. directory removed by another process).
# rich crashes on import if os.getcwd() fails, so recover before any imports.
import os

try:
    os.getcwd()
except (OSError, PermissionError):
    os.chdir(os.path.expanduser("~"))

from ._version import __version__
from .core import (
    BoundedScheduler,
    CommandResult,
    CommandRunner,
    FleetManager,
    GitOperations,
    GitRepository,
    ShellRunner,
    app,
    default_ref,
    generate_sha,
    get_repo_local_name,
    repository_fingerprint,
)
from .config import (
    load_config_files,
    load_ignore_files,
    should_ignore,
    write_config,
)
from .errors import (
    ConfigError,
    GitGetError,
    InvalidURLError,
    MissingCredentialError,
    ProviderError,
    WorkspaceError,
)
from .formatters import OutputFormatter
from .models import (
    FleetSummary,
    MirrorSettings,
    OwnerRepoFilters,
    ProviderRepo,
    RepositorySpec,
    RepositoryStatus,
    ResolvedRepository,
    RunConfig,
)
from .providers import (
    BitbucketProvider,
    GitHubProvider,
    GitLabProvider,
    MirrorProvider,
    decompose_git_url,
    select_provider,
)

__all__ = [
    # Version
    "__version__",
    # CLI
    "app",
    # Models
    "FleetSummary",
    "MirrorSettings",
    "OwnerRepoFilters",
    "ProviderRepo",
    "RepositorySpec",
    "RepositoryStatus",
    "ResolvedRepository",
    "RunConfig",
    # Errors
    "ConfigError",
    "GitGetError",
    "InvalidURLError",
    "MissingCredentialError",
    "ProviderError",
    "WorkspaceError",
    # Operations
    "BoundedScheduler",
    "CommandResult",
    "CommandRunner",
    "FleetManager",
    "GitOperations",
    "GitRepository",
    "ShellRunner",
    # Providers
    "BitbucketProvider",
    "GitHubProvider",
    "GitLabProvider",
    "MirrorProvider",
    "decompose_git_url",
    "select_provider",
    # Functions
    "default_ref",
    "generate_sha",
    "get_repo_local_name",
    "load_config_files",
    "load_ignore_files",
    "repository_fingerprint",
    "should_ignore",
    "write_config",
    # Formatters
    "OutputFormatter",
]
