"""
git-get: all your project repositories in one go.

Clones, refreshes and mirrors a fleet of Git repositories declared in a YAML
Gitfile, processing many repositories concurrently.
"""

from __future__ import annotations

import hashlib
import logging
import platform
import shutil
import subprocess
import tempfile
import threading
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import Protocol, TypeVar

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from ._version import __version__
from .config import (
    build_specs_from_provider,
    default_config_path,
    default_ignore_path,
    load_config_files,
    load_ignore_files,
    partition_ignored,
    write_config,
)
from .errors import ConfigError, GitGetError, WorkspaceError
from .formatters import OutputFormatter
from .models import (
    DEFAULT_MAIN_BRANCH,
    FleetSummary,
    MirrorSettings,
    OwnerRepoFilters,
    RepositorySpec,
    RepositoryStatus,
    ResolvedRepository,
    RunConfig,
)
from .providers import decompose_git_url, select_provider

logger = logging.getLogger(__name__)

T = TypeVar("T")

# =============================================================================
# Process Runner
# =============================================================================


@dataclass
class CommandResult:
    """Outcome of an external command."""

    args: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner(Protocol):
    """Executes an external command; implementations must not raise on failure."""

    def run(
        self, args: Sequence[str], cwd: Path | None = None, capture: bool = True
    ) -> CommandResult: ...


class ShellRunner:
    """Runs commands as subprocesses."""

    def run(
        self, args: Sequence[str], cwd: Path | None = None, capture: bool = True
    ) -> CommandResult:
        argv = list(args)
        try:
            result = subprocess.run(
                argv,
                cwd=cwd,
                capture_output=capture,
                text=True,
                check=False,
            )
        except OSError as e:
            return CommandResult(argv, 127, "", str(e))
        return CommandResult(argv, result.returncode, result.stdout or "", result.stderr or "")


# =============================================================================
# Repository Identity
# =============================================================================


def default_ref(ref: str, default: str = DEFAULT_MAIN_BRANCH) -> str:
    """Declared ref, or the trunk branch when none is declared."""
    return ref if ref else default


def get_repo_local_name(spec: RepositorySpec) -> str:
    """Directory name for a repository: altname, else the url basename without .git."""
    if spec.altname:
        return spec.altname
    name = spec.url.rsplit("/", 1)[-1]
    return name.removesuffix(".git")


def generate_sha(text: str) -> str:
    """Short sha1 digest used to correlate log lines."""
    return hashlib.sha1(text.encode("utf-8")).hexdigest()[:7]


def repository_fingerprint(url: str, ref: str, full_path: Path | str) -> str:
    return generate_sha(f"{url} ({ref}) {full_path}")


def mirror_url_for(mirror_root_url: str, name: str) -> str:
    return f"{mirror_root_url}/{name}.git"


def choose_path_prefix(path_prefix: Path | None) -> Path:
    """Explicit base directory, which must exist, or the current directory."""
    if path_prefix is not None:
        if path_prefix.is_dir():
            return path_prefix
        raise WorkspaceError(f"{path_prefix} does not exist or is not directory")
    try:
        return Path.cwd()
    except OSError as e:
        raise WorkspaceError(f"cannot determine working directory: {e}") from e


def ensure_path_exists(local_path: str, work_dir: Path | None = None) -> Path:
    """Directory a repository is placed in, created when declared and missing."""
    base = choose_path_prefix(work_dir)
    if not local_path:
        return base
    target = base / local_path
    try:
        target.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise WorkspaceError(f"cannot create '{target}': {e}") from e
    return target


def resolve_repository(
    spec: RepositorySpec, base: Path, default_branch: str, mirror_root_url: str = ""
) -> ResolvedRepository:
    ref = default_ref(spec.ref, default_branch)
    name = get_repo_local_name(spec)
    full_path = base / name
    return ResolvedRepository(
        spec=spec,
        ref=ref,
        name=name,
        full_path=full_path,
        fingerprint=repository_fingerprint(spec.url, ref, full_path),
        mirror_url=mirror_url_for(mirror_root_url, name) if mirror_root_url else "",
    )


# =============================================================================
# Git Operations (Low-level)
# =============================================================================


class GitOperations:
    """Git subcommands for a single repository."""

    def __init__(
        self,
        runner: CommandRunner,
        repo_path: Path,
        sha: str = "",
        git_command: str = "git",
    ):
        self.runner = runner
        self.repo_path = repo_path
        self.sha = sha
        self.git_command = git_command

    def _run(self, *args: str, in_repo: bool = True) -> CommandResult:
        """Run a git command, inside the repository unless told otherwise."""
        return self.runner.run(
            [self.git_command, *args],
            cwd=self.repo_path if in_repo else None,
        )

    def _report(self, result: CommandResult, level: int = logging.ERROR) -> bool:
        if not result.ok:
            logger.log(
                level,
                "%s: '%s' exited with %d: %s",
                self.sha,
                " ".join(result.args),
                result.returncode,
                result.stderr.strip(),
            )
        return result.ok

    def clone(self, url: str, ref: str) -> bool:
        logger.info("%s: Clone repository '%s'", self.sha, url)
        return self._report(
            self._run("clone", "--branch", ref, url, str(self.repo_path), in_repo=False)
        )

    def shallow_clone(self, url: str, ref: str) -> bool:
        logger.info("%s: Shallow clone repository '%s'", self.sha, url)
        return self._report(
            self._run(
                "clone", "--depth", "1", "--branch", ref, url, str(self.repo_path), in_repo=False
            )
        )

    def clone_mirror(self, url: str) -> bool:
        logger.info("%s: Clone repository '%s' for mirror", self.sha, url)
        return self._report(self._run("clone", "--mirror", url, str(self.repo_path), in_repo=False))

    def push_mirror(self, mirror_url: str) -> bool:
        logger.info("%s: Push repository as a mirror '%s'", self.sha, mirror_url)
        return self._report(self._run("push", "--mirror", mirror_url))

    def get_current_branch(self) -> str:
        result = self._run("rev-parse", "--abbrev-ref", "HEAD")
        if result.ok:
            return result.stdout.strip()
        return ""

    def is_clean(self) -> bool:
        """Both unstaged and staged diffs are empty."""
        unstaged = self._run("diff", "--quiet")
        staged = self._run("diff", "--staged", "--quiet")
        return unstaged.ok and staged.ok

    def is_ref_branch(self, ref: str) -> bool:
        return self._run("show-ref", "--quiet", "--verify", f"refs/heads/{ref}").ok

    def is_ref_tag(self, ref: str) -> bool:
        return self._run("show-ref", "--quiet", "--verify", f"refs/tags/{ref}").ok

    def checkout(self, branch: str) -> bool:
        logger.info("%s: Checkout to '%s' branch in '%s'", self.sha, branch, self.repo_path)
        return self._report(self._run("checkout", branch), logging.WARNING)

    def stash_save(self) -> bool:
        logger.info("%s: Stash unsaved changes", self.sha)
        return self._report(self._run("stash", "save"), logging.WARNING)

    def stash_pop(self) -> bool:
        logger.info("%s: Restore stashed changes", self.sha)
        return self._report(self._run("stash", "pop"), logging.WARNING)

    def pull(self) -> bool:
        logger.info("%s: Pulling upstream changes", self.sha)
        return self._report(self._run("pull", "-f"))


# =============================================================================
# Repository Reconciliation
# =============================================================================


class GitRepository:
    """Brings one declared repository in line with its remote.

    A GitRepository belongs to exactly one job; its status is returned to the
    scheduler when the job finishes.
    """

    def __init__(self, spec: RepositorySpec, config: RunConfig, runner: CommandRunner):
        self.spec = spec
        self.config = config
        self.runner = runner
        self.status = RepositoryStatus(url=spec.url)
        self._resolved: ResolvedRepository | None = None
        self._ops: GitOperations | None = None

    @property
    def resolved(self) -> ResolvedRepository:
        if self._resolved is None:
            raise RuntimeError(f"repository '{self.spec.url}' used before its path was resolved")
        return self._resolved

    @property
    def ops(self) -> GitOperations:
        if self._ops is None:
            raise RuntimeError(f"repository '{self.spec.url}' used before its path was resolved")
        return self._ops

    @property
    def sha(self) -> str:
        return self._resolved.fingerprint if self._resolved else ""

    @property
    def ref(self) -> str:
        return self._resolved.ref if self._resolved else ""

    @property
    def full_path(self) -> Path:
        return self.resolved.full_path

    def _resolve(self, base: Path, mirror_root_url: str = "") -> None:
        self._resolved = resolve_repository(
            self.spec, base, self.config.default_ref, mirror_root_url
        )
        self.status.full_path = str(self.resolved.full_path)
        self.status.fingerprint = self.resolved.fingerprint
        self._ops = GitOperations(
            self.runner, self.resolved.full_path, self.sha, self.config.git_command
        )
        logger.info(
            "%s: url: %s (%s) -> %s", self.sha, self.spec.url, self.ref, self.full_path
        )
        logger.debug("%s: Repository structure: %r", self.sha, self.resolved)

    def prepare_for_get(self) -> None:
        self._resolve(ensure_path_exists(self.spec.path, self.config.work_dir))

    def prepare_for_mirror(self, temp_dir: Path, mirror_root_url: str) -> None:
        self._resolve(choose_path_prefix(temp_dir), mirror_root_url)

    def repo_path_exists(self) -> bool:
        return self.full_path.exists()

    # -- get ------------------------------------------------------------------

    def get(self) -> RepositoryStatus:
        """Clone or refresh the repository, then materialise its symlinks."""
        self.prepare_for_get()
        if self.config.shallow:
            self.shallow_get()
        elif not self.repo_path_exists():
            logger.debug("%s: path '%s' missing - cloning", self.sha, self.full_path)
            self.clone()
        else:
            logger.debug("%s: path '%s' exists, will refresh from remote", self.sha, self.full_path)
            self.process_based_on_current_branch()
        self.process_symlinks()
        self.status.processed = True
        return self.status

    def clone(self) -> bool:
        if not self.ops.clone(self.spec.url, self.ref):
            self.status.error = True
            return False
        return True

    def shallow_get(self) -> None:
        """Fresh depth-1 checkout of the ref with history removed."""
        if self.repo_path_exists():
            logger.debug("%s: path '%s' exists - removing target path", self.sha, self.full_path)
            if not self.remove_path(self.full_path):
                return
        if not self.ops.shallow_clone(self.spec.url, self.ref):
            self.status.error = True
            return
        self.remove_path(self.full_path / ".git")

    def remove_path(self, path: Path) -> bool:
        if not path.exists() and not path.is_symlink():
            return True
        try:
            if path.is_dir() and not path.is_symlink():
                shutil.rmtree(path)
            else:
                path.unlink()
        except OSError as e:
            logger.error("%s: cannot remove '%s': %s", self.sha, path, e)
            self.status.error = True
            return False
        return True

    def checkout(self, branch: str) -> None:
        if branch != self.ref:
            self.status.not_on_ref_branch = True
        if not self.ops.checkout(branch):
            self.status.error = True

    def pull(self) -> None:
        """Pull when the ref is a branch; tags and commits do not move."""
        if not self.ops.is_ref_branch(self.ref):
            kind = "tag" if self.ops.is_ref_tag(self.ref) else "not a branch"
            logger.debug(
                "%s: Skip pulling upstream changes for '%s' (%s)", self.sha, self.ref, kind
            )
            return
        if not self.ops.pull():
            self.status.error = True

    def process_based_on_cleanliness(self) -> None:
        if self.ops.is_clean():
            logger.debug("%s: Repo status is clean", self.sha)
            self.pull()
            return

        logger.debug("%s: Repo is NOT clean", self.sha)
        self.status.uncommitted_changes = True
        if not self.ops.stash_save():
            self.status.error = True
        self.pull()
        if not self.ops.stash_pop():
            self.status.error = True

    def process_based_on_current_branch(self) -> None:
        current_branch = self.ops.get_current_branch()
        if current_branch == self.ref:
            logger.debug("%s: Current branch is ref", self.sha)
            self.process_based_on_cleanliness()
            return

        logger.debug("%s: Current branch '%s' is not ref", self.sha, current_branch)
        self.checkout(self.ref)
        self.process_based_on_cleanliness()
        if self.config.stay_on_ref:
            logger.debug("%s: Stay on ref branch '%s'", self.sha, self.ref)
        else:
            self.checkout(current_branch)

    def create_symlink(self, symlink: str) -> None:
        link = Path(symlink)
        logger.info("%s: Processing symlink '%s'", self.sha, link)
        if link.exists() or link.is_symlink():
            logger.debug(
                "%s: path for symlink '%s' exists (may not be symlink, don't care)", self.sha, link
            )
            return

        link_dir = link.parent
        if link_dir.exists():
            if not link_dir.is_dir():
                logger.error(
                    "%s: path for symlink '%s' directory '%s' exists, but is not directory"
                    " - check configuration",
                    self.sha,
                    link,
                    link_dir,
                )
                self.status.error = True
                return
        else:
            try:
                link_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                logger.error("%s: cannot create '%s': %s", self.sha, link_dir, e)
                self.status.error = True
                return

        try:
            link.symlink_to(self.full_path)
        except OSError as e:
            logger.error("%s: cannot create symlink '%s': %s", self.sha, link, e)
            self.status.error = True

    def process_symlinks(self) -> None:
        for symlink in self.spec.symlinks:
            self.create_symlink(symlink)

    # -- mirror ---------------------------------------------------------------

    def mirror(self, temp_dir: Path, settings: MirrorSettings) -> RepositoryStatus:
        """Bare-clone the source and push it to the mirror destination."""
        self.prepare_for_mirror(temp_dir, settings.root_url)

        logger.debug("%s: path '%s' cloning for mirror", self.sha, self.full_path)
        if not self.ops.clone_mirror(self.spec.url):
            self.status.error = True

        if settings.push:
            settings.provider.ensure_mirror_exists(
                self.resolved.mirror_url, self.spec.url, self.sha
            )
            if not self.ops.push_mirror(self.resolved.mirror_url):
                self.status.error = True
        else:
            logger.info("%s: skipping '%s' remote push per user request", self.sha, self.spec.url)

        self.status.processed = True
        return self.status


# =============================================================================
# Bounded Scheduler
# =============================================================================


class AdmissionGate(Protocol):
    def acquire(self) -> bool: ...

    def release(self) -> None: ...


class BoundedScheduler:
    """Runs jobs on worker threads with at most ``concurrency`` admitted at once.

    Each job runs exactly once. A job that raises stops further admissions;
    jobs already admitted finish and the first error is re-raised.
    """

    def __init__(self, concurrency: int, gate: AdmissionGate | None = None):
        if concurrency < 1:
            raise ConfigError(f"concurrency level must be at least 1, got {concurrency}")
        self.concurrency = concurrency
        self.gate = gate if gate is not None else threading.BoundedSemaphore(concurrency)

    def run(self, jobs: Iterable[Callable[[], T]]) -> list[T]:
        abort = threading.Event()
        futures: list[Future[T]] = []

        def admitted(job: Callable[[], T]) -> T:
            try:
                return job()
            except Exception:
                abort.set()
                raise
            finally:
                self.gate.release()

        with ThreadPoolExecutor(max_workers=self.concurrency) as executor:
            for job in jobs:
                self.gate.acquire()
                if abort.is_set():
                    self.gate.release()
                    logger.debug("Batch aborted, %d jobs dispatched", len(futures))
                    break
                futures.append(executor.submit(admitted, job))

        return [future.result() for future in futures]


# =============================================================================
# Fleet Manager
# =============================================================================


class FleetManager:
    """Drives every declared repository through get or mirror."""

    def __init__(
        self,
        config: RunConfig,
        runner: CommandRunner | None = None,
        scheduler: BoundedScheduler | None = None,
    ):
        self.config = config
        self.runner = runner if runner is not None else ShellRunner()
        self.scheduler = scheduler if scheduler is not None else BoundedScheduler(config.concurrency)

    def _get_one(self, spec: RepositorySpec) -> RepositoryStatus:
        return GitRepository(spec, self.config, self.runner).get()

    def _mirror_one(
        self, spec: RepositorySpec, temp_dir: Path, settings: MirrorSettings
    ) -> RepositoryStatus:
        return GitRepository(spec, self.config, self.runner).mirror(temp_dir, settings)

    def _merge(
        self,
        specs: list[RepositorySpec],
        ignored: list[RepositorySpec],
        statuses: list[RepositoryStatus],
    ) -> list[RepositoryStatus]:
        """One status per declared repository, in declaration order."""
        ignored_ids = {id(spec) for spec in ignored}
        processed = iter(statuses)
        merged = []
        for spec in specs:
            if id(spec) in ignored_ids:
                merged.append(RepositoryStatus(url=spec.url, skipped=True))
            else:
                merged.append(next(processed))
        return merged

    def get_all(
        self, specs: list[RepositorySpec], ignore: Iterable[RepositorySpec] = ()
    ) -> list[RepositoryStatus]:
        """Clone missing repositories and refresh present ones."""
        kept, ignored = partition_ignored(specs, ignore)
        for spec in ignored:
            logger.info("Skipping ignored repository '%s'", spec.url)
        statuses = self.scheduler.run([partial(self._get_one, spec) for spec in kept])
        return self._merge(specs, ignored, statuses)

    def mirror_all(
        self,
        specs: list[RepositorySpec],
        settings: MirrorSettings,
        ignore: Iterable[RepositorySpec] = (),
    ) -> list[RepositoryStatus]:
        """Mirror every repository through a shared scratch directory."""
        kept, ignored = partition_ignored(specs, ignore)
        for spec in ignored:
            logger.info("Skipping ignored repository '%s'", spec.url)
        try:
            temp_dir = Path(tempfile.mkdtemp(prefix="gitgetmirror"))
        except OSError as e:
            raise WorkspaceError(f"{e}, while creating temporary directory") from e
        try:
            statuses = self.scheduler.run(
                [partial(self._mirror_one, spec, temp_dir, settings) for spec in kept]
            )
        finally:
            shutil.rmtree(temp_dir, ignore_errors=True)
        return self._merge(specs, ignored, statuses)

    def get_summary(self, statuses: list[RepositoryStatus]) -> FleetSummary:
        return FleetSummary.from_statuses(statuses)


# =============================================================================
# CLI Application
# =============================================================================


LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
    "panic": logging.CRITICAL,
}


def setup_logging(level: str = "info") -> None:
    """Route git_get logs through rich on stderr."""
    numeric_level = LOG_LEVELS.get(level.lower())
    if numeric_level is None:
        raise ConfigError(f"unknown log level '{level}' [{'|'.join(LOG_LEVELS)}]")

    package_logger = logging.getLogger("git_get")
    package_logger.setLevel(numeric_level)
    package_logger.handlers.clear()
    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        markup=False,
        rich_tracebacks=False,
    )
    handler.setLevel(numeric_level)
    package_logger.addHandler(handler)

    # requests and PyGithub are chatty at debug level
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("github").setLevel(logging.WARNING)


app = typer.Typer(
    name="git-get",
    help="'git-get' - all your project repositories.",
    no_args_is_help=True,
)


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        print(f"git-get {__version__}")
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
):
    """git-get clones/refreshes all your project repositories in one go.

    A YAML Gitfile declares the repositories, where they are placed, which
    ref they track and which symlinks point at them.
    """


def get_console_and_formatter(json_output: bool) -> tuple[Console, OutputFormatter]:
    """Create console and formatter."""
    console = Console(force_terminal=not json_output)
    formatter = OutputFormatter(console, use_json=json_output)
    return console, formatter


def fail(message: str) -> typer.Exit:
    """Print a fatal error to stderr and build the exit to raise."""
    Console(stderr=True).print(f"[red]Error: {escape(message)}[/]", markup=True, highlight=False)
    return typer.Exit(1)


def load_inputs(
    config_files: list[Path] | None, ignore_files: list[Path] | None
) -> tuple[list[RepositorySpec], list[RepositorySpec]]:
    """Gitfiles and ignore files, defaulting to ./Gitfile and Gitfile.ignore."""
    configs = list(config_files) if config_files else [default_config_path()]
    ignores = list(ignore_files) if ignore_files else [default_ignore_path(configs[0])]
    return load_config_files(configs), load_ignore_files(ignores)


@app.command()
def get(
    config_file: list[Path] = typer.Option(
        None,
        "--config-file",
        "-f",
        help="Configuration file, repeat to concatenate several (default: ./Gitfile)",
    ),
    ignore_file: list[Path] = typer.Option(
        None,
        "--ignore-file",
        "-i",
        help="Ignore file, repeat to concatenate several (default: <config-file>.ignore)",
    ),
    log_level: str = typer.Option(
        "info",
        "--log-level",
        "-l",
        help="Logging level [debug|info|warn|error|fatal|panic]",
    ),
    concurrency_level: int = typer.Option(
        1,
        "--concurrency-level",
        "-c",
        help="Number of repositories processed at the same time",
    ),
    stay_on_ref: bool = typer.Option(
        False,
        "--stay-on-ref",
        "-t",
        help="After refreshing repository from remote stay on ref branch",
    ),
    shallow: bool = typer.Option(
        False,
        "--shallow",
        "-s",
        help="Shallow clone, can be used in CI to fetch dependencies by ref",
    ),
    default_main_branch: str = typer.Option(
        DEFAULT_MAIN_BRANCH,
        "--default-main-branch",
        "-b",
        help="Ref used for repositories that do not declare one",
    ),
    status: bool = typer.Option(
        False,
        "--status",
        help="Print a summary table after processing",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Print the summary as JSON",
    ),
):
    """Clone missing repositories and refresh existing ones."""
    _, formatter = get_console_and_formatter(json_output)
    try:
        setup_logging(log_level)
        specs, ignore = load_inputs(config_file, ignore_file)
        run_config = RunConfig(
            default_ref=default_main_branch,
            stay_on_ref=stay_on_ref,
            shallow=shallow,
            concurrency=concurrency_level,
        )
        fleet = FleetManager(run_config)
        statuses = fleet.get_all(specs, ignore)
    except GitGetError as e:
        raise fail(str(e)) from e

    if status or json_output:
        formatter.print_status_list(statuses, fleet.get_summary(statuses), Path.cwd())


@app.command()
def mirror(
    config_file: list[Path] = typer.Option(
        None,
        "--config-file",
        "-f",
        help="Configuration file, repeat to concatenate several (default: ./Gitfile)",
    ),
    ignore_file: list[Path] = typer.Option(
        None,
        "--ignore-file",
        "-i",
        help="Ignore file, repeat to concatenate several (default: <config-file>.ignore)",
    ),
    log_level: str = typer.Option(
        "info",
        "--log-level",
        "-l",
        help="Logging level [debug|info|warn|error|fatal|panic]",
    ),
    concurrency_level: int = typer.Option(
        1,
        "--concurrency-level",
        "-c",
        help="Number of repositories processed at the same time",
    ),
    push: bool = typer.Option(
        True,
        "--push/--dry-run",
        help="Push to remote mirror repositories, or only clone them locally",
    ),
    mirror_url: str = typer.Option(
        ...,
        "--mirror-url",
        "-u",
        help="Mirror URL prefix to push repositories to (example: git@github.com:acmeorg)",
    ),
    mirror_provider: str = typer.Option(
        "gitlab",
        "--mirror-provider",
        "-m",
        help="Git mirror provider name [gitlab|github|bitbucket]",
    ),
    mirror_visibility_mode: str = typer.Option(
        "private",
        "--mirror-visibility-mode",
        "-v",
        help="Mirror visibility mode [private|internal|public]",
    ),
    bitbucket_mirror_project_name: str = typer.Option(
        "",
        "--bitbucket-mirror-project-name",
        "-b",
        help="Bitbucket mirror project name (only effective for Bitbucket and is optional)",
    ),
    status: bool = typer.Option(
        False,
        "--status",
        help="Print a summary table after processing",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        "-j",
        help="Print the summary as JSON",
    ),
):
    """Create or update mirrors of repositories on another git provider.

    Repositories are cloned and pushed over ssh; provider APIs are called with
    GITLAB_TOKEN, GITHUB_TOKEN, or BITBUCKET_USERNAME and BITBUCKET_TOKEN.
    """
    _, formatter = get_console_and_formatter(json_output)
    try:
        setup_logging(log_level)
        host, _, _ = decompose_git_url(mirror_url)
        provider = select_provider(
            mirror_provider,
            host,
            visibility=mirror_visibility_mode,
            project=bitbucket_mirror_project_name,
        )
        specs, ignore = load_inputs(config_file, ignore_file)
        logger.debug("%s - push to mirror", push)
        settings = MirrorSettings(root_url=mirror_url.rstrip("/"), provider=provider, push=push)
        fleet = FleetManager(RunConfig(concurrency=concurrency_level))
        statuses = fleet.mirror_all(specs, settings, ignore)
    except GitGetError as e:
        raise fail(str(e)) from e

    if status or json_output:
        formatter.print_status_list(statuses, fleet.get_summary(statuses))


@app.command("config-gen")
def config_gen(
    config_file: Path = typer.Option(
        None,
        "--config-file",
        "-f",
        help="Configuration file to write (default: ./Gitfile)",
    ),
    ignore_file: list[Path] = typer.Option(
        None,
        "--ignore-file",
        "-i",
        help="Ignore file (default: <config-file>.ignore)",
    ),
    log_level: str = typer.Option(
        "info",
        "--log-level",
        "-l",
        help="Logging level [debug|info|warn|error|fatal|panic]",
    ),
    config_provider: str = typer.Option(
        "gitlab",
        "--config-provider",
        "-p",
        help="Git provider name [gitlab|github|bitbucket]",
    ),
    config_url: str = typer.Option(
        ...,
        "--config-url",
        "-u",
        help="URL prefix to construct Gitfile from (example: git@github.com:acmeorg)",
    ),
    target_clone_path: str = typer.Option(
        "",
        "--target-clone-path",
        "-t",
        help="Target clone path used to set 'path' for each repository in Gitfile",
    ),
    use_ssh: bool = typer.Option(
        True,
        "--ssh/--https",
        help="Clone URL scheme written to the Gitfile",
    ),
    gitlab_owned: bool = typer.Option(
        False,
        "--gitlab-owned",
        help="Gitlab: only traverse groups and repositories owned by user",
    ),
    gitlab_project_visibility: str = typer.Option(
        "",
        "--gitlab-project-visibility",
        help="Gitlab: project visibility [public|internal|private]",
    ),
    gitlab_groups_minimal_access_level: str = typer.Option(
        "unspecified",
        "--gitlab-groups-minimal-access-level",
        help="Gitlab: minimal access level "
        "[unspecified|min|guest|reporter|developer|maintainer|owner]",
    ),
    github_visibility: str = typer.Option(
        "all",
        "--github-visibility",
        help="Github: visibility [all|public|private]",
    ),
    github_affiliation: str = typer.Option(
        "owner,collaborator,organization_member",
        "--github-affiliation",
        help="Github: comma-separated list of owner, collaborator, organization_member",
    ),
    bitbucket_role: str = typer.Option(
        "member",
        "--bitbucket-role",
        help="Bitbucket: filter repositories by role [owner|admin|contributor|member]",
    ),
):
    """Create a Gitfile from the repositories of a user, organization or group."""
    target = config_file or default_config_path()
    filters = OwnerRepoFilters(
        gitlab_owned=gitlab_owned,
        gitlab_visibility=gitlab_project_visibility,
        gitlab_min_access_level=gitlab_groups_minimal_access_level,
        github_visibility=github_visibility,
        github_affiliation=github_affiliation,
        bitbucket_role=bitbucket_role,
    )
    try:
        setup_logging(log_level)
        logger.debug("Generate Gitfile configuration file")
        host, owner, _ = decompose_git_url(config_url)
        provider = select_provider(config_provider, host)
        ignore = load_ignore_files(ignore_file or [default_ignore_path(target)])
        repos = provider.fetch_owner_repos(owner, filters)
        specs = build_specs_from_provider(repos, ignore, target_clone_path, use_ssh)
        write_config(target, specs)
    except GitGetError as e:
        raise fail(str(e)) from e


@app.command()
def version(
    long: bool = typer.Option(
        False,
        "--long",
        "-l",
        help="Print additional version information",
    ),
):
    """Print the version."""
    if long:
        print(
            f"git-get {__version__} python {platform.python_version()} "
            f"{platform.system().lower()}/{platform.machine()}"
        )
    else:
        print(f"git-get {__version__}")
