"""Domain models shared by the fleet manager, config loader and providers."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .errors import ConfigError

if TYPE_CHECKING:
    from .providers import MirrorProvider


DEFAULT_MAIN_BRANCH = "master"


@dataclass(frozen=True)
class RepositorySpec:
    """A repository as declared in a Gitfile."""

    url: str
    path: str = ""
    altname: str = ""
    ref: str = ""
    symlinks: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Any, source: str = "") -> RepositorySpec:
        """Build a spec from one YAML record, rejecting records without a url."""
        where = f"{source}: " if source else ""
        if not isinstance(data, dict):
            raise ConfigError(f"{where}repository entry must be a mapping, got {data!r}")
        url = data.get("url")
        if not url or not isinstance(url, str):
            raise ConfigError(f"{where}repository entry without 'url': {data!r}")

        symlinks = data.get("symlinks") or []
        if isinstance(symlinks, str):
            symlinks = [symlinks]

        return cls(
            url=url,
            path=str(data.get("path") or ""),
            altname=str(data.get("altname") or ""),
            ref=str(data.get("ref") or ""),
            symlinks=tuple(str(s) for s in symlinks),
        )

    def to_dict(self) -> dict:
        """Convert to a Gitfile record, omitting empty optional fields."""
        record: dict[str, Any] = {"url": self.url}
        if self.path:
            record["path"] = self.path
        if self.altname:
            record["altname"] = self.altname
        if self.ref:
            record["ref"] = self.ref
        if self.symlinks:
            record["symlinks"] = list(self.symlinks)
        return record


@dataclass(frozen=True)
class ResolvedRepository:
    """Identity of a repository computed at the start of its job."""

    spec: RepositorySpec
    ref: str
    name: str
    full_path: Path
    fingerprint: str
    mirror_url: str = ""


@dataclass
class RepositoryStatus:
    """Outcome of processing one repository.

    Owned by a single job while it runs. Flags only ever go from False to True.
    """

    url: str
    full_path: str = ""
    fingerprint: str = ""
    processed: bool = False
    not_on_ref_branch: bool = False
    uncommitted_changes: bool = False
    error: bool = False
    skipped: bool = False

    @property
    def clean(self) -> bool:
        return (
            self.processed
            and not self.skipped
            and not self.error
            and not self.uncommitted_changes
            and not self.not_on_ref_branch
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        data["clean"] = self.clean
        return data


@dataclass
class FleetSummary:
    """Counts over a batch of repository statuses."""

    total: int = 0
    processed: int = 0
    local_changes: int = 0
    not_on_ref: int = 0
    errors: int = 0
    skipped: int = 0
    clean: int = 0

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_statuses(cls, statuses: list[RepositoryStatus]) -> FleetSummary:
        summary = cls(total=len(statuses))
        for status in statuses:
            if status.processed:
                summary.processed += 1
            if status.uncommitted_changes:
                summary.local_changes += 1
            if status.not_on_ref_branch:
                summary.not_on_ref += 1
            if status.error:
                summary.errors += 1
            if status.skipped:
                summary.skipped += 1
            if status.clean:
                summary.clean += 1
        return summary


@dataclass(frozen=True)
class ProviderRepo:
    """A repository reported by a hosting provider while generating a Gitfile."""

    ssh_url: str
    https_url: str
    default_branch: str = ""
    path_hint: str = ""


@dataclass(frozen=True)
class OwnerRepoFilters:
    """Provider specific filters applied when enumerating owner repositories."""

    gitlab_owned: bool = False
    gitlab_visibility: str = ""
    gitlab_min_access_level: str = "unspecified"
    github_visibility: str = "all"
    github_affiliation: str = "owner,collaborator,organization_member"
    bitbucket_role: str = "member"


@dataclass(frozen=True)
class RunConfig:
    """Read-only settings handed to every repository job."""

    default_ref: str = DEFAULT_MAIN_BRANCH
    stay_on_ref: bool = False
    shallow: bool = False
    concurrency: int = 1
    work_dir: Path | None = None
    git_command: str = "git"


@dataclass(frozen=True)
class MirrorSettings:
    """Mirror destination settings, with the provider selected at startup."""

    root_url: str
    provider: MirrorProvider
    push: bool = True
