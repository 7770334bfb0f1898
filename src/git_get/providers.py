"""Mirror destination providers: GitLab, GitHub and Bitbucket.

Each provider answers the same three questions: does a repository exist,
create it, and list the repositories of an owner. Credentials are read from
the environment at the start of every operation, so a run that never talks
to a provider never needs them.
"""

from __future__ import annotations

import logging
import os
import re
from abc import ABC, abstractmethod
from urllib.parse import quote

import requests
from github import Auth, Github, GithubException

from .errors import InvalidURLError, MissingCredentialError, ProviderError
from .models import OwnerRepoFilters, ProviderRepo

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 60
PAGE_SIZE = 100

VISIBILITY_MODES = ("private", "internal", "public")


# =============================================================================
# URL helpers
# =============================================================================


def decompose_git_url(url: str) -> tuple[str, str, str]:
    """Split a git URL into host, full owner path and short name.

    ``git@gitlab.com:a/b/c.git`` becomes ``("gitlab.com", "a/b/c", "c")``.
    """
    stripped = re.sub(r"\.git$", "", url)
    stripped = re.sub(r"^https://", "", stripped)
    stripped = re.sub(r"^git@", "", stripped)
    stripped = stripped.replace(":", "/").strip("/")

    host, sep, full_name = stripped.partition("/")
    if not sep or not full_name:
        raise InvalidURLError(f"'{url}' has no owner path after the host")

    short_name = full_name.rsplit("/", 1)[-1]
    return host, full_name, short_name


def split_owner(full_name: str) -> tuple[str, str]:
    """Split ``owner/path/name`` into ``("owner/path", "name")``."""
    owner, sep, name = full_name.rpartition("/")
    if not sep or not owner or not name:
        raise InvalidURLError(f"'{full_name}' does not name an owner and a repository")
    return owner, name


def require_env(name: str) -> str:
    """Read a credential from the environment or fail the run."""
    value = os.environ.get(name)
    if not value:
        raise MissingCredentialError(f"environment variable {name} not found")
    return value


def generate_project_key(project_name: str) -> str:
    """Derive a Bitbucket project key from a project name."""
    return re.sub(r"[^a-zA-Z0-9_]", "", project_name).upper()


# =============================================================================
# Provider contract
# =============================================================================


class MirrorProvider(ABC):
    """Uniform view over a git hosting provider."""

    tag = ""

    def __init__(self, host: str, visibility: str = "private", project: str = ""):
        self.host = host
        self.visibility = visibility
        self.project = project

    @property
    def is_private(self) -> bool:
        return self.visibility != "public"

    @abstractmethod
    def repository_exists(self, owner: str, name: str, sha: str = "") -> bool:
        """True only when the lookup succeeds; any failure reads as missing."""

    @abstractmethod
    def create_repository(self, owner: str, name: str, description: str, sha: str = "") -> None:
        """Create the repository or raise ProviderError."""

    @abstractmethod
    def fetch_owner_repos(self, owner: str, filters: OwnerRepoFilters) -> list[ProviderRepo]:
        """List repositories belonging to an owner, user or group."""

    def ensure_mirror_exists(self, mirror_url: str, source_url: str, sha: str = "") -> None:
        """Create the mirror destination unless it already exists."""
        _, full_name, _ = decompose_git_url(mirror_url)
        owner, name = split_owner(full_name)
        if self.repository_exists(owner, name, sha):
            logger.debug("%s: %s repository '%s' exists", sha, self.tag, mirror_url)
            return
        logger.debug("%s: Creating new %s repository '%s'", sha, self.tag, mirror_url)
        self.create_repository(owner, name, f"Mirror of the '{source_url}'", sha)


# =============================================================================
# GitLab
# =============================================================================


GITLAB_ACCESS_LEVELS = {
    "unspecified": None,
    "min": 5,
    "guest": 10,
    "reporter": 20,
    "developer": 30,
    "maintainer": 40,
    "owner": 50,
}


class GitLabProvider(MirrorProvider):
    """GitLab REST API v4. A project is both repository and path component."""

    tag = "gitlab"

    @property
    def api_url(self) -> str:
        return f"https://{self.host}/api/v4"

    def _session(self) -> requests.Session:
        session = requests.Session()
        session.headers["PRIVATE-TOKEN"] = require_env("GITLAB_TOKEN")
        return session

    def repository_exists(self, owner: str, name: str, sha: str = "") -> bool:
        project_path = f"{owner}/{name}"
        logger.debug("%s: Checking repository '%s' '%s' existence", sha, self.host, project_path)
        with self._session() as session:
            try:
                response = session.get(
                    f"{self.api_url}/projects/{quote(project_path, safe='')}",
                    timeout=REQUEST_TIMEOUT,
                )
            except requests.RequestException as e:
                logger.debug("%s: project lookup failed: %s", sha, e)
                return False
        return response.status_code == 200

    def get_namespace(self, namespace_path: str, sha: str = "") -> dict | None:
        """Look up a user or group namespace by full path."""
        logger.debug("%s: Getting namespace '%s'", sha, namespace_path)
        with self._session() as session:
            try:
                response = session.get(
                    f"{self.api_url}/namespaces/{quote(namespace_path, safe='')}",
                    timeout=REQUEST_TIMEOUT,
                )
            except requests.RequestException as e:
                logger.debug("%s: namespace lookup failed: %s", sha, e)
                return None
        if response.status_code != 200:
            return None
        return response.json()

    def create_repository(self, owner: str, name: str, description: str, sha: str = "") -> None:
        namespace = self.get_namespace(owner, sha)
        if namespace is None:
            raise ProviderError(
                f"Group '{owner}' does not exist, please ensure it is created for mirrors"
            )

        payload: dict = {
            "name": name,
            "path": name,
            "description": description,
            "merge_requests_enabled": True,
            "visibility": self.visibility,
        }
        if namespace.get("kind") == "user":
            logger.debug("%s: Creating gitlab project '%s' for user '%s'", sha, name, owner)
        else:
            logger.debug("%s: Creating gitlab project '%s' in namespace '%s'", sha, name, owner)
            payload["namespace_id"] = namespace["id"]

        try:
            with self._session() as session:
                response = session.post(
                    f"{self.api_url}/projects", json=payload, timeout=REQUEST_TIMEOUT
                )
        except requests.RequestException as e:
            raise ProviderError(f"while trying to create gitlab project '{name}': {e}") from e
        if not response.ok:
            raise ProviderError(
                f"while trying to create gitlab project '{name}': "
                f"{response.status_code} {response.text[:200]}"
            )

    def _paginate(self, session: requests.Session, url: str, params: dict) -> list[dict]:
        items: list[dict] = []
        page = "1"
        while page:
            response = session.get(
                url, params={**params, "page": page}, timeout=REQUEST_TIMEOUT
            )
            if response.status_code != 200:
                raise ProviderError(
                    f"GitLab API {response.status_code} for {url}: {response.text[:200]}"
                )
            items.extend(response.json())
            page = response.headers.get("X-Next-Page", "")
        return items

    def _fetch_projects(
        self, session: requests.Session, owner: str, filters: OwnerRepoFilters
    ) -> list[dict]:
        """Projects of a group including subgroups, or of a user when owner is no group."""
        params: dict = {"per_page": PAGE_SIZE}
        if filters.gitlab_owned:
            params["owned"] = "true"
        if filters.gitlab_visibility:
            params["visibility"] = filters.gitlab_visibility

        group = quote(owner, safe="")
        response = session.get(f"{self.api_url}/groups/{group}", timeout=REQUEST_TIMEOUT)
        if response.status_code == 200:
            logger.debug("Fetching projects of gitlab group '%s'", owner)
            access_level = GITLAB_ACCESS_LEVELS.get(filters.gitlab_min_access_level)
            if access_level is not None:
                params["min_access_level"] = access_level
            params["include_subgroups"] = "true"
            return self._paginate(session, f"{self.api_url}/groups/{group}/projects", params)

        logger.debug("'%s' is not a gitlab group, fetching user projects", owner)
        return self._paginate(session, f"{self.api_url}/users/{group}/projects", params)

    def fetch_owner_repos(self, owner: str, filters: OwnerRepoFilters) -> list[ProviderRepo]:
        with self._session() as session:
            try:
                projects = self._fetch_projects(session, owner, filters)
            except requests.RequestException as e:
                raise ProviderError(f"Can't fetch repository list for '{owner}': {e}") from e

        repos = []
        for project in projects:
            namespace = project.get("namespace", {}).get("full_path", "")
            path_hint = ""
            if namespace.lower().startswith(owner.lower() + "/"):
                path_hint = namespace[len(owner) + 1 :]
            repos.append(
                ProviderRepo(
                    ssh_url=project.get("ssh_url_to_repo", ""),
                    https_url=project.get("http_url_to_repo", ""),
                    default_branch=project.get("default_branch") or "",
                    path_hint=path_hint,
                )
            )
        return repos


# =============================================================================
# GitHub
# =============================================================================


class GitHubProvider(MirrorProvider):
    """GitHub through PyGithub. Visibility is private unless set to public."""

    tag = "github"

    def _client(self) -> Github:
        auth = Auth.Token(require_env("GITHUB_TOKEN"))
        if self.host in ("github.com", "www.github.com"):
            return Github(auth=auth)
        return Github(base_url=f"https://{self.host}/api/v3", auth=auth)

    def repository_exists(self, owner: str, name: str, sha: str = "") -> bool:
        client = self._client()
        try:
            repo = client.get_repo(f"{owner}/{name}")
        except (GithubException, requests.RequestException) as e:
            logger.debug("%s: github lookup of '%s/%s' failed: %s", sha, owner, name, e)
            return False
        logger.debug("%s: found github repository '%s'", sha, repo.full_name)
        return True

    def create_repository(self, owner: str, name: str, description: str, sha: str = "") -> None:
        client = self._client()
        try:
            user = client.get_user()
            if user.login.lower() == owner.lower():
                user.create_repo(name, description=description, private=self.is_private)
            else:
                client.get_organization(owner).create_repo(
                    name, description=description, private=self.is_private
                )
        except (GithubException, requests.RequestException) as e:
            raise ProviderError(f"while trying to create github repository '{name}': {e}") from e

    def fetch_owner_repos(self, owner: str, filters: OwnerRepoFilters) -> list[ProviderRepo]:
        client = self._client()
        try:
            user = client.get_user()
            listing = user.get_repos(
                visibility=filters.github_visibility,
                affiliation=filters.github_affiliation,
            )
            return [
                ProviderRepo(
                    ssh_url=repo.ssh_url,
                    https_url=repo.clone_url,
                    default_branch=repo.default_branch or "",
                )
                for repo in listing
                if repo.owner.login.lower() == owner.lower()
            ]
        except (GithubException, requests.RequestException) as e:
            raise ProviderError(f"Can't fetch repository list for '{owner}': {e}") from e


# =============================================================================
# Bitbucket
# =============================================================================


class BitbucketProvider(MirrorProvider):
    """Bitbucket Cloud REST API 2.0 with username and app password."""

    tag = "bitbucket"
    api_url = "https://api.bitbucket.org/2.0"

    def _session(self) -> requests.Session:
        session = requests.Session()
        session.auth = (require_env("BITBUCKET_USERNAME"), require_env("BITBUCKET_TOKEN"))
        return session

    def repository_exists(self, owner: str, name: str, sha: str = "") -> bool:
        with self._session() as session:
            try:
                response = session.get(
                    f"{self.api_url}/repositories/{owner}/{name}", timeout=REQUEST_TIMEOUT
                )
            except requests.RequestException as e:
                logger.debug("%s: Error fetching repository '%s/%s': %s", sha, owner, name, e)
                return False
        return response.status_code == 200

    def project_exists(self, session: requests.Session, workspace: str, key: str, sha: str = "") -> bool:
        try:
            response = session.get(
                f"{self.api_url}/workspaces/{workspace}/projects/{key}", timeout=REQUEST_TIMEOUT
            )
        except requests.RequestException as e:
            logger.debug("%s: Error fetching project '%s' in '%s': %s", sha, key, workspace, e)
            return False
        return response.status_code == 200

    def create_repository(self, owner: str, name: str, description: str, sha: str = "") -> None:
        payload: dict = {
            "scm": "git",
            "is_private": self.is_private,
            "description": description,
        }
        with self._session() as session:
            if self.project:
                key = generate_project_key(self.project)
                if self.project_exists(session, owner, key, sha):
                    payload["project"] = {"key": key}
                else:
                    logger.warning(
                        "%s: bitbucket project '%s' not found, creating without it", sha, key
                    )
            logger.debug("%s: Creating repository with parameters: %s", sha, payload)

            try:
                response = session.post(
                    f"{self.api_url}/repositories/{owner}/{name}",
                    json=payload,
                    timeout=REQUEST_TIMEOUT,
                )
            except requests.RequestException as e:
                raise ProviderError(
                    f"while trying to create bitbucket repository '{name}': {e}"
                ) from e
        if not response.ok:
            raise ProviderError(
                f"while trying to create bitbucket repository '{owner}/{name}': "
                f"{response.status_code} {response.text[:200]}"
            )

    def fetch_owner_repos(self, owner: str, filters: OwnerRepoFilters) -> list[ProviderRepo]:
        with self._session() as session:
            return self._fetch_pages(session, owner, filters)

    def _fetch_pages(
        self, session: requests.Session, owner: str, filters: OwnerRepoFilters
    ) -> list[ProviderRepo]:
        url: str | None = f"{self.api_url}/repositories/{owner}"
        params: dict = {"role": filters.bitbucket_role, "pagelen": PAGE_SIZE}
        repos = []
        while url:
            try:
                response = session.get(url, params=params, timeout=REQUEST_TIMEOUT)
            except requests.RequestException as e:
                raise ProviderError(f"Can't fetch repository list for '{owner}': {e}") from e
            if response.status_code != 200:
                raise ProviderError(
                    f"Can't fetch repository list for '{owner}': "
                    f"{response.status_code} {response.text[:200]}"
                )
            data = response.json()
            for item in data.get("values", []):
                clones = {c.get("name"): c.get("href", "") for c in item.get("links", {}).get("clone", [])}
                repos.append(
                    ProviderRepo(
                        ssh_url=clones.get("ssh", ""),
                        https_url=clones.get("https", ""),
                        default_branch=(item.get("mainbranch") or {}).get("name", ""),
                    )
                )
            url = data.get("next")
            params = {}
        return repos


PROVIDERS: dict[str, type[MirrorProvider]] = {
    GitLabProvider.tag: GitLabProvider,
    GitHubProvider.tag: GitHubProvider,
    BitbucketProvider.tag: BitbucketProvider,
}


def select_provider(
    tag: str,
    host: str,
    visibility: str = "private",
    project: str = "",
) -> MirrorProvider:
    """Pick the provider implementation for a tag; unknown tags are fatal."""
    provider_cls = PROVIDERS.get(tag)
    if provider_cls is None:
        raise ProviderError(f"unknown '{tag}' git mirror provider")
    if visibility not in VISIBILITY_MODES:
        raise ProviderError(f"unknown '{visibility}' mirror visibility mode")
    return provider_cls(host, visibility=visibility, project=project)
