"""Gitfile loading and generation.

A Gitfile is a YAML list of repository records::

    - url: git@github.com:acme/service.git
      path: backend
      ref: main
      symlinks:
        - ../links/service
"""

from __future__ import annotations

import logging
import posixpath
from collections.abc import Iterable
from pathlib import Path

import yaml

from .errors import ConfigError
from .models import ProviderRepo, RepositorySpec

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "Gitfile"


def default_config_path() -> Path:
    """Gitfile in the current working directory."""
    return Path.cwd() / DEFAULT_CONFIG_NAME


def default_ignore_path(config_path: Path) -> Path:
    """Ignore file that sits next to a config file: ``Gitfile.ignore``."""
    return config_path.with_name(f"{config_path.name}.ignore")


def _read_records(path: Path) -> list[RepositorySpec]:
    try:
        with open(path.expanduser(), encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"{path}: {e.strerror or e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"{path}: {e}") from e

    if data is None:
        return []
    if not isinstance(data, list):
        raise ConfigError(f"{path}: expected a list of repositories")
    return [RepositorySpec.from_dict(record, source=str(path)) for record in data]


def load_config_files(paths: Iterable[Path]) -> list[RepositorySpec]:
    """Concatenate repositories from config files in order. Missing files are fatal."""
    specs: list[RepositorySpec] = []
    for path in paths:
        records = _read_records(path)
        logger.debug("Loaded %d repositories from '%s'", len(records), path)
        specs.extend(records)
    return specs


def load_ignore_files(paths: Iterable[Path]) -> list[RepositorySpec]:
    """Concatenate ignore entries. A missing ignore file only logs a warning."""
    entries: list[RepositorySpec] = []
    for path in paths:
        if not path.expanduser().exists():
            logger.warning("Ignore file '%s' not found, nothing ignored from it", path)
            continue
        entries.extend(_read_records(path))
    return entries


def should_ignore(url: str, ignore: Iterable[RepositorySpec]) -> bool:
    """True when url exactly matches the url of an ignore entry."""
    return any(entry.url == url for entry in ignore)


def partition_ignored(
    specs: Iterable[RepositorySpec], ignore: Iterable[RepositorySpec]
) -> tuple[list[RepositorySpec], list[RepositorySpec]]:
    """Split specs into (kept, ignored), preserving order."""
    ignore_list = list(ignore)
    kept: list[RepositorySpec] = []
    ignored: list[RepositorySpec] = []
    for spec in specs:
        (ignored if should_ignore(spec.url, ignore_list) else kept).append(spec)
    return kept, ignored


def build_specs_from_provider(
    repos: Iterable[ProviderRepo],
    ignore: Iterable[RepositorySpec] = (),
    target_clone_path: str = "",
    use_ssh: bool = True,
) -> list[RepositorySpec]:
    """Turn enumerated provider repositories into Gitfile records."""
    ignore_list = list(ignore)
    specs = []
    for repo in repos:
        url = repo.ssh_url if use_ssh else repo.https_url
        if not url:
            logger.debug("Skipping repository without %s url: %s", "ssh" if use_ssh else "https", repo)
            continue
        if should_ignore(url, ignore_list):
            logger.debug("Ignoring '%s'", url)
            continue
        path = target_clone_path
        if repo.path_hint:
            path = posixpath.join(target_clone_path, repo.path_hint) if path else repo.path_hint
        specs.append(RepositorySpec(url=url, path=path, ref=repo.default_branch))
    return specs


def write_config(path: Path, specs: list[RepositorySpec]) -> bool:
    """Write a Gitfile. Nothing is written for an empty list."""
    if not specs:
        logger.warning("No repositories found, '%s' not written", path)
        return False
    try:
        with open(path.expanduser(), "w", encoding="utf-8") as f:
            yaml.safe_dump(
                [spec.to_dict() for spec in specs],
                f,
                default_flow_style=False,
                sort_keys=False,
            )
    except OSError as e:
        raise ConfigError(f"{path}: {e.strerror or e}") from e
    logger.info("Wrote %d repositories to '%s'", len(specs), path)
    return True
