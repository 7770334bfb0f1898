import json
from unittest.mock import MagicMock, patch

import pytest
import requests
import yaml
from typer.testing import CliRunner

from git_get import __version__
from git_get.core import app
from git_get.models import ProviderRepo

cli = CliRunner()


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def fake_git(make_runner, monkeypatch):
    runner = make_runner(branch="master")
    monkeypatch.setattr("git_get.core.ShellRunner", lambda: runner)
    return runner


def test_version():
    result = cli.invoke(app, ["version"])
    assert result.exit_code == 0
    assert result.stdout.strip() == f"git-get {__version__}"


def test_version_long():
    result = cli.invoke(app, ["version", "--long"])
    assert result.exit_code == 0
    assert result.stdout.startswith(f"git-get {__version__} python ")


def test_version_flag():
    result = cli.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout


class TestGet:
    def test_missing_gitfile_exits_1(self, workspace, fake_git):
        result = cli.invoke(app, ["get", "-l", "error"])

        assert result.exit_code == 1
        assert "Error" in result.output
        assert fake_git.commands == []

    def test_unknown_log_level_exits_1(self, workspace, fake_git):
        (workspace / "Gitfile").write_text("- url: git@github.com:acme/alpha.git\n")
        result = cli.invoke(app, ["get", "-l", "verbose"])
        assert result.exit_code == 1

    def test_json_summary(self, workspace, fake_git):
        (workspace / "Gitfile").write_text(
            "- url: git@github.com:acme/alpha.git\n- url: git@github.com:acme/beta.git\n"
        )
        (workspace / "Gitfile.ignore").write_text("- url: git@github.com:acme/beta.git\n")
        (workspace / "alpha").mkdir()

        result = cli.invoke(app, ["get", "--json", "-l", "error", "-c", "2"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        alpha, beta = data["repositories"]
        assert alpha["processed"] and alpha["clean"]
        assert beta["skipped"]
        assert data["summary"]["skipped"] == 1
        assert fake_git.count("pull", "-f") == 1

    def test_explicit_config_and_default_branch(self, workspace, fake_git):
        config = workspace / "repos.yaml"
        config.write_text("- url: git@github.com:acme/alpha.git\n  path: libs\n")

        result = cli.invoke(app, ["get", "-f", str(config), "-b", "main", "-l", "error"])

        assert result.exit_code == 0, result.output
        assert fake_git.commands == [
            ("clone", "--branch", "main", "git@github.com:acme/alpha.git", str(workspace / "libs" / "alpha")),
        ]


class TestMirror:
    def test_requires_mirror_url(self, workspace):
        result = cli.invoke(app, ["mirror"])
        assert result.exit_code != 0

    def test_unknown_provider_exits_1(self, workspace, fake_git):
        (workspace / "Gitfile").write_text("- url: git@github.com:acme/alpha.git\n")

        result = cli.invoke(app, ["mirror", "-u", "git@gitlab.com:mirrors", "-m", "gitea", "-l", "error"])

        assert result.exit_code == 1
        assert fake_git.commands == []

    def test_dry_run(self, workspace, fake_git):
        (workspace / "Gitfile").write_text("- url: git@github.com:acme/alpha.git\n")

        result = cli.invoke(
            app, ["mirror", "-u", "git@gitlab.com:mirrors/", "--dry-run", "--json", "-l", "error"]
        )

        assert result.exit_code == 0, result.output
        assert fake_git.count("clone", "--mirror") == 1
        assert fake_git.count("push") == 0
        assert json.loads(result.stdout)["summary"]["processed"] == 1


class TestConfigGen:
    def test_writes_gitfile(self, workspace, monkeypatch):
        provider = MagicMock()
        provider.fetch_owner_repos.return_value = [
            ProviderRepo(
                ssh_url="git@github.com:acme/alpha.git",
                https_url="https://github.com/acme/alpha.git",
                default_branch="main",
            )
        ]
        select = MagicMock(return_value=provider)
        monkeypatch.setattr("git_get.core.select_provider", select)

        result = cli.invoke(
            app, ["config-gen", "-p", "github", "-u", "git@github.com:acme", "-t", "src", "--https"]
        )

        assert result.exit_code == 0, result.output
        select.assert_called_once_with("github", "github.com")
        assert provider.fetch_owner_repos.call_args.args[0] == "acme"
        assert yaml.safe_load((workspace / "Gitfile").read_text()) == [
            {"url": "https://github.com/acme/alpha.git", "path": "src", "ref": "main"}
        ]

    def test_nothing_found_writes_nothing(self, workspace, monkeypatch):
        provider = MagicMock()
        provider.fetch_owner_repos.return_value = []
        monkeypatch.setattr("git_get.core.select_provider", MagicMock(return_value=provider))

        result = cli.invoke(app, ["config-gen", "-u", "git@gitlab.com:devops"])

        assert result.exit_code == 0
        assert not (workspace / "Gitfile").exists()

    def test_missing_token_exits_1(self, workspace, monkeypatch):
        monkeypatch.delenv("GITLAB_TOKEN", raising=False)

        result = cli.invoke(app, ["config-gen", "-u", "git@gitlab.com:devops", "-l", "error"])

        assert result.exit_code == 1
        assert "GITLAB_TOKEN" in result.output

    def test_provider_network_failure_exits_1(self, workspace, monkeypatch):
        monkeypatch.setenv("GITLAB_TOKEN", "glpat-test")
        with patch("git_get.providers.requests.Session") as session_cls:
            session = session_cls.return_value
            session.__enter__.return_value = session
            session.get.side_effect = requests.ConnectionError("connection refused")

            result = cli.invoke(app, ["config-gen", "-p", "gitlab", "-u", "git@gitlab.com:devops", "-l", "error"])

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "Error" in result.output
        assert "connection refused" in result.output
        assert not (workspace / "Gitfile").exists()
