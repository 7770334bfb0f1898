import pytest

from git_get.errors import ConfigError
from git_get.models import FleetSummary, RepositorySpec, RepositoryStatus


class TestRepositorySpec:
    def test_single_symlink_string(self):
        spec = RepositorySpec.from_dict({"url": "u", "symlinks": "../link"})
        assert spec.symlinks == ("../link",)

    def test_not_a_mapping(self):
        with pytest.raises(ConfigError, match="Gitfile: repository entry must be a mapping"):
            RepositorySpec.from_dict("git@github.com:acme/alpha.git", source="Gitfile")

    def test_to_dict_omits_empty_fields(self):
        assert RepositorySpec(url="u").to_dict() == {"url": "u"}
        assert RepositorySpec(url="u", altname="a", symlinks=("l",)).to_dict() == {
            "url": "u",
            "altname": "a",
            "symlinks": ["l"],
        }


class TestRepositoryStatus:
    def test_unprocessed_is_not_clean(self):
        assert not RepositoryStatus(url="u").clean

    @pytest.mark.parametrize(
        "flag", ["error", "uncommitted_changes", "not_on_ref_branch", "skipped"]
    )
    def test_any_flag_breaks_clean(self, flag):
        status = RepositoryStatus(url="u", processed=True)
        assert status.clean
        setattr(status, flag, True)
        assert not status.clean

    def test_to_dict_includes_clean(self):
        data = RepositoryStatus(url="u", processed=True).to_dict()
        assert data["clean"] is True
        assert data["url"] == "u"


def test_summary_counts():
    statuses = [
        RepositoryStatus(url="a", processed=True),
        RepositoryStatus(url="b", processed=True, uncommitted_changes=True, error=True),
        RepositoryStatus(url="c", processed=True, not_on_ref_branch=True),
        RepositoryStatus(url="d", skipped=True),
    ]

    summary = FleetSummary.from_statuses(statuses)

    assert summary.to_dict() == {
        "total": 4,
        "processed": 3,
        "local_changes": 1,
        "not_on_ref": 1,
        "errors": 1,
        "skipped": 1,
        "clean": 1,
    }
