"""Unit tests for the git SCM configuration and remote resolution."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from gitpublisher.scm import GitScmConfig, MergeOptions, RemoteConfig, ScmConfig


class TestRemoteResolution:
    """Test resolving logical repository names to remotes."""

    def test_resolves_by_exact_name(self, scm: GitScmConfig) -> None:
        remote = scm.get_repository_by_name("mirror")
        assert remote is not None
        assert remote.push_url == "https://mirror.example.com/api.git"

    def test_unknown_name(self, scm: GitScmConfig) -> None:
        assert scm.get_repository_by_name("upstream") is None

    def test_name_is_case_sensitive(self, scm: GitScmConfig) -> None:
        assert scm.get_repository_by_name("Origin") is None

    def test_none_name(self, scm: GitScmConfig) -> None:
        assert scm.get_repository_by_name(None) is None

    def test_merge_remote(self, scm: GitScmConfig) -> None:
        remote = scm.get_merge_remote()
        assert remote is not None
        assert remote.name == "origin"


class TestMergeOptions:
    """Test merge option semantics."""

    def test_no_target_means_no_merge(self) -> None:
        assert MergeOptions().do_merge() is False
        assert MergeOptions(merge_remote="origin").do_merge() is False

    def test_target_means_merge(self) -> None:
        assert MergeOptions(merge_remote="origin", merge_target="main").do_merge() is True

    def test_merge_remote_must_be_configured(self) -> None:
        """Test that merging into an unknown remote is rejected."""
        with pytest.raises(ValidationError, match="not a configured remote"):
            GitScmConfig(
                remotes=[RemoteConfig(name="origin", urls=["file:///tmp/origin.git"])],
                merge_options=MergeOptions(merge_remote="upstream", merge_target="main"),
            )

    def test_unused_merge_remote_not_validated(self) -> None:
        """Test that an unknown remote is fine when no merge is requested."""
        config = GitScmConfig(merge_options=MergeOptions(merge_remote="upstream"))
        assert config.get_merge_remote() is None


class TestScmConfigShape:
    """Test loading SCM configuration from stored data."""

    def test_camel_case_keys(self) -> None:
        config = GitScmConfig.model_validate(
            {
                "remotes": [{"name": "origin", "urls": ["u"], "pushRefspecs": ["+refs/heads/*"]}],
                "mergeOptions": {"mergeRemote": "origin", "mergeTarget": "release"},
                "gitConfigName": "CI Bot",
                "relativeTargetDir": "checkout",
            }
        )
        assert config.kind == "git"
        assert config.remotes[0].push_refspecs == ["+refs/heads/*"]
        assert config.merge_options.merge_target == "release"
        assert config.git_config_name == "CI Bot"
        assert config.relative_target_dir == "checkout"

    def test_remote_without_url(self) -> None:
        assert RemoteConfig(name="origin").push_url is None

    def test_remote_requires_name(self) -> None:
        with pytest.raises(ValidationError):
            RemoteConfig(name="")

    def test_plain_scm_is_not_git(self) -> None:
        assert not isinstance(ScmConfig(kind="svn"), GitScmConfig)
