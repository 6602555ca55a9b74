"""Shared fixtures for gitpublisher tests.

Provides an in-memory :class:`~gitpublisher.git_client.GitClient` that
records every call, so publishing logic can be tested without a repository
or network access.
"""

from __future__ import annotations

from collections.abc import Mapping
from io import StringIO
from pathlib import Path
from typing import Any, Callable

import pytest
from git import GitCommandError

from gitpublisher.build import Build, BuildLog, BuildResult, BuildResultHandle
from gitpublisher.config import PublishSettings
from gitpublisher.environment import Environment
from gitpublisher.publishers.base import PublishContext
from gitpublisher.scm import GitScmConfig, MergeOptions, RemoteConfig


class RecordingGitRepo:
    """State shared by every client opened on the fake repository.

    Attributes:
        tags: Tags existing in the repository
        calls: Every git operation, as ``(operation, *args)`` tuples
        failing_pushes: Refspecs whose push raises GitCommandError
        opened: Number of clients opened
        closed: Number of clients closed
        environments: Environment passed to each opened client
    """

    def __init__(self) -> None:
        self.tags: set[str] = set()
        self.calls: list[tuple[Any, ...]] = []
        self.failing_pushes: set[str] = set()
        self.opened = 0
        self.closed = 0
        self.environments: list[dict[str, str]] = []

    def factory(self, repo_path: Path, environment: Mapping[str, str]) -> RecordingGitClient:
        self.opened += 1
        self.environments.append(dict(environment))
        return RecordingGitClient(self)

    @property
    def pushes(self) -> list[tuple[str, str]]:
        """``(remote name, refspec)`` of every push call."""
        return [(call[1], call[2]) for call in self.calls if call[0] == "push"]

    def operations(self) -> list[str]:
        return [call[0] for call in self.calls]


class RecordingGitClient:
    """GitClient test double operating on a :class:`RecordingGitRepo`."""

    def __init__(self, repo: RecordingGitRepo) -> None:
        self.repo = repo

    def tag_exists(self, name: str) -> bool:
        self.repo.calls.append(("tag_exists", name))
        return name in self.repo.tags

    def tag(self, name: str, message: str) -> None:
        self.repo.calls.append(("tag", name, message))
        self.repo.tags.add(name)

    def delete_tag(self, name: str) -> None:
        self.repo.calls.append(("delete_tag", name))
        self.repo.tags.discard(name)

    def push(self, remote: RemoteConfig, refspec: str) -> None:
        self.repo.calls.append(("push", remote.name, refspec))
        if refspec in self.repo.failing_pushes:
            raise GitCommandError("push", f"rejected {refspec}")

    def close(self) -> None:
        self.repo.closed += 1


@pytest.fixture
def git_repo() -> RecordingGitRepo:
    """Create an empty recording repository."""
    return RecordingGitRepo()


@pytest.fixture
def scm() -> GitScmConfig:
    """Git SCM configuration with two remotes, merging into origin/main."""
    return GitScmConfig(
        remotes=[
            RemoteConfig(name="origin", urls=["https://git.example.com/team/api.git"]),
            RemoteConfig(name="mirror", urls=["https://mirror.example.com/api.git"]),
        ],
        merge_options=MergeOptions(merge_remote="origin", merge_target="main"),
    )


@pytest.fixture
def log_stream() -> StringIO:
    """Capture stream for build log output."""
    return StringIO()


@pytest.fixture
def make_build(scm: GitScmConfig, log_stream: StringIO, tmp_path: Path) -> Callable[..., Build]:
    """Factory for finished builds of the ``api`` job."""

    def _make_build(
        result: BuildResult = BuildResult.SUCCESS,
        number: int = 42,
        **overrides: Any,
    ) -> Build:
        values: dict[str, Any] = {
            "job_name": "api",
            "number": number,
            "workspace": tmp_path,
            "scm": scm,
            "result_handle": BuildResultHandle(result),
            "log": BuildLog(log_stream),
            "environment_provider": lambda: {"GIT_BRANCH": "feature-x"},
        }
        values.update(overrides)
        return Build(**values)

    return _make_build


@pytest.fixture
def make_context(
    scm: GitScmConfig,
    git_repo: RecordingGitRepo,
    log_stream: StringIO,
    tmp_path: Path,
) -> Callable[..., PublishContext]:
    """Factory for publish contexts backed by the recording repository."""

    def _make_context(
        build_result: BuildResult = BuildResult.SUCCESS,
        **overrides: Any,
    ) -> PublishContext:
        values: dict[str, Any] = {
            "job_name": "api",
            "build_number": 42,
            "build_result": build_result,
            "result_handle": BuildResultHandle(build_result),
            "scm": scm,
            "environment": Environment(BUILD_NUMBER="42", GIT_BRANCH="feature-x"),
            "working_directory": tmp_path,
            "log": BuildLog(log_stream),
            "settings": PublishSettings(),
            "client_factory": git_repo.factory,
        }
        values.update(overrides)
        return PublishContext(**values)

    return _make_context
