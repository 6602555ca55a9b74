"""Shared state of a publish run."""

from __future__ import annotations

from contextlib import closing
from dataclasses import dataclass
from pathlib import Path

from gitpublisher.build import BuildLog, BuildResult, BuildResultHandle
from gitpublisher.config import PublishSettings
from gitpublisher.environment import Environment
from gitpublisher.git_client import GitClient, GitClientFactory
from gitpublisher.scm import GitScmConfig


@dataclass
class PublishContext:
    """Everything the publishing stages of one run share.

    All stages of a run work on the same working directory and the same
    environment snapshot, captured once before the first stage.

    Attributes:
        job_name: Name of the published job
        build_number: Number of the published build
        build_result: Result of the build when publishing started
        result_handle: Build result; stages force it to FAILURE on errors
        scm: Git configuration of the job
        environment: Build environment used for expansion and git commands
        working_directory: Repository checkout the stages operate on
        log: Build console log
        settings: Publishing settings
        client_factory: Creates git clients for the working directory
    """

    job_name: str
    build_number: int
    build_result: BuildResult
    result_handle: BuildResultHandle
    scm: GitScmConfig
    environment: Environment
    working_directory: Path
    log: BuildLog
    settings: PublishSettings
    client_factory: GitClientFactory

    def open_client(self) -> closing[GitClient]:
        """Acquire a git client, closed when the ``with`` block exits."""
        return closing(self.client_factory(self.working_directory, self.environment))

    def mark_failed(self) -> None:
        """Force the build result to FAILURE."""
        self.result_handle.worsen(BuildResult.FAILURE)
