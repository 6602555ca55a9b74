"""Post-build git publisher.

:class:`GitPublisher` is the entry point invoked once a build is finished.
It applies the publishing policy of the job and runs the publishing stages:

1. Matrix configuration runs are skipped; the matrix build publishes once
   through :class:`MatrixAggregator` when all configurations are done.
2. Jobs without git SCM configuration have nothing to publish (failure).
3. With ``push_only_if_success``, unsuccessful builds are skipped (success).
4. The environment is captured once and identity overrides applied.
5. The merge-tag, tag and branch stages run in that order against the same
   working directory. A stage that fails does not prevent the next one.

The publisher never raises: operational failures force the build result to
FAILURE and make :meth:`GitPublisher.perform` return False.

Example usage:
    >>> publisher = GitPublisher(PublishConfig.from_stored(stored))
    >>> ok = publisher.perform(build)
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from gitpublisher.build import Build, BuildResult
from gitpublisher.config import PublishSettings
from gitpublisher.environment import Environment
from gitpublisher.git_client import GitClientFactory, open_git_client
from gitpublisher.logging import bind_build_context, clear_build_context
from gitpublisher.models import PublishConfig
from gitpublisher.publishers import (
    BranchPublisher,
    MergeTagPublisher,
    PublishContext,
    TagPublisher,
)
from gitpublisher.scm import GitScmConfig

logger = structlog.get_logger(__name__)

STAGE_MERGE = "merge"
STAGE_TAGS = "tags"
STAGE_BRANCHES = "branches"


@dataclass
class PublishOutcome:
    """Result of one publish invocation.

    Attributes:
        success: True if every stage that ran succeeded (or was skipped)
        result: Build result after publishing
        stages: Result of each stage that ran, by stage name
    """

    success: bool
    result: BuildResult
    stages: dict[str, bool] = field(default_factory=dict)


class GitPublisher:
    """Publishes the result of a build to the job's git remotes.

    Attributes:
        config: Publish configuration of the job
        settings: Publishing settings
        client_factory: Creates the git client used by each operation
    """

    def __init__(
        self,
        config: PublishConfig,
        settings: PublishSettings | None = None,
        client_factory: GitClientFactory = open_git_client,
    ) -> None:
        """Initialize the publisher.

        Args:
            config: Publish configuration of the job
            settings: Publishing settings (defaults when None)
            client_factory: Git client factory, GitPython-backed by default
        """
        self.config = config
        self.settings = settings if settings is not None else PublishSettings()
        self.client_factory = client_factory

        self.merge_tag_publisher = MergeTagPublisher()
        self.tag_publisher = TagPublisher(
            continue_on_entry_error=self.settings.tags_continue_on_entry_error
        )
        self.branch_publisher = BranchPublisher(
            continue_on_entry_error=self.settings.branches_continue_on_entry_error
        )
        self._logger = logger.bind(component="GitPublisher")

    def perform(self, build: Build) -> bool:
        """Per-build hook: publish ``build`` unless it is a matrix run.

        Args:
            build: The finished build

        Returns:
            True if publishing succeeded or was skipped on purpose
        """
        if build.is_matrix_run:
            # The matrix build publishes once, from its aggregator
            self._logger.debug(
                "matrix_run_skipped", job_name=build.job_name, build_number=build.number
            )
            return True
        return self.publish(build).success

    def create_aggregator(self, build: Build) -> MatrixAggregator:
        """Create the aggregation hook of a matrix ``build``."""
        return MatrixAggregator(self, build)

    def publish(self, build: Build) -> PublishOutcome:
        """Run the publishing policy and stages for ``build``.

        Args:
            build: The finished build (never a matrix run)

        Returns:
            Outcome of the run
        """
        bind_build_context(job_name=build.job_name, build_number=build.number)
        try:
            return self._publish(build)
        finally:
            clear_build_context()

    def _publish(self, build: Build) -> PublishOutcome:
        scm = build.scm
        if not isinstance(scm, GitScmConfig):
            build.log.println("The job is not configured with git, so no pushing will occur.")
            self._logger.warning(
                "publish_skipped_no_git",
                scm_kind=scm.kind if scm is not None else None,
            )
            return PublishOutcome(success=False, result=build.result)

        build_result = build.result
        if self.config.push_only_if_success and build_result.is_worse_than(BuildResult.SUCCESS):
            build.log.println(
                "Build did not succeed and the project is configured to only push "
                "after a successful build, so no pushing will occur."
            )
            self._logger.info("publish_skipped_unsuccessful", build_result=build_result.value)
            return PublishOutcome(success=True, result=build.result)

        ctx = PublishContext(
            job_name=build.job_name,
            build_number=build.number,
            build_result=build_result,
            result_handle=build.result_handle,
            scm=scm,
            environment=self._capture_environment(build, scm),
            working_directory=self._working_directory(build.workspace, scm),
            log=build.log,
            settings=self.settings,
            client_factory=self.client_factory,
        )

        self._logger.info(
            "publish_started",
            build_result=build_result.value,
            push_merge=self.config.push_merge,
            tag_count=len(self.config.tags_to_push),
            branch_count=len(self.config.branches_to_push),
            working_directory=str(ctx.working_directory),
        )

        stages: dict[str, bool] = {}
        if self.config.push_merge:
            stages[STAGE_MERGE] = self._run_stage(
                ctx, STAGE_MERGE, lambda: self.merge_tag_publisher.publish(ctx)
            )
        if self.config.is_push_tags:
            stages[STAGE_TAGS] = self._run_stage(
                ctx, STAGE_TAGS, lambda: self.tag_publisher.publish(ctx, self.config.tags_to_push)
            )
        if self.config.is_push_branches:
            stages[STAGE_BRANCHES] = self._run_stage(
                ctx,
                STAGE_BRANCHES,
                lambda: self.branch_publisher.publish(ctx, self.config.branches_to_push),
            )

        outcome = PublishOutcome(
            success=all(stages.values()),
            result=build.result,
            stages=stages,
        )
        self._logger.info(
            "publish_completed",
            success=outcome.success,
            build_result=outcome.result.value,
            stages=stages,
        )
        return outcome

    def _run_stage(self, ctx: PublishContext, name: str, stage: Callable[[], bool]) -> bool:
        """Run one stage; an exception fails the stage and the build."""
        try:
            return stage()
        except Exception as e:
            ctx.log.error(f"Unexpected error while publishing {name}", e)
            ctx.mark_failed()
            self._logger.error(
                "publish_stage_failed",
                stage=name,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

    def _capture_environment(self, build: Build, scm: GitScmConfig) -> Environment:
        try:
            environment = build.get_environment()
        except Exception as e:
            build.log.error("Failed to capture the build environment, publishing without it", e)
            self._logger.error(
                "environment_capture_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            environment = Environment()

        environment.override_identity(scm.git_config_name, scm.git_config_email)
        return environment

    @staticmethod
    def _working_directory(workspace: Path, scm: GitScmConfig) -> Path:
        if scm.relative_target_dir:
            return workspace / scm.relative_target_dir
        return workspace


class MatrixAggregator:
    """Aggregation hook of a matrix build.

    Configuration runs of the matrix report to :meth:`end_run`, which does
    nothing; the publisher runs once, from :meth:`end_build`, when the
    whole matrix is finished.

    Attributes:
        publisher: Publisher of the matrix job
        build: The matrix build (the aggregate, not a configuration run)
        completed_runs: Number of configuration runs reported so far
    """

    def __init__(self, publisher: GitPublisher, build: Build) -> None:
        self.publisher = publisher
        self.build = build
        self.completed_runs = 0

    def start_build(self) -> bool:
        return True

    def end_run(self, run: Build) -> bool:
        """Record a finished configuration run; nothing is published."""
        self.completed_runs += 1
        logger.debug(
            "matrix_run_completed",
            job_name=run.job_name,
            build_number=run.number,
            build_result=run.result.value,
        )
        return True

    def end_build(self) -> bool:
        """Publish the matrix build once all runs are complete."""
        logger.info(
            "matrix_build_completed",
            job_name=self.build.job_name,
            build_number=self.build.number,
            completed_runs=self.completed_runs,
        )
        return self.publisher.publish(self.build).success
