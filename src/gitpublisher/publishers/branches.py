"""Publishing of HEAD to the job's configured branches."""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from gitpublisher.models import BranchSpec, is_blank
from gitpublisher.publishers.base import PublishContext

logger = structlog.get_logger(__name__)


class BranchPublisher:
    """Pushes HEAD to each configured branch.

    Unknown remotes and failed pushes only fail their own entry. An entry
    missing its branch or repository name stops the whole stage unless
    ``continue_on_entry_error`` is set.

    Attributes:
        continue_on_entry_error: Keep going after an entry without a branch
            or repository name
    """

    def __init__(self, continue_on_entry_error: bool = False) -> None:
        self.continue_on_entry_error = continue_on_entry_error
        self._logger = logger.bind(component="BranchPublisher")

    def publish(self, ctx: PublishContext, specs: Sequence[BranchSpec]) -> bool:
        """Push HEAD to every configured branch, in order.

        Args:
            ctx: Publish run context
            specs: Branches to push to

        Returns:
            True if HEAD was pushed to every branch
        """
        all_branches_result = True

        for index, spec in enumerate(specs):
            entry_error = None
            if is_blank(spec.branch_name):
                entry_error = "No branch to push defined"
            elif is_blank(spec.target_repo_name):
                entry_error = "No branch repo to push to defined"

            if entry_error is not None:
                ctx.log.println(entry_error)
                if not self.continue_on_entry_error:
                    self._logger.warning(
                        "branch_stage_aborted",
                        reason=entry_error,
                        skipped_entries=len(specs) - index - 1,
                    )
                    return False
                self._logger.warning("branch_entry_invalid", reason=entry_error)
                all_branches_result = False
                continue

            if not self._publish_branch(ctx, spec):
                all_branches_result = False

        return all_branches_result

    def _publish_branch(self, ctx: PublishContext, spec: BranchSpec) -> bool:
        branch_name = ctx.environment.expand(spec.branch_name)
        target_repo = ctx.environment.expand(spec.target_repo_name)

        try:
            with ctx.open_client() as client:
                remote = ctx.scm.get_repository_by_name(target_repo)
                if remote is None:
                    ctx.log.println(f"No repository found for target repo name {target_repo}")
                    self._logger.warning(
                        "branch_remote_not_found", branch=branch_name, target_repo=target_repo
                    )
                    return False

                ctx.log.println(f"Pushing HEAD to branch {branch_name} at repo {target_repo}")
                client.push(remote, f"HEAD:{branch_name}")

        except Exception as e:
            ctx.log.error(f"Failed to push branch {branch_name} to {target_repo}", e)
            ctx.mark_failed()
            self._logger.error(
                "branch_push_failed",
                branch=branch_name,
                target_repo=target_repo,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        self._logger.info("branch_pushed", branch=branch_name, target_repo=target_repo)
        return True
