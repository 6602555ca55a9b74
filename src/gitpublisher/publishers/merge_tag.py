"""Merge-tag publishing.

Every published build is tagged with ``<prefix>-<job>-<number>-<RESULT>``.
When the job merged a target branch before building, and the build
succeeded, HEAD is pushed back to that branch.

Flow:
1. Delete a leftover ``<prefix>-<job>-<number>`` tag.
2. Create ``<prefix>-<job>-<number>-<RESULT>`` on HEAD.
3. Push ``HEAD:<merge target>`` to the merge remote if a merge was requested
   and the build is successful; otherwise keep the tag local.
"""

from __future__ import annotations

import structlog

from gitpublisher.build import BuildResult
from gitpublisher.publishers.base import PublishContext

logger = structlog.get_logger(__name__)


def internal_tag_name(prefix: str, job_name: str, build_number: int) -> str:
    """Build the tag name identifying a build, without its result.

    Example:
        >>> internal_tag_name("hudson", "api", 12)
        'hudson-api-12'
    """
    return f"{prefix}-{job_name}-{build_number}"


class MergeTagPublisher:
    """Tags the built commit and pushes it to the merge target branch."""

    def __init__(self) -> None:
        self._logger = logger.bind(component="MergeTagPublisher")

    def publish(self, ctx: PublishContext) -> bool:
        """Tag the build and push the merge result.

        Args:
            ctx: Publish run context

        Returns:
            True unless a git operation failed, in which case the build
            result has been forced to FAILURE
        """
        base_name = internal_tag_name(
            ctx.settings.internal_tag_prefix, ctx.job_name, ctx.build_number
        )
        tag_name = f"{base_name}-{ctx.build_result}"

        try:
            with ctx.open_client() as client:
                client.delete_tag(base_name)
                client.tag(
                    tag_name,
                    f"{ctx.settings.internal_tag_comment_prefix}{ctx.build_number}",
                )

                merge_options = ctx.scm.merge_options
                if not merge_options.do_merge():
                    ctx.log.println(
                        f"Tagged build as {tag_name}; no merge target is configured, "
                        "so the result is not pushed."
                    )
                    self._logger.info("merge_push_skipped", tag=tag_name, reason="no_merge")
                    return True

                if not ctx.build_result.is_better_or_equal_to(BuildResult.SUCCESS):
                    ctx.log.println(
                        f"Tagged build as {tag_name}; the build did not succeed, "
                        f"so the result is not pushed to {merge_options.merge_target}."
                    )
                    self._logger.info(
                        "merge_push_skipped",
                        tag=tag_name,
                        reason="build_not_successful",
                        build_result=ctx.build_result.value,
                    )
                    return True

                remote = ctx.scm.get_merge_remote()
                # Copies made with model_copy(update=...) skip the merge remote validator
                if remote is None:
                    raise LookupError(
                        f"Merge remote '{merge_options.merge_remote}' is not configured"
                    )

                ctx.log.println(
                    f"Pushing result {tag_name} to {merge_options.merge_target} "
                    f"branch of {remote.name} repository"
                )
                client.push(remote, f"HEAD:{merge_options.merge_target}")

        except Exception as e:
            ctx.log.error("Failed to push merge to origin repository: ", e)
            ctx.mark_failed()
            self._logger.error(
                "merge_publish_failed",
                tag=tag_name,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        self._logger.info(
            "merge_pushed",
            tag=tag_name,
            merge_target=merge_options.merge_target,
            remote=remote.name,
        )
        return True
