"""Publishing of the job's configured tags.

Each :class:`~gitpublisher.models.TagSpec` is handled on its own: an
invalid entry, an unknown remote or a failed push only fails that entry,
and the remaining entries are still attempted.
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from gitpublisher.models import TagSpec, is_blank
from gitpublisher.publishers.base import PublishContext

logger = structlog.get_logger(__name__)


class TagPublisher:
    """Creates or verifies configured tags and pushes them.

    Attributes:
        continue_on_entry_error: Keep going after an entry without a tag or
            repository name instead of failing the whole stage at once
    """

    def __init__(self, continue_on_entry_error: bool = True) -> None:
        self.continue_on_entry_error = continue_on_entry_error
        self._logger = logger.bind(component="TagPublisher")

    def publish(self, ctx: PublishContext, specs: Sequence[TagSpec]) -> bool:
        """Push every configured tag, in order.

        Args:
            ctx: Publish run context
            specs: Tags to push

        Returns:
            True if every tag was pushed
        """
        all_tags_result = True

        for spec in specs:
            tag_result = True
            if is_blank(spec.tag_name):
                ctx.log.println("No tag to push defined")
                tag_result = False
            if is_blank(spec.target_repo_name):
                ctx.log.println("No target repo to push to defined")
                tag_result = False

            if not tag_result:
                self._logger.warning(
                    "tag_entry_invalid",
                    tag=spec.tag_name,
                    target_repo=spec.target_repo_name,
                )
                if not self.continue_on_entry_error:
                    return False
                all_tags_result = False
                continue

            if not self._publish_tag(ctx, spec):
                all_tags_result = False

        return all_tags_result

    def _publish_tag(self, ctx: PublishContext, spec: TagSpec) -> bool:
        tag_name = ctx.environment.expand(spec.tag_name)
        target_repo = ctx.environment.expand(spec.target_repo_name)

        try:
            with ctx.open_client() as client:
                remote = ctx.scm.get_repository_by_name(target_repo)
                if remote is None:
                    ctx.log.println(f"No repository found for target repo name {target_repo}")
                    self._logger.warning("tag_remote_not_found", tag=tag_name, target_repo=target_repo)
                    return False

                if spec.create_tag:
                    if client.tag_exists(tag_name):
                        ctx.log.println(
                            f"Tag {tag_name} already exists and Create Tag is specified, so failing."
                        )
                        self._logger.warning("tag_already_exists", tag=tag_name)
                        return False
                    client.tag(
                        tag_name,
                        ctx.settings.tag_message_template.format(tag=tag_name),
                    )
                elif not client.tag_exists(tag_name):
                    ctx.log.println(
                        f"Tag {tag_name} does not exist and Create Tag is not specified, so failing."
                    )
                    self._logger.warning("tag_missing", tag=tag_name)
                    return False

                ctx.log.println(f"Pushing tag {tag_name} to repo {target_repo}")
                client.push(remote, tag_name)

        except Exception as e:
            ctx.log.error(f"Failed to push tag {tag_name} to {target_repo}", e)
            ctx.mark_failed()
            self._logger.error(
                "tag_push_failed",
                tag=tag_name,
                target_repo=target_repo,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        self._logger.info("tag_pushed", tag=tag_name, target_repo=target_repo)
        return True
