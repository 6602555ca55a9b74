"""Publishing stages run after a build.

Each stage publishes one kind of ref: the build's merge-tag, the
configured tags, and the configured branches.
"""

from __future__ import annotations

from gitpublisher.publishers.base import PublishContext
from gitpublisher.publishers.branches import BranchPublisher
from gitpublisher.publishers.merge_tag import MergeTagPublisher, internal_tag_name
from gitpublisher.publishers.tags import TagPublisher

__all__ = [
    "BranchPublisher",
    "MergeTagPublisher",
    "PublishContext",
    "TagPublisher",
    "internal_tag_name",
]
