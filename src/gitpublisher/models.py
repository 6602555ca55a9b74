"""Persisted publish configuration of a job.

A job's publish step is configured with a :class:`PublishConfig`: whether to
push the merge-tag, whether to publish only successful builds, and the
ordered lists of tags and branches to push. Configs stored by older versions
are brought up to date once, at load time, by :func:`upgrade_config`.

Example usage:
    >>> config = PublishConfig.from_stored({
    ...     "configVersion": 2,
    ...     "pushOnlyIfSuccess": True,
    ...     "branchesToPush": [{"targetRepoName": "origin", "branchName": "main"}],
    ... })
    >>> config.is_push_branches
    True
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# 0 = stored before versioning, 1 = first versioned format, 2 = current
CURRENT_CONFIG_VERSION = 2

_TAGS_KEYS = ("tagsToPush", "tags_to_push")
_VERSION_KEYS = ("configVersion", "config_version")
_PUSH_MERGE_KEYS = ("pushMerge", "push_merge")


def is_blank(value: str | None) -> bool:
    """Return True for None and for strings made only of whitespace."""
    return value is None or not value.strip()


class PushTarget(BaseModel):
    """Where to push: a logical remote name resolved at publish time.

    Attributes:
        target_repo_name: Name of a remote configured on the job's SCM; may
            contain variable references
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    target_repo_name: str | None = None


class TagSpec(PushTarget):
    """A tag to push after the build.

    Attributes:
        tag_name: Tag to push; may contain variable references
        create_tag: Create the tag (it must not exist yet) instead of pushing
            an existing one (it must already exist)
    """

    tag_name: str | None = None
    create_tag: bool = False


class BranchSpec(PushTarget):
    """A branch HEAD is pushed to after the build.

    Attributes:
        branch_name: Remote branch to update; may contain variable references
    """

    branch_name: str | None = None


class PublishConfig(BaseModel):
    """Publish step configuration of one job.

    Attributes:
        push_merge: Tag the build and push the merge result
        push_only_if_success: Skip all publishing for unsuccessful builds
        tags_to_push: Tags to push, in order
        branches_to_push: Branches to push HEAD to, in order
        config_version: Schema version the config was stored with
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )

    push_merge: bool = False
    push_only_if_success: bool = False
    tags_to_push: list[TagSpec] = Field(default_factory=list)
    branches_to_push: list[BranchSpec] = Field(default_factory=list)
    config_version: int = Field(default=CURRENT_CONFIG_VERSION, ge=0)

    @field_validator("tags_to_push", "branches_to_push", mode="before")
    @classmethod
    def default_missing_list(cls, v: Any) -> Any:
        """Treat a stored null list as an empty one."""
        return [] if v is None else v

    @property
    def is_push_tags(self) -> bool:
        """True when at least one tag is configured."""
        return bool(self.tags_to_push)

    @property
    def is_push_branches(self) -> bool:
        """True when at least one branch is configured."""
        return bool(self.branches_to_push)

    @classmethod
    def from_stored(cls, data: dict[str, Any]) -> PublishConfig:
        """Load a stored config, migrating it from older versions first.

        Args:
            data: Stored configuration, snake_case or camelCase keys

        Returns:
            The migrated PublishConfig
        """
        return cls.model_validate(upgrade_config(data))


def _first_present(data: dict[str, Any], keys: tuple[str, ...]) -> str | None:
    for key in keys:
        if key in data:
            return key
    return None


def upgrade_config(data: dict[str, Any]) -> dict[str, Any]:
    """Migrate stored configuration data to the current schema.

    Configs stored before versioning carry no version and are treated as
    version 0. Before version 1 the publisher only ever pushed the merge
    result, so such a config without a tag list (absent, as opposed to
    configured empty) had merge pushing on.

    Args:
        data: Stored configuration

    Returns:
        A migrated copy of ``data``; the input is not modified

    Raises:
        ValueError: If the stored version is not an integer
    """
    upgraded = dict(data)

    version_key = _first_present(upgraded, _VERSION_KEYS) or _VERSION_KEYS[0]
    version = upgraded.get(version_key)
    if version is None:
        version = 0
    elif isinstance(version, bool) or not isinstance(version, (int, str)):
        raise ValueError(f"Invalid config version: {version!r}")
    else:
        try:
            version = int(version)
        except ValueError as e:
            raise ValueError(f"Invalid config version: {version!r}") from e
    upgraded[version_key] = version

    tags_key = _first_present(upgraded, _TAGS_KEYS)
    tags_absent = tags_key is None or upgraded[tags_key] is None
    if version < 1 and tags_absent:
        push_merge_key = _first_present(upgraded, _PUSH_MERGE_KEYS) or _PUSH_MERGE_KEYS[0]
        upgraded[push_merge_key] = True

    return upgraded
