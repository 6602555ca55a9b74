"""Git SCM configuration of a job.

The publisher does not own the repository configuration of a job; it reads
it from the job's SCM settings. This module models the parts it needs:
the configured remotes, the pre-build merge options and the identity used
for git operations, and resolves logical repository names to remotes.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class ScmConfig(BaseModel):
    """Base class for the SCM configuration attached to a job.

    Attributes:
        kind: Identifier of the SCM implementation (``"git"``, ``"none"``, ...)
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    kind: str = "none"


class RemoteConfig(BaseModel):
    """A named remote repository.

    Attributes:
        name: Logical name users refer to in push targets (e.g. ``origin``)
        urls: Fetch/push URLs, the first one is used for pushing
        push_refspecs: Refspecs configured for pushing (informational)
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    name: str = Field(min_length=1)
    urls: list[str] = Field(default_factory=list)
    push_refspecs: list[str] = Field(default_factory=list)

    @property
    def push_url(self) -> str | None:
        """URL pushes are sent to, or None when the remote has no URL."""
        return self.urls[0] if self.urls else None


class MergeOptions(BaseModel):
    """Pre-build merge options of the job.

    The build merged ``merge_target`` of ``merge_remote`` before running; the
    publisher pushes the result back there.

    Attributes:
        merge_remote: Name of the remote the build merged with
        merge_target: Branch of that remote the build merged into
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    merge_remote: str | None = None
    merge_target: str | None = None

    def do_merge(self) -> bool:
        """Return True when a merge target is configured."""
        return bool(self.merge_target)


class GitScmConfig(ScmConfig):
    """Git repository configuration of a job.

    Attributes:
        remotes: Configured remotes, in declaration order
        merge_options: Pre-build merge options
        git_config_name: Committer/author name forced for git operations
        git_config_email: Committer/author email forced for git operations
        relative_target_dir: Checkout directory relative to the workspace
    """

    kind: str = "git"
    remotes: list[RemoteConfig] = Field(default_factory=list)
    merge_options: MergeOptions = Field(default_factory=MergeOptions)
    git_config_name: str | None = None
    git_config_email: str | None = None
    relative_target_dir: str | None = None

    @model_validator(mode="after")
    def validate_merge_remote(self) -> GitScmConfig:
        """Validate the merge remote refers to a configured remote."""
        remote_name = self.merge_options.merge_remote
        if self.merge_options.do_merge() and self.get_repository_by_name(remote_name) is None:
            raise ValueError(f"Merge remote '{remote_name}' is not a configured remote")
        return self

    def get_repository_by_name(self, name: str | None) -> RemoteConfig | None:
        """Resolve a logical repository name to its remote.

        Args:
            name: Logical remote name

        Returns:
            The matching RemoteConfig, or None when no remote has that name
        """
        if name is None:
            return None
        for remote in self.remotes:
            if remote.name == name:
                return remote
        return None

    def get_merge_remote(self) -> RemoteConfig | None:
        """Return the remote the merge options point to."""
        return self.get_repository_by_name(self.merge_options.merge_remote)
