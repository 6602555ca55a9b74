"""Git client used by the publishing stages.

Publishing needs only four git operations: checking whether a tag exists,
creating a tag, deleting a tag and pushing a refspec to a remote. They are
described by the :class:`GitClient` protocol so that stages can run against
any implementation; :class:`GitPythonClient` is the production one, built on
GitPython.

Clients hold repository resources and must be closed after use. Stages
acquire one per operation with ``contextlib.closing``:

    >>> from contextlib import closing
    >>> with closing(GitPythonClient(Path("/workspace/repo"), env)) as client:
    ...     if not client.tag_exists("v1.0"):
    ...         client.tag("v1.0", "Release 1.0")
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Protocol, runtime_checkable

import git
from git import GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from gitpublisher.logging import get_logger
from gitpublisher.scm import RemoteConfig


@runtime_checkable
class GitClient(Protocol):
    """Git operations available to publishing stages."""

    def tag_exists(self, name: str) -> bool:
        """Return True if the repository has a tag called ``name``."""
        ...

    def tag(self, name: str, message: str) -> None:
        """Create an annotated tag ``name`` on HEAD."""
        ...

    def delete_tag(self, name: str) -> None:
        """Delete tag ``name``; deleting a missing tag is not an error."""
        ...

    def push(self, remote: RemoteConfig, refspec: str) -> None:
        """Push ``refspec`` to ``remote``."""
        ...

    def close(self) -> None:
        """Release the resources held by the client."""
        ...


GitClientFactory = Callable[[Path, Mapping[str, str]], GitClient]
"""Creates a client for a working directory and build environment."""


class GitPythonClient:
    """:class:`GitClient` backed by a GitPython repository.

    Git commands run with the build environment, so identity overrides such
    as ``GIT_COMMITTER_NAME`` apply to the tags created here.

    Attributes:
        repo_path: Working directory of the repository
        repo: GitPython Repo object
    """

    def __init__(self, repo_path: Path, environment: Mapping[str, str]) -> None:
        """Open the repository at ``repo_path``.

        Args:
            repo_path: Working directory of the repository
            environment: Variables passed to every git command

        Raises:
            InvalidGitRepositoryError: If repo_path is not a git repository
            NoSuchPathError: If repo_path does not exist
        """
        self.repo_path = repo_path
        self.logger = get_logger(__name__)

        try:
            self.repo = git.Repo(repo_path)
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            self.logger.error(
                "git_client_init_failed",
                repo_path=str(repo_path),
                error=str(e),
                error_type=type(e).__name__,
            )
            raise

        self.repo.git.update_environment(**dict(environment))

    def tag_exists(self, name: str) -> bool:
        return name in self.repo.git.tag("-l", name).splitlines()

    def tag(self, name: str, message: str) -> None:
        self.repo.create_tag(name, message=message)
        self.logger.info("tag_created", tag=name, repo_path=str(self.repo_path))

    def delete_tag(self, name: str) -> None:
        if not self.tag_exists(name):
            self.logger.debug("tag_delete_skipped", tag=name, reason="missing")
            return
        self.repo.delete_tag(self.repo.tags[name])
        self.logger.info("tag_deleted", tag=name, repo_path=str(self.repo_path))

    def push(self, remote: RemoteConfig, refspec: str) -> None:
        """Push ``refspec`` to the first URL of ``remote``.

        Raises:
            GitCommandError: If the remote has no URL or git push fails
        """
        url = remote.push_url
        if url is None:
            raise GitCommandError(
                "push",
                f"Remote '{remote.name}' has no URL configured",
            )

        try:
            self.repo.git.push(url, refspec)
        except GitCommandError as e:
            self.logger.error(
                "push_failed",
                remote=remote.name,
                refspec=refspec,
                error=str(e),
            )
            raise

        self.logger.info("push_completed", remote=remote.name, url=url, refspec=refspec)

    def close(self) -> None:
        self.repo.close()


def open_git_client(repo_path: Path, environment: Mapping[str, str]) -> GitClient:
    """Default :data:`GitClientFactory`, creating a :class:`GitPythonClient`."""
    return GitPythonClient(repo_path, environment)
