"""Build-side collaborators of the publisher.

The publisher runs after a build and only needs a narrow view of it: its
identity, its result, its workspace, its SCM configuration, its environment
and its console log. This module provides that view.
"""

from __future__ import annotations

import sys
import traceback
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TextIO

from gitpublisher.environment import Environment
from gitpublisher.scm import ScmConfig


class BuildResult(str, Enum):
    """Outcome of a build, ordered from best to worst.

    Attributes:
        SUCCESS: The build succeeded.
        UNSTABLE: The build succeeded but tests or checks failed.
        FAILURE: The build failed.
        NOT_BUILT: The module was not built.
        ABORTED: The build was interrupted.
    """

    SUCCESS = "SUCCESS"
    UNSTABLE = "UNSTABLE"
    FAILURE = "FAILURE"
    NOT_BUILT = "NOT_BUILT"
    ABORTED = "ABORTED"

    @property
    def ordinal(self) -> int:
        """Severity rank, 0 being the best result."""
        return _ORDINALS[self]

    def is_worse_than(self, other: BuildResult) -> bool:
        return self.ordinal > other.ordinal

    def is_better_or_equal_to(self, other: BuildResult) -> bool:
        return self.ordinal <= other.ordinal

    def combine(self, other: BuildResult) -> BuildResult:
        """Return the worse of the two results."""
        return other if other.is_worse_than(self) else self

    def __str__(self) -> str:
        return self.value


_ORDINALS = {result: index for index, result in enumerate(BuildResult)}


class BuildResultHandle:
    """Mutable build result that can only get worse.

    Publishing stages receive the handle of the build they publish and
    report operational failures through it.
    """

    def __init__(self, result: BuildResult = BuildResult.SUCCESS) -> None:
        self._result = result

    @property
    def value(self) -> BuildResult:
        return self._result

    def worsen(self, result: BuildResult) -> BuildResult:
        """Move the result to ``result`` unless it is already worse.

        Args:
            result: Candidate result

        Returns:
            The result after the update
        """
        self._result = self._result.combine(result)
        return self._result

    def __repr__(self) -> str:
        return f"BuildResultHandle({self._result.value})"


class BuildLog:
    """Append-only, line-oriented console log of a build.

    Everything the publisher decides is narrated here for the user reading
    the build output.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self.stream = stream if stream is not None else sys.stdout

    def println(self, line: str) -> None:
        """Append one line to the log."""
        self.stream.write(f"{line}\n")
        self.stream.flush()

    def error(self, line: str, exc: BaseException | None = None) -> None:
        """Append an error line, followed by the traceback of ``exc``.

        Args:
            line: Error message
            exc: Exception to report, if any
        """
        self.println(f"ERROR: {line}")
        if exc is not None:
            self.stream.write("".join(traceback.format_exception(exc)))
            self.stream.flush()


@dataclass
class Build:
    """A finished build handed to the publisher.

    Attributes:
        job_name: Name of the job the build belongs to
        number: Build number
        workspace: Workspace directory of the build
        scm: SCM configuration of the job (None when the job has no SCM)
        result_handle: Result of the build, shared with publishing stages
        log: Console log of the build
        is_matrix_run: True when this is one configuration of a fan-out
            build rather than the build itself
        environment_provider: Captures the build's environment; may raise
            OSError when the environment cannot be read
    """

    job_name: str
    number: int
    workspace: Path
    scm: ScmConfig | None = None
    result_handle: BuildResultHandle = field(default_factory=BuildResultHandle)
    log: BuildLog = field(default_factory=BuildLog)
    is_matrix_run: bool = False
    environment_provider: Callable[[], dict[str, str]] | None = None

    @property
    def result(self) -> BuildResult:
        return self.result_handle.value

    def set_result(self, result: BuildResult) -> None:
        """Record ``result`` unless the build already has a worse one."""
        self.result_handle.worsen(result)

    def get_environment(self) -> Environment:
        """Capture the environment of the build.

        Besides the provider's variables, the environment always defines
        ``JOB_NAME``, ``BUILD_NUMBER`` and ``WORKSPACE``.

        Raises:
            OSError: If the environment provider cannot read the environment
        """
        environment = Environment()
        if self.environment_provider is not None:
            environment.update(self.environment_provider())
        environment.setdefault("JOB_NAME", self.job_name)
        environment.setdefault("BUILD_NUMBER", str(self.number))
        environment.setdefault("WORKSPACE", str(self.workspace))
        return environment
