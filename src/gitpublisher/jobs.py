"""Job definition files.

A job definition is a TOML file with the publish configuration of the job
and its SCM configuration:

    [publisher]
    configVersion = 2
    pushMerge = true
    pushOnlyIfSuccess = true

    [[publisher.tagsToPush]]
    targetRepoName = "origin"
    tagName = "build-$BUILD_NUMBER"
    createTag = true

    [scm]
    kind = "git"

    [[scm.remotes]]
    name = "origin"
    urls = ["git@example.com:team/api.git"]

    [scm.mergeOptions]
    mergeRemote = "origin"
    mergeTarget = "main"
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import tomli

from gitpublisher.models import PublishConfig
from gitpublisher.scm import GitScmConfig, ScmConfig


@dataclass
class JobDefinition:
    """Publish and SCM configuration of a job.

    Attributes:
        publisher: Migrated publish configuration
        scm: SCM configuration; a GitScmConfig when ``kind`` is ``"git"``
    """

    publisher: PublishConfig
    scm: ScmConfig


def parse_scm(data: dict[str, Any] | None) -> ScmConfig:
    """Build the SCM configuration matching ``data["kind"]``."""
    if not data:
        return ScmConfig()
    if data.get("kind", "git") == "git":
        return GitScmConfig.model_validate(data)
    return ScmConfig.model_validate({"kind": data["kind"]})


def load_job(job_path: Path) -> JobDefinition:
    """Load a job definition file.

    The ``[publisher]`` table is migrated with
    :meth:`PublishConfig.from_stored` before validation.

    Args:
        job_path: Path to the TOML job definition

    Returns:
        The parsed JobDefinition

    Raises:
        FileNotFoundError: If job_path does not exist
        ValueError: If the file is not valid TOML or not a valid job
    """
    if not job_path.exists():
        raise FileNotFoundError(f"Job file not found: {job_path}")

    try:
        with open(job_path, "rb") as f:
            data = tomli.load(f)
    except tomli.TOMLDecodeError as e:
        raise ValueError(f"Invalid job definition in {job_path}: {e}") from e

    try:
        return JobDefinition(
            publisher=PublishConfig.from_stored(data.get("publisher", {})),
            scm=parse_scm(data.get("scm")),
        )
    except ValueError as e:
        raise ValueError(f"Invalid job definition in {job_path}: {e}") from e
