"""Unit tests for environment variable expansion."""

from __future__ import annotations

import pytest

from gitpublisher.environment import (
    GIT_AUTHOR_EMAIL,
    GIT_AUTHOR_NAME,
    GIT_COMMITTER_EMAIL,
    GIT_COMMITTER_NAME,
    Environment,
)


@pytest.fixture
def env() -> Environment:
    return Environment(BUILD_NUMBER="17", JOB_NAME="api", GIT_BRANCH="origin/main")


@pytest.mark.parametrize(
    "value, expected",
    [
        ("release-$BUILD_NUMBER", "release-17"),
        ("release-${BUILD_NUMBER}", "release-17"),
        ("${JOB_NAME}-$BUILD_NUMBER", "api-17"),
        ("${GIT_BRANCH}", "origin/main"),
        ("plain", "plain"),
        ("", ""),
    ],
)
def test_expand_known_variables(env: Environment, value: str, expected: str) -> None:
    """Test that defined variables are substituted."""
    assert env.expand(value) == expected


def test_expand_leaves_unknown_variables(env: Environment) -> None:
    """Test that undefined references are kept verbatim."""
    assert env.expand("v$MISSING-${ALSO.MISSING}") == "v$MISSING-${ALSO.MISSING}"


def test_expand_dotted_name_in_braces() -> None:
    """Test that dotted names are only recognised inside braces."""
    env = Environment({"a.b": "x", "a": "y"})
    assert env.expand("${a.b}") == "x"
    assert env.expand("$a.b") == "y.b"


def test_expand_none(env: Environment) -> None:
    """Test that None expands to None."""
    assert env.expand(None) is None


def test_expand_is_not_recursive() -> None:
    """Test that substituted values are not expanded again."""
    env = Environment(A="$B", B="b")
    assert env.expand("$A") == "$B"


def test_override_identity_sets_committer_and_author() -> None:
    """Test that name and email overrides apply to committer and author."""
    env = Environment()
    env.override_identity("CI Bot", "ci@example.com")
    assert env[GIT_COMMITTER_NAME] == "CI Bot"
    assert env[GIT_AUTHOR_NAME] == "CI Bot"
    assert env[GIT_COMMITTER_EMAIL] == "ci@example.com"
    assert env[GIT_AUTHOR_EMAIL] == "ci@example.com"


@pytest.mark.parametrize("name, email", [(None, None), ("", "  ")])
def test_override_identity_ignores_blank_values(name: str | None, email: str | None) -> None:
    """Test that blank overrides leave the environment untouched."""
    env = Environment({GIT_AUTHOR_NAME: "Someone"})
    env.override_identity(name, email)
    assert env == {GIT_AUTHOR_NAME: "Someone"}
