"""Unit tests for build results, the result handle and the build log."""

from __future__ import annotations

from io import StringIO
from pathlib import Path

import pytest

from gitpublisher.build import Build, BuildLog, BuildResult, BuildResultHandle


class TestBuildResult:
    """Test the ordering of build results."""

    def test_order(self) -> None:
        ordered = [
            BuildResult.SUCCESS,
            BuildResult.UNSTABLE,
            BuildResult.FAILURE,
            BuildResult.NOT_BUILT,
            BuildResult.ABORTED,
        ]
        assert [r.ordinal for r in ordered] == [0, 1, 2, 3, 4]

    @pytest.mark.parametrize(
        "result, worse",
        [
            (BuildResult.SUCCESS, False),
            (BuildResult.UNSTABLE, True),
            (BuildResult.FAILURE, True),
            (BuildResult.ABORTED, True),
        ],
    )
    def test_worse_than_success(self, result: BuildResult, worse: bool) -> None:
        assert result.is_worse_than(BuildResult.SUCCESS) is worse
        assert result.is_better_or_equal_to(BuildResult.SUCCESS) is not worse

    def test_str_is_name(self) -> None:
        assert str(BuildResult.FAILURE) == "FAILURE"
        assert f"tag-{BuildResult.SUCCESS}" == "tag-SUCCESS"

    def test_combine_keeps_worse(self) -> None:
        assert BuildResult.SUCCESS.combine(BuildResult.UNSTABLE) is BuildResult.UNSTABLE
        assert BuildResult.FAILURE.combine(BuildResult.UNSTABLE) is BuildResult.FAILURE


class TestBuildResultHandle:
    """Test that the shared result only ever gets worse."""

    def test_default_is_success(self) -> None:
        assert BuildResultHandle().value is BuildResult.SUCCESS

    def test_worsen(self) -> None:
        handle = BuildResultHandle(BuildResult.UNSTABLE)
        assert handle.worsen(BuildResult.FAILURE) is BuildResult.FAILURE
        assert handle.value is BuildResult.FAILURE

    def test_never_improves(self) -> None:
        handle = BuildResultHandle(BuildResult.FAILURE)
        handle.worsen(BuildResult.SUCCESS)
        assert handle.value is BuildResult.FAILURE


class TestBuildLog:
    """Test the line-oriented build log."""

    def test_println(self) -> None:
        stream = StringIO()
        log = BuildLog(stream)
        log.println("first")
        log.println("second")
        assert stream.getvalue() == "first\nsecond\n"

    def test_error_with_traceback(self) -> None:
        stream = StringIO()
        log = BuildLog(stream)
        try:
            raise RuntimeError("boom")
        except RuntimeError as e:
            log.error("Failed to push", e)

        output = stream.getvalue()
        assert output.startswith("ERROR: Failed to push\n")
        assert "Traceback" in output
        assert "RuntimeError: boom" in output


class TestBuild:
    """Test the build view handed to the publisher."""

    def test_environment_includes_build_variables(self, tmp_path: Path) -> None:
        build = Build(
            job_name="api",
            number=7,
            workspace=tmp_path,
            environment_provider=lambda: {"PATH": "/usr/bin"},
        )
        env = build.get_environment()
        assert env["PATH"] == "/usr/bin"
        assert env["JOB_NAME"] == "api"
        assert env["BUILD_NUMBER"] == "7"
        assert env["WORKSPACE"] == str(tmp_path)

    def test_provider_values_win(self, tmp_path: Path) -> None:
        build = Build(
            job_name="api",
            number=7,
            workspace=tmp_path,
            environment_provider=lambda: {"BUILD_NUMBER": "700"},
        )
        assert build.get_environment()["BUILD_NUMBER"] == "700"

    def test_provider_errors_propagate(self, tmp_path: Path) -> None:
        def _fail() -> dict[str, str]:
            raise OSError("agent disconnected")

        build = Build(job_name="api", number=1, workspace=tmp_path, environment_provider=_fail)
        with pytest.raises(OSError, match="agent disconnected"):
            build.get_environment()

    def test_set_result_is_monotonic(self, tmp_path: Path) -> None:
        build = Build(job_name="api", number=1, workspace=tmp_path)
        build.set_result(BuildResult.UNSTABLE)
        build.set_result(BuildResult.SUCCESS)
        assert build.result is BuildResult.UNSTABLE
