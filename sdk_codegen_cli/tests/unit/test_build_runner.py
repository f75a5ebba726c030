"""Unit tests for the build runner, using short-lived Python processes."""

import os
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

from sdk_codegen_cli.domain.exceptions import BuildTimeoutError, BuildToolStartError
from sdk_codegen_cli.domain.value_objects import BuildMode
from sdk_codegen_cli.infrastructure.build.build_runner import (
    BuildRunner,
    default_commands,
    resolve_build_directory,
)


def _python(script: str):
    return [sys.executable, "-c", script]


def _runner(script: str, **kwargs) -> BuildRunner:
    command = _python(script)
    return BuildRunner(commands={mode: command for mode in BuildMode}, **kwargs)


class TestDefaultCommands:
    """Tests for the dotnet command table."""

    def test_dotnet_commands(self):
        commands = default_commands("dotnet")

        assert commands[BuildMode.REGENERATE] == ["dotnet", "build", "/t:GenerateCode"]
        assert commands[BuildMode.BUILD_SOURCE] == ["dotnet", "build"]
        assert commands[BuildMode.BUILD_SOLUTION] == ["dotnet", "build"]

    @patch.dict(os.environ, {"DOTNET_EXECUTABLE": "/opt/dotnet/dotnet"})
    def test_executable_from_environment(self):
        assert default_commands()[BuildMode.BUILD_SOURCE][0] == "/opt/dotnet/dotnet"


class TestResolveBuildDirectory:
    """Tests for build directory resolution."""

    def test_source_modes_use_src_when_present(self, tmp_path):
        (tmp_path / "src").mkdir()

        assert resolve_build_directory(tmp_path, BuildMode.REGENERATE) == tmp_path / "src"
        assert resolve_build_directory(tmp_path, BuildMode.BUILD_SOURCE) == tmp_path / "src"

    def test_source_modes_fall_back_to_root(self, tmp_path):
        assert resolve_build_directory(tmp_path, BuildMode.BUILD_SOURCE) == tmp_path

    def test_solution_always_uses_root(self, tmp_path):
        (tmp_path / "src").mkdir()
        assert resolve_build_directory(tmp_path, BuildMode.BUILD_SOLUTION) == tmp_path


class TestBuildRunner:
    """Tests for BuildRunner.run."""

    @pytest.mark.asyncio
    async def test_successful_build(self, tmp_path):
        runner = _runner("print('Build succeeded.')")

        result = await runner.build_source(tmp_path)

        assert result.success is True
        assert result.exit_code == 0
        assert result.errors == ()
        assert result.mode is BuildMode.BUILD_SOURCE
        assert "Build succeeded." in result.raw_output

    @pytest.mark.asyncio
    async def test_failed_build_parses_diagnostics(self, tmp_path):
        script = (
            "import sys\n"
            "print('a.cs(10,5): error CS1002: ; expected')\n"
            "print('b.cs(2,1): warning CS0168: unused')\n"
            "sys.exit(1)\n"
        )
        runner = _runner(script)

        result = await runner.build_solution(tmp_path)

        assert result.success is False
        assert result.exit_code == 1
        assert [e.code for e in result.errors] == ["CS1002"]
        assert [w.code for w in result.warnings] == ["CS0168"]

    @pytest.mark.asyncio
    async def test_stderr_is_merged_in_order(self, tmp_path):
        script = (
            "import sys\n"
            "print('first', flush=True)\n"
            "sys.stderr.write('second\\n'); sys.stderr.flush()\n"
            "print('third', flush=True)\n"
        )
        runner = _runner(script)

        result = await runner.regenerate(tmp_path)

        assert result.raw_output == "first\nsecond\nthird\n"

    @pytest.mark.asyncio
    async def test_very_long_line_is_kept(self, tmp_path):
        """A single output line of several MiB does not abort the build."""
        script = (
            "import sys\n"
            "sys.stdout.write('x' * (2 * 1024 * 1024) + '\\n')\n"
            "sys.stdout.write('a.cs(1,1): error CS1002: ; expected\\n')\n"
            "sys.exit(1)\n"
        )
        runner = _runner(script)

        result = await runner.build_source(tmp_path)

        assert result.success is False
        assert [e.code for e in result.errors] == ["CS1002"]
        lines = result.raw_output.split("\n")
        assert len(lines[0]) == 2 * 1024 * 1024
        assert lines[1] == "a.cs(1,1): error CS1002: ; expected"

    @pytest.mark.asyncio
    async def test_output_without_trailing_newline(self, tmp_path):
        runner = _runner("import sys; sys.stdout.write('one\\r\\ntwo')")

        result = await runner.build_source(tmp_path)

        assert result.raw_output == "one\ntwo\n"

    @pytest.mark.asyncio
    async def test_runs_in_src_directory(self, tmp_path):
        (tmp_path / "src").mkdir()
        runner = _runner("import os; print(os.getcwd())")

        source = await runner.build_source(tmp_path)
        solution = await runner.build_solution(tmp_path)

        assert Path(source.raw_output.strip()).resolve() == (tmp_path / "src").resolve()
        assert Path(solution.raw_output.strip()).resolve() == tmp_path.resolve()

    @pytest.mark.asyncio
    async def test_zero_exit_with_errors_is_logged_as_anomaly(self, tmp_path, caplog):
        runner = _runner("print('a.cs(1,1): error CS0001: boom')")

        with caplog.at_level("WARNING"):
            result = await runner.build_source(tmp_path)

        assert result.success is True
        assert result.error_count == 1
        assert "exited with code 0 but reported 1 error(s)" in caplog.text

    @pytest.mark.asyncio
    async def test_missing_executable_raises(self, tmp_path):
        runner = BuildRunner(commands={mode: [str(tmp_path / "no-such-tool")] for mode in BuildMode})

        with pytest.raises(BuildToolStartError):
            await runner.build_source(tmp_path)

    @pytest.mark.asyncio
    async def test_timeout_kills_build(self, tmp_path):
        runner = _runner("import time; time.sleep(30)", timeout_seconds=0.5)

        with pytest.raises(BuildTimeoutError) as exc_info:
            await runner.build_source(tmp_path)

        assert exc_info.value.timeout_seconds == 0.5
