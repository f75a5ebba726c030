"""Runner for the external build tool."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence

from sdk_codegen_cli.application.services.diagnostic_parser import parse_diagnostics
from sdk_codegen_cli.domain.exceptions import BuildTimeoutError, BuildToolStartError
from sdk_codegen_cli.domain.models import BuildResult
from sdk_codegen_cli.domain.value_objects import BuildMode

logger = logging.getLogger(__name__)

# Output is read in chunks; a single line may be arbitrarily long
READ_CHUNK_SIZE = 64 * 1024


def default_commands(executable: Optional[str] = None) -> Dict[BuildMode, List[str]]:
    """Build the command table for the dotnet toolchain."""
    dotnet = executable or os.getenv('DOTNET_EXECUTABLE', 'dotnet')
    return {
        BuildMode.REGENERATE: [dotnet, 'build', '/t:GenerateCode'],
        BuildMode.BUILD_SOURCE: [dotnet, 'build'],
        BuildMode.BUILD_SOLUTION: [dotnet, 'build'],
    }


def resolve_build_directory(project_path: Path, mode: BuildMode) -> Path:
    """Return the directory a build mode runs in.

    Source-level operations use ``src`` when it exists; the full solution
    always builds from the project root so dependent and test projects are
    included.
    """
    if mode.uses_source_dir:
        src_path = project_path / 'src'
        if src_path.is_dir():
            return src_path
    return project_path


class BuildRunner:
    """Runs build tool operations and parses their diagnostics."""

    def __init__(
        self,
        commands: Optional[Mapping[BuildMode, Sequence[str]]] = None,
        timeout_seconds: Optional[float] = None,
    ):
        """Initialize the build runner.

        Args:
            commands: Command line per build mode (defaults to dotnet)
            timeout_seconds: Deadline for a single build, None for no deadline
        """
        self.commands = dict(commands) if commands is not None else default_commands()
        self.timeout_seconds = timeout_seconds

    async def run(self, mode: BuildMode, project_path: Path) -> BuildResult:
        """Run one build operation for a project.

        Args:
            mode: Which build operation to run
            project_path: Root of the project

        Returns:
            BuildResult with parsed diagnostics

        Raises:
            BuildToolStartError: If the process cannot be started
            BuildTimeoutError: If the build exceeds its deadline
        """
        directory = resolve_build_directory(Path(project_path), mode)
        command = list(self.commands[mode])
        logger.debug(f"[{mode.value}] Running {' '.join(command)} in {directory}")

        exit_code, raw_output = await self._execute(mode, command, directory)
        errors, warnings = parse_diagnostics(raw_output)

        result = BuildResult(
            success=exit_code == 0,
            errors=tuple(errors),
            warnings=tuple(warnings),
            raw_output=raw_output,
            exit_code=exit_code,
            mode=mode,
        )
        if result.is_anomalous:
            logger.warning(
                f"[{mode.value}] Build exited with code 0 but reported {result.error_count} error(s)"
            )
        return result

    async def regenerate(self, project_path: Path) -> BuildResult:
        return await self.run(BuildMode.REGENERATE, project_path)

    async def build_source(self, project_path: Path) -> BuildResult:
        return await self.run(BuildMode.BUILD_SOURCE, project_path)

    async def build_solution(self, project_path: Path) -> BuildResult:
        return await self.run(BuildMode.BUILD_SOLUTION, project_path)

    async def _execute(self, mode: BuildMode, command: List[str], directory: Path):
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                cwd=str(directory),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except OSError as e:
            raise BuildToolStartError(command[0], str(e)) from e

        lines: List[str] = []

        def _emit(raw_line: bytes) -> None:
            line = raw_line.decode('utf-8', errors='replace').rstrip('\r')
            lines.append(line)
            logger.debug(line)

        async def _collect() -> int:
            pending = bytearray()
            while True:
                chunk = await process.stdout.read(READ_CHUNK_SIZE)
                if not chunk:
                    break
                pending.extend(chunk)
                if b'\n' not in chunk:
                    continue
                *complete, rest = pending.split(b'\n')
                pending = bytearray(rest)
                for raw_line in complete:
                    _emit(raw_line)
            if pending:
                _emit(pending)
            return await process.wait()

        try:
            exit_code = await asyncio.wait_for(_collect(), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.error(f"[{mode.value}] Build timed out after {self.timeout_seconds}s")
            raise BuildTimeoutError(mode.value, self.timeout_seconds)
        finally:
            if process.returncode is None:
                process.kill()
                await process.wait()

        raw_output = ''.join(f"{line}\n" for line in lines)
        return exit_code, raw_output
