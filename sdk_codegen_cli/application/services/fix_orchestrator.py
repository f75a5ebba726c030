"""Orchestrator for the two-phase build-fix retry loop."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from sdk_codegen_cli.application.services.progress import assess_progress
from sdk_codegen_cli.domain.exceptions import DomainException, FixRunError
from sdk_codegen_cli.domain.models import AttemptResult, BuildResult, Diagnostic, OrchestratorResult
from sdk_codegen_cli.domain.value_objects import FixLoopConfig, FixPhase, Progress
from sdk_codegen_cli.infrastructure.build.build_runner import BuildRunner
from sdk_codegen_cli.infrastructure.sdk.assistant_session import SessionFactory

logger = logging.getLogger(__name__)

ERROR_PREVIEW_LIMIT = 5


class FixOrchestrator:
    """Drives builds and assistant fix requests until the project compiles.

    The run has two phases:
    1. SOURCE - regenerate and build the source tree, fixing errors with
       regeneration after every attempt
    2. SOLUTION - build the full solution including tests, fixing errors
       without regeneration

    Phase 2 is only entered once phase 1 builds. Each phase gets its own
    assistant session and its own retry budget, while attempt numbers run
    on across both phases.
    """

    def __init__(
        self,
        project_path: Path,
        build_runner: BuildRunner,
        session_factory: SessionFactory,
        config: Optional[FixLoopConfig] = None,
    ):
        """Initialize the orchestrator.

        Args:
            project_path: Root of the generated SDK project
            build_runner: Runs the build tool in each mode
            session_factory: Creates an uninitialized assistant session for a directory
            config: Retry budgets and progress comparison settings
        """
        self.project_path = Path(project_path).resolve()
        self.build_runner = build_runner
        self.session_factory = session_factory
        self.config = config or FixLoopConfig()

    async def run(self) -> OrchestratorResult:
        """Execute the complete fix run.

        Returns:
            OrchestratorResult with the full attempt log

        Raises:
            FixRunError: If a build cannot be started or the assistant fails;
                carries the attempts recorded before the failure
        """
        attempts: List[AttemptResult] = []
        try:
            return await self._run(attempts)
        except DomainException as e:
            logger.error(f"Fix run aborted after {len(attempts)} attempt(s): {e}")
            raise FixRunError(str(e), attempts) from e

    async def _run(self, attempts: List[AttemptResult]) -> OrchestratorResult:
        await self._regenerate()

        logger.info("Building source...")
        build = await self.build_runner.build_source(self.project_path)
        if build.success:
            logger.info("Build succeeded, no fixes needed")
            return OrchestratorResult(success=True, attempts_used=0, attempts=())

        logger.info(f"Build failed with {build.error_count} error(s)")
        self._log_error_preview(build.errors)

        source_ok, source_attempts = await self._fix_loop(FixPhase.SOURCE, build, attempts, offset=0)
        if not source_ok:
            return OrchestratorResult(
                success=False,
                attempts_used=source_attempts,
                attempts=tuple(attempts),
            )

        return await self._verify_solution(source_attempts, attempts)

    async def _verify_solution(
        self, source_attempts: int, attempts: List[AttemptResult]
    ) -> OrchestratorResult:
        logger.info("Source builds, verifying full solution (including tests)...")
        build = await self.build_runner.build_solution(self.project_path)
        if build.success:
            logger.info("Full solution build succeeded")
            return OrchestratorResult(
                success=True,
                attempts_used=source_attempts,
                attempts=tuple(attempts),
            )

        logger.info(f"Full solution build failed with {build.error_count} error(s)")
        self._log_error_preview(build.errors)

        solution_ok, solution_attempts = await self._fix_loop(
            FixPhase.SOLUTION, build, attempts, offset=source_attempts
        )
        return OrchestratorResult(
            success=solution_ok,
            attempts_used=source_attempts + solution_attempts,
            attempts=tuple(attempts),
        )

    async def _fix_loop(
        self,
        phase: FixPhase,
        build: BuildResult,
        attempts: List[AttemptResult],
        offset: int,
    ) -> Tuple[bool, int]:
        """Run one phase's retry loop with a dedicated assistant session.

        Returns:
            (succeeded, attempts consumed in this phase)
        """
        budget = self.config.budget_for(phase)
        session = self.session_factory(self.project_path)
        try:
            await session.initialize()

            current = build
            for attempt in range(1, budget + 1):
                logger.info(
                    f"[{phase.value}] Attempt {attempt}/{budget}: "
                    f"asking assistant to fix {current.error_count} error(s)"
                )
                response = await session.request_fix(current.errors, current.raw_output)

                if phase.regenerates:
                    await self._regenerate()

                rebuilt = await self.build_runner.run(phase.build_mode, self.project_path)
                if rebuilt.success:
                    progress = Progress.RESOLVED
                else:
                    progress = assess_progress(current.errors, rebuilt.errors, self.config.progress_key)

                attempts.append(AttemptResult(
                    attempt_number=offset + attempt,
                    errors_before=current.errors,
                    errors_after=rebuilt.errors,
                    assistant_response=response,
                    phase=phase,
                    progress=progress,
                ))

                if rebuilt.success:
                    logger.info(f"[{phase.value}] Build succeeded after attempt {attempt}")
                    return True, attempt

                self._log_progress(phase, progress, current, rebuilt)
                current = rebuilt

            logger.warning(
                f"[{phase.value}] Retry budget of {budget} exhausted, "
                f"{current.error_count} error(s) remain"
            )
            return False, budget
        finally:
            await session.dispose()

    async def _regenerate(self) -> None:
        logger.info("Regenerating code...")
        result = await self.build_runner.regenerate(self.project_path)
        if not result.success:
            logger.warning(f"Code generation failed with {result.error_count} error(s), continuing")

    @staticmethod
    def _log_progress(
        phase: FixPhase, progress: Progress, before: BuildResult, after: BuildResult
    ) -> None:
        if progress is Progress.NO_PROGRESS:
            logger.warning(f"[{phase.value}] No progress: the same {after.error_count} error(s) remain")
        elif progress is Progress.REDUCED:
            logger.info(f"[{phase.value}] Progress: {before.error_count} -> {after.error_count} errors")
        else:
            logger.info(f"[{phase.value}] Errors changed: {before.error_count} -> {after.error_count}")
        FixOrchestrator._log_error_preview(after.errors)

    @staticmethod
    def _log_error_preview(errors: Sequence[Diagnostic]) -> None:
        for error in errors[:ERROR_PREVIEW_LIMIT]:
            logger.info(f"  {error}")
        if len(errors) > ERROR_PREVIEW_LIMIT:
            logger.info(f"  ... and {len(errors) - ERROR_PREVIEW_LIMIT} more")
