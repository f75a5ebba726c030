"""Service that migrates a library to the new generator and fixes the build."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Awaitable, Callable, List, Tuple

from sdk_codegen_cli.application.dto.migration_data import MigrationResult, StepResult
from sdk_codegen_cli.application.services.fix_orchestrator import FixOrchestrator
from sdk_codegen_cli.application.services.migration_steps import MigrationSteps

logger = logging.getLogger(__name__)

MIGRATION_MAX_RETRIES = 5
CODEGEN_TYPE_NOTE = "CodeGenType attributes may need manual updates if type names changed"

OrchestratorFactory = Callable[[Path, int], FixOrchestrator]
StepEntry = Tuple[str, Callable[[], Awaitable[StepResult]], Callable[[StepResult], str]]


class MigrationService:
    """Runs the ordered migration steps, then the fix loop."""

    def __init__(
        self,
        project_path: Path,
        steps: MigrationSteps,
        orchestrator_factory: OrchestratorFactory,
        dry_run: bool = False,
    ):
        """Initialize the migration service.

        Args:
            project_path: Root of the library being migrated
            steps: Migration steps bound to the same project
            orchestrator_factory: Creates a fix orchestrator for a project and retry budget
            dry_run: Report changes without writing files or running builds
        """
        self.project_path = Path(project_path).resolve()
        self.steps = steps
        self.orchestrator_factory = orchestrator_factory
        self.dry_run = dry_run

    def _step_table(self) -> List[StepEntry]:
        steps = self.steps
        return [
            (
                "Updating tsp-location.yaml",
                steps.update_tsp_location,
                lambda r: "Updated tsp-location.yaml with new emitterPackageJsonPath",
            ),
            (
                "Updating commit SHA to latest",
                steps.update_commit_sha,
                lambda r: "Updated commit SHA to latest",
            ),
            (
                "Updating .csproj files",
                steps.remove_autorest_dependency,
                lambda r: "Removed IncludeAutorestDependency from .csproj",
            ),
            (
                "Updating CodeGen attributes namespace",
                steps.add_customizations_namespace,
                lambda r: (
                    "Updated CodeGen attributes to Microsoft.TypeSpec.Generator.Customizations "
                    f"({r.files_changed} files)"
                ),
            ),
            (
                "Replacing CodeGenClient/CodeGenModel with CodeGenType",
                steps.replace_codegen_attributes,
                lambda r: f"Replaced CodeGenClient/CodeGenModel with CodeGenType ({r.files_changed} files)",
            ),
            (
                "Replacing _pipeline with Pipeline",
                steps.replace_pipeline_field,
                lambda r: f"Replaced _pipeline with Pipeline ({r.files_changed} files)",
            ),
            (
                "Removing Autorest.CSharp.Core using statements",
                steps.remove_autorest_core_using,
                lambda r: f"Removed Autorest.CSharp.Core using statements ({r.files_changed} files)",
            ),
            (
                "Replacing serializedAdditionalRawData with additionalBinaryDataProperties",
                steps.rename_raw_data_fields,
                lambda r: (
                    "Replaced serializedAdditionalRawData with additionalBinaryDataProperties "
                    f"({r.files_changed} files)"
                ),
            ),
        ]

    async def migrate(self) -> MigrationResult:
        """Execute the migration.

        Returns:
            MigrationResult; success is False when a step fails, the fix
            loop does not reach a clean build, or an unexpected error occurs
        """
        result = MigrationResult(success=False)
        logger.info(f"Migrating library at: {self.project_path}")

        try:
            for index, (title, step, completed) in enumerate(self._step_table(), start=1):
                logger.info(f"Step {index}: {title}...")
                step_result = await step()
                if not step_result.success:
                    result.error = step_result.error or f"{title} failed"
                    logger.error(f"Step {index} failed: {result.error}")
                    return result

                result.completed_steps.append(completed(step_result))
                if step_result.warning:
                    logger.warning(step_result.warning)
                    result.warnings.append(step_result.warning)

            fix_succeeded = await self._run_fix_loop(result)

            logger.warning(f"Note: {CODEGEN_TYPE_NOTE}")
            result.warnings.append(CODEGEN_TYPE_NOTE)
            result.success = fix_succeeded
            return result
        except Exception as e:
            logger.error(f"Migration failed: {e}", exc_info=True)
            result.error = str(e)
            return result

    async def _run_fix_loop(self, result: MigrationResult) -> bool:
        if self.dry_run:
            logger.info("Skipping code generation in dry-run mode")
            result.completed_steps.append("Code generation skipped (dry-run)")
            return True

        logger.info("Running code generation and fixing build errors...")
        orchestrator = self.orchestrator_factory(self.project_path, MIGRATION_MAX_RETRIES)
        fix_result = await orchestrator.run()
        result.fix_result = fix_result

        if fix_result.success:
            result.completed_steps.append(
                f"Code generation succeeded after {fix_result.attempts_used} attempt(s)"
            )
            return True

        result.warnings.append(
            f"Code generation completed with {len(fix_result.remaining_errors)} remaining errors "
            "- manual fixes may be needed"
        )
        return False
