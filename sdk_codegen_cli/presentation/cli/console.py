"""Plain-text rendering of fix and migration results."""

from typing import List

from sdk_codegen_cli.application.dto.migration_data import MigrationResult
from sdk_codegen_cli.domain.models import OrchestratorResult

RULE = "=" * 40


def _banner(title: str) -> List[str]:
    return ["", RULE, title, RULE]


def render_fix_summary(result: OrchestratorResult) -> List[str]:
    lines = _banner("Summary")
    lines.append(f"Success: {result.success}")
    lines.append(f"Attempts used: {result.attempts_used}")

    if not result.success and result.attempts:
        remaining = result.remaining_errors
        lines.append(f"Remaining errors: {len(remaining)}")
        lines.append("")
        lines.append("Remaining error details:")
        lines.extend(f"  {error}" for error in remaining)
    return lines


def render_attempt_log(result: OrchestratorResult) -> List[str]:
    """One line per attempt: number, phase, error counts and progress."""
    return [
        f"  #{attempt.attempt_number} [{attempt.phase.value}] "
        f"{len(attempt.errors_before)} -> {len(attempt.errors_after)} errors ({attempt.progress.value})"
        for attempt in result.attempts
    ]


def render_migration_summary(result: MigrationResult, dry_run: bool = False) -> List[str]:
    lines = _banner("Migration Summary")
    lines.append(f"Success: {result.success}")
    lines.append(f"Steps completed: {len(result.completed_steps)}")

    if result.completed_steps:
        lines.extend(["", "Completed steps:"])
        lines.extend(f"  ✓ {step}" for step in result.completed_steps)

    if result.warnings:
        lines.extend(["", "Warnings:"])
        lines.extend(f"  ⚠ {warning}" for warning in result.warnings)

    if not result.success and result.error:
        lines.extend(["", f"Error: {result.error}"])

    if dry_run:
        lines.extend(["", "This was a dry run. No changes were made."])
    return lines
