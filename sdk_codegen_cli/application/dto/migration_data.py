"""Data Transfer Objects for migration steps."""

from dataclasses import dataclass, field
from typing import List, Optional

from sdk_codegen_cli.domain.models import OrchestratorResult


@dataclass
class StepResult:
    """Outcome of a single migration step."""

    success: bool
    warning: Optional[str] = None
    error: Optional[str] = None
    files_changed: int = 0


@dataclass
class MigrationResult:
    """Outcome of a full migration run."""

    success: bool
    completed_steps: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    error: Optional[str] = None
    fix_result: Optional[OrchestratorResult] = None
