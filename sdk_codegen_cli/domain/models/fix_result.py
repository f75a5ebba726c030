"""Fix attempt and fix run result models."""

from dataclasses import dataclass
from typing import Tuple

from sdk_codegen_cli.domain.models.diagnostic import Diagnostic
from sdk_codegen_cli.domain.value_objects import FixPhase, Progress


@dataclass(frozen=True)
class AttemptResult:
    """One request-fix and rebuild cycle."""

    attempt_number: int
    errors_before: Tuple[Diagnostic, ...]
    errors_after: Tuple[Diagnostic, ...]
    assistant_response: str
    phase: FixPhase = FixPhase.SOURCE
    progress: Progress = Progress.CHANGED


@dataclass(frozen=True)
class OrchestratorResult:
    """Terminal outcome of a fix run."""

    success: bool
    attempts_used: int
    attempts: Tuple[AttemptResult, ...] = ()

    @property
    def remaining_errors(self) -> Tuple[Diagnostic, ...]:
        if not self.attempts:
            return ()
        return self.attempts[-1].errors_after
