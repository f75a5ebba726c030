"""Domain models package."""

from .diagnostic import BuildResult, Diagnostic, DiagnosticKind
from .fix_result import AttemptResult, OrchestratorResult

__all__ = [
    'BuildResult',
    'Diagnostic',
    'DiagnosticKind',
    'AttemptResult',
    'OrchestratorResult',
]
