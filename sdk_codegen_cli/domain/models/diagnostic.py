"""Build diagnostics and build results."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from sdk_codegen_cli.domain.value_objects.build_mode import BuildMode


class DiagnosticKind(str, Enum):
    """Severity of a compiler diagnostic."""

    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class Diagnostic:
    """A single compiler-reported error or warning."""

    kind: DiagnosticKind
    file_path: str
    line: int
    column: int
    code: str
    message: str

    @property
    def is_error(self) -> bool:
        return self.kind == DiagnosticKind.ERROR

    def __str__(self) -> str:
        return f"{self.file_path}({self.line},{self.column}): {self.kind.value} {self.code}: {self.message}"


@dataclass(frozen=True)
class BuildResult:
    """Outcome of one build tool invocation.

    ``success`` mirrors the tool's exit code. A zero exit code with parsed
    errors is possible and is reported as an anomaly by the build runner.
    """

    success: bool
    errors: Tuple[Diagnostic, ...]
    warnings: Tuple[Diagnostic, ...]
    raw_output: str
    exit_code: Optional[int] = None
    mode: Optional[BuildMode] = None

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def is_anomalous(self) -> bool:
        """True when the exit code and the parsed errors disagree."""
        return self.success and bool(self.errors)
