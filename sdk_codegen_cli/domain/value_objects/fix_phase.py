"""Fix phase value objects and enumerations."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from sdk_codegen_cli.domain.value_objects.build_mode import BuildMode


class FixPhase(str, Enum):
    """Phases of a fix run."""

    SOURCE = "source"
    SOLUTION = "solution"

    @property
    def build_mode(self) -> BuildMode:
        if self is FixPhase.SOURCE:
            return BuildMode.BUILD_SOURCE
        return BuildMode.BUILD_SOLUTION

    @property
    def regenerates(self) -> bool:
        """Solution errors live in consumer code, so only the source phase regenerates."""
        return self is FixPhase.SOURCE


class ProgressKey(str, Enum):
    """Which part of a diagnostic identifies it when comparing error sets."""

    MESSAGE = "message"
    FULL = "full"


class Progress(str, Enum):
    """Effect of one attempt on the error set."""

    RESOLVED = "resolved"
    REDUCED = "reduced"
    NO_PROGRESS = "no-progress"
    CHANGED = "changed"


@dataclass(frozen=True)
class FixLoopConfig:
    """Configuration for a fix run."""

    max_retries: int = 5
    solution_max_retries: Optional[int] = None
    build_timeout_seconds: Optional[float] = None
    assistant_timeout_seconds: Optional[float] = None
    progress_key: ProgressKey = ProgressKey.MESSAGE

    def __post_init__(self) -> None:
        if self.max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        if self.solution_max_retries is not None and self.solution_max_retries < 1:
            raise ValueError("solution_max_retries must be at least 1")
        for name in ("build_timeout_seconds", "assistant_timeout_seconds"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise ValueError(f"{name} must be positive")

    def budget_for(self, phase: FixPhase) -> int:
        if phase is FixPhase.SOLUTION and self.solution_max_retries is not None:
            return self.solution_max_retries
        return self.max_retries

