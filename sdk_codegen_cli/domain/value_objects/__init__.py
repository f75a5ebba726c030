"""Domain value objects package."""

from .build_mode import BuildMode
from .fix_phase import FixLoopConfig, FixPhase, Progress, ProgressKey

__all__ = ['BuildMode', 'FixLoopConfig', 'FixPhase', 'Progress', 'ProgressKey']
