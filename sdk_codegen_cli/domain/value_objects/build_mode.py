"""Build mode value objects."""

from enum import Enum


class BuildMode(str, Enum):
    """Build operations the fix loop can request."""

    REGENERATE = "regenerate-sources"
    BUILD_SOURCE = "build-source-tree"
    BUILD_SOLUTION = "build-full-solution"

    @property
    def uses_source_dir(self) -> bool:
        """Whether the operation runs under ``src`` when that directory exists."""
        return self is not BuildMode.BUILD_SOLUTION
