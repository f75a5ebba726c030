"""Configuration for coding assistant sessions."""

import os
from typing import Optional


DEFAULT_FIX_MODEL = "claude-opus-4-20250514"
DEFAULT_SPEC_SEARCH_MODEL = "claude-sonnet-4-20250514"
DEFAULT_PERMISSION_MODE = "acceptEdits"

# File access only; the assistant never runs shell commands
FIX_TOOLS = ["Read", "Edit", "Write", "Grep", "Glob"]
SPEC_SEARCH_TOOLS = ["WebFetch", "WebSearch"]


class AssistantConfig:
    """Configuration for creating assistant sessions."""

    def __init__(
        self,
        model: Optional[str] = None,
        spec_search_model: Optional[str] = None,
        cli_path: Optional[str] = None,
        permission_mode: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
    ):
        self.model = self._normalize_model_name(
            model or os.getenv("CODEGEN_ASSISTANT_MODEL") or DEFAULT_FIX_MODEL
        )
        self.spec_search_model = self._normalize_model_name(
            spec_search_model or os.getenv("CODEGEN_SPEC_SEARCH_MODEL") or DEFAULT_SPEC_SEARCH_MODEL
        )
        self.cli_path = cli_path or os.getenv("CLAUDE_CODE_CLI_PATH")
        self.permission_mode = (
            permission_mode or os.getenv("CLAUDE_CODE_PERMISSION_MODE") or DEFAULT_PERMISSION_MODE
        )
        self.timeout_seconds = timeout_seconds

    @staticmethod
    def _normalize_model_name(model: str) -> str:
        """Drop a provider prefix such as ``anthropic/``; the SDK wants bare model ids."""
        trimmed = model.strip()
        if trimmed.lower().startswith("anthropic/"):
            return trimmed.split("/", 1)[1]
        return trimmed

    def with_timeout(self, timeout_seconds: Optional[float]) -> "AssistantConfig":
        return AssistantConfig(
            model=self.model,
            spec_search_model=self.spec_search_model,
            cli_path=self.cli_path,
            permission_mode=self.permission_mode,
            timeout_seconds=timeout_seconds,
        )
