"""Stateful coding assistant sessions bound to a working directory."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Sequence

from claude_agent_sdk import (
    AssistantMessage,
    ClaudeAgentOptions,
    ClaudeSDKClient,
    ClaudeSDKError,
    ResultMessage,
    TextBlock,
    ToolUseBlock,
)

from sdk_codegen_cli.domain.exceptions import (
    AssistantConnectionError,
    AssistantError,
    AssistantSessionStateError,
    AssistantTimeoutError,
)
from sdk_codegen_cli.domain.models import Diagnostic
from sdk_codegen_cli.infrastructure.sdk.assistant_config import AssistantConfig, FIX_TOOLS
from sdk_codegen_cli.infrastructure.sdk.prompt_builder import PromptBuilder

logger = logging.getLogger(__name__)

OutputCallback = Callable[[str], None]


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    DISPOSED = "disposed"


class AssistantSession(ABC):
    """A connection to a coding assistant, bound to one working directory.

    Lifecycle: ``initialize()`` once, any number of ``request_fix()`` calls,
    then ``dispose()``. Disposing is safe after a failed ``initialize()`` and
    a second ``dispose()`` does nothing.
    """

    def __init__(
        self,
        working_dir: Path,
        prompt_builder: Optional[PromptBuilder] = None,
        timeout_seconds: Optional[float] = None,
    ):
        self.working_dir = Path(working_dir).resolve()
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.timeout_seconds = timeout_seconds
        self.state = SessionState.UNINITIALIZED

    async def initialize(self) -> None:
        if self.state is not SessionState.UNINITIALIZED:
            raise AssistantSessionStateError(f"Cannot initialize a session that is {self.state.value}")
        await self._start()
        self.state = SessionState.INITIALIZED
        logger.debug(f"Assistant session ready in {self.working_dir}")

    async def request_fix(self, errors: Sequence[Diagnostic], build_output: str) -> str:
        """Ask the assistant to fix the given errors.

        Blocks until the assistant finishes its turn. File edits happen as a
        side effect and are only observable through the next build.

        Returns:
            The assistant's text response
        """
        self._require_initialized()
        return await self.send(self.prompt_builder.fix_request(errors, build_output))

    async def send(self, prompt: str) -> str:
        self._require_initialized()
        try:
            return await asyncio.wait_for(self._send(prompt), timeout=self.timeout_seconds)
        except asyncio.TimeoutError as e:
            raise AssistantTimeoutError(
                f"Assistant did not finish within {self.timeout_seconds}s"
            ) from e

    async def dispose(self) -> None:
        if self.state is SessionState.DISPOSED:
            return
        self.state = SessionState.DISPOSED
        await self._stop()
        logger.debug("Assistant session disposed")

    async def __aenter__(self) -> "AssistantSession":
        try:
            await self.initialize()
        except BaseException:
            await self.dispose()
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.dispose()

    def _require_initialized(self) -> None:
        if self.state is not SessionState.INITIALIZED:
            raise AssistantSessionStateError(
                f"Session is {self.state.value}; call initialize() before sending requests"
            )

    @abstractmethod
    async def _start(self) -> None:
        ...

    @abstractmethod
    async def _send(self, prompt: str) -> str:
        ...

    @abstractmethod
    async def _stop(self) -> None:
        ...


class ClaudeAssistantSession(AssistantSession):
    """Assistant session backed by the Claude Agent SDK client."""

    def __init__(
        self,
        working_dir: Path,
        system_prompt: str,
        allowed_tools: Sequence[str] = tuple(FIX_TOOLS),
        model: Optional[str] = None,
        config: Optional[AssistantConfig] = None,
        on_output: Optional[OutputCallback] = None,
        prompt_builder: Optional[PromptBuilder] = None,
    ):
        """Initialize the session.

        Args:
            working_dir: Directory the assistant works in
            system_prompt: Text appended to the SDK's preset system prompt
            allowed_tools: Tools the assistant may use
            model: Model id, defaults to the configured fix model
            config: Assistant configuration
            on_output: Receives streamed text and tool notices, for display only
            prompt_builder: Renders fix requests
        """
        self.config = config or AssistantConfig()
        super().__init__(working_dir, prompt_builder, self.config.timeout_seconds)
        self.system_prompt = system_prompt
        self.allowed_tools = list(allowed_tools)
        self.model = model or self.config.model
        self.on_output = on_output
        self._client: Optional[ClaudeSDKClient] = None

    def _build_options(self) -> ClaudeAgentOptions:
        options = ClaudeAgentOptions()
        options.allowed_tools = self.allowed_tools
        options.system_prompt = {
            "type": "preset",
            "preset": "claude_code",
            "append": self.system_prompt,
        }
        options.permission_mode = self.config.permission_mode
        options.model = self.model
        options.cwd = str(self.working_dir)
        if self.config.cli_path:
            options.cli_path = self.config.cli_path
        return options

    async def _start(self) -> None:
        self._client = ClaudeSDKClient(options=self._build_options())
        try:
            await self._client.connect()
        except ClaudeSDKError as exc:
            raise AssistantConnectionError(f"Claude Code CLI error: {exc}") from exc
        logger.info(f"Assistant connected (model: {self.model})")

    async def _send(self, prompt: str) -> str:
        text_parts: list[str] = []
        try:
            await self._client.query(prompt)
            async for message in self._client.receive_response():
                if isinstance(message, AssistantMessage):
                    for block in message.content:
                        if isinstance(block, TextBlock):
                            text_parts.append(block.text)
                            self._emit(block.text)
                        elif isinstance(block, ToolUseBlock):
                            logger.debug(f"Assistant tool call: {block.name}")
                            self._emit(f"🔧 Using tool: {block.name}")
                elif isinstance(message, ResultMessage):
                    if message.is_error:
                        raise AssistantError(
                            f"Assistant reported an error: {message.result or message.subtype}"
                        )
                    if message.total_cost_usd is not None:
                        logger.debug(f"Assistant turn cost: ${message.total_cost_usd:.4f}")
        except ClaudeSDKError as exc:
            raise AssistantError(f"Claude Code CLI error: {exc}") from exc

        return '\n'.join(text_parts).strip()

    async def _stop(self) -> None:
        client, self._client = self._client, None
        if client is None:
            return
        try:
            await client.disconnect()
        except ClaudeSDKError as exc:
            logger.warning(f"Failed to disconnect assistant cleanly: {exc}")

    def _emit(self, text: str) -> None:
        if self.on_output is not None:
            self.on_output(text)


SessionFactory = Callable[[Path], AssistantSession]


def claude_fix_session_factory(
    config: Optional[AssistantConfig] = None,
    prompt_builder: Optional[PromptBuilder] = None,
    on_output: Optional[OutputCallback] = None,
) -> SessionFactory:
    """Create a factory producing build-fix sessions for a project directory."""
    config = config or AssistantConfig()
    builder = prompt_builder or PromptBuilder()

    def _create(project_path: Path) -> AssistantSession:
        return ClaudeAssistantSession(
            working_dir=project_path,
            system_prompt=builder.fix_system_prompt(Path(project_path).resolve()),
            allowed_tools=FIX_TOOLS,
            model=config.model,
            config=config,
            on_output=on_output,
            prompt_builder=builder,
        )

    return _create
