"""Assistant-driven search for TypeSpec specifications that moved."""

import json
import logging
import re
from pathlib import Path
from typing import Callable, Optional, Tuple

from sdk_codegen_cli.domain.exceptions import DomainException
from sdk_codegen_cli.infrastructure.sdk.assistant_config import AssistantConfig, SPEC_SEARCH_TOOLS
from sdk_codegen_cli.infrastructure.sdk.assistant_session import (
    AssistantSession,
    ClaudeAssistantSession,
)
from sdk_codegen_cli.infrastructure.sdk.prompt_builder import PromptBuilder

logger = logging.getLogger(__name__)

JSON_OBJECT_PATTERN = re.compile(r'\{[^{}]+\}')


def parse_spec_location(response: str) -> Tuple[Optional[str], Optional[str]]:
    """Extract ``(path, commit)`` from the first JSON object in a response."""
    match = JSON_OBJECT_PATTERN.search(response or "")
    if not match:
        return None, None
    try:
        payload = json.loads(match.group(0))
    except json.JSONDecodeError:
        logger.debug(f"Could not decode spec location from: {match.group(0)}")
        return None, None
    if not isinstance(payload, dict):
        return None, None

    path = payload.get("path") or None
    commit = payload.get("commit") or None
    return path, commit


class SpecPathLocator:
    """Asks an assistant with web access where a spec directory moved to."""

    def __init__(
        self,
        working_dir: Path,
        config: Optional[AssistantConfig] = None,
        prompt_builder: Optional[PromptBuilder] = None,
        session_factory: Optional[Callable[[str, str], AssistantSession]] = None,
    ):
        self.working_dir = Path(working_dir)
        self.config = config or AssistantConfig()
        self.prompt_builder = prompt_builder or PromptBuilder()
        self._session_factory = session_factory or self._claude_session

    def _claude_session(self, owner: str, repo: str) -> AssistantSession:
        return ClaudeAssistantSession(
            working_dir=self.working_dir,
            system_prompt=self.prompt_builder.spec_search_system_prompt(owner, repo),
            allowed_tools=SPEC_SEARCH_TOOLS,
            model=self.config.spec_search_model,
            config=self.config,
            prompt_builder=self.prompt_builder,
        )

    async def locate(
        self, owner: str, repo: str, old_directory: str, branch: str = "main"
    ) -> Tuple[Optional[str], Optional[str]]:
        """Search for the new location of ``old_directory``.

        Returns:
            ``(path, commit)``; either may be None when the search fails
        """
        session = self._session_factory(owner, repo)
        try:
            await session.initialize()
            response = await session.send(
                self.prompt_builder.spec_search_request(owner, repo, old_directory, branch)
            )
        except DomainException as e:
            logger.warning(f"Spec path search failed: {e}")
            return None, None
        finally:
            await session.dispose()

        path, commit = parse_spec_location(response)
        if path:
            logger.info(f"Spec path search suggests {path} (commit: {commit})")
        else:
            logger.info(f"Spec path search found no new location for {old_directory}")
        return path, commit
