"""Builder for assistant prompts rendered from Jinja2 templates."""

from pathlib import Path
from typing import Optional, Sequence

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from sdk_codegen_cli.domain.models import Diagnostic

DEFAULT_PROMPT_DIR = Path(__file__).resolve().parents[2] / 'config' / 'prompts'

MAX_ERRORS_IN_PROMPT = 10
MAX_BUILD_OUTPUT_CHARS = 4000
TRUNCATION_MARKER = "\n... [truncated]"


def truncate_output(build_output: str, limit: int = MAX_BUILD_OUTPUT_CHARS) -> str:
    """Cut build output to ``limit`` characters, marking the cut."""
    if len(build_output) <= limit:
        return build_output
    return build_output[:limit] + TRUNCATION_MARKER


def service_hint(directory: str) -> str:
    """Derive a service-name hint from a spec directory path."""
    skipped = {'specification', 'data-plane', 'resource-manager'}
    parts = [part for part in directory.split('/') if part and part not in skipped]
    return ', '.join(parts)


class PromptBuilder:
    """Renders system prompts and requests for assistant sessions."""

    def __init__(self, prompt_dir: Optional[Path] = None):
        """Initialize the prompt builder.

        Args:
            prompt_dir: Directory containing Jinja2 prompt templates
        """
        self.prompt_dir = prompt_dir or DEFAULT_PROMPT_DIR
        # Prompts carry C# generics and XML, so no HTML escaping
        self.jinja_env = Environment(
            loader=FileSystemLoader(str(self.prompt_dir)),
            autoescape=False,
            undefined=StrictUndefined,
        )

    def fix_system_prompt(self, project_path: Path) -> str:
        """System prompt for build-fix sessions."""
        template = self.jinja_env.get_template("fixer/system_prompt.j2")
        return template.render(project_path=str(project_path))

    def fix_request(self, errors: Sequence[Diagnostic], build_output: str) -> str:
        """Bounded fix request: the first errors verbatim plus truncated output."""
        shown = list(errors[:MAX_ERRORS_IN_PROMPT])
        template = self.jinja_env.get_template("fixer/fix_request.j2")
        return template.render(
            errors=[str(error) for error in shown],
            remaining=max(len(errors) - MAX_ERRORS_IN_PROMPT, 0),
            build_output=truncate_output(build_output),
        )

    def spec_search_system_prompt(self, owner: str, repo: str) -> str:
        template = self.jinja_env.get_template("spec_search/system_prompt.j2")
        return template.render(owner=owner, repo=repo)

    def spec_search_request(self, owner: str, repo: str, old_directory: str, branch: str = 'main') -> str:
        template = self.jinja_env.get_template("spec_search/request.j2")
        return template.render(
            owner=owner,
            repo=repo,
            old_directory=old_directory,
            branch=branch,
            service_hint=service_hint(old_directory),
        )
