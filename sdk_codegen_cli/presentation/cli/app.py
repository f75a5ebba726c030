"""Command-line interface for generating and migrating SDK libraries."""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Callable, Optional

import click
from dotenv import load_dotenv

from sdk_codegen_cli.application.services.fix_orchestrator import FixOrchestrator
from sdk_codegen_cli.application.services.migration_service import MigrationService
from sdk_codegen_cli.application.services.migration_steps import MigrationSteps
from sdk_codegen_cli.domain.exceptions import DomainException
from sdk_codegen_cli.domain.value_objects import FixLoopConfig
from sdk_codegen_cli.infrastructure.build.build_runner import BuildRunner
from sdk_codegen_cli.infrastructure.github.commit_lookup import GitHubCommitLookup
from sdk_codegen_cli.infrastructure.sdk.assistant_config import AssistantConfig
from sdk_codegen_cli.infrastructure.sdk.assistant_session import claude_fix_session_factory
from sdk_codegen_cli.infrastructure.sdk.spec_locator import SpecPathLocator
from sdk_codegen_cli.presentation.cli.console import (
    render_attempt_log,
    render_fix_summary,
    render_migration_summary,
)

LOG_FORMAT = '%(asctime)s %(levelname)s %(name)s: %(message)s'


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        force=True,
    )
    if not verbose:
        # httpx logs every request at INFO
        logging.getLogger('httpx').setLevel(logging.WARNING)


def _require_directory(path: Path) -> Path:
    if not path.is_dir():
        click.echo(f"Error: Directory not found: {path}", err=True)
        sys.exit(1)
    return path.resolve()


def _echo_output(text: str) -> None:
    click.echo(text)


def build_orchestrator(
    project_path: Path,
    config: FixLoopConfig,
    assistant_config: Optional[AssistantConfig] = None,
    on_output: Optional[Callable[[str], None]] = None,
) -> FixOrchestrator:
    """Wire a fix orchestrator to the dotnet build runner and Claude sessions."""
    assistant_config = (assistant_config or AssistantConfig()).with_timeout(
        config.assistant_timeout_seconds
    )
    return FixOrchestrator(
        project_path=project_path,
        build_runner=BuildRunner(timeout_seconds=config.build_timeout_seconds),
        session_factory=claude_fix_session_factory(assistant_config, on_output=on_output),
        config=config,
    )


def build_migration_service(
    project_path: Path,
    dry_run: bool,
    on_output: Optional[Callable[[str], None]] = None,
) -> MigrationService:
    assistant_config = AssistantConfig()
    steps = MigrationSteps(
        project_path,
        dry_run=dry_run,
        commit_lookup=GitHubCommitLookup(),
        spec_locator=SpecPathLocator(project_path, assistant_config),
    )

    def _orchestrator_factory(path: Path, max_retries: int) -> FixOrchestrator:
        return build_orchestrator(
            path, FixLoopConfig(max_retries=max_retries), assistant_config, on_output
        )

    return MigrationService(project_path, steps, _orchestrator_factory, dry_run=dry_run)


@click.group()
@click.version_option(version="1.0.0")
def cli():
    """SDK codegen - regenerate SDK libraries and fix build errors with an AI assistant."""
    pass


@cli.command()
@click.argument('path', type=click.Path(path_type=Path))
@click.option(
    '-r',
    '--max-retries',
    default=5,
    show_default=True,
    type=click.IntRange(min=1),
    help='Maximum number of attempts to fix build errors per phase',
)
@click.option('-v', '--verbose', is_flag=True, help='Show detailed build output')
@click.option(
    '--build-timeout',
    type=click.FloatRange(min=0, min_open=True),
    help='Deadline in seconds for a single build',
)
@click.option(
    '--assistant-timeout',
    type=click.FloatRange(min=0, min_open=True),
    help='Deadline in seconds for a single assistant fix request',
)
def generate(
    path: Path,
    max_retries: int,
    verbose: bool,
    build_timeout: Optional[float],
    assistant_timeout: Optional[float],
):
    """Generate the SDK library at PATH and fix build errors."""
    _configure_logging(verbose)
    project_path = _require_directory(path)

    config = FixLoopConfig(
        max_retries=max_retries,
        build_timeout_seconds=build_timeout,
        assistant_timeout_seconds=assistant_timeout,
    )
    orchestrator = build_orchestrator(project_path, config, on_output=_echo_output)

    try:
        result = asyncio.run(orchestrator.run())
    except DomainException as e:
        click.echo(f"❌ Error: {e}", err=True)
        sys.exit(1)

    for line in render_fix_summary(result):
        click.echo(line)
    if verbose and result.attempts:
        click.echo("")
        click.echo("Attempts:")
        for line in render_attempt_log(result):
            click.echo(line)

    sys.exit(0 if result.success else 1)


@cli.command()
@click.argument('path', type=click.Path(path_type=Path))
@click.option('-v', '--verbose', is_flag=True, help='Show detailed output')
@click.option('-q', '--quiet', is_flag=True, help='Suppress assistant streaming output, only show progress')
@click.option('--dry-run', is_flag=True, help='Show what would be changed without making changes')
def migrate(path: Path, verbose: bool, quiet: bool, dry_run: bool):
    """Migrate the SDK library at PATH to the TypeSpec generator."""
    _configure_logging(verbose)
    project_path = _require_directory(path)

    service = build_migration_service(
        project_path,
        dry_run=dry_run,
        on_output=None if quiet else _echo_output,
    )
    result = asyncio.run(service.migrate())

    for line in render_migration_summary(result, dry_run=dry_run):
        click.echo(line)

    sys.exit(0 if result.success else 1)


def main():
    """Entry point for the CLI."""
    load_dotenv()
    cli()


if __name__ == '__main__':
    main()
