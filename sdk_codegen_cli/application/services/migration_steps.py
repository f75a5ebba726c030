"""One-shot rewrites that move a library onto the new TypeSpec generator."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterator, Optional, Tuple
from urllib.parse import urlparse

import httpx

from sdk_codegen_cli.application.dto.migration_data import StepResult
from sdk_codegen_cli.infrastructure.github.commit_lookup import GitHubCommitLookup
from sdk_codegen_cli.infrastructure.sdk.spec_locator import SpecPathLocator

logger = logging.getLogger(__name__)

TSP_LOCATION_FILE = "tsp-location.yaml"
EMITTER_PACKAGE_JSON_PATH = "eng/azure-typespec-http-client-csharp-emitter-package.json"
CUSTOMIZATIONS_NAMESPACE = "Microsoft.TypeSpec.Generator.Customizations"
CUSTOMIZATIONS_USING = f"using {CUSTOMIZATIONS_NAMESPACE};"
GENERATED_DIR = "Generated"
SPEC_BRANCH = "main"

EMITTER_PATH_PATTERN = re.compile(r'emitterPackageJsonPath:\s*[^\n]+')
REPO_PATTERN = re.compile(r'repo:\s*(.+)')
DIRECTORY_PATTERN = re.compile(r'directory:\s*(.+)')
COMMIT_PATTERN = re.compile(r'commit:\s*(\S+)')
AUTOREST_DEPENDENCY_PATTERN = re.compile(
    r'^[ \t]*<IncludeAutorestDependency>true</IncludeAutorestDependency>[ \t]*\r?\n?',
    re.MULTILINE,
)
BLANK_RUN_PATTERN = re.compile(r'\n{3,}')
AZURE_CORE_USING_PATTERN = re.compile(r'^(using Azure\.Core;)(\r?\n)', re.MULTILINE)
USING_DIRECTIVE_PATTERN = re.compile(r'^using\s+[\w.]+\s*;[^\n]*\n', re.MULTILINE)
CODEGEN_ATTRIBUTE_PATTERN = re.compile(r'\bCodeGen(?:Client|Model)\b')
PIPELINE_FIELD_PATTERN = re.compile(r'\b_pipeline\b')
AUTOREST_CORE_USING_PATTERN = re.compile(r'^\s*using\s+Autorest\.CSharp\.Core\s*;\s*\r?\n?', re.MULTILINE)
RAW_DATA_FIELD_PATTERN = re.compile(r'\b_?serializedAdditionalRawData\b')


def _read(path: Path) -> str:
    with open(path, encoding='utf-8', newline='') as f:
        return f.read()


def _write(path: Path, content: str) -> None:
    with open(path, 'w', encoding='utf-8', newline='') as f:
        f.write(content)


def parse_owner_repo(repo: str) -> Optional[Tuple[str, str]]:
    """Split a ``repo:`` value (URL or ``owner/name``) into owner and name."""
    repo = repo.strip()
    if 'github.com' in repo:
        parts = urlparse(repo).path.strip('/').split('/')
    elif '/' in repo:
        parts = repo.split('/')
    else:
        return None
    if len(parts) < 2 or not parts[0] or not parts[1]:
        return None
    return parts[0], parts[1]


def set_commit(content: str, sha: str) -> str:
    if COMMIT_PATTERN.search(content):
        return COMMIT_PATTERN.sub(lambda _: f"commit: {sha}", content, count=1)
    return content.rstrip() + f"\ncommit: {sha}\n"


def add_customizations_using(content: str) -> str:
    """Add the customizations namespace import to a C# source file.

    The import goes after ``using Azure.Core;`` when present, otherwise after
    the last using directive of files carrying ``[CodeGen...]`` attributes.
    """
    if CUSTOMIZATIONS_USING in content:
        return content

    updated = AZURE_CORE_USING_PATTERN.sub(
        lambda m: f"{m.group(1)}{m.group(2)}{CUSTOMIZATIONS_USING}{m.group(2)}", content, count=1
    )
    if updated != content:
        return updated

    if '[CodeGen' in content:
        usings = list(USING_DIRECTIVE_PATTERN.finditer(content))
        if usings:
            end = usings[-1].end()
            newline = '\r\n' if usings[-1].group(0).endswith('\r\n') else '\n'
            return content[:end] + CUSTOMIZATIONS_USING + newline + content[end:]
    return content


def rename_raw_data_field(content: str) -> str:
    return RAW_DATA_FIELD_PATTERN.sub(
        lambda m: "_additionalBinaryDataProperties" if m.group(0).startswith('_')
        else "additionalBinaryDataProperties",
        content,
    )


class MigrationSteps:
    """The individual migration steps for one library directory.

    Every step returns a StepResult: ``success=False`` with an ``error``
    aborts the migration, a ``warning`` is reported but does not. Under
    dry-run no file is written.
    """

    def __init__(
        self,
        project_path: Path,
        dry_run: bool = False,
        commit_lookup: Optional[GitHubCommitLookup] = None,
        spec_locator: Optional[SpecPathLocator] = None,
    ):
        self.project_path = Path(project_path).resolve()
        self.dry_run = dry_run
        self.commit_lookup = commit_lookup or GitHubCommitLookup()
        self.spec_locator = spec_locator or SpecPathLocator(self.project_path)

    @property
    def tsp_location_path(self) -> Path:
        return self.project_path / TSP_LOCATION_FILE

    @property
    def source_root(self) -> Path:
        src_path = self.project_path / 'src'
        return src_path if src_path.is_dir() else self.project_path

    def _custom_code_files(self) -> Iterator[Path]:
        for path in sorted(self.source_root.rglob('*.cs')):
            if GENERATED_DIR in path.relative_to(self.source_root).parts[:-1]:
                continue
            yield path

    def _save(self, path: Path, content: str) -> None:
        if self.dry_run:
            logger.debug(f"[dry-run] Would update {path}")
            return
        _write(path, content)
        logger.debug(f"Updated {path}")

    async def update_tsp_location(self) -> StepResult:
        if not self.tsp_location_path.is_file():
            return StepResult(success=False, error=f"{TSP_LOCATION_FILE} not found")

        content = _read(self.tsp_location_path)
        if EMITTER_PACKAGE_JSON_PATH in content:
            logger.info(f"{TSP_LOCATION_FILE} already has the new emitter path")
            return StepResult(success=True, warning=f"{TSP_LOCATION_FILE} already migrated")

        entry = f"emitterPackageJsonPath: {EMITTER_PACKAGE_JSON_PATH}"
        if EMITTER_PATH_PATTERN.search(content):
            content = EMITTER_PATH_PATTERN.sub(lambda _: entry, content)
        else:
            content = content.rstrip() + f"\n{entry}\n"

        self._save(self.tsp_location_path, content)
        return StepResult(success=True, files_changed=1)

    async def update_commit_sha(self) -> StepResult:
        """Point ``commit:`` at the newest spec commit on the main branch.

        Falls back to the newest commit of the repository when no
        path-specific commit is found. When the spec directory has moved,
        an assistant search looks for its new location. Lookup failures
        only produce warnings.
        """
        if not self.tsp_location_path.is_file():
            return StepResult(success=False, error=f"{TSP_LOCATION_FILE} not found")

        content = _read(self.tsp_location_path)
        repo_match = REPO_PATTERN.search(content)
        if not repo_match:
            return StepResult(success=True, warning=f"No repo specified in {TSP_LOCATION_FILE}, skipping SHA update")

        repo = repo_match.group(1).strip()
        directory_match = DIRECTORY_PATTERN.search(content)
        directory = directory_match.group(1).strip() if directory_match else ""

        owner_repo = parse_owner_repo(repo)
        if owner_repo is None:
            return StepResult(success=True, warning=f"Could not parse repo: {repo}")
        owner, repo_name = owner_repo

        logger.info(f"Looking up latest commit for {owner}/{repo_name} path: {directory or '/'}")
        try:
            if directory and not await self.commit_lookup.path_exists(owner, repo_name, directory, SPEC_BRANCH):
                return await self._relocate_spec(content, owner, repo_name, directory)

            latest_sha = None
            if directory:
                latest_sha = await self.commit_lookup.latest_commit_for_path(owner, repo_name, directory, SPEC_BRANCH)
            if not latest_sha:
                logger.info("Could not find path-specific commits, using latest main commit")
                latest_sha = await self.commit_lookup.latest_commit(owner, repo_name, SPEC_BRANCH)
        except (httpx.HTTPError, ValueError) as e:
            return StepResult(success=True, warning=f"Could not fetch latest commit: {e}")

        if not latest_sha:
            return StepResult(success=True, warning="Could not determine latest commit SHA")

        current = COMMIT_PATTERN.search(content)
        if current and current.group(1).strip() == latest_sha:
            return StepResult(success=True, warning="Commit SHA already up to date")

        self._save(self.tsp_location_path, set_commit(content, latest_sha))
        logger.info(f"Updated commit SHA to {latest_sha[:8]}...")
        return StepResult(success=True, files_changed=1)

    async def _relocate_spec(self, content: str, owner: str, repo_name: str, directory: str) -> StepResult:
        logger.warning(f"Spec path '{directory}' not found on {SPEC_BRANCH}, searching for its new location")
        if self.dry_run:
            return StepResult(success=True, warning="Spec path not found (dry-run, skipping assistant lookup)")

        new_path, new_sha = await self.spec_locator.locate(owner, repo_name, directory, SPEC_BRANCH)
        if new_path and new_sha:
            content = DIRECTORY_PATTERN.sub(lambda _: f"directory: {new_path}", content, count=1)
            self._save(self.tsp_location_path, set_commit(content, new_sha))
            logger.info(f"Found new spec path {new_path} at {new_sha[:8]}...")
            return StepResult(success=True, files_changed=1)

        latest_sha = await self.commit_lookup.latest_commit(owner, repo_name, SPEC_BRANCH)
        if latest_sha:
            self._save(self.tsp_location_path, set_commit(content, latest_sha))
            return StepResult(
                success=True,
                warning=(
                    f"Could not find new spec path. Updated SHA to latest main "
                    f"({latest_sha[:8]}...). Manual path update required."
                ),
                files_changed=1,
            )
        return StepResult(success=True, warning="Spec path not found and could not determine new location")

    async def remove_autorest_dependency(self) -> StepResult:
        csproj_files = sorted(self.source_root.rglob('*.csproj'))
        if not csproj_files:
            return StepResult(success=False, error="No .csproj files found")

        files_changed = 0
        for csproj in csproj_files:
            content = _read(csproj)
            if 'IncludeAutorestDependency' not in content:
                continue
            updated = AUTOREST_DEPENDENCY_PATTERN.sub('', content)
            updated = BLANK_RUN_PATTERN.sub('\n\n', updated)
            if updated != content:
                self._save(csproj, updated)
                files_changed += 1

        if files_changed == 0:
            return StepResult(success=True, warning="No IncludeAutorestDependency found in .csproj files")
        return StepResult(success=True, files_changed=files_changed)

    def _rewrite_custom_code(self, rewrite, nothing_found: str) -> StepResult:
        files_changed = 0
        for path in self._custom_code_files():
            content = _read(path)
            updated = rewrite(content)
            if updated != content:
                self._save(path, updated)
                files_changed += 1

        if files_changed == 0:
            return StepResult(success=True, warning=nothing_found)
        return StepResult(success=True, files_changed=files_changed)

    async def add_customizations_namespace(self) -> StepResult:
        return self._rewrite_custom_code(add_customizations_using, "No files needed namespace updates")

    async def replace_codegen_attributes(self) -> StepResult:
        return self._rewrite_custom_code(
            lambda content: CODEGEN_ATTRIBUTE_PATTERN.sub('CodeGenType', content),
            "No files contained CodeGenClient/CodeGenModel",
        )

    async def replace_pipeline_field(self) -> StepResult:
        return self._rewrite_custom_code(
            lambda content: PIPELINE_FIELD_PATTERN.sub('Pipeline', content),
            "No files contained _pipeline",
        )

    async def remove_autorest_core_using(self) -> StepResult:
        return self._rewrite_custom_code(
            lambda content: AUTOREST_CORE_USING_PATTERN.sub('', content),
            "No files contained Autorest.CSharp.Core using",
        )

    async def rename_raw_data_fields(self) -> StepResult:
        return self._rewrite_custom_code(rename_raw_data_field, "No files contained serializedAdditionalRawData")
