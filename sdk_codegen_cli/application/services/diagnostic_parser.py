"""Parser for MSBuild-style compiler diagnostics."""

import logging
import re
from typing import List, Tuple

from sdk_codegen_cli.domain.models import Diagnostic, DiagnosticKind

logger = logging.getLogger(__name__)

# path(line,col): error|warning CODE: message
DIAGNOSTIC_PATTERN = re.compile(
    r"^(?P<file>.+?)\((?P<line>[0-9]+),(?P<col>[0-9]+)\):\s*"
    r"(?P<kind>error|warning)\s+(?P<code>[A-Z]+[0-9]+):\s*(?P<message>.+)$",
    re.MULTILINE,
)


def parse_diagnostics(output: str) -> Tuple[List[Diagnostic], List[Diagnostic]]:
    """Extract errors and warnings from raw build output.

    Matches are returned in the order they appear. Lines that do not match
    the diagnostic format are ignored, so a clean build yields two empty lists.

    Args:
        output: Combined stdout/stderr text of a build

    Returns:
        Tuple of (errors, warnings)
    """
    errors: List[Diagnostic] = []
    warnings: List[Diagnostic] = []

    for match in DIAGNOSTIC_PATTERN.finditer(output):
        try:
            line = int(match.group('line'))
            column = int(match.group('col'))
        except ValueError:
            logger.debug(f"Skipping diagnostic with unreadable position: {match.group(0)!r}")
            continue

        diagnostic = Diagnostic(
            kind=DiagnosticKind(match.group('kind')),
            file_path=match.group('file').strip(),
            line=line,
            column=column,
            code=match.group('code'),
            message=match.group('message').strip(),
        )
        if diagnostic.is_error:
            errors.append(diagnostic)
        else:
            warnings.append(diagnostic)

    return errors, warnings
