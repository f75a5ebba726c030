"""Comparison of error sets between consecutive fix attempts."""

from typing import Callable, Dict, Hashable, Iterable, Sequence, Set

from sdk_codegen_cli.domain.models import Diagnostic
from sdk_codegen_cli.domain.value_objects import Progress, ProgressKey

_KEY_FUNCTIONS: Dict[ProgressKey, Callable[[Diagnostic], Hashable]] = {
    ProgressKey.MESSAGE: lambda diagnostic: diagnostic.message,
    ProgressKey.FULL: lambda diagnostic: (
        diagnostic.file_path,
        diagnostic.line,
        diagnostic.column,
        diagnostic.code,
        diagnostic.message,
    ),
}


def error_keys(errors: Iterable[Diagnostic], key: ProgressKey = ProgressKey.MESSAGE) -> Set[Hashable]:
    """Return the identity set of an error sequence under ``key``."""
    key_fn = _KEY_FUNCTIONS[key]
    return {key_fn(error) for error in errors}


def made_no_progress(
    before: Sequence[Diagnostic],
    after: Sequence[Diagnostic],
    key: ProgressKey = ProgressKey.MESSAGE,
) -> bool:
    """True when the error count did not drop and the error set is unchanged."""
    if len(after) < len(before):
        return False
    return error_keys(after, key) == error_keys(before, key)


def assess_progress(
    before: Sequence[Diagnostic],
    after: Sequence[Diagnostic],
    key: ProgressKey = ProgressKey.MESSAGE,
) -> Progress:
    """Classify how an attempt changed the error set.

    The result is informational; it never affects the retry budget.
    """
    if len(after) < len(before):
        return Progress.REDUCED
    if made_no_progress(before, after, key):
        return Progress.NO_PROGRESS
    return Progress.CHANGED
