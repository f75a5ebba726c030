"""Domain-specific exceptions."""


class DomainException(Exception):
    """Base exception for domain errors."""

    pass


class BuildToolStartError(DomainException):
    """Raised when the build tool process cannot be started."""

    def __init__(self, command: str, message: str):
        self.command = command
        super().__init__(f"Could not start '{command}': {message}")


class BuildTimeoutError(DomainException):
    """Raised when a build exceeds its deadline."""

    def __init__(self, mode: str, timeout_seconds: float):
        self.mode = mode
        self.timeout_seconds = timeout_seconds
        super().__init__(f"{mode} did not finish within {timeout_seconds}s")


class AssistantError(DomainException):
    """Raised when the coding assistant reports an error for a request."""

    pass


class AssistantConnectionError(AssistantError):
    """Raised when the assistant connection cannot be established."""

    pass


class AssistantTimeoutError(AssistantError):
    """Raised when the assistant does not finish its turn in time."""

    pass


class AssistantSessionStateError(DomainException):
    """Raised when a session is used outside of its initialized state."""

    pass


class FixRunError(DomainException):
    """Raised when a fix run ends on a structural failure.

    Carries the attempts recorded before the failure so callers can still
    report on them.
    """

    def __init__(self, message: str, attempts=()):
        self.attempts = tuple(attempts)
        super().__init__(message)
