"""Custom exceptions for nlask."""


class NlaskError(Exception):
    """Base exception for nlask."""
    pass


class ConfigurationError(NlaskError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, missing_key: str = ""):
        super().__init__(message)
        self.missing_key = missing_key


# ============================================================================
# Generation failures
# ============================================================================

class GenerationError(NlaskError):
    """Raised when the language model could not produce a usable reply."""
    pass


class AuthMissingError(GenerationError):
    """Raised when no API key is available for the model provider."""

    def __init__(self, message: str = "No API key configured for the model provider"):
        super().__init__(message)


class NetworkError(GenerationError):
    """Raised when the model provider cannot be reached."""
    pass


class EmptyReplyError(GenerationError):
    """Raised when the model returns nothing usable."""

    def __init__(self, message: str = "No response returned from the model."):
        super().__init__(message)


class ProviderError(GenerationError):
    """Raised when the model provider answers with an error status."""

    def __init__(self, message: str, status_code: int = 0):
        super().__init__(message)
        self.status_code = status_code


# ============================================================================
# Execution failures
# ============================================================================

class ExecutionError(NlaskError):
    """Base class for command execution problems."""
    pass


class CommandInterrupted(ExecutionError):
    """Raised when the operator interrupts a running command."""

    def __init__(self, command: str):
        super().__init__(f"Interrupted: {command}")
        self.command = command


class DirectoryNavigationError(ExecutionError):
    """Raised when a directory change targets something that is not a directory."""

    def __init__(self, message: str, path: str = ""):
        super().__init__(message)
        self.path = path
