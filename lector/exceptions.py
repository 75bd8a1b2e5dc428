"""
Custom exceptions for Lector.

This module defines domain-specific exceptions to provide better error handling
and more informative error messages.
"""


class LectorError(Exception):
    """Base exception for all Lector errors."""

    pass


# Process-related exceptions
class ProcessError(LectorError):
    """Base exception for speech process lifecycle errors."""

    pass


class NoActiveProcessError(ProcessError):
    """Raised when pause/resume/toggle/terminate finds no speech process."""

    def __init__(self, operation: str | None = None):
        self.operation = operation
        message = "No speech process is active"
        if operation:
            message += f" (cannot {operation})"
        super().__init__(message)


class SpawnRefusedError(ProcessError):
    """Raised when replacing a live speech process was declined."""

    def __init__(self, pid: int):
        self.pid = pid
        super().__init__(f"Speech process {pid} is still active; not replacing it")


class EngineStartError(ProcessError):
    """Raised when the speech engine executable cannot be started."""

    def __init__(self, executable: str, original_error: Exception | None = None):
        self.executable = executable
        self.original_error = original_error
        message = f"Failed to start speech engine: {executable}"
        if original_error:
            message += f" - {original_error}"
        super().__init__(message)


# Extraction-related exceptions
class ExtractionError(LectorError):
    """Base exception for text extraction errors."""

    pass


class UnsupportedContextError(ExtractionError):
    """Raised when no extraction strategy is registered for a context tag."""

    def __init__(self, tag: str, registered: list[str]):
        self.tag = tag
        self.registered = registered
        super().__init__(
            f"No extraction strategy for context '{tag}'. "
            f"Registered contexts: {', '.join(registered)}"
        )


class StructuralMismatchError(ExtractionError):
    """Raised when an expected document landmark is not found."""

    def __init__(self, tag: str, landmark: str):
        self.tag = tag
        self.landmark = landmark
        super().__init__(f"Cannot extract '{tag}' text: {landmark} not found")


class NoActiveSelectionError(ExtractionError):
    """Raised when a region speak is requested with nothing selected."""

    def __init__(self):
        super().__init__("No active region to speak")


# EPUB-related exceptions
class EPUBError(LectorError):
    """Base exception for EPUB-related errors."""

    pass


class EPUBNotFoundError(EPUBError):
    """Raised when an EPUB file is not found."""

    def __init__(self, file_path: str):
        self.file_path = file_path
        super().__init__(f"EPUB file not found: {file_path}")


class EPUBInvalidError(EPUBError):
    """Raised when a file is not a valid EPUB."""

    def __init__(self, file_path: str, reason: str | None = None):
        self.file_path = file_path
        self.reason = reason
        message = f"Invalid EPUB file: {file_path}"
        if reason:
            message += f" - {reason}"
        super().__init__(message)


class EPUBParseError(EPUBError):
    """Raised when EPUB parsing fails."""

    def __init__(self, file_path: str, original_error: Exception | None = None):
        self.file_path = file_path
        self.original_error = original_error
        message = f"Failed to parse EPUB: {file_path}"
        if original_error:
            message += f" - {original_error}"
        super().__init__(message)


class EPUBNoPagesError(EPUBError):
    """Raised when no readable pages are found in EPUB."""

    def __init__(self, file_path: str):
        self.file_path = file_path
        super().__init__(f"No readable pages found in EPUB: {file_path}")


# Validation exceptions
class ValidationError(LectorError):
    """Base exception for validation errors."""

    pass


class InvalidSpeedError(ValidationError):
    """Raised when a speech speed is not a positive integer."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Invalid speed '{value}': expected a positive integer")


# State file exceptions
class StateError(LectorError):
    """Base exception for persisted handle errors."""

    pass


class StateCorruptedError(StateError):
    """Raised when the persisted handle file cannot be read."""

    def __init__(self, state_path: str, reason: str):
        self.state_path = state_path
        self.reason = reason
        super().__init__(f"Corrupted state file '{state_path}': {reason}")
