"""
Custom exception classes.

Every error raised inside the project derives from WriterMemoryError so callers
can catch one type at the service boundary.
"""


class WriterMemoryError(Exception):
    """Base class for all writer-memory errors."""

    def __init__(self, message: str, details: str | None = None):
        self.message = message
        self.details = details
        super().__init__(self.message)


class ConfigurationError(WriterMemoryError):
    """Invalid or missing configuration."""

    pass


class MemoryNotFoundError(WriterMemoryError):
    """The memory file does not exist yet (expected on first use)."""

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        super().__init__(message, details=path)


class CorruptMemoryError(WriterMemoryError):
    """The memory file exists but cannot be parsed into a document."""

    def __init__(self, message: str, path: str | None = None, details: str | None = None):
        self.path = path
        super().__init__(message, details=details)


class StorageError(WriterMemoryError):
    """Writing, renaming or creating directories failed."""

    pass


class MemoryValidationError(WriterMemoryError):
    """Caller-supplied input was rejected before touching the document."""

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)
