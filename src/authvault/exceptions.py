"""Storage exceptions.

These exceptions are raised by authvault storage backends and should be
caught and handled by the calling authentication service. Lookups that
match nothing return ``None`` instead of raising.
"""


class StorageError(Exception):
    """Base exception for all storage errors."""

    def __init__(self, message: str = "Storage error"):
        self.message = message
        super().__init__(self.message)


class StorageConnectionError(StorageError):
    """Raised when the backing store cannot be reached at connect time.

    Retrying (with backoff) is left to the caller.
    """

    def __init__(self, message: str = "Storage backend is unreachable"):
        super().__init__(message)


class SchemaError(StorageError):
    """Raised when the schema cannot be created or a relation is missing."""

    def __init__(self, message: str = "Schema error", relation: str | None = None):
        self.relation = relation
        if relation:
            message = f"{message}: {relation}"
        super().__init__(message)


class EngineError(StorageError):
    """Raised when a statement fails to execute.

    The driver exception is kept as ``__cause__``.
    """

    def __init__(self, message: str = "Statement execution failed"):
        super().__init__(message)


class EmailAlreadyExistsError(EngineError):
    """Email already registered."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Email already registered: {email}")


class DuplicateCredentialsError(EngineError):
    """Credentials already exist for this email and strategy."""

    def __init__(self, email: str, strategy: str):
        self.email = email
        self.strategy = strategy
        super().__init__(f"Credentials already exist for {email} ({strategy})")
