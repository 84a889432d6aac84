"""
Error taxonomy for Shortlink Platform.

Every failure the registry surfaces is one of these types, so the HTTP and CLI
layers can map them to distinct status codes / exit codes without parsing
message text.

    ShortLinkError
    ├── CodeConflictError   custom code already assigned (never retried)
    ├── LinkNotFoundError   click/lookup target absent
    ├── InvalidInputError   empty target URL
    └── StorageError        backend unavailable or failed unexpectedly
"""


class ShortLinkError(Exception):
    """Base class for all registry failures."""


class CodeConflictError(ShortLinkError, ValueError):
    """Raised when a custom short code is already in use."""

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"custom code '{code}' is already in use")


class LinkNotFoundError(ShortLinkError):
    """Raised when an operation targets a short code that does not exist."""

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"URL with code '{code}' not found")


class InvalidInputError(ShortLinkError, ValueError):
    """Raised when a shorten request carries an unusable target URL."""


class StorageError(ShortLinkError):
    """
    Raised by storage backends when the underlying store fails.

    The driver exception is chained as ``__cause__``.
    """
