"""Domain types shared by the registry, storage backends and outer layers."""

from .errors import (
    CodeConflictError,
    InvalidInputError,
    LinkNotFoundError,
    ShortLinkError,
    StorageError,
)
from .link import ShortLink

__all__ = [
    "ShortLink",
    "ShortLinkError",
    "CodeConflictError",
    "LinkNotFoundError",
    "InvalidInputError",
    "StorageError",
]
