"""
Base storage interface for Shortlink Platform.

Purpose:
    Define a small, stable contract that multiple storage backends
    (in-memory, SQLite, PostgreSQL) can implement without requiring
    changes to the registry.

Contract:
    - Insert-if-absent keyed by code. The backend's uniqueness rule is the
      final authority; the registry's existence pre-check is advisory only.
    - Point lookup by code returning the record or None.
    - Atomic click increment relative to other increments on the same code.
    - Full enumeration, newest first.
    - Idempotent delete by code.
    - Driver failures are raised as StorageError, never returned as None/False.

Testing & Coverage:
    These are abstract methods and are not executed directly in tests.
    We annotate them with `# pragma: no cover` so coverage tools don't
    penalize the project for un-runnable abstract declarations.

LLM Prompt Example:
    "Show how a narrow, explicit storage interface enables dependency
    injection and easy backend swapping without touching service code."
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from ..model.link import ShortLink


class BaseStorage(ABC):
    """Abstract base class for storage backends."""

    @abstractmethod  # pragma: no cover
    def save_link(self, code: str, target: str, created_at: datetime) -> Optional[ShortLink]:
        """
        Insert a new link if no record holds `code` yet.

        Returns:
            Optional[ShortLink]: The stored record with its assigned id,
            or None when the code is already taken.

        Raises:
            StorageError: If the backend fails.

        LLM Prompt Example:
            "Design an insert-if-absent API that can be implemented with a
            unique index in SQL or SETNX in a KV store."
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def get_link(self, code: str) -> Optional[ShortLink]:
        """
        Retrieve a link by its short code (exact, case-sensitive).

        Returns:
            Optional[ShortLink]: The record, or None if absent.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def increment_click(self, code: str) -> bool:
        """
        Atomically add one to the click counter for `code`.

        Returns:
            bool: False if the code does not exist.

        LLM Prompt Example:
            "Explain how to make increments atomic with Redis INCR or SQL UPDATE."
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def list_links(self) -> List[ShortLink]:
        """Return every stored link ordered by creation time, newest first."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def delete_link(self, code: str) -> bool:
        """
        Delete a link by code. Deleting an absent code is not an error.

        Returns:
            bool: True if a record was removed.
        """
        raise NotImplementedError

    def init_schema(self) -> None:
        """Create tables/indexes the backend needs. No-op by default."""
        return None

    def close(self) -> None:
        """Release backend resources. No-op by default."""
        return None
