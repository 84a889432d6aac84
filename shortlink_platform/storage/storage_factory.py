"""
Storage factory - switch storage backend from config (lazy env version)
======================================================================

This module centralizes selection of the storage backend so the rest of the
app can stay ignorant of where data lives.

- Reads environment **at call time** to avoid stale values in tests.
- Imports DB backends **only if** they are selected.
- Does not create tables; callers run `storage.init_schema()` once at startup.

Environment variables
---------------------
- SHORTLINK_STORAGE_BACKEND: "sqlite" (default), "memory" or "postgres"
- SHORTLINK_DB_PATH:         SQLite file path if backend=="sqlite"
- SHORTLINK_DB_DSN:          DSN string if backend=="postgres"
"""

import logging
import os
from typing import Optional

from .base import BaseStorage
from .storage import Storage

log = logging.getLogger(__name__)


def get_storage(backend: Optional[str] = None, **kwargs) -> BaseStorage:
    """
    Return a storage backend based on configuration.

    Parameters
    ----------
    backend : str, optional
        "sqlite", "memory" or "postgres". If omitted, reads SHORTLINK_STORAGE_BACKEND.
    kwargs : dict
        Extra args for the backend: path="..." for sqlite, dsn="..." for postgres.

    Returns
    -------
    BaseStorage-compatible instance
    """
    be = (backend or os.getenv("SHORTLINK_STORAGE_BACKEND", "sqlite")).strip().lower()
    log.info("Selected storage backend: %r", be)

    if be == "memory":
        return Storage()

    if be == "sqlite":
        path = kwargs.get("path") or os.getenv("SHORTLINK_DB_PATH", "data.db")
        from .sql_storage import SQLStorage
        return SQLStorage.from_path(path)

    if be == "postgres":
        dsn = kwargs.get("dsn") or os.getenv("SHORTLINK_DB_DSN", "")
        if not dsn:
            raise ValueError("DB_DSN is required for postgres backend (env SHORTLINK_DB_DSN)")
        # Local import to avoid hard dependency when not using postgres
        from .db_storage import DBStorage
        return DBStorage(dsn=dsn)

    raise ValueError(f"Unknown storage backend: {be!r}")
