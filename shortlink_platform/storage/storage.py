"""
Storage module for Shortlink Platform (in-memory implementation).

Responsibilities:
    - Save links keyed by short code (insert-if-absent)
    - Track click counts
    - Provide lookup, newest-first listing and deletion

Design:
    - This is an in-memory reference implementation that satisfies the BaseStorage contract.
    - A single lock guards the dict, so inserts and increments stay atomic when
      FastAPI runs sync endpoints and background tasks on its threadpool.
    - Records are held as plain dicts and handed out as fresh ShortLink snapshots.
    - For durable deployments use SQLStorage (SQLite) or DBStorage (Postgres).

LLM Prompt Example:
    "Explain how this in-memory storage can be swapped for a database-backed layer
     (Postgres/SQLite) without changing the registry or API code, by adhering to a
     narrow, explicit BaseStorage interface."
"""

import itertools
import threading
from datetime import datetime
from typing import Any, Dict, List, Optional

from .base import BaseStorage
from ..model.link import ShortLink


class Storage(BaseStorage):
    def __init__(self):
        """
        Initialize empty storage dictionary.

        Internal schema:
            self.links = {
                code: {
                    "id": int,
                    "target": str,
                    "created_at": datetime,
                    "clicks": int,
                }
            }
        """
        self.links: Dict[str, Dict[str, Any]] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    @staticmethod
    def _snapshot(code: str, row: Dict[str, Any]) -> ShortLink:
        return ShortLink(
            id=row["id"],
            code=code,
            target=row["target"],
            created_at=row["created_at"],
            clicks=row["clicks"],
        )

    def save_link(self, code: str, target: str, created_at: datetime) -> Optional[ShortLink]:
        """
        Insert a link unless the code is already taken.

        Returns:
            Optional[ShortLink]: The new record, or None on code collision.
        """
        with self._lock:
            if code in self.links:
                return None
            row = {"id": next(self._ids), "target": target, "created_at": created_at, "clicks": 0}
            self.links[code] = row
            return self._snapshot(code, row)

    def get_link(self, code: str) -> Optional[ShortLink]:
        with self._lock:
            row = self.links.get(code)
            return self._snapshot(code, row) if row else None

    def increment_click(self, code: str) -> bool:
        """
        Increment click count for a given code.

        Returns:
            bool: True if incremented, False if the code is not stored.
        """
        with self._lock:
            row = self.links.get(code)
            if row is None:
                return False
            row["clicks"] += 1
            return True

    def list_links(self) -> List[ShortLink]:
        with self._lock:
            items = [self._snapshot(code, row) for code, row in self.links.items()]
        # id breaks ties between links created within the same clock tick
        return sorted(items, key=lambda link: (link.created_at, link.id), reverse=True)

    def delete_link(self, code: str) -> bool:
        with self._lock:
            return self.links.pop(code, None) is not None
