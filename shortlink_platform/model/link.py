"""
ShortLink record for Shortlink Platform.

One persisted mapping from a short code to its target URL. Records are
immutable snapshots: storage backends build a fresh instance on every read,
so a caller holding a ShortLink never observes later click increments.
"""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class ShortLink:
    """
    A stored short link.

    Attributes:
        id (int): Identifier assigned by storage on insert.
        code (str): Unique, case-sensitive short code.
        target (str): Normalised absolute URL.
        created_at (datetime): Creation time (UTC), never mutated.
        clicks (int): Cumulative click count, starts at 0.
    """
    id: int
    code: str
    target: str
    created_at: datetime
    clicks: int = 0
