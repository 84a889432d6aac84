"""
SQLStorage - SQLAlchemy-backed storage for Shortlink Platform
============================================================

Default durable backend. Any SQLAlchemy URL works; the CLI and app default to a
local SQLite file (`sqlite:///data.db`) so a single-host install needs no server.

Key Design Points
-----------------
- **Uniqueness**: `short_links.code` is UNIQUE. An insert that hits the constraint raises
  `IntegrityError`; when the code is then found stored, `save_link` returns None (code
  taken). Any other integrity failure is a `StorageError`.
- **Atomic increments**: a single `UPDATE ... SET clicks = clicks + 1` statement per click.
- **Transactions**: every call runs in its own `engine.begin()` block, so a failed insert
  leaves nothing behind.
- **Errors**: other `SQLAlchemyError`s are re-raised as `StorageError`.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    delete,
    insert,
    select,
    update,
)
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from .base import BaseStorage
from ..model.errors import StorageError
from ..model.link import ShortLink

log = logging.getLogger(__name__)

metadata = MetaData()

short_links = Table(
    "short_links",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("code", String(255), unique=True, nullable=False, index=True),
    Column("target", Text, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("clicks", BigInteger, nullable=False, default=0),
)


def _as_utc(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back out
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_link(row) -> ShortLink:
    return ShortLink(
        id=row.id,
        code=row.code,
        target=row.target,
        created_at=_as_utc(row.created_at),
        clicks=row.clicks,
    )


class SQLStorage(BaseStorage):
    """SQLAlchemy implementation of the storage contract.

    Args:
        url (str): SQLAlchemy database URL, e.g. "sqlite:///data.db".
    """

    def __init__(self, url: str) -> None:
        self.url = url
        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
        self.engine = create_engine(url, connect_args=connect_args)

    @classmethod
    def from_path(cls, path: str) -> "SQLStorage":
        """Build a SQLite-backed storage for a file path."""
        return cls(f"sqlite:///{path}")

    def init_schema(self) -> None:
        try:
            metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            raise StorageError(f"failed to initialize schema: {exc}") from exc

    def save_link(self, code: str, target: str, created_at: datetime) -> Optional[ShortLink]:
        try:
            with self.engine.begin() as conn:
                result = conn.execute(
                    insert(short_links).values(code=code, target=target, created_at=created_at, clicks=0)
                )
                link_id = result.inserted_primary_key[0]
        except IntegrityError as exc:
            # Only the unique code constraint means "taken"; NOT NULL and
            # other constraint failures are real errors.
            if self.get_link(code) is not None:
                log.debug("Insert for code %r rejected by unique constraint", code)
                return None
            raise StorageError(f"failed to save URL: {exc}") from exc
        except SQLAlchemyError as exc:
            raise StorageError(f"failed to save URL: {exc}") from exc
        return ShortLink(id=link_id, code=code, target=target, created_at=created_at, clicks=0)

    def get_link(self, code: str) -> Optional[ShortLink]:
        try:
            with self.engine.connect() as conn:
                row = conn.execute(select(short_links).where(short_links.c.code == code)).first()
        except SQLAlchemyError as exc:
            raise StorageError(f"failed to get URL: {exc}") from exc
        return _to_link(row) if row else None

    def increment_click(self, code: str) -> bool:
        stmt = (
            update(short_links)
            .where(short_links.c.code == code)
            .values(clicks=short_links.c.clicks + 1)
        )
        try:
            with self.engine.begin() as conn:
                return conn.execute(stmt).rowcount == 1
        except SQLAlchemyError as exc:
            raise StorageError(f"failed to increment clicks: {exc}") from exc

    def list_links(self) -> List[ShortLink]:
        stmt = select(short_links).order_by(short_links.c.created_at.desc(), short_links.c.id.desc())
        try:
            with self.engine.connect() as conn:
                return [_to_link(row) for row in conn.execute(stmt)]
        except SQLAlchemyError as exc:
            raise StorageError(f"failed to list URLs: {exc}") from exc

    def delete_link(self, code: str) -> bool:
        try:
            with self.engine.begin() as conn:
                return conn.execute(delete(short_links).where(short_links.c.code == code)).rowcount == 1
        except SQLAlchemyError as exc:
            raise StorageError(f"failed to delete URL: {exc}") from exc

    def close(self) -> None:
        self.engine.dispose()
