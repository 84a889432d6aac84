from datetime import datetime, timezone

import psycopg
import pytest

from shortlink_platform.model.errors import StorageError
from shortlink_platform.storage.db_storage import DBStorage

T0 = datetime(2025, 1, 1, tzinfo=timezone.utc)

ROW = {
    "id": 7,
    "code": "abc",
    "target": "https://x.com",
    "created_at": T0,
    "clicks": 3,
}


class DummyCursor:
    def __init__(self, results=None, rowcount=1, error=None):
        # results is a list of dicts
        self._results = list(results or [])
        self.rowcount = rowcount
        self.error = error
        self.queries = []

    def execute(self, query, params=None):
        if self.error is not None:
            raise self.error
        self.queries.append((query, params))
        return self

    def fetchone(self):
        return self._results.pop(0) if self._results else None

    def fetchall(self):
        rows, self._results = self._results, []
        return rows

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


class DummyConnection:
    def __init__(self, results=None, rowcount=1, error=None):
        self.cursor_obj = DummyCursor(results=results, rowcount=rowcount, error=error)
        self.autocommit = False
        self.closed = False

    def cursor(self, row_factory=None):
        return self.cursor_obj

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


def _use(monkeypatch, conn):
    monkeypatch.setattr("psycopg.connect", lambda dsn: conn)
    return DBStorage("fake")


# ---------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------

def test_get_link(monkeypatch):
    conn = DummyConnection(results=[ROW])
    link = _use(monkeypatch, conn).get_link("abc")
    assert link.id == 7
    assert link.target == "https://x.com"
    assert link.clicks == 3
    assert conn.autocommit is True
    assert conn.closed is True


def test_get_link_missing(monkeypatch):
    assert _use(monkeypatch, DummyConnection(results=[])).get_link("abc") is None


def test_save_link_inserted(monkeypatch):
    conn = DummyConnection(results=[{**ROW, "clicks": 0}])
    link = _use(monkeypatch, conn).save_link("abc", "https://x.com", T0)
    assert link.id == 7 and link.clicks == 0
    query, params = conn.cursor_obj.queries[0]
    assert "ON CONFLICT (code) DO NOTHING" in query
    assert params == ("abc", "https://x.com", T0)


def test_save_link_conflict(monkeypatch):
    # ON CONFLICT DO NOTHING returns no row
    assert _use(monkeypatch, DummyConnection(results=[])).save_link("abc", "https://x.com", T0) is None


def test_increment_click(monkeypatch):
    assert _use(monkeypatch, DummyConnection(rowcount=1)).increment_click("abc") is True
    assert _use(monkeypatch, DummyConnection(rowcount=0)).increment_click("abc") is False


def test_list_links(monkeypatch):
    rows = [{**ROW, "id": 2, "code": "b"}, {**ROW, "id": 1, "code": "a"}]
    conn = DummyConnection(results=rows)
    links = _use(monkeypatch, conn).list_links()
    assert [link.code for link in links] == ["b", "a"]
    assert "ORDER BY created_at DESC" in conn.cursor_obj.queries[0][0]


def test_delete_link(monkeypatch):
    assert _use(monkeypatch, DummyConnection(rowcount=1)).delete_link("abc") is True
    assert _use(monkeypatch, DummyConnection(rowcount=0)).delete_link("abc") is False


def test_init_schema(monkeypatch):
    conn = DummyConnection()
    _use(monkeypatch, conn).init_schema()
    assert "CREATE TABLE IF NOT EXISTS short_links" in conn.cursor_obj.queries[0][0]


def test_query_error_wrapped(monkeypatch):
    conn = DummyConnection(error=psycopg.OperationalError("server closed the connection"))
    with pytest.raises(StorageError, match="server closed the connection"):
        _use(monkeypatch, conn).get_link("abc")
    assert conn.closed is True


def test_connect_error_wrapped(monkeypatch):
    def _refuse(dsn):
        raise psycopg.OperationalError("connection refused")

    monkeypatch.setattr("psycopg.connect", _refuse)
    with pytest.raises(StorageError, match="could not connect"):
        DBStorage("fake").list_links()
