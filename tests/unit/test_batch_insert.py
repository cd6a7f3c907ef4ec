from __future__ import annotations

import pytest

from candidate_ingest.db.batch_insert import BatchInsertError, InsertResult, batch_insert


class DummyCursor:
    def __init__(self) -> None:
        self.queries: list[str] = []
        self.fetched: list[tuple] = [(1,), (2,)]


# execute_values is replaced inside the module so the SQL can be inspected
# without a live connection

@pytest.fixture(autouse=True)
def patch_execute_values(monkeypatch):
    import candidate_ingest.db.batch_insert as bi

    def fake_execute_values(cursor, sql, rows, page_size=1000, fetch=False):
        cursor.queries.append(sql)
        return cursor.fetched if fetch else None

    monkeypatch.setattr(bi, "execute_values", fake_execute_values)
    return fake_execute_values


def test_batch_insert_basic():
    cur = DummyCursor()
    res = batch_insert(cur, table="candidates", columns=["name", "email"], rows=[["Ann", "a@x.com"], ["Bo", None]])
    assert isinstance(res, InsertResult)
    assert res.inserted_rows == 2
    assert res.returned_values is None
    assert cur.queries == ['INSERT INTO candidates ("name","email") VALUES %s']


def test_batch_insert_returning():
    cur = DummyCursor()
    res = batch_insert(cur, table="candidates", columns=["name"], rows=[["Ann"], ["Bo"]], returning="id")
    assert res.returned_values == [(1,), (2,)]
    assert cur.queries[0].endswith(' RETURNING "id"')


def test_batch_insert_empty_rows_skips_query():
    cur = DummyCursor()
    res = batch_insert(cur, table="candidates", columns=["name"], rows=[], returning="id")
    assert res.inserted_rows == 0
    assert res.returned_values == []
    assert cur.queries == []


def test_batch_insert_wraps_driver_errors(monkeypatch):
    import candidate_ingest.db.batch_insert as bi

    def boom(*args, **kwargs):
        raise RuntimeError("duplicate key")

    monkeypatch.setattr(bi, "execute_values", boom)
    with pytest.raises(BatchInsertError, match="duplicate key"):
        batch_insert(DummyCursor(), table="candidates", columns=["name"], rows=[["Ann"]])
