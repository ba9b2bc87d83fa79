import sqlite3

import pytest

from receiptbook.db import Storage
from receiptbook.errors import StorageIOError
from receiptbook.migrations import SCHEMA_VERSION, add_column, ensure_schema, table_columns


# Layout written by the first release, before version tracking existed.
LEGACY_SCHEMA = """
CREATE TABLE receipts (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  receiptNumber TEXT NOT NULL UNIQUE,
  total REAL NOT NULL,
  createdAt TEXT NOT NULL
);
CREATE TABLE receipt_items (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  receiptId INTEGER NOT NULL,
  description TEXT NOT NULL,
  quantity INTEGER NOT NULL,
  price REAL NOT NULL,
  FOREIGN KEY (receiptId) REFERENCES receipts(id) ON DELETE CASCADE
);
CREATE TABLE business_profile (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  name TEXT NOT NULL,
  phone TEXT NOT NULL,
  address TEXT,
  cacNumber TEXT,
  logoUri TEXT
);
INSERT INTO receipts(receiptNumber, total, createdAt) VALUES('RCP-1-1', 300, '2024-05-01T10:00:00.000Z');
INSERT INTO receipt_items(receiptId, description, quantity, price) VALUES(1, 'Bread', 3, 100);
INSERT INTO business_profile(name, phone) VALUES('Old Shop', '0800');
"""


def test_fresh_schema_creates_all_tables(storage):
    with storage.read() as conn:
        names = {r["name"] for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
        versions = [r["version"] for r in conn.execute("SELECT version FROM schema_migrations ORDER BY version")]
    assert {"receipts", "receipt_items", "business_profile", "inventory_items",
            "app_settings", "activity_log", "schema_migrations"} <= names
    assert versions == list(range(1, SCHEMA_VERSION + 1))


def test_ensure_schema_twice_is_noop(tmp_db_path):
    st = Storage(tmp_db_path)
    first = ensure_schema(st)
    assert first["applied"] == list(range(1, SCHEMA_VERSION + 1))
    second = ensure_schema(st)
    assert second["applied"] == [] and second["failed"] == []
    st.close()

    # Simulated restart: a new handle over the same file finds nothing to do.
    st2 = Storage(tmp_db_path)
    third = ensure_schema(st2)
    assert third["applied"] == [] and third["status"] == "current"
    assert third["version"] == SCHEMA_VERSION
    st2.close()


def test_wal_mode_enabled(storage):
    with storage.read() as conn:
        assert conn.execute("PRAGMA journal_mode").fetchone()[0].lower() == "wal"


def test_legacy_database_is_migrated_additively(tmp_db_path):
    raw = sqlite3.connect(tmp_db_path)
    raw.executescript(LEGACY_SCHEMA)
    raw.commit()
    raw.close()

    st = Storage(tmp_db_path)
    report = ensure_schema(st)
    assert report["failed"] == []
    with st.read() as conn:
        cols = table_columns(conn, "receipts")
        assert {"paymentStatus", "customerName", "notes", "amountPaid", "customerPhone"} <= cols
        assert {"websiteUri", "customFooter"} <= table_columns(conn, "business_profile")
        row = conn.execute("SELECT * FROM receipts WHERE id=1").fetchone()
        assert row["receiptNumber"] == "RCP-1-1"
        assert row["customerName"] is None
        assert conn.execute("SELECT COUNT(1) FROM receipt_items").fetchone()[0] == 1
        assert conn.execute("SELECT name FROM business_profile").fetchone()[0] == "Old Shop"
    st.close()


def test_add_column_swallows_existing_column(storage):
    with storage.read() as conn:
        assert add_column(conn, "receipts", "notes", "TEXT") is False
        assert add_column(conn, "receipts", "tip", "REAL") is True
        assert "tip" in table_columns(conn, "receipts")


def test_failed_column_is_reported_and_retried(tmp_db_path, monkeypatch):
    import receiptbook.migrations as mig

    real_add = mig.add_column

    def flaky(conn, table, column, decl):
        if column == "customerPhone":
            raise sqlite3.OperationalError("disk I/O error")
        return real_add(conn, table, column, decl)

    monkeypatch.setattr(mig, "add_column", flaky)
    st = Storage(tmp_db_path)
    report = ensure_schema(st)
    assert report["status"] == "degraded"
    assert report["failed"] == ["receipts.customerPhone"]
    # later migrations still ran
    assert 4 in report["applied"] and 3 not in report["applied"]

    monkeypatch.setattr(mig, "add_column", real_add)
    again = ensure_schema(st)
    assert again["applied"] == [3] and again["failed"] == []
    with st.read() as conn:
        assert "customerPhone" in table_columns(conn, "receipts")
    st.close()


def test_table_creation_failure_propagates(tmp_path):
    # A directory cannot be opened as a database file.
    st = Storage(str(tmp_path))
    with pytest.raises(StorageIOError):
        ensure_schema(st)
