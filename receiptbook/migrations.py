"""
Schema manager: ordered, additive migrations tracked in schema_migrations.

Every step is idempotent (CREATE ... IF NOT EXISTS, columns introspected
through PRAGMA table_info), so databases created before version tracking
existed are brought forward without losing data. Nothing is ever dropped
or retyped.
"""
from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, field
from sqlite3 import Connection
from typing import Dict, List, Tuple

from .db import Storage, translate_errors
from .domain.receipt_math import utc_now_iso

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Migration:
    version: int
    name: str
    # Failures here abort ensure_schema.
    statements: Tuple[str, ...] = ()
    # (table, column, decl) additions; failures are logged and retried next start.
    columns: Tuple[Tuple[str, str, str], ...] = field(default_factory=tuple)


MIGRATIONS: List[Migration] = [
    Migration(
        1,
        "base_tables",
        statements=(
            """
            CREATE TABLE IF NOT EXISTS receipts (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              receiptNumber TEXT NOT NULL UNIQUE,
              total REAL NOT NULL,
              createdAt TEXT NOT NULL
            )
            """,
            """
            CREATE TABLE IF NOT EXISTS receipt_items (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              receiptId INTEGER NOT NULL,
              description TEXT NOT NULL,
              quantity REAL NOT NULL,
              price REAL NOT NULL,
              FOREIGN KEY (receiptId) REFERENCES receipts(id) ON DELETE CASCADE
            )
            """,
            """
            CREATE TABLE IF NOT EXISTS business_profile (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              name TEXT NOT NULL,
              phone TEXT NOT NULL,
              address TEXT,
              cacNumber TEXT,
              logoUri TEXT
            )
            """,
        ),
    ),
    Migration(
        2,
        "receipt_customer_and_status",
        columns=(
            ("receipts", "paymentStatus", "TEXT"),
            ("receipts", "customerName", "TEXT"),
            ("receipts", "notes", "TEXT"),
        ),
    ),
    Migration(
        3,
        "part_payment_and_profile_links",
        columns=(
            ("receipts", "amountPaid", "REAL"),
            ("receipts", "customerPhone", "TEXT"),
            ("business_profile", "websiteUri", "TEXT"),
            ("business_profile", "customFooter", "TEXT"),
        ),
    ),
    Migration(
        4,
        "inventory_items",
        statements=(
            """
            CREATE TABLE IF NOT EXISTS inventory_items (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              name TEXT NOT NULL,
              description TEXT,
              price REAL NOT NULL,
              createdAt TEXT NOT NULL
            )
            """,
            "CREATE INDEX IF NOT EXISTS idx_inventory_name ON inventory_items(name)",
        ),
    ),
    Migration(
        5,
        "app_settings",
        statements=(
            """
            CREATE TABLE IF NOT EXISTS app_settings (
              key TEXT PRIMARY KEY NOT NULL,
              value TEXT
            )
            """,
        ),
    ),
    Migration(
        6,
        "receipt_indexes",
        statements=(
            "CREATE INDEX IF NOT EXISTS idx_receipt_items_receipt ON receipt_items(receiptId)",
            "CREATE INDEX IF NOT EXISTS idx_receipts_created ON receipts(createdAt)",
        ),
    ),
    Migration(
        7,
        "activity_log",
        statements=(
            """
            CREATE TABLE IF NOT EXISTS activity_log (
              id INTEGER PRIMARY KEY AUTOINCREMENT,
              ts TEXT NOT NULL,
              action TEXT NOT NULL,
              entity TEXT NOT NULL,
              entity_id TEXT,
              changes_json TEXT,
              result TEXT NOT NULL,
              error TEXT
            )
            """,
            "CREATE INDEX IF NOT EXISTS idx_activity_entity ON activity_log(entity, entity_id)",
            "CREATE INDEX IF NOT EXISTS idx_activity_ts ON activity_log(ts)",
        ),
    ),
]

SCHEMA_VERSION = MIGRATIONS[-1].version

_CREATE_META = """
CREATE TABLE IF NOT EXISTS schema_migrations (
  version INTEGER PRIMARY KEY,
  name TEXT NOT NULL,
  applied_at TEXT NOT NULL
)
"""


def table_columns(conn: Connection, table: str) -> set[str]:
    return {r[1] for r in conn.execute(f"PRAGMA table_info({table})").fetchall()}


def applied_versions(conn: Connection) -> set[int]:
    return {int(r[0]) for r in conn.execute("SELECT version FROM schema_migrations").fetchall()}


def add_column(conn: Connection, table: str, column: str, decl: str) -> bool:
    """ALTER TABLE ADD COLUMN unless present. Returns True if the column was added."""
    if column in table_columns(conn, table):
        return False
    try:
        conn.execute(f"ALTER TABLE {table} ADD COLUMN {column} {decl}")
    except sqlite3.OperationalError as e:
        # Another caller got there first.
        if "duplicate column name" in str(e).lower():
            return False
        raise
    return True


def _apply(conn: Connection, m: Migration) -> List[str]:
    """Run one migration inside a transaction; return failed column names."""
    failed: List[str] = []
    conn.execute("BEGIN IMMEDIATE")
    try:
        for sql in m.statements:
            conn.execute(sql)
        for table, column, decl in m.columns:
            try:
                add_column(conn, table, column, decl)
            except sqlite3.Error as e:
                logger.warning("migration %s: adding %s.%s failed: %s", m.version, table, column, e)
                failed.append(f"{table}.{column}")
        if not failed:
            conn.execute(
                "INSERT OR IGNORE INTO schema_migrations(version, name, applied_at) VALUES(?,?,?)",
                (m.version, m.name, utc_now_iso()),
            )
    except BaseException:
        conn.rollback()
        raise
    conn.execute("COMMIT")
    return failed


def ensure_schema(storage: Storage) -> Dict[str, object]:
    """
    Create and migrate the schema. Safe to call repeatedly; after the first
    successful run on a Storage it returns immediately.

    Table creation errors propagate as StorageIOError. Column additions that
    fail for reasons other than "already exists" are logged and reported in
    the "failed" list; the affected fields read back as None.
    """
    if not storage.persistent:
        return {"version": 0, "applied": [], "failed": [], "status": "unsupported"}
    if storage.schema_ready:
        return {"version": SCHEMA_VERSION, "applied": [], "failed": [], "status": "current"}

    applied: List[int] = []
    failed: List[str] = []
    conn = storage.conn
    with storage._lock, translate_errors():
        mode = conn.execute("PRAGMA journal_mode=WAL").fetchone()
        logger.debug("journal_mode=%s", mode[0] if mode else None)
        conn.execute(_CREATE_META)
        done = applied_versions(conn)
        for m in MIGRATIONS:
            if m.version in done:
                continue
            errs = _apply(conn, m)
            if errs:
                failed.extend(errs)
            else:
                applied.append(m.version)
        version = max(applied_versions(conn) or {0})

    if failed:
        logger.warning("schema migrated with failures: %s", failed)
    else:
        storage.schema_ready = True
    return {
        "version": version,
        "applied": applied,
        "failed": failed,
        "status": "degraded" if failed else ("migrated" if applied else "current"),
    }
