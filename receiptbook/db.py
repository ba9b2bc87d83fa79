from __future__ import annotations

# receiptbook/db.py
import logging
import os
import sqlite3
import threading
from contextlib import contextmanager
from typing import Iterator

import yaml

from .errors import ConstraintError, StorageIOError, UnsupportedPlatformError

logger = logging.getLogger(__name__)

# DB path resolution order:
# 1) env RECEIPTBOOK_DB_PATH (highest priority)
# 2) config.yaml test_db_path (when running under tests)
# 3) config.yaml db_path
# 4) fallback: receipts.db at the project root
_PROJECT_ROOT = os.path.dirname(os.path.dirname(__file__))
_ROOT_DB = os.path.join(_PROJECT_ROOT, "receipts.db")


def read_config_yaml() -> dict:
    cfg_path = os.environ.get("RECEIPTBOOK_CONFIG") or os.path.join(_PROJECT_ROOT, "config.yaml")
    if not os.path.exists(cfg_path):
        return {}
    with open(cfg_path, "r", encoding="utf-8") as f:
        cfg = yaml.safe_load(f) or {}
    out = {}
    for k in ("db_path", "test_db_path"):
        v = cfg.get(k)
        if isinstance(v, str) and v.strip():
            out[k] = v.strip()
    if "persistent_storage" in cfg:
        out["persistent_storage"] = bool(cfg["persistent_storage"])
    return out


def get_db_path() -> str:
    env_path = os.environ.get("RECEIPTBOOK_DB_PATH")
    cfg = read_config_yaml()
    is_test = (os.environ.get("APP_ENV") == "test") or (os.environ.get("PYTEST_CURRENT_TEST") is not None)

    if env_path:
        path = env_path
    elif is_test and cfg.get("test_db_path"):
        path = cfg["test_db_path"]
    elif cfg.get("db_path"):
        path = cfg["db_path"]
    else:
        path = _ROOT_DB

    if path != ":memory:":
        dirn = os.path.dirname(path) or "."
        os.makedirs(dirn, exist_ok=True)
    return path


@contextmanager
def translate_errors() -> Iterator[None]:
    """Re-raise sqlite3 errors as ConstraintError / StorageIOError."""
    try:
        yield
    except sqlite3.IntegrityError as e:
        raise ConstraintError(str(e)) from e
    except sqlite3.Error as e:
        logger.error("storage error: %s", e)
        raise StorageIOError(str(e)) from e


class Storage:
    """
    Process-scoped handle around a single SQLite connection.

    The connection is opened lazily on first use and kept until close().
    Statements are serialized through one lock since the connection is shared
    by every thread of the process. With persistent=False the handle models a
    platform without local storage: writes raise UnsupportedPlatformError and
    services return empty results for reads.
    """

    def __init__(self, db_path: str | None = None, persistent: bool = True):
        self.db_path = db_path
        self.persistent = persistent
        self.schema_ready = False
        self._conn: sqlite3.Connection | None = None
        self._open_lock = threading.Lock()
        self._lock = threading.RLock()

    @classmethod
    def from_config(cls) -> "Storage":
        cfg = read_config_yaml()
        persistent = cfg.get("persistent_storage", True)
        return cls(get_db_path() if persistent else None, persistent=persistent)

    def _open(self) -> sqlite3.Connection:
        path = self.db_path or get_db_path()
        with translate_errors():
            conn = sqlite3.connect(path, check_same_thread=False, isolation_level=None)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys = ON;")
        logger.debug("opened sqlite connection at %s", path)
        return conn

    @property
    def conn(self) -> sqlite3.Connection:
        if not self.persistent:
            raise UnsupportedPlatformError()
        if self._conn is None:
            with self._open_lock:
                if self._conn is None:
                    self._conn = self._open()
        return self._conn

    def require_persistent(self) -> None:
        if not self.persistent:
            raise UnsupportedPlatformError()

    @contextmanager
    def read(self) -> Iterator[sqlite3.Connection]:
        conn = self.conn
        with self._lock, translate_errors():
            yield conn

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """BEGIN IMMEDIATE ... COMMIT, rolling back on any exception."""
        conn = self.conn
        with self._lock, translate_errors():
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.rollback()
                raise
            conn.execute("COMMIT")

    def close(self) -> None:
        with self._open_lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
                self.schema_ready = False
