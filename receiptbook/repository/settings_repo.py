from sqlite3 import Connection
from typing import Dict, Optional


def get_value(conn: Connection, key: str) -> Optional[str]:
    row = conn.execute("SELECT value FROM app_settings WHERE key=?", (key,)).fetchone()
    return row["value"] if row else None


def set_value(conn: Connection, key: str, value: str) -> None:
    conn.execute("INSERT OR REPLACE INTO app_settings(key, value) VALUES(?, ?)", (key, value))


def set_default(conn: Connection, key: str, value: str) -> None:
    conn.execute(
        "INSERT INTO app_settings(key, value) VALUES(?, ?) ON CONFLICT(key) DO NOTHING",
        (key, value),
    )


def increment(conn: Connection, key: str, by: int = 1) -> int:
    conn.execute(
        "INSERT INTO app_settings(key, value) VALUES(?, ?) "
        "ON CONFLICT(key) DO UPDATE SET value = CAST(COALESCE(value, '0') AS INTEGER) + excluded.value",
        (key, str(by)),
    )
    return int(get_value(conn, key) or 0)


def all_values(conn: Connection) -> Dict[str, str]:
    return {r["key"]: r["value"] for r in conn.execute("SELECT key, value FROM app_settings").fetchall()}
