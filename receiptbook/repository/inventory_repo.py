from sqlite3 import Connection
from typing import Optional

_COLS = "id, name, description, price, createdAt"


def _like_escape(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def insert_item(conn: Connection, name: str, description: Optional[str], price: float, created_at: str) -> int:
    cur = conn.execute(
        "INSERT INTO inventory_items(name, description, price, createdAt) VALUES(?,?,?,?)",
        (name, description or None, price, created_at),
    )
    return int(cur.lastrowid)


def update_item(conn: Connection, item_id: int, name: str, description: Optional[str], price: float) -> bool:
    cur = conn.execute(
        "UPDATE inventory_items SET name=?, description=?, price=? WHERE id=?",
        (name, description or None, price, item_id),
    )
    return cur.rowcount > 0


def delete_item(conn: Connection, item_id: int) -> bool:
    return conn.execute("DELETE FROM inventory_items WHERE id=?", (item_id,)).rowcount > 0


def get_one(conn: Connection, item_id: int):
    return conn.execute(f"SELECT {_COLS} FROM inventory_items WHERE id=?", (item_id,)).fetchone()


def list_all(conn: Connection):
    return conn.execute(f"SELECT {_COLS} FROM inventory_items ORDER BY name COLLATE NOCASE, id").fetchall()


def search(conn: Connection, term: str):
    """Case-insensitive substring match on name or description."""
    q = f"%{_like_escape(term.lower())}%"
    return conn.execute(
        f"SELECT {_COLS} FROM inventory_items "
        "WHERE LOWER(name) LIKE :q ESCAPE '\\' OR LOWER(COALESCE(description,'')) LIKE :q ESCAPE '\\' "
        "ORDER BY name COLLATE NOCASE, id",
        {"q": q},
    ).fetchall()
