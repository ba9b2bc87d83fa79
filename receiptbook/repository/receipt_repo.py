from __future__ import annotations

from sqlite3 import Connection
from typing import Iterable

from ..models import ReceiptHeader, ReceiptItem

_RECEIPT_COLS = (
    "id, receiptNumber, total, createdAt, paymentStatus, amountPaid, "
    "customerName, customerPhone, notes"
)


def _status_value(header: ReceiptHeader):
    st = header.payment_status
    return st.value if st is not None else None


def insert_receipt(conn: Connection, header: ReceiptHeader) -> int:
    cur = conn.execute(
        "INSERT INTO receipts(receiptNumber, total, createdAt, paymentStatus, amountPaid, "
        "customerName, customerPhone, notes) VALUES(?,?,?,?,?,?,?,?)",
        (
            header.receipt_number,
            header.total,
            header.created_at,
            _status_value(header),
            header.amount_paid,
            header.customer_name or None,
            header.customer_phone or None,
            header.notes or None,
        ),
    )
    return int(cur.lastrowid)


def update_receipt(conn: Connection, receipt_id: int, header: ReceiptHeader) -> bool:
    cur = conn.execute(
        "UPDATE receipts SET receiptNumber=?, total=?, createdAt=?, paymentStatus=?, amountPaid=?, "
        "customerName=?, customerPhone=?, notes=? WHERE id=?",
        (
            header.receipt_number,
            header.total,
            header.created_at,
            _status_value(header),
            header.amount_paid,
            header.customer_name or None,
            header.customer_phone or None,
            header.notes or None,
            receipt_id,
        ),
    )
    return cur.rowcount > 0


def insert_items(conn: Connection, receipt_id: int, items: Iterable[ReceiptItem]) -> None:
    conn.executemany(
        "INSERT INTO receipt_items(receiptId, description, quantity, price) VALUES(?,?,?,?)",
        [(receipt_id, it.description, it.quantity, it.price) for it in items],
    )


def delete_items(conn: Connection, receipt_id: int) -> int:
    return conn.execute("DELETE FROM receipt_items WHERE receiptId=?", (receipt_id,)).rowcount


def delete_receipt(conn: Connection, receipt_id: int) -> bool:
    delete_items(conn, receipt_id)
    return conn.execute("DELETE FROM receipts WHERE id=?", (receipt_id,)).rowcount > 0


def get_one(conn: Connection, receipt_id: int):
    return conn.execute(f"SELECT {_RECEIPT_COLS} FROM receipts WHERE id=? LIMIT 1", (receipt_id,)).fetchone()


def list_all(conn: Connection):
    # createdAt is fixed-width ISO-8601, so string order is time order.
    return conn.execute(f"SELECT {_RECEIPT_COLS} FROM receipts ORDER BY createdAt DESC, id DESC").fetchall()


def list_items(conn: Connection, receipt_id: int):
    return conn.execute(
        "SELECT id, receiptId, description, quantity, price FROM receipt_items WHERE receiptId=? ORDER BY id",
        (receipt_id,),
    ).fetchall()


def count_items(conn: Connection, receipt_id: int) -> int:
    return int(conn.execute("SELECT COUNT(1) AS c FROM receipt_items WHERE receiptId=?", (receipt_id,)).fetchone()["c"])


def count_created_between(conn: Connection, start_iso: str, end_iso: str) -> int:
    row = conn.execute(
        "SELECT COUNT(1) AS c FROM receipts WHERE createdAt >= ? AND createdAt < ?",
        (start_iso, end_iso),
    ).fetchone()
    return int(row["c"])
