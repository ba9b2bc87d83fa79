from sqlite3 import Connection


def receipt_summaries(conn: Connection):
    """
    One row per receipt joined with its items.
    Columns: id, receiptNumber, total, createdAt, customerName, paymentStatus,
             amountPaid, item_count, items_total
    """
    return conn.execute(
        """
        SELECT r.id, r.receiptNumber, r.total, r.createdAt, r.customerName,
               r.paymentStatus, r.amountPaid,
               COUNT(ri.id) AS item_count,
               IFNULL(SUM(ri.quantity * ri.price), 0) AS items_total
        FROM receipts r
        LEFT JOIN receipt_items ri ON ri.receiptId = r.id
        GROUP BY r.id
        ORDER BY r.createdAt DESC, r.id DESC
        """
    ).fetchall()


RECEIPTS_FOR_PERIOD_SQL = """
SELECT id, createdAt, total, paymentStatus, amountPaid, customerName
FROM receipts
WHERE createdAt >= ? AND createdAt < ?
ORDER BY createdAt
"""
