from receiptbook.models import PaymentStatus, ReceiptHeader, ReceiptItem
from receiptbook.services import receipt_svc, reporting_svc


def _save(storage, number, created_at, items, customer, status=None, paid=None):
    total = sum(i.quantity * i.price for i in items)
    return receipt_svc.save_receipt(
        storage,
        ReceiptHeader(receipt_number=number, total=total, created_at=created_at, customer_name=customer,
                      payment_status=status, amount_paid=paid),
        items,
    )


def _seed(storage):
    _save(storage, "R-1", "2025-01-10T09:00:00.000Z", [ReceiptItem("Rice", 2, 100)], "Jane",
          PaymentStatus.PAID, 200.0)
    _save(storage, "R-2", "2025-01-20T09:00:00.000Z", [ReceiptItem("Oil", 1, 50), ReceiptItem("Salt", 2, 25)],
          "Musa", PaymentStatus.PART_PAID, 40.0)
    _save(storage, "R-3", "2025-02-02T09:00:00.000Z", [ReceiptItem("Soap", 3, 30)], "Jane",
          PaymentStatus.NOT_PAID)
    _save(storage, "R-4", "2025-02-03T09:00:00.000Z", [ReceiptItem("Pen", 1, 10)], "Ada")


def test_receipt_summaries_join_items(storage):
    _seed(storage)
    rows = reporting_svc.list_receipt_summaries(storage)
    assert [r["receipt_number"] for r in rows] == ["R-4", "R-3", "R-2", "R-1"]
    by_no = {r["receipt_number"]: r for r in rows}
    assert by_no["R-2"]["item_count"] == 2
    assert by_no["R-2"]["items_total"] == 100.0
    assert by_no["R-2"]["balance_due"] == 60.0
    assert by_no["R-3"]["balance_due"] == 90.0
    assert by_no["R-1"]["balance_due"] == 0.0
    assert by_no["R-4"]["balance_due"] is None
    assert all(r["consistent"] for r in rows)


def test_summary_flags_total_drift(storage):
    rid = _save(storage, "R-9", "2025-01-10T09:00:00.000Z", [ReceiptItem("Rice", 1, 100)], "Jane")
    with storage.read() as conn:
        conn.execute("UPDATE receipts SET total=120 WHERE id=?", (rid,))
    (row,) = reporting_svc.list_receipt_summaries(storage)
    assert row["consistent"] is False


def test_monthly_sales_summary(storage):
    _seed(storage)
    months = reporting_svc.monthly_sales_summary(storage)
    assert [m["month"] for m in months] == ["2025-02", "2025-01"]
    feb, jan = months
    assert jan == {"month": "2025-01", "receipt_count": 2, "gross": 300.0, "collected": 240.0,
                   "outstanding": 60.0, "customers": 2}
    assert feb["gross"] == 100.0 and feb["collected"] == 0.0 and feb["outstanding"] == 90.0


def test_outstanding_by_customer(storage):
    _seed(storage)
    out = reporting_svc.outstanding_by_customer(storage)
    assert out == [
        {"customer_name": "Jane", "receipts": 1, "balance_due": 90.0},
        {"customer_name": "Musa", "receipts": 1, "balance_due": 60.0},
    ]


def test_reports_empty(storage, offline_storage):
    assert reporting_svc.monthly_sales_summary(storage) == []
    assert reporting_svc.list_receipt_summaries(offline_storage) == []
