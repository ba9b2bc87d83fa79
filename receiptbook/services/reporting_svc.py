from __future__ import annotations

# receiptbook/services/reporting_svc.py
from datetime import datetime
from typing import Any, Dict, List, Optional

import pandas as pd

from ..db import Storage
from ..domain.receipt_math import amounts_equal, round_amount
from ..repository import reporting_repo
from .usage_svc import billing_period


def _balance(status: Optional[str], total: float, amount_paid: Optional[float]) -> Optional[float]:
    if not status:
        return None
    if status == "not_paid":
        return round_amount(total)
    return round_amount(total - (amount_paid or 0.0))


def list_receipt_summaries(storage: Storage) -> List[Dict[str, Any]]:
    """
    Receipts newest first with item_count, items_total, balance_due and a
    consistent flag telling whether the stored total still matches its items.
    """
    if not storage.persistent:
        return []
    with storage.read() as conn:
        rows = reporting_repo.receipt_summaries(conn)
    out = []
    for r in rows:
        total = float(r["total"])
        items_total = round_amount(float(r["items_total"] or 0.0))
        amount_paid = float(r["amountPaid"]) if r["amountPaid"] is not None else None
        out.append({
            "id": r["id"],
            "receipt_number": r["receiptNumber"],
            "created_at": r["createdAt"],
            "customer_name": r["customerName"],
            "payment_status": r["paymentStatus"],
            "total": total,
            "amount_paid": amount_paid,
            "balance_due": _balance(r["paymentStatus"], total, amount_paid),
            "item_count": int(r["item_count"]),
            "items_total": items_total,
            "consistent": amounts_equal(total, items_total),
        })
    return out


def _collected(row) -> float:
    st = row["paymentStatus"]
    if st == "paid":
        return float(row["total"])
    if st == "part_paid" and pd.notna(row["amountPaid"]):
        return float(row["amountPaid"])
    return 0.0


def _outstanding(row) -> float:
    st = row["paymentStatus"] if isinstance(row["paymentStatus"], str) else None
    paid = float(row["amountPaid"]) if pd.notna(row["amountPaid"]) else None
    return _balance(st, float(row["total"]), paid) or 0.0


def monthly_sales_summary(storage: Storage, start: Optional[datetime] = None, end: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """
    Per-month totals, newest month first:
    month, receipt_count, gross, collected, outstanding, customers.
    Unset payment status counts as neither collected nor outstanding.
    """
    if not storage.persistent:
        return []
    start_iso = billing_period(start)[1] if start else "0000"
    end_iso = billing_period(end)[2] if end else "9999"
    with storage.read() as conn:
        df = pd.read_sql_query(reporting_repo.RECEIPTS_FOR_PERIOD_SQL, conn, params=(start_iso, end_iso))
    if df.empty:
        return []

    df["month"] = df["createdAt"].str.slice(0, 7)
    df["collected"] = df.apply(_collected, axis=1)
    df["outstanding"] = df.apply(_outstanding, axis=1)
    grouped = df.groupby("month").agg(
        receipt_count=("id", "count"),
        gross=("total", "sum"),
        collected=("collected", "sum"),
        outstanding=("outstanding", "sum"),
        customers=("customerName", "nunique"),
    ).reset_index()
    grouped = grouped.sort_values("month", ascending=False)

    out = []
    for r in grouped.to_dict("records"):
        out.append({
            "month": r["month"],
            "receipt_count": int(r["receipt_count"]),
            "gross": round_amount(float(r["gross"])),
            "collected": round_amount(float(r["collected"])),
            "outstanding": round_amount(float(r["outstanding"])),
            "customers": int(r["customers"]),
        })
    return out


def outstanding_by_customer(storage: Storage) -> List[Dict[str, Any]]:
    """Unpaid and part-paid balances grouped by customer name, largest first."""
    rows = [s for s in list_receipt_summaries(storage) if s["balance_due"]]
    if not rows:
        return []
    df = pd.DataFrame(rows)
    df["customer_name"] = df["customer_name"].fillna("")
    g = df.groupby("customer_name").agg(
        receipts=("id", "count"),
        balance_due=("balance_due", "sum"),
    ).reset_index().sort_values(["balance_due", "customer_name"], ascending=[False, True])
    return [
        {"customer_name": r["customer_name"] or None, "receipts": int(r["receipts"]), "balance_due": round_amount(float(r["balance_due"]))}
        for r in g.to_dict("records")
    ]
