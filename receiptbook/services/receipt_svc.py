from __future__ import annotations

# receiptbook/services/receipt_svc.py
from dataclasses import replace
from typing import Iterable, List, Optional

from ..db import Storage
from ..domain.receipt_math import (
    amounts_equal,
    compute_total,
    filter_valid_items,
    generate_receipt_number,
    normalize_payment,
    utc_now_iso,
)
from ..errors import NotFoundError, ValidationError
from ..logs import Activity
from ..models import PaymentStatus, Receipt, ReceiptHeader, ReceiptItem
from ..repository import profile_repo, receipt_repo
from . import usage_svc


def _row_to_item(r) -> ReceiptItem:
    return ReceiptItem(
        id=r["id"],
        receipt_id=r["receiptId"],
        description=r["description"],
        quantity=float(r["quantity"]),
        price=float(r["price"]),
    )


def _row_to_receipt(r, items: List[ReceiptItem]) -> Receipt:
    status = r["paymentStatus"]
    try:
        status = PaymentStatus(status) if status else None
    except ValueError:
        status = None
    return Receipt(
        id=r["id"],
        receipt_number=r["receiptNumber"],
        total=float(r["total"]),
        created_at=r["createdAt"],
        customer_name=r["customerName"],
        customer_phone=r["customerPhone"],
        notes=r["notes"],
        payment_status=status,
        amount_paid=float(r["amountPaid"]) if r["amountPaid"] is not None else None,
        items=items,
    )


def _validate_items(items: List[ReceiptItem]) -> None:
    if not items:
        raise ValidationError("items", "add at least one item with a description and price")
    for i, it in enumerate(items):
        if not (it.description or "").strip():
            raise ValidationError(f"items[{i}].description", "description is required")
        if it.quantity is None or it.quantity <= 0:
            raise ValidationError(f"items[{i}].quantity", "quantity must be greater than 0")
        if it.price is None or it.price <= 0:
            raise ValidationError(f"items[{i}].price", "price must be greater than 0")


def _validate_header(header: ReceiptHeader, items: List[ReceiptItem]) -> ReceiptHeader:
    """Check the header against its items; return it with the payment status normalized."""
    if not (header.receipt_number or "").strip():
        raise ValidationError("receipt_number", "receipt number is required")
    if not (header.created_at or "").strip():
        raise ValidationError("created_at", "created_at is required")
    if header.total is None or header.total < 0:
        raise ValidationError("total", "total must not be negative")
    if not amounts_equal(header.total, compute_total(items)):
        raise ValidationError("total", f"total {header.total} does not match items {compute_total(items)}")
    status, paid = normalize_payment(header.payment_status, header.amount_paid, header.total)
    if (paid is None) != (header.amount_paid is None) or (paid is not None and not amounts_equal(paid, header.amount_paid)):
        raise ValidationError("amount_paid", "amount paid does not match the payment status")
    return replace(header, payment_status=status, amount_paid=paid)


def save_receipt(storage: Storage, header: ReceiptHeader, items: List[ReceiptItem]) -> int:
    """Insert the header and all its items as one transaction; return the new id."""
    storage.require_persistent()
    _validate_items(items)
    header = _validate_header(header, items)
    with storage.transaction() as conn:
        receipt_id = receipt_repo.insert_receipt(conn, header)
        receipt_repo.insert_items(conn, receipt_id, items)
    return receipt_id


def update_receipt(storage: Storage, receipt_id: int, header: ReceiptHeader, items: List[ReceiptItem]) -> None:
    """
    Replace header fields and swap the item set (delete-all then reinsert)
    in one transaction. The stored receipt number and created_at always win.
    """
    storage.require_persistent()
    _validate_items(items)
    with storage.transaction() as conn:
        row = receipt_repo.get_one(conn, receipt_id)
        if row is None:
            raise NotFoundError("receipt", receipt_id)
        header = ReceiptHeader(
            receipt_number=row["receiptNumber"],
            total=header.total,
            created_at=row["createdAt"],
            customer_name=header.customer_name,
            customer_phone=header.customer_phone,
            notes=header.notes,
            payment_status=header.payment_status,
            amount_paid=header.amount_paid,
        )
        header = _validate_header(header, items)
        receipt_repo.update_receipt(conn, receipt_id, header)
        receipt_repo.delete_items(conn, receipt_id)
        receipt_repo.insert_items(conn, receipt_id, items)


def get_all_receipts(storage: Storage) -> List[Receipt]:
    """Newest first, each hydrated with its items."""
    if not storage.persistent:
        return []
    with storage.read() as conn:
        rows = receipt_repo.list_all(conn)
        out = []
        for r in rows:
            items = [_row_to_item(i) for i in receipt_repo.list_items(conn, r["id"])]
            out.append(_row_to_receipt(r, items))
        return out


def get_receipt_by_id(storage: Storage, receipt_id: int) -> Optional[Receipt]:
    if not storage.persistent:
        return None
    with storage.read() as conn:
        r = receipt_repo.get_one(conn, receipt_id)
        if r is None:
            return None
        items = [_row_to_item(i) for i in receipt_repo.list_items(conn, receipt_id)]
        return _row_to_receipt(r, items)


def delete_receipt(storage: Storage, receipt_id: int, activity: Optional[Activity] = None) -> bool:
    storage.require_persistent()
    before = get_receipt_by_id(storage, receipt_id) if activity is not None else None
    with storage.transaction() as conn:
        deleted = receipt_repo.delete_receipt(conn, receipt_id)
    if activity is not None:
        activity.track(receipt_id, before=_snapshot(before) if deleted and before else None)
    return deleted


def _snapshot(r: Receipt) -> dict:
    """What the activity log compares: header fields plus item lines without ids."""
    d = r.to_dict()
    d.pop("balance_due", None)
    d["items"] = [f"{it.description} {it.quantity:g} x {it.price:.2f}" for it in r.items]
    return d


def _build_header(
    receipt_number: str,
    created_at: str,
    customer_name: Optional[str],
    items: List[ReceiptItem],
    customer_phone: Optional[str],
    notes: Optional[str],
    payment_status,
    amount_paid: Optional[float],
) -> ReceiptHeader:
    name = (customer_name or "").strip()
    if not name:
        raise ValidationError("customer_name", "customer name is required")
    total = compute_total(items)
    status, paid = normalize_payment(payment_status, amount_paid, total)
    return ReceiptHeader(
        receipt_number=receipt_number,
        total=total,
        created_at=created_at,
        customer_name=name,
        customer_phone=(customer_phone or "").strip() or None,
        notes=(notes or "").strip() or None,
        payment_status=status,
        amount_paid=paid,
    )


def create_receipt(
    storage: Storage,
    customer_name: str,
    items: Iterable[ReceiptItem],
    customer_phone: Optional[str] = None,
    notes: Optional[str] = None,
    payment_status=None,
    amount_paid: Optional[float] = None,
    activity: Optional[Activity] = None,
) -> Receipt:
    """
    Filter the entered lines, compute the total, number the receipt from the
    business name and persist it. Requires a saved business profile.
    """
    storage.require_persistent()
    valid = filter_valid_items(items)
    if not valid:
        raise ValidationError("items", "add at least one item with a description and price")
    with storage.read() as conn:
        profile = profile_repo.get_first(conn)
    if profile is None:
        raise ValidationError("business_profile", "set up your business profile first")

    header = _build_header(
        generate_receipt_number(profile["name"]),
        utc_now_iso(),
        customer_name,
        valid,
        customer_phone,
        notes,
        payment_status,
        amount_paid,
    )
    receipt_id = save_receipt(storage, header, valid)
    usage_svc.record_receipt_created(storage)
    receipt = get_receipt_by_id(storage, receipt_id)
    if activity is not None:
        activity.track(receipt_id, after=_snapshot(receipt))
    return receipt


def edit_receipt(
    storage: Storage,
    receipt_id: int,
    customer_name: str,
    items: Iterable[ReceiptItem],
    customer_phone: Optional[str] = None,
    notes: Optional[str] = None,
    payment_status=None,
    amount_paid: Optional[float] = None,
    activity: Optional[Activity] = None,
) -> Receipt:
    storage.require_persistent()
    before = get_receipt_by_id(storage, receipt_id)
    if before is None:
        raise NotFoundError("receipt", receipt_id)
    valid = filter_valid_items(items)
    if not valid:
        raise ValidationError("items", "add at least one item with a description and price")
    header = _build_header(
        before.receipt_number,
        before.created_at,
        customer_name,
        valid,
        customer_phone,
        notes,
        payment_status,
        amount_paid,
    )
    update_receipt(storage, receipt_id, header, valid)
    after = get_receipt_by_id(storage, receipt_id)
    if activity is not None:
        activity.track(receipt_id, before=_snapshot(before), after=_snapshot(after))
    return after
