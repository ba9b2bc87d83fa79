from __future__ import annotations

import random
import re
import threading
import time
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional, Tuple

from ..errors import ValidationError
from ..models import BusinessProfile, PaymentStatus, Receipt, ReceiptItem

CURRENCY_SYMBOL = "₦"
DEFAULT_FOOTER = "Thank you for your patronage!"
DIVIDER = "═" * 40

# Amounts closer than half a kobo are treated as equal.
AMOUNT_TOLERANCE = 0.005

_number_lock = threading.Lock()
_last_millis = 0


def _round_financial(value: float, precision: int = 2) -> float:
    """Round with ROUND_HALF_UP through Decimal; never returns -0.0."""
    if value == 0.0:
        return 0.0
    out = float(Decimal(str(value)).quantize(Decimal("0." + "0" * precision), rounding=ROUND_HALF_UP))
    return out if out != 0.0 else 0.0


def round_amount(value: float) -> float:
    """Round monetary amounts to 2 decimal places."""
    return _round_financial(value, 2)


def amounts_equal(a: float, b: float) -> bool:
    return abs(a - b) < AMOUNT_TOLERANCE


def receipt_prefix(business_name: str) -> str:
    cleaned = re.sub(r"[^A-Za-z0-9]", "", business_name or "")
    return cleaned[:3].upper().ljust(3, "X")


def _next_millis() -> int:
    # Monotonic per process: a repeated millisecond is bumped by one.
    global _last_millis
    with _number_lock:
        now = int(time.time() * 1000)
        if now <= _last_millis:
            now = _last_millis + 1
        _last_millis = now
        return now


def generate_receipt_number(business_name: str) -> str:
    """
    Build "<PREFIX>-<epochMillis>-<0..999>".

    PREFIX is the first three alphanumerics of the business name, uppercased
    and right-padded with "X". Uniqueness is best effort across processes.
    """
    return f"{receipt_prefix(business_name)}-{_next_millis()}-{random.randint(0, 999)}"


def format_currency(amount: float) -> str:
    return f"{CURRENCY_SYMBOL}{round_amount(float(amount)):.2f}"


def utc_now_iso(now: Optional[datetime] = None) -> str:
    """Fixed-width ISO-8601 UTC timestamp, e.g. 2025-01-31T09:05:00.000Z."""
    d = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return d.strftime("%Y-%m-%dT%H:%M:%S.") + f"{d.microsecond // 1000:03d}Z"


def parse_iso(value: str) -> datetime:
    s = value.strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    return datetime.fromisoformat(s)


def format_date(iso_string: str) -> str:
    """Render as "DD/MM/YYYY   HH:MM AM|PM" in local time."""
    d = parse_iso(iso_string)
    if d.tzinfo is not None:
        d = d.astimezone()
    suffix = "PM" if d.hour >= 12 else "AM"
    hour12 = d.hour % 12 or 12
    return f"{d.day:02d}/{d.month:02d}/{d.year:04d}   {hour12:02d}:{d.minute:02d} {suffix}"


def is_valid_item(item: ReceiptItem) -> bool:
    return bool((item.description or "").strip()) and item.price > 0 and item.quantity > 0


def filter_valid_items(items: Iterable[ReceiptItem]) -> List[ReceiptItem]:
    """Drop blank-description, zero-price and zero-quantity lines; trim descriptions."""
    out = []
    for it in items:
        if is_valid_item(it):
            out.append(ReceiptItem(description=it.description.strip(), quantity=float(it.quantity), price=float(it.price)))
    return out


def compute_total(items: Iterable[ReceiptItem]) -> float:
    return round_amount(sum(it.quantity * it.price for it in items))


def normalize_payment(
    status: Optional[PaymentStatus | str],
    amount_paid: Optional[float],
    total: float,
) -> Tuple[Optional[PaymentStatus], Optional[float]]:
    """
    Apply the payment-state rules and return (status, amount_paid).

    paid -> amount_paid == total; part_paid -> 0 < amount_paid < total;
    not_paid / unset -> amount_paid is None.
    """
    if status is None or status == "":
        return None, None
    try:
        st = PaymentStatus(status)
    except ValueError:
        raise ValidationError("payment_status", f"unknown payment status {status!r}")

    if st == PaymentStatus.PAID:
        return st, round_amount(total)
    if st == PaymentStatus.NOT_PAID:
        return st, None

    if amount_paid is None:
        raise ValidationError("amount_paid", "amount paid is required for part payment")
    paid = round_amount(float(amount_paid))
    if paid <= 0 or paid >= round_amount(total):
        raise ValidationError("amount_paid", "part payment must be greater than 0 and less than the total")
    return st, paid


def format_receipt_text(receipt: Receipt, profile: BusinessProfile) -> str:
    """Plain-text rendering used when the receipt is shared as a message."""
    lines = [DIVIDER, profile.name]
    if profile.address:
        lines.append(profile.address)
    lines.append(profile.phone)
    if profile.cac_number:
        lines.append(f"CAC: {profile.cac_number}")
    lines.append(DIVIDER)
    lines.append("")
    lines.append(f"Receipt #: {receipt.receipt_number}")
    lines.append(f"Date: {format_date(receipt.created_at)}")
    if receipt.customer_name:
        customer = receipt.customer_name
        if receipt.customer_phone:
            customer += f" ({receipt.customer_phone})"
        lines.append(f"Customer: {customer}")
    lines.append("")

    blocks = []
    for it in receipt.items:
        qty = f"{it.quantity:g}"
        blocks.append(
            f"{it.description}\n{qty} × {format_currency(it.price)} = {format_currency(it.line_total)}"
        )
    lines.append("\n\n".join(blocks))
    lines.append("")
    lines.append(DIVIDER)
    lines.append(f"TOTAL: {format_currency(receipt.total)}")
    if receipt.payment_status == PaymentStatus.PAID:
        lines.append("Status: PAID")
    elif receipt.payment_status == PaymentStatus.PART_PAID:
        lines.append("Status: PART PAID")
        lines.append(f"Amount paid: {format_currency(receipt.amount_paid or 0.0)}")
        lines.append(f"Balance: {format_currency(receipt.balance_due or 0.0)}")
    elif receipt.payment_status == PaymentStatus.NOT_PAID:
        lines.append("Status: NOT PAID")
        lines.append(f"Balance: {format_currency(receipt.total)}")
    lines.append(DIVIDER)
    if receipt.notes:
        lines.append("")
        lines.append(f"Notes: {receipt.notes}")
    lines.append("")
    lines.append(profile.custom_footer or DEFAULT_FOOTER)
    if profile.website_uri:
        lines.append(profile.website_uri)
    return "\n".join(lines).strip()
