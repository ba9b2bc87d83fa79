"""
Usage accounting for tier gating.

The billing period is the calendar month (UTC). Receipts created in the
period are counted twice: a per-month counter in app_settings, bumped on
every creation and unaffected by later deletions, and a query over the
receipts table for data written before the counter existed. The larger of
the two is the usage.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from ..db import Storage
from ..domain.receipt_math import utc_now_iso
from ..repository import receipt_repo
from .settings_svc import get_setting, get_counter, increment_counter


def billing_period(now: Optional[datetime] = None) -> Tuple[str, str, str]:
    """Return (label YYYY-MM, start iso, end iso) for the month containing now."""
    d = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    start = datetime(d.year, d.month, 1, tzinfo=timezone.utc)
    end = datetime(d.year + 1, 1, 1, tzinfo=timezone.utc) if d.month == 12 else datetime(d.year, d.month + 1, 1, tzinfo=timezone.utc)
    return f"{d.year:04d}-{d.month:02d}", utc_now_iso(start), utc_now_iso(end)


def counter_key(period: str) -> str:
    return f"receipts_created:{period}"


def monthly_limit(storage: Storage) -> Optional[int]:
    if (get_setting(storage, "tier", "free") or "free").lower() == "pro":
        return None
    try:
        return int(get_setting(storage, "monthly_receipt_limit") or 0)
    except ValueError:
        return None


def record_receipt_created(storage: Storage, now: Optional[datetime] = None) -> int:
    period, _, _ = billing_period(now)
    return increment_counter(storage, counter_key(period))


def get_usage(storage: Storage, now: Optional[datetime] = None) -> Dict[str, Any]:
    period, start, end = billing_period(now)
    limit = monthly_limit(storage)
    count = 0
    if storage.persistent:
        with storage.read() as conn:
            count = receipt_repo.count_created_between(conn, start, end)
        count = max(count, get_counter(storage, counter_key(period)))
    remaining = None if limit is None else max(limit - count, 0)
    return {
        "period": period,
        "count": count,
        "limit": limit,
        "remaining": remaining,
        "limit_reached": limit is not None and count >= limit,
    }


def can_create_receipt(storage: Storage, now: Optional[datetime] = None) -> bool:
    return not get_usage(storage, now)["limit_reached"]
