# receiptbook/services/settings_svc.py
from __future__ import annotations

from typing import Optional

from ..db import Storage
from ..logs import Activity
from ..repository import settings_repo

HELP_GUIDE_SEEN = "has_seen_help_guide"
ONBOARDING_DONE = "has_completed_onboarding"

DEFAULTS = {
    "monthly_receipt_limit": "50",
    # "free" applies monthly_receipt_limit, "pro" is unlimited
    "tier": "free",
    HELP_GUIDE_SEEN: "0",
    ONBOARDING_DONE: "0",
}


def ensure_default_settings(storage: Storage) -> None:
    """Make sure the key settings exist without overwriting stored values."""
    if not storage.persistent:
        return
    with storage.transaction() as conn:
        for k, v in DEFAULTS.items():
            settings_repo.set_default(conn, k, v)


def get_setting(storage: Storage, key: str, default: Optional[str] = None) -> Optional[str]:
    if not storage.persistent:
        return DEFAULTS.get(key, default)
    with storage.read() as conn:
        v = settings_repo.get_value(conn, key)
    if v is None:
        return DEFAULTS.get(key, default)
    return v


def set_setting(storage: Storage, key: str, value, activity: Optional[Activity] = None) -> None:
    storage.require_persistent()
    with storage.transaction() as conn:
        before = settings_repo.get_value(conn, key)
        settings_repo.set_value(conn, key, str(value))
    if activity is not None:
        activity.track(key, before={"value": before}, after={"value": str(value)})


def get_all_settings(storage: Storage) -> dict:
    out = dict(DEFAULTS)
    if storage.persistent:
        with storage.read() as conn:
            out.update(settings_repo.all_values(conn))
    return out


def get_flag(storage: Storage, key: str) -> bool:
    return (get_setting(storage, key, "0") or "0").strip().lower() in ("1", "true", "yes")


def set_flag(storage: Storage, key: str, on: bool = True) -> None:
    set_setting(storage, key, "1" if on else "0")


def has_seen_help_guide(storage: Storage) -> bool:
    return get_flag(storage, HELP_GUIDE_SEEN)


def mark_help_guide_seen(storage: Storage) -> None:
    set_flag(storage, HELP_GUIDE_SEEN, True)


def increment_counter(storage: Storage, key: str, by: int = 1) -> int:
    storage.require_persistent()
    with storage.transaction() as conn:
        return settings_repo.increment(conn, key, by)


def get_counter(storage: Storage, key: str) -> int:
    v = get_setting(storage, key, "0")
    try:
        return int(v or 0)
    except ValueError:
        return 0
