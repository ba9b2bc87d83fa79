from __future__ import annotations

# receiptbook/logs.py
import json
import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from .db import Storage
from .domain.receipt_math import utc_now_iso
from .errors import ReceiptbookError

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


class Entity(str, Enum):
    RECEIPT = "receipt"
    BUSINESS_PROFILE = "business_profile"
    INVENTORY_ITEM = "inventory_item"
    SETTING = "setting"


class Action(str, Enum):
    CREATE_RECEIPT = "create_receipt"
    UPDATE_RECEIPT = "update_receipt"
    DELETE_RECEIPT = "delete_receipt"
    SAVE_PROFILE = "save_profile"
    CREATE_INVENTORY_ITEM = "create_inventory_item"
    UPDATE_INVENTORY_ITEM = "update_inventory_item"
    DELETE_INVENTORY_ITEM = "delete_inventory_item"
    UPDATE_SETTING = "update_setting"

    @property
    def entity(self) -> Entity:
        if self.value.endswith("receipt"):
            return Entity.RECEIPT
        if self.value.endswith("profile"):
            return Entity.BUSINESS_PROFILE
        if self.value.endswith("inventory_item"):
            return Entity.INVENTORY_ITEM
        return Entity.SETTING


def diff_fields(before: Optional[Dict[str, Any]], after: Optional[Dict[str, Any]]) -> Dict[str, list]:
    """
    Field-level changes as {field: [old, new]}. Ids are not reported.
    A create has before=None, a delete has after=None.
    """
    before = before or {}
    after = after or {}
    out = {}
    for k in sorted(set(before) | set(after)):
        if k == "id":
            continue
        old, new = before.get(k), after.get(k)
        if old != new:
            out[k] = [old, new]
    return out


class Activity:
    """
    One user action on a receipt, the profile, an inventory item or a setting.

    Services call track() with snapshots of the entity before and after the
    change; the route calls write() once the outcome is known.
    """

    def __init__(self, storage: Storage, action: Action, entity_id=None):
        self.storage = storage
        self.action = Action(action)
        self.entity_id: Optional[str] = str(entity_id) if entity_id is not None else None
        self.changes: Dict[str, list] = {}

    def track(self, entity_id, before: Optional[dict] = None, after: Optional[dict] = None) -> None:
        self.entity_id = str(entity_id)
        self.changes = diff_fields(before, after)

    def write(self, error: Optional[str] = None) -> bool:
        """Persist the entry. A storage failure here is logged, not raised."""
        if error is not None:
            logger.warning("%s failed: %s", self.action.value, error)
        if not self.storage.persistent:
            return False
        try:
            with self.storage.transaction() as conn:
                conn.execute(
                    "INSERT INTO activity_log(ts, action, entity, entity_id, changes_json, result, error) "
                    "VALUES(?,?,?,?,?,?,?)",
                    (
                        utc_now_iso(),
                        self.action.value,
                        self.action.entity.value,
                        self.entity_id,
                        json.dumps(self.changes, ensure_ascii=False) if self.changes else None,
                        "error" if error is not None else "ok",
                        error,
                    ),
                )
        except ReceiptbookError:
            logger.exception("could not record %s for %s %s",
                             self.action.value, self.action.entity.value, self.entity_id)
            return False
        return True


def _row_to_entry(r) -> Dict[str, Any]:
    return {
        "ts": r["ts"],
        "action": r["action"],
        "entity": r["entity"],
        "entity_id": r["entity_id"],
        "changes": json.loads(r["changes_json"]) if r["changes_json"] else {},
        "result": r["result"],
        "error": r["error"],
    }


def recent_activity(
    storage: Storage,
    entity: Optional[Entity] = None,
    entity_id: Optional[str] = None,
    action: Optional[Action] = None,
    since: Optional[str] = None,
    limit: int = 50,
) -> List[Dict[str, Any]]:
    """Newest first. `since` is an ISO timestamp compared against ts."""
    if not storage.persistent:
        return []
    where, params = [], []
    if entity is not None:
        where.append("entity = ?")
        params.append(Entity(entity).value)
    if entity_id is not None:
        where.append("entity_id = ?")
        params.append(str(entity_id))
    if action is not None:
        where.append("action = ?")
        params.append(Action(action).value)
    if since:
        where.append("ts >= ?")
        params.append(since)
    wh = " WHERE " + " AND ".join(where) if where else ""
    with storage.read() as conn:
        rows = conn.execute(
            f"SELECT * FROM activity_log{wh} ORDER BY ts DESC, id DESC LIMIT ?",
            (*params, max(1, int(limit))),
        ).fetchall()
    return [_row_to_entry(r) for r in rows]
