from __future__ import annotations

from typing import List, Optional

from ..db import Storage
from ..domain.receipt_math import utc_now_iso
from ..errors import NotFoundError, ValidationError
from ..logs import Activity
from ..models import InventoryItem, ReceiptItem
from ..repository import inventory_repo


def _row_to_item(r) -> InventoryItem:
    return InventoryItem(
        id=r["id"],
        name=r["name"],
        description=r["description"],
        price=float(r["price"]),
        created_at=r["createdAt"],
    )


def _validate(item: InventoryItem) -> InventoryItem:
    name = (item.name or "").strip()
    if not name:
        raise ValidationError("name", "item name is required")
    if item.price is None or float(item.price) < 0:
        raise ValidationError("price", "please enter a valid price")
    desc = (item.description or "").strip() or None
    return InventoryItem(name=name, description=desc, price=float(item.price))


def _fields(it: InventoryItem) -> dict:
    return {"name": it.name, "description": it.description, "price": it.price}


def save_inventory_item(storage: Storage, item: InventoryItem, activity: Optional[Activity] = None) -> int:
    storage.require_persistent()
    it = _validate(item)
    with storage.transaction() as conn:
        item_id = inventory_repo.insert_item(conn, it.name, it.description, it.price, utc_now_iso())
    if activity is not None:
        activity.track(item_id, after=_fields(it))
    return item_id


def update_inventory_item(storage: Storage, item_id: int, item: InventoryItem,
                          activity: Optional[Activity] = None) -> None:
    storage.require_persistent()
    it = _validate(item)
    with storage.transaction() as conn:
        before = inventory_repo.get_one(conn, item_id)
        if before is None or not inventory_repo.update_item(conn, item_id, it.name, it.description, it.price):
            raise NotFoundError("inventory_item", item_id)
    if activity is not None:
        activity.track(item_id, before=_fields(_row_to_item(before)), after=_fields(it))


def delete_inventory_item(storage: Storage, item_id: int, activity: Optional[Activity] = None) -> bool:
    storage.require_persistent()
    with storage.transaction() as conn:
        before = inventory_repo.get_one(conn, item_id)
        deleted = inventory_repo.delete_item(conn, item_id)
    if activity is not None:
        activity.track(item_id, before=_fields(_row_to_item(before)) if deleted else None)
    return deleted


def get_all_inventory_items(storage: Storage) -> List[InventoryItem]:
    if not storage.persistent:
        return []
    with storage.read() as conn:
        return [_row_to_item(r) for r in inventory_repo.list_all(conn)]


def get_inventory_item_by_id(storage: Storage, item_id: int) -> Optional[InventoryItem]:
    if not storage.persistent:
        return None
    with storage.read() as conn:
        r = inventory_repo.get_one(conn, item_id)
        return _row_to_item(r) if r else None


def search_inventory_items(storage: Storage, term: str) -> List[InventoryItem]:
    """Substring search over name and description, ignoring case. Blank term lists everything."""
    if not storage.persistent:
        return []
    term = (term or "").strip()
    if not term:
        return get_all_inventory_items(storage)
    with storage.read() as conn:
        return [_row_to_item(r) for r in inventory_repo.search(conn, term)]


def to_receipt_item(item: InventoryItem, quantity: float = 1) -> ReceiptItem:
    """Copy name and price into a new line; the receipt keeps no link to the catalog."""
    return ReceiptItem(description=item.name, quantity=float(quantity), price=float(item.price))
