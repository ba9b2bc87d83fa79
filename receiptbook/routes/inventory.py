from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from ..db import Storage
from ..errors import NotFoundError, ReceiptbookError
from ..logs import Action, Activity
from ..models import InventoryItem
from ..services import inventory_svc
from .base import get_storage, http_error

router = APIRouter()


class InventoryBody(BaseModel):
    name: str
    price: float
    description: Optional[str] = None


@router.get("/api/inventory")
def api_inventory_list(q: Optional[str] = Query(None, description="substring of name or description"),
                       storage: Storage = Depends(get_storage)):
    if q:
        items = inventory_svc.search_inventory_items(storage, q)
    else:
        items = inventory_svc.get_all_inventory_items(storage)
    return {"items": [it.to_dict() for it in items]}


@router.get("/api/inventory/{item_id}")
def api_inventory_get(item_id: int, storage: Storage = Depends(get_storage)):
    it = inventory_svc.get_inventory_item_by_id(storage, item_id)
    if it is None:
        raise http_error(NotFoundError("inventory_item", item_id))
    return it.to_dict()


@router.post("/api/inventory", status_code=201)
def api_inventory_create(body: InventoryBody, storage: Storage = Depends(get_storage)):
    activity = Activity(storage, Action.CREATE_INVENTORY_ITEM)
    try:
        item_id = inventory_svc.save_inventory_item(storage, InventoryItem(**body.dict()), activity)
        activity.write()
        return {"message": "ok", "id": item_id}
    except ReceiptbookError as e:
        activity.write(str(e))
        raise http_error(e)


@router.put("/api/inventory/{item_id}")
def api_inventory_update(item_id: int, body: InventoryBody, storage: Storage = Depends(get_storage)):
    activity = Activity(storage, Action.UPDATE_INVENTORY_ITEM, item_id)
    try:
        inventory_svc.update_inventory_item(storage, item_id, InventoryItem(**body.dict()), activity)
        activity.write()
        return {"message": "ok"}
    except ReceiptbookError as e:
        activity.write(str(e))
        raise http_error(e)


@router.delete("/api/inventory/{item_id}")
def api_inventory_delete(item_id: int, storage: Storage = Depends(get_storage)):
    activity = Activity(storage, Action.DELETE_INVENTORY_ITEM, item_id)
    try:
        deleted = inventory_svc.delete_inventory_item(storage, item_id, activity)
        activity.write()
        return {"message": "ok", "deleted": deleted}
    except ReceiptbookError as e:
        activity.write(str(e))
        raise http_error(e)
