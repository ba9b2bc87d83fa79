from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ..db import Storage
from ..domain.receipt_math import format_receipt_text
from ..errors import NotFoundError, ReceiptbookError, ValidationError
from ..logs import Action, Activity
from ..models import PaymentStatus, ReceiptItem
from ..services import receipt_svc, usage_svc
from ..services.profile_svc import get_business_profile
from .base import get_storage, http_error

router = APIRouter()


class ItemBody(BaseModel):
    description: str = ""
    quantity: float = 1
    price: float = 0


class ReceiptBody(BaseModel):
    customer_name: str
    items: List[ItemBody]
    customer_phone: Optional[str] = None
    notes: Optional[str] = None
    payment_status: Optional[PaymentStatus] = None
    amount_paid: Optional[float] = None


def _items(body: ReceiptBody) -> list[ReceiptItem]:
    return [ReceiptItem(description=i.description, quantity=i.quantity, price=i.price) for i in body.items]


@router.get("/api/receipts")
def api_receipt_list(storage: Storage = Depends(get_storage)):
    try:
        items = [r.to_dict() for r in receipt_svc.get_all_receipts(storage)]
    except ReceiptbookError as e:
        raise http_error(e)
    return {"total": len(items), "items": items}


@router.get("/api/receipts/{receipt_id}")
def api_receipt_get(receipt_id: int, storage: Storage = Depends(get_storage)):
    try:
        r = receipt_svc.get_receipt_by_id(storage, receipt_id)
    except ReceiptbookError as e:
        raise http_error(e)
    if r is None:
        raise http_error(NotFoundError("receipt", receipt_id))
    return r.to_dict()


@router.post("/api/receipts", status_code=201)
def api_receipt_create(body: ReceiptBody, storage: Storage = Depends(get_storage)):
    activity = Activity(storage, Action.CREATE_RECEIPT)
    try:
        if not usage_svc.can_create_receipt(storage):
            raise HTTPException(status_code=403, detail="monthly receipt limit reached")
        r = receipt_svc.create_receipt(
            storage,
            body.customer_name,
            _items(body),
            customer_phone=body.customer_phone,
            notes=body.notes,
            payment_status=body.payment_status,
            amount_paid=body.amount_paid,
            activity=activity,
        )
        activity.write()
        return {"message": "ok", "receipt": r.to_dict()}
    except HTTPException as e:
        activity.write(str(e.detail))
        raise
    except ReceiptbookError as e:
        activity.write(str(e))
        raise http_error(e)


@router.put("/api/receipts/{receipt_id}")
def api_receipt_update(receipt_id: int, body: ReceiptBody, storage: Storage = Depends(get_storage)):
    activity = Activity(storage, Action.UPDATE_RECEIPT, receipt_id)
    try:
        r = receipt_svc.edit_receipt(
            storage,
            receipt_id,
            body.customer_name,
            _items(body),
            customer_phone=body.customer_phone,
            notes=body.notes,
            payment_status=body.payment_status,
            amount_paid=body.amount_paid,
            activity=activity,
        )
        activity.write()
        return {"message": "ok", "receipt": r.to_dict()}
    except ReceiptbookError as e:
        activity.write(str(e))
        raise http_error(e)


@router.delete("/api/receipts/{receipt_id}")
def api_receipt_delete(receipt_id: int, storage: Storage = Depends(get_storage)):
    activity = Activity(storage, Action.DELETE_RECEIPT, receipt_id)
    try:
        deleted = receipt_svc.delete_receipt(storage, receipt_id, activity)
        activity.write()
        return {"message": "ok", "deleted": deleted}
    except ReceiptbookError as e:
        activity.write(str(e))
        raise http_error(e)


@router.get("/api/receipts/{receipt_id}/share-text")
def api_receipt_share_text(receipt_id: int, storage: Storage = Depends(get_storage)):
    try:
        r = receipt_svc.get_receipt_by_id(storage, receipt_id)
        if r is None:
            raise NotFoundError("receipt", receipt_id)
        profile = get_business_profile(storage)
        if profile is None:
            raise ValidationError("business_profile", "set up your business profile first")
        return {"text": format_receipt_text(r, profile)}
    except ReceiptbookError as e:
        raise http_error(e)
