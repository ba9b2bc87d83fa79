from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..db import Storage
from ..errors import ReceiptbookError
from ..logs import Action, Activity
from ..models import BusinessProfile
from ..services.profile_svc import get_business_profile, save_business_profile
from .base import get_storage, http_error

router = APIRouter()


class ProfileBody(BaseModel):
    name: str
    phone: str
    address: Optional[str] = None
    cac_number: Optional[str] = None
    logo_uri: Optional[str] = None
    website_uri: Optional[str] = None
    custom_footer: Optional[str] = None


@router.get("/api/profile")
def api_profile_get(storage: Storage = Depends(get_storage)):
    p = get_business_profile(storage)
    return {"profile": p.to_dict() if p else None}


@router.put("/api/profile")
def api_profile_save(body: ProfileBody, storage: Storage = Depends(get_storage)):
    activity = Activity(storage, Action.SAVE_PROFILE)
    try:
        profile_id = save_business_profile(storage, BusinessProfile(**body.dict()), activity)
        activity.write()
        return {"message": "ok", "id": profile_id}
    except ReceiptbookError as e:
        activity.write(str(e))
        raise http_error(e)
