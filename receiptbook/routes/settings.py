from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ..db import Storage
from ..errors import ReceiptbookError
from ..logs import Action, Activity
from ..services import settings_svc
from ..services.usage_svc import get_usage
from .base import get_storage, http_error

router = APIRouter()


class SettingBody(BaseModel):
    value: str


@router.get("/api/settings")
def api_settings_all(storage: Storage = Depends(get_storage)):
    return settings_svc.get_all_settings(storage)


@router.get("/api/settings/{key}")
def api_settings_get(key: str, storage: Storage = Depends(get_storage)):
    return {"key": key, "value": settings_svc.get_setting(storage, key)}


@router.put("/api/settings/{key}")
def api_settings_update(key: str, body: SettingBody, storage: Storage = Depends(get_storage)):
    activity = Activity(storage, Action.UPDATE_SETTING, key)
    try:
        settings_svc.set_setting(storage, key, body.value, activity)
        activity.write()
        return {"message": "ok"}
    except ReceiptbookError as e:
        activity.write(str(e))
        raise http_error(e)


@router.post("/api/settings/flags/{name}")
def api_settings_flag(name: str, storage: Storage = Depends(get_storage)):
    try:
        settings_svc.set_flag(storage, name, True)
        return {"message": "ok", name: True}
    except ReceiptbookError as e:
        raise http_error(e)


@router.get("/api/usage")
def api_usage(storage: Storage = Depends(get_storage)):
    return get_usage(storage)
