from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..db import Storage
from ..logs import Action, Entity, recent_activity
from .base import get_storage

router = APIRouter()


@router.get("/api/activity")
def api_activity(
    entity: Optional[Entity] = None,
    action: Optional[Action] = None,
    since: Optional[str] = Query(None, description="ISO timestamp, inclusive"),
    limit: int = Query(50, ge=1, le=500),
    storage: Storage = Depends(get_storage),
):
    return {"items": recent_activity(storage, entity=entity, action=action, since=since, limit=limit)}


@router.get("/api/activity/{entity}/{entity_id}")
def api_entity_history(entity: Entity, entity_id: str, limit: int = Query(50, ge=1, le=500),
                       storage: Storage = Depends(get_storage)):
    return {"items": recent_activity(storage, entity=entity, entity_id=entity_id, limit=limit)}
