from fastapi import APIRouter, HTTPException, Request

from .. import __version__
from ..db import Storage
from ..errors import (
    ConstraintError,
    NotFoundError,
    StorageIOError,
    UnsupportedPlatformError,
    ValidationError,
)

router = APIRouter()


def get_storage(request: Request) -> Storage:
    return request.app.state.storage


def http_error(e: Exception) -> HTTPException:
    if isinstance(e, ValidationError):
        return HTTPException(status_code=400, detail={"field": e.field, "message": e.message})
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, ConstraintError):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, UnsupportedPlatformError):
        return HTTPException(status_code=503, detail=str(e))
    if isinstance(e, StorageIOError):
        return HTTPException(status_code=500, detail="failed to save, try again")
    return HTTPException(status_code=500, detail="internal error")


@router.get("/health")
def health(request: Request):
    storage = get_storage(request)
    return {"status": "ok", "persistent": storage.persistent}


@router.get("/version")
def version():
    return {"app": "receiptbook-api", "version": __version__}
