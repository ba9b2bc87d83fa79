from fastapi import APIRouter, Depends

from ..db import Storage
from ..errors import ReceiptbookError
from ..services import reporting_svc
from .base import get_storage, http_error

router = APIRouter()


@router.get("/api/reports/summaries")
def api_report_summaries(storage: Storage = Depends(get_storage)):
    try:
        return {"items": reporting_svc.list_receipt_summaries(storage)}
    except ReceiptbookError as e:
        raise http_error(e)


@router.get("/api/reports/monthly")
def api_report_monthly(storage: Storage = Depends(get_storage)):
    try:
        return {"items": reporting_svc.monthly_sales_summary(storage)}
    except ReceiptbookError as e:
        raise http_error(e)


@router.get("/api/reports/outstanding")
def api_report_outstanding(storage: Storage = Depends(get_storage)):
    try:
        return {"items": reporting_svc.outstanding_by_customer(storage)}
    except ReceiptbookError as e:
        raise http_error(e)
