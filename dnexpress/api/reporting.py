"""
Reporting API - per-customer analytics
"""
from datetime import datetime
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from pydantic import BaseModel

from dnexpress.core.config import Settings
from dnexpress.core.store import EntityStore
from dnexpress.models import User
from dnexpress.services import ReportService, report_to_csv
from .deps import get_app_settings, get_current_user, get_store

router = APIRouter(prefix="/reports", tags=["reports"])

Period = Literal["day", "week", "month", "year"]


class CustomReportRequest(BaseModel):
    metrics: List[Literal["revenue", "delivery", "inventory"]] = []
    period: Period = "month"
    format: Literal["json", "csv"] = "json"


@router.get("/revenue")
def revenue_report(
    period: Period = Query("month"),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    current_user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
):
    report = ReportService.revenue(
        store, current_user.id, period, start_date, end_date, currency=settings.CURRENCY
    )
    return {"success": True, **report}


@router.get("/delivery-performance")
def delivery_performance(
    current_user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
):
    return {"success": True, **ReportService.delivery_performance(store, current_user.id)}


@router.get("/inventory-health")
def inventory_health(
    current_user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
):
    report = ReportService.inventory_health(
        store, current_user.id, low_stock_threshold=settings.LOW_STOCK_THRESHOLD
    )
    return {"success": True, **report}


@router.get("/carrier-costs")
def carrier_costs(
    current_user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
):
    report = ReportService.carrier_costs(store, current_user.id, currency=settings.CURRENCY)
    return {"success": True, **report}


@router.post("/custom")
def custom_report(
    request: CustomReportRequest,
    current_user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
):
    report = ReportService.custom_report(
        store, current_user.id, current_user.company_name, request.metrics, request.period
    )
    if request.format == "csv":
        return Response(
            content=report_to_csv(report),
            media_type="text/csv",
            headers={"Content-Disposition": 'attachment; filename="report.csv"'},
        )
    return {"success": True, "report": report}
