"""
Report Service - dashboard metrics and analytics over store snapshots

Everything here is recomputed per request from the store collections; nothing
is cached.
"""
from collections import Counter, OrderedDict
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple
import csv
import io

from dnexpress.models import InventoryItem, Shipment, TERMINAL_STATUSES, ensure_utc, utcnow

PERIOD_DAYS = {
    "day": 1,
    "week": 7,
    "month": 30,
    "year": 365,
}
REPORT_TYPES = ("all", "shipments", "revenue", "users", "inventory")
CUSTOM_METRICS = ("revenue", "delivery", "inventory")
RECENT_DAYS = 30
ALERT_LIST_LIMIT = 10


def _money(value: float) -> float:
    return round(value or 0, 2)


def _ratio(part: int, whole: int) -> float:
    return round(part * 100 / whole, 2) if whole else 0.0


def _total_rate(shipments: Iterable[Shipment]) -> float:
    return sum(s.rate or 0 for s in shipments)


def _in_range(moment: datetime, start: datetime, end: datetime) -> bool:
    return start <= moment <= end


def period_range(period: str = "month", start: Optional[datetime] = None,
                 end: Optional[datetime] = None, now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """An explicit start wins; otherwise look back one period from end (or now)"""
    now = now or utcnow()
    start, end = ensure_utc(start), ensure_utc(end)
    if start:
        return start, end or now
    end = end or now
    return end - timedelta(days=PERIOD_DAYS.get(period, PERIOD_DAYS["month"])), end


def week_start(moment: datetime) -> str:
    """ISO date of the Sunday starting the week that contains `moment`"""
    days_since_sunday = (moment.weekday() + 1) % 7
    return (moment - timedelta(days=days_since_sunday)).date().isoformat()


class ReportService:

    @staticmethod
    def customer_metrics(store, company_id: str) -> Dict[str, Any]:
        """Headline numbers for one customer's dashboard"""
        shipments = store.list_shipments_by_customer(company_id)
        return {
            "total_shipments": len(shipments),
            "active_shipments": sum(1 for s in shipments if s.status not in TERMINAL_STATUSES),
            "delivered_shipments": sum(1 for s in shipments if s.status == "delivered"),
            "total_revenue": _money(_total_rate(shipments)),
            "inventory_items": len(store.list_inventory_by_company(company_id)),
            "last_updated": utcnow().isoformat(),
        }

    @staticmethod
    def admin_dashboard(store) -> Dict[str, Any]:
        users = store.list_users()
        shipments = store.list_shipments()
        inventory = store.list_inventory()
        total_revenue = _total_rate(shipments)
        return {
            "total_users": len(users),
            "active_users": sum(1 for u in users if u.is_active),
            "total_shipments": len(shipments),
            "active_shipments": sum(1 for s in shipments if s.status not in TERMINAL_STATUSES),
            "delivered_shipments": sum(1 for s in shipments if s.status == "delivered"),
            "total_revenue": _money(total_revenue),
            "average_shipment_value": _money(total_revenue / len(shipments)) if shipments else 0,
            "inventory_items": len(inventory),
            "total_inventory_quantity": sum(i.quantity for i in inventory),
            "system_status": "healthy",
            "last_updated": utcnow().isoformat(),
        }

    @staticmethod
    def system_report(store, report_type: str = "all", start: Optional[datetime] = None,
                      end: Optional[datetime] = None, low_stock_threshold: int = 10) -> Dict[str, Any]:
        """
        System-wide report for administrators.

        Args:
            report_type: all | shipments | revenue | users | inventory
            start, end: creation-time window, defaults to the last 30 days
        """
        end = ensure_utc(end) or utcnow()
        start = ensure_utc(start) or end - timedelta(days=RECENT_DAYS)
        shipments = [s for s in store.list_shipments() if _in_range(s.created_at, start, end)]

        report: Dict[str, Any] = {
            "date_range": {"start_date": start.isoformat(), "end_date": end.isoformat()},
            "generated_at": utcnow().isoformat(),
        }

        if report_type in ("all", "shipments"):
            by_status = Counter(s.status for s in shipments)
            report["shipments"] = {
                "total": len(shipments),
                "by_status": dict(by_status),
                "by_service": dict(Counter(s.service for s in shipments)),
                "delivered": by_status.get("delivered", 0),
                "cancelled": by_status.get("cancelled", 0),
            }

        if report_type in ("all", "revenue"):
            total = _total_rate(shipments)
            by_service: Dict[str, float] = {}
            for s in shipments:
                by_service[s.service] = by_service.get(s.service, 0) + (s.rate or 0)
            report["revenue"] = {
                "total": _money(total),
                "average": _money(total / len(shipments)) if shipments else 0,
                "by_service": {k: _money(v) for k, v in by_service.items()},
            }

        if report_type in ("all", "users"):
            users = store.list_users()
            active = sum(1 for u in users if u.is_active)
            report["users"] = {
                "total": len(users),
                "active": active,
                "inactive": len(users) - active,
                "new_users": sum(1 for u in users if _in_range(u.created_at, start, end)),
            }

        if report_type in ("all", "inventory"):
            items = store.list_inventory()
            report["inventory"] = {
                "total_items": len(items),
                "total_quantity": sum(i.quantity for i in items),
                "by_status": dict(Counter(i.status for i in items)),
                "low_stock": sum(1 for i in items if i.quantity < low_stock_threshold),
            }

        return report

    @staticmethod
    def revenue(store, owner_id: str, period: str = "month", start: Optional[datetime] = None,
                end: Optional[datetime] = None, currency: str = "USD") -> Dict[str, Any]:
        start, end = period_range(period, start, end)
        shipments = [
            s for s in store.list_shipments_by_customer(owner_id)
            if _in_range(s.created_at, start, end)
        ]
        total = _total_rate(shipments)
        delivered = sum(1 for s in shipments if s.status == "delivered")
        cancelled = sum(1 for s in shipments if s.status == "cancelled")

        weekly: "OrderedDict[str, Dict[str, float]]" = OrderedDict()
        for s in sorted(shipments, key=lambda s: s.created_at):
            bucket = weekly.setdefault(week_start(s.created_at), {"revenue": 0.0, "shipments": 0})
            bucket["revenue"] += s.rate or 0
            bucket["shipments"] += 1

        return {
            "period": period,
            "date_range": {"start": start.isoformat(), "end": end.isoformat()},
            "revenue": {
                "total": _money(total),
                "average": _money(total / len(shipments)) if shipments else 0,
                "count": len(shipments),
                "currency": currency,
            },
            "shipment_status": {
                "delivered": delivered,
                "cancelled": cancelled,
                "pending": len(shipments) - delivered - cancelled,
            },
            "trend": [
                {"week": week, "revenue": _money(data["revenue"]), "shipments": data["shipments"]}
                for week, data in weekly.items()
            ],
        }

    @staticmethod
    def delivery_performance(store, owner_id: str) -> Dict[str, Any]:
        shipments = store.list_shipments_by_customer(owner_id)
        delivered = [s for s in shipments if s.status == "delivered"]
        timed = [s for s in delivered if s.estimated_delivery and s.actual_delivery]
        on_time = [s for s in timed if s.actual_delivery <= s.estimated_delivery]
        delivery_days = [
            (s.actual_delivery - s.created_at).days
            for s in delivered if s.actual_delivery
        ]
        return {
            "performance": {
                "total_shipments": len(shipments),
                "delivered_shipments": len(delivered),
                "delivery_rate": _ratio(len(delivered), len(shipments)),
                "on_time_deliveries": len(on_time),
                "on_time_rate": _ratio(len(on_time), len(delivered)) if delivered else None,
                "late_deliveries": len(timed) - len(on_time),
                "average_delivery_days": round(sum(delivery_days) / len(delivery_days), 1) if delivery_days else 0,
            },
            "status_breakdown": dict(Counter(s.status for s in shipments)),
        }

    @staticmethod
    def inventory_health(store, owner_id: str, low_stock_threshold: int = 10) -> Dict[str, Any]:
        items: List[InventoryItem] = store.list_inventory_by_company(owner_id)
        active = [i for i in items if i.status == "active"]
        low_stock = [i for i in active if i.quantity < low_stock_threshold]
        out_of_stock = [i for i in active if i.quantity == 0]
        recent_cutoff = utcnow() - timedelta(days=RECENT_DAYS)
        total_quantity = sum(i.quantity for i in items)
        return {
            "inventory": {
                "total_items": len(items),
                "active_items": len(active),
                "total_quantity": total_quantity,
                "average_quantity_per_item": _money(total_quantity / len(items)) if items else 0,
            },
            "alerts": {
                "low_stock_count": len(low_stock),
                "low_stock_items": [
                    {"id": i.id, "name": i.name, "sku": i.sku, "quantity": i.quantity}
                    for i in low_stock[:ALERT_LIST_LIMIT]
                ],
                "out_of_stock_count": len(out_of_stock),
                "out_of_stock_items": [
                    {"id": i.id, "name": i.name, "sku": i.sku}
                    for i in out_of_stock[:ALERT_LIST_LIMIT]
                ],
            },
            "recent_additions": sum(1 for i in items if i.created_at > recent_cutoff),
            "status_breakdown": dict(Counter(i.status for i in items)),
        }

    @staticmethod
    def carrier_costs(store, owner_id: str, currency: str = "USD") -> Dict[str, Any]:
        shipments = store.list_shipments_by_customer(owner_id)
        by_service: Dict[str, Dict[str, Any]] = {}
        for s in shipments:
            bucket = by_service.setdefault(s.service or "standard", {"count": 0, "total": 0.0})
            bucket["count"] += 1
            bucket["total"] += s.rate or 0
        for bucket in by_service.values():
            bucket["average"] = _money(bucket["total"] / bucket["count"])
            bucket["total"] = _money(bucket["total"])

        total_spent = _total_rate(shipments)
        return {
            "cost_analysis": {
                "total_spent": _money(total_spent),
                "total_shipments": len(shipments),
                "average_cost_per_shipment": _money(total_spent / len(shipments)) if shipments else 0,
                "currency": currency,
            },
            "by_service_type": by_service,
        }

    @staticmethod
    def custom_report(store, owner_id: str, company_name: str, metrics: Iterable[str],
                      period: str = "month") -> Dict[str, Any]:
        """Selected metric groups (revenue, delivery, inventory) for one customer"""
        report: Dict[str, Any] = {
            "generated": utcnow().isoformat(),
            "period": period,
            "company": company_name,
            "metrics": {},
        }
        metrics = set(metrics)
        shipments = store.list_shipments_by_customer(owner_id)

        if "revenue" in metrics:
            total = _total_rate(shipments)
            report["metrics"]["revenue"] = {
                "total": _money(total),
                "count": len(shipments),
                "average": _money(total / len(shipments)) if shipments else 0,
            }

        if "delivery" in metrics:
            delivered = sum(1 for s in shipments if s.status == "delivered")
            report["metrics"]["delivery"] = {
                "total_shipments": len(shipments),
                "delivered": delivered,
                "rate": _ratio(delivered, len(shipments)),
            }

        if "inventory" in metrics:
            items = store.list_inventory_by_company(owner_id)
            report["metrics"]["inventory"] = {
                "total_items": len(items),
                "total_quantity": sum(i.quantity for i in items),
            }

        return report


def report_to_csv(report: Dict[str, Any]) -> str:
    """Flatten a custom report into CSV: a header block, then one block per metric"""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(["Report Generated", report.get("generated", "")])
    writer.writerow(["Period", report.get("period", "")])
    writer.writerow(["Company", report.get("company", "")])
    writer.writerow([])
    for metric_name, values in report.get("metrics", {}).items():
        writer.writerow(["METRIC", metric_name.upper()])
        for key, value in values.items():
            writer.writerow([key, value])
        writer.writerow([])
    return buffer.getvalue()
