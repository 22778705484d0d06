"""
API Router - JSON Endpoints
"""
from fastapi import APIRouter

from dnexpress.models import utcnow

# Import sub-routers
from dnexpress.api.auth import router as auth_router
from dnexpress.api.customers import router as customers_router
from dnexpress.api.shipments import router as shipments_router
from dnexpress.api.status import router as status_router
from dnexpress.api.inventory import router as inventory_router
from dnexpress.api.admin import router as admin_router
from dnexpress.api.manifest_router import manifest_router
from dnexpress.api.reporting import router as reports_router
from dnexpress.api.sethwan import router as sethwan_router

api_router = APIRouter(tags=["API"])

# Include sub-routers
api_router.include_router(auth_router)
api_router.include_router(customers_router)
api_router.include_router(shipments_router)
api_router.include_router(status_router)
api_router.include_router(inventory_router)
api_router.include_router(admin_router)
api_router.include_router(manifest_router)
api_router.include_router(reports_router)
api_router.include_router(sethwan_router)

# ===================== HEALTH & STATUS =====================

@api_router.get("/health")
async def api_status():
    return {"success": True, "status": "ok", "version": "1.0.0", "timestamp": utcnow().isoformat()}
