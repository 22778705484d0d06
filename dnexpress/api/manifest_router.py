"""
Manifest API Router - shipment batches handed to customs or the carrier
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import PlainTextResponse
import logging

from dnexpress.core.exceptions import IntegrationError, NotFoundError, ValidationError
from dnexpress.core.store import EntityStore
from dnexpress.integrations import SethwanClient
from dnexpress.models import Manifest, User
from dnexpress.schemas import ManifestCreate, ManifestPatch, ManifestStatusUpdate
from dnexpress.services.manifest_document import manifest_filename, render_manifest
from .deps import Pagination, get_current_user, get_sethwan_client, get_store

logger = logging.getLogger(__name__)

manifest_router = APIRouter(prefix="/manifests", tags=["manifests"])


def _load_manifest(manifest_id: str, current_user: User, store: EntityStore) -> Manifest:
    """Other tenants' manifests are reported as missing"""
    manifest = store.get_manifest_by_id(manifest_id)
    if manifest is None or (manifest.company_id != current_user.id and not current_user.is_admin):
        raise NotFoundError("Manifest not found")
    return manifest


@manifest_router.post("", status_code=status.HTTP_201_CREATED)
def create_manifest(
    data: ManifestCreate,
    current_user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
):
    """Create a new manifest from the caller's shipments"""
    # Duplicates collapse, first occurrence keeps its position
    shipment_ids = list(dict.fromkeys(data.shipment_ids))
    for shipment_id in shipment_ids:
        shipment = store.get_shipment_by_id(shipment_id)
        if shipment is None or shipment.company_id != current_user.id:
            raise ValidationError(f"Shipment {shipment_id} not found or unauthorized")

    manifest = store.create_manifest({
        "company_id": current_user.id,
        "shipment_ids": shipment_ids,
        "manifest_type": data.manifest_type,
        "destination": data.destination,
    })

    logger.info(
        f"Manifest created: {manifest.manifest_number} ({manifest.shipment_count} shipments) - {current_user.company_name}"
    )

    return {
        "success": True,
        "message": f"Created manifest {manifest.manifest_number}",
        "manifest": {
            **manifest.summary(),
            "document_url": f"/api/manifests/{manifest.id}/document",
        },
    }


@manifest_router.get("")
def list_manifests(
    status: Optional[str] = Query(None),
    type: Optional[str] = Query(None),
    page: Pagination = Depends(),
    current_user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
):
    """List the caller's manifests"""
    manifests = store.list_manifests_by_company(current_user.id)
    if status:
        manifests = [m for m in manifests if m.status == status]
    if type:
        manifests = [m for m in manifests if m.manifest_type == type]

    paginated = page.apply(manifests)
    return {
        "success": True,
        "manifests": [m.summary() for m in paginated],
        "pagination": page.meta(len(manifests), len(paginated)),
    }


@manifest_router.get("/{manifest_id}")
def get_manifest(
    manifest_id: str,
    current_user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
):
    """Get manifest details with its shipments"""
    manifest = _load_manifest(manifest_id, current_user, store)
    shipments = [store.get_shipment_by_id(i) for i in manifest.shipment_ids]
    return {
        "success": True,
        "manifest": {
            **manifest.model_dump(mode="json"),
            "shipment_count": manifest.shipment_count,
            "shipments": [
                {
                    "id": s.id,
                    "tracking_number": s.tracking_number,
                    "status": s.status,
                    "destination": s.destination.city,
                    "weight": s.package.weight,
                }
                for s in shipments if s is not None
            ],
        },
    }


@manifest_router.get("/{manifest_id}/document")
def download_manifest(
    manifest_id: str,
    current_user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
):
    manifest = _load_manifest(manifest_id, current_user, store)
    shipments = [store.get_shipment_by_id(i) for i in manifest.shipment_ids]
    return PlainTextResponse(
        render_manifest(manifest, shipments),
        headers={"Content-Disposition": f'attachment; filename="{manifest_filename(manifest)}"'},
    )


@manifest_router.patch("/{manifest_id}/status")
def update_manifest_status(
    manifest_id: str,
    data: ManifestStatusUpdate,
    current_user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
):
    manifest = _load_manifest(manifest_id, current_user, store)
    updated = store.update_manifest(manifest.id, ManifestPatch(status=data.status))

    logger.info(f"Manifest status updated: {manifest.manifest_number} -> {data.status}")

    return {
        "success": True,
        "message": "Manifest status updated",
        "manifest": updated.model_dump(mode="json"),
    }


@manifest_router.post("/{manifest_id}/submit-to-sethwan")
async def submit_to_sethwan(
    manifest_id: str,
    current_user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
    sethwan: SethwanClient = Depends(get_sethwan_client),
):
    """Hand the manifest to Sethwan; marks it submitted only when the partner accepts"""
    manifest = _load_manifest(manifest_id, current_user, store)
    owner = store.get_user_by_id(manifest.company_id)
    if owner is None or not owner.sethwan.integrated:
        raise ValidationError("Sethwan integration not configured")

    client = sethwan.for_account(owner.sethwan.api_key, owner.sethwan.account_id)
    result = await client.submit_manifest(manifest, owner)
    if not result["success"]:
        raise IntegrationError("Failed to submit manifest", error=result.get("error"))

    store.update_manifest(manifest.id, ManifestPatch(status="submitted"))
    logger.info(f"Manifest submitted to Sethwan: {manifest.manifest_number}")

    return {
        "success": True,
        "message": "Manifest submitted to Sethwan",
        "manifest_number": manifest.manifest_number,
        "status": "submitted",
        "sethwan_manifest_id": result.get("sethwan_manifest_id"),
    }
