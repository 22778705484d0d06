"""
Manifest document - plain-text rendering for download
"""
from typing import List, Optional

from dnexpress.models import Manifest, Shipment


def render_manifest(manifest: Manifest, shipments: List[Optional[Shipment]]) -> str:
    """
    One line per included shipment; `shipments` is aligned with
    manifest.shipment_ids and may hold None for records that no longer resolve.
    """
    lines = [
        "SHIPPING MANIFEST",
        f"Manifest Number: {manifest.manifest_number}",
        f"Created: {manifest.created_at.strftime('%Y-%m-%d')}",
        f"Type: {manifest.manifest_type}",
        f"Status: {manifest.status}",
    ]
    if manifest.destination:
        lines.append(f"Destination: {manifest.destination}")
    lines.append("")
    lines.append(f"Shipments Included: {manifest.shipment_count}")

    total_weight = 0.0
    for shipment_id, shipment in zip(manifest.shipment_ids, shipments):
        if shipment is None:
            lines.append(f"- {shipment_id}")
            continue
        total_weight += shipment.package.weight
        lines.append(
            f"- {shipment.tracking_number} | {shipment.origin.city}, {shipment.origin.country}"
            f" -> {shipment.destination.city}, {shipment.destination.country}"
            f" | {shipment.package.weight:.2f} lbs | {shipment.status}"
        )

    lines.append("")
    lines.append(f"Total Weight: {total_weight:.2f} lbs")
    return "\n".join(lines) + "\n"


def manifest_filename(manifest: Manifest) -> str:
    return f"manifest-{manifest.manifest_number}.txt"
