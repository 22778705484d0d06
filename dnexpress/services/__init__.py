# Services Package
from .id_generator import IdentifierGenerator
from .notifier import LogNotifier, STATUS_MESSAGES
from .status_service import ShipmentStatusService
from .report_service import ReportService, report_to_csv
from . import manifest_document

__all__ = [
    "IdentifierGenerator",
    "LogNotifier",
    "STATUS_MESSAGES",
    "ShipmentStatusService",
    "ReportService",
    "report_to_csv",
    "manifest_document",
]
