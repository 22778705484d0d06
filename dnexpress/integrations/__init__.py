# Partner Integrations Package
from .base import BasePartnerClient
from .sethwan import SethwanClient

__all__ = [
    "BasePartnerClient",
    "SethwanClient",
]
