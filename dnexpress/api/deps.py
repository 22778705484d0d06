"""
Shared route dependencies - store access, bearer auth, pagination
"""
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar

from fastapi import Depends, Header, Query, Request

from dnexpress.core.access import require_active, require_role
from dnexpress.core.config import Settings
from dnexpress.core.exceptions import AuthenticationError, NotFoundError
from dnexpress.core.security import decode_token
from dnexpress.core.store import EntityStore
from dnexpress.integrations import SethwanClient
from dnexpress.models import User
from dnexpress.services import ShipmentStatusService

T = TypeVar("T")

DEFAULT_LIMIT = 50
MAX_LIMIT = 500


def get_store(request: Request) -> EntityStore:
    return request.app.state.store


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_status_service(request: Request) -> ShipmentStatusService:
    return request.app.state.status_service


def get_sethwan_client(request: Request) -> SethwanClient:
    return request.app.state.sethwan


def get_current_user(
    authorization: Optional[str] = Header(None),
    store: EntityStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
) -> User:
    """
    Resolve the bearer token to a stored user.

    The user is re-read on every request so role and status changes apply
    immediately.
    """
    if not authorization:
        raise AuthenticationError("No authorization header provided")

    parts = authorization.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer" or not parts[1]:
        raise AuthenticationError("Invalid authorization header format. Use: Bearer <token>")

    claims = decode_token(parts[1], settings)
    user = store.get_user_by_id(claims.sub)
    if user is None:
        raise AuthenticationError("Invalid token")
    return require_active(user)


def require_admin(user: User = Depends(get_current_user)) -> User:
    return require_role(user, "admin")


def get_or_404(lookup: Callable[[str], Optional[T]], entity_id: str, message: str) -> T:
    entity = lookup(entity_id)
    if entity is None:
        raise NotFoundError(message)
    return entity


class Pagination:
    """limit/offset query parameters"""

    def __init__(
        self,
        limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
        offset: int = Query(0, ge=0),
    ):
        self.limit = limit
        self.offset = offset

    def apply(self, items: Sequence[T]) -> List[T]:
        return list(items[self.offset:self.offset + self.limit])

    def meta(self, total: int, returned: int) -> Dict[str, Any]:
        return {
            "total": total,
            "limit": self.limit,
            "offset": self.offset,
            "returned": returned,
        }
