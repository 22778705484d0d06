"""
Access-control predicates shared by the routers
"""
from dnexpress.models import User
from .exceptions import AuthorizationError


def require_active(user: User) -> User:
    if not user.is_active:
        raise AuthorizationError("Account is not active.")
    return user


def require_role(user: User, role: str) -> User:
    if user.role != role:
        raise AuthorizationError(f"This action requires {role} role")
    return user


def require_owner_or_admin(user: User, owner_id: str) -> User:
    """Admins pass; everyone else must own the resource"""
    if user.is_admin or user.id == owner_id:
        return user
    raise AuthorizationError("Not authorized to access this resource")
