"""
Application errors - each carries the HTTP status it is reported with
"""
from typing import Any, Dict


class AppError(Exception):
    status_code: int = 500

    def __init__(self, message: str, status_code: int = None, **extra: Any):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.extra: Dict[str, Any] = extra

    def to_dict(self) -> Dict[str, Any]:
        return {"success": False, "message": self.message, **self.extra}


class ValidationError(AppError):
    """Missing or malformed input"""
    status_code = 400


class InvalidStatusError(ValidationError):
    """Status value outside the shipment vocabulary"""


class AuthenticationError(AppError):
    """Missing, invalid or expired credential"""
    status_code = 401


class AuthorizationError(AppError):
    """Role or ownership mismatch"""
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    """Duplicate email/SKU or a state that forbids the change"""
    status_code = 409


class InvalidTransitionError(ConflictError):
    pass


class IntegrationError(AppError):
    """Partner platform call failed"""
    status_code = 500


class InternalError(AppError):
    status_code = 500
