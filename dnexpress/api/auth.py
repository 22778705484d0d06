"""
Authentication API - Registration, Login, JWT Token Pair, Password Management
"""
from fastapi import APIRouter, Depends, status
import logging

from dnexpress.core.config import Settings
from dnexpress.core.exceptions import (
    AuthenticationError, AuthorizationError, ConflictError, ValidationError,
)
from dnexpress.core.security import (
    REFRESH_TOKEN, create_access_token, create_token_pair, decode_token,
    hash_password, is_valid_phone, validate_password, verify_password,
)
from dnexpress.core.store import EntityStore
from dnexpress.models import User
from dnexpress.schemas import LoginRequest, PasswordChange, RefreshRequest, RegisterRequest, UserPatch
from .deps import get_app_settings, get_current_user, get_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _check_password_rules(password: str) -> None:
    errors = validate_password(password)
    if errors:
        raise ValidationError("Password does not meet requirements", errors=errors)


# ============== API Endpoints ==============

@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    data: RegisterRequest,
    store: EntityStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
):
    """
    Create a customer account and return it with a fresh token pair
    """
    if not is_valid_phone(data.phone):
        raise ValidationError("Invalid phone number (minimum 10 digits required)")
    if store.get_user_by_email(data.email):
        raise ConflictError("Email already registered")
    _check_password_rules(data.password)

    payload = data.model_dump()
    payload["password"] = hash_password(data.password, settings.BCRYPT_ROUNDS)
    payload["role"] = "customer"
    user = store.create_user(payload)
    tokens = create_token_pair(user.id, user.email, user.role, settings)

    logger.info(f"New customer registered: {user.company_name} ({user.email}) as {user.customer_number}")

    return {
        "success": True,
        "message": "Account created successfully",
        "user": user.public_dict(),
        "tokens": tokens.model_dump(),
    }


@router.post("/login")
def login(
    data: LoginRequest,
    store: EntityStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
):
    """
    Login with email and password, returns JWT token pair
    """
    user = store.get_user_by_email(data.email)
    if not user or not verify_password(data.password, user.password):
        raise AuthenticationError("Invalid email or password")

    if not user.is_active:
        raise AuthorizationError("Account is not active. Please contact support.")

    tokens = create_token_pair(user.id, user.email, user.role, settings)
    logger.info(f"Customer logged in: {user.company_name} ({user.email})")

    return {
        "success": True,
        "message": "Login successful",
        "user": user.public_dict(),
        "tokens": tokens.model_dump(),
    }


@router.post("/refresh")
def refresh(
    data: RefreshRequest,
    store: EntityStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
):
    """
    Exchange a refresh token for a new access token; the refresh token is reused
    """
    try:
        claims = decode_token(data.refresh_token, settings, token_type=REFRESH_TOKEN)
    except AuthenticationError:
        raise AuthenticationError("Invalid or expired refresh token")

    user = store.get_user_by_id(claims.sub)
    if not user:
        raise AuthenticationError("Invalid or expired refresh token")
    if not user.is_active:
        raise AuthorizationError("Account is not active. Please contact support.")

    return {
        "success": True,
        "message": "Token refreshed successfully",
        "tokens": {
            "access_token": create_access_token(user.id, user.email, user.role, settings),
            "refresh_token": data.refresh_token,
            "token_type": "bearer",
        },
    }


@router.post("/logout")
def logout(current_user: User = Depends(get_current_user)):
    """Tokens are stateless; the client discards them"""
    logger.info(f"Customer logged out: {current_user.email}")
    return {
        "success": True,
        "message": "Logout successful. Please delete the token from client.",
    }


@router.get("/verify")
def verify(current_user: User = Depends(get_current_user)):
    return {
        "success": True,
        "message": "Token is valid",
        "user": {
            "id": current_user.id,
            "email": current_user.email,
            "role": current_user.role,
        },
    }


@router.get("/me")
def get_me(current_user: User = Depends(get_current_user)):
    """Get current authenticated user info"""
    return {"success": True, "user": current_user.public_dict()}


@router.post("/password")
def change_password(
    password_data: PasswordChange,
    current_user: User = Depends(get_current_user),
    store: EntityStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
):
    """Change password for current user"""
    if not verify_password(password_data.current_password, current_user.password):
        raise ValidationError("Current password is incorrect")
    _check_password_rules(password_data.new_password)

    store.update_user(
        current_user.id,
        UserPatch(password=hash_password(password_data.new_password, settings.BCRYPT_ROUNDS)),
    )
    logger.info(f"Password changed for {current_user.email}")
    return {"success": True, "message": "Password changed successfully"}
