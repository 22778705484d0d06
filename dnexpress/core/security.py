"""
Security helpers - password hashing, password rules and JWT token pairs
"""
from datetime import datetime, timedelta, timezone
from typing import List, Optional
import re

from jose import ExpiredSignatureError, JWTError, jwt
import bcrypt

from .config import Settings
from .exceptions import AuthenticationError
from dnexpress.schemas import TokenClaims, TokenPair

# bcrypt only looks at the first 72 bytes
BCRYPT_MAX_BYTES = 72
MIN_PASSWORD_LENGTH = 8

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"


# ============== Passwords ==============

def hash_password(password: str, rounds: int = 10) -> str:
    """Hash a password using bcrypt"""
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt(rounds)).decode('utf-8')


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify a password against its hash using bcrypt"""
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(
            plain_password.encode('utf-8'),
            hashed_password.encode('utf-8')
        )
    except ValueError:
        return False


def validate_password(password: str) -> List[str]:
    """Return the list of rule violations; empty means the password is acceptable"""
    errors = []
    if len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    if len(password.encode('utf-8')) > BCRYPT_MAX_BYTES:
        errors.append(f"Password must be at most {BCRYPT_MAX_BYTES} bytes long")
    if not re.search(r"[A-Z]", password):
        errors.append("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        errors.append("Password must contain at least one lowercase letter")
    if not re.search(r"\d", password):
        errors.append("Password must contain at least one number")
    return errors


def is_valid_phone(phone: str) -> bool:
    """At least 10 digits once separators are stripped"""
    return len(re.sub(r"\D", "", phone or "")) >= 10


# ============== Tokens ==============

def _encode(claims: dict, secret: str, algorithm: str, expires_delta: timedelta) -> str:
    to_encode = claims.copy()
    to_encode.update({"exp": datetime.now(timezone.utc) + expires_delta})
    return jwt.encode(to_encode, secret, algorithm=algorithm)


def create_access_token(user_id: str, email: str, role: str, settings: Settings,
                        expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token"""
    return _encode(
        {"sub": user_id, "email": email, "role": role, "type": ACCESS_TOKEN},
        settings.SECRET_KEY,
        settings.JWT_ALGORITHM,
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )


def create_refresh_token(user_id: str, settings: Settings,
                         expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT refresh token, signed with its own secret"""
    return _encode(
        {"sub": user_id, "type": REFRESH_TOKEN},
        settings.REFRESH_SECRET_KEY,
        settings.JWT_ALGORITHM,
        expires_delta or timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
    )


def create_token_pair(user_id: str, email: str, role: str, settings: Settings) -> TokenPair:
    return TokenPair(
        access_token=create_access_token(user_id, email, role, settings),
        refresh_token=create_refresh_token(user_id, settings),
    )


def decode_token(token: str, settings: Settings, token_type: str = ACCESS_TOKEN) -> TokenClaims:
    """
    Decode and verify a token of the expected type.

    Raises AuthenticationError with code TOKEN_EXPIRED for expired tokens and
    a plain "Invalid token" for anything else (bad signature, wrong type,
    missing subject).
    """
    secret = settings.SECRET_KEY if token_type == ACCESS_TOKEN else settings.REFRESH_SECRET_KEY
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise AuthenticationError("Token has expired", code="TOKEN_EXPIRED")
    except JWTError:
        raise AuthenticationError("Invalid token")

    if payload.get("type") != token_type or not payload.get("sub"):
        raise AuthenticationError("Invalid token")
    return TokenClaims(**payload)
