# vizboard/services/auth_service.py
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Dict, Optional

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt
from sqlalchemy import func
from sqlalchemy.orm import Session

from vizboard.api.models.user import User
from vizboard.core.config import settings
from vizboard.utils.exceptions import (
    AlreadyExistsError,
    InvalidCredentialsError,
    InvalidTokenError,
    ResourceNotFoundError,
    ValidationError,
)
from vizboard.utils.logger import get_logger
from vizboard.utils.validators import validate_email, validate_password

logger = get_logger(__name__)

# bcrypt only looks at the first 72 bytes
BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    """Salted bcrypt hash"""
    salt = bcrypt.gensalt(rounds=settings.auth.bcrypt_rounds)
    return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False


@lru_cache()
def _dummy_hash() -> str:
    return hash_password("vizboard-dummy-password")


def normalize_email(email: Any) -> str:
    return email.strip().lower() if isinstance(email, str) else ""


def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    """JWT carrying the user's id, email and name"""
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(hours=settings.auth.expiration_hours))

    claims = {
        "sub": str(user.id),
        "email": user.email,
        "name": user.name,
        "iss": settings.auth.issuer,
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(claims, settings.auth.secret_key, algorithm=settings.auth.algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    """Decode and validate a JWT; any failure is an InvalidTokenError"""
    try:
        return jwt.decode(
            token,
            settings.auth.secret_key,
            algorithms=[settings.auth.algorithm],
            issuer=settings.auth.issuer,
        )
    except ExpiredSignatureError:
        logger.info("Expired token presented")
        raise InvalidTokenError("Token has expired")
    except JWTError as e:
        logger.warning("JWT decode error", error=str(e))
        raise InvalidTokenError()


def _auth_result(user: User) -> Dict[str, Any]:
    return {"user": user.to_dict(), "token": create_access_token(user)}


def register(db: Session, email: Any, password: Any, name: Any) -> Dict[str, Any]:
    """Create an account and return it with a fresh token"""
    missing = [
        field
        for field, value in (("email", email), ("password", password), ("name", name))
        if not isinstance(value, str) or not value.strip()
    ]
    if missing:
        raise ValidationError(
            f"Missing required fields: {', '.join(missing)}", missing[0]
        )

    email = normalize_email(email)
    if not validate_email(email):
        raise ValidationError("Invalid email format", "email")

    is_valid, message = validate_password(password, settings.auth.min_password_length)
    if not is_valid:
        raise ValidationError(message, "password")

    if db.query(User.id).filter(User.email == email).first():
        raise AlreadyExistsError(
            "User", email, message="User with this email already exists"
        )

    user = User(email=email, password_hash=hash_password(password), name=name.strip())
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.log_auth_event("register", True, user_id=user.id)
    return _auth_result(user)


def login(db: Session, email: Any, password: Any) -> Dict[str, Any]:
    """
    Check credentials and return the user with a fresh token.

    Unknown email, wrong password and inactive account all fail with the same
    error, and each path runs one bcrypt check.
    """
    if not isinstance(email, str) or not email or not isinstance(password, str) or not password:
        raise ValidationError("Email and password are required", "email")

    email = normalize_email(email)
    user = db.query(User).filter(User.email == email).first()

    if user is None:
        verify_password(password, _dummy_hash())
        logger.log_auth_event("login", False, reason="unknown_email")
        raise InvalidCredentialsError()

    if not verify_password(password, user.password_hash) or not user.is_active:
        logger.log_auth_event("login", False, user_id=user.id)
        raise InvalidCredentialsError()

    user.last_login_at = func.now()
    db.commit()
    db.refresh(user)

    logger.log_auth_event("login", True, user_id=user.id)
    return _auth_result(user)


def get_user_for_token(db: Session, token: str) -> User:
    """Resolve a bearer token to an active user"""
    payload = decode_access_token(token)
    user_id = payload.get("sub")
    if not user_id:
        raise InvalidTokenError("Invalid token payload")

    user = db.query(User).filter(User.id == user_id).first()
    if user is None or not user.is_active:
        raise InvalidTokenError("User not found or inactive")

    return user


def verify_token(db: Session, token: str) -> Dict[str, Any]:
    return get_user_for_token(db, token).to_dict()


def get_profile(db: Session, user_id: str) -> Dict[str, Any]:
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise ResourceNotFoundError("User", user_id)
    return user.to_dict()
