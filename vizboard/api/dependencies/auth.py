# vizboard/api/dependencies/auth.py
from typing import Optional
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from vizboard.api.dependencies.database import get_db
from vizboard.api.models.user import User
from vizboard.services import auth_service
from vizboard.utils.exceptions import AuthenticationError, InvalidTokenError
from vizboard.utils.logger import get_logger

logger = get_logger(__name__)

# Bearer token scheme
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme), db: Session = Depends(get_db)
) -> User:
    """Get current authenticated user"""
    if not token:
        raise AuthenticationError("No authentication token provided")

    return auth_service.get_user_for_token(db, token)


async def get_current_user_optional(
    token: Optional[str] = Depends(oauth2_scheme), db: Session = Depends(get_db)
) -> Optional[User]:
    """Get current user if authenticated, otherwise None"""
    if not token:
        return None

    try:
        return auth_service.get_user_for_token(db, token)
    except InvalidTokenError as e:
        logger.debug("Ignoring invalid optional token", error=e.message)
        return None
