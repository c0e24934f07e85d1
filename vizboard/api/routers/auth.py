# vizboard/api/routers/auth.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from pydantic import BaseModel, EmailStr
from vizboard.api.dependencies.database import get_db
from vizboard.api.dependencies.auth import get_current_user
from vizboard.api.models.user import User
from vizboard.services import auth_service
from vizboard.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/auth")


# Pydantic models for requests
class RegisterRequest(BaseModel):
    """Registration request model"""

    email: EmailStr
    password: str
    name: str


class LoginRequest(BaseModel):
    """Login request model"""

    email: str
    password: str


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(request: RegisterRequest, db: Session = Depends(get_db)):
    """Create an account"""
    logger.info("Registration request received", email=request.email)

    result = auth_service.register(db, request.email, request.password, request.name)

    return {
        "success": True,
        "message": "User registered successfully",
        "data": result,
    }


@router.post("/login")
async def login(request: LoginRequest, db: Session = Depends(get_db)):
    """Exchange email and password for a bearer token"""
    logger.info("Login request received", email=request.email)

    result = auth_service.login(db, request.email, request.password)

    return {"success": True, "message": "Login successful", "data": result}


@router.get("/profile")
async def get_profile(
    current_user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    """Get current user info"""
    return {
        "success": True,
        "message": "Profile retrieved successfully",
        "data": {"user": auth_service.get_profile(db, current_user.id)},
    }


@router.get("/verify")
async def verify(current_user: User = Depends(get_current_user)):
    """Check that the bearer token is still valid"""
    logger.debug("Token verification request", user_id=current_user.id)
    return {
        "success": True,
        "message": "Token is valid",
        "data": {"user": current_user.to_dict(), "valid": True},
    }


@router.post("/logout")
async def logout(current_user: User = Depends(get_current_user)):
    """Logout user; the client discards its token"""
    logger.info("User logged out", user_id=current_user.id)
    return {"success": True, "message": "Logout successful"}
