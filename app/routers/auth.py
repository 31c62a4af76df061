"""
Authentication endpoints for registration and login
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
import logging

from app.auth.auth_handler import AuthHandler, get_auth_handler
from app.database import get_db
from app.schemas.user import UserRegister, UserLogin, UserPublic, AuthData, AuthResponse
from app.services.user_service import UserService
from app.utils.error_handler import AppError, InternalError
from app.utils.rate_limit import limiter

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/register", response_model=AuthResponse, status_code=201)
@limiter.limit("5/minute")  # Strict limit to prevent spam registrations
async def register(
    request: Request,
    user_data: UserRegister,
    db: Session = Depends(get_db),
    auth_handler: AuthHandler = Depends(get_auth_handler),
):
    """Register a new user account and return a token"""
    try:
        result = await UserService(db, auth_handler).register(user_data.email, user_data.password)

        return AuthResponse(
            message="User registered successfully",
            data=AuthData(user=UserPublic.model_validate(result.user), token=result.token),
        )

    except AppError:
        raise
    except Exception as e:
        logger.error(f"Register failed: {e}")
        raise InternalError("Failed to register user", e)


@router.post("/login", response_model=AuthResponse)
@limiter.limit("10/minute")  # Prevent brute force attacks
async def login(
    request: Request,
    login_data: UserLogin,
    db: Session = Depends(get_db),
    auth_handler: AuthHandler = Depends(get_auth_handler),
):
    """Authenticate user and return access token"""
    try:
        result = await UserService(db, auth_handler).login(login_data.email, login_data.password)

        return AuthResponse(
            message="Login successful",
            data=AuthData(user=UserPublic.model_validate(result.user), token=result.token),
        )

    except AppError:
        raise
    except Exception as e:
        logger.error(f"Login failed: {e}")
        raise InternalError("Failed to log in", e)
