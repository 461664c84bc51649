"""
Registration and login endpoints.
"""

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from reader_api.auth import AuthService, EmailAlreadyRegistered
from reader_api.dependencies import get_auth_service
from reader_api.models import AuthResponse, LoginRequest, RegisterRequest

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/login", response_model=AuthResponse)
async def login(payload: LoginRequest, auth: AuthService = Depends(get_auth_service)):
    """
    Verify email and password.

    Unknown emails and wrong passwords both answer 400 ``Invalid credentials``.
    """
    if not payload.email or not payload.password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing email or password")

    try:
        user = await auth.authenticate(payload.email, payload.password)
    except Exception as e:
        logger.error("Login failed", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Login failed: {str(e)}"
        )

    if user is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid credentials")

    return AuthResponse(message="Login successful", user=user)


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, auth: AuthService = Depends(get_auth_service)):
    """Create an account from username, email and password."""
    if not payload.username or not payload.email or not payload.password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing fields")

    try:
        user = await auth.register(payload.username, payload.email, payload.password)
    except EmailAlreadyRegistered:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")
    except Exception as e:
        logger.error("Registration failed", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to register: {str(e)}"
        )

    return AuthResponse(message="User registered successfully", user=user)
