"""
WikiAPI Server - Authentication Endpoints

This module contains authentication-related endpoints: bearer token
login and the CSRF token required by write requests.
"""

import logging
from fastapi import APIRouter, Depends, HTTPException, status

from models.database import User
from models.auth import LoginRequest, LoginResponse, CsrfTokenResponse
from auth import AuthenticateUser, CreateAccessToken, GetCurrentActiveUser, GetCsrfToken


# Create logger
logger = logging.getLogger(__name__)

# Create router instance
router = APIRouter()


# ==================== Authentication Endpoints ====================

@router.post("/auth/login", response_model=LoginResponse, tags=["Authentication"])
async def login(login_request: LoginRequest):
    """
    Authenticate user and return JWT token

    Args:
        login_request: Username and password

    Returns:
        LoginResponse: JWT token, expiration time and current rights

    Raises:
        HTTPException: If credentials are invalid
    """
    from database import db_manager

    # Authenticate user (returns dict or None)
    user_data = AuthenticateUser(db_manager, login_request.username, login_request.password)

    if not user_data:
        logger.warning(f"Failed login attempt for user '{login_request.username}'")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "wrongpassword", "info": "Incorrect username or password"},
            headers={"WWW-Authenticate": "Bearer"},
        )

    session = db_manager.GetSession()
    try:
        expiration_hours = db_manager.GetIntSetting(session, "jwt_expiration_hours")
    finally:
        session.close()

    token_data = {
        "user_id": user_data['user_id'],
        "username": user_data['username']
    }
    access_token = CreateAccessToken(token_data, db_manager)

    logger.info(f"User '{user_data['username']}' logged in successfully")

    return LoginResponse(
        token=access_token,
        expires_in=expiration_hours * 3600,
        username=user_data['username'],
        rights=user_data['rights']
    )


@router.get("/api/tokens/csrf", response_model=CsrfTokenResponse, tags=["Authentication"])
async def csrf_token(current_user: User = Depends(GetCurrentActiveUser)):
    """
    Get the CSRF token to send as 'token' with write requests

    Args:
        current_user: Currently authenticated user (from JWT token)
    """
    return CsrfTokenResponse(csrftoken=GetCsrfToken(current_user))
