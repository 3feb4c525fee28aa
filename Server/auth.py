"""
WikiAPI Server - Authentication Utilities

This module provides authentication functionality including:
- JWT bearer token generation and validation
- Required and optional user dependencies for routes
- Right checks backed by group memberships
- CSRF tokens for write requests
"""

import hashlib
import hmac
import logging
import os
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt

from models.database import User
from models.auth import TokenData
from managers.database_manager import DatabaseManager

logger = logging.getLogger(__name__)

# JWT Configuration
SECRET_KEY = os.environ.get("WIKIAPI_SECRET_KEY") or secrets.token_urlsafe(32)
ALGORITHM = "HS256"

# Security schemes for FastAPI; the optional one lets anonymous callers through
security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)


# ==================== JWT Token Functions ====================

def CreateAccessToken(data: dict, db_manager: DatabaseManager, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token

    Args:
        data: Dictionary containing user data (user_id, username)
        db_manager: DatabaseManager instance to get JWT expiration setting
        expires_delta: Optional custom expiration time

    Returns:
        str: Encoded JWT token
    """
    to_encode = data.copy()

    if expires_delta is None:
        session = db_manager.GetSession()
        try:
            expires_delta = timedelta(hours=db_manager.GetIntSetting(session, "jwt_expiration_hours"))
        finally:
            session.close()

    to_encode.update({"exp": datetime.now(timezone.utc) + expires_delta})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def DecodeAccessToken(token: str) -> TokenData:
    """
    Decode and validate a JWT access token

    Args:
        token: JWT token string

    Returns:
        TokenData: Token data if valid

    Raises:
        HTTPException: If token is invalid or expired
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"code": "notloggedin", "info": "Could not validate credentials"},
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise credentials_exception

    user_id = payload.get("user_id")
    username = payload.get("username")
    if user_id is None or username is None:
        raise credentials_exception

    return TokenData(user_id=user_id, username=username)


def _LoadActiveUser(token: str) -> User:
    """Resolve a bearer token to an active user, raising 401 otherwise"""
    token_data = DecodeAccessToken(token)

    from database import db_manager

    session = db_manager.GetSession()
    try:
        user = session.query(User).filter(User.user_id == token_data.user_id).first()

        if user is None or not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail={"code": "notloggedin", "info": "User not found or disabled"},
                headers={"WWW-Authenticate": "Bearer"},
            )

        return user
    finally:
        session.close()


# ==================== Authentication Dependencies ====================

def GetCurrentActiveUser(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> User:
    """
    FastAPI dependency to get the current authenticated user
    Validates the JWT token and returns the (detached) user object

    Raises:
        HTTPException: If authentication fails or the account is disabled
    """
    return _LoadActiveUser(credentials.credentials)


def GetOptionalUser(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security)
) -> Optional[User]:
    """
    FastAPI dependency for endpoints open to anonymous callers

    Returns:
        User: Authenticated user, or None when no bearer token was sent
    """
    if credentials is None:
        return None
    return _LoadActiveUser(credentials.credentials)


# ==================== Authentication Helper Functions ====================

def AuthenticateUser(db_manager: DatabaseManager, username: str, password: str) -> Optional[dict]:
    """
    Authenticate a user with username and password

    Args:
        db_manager: DatabaseManager instance
        username: Username
        password: Plain text password

    Returns:
        dict: user_id, username and rights if authentication succeeded, None otherwise
    """
    session = db_manager.GetSession()

    try:
        user = session.query(User).filter(User.username == username).first()

        if not user or not user.is_active:
            return None

        if not db_manager.VerifyPassword(password, user.password_hash):
            return None

        user.last_login = datetime.now(timezone.utc)
        session.commit()

        return {
            'user_id': user.user_id,
            'username': user.username,
            'rights': db_manager.GetUserRights(session, user.user_id)
        }

    finally:
        session.close()


# ==================== Permission Checking ====================

def UserHasPermission(user: Optional[User], permission_name: str, db_manager: DatabaseManager = None) -> bool:
    """
    Check if a user has a specific right

    Args:
        user: User object, or None for anonymous callers (who hold no rights)
        permission_name: Right to check, e.g. 'delete' or 'apihighlimits'
        db_manager: Optional DatabaseManager instance (uses global if not provided)

    Returns:
        bool: True if user has the right or is admin, False otherwise
    """
    if user is None:
        return False

    if db_manager is None:
        from database import db_manager as global_db_manager
        db_manager = global_db_manager

    session = db_manager.GetSession()
    try:
        return db_manager.UserHasPermission(session, user.user_id, permission_name)
    finally:
        session.close()


def RequirePermission(permission_name: str):
    """
    Dependency factory to create a right checking dependency

    Args:
        permission_name: Name of the right required

    Returns:
        Dependency function that checks for the right

    Usage:
        @router.post("/something")
        async def some_endpoint(user: User = Depends(RequirePermission("admin"))):
            ...
    """
    def permission_checker(current_user: User = Depends(GetCurrentActiveUser)) -> User:
        """
        Raises:
            HTTPException: 403 Forbidden if user lacks the right
        """
        if not UserHasPermission(current_user, permission_name):
            logger.warning(f"User '{current_user.username}' denied: missing right '{permission_name}'")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"code": "permissiondenied", "info": f"Permission denied. Required right: {permission_name}"}
            )
        return current_user

    return permission_checker


RequireAdmin = RequirePermission("admin")


# ==================== CSRF Tokens ====================

def GetCsrfToken(user: User) -> str:
    """
    Get the CSRF token for a user
    Stable for a given user and server secret.
    """
    digest = hmac.new(SECRET_KEY.encode('utf-8'), f"csrf:{user.user_id}".encode('utf-8'), hashlib.sha256)
    return digest.hexdigest()


def MatchCsrfToken(user: User, token: Optional[str]) -> bool:
    if not token:
        return False
    return hmac.compare_digest(GetCsrfToken(user), token)
