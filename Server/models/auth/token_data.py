"""
WikiAPI Server - Token Data Models

Pydantic models for data carried in bearer and CSRF tokens.
"""

from pydantic import BaseModel


class TokenData(BaseModel):
    """Claims decoded from a JWT bearer token"""
    user_id: int
    username: str


class CsrfTokenResponse(BaseModel):
    """Response of /api/tokens/csrf; echo the value as 'token' on write requests"""
    csrftoken: str
