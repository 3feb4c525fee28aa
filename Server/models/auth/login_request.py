"""
WikiAPI Server - Login Request Model

Pydantic model for the bearer token login endpoint.
"""

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    """Credentials posted to /auth/login"""
    username: str = Field(..., min_length=1)
    password: str
