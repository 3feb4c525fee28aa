"""
WikiAPI Server - Login Response Model

Pydantic model returned by the login endpoint.
"""

from typing import List
from pydantic import BaseModel


class LoginResponse(BaseModel):
    """Bearer token plus the rights it currently carries"""
    token: str
    expires_in: int  # Seconds until token expiration
    username: str
    rights: List[str] = []
