"""
WikiAPI Server - API Message Model

Pydantic model for errors and warnings reported to API callers.
"""

from pydantic import BaseModel


class ApiMessage(BaseModel):
    """Machine-readable code plus human-readable text"""
    code: str
    info: str
