"""
WikiAPI Server - Settings API Models

Pydantic models for settings management endpoints.
Every field is optional; only supplied settings are changed.
"""

from typing import Optional
from pydantic import BaseModel, Field


class SettingsUpdateRequest(BaseModel):
    miser_mode: Optional[bool] = None
    watchlist_expiry_enabled: Optional[bool] = None
    watchlist_expiry_max_duration: Optional[str] = None
    delete_revisions_batch_size: Optional[int] = Field(None, ge=1, le=100000)
    api_max_result_size: Optional[int] = Field(None, ge=1024)
    jwt_expiration_hours: Optional[int] = Field(None, ge=1, le=168)
    upload_base_url: Optional[str] = None
