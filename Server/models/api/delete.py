"""
WikiAPI Server - Delete API Models

Pydantic models for the page/file deletion endpoint response.
"""

from typing import List, Optional
from pydantic import BaseModel

from models.api.api_message import ApiMessage


class DeleteResult(BaseModel):
    """Outcome of a deletion request"""
    title: str
    reason: str
    scheduled: Optional[bool] = None  # Set when the deletion was deferred to a job
    logid: Optional[int] = None  # Absent for scheduled deletions


class DeleteResponse(BaseModel):
    delete: DeleteResult
    warnings: Optional[List[ApiMessage]] = None
