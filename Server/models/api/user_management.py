"""
WikiAPI Server - User Management API Models

Pydantic models for user and group membership admin endpoints.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel


class CreateUserRequest(BaseModel):
    """Request model for creating a new user"""
    username: str
    password: str
    groups: List[str] = ["user"]
    watch_deletion: bool = False


class GroupMembership(BaseModel):
    """One group membership; no expiry means permanent"""
    group: str
    expiry: Optional[datetime] = None


class SetUserGroupsRequest(BaseModel):
    """Replaces all group memberships of a user"""
    memberships: List[GroupMembership]
