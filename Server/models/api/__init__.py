"""
WikiAPI Server - API Models Package

This package contains Pydantic models for API endpoints.
"""

from models.api.api_message import ApiMessage
from models.api.delete import DeleteResult, DeleteResponse
from models.api.user_management import (
    CreateUserRequest,
    GroupMembership,
    SetUserGroupsRequest
)
from models.api.settings import SettingsUpdateRequest

__all__ = [
    'ApiMessage',
    'DeleteResult',
    'DeleteResponse',
    'CreateUserRequest',
    'GroupMembership',
    'SetUserGroupsRequest',
    'SettingsUpdateRequest',
]
