"""
WikiAPI Server - Database Models Package

This package contains all SQLAlchemy database model definitions.
All models share a common declarative base for proper table relationships.
"""

# Import Base first
from models.database.base import Base

# Import all models
from models.database.group import Group
from models.database.permission import Permission
from models.database.group_permission import GroupPermission
from models.database.user import User
from models.database.user_group import UserGroup
from models.database.page import Page
from models.database.revision import Revision
from models.database.archived_revision import ArchivedRevision
from models.database.redirect import Redirect
from models.database.image import Image
from models.database.old_image import OldImage
from models.database.file_archive import FileArchive
from models.database.log_entry import LogEntry
from models.database.change_tag import ChangeTagDefinition, ChangeTag
from models.database.watched_item import WatchedItem
from models.database.job import Job
from models.database.setting import Setting

# Export all models and Base
__all__ = [
    'Base',
    'Group',
    'Permission',
    'GroupPermission',
    'User',
    'UserGroup',
    'Page',
    'Revision',
    'ArchivedRevision',
    'Redirect',
    'Image',
    'OldImage',
    'FileArchive',
    'LogEntry',
    'ChangeTagDefinition',
    'ChangeTag',
    'WatchedItem',
    'Job',
    'Setting',
]
