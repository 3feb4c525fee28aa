"""
WikiAPI Server - Infrastructure Models Package

This package contains dataclass models for value objects passed between
handlers and domain routines: statuses, cursors and file views.
"""

from models.infrastructure.status import Status, StatusMessage
from models.infrastructure.cursor import NameCursor, TimestampCursor
from models.infrastructure.local_file import LocalFile

__all__ = [
    'Status',
    'StatusMessage',
    'NameCursor',
    'TimestampCursor',
    'LocalFile',
]
