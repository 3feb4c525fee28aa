"""
WikiAPI Server - Models Package

This package contains all data models for the WikiAPI server:
- database: SQLAlchemy database models
- auth: Authentication-related Pydantic models
- api: API endpoint Pydantic models
- infrastructure: Dataclass value objects (statuses, cursors, file views)
"""

# Re-export all models for convenient importing
from models.database import *
from models.auth import *
from models.api import *
from models.infrastructure import *
