"""
WikiAPI Server - Database Base

Shared declarative base for all SQLAlchemy models.
All wiki tables (pages, files, users, logs) hang off this metadata.
"""

from sqlalchemy.orm import declarative_base

# Create the shared declarative base
Base = declarative_base()
