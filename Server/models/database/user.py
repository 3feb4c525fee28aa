"""
WikiAPI Server - User Database Model

User model for authentication and authorization.
Stores user credentials, preferences and group memberships.
"""

from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, DateTime, Boolean
from sqlalchemy.orm import relationship

from models.database.base import Base


class User(Base):
    """
    Users table - stores user credentials and authentication info
    """
    __tablename__ = "users"

    user_id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String, unique=True, nullable=False)
    password_hash = Column(String, nullable=False)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    last_login = Column(DateTime, nullable=True)
    is_active = Column(Boolean, default=True)
    watch_deletion = Column(Boolean, default=False)  # Watch pages this user deletes

    # Relationship to group memberships
    memberships = relationship("UserGroup", back_populates="user", cascade="all, delete-orphan")
    # Relationship to watched pages
    watched_items = relationship("WatchedItem", back_populates="user", cascade="all, delete-orphan")
