"""
WikiAPI Server - Group Database Model

Group model for rights assignment.
A group bundles rights (permissions); users join groups, optionally until an expiry.
"""

from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, DateTime, Boolean
from sqlalchemy.orm import relationship

from models.database.base import Base


class Group(Base):
    """
    Groups table - stores group definitions
    """
    __tablename__ = "groups"

    group_id = Column(Integer, primary_key=True, autoincrement=True)
    group_name = Column(String, unique=True, nullable=False)
    description = Column(String, nullable=True)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    is_system_group = Column(Boolean, default=False)  # True for default groups that cannot be deleted

    # Relationship to memberships
    memberships = relationship("UserGroup", back_populates="group", cascade="all, delete-orphan")
    # Relationship to rights through junction table
    permissions = relationship("Permission", secondary="group_permissions", back_populates="groups")
