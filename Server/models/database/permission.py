"""
WikiAPI Server - Permission Database Model

Permission (right) model.
Stores available rights that can be granted to groups, e.g. 'delete' or 'bot'.
"""

from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from models.database.base import Base


class Permission(Base):
    """
    Permissions table - stores available rights
    """
    __tablename__ = "permissions"

    permission_id = Column(Integer, primary_key=True, autoincrement=True)
    permission_name = Column(String, unique=True, nullable=False)
    description = Column(String, nullable=True)

    # Relationship to groups through junction table
    groups = relationship("Group", secondary="group_permissions", back_populates="permissions")
