"""
WikiAPI Server - GroupPermission Database Model

Junction table for many-to-many relationship between groups and rights.
"""

from sqlalchemy import Column, Integer, ForeignKey

from models.database.base import Base


class GroupPermission(Base):
    """
    GroupPermissions junction table - maps groups to rights (many-to-many)
    """
    __tablename__ = "group_permissions"

    group_id = Column(Integer, ForeignKey("groups.group_id"), primary_key=True)
    permission_id = Column(Integer, ForeignKey("permissions.permission_id"), primary_key=True)
