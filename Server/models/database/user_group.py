"""
WikiAPI Server - UserGroup Database Model

Group membership of a user. A membership with an expiry in the past
no longer grants the group's rights.
"""

from sqlalchemy import Column, Integer, String, ForeignKey, Index
from sqlalchemy.orm import relationship

from models.database.base import Base


class UserGroup(Base):
    """
    User_groups table - maps users to groups with optional expiry
    """
    __tablename__ = "user_groups"

    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), primary_key=True)
    group_id = Column(Integer, ForeignKey("groups.group_id", ondelete="CASCADE"), primary_key=True)
    expiry = Column(String(14), nullable=True)  # YYYYMMDDHHMMSS, NULL for permanent membership

    user = relationship("User", back_populates="memberships")
    group = relationship("Group", back_populates="memberships")

    __table_args__ = (
        Index('idx_user_groups_expiry', 'expiry'),
    )
