"""
WikiAPI Server - Change Tag Database Models

Tag definitions and tags applied to log entries.
"""

from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, UniqueConstraint

from models.database.base import Base


class ChangeTagDefinition(Base):
    """
    Change_tag_def table - tags known to the wiki
    """
    __tablename__ = "change_tag_def"

    tag_id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, unique=True, nullable=False)
    is_active = Column(Boolean, default=True)
    user_applicable = Column(Boolean, default=True)  # False for tags only software may apply
    hit_count = Column(Integer, nullable=False, default=0)


class ChangeTag(Base):
    """
    Change_tag table - a tag attached to a log entry
    """
    __tablename__ = "change_tag"

    ct_id = Column(Integer, primary_key=True, autoincrement=True)
    log_id = Column(Integer, ForeignKey("logging.log_id", ondelete="CASCADE"), nullable=False)
    tag_id = Column(Integer, ForeignKey("change_tag_def.tag_id", ondelete="CASCADE"), nullable=False)

    __table_args__ = (
        UniqueConstraint('log_id', 'tag_id', name='uq_change_tag_log_tag'),
    )
