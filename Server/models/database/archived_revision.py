"""
WikiAPI Server - ArchivedRevision Database Model

Archive table holding revisions of deleted pages.
"""

from sqlalchemy import Column, Integer, String, Text, Index

from models.database.base import Base


class ArchivedRevision(Base):
    """
    Archive table - revisions of deleted pages, keyed by their former target
    """
    __tablename__ = "archive"

    ar_id = Column(Integer, primary_key=True, autoincrement=True)
    namespace = Column(Integer, nullable=False)
    title = Column(String, nullable=False)
    rev_id = Column(Integer, nullable=False)
    page_id = Column(Integer, nullable=False)
    user_id = Column(Integer, nullable=True)
    user_text = Column(String, nullable=False)
    timestamp = Column(String(14), nullable=False)
    comment = Column(String, nullable=False, default="")
    text = Column(Text, nullable=False, default="")
    size = Column(Integer, nullable=False, default=0)
    deleted = Column(Integer, nullable=False, default=0)  # Visibility bits, non-zero when suppressed

    __table_args__ = (
        Index('idx_archive_namespace_title', 'namespace', 'title', 'timestamp'),
        {"sqlite_autoincrement": True}
    )
