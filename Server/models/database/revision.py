"""
WikiAPI Server - Revision Database Model

Revision model: one stored version of a page's text.
"""

from sqlalchemy import Column, Integer, String, Text, ForeignKey, Index
from sqlalchemy.orm import relationship

from models.database.base import Base


class Revision(Base):
    """
    Revision table - page history
    """
    __tablename__ = "revision"

    rev_id = Column(Integer, primary_key=True, autoincrement=True)
    page_id = Column(Integer, ForeignKey("page.page_id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)
    user_text = Column(String, nullable=False)  # Username or IP address of the author
    timestamp = Column(String(14), nullable=False)
    comment = Column(String, nullable=False, default="")
    text = Column(Text, nullable=False, default="")
    size = Column(Integer, nullable=False, default=0)

    page = relationship("Page", back_populates="revisions")

    __table_args__ = (
        Index('idx_revision_page_timestamp', 'page_id', 'timestamp'),
        {"sqlite_autoincrement": True}
    )
