"""
WikiAPI Server - Page Database Model

Page model: one row per existing page, identified by namespace and title key.
"""

from sqlalchemy import Column, Integer, String, Boolean, Index, UniqueConstraint
from sqlalchemy.orm import relationship

from models.database.base import Base


class Page(Base):
    """
    Page table - tracks existing pages
    """
    __tablename__ = "page"

    page_id = Column(Integer, primary_key=True, autoincrement=True)
    namespace = Column(Integer, nullable=False, default=0)
    title = Column(String, nullable=False)  # DB key form, underscores instead of spaces
    is_redirect = Column(Boolean, default=False)
    latest_rev_id = Column(Integer, nullable=True)
    touched = Column(String(14), nullable=True)

    revisions = relationship("Revision", back_populates="page", order_by="Revision.rev_id", passive_deletes=True)
    redirect = relationship("Redirect", back_populates="page", uselist=False, cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint('namespace', 'title', name='uq_page_namespace_title'),
        Index('idx_page_namespace_title', 'namespace', 'title'),
        {"sqlite_autoincrement": True}
    )
