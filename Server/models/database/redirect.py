"""
WikiAPI Server - Redirect Database Model

Redirect target of a page whose is_redirect flag is set.
"""

from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship

from models.database.base import Base


class Redirect(Base):
    """
    Redirect table - maps a redirect page to its target title
    """
    __tablename__ = "redirect"

    page_id = Column(Integer, ForeignKey("page.page_id", ondelete="CASCADE"), primary_key=True)
    namespace = Column(Integer, nullable=False)
    title = Column(String, nullable=False)

    page = relationship("Page", back_populates="redirect")
