"""
WikiAPI Server - WatchedItem Database Model

A title on a user's watchlist, optionally only until an expiry.
"""

from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from models.database.base import Base


class WatchedItem(Base):
    """
    Watchlist table
    """
    __tablename__ = "watchlist"

    wl_id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    namespace = Column(Integer, nullable=False)
    title = Column(String, nullable=False)
    expiry = Column(String(14), nullable=True)  # NULL for a permanent watch

    user = relationship("User", back_populates="watched_items")

    __table_args__ = (
        UniqueConstraint('user_id', 'namespace', 'title', name='uq_watchlist_user_target'),
    )
