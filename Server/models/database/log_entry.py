"""
WikiAPI Server - LogEntry Database Model

Log of administrative actions such as deletions.
"""

from sqlalchemy import Column, Integer, String, Text, Index

from models.database.base import Base


class LogEntry(Base):
    """
    Logging table - one row per logged action
    """
    __tablename__ = "logging"

    log_id = Column(Integer, primary_key=True, autoincrement=True)
    log_type = Column(String, nullable=False)  # 'delete', 'suppress'
    log_action = Column(String, nullable=False)  # 'delete', 'delete_redir', ...
    timestamp = Column(String(14), nullable=False)
    user_id = Column(Integer, nullable=True)
    user_text = Column(String, nullable=False)
    namespace = Column(Integer, nullable=False)
    title = Column(String, nullable=False)
    page_id = Column(Integer, nullable=True)
    comment = Column(String, nullable=False, default="")
    params = Column(Text, nullable=False, default="{}")  # JSON
    deleted = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        Index('idx_logging_type_time', 'log_type', 'timestamp'),
        Index('idx_logging_page_time', 'namespace', 'title', 'timestamp'),
        {"sqlite_autoincrement": True}
    )
