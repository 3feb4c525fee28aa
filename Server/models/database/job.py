"""
WikiAPI Server - Job Database Model

Deferred work queue, e.g. deletion of pages with long histories.
"""

from sqlalchemy import Column, Integer, String, Text, Index

from models.database.base import Base


class Job(Base):
    """
    Job table - queued background work
    """
    __tablename__ = "job"

    job_id = Column(Integer, primary_key=True, autoincrement=True)
    job_type = Column(String, nullable=False)
    params = Column(Text, nullable=False, default="{}")  # JSON
    queued_at = Column(String(14), nullable=False)
    attempts = Column(Integer, nullable=False, default=0)
    status = Column(String, nullable=False, default="queued")  # 'queued', 'done', 'failed'

    __table_args__ = (
        Index('idx_job_status', 'status', 'job_id'),
        {"sqlite_autoincrement": True}
    )
