"""
WikiAPI Server - FileArchive Database Model

Deleted file versions, both former current versions and former old versions.
"""

from sqlalchemy import Column, Integer, String, Text, Index

from models.database.base import Base


class FileArchive(Base):
    """
    Filearchive table - deleted file versions
    """
    __tablename__ = "filearchive"

    fa_id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    archive_name = Column(String, nullable=True)  # NULL when this was the current version
    storage_key = Column(String, nullable=False)  # File name in the deleted zone
    size = Column(Integer, nullable=False, default=0)
    width = Column(Integer, nullable=False, default=0)
    height = Column(Integer, nullable=False, default=0)
    bits = Column(Integer, nullable=False, default=0)
    metadata_blob = Column("metadata", Text, nullable=False, default="")
    media_type = Column(String, nullable=True)
    major_mime = Column(String, nullable=False, default="unknown")
    minor_mime = Column(String, nullable=False, default="unknown")
    description = Column(String, nullable=False, default="")
    user_id = Column(Integer, nullable=True)
    user_text = Column(String, nullable=False)
    timestamp = Column(String(14), nullable=False)
    sha1 = Column(String(32), nullable=False, default="")
    deleted_user_id = Column(Integer, nullable=True)
    deleted_timestamp = Column(String(14), nullable=False)
    deleted_reason = Column(String, nullable=False, default="")
    deleted = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        Index('idx_filearchive_name', 'name', 'timestamp'),
        {"sqlite_autoincrement": True}
    )
