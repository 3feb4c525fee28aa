"""
WikiAPI Server - OldImage Database Model

Superseded versions of a file. Each row is addressed by its archive name,
'YYYYMMDDHHMMSS!Name.ext'.
"""

from sqlalchemy import Column, Integer, String, Text, Index

from models.database.base import Base


class OldImage(Base):
    """
    Oldimage table - archived file versions
    """
    __tablename__ = "oldimage"

    archive_name = Column(String, primary_key=True)
    name = Column(String, nullable=False)  # Name of the file this was a version of
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
    deleted = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        Index('idx_oldimage_name_timestamp', 'name', 'timestamp'),
    )
