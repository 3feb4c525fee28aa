"""
WikiAPI Server - Image Database Model

Image model for the current version of every uploaded file.
Older versions live in 'oldimage', deleted ones in 'filearchive'.
"""

from sqlalchemy import Column, Integer, String, Text, ForeignKey, Index

from models.database.base import Base


class Image(Base):
    """
    Image table - current file versions, one row per file name
    """
    __tablename__ = "image"

    name = Column(String, primary_key=True)  # Title key without the File: prefix
    size = Column(Integer, nullable=False, default=0)  # bytes
    width = Column(Integer, nullable=False, default=0)
    height = Column(Integer, nullable=False, default=0)
    bits = Column(Integer, nullable=False, default=0)
    metadata_blob = Column("metadata", Text, nullable=False, default="")  # JSON
    media_type = Column(String, nullable=True)  # BITMAP, DRAWING, AUDIO, VIDEO, ...
    major_mime = Column(String, nullable=False, default="unknown")
    minor_mime = Column(String, nullable=False, default="unknown")
    description = Column(String, nullable=False, default="")
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)
    user_text = Column(String, nullable=False)  # Uploader name or IP address
    timestamp = Column(String(14), nullable=False)
    sha1 = Column(String(32), nullable=False, default="")  # base-36, 31 digits

    __table_args__ = (
        # Index for sort=timestamp scans
        Index('idx_image_timestamp', 'timestamp'),
        # Index for uploader filtering
        Index('idx_image_user_timestamp', 'user_text', 'timestamp'),
        Index('idx_image_size', 'size'),
        Index('idx_image_sha1', 'sha1'),
        Index('idx_image_media_mime', 'media_type', 'major_mime', 'minor_mime'),
    )
