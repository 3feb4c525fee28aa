"""
WikiAPI Server - Image Info Formatter

Formats current file versions (image rows) into API records for a
requested set of properties. Modules that list files take their allowed
'prop' values from GetPropertyNames().
"""

import json
import logging
from typing import List, Set

from models.database import Image
from file_storage import GetFileUrl, Sha1Base36ToHex
from timestamps import ToIsoTimestamp
from titles import Title, NS_FILE

logger = logging.getLogger(__name__)

PROPERTY_NAMES = [
    "timestamp",
    "user",
    "userid",
    "comment",
    "canonicaltitle",
    "url",
    "size",
    "dimensions",  # Alias of size
    "sha1",
    "mime",
    "mediatype",
    "metadata",
    "bitdepth",
]

DESCRIPTION_BASE_URL = "/wiki/"


def GetPropertyNames() -> List[str]:
    """Properties this formatter can produce, in documentation order"""
    return list(PROPERTY_NAMES)


def _DecodeMetadata(blob: str) -> list:
    """Metadata as a list of name/value pairs"""
    if not blob:
        return []
    try:
        data = json.loads(blob)
    except ValueError:
        logger.warning("Ignoring unreadable file metadata")
        return []
    if isinstance(data, dict):
        return [{"name": key, "value": value} for key, value in data.items()]
    return []


def GetImageInfo(record: Image, props: Set[str], base_url: str) -> dict:
    """
    Build the info record of a current file version

    Args:
        record: Image row
        props: Requested property names
        base_url: Base URL of the public zone (setting 'upload_base_url')

    Returns:
        dict: Requested properties present for this version
    """
    info = {}
    title = Title.MakeTitle(NS_FILE, record.name)
    mime = f"{record.major_mime}/{record.minor_mime}"

    if "timestamp" in props:
        info["timestamp"] = ToIsoTimestamp(record.timestamp)

    if "user" in props:
        info["user"] = record.user_text
    if "userid" in props:
        info["userid"] = record.user_id or 0

    if "size" in props or "dimensions" in props:
        info["size"] = record.size
        info["width"] = record.width
        info["height"] = record.height

    if "comment" in props:
        info["comment"] = record.description

    if "canonicaltitle" in props:
        info["canonicaltitle"] = title.prefixed_text

    if "url" in props:
        info["url"] = GetFileUrl(base_url, record.name)
        info["descriptionurl"] = DESCRIPTION_BASE_URL + title.prefixed_db_key

    if "sha1" in props and record.sha1:
        info["sha1"] = Sha1Base36ToHex(record.sha1)

    if "mime" in props:
        info["mime"] = mime

    if "mediatype" in props:
        info["mediatype"] = record.media_type or "UNKNOWN"

    if "metadata" in props:
        info["metadata"] = _DecodeMetadata(record.metadata_blob)

    if "bitdepth" in props:
        info["bitdepth"] = record.bits

    return info
