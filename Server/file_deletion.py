"""
WikiAPI Server - File Deletion

Deletes a whole file (current version, its old versions and its
description page) or a single old version. Deleted versions are moved
to the filearchive table and, once that is committed, their blobs to the
deleted storage zone.
"""

import logging
import re
from pathlib import Path
from typing import List, Optional, Tuple, Union

from file_storage import GetArchivePath, GetDeletedStorageKey, GetPublicPath, MoveToDeletedZone
from managers.database_manager import DatabaseManager
from models.database import FileArchive, Image, OldImage, Page, User
from models.infrastructure import LocalFile, Status
from page_deletion import DeletePage, InsertLogEntry, SUPPRESSED_BITS
from timestamps import ToDbTimestamp
from titles import Title

logger = logging.getLogger(__name__)

OLD_SPEC_RE = re.compile(r'^\d{14}![^/\\]+$')


def IsValidOldSpec(oldimage: str) -> bool:
    """Whether an archive name has the form 'YYYYMMDDHHMMSS!Name.ext'"""
    return bool(OLD_SPEC_RE.match(oldimage))


def _ToFileArchive(record: Union[Image, OldImage], storage_key: str, archive_name: Optional[str],
                   user: User, reason: str, suppress: bool) -> FileArchive:
    return FileArchive(
        name=record.name,
        archive_name=archive_name,
        storage_key=storage_key,
        size=record.size,
        width=record.width,
        height=record.height,
        bits=record.bits,
        metadata_blob=record.metadata_blob,
        media_type=record.media_type,
        major_mime=record.major_mime,
        minor_mime=record.minor_mime,
        description=record.description,
        user_id=record.user_id,
        user_text=record.user_text,
        timestamp=record.timestamp,
        sha1=record.sha1,
        deleted_user_id=user.user_id,
        deleted_timestamp=ToDbTimestamp(),
        deleted_reason=reason,
        deleted=SUPPRESSED_BITS if suppress else 0
    )


def _MoveBlobs(blob_moves: List[Tuple[Path, str, str]]) -> None:
    """Move committed deletions into the deleted zone"""
    for source, storage_key, name in blob_moves:
        MoveToDeletedZone(source, storage_key, name)


def _DeleteOldVersion(session, title: Title, old: OldImage, user: User, reason: str,
                      suppress: bool, tags: List[str]) -> Status:
    storage_key = GetDeletedStorageKey(old.sha1, old.name)
    source = GetArchivePath(old.archive_name, old.name)
    archive_name, name = old.archive_name, old.name
    session.add(_ToFileArchive(old, storage_key, archive_name, user, reason, suppress))
    session.delete(old)

    log_id = InsertLogEntry(
        session,
        "suppress" if suppress else "delete",
        "delete",
        title,
        user,
        f"Deleted old revision {archive_name}: {reason}",
        params={"oldimage": archive_name},
        deleted=SUPPRESSED_BITS if suppress else 0,
        tags=tags
    )
    session.commit()

    _MoveBlobs([(source, storage_key, name)])
    logger.info(f"Deleted old version {archive_name} of {title.prefixed_text}, log {log_id}")
    return Status.NewGood(log_id)


def _DeleteAllVersions(db_manager: DatabaseManager, session, title: Title, image: Image, user: User,
                       reason: str, suppress: bool, tags: List[str]) -> Status:
    blob_moves = []

    old_versions = session.query(OldImage).filter(OldImage.name == image.name).all()
    for old in old_versions:
        storage_key = GetDeletedStorageKey(old.sha1, old.name)
        blob_moves.append((GetArchivePath(old.archive_name, old.name), storage_key, old.name))
        session.add(_ToFileArchive(old, storage_key, old.archive_name, user, reason, suppress))
        session.delete(old)

    storage_key = GetDeletedStorageKey(image.sha1, image.name)
    blob_moves.append((GetPublicPath(image.name), storage_key, image.name))
    session.add(_ToFileArchive(image, storage_key, None, user, reason, suppress))
    session.delete(image)
    session.flush()

    page = session.query(Page).filter(
        Page.namespace == title.namespace,
        Page.title == title.db_key
    ).first()
    if page is not None:
        # The page routine commits the file rows together with the page
        result = DeletePage(db_manager, session, page, user, reason, suppress, tags)
        if not result.IsOK():
            session.rollback()
            return result
    else:
        log_id = InsertLogEntry(
            session,
            "suppress" if suppress else "delete",
            "delete",
            title,
            user,
            reason,
            deleted=SUPPRESSED_BITS if suppress else 0,
            tags=tags
        )
        session.commit()
        result = Status.NewGood(log_id)

    _MoveBlobs(blob_moves)
    logger.info(f"Deleted file {title.prefixed_text} with {len(old_versions)} old versions")
    return result

def DeleteFileVersions(db_manager: DatabaseManager, session, title: Title, file: LocalFile,
                       oldimage: Optional[str], reason: str, suppress: bool, user: User,
                       tags: Optional[List[str]] = None) -> Status:
    """
    Delete a file or one of its old versions

    Args:
        db_manager: DatabaseManager for settings
        session: Primary database session
        title: File-namespace title
        file: Current version (local, not a redirect)
        oldimage: Archive name of the old version to delete, or None for the whole file
        reason: Log comment
        suppress: Hide the deleted versions and log entry
        user: Acting user
        tags: Tags to apply to the log entry (already checked)

    Returns:
        Status: value is the log id, or None when the page deletion was scheduled
    """
    tags = tags or []
    try:
        if oldimage:
            old = session.query(OldImage).filter(
                OldImage.name == file.name,
                OldImage.archive_name == oldimage
            ).first()
            if old is None:
                return Status.NewFatal("filedelete-old-unregistered", f"The specified file revision \"{oldimage}\" is not in the database.")
            return _DeleteOldVersion(session, title, old, user, reason, suppress, tags)
        return _DeleteAllVersions(db_manager, session, title, file.record, user, reason, suppress, tags)
    except Exception:
        session.rollback()
        raise
