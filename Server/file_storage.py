"""
WikiAPI Server - File Repository

This module handles the local file repository:
- Storage directory structure (public, archive and deleted zones)
- Hashed directory layout and public URLs
- SHA-1 conversion between hex and base-36 form
- Lookups of current and archived file versions, including file redirects
- An optional read-only shared repository consulted after the local one

Layout under the storage root:
  public/<a>/<ab>/<name>            current versions
  archive/<a>/<ab>/<archive name>   superseded versions
  deleted/<s>/<sh>/<sha1>.<ext>     deleted versions, keyed by content hash
"""

import hashlib
import logging
import os
import shutil
from pathlib import Path
from typing import Optional
from urllib.parse import quote

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from models.database import Image, OldImage, Page, Redirect
from models.infrastructure import LocalFile
from titles import Title, NS_FILE

logger = logging.getLogger(__name__)


# ==================== Storage Configuration ====================

DEFAULT_STORAGE_ROOT = os.environ.get("WIKIAPI_STORAGE_ROOT", "storage")
STORAGE_ZONES = ["public", "archive", "deleted"]

# Active storage root, set by InitializeStorage
storage_root: Path = Path(DEFAULT_STORAGE_ROOT)

# Shared repository session factory, created on first use
_shared_session_factory = None


# ==================== Storage Directory Management ====================

def InitializeStorage(root: Optional[str] = None) -> Path:
    """
    Initialize the file storage directory structure
    Creates the storage root and one subdirectory per zone

    Args:
        root: Root directory for file storage (defaults to WIKIAPI_STORAGE_ROOT)

    Returns:
        Path: Absolute storage root
    """
    global storage_root

    storage_root = Path(root or DEFAULT_STORAGE_ROOT).absolute()
    try:
        storage_root.mkdir(parents=True, exist_ok=True)
        for zone in STORAGE_ZONES:
            (storage_root / zone).mkdir(exist_ok=True)
        logger.info(f"Storage root directory ready: {storage_root}")
    except Exception as e:
        logger.error(f"Failed to initialize storage: {str(e)}")
        raise

    return storage_root


def GetHashPath(key: str, levels: int = 2) -> str:
    """
    Get the hashed directory prefix for a file name, e.g. 'a/ab/'

    Args:
        key: File name (title key) or other storage key
        levels: Number of directory levels

    Returns:
        str: Relative directory path ending in '/'
    """
    digest = hashlib.md5(key.encode('utf-8')).hexdigest()
    return ''.join(digest[:i + 1] + '/' for i in range(levels))


def GetPublicPath(name: str) -> Path:
    return storage_root / "public" / GetHashPath(name) / name


def GetArchivePath(archive_name: str, name: str) -> Path:
    # Archived versions share the directory of the current file name
    return storage_root / "archive" / GetHashPath(name) / archive_name


def GetDeletedPath(storage_key: str) -> Path:
    return storage_root / "deleted" / storage_key[0] / storage_key[:2] / storage_key


def GetFileUrl(base_url: str, name: str) -> str:
    """Public URL of the current version of a file"""
    return f"{base_url.rstrip('/')}/{GetHashPath(name)}{quote(name)}"


# ==================== SHA-1 Forms ====================

def Sha1HexToBase36(sha1_hex: str) -> str:
    """Convert a 40-digit hex SHA-1 to the stored 31-digit base-36 form"""
    number = int(sha1_hex, 16)
    digits = "0123456789abcdefghijklmnopqrstuvwxyz"
    encoded = ""
    while number:
        number, remainder = divmod(number, 36)
        encoded = digits[remainder] + encoded
    return encoded.rjust(31, '0')


def Sha1Base36ToHex(sha1_base36: str) -> str:
    """Convert a stored base-36 SHA-1 back to 40-digit hex"""
    return format(int(sha1_base36, 36), '040x')


# ==================== Lookups ====================

def _GetSharedSession():
    """
    Get a session on the shared repository, or None if none is configured
    The shared repository uses the same image table layout.
    """
    global _shared_session_factory

    url = os.environ.get("WIKIAPI_SHARED_REPO_DATABASE_URL")
    if not url:
        return None
    if _shared_session_factory is None:
        _shared_session_factory = sessionmaker(bind=create_engine(url, echo=False), expire_on_commit=False)
    return _shared_session_factory()


def _ResolveFileRedirect(session, title: Title) -> Optional[Title]:
    """Target of a File-namespace redirect page, if the title is one"""
    row = session.query(Redirect).join(Page, Page.page_id == Redirect.page_id).filter(
        Page.namespace == title.namespace,
        Page.title == title.db_key,
        Page.is_redirect.is_(True)
    ).first()
    if row is None or row.namespace != NS_FILE:
        return None
    return Title.MakeTitle(row.namespace, row.title)


def FindFile(session, title: Title) -> LocalFile:
    """
    Look up the current version of a file

    Lookup order: the local image table, then a local file redirect
    (one hop), then the shared repository.

    Args:
        session: Database session
        title: File-namespace title

    Returns:
        LocalFile: View of the file; Exists() is False when nothing was found
    """
    image = session.query(Image).filter(Image.name == title.db_key).first()
    if image is not None:
        return LocalFile(name=title.db_key, record=image)

    target = _ResolveFileRedirect(session, title)
    if target is not None:
        target_image = session.query(Image).filter(Image.name == target.db_key).first()
        if target_image is not None:
            return LocalFile(name=target.db_key, record=target_image, redirected=title.db_key)

    shared_session = _GetSharedSession()
    if shared_session is not None:
        try:
            shared_image = shared_session.query(Image).filter(Image.name == title.db_key).first()
            if shared_image is not None:
                return LocalFile(name=title.db_key, record=shared_image, repo_name="shared")
        finally:
            shared_session.close()

    return LocalFile(name=title.db_key)


def NewFromArchiveName(session, title: Title, archive_name: str) -> LocalFile:
    """
    Look up an archived version of a file by its archive name

    Args:
        session: Database session
        title: File-namespace title the version belongs to
        archive_name: 'YYYYMMDDHHMMSS!Name.ext'

    Returns:
        LocalFile: View of the archived version; Exists() is False when not found
    """
    old = session.query(OldImage).filter(
        OldImage.name == title.db_key,
        OldImage.archive_name == archive_name
    ).first()
    return LocalFile(name=title.db_key, record=old, archive_name=archive_name)


def CanDeleteFile(file: LocalFile) -> bool:
    """Whether a file can be deleted through the file deletion path"""
    return file.Exists() and file.IsLocal() and not file.GetRedirected()


# ==================== Blob Moves ====================

def GetDeletedStorageKey(sha1: str, name: str) -> str:
    """Key of a blob in the deleted zone: content hash plus the file extension"""
    extension = Path(name).suffix.lower()
    return f"{sha1}{extension}" if sha1 else name


def MoveToDeletedZone(source: Path, storage_key: str, name: str) -> None:
    """
    Move a stored blob into the deleted zone

    Args:
        source: Current path of the blob
        storage_key: Key from GetDeletedStorageKey
        name: File name, for logging
    """
    destination = GetDeletedPath(storage_key)

    if source.exists():
        destination.parent.mkdir(parents=True, exist_ok=True)
        if destination.exists():
            # Identical content is already stored
            source.unlink()
        else:
            shutil.move(str(source), str(destination))
        logger.debug(f"Moved {source} to deleted zone as {storage_key}")
    else:
        logger.warning(f"Blob missing on disk while deleting {name}: {source}")
