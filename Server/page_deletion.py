"""
WikiAPI Server - Page Deletion

Deletes a page by moving its revisions to the archive table, removing
the page row and writing a deletion log entry. Pages whose history is
longer than the 'delete_revisions_batch_size' setting are deleted by a
queued job in batches instead of within the request.
"""

import json
import logging
from typing import List, Optional, Union

from jobs import EnqueueJob, RegisterJobHandler
from change_tags import AddTags
from managers.database_manager import DatabaseManager
from models.database import ArchivedRevision, LogEntry, Page, Revision, User
from models.infrastructure import Status
from timestamps import ToDbTimestamp
from titles import Title

logger = logging.getLogger(__name__)

AUTO_REASON_MAX_LENGTH = 255
SUPPRESSED_BITS = 15  # text, comment, user and restricted

# Auto-generated reasons; $1 is the content excerpt, $2 the only author
MESSAGE_CONTENT = 'content was: "$1"'
MESSAGE_CONTENT_AUTHOR = 'content was: "$1", and the only contributor was "[[Special:Contributions/$2|$2]]"'
MESSAGE_BEFORE_BLANK = 'content before blanking was: "$1"'
MESSAGE_BLANK = 'page was empty'


# ==================== Auto Reason ====================

def _FillReason(message: str, excerpt: str, author: Optional[str] = None) -> str:
    """Substitute an excerpt (shortened to fit) and author into a reason message"""
    filled = message.replace("$2", author or "")
    room = AUTO_REASON_MAX_LENGTH - len(filled.replace("$1", ""))
    excerpt = " ".join(excerpt.split())
    if len(excerpt) > room:
        excerpt = excerpt[:max(room - 3, 0)] + "..."
    return filled.replace("$1", excerpt)


def GetAutoDeleteReason(session, page: Page) -> Union[str, bool]:
    """
    Build a deletion reason from a page's history

    Args:
        session: Database session
        page: Page to be deleted

    Returns:
        str: Generated reason, or False if the page has no history
    """
    latest = session.query(Revision).filter(
        Revision.page_id == page.page_id
    ).order_by(Revision.rev_id.desc()).first()
    if latest is None:
        return False

    authors = [row[0] for row in session.query(Revision.user_text).filter(
        Revision.page_id == page.page_id
    ).distinct().limit(2).all()]
    only_author = authors[0] if len(authors) == 1 else None

    if latest.text.strip():
        if only_author is not None:
            return _FillReason(MESSAGE_CONTENT_AUTHOR, latest.text, only_author)
        return _FillReason(MESSAGE_CONTENT, latest.text)

    # Blanked: quote the last revision that still had content
    before_blank = session.query(Revision).filter(
        Revision.page_id == page.page_id,
        Revision.rev_id < latest.rev_id,
        Revision.size > 0
    ).order_by(Revision.rev_id.desc()).first()
    if before_blank is not None and before_blank.text.strip():
        return _FillReason(MESSAGE_BEFORE_BLANK, before_blank.text)
    return MESSAGE_BLANK


# ==================== Log Entries ====================

def InsertLogEntry(session, log_type: str, log_action: str, title: Title, user: Optional[User],
                   comment: str, page_id: Optional[int] = None, params: Optional[dict] = None,
                   deleted: int = 0, tags: Optional[List[str]] = None, user_text: Optional[str] = None) -> int:
    """
    Write a log entry and attach tags
    Caller commits.

    Returns:
        int: log_id of the new entry
    """
    entry = LogEntry(
        log_type=log_type,
        log_action=log_action,
        timestamp=ToDbTimestamp(),
        user_id=user.user_id if user is not None else None,
        user_text=user.username if user is not None else (user_text or ""),
        namespace=title.namespace,
        title=title.db_key,
        page_id=page_id,
        comment=comment,
        params=json.dumps(params or {}),
        deleted=deleted
    )
    session.add(entry)
    session.flush()
    AddTags(session, tags or [], entry.log_id)
    return entry.log_id


# ==================== Deletion ====================

def _ArchiveRevisions(session, page: Page, revisions: List[Revision], suppress: bool) -> None:
    for revision in revisions:
        session.add(ArchivedRevision(
            namespace=page.namespace,
            title=page.title,
            rev_id=revision.rev_id,
            page_id=page.page_id,
            user_id=revision.user_id,
            user_text=revision.user_text,
            timestamp=revision.timestamp,
            comment=revision.comment,
            text=revision.text,
            size=revision.size,
            deleted=SUPPRESSED_BITS if suppress else 0
        ))
        session.delete(revision)


def _FinishPageDeletion(session, page: Page, actor: Optional[User], actor_text: str, reason: str,
                        suppress: bool, tags: List[str], archived_count: int) -> int:
    """Remove the page row and log the deletion; returns the log id"""
    session.flush()
    title = Title.MakeTitle(page.namespace, page.title)
    page_id = page.page_id
    session.delete(page)
    log_id = InsertLogEntry(
        session,
        "suppress" if suppress else "delete",
        "delete",
        title,
        actor,
        reason,
        page_id=page_id,
        params={"count": archived_count},
        deleted=SUPPRESSED_BITS if suppress else 0,
        tags=tags,
        user_text=actor_text
    )
    logger.info(f"Deleted page {title.prefixed_text} ({archived_count} revisions) by {actor_text}, log {log_id}")
    return log_id


def DeletePage(db_manager: DatabaseManager, session, page: Page, user: User, reason: str,
               suppress: bool = False, tags: Optional[List[str]] = None) -> Status:
    """
    Delete a page, now or through a queued job

    Args:
        db_manager: DatabaseManager for settings
        session: Primary database session
        page: Page to delete
        user: Acting user
        reason: Log comment
        suppress: Hide the archived revisions and log entry from non-suppressors
        tags: Tags to apply to the log entry (already checked)

    Returns:
        Status: value is the log id, or None with a 'delete-scheduled'
                warning when the deletion was queued
    """
    tags = tags or []
    batch_size = db_manager.GetIntSetting(session, "delete_revisions_batch_size")
    revision_count = session.query(Revision).filter(Revision.page_id == page.page_id).count()
    title = Title.MakeTitle(page.namespace, page.title)

    if revision_count == 0:
        return Status.NewFatal(
            "cannotdelete",
            f"The page or file \"{title.prefixed_text}\" could not be deleted. It may have already been deleted by someone else."
        )

    if revision_count > batch_size:
        EnqueueJob(session, "deletePage", {
            "page_id": page.page_id,
            "user_id": user.user_id,
            "user_text": user.username,
            "reason": reason,
            "suppress": suppress,
            "tags": tags,
        })
        session.commit()
        logger.info(f"Deletion of {title.prefixed_text} ({revision_count} revisions) scheduled")
        result = Status.NewGood(None)
        result.Warning(
            "delete-scheduled",
            f"The deletion of the page \"{title.prefixed_text}\" has been scheduled because it has a long history."
        )
        return result

    try:
        revisions = session.query(Revision).filter(Revision.page_id == page.page_id).all()
        _ArchiveRevisions(session, page, revisions, suppress)
        log_id = _FinishPageDeletion(session, page, user, user.username, reason, suppress, tags, len(revisions))
        session.commit()
    except Exception:
        session.rollback()
        raise

    return Status.NewGood(log_id)


def RunDeletePageJob(db_manager: DatabaseManager, session, params: dict) -> None:
    """
    Job handler for scheduled page deletions
    Archives revisions one batch at a time, committing after each batch.
    """
    batch_size = db_manager.GetIntSetting(session, "delete_revisions_batch_size")
    suppress = bool(params.get("suppress"))
    archived_count = 0

    page = session.query(Page).filter(Page.page_id == params["page_id"]).first()
    if page is None:
        logger.info(f"Page {params['page_id']} already gone, nothing to delete")
        return

    while True:
        batch = session.query(Revision).filter(
            Revision.page_id == page.page_id
        ).order_by(Revision.rev_id).limit(batch_size).all()
        if not batch:
            break
        _ArchiveRevisions(session, page, batch, suppress)
        session.commit()
        archived_count += len(batch)
        logger.debug(f"Archived {archived_count} revisions of page {page.page_id}")

    actor = session.query(User).filter(User.user_id == params.get("user_id")).first()
    _FinishPageDeletion(
        session, page, actor, params.get("user_text", ""), params.get("reason", ""),
        suppress, params.get("tags") or [], archived_count
    )


RegisterJobHandler("deletePage", RunDeletePageJob)
