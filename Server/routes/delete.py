"""
WikiAPI Server - Delete Endpoint

Deletes a page, a file, or one old version of a file. Existence and
rights are checked against the primary database; the deletion itself
is delegated to the page or file deletion routine.
"""

import logging
from typing import Optional, Tuple

from fastapi import APIRouter, BackgroundTasks, Depends, Form

from api_errors import ApiWarnings, DieStatus, DieWithError
from api_params import SplitMultiValue, ValidateChoice
from auth import GetCurrentActiveUser, MatchCsrfToken
from change_tags import CanAddTagsAccompanyingChange
from file_deletion import DeleteFileVersions, IsValidOldSpec
from file_storage import CanDeleteFile, FindFile, NewFromArchiveName
from jobs import RunJobs
from models.api import DeleteResponse, DeleteResult
from models.database import Page, User
from models.infrastructure import LocalFile, Status
from page_deletion import DeletePage, GetAutoDeleteReason
from titles import Title
from watchlist import ParseWatchlistExpiry, SetWatch, WATCHLIST_VALUES


# Create logger
logger = logging.getLogger(__name__)

# Create router instance
router = APIRouter()


# ==================== Target Resolution ====================

def _ResolveTarget(session, title: Optional[str], pageid: Optional[int]) -> Tuple[Title, Optional[Page]]:
    """
    Resolve the title or pageid parameter

    Returns:
        tuple: (title, page row or None when the page does not exist)
    """
    if title is not None and pageid is not None:
        DieWithError("invalidparammix", "The parameters 'title' and 'pageid' can not be used together.")
    if title is None and pageid is None:
        DieWithError("missingparam", "One of the parameters 'title' and 'pageid' is required.")

    if pageid is not None:
        page = session.query(Page).filter(Page.page_id == pageid).first()
        if page is None:
            DieWithError("nosuchpageid", f"There is no page with ID {pageid}.")
        return Title.MakeTitle(page.namespace, page.title), page

    target = Title.NewFromText(title)
    if target is None:
        DieWithError("invalidtitle", f"Bad title \"{title}\".")
    page = session.query(Page).filter(
        Page.namespace == target.namespace,
        Page.title == target.db_key
    ).first()
    return target, page


# ==================== Deletion Dispatch ====================

def _DeletePage(db_manager, session, title: Title, page: Page, user: User, reason: Optional[str],
                tags: list) -> Tuple[Status, Optional[str]]:
    """Delete through the page routine, generating a reason from history when none was given"""
    if reason is None:
        reason = GetAutoDeleteReason(session, page)
        if reason is False:
            return Status.NewFatal(
                "cannotdelete",
                f"The page or file \"{title.prefixed_text}\" could not be deleted. It may have already been deleted by someone else."
            ), None

    return DeletePage(db_manager, session, page, user, reason, False, tags), reason


def _DeleteFile(db_manager, session, title: Title, page: Optional[Page], file: LocalFile,
                oldimage: Optional[str], user: User, reason: Optional[str],
                tags: list) -> Tuple[Status, Optional[str]]:
    """Delete through the file routine; files it cannot handle go to the page routine"""
    if not CanDeleteFile(file):
        return _DeletePage(db_manager, session, title, page, user, reason, tags)

    if oldimage:
        if not IsValidOldSpec(oldimage):
            return Status.NewFatal("invalidoldimage", "The oldimage parameter has an invalid format."), reason
        old_file = NewFromArchiveName(session, title, oldimage)
        if not old_file.Exists() or not old_file.IsLocal() or old_file.GetRedirected():
            return Status.NewFatal(
                "nodeleteablefile",
                f"No such old version of the file \"{title.prefixed_text}\"."
            ), reason

    if reason is None:
        reason = ""

    return DeleteFileVersions(db_manager, session, title, file, oldimage, reason, False, user, tags), reason


# ==================== Delete Endpoint ====================

@router.post("/api/delete", response_model=DeleteResponse, response_model_exclude_none=True, tags=["Delete"])
async def delete(
    background_tasks: BackgroundTasks,
    title: Optional[str] = Form(None),
    pageid: Optional[int] = Form(None),
    reason: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    watch: bool = Form(False),
    unwatch: bool = Form(False),
    watchlist: str = Form("preferences"),
    watchlistexpiry: Optional[str] = Form(None),
    oldimage: Optional[str] = Form(None),
    token: Optional[str] = Form(None),
    current_user: User = Depends(GetCurrentActiveUser)
):
    """
    Delete a page or file

    Args:
        background_tasks: Runs queued deletion jobs after the response
        title: Title of the page to delete (or pageid)
        pageid: Page id of the page to delete (or title)
        reason: Log comment; generated from the page history when omitted
        tags: Pipe-separated change tags for the log entry
        watch: Deprecated, same as watchlist=watch
        unwatch: Deprecated, same as watchlist=unwatch
        watchlist: watch, unwatch, preferences or nochange
        watchlistexpiry: Expiry for a temporary watch
        oldimage: Archive name of a single old file version to delete
        token: CSRF token from /api/tokens/csrf
        current_user: Authenticated user (from JWT token)

    Returns:
        DeleteResponse: Title, effective reason, and log id or scheduled flag

    Raises:
        HTTPException: On any validation, authorization or deletion failure,
                       before anything is written
    """
    from database import db_manager

    if not MatchCsrfToken(current_user, token):
        DieWithError("badtoken", "Invalid CSRF token.")
    ValidateChoice("watchlist", watchlist, WATCHLIST_VALUES)

    warnings = ApiWarnings()
    session = db_manager.GetSession()

    try:
        user = session.query(User).filter(User.user_id == current_user.user_id).first()
        target, page = _ResolveTarget(session, title, pageid)

        file = FindFile(session, target) if target.IsFile() else None
        if page is None and (file is None or not CanDeleteFile(file)):
            DieWithError("missingtitle", "The page you specified doesn't exist.")

        if not db_manager.UserHasPermission(session, user.user_id, "delete"):
            logger.warning(f"User '{user.username}' denied deleting {target.prefixed_text}")
            DieWithError("permissiondenied", "You don't have permission to delete pages.")

        tag_list = SplitMultiValue(tags) or []
        if tag_list:
            tag_status = CanAddTagsAccompanyingChange(db_manager, session, tag_list, user)
            if not tag_status.IsOK():
                DieStatus(tag_status)

        # The legacy booleans win over the unified parameter
        if watch:
            watch_action = "watch"
        elif unwatch:
            watch_action = "unwatch"
        else:
            watch_action = watchlist

        expiry = None
        if db_manager.GetBoolSetting(session, "watchlist_expiry_enabled"):
            expiry = ParseWatchlistExpiry(
                watchlistexpiry,
                db_manager.GetSetting(session, "watchlist_expiry_max_duration"),
                warnings
            )

        if file is not None:
            result, reason = _DeleteFile(db_manager, session, target, page, file, oldimage, user, reason, tag_list)
        else:
            result, reason = _DeletePage(db_manager, session, target, page, user, reason, tag_list)

        if not result.IsOK():
            DieStatus(result)
        warnings.AddFromStatus(result, ["delete-scheduled"])

        SetWatch(session, user, target, watch_action, expiry)
        session.commit()

        scheduled = result.HasMessage("delete-scheduled")
        if scheduled:
            background_tasks.add_task(RunJobs, db_manager)

        logger.info(f"User '{user.username}' deleted {target.prefixed_text}" + (" (scheduled)" if scheduled else ""))

        return DeleteResponse(
            delete=DeleteResult(
                title=target.prefixed_text,
                reason=reason,
                scheduled=True if scheduled else None,
                logid=result.value
            ),
            warnings=warnings.ToList()
        )

    finally:
        session.close()
