"""
WikiAPI Server - Watchlist

Watch/unwatch side effects of write actions, including temporary
watches that lapse at an expiry.
"""

import logging
from typing import Optional

from api_errors import ApiWarnings, DieWithError
from api_params import AddDuration, ParseDuration
from models.database import User, WatchedItem
from timestamps import Now, ParseTimestamp, ToDbTimestamp, ToIsoTimestamp
from titles import Title

logger = logging.getLogger(__name__)

INFINITY_VALUES = ("infinite", "indefinite", "infinity", "never")
WATCHLIST_VALUES = ("watch", "unwatch", "preferences", "nochange")


def ParseWatchlistExpiry(value: Optional[str], max_duration: Optional[str],
                         warnings: ApiWarnings) -> Optional[str]:
    """
    Parse a watchlist expiry parameter

    Args:
        value: 'infinite' (and synonyms), a timestamp, or a relative
               duration like '1 week'; None when not supplied
        max_duration: Longest allowed relative duration, e.g. '6 months'
        warnings: Collector for the clamping warning

    Returns:
        str: Expiry in storage form, or None for a permanent watch

    Raises:
        HTTPException: badexpiry for unparseable values, badexpiry-past for past ones
    """
    if value is None or value.strip().lower() in INFINITY_VALUES:
        return None

    now = Now()
    expiry = ParseTimestamp(value)
    if expiry is None:
        duration = ParseDuration(value)
        if duration is None:
            DieWithError("badexpiry", f"Invalid value \"{value}\" for expiry parameter 'watchlistexpiry'.")
        expiry = AddDuration(now, *duration)

    if expiry < now:
        DieWithError("badexpiry-past", "Value provided for expiry parameter 'watchlistexpiry' is in the past.")

    if max_duration:
        max_parsed = ParseDuration(max_duration)
        if max_parsed is not None:
            max_expiry = AddDuration(now, *max_parsed)
            if expiry > max_expiry:
                warnings.Add(
                    "paramvalidator-badexpiry-duration-max",
                    f"Expiry time \"{value}\" exceeds the maximum of {max_duration}; "
                    f"using {ToIsoTimestamp(ToDbTimestamp(max_expiry))} instead."
                )
                expiry = max_expiry

    return ToDbTimestamp(expiry)


def GetWatchedItem(session, user_id: int, title: Title) -> Optional[WatchedItem]:
    """Current (unexpired) watch of a title by a user"""
    item = session.query(WatchedItem).filter(
        WatchedItem.user_id == user_id,
        WatchedItem.namespace == title.namespace,
        WatchedItem.title == title.db_key
    ).first()
    if item is not None and item.expiry is not None and item.expiry < ToDbTimestamp():
        return None
    return item


def IsWatched(session, user_id: int, title: Title) -> bool:
    return GetWatchedItem(session, user_id, title) is not None


def GetWatchlistValue(session, user: User, title: Title, watchlist: str) -> Optional[bool]:
    """
    Decide the watch state requested by a watchlist parameter

    Args:
        session: Database session
        user: Acting user
        title: Target title
        watchlist: 'watch', 'unwatch', 'preferences' or 'nochange'

    Returns:
        bool: True to watch, False to unwatch, None to leave as is
    """
    if watchlist == "watch":
        return True
    if watchlist == "unwatch":
        return False
    if watchlist == "preferences":
        if IsWatched(session, user.user_id, title) or user.watch_deletion:
            return True
        return None
    return None


def SetWatch(session, user: User, title: Title, watchlist: str, expiry: Optional[str] = None) -> None:
    """
    Apply a watchlist parameter for a user and title
    Caller commits.

    Args:
        session: Database session
        user: Acting user
        title: Target title
        watchlist: 'watch', 'unwatch', 'preferences' or 'nochange'
        expiry: Storage-form expiry for new or renewed watches; None keeps an
                existing watch's expiry and makes a new watch permanent
    """
    value = GetWatchlistValue(session, user, title, watchlist)
    if value is None:
        return

    item = session.query(WatchedItem).filter(
        WatchedItem.user_id == user.user_id,
        WatchedItem.namespace == title.namespace,
        WatchedItem.title == title.db_key
    ).first()

    if value:
        if item is None:
            session.add(WatchedItem(
                user_id=user.user_id,
                namespace=title.namespace,
                title=title.db_key,
                expiry=expiry
            ))
            logger.info(f"User '{user.username}' now watches {title.prefixed_text}")
        elif expiry is not None or (item.expiry is not None and item.expiry < ToDbTimestamp()):
            item.expiry = expiry
    elif item is not None:
        session.delete(item)
        logger.info(f"User '{user.username}' stopped watching {title.prefixed_text}")
