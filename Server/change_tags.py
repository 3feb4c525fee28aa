"""
WikiAPI Server - Change Tags

Checks and applies tags that accompany a logged action.
"""

import logging
from typing import List, Optional

from managers.database_manager import DatabaseManager
from models.database import ChangeTag, ChangeTagDefinition, User
from models.infrastructure import Status

logger = logging.getLogger(__name__)


def CanAddTagsAccompanyingChange(db_manager: DatabaseManager, session, tags: List[str],
                                 user: Optional[User]) -> Status:
    """
    Check whether a user may apply tags together with a change

    Args:
        db_manager: DatabaseManager for the rights lookup
        session: Database session
        tags: Tag names requested by the caller
        user: Acting user

    Returns:
        Status: Good, or fatal with tags-apply-no-permission /
                tags-apply-not-allowed-one / tags-apply-not-allowed-multi
    """
    if user is None or not db_manager.UserHasPermission(session, user.user_id, "applychangetags"):
        return Status.NewFatal("tags-apply-no-permission", "You do not have permission to apply change tags along with your changes.")

    definitions = session.query(ChangeTagDefinition).filter(ChangeTagDefinition.name.in_(tags)).all()
    allowed = {d.name for d in definitions if d.is_active and d.user_applicable}
    disallowed = [tag for tag in tags if tag not in allowed]

    if len(disallowed) == 1:
        return Status.NewFatal(
            "tags-apply-not-allowed-one",
            f"The tag \"{disallowed[0]}\" is not allowed to be manually applied."
        )
    if disallowed:
        return Status.NewFatal(
            "tags-apply-not-allowed-multi",
            f"The following tags are not allowed to be manually applied: {', '.join(disallowed)}"
        )
    return Status.NewGood()


def AddTags(session, tags: List[str], log_id: int) -> None:
    """
    Attach tags to a log entry and bump their hit counts
    Caller commits.

    Args:
        session: Database session
        tags: Tag names (already checked)
        log_id: Log entry to tag
    """
    if not tags:
        return

    definitions = session.query(ChangeTagDefinition).filter(ChangeTagDefinition.name.in_(tags)).all()
    for definition in definitions:
        session.add(ChangeTag(log_id=log_id, tag_id=definition.tag_id))
        definition.hit_count = (definition.hit_count or 0) + 1
