"""
WikiAPI Server - Query Endpoints

list=allimages, both as a direct listing and as a generator feeding a
page set. Reads go to the replica database.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from all_images import AllImagesParams, RunAllImages
from api_errors import ApiWarnings, DieWithError
from auth import GetOptionalUser, UserHasPermission
from models.database import User
from page_set import PageSet


# Create logger
logger = logging.getLogger(__name__)

# Create router instance
router = APIRouter()


def GetAllImagesParams(
    sort: str = Query("name"),
    dir: str = Query("ascending"),
    from_: Optional[str] = Query(None, alias="from"),
    to: Optional[str] = Query(None),
    prefix: Optional[str] = Query(None),
    start: Optional[str] = Query(None),
    end: Optional[str] = Query(None),
    continue_: Optional[str] = Query(None, alias="continue"),
    prop: Optional[str] = Query(None),
    minsize: Optional[int] = Query(None, ge=0),
    maxsize: Optional[int] = Query(None, ge=0),
    sha1: Optional[str] = Query(None),
    sha1base36: Optional[str] = Query(None),
    user: Optional[str] = Query(None),
    filterbots: str = Query("all"),
    mime: Optional[str] = Query(None),
    limit: Optional[str] = Query(None)
) -> AllImagesParams:
    """FastAPI dependency collecting the list=allimages parameters"""
    return AllImagesParams(
        sort=sort, dir=dir, from_=from_, to=to, prefix=prefix, start=start, end=end,
        continue_=continue_, prop=prop, minsize=minsize, maxsize=maxsize, sha1=sha1,
        sha1base36=sha1base36, user=user, filterbots=filterbots, mime=mime, limit=limit
    )


# ==================== List Files Endpoints ====================

@router.get("/api/query/allimages", tags=["Query"])
async def list_all_images(
    params: AllImagesParams = Depends(GetAllImagesParams),
    current_user: Optional[User] = Depends(GetOptionalUser)
):
    """
    Enumerate current file versions

    Args:
        params: Listing parameters
        current_user: Authenticated user, or None for anonymous callers

    Returns:
        dict: Records under query.allimages, continuation and warnings
    """
    from database import db_manager

    warnings = ApiWarnings()
    high_limits = UserHasPermission(current_user, "apihighlimits", db_manager)

    session = db_manager.GetReplicaSession()
    try:
        result = RunAllImages(db_manager, session, params, warnings, high_limits=high_limits)
    finally:
        session.close()

    logger.debug(f"allimages returned {len(result.records)} records")

    response = {"batchcomplete": True}
    if result.continue_value is not None:
        response["continue"] = {"aicontinue": result.continue_value}
    response["query"] = {"allimages": result.records}
    if warnings.ToList():
        response["warnings"] = warnings.ToList()
    return response


@router.get("/api/query/generator/allimages", tags=["Query"])
async def generate_all_images(
    params: AllImagesParams = Depends(GetAllImagesParams),
    redirects: bool = Query(False),
    current_user: Optional[User] = Depends(GetOptionalUser)
):
    """
    Use the file listing as a generator of File pages

    Args:
        params: Listing parameters
        redirects: Resolve redirects in the page set (not supported here)
        current_user: Authenticated user, or None for anonymous callers

    Returns:
        dict: Pages under query.pages, continuation and warnings
    """
    from database import db_manager

    warnings = ApiWarnings()
    high_limits = UserHasPermission(current_user, "apihighlimits", db_manager)

    session = db_manager.GetReplicaSession()
    try:
        page_set = PageSet(session, resolve_redirects=redirects)
        if page_set.IsResolvingRedirects():
            DieWithError(
                "invalidparammix",
                "Use prop=imageinfo rather than redirects when using list=allimages as a generator."
            )

        result = RunAllImages(db_manager, session, params, warnings, high_limits=high_limits, generator=True)
        page_set.PopulateFromTitles(result.titles)
        pages = page_set.GetOutput()
    finally:
        session.close()

    response = {}
    if result.continue_value is not None:
        response["continue"] = {"gaicontinue": result.continue_value}
    response["query"] = {"pages": pages}
    if warnings.ToList():
        response["warnings"] = warnings.ToList()
    return response
