"""
WikiAPI Server - File Enumeration

Builds and runs the query behind list=allimages: validation of the
sort/filter/pagination parameters, one query over the image table
(optionally joined to user_groups for bot filtering), and assembly of
records or page titles with a continuation cursor.

Two sort modes:
- name:      ordered by file name; from/to/prefix bounds
- timestamp: ordered by (upload timestamp, name); start/end/user/filterbots
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Union

from sqlalchemy import and_, func, or_

from api_errors import ApiWarnings, DieCannotUseWith, DieMustUseWith, DieWithError
from api_params import (
    FilterAllowedValues, ParseContinueParam, ParseLimit, ParseTimestampParam,
    ParseUserParam, SplitMultiValue, ValidateChoice
)
from file_storage import Sha1HexToBase36
from image_info import GetImageInfo, GetPropertyNames
from managers.database_manager import DatabaseManager
from models.database import Image, UserGroup
from models.infrastructure import NameCursor, TimestampCursor
from timestamps import ToDbTimestamp
from titles import Title, TitlePartToKey, NS_FILE

logger = logging.getLogger(__name__)

ALLOWED_PROPERTIES = GetPropertyNames()
DEFAULT_PROPERTIES = "timestamp|url"
DEFAULT_LIMIT = 10

SORT_VALUES = ["name", "timestamp"]
DIR_VALUES = ["ascending", "descending", "newer", "older"]
FILTERBOTS_VALUES = ["all", "bots", "nobots"]

SHA1_HEX_RE = re.compile(r'^[0-9a-f]{40}$')
SHA1_BASE36_RE = re.compile(r'^[0-9a-z]{31}$')


@dataclass
class AllImagesParams:
    """Raw request parameters of list=allimages"""
    sort: str = "name"
    dir: str = "ascending"
    from_: Optional[str] = None
    to: Optional[str] = None
    prefix: Optional[str] = None
    start: Optional[str] = None
    end: Optional[str] = None
    continue_: Optional[str] = None
    prop: Optional[str] = None
    minsize: Optional[int] = None
    maxsize: Optional[int] = None
    sha1: Optional[str] = None
    sha1base36: Optional[str] = None
    user: Optional[str] = None
    filterbots: str = "all"
    mime: Optional[str] = None
    limit: Optional[str] = None


@dataclass
class AllImagesResult:
    """Rows of one listing call; records in direct mode, titles in generator mode"""
    records: List[dict] = field(default_factory=list)
    titles: List[Title] = field(default_factory=list)
    continue_value: Optional[str] = None


# ==================== Cursors ====================

def ParseCursor(value: str, sort: str) -> Union[NameCursor, TimestampCursor]:
    """
    Parse a 'continue' value for the given sort mode

    Raises:
        HTTPException: badcontinue if the value has the wrong shape
    """
    if sort == "name":
        return NameCursor(*ParseContinueParam(value, ['string']))
    timestamp, name = ParseContinueParam(value, ['timestamp', 'string'])
    return TimestampCursor(timestamp, name)


def CursorForRow(row: Image, sort: str) -> Union[NameCursor, TimestampCursor]:
    if sort == "name":
        return NameCursor(row.name)
    return TimestampCursor(row.timestamp, row.name)


def SplitMime(mime: str):
    """Split 'major/minor'; a value without a slash gets minor 'unknown'"""
    if '/' in mime:
        major, minor = mime.split('/', 1)
        return major, minor
    return mime, "unknown"


def _AddWhereRange(query, column, ascending: bool, start, end):
    """
    Bound a column by a start and end value
    In descending order the start is the upper bound.
    """
    if start is not None:
        query = query.filter(column >= start if ascending else column <= start)
    if end is not None:
        query = query.filter(column <= end if ascending else column >= end)
    return query


def _ResolveSha1(params: AllImagesParams) -> Optional[str]:
    """Validate the hash filter and return it in base-36 storage form"""
    if params.sha1 is not None:
        sha1 = params.sha1.lower()
        if not SHA1_HEX_RE.match(sha1):
            DieWithError("invalidsha1hash", "The SHA1 hash provided is not valid.")
        return Sha1HexToBase36(sha1)
    if params.sha1base36 is not None:
        sha1 = params.sha1base36.lower()
        if not SHA1_BASE36_RE.match(sha1):
            DieWithError("invalidsha1base36hash", "The SHA1Base36 hash provided is not valid.")
        return sha1
    return None


# ==================== Query ====================

def RunAllImages(db_manager: DatabaseManager, session, params: AllImagesParams,
                 warnings: ApiWarnings, high_limits: bool = False,
                 generator: bool = False) -> AllImagesResult:
    """
    Validate parameters, run the listing query and assemble the result

    Args:
        db_manager: DatabaseManager for settings and group lookups
        session: Replica session to query
        params: Request parameters
        warnings: Collector for non-fatal messages
        high_limits: Whether the caller may use the higher result limit
        generator: Produce page titles instead of records

    Returns:
        AllImagesResult: Records or titles plus the continuation value

    Raises:
        HTTPException: On invalid parameters (before any query is run)
    """
    ValidateChoice("sort", params.sort, SORT_VALUES)
    ValidateChoice("dir", params.dir, DIR_VALUES)
    ValidateChoice("filterbots", params.filterbots, FILTERBOTS_VALUES)

    ascending = params.dir not in ("descending", "older")
    sort = params.sort

    # Parameter combinations
    if sort == "name":
        for pname, value in (("start", params.start), ("end", params.end), ("user", params.user)):
            if value is not None:
                DieMustUseWith(pname, "sort=timestamp")
        if params.filterbots != "all":
            DieMustUseWith("filterbots", "sort=timestamp")
    else:
        for pname, value in (("from", params.from_), ("to", params.to), ("prefix", params.prefix)):
            if value is not None:
                DieMustUseWith(pname, "sort=name")
        if params.user is not None and params.filterbots != "all":
            # filterbots already checks each uploader's groups
            DieCannotUseWith("user", "filterbots")

    cursor = ParseCursor(params.continue_, sort) if params.continue_ is not None else None
    start = ParseTimestampParam("start", params.start)
    end = ParseTimestampParam("end", params.end)
    sha1 = _ResolveSha1(params)

    prop_values = SplitMultiValue(params.prop if params.prop is not None else DEFAULT_PROPERTIES)
    props = set(FilterAllowedValues("prop", prop_values, ALLOWED_PROPERTIES, warnings))
    limit = ParseLimit("limit", params.limit, DEFAULT_LIMIT, high_limits, warnings)

    mime_values = SplitMultiValue(params.mime)
    if mime_values is not None:
        if db_manager.GetBoolSetting(session, "miser_mode"):
            DieWithError("mimesearchdisabled", "MIME search is disabled in Miser Mode.")
        if not mime_values:
            # No MIME types, no files; an empty OR would be invalid SQL
            return AllImagesResult()

    user_name = ParseUserParam("user", params.user, session)

    query = session.query(Image)

    if sort == "name":
        if cursor is not None:
            query = query.filter(Image.name >= cursor.name if ascending else Image.name <= cursor.name)

        from_key = TitlePartToKey(params.from_, NS_FILE) if params.from_ is not None else None
        to_key = TitlePartToKey(params.to, NS_FILE) if params.to is not None else None
        query = _AddWhereRange(query, Image.name, ascending, from_key, to_key)

        if params.prefix is not None:
            prefix_key = TitlePartToKey(params.prefix, NS_FILE)
            # LIKE is case-insensitive on SQLite, the substr comparison is not
            query = query.filter(
                Image.name.startswith(prefix_key, autoescape=True),
                func.substr(Image.name, 1, len(prefix_key)) == prefix_key
            )

        query = query.order_by(Image.name.asc() if ascending else Image.name.desc())
    else:
        query = _AddWhereRange(query, Image.timestamp, ascending, start, end)

        if cursor is not None:
            if ascending:
                query = query.filter(or_(
                    Image.timestamp > cursor.timestamp,
                    and_(Image.timestamp == cursor.timestamp, Image.name >= cursor.name)
                ))
            else:
                query = query.filter(or_(
                    Image.timestamp < cursor.timestamp,
                    and_(Image.timestamp == cursor.timestamp, Image.name <= cursor.name)
                ))

        if user_name is not None:
            query = query.filter(Image.user_text == user_name)

        if params.filterbots != "all":
            bot_groups = db_manager.GetGroupsWithPermission(session, "bot")
            query = query.outerjoin(UserGroup, and_(
                UserGroup.user_id == Image.user_id,
                UserGroup.group_id.in_(bot_groups),
                or_(UserGroup.expiry.is_(None), UserGroup.expiry >= ToDbTimestamp())
            ))
            if params.filterbots == "nobots":
                query = query.filter(UserGroup.group_id.is_(None))
            else:
                # One row per uploader membership; collapse to one per file
                query = query.filter(UserGroup.group_id.isnot(None)).distinct()

        # Name breaks ties between uploads in the same second
        if ascending:
            query = query.order_by(Image.timestamp.asc(), Image.name.asc())
        else:
            query = query.order_by(Image.timestamp.desc(), Image.name.desc())

    # Filters not depending on sort
    if params.minsize is not None:
        query = query.filter(Image.size >= params.minsize)
    if params.maxsize is not None:
        query = query.filter(Image.size <= params.maxsize)
    if sha1 is not None:
        query = query.filter(Image.sha1 == sha1)
    if mime_values:
        query = query.filter(or_(*[
            and_(Image.major_mime == major, Image.minor_mime == minor)
            for major, minor in (SplitMime(mime) for mime in mime_values)
        ]))

    rows = query.limit(limit + 1).all()
    return _AssembleResult(db_manager, session, rows, sort, limit, props, warnings, generator)


def _AssembleResult(db_manager: DatabaseManager, session, rows: List[Image], sort: str,
                    limit: int, props: set, warnings: ApiWarnings,
                    generator: bool) -> AllImagesResult:
    """Turn fetched rows into records or titles, stopping at the limit or result size cap"""
    result = AllImagesResult()

    base_url = max_size = None
    if not generator:
        base_url = db_manager.GetSetting(session, "upload_base_url")
        max_size = db_manager.GetIntSetting(session, "api_max_result_size")
    used_size = 0

    for count, row in enumerate(rows, start=1):
        if count > limit:
            # The extra row shows that there are more to be had
            result.continue_value = CursorForRow(row, sort).Encode()
            break

        title = Title.MakeTitle(NS_FILE, row.name)
        if generator:
            result.titles.append(title)
            continue

        info = {"name": row.name}
        info.update(GetImageInfo(row, props, base_url))
        info["ns"] = title.namespace
        info["title"] = title.prefixed_text

        record_size = len(json.dumps(info))
        if used_size + record_size > max_size:
            warnings.Add(
                "truncatedresult",
                f"This result was truncated because it would otherwise be larger than the limit of {max_size} bytes."
            )
            result.continue_value = CursorForRow(row, sort).Encode()
            break
        used_size += record_size
        result.records.append(info)

    return result
