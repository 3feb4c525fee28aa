"""
WikiAPI Server - API Error Reporting

Errors are reported as HTTPException with a detail of the form
{"code": ..., "info": ...}. Warnings are collected per request and
returned alongside the result.
"""

import logging
from typing import List, NoReturn, Optional

from fastapi import HTTPException, status

from models.api import ApiMessage
from models.infrastructure import Status

logger = logging.getLogger(__name__)

# HTTP status used for codes that are not plain bad requests
ERROR_STATUS_CODES = {
    "notloggedin": status.HTTP_401_UNAUTHORIZED,
    "permissiondenied": status.HTTP_403_FORBIDDEN,
    "tags-apply-no-permission": status.HTTP_403_FORBIDDEN,
    "badtoken": status.HTTP_403_FORBIDDEN,
    "missingtitle": status.HTTP_404_NOT_FOUND,
    "nosuchpageid": status.HTTP_404_NOT_FOUND,
    "nodeleteablefile": status.HTTP_404_NOT_FOUND,
    "internal_api_error": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def DieWithError(code: str, info: str, status_code: Optional[int] = None) -> NoReturn:
    """
    Abort the current request with a named API error

    Args:
        code: Error code, e.g. 'invalidparammix'
        info: Human-readable description
        status_code: HTTP status; derived from the code when omitted

    Raises:
        HTTPException: Always
    """
    if status_code is None:
        status_code = ERROR_STATUS_CODES.get(code, status.HTTP_400_BAD_REQUEST)
    raise HTTPException(status_code=status_code, detail={"code": code, "info": info})


def DieStatus(result: Status) -> NoReturn:
    """Abort with the first error of a failed status"""
    error = result.FirstError()
    if error is None:
        DieWithError("internal_api_error", "Operation failed without an error message")
    DieWithError(error.code, error.info)


def DieMustUseWith(param: str, required: str) -> NoReturn:
    DieWithError(
        "invalidparammix",
        f"The parameter '{param}' can only be used with '{required}'."
    )


def DieCannotUseWith(first: str, second: str) -> NoReturn:
    DieWithError(
        "invalidparammix",
        f"The parameters '{first}' and '{second}' can not be used together."
    )


class ApiWarnings:
    """
    Collects non-fatal messages raised while handling one request
    """

    def __init__(self):
        self.messages: List[ApiMessage] = []

    def Add(self, code: str, info: str) -> None:
        logger.debug(f"API warning {code}: {info}")
        self.messages.append(ApiMessage(code=code, info=info))

    def AddFromStatus(self, result: Status, only_codes: Optional[List[str]] = None) -> None:
        """
        Copy warnings from a status

        Args:
            result: Status returned by a domain routine
            only_codes: When given, only warnings with these codes are copied
        """
        for message in result.warnings:
            if only_codes is None or message.code in only_codes:
                self.Add(message.code, message.info)

    def ToList(self) -> Optional[List[dict]]:
        """Warnings for inclusion in a response body, or None when there are none"""
        if not self.messages:
            return None
        return [message.model_dump() for message in self.messages]
