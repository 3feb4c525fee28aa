"""
WikiAPI Server - Page Set

Collects page titles produced by a generator module and resolves them
against the page table for output.
"""

import logging
from typing import List

from sqlalchemy import and_, or_

from models.database import Page
from titles import Title

logger = logging.getLogger(__name__)


class PageSet:
    """
    Titles resolved to existing or missing pages, in the order given
    """

    def __init__(self, session, resolve_redirects: bool = False):
        self.session = session
        self.resolve_redirects = resolve_redirects
        self.pages: List[dict] = []

    def IsResolvingRedirects(self) -> bool:
        return self.resolve_redirects

    def PopulateFromTitles(self, titles: List[Title]) -> None:
        """
        Resolve titles to page rows in one query

        Args:
            titles: Titles to look up; duplicates are dropped
        """
        unique_titles = list(dict.fromkeys(titles))
        if not unique_titles:
            return

        rows = self.session.query(Page).filter(or_(*[
            and_(Page.namespace == title.namespace, Page.title == title.db_key)
            for title in unique_titles
        ])).all()
        existing = {(row.namespace, row.title): row for row in rows}

        for title in unique_titles:
            row = existing.get((title.namespace, title.db_key))
            if row is not None:
                self.pages.append({"pageid": row.page_id, "ns": title.namespace, "title": title.prefixed_text})
            else:
                self.pages.append({"ns": title.namespace, "title": title.prefixed_text, "missing": True})

        logger.debug(f"Page set resolved {len(rows)} of {len(unique_titles)} titles")

    def GetOutput(self) -> List[dict]:
        return self.pages
