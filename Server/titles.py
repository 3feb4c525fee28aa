"""
WikiAPI Server - Page Titles

This module handles page title parsing and normalization:
- Namespace table and prefix resolution
- DB key form (underscores, first letter uppercased)
- Display form (spaces, namespace prefix)
"""

import re
from typing import Optional

# ==================== Namespaces ====================

NS_MAIN = 0
NS_TALK = 1
NS_USER = 2
NS_USER_TALK = 3
NS_PROJECT = 4
NS_FILE = 6
NS_FILE_TALK = 7
NS_TEMPLATE = 10
NS_CATEGORY = 14

NAMESPACE_NAMES = {
    NS_MAIN: "",
    NS_TALK: "Talk",
    NS_USER: "User",
    NS_USER_TALK: "User talk",
    NS_PROJECT: "Project",
    NS_FILE: "File",
    NS_FILE_TALK: "File talk",
    NS_TEMPLATE: "Template",
    NS_CATEGORY: "Category",
}

# Lookup by lowercased, underscore-free prefix; "Image" is the legacy File alias
_NAMESPACE_BY_PREFIX = {name.lower(): ns for ns, name in NAMESPACE_NAMES.items() if name}
_NAMESPACE_BY_PREFIX["image"] = NS_FILE

# Characters that can never appear in a title
ILLEGAL_TITLE_CHARS = re.compile(r'[#<>\[\]|{}\x00-\x1f\x7f]')
MAX_TITLE_LENGTH = 255


def UcFirst(text: str) -> str:
    return text[:1].upper() + text[1:]


def TitlePartToKey(part: str, namespace: int = NS_MAIN) -> str:
    """
    Convert a partial title (range bound or prefix) to DB key form

    Unlike a full title, trailing whitespace is kept so that a prefix
    of "Foo " only matches "Foo_..." keys.

    Args:
        part: User supplied title fragment
        namespace: Namespace the fragment belongs to

    Returns:
        str: Key form of the fragment
    """
    key = part.replace(' ', '_')
    if namespace is not None and key:
        key = UcFirst(key)
    return key


class Title:
    """
    A normalized page title: namespace id plus DB key
    """

    def __init__(self, namespace: int, db_key: str):
        self.namespace = namespace
        self.db_key = db_key

    @classmethod
    def MakeTitle(cls, namespace: int, db_key: str) -> "Title":
        """Build a title from already-normalized parts (no validation)"""
        return cls(namespace, db_key)

    @classmethod
    def NewFromText(cls, text: Optional[str], default_namespace: int = NS_MAIN) -> Optional["Title"]:
        """
        Parse user supplied text such as "File:Some picture.png"

        Args:
            text: Title text, optionally with a namespace prefix
            default_namespace: Namespace used when no known prefix is present

        Returns:
            Title: Parsed title, or None if the text is not a valid title
        """
        if text is None:
            return None

        # Collapse whitespace and underscores, trim both ends
        normalized = re.sub(r'[ _]+', ' ', text).strip()
        if not normalized:
            return None

        namespace = default_namespace
        if ':' in normalized:
            prefix, rest = normalized.split(':', 1)
            prefix_key = prefix.strip().lower()
            if prefix_key in _NAMESPACE_BY_PREFIX:
                namespace = _NAMESPACE_BY_PREFIX[prefix_key]
                normalized = rest.strip()
                if not normalized:
                    return None

        if ILLEGAL_TITLE_CHARS.search(normalized):
            return None
        if len(normalized.encode('utf-8')) > MAX_TITLE_LENGTH:
            return None
        # Relative path segments are reserved
        if normalized in ('.', '..') or normalized.startswith(('./', '../')) or '/./' in normalized or '/../' in normalized:
            return None

        return cls(namespace, UcFirst(normalized).replace(' ', '_'))

    @property
    def text(self) -> str:
        """Title without namespace, with spaces"""
        return self.db_key.replace('_', ' ')

    @property
    def prefixed_text(self) -> str:
        """Title with namespace prefix, with spaces"""
        prefix = NAMESPACE_NAMES.get(self.namespace, "")
        return f"{prefix}:{self.text}" if prefix else self.text

    @property
    def prefixed_db_key(self) -> str:
        return self.prefixed_text.replace(' ', '_')

    def IsFile(self) -> bool:
        return self.namespace == NS_FILE

    def __eq__(self, other) -> bool:
        return isinstance(other, Title) and (self.namespace, self.db_key) == (other.namespace, other.db_key)

    def __hash__(self) -> int:
        return hash((self.namespace, self.db_key))

    def __repr__(self) -> str:
        return f"Title({self.namespace}, {self.db_key!r})"
