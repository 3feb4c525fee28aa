"""
Shared fixtures for WikiAPI Server tests

Each test gets a fresh SQLite database and storage root under tmp_path,
installed as the server's global db_manager.
"""

import hashlib
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import database
from auth import CreateAccessToken, GetCsrfToken
from file_storage import GetArchivePath, GetPublicPath, InitializeStorage, Sha1HexToBase36
from managers.database_manager import DatabaseManager
from models.database import (
    ChangeTagDefinition, Group, Image, OldImage, Page, Redirect, Revision, Setting, User, UserGroup
)


class WikiBuilder:
    """
    Creates users, pages and files directly in the test database
    """

    def __init__(self, db_manager: DatabaseManager):
        self.db_manager = db_manager
        self._clock = 20240101000000

    def _NextTimestamp(self) -> str:
        self._clock += 1
        return str(self._clock)

    def CreateUser(self, username, groups=("user",), watch_deletion=False, expiry=None) -> User:
        """Create a user in the given groups; expiry applies to every membership"""
        session = self.db_manager.GetSession()
        try:
            user = User(
                username=username,
                password_hash=self.db_manager.HashPassword("password123"),
                created_at=datetime.now(timezone.utc),
                is_active=True,
                watch_deletion=watch_deletion
            )
            session.add(user)
            session.flush()
            for group_name in groups:
                group = session.query(Group).filter(Group.group_name == group_name).first()
                session.add(UserGroup(user_id=user.user_id, group_id=group.group_id, expiry=expiry))
            session.commit()
            return user
        finally:
            session.close()

    def CreatePage(self, namespace, title, texts=("Some text",), authors=("Alice",),
                   redirect_to=None) -> Page:
        """
        Create a page with one revision per text

        authors is cycled over the revisions; redirect_to is a (namespace, key) target.
        """
        session = self.db_manager.GetSession()
        try:
            page = Page(namespace=namespace, title=title, is_redirect=redirect_to is not None,
                        touched=self._NextTimestamp())
            session.add(page)
            session.flush()

            revision = None
            for index, text in enumerate(texts):
                revision = Revision(
                    page_id=page.page_id,
                    user_text=authors[index % len(authors)],
                    timestamp=self._NextTimestamp(),
                    comment="",
                    text=text,
                    size=len(text.encode('utf-8'))
                )
                session.add(revision)
                session.flush()
            page.latest_rev_id = revision.rev_id if revision is not None else None

            if redirect_to is not None:
                session.add(Redirect(page_id=page.page_id, namespace=redirect_to[0], title=redirect_to[1]))

            session.commit()
            return page
        finally:
            session.close()

    def AddImage(self, name, timestamp=None, user=None, user_text="Alice", size=None, mime="image/png",
                 content=None, width=100, height=80, description="", media_type="BITMAP") -> Image:
        """Add a current file version with its blob in the public zone"""
        content = content if content is not None else f"content of {name}".encode('utf-8')
        path = GetPublicPath(name)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)

        major, minor = mime.split('/', 1)
        session = self.db_manager.GetSession()
        try:
            image = Image(
                name=name,
                size=size if size is not None else len(content),
                width=width,
                height=height,
                bits=8,
                metadata_blob='{"Software": "test"}',
                media_type=media_type,
                major_mime=major,
                minor_mime=minor,
                description=description,
                user_id=user.user_id if user is not None else None,
                user_text=user.username if user is not None else user_text,
                timestamp=timestamp or self._NextTimestamp(),
                sha1=Sha1HexToBase36(hashlib.sha1(content).hexdigest())
            )
            session.add(image)
            session.commit()
            return image
        finally:
            session.close()

    def AddOldImage(self, name, timestamp, user_text="Alice", content=None) -> OldImage:
        """Add a superseded version of a file with its blob in the archive zone"""
        content = content if content is not None else f"old content of {name} at {timestamp}".encode('utf-8')
        archive_name = f"{timestamp}!{name}"
        path = GetArchivePath(archive_name, name)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)

        session = self.db_manager.GetSession()
        try:
            old = OldImage(
                archive_name=archive_name,
                name=name,
                size=len(content),
                major_mime="image",
                minor_mime="png",
                user_text=user_text,
                timestamp=timestamp,
                sha1=Sha1HexToBase36(hashlib.sha1(content).hexdigest())
            )
            session.add(old)
            session.commit()
            return old
        finally:
            session.close()

    def DefineTag(self, name, user_applicable=True, is_active=True) -> None:
        session = self.db_manager.GetSession()
        try:
            session.add(ChangeTagDefinition(name=name, user_applicable=user_applicable, is_active=is_active))
            session.commit()
        finally:
            session.close()

    def SetSetting(self, key, value) -> None:
        session = self.db_manager.GetSession()
        try:
            setting = session.query(Setting).filter(Setting.key == key).first()
            setting.value = value
            session.commit()
        finally:
            session.close()

    def AuthHeaders(self, user: User) -> dict:
        token = CreateAccessToken({"user_id": user.user_id, "username": user.username}, self.db_manager)
        return {"Authorization": f"Bearer {token}"}

    def CsrfToken(self, user: User) -> str:
        return GetCsrfToken(user)


@pytest.fixture
def db_manager(tmp_path):
    """Fresh database and storage root, installed as the global db_manager"""
    previous = database.db_manager
    manager = DatabaseManager(f"sqlite:///{tmp_path / 'wiki.db'}")
    manager.InitializeDatabase()
    InitializeStorage(str(tmp_path / "storage"))
    database.db_manager = manager

    yield manager

    database.db_manager = previous
    manager.engine.dispose()


@pytest.fixture
def session(db_manager):
    db_session = db_manager.GetSession()
    yield db_session
    db_session.close()


@pytest.fixture
def wiki(db_manager):
    return WikiBuilder(db_manager)


@pytest.fixture
def client(db_manager):
    """TestClient without lifespan; the db_manager fixture stands in for startup"""
    from fastapi.testclient import TestClient
    from server import app

    return TestClient(app)


@pytest.fixture
def sysop(wiki):
    return wiki.CreateUser("Sysop", groups=("sysop",))


@pytest.fixture
def alice(wiki):
    return wiki.CreateUser("Alice", groups=("user",))
