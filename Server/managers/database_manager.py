"""
WikiAPI Server - Database Manager

This module manages database connections, initialization, and shared lookups
for settings and user rights.

Two connections are kept: the primary (authoritative, used for writes and for
reads that must not lag) and an optional replica used for listings.
"""

import logging
import os
import secrets
import string
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from sqlalchemy import create_engine, or_
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker
import bcrypt

from models.database import (
    Base, Group, Permission, GroupPermission, User, UserGroup, Setting
)
from timestamps import ToDbTimestamp

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///database/wikiapi.db"

# Settings table defaults; values are stored as strings
DEFAULT_SETTINGS = {
    "miser_mode": "false",
    "watchlist_expiry_enabled": "true",
    "watchlist_expiry_max_duration": "6 months",
    "delete_revisions_batch_size": "1000",
    "api_max_result_size": str(8 * 1024 * 1024),
    "jwt_expiration_hours": "24",
    "upload_base_url": "/images",
}

DEFAULT_PERMISSIONS = {
    "admin": "Full administrative access to all server functions",
    "delete": "Delete pages and files",
    "applychangetags": "Apply tags along with one's changes",
    "apihighlimits": "Use higher limits in API queries",
    "bot": "Be treated as an automated process",
}

DEFAULT_GROUPS = {
    "sysop": {
        "description": "Administrators",
        "permissions": ["admin", "delete", "applychangetags", "apihighlimits"],
    },
    "user": {
        "description": "Registered users",
        "permissions": ["applychangetags"],
    },
    "bot": {
        "description": "Automated accounts",
        "permissions": ["bot", "apihighlimits"],
    },
}


class DatabaseManager:
    """
    Manages database connections, initialization, and shared lookups
    """

    def __init__(self, database_url: Optional[str] = None, replica_url: Optional[str] = None):
        """
        Initialize database manager

        Args:
            database_url: SQLAlchemy URL of the primary database
                          (defaults to WIKIAPI_DATABASE_URL or a local SQLite file)
            replica_url: SQLAlchemy URL of a read replica
                         (defaults to WIKIAPI_REPLICA_DATABASE_URL; None reuses the primary)
        """
        self.database_url = database_url or os.environ.get("WIKIAPI_DATABASE_URL", DEFAULT_DATABASE_URL)
        if replica_url is None:
            replica_url = os.environ.get("WIKIAPI_REPLICA_DATABASE_URL")

        self.engine = self._CreateEngine(self.database_url)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine, expire_on_commit=False)

        if replica_url:
            self.replica_engine = self._CreateEngine(replica_url)
            self.ReplicaSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.replica_engine, expire_on_commit=False)
        else:
            self.replica_engine = self.engine
            self.ReplicaSessionLocal = self.SessionLocal

    @staticmethod
    def _CreateEngine(url: str):
        """Create an engine, making sure the directory of a SQLite file exists"""
        parsed = make_url(url)
        if parsed.drivername.startswith("sqlite") and parsed.database and parsed.database != ":memory:":
            db_dir = Path(parsed.database).parent
            if str(db_dir) != '.':
                db_dir.mkdir(parents=True, exist_ok=True)
        return create_engine(url, echo=False)

    def InitializeDatabase(self) -> Optional[str]:
        """
        Initialize the database with all tables and default data
        Creates tables if they don't exist, populates default groups, rights
        and settings, and creates a default admin user on first run.

        Returns:
            str: Generated admin password if admin user was created, None otherwise
        """
        Base.metadata.create_all(bind=self.engine)

        session = self.SessionLocal()
        admin_password = None

        try:
            is_first_run = session.query(User).count() == 0

            self.PopulateDefaultGroupsAndPermissions(session)

            if is_first_run:
                sysop = session.query(Group).filter(Group.group_name == "sysop").first()

                admin_password = self.GenerateRandomPassword()
                admin_user = User(
                    username="Admin",
                    password_hash=self.HashPassword(admin_password),
                    created_at=datetime.now(timezone.utc),
                    is_active=True
                )
                session.add(admin_user)
                session.flush()
                session.add(UserGroup(user_id=admin_user.user_id, group_id=sysop.group_id))
                logger.info("Created default admin user 'Admin'")

            self.PopulateDefaultSettings(session)

            session.commit()

        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

        return admin_password

    def PopulateDefaultGroupsAndPermissions(self, session):
        """
        Populate default groups and rights
        Only adds groups, rights and grants that don't already exist

        Args:
            session: SQLAlchemy session
        """
        permission_objs = {}
        for perm_name, description in DEFAULT_PERMISSIONS.items():
            existing = session.query(Permission).filter(Permission.permission_name == perm_name).first()
            if not existing:
                existing = Permission(permission_name=perm_name, description=description)
                session.add(existing)
                session.flush()  # Flush to get the permission_id
                logger.info(f"Added default right: {perm_name}")
            permission_objs[perm_name] = existing

        for group_name, group_config in DEFAULT_GROUPS.items():
            group = session.query(Group).filter(Group.group_name == group_name).first()
            if not group:
                group = Group(
                    group_name=group_name,
                    description=group_config["description"],
                    is_system_group=True
                )
                session.add(group)
                session.flush()  # Flush to get the group_id
                logger.info(f"Added default group: {group_name}")

            granted = {
                row.permission_id for row in
                session.query(GroupPermission).filter(GroupPermission.group_id == group.group_id)
            }
            for perm_name in group_config["permissions"]:
                permission_id = permission_objs[perm_name].permission_id
                if permission_id not in granted:
                    session.add(GroupPermission(group_id=group.group_id, permission_id=permission_id))

    def PopulateDefaultSettings(self, session):
        """
        Populate default settings
        Only adds settings that don't already exist

        Args:
            session: SQLAlchemy session
        """
        for key, value in DEFAULT_SETTINGS.items():
            existing = session.query(Setting).filter(Setting.key == key).first()
            if not existing:
                session.add(Setting(key=key, value=value))
                logger.info(f"Added default setting: {key} = {value}")

    @staticmethod
    def GenerateRandomPassword(length: int = 16) -> str:
        """
        Generate a secure random password

        Args:
            length: Password length (default 16)

        Returns:
            str: Generated password
        """
        alphabet = string.ascii_letters + string.digits + "!@#$%^&*"
        return ''.join(secrets.choice(alphabet) for _ in range(length))

    @staticmethod
    def HashPassword(password: str) -> str:
        """
        Hash a password using bcrypt
        Truncates to 72 bytes to comply with bcrypt's maximum password length

        Args:
            password: Plain text password

        Returns:
            str: Hashed password (as string)
        """
        password_bytes = password.encode('utf-8')[:72]
        return bcrypt.hashpw(password_bytes, bcrypt.gensalt()).decode('utf-8')

    @staticmethod
    def VerifyPassword(plain_password: str, hashed_password: str) -> bool:
        """
        Verify a password against a bcrypt hash

        Args:
            plain_password: Plain text password to verify
            hashed_password: Stored password hash (as string)

        Returns:
            bool: True if password matches, False otherwise
        """
        password_bytes = plain_password.encode('utf-8')[:72]
        return bcrypt.checkpw(password_bytes, hashed_password.encode('utf-8'))

    def GetSession(self):
        """
        Get a new session on the primary database

        Returns:
            Session: SQLAlchemy session
        """
        return self.SessionLocal()

    def GetReplicaSession(self):
        """
        Get a new session on the replica (or the primary when no replica is configured)

        Returns:
            Session: SQLAlchemy session
        """
        return self.ReplicaSessionLocal()

    # ==================== Settings ====================

    def GetSetting(self, session, key: str) -> str:
        """
        Read a setting, falling back to its default

        Args:
            session: SQLAlchemy session
            key: Setting key

        Returns:
            str: Stored value, the default, or '' for unknown keys
        """
        setting = session.query(Setting).filter(Setting.key == key).first()
        if setting is not None:
            return setting.value
        return DEFAULT_SETTINGS.get(key, "")

    def GetBoolSetting(self, session, key: str) -> bool:
        value = self.GetSetting(session, key).strip().lower()
        if value in ("1", "true", "yes", "on"):
            return True
        if value in ("0", "false", "no", "off", ""):
            return False
        return DEFAULT_SETTINGS.get(key, "false") == "true"

    def GetIntSetting(self, session, key: str) -> int:
        try:
            return int(self.GetSetting(session, key))
        except ValueError:
            logger.warning(f"Setting '{key}' is not an integer, using default")
            return int(DEFAULT_SETTINGS[key])

    # ==================== Rights ====================

    @staticmethod
    def _ActiveMembershipFilter():
        """Condition selecting memberships that have not expired"""
        now = ToDbTimestamp()
        return or_(UserGroup.expiry.is_(None), UserGroup.expiry >= now)

    def GetUserGroups(self, session, user_id: int) -> List[str]:
        """
        Get the names of groups the user currently belongs to

        Args:
            session: SQLAlchemy session
            user_id: User ID

        Returns:
            list: Group names of unexpired memberships
        """
        rows = session.query(Group.group_name).join(
            UserGroup, UserGroup.group_id == Group.group_id
        ).filter(
            UserGroup.user_id == user_id,
            self._ActiveMembershipFilter()
        ).all()
        return [row[0] for row in rows]

    def GetUserRights(self, session, user_id: int) -> List[str]:
        """
        Get all rights a user holds through unexpired group memberships

        Args:
            session: SQLAlchemy session
            user_id: User ID

        Returns:
            list: Sorted right names
        """
        rows = session.query(Permission.permission_name).join(
            GroupPermission, GroupPermission.permission_id == Permission.permission_id
        ).join(
            UserGroup, UserGroup.group_id == GroupPermission.group_id
        ).filter(
            UserGroup.user_id == user_id,
            self._ActiveMembershipFilter()
        ).distinct().all()
        return sorted(row[0] for row in rows)

    def UserHasPermission(self, session, user_id: int, permission_name: str) -> bool:
        """
        Check if a user has a specific right

        Args:
            session: SQLAlchemy session
            user_id: User ID
            permission_name: Right to check

        Returns:
            bool: True if user has the right (or the 'admin' right), False otherwise
        """
        rights = self.GetUserRights(session, user_id)
        return "admin" in rights or permission_name in rights

    def GetGroupsWithPermission(self, session, permission_name: str) -> List[int]:
        """
        Get ids of all groups granting a right

        Args:
            session: SQLAlchemy session
            permission_name: Right name

        Returns:
            list: Group ids
        """
        rows = session.query(GroupPermission.group_id).join(
            Permission, Permission.permission_id == GroupPermission.permission_id
        ).filter(Permission.permission_name == permission_name).all()
        return [row[0] for row in rows]
