"""
WikiAPI Server - Admin Users Endpoints
"""

import logging
import re
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, HTTPException

from models.database import Group, User, UserGroup
from models.api import CreateUserRequest, SetUserGroupsRequest
from auth import RequireAdmin
from timestamps import ToDbTimestamp
from titles import UcFirst

# Create logger
logger = logging.getLogger(__name__)

# Create router instance
router = APIRouter()


def _GetGroupsByName(db_session, names):
    """Map group names to groups, failing with 400 on unknown names"""
    groups = {g.group_name: g for g in db_session.query(Group).filter(Group.group_name.in_(names)).all()}
    unknown = [name for name in names if name not in groups]
    if unknown:
        raise HTTPException(
            status_code=400,
            detail={"code": "badvalue", "info": f"Unknown groups: {', '.join(unknown)}"}
        )
    return groups


@router.get("/admin/api/users", tags=["Admin"])
async def admin_list_users(
    current_user: User = Depends(RequireAdmin)
):
    """
    List users with their current groups

    Returns:
        list: One entry per user
    """
    from database import db_manager
    db_session = db_manager.GetSession()

    try:
        users = db_session.query(User).order_by(User.user_id).all()
        return [
            {
                "user_id": user.user_id,
                "username": user.username,
                "is_active": user.is_active,
                "watch_deletion": user.watch_deletion,
                "groups": db_manager.GetUserGroups(db_session, user.user_id)
            }
            for user in users
        ]
    finally:
        db_session.close()


@router.post("/admin/api/users", tags=["Admin"])
async def admin_create_user(
    request_data: CreateUserRequest,
    current_user: User = Depends(RequireAdmin)
):
    """
    Create a new user

    Args:
        request_data: Username, password, groups and watch preference
        current_user: Admin user from dependency

    Returns:
        Success message with the new user's id
    """
    from database import db_manager
    db_session = db_manager.GetSession()

    try:
        username = UcFirst(request_data.username.replace('_', ' ').strip())
        if not re.match(r'^[^#<>\[\]|{}/@:]{1,85}$', username):
            raise HTTPException(
                status_code=400,
                detail={"code": "invalidusername", "info": f"Invalid username \"{request_data.username}\""}
            )

        existing_user = db_session.query(User).filter(User.username == username).first()
        if existing_user:
            raise HTTPException(
                status_code=400,
                detail={"code": "userexists", "info": f"User '{username}' already exists"}
            )

        groups = _GetGroupsByName(db_session, request_data.groups)

        new_user = User(
            username=username,
            password_hash=db_manager.HashPassword(request_data.password),
            created_at=datetime.now(timezone.utc),
            is_active=True,
            watch_deletion=request_data.watch_deletion
        )
        db_session.add(new_user)
        db_session.flush()

        for group in groups.values():
            db_session.add(UserGroup(user_id=new_user.user_id, group_id=group.group_id))

        db_session.commit()

        logger.info(f"Admin '{current_user.username}' created user '{username}' in groups {sorted(groups)}")

        return {
            "success": True,
            "user_id": new_user.user_id,
            "username": username,
            "message": f"User '{username}' created successfully"
        }

    except HTTPException:
        db_session.rollback()
        raise
    except Exception as e:
        db_session.rollback()
        logger.error(f"Error creating user: {str(e)}")
        raise HTTPException(status_code=500, detail={"code": "internal_api_error", "info": "Failed to create user"})
    finally:
        db_session.close()


@router.put("/admin/api/users/{user_id}/groups", tags=["Admin"])
async def admin_set_user_groups(
    user_id: int,
    request_data: SetUserGroupsRequest,
    current_user: User = Depends(RequireAdmin)
):
    """
    Replace a user's group memberships

    Args:
        user_id: User to update
        request_data: New memberships, each with an optional expiry
        current_user: Admin user from dependency

    Returns:
        Success message with the user's current groups
    """
    from database import db_manager
    db_session = db_manager.GetSession()

    try:
        user = db_session.query(User).filter(User.user_id == user_id).first()
        if not user:
            raise HTTPException(
                status_code=404,
                detail={"code": "nosuchuser", "info": f"There is no user with ID {user_id}"}
            )

        groups = _GetGroupsByName(db_session, [m.group for m in request_data.memberships])

        db_session.query(UserGroup).filter(UserGroup.user_id == user_id).delete()
        for membership in request_data.memberships:
            db_session.add(UserGroup(
                user_id=user_id,
                group_id=groups[membership.group].group_id,
                expiry=ToDbTimestamp(membership.expiry) if membership.expiry else None
            ))
        db_session.commit()

        current_groups = db_manager.GetUserGroups(db_session, user_id)
        logger.info(f"Admin '{current_user.username}' set groups of '{user.username}' to {current_groups}")

        return {
            "success": True,
            "username": user.username,
            "groups": current_groups
        }

    except HTTPException:
        db_session.rollback()
        raise
    except Exception as e:
        db_session.rollback()
        logger.error(f"Error updating groups of user {user_id}: {str(e)}")
        raise HTTPException(status_code=500, detail={"code": "internal_api_error", "info": "Failed to update groups"})
    finally:
        db_session.close()
