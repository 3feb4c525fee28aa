"""
WikiAPI Server - Admin Settings Endpoints
"""

import logging
from fastapi import APIRouter, Depends, HTTPException

from models.database import Setting, User
from models.api import SettingsUpdateRequest
from api_params import ParseDuration
from auth import RequireAdmin

# Create logger
logger = logging.getLogger(__name__)

# Create router instance
router = APIRouter()

INTEGER_SETTINGS = ['delete_revisions_batch_size', 'api_max_result_size', 'jwt_expiration_hours']
BOOLEAN_SETTINGS = ['miser_mode', 'watchlist_expiry_enabled']


# ==================== Admin Settings Management ====================

@router.get("/admin/api/settings", tags=["Admin"])
async def admin_get_settings(
    current_user: User = Depends(RequireAdmin)
):
    """
    Get current server settings

    Returns:
        Dictionary of all server settings
    """
    from database import db_manager
    db_session = db_manager.GetSession()
    try:
        settings = {}
        for setting in db_session.query(Setting).all():
            # All stored as strings in DB
            if setting.key in INTEGER_SETTINGS:
                settings[setting.key] = int(setting.value)
            elif setting.key in BOOLEAN_SETTINGS:
                settings[setting.key] = setting.value.lower() == "true"
            else:
                settings[setting.key] = setting.value
        return settings
    finally:
        db_session.close()


@router.post("/admin/api/settings", tags=["Admin"])
async def admin_update_settings(
    request: SettingsUpdateRequest,
    current_user: User = Depends(RequireAdmin)
):
    """
    Update server settings
    Only the settings present in the request are changed.

    Args:
        request: Settings update request
        current_user: Admin user from dependency

    Returns:
        Success message and the changed keys
    """
    updates = request.model_dump(exclude_none=True)

    if "watchlist_expiry_max_duration" in updates and ParseDuration(updates["watchlist_expiry_max_duration"]) is None:
        raise HTTPException(
            status_code=400,
            detail={"code": "badvalue", "info": "watchlist_expiry_max_duration must be a duration such as '6 months'"}
        )

    from database import db_manager
    db_session = db_manager.GetSession()
    try:
        for key, value in updates.items():
            value = str(value).lower() if isinstance(value, bool) else str(value)
            setting_record = db_session.query(Setting).filter(Setting.key == key).first()
            if setting_record:
                setting_record.value = value
            else:
                db_session.add(Setting(key=key, value=value))

        db_session.commit()
    except Exception as e:
        db_session.rollback()
        logger.error(f"Error updating settings: {str(e)}")
        raise
    finally:
        db_session.close()

    logger.info(f"Admin '{current_user.username}' updated server settings: {', '.join(updates)}")

    return {
        "success": True,
        "updated": sorted(updates),
        "message": "Settings updated successfully"
    }
