"""
Newsroom - Site Settings Routes

- GET /settings   - key/value map, optionally filtered by ?type= (public)
- PUT /settings   - bulk upsert (manage:site)
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session as DBSession, select

from newsroom.auth.dependencies import AuthenticatedUser, require_capability
from newsroom.content.models import SettingType, SiteSetting
from newsroom.content.schemas import SettingRead, SettingsUpdateRequest
from newsroom.database import get_db
from newsroom.errors import api_response
from newsroom.gateway.rbac import Capability


router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("", summary="Get site settings")
async def get_settings(
    setting_type: Optional[SettingType] = Query(None, alias="type"),
    db: DBSession = Depends(get_db),
):
    statement = select(SiteSetting)
    if setting_type:
        statement = statement.where(SiteSetting.type == setting_type)
    rows = db.exec(statement).all()
    return api_response(200, {s.key: s.value for s in rows}, "Settings fetched successfully")


@router.put("", summary="Create or update settings")
async def update_settings(
    body: SettingsUpdateRequest,
    user: AuthenticatedUser = Depends(require_capability(Capability.MANAGE_SITE)),
    db: DBSession = Depends(get_db),
):
    """Upsert by key. Entries missing a key or a value are skipped."""
    saved = []
    for item in body.settings:
        if not item.is_complete:
            continue

        key = item.key.strip()
        setting = db.exec(select(SiteSetting).where(SiteSetting.key == key)).first()
        if setting is None:
            setting = SiteSetting(key=key)
        setting.value = item.value
        if item.type is not None:
            setting.type = item.type
        if item.description is not None:
            setting.description = item.description
        db.add(setting)
        saved.append(setting)

    db.commit()
    return api_response(
        200,
        [SettingRead.model_validate(s).model_dump(mode="json") for s in saved],
        "Settings updated successfully",
    )
