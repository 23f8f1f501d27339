"""
Admin Routes: 사용자 승인, auto-approve 설정, featured 큐레이션.

모든 라우트는 role=admin 필요.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Form

from src.app.deps import (
    get_publish_service,
    get_settings_index,
    get_users,
    require_admin,
    to_http_error,
)
from src.app.services.publish import PublishService
from src.core.app_index import SettingsIndex, UserIndex
from src.domain.errors import PublishError
from src.domain.schemas import Identity

logger = logging.getLogger(__name__)

api_router = APIRouter(dependencies=[Depends(require_admin)])


@api_router.get("/users")
def list_users(users: UserIndex = Depends(get_users)) -> list[dict[str, Any]]:
    """사용자 목록 (최근 가입 순)."""
    return [user.to_dict() for user in users.list_users()]


@api_router.post("/users/{user_id}/approval")
def set_user_approval(
    user_id: int,
    approved: bool = Form(...),
    users: UserIndex = Depends(get_users),
    admin: Identity = Depends(require_admin),
) -> dict[str, Any]:
    """사용자 승인/취소."""
    try:
        user = users.set_approved(user_id, approved)
    except PublishError as e:
        raise to_http_error(e) from e

    logger.info(f"User #{user_id} approval={approved} by {admin.username}")
    return user.to_dict()


@api_router.get("/settings")
def get_settings(settings: SettingsIndex = Depends(get_settings_index)) -> dict[str, Any]:
    return {"auto_approve": settings.auto_approve()}


@api_router.post("/settings")
def update_settings(
    auto_approve: bool = Form(False),
    settings: SettingsIndex = Depends(get_settings_index),
) -> dict[str, Any]:
    """auto-approve 토글 (체크 해제 시 필드 없음 → False)."""
    settings.set_auto_approve(auto_approve)
    return {"auto_approve": settings.auto_approve()}


@api_router.post("/apps/{app_id}/featured")
def set_app_featured(
    app_id: int,
    is_featured: bool = Form(...),
    service: PublishService = Depends(get_publish_service),
) -> dict[str, Any]:
    """featured 목록 추가/제거."""
    try:
        record = service.set_featured(app_id, is_featured)
    except PublishError as e:
        raise to_http_error(e) from e

    return record.to_dict()
