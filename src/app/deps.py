"""
FastAPI dependencies: 서비스 인스턴스와 요청자 식별.

식별은 인증 레이어 앞단에서 X-User-Id 헤더로 전달된다고 가정.
"""

from fastapi import Depends, Header, HTTPException, Request

from src.app.services.publish import PublishService
from src.core.app_index import SettingsIndex, UserIndex
from src.domain.errors import ErrorCodes, PublishError
from src.domain.schemas import Identity


def to_http_error(e: PublishError) -> HTTPException:
    """PublishError → HTTPException(detail={code, message})."""
    return HTTPException(
        status_code=e.status_code,
        detail={"code": e.code, "message": e.message},
    )


def get_publish_service(request: Request) -> PublishService:
    service: PublishService = request.app.state.publish_service
    return service


def get_users(request: Request) -> UserIndex:
    users: UserIndex = request.app.state.users
    return users


def get_settings_index(request: Request) -> SettingsIndex:
    settings: SettingsIndex = request.app.state.settings
    return settings


def get_identity(
    x_user_id: int | None = Header(None),
    users: UserIndex = Depends(get_users),
) -> Identity:
    """요청자 Identity. 헤더 없음/알 수 없는 사용자 → 401."""
    if x_user_id is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "UNAUTHENTICATED", "message": "Login required"},
        )

    user = users.find_by_id(x_user_id)
    if user is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "UNAUTHENTICATED", "message": "Unknown user"},
        )

    return Identity(
        user_id=user.id,
        username=user.username,
        role=user.role,
        is_approved=user.is_approved,
    )


def require_admin(identity: Identity = Depends(get_identity)) -> Identity:
    """관리자 전용 라우트 가드."""
    if not identity.is_admin:
        raise HTTPException(
            status_code=403,
            detail={"code": ErrorCodes.ADMIN_REQUIRED, "message": "Access Denied: Admins Only"},
        )
    return identity
