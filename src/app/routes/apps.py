"""
Apps Routes: 업로드, fiddle 저장, 편집 prefill, 목록.

- POST /api/apps/upload  → HTML 파일 업로드 (multipart)
- POST /api/apps/fiddle  → html/css/js 저장
- GET  /api/apps/mine    → 내 앱 목록
- GET  /api/apps         → 전체 앱 (작성자 포함)
- GET  /api/apps/featured
- GET  /api/apps/{slug}/edit → fiddle 에디터 prefill

route 는 sync 함수: PublishService 의 파일 락/DB 호출이 요청별 worker thread 에서 실행됨.
"""

from typing import Any

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile

from src.app.deps import get_identity, get_publish_service, to_http_error
from src.app.services.publish import PublishService
from src.domain.errors import ErrorCodes, PublishError
from src.domain.schemas import FiddleSource, Identity, UploadSource

api_router = APIRouter()


# =============================================================================
# Publish
# =============================================================================

@api_router.post("/upload")
def upload_app(
    request: Request,
    htmlFile: UploadFile = File(...),  # noqa: N803 - form field name
    slug: str | None = Form(None),
    title: str | None = Form(None),
    identity: Identity = Depends(get_identity),
    service: PublishService = Depends(get_publish_service),
) -> dict[str, Any]:
    """
    HTML 파일 업로드.

    1. 크기 확인 (빈 파일/최대 크기)
    2. publish (slug 확정 → 소유권 → 저장 → 인덱스)
    """
    max_bytes: int = request.app.state.config.max_upload_bytes
    data = htmlFile.file.read(max_bytes + 1)

    if not data:
        raise HTTPException(
            status_code=400,
            detail={"code": ErrorCodes.UPLOAD_EMPTY, "message": "Uploaded file is empty"},
        )
    if len(data) > max_bytes:
        raise HTTPException(
            status_code=413,
            detail={
                "code": ErrorCodes.UPLOAD_TOO_LARGE,
                "message": f"Uploaded file exceeds {max_bytes} bytes",
            },
        )

    source = UploadSource(filename=htmlFile.filename or "upload.html", data=data)
    try:
        result = service.publish(identity.user_id, identity.is_approved, slug, title, source)
    except PublishError as e:
        raise to_http_error(e) from e

    return {"success": True, **result.to_dict()}


@api_router.post("/fiddle")
def save_fiddle(
    slug: str | None = Form(None),
    title: str | None = Form(None),
    html: str = Form(""),
    css: str = Form(""),
    js: str = Form(""),
    identity: Identity = Depends(get_identity),
    service: PublishService = Depends(get_publish_service),
) -> dict[str, Any]:
    """fiddle 에디터 저장 (신규/갱신 동일 경로)."""
    source = FiddleSource(html=html, css=css, js=js)
    try:
        result = service.publish(identity.user_id, identity.is_approved, slug, title, source)
    except PublishError as e:
        raise to_http_error(e) from e

    return {"success": True, **result.to_dict()}


# =============================================================================
# Read
# =============================================================================

@api_router.get("/mine")
def list_my_apps(
    identity: Identity = Depends(get_identity),
    service: PublishService = Depends(get_publish_service),
) -> list[dict[str, Any]]:
    """내 앱 목록 (최근 수정 순)."""
    return [record.to_dict() for record in service.list_for_owner(identity.user_id)]


@api_router.get("")
def list_apps(
    identity: Identity = Depends(get_identity),
    service: PublishService = Depends(get_publish_service),
) -> list[dict[str, Any]]:
    """전체 앱 목록."""
    return [record.to_dict() for record in service.list_all()]


@api_router.get("/featured")
def list_featured_apps(
    service: PublishService = Depends(get_publish_service),
) -> list[dict[str, Any]]:
    """featured 앱 목록 (로그인 불필요)."""
    return [record.to_dict() for record in service.list_featured()]


@api_router.get("/{slug}/edit")
def open_for_edit(
    slug: str,
    identity: Identity = Depends(get_identity),
    service: PublishService = Depends(get_publish_service),
) -> dict[str, Any]:
    """fiddle 에디터 prefill: 소유자만."""
    try:
        record, parsed = service.load_for_edit(slug, identity.user_id)
    except PublishError as e:
        raise to_http_error(e) from e

    return {"slug": record.slug, "title": record.title, **parsed.to_dict()}
