"""
Sites Routes: 게시된 앱 문서 서빙.

- GET /sites/{slug}  → /sites/{slug}/ 로 redirect (문서 안 상대 경로 기준 맞춤)
- GET /sites/{slug}/ → apps/<slug>/index.html
"""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse, RedirectResponse

from src.app.deps import get_publish_service, to_http_error
from src.app.services.publish import PublishService
from src.core.slug import is_valid_slug
from src.domain.errors import ErrorCodes, NotFoundError, PublishError

router = APIRouter()


def _not_found(slug: str) -> HTTPException:
    return to_http_error(
        NotFoundError(ErrorCodes.APP_NOT_FOUND, f"App '{slug}' not found", slug=slug)
    )


@router.get("/{slug}", include_in_schema=False)
def redirect_to_site(slug: str) -> RedirectResponse:
    return RedirectResponse(url=f"/sites/{slug}/", status_code=301)


@router.get("/{slug}/", response_class=HTMLResponse)
def serve_site(
    slug: str,
    service: PublishService = Depends(get_publish_service),
) -> HTMLResponse:
    """저장된 문서 반환. slug 형식이 아니면 저장소 접근 없이 404."""
    if not is_valid_slug(slug):
        raise _not_found(slug)

    try:
        document = service.store.read(slug)
    except PublishError as e:
        raise to_http_error(e) from e

    return HTMLResponse(content=document)
