"""
Data schemas for the publish layer.

규칙:
- AppRecord/UserRecord 는 DB row 의 읽기 전용 스냅샷 (세션 밖으로 ORM 객체 유출 금지)
- ParsedContent 는 편집 세션 동안만 존재, 저장하지 않음
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from src.domain.constants import ROLE_ADMIN

# =============================================================================
# Index Records
# =============================================================================

@dataclass(frozen=True)
class AppRecord:
    """apps 테이블 row."""
    id: int
    slug: str
    owner_id: int
    title: str
    original_name: str | None
    is_featured: bool
    created_at: datetime  # 마지막 컨텐츠 변경 시각
    author: str | None = None  # list_all/list_featured 에서만 채워짐

    def to_dict(self) -> dict[str, Any]:
        """JSON 직렬화용."""
        return {
            "id": self.id,
            "slug": self.slug,
            "owner_id": self.owner_id,
            "title": self.title,
            "original_name": self.original_name,
            "is_featured": self.is_featured,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "author": self.author,
        }


@dataclass(frozen=True)
class UserRecord:
    """users 테이블 row (password 제외)."""
    id: int
    username: str
    role: str
    is_approved: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "role": self.role,
            "is_approved": self.is_approved,
        }


@dataclass(frozen=True)
class Identity:
    """
    인증 레이어가 넘겨주는 요청자 정보.

    publish 호출 전에 확정되어 있어야 함.
    """
    user_id: int
    username: str
    role: str
    is_approved: bool

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


# =============================================================================
# Content
# =============================================================================

@dataclass(frozen=True)
class ParsedContent:
    """compose 된 문서에서 추출한 html/css/js."""
    html: str = ""
    css: str = ""
    js: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"html": self.html, "css": self.css, "js": self.js}


@dataclass(frozen=True)
class UploadSource:
    """업로드된 HTML 파일."""
    filename: str
    data: bytes

    def decode(self) -> str:
        return self.data.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class FiddleSource:
    """fiddle 에디터에서 작성한 html/css/js."""
    html: str = ""
    css: str = ""
    js: str = ""


ContentSource = UploadSource | FiddleSource


@dataclass(frozen=True)
class PublishResult:
    """publish 결과."""
    slug: str
    title: str
    created: bool  # True: 신규 생성, False: 기존 앱 갱신

    def to_dict(self) -> dict[str, Any]:
        return {"slug": self.slug, "title": self.title, "created": self.created}
