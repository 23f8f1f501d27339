"""
Publish Service: 업로드/fiddle 저장 → slug 확정 → 소유권 확인 → 저장 → 인덱스.

상태 흐름 (요청 단위):
    ReceivedInput → SlugResolved → UniquenessChecked → Written → Indexed

규칙:
- artifact 먼저, index 나중 (크래시 시 남는 것은 고아 artifact 뿐)
- 다른 사용자의 slug → ForbiddenError, 아무것도 쓰지 않음
- 같은 사용자의 slug → 같은 row/디렉토리 갱신 (두 번째 row 없음)
- 동일 slug 요청은 per-slug FileLock 으로 직렬화, 최종 가드는 unique 제약
- 자동 재시도 없음
"""

import logging
from collections.abc import Generator
from contextlib import contextmanager

from filelock import FileLock, Timeout

from src.core.app_index import AppIndex
from src.core.artifact_store import ArtifactStore
from src.core.content import compose, decompose, extract_title
from src.core.slug import generate_slug, is_valid_slug, slugify
from src.domain.constants import FIDDLE_ORIGINAL_NAME
from src.domain.errors import (
    ConflictError,
    ErrorCodes,
    ForbiddenError,
    InvalidSlugError,
    NotFoundError,
)
from src.domain.schemas import (
    AppRecord,
    ContentSource,
    FiddleSource,
    ParsedContent,
    PublishResult,
    UploadSource,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Helpers
# =============================================================================

def _clean(value: str | None) -> str:
    return (value or "").strip()


def resolve_slug(slug_hint: str | None, title_hint: str | None, source: ContentSource) -> str:
    """
    slug 확정.

    사용자 slug → 제목 → (업로드) 파일명 → 합성 slug 순서.
    slug 입력이 변환 후 비면 (예: 비 라틴 문자만) 제목으로 넘어감.
    """
    primary = slugify(slug_hint) or slugify(title_hint)
    fallback = source.filename if isinstance(source, UploadSource) else None
    return generate_slug(primary, fallback)


def render_source(source: ContentSource, title: str) -> str:
    """
    입력 → 저장할 문서.

    업로드 문서도 decompose 후 다시 compose 하므로 저장소에는 항상 compose 결과만 존재.
    """
    if isinstance(source, UploadSource):
        parsed = decompose(source.decode())
    else:
        parsed = ParsedContent(html=source.html, css=source.css, js=source.js)
    return compose(parsed.html, parsed.css, parsed.js, title)


def resolve_title(title_hint: str | None, slug_hint: str | None, source: ContentSource, slug: str) -> str:
    """제목 → 업로드 문서의 <title> → slug 입력값 → slug."""
    title = _clean(title_hint)
    if not title and isinstance(source, UploadSource):
        title = extract_title(source.decode()) or ""
    return title or _clean(slug_hint) or slug


# =============================================================================
# Publish Service
# =============================================================================

class PublishService:
    """
    publish/openForEdit 진입점.

    route 레이어는 이 서비스만 호출하고, 에러는 PublishError 하위 타입으로 받음.
    """

    def __init__(self, store: ArtifactStore, index: AppIndex, lock_timeout: float = 10.0):
        """
        Args:
            store: artifact 저장소
            index: apps 인덱스
            lock_timeout: per-slug 락 대기 시간 (초)
        """
        self.store = store
        self.index = index
        self.lock_timeout = lock_timeout

    @contextmanager
    def _slug_lock(self, slug: str) -> Generator[None, None, None]:
        """
        slug 별 락 획득.

        Raises:
            ConflictError: SLUG_BUSY
        """
        self.store.locks_dir.mkdir(parents=True, exist_ok=True)
        lock = FileLock(self.store.lock_path_for(slug), timeout=self.lock_timeout)

        try:
            lock.acquire()
        except Timeout as e:
            logger.warning(f"Slug lock timeout for '{slug}' after {self.lock_timeout}s")
            raise ConflictError(
                ErrorCodes.SLUG_BUSY,
                f"Another publish for '{slug}' is in progress",
                slug=slug,
                timeout=self.lock_timeout,
            ) from e

        try:
            yield
        finally:
            lock.release()

    # =========================================================================
    # Publish
    # =========================================================================

    def publish(
        self,
        owner_id: int,
        approved: bool,
        slug_hint: str | None,
        title_hint: str | None,
        source: ContentSource,
    ) -> PublishResult:
        """
        업로드/fiddle 저장 공통 진입점.

        Args:
            owner_id: 요청자 ID
            approved: 요청자 승인 여부
            slug_hint: 사용자가 입력한 slug (없을 수 있음)
            title_hint: 사용자가 입력한 제목 (없을 수 있음)
            source: UploadSource 또는 FiddleSource

        Returns:
            PublishResult(slug, title, created)

        Raises:
            ForbiddenError: ACCOUNT_NOT_APPROVED, NOT_OWNER
            ConflictError: SLUG_TAKEN, SLUG_BUSY
            InvalidSlugError: INVALID_SLUG
            StorageFailureError, IndexFailureError
        """
        if not approved:
            raise ForbiddenError(
                ErrorCodes.ACCOUNT_NOT_APPROVED,
                "Account pending approval",
                user_id=owner_id,
            )

        slug = resolve_slug(slug_hint, title_hint, source)
        if not is_valid_slug(slug):
            raise InvalidSlugError(
                ErrorCodes.INVALID_SLUG,
                "Could not derive a valid URL from the input",
                slug=slug,
            )

        title = resolve_title(title_hint, slug_hint, source, slug)
        document = render_source(source, title)

        with self._slug_lock(slug):
            existing = self.index.find_by_slug(slug)

            if existing is None:
                return self._create(owner_id, slug, title, document, source)

            if existing.owner_id != owner_id:
                raise ForbiddenError(
                    ErrorCodes.NOT_OWNER,
                    f"The URL '{slug}' belongs to another user",
                    slug=slug,
                )

            return self._update(existing, title, document, source)

    def _create(
        self,
        owner_id: int,
        slug: str,
        title: str,
        document: str,
        source: ContentSource,
    ) -> PublishResult:
        original_name = source.filename if isinstance(source, UploadSource) else FIDDLE_ORIGINAL_NAME

        self.store.write(slug, document)
        try:
            self.index.create(owner_id, slug, original_name, title)
        except ConflictError:
            # 다른 writer 가 먼저 row 를 만들었음 → 방금 쓴 artifact 는 승자가 덮어쓰거나 고아로 남음
            logger.warning(
                f"Slug '{slug}' raced into existence; artifact written by user {owner_id} "
                f"may be orphaned: {self.store.path_for(slug)}"
            )
            raise

        logger.info(f"Published new app '{slug}' for user {owner_id} ({original_name})")
        return PublishResult(slug=slug, title=title, created=True)

    def _update(
        self,
        existing: AppRecord,
        title: str,
        document: str,
        source: ContentSource,
    ) -> PublishResult:
        # fiddle 재저장은 original_name 유지
        original_name = source.filename if isinstance(source, UploadSource) else None

        self.store.write(existing.slug, document)
        self.index.update(existing.slug, title, original_name)

        logger.info(f"Updated app '{existing.slug}' for user {existing.owner_id}")
        return PublishResult(slug=existing.slug, title=title, created=False)

    # =========================================================================
    # Edit
    # =========================================================================

    def open_for_edit(self, slug: str, owner_id: int) -> ParsedContent:
        """
        fiddle 에디터 prefill 용 html/css/js.

        Raises:
            NotFoundError: APP_NOT_FOUND, ARTIFACT_NOT_FOUND
            ForbiddenError: NOT_OWNER
        """
        _, parsed = self.load_for_edit(slug, owner_id)
        return parsed

    def load_for_edit(self, slug: str, owner_id: int) -> tuple[AppRecord, ParsedContent]:
        """open_for_edit + 인덱스 row (에디터 제목 표시용). 인덱스 조회 1회."""
        record = self.get_owned(slug, owner_id)
        return record, decompose(self.store.read(record.slug))

    def get_owned(self, slug: str, owner_id: int) -> AppRecord:
        """
        소유권 확인된 AppRecord.

        Raises:
            NotFoundError: APP_NOT_FOUND
            ForbiddenError: NOT_OWNER
        """
        record = self.index.find_by_slug(slug)
        if record is None:
            raise NotFoundError(ErrorCodes.APP_NOT_FOUND, f"App '{slug}' not found", slug=slug)
        if record.owner_id != owner_id:
            raise ForbiddenError(
                ErrorCodes.NOT_OWNER,
                f"The URL '{slug}' belongs to another user",
                slug=slug,
            )
        return record

    # =========================================================================
    # Projections
    # =========================================================================

    def list_for_owner(self, owner_id: int) -> list[AppRecord]:
        return self.index.list_by_owner(owner_id)

    def list_all(self) -> list[AppRecord]:
        return self.index.list_all()

    def list_featured(self) -> list[AppRecord]:
        return self.index.list_featured()

    def set_featured(self, app_id: int, is_featured: bool) -> AppRecord:
        record = self.index.set_featured(app_id, is_featured)
        logger.info(f"App '{record.slug}' featured={is_featured}")
        return record
