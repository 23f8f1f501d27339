"""
App Index: relational store (SQLAlchemy) 위의 apps/users/settings 테이블.

규칙:
- apps.slug UNIQUE = 동시 최초 publish 경쟁의 유일한 최종 가드
- owner(user_id) 는 재할당 금지
- created_at 은 컨텐츠 변경 때마다 갱신 (사실상 "마지막 수정 시각")
- ORM 객체는 세션 밖으로 내보내지 않음 → AppRecord/UserRecord 스냅샷 반환
- IntegrityError(unique) → ConflictError, 그 외 SQLAlchemyError → IndexFailureError
"""

import logging
from collections.abc import Generator
from contextlib import contextmanager
from datetime import UTC, datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Engine,
    ForeignKey,
    Integer,
    String,
    Text,
    create_engine,
    or_,
    select,
    update,
)
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

from src.domain.constants import DEFAULT_SETTINGS, ROLE_ADMIN, ROLE_USER, SETTING_AUTO_APPROVE
from src.domain.errors import (
    ConflictError,
    ErrorCodes,
    IndexFailureError,
    NotFoundError,
    PublishError,
)
from src.domain.schemas import AppRecord, UserRecord

logger = logging.getLogger(__name__)


def _now() -> datetime:
    # SQLite 는 tz 정보를 저장하지 않음 → naive UTC 로 통일
    return datetime.now(UTC).replace(tzinfo=None)


# =============================================================================
# Models
# =============================================================================

class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(150), unique=True, nullable=False)
    role: Mapped[str] = mapped_column(String(20), default=ROLE_USER, nullable=False)
    is_approved: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class App(Base):
    __tablename__ = "apps"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    slug: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    original_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=_now, nullable=False
    )
    is_featured: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class Setting(Base):
    __tablename__ = "settings"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[str | None] = mapped_column(Text, nullable=True)


# =============================================================================
# Engine / Schema
# =============================================================================


def create_index_engine(database_url: str) -> Engine:
    """
    Engine 생성.

    SQLite 는 요청별 스레드에서 공유되므로 check_same_thread 해제.
    """
    connect_args: dict[str, object] = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(database_url, connect_args=connect_args)


def init_schema(engine: Engine) -> None:
    """테이블 생성 + 기본 설정값 seed (이미 있으면 유지)."""
    Base.metadata.create_all(engine)
    with Session(engine) as session, session.begin():
        for key, value in DEFAULT_SETTINGS.items():
            if session.get(Setting, key) is None:
                session.add(Setting(key=key, value=value))
    logger.info(f"Index schema ready: {engine.url}")


def _to_app_record(row: App, author: str | None = None) -> AppRecord:
    return AppRecord(
        id=row.id,
        slug=row.slug,
        owner_id=row.user_id,
        title=row.title or row.slug,
        original_name=row.original_name,
        is_featured=bool(row.is_featured),
        created_at=row.created_at,
        author=author,
    )


def _to_user_record(row: User) -> UserRecord:
    return UserRecord(
        id=row.id,
        username=row.username,
        role=row.role,
        is_approved=bool(row.is_approved),
    )


class _IndexBase:
    """세션/트랜잭션 관리 공통부."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self._sessions = sessionmaker(engine, expire_on_commit=False)

    @contextmanager
    def _transaction(self) -> Generator[Session, None, None]:
        """
        트랜잭션 범위.

        정상 종료 시 commit, 예외 시 rollback.
        PublishError 는 그대로, 그 외 SQLAlchemyError 는 IndexFailureError 로 변환.
        """
        try:
            with self._sessions.begin() as session:
                yield session
        except PublishError:
            raise
        except SQLAlchemyError as e:
            raise IndexFailureError(
                ErrorCodes.INDEX_FAILURE,
                "Index operation failed",
                error=str(e),
            ) from e


# =============================================================================
# AppIndex
# =============================================================================

class AppIndex(_IndexBase):
    """apps 테이블 접근."""

    def create(
        self,
        owner_id: int,
        slug: str,
        original_name: str | None,
        title: str,
    ) -> AppRecord:
        """
        앱 row 생성.

        Raises:
            ConflictError: SLUG_TAKEN (unique 제약 위반, 동시 publish 경쟁 포함)
            IndexFailureError: INDEX_FAILURE
        """
        with self._transaction() as session:
            row = App(
                user_id=owner_id,
                slug=slug,
                original_name=original_name,
                title=title,
                created_at=_now(),
                is_featured=False,
            )
            session.add(row)
            try:
                session.flush()
            except IntegrityError as e:
                raise ConflictError(
                    ErrorCodes.SLUG_TAKEN,
                    f"The URL '{slug}' is already taken",
                    slug=slug,
                ) from e
            return _to_app_record(row)

    def update(self, slug: str, title: str, original_name: str | None = None) -> AppRecord:
        """
        제목(+선택적으로 original_name) 갱신, created_at 항상 갱신.

        original_name 이 None/빈 값이면 기존 값 유지.

        Raises:
            NotFoundError: APP_NOT_FOUND
        """
        with self._transaction() as session:
            row = session.scalar(select(App).where(App.slug == slug))
            if row is None:
                raise NotFoundError(
                    ErrorCodes.APP_NOT_FOUND,
                    f"App '{slug}' not found",
                    slug=slug,
                )
            row.title = title
            if original_name:
                row.original_name = original_name
            row.created_at = _now()
            return _to_app_record(row)

    def find_by_slug(self, slug: str) -> AppRecord | None:
        with self._transaction() as session:
            row = session.scalar(select(App).where(App.slug == slug))
            return _to_app_record(row) if row is not None else None

    def list_by_owner(self, owner_id: int) -> list[AppRecord]:
        """owner 의 앱 목록 (최근 수정 순)."""
        with self._transaction() as session:
            rows = session.scalars(
                select(App)
                .where(App.user_id == owner_id)
                .order_by(App.created_at.desc(), App.id.desc())
            )
            return [_to_app_record(row) for row in rows]

    def list_all(self) -> list[AppRecord]:
        """전체 앱 + 작성자 이름 (최근 수정 순)."""
        return self._list_with_author(featured_only=False)

    def list_featured(self) -> list[AppRecord]:
        """featured 앱 + 작성자 이름 (최근 수정 순)."""
        return self._list_with_author(featured_only=True)

    def _list_with_author(self, featured_only: bool) -> list[AppRecord]:
        stmt = select(App, User.username).join(User, App.user_id == User.id)
        if featured_only:
            stmt = stmt.where(App.is_featured.is_(True))
        stmt = stmt.order_by(App.created_at.desc(), App.id.desc())

        with self._transaction() as session:
            return [_to_app_record(row, author=username) for row, username in session.execute(stmt)]

    def set_featured(self, app_id: int, is_featured: bool) -> AppRecord:
        """
        featured 플래그 변경 (관리자 전용, created_at 유지).

        Raises:
            NotFoundError: APP_NOT_FOUND
        """
        with self._transaction() as session:
            row = session.get(App, app_id)
            if row is None:
                raise NotFoundError(
                    ErrorCodes.APP_NOT_FOUND,
                    f"App #{app_id} not found",
                    app_id=app_id,
                )
            row.is_featured = is_featured
            return _to_app_record(row)

    def backfill_titles(self) -> int:
        """
        title 이 비어 있는 row 에 slug 를 title 로 채움.

        Returns:
            갱신된 row 수
        """
        with self._transaction() as session:
            result = session.execute(
                update(App)
                .where(or_(App.title.is_(None), App.title == ""))
                .values(title=App.slug)
            )
            return result.rowcount or 0


# =============================================================================
# UserIndex / Settings
# =============================================================================

class SettingsIndex(_IndexBase):
    """settings 테이블 (key/value)."""

    def get(self, key: str) -> str | None:
        with self._transaction() as session:
            row = session.get(Setting, key)
            return row.value if row is not None else None

    def set(self, key: str, value: str) -> None:
        """upsert."""
        with self._transaction() as session:
            row = session.get(Setting, key)
            if row is None:
                session.add(Setting(key=key, value=value))
            else:
                row.value = value

    def auto_approve(self) -> bool:
        return self.get(SETTING_AUTO_APPROVE) == "1"

    def set_auto_approve(self, enabled: bool) -> None:
        self.set(SETTING_AUTO_APPROVE, "1" if enabled else "0")
        logger.info(f"auto_approve set to {enabled}")


class UserIndex(_IndexBase):
    """users 테이블 접근 (비밀번호/세션은 인증 레이어 담당)."""

    def create_user(
        self,
        username: str,
        role: str = ROLE_USER,
        is_approved: bool | None = None,
    ) -> UserRecord:
        """
        사용자 생성.

        is_approved 가 None 이면 auto_approve 설정을 따름.

        Raises:
            ConflictError: USERNAME_TAKEN
        """
        with self._transaction() as session:
            if is_approved is None:
                setting = session.get(Setting, SETTING_AUTO_APPROVE)
                is_approved = setting is not None and setting.value == "1"

            row = User(username=username, role=role, is_approved=is_approved)
            session.add(row)
            try:
                session.flush()
            except IntegrityError as e:
                raise ConflictError(
                    ErrorCodes.USERNAME_TAKEN,
                    f"Username '{username}' already taken",
                    username=username,
                ) from e
            return _to_user_record(row)

    def find_by_id(self, user_id: int) -> UserRecord | None:
        with self._transaction() as session:
            row = session.get(User, user_id)
            return _to_user_record(row) if row is not None else None

    def find_by_username(self, username: str) -> UserRecord | None:
        with self._transaction() as session:
            row = session.scalar(select(User).where(User.username == username))
            return _to_user_record(row) if row is not None else None

    def list_users(self) -> list[UserRecord]:
        with self._transaction() as session:
            rows = session.scalars(select(User).order_by(User.id.desc()))
            return [_to_user_record(row) for row in rows]

    def set_approved(self, user_id: int, is_approved: bool) -> UserRecord:
        """
        승인 상태 변경.

        Raises:
            NotFoundError: USER_NOT_FOUND
        """
        with self._transaction() as session:
            row = session.get(User, user_id)
            if row is None:
                raise NotFoundError(
                    ErrorCodes.USER_NOT_FOUND,
                    f"User #{user_id} not found",
                    user_id=user_id,
                )
            row.is_approved = is_approved
            return _to_user_record(row)

    def promote_admin(self, username: str) -> UserRecord:
        """기존 사용자를 admin 으로 승격 (없으면 생성). 항상 승인 상태."""
        with self._transaction() as session:
            row = session.scalar(select(User).where(User.username == username))
            if row is None:
                row = User(username=username, role=ROLE_ADMIN, is_approved=True)
                session.add(row)
                session.flush()
            else:
                row.role = ROLE_ADMIN
                row.is_approved = True
            return _to_user_record(row)
