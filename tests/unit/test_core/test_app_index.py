"""
test_app_index.py - apps/users/settings 인덱스 테스트

검증 포인트:
1. slug UNIQUE: 중복 create → ConflictError
2. 동시 최초 create: 정확히 하나만 성공
3. update: original_name 생략 시 유지, created_at 항상 갱신
4. 목록 정렬: 최근 수정 순, 작성자 join
5. users/settings: auto_approve, 승인, admin 승격
"""

import threading
import time

import pytest
from sqlalchemy import Engine

from src.core.app_index import AppIndex, SettingsIndex, UserIndex, init_schema
from src.domain.constants import ROLE_ADMIN, ROLE_USER
from src.domain.errors import ConflictError, ErrorCodes, NotFoundError
from src.domain.schemas import UserRecord


# =============================================================================
# AppIndex
# =============================================================================


class TestCreate:

    def test_create_returns_record(self, app_index: AppIndex, owner: UserRecord):
        record = app_index.create(owner.id, "my-app", "page.html", "My App")

        assert record.id > 0
        assert record.slug == "my-app"
        assert record.owner_id == owner.id
        assert record.title == "My App"
        assert record.original_name == "page.html"
        assert record.is_featured is False
        assert record.created_at is not None

    def test_duplicate_slug_conflict(self, app_index: AppIndex, owner: UserRecord, other_user: UserRecord):
        app_index.create(owner.id, "my-app", "a.html", "A")

        with pytest.raises(ConflictError) as exc_info:
            app_index.create(other_user.id, "my-app", "b.html", "B")

        assert exc_info.value.code == ErrorCodes.SLUG_TAKEN
        # 기존 row 유지
        assert app_index.find_by_slug("my-app").owner_id == owner.id

    def test_concurrent_first_create(self, app_index: AppIndex, owner: UserRecord, other_user: UserRecord):
        """동일 slug 동시 create → 하나 성공, 하나 ConflictError."""
        barrier = threading.Barrier(2)
        outcomes: list[str] = []
        lock = threading.Lock()

        def task(user_id: int) -> None:
            barrier.wait()
            try:
                app_index.create(user_id, "race", "r.html", "Race")
                result = "created"
            except ConflictError:
                result = "conflict"
            with lock:
                outcomes.append(result)

        threads = [
            threading.Thread(target=task, args=(owner.id,)),
            threading.Thread(target=task, args=(other_user.id,)),
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(outcomes) == ["conflict", "created"]
        assert len(app_index.list_all()) == 1


class TestUpdate:

    def test_preserves_original_name_when_omitted(self, app_index: AppIndex, owner: UserRecord):
        app_index.create(owner.id, "my-app", "page.html", "Old")

        record = app_index.update("my-app", "New")

        assert record.title == "New"
        assert record.original_name == "page.html"

    def test_replaces_original_name(self, app_index: AppIndex, owner: UserRecord):
        app_index.create(owner.id, "my-app", "page.html", "Old")

        record = app_index.update("my-app", "New", "page-v2.html")

        assert record.original_name == "page-v2.html"

    def test_refreshes_timestamp(self, app_index: AppIndex, owner: UserRecord):
        created = app_index.create(owner.id, "my-app", "page.html", "Old")
        time.sleep(0.01)

        updated = app_index.update("my-app", "New")

        assert updated.created_at > created.created_at

    def test_missing_slug(self, app_index: AppIndex):
        with pytest.raises(NotFoundError) as exc_info:
            app_index.update("nope", "x")

        assert exc_info.value.code == ErrorCodes.APP_NOT_FOUND


class TestQueries:

    def test_find_missing(self, app_index: AppIndex):
        assert app_index.find_by_slug("nope") is None

    def test_list_by_owner_newest_modification_first(
        self, app_index: AppIndex, owner: UserRecord, other_user: UserRecord
    ):
        app_index.create(owner.id, "first", None, "First")
        time.sleep(0.01)
        app_index.create(owner.id, "second", None, "Second")
        time.sleep(0.01)
        app_index.create(other_user.id, "others", None, "Other")
        time.sleep(0.01)
        app_index.update("first", "First v2")

        slugs = [r.slug for r in app_index.list_by_owner(owner.id)]

        assert slugs == ["first", "second"]

    def test_list_all_joins_author(self, app_index: AppIndex, owner: UserRecord, other_user: UserRecord):
        app_index.create(owner.id, "a", None, "A")
        time.sleep(0.01)
        app_index.create(other_user.id, "b", None, "B")

        records = app_index.list_all()

        assert [(r.slug, r.author) for r in records] == [("b", "bob"), ("a", "alice")]

    def test_featured(self, app_index: AppIndex, owner: UserRecord):
        a = app_index.create(owner.id, "a", None, "A")
        app_index.create(owner.id, "b", None, "B")

        record = app_index.set_featured(a.id, True)
        featured = app_index.list_featured()

        assert record.is_featured is True
        assert [r.slug for r in featured] == ["a"]
        assert featured[0].author == "alice"

        app_index.set_featured(a.id, False)
        assert app_index.list_featured() == []

    def test_set_featured_keeps_timestamp(self, app_index: AppIndex, owner: UserRecord):
        a = app_index.create(owner.id, "a", None, "A")

        record = app_index.set_featured(a.id, True)

        assert record.created_at == a.created_at

    def test_set_featured_missing(self, app_index: AppIndex):
        with pytest.raises(NotFoundError):
            app_index.set_featured(999, True)

    def test_backfill_titles(self, app_index: AppIndex, owner: UserRecord):
        app_index.create(owner.id, "untitled", "u.html", "")
        app_index.create(owner.id, "titled", "t.html", "Titled")

        assert app_index.backfill_titles() == 1
        assert app_index.backfill_titles() == 0
        assert app_index.find_by_slug("untitled").title == "untitled"
        assert app_index.find_by_slug("titled").title == "Titled"


# =============================================================================
# Users / Settings
# =============================================================================


class TestUsers:

    def test_default_not_approved(self, users: UserIndex):
        user = users.create_user("dave")

        assert user.role == ROLE_USER
        assert user.is_approved is False

    def test_auto_approve_setting(self, users: UserIndex, settings_index: SettingsIndex):
        settings_index.set_auto_approve(True)

        assert users.create_user("erin").is_approved is True

    def test_duplicate_username(self, users: UserIndex):
        users.create_user("dave")

        with pytest.raises(ConflictError) as exc_info:
            users.create_user("dave")

        assert exc_info.value.code == ErrorCodes.USERNAME_TAKEN

    def test_set_approved(self, users: UserIndex, pending_user: UserRecord):
        user = users.set_approved(pending_user.id, True)

        assert user.is_approved is True
        assert users.find_by_id(pending_user.id).is_approved is True

    def test_set_approved_missing(self, users: UserIndex):
        with pytest.raises(NotFoundError) as exc_info:
            users.set_approved(999, True)

        assert exc_info.value.code == ErrorCodes.USER_NOT_FOUND

    def test_promote_existing(self, users: UserIndex, pending_user: UserRecord):
        user = users.promote_admin(pending_user.username)

        assert user.id == pending_user.id
        assert user.role == ROLE_ADMIN
        assert user.is_approved is True

    def test_promote_creates(self, users: UserIndex):
        user = users.promote_admin("root")

        assert users.find_by_username("root") == user
        assert user.role == ROLE_ADMIN

    def test_list_users_newest_first(self, users: UserIndex, owner: UserRecord, other_user: UserRecord):
        assert [u.username for u in users.list_users()] == ["bob", "alice"]


class TestSettings:

    def test_default_auto_approve_off(self, settings_index: SettingsIndex):
        assert settings_index.auto_approve() is False

    def test_toggle(self, settings_index: SettingsIndex):
        settings_index.set_auto_approve(True)
        assert settings_index.get("auto_approve") == "1"

        settings_index.set_auto_approve(False)
        assert settings_index.auto_approve() is False

    def test_upsert_new_key(self, settings_index: SettingsIndex):
        settings_index.set("theme", "dark")

        assert settings_index.get("theme") == "dark"
        assert settings_index.get("missing") is None

    def test_init_schema_keeps_existing_values(self, engine: Engine, settings_index: SettingsIndex):
        settings_index.set_auto_approve(True)

        init_schema(engine)

        assert settings_index.auto_approve() is True
