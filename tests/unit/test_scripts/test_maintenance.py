"""
test_maintenance.py - maintenance.py 스크립트 테스트

테스트 케이스:
- TC1: 인덱스 row 없는 artifact 만 고아로 분류
- TC2: orphans dry-run 은 삭제 없음, --execute 시 삭제
- TC2-1: 인덱스 row 없는 락 파일도 함께 정리
- TC3: add-user / promote-admin / backfill-titles
- TC4: 중복 사용자 → exit code 1
"""

import sys
from pathlib import Path

import pytest

# scripts 모듈 임포트를 위한 경로 추가
sys.path.insert(0, str(Path(__file__).parent.parent.parent.parent / "scripts"))

from maintenance import find_orphans, find_stale_locks, main, purge_orphans  # noqa: E402

from src.core.app_index import AppIndex, UserIndex  # noqa: E402
from src.core.artifact_store import ArtifactStore  # noqa: E402
from src.domain.constants import ROLE_ADMIN  # noqa: E402
from src.domain.schemas import UserRecord  # noqa: E402


@pytest.fixture
def config_file(tmp_path: Path, apps_root: Path) -> Path:
    """conftest 의 apps_root/database 를 가리키는 설정 파일."""
    path = tmp_path / "maintenance.yaml"
    path.write_text(
        f"paths:\n  apps_root: {apps_root}\n  database: {tmp_path / 'index.sqlite'}\n",
        encoding="utf-8",
    )
    return path


class TestOrphans:

    def test_find_orphans(self, store: ArtifactStore, app_index: AppIndex, owner: UserRecord):
        store.write("indexed", "x")
        store.write("orphan", "x")
        app_index.create(owner.id, "indexed", None, "Indexed")

        assert find_orphans(store, app_index) == ["orphan"]

    def test_purge_orphans(self, store: ArtifactStore):
        store.write("orphan", "x")

        assert purge_orphans(store, ["orphan", "already-gone"]) == 1
        assert store.list_slugs() == []

    def test_dry_run_keeps_files(self, config_file: Path, store: ArtifactStore):
        store.write("orphan", "x")

        assert main(["--config", str(config_file), "orphans"]) == 0
        assert store.exists("orphan")

    def test_execute_removes(
        self, config_file: Path, store: ArtifactStore, app_index: AppIndex, owner: UserRecord
    ):
        store.write("orphan", "x")
        store.write("kept", "x")
        app_index.create(owner.id, "kept", None, "Kept")

        assert main(["--config", str(config_file), "orphans", "--execute"]) == 0
        assert store.list_slugs() == ["kept"]

    def test_find_stale_locks(self, store: ArtifactStore, app_index: AppIndex, owner: UserRecord):
        store.locks_dir.mkdir(parents=True)
        store.lock_path_for("indexed").touch()
        store.lock_path_for("rejected").touch()
        app_index.create(owner.id, "indexed", None, "Indexed")

        assert find_stale_locks(store, app_index) == ["rejected"]

    def test_execute_prunes_stale_locks(
        self, config_file: Path, store: ArtifactStore, app_index: AppIndex, owner: UserRecord
    ):
        store.locks_dir.mkdir(parents=True)
        store.lock_path_for("kept").touch()
        store.lock_path_for("rejected").touch()
        app_index.create(owner.id, "kept", None, "Kept")

        assert main(["--config", str(config_file), "orphans"]) == 0
        assert store.list_lock_slugs() == ["kept", "rejected"]

        assert main(["--config", str(config_file), "orphans", "--execute"]) == 0
        assert store.list_lock_slugs() == ["kept"]
        assert store.list_slugs() == []


class TestUserCommands:

    def test_add_user(self, config_file: Path, users: UserIndex):
        assert main(["--config", str(config_file), "add-user", "dave", "--approve"]) == 0

        user = users.find_by_username("dave")
        assert user is not None
        assert user.is_approved is True

    def test_add_user_duplicate(self, config_file: Path, owner: UserRecord):
        assert main(["--config", str(config_file), "add-user", owner.username]) == 1

    def test_promote_admin(self, config_file: Path, users: UserIndex, pending_user: UserRecord):
        assert main(["--config", str(config_file), "promote-admin", pending_user.username]) == 0

        user = users.find_by_id(pending_user.id)
        assert user.role == ROLE_ADMIN
        assert user.is_approved is True


def test_backfill_titles(config_file: Path, app_index: AppIndex, owner: UserRecord):
    app_index.create(owner.id, "untitled", None, "")

    assert main(["--config", str(config_file), "backfill-titles"]) == 0
    assert app_index.find_by_slug("untitled").title == "untitled"
