"""
Pytest fixtures for the fiddlehost tests.

- tmp_path 기반 SQLite 파일 + apps/ 루트
- 승인된 사용자 2명 (owner, other_user), 미승인 사용자 1명
"""

from collections.abc import Generator
from pathlib import Path

import pytest
from sqlalchemy import Engine

from src.app.config import AppConfig
from src.app.services.publish import PublishService
from src.core.app_index import (
    AppIndex,
    SettingsIndex,
    UserIndex,
    create_index_engine,
    init_schema,
)
from src.core.artifact_store import ArtifactStore
from src.domain.schemas import UserRecord

# =============================================================================
# Path / Config Fixtures
# =============================================================================

@pytest.fixture
def apps_root(tmp_path: Path) -> Path:
    """테스트용 apps/ 루트."""
    root = tmp_path / "apps"
    root.mkdir()
    return root


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    """테스트용 SQLite 파일 URL."""
    return f"sqlite:///{tmp_path / 'index.sqlite'}"


@pytest.fixture
def test_config(apps_root: Path, database_url: str) -> AppConfig:
    """테스트용 설정."""
    return AppConfig(
        apps_root=apps_root,
        database_url=database_url,
        lock_timeout=2.0,
        max_upload_bytes=64 * 1024,
    )


# =============================================================================
# Index / Store Fixtures
# =============================================================================

@pytest.fixture
def engine(database_url: str) -> Generator[Engine, None, None]:
    """스키마 준비된 engine."""
    engine = create_index_engine(database_url)
    init_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(apps_root: Path) -> ArtifactStore:
    return ArtifactStore(apps_root)


@pytest.fixture
def app_index(engine: Engine) -> AppIndex:
    return AppIndex(engine)


@pytest.fixture
def users(engine: Engine) -> UserIndex:
    return UserIndex(engine)


@pytest.fixture
def settings_index(engine: Engine) -> SettingsIndex:
    return SettingsIndex(engine)


@pytest.fixture
def service(store: ArtifactStore, app_index: AppIndex) -> PublishService:
    return PublishService(store, app_index, lock_timeout=2.0)


# =============================================================================
# User Fixtures
# =============================================================================

@pytest.fixture
def owner(users: UserIndex) -> UserRecord:
    """승인된 사용자 (앱 소유자)."""
    return users.create_user("alice", is_approved=True)


@pytest.fixture
def other_user(users: UserIndex) -> UserRecord:
    """승인된 다른 사용자."""
    return users.create_user("bob", is_approved=True)


@pytest.fixture
def pending_user(users: UserIndex) -> UserRecord:
    """미승인 사용자."""
    return users.create_user("carol", is_approved=False)
