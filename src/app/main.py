"""
FastAPI 애플리케이션 진입점.

실행:
- 개발: uv run uvicorn src.app.main:app --reload
- 프로덕션: uv run uvicorn src.app.main:app
- 설정 파일 지정: FIDDLEHOST_CONFIG=/etc/fiddlehost.yaml uv run uvicorn src.app.main:app
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.app.config import AppConfig, load_config
from src.app.routes import admin, apps, sites
from src.app.services.publish import PublishService
from src.core.app_index import (
    AppIndex,
    SettingsIndex,
    UserIndex,
    create_index_engine,
    init_schema,
)
from src.core.artifact_store import ArtifactStore

logger = logging.getLogger(__name__)

# =============================================================================
# Lifespan
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    애플리케이션 생명주기 관리.

    시작 시: 설정 확정, apps/ 생성, 스키마 준비, 서비스 조립
    종료 시: DB 커넥션 정리
    """
    # Startup
    config: AppConfig = app.state.config or load_config()
    app.state.config = config

    config.apps_root.mkdir(parents=True, exist_ok=True)
    engine = create_index_engine(config.database_url)
    init_schema(engine)

    store = ArtifactStore(config.apps_root)
    app.state.users = UserIndex(engine)
    app.state.settings = SettingsIndex(engine)
    app.state.publish_service = PublishService(
        store=store,
        index=AppIndex(engine),
        lock_timeout=config.lock_timeout,
    )
    logger.info(f"Serving apps from {config.apps_root}")

    yield

    # Shutdown
    engine.dispose()


# =============================================================================
# App Factory
# =============================================================================


def create_app(config: AppConfig | None = None) -> FastAPI:
    """
    FastAPI 앱 생성.

    Args:
        config: 실행 설정 (None 이면 시작 시 load_config())
    """
    app = FastAPI(
        title="Fiddle Host",
        description="정적 웹 앱(HTML/CSS/JS) 업로드 및 slug URL 게시",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.config = config

    # API 라우트
    app.include_router(apps.api_router, prefix="/api/apps", tags=["Apps API"])
    app.include_router(admin.api_router, prefix="/api/admin", tags=["Admin API"])

    # 게시된 앱
    app.include_router(sites.router, prefix="/sites", tags=["Sites"])

    @app.get("/health")
    async def health() -> dict[str, str]:
        """헬스 체크."""
        return {"status": "ok"}

    return app


app = create_app()


# =============================================================================
# CLI Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    cli_config = load_config()
    uvicorn.run(
        "src.app.main:app",
        host=cli_config.host,
        port=cli_config.port,
        reload=True,
    )
