"""
설정 로드: default.yaml → AppConfig.

규칙:
- 프로세스 전역 상태 없음: AppConfig 를 시작 시 만들어 app.state 로 전달
- 상대 경로는 설정 파일 위치 기준
- 파일이 없으면 전부 기본값
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

PROJECT_ROOT = Path(__file__).parent.parent.parent
DEFAULT_CONFIG_PATH = PROJECT_ROOT / "default.yaml"
CONFIG_ENV_VAR = "FIDDLEHOST_CONFIG"


@dataclass(frozen=True)
class AppConfig:
    """실행 설정."""
    apps_root: Path
    database_url: str
    lock_timeout: float = 10.0
    max_upload_bytes: int = 5 * 1024 * 1024
    host: str = "127.0.0.1"
    port: int = 3000

    @classmethod
    def from_dict(cls, data: dict[str, Any], base_dir: Path) -> "AppConfig":
        paths = data.get("paths", {}) or {}
        publish = data.get("publish", {}) or {}
        server = data.get("server", {}) or {}

        apps_root = Path(paths.get("apps_root", "apps"))
        if not apps_root.is_absolute():
            apps_root = base_dir / apps_root

        database_url = paths.get("database_url")
        if not database_url:
            database = Path(paths.get("database", "database.sqlite"))
            if not database.is_absolute():
                database = base_dir / database
            database_url = f"sqlite:///{database}"

        return cls(
            apps_root=apps_root,
            database_url=database_url,
            lock_timeout=float(publish.get("lock_timeout", 10.0)),
            max_upload_bytes=int(publish.get("max_upload_mb", 5) * 1024 * 1024),
            host=str(server.get("host", "127.0.0.1")),
            port=int(server.get("port", 3000)),
        )


def load_config(config_path: Path | None = None) -> AppConfig:
    """
    설정 파일 로드.

    우선순위: 인자 → FIDDLEHOST_CONFIG 환경변수 → 프로젝트 루트 default.yaml
    """
    if config_path is None:
        env_path = os.environ.get(CONFIG_ENV_VAR)
        config_path = Path(env_path) if env_path else DEFAULT_CONFIG_PATH

    data: dict[str, Any] = {}
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

    return AppConfig.from_dict(data, base_dir=config_path.parent)
