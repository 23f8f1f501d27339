#!/usr/bin/env python3
"""
maintenance.py - 운영용 스크립트 (스키마, 사용자, 고아 artifact)

명령:
- init-db: 테이블 생성 + 기본 설정 seed
- backfill-titles: title 이 비어 있는 앱에 slug 를 title 로 채움
- add-user: 사용자 생성 (--approve 없으면 auto_approve 설정 따름)
- promote-admin: 사용자를 admin 으로 승격 (없으면 생성)
- orphans: 인덱스 row 가 없는 apps/<slug>/ 디렉토리와 .locks/<slug>.lock 목록 (--execute 시 삭제)

사용법:
    # 스키마 준비
    uv run python scripts/maintenance.py init-db

    # 관리자 지정
    uv run python scripts/maintenance.py promote-admin alice

    # 고아 artifact/락 파일 확인 (dry-run) / 삭제 (서버 정지 상태에서 실행)
    uv run python scripts/maintenance.py orphans
    uv run python scripts/maintenance.py orphans --execute
"""

import argparse
import logging
import sys
from pathlib import Path

# 프로젝트 루트를 path에 추가
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.app.config import load_config  # noqa: E402
from src.core.app_index import AppIndex, UserIndex, create_index_engine, init_schema  # noqa: E402
from src.core.artifact_store import ArtifactStore  # noqa: E402
from src.domain.constants import ROLE_USER  # noqa: E402
from src.domain.errors import PublishError  # noqa: E402

# 로깅 설정
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def find_orphans(store: ArtifactStore, index: AppIndex) -> list[str]:
    """저장소에는 있지만 인덱스에 row 가 없는 slug 목록."""
    return [slug for slug in store.list_slugs() if index.find_by_slug(slug) is None]


def find_stale_locks(store: ArtifactStore, index: AppIndex) -> list[str]:
    """인덱스 row 가 없는 slug 의 락 파일 목록 (거부/실패한 publish 흔적)."""
    return [slug for slug in store.list_lock_slugs() if index.find_by_slug(slug) is None]


def purge_orphans(store: ArtifactStore, slugs: list[str]) -> int:
    """
    고아 디렉토리 삭제.

    Returns:
        삭제된 디렉토리 수
    """
    removed = 0
    for slug in slugs:
        if store.remove(slug):
            removed += 1
    return removed


def purge_locks(store: ArtifactStore, slugs: list[str]) -> int:
    """
    락 파일 삭제.

    Returns:
        삭제된 락 파일 수
    """
    return sum(1 for slug in slugs if store.remove_lock(slug))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="fiddlehost 운영 스크립트",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="설정 파일 경로 (기본: FIDDLEHOST_CONFIG 또는 default.yaml)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="테이블 생성 + 기본 설정")
    sub.add_parser("backfill-titles", help="빈 title 을 slug 로 채움")

    add_user = sub.add_parser("add-user", help="사용자 생성")
    add_user.add_argument("username")
    add_user.add_argument("--approve", action="store_true", help="즉시 승인")

    promote = sub.add_parser("promote-admin", help="admin 승격")
    promote.add_argument("username")

    orphans = sub.add_parser("orphans", help="고아 artifact/락 파일 확인/삭제")
    orphans.add_argument(
        "--execute",
        action="store_true",
        help="실제 삭제 (기본: dry-run)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    config = load_config(Path(args.config) if args.config else None)
    engine = create_index_engine(config.database_url)
    init_schema(engine)

    try:
        if args.command == "init-db":
            logger.info(f"스키마 준비 완료: {config.database_url}")

        elif args.command == "backfill-titles":
            count = AppIndex(engine).backfill_titles()
            logger.info(f"title 채움: {count}개 앱")

        elif args.command == "add-user":
            user = UserIndex(engine).create_user(
                args.username,
                role=ROLE_USER,
                is_approved=True if args.approve else None,
            )
            logger.info(f"사용자 생성: #{user.id} {user.username} (approved={user.is_approved})")

        elif args.command == "promote-admin":
            user = UserIndex(engine).promote_admin(args.username)
            logger.info(f"admin 지정: #{user.id} {user.username}")

        elif args.command == "orphans":
            store = ArtifactStore(config.apps_root)
            index = AppIndex(engine)
            slugs = find_orphans(store, index)
            locks = find_stale_locks(store, index)
            logger.info(f"고아 artifact: {len(slugs)}개, 락 파일: {len(locks)}개")
            for slug in slugs:
                logger.info(f"  - {store.path_for(slug)}")
            for slug in locks:
                logger.info(f"  - {store.lock_path_for(slug)}")

            if args.execute:
                removed = purge_orphans(store, slugs)
                removed_locks = purge_locks(store, locks)
                logger.info(f"삭제: artifact {removed}개, 락 파일 {removed_locks}개")
            elif slugs or locks:
                logger.info("실제 삭제: --execute 옵션 추가")

    except PublishError as e:
        logger.error(f"실패: {e}")
        return 1
    finally:
        engine.dispose()

    return 0


if __name__ == "__main__":
    sys.exit(main())
