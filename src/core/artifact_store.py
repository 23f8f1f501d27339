"""
Artifact 저장소: slug → apps/<slug>/index.html

규칙:
- 이 모듈만 apps/ 트리를 생성/수정
- write 는 최초 publish 와 덮어쓰기가 같은 경로 (create/update 분기 없음)
- 원자적 쓰기: temp → rename + fsync
- 디렉토리명 = slug, 추가 정제 없음 (호출자가 검증된 slug 전달)

파일시스템 안정성 (best-effort):
- fsync 실패 시 경고 남기고 계속 진행
- rename 실패 시 기존 파일 유지, temp 파일 정리
"""

import logging
import os
import shutil
import tempfile
from pathlib import Path

from src.domain.constants import ARTIFACT_FILENAME, LOCKS_DIRNAME
from src.domain.errors import ErrorCodes, NotFoundError, StorageFailureError

logger = logging.getLogger(__name__)

# =============================================================================
# Atomic Write
# =============================================================================


def _fsync_dir(dir_path: Path) -> None:
    """
    디렉토리 fsync (가능한 환경에서).

    rename 후 디렉토리 엔트리까지 내구성을 강화하려면 필요.

    Args:
        dir_path: fsync할 디렉토리 경로
    """
    try:
        dir_fd = os.open(str(dir_path), os.O_RDONLY | os.O_DIRECTORY)
        try:
            os.fsync(dir_fd)
        finally:
            os.close(dir_fd)
    except (OSError, AttributeError) as e:
        # O_DIRECTORY 미지원, 권한 문제 등
        logger.warning(
            f"Directory fsync failed for {dir_path}: {e}. "
            f"Rename durability may not be guaranteed."
        )


def atomic_write_text(path: Path, text: str) -> None:
    """
    원자적 텍스트 쓰기.

    동작:
    - 중간 상태 없음: temp → rename (기존 파일은 rename 순간까지 그대로)
    - 파일 fsync + 디렉토리 fsync
    - 실패 시 temp 파일 삭제 후 원래 예외 전달

    Args:
        path: 저장할 파일 경로
        text: 파일 내용 (UTF-8)
    """
    dir_path = path.parent
    dir_path.mkdir(parents=True, exist_ok=True)

    temp_path = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            dir=dir_path,
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
            newline="",
        ) as f:
            temp_path = Path(f.name)
            f.write(text)
            f.flush()
            try:
                os.fsync(f.fileno())
            except OSError as e:
                logger.warning(
                    f"File fsync failed for {path}: {e}. "
                    f"Data may not be durable on power loss."
                )

        os.replace(temp_path, path)
        _fsync_dir(dir_path)

    except Exception:
        if temp_path and temp_path.exists():
            try:
                temp_path.unlink()
            except OSError:
                pass
        raise


# =============================================================================
# Artifact Store
# =============================================================================

class ArtifactStore:
    """
    slug 별 렌더 문서 저장소.

    구조:
    apps/
    ├── <slug>/
    │   └── index.html
    └── .locks/          # PublishService 의 per-slug 락
    """

    def __init__(self, root: Path):
        """
        Args:
            root: apps/ 루트 경로
        """
        self.root = root

    @property
    def locks_dir(self) -> Path:
        return self.root / LOCKS_DIRNAME

    def lock_path_for(self, slug: str) -> Path:
        """slug 의 publish 락 파일 경로."""
        return self.locks_dir / f"{slug}.lock"

    def path_for(self, slug: str) -> Path:
        """slug 의 문서 파일 경로."""
        return self.root / slug / ARTIFACT_FILENAME

    def exists(self, slug: str) -> bool:
        return self.path_for(slug).is_file()

    def write(self, slug: str, document: str) -> Path:
        """
        문서 저장 (최초/덮어쓰기 동일).

        Args:
            slug: 검증된 slug
            document: 렌더된 문서

        Returns:
            저장된 파일 경로

        Raises:
            StorageFailureError: STORAGE_FAILURE
        """
        target = self.path_for(slug)
        try:
            atomic_write_text(target, document)
        except OSError as e:
            raise StorageFailureError(
                ErrorCodes.STORAGE_FAILURE,
                f"Failed to write artifact for '{slug}'",
                slug=slug,
                error=str(e),
            ) from e

        logger.debug(f"Artifact written: {target} ({len(document)} chars)")
        return target

    def read(self, slug: str) -> str:
        """
        저장된 문서 읽기.

        Raises:
            NotFoundError: ARTIFACT_NOT_FOUND
            StorageFailureError: STORAGE_FAILURE
        """
        target = self.path_for(slug)
        try:
            return target.read_text(encoding="utf-8")
        except (FileNotFoundError, NotADirectoryError) as e:
            raise NotFoundError(
                ErrorCodes.ARTIFACT_NOT_FOUND,
                f"No artifact stored for '{slug}'",
                slug=slug,
            ) from e
        except OSError as e:
            raise StorageFailureError(
                ErrorCodes.STORAGE_FAILURE,
                f"Failed to read artifact for '{slug}'",
                slug=slug,
                error=str(e),
            ) from e

    def list_slugs(self) -> list[str]:
        """
        저장소에 디렉토리가 있는 slug 목록 (정렬됨).

        '.'으로 시작하는 관리용 디렉토리(.locks 등)는 제외.
        """
        if not self.root.exists():
            return []
        return sorted(
            entry.name
            for entry in self.root.iterdir()
            if entry.is_dir() and not entry.name.startswith(".")
        )

    def remove(self, slug: str) -> bool:
        """
        slug 디렉토리 삭제 (고아 artifact 정리용).

        Returns:
            True if removed, False if not present
        """
        app_dir = self.root / slug
        if not app_dir.is_dir():
            return False
        try:
            shutil.rmtree(app_dir)
        except OSError as e:
            raise StorageFailureError(
                ErrorCodes.STORAGE_FAILURE,
                f"Failed to remove artifact directory for '{slug}'",
                slug=slug,
                error=str(e),
            ) from e
        logger.info(f"Artifact directory removed: {app_dir}")
        return True

    def list_lock_slugs(self) -> list[str]:
        """.locks/ 에 락 파일이 남아 있는 slug 목록 (정렬됨)."""
        if not self.locks_dir.is_dir():
            return []
        return sorted(entry.stem for entry in self.locks_dir.glob("*.lock") if entry.is_file())

    def remove_lock(self, slug: str) -> bool:
        """
        락 파일 삭제 (publish 진행 중이 아닐 때만 호출).

        Returns:
            True if removed, False if not present
        """
        try:
            self.lock_path_for(slug).unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageFailureError(
                ErrorCodes.STORAGE_FAILURE,
                f"Failed to remove lock file for '{slug}'",
                slug=slug,
                error=str(e),
            ) from e
        return True
