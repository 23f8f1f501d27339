"""
Domain Constants: 전역 상수.

파일명 정책, slug 규칙, 설정 키 등 시스템 전반에서 사용되는 값들.
"""

import re

# =============================================================================
# Artifact Directory Structure (앱 디렉토리 구조)
# =============================================================================
# apps/<slug>/
# └── index.html   # 렌더된 단일 문서
#
# apps/.locks/<slug>.lock  # per-slug 락 (slug 는 '.'으로 시작할 수 없음)

ARTIFACT_FILENAME = "index.html"
LOCKS_DIRNAME = ".locks"

# =============================================================================
# Slug Rules
# =============================================================================

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")
SLUG_MAX_LENGTH = 80
SYNTHETIC_SLUG_PREFIX = "app-"

# =============================================================================
# Provenance
# =============================================================================

# fiddle 에디터로 작성된 앱의 original_name
FIDDLE_ORIGINAL_NAME = "fiddle"

# =============================================================================
# Users & Settings
# =============================================================================

ROLE_USER = "user"
ROLE_ADMIN = "admin"

SETTING_AUTO_APPROVE = "auto_approve"
DEFAULT_SETTINGS = {
    SETTING_AUTO_APPROVE: "0",
}
