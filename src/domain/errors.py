"""
Error definitions for the publish layer.

규칙:
- 조용한 실패 금지 → 모든 실패는 타입이 있는 PublishError 하위 클래스로 전달
- 자동 재시도 없음 (at-most-once), 재시도는 호출자 몫
- route 레이어가 status_code 로 HTTP 응답 변환
"""

from typing import Any


class PublishError(Exception):
    """
    publish/edit/read 경로에서 발생하는 에러의 기반 클래스.

    Usage:
        raise ConflictError(ErrorCodes.SLUG_TAKEN, "slug already exists", slug=slug)
    """

    status_code = 500

    def __init__(self, code: str, message: str = "", **context: Any) -> None:
        self.code = code
        self.message = message or code
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
        base = f"[{self.code}] {self.message}"
        return f"{base} ({ctx_str})" if ctx_str else base

    def to_dict(self) -> dict[str, Any]:
        """로그/JSON 직렬화용."""
        return {
            "code": self.code,
            "message": self.message,
            **self.context,
        }


class InvalidSlugError(PublishError):
    """fallback 체인을 모두 거쳐도 유효한 slug 를 얻지 못함 (사실상 도달 불가)."""

    status_code = 400


class ConflictError(PublishError):
    """slug 가 이미 존재하거나 동시 publish 경쟁에서 짐."""

    status_code = 409


class ForbiddenError(PublishError):
    """소유자 불일치, 미승인 계정, 관리자 권한 없음."""

    status_code = 403


class NotFoundError(PublishError):
    """존재하지 않는 slug/앱/사용자."""

    status_code = 404


class StorageFailureError(PublishError):
    """파일시스템 I/O 에러."""

    status_code = 500


class IndexFailureError(PublishError):
    """relational store 에러 (unique 위반 제외)."""

    status_code = 500


# =============================================================================
# Error Codes
# =============================================================================

class ErrorCodes:
    """에러 코드 상수."""

    # === Slug ===
    INVALID_SLUG = "INVALID_SLUG"
    SLUG_TAKEN = "SLUG_TAKEN"
    SLUG_BUSY = "SLUG_BUSY"  # per-slug 락 timeout
    USERNAME_TAKEN = "USERNAME_TAKEN"

    # === Access ===
    NOT_OWNER = "NOT_OWNER"
    ACCOUNT_NOT_APPROVED = "ACCOUNT_NOT_APPROVED"
    ADMIN_REQUIRED = "ADMIN_REQUIRED"

    # === Lookup ===
    APP_NOT_FOUND = "APP_NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    ARTIFACT_NOT_FOUND = "ARTIFACT_NOT_FOUND"

    # === Storage ===
    STORAGE_FAILURE = "STORAGE_FAILURE"
    INDEX_FAILURE = "INDEX_FAILURE"

    # === Upload ===
    UPLOAD_TOO_LARGE = "UPLOAD_TOO_LARGE"
    UPLOAD_EMPTY = "UPLOAD_EMPTY"
