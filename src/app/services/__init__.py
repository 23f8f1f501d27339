"""
Application Services.

역할:
- publish: 업로드/fiddle → slug 확정 → artifact 저장 → 인덱스 갱신
"""

from .publish import PublishService

__all__ = [
    "PublishService",
]
