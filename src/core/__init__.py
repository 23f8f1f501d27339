"""
Core layer: slug/content/저장소 일관성 핵심 모듈.

이 모듈만 건드리면 운영사고 → 가장 보수적으로 관리

역할:
- slug 생성, 문서 compose/decompose
- apps/<slug>/index.html 저장소, apps 인덱스 (SQLAlchemy)
"""

from .app_index import (
    AppIndex,
    SettingsIndex,
    UserIndex,
    create_index_engine,
    init_schema,
)
from .artifact_store import ArtifactStore, atomic_write_text
from .content import compose, decompose, extract_title
from .slug import generate_slug, is_valid_slug, slugify, synthesize_slug

__all__ = [
    # slug
    "generate_slug",
    "slugify",
    "synthesize_slug",
    "is_valid_slug",
    # content
    "compose",
    "decompose",
    "extract_title",
    # artifact_store
    "ArtifactStore",
    "atomic_write_text",
    # app_index
    "AppIndex",
    "UserIndex",
    "SettingsIndex",
    "create_index_engine",
    "init_schema",
]
