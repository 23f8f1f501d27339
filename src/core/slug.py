"""
Slug 생성: 사용자 입력(제목/파일명) → URL-safe 식별자

규칙:
- 순수 함수, 예외 없음: 빈 값/None → "" (fallback 체인이 처리)
- 최종 결과는 항상 ^[a-z0-9]+(-[a-z0-9]+)*$ 또는 합성 slug
- 한번 발급된 slug 는 변경 금지 (변경 = 새 앱 생성)
"""

import re
import unicodedata
import uuid
from datetime import UTC, datetime

from src.domain.constants import SLUG_MAX_LENGTH, SLUG_PATTERN, SYNTHETIC_SLUG_PREFIX

_INVALID_CHARS = re.compile(r"[^a-z0-9\s-]")
_SEPARATORS = re.compile(r"[\s_]+")
_HYPHEN_RUNS = re.compile(r"-+")
# 영문자로 시작하는 최대 5자 확장자만 제거 ("Version 2.0" 은 유지)
_FILE_EXTENSION = re.compile(r"\.[A-Za-z][A-Za-z0-9]{0,4}$")


def slugify(value: str | None) -> str:
    """
    임의 문자열 → slug. 변환 결과가 비면 "" 반환.

    순서:
    1. NFD 정규화 후 결합 문자(악센트) 제거: é → e
    2. 소문자 + 앞뒤 공백 제거
    3. [a-z0-9, 공백, -] 외 문자 삭제
    4. 공백/밑줄 연속 → 하이픈 하나
    5. 하이픈 연속 → 하나
    6. 앞뒤 하이픈 제거, 최대 길이 제한

    Args:
        value: 원본 문자열

    Returns:
        slug 문자열 (비어 있을 수 있음)
    """
    if not value:
        return ""

    decomposed = unicodedata.normalize("NFD", str(value))
    folded = "".join(c for c in decomposed if not unicodedata.combining(c))

    slug = folded.lower().strip()
    slug = _INVALID_CHARS.sub("", slug)
    slug = _SEPARATORS.sub("-", slug)
    slug = _HYPHEN_RUNS.sub("-", slug)
    slug = slug.strip("-")

    if len(slug) > SLUG_MAX_LENGTH:
        slug = slug[:SLUG_MAX_LENGTH].rstrip("-")
    return slug


def strip_extension(filename: str | None) -> str:
    """파일명에서 마지막 확장자 제거 ("my-file.html" → "my-file")."""
    if not filename:
        return ""
    return _FILE_EXTENSION.sub("", filename)


def synthesize_slug() -> str:
    """
    입력에서 slug 를 얻지 못했을 때 사용할 고유 slug.

    포맷: app-{timestamp}-{uuid[:8]}

    Returns:
        SLUG_PATTERN 을 만족하는 slug
    """
    timestamp = datetime.now(UTC).strftime("%Y%m%d%H%M%S")
    unique = uuid.uuid4().hex[:8]
    return f"{SYNTHETIC_SLUG_PREFIX}{timestamp}-{unique}"


def generate_slug(raw_input: str | None, fallback_seed: str | None = None) -> str:
    """
    Slug 생성 (fallback 체인 포함).

    raw_input → fallback_seed(확장자 제거) → 합성 slug 순서로 시도.

    Args:
        raw_input: 사용자가 입력한 slug 또는 제목
        fallback_seed: 원본 파일명 또는 제목

    Returns:
        비어 있지 않은 slug
    """
    slug = slugify(raw_input)
    if not slug:
        slug = slugify(strip_extension(fallback_seed))
    if not slug:
        slug = synthesize_slug()
    return slug


def is_valid_slug(slug: str | None) -> bool:
    """저장소 디렉토리명으로 사용할 수 있는 slug 인지 확인."""
    if not slug or len(slug) > SLUG_MAX_LENGTH:
        return False
    return SLUG_PATTERN.match(slug) is not None
