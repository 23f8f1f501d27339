"""
test_slug.py - slug 생성 테스트

DoD:
- 결과는 항상 ^[a-z0-9]+(-[a-z0-9]+)*$ 또는 합성 slug
- 악센트 제거, 특수문자 제거, 공백/하이픈 정리
- fallback 체인: 입력 → 파일명(확장자 제거) → 합성
- 예외 없음 (None/빈 문자열 포함)
"""

import pytest

from src.core.slug import (
    generate_slug,
    is_valid_slug,
    slugify,
    strip_extension,
    synthesize_slug,
)
from src.domain.constants import SLUG_MAX_LENGTH, SLUG_PATTERN, SYNTHETIC_SLUG_PREFIX

SAMPLE_INPUTS = [
    "Café Déjà Vu!!!",
    "  My   Cool   Game  ",
    "hello_world",
    "a -- b",
    "---edge---",
    "Ünïcödé Täst",
    "東京 tower",
    "!!!",
    "   ",
    "tab\tand\nnewline",
    "x" * 200,
    "Ends with - ",
]


# =============================================================================
# slugify 테스트
# =============================================================================


class TestSlugify:
    """slugify 함수 테스트."""

    def test_accents_folded(self):
        """악센트 문자 → 기본 ASCII 문자."""
        assert slugify("Café Déjà Vu!!!") == "cafe-deja-vu"

    def test_whitespace_runs_collapse(self):
        """연속 공백 → 하이픈 하나, 앞뒤 공백 제거."""
        assert slugify("  My   Cool   Game  ") == "my-cool-game"

    def test_hyphen_runs_collapse(self):
        assert slugify("a -- b") == "a-b"

    def test_underscore_removed(self):
        """밑줄은 허용 문자가 아니므로 제거됨."""
        assert slugify("hello_world") == "helloworld"

    def test_leading_trailing_hyphens_stripped(self):
        assert slugify("---edge---") == "edge"
        assert slugify("Ends with - ") == "ends-with"

    def test_non_ascii_only_becomes_empty(self):
        assert slugify("東京") == ""

    def test_none_and_empty(self):
        """None/빈 문자열 → "" (예외 없음)."""
        assert slugify(None) == ""
        assert slugify("") == ""
        assert slugify("   ") == ""

    def test_max_length(self):
        slug = slugify("word " * 100)

        assert len(slug) <= SLUG_MAX_LENGTH
        assert not slug.endswith("-")

    def test_deterministic(self):
        assert slugify("Same Input") == slugify("Same Input")

    @pytest.mark.parametrize("value", SAMPLE_INPUTS)
    def test_output_matches_pattern_or_empty(self, value):
        slug = slugify(value)

        assert slug == "" or SLUG_PATTERN.match(slug)


# =============================================================================
# generate_slug 테스트
# =============================================================================


class TestGenerateSlug:
    """generate_slug fallback 체인 테스트."""

    def test_primary_input_used(self):
        assert generate_slug("Café Déjà Vu!!!", "ignored.html") == "cafe-deja-vu"

    def test_fallback_to_filename_without_extension(self):
        assert generate_slug("", "my-file.html") == "my-file"

    def test_fallback_when_primary_sanitizes_to_empty(self):
        assert generate_slug("???", "Cool Game.htm") == "cool-game"

    def test_synthesized_when_all_empty(self):
        slug = generate_slug("", "")

        assert slug.startswith(SYNTHETIC_SLUG_PREFIX)
        assert SLUG_PATTERN.match(slug)

    def test_synthesized_unique(self):
        """두 번 호출 → 서로 다른 합성 slug."""
        assert generate_slug("", "") != generate_slug("", "")

    def test_none_inputs(self):
        slug = generate_slug(None, None)

        assert slug.startswith(SYNTHETIC_SLUG_PREFIX)

    def test_filename_only_symbols(self):
        """'???.html' 같은 파일명 → 합성 slug."""
        slug = generate_slug(None, "???.html")

        assert slug.startswith(SYNTHETIC_SLUG_PREFIX)

    @pytest.mark.parametrize("value", SAMPLE_INPUTS)
    def test_always_valid(self, value):
        assert is_valid_slug(generate_slug(value, value))


# =============================================================================
# Helpers 테스트
# =============================================================================


class TestStripExtension:

    def test_html_extension(self):
        assert strip_extension("my-file.html") == "my-file"

    def test_only_last_extension(self):
        assert strip_extension("archive.tar.gz") == "archive.tar"

    def test_numeric_suffix_kept(self):
        """숫자로 시작하는 '확장자'는 제목의 일부로 간주."""
        assert strip_extension("Version 2.0") == "Version 2.0"

    def test_no_extension(self):
        assert strip_extension("README") == "README"
        assert strip_extension(None) == ""


class TestSynthesizeSlug:

    def test_format(self):
        slug = synthesize_slug()

        # 포맷: app-{YYYYmmddHHMMSS}-{hex8}
        parts = slug.split("-")
        assert parts[0] == "app"
        assert len(parts[1]) == 14 and parts[1].isdigit()
        assert len(parts[2]) == 8
        assert is_valid_slug(slug)


class TestIsValidSlug:

    @pytest.mark.parametrize("slug", ["a", "my-app", "app-2024-abc"])
    def test_valid(self, slug):
        assert is_valid_slug(slug)

    @pytest.mark.parametrize(
        "slug",
        ["", None, "-a", "a-", "a--b", "My-App", "../etc", "a/b", ".locks", "a_b"],
    )
    def test_invalid(self, slug):
        assert not is_valid_slug(slug)

    def test_too_long(self):
        assert not is_valid_slug("a" * (SLUG_MAX_LENGTH + 1))
