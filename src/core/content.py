"""
Content compose/decompose: (html, css, js, title) ↔ 단일 정적 문서

규칙:
- compose 결과는 외부 리소스 없이 단독 실행 가능한 문서
- title 은 html.escape 후 삽입, css/js/html 은 그대로 삽입
- decompose 는 best-effort 정규식 파서 (HTML 파서 아님)
  - 깨진 마크업에서도 예외 없음, 매칭 안 되는 태그는 그대로 둠
  - css/js 안에 </style>, </script> 문자열이 있으면 왕복 보장 안 됨
  - 외부 리소스(src script, link)와 classic JS 가 아닌 script(module, JSON 등)는 html 에 남김
"""

import html as html_lib
import re
from collections.abc import Callable

from src.domain.schemas import ParsedContent

# =============================================================================
# Patterns
# =============================================================================

_FLAGS = re.IGNORECASE | re.DOTALL

_STYLE_BLOCK = re.compile(r"<style\b[^>]*>(.*?)</style\s*>", _FLAGS)
_SCRIPT_BLOCK = re.compile(r"<script\b([^>]*)>(.*?)</script\s*>", _FLAGS)
_SRC_ATTR = re.compile(r"(?:^|\s)src\s*=", re.IGNORECASE)
_TYPE_ATTR = re.compile(r"""(?:^|\s)type\s*=\s*["']?([^"'\s>]*)""", re.IGNORECASE)
_BODY_OPEN = re.compile(r"<body\b[^>]*>", re.IGNORECASE)
_BODY_CLOSE = re.compile(r"</body\s*>", re.IGNORECASE)
_DOCTYPE = re.compile(r"<!doctype\b[^>]*>", re.IGNORECASE)
_HEAD_BLOCK = re.compile(r"<head\b[^>]*>.*?</head\s*>", _FLAGS)
_DOCUMENT_TAGS = re.compile(r"</?(?:html|head|body)\b[^>]*>", re.IGNORECASE)
# head 에서 body 로 옮겨 보존할 태그 (inline classic script 는 이미 추출된 상태)
_HEAD_KEPT_TAGS = re.compile(r"<script\b[^>]*>.*?</script\s*>|<link\b[^>]*>", _FLAGS)
_TITLE = re.compile(r"<title\b[^>]*>(.*?)</title\s*>", _FLAGS)

_BLOCK_SEPARATOR = "\n\n"

# =============================================================================
# Compose
# =============================================================================

_DOCUMENT_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title}</title>
{style}</head>
<body>
{html}
{script}</body>
</html>
"""


def compose(html: str, css: str, js: str, title: str) -> str:
    """
    html/css/js/title → 단일 문서.

    빈 css/js 는 블록 자체를 생략.

    Args:
        html: body 내용
        css: <style> 블록 내용
        js: <script> 블록 내용
        title: <title> 내용 (escape 됨)

    Returns:
        완성된 HTML 문서
    """
    css = (css or "").strip()
    js = (js or "").strip()

    style = f"    <style>\n{css}\n    </style>\n" if css else ""
    script = f"<script>\n{js}\n</script>\n" if js else ""

    return _DOCUMENT_TEMPLATE.format(
        title=html_lib.escape(title or "", quote=False),
        style=style,
        html=(html or "").strip(),
        script=script,
    )


# =============================================================================
# Decompose
# =============================================================================


_CLASSIC_SCRIPT_TYPES = frozenset({
    "",
    "text/javascript",
    "application/javascript",
    "text/ecmascript",
    "application/ecmascript",
})


def _stays_in_html(attrs: str) -> bool:
    """src 가 있거나 classic JS 가 아닌 script (module, ld+json, 템플릿 등)."""
    if _SRC_ATTR.search(attrs):
        return True
    type_match = _TYPE_ATTR.search(attrs)
    if type_match is None:
        return False
    return type_match.group(1).lower() not in _CLASSIC_SCRIPT_TYPES


def _extract_blocks(
    pattern: re.Pattern[str],
    document: str,
    keep: Callable[[str], bool] | None = None,
) -> tuple[str, list[str]]:
    """
    pattern 에 매칭되는 블록을 문서에서 제거하고 내용 목록 반환.

    keep(속성 문자열) 이 True 인 블록은 문서에 남김.
    """
    contents: list[str] = []

    def _take(match: re.Match[str]) -> str:
        if keep is not None and keep(match.group(1)):
            return match.group(0)
        inner = match.groups()[-1].strip()
        if inner:
            contents.append(inner)
        return ""

    return pattern.sub(_take, document), contents


def _split_body(document: str) -> tuple[str, str | None]:
    """
    (body 앞부분, body 안쪽 내용).

    body 태그가 없으면 (문서 전체, None). 닫는 태그가 없으면 끝까지.
    """
    body_open = _BODY_OPEN.search(document)
    if body_open is None:
        return document, None

    before = document[:body_open.start()]
    rest = document[body_open.end():]
    body_close = _BODY_CLOSE.search(rest)
    if body_close is not None:
        return before, rest[:body_close.start()]
    return before, _DOCUMENT_TAGS.sub("", rest)


def decompose(document: str) -> ParsedContent:
    """
    문서 → ParsedContent(html, css, js).

    순서:
    1. 모든 <style> 블록 추출/제거 → css (빈 줄로 연결)
    2. classic inline <script> 블록 추출/제거 → js
       (src 있는 script, module/JSON 등 다른 type 은 html 에 남김)
    3. <body> 가 있으면 안쪽 내용, 없으면 doctype/html/head 제거 후 나머지 → html
    4. head 쪽에 남은 script/link 태그는 html 앞에 붙임

    Args:
        document: compose 결과 또는 업로드된 임의 HTML

    Returns:
        ParsedContent
    """
    if not document:
        return ParsedContent()

    remaining, styles = _extract_blocks(_STYLE_BLOCK, document)
    remaining, scripts = _extract_blocks(_SCRIPT_BLOCK, remaining, keep=_stays_in_html)

    before, body = _split_body(remaining)
    if body is None:
        head = _HEAD_BLOCK.search(remaining)
        head_tags = _HEAD_KEPT_TAGS.findall(head.group(0)) if head else []
        body = _DOCTYPE.sub("", remaining)
        body = _HEAD_BLOCK.sub("", body)
        body = _DOCUMENT_TAGS.sub("", body)
    else:
        head_tags = _HEAD_KEPT_TAGS.findall(before)

    html = "\n".join([*head_tags, body.strip()]) if head_tags else body

    return ParsedContent(
        html=html.strip(),
        css=_BLOCK_SEPARATOR.join(styles),
        js=_BLOCK_SEPARATOR.join(scripts),
    )


def extract_title(document: str) -> str | None:
    """문서의 <title> 내용 (unescape). 없거나 비어 있으면 None."""
    if not document:
        return None
    match = _TITLE.search(document)
    if match is None:
        return None
    title = html_lib.unescape(match.group(1)).strip()
    return title or None
