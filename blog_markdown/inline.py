"""Span-level formatting for a single line of markdown."""

from __future__ import annotations

import re
from posixpath import basename

from .config import RenderConfig
from .constants import (
    BOLD_PATTERN,
    EMBED_PATTERN,
    HR_DASH_PATTERN,
    HR_STAR_PATTERN,
    IMAGE_PATTERN,
    INLINE_CODE_PATTERN,
    ITALIC_PATTERN,
    LINE_BREAK,
    LINK_PATTERN,
    STRIKE_PATTERN,
    VIDEO_FALLBACK_TEXT,
    VIDEO_MIME_TYPES,
    VIDEO_SOURCE_PATTERN,
)
from .sanitize import resolve_asset_path, sanitize_url

_DIRECTIVE_SEPARATOR = re.compile(r"\s*[|;]\s*")
_LIST_SEPARATOR = re.compile(r"\s*,\s*")
_POSTER_DIRECTIVE = re.compile(r"^poster\s*=\s*(.+)$", re.IGNORECASE)
_SOURCES_DIRECTIVE = re.compile(r"^sources\s*=\s*(.+)$", re.IGNORECASE)
_FORMATS_DIRECTIVE = re.compile(r"^formats\s*=\s*(.+)$", re.IGNORECASE)
_EXTENSION = re.compile(r"\.[^.]+$")


def format_inline(text: str, base_dir: str = "", config: RenderConfig | None = None) -> str:
    """Apply span-level markdown formatting to already-escaped text.

    Runs in two passes. First the text is split on backticks and every
    segment outside a code span gets, in order: bold, italic, ``![[embed]]``,
    images and videos, links, strikethrough, and ``***``/``---`` rules. The
    segments are joined back with their backticks. Then a separate pass wraps
    each backtick pair of the joined string in an inline code element. A
    result that is empty or only whitespace becomes a line break.

    Args:
        text: HTML-escaped line content.
        base_dir: Directory used to resolve relative image and video sources.
        config: Configuration for link schemes and the content root.

    Returns:
        str: Formatted markup.

    Examples:
        format_inline("**a** and `*b*`")  # '<strong>a</strong> and <code class="inline">*b*</code>'
        format_inline("   ")  # "<br>"
    """
    segments = str(text or "").split("`")
    formatted = [
        _format_segment(segment, base_dir, config) if index % 2 == 0 else segment
        for index, segment in enumerate(segments)
    ]
    result = "`".join(formatted)

    result = INLINE_CODE_PATTERN.sub(r'<code class="inline">\1</code>', result)
    if not result.strip():
        return LINE_BREAK
    return result


def _format_segment(segment: str, base_dir: str, config: RenderConfig | None) -> str:
    segment = BOLD_PATTERN.sub(r"<strong>\1</strong>", segment)
    segment = ITALIC_PATTERN.sub(r"<em>\1</em>", segment)
    segment = EMBED_PATTERN.sub(lambda match: _render_embed(match, base_dir, config), segment)
    segment = IMAGE_PATTERN.sub(lambda match: _render_image(match, base_dir, config), segment)
    segment = LINK_PATTERN.sub(lambda match: _render_link(match, config), segment)
    segment = STRIKE_PATTERN.sub(r"<del>\1</del>", segment)
    segment = HR_STAR_PATTERN.sub("<hr>", segment)
    return HR_DASH_PATTERN.sub("<hr>", segment)


def _render_embed(match: re.Match, base_dir: str, config: RenderConfig | None) -> str:
    path = match.group(1).strip()
    alias = _attribute_text((match.group(2) or "").strip())
    src = _attribute_text(resolve_asset_path(path.replace(" ", "%20"), base_dir, config))
    if VIDEO_SOURCE_PATTERN.search(path):
        aria = f' aria-label="{alias}"' if alias else ""
        source = f'<source src="{src}" type="{_video_mime_type(_extension(path))}">'
        return _video_markup("", aria, source)
    alt = alias or _attribute_text(basename(path))
    return f'<img src="{src}" alt="{alt}">'


def _render_image(match: re.Match, base_dir: str, config: RenderConfig | None) -> str:
    alt, src, title = match.group(1), match.group(2), match.group(3)
    url = _attribute_text(resolve_asset_path(src, base_dir, config))
    alt = _attribute_text(alt)
    title_attr = f' title="{_attribute_text(title)}"' if title else ""

    if not VIDEO_SOURCE_PATTERN.search(src or ""):
        return f'<img src="{url}" alt="{alt}"{title_attr}>'

    directives = _split_directives(title)
    poster = _find_poster(directives)
    poster_attr = (
        f' poster="{_attribute_text(resolve_asset_path(poster, base_dir, config))}"'
        if poster
        else ""
    )
    aria = f' aria-label="{alt}"' if alt else ""

    sources = [f'<source src="{url}" type="{_video_mime_type(_extension(src))}">']
    for extra_src, extension in _alternate_sources(directives, src, base_dir, config):
        extra_src = _attribute_text(extra_src)
        sources.append(f'<source src="{extra_src}" type="{_video_mime_type(extension)}">')

    return _video_markup(f"{poster_attr}{title_attr}", aria, "".join(sources))


def _render_link(match: re.Match, config: RenderConfig | None) -> str:
    prefix, label, href, title = match.groups()
    title_attr = f' title="{_attribute_text(title)}"' if title else ""
    url = _attribute_text(sanitize_url(href, config))
    return f'{prefix}<a href="{url}"{title_attr}>{label}</a>'


def _attribute_text(value: str) -> str:
    # Text here may hold tags emitted by the HTML allow-list.
    return value.replace('"', "&quot;").replace("<", "&lt;").replace(">", "&gt;")


def _video_markup(attributes: str, aria: str, sources: str) -> str:
    return (
        '<div class="post-video-wrap">'
        f'<video class="post-video" controls playsinline preload="metadata"{attributes}{aria}>'
        f"{sources}{VIDEO_FALLBACK_TEXT}</video></div>"
    )


def _split_directives(title: str | None) -> list[str]:
    if not title or not title.strip():
        return []
    return _DIRECTIVE_SEPARATOR.split(title)


def _find_poster(directives: list[str]) -> str | None:
    for directive in directives:
        match = _POSTER_DIRECTIVE.match(directive)
        if match:
            return match.group(1)
    return None


def _alternate_sources(
    directives: list[str], src: str, base_dir: str, config: RenderConfig | None
) -> list[tuple[str, str]]:
    """Collect extra ``<source>`` entries from ``sources=`` and ``formats=``.

    ``sources=a.webm,b.ogg`` lists explicit files; ``formats=webm,ogg`` reuses
    the primary source's path with another extension.
    """
    sources = []
    for directive in directives:
        match = _SOURCES_DIRECTIVE.match(directive)
        if match:
            for path in filter(None, _LIST_SEPARATOR.split(match.group(1))):
                sources.append((resolve_asset_path(path, base_dir, config), _extension(path)))
            continue
        match = _FORMATS_DIRECTIVE.match(directive)
        if match:
            stem = _EXTENSION.sub("", src.split("?")[0])
            for extension in filter(None, _LIST_SEPARATOR.split(match.group(1))):
                path = f"{stem}.{extension}"
                sources.append((resolve_asset_path(path, base_dir, config), extension.lower()))
    return sources


def _extension(path: str) -> str:
    return path.split("?")[0].rsplit(".", 1)[-1].lower()


def _video_mime_type(extension: str) -> str:
    return VIDEO_MIME_TYPES.get(extension, "video/mp4")
