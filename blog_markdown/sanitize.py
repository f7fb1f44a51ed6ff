"""Escaping, URL sanitizing, and asset path resolution.

These helpers sit outside the block engine: the engine calls them, but the
policy they apply (which schemes are safe, which tags survive, how paths are
joined) is owned here.
"""

from __future__ import annotations

import re
from urllib.parse import urljoin, urlsplit

from .config import RenderConfig
from .constants import (
    ALLOWED_TAGS,
    DEFAULT_CONTENT_ROOT,
    DEFAULT_LINK_SCHEMES,
    GLOBAL_ATTRIBUTES,
    TAG_ATTRIBUTES,
    VOID_TAGS,
)

_AMPERSAND_PATTERN = re.compile(r"&(?!#[0-9]+;)")
_SCHEME_PATTERN = re.compile(r"^([a-z][a-z0-9+.-]*):", re.IGNORECASE)
_COMMENT_PATTERN = re.compile(r"<!--[\s\S]*?-->")
_TAG_PATTERN = re.compile(r"<\/?([a-zA-Z][a-zA-Z0-9:-]*)\b([^>]*)>")
_ATTRIBUTE_PATTERN = re.compile(
    r"([a-zA-Z_:][\w:.-]*)(?:\s*=\s*(\"([^\"]*)\"|'([^']*)'|([^\s\"'<>`]+)))?"
)

# Inline markdown markers, encoded in attribute values so span formatting
# applied after sanitizing cannot match inside them.
_INLINE_MARKER_ENTITIES = str.maketrans(
    {
        "[": "&#091;",
        "]": "&#093;",
        "(": "&#040;",
        ")": "&#041;",
        "*": "&#042;",
        "~": "&#126;",
        "`": "&#096;",
    }
)

# Backslash escapes and their numeric entities. Order matters: a literal
# backslash must be consumed before the sequences that start with one.
_MARKDOWN_ESCAPES = (
    ("\\\\", "&#092;"),
    ("\\*", "&#042;"),
    ("\\_", "&#095;"),
    ("\\{", "&#123;"),
    ("\\}", "&#125;"),
    ("\\[", "&#091;"),
    ("\\]", "&#093;"),
    ("\\(", "&#040;"),
    ("\\)", "&#041;"),
    ("\\#", "&#035;"),
    ("\\+", "&#043;"),
    ("\\-", "&#045;"),
    ("\\.", "&#046;"),
    ("\\!", "&#033;"),
    ("\\|", "&#124;"),
)


def escape_html(text: str) -> str:
    """Escape text for use in HTML element content and attribute values.

    Numeric character references (``&#42;``) are left as they are so text
    already passed through `escape_markdown` keeps its entities.

    Examples:
        escape_html('<a href="x">')  # "&lt;a href=&quot;x&quot;&gt;"
    """
    if not isinstance(text, str):
        return ""
    return (
        _AMPERSAND_PATTERN.sub("&amp;", text)
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&#039;")
    )


def escape_markdown(text: str) -> str:
    r"""Turn backslash escapes into numeric entities and drop HTML comments.

    Only text outside backtick spans is touched; an escaped backtick (`\``)
    never opens a span.

    Examples:
        escape_markdown(r"\*not em\*")  # "&#042;not em&#042;"
        escape_markdown("keep `\*` as is")  # unchanged
    """
    parts = str(text or "").replace("\\`", "&#096;").split("`")
    result = []
    for index, part in enumerate(parts):
        if index % 2 == 0:
            for sequence, entity in _MARKDOWN_ESCAPES:
                part = part.replace(sequence, entity)
            part = _remove_comments(part)
        result.append(part)
    return "`".join(result)


def _remove_comments(text: str) -> str:
    # Repeat until stable so "<!<!-- -->-- -->" cannot reassemble a comment.
    previous = None
    while previous != text:
        previous = text
        text = _COMMENT_PATTERN.sub("", text)
    return text


def sanitize_url(url: str, config: RenderConfig | None = None) -> str:
    """Restrict a link target to the allowed schemes.

    Relative URLs pass through. URLs with a scheme outside
    ``config.link_schemes`` become ``"#"``.

    Examples:
        sanitize_url("https://example.com")  # unchanged
        sanitize_url("javascript:alert(1)")  # "#"
    """
    allowed = config.link_schemes if config is not None else DEFAULT_LINK_SCHEMES
    candidate = str(url or "").strip()
    match = _SCHEME_PATTERN.match(candidate)
    if not match:
        return candidate
    return candidate if match.group(1).lower() in allowed else "#"


def resolve_asset_path(src: str, base_dir: str, config: RenderConfig | None = None) -> str:
    """Resolve an image or video source against the post directory.

    Sources with a scheme, a leading slash, or a leading ``#`` are sanitized
    and returned. Sources already below `base_dir` or the content root are
    kept. Anything else is joined onto `base_dir` with ``.`` and ``..``
    segments collapsed.

    Args:
        src: Source as written in the markdown.
        base_dir: Directory of the post, relative to the site root.
        config: Configuration providing the content root and link schemes.

    Returns:
        str: Site-relative path (no leading slash), a sanitized URL, or an
        empty string for an empty source.

    Examples:
        resolve_asset_path("img/a.png", "wwwroot/post/demo/")  # "wwwroot/post/demo/img/a.png"
        resolve_asset_path("../a.png", "wwwroot/post/demo")  # "wwwroot/post/a.png"
    """
    source = str(src or "").strip()
    if not source:
        return ""
    if _SCHEME_PATTERN.match(source) or source.startswith(("/", "#")):
        return sanitize_url(source, config)

    content_root = config.content_root if config is not None else DEFAULT_CONTENT_ROOT
    normalized_base = str(base_dir or "").strip("/")
    normalized_root = str(content_root or "").strip("/")
    candidate = source.lstrip("/")

    if normalized_base and candidate.startswith(f"{normalized_base}/"):
        return candidate
    if normalized_root and candidate.startswith(f"{normalized_root}/"):
        return candidate

    prefix = f"{normalized_base}/" if normalized_base else ""
    parts = urlsplit(urljoin(f"http://localhost/{prefix}", candidate))
    path = parts.path.lstrip("/")
    return f"{path}?{parts.query}" if parts.query else path


def allow_user_html(text: str, base_dir: str, config: RenderConfig | None = None) -> str:
    """Keep an allow-listed subset of HTML tags and escape everything else.

    Tags outside the allow-list are escaped as text. Kept tags lose every
    attribute that is not allowed for them; ``href``, ``src`` and ``srcset``
    values are rewritten relative to `base_dir`. Markdown markers in attribute
    values (``[ ] ( ) * ~`` and backticks) become numeric entities.

    Examples:
        allow_user_html('<b onclick="x()">hi</b>', "")  # "<b>hi</b>"
        allow_user_html("<script>x</script>", "")  # "&lt;script&gt;x&lt;/script&gt;"
    """
    source = str(text or "")
    if not source:
        return ""

    output = []
    last = 0
    for match in _TAG_PATTERN.finditer(source):
        output.append(escape_html(source[last : match.start()]))
        last = match.end()
        full = match.group(0)
        name = match.group(1).lower()
        if name not in ALLOWED_TAGS:
            output.append(escape_html(full))
            continue
        if full.startswith("</"):
            output.append(f"</{name}>")
            continue
        self_closing = full.endswith("/>") or name in VOID_TAGS
        attributes = _sanitize_attributes(name, match.group(2) or "", base_dir, config)
        output.append(f"<{name}{attributes}{' />' if self_closing else '>'}")
    output.append(escape_html(source[last:]))
    return "".join(output)


def _is_allowed_attribute(tag: str, attribute: str) -> bool:
    name = attribute.lower()
    if name.startswith("on"):
        return False
    if name.startswith(("data-", "aria-")):
        return True
    if name in GLOBAL_ATTRIBUTES:
        return True
    return name in TAG_ATTRIBUTES.get(tag, ())


def _rewrite_href(value: str, base_dir: str, config: RenderConfig | None) -> str:
    value = value.strip()
    if not value or value.startswith(("#", "?")):
        return value
    if _SCHEME_PATTERN.match(value):
        return sanitize_url(value, config)
    if value.startswith("/"):
        return value
    return resolve_asset_path(value, base_dir, config)


def _rewrite_src(value: str, base_dir: str, config: RenderConfig | None) -> str:
    value = value.strip()
    if not value or value.lower().startswith(("data:", "blob:")):
        return value
    if _SCHEME_PATTERN.match(value):
        return sanitize_url(value, config)
    if value.startswith("/"):
        return value
    return resolve_asset_path(value, base_dir, config)


def _rewrite_srcset(value: str, base_dir: str, config: RenderConfig | None) -> str:
    if not value.strip():
        return value
    candidates = []
    for part in value.split(","):
        bits = part.split()
        if not bits:
            continue
        candidates.append(" ".join([_rewrite_src(bits[0], base_dir, config), *bits[1:]]))
    return ", ".join(candidates)


def _sanitize_attributes(
    tag: str, raw_attributes: str, base_dir: str, config: RenderConfig | None
) -> str:
    output = []
    for match in _ATTRIBUTE_PATTERN.finditer(raw_attributes):
        name = match.group(1)
        if not _is_allowed_attribute(tag, name):
            continue
        name = name.lower()
        if match.group(2) is None:
            output.append(f" {name}")
            continue
        value = next(
            (group for group in match.group(3, 4, 5) if group is not None), ""
        )
        if name == "href":
            value = _rewrite_href(value, base_dir, config)
        elif name == "src":
            value = _rewrite_src(value, base_dir, config)
        elif name == "srcset":
            value = _rewrite_srcset(value, base_dir, config)
        value = escape_html(value).translate(_INLINE_MARKER_ENTITIES)
        output.append(f' {name}="{value}"')
    return "".join(output)
