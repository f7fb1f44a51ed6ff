"""Constants used across the blog-markdown package."""

from __future__ import annotations

import re

# Asset and link defaults
DEFAULT_CONTENT_ROOT = "wwwroot"
DEFAULT_LINK_SCHEMES = ("http", "https", "mailto", "tel")
DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024
DEFAULT_MAX_DEPTH = 16
MAX_DEPTH_LIMIT = 64
MARKDOWN_EXTENSIONS = (".md", ".markdown", ".mdown", ".mkd")

# Fences
FENCE = "```"
BIG_FENCE = "````"

# Block patterns (matched against lines after markdown escaping)
TODO_PATTERN = re.compile(r"^[-*] \[([ x])\]")
UNORDERED_ITEM_PATTERN = re.compile(r"^(\s*)[-*+]\s+(.+)$")
ORDERED_ITEM_PATTERN = re.compile(r"^(\s*)(\d{1,9})[.)]\s+(.+)$")
TABLE_SEPARATOR_CELL_PATTERN = re.compile(r"^\s*:?-{3,}:?\s*$")
CALLOUT_PATTERN = re.compile(r"^\[!([A-Za-z][\w-]*)\]([+-])?(?:\s+(.*?))?\s*$")
RAW_TAG_PATTERN = re.compile(r"^<(/?)([A-Za-z][A-Za-z0-9-]*)\b[^>]*?(/?)>")
MAX_HEADING_LEVEL = 6
TOC_LEVELS = (2, 3)

# Inline patterns, applied in this order outside backtick spans
BOLD_PATTERN = re.compile(r"\*\*(.*?)\*\*")
ITALIC_PATTERN = re.compile(r"\*(.*?)\*")
EMBED_PATTERN = re.compile(r"!\[\[([^\]|]+?)(?:\|([^\]]*))?\]\]")
IMAGE_PATTERN = re.compile(r"!\[(.*?)\]\(([^\s)]*?)(?:\s*&quot;(.*?)&quot;)?\)")
LINK_PATTERN = re.compile(r"(^|[^!])\[(.*?)\]\(([^\s)]*?)(?:\s*&quot;(.*?)&quot;)?\)")
STRIKE_PATTERN = re.compile(r"~~(.*?)~~")
HR_STAR_PATTERN = re.compile(r"^\*\*\*$", re.MULTILINE)
HR_DASH_PATTERN = re.compile(r"^---$", re.MULTILINE)
INLINE_CODE_PATTERN = re.compile(r"`(.*?)`")
VIDEO_SOURCE_PATTERN = re.compile(r"\.(mp4|mov|webm|ogg)(\?.*)?$", re.IGNORECASE)
LINE_BREAK = "<br>"

VIDEO_MIME_TYPES = {
    "mp4": "video/mp4",
    "mov": "video/quicktime",
    "webm": "video/webm",
    "ogg": "video/ogg",
}
VIDEO_FALLBACK_TEXT = "Sorry, your browser doesn't support embedded videos."

# Raw HTML blocks
RAW_CONTAINER_TAGS = frozenset(
    {
        "table", "figure", "details", "video", "picture", "iframe", "div",
        "section", "article", "p", "blockquote", "pre", "code", "ul", "ol",
    }
)
VOID_TAGS = frozenset({"br", "hr", "img", "source", "col", "input", "meta", "link"})
RAW_BLOCK_TAGS = RAW_CONTAINER_TAGS | frozenset(
    {
        "figcaption", "summary", "li", "thead", "tbody", "tfoot", "tr", "td", "th",
        "colgroup", "col", "hr", "br", "img", "source",
        "h1", "h2", "h3", "h4", "h5", "h6",
    }
)

# Allowed inline HTML (tags, attributes)
ALLOWED_TAGS = frozenset(
    {
        "b", "strong", "i", "em", "u", "mark", "small", "sub", "sup", "kbd", "abbr", "ins", "del",
        "span", "div", "section", "article", "p", "br", "hr",
        "blockquote", "pre", "code", "figure", "figcaption",
        "a", "img", "video", "source", "picture",
        "ul", "ol", "li", "table", "thead", "tbody", "tfoot", "tr", "td", "th", "colgroup", "col",
        "details", "summary",
        "h1", "h2", "h3", "h4", "h5", "h6",
        "iframe",
    }
)
GLOBAL_ATTRIBUTES = frozenset({"id", "class", "title", "style", "role", "lang", "dir"})
TAG_ATTRIBUTES = {
    "a": frozenset({"href", "target", "rel", "download"}),
    "img": frozenset(
        {"src", "alt", "width", "height", "loading", "decoding", "srcset", "sizes", "referrerpolicy"}
    ),
    "video": frozenset(
        {"src", "controls", "autoplay", "loop", "muted", "poster", "preload", "playsinline",
         "width", "height"}
    ),
    "source": frozenset({"src", "type", "media", "sizes", "srcset"}),
    "table": frozenset({"border", "summary"}),
    "td": frozenset({"colspan", "rowspan", "headers", "scope", "align", "valign"}),
    "th": frozenset({"colspan", "rowspan", "headers", "scope", "align", "valign"}),
    "iframe": frozenset(
        {"src", "width", "height", "allow", "allowfullscreen", "loading", "referrerpolicy", "title"}
    ),
}

# Callouts: type -> (label, icon)
CALLOUT_TYPES = {
    "note": ("Note", "✏️"),
    "abstract": ("Abstract", "\U0001f4cb"),
    "info": ("Info", "ℹ️"),
    "todo": ("Todo", "☑️"),
    "tip": ("Tip", "\U0001f4a1"),
    "success": ("Success", "✅"),
    "question": ("Question", "❓"),
    "warning": ("Warning", "⚠️"),
    "failure": ("Failure", "❌"),
    "danger": ("Danger", "⚡"),
    "bug": ("Bug", "\U0001f41b"),
    "example": ("Example", "\U0001f4d1"),
    "quote": ("Quote", "\U0001f4ac"),
    "important": ("Important", "❗"),
    "caution": ("Caution", "\U0001f525"),
}
CALLOUT_ALIASES = {
    "summary": "abstract",
    "tldr": "abstract",
    "hint": "tip",
    "check": "success",
    "done": "success",
    "help": "question",
    "faq": "question",
    "attention": "warning",
    "fail": "failure",
    "missing": "failure",
    "error": "danger",
    "cite": "quote",
}
