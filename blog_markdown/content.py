"""Plain-text summaries of markdown posts (excerpts, read time)."""

from __future__ import annotations

import math
import re

from .constants import BIG_FENCE, FENCE
from .frontmatter import parse_front_matter

ELLIPSIS = "…"

_HEADING_LINE = re.compile(r"^\s*#+\s*")
_HEADING_START = re.compile(r"^\s*#")
_QUOTE_PREFIX = re.compile(r"^\s*>\s?")
_UNORDERED_MARKER = re.compile(r"^\s*[-*+]\s+")
_ORDERED_MARKER = re.compile(r"^\s*\d{1,9}[.)]\s+")
_TEXT_REPLACEMENTS = (
    (re.compile(r"!\[([^\]]*)\]\([^)]*\)"), r"\1"),
    (re.compile(r"\[([^\]]+)\]\([^)]*\)"), r"\1"),
    (re.compile(r"`([^`]*)`"), r"\1"),
    (re.compile(r"\*\*([^*]+)\*\*"), r"\1"),
    (re.compile(r"\*([^*]+)\*"), r"\1"),
    (re.compile(r"~~([^~]+)~~"), r"\1"),
    (re.compile(r"_([^_]+)_"), r"\1"),
)


def strip_markdown_to_text(markdown: str) -> str:
    """Reduce markdown to plain text for snippets.

    Code blocks, tables, and headings are dropped; quote and list markers are
    removed; links and images keep their text; emphasis markers go away.

    Examples:
        strip_markdown_to_text("- **Bold** [link](x)")  # "Bold link"
    """
    text = []
    in_code = in_big_code = False

    for line in str(markdown or "").split("\n"):
        if line.startswith(BIG_FENCE):
            in_big_code = not in_big_code
            continue
        if in_big_code:
            continue
        if line.startswith(FENCE):
            in_code = not in_code
            continue
        if in_code:
            continue
        if line.strip().startswith("|") or _HEADING_LINE.match(line):
            continue

        line = _QUOTE_PREFIX.sub("", line, count=1)
        line = _UNORDERED_MARKER.sub("", line, count=1)
        line = _ORDERED_MARKER.sub("", line, count=1)
        for pattern, replacement in _TEXT_REPLACEMENTS:
            line = pattern.sub(replacement, line)
        text.append(line.strip())

    return " ".join(" ".join(text).split())


def limit_words(text: str, limit: int) -> str:
    """Truncate text to `limit` words, appending an ellipsis when cut.

    Examples:
        limit_words("one two three", 2)  # "one two…"
    """
    text = str(text or "")
    words = text.split()
    if len(words) <= limit:
        return text
    return " ".join(words[:limit]) + ELLIPSIS


def extract_excerpt(markdown: str, word_limit: int = 50) -> str:
    """Build a short excerpt for a post.

    The front-matter ``excerpt`` wins when present. Otherwise the text under
    the first heading (up to the next heading) is used, or the whole body
    when the post has no heading.
    """
    metadata, body = parse_front_matter(markdown)
    if metadata.get("excerpt"):
        return limit_words(str(metadata["excerpt"]), word_limit)

    lines = body.split("\n")
    headings = [index for index, line in enumerate(lines) if _HEADING_START.match(line)]
    if not headings:
        return limit_words(strip_markdown_to_text(body), word_limit)

    start = headings[0] + 1
    end = headings[1] if len(headings) > 1 else len(lines)
    segment = "\n".join(lines[start:end])
    return limit_words(strip_markdown_to_text(segment), word_limit)


def compute_read_time(markdown: str, words_per_minute: int = 200) -> int:
    """Estimate reading time in whole minutes (at least 1).

    Speeds below 100 words per minute are raised to 100.
    """
    _, body = parse_front_matter(markdown)
    words = len(strip_markdown_to_text(body).split())
    return max(1, math.ceil(words / max(100, words_per_minute or 200)))
