"""Markdown rendering engine."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from .config import ConfigError, RenderConfig, normalize_config, validate_config
from .constants import (
    BIG_FENCE,
    CALLOUT_ALIASES,
    CALLOUT_PATTERN,
    CALLOUT_TYPES,
    FENCE,
    LINE_BREAK,
    MAX_HEADING_LEVEL,
    ORDERED_ITEM_PATTERN,
    RAW_BLOCK_TAGS,
    RAW_CONTAINER_TAGS,
    RAW_TAG_PATTERN,
    TABLE_SEPARATOR_CELL_PATTERN,
    TOC_LEVELS,
    TODO_PATTERN,
    UNORDERED_ITEM_PATTERN,
    VOID_TAGS,
)
from .exceptions import NestingTooDeepError, RenderError
from .filesystem import collect_file_stat, enforce_file_size, safe_read
from .frontmatter import strip_front_matter
from .inline import format_inline
from .models import BlockState, HeadingRecord, ListFrame, ListKind, ParserContext, RenderResult
from .sanitize import allow_user_html, escape_html, escape_markdown
from .toc import build_toc

logger = logging.getLogger(__name__)

_CODE_STATES = (BlockState.FENCED_CODE, BlockState.BIG_FENCED_CODE)


@dataclass(frozen=True)
class RawBlock:
    """An allow-listed HTML tag opening a raw block line.

    Attributes:
        name: Lowercased tag name.
        container: True when lines are captured up to the matching closing tag.
    """

    name: str
    container: bool


def count_indent(prefix: str) -> int:
    """Count indent units in a whitespace prefix (space 1, tab 4).

    Examples:
        count_indent("  \\t")  # 6
    """
    columns = 0
    for character in prefix:
        if character == " ":
            columns += 1
        elif character == "\t":
            columns += 4
        else:
            break
    return columns


def is_table_separator(line: str) -> bool:
    """Check whether a line is a pipe-table separator row such as ``| --- | :-: |``.

    Examples:
        is_table_separator("| --- | :---: |")  # True
        is_table_separator("| a | b |")  # False
    """
    stripped = str(line or "").strip()
    if not stripped.startswith("|"):
        return False
    cells = stripped.split("|")[1:-1]
    if not cells:
        return False
    return all(TABLE_SEPARATOR_CELL_PATTERN.match(cell) for cell in cells)


def match_raw_block(text: str) -> RawBlock | None:
    """Classify a trimmed line that starts with an allow-listed block tag.

    Closing tags, void tags and self-closing tags are single-line blocks.
    Opening tags in the container subset capture following lines.

    Examples:
        match_raw_block("<details>")  # RawBlock(name="details", container=True)
        match_raw_block("</div>")  # RawBlock(name="div", container=False)
        match_raw_block("<span>x</span>")  # None
    """
    match = RAW_TAG_PATTERN.match(text)
    if not match:
        return None
    closing, name, self_closing = match.group(1), match.group(2).lower(), match.group(3)
    if name not in RAW_BLOCK_TAGS:
        return None
    if closing or self_closing or name in VOID_TAGS:
        return RawBlock(name=name, container=False)
    return RawBlock(name=name, container=name in RAW_CONTAINER_TAGS)


def parse_markdown(
    markdown: str, base_dir: str = "", config: RenderConfig | None = None
) -> RenderResult:
    """Render a markdown post into body markup and a table of contents.

    Front matter is stripped first. Lines are then classified one at a time
    as fenced code, blockquote or callout, pipe table, to-do list, list,
    heading, raw HTML block, blank line, or paragraph text. Level 2 and 3
    headings feed the table of contents. Content problems never raise: each
    construct degrades to escaped text instead.

    Args:
        markdown: Markdown source, optionally with front matter.
        base_dir: Post directory used to resolve relative images and videos.
        config: Rendering configuration. Defaults to a new `RenderConfig`.

    Returns:
        RenderResult: Body markup and table-of-contents markup.

    Raises:
        ConfigError: If the configuration fails validation.

    Examples:
        parse_markdown("# Title\\n\\n## Section\\n", "wwwroot/post/demo/")
    """
    config = normalize_config(config or RenderConfig())
    validate_config(config)
    text = markdown if isinstance(markdown, str) else str(markdown or "")

    try:
        return _render(text, str(base_dir or ""), config, depth=0)
    except Exception:
        logger.warning("Rendering failed; falling back to escaped text", exc_info=True)
        return RenderResult(post=_escaped_paragraph(text), toc="")


def _render(markdown: str, base_dir: str, config: RenderConfig, depth: int) -> RenderResult:
    if depth > config.max_depth:
        raise NestingTooDeepError(depth, config.max_depth)

    lines = strip_front_matter(markdown).split("\n")
    ctx = ParserContext(base_dir=base_dir, config=config, depth=depth)

    index = 0
    while index < len(lines):
        index = _process_line(ctx, lines, index)
    _close_all_blocks(ctx)

    toc = build_toc(
        [heading.level for heading in ctx.headings],
        [heading.anchor for heading in ctx.headings],
    )
    return RenderResult(post="".join(ctx.output), toc=toc)


def _render_nested(ctx: ParserContext, markdown: str) -> str:
    return _render(markdown, ctx.base_dir, ctx.config, ctx.depth + 1).post


def _process_line(ctx: ParserContext, lines: list[str], index: int) -> int:
    """Render the block starting at `index` and return the next line index."""
    line = lines[index]

    if _try_fence(ctx, line):
        return index + 1

    raw_line = escape_markdown(line)

    next_index = _try_blockquote(ctx, lines, index, raw_line)
    if next_index is not None:
        return next_index

    next_index = _try_table(ctx, lines, index, raw_line)
    if next_index is not None:
        return next_index

    if _try_todo(ctx, lines, index, raw_line):
        return index + 1

    if _try_list_item(ctx, lines, index, raw_line):
        return index + 1

    if _try_heading(ctx, index, raw_line):
        return index + 1

    next_index = _try_raw_block(ctx, lines, index, raw_line)
    if next_index is not None:
        return next_index

    if not raw_line.strip():
        _close_lists(ctx)
        _close_paragraph(ctx)
        return index + 1

    _append_paragraph_text(ctx, lines, index, raw_line)
    return index + 1


def _try_fence(ctx: ParserContext, line: str) -> bool:
    """Open, close, or continue a fenced code block.

    Returns:
        bool: True when the line belongs to a fence (including its delimiters).
    """
    stripped = line.lstrip()
    indent = line[: len(line) - len(stripped)]

    if ctx.state is BlockState.BIG_FENCED_CODE:
        if stripped.startswith(BIG_FENCE):
            _close_fence(ctx)
        else:
            _append_code_line(ctx, line)
        return True

    if ctx.state is BlockState.FENCED_CODE:
        if stripped.startswith(FENCE):
            _close_fence(ctx)
        else:
            _append_code_line(ctx, line)
        return True

    if stripped.startswith(BIG_FENCE):
        _open_fence(ctx, BlockState.BIG_FENCED_CODE, indent, stripped[len(BIG_FENCE) :])
        return True

    if stripped.startswith(FENCE):
        _open_fence(ctx, BlockState.FENCED_CODE, indent, stripped[len(FENCE) :])
        return True

    return False


def _open_fence(ctx: ParserContext, state: BlockState, indent: str, info: str) -> None:
    _close_paragraph(ctx)
    language = (info.strip().split() or [""])[0].lstrip("`").lower()
    indent_level = len(indent.replace("\t", "    ")) // 4
    indent_class = f" code-indent-{indent_level}" if indent_level > 0 else ""
    language_class = f' class="language-{escape_html(language)}"' if language else ""
    ctx.output.append(f'<pre class="code-block{indent_class}"><code{language_class}>')
    ctx.state = state
    ctx.fence_indent = indent


def _close_fence(ctx: ParserContext) -> None:
    ctx.output.append("</code></pre>")
    ctx.state = BlockState.NONE
    ctx.fence_indent = ""


def _append_code_line(ctx: ParserContext, line: str) -> None:
    if ctx.fence_indent and line.startswith(ctx.fence_indent):
        line = line[len(ctx.fence_indent) :]
    ctx.output.append(f"{escape_html(line)}\n")


def _try_blockquote(
    ctx: ParserContext, lines: list[str], index: int, raw_line: str
) -> int | None:
    if not raw_line.startswith(">"):
        return None

    _close_lists(ctx)
    _close_paragraph(ctx)

    quote_lines = [raw_line[1:].strip()]
    next_index = index + 1
    while next_index < len(lines) and lines[next_index].startswith(">"):
        quote_lines.append(lines[next_index][1:].strip())
        next_index += 1

    if CALLOUT_PATTERN.match(quote_lines[0]):
        while next_index < len(lines) and _is_lazy_continuation(lines[next_index]):
            quote_lines.append(lines[next_index].strip())
            next_index += 1

    ctx.output.append(_render_quote_group(ctx, "\n".join(quote_lines)))
    return next_index


def _is_lazy_continuation(line: str) -> bool:
    raw_line = escape_markdown(line)
    stripped = raw_line.strip()
    if not stripped:
        return False
    if raw_line.startswith((">", "|", "#")) or stripped.startswith(FENCE):
        return False
    if TODO_PATTERN.match(raw_line) or _match_list_item(raw_line):
        return False
    return match_raw_block(stripped) is None


def _render_quote_group(ctx: ParserContext, quote: str) -> str:
    """Render a quote group as a callout, a blockquote, or escaped text.

    Each tier is only tried when the one before it raised.
    """
    try:
        callout = _render_callout(ctx, quote)
        if callout is not None:
            return callout
    except Exception:
        logger.debug("Callout rendering failed; falling back to blockquote", exc_info=True)

    try:
        return f"<blockquote>{_render_nested(ctx, quote)}</blockquote>"
    except Exception:
        logger.debug("Blockquote rendering failed; falling back to escaped text", exc_info=True)

    escaped = escape_html(quote).replace("\n", LINE_BREAK)
    return f"<blockquote>{escaped}</blockquote>"


def _render_callout(ctx: ParserContext, quote: str) -> str | None:
    first_line, _, body = quote.partition("\n")
    match = CALLOUT_PATTERN.match(first_line)
    if not match:
        return None

    callout_type = _resolve_callout_type(match.group(1), ctx.config)
    fold, title = match.group(2), (match.group(3) or "").strip()
    default_label, icon = CALLOUT_TYPES[callout_type]
    label = (
        format_inline(escape_html(title), ctx.base_dir, ctx.config)
        if title
        else default_label
    )
    body_markup = _render_nested(ctx, body) if body.strip() else ""

    title_parts = (
        f'<span class="callout-icon" aria-hidden="true">{icon}</span>'
        f'<span class="callout-label">{label}</span>'
    )
    body_part = f'<div class="callout-body">{body_markup}</div>'

    if fold:
        open_attr = " open" if fold == "+" else ""
        return (
            f'<details class="callout callout-{callout_type} is-collapsible" '
            f'data-callout="{callout_type}"{open_attr}>'
            f'<summary class="callout-title">{title_parts}</summary>{body_part}</details>'
        )
    return (
        f'<div class="callout callout-{callout_type}" data-callout="{callout_type}">'
        f'<div class="callout-title">{title_parts}</div>{body_part}</div>'
    )


def _resolve_callout_type(name: str, config: RenderConfig) -> str:
    callout_type = name.lower()
    callout_type = CALLOUT_ALIASES.get(callout_type, callout_type)
    if callout_type not in CALLOUT_TYPES:
        return config.default_callout
    return callout_type


def _try_table(ctx: ParserContext, lines: list[str], index: int, raw_line: str) -> int | None:
    if not raw_line.startswith("|"):
        if ctx.state is BlockState.TABLE:
            _close_table(ctx)
        return None

    _close_paragraph(ctx)
    cells = raw_line.split("|")[1:-1]
    next_index = index + 1

    if ctx.state is not BlockState.TABLE:
        if next_index < len(lines) and is_table_separator(lines[next_index]):
            ctx.output.append('<div class="table-wrap"><table><thead><tr>')
            ctx.output.extend(f"<th>{_render_cell(ctx, cell)}</th>" for cell in cells)
            ctx.output.append("</tr></thead><tbody>")
            ctx.state = BlockState.TABLE
            next_index += 1
        else:
            # Not a header row; the line is ordinary paragraph text.
            _append_paragraph_text(ctx, lines, index, raw_line)
            return next_index
    else:
        if is_table_separator(lines[index]):
            return next_index
        ctx.output.append("<tr>")
        ctx.output.extend(f"<td>{_render_cell(ctx, cell)}</td>" for cell in cells)
        ctx.output.append("</tr>")

    if next_index >= len(lines) or not lines[next_index].startswith("|"):
        _close_table(ctx)
    return next_index


def _render_cell(ctx: ParserContext, cell: str) -> str:
    try:
        return _render_nested(ctx, cell.strip())
    except RenderError:
        logger.debug("Table cell nested too deeply; rendering escaped text")
        return escape_html(cell.strip())


def _close_table(ctx: ParserContext) -> None:
    ctx.output.append("</tbody></table></div>")
    ctx.state = BlockState.NONE


def _try_todo(ctx: ParserContext, lines: list[str], index: int, raw_line: str) -> bool:
    match = TODO_PATTERN.match(raw_line)
    if not match:
        if ctx.state is BlockState.TODO_LIST:
            _close_todo(ctx)
        return False

    _close_lists(ctx)
    _close_paragraph(ctx)
    if ctx.state is not BlockState.TODO_LIST:
        ctx.output.append('<ul class="todo">')
        ctx.state = BlockState.TODO_LIST

    label = format_inline(escape_html(raw_line[5:].strip()), ctx.base_dir, ctx.config)
    checked = " checked" if match.group(1) == "x" else ""
    ctx.output.append(
        f'<li><input type="checkbox" id="todo{index}" disabled{checked}>'
        f'<label for="todo{index}">{label}</label></li>'
    )

    next_index = index + 1
    if next_index >= len(lines) or not TODO_PATTERN.match(escape_markdown(lines[next_index])):
        _close_todo(ctx)
    return True


def _close_todo(ctx: ParserContext) -> None:
    ctx.output.append("</ul>")
    ctx.state = BlockState.NONE


def _match_list_item(raw_line: str) -> tuple[str, ListKind, str, int | None] | None:
    """Match a list item as ``(indent, kind, content, start number)``."""
    match = UNORDERED_ITEM_PATTERN.match(raw_line)
    if match:
        return match.group(1), ListKind.UNORDERED, match.group(2), None
    match = ORDERED_ITEM_PATTERN.match(raw_line)
    if match:
        return match.group(1), ListKind.ORDERED, match.group(3), int(match.group(2))
    return None


def _try_list_item(ctx: ParserContext, lines: list[str], index: int, raw_line: str) -> bool:
    item = _match_list_item(raw_line)
    if item is None:
        _close_lists(ctx)
        return False

    prefix, kind, content, start = item
    indent = count_indent(prefix)
    _close_paragraph(ctx)

    stack = ctx.list_stack
    if not stack or indent > stack[-1].indent:
        _open_list(ctx, kind, indent, start)
    else:
        while stack and indent < stack[-1].indent:
            _close_list(ctx)
        last = stack[-1] if stack else None
        if last is None or last.kind is not kind:
            if last is not None and last.indent == indent:
                _close_list(ctx)
            _open_list(ctx, kind, indent, start)

    markup = _allow_user_html(ctx, content.strip())
    text = format_inline(markup, ctx.base_dir, ctx.config)
    ctx.output.append(f"<li>{text}</li>")

    next_index = index + 1
    if next_index >= len(lines) or _match_list_item(escape_markdown(lines[next_index])) is None:
        _close_lists(ctx)
    return True


def _open_list(ctx: ParserContext, kind: ListKind, indent: int, start: int | None) -> None:
    if kind is ListKind.ORDERED and start not in (None, 0, 1):
        ctx.output.append(f'<ol start="{start}">')
    else:
        ctx.output.append(f"<{kind.value}>")
    ctx.list_stack.append(ListFrame(indent=indent, kind=kind))


def _close_list(ctx: ParserContext) -> None:
    frame = ctx.list_stack.pop()
    ctx.output.append(f"</{frame.kind.value}>")


def _close_lists(ctx: ParserContext) -> None:
    while ctx.list_stack:
        _close_list(ctx)


def _try_heading(ctx: ParserContext, index: int, raw_line: str) -> bool:
    if not raw_line.startswith("#"):
        return False
    level = len(raw_line) - len(raw_line.lstrip("#"))
    if level > MAX_HEADING_LEVEL:
        return False

    _close_lists(ctx)
    _close_paragraph(ctx)
    text = format_inline(escape_html(raw_line[level:].strip()), ctx.base_dir, ctx.config)
    ctx.output.append(
        f'<h{level} id="{index}"><a class="anchor" href="#{index}" aria-label="Permalink">#</a>'
        f"{text}</h{level}>"
    )
    if level in TOC_LEVELS:
        ctx.headings.append(HeadingRecord(level=level, anchor=f'<a href="#{index}">{text}</a>'))
    return True


def _try_raw_block(
    ctx: ParserContext, lines: list[str], index: int, raw_line: str
) -> int | None:
    block = match_raw_block(raw_line.strip())
    if block is None:
        return None

    _close_lists(ctx)
    _close_paragraph(ctx)
    end = _find_raw_block_end(lines, index, block.name) if block.container else index
    chunk = "\n".join(escape_markdown(line) for line in lines[index : end + 1])
    ctx.output.append(allow_user_html(chunk, ctx.base_dir, ctx.config))
    return end + 1


def _find_raw_block_end(lines: list[str], index: int, name: str) -> int:
    """Find the line holding the closing tag that matches the opening at `index`.

    Same-name tags nested inside are counted. Without a match the block runs
    to the last line.
    """
    open_pattern = re.compile(rf"<{re.escape(name)}\b[^>]*?(?<!/)>", re.IGNORECASE)
    close_pattern = re.compile(rf"</{re.escape(name)}\s*>", re.IGNORECASE)
    depth = 0
    for position in range(index, len(lines)):
        line = escape_markdown(lines[position])
        depth += len(open_pattern.findall(line))
        depth -= len(close_pattern.findall(line))
        if depth <= 0:
            return position
    return len(lines) - 1


def _append_paragraph_text(
    ctx: ParserContext, lines: list[str], index: int, raw_line: str
) -> None:
    markup = _allow_user_html(ctx, raw_line)
    text = format_inline(markup, ctx.base_dir, ctx.config)
    if not text or text == LINE_BREAK:
        return

    if ctx.state is not BlockState.PARAGRAPH:
        ctx.output.append("<p>")
        ctx.state = BlockState.PARAGRAPH
    ctx.output.append(text)

    if _needs_soft_break(lines, index):
        ctx.output.append(LINE_BREAK)


def _allow_user_html(ctx: ParserContext, text: str) -> str:
    """Apply the HTML allow-list outside backtick spans and escape inside them."""
    parts = text.split("`")
    return "`".join(
        allow_user_html(part, ctx.base_dir, ctx.config) if index % 2 == 0 else escape_html(part)
        for index, part in enumerate(parts)
    )


def _needs_soft_break(lines: list[str], index: int) -> bool:
    next_index = index + 1
    if next_index >= len(lines):
        return False
    next_line = escape_markdown(lines[next_index]).strip()
    return bool(next_line) and match_raw_block(next_line) is None


def _close_paragraph(ctx: ParserContext) -> None:
    if ctx.state is BlockState.PARAGRAPH:
        ctx.output.append("</p>")
        ctx.state = BlockState.NONE


def _close_all_blocks(ctx: ParserContext) -> None:
    if ctx.state is BlockState.PARAGRAPH:
        _close_paragraph(ctx)
    elif ctx.state is BlockState.TABLE:
        _close_table(ctx)
    elif ctx.state is BlockState.TODO_LIST:
        _close_todo(ctx)
    elif ctx.state in _CODE_STATES:
        _close_fence(ctx)
    _close_lists(ctx)


def _escaped_paragraph(text: str) -> str:
    escaped = escape_html(text).strip()
    if not escaped:
        return ""
    escaped = escaped.replace("\n", LINE_BREAK)
    return f"<p>{escaped}</p>"


class RenderFileError(Exception):
    """Raised when reading a markdown file for rendering fails."""


def render_file(
    filepath: Path, base_dir: str | None = None, config: RenderConfig | None = None
) -> RenderResult:
    """Read a markdown file and render it.

    Args:
        filepath: Path to the markdown file.
        base_dir: Asset base directory; defaults to the file's parent directory.
        config: Rendering configuration; defaults to a new `RenderConfig`.

    Returns:
        RenderResult: Body and table-of-contents markup.

    Raises:
        RenderFileError: If the configuration is invalid, or the file is too
            large, unreadable, or not valid UTF-8.

    Examples:
        result = render_file(Path("wwwroot/post/hello/index.md"), "wwwroot/post/hello")
    """
    config = normalize_config(config or RenderConfig())
    try:
        validate_config(config)
    except ConfigError as error:
        raise RenderFileError(str(error)) from error

    try:
        enforce_file_size(collect_file_stat(filepath), config.max_file_size, filepath)
        with safe_read(filepath) as file:
            content = file.read()
    except UnicodeDecodeError as error:
        error_message = f"Invalid UTF-8 sequence in {filepath}: {error}"
        raise RenderFileError(error_message) from error
    except IOError as error:
        raise RenderFileError(str(error)) from error

    if base_dir is None:
        base_dir = filepath.parent.as_posix()
    return parse_markdown(content, base_dir, config)
