from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

import blog_markdown.parser as parser_module
from blog_markdown.config import ConfigError, RenderConfig
from blog_markdown.models import RenderResult
from blog_markdown.parser import RenderFileError, parse_markdown, render_file

ANCHOR = '<a class="anchor" href="#{0}" aria-label="Permalink">#</a>'


def _md(content: str) -> str:
    return textwrap.dedent(content).strip("\n")


def test_heading_and_paragraph_with_emphasis():
    result = parse_markdown("# Title\n\nSome *em* and **bold**.")

    assert result.post == (
        f'<h1 id="0">{ANCHOR.format(0)}Title</h1>'
        "<p>Some <em>em</em> and <strong>bold</strong>.</p>"
    )
    assert result.toc == ""


def test_callout_absorbs_lazy_continuation():
    result = parse_markdown("> [!warning] Careful\nDo X")

    assert result.post == (
        '<div class="callout callout-warning" data-callout="warning">'
        '<div class="callout-title">'
        '<span class="callout-icon" aria-hidden="true">⚠️</span>'
        '<span class="callout-label">Careful</span></div>'
        '<div class="callout-body"><p>Do X</p></div></div>'
    )


def test_callout_uses_type_label_and_alias():
    post = parse_markdown("> [!hint]\n> Try this").post

    assert 'data-callout="tip"' in post
    assert '<span class="callout-label">Tip</span>' in post
    assert '<div class="callout-body"><p>Try this</p></div>' in post


def test_unknown_callout_type_uses_default():
    assert 'data-callout="note"' in parse_markdown("> [!custom] Title").post

    config = RenderConfig(default_callout="info")
    assert 'data-callout="info"' in parse_markdown("> [!custom] Title", config=config).post


def test_foldable_callout_renders_details():
    collapsed = parse_markdown("> [!tip]- Hidden\n> body").post
    expanded = parse_markdown("> [!tip]+ Shown\n> body").post

    assert collapsed.startswith(
        '<details class="callout callout-tip is-collapsible" data-callout="tip">'
    )
    assert '<summary class="callout-title">' in collapsed
    assert collapsed.endswith("</details>")
    assert 'data-callout="tip" open>' in expanded


def test_callout_continuation_stops_at_list():
    post = parse_markdown("> [!note]\n- item").post

    assert post.endswith('<div class="callout-body"></div></div><ul><li>item</li></ul>')


def test_plain_blockquote():
    assert parse_markdown("> quoted").post == "<blockquote><p>quoted</p></blockquote>"


def test_nested_quotes_past_depth_limit_degrade_to_text():
    config = RenderConfig(max_depth=1)

    result = parse_markdown("> > > deep", config=config)

    assert result.post == "<blockquote><blockquote>&gt; deep</blockquote></blockquote>"


def test_big_fence_keeps_inner_fence_literal():
    markdown = _md(
        """
        ````
        ```python
        print(1)
        ```
        ````
        """
    )

    result = parse_markdown(markdown)

    assert result.post == (
        '<pre class="code-block"><code>```python\nprint(1)\n```\n</code></pre>'
    )


def test_fenced_code_is_escaped_and_not_formatted():
    result = parse_markdown("```html\n<b>**x**</b> & y\n```")

    assert result.post == (
        '<pre class="code-block"><code class="language-html">'
        "&lt;b&gt;**x**&lt;/b&gt; &amp; y\n</code></pre>"
    )


def test_indented_fence_strips_indent_and_adds_class():
    markdown = "Intro\n\n    ```js\n    let a;\n    ```"

    result = parse_markdown(markdown)

    assert result.post == (
        "<p>Intro</p>"
        '<pre class="code-block code-indent-1"><code class="language-js">let a;\n</code></pre>'
    )


def test_unclosed_fence_is_closed_at_end():
    assert parse_markdown("```\ncode").post == '<pre class="code-block"><code>code\n</code></pre>'


def test_table_with_header_and_body():
    markdown = _md(
        """
        | a | b |
        | --- | --- |
        | 1 | 2 |
        """
    )

    result = parse_markdown(markdown)

    assert result.post == (
        '<div class="table-wrap"><table><thead><tr>'
        "<th><p>a</p></th><th><p>b</p></th>"
        "</tr></thead><tbody>"
        "<tr><td><p>1</p></td><td><p>2</p></td></tr>"
        "</tbody></table></div>"
    )


def test_pipe_line_without_separator_is_paragraph():
    result = parse_markdown("|a|b|\ntext")

    assert "<table" not in result.post
    assert result.post == "<p>|a|b|<br>text</p>"


def test_table_closes_before_following_text():
    post = parse_markdown("| h |\n| --- |\n| v |\nafter").post

    assert post.endswith("</tbody></table></div><p>after</p>")


def test_todo_list():
    result = parse_markdown("- [ ] one\n- [x] two")

    assert result.post == (
        '<ul class="todo">'
        '<li><input type="checkbox" id="todo0" disabled><label for="todo0">one</label></li>'
        '<li><input type="checkbox" id="todo1" disabled checked><label for="todo1">two</label></li>'
        "</ul>"
    )


def test_nested_unordered_list():
    markdown = "- a\n- b\n  - c\n- d"

    assert parse_markdown(markdown).post == (
        "<ul><li>a</li><li>b</li><ul><li>c</li></ul><li>d</li></ul>"
    )


def test_ordered_list_keeps_start_number():
    assert parse_markdown("3. three\n4. four").post == (
        '<ol start="3"><li>three</li><li>four</li></ol>'
    )


def test_list_kind_change_at_same_indent_starts_new_list():
    assert parse_markdown("- a\n1. b").post == "<ul><li>a</li></ul><ol><li>b</li></ol>"


def test_level_two_and_three_headings_feed_toc():
    result = parse_markdown("## A\n### B\n## C")

    assert result.post == (
        f'<h2 id="0">{ANCHOR.format(0)}A</h2>'
        f'<h3 id="1">{ANCHOR.format(1)}B</h3>'
        f'<h2 id="2">{ANCHOR.format(2)}C</h2>'
    )
    assert result.toc == (
        '<ul><ul><li><a href="#0">A</a>'
        '<ul><li><a href="#1">B</a></li></ul></li>'
        '<li><a href="#2">C</a></li></ul></ul>'
    )


def test_heading_deeper_than_six_is_paragraph():
    assert parse_markdown("####### seven").post == "<p>####### seven</p>"


def test_front_matter_is_stripped():
    result = parse_markdown("---\ntitle: Hello\n---\n## Intro")

    assert "title" not in result.post
    assert result.post.startswith('<h2 id="0">')


def test_raw_container_block_passes_through():
    markdown = "<details>\n<summary>More</summary>\nHidden\n</details>"

    assert parse_markdown(markdown).post == markdown


def test_raw_container_counts_same_name_nesting():
    markdown = "<div>\n<div>inner</div>\n</div>\nafter"

    assert parse_markdown(markdown).post == "<div>\n<div>inner</div>\n</div><p>after</p>"


def test_disallowed_html_is_escaped():
    post = parse_markdown("<script>alert(1)</script>").post

    assert post == "<p>&lt;script&gt;alert(1)&lt;/script&gt;</p>"


def test_consecutive_lines_get_soft_break():
    assert parse_markdown("line one\nline two").post == "<p>line one<br>line two</p>"


def test_backslash_escapes_stay_literal():
    assert parse_markdown(r"\*literal\*").post == "<p>&#042;literal&#042;</p>"


def test_empty_input_renders_nothing():
    assert parse_markdown("") == RenderResult(post="", toc="")


def test_parse_is_deterministic():
    markdown = "## A\n\n> [!note] N\n> body\n\n| x |\n| --- |\n| y |\n\n- 1\n  - 2"

    assert parse_markdown(markdown) == parse_markdown(markdown)


def test_internal_failure_falls_back_to_escaped_text(monkeypatch):
    def _boom(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(parser_module, "_render", _boom)

    result = parse_markdown("<b>x</b>\ny")

    assert result == RenderResult(post="<p>&lt;b&gt;x&lt;/b&gt;<br>y</p>", toc="")


def test_invalid_config_raises():
    with pytest.raises(ConfigError):
        parse_markdown("text", config=RenderConfig(max_depth=0))


def test_render_file_reads_and_renders(tmp_path: Path):
    target = tmp_path / "index.md"
    target.write_text("## Intro\n\nHello", encoding="utf-8")

    result = render_file(target)

    assert result.post.endswith("<p>Hello</p>")
    assert result.toc == '<ul><ul><li><a href="#0">Intro</a></li></ul></ul>'


def test_render_file_resolves_assets_against_base_dir(tmp_path: Path):
    target = tmp_path / "index.md"
    target.write_text("![Pic](pic.png)", encoding="utf-8")

    result = render_file(target, "wwwroot/post/hello")

    assert result.post == '<p><img src="wwwroot/post/hello/pic.png" alt="Pic"></p>'


def test_render_file_rejects_oversized_file(tmp_path: Path):
    target = tmp_path / "big.md"
    target.write_text("x" * 32, encoding="utf-8")

    with pytest.raises(RenderFileError, match="exceeds the maximum allowed size"):
        render_file(target, config=RenderConfig(max_file_size=8))


def test_render_file_rejects_invalid_utf8(tmp_path: Path):
    target = tmp_path / "bad.md"
    target.write_bytes(b"\xff\xfe\xfa")

    with pytest.raises(RenderFileError, match="Invalid UTF-8"):
        render_file(target)


def test_render_file_reports_missing_file(tmp_path: Path):
    with pytest.raises(RenderFileError):
        render_file(tmp_path / "missing.md")


def test_render_file_wraps_config_errors(tmp_path: Path):
    target = tmp_path / "index.md"
    target.write_text("x", encoding="utf-8")

    with pytest.raises(RenderFileError, match="max_depth"):
        render_file(target, config=RenderConfig(max_depth=100))


def test_callout_alias_in_config_is_resolved():
    result = parse_markdown("> [!custom] T\n> body", config=RenderConfig(default_callout="error"))

    assert result.post.startswith('<div class="callout callout-danger" data-callout="danger">')
    assert '<div class="callout-body"><p>body</p></div>' in result.post


def test_link_schemes_are_normalised_before_rendering():
    upper = RenderConfig(link_schemes=("HTTPS",))
    single = RenderConfig(link_schemes="https")

    assert parse_markdown("[a](https://a.io)", config=upper).post == (
        '<p><a href="https://a.io">a</a></p>'
    )
    assert parse_markdown("[a](http://a.io)", config=single).post == '<p><a href="#">a</a></p>'
    assert parse_markdown("[a](ttp://b)", config=single).post == '<p><a href="#">a</a></p>'


def test_render_file_normalises_config(tmp_path: Path):
    target = tmp_path / "index.md"
    target.write_text("> [!custom]", encoding="utf-8")

    result = render_file(target, config=RenderConfig(default_callout="Hint"))

    assert 'data-callout="tip"' in result.post


def test_failed_callout_falls_back_to_blockquote(monkeypatch):
    def _boom(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(parser_module, "_render_callout", _boom)

    post = parse_markdown("> [!note] T\n> body").post

    assert post == "<blockquote><p>[!note] T<br>body</p></blockquote>"


def test_table_cells_past_depth_limit_are_escaped_text():
    markdown = "> | **a** |\n> | --- |\n> | <b>b</b> |"

    post = parse_markdown(markdown, config=RenderConfig(max_depth=1)).post

    assert post == (
        '<blockquote><div class="table-wrap"><table><thead><tr><th>**a**</th></tr></thead>'
        "<tbody><tr><td>&lt;b&gt;b&lt;/b&gt;</td></tr></tbody></table></div></blockquote>"
    )


def test_long_backtick_line_closes_three_backtick_fence():
    result = parse_markdown("```\ncode\n````\nafter")

    assert result.post == '<pre class="code-block"><code>code\n</code></pre><p>after</p>'
