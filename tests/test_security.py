from __future__ import annotations

import pytest

from blog_markdown.config import RenderConfig
from blog_markdown.parser import parse_markdown
from blog_markdown.sanitize import (
    allow_user_html,
    escape_html,
    escape_markdown,
    resolve_asset_path,
    sanitize_url,
)


def test_escape_html_escapes_structural_characters():
    assert escape_html('<a href="x">\'') == "&lt;a href=&quot;x&quot;&gt;&#039;"


def test_escape_html_keeps_numeric_entities():
    assert escape_html("&#42; & more") == "&#42; &amp; more"


def test_escape_html_returns_empty_for_non_strings():
    assert escape_html(None) == ""


def test_escape_markdown_turns_escapes_into_entities():
    assert escape_markdown(r"\*not em\* \[x\]") == "&#042;not em&#042; &#091;x&#093;"


def test_escape_markdown_leaves_code_spans_alone():
    assert escape_markdown(r"keep `\*` as is") == r"keep `\*` as is"


def test_escape_markdown_removes_comments():
    assert escape_markdown("a <!-- hidden --> b") == "a  b"


def test_escape_markdown_removes_reassembled_comments():
    assert "<!--" not in escape_markdown("<!<!-- x -->-- y -->z")


@pytest.mark.parametrize(
    "url",
    ["javascript:alert(1)", "JavaScript:alert(1)", "data:text/html,x", "vbscript:x"],
)
def test_sanitize_url_blocks_unsafe_schemes(url: str):
    assert sanitize_url(url) == "#"


@pytest.mark.parametrize(
    "url",
    ["https://example.com", "HTTP://example.com", "mailto:a@b.c", "page.html", "#top", "/about"],
)
def test_sanitize_url_keeps_safe_urls(url: str):
    assert sanitize_url(url) == url


def test_sanitize_url_uses_configured_schemes():
    config = RenderConfig(link_schemes=("https",))

    assert sanitize_url("http://example.com", config) == "#"
    assert sanitize_url("https://example.com", config) == "https://example.com"


@pytest.mark.parametrize(
    ("src", "base_dir", "expected"),
    [
        ("img/a.png", "wwwroot/post/demo/", "wwwroot/post/demo/img/a.png"),
        ("../a.png", "wwwroot/post/demo", "wwwroot/post/a.png"),
        ("./a.png", "post", "post/a.png"),
        ("a.png?v=2", "post", "post/a.png?v=2"),
        ("wwwroot/img/x.png", "post", "wwwroot/img/x.png"),
        ("post/x.png", "post", "post/x.png"),
        ("/img/x.png", "post", "/img/x.png"),
        ("https://cdn.io/x.png", "post", "https://cdn.io/x.png"),
        ("javascript:x", "post", "#"),
        ("a.png", "", "a.png"),
        ("", "post", ""),
    ],
)
def test_resolve_asset_path(src: str, base_dir: str, expected: str):
    assert resolve_asset_path(src, base_dir) == expected


def test_resolve_asset_path_uses_configured_content_root():
    config = RenderConfig(content_root="content")

    assert resolve_asset_path("content/a.png", "post", config) == "content/a.png"
    assert resolve_asset_path("wwwroot/a.png", "post", config) == "post/wwwroot/a.png"


def test_allow_user_html_drops_event_handlers():
    assert allow_user_html('<b onclick="x()">hi</b>', "") == "<b>hi</b>"


def test_allow_user_html_escapes_unknown_tags():
    assert allow_user_html("<script>x</script>", "") == "&lt;script&gt;x&lt;/script&gt;"


def test_allow_user_html_neutralises_unsafe_href():
    assert allow_user_html('<a href="javascript:alert(1)">x</a>', "") == '<a href="#">x</a>'


def test_allow_user_html_rewrites_sources():
    assert allow_user_html('<img src="pic.png" alt="P">', "wwwroot/post/a") == (
        '<img src="wwwroot/post/a/pic.png" alt="P" />'
    )


def test_allow_user_html_rewrites_srcset():
    markup = allow_user_html('<img srcset="a.png 1x, b.png 2x">', "post")

    assert markup == '<img srcset="post/a.png 1x, post/b.png 2x" />'


def test_allow_user_html_keeps_data_and_aria_attributes():
    markup = allow_user_html('<span data-x="1" aria-label="L" style="color:red">t</span>', "")

    assert markup == '<span data-x="1" aria-label="L" style="color:red">t</span>'


def test_allow_user_html_escapes_text_between_tags():
    assert allow_user_html("<i>a & b</i> > c", "") == "<i>a &amp; b</i> &gt; c"


def test_allow_user_html_closes_void_tags():
    assert allow_user_html("one<br>two", "") == "one<br />two"


def test_rendered_post_never_contains_script_tags():
    post = parse_markdown(
        "<script>alert(1)</script>\n\n[x](javascript:alert(1))\n\n<img src=x onerror=alert(1)>"
    ).post

    assert "<script" not in post
    assert "javascript:" not in post
    assert "onerror" not in post


def test_allow_user_html_encodes_markdown_markers_in_attributes():
    markup = allow_user_html('<span title="*a* `b` ~~c~~ [d](e)">x</span>', "")

    assert markup == (
        '<span title="&#042;a&#042; &#096;b&#096; &#126;&#126;c&#126;&#126; '
        '&#091;d&#093;&#040;e&#041;">x</span>'
    )


def test_markdown_link_inside_attribute_cannot_break_out():
    post = parse_markdown('see <img src="x.png" alt="[a](onerror=alert&#40;1&#41;//)">').post

    assert post == (
        '<p>see <img src="x.png" alt="&#091;a&#093;&#040;onerror=alert&#40;1&#41;//&#041;" /></p>'
    )


def test_markdown_link_inside_list_item_attribute_stays_text():
    post = parse_markdown('- <span title="[a](b)">t</span>').post

    assert post == '<ul><li><span title="&#091;a&#093;&#040;b&#041;">t</span></li></ul>'


def test_link_title_holding_html_is_escaped():
    post = parse_markdown('[a](x "<span title=q>t</span>")').post

    assert post == (
        '<p><a href="x" title="&lt;span title=&quot;q&quot;&gt;t&lt;/span&gt;">a</a></p>'
    )


def test_image_alt_holding_html_is_escaped():
    post = parse_markdown('![<b class="c">x</b>](a.png)').post

    assert post == '<p><img src="a.png" alt="&lt;b class=&quot;c&quot;&gt;x&lt;/b&gt;"></p>'


def test_html_inside_code_span_is_escaped():
    post = parse_markdown("run `<b>x</b>` now").post

    assert post == '<p>run <code class="inline">&lt;b&gt;x&lt;/b&gt;</code> now</p>'
