from __future__ import annotations

import pytest

from blog_markdown.content import (
    compute_read_time,
    extract_excerpt,
    limit_words,
    strip_markdown_to_text,
)


@pytest.mark.parametrize(
    ("markdown", "expected"),
    [
        ("- **Bold** [link](x)", "Bold link"),
        ("> quoted *text*", "quoted text"),
        ("1. ~~gone~~ `code`", "gone code"),
        ("![alt](a.png) after", "alt after"),
        ("# Heading\nbody", "body"),
        ("| a | b |\ntext", "text"),
        ("```\nignored words\n```\nkept", "kept"),
        ("````\n```\nignored\n```\n````\nkept", "kept"),
    ],
)
def test_strip_markdown_to_text(markdown: str, expected: str):
    assert strip_markdown_to_text(markdown) == expected


def test_limit_words_truncates_with_ellipsis():
    assert limit_words("one two three", 2) == "one two…"


def test_limit_words_keeps_short_text():
    assert limit_words("one two", 5) == "one two"


def test_excerpt_prefers_front_matter():
    markdown = "---\nexcerpt: Custom text\n---\n# T\nBody"

    assert extract_excerpt(markdown) == "Custom text"


def test_excerpt_uses_first_heading_section():
    markdown = "# T\nFirst para here.\n## Next\nOther"

    assert extract_excerpt(markdown) == "First para here."


def test_excerpt_without_headings_uses_whole_body():
    assert extract_excerpt("Just **some** words", word_limit=2) == "Just some…"


def test_read_time_rounds_up():
    assert compute_read_time("word " * 450) == 3


def test_read_time_is_at_least_one_minute():
    assert compute_read_time("") == 1


def test_read_time_has_a_speed_floor():
    assert compute_read_time("w " * 150, words_per_minute=50) == 2


def test_read_time_ignores_front_matter_and_code():
    markdown = "---\ntitle: a b c d e\n---\n```\n" + "code " * 500 + "\n```\nshort"

    assert compute_read_time(markdown) == 1
