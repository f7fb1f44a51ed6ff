import datetime

from blog_markdown.frontmatter import parse_front_matter, strip_front_matter


def test_parses_yaml_metadata():
    metadata, body = parse_front_matter("---\ntitle: Hello\ntags:\n  - a\n  - b\n---\n# Body")

    assert metadata == {"title": "Hello", "tags": ["a", "b"]}
    assert body == "# Body"


def test_yaml_dates_are_parsed():
    metadata, _ = parse_front_matter("---\ndate: 2024-01-02\n---\nx")

    assert metadata["date"] == datetime.date(2024, 1, 2)


def test_invalid_yaml_falls_back_to_key_values():
    metadata, body = parse_front_matter("---\ntitle: [broken\ntags:\n- x\n---\nBody")

    assert metadata == {"title": "[broken", "tags": ["x"]}
    assert body == "Body"


def test_non_mapping_metadata_is_ignored():
    metadata, body = parse_front_matter("---\njust text\n---\nBody")

    assert metadata == {}
    assert body == "Body"


def test_unclosed_block_is_body():
    metadata, body = parse_front_matter("---\ntitle: x\n")

    assert metadata == {}
    assert body == "---\ntitle: x"


def test_content_without_front_matter_is_trimmed():
    assert parse_front_matter("\n\n# Hi\n\n") == ({}, "# Hi")


def test_empty_block():
    assert parse_front_matter("---\n---\ntext") == ({}, "text")


def test_strip_front_matter_returns_body():
    assert strip_front_matter("---\na: 1\n---\n\nBody text\n") == "Body text"
