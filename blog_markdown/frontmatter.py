"""Front matter handling for markdown posts."""

from __future__ import annotations

import logging

import yaml

logger = logging.getLogger(__name__)

FRONT_MATTER_DELIMITER = "---"


def parse_front_matter(content: str) -> tuple[dict[str, object], str]:
    """Split a leading ``---`` metadata block from the post body.

    The content is trimmed first. The block must open on the first line and
    close with a line containing only ``---``; otherwise no metadata is
    returned and the whole trimmed text is the body. Metadata is read with
    ``yaml.safe_load``; when that fails, plain ``key: value`` lines and
    ``- item`` lists are still picked up.

    Args:
        content: Raw markdown, possibly starting with front matter.

    Returns:
        tuple[dict[str, object], str]: Metadata mapping and the trimmed body.

    Examples:
        parse_front_matter("---\\ntitle: Hello\\n---\\n# Body")  # ({"title": "Hello"}, "# Body")
    """
    trimmed = str(content or "").strip()
    if not trimmed.startswith(FRONT_MATTER_DELIMITER):
        return {}, trimmed

    lines = trimmed.split("\n")
    end_index = next(
        (
            index
            for index in range(1, len(lines))
            if lines[index].strip() == FRONT_MATTER_DELIMITER
        ),
        None,
    )
    if end_index is None:
        return {}, trimmed

    metadata_lines = lines[1:end_index]
    body = "\n".join(lines[end_index + 1 :]).strip()

    try:
        metadata = yaml.safe_load("\n".join(metadata_lines)) or {}
    except yaml.YAMLError:
        logger.debug("Front matter is not valid YAML; using key/value fallback")
        metadata = _parse_simple_metadata(metadata_lines)

    if not isinstance(metadata, dict):
        metadata = {}

    return metadata, body


def strip_front_matter(content: str) -> str:
    """Return the post body without its front matter."""
    _, body = parse_front_matter(content)
    return body


def _parse_simple_metadata(lines: list[str]) -> dict[str, object]:
    metadata: dict[str, object] = {}
    current_list: list[str] | None = None

    for line in lines:
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue

        if stripped.startswith("- "):
            if current_list is not None:
                current_list.append(stripped[2:].strip())
            continue

        key, separator, value = stripped.partition(":")
        key = key.strip()
        if not separator or not key:
            continue

        value = value.strip()
        if value:
            metadata[key] = value.strip("\"'")
            current_list = None
        else:
            current_list = []
            metadata[key] = current_list

    return metadata
