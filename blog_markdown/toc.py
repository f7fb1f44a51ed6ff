"""Table of contents generation for rendered posts."""

from __future__ import annotations

from collections.abc import Sequence


def build_toc(levels: Sequence[int], anchors: Sequence[str]) -> str:
    """Build nested-list markup from heading levels and their anchors.

    The first entry opens ``level`` nested lists. Each later entry opens one
    list per level it rises, closes one list (and the item holding it) per
    level it drops, or just closes the previous item when the level is
    unchanged. Levels below 1 are treated as 1, so any sequence of levels
    produces balanced markup.

    Args:
        levels: Heading levels, index-aligned with `anchors`.
        anchors: Link markup for each heading.

    Returns:
        str: ``<ul>``/``<li>`` markup, or an empty string when there are no
        headings.

    Examples:
        build_toc([2, 3], ['<a href="#0">A</a>', '<a href="#2">B</a>'])
        # '<ul><ul><li><a href="#0">A</a><ul><li><a href="#2">B</a></li></ul></li></ul></ul>'
    """
    parts: list[str] = []
    # One flag per open list: whether it sits inside a list item.
    open_lists: list[bool] = []
    previous_level = 0

    for level, anchor in zip(levels, anchors):
        level = max(1, int(level))

        if previous_level == 0:
            for _ in range(level):
                _open_list(parts, open_lists, inside_item=False)
        elif level > previous_level:
            _open_list(parts, open_lists, inside_item=True)
            for _ in range(level - previous_level - 1):
                _open_list(parts, open_lists, inside_item=False)
        elif level < previous_level:
            parts.append("</li>")
            for _ in range(previous_level - level):
                _close_list(parts, open_lists)
        else:
            parts.append("</li>")

        parts.append(f"<li>{anchor}")
        previous_level = level

    if previous_level:
        parts.append("</li>")
    while open_lists:
        _close_list(parts, open_lists)

    return "".join(parts)


def _open_list(parts: list[str], open_lists: list[bool], inside_item: bool) -> None:
    parts.append("<ul>")
    open_lists.append(inside_item)


def _close_list(parts: list[str], open_lists: list[bool]) -> None:
    parts.append("</ul>")
    if open_lists.pop():
        parts.append("</li>")
