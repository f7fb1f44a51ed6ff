import dataclasses

import pytest

from blog_markdown.config import RenderConfig
from blog_markdown.models import (
    BlockState,
    HeadingRecord,
    ListFrame,
    ListKind,
    ParserContext,
    RenderResult,
)


def test_block_state_members():
    assert list(BlockState) == [
        BlockState.NONE,
        BlockState.FENCED_CODE,
        BlockState.BIG_FENCED_CODE,
        BlockState.TABLE,
        BlockState.TODO_LIST,
        BlockState.PARAGRAPH,
    ]


def test_list_kind_values_are_tags():
    assert ListKind.UNORDERED.value == "ul"
    assert ListKind.ORDERED.value == "ol"


def test_parser_context_defaults():
    ctx = ParserContext()

    assert ctx.base_dir == ""
    assert ctx.config == RenderConfig()
    assert ctx.depth == 0
    assert ctx.state is BlockState.NONE
    assert ctx.fence_indent == ""
    assert ctx.list_stack == []
    assert ctx.output == []
    assert ctx.headings == []


def test_parser_contexts_do_not_share_buffers():
    first = ParserContext()
    second = ParserContext()

    first.output.append("<p>")
    first.list_stack.append(ListFrame(indent=0, kind=ListKind.UNORDERED))

    assert second.output == []
    assert second.list_stack == []


def test_records_are_frozen():
    with pytest.raises(dataclasses.FrozenInstanceError):
        RenderResult(post="", toc="").post = "x"
    with pytest.raises(dataclasses.FrozenInstanceError):
        HeadingRecord(level=2, anchor="a").level = 3
