"""Package-specific exception types."""

from __future__ import annotations


class RenderError(ValueError):
    """Base class for rendering-related errors.

    Raised inside the block engine and caught by its fallbacks; callers of
    `parse_markdown` never see it.
    """


class NestingTooDeepError(RenderError):
    """Raised when quotes or table cells nest deeper than allowed.

    Args:
        depth: Nesting depth that was requested.
        limit: Maximum depth permitted by the configuration.
    """

    def __init__(self, depth: int, limit: int):
        self.depth = depth
        self.limit = limit
        super().__init__(self._build_message())

    def _build_message(self) -> str:
        return f"Nested content at depth {self.depth} exceeds the limit of {self.limit}"
