"""
blog-markdown: markdown-to-HTML renderer for blog posts.

This package can be used both as a CLI tool and as a library.

CLI Usage:
    blog-markdown wwwroot/post/hello/index.md

Library Usage:
    from blog_markdown import parse_markdown

    result = parse_markdown(markdown_text, "wwwroot/post/hello/")
    body_html = result.post
    toc_html = result.toc
"""

from .config import ConfigError, RenderConfig
from .content import compute_read_time, extract_excerpt, strip_markdown_to_text
from .exceptions import NestingTooDeepError, RenderError
from .frontmatter import parse_front_matter, strip_front_matter
from .inline import format_inline
from .models import RenderResult
from .parser import RenderFileError, parse_markdown, render_file
from .toc import build_toc

__version__ = "0.1.0"

__all__ = [
    # Core functionality
    "parse_markdown",
    "render_file",
    "format_inline",
    "build_toc",
    # Front matter and summaries
    "parse_front_matter",
    "strip_front_matter",
    "extract_excerpt",
    "compute_read_time",
    "strip_markdown_to_text",
    # Data models
    "RenderConfig",
    "RenderResult",
    # Exceptions
    "ConfigError",
    "NestingTooDeepError",
    "RenderError",
    "RenderFileError",
    # Version
    "__version__",
]
