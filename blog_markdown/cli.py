"""
Renders a markdown post to HTML.
Prints the post body, its table of contents, or both as JSON; optionally
writes the result to a file instead of stdout.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import click
from .config import ConfigError, build_config
from .content import compute_read_time, extract_excerpt
from .filesystem import (
    collect_file_stat,
    default_base_dir,
    enforce_file_size,
    get_max_file_size,
    normalize_filepath,
    safe_read,
    write_output,
)
from .frontmatter import parse_front_matter
from .parser import parse_markdown

__all__ = ["cli"]


@click.command()
@click.version_option()
@click.option("--base-dir", help="Directory used to resolve relative images and videos")
@click.option("--content-root", help="Site content root")
@click.option("--max-depth", type=int, help="Maximum nesting of quotes and table cells")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["html", "toc", "json"]),
    default="html",
    show_default=True,
    help="What to print: the post body, the table of contents, or both as JSON",
)
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write to a file")
@click.option("--verbose", "-v", is_flag=True, help="Log rendering fallbacks")
@click.argument("filepath", type=click.Path(exists=True, dir_okay=False))
def cli(
    filepath: str,
    base_dir: str | None = None,
    content_root: str | None = None,
    max_depth: int | None = None,
    output_format: str = "html",
    output: str | None = None,
    verbose: bool = False,
):
    """
    Entry point for rendering a markdown post.

    Args:
        filepath: Path to the markdown file to render.
        base_dir: Override for the asset base directory.
        content_root: Override for the site content root.
        max_depth: Override for the maximum nesting depth.
        output_format: `html`, `toc`, or `json`.
        output: Optional file to write instead of printing.
        verbose: Enable debug logging.

    Returns:
        None.

    Raises:
        click.BadParameter: If the path is not a markdown file or a
            configuration value is invalid.
        click.ClickException: If the file is too large, cannot be read, or
            the output cannot be written.

    Examples:
        blog-markdown wwwroot/post/hello/index.md --format json -o hello.json
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        path = normalize_filepath(filepath)
    except ValueError as error:
        raise click.BadParameter(str(error)) from error
    try:
        config = build_config(path.parent, content_root=content_root, max_depth=max_depth)
    except ConfigError as error:
        raise click.BadParameter(str(error)) from error

    try:
        max_file_size = get_max_file_size(default=config.max_file_size)
    except ValueError as error:
        raise click.ClickException(str(error)) from error

    try:
        enforce_file_size(collect_file_stat(path), max_file_size, path)
        with safe_read(path) as file:
            content = file.read()
    except UnicodeDecodeError as error:
        raise click.ClickException(f"Invalid UTF-8 sequence in {path}: {error}") from error
    except IOError as error:
        raise click.ClickException(str(error)) from error

    if base_dir is None:
        base_dir = default_base_dir(path, Path.cwd().resolve())

    result = parse_markdown(content, base_dir, config)

    if output_format == "html":
        rendered = result.post
    elif output_format == "toc":
        rendered = result.toc
    else:
        metadata, _ = parse_front_matter(content)
        rendered = json.dumps(
            {
                "post": result.post,
                "toc": result.toc,
                "meta": metadata,
                "excerpt": extract_excerpt(content, config.excerpt_words),
                "read_time": compute_read_time(content, config.words_per_minute),
            },
            ensure_ascii=False,
            default=str,
        )

    # Writes to file
    if output is not None:
        try:
            write_output(Path(output), rendered + "\n")
        except IOError as error:
            raise click.ClickException(str(error)) from error
    # Prints to stdout
    else:
        click.echo(rendered)


if __name__ == "__main__":
    cli()
