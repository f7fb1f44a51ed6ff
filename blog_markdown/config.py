"""Configuration loading and management."""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
import tomllib

from .constants import (
    CALLOUT_ALIASES,
    CALLOUT_TYPES,
    DEFAULT_CONTENT_ROOT,
    DEFAULT_LINK_SCHEMES,
    DEFAULT_MAX_DEPTH,
    DEFAULT_MAX_FILE_SIZE,
    MAX_DEPTH_LIMIT,
)


@dataclass
class RenderConfig:
    """Configuration for rendering markdown posts.

    Attributes:
        content_root: Site content directory; asset paths already below it are
            left untouched.
        link_schemes: URL schemes allowed in links and asset sources. Other
            schemes are replaced with ``"#"``.
        default_callout: Callout type used for unknown ``[!type]`` markers.
        max_depth: Maximum nesting of quotes and table cells rendered as markup.
        max_file_size: Maximum file size in bytes that will be read.
        excerpt_words: Word limit for generated excerpts.
        words_per_minute: Reading speed used for read-time estimates.

    Examples:
        RenderConfig(content_root="content", max_depth=8)
    """

    # Assets and links
    content_root: str = DEFAULT_CONTENT_ROOT
    link_schemes: tuple[str, ...] = DEFAULT_LINK_SCHEMES

    # Callouts
    default_callout: str = "note"

    # Limits
    max_depth: int = DEFAULT_MAX_DEPTH
    max_file_size: int = DEFAULT_MAX_FILE_SIZE

    # Summaries
    excerpt_words: int = 50
    words_per_minute: int = 200


class ConfigError(ValueError):
    """Exception raised when configuration values are invalid.

    Examples:
        raise ConfigError("`max_depth` must be <= 64")
    """


def load_config(search_path: Path) -> RenderConfig:
    """Load configuration from the nearest config file.

    Walks parent directories from `search_path` to the filesystem root, reading
    the ``[tool.blog-markdown]`` table from `pyproject.toml` and the
    ``[blog-markdown]`` or ``[tool.blog-markdown]`` table from
    `.blog-markdown.toml` when present. TOML files that cannot be read or
    decoded are skipped.

    Args:
        search_path: Directory used as the starting point for configuration lookup.

    Returns:
        RenderConfig: Loaded configuration, or defaults when nothing is found.

    Raises:
        ConfigError: If the table is present but not a mapping or contains
            unsupported keys.

    Examples:
        load_config(Path("wwwroot/post"))
    """
    current = search_path.resolve()

    while True:
        pyproject_config = _load_from_file(
            current / "pyproject.toml", table_paths=[("tool", "blog-markdown")]
        )
        if pyproject_config is not None:
            return normalize_config(pyproject_config)

        dotfile_config = _load_from_file(
            current / ".blog-markdown.toml",
            table_paths=[("blog-markdown",), ("tool", "blog-markdown")],
        )
        if dotfile_config is not None:
            return normalize_config(dotfile_config)

        parent = current.parent
        if parent == current:
            break
        current = parent

    return RenderConfig()


_MISSING = object()


def _load_from_file(
    config_file: Path, table_paths: list[tuple[str, ...]]
) -> RenderConfig | None:
    if not config_file.exists():
        return None

    try:
        with open(config_file, "rb") as stream:
            data = tomllib.load(stream)
    except (OSError, tomllib.TOMLDecodeError):
        return None

    for table_path in table_paths:
        raw_config = _extract_table(data, table_path)
        if raw_config is _MISSING:
            continue
        return _build_config_from_raw(raw_config, config_file, table_path)

    return None


def _extract_table(data: object, table_path: tuple[str, ...]) -> object:
    current = data
    for key in table_path:
        if not isinstance(current, dict) or key not in current:
            return _MISSING
        current = current[key]
    return current


def _build_config_from_raw(
    raw_config: object, config_file: Path, table_path: tuple[str, ...]
) -> RenderConfig:
    table_display = ".".join(table_path)

    if raw_config is None:
        return RenderConfig()

    if not isinstance(raw_config, dict):
        raise ConfigError(f"Invalid `[{table_display}]` settings in {config_file}")

    if not raw_config:
        return RenderConfig()

    try:
        return RenderConfig(**raw_config)
    except TypeError as error:
        raise ConfigError(f"Invalid `[{table_display}]` settings in {config_file}") from error


def normalize_config(config: RenderConfig) -> RenderConfig:
    link_schemes = config.link_schemes
    if isinstance(link_schemes, str):
        link_schemes = (link_schemes,)
    if isinstance(link_schemes, (list, tuple)):
        link_schemes = tuple(
            scheme.strip().lower() if isinstance(scheme, str) else scheme
            for scheme in link_schemes
        )

    default_callout = config.default_callout
    if isinstance(default_callout, str):
        default_callout = default_callout.strip().lower()
        default_callout = CALLOUT_ALIASES.get(default_callout, default_callout)

    content_root = config.content_root
    if isinstance(content_root, str):
        content_root = content_root.strip("/")

    return replace(
        config,
        link_schemes=link_schemes,
        default_callout=default_callout,
        content_root=content_root,
    )


def validate_config(config: RenderConfig) -> None:
    """Validate a `RenderConfig` instance.

    Args:
        config: Configuration to validate.

    Raises:
        ConfigError: If a field has the wrong type, the callout type is
            unknown, no link scheme is allowed, or numeric limits are out of
            range.

    Examples:
        validate_config(RenderConfig(max_depth=8))
    """
    config = normalize_config(config)

    _ensure_integers(
        {
            "max_depth": config.max_depth,
            "max_file_size": config.max_file_size,
            "excerpt_words": config.excerpt_words,
            "words_per_minute": config.words_per_minute,
        }
    )

    if not isinstance(config.content_root, str):
        raise ConfigError("`content_root` must be a string")

    if not isinstance(config.link_schemes, tuple) or not config.link_schemes:
        raise ConfigError("`link_schemes` must be a non-empty list of strings")
    if any(not isinstance(scheme, str) or not scheme for scheme in config.link_schemes):
        raise ConfigError("`link_schemes` must be a non-empty list of strings")

    if config.default_callout not in CALLOUT_TYPES:
        raise ConfigError(
            f"`default_callout` must be one of: {', '.join(sorted(CALLOUT_TYPES))}"
        )

    if config.max_depth > MAX_DEPTH_LIMIT:
        raise ConfigError(f"`max_depth` must be <= {MAX_DEPTH_LIMIT}")

    _ensure_positive(
        {
            "max_depth": config.max_depth,
            "max_file_size": config.max_file_size,
            "excerpt_words": config.excerpt_words,
            "words_per_minute": config.words_per_minute,
        }
    )


def apply_overrides(config: RenderConfig, **overrides: object) -> RenderConfig:
    """Apply override values to a `RenderConfig`.

    Args:
        config: Base configuration to update.
        overrides: Override values keyed by configuration field name; values set to
            None are ignored.

    Returns:
        RenderConfig: New configuration with the provided overrides applied. The
        original configuration is returned when no changes are supplied.

    Raises:
        TypeError: If an override name is not defined on `RenderConfig`.

    Examples:
        updated = apply_overrides(config, content_root="content", max_depth=4)
    """
    changes = {key: value for key, value in overrides.items() if value is not None}
    if not changes:
        return config
    return replace(config, **changes)


def build_config(search_path: Path, **overrides: object) -> RenderConfig:
    """Load, override, and validate configuration.

    Args:
        search_path: Directory where configuration files are resolved.
        overrides: Override values keyed by configuration attributes; None values
            are ignored.

    Returns:
        RenderConfig: Validated configuration ready for rendering.

    Raises:
        ConfigError: If configuration loading or validation fails.

    Examples:
        config = build_config(Path.cwd(), max_depth=8)
    """
    config = load_config(search_path)
    config = apply_overrides(config, **overrides)
    config = normalize_config(config)
    validate_config(config)
    return config


def _ensure_positive(values: dict[str, int]) -> None:
    for key, value in values.items():
        if value <= 0:
            raise ConfigError(f"`{key}` must be a positive integer")


def _ensure_integers(values: dict[str, object]) -> None:
    for key, value in values.items():
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"`{key}` must be an integer")
