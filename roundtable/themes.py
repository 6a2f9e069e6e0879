"""Debate theme files: markdown body with optional YAML frontmatter."""

from pathlib import Path

import frontmatter


def parse_theme_file(file_path: Path) -> tuple[str, dict]:
    """Parse a theme file.

    Returns:
        (theme, metadata) where theme is the body text and metadata may hold
        ``turns`` (int), ``participants`` and ``voters`` (lists or
        comma-separated strings). If no frontmatter, metadata is {}.
    """
    post = frontmatter.load(str(file_path))
    theme = post.content.strip()
    metadata = dict(post.metadata)
    return theme, metadata


def as_list(value: object) -> list[str]:
    """Normalize a frontmatter roster value: 'a, b' or ['a', 'b'] -> ['a', 'b']."""
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return [str(part).strip() for part in value]  # type: ignore[union-attr]
