"""
Book lookup, link resolution, and theme-directory lookup.

Anything that turns a name or a relative link into a path on disk
lives here.
"""

import os
import re

import yaml

from bookpack.config import ConfigError
from bookpack.errors import BrokenLink


THEME_ENV_VAR = "BOOKPACK_THEME_DIR"


def find_book_dir(identifier, project_root):
    """
    Resolve a book identifier to its directory.

    Accepts:
        - Direct path:  books/1_rust_by_example
        - Number:       1         (matches "1_..." prefix under books/)
        - Keyword:      rust      (matches dir name or YAML title)

    Returns: absolute path to the book directory, or None.
    """
    books_root = os.path.join(project_root, "books")

    # Direct path (absolute or relative)
    for candidate in [identifier, os.path.join(project_root, identifier)]:
        if os.path.isdir(candidate) and os.path.exists(
            os.path.join(candidate, "book.yaml")
        ):
            return os.path.abspath(candidate)

    if not os.path.isdir(books_root):
        return None

    identifier_lower = identifier.lower()

    for entry in sorted(os.listdir(books_root)):
        book_path = os.path.join(books_root, entry)
        yaml_path = os.path.join(book_path, "book.yaml")
        if not os.path.exists(yaml_path):
            continue

        # Match by number prefix: "1" matches "1_rust_by_example"
        match = re.match(r"^(\d+)_", entry)
        if match and match.group(1) == identifier:
            return book_path

        # Match by keyword in directory name
        if identifier_lower in entry.lower():
            return book_path

        # Match by keyword in YAML title; unreadable files just don't match
        try:
            with open(yaml_path, encoding="utf-8") as f:
                cfg = yaml.safe_load(f)
        except (OSError, yaml.YAMLError):
            continue
        if isinstance(cfg, dict) and identifier_lower in str(cfg.get("title", "")).lower():
            return book_path

    return None


def resolve_link(link, base_dir):
    """
    Resolve a link as written in a chapter to a canonical file path.

    The link's "/"-separated segments are joined onto base_dir, then the
    result is canonicalized ("." and "..", symlinks).

    Raises BrokenLink if the target is missing or is not a regular file.
    """
    path = os.path.join(base_dir, *link.split("/"))
    canonical = os.path.realpath(path)

    if not os.path.exists(canonical):
        raise BrokenLink(link, path, "does not exist")
    if not os.path.isfile(canonical):
        raise BrokenLink(link, canonical, "is not a file")

    return canonical


def resolve_theme_dir(override=None):
    """
    Locate the theme directory holding the page template.

    Search order (first match wins):
        1. explicit override (--theme-dir)
        2. BOOKPACK_THEME_DIR environment variable
        3. theme/ beside this package

    Raises ConfigError if the chosen directory does not exist.
    """
    theme_dir = override or os.environ.get(THEME_ENV_VAR)
    if not theme_dir:
        package_dir = os.path.dirname(os.path.abspath(__file__))
        theme_dir = os.path.join(package_dir, "theme")

    theme_dir = os.path.abspath(theme_dir)
    if not os.path.isdir(theme_dir):
        raise ConfigError(f"Theme directory \"{theme_dir}\" doesn't exist")

    return theme_dir
