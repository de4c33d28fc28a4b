"""
The chapter tree: chapters, separators, and loading them from book.yaml.

A book lists its chapters in three groups, mirroring a printed book:

    prefix_chapters:         # unnumbered, flat (foreword, preface)
      - {title: Foreword, path: foreword.md}
    chapters:                # numbered, may nest via "chapters"
      - title: Getting Started
        path: start/index.md
        chapters:
          - {title: Installation, path: start/install.md}
      - separator
      - {title: Reference, path: reference.md}
    suffix_chapters:         # unnumbered, flat (appendices, credits)
      - {title: Credits, path: credits.md}

Without any of these lists, every *.md file in the source directory
becomes a numbered chapter, sorted naturally.
"""

import os
import re
import glob

from bookpack.config import ConfigError
from bookpack.errors import IoFailure


SEPARATOR_MARKERS = ("separator", "---")


class Separator:
    """A non-chapter item in the tree (a horizontal rule in the TOC)."""

    def __repr__(self):
        return "Separator()"


class Chapter:
    """A node in the chapter tree. Read-only once the book is loaded."""

    def __init__(self, name, content, path, number=None, sub_items=None):
        self.name = name
        self.content = content
        self.path = path
        self.number = tuple(number) if number else None
        self.sub_items = list(sub_items or [])

    def __str__(self):
        if self.number:
            numbering = "".join(f"{n}." for n in self.number)
            return f"{numbering} {self.name}"
        return self.name

    def __repr__(self):
        return f"Chapter({self.name!r}, path={self.path!r}, number={self.number!r})"

    @property
    def output_path(self):
        """Archive path of the rendered chapter (extension swapped for .html)."""
        stem, _ = os.path.splitext(self.path)
        return stem.replace("\\", "/") + ".html"

    def sub_chapters(self):
        return [item for item in self.sub_items if isinstance(item, Chapter)]


class Book:
    """A loaded book: metadata plus the ordered chapter tree."""

    def __init__(self, title, src_dir, items, description="", authors=None,
                 language="en", identifier=""):
        self.title = title
        self.src_dir = src_dir
        self.items = list(items)
        self.description = description
        self.authors = list(authors or [])
        self.language = language
        self.identifier = identifier

    def iter(self):
        """Every item in the tree, depth-first, in document order."""
        stack = list(reversed(self.items))
        while stack:
            item = stack.pop()
            yield item
            if isinstance(item, Chapter):
                stack.extend(reversed(item.sub_items))

    def chapters(self):
        return [item for item in self.iter() if isinstance(item, Chapter)]


# ── Loading ────────────────────────────────────────────────────────────


def natural_sort_key(s):
    """Sort strings with embedded numbers naturally (2.md before 10.md)."""
    return [
        int(text) if text.isdigit() else text.lower()
        for text in re.split(r"(\d+)", s)
    ]


def load_book(config):
    """Build the chapter tree described by a BookConfig."""
    src_dir = config.src_dir
    if not os.path.isdir(src_dir):
        raise ConfigError(f"Source directory not found: {src_dir}")

    listed = any(
        config.get(key) for key in ("prefix_chapters", "chapters", "suffix_chapters")
    )

    if listed:
        items = (
            _load_entries(config.get("prefix_chapters") or [], src_dir, None)
            + _load_entries(config.get("chapters") or [], src_dir, ())
            + _load_entries(config.get("suffix_chapters") or [], src_dir, None)
        )
    else:
        items = _load_flat(src_dir)

    if not any(isinstance(item, Chapter) for item in items):
        raise ConfigError(f"No chapters found in {src_dir}")

    return Book(
        title=config.title,
        src_dir=src_dir,
        items=items,
        description=config.description,
        authors=config.authors,
        language=config.language,
        identifier=config.identifier,
    )


def _load_entries(entries, src_dir, parent_number):
    """
    Turn a list of book.yaml chapter entries into tree items.

    parent_number is None for unnumbered groups, otherwise the number
    tuple of the enclosing chapter (() at the top level).
    """
    items = []
    position = 0

    for entry in entries:
        if isinstance(entry, str) and entry.strip().lower() in SEPARATOR_MARKERS:
            items.append(Separator())
            continue

        if not isinstance(entry, dict) or not entry.get("path"):
            raise ConfigError(f"Chapter entry needs at least a 'path': {entry!r}")

        path = entry["path"].replace("\\", "/")
        name = entry.get("title") or _title_from_file(path)

        number = None
        if parent_number is not None:
            position += 1
            number = parent_number + (position,)

        children = entry.get("chapters") or []
        if children and number is None:
            raise ConfigError(f"Unnumbered chapter '{name}' cannot have sub-chapters")

        sub_items = _load_entries(children, src_dir, number) if children else []
        content = _read_chapter(src_dir, path)
        items.append(Chapter(name, content, path, number=number, sub_items=sub_items))

    return items


def _load_flat(src_dir):
    """Fallback layout: every markdown file in src_dir, numbered in order."""
    files = glob.glob(os.path.join(src_dir, "*.md"))
    files.sort(key=natural_sort_key)

    chapters = []
    for position, filepath in enumerate(files, 1):
        path = os.path.basename(filepath)
        content = _read_chapter(src_dir, path)
        name = _first_heading(content) or _title_from_file(path)
        chapters.append(Chapter(name, content, path, number=(position,)))
    return chapters


def _read_chapter(src_dir, path):
    filepath = os.path.join(src_dir, *path.split("/"))
    try:
        with open(filepath, "r", encoding="utf-8") as f:
            return f.read()
    except OSError as e:
        raise IoFailure("Unable to read chapter", filepath) from e


def _first_heading(content):
    match = re.search(r"^#\s+(.+?)\s*#*\s*$", content, re.MULTILINE)
    return match.group(1) if match else None


def _title_from_file(path):
    stem = os.path.splitext(os.path.basename(path))[0]
    return re.sub(r"^\d+[_-]", "", stem).replace("_", " ").replace("-", " ").strip().title()
