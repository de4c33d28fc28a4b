"""Shared fixtures: throwaway book directories and a recording container."""

import os

import pytest
import yaml

from bookpack.book import Book, Chapter


# Smallest valid PNG: enough for mimetype and copy checks
PNG_BYTES = (
    b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01"
    b"\x08\x06\x00\x00\x00\x1f\x15\xc4\x89\x00\x00\x00\rIDATx\x9cc\xf8\x0f"
    b"\x00\x00\x01\x01\x00\x05\x18\xd8N\x00\x00\x00\x00IEND\xaeB`\x82"
)

SVG_TEXT = '<svg xmlns="http://www.w3.org/2000/svg" width="1" height="1"/>\n'


def write_file(root, relpath, content):
    """Write text or bytes under root, creating directories as needed."""
    path = os.path.join(root, *relpath.split("/"))
    os.makedirs(os.path.dirname(path), exist_ok=True)
    mode = "wb" if isinstance(content, bytes) else "w"
    with open(path, mode) as f:
        f.write(content)
    return path


class RecordingContainer:
    """Stands in for EpubContainer, remembering every call in order."""

    def __init__(self):
        self.calls = []
        self.metadata_fields = {}
        self.units = []
        self.resources = []
        self.stylesheet_data = None
        self.generated = False

    def metadata(self, name, value):
        self.calls.append("metadata")
        self.metadata_fields[name] = value

    def add_content(self, unit):
        self.calls.append("add_content")
        self.units.append(unit)

    def add_resource(self, path, data, mimetype):
        self.calls.append("add_resource")
        self.resources.append((path, data, mimetype))

    def stylesheet(self, data):
        self.calls.append("stylesheet")
        self.stylesheet_data = data

    def generate(self, sink):
        self.calls.append("generate")
        self.generated = True
        sink.write(b"recorded")


@pytest.fixture
def container():
    return RecordingContainer()


@pytest.fixture
def src_dir(tmp_path):
    path = tmp_path / "book" / "src"
    path.mkdir(parents=True)
    return str(path)


@pytest.fixture
def make_book(src_dir):
    """
    Build a Book from (path, markdown) pairs written into src_dir.

    Top-level chapters are unnumbered unless a number is given as a
    third element.
    """

    def _make(*entries, title="Test Book"):
        items = []
        for entry in entries:
            path, content = entry[0], entry[1]
            number = entry[2] if len(entry) > 2 else None
            write_file(src_dir, path, content)
            name = os.path.splitext(os.path.basename(path))[0].title()
            items.append(Chapter(name, content, path, number=number))
        return Book(title, src_dir, items)

    return _make


@pytest.fixture
def book_dir(tmp_path):
    """A complete on-disk book with book.yaml, chapters, and assets."""
    root = tmp_path / "books" / "1_demo"
    config = {
        "title": "Demo Book",
        "authors": ["Ada Lovelace", "Charles Babbage"],
        "description": "A demonstration",
        "prefix": "demo",
        "epub": {"validate": False},
        "prefix_chapters": [{"title": "Intro", "path": "intro.md"}],
        "chapters": [
            {
                "title": "Engines",
                "path": "engines/index.md",
                "chapters": [
                    {"title": "The Mill", "path": "engines/mill.md"},
                ],
            },
            "separator",
            {"title": "Notes", "path": "notes.md"},
        ],
    }
    write_file(str(root), "book.yaml", yaml.safe_dump(config))
    write_file(str(root), "src/intro.md", "# Intro\n\n![Logo](./logo.png)\n")
    write_file(str(root), "src/logo.png", PNG_BYTES)
    write_file(str(root), "src/engines/index.md", "# Engines\n\nSee the mill.\n")
    write_file(
        str(root), "src/engines/mill.md",
        '# The Mill\n\n<img src="../images/diagram.svg">\n',
    )
    write_file(str(root), "src/images/diagram.svg", SVG_TEXT)
    write_file(str(root), "src/notes.md", "# Notes\n\nNothing to see.\n")
    return str(root)
