"""
Book configuration: load, validate, and provide defaults for book.yaml.
"""

import os
from dataclasses import dataclass, field

import yaml


# Fields required in every book.yaml
REQUIRED_FIELDS = ["title"]

# Defaults applied if missing
DEFAULTS = {
    "description": "",
    "authors": [],
    "language": "en",
    "identifier": "",
    "src": "src",
    "epub": {},
}

# Defaults within the epub sub-config
EPUB_DEFAULTS = {
    "default_css": True,
    "additional_css": [],
    "validate": True,
}


class ConfigError(Exception):
    """Raised when book.yaml is missing or invalid."""
    pass


@dataclass(frozen=True)
class EpubConfig:
    """Stylesheet options resolved once before generation."""

    use_default_css: bool = True
    additional_css: tuple = field(default_factory=tuple)


class BookConfig:
    """
    Loaded, validated book configuration.

    Usage:
        config = BookConfig.load(book_dir)
        config.title                  # "The Rust Book"
        config.epub["default_css"]    # True
        config.get("series")          # None if not set
    """

    def __init__(self, data, book_dir):
        self._data = data
        self.book_dir = book_dir

    @classmethod
    def load(cls, book_dir):
        """Load and validate book.yaml from a book directory."""
        yaml_path = os.path.join(book_dir, "book.yaml")
        if not os.path.exists(yaml_path):
            raise ConfigError(f"No book.yaml found in {book_dir}")

        try:
            with open(yaml_path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"book.yaml is not valid YAML: {e}") from e

        return cls.from_dict(data, book_dir)

    @classmethod
    def from_dict(cls, data, book_dir):
        """Validate a raw mapping and apply defaults."""
        if not isinstance(data, dict):
            raise ConfigError(f"book.yaml must be a YAML mapping, got {type(data).__name__}")

        missing = [key for key in REQUIRED_FIELDS if not data.get(key)]
        if missing:
            raise ConfigError(
                f"book.yaml missing required fields: {', '.join(missing)}"
            )

        # A single "author" is shorthand for a one-element author list
        if "author" in data and "authors" not in data:
            data["authors"] = [data.pop("author")]
        if isinstance(data.get("authors"), str):
            data["authors"] = [data["authors"]]

        for key, default in DEFAULTS.items():
            data.setdefault(key, default if not isinstance(default, (list, dict)) else type(default)(default))
        data.setdefault("prefix", os.path.basename(os.path.normpath(book_dir)))

        if not isinstance(data["epub"], dict):
            raise ConfigError("book.yaml 'epub' section must be a mapping")
        for key, default in EPUB_DEFAULTS.items():
            data["epub"].setdefault(key, default if not isinstance(default, list) else list(default))

        if not isinstance(data["epub"]["additional_css"], list):
            raise ConfigError("epub.additional_css must be a list of paths")

        return cls(data, book_dir)

    # ── Attribute access ───────────────────────────────────

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._data[name]
        except KeyError:
            raise AttributeError(f"BookConfig has no field '{name}'")

    def get(self, key, default=None):
        return self._data.get(key, default)

    def __getitem__(self, key):
        return self._data[key]

    def __contains__(self, key):
        return key in self._data

    # ── Convenience ────────────────────────────────────────

    @property
    def src_dir(self):
        """Absolute path of the chapter source directory."""
        return os.path.abspath(os.path.join(self.book_dir, self.src))

    def epub_options(self):
        """Freeze the stylesheet options, resolving paths against the book dir."""
        epub = self.epub
        return EpubConfig(
            use_default_css=bool(epub["default_css"]),
            additional_css=tuple(
                os.path.abspath(os.path.join(self.book_dir, path))
                for path in epub["additional_css"]
            ),
        )

    def summary(self):
        """Print a short config summary."""
        print(f"\n  Book:    {self.title}")
        if self.authors:
            print(f"  Authors: {', '.join(self.authors)}")
        print(f"  Source:  {self.src_dir}")
