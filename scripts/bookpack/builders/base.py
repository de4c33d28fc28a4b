"""
Base builder class for packaged output formats.

Subclasses implement `generate()` and set `format_name` / `extension`.
Shared logic (output naming, console reporting, atomic write-out) lives
here.
"""

import io
import os
from abc import ABC, abstractmethod

from bookpack.errors import IoFailure


class BaseBuilder(ABC):
    """
    Abstract base for format builders.

    Subclasses must define:
        format_name:  str, human-readable name ("EPUB")
        extension:    str, output file extension (".epub")
        generate():   method, writes the package into a binary sink
    """

    format_name = None  # Override in subclass
    extension = None    # Override in subclass

    def __init__(self, config, book, output_dir, verbose=False, **kwargs):
        self.config = config
        self.book = book
        self.output_dir = output_dir
        self.verbose = verbose
        self.kwargs = kwargs

    # ── Output path ────────────────────────────────────────

    @property
    def output_file(self):
        return os.path.join(self.output_dir, f"{self.config.prefix}{self.extension}")

    # ── Logging ────────────────────────────────────────────

    def log(self, msg):
        if self.verbose:
            print(msg)

    def header(self):
        print(f"\n{'─' * 60}")
        print(f"  Building {self.format_name}: {self.book.title}")
        print(f"{'─' * 60}")

    # ── Write-out ──────────────────────────────────────────

    def write_output(self):
        """
        Generate into memory, then write the output file in one go.

        A failure anywhere in generate() leaves the output path untouched.
        """
        buffer = io.BytesIO()
        self.generate(buffer)

        try:
            os.makedirs(self.output_dir, exist_ok=True)
            with open(self.output_file, "wb") as f:
                f.write(buffer.getvalue())
        except OSError as e:
            raise IoFailure("Unable to write output", self.output_file) from e

        return self.output_file

    # ── Abstract interface ─────────────────────────────────

    @abstractmethod
    def generate(self, sink):
        """
        Write the complete package into a binary file object.

        Raises a BookpackError subclass on failure.
        """
        ...

    def build(self):
        """Generate and write the output file. Returns its path."""
        self.header()
        path = self.write_output()
        print(f"  ✓ {path}")
        return path
