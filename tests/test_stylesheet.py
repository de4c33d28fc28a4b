"""Tests for stylesheet concatenation."""

import pytest

from bookpack.config import EpubConfig
from bookpack.errors import IoFailure
from bookpack.stylesheet import DEFAULT_CSS, generate_stylesheet

from conftest import write_file


class TestGenerateStylesheet:

    def test_default_only(self):
        css = generate_stylesheet(EpubConfig(use_default_css=True))
        assert css == DEFAULT_CSS.encode("utf-8")

    def test_empty_when_nothing_enabled(self):
        assert generate_stylesheet(EpubConfig(use_default_css=False)) == b""

    def test_default_precedes_additional_in_order(self, tmp_path):
        first = write_file(str(tmp_path), "first.css", "h1 { color: red; }\n")
        second = write_file(str(tmp_path), "second.css", "h2 { color: blue; }\n")

        css = generate_stylesheet(EpubConfig(True, (second, first)))

        assert css == (
            DEFAULT_CSS.encode("utf-8")
            + b"h2 { color: blue; }\n"
            + b"h1 { color: red; }\n"
        )

    def test_additional_without_default(self, tmp_path):
        only = write_file(str(tmp_path), "only.css", b"p { margin: 0 }")
        assert generate_stylesheet(EpubConfig(False, (only,))) == b"p { margin: 0 }"

    def test_missing_file_names_path(self, tmp_path):
        missing = str(tmp_path / "missing.css")

        with pytest.raises(IoFailure) as excinfo:
            generate_stylesheet(EpubConfig(False, (missing,)))

        assert excinfo.value.path == missing
        assert missing in str(excinfo.value)
