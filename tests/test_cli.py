"""Tests for the command-line interface and book lookup."""

import os
import zipfile

import pytest

from bookpack import cli
from bookpack.config import ConfigError
from bookpack.errors import BrokenLink, IoFailure
from bookpack.resolve import THEME_ENV_VAR, find_book_dir, resolve_theme_dir

from conftest import write_file


@pytest.fixture(autouse=True)
def no_theme_env(monkeypatch):
    monkeypatch.delenv(THEME_ENV_VAR, raising=False)


class TestFindBookDir:

    def test_direct_path(self, book_dir, tmp_path):
        assert find_book_dir(book_dir, str(tmp_path)) == os.path.abspath(book_dir)

    def test_number_prefix(self, book_dir, tmp_path):
        assert find_book_dir("1", str(tmp_path)) == book_dir

    def test_keyword_in_directory_name(self, book_dir, tmp_path):
        assert find_book_dir("dem", str(tmp_path)) == book_dir

    def test_keyword_in_title(self, book_dir, tmp_path):
        assert find_book_dir("Demo Book", str(tmp_path)) == book_dir

    def test_not_found(self, book_dir, tmp_path):
        assert find_book_dir("nothing-like-this", str(tmp_path)) is None


class TestResolveThemeDir:

    def test_bundled_theme(self):
        theme = resolve_theme_dir()
        assert os.path.isfile(os.path.join(theme, "index.html"))

    def test_environment_variable(self, tmp_path, monkeypatch):
        monkeypatch.setenv(THEME_ENV_VAR, str(tmp_path))
        assert resolve_theme_dir() == str(tmp_path)

    def test_override_wins(self, tmp_path, monkeypatch):
        other = tmp_path / "other"
        other.mkdir()
        monkeypatch.setenv(THEME_ENV_VAR, str(tmp_path))
        assert resolve_theme_dir(str(other)) == str(other)

    def test_missing_directory(self, tmp_path):
        with pytest.raises(ConfigError, match="doesn't exist"):
            resolve_theme_dir(str(tmp_path / "missing"))


class TestParseArgs:

    def test_bare_book_means_build(self):
        _, args = cli.parse_args(["mybook", "--no-validate"])
        assert args.command == "build"
        assert args.book == "mybook"
        assert args.no_validate

    def test_explicit_subcommand(self):
        _, args = cli.parse_args(["check", "mybook", "--no-color"])
        assert args.command == "check"
        assert args.no_color


class TestReportError:

    def test_prints_cause_chain(self, capsys):
        try:
            try:
                raise OSError("disk on fire")
            except OSError as e:
                raise IoFailure("Unable to open asset", "/book/logo.png") from e
        except IoFailure as error:
            cli.report_error(error)

        out = capsys.readouterr().out
        assert "Error: Unable to open asset: /book/logo.png" in out
        assert "caused by: disk on fire" in out


class TestCommands:

    def test_build(self, book_dir, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        output_dir = tmp_path / "out"

        cli.main(["build", book_dir, "--output-dir", str(output_dir), "--no-validate"])

        epub_path = output_dir / "demo.epub"
        assert epub_path.exists()
        with zipfile.ZipFile(str(epub_path)) as zf:
            assert "EPUB/images/diagram.svg" in zf.namelist()

    def test_build_broken_link_exits(self, book_dir, tmp_path, monkeypatch, capsys):
        write_file(book_dir, "src/notes.md", "![gone](gone.png)\n")
        monkeypatch.chdir(tmp_path)
        output_dir = tmp_path / "out"

        with pytest.raises(SystemExit) as excinfo:
            cli.main([book_dir, "--output-dir", str(output_dir), "--no-validate"])

        assert excinfo.value.code == 1
        assert "Broken link 'gone.png'" in capsys.readouterr().out
        assert not (output_dir / "demo.epub").exists()

    def test_unknown_book_exits(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(SystemExit) as excinfo:
            cli.main(["build", "missing-book"])
        assert excinfo.value.code == 1

    def test_check_clean(self, book_dir, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(SystemExit) as excinfo:
            cli.main(["check", book_dir, "--no-color"])
        assert excinfo.value.code == 0

    def test_check_reports_every_broken_link(self, book_dir, tmp_path, monkeypatch, capsys):
        write_file(book_dir, "src/intro.md", "![a](missing-a.png)\n")
        write_file(book_dir, "src/notes.md", '<img src="missing-b.png">\n')
        monkeypatch.chdir(tmp_path)

        with pytest.raises(SystemExit) as excinfo:
            cli.main(["check", book_dir, "--no-color"])

        out = capsys.readouterr().out
        assert excinfo.value.code == 1
        assert "missing-a.png" in out
        assert "missing-b.png" in out
        assert "2 broken link(s)" in out

    def test_validate_without_epub(self, book_dir, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(SystemExit) as excinfo:
            cli.main(["validate", book_dir, "--output-dir", str(tmp_path / "none")])
        assert excinfo.value.code == 1
