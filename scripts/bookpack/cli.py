"""
Command-line entry point: build, check, and validate books.

Usage:
    bookpack mybook                      Build mybook's EPUB
    bookpack build 1 --no-validate       Build, skip epubcheck
    bookpack build rust --theme-dir t/   Build with a custom page template
    bookpack check mybook                Report every broken asset link
    bookpack validate mybook             Run epubcheck on the built EPUB

Requires: PyYAML, Markdown, Jinja2, EbookLib
Optional: java + epubcheck (validation)
"""

import os
import sys
import argparse
import traceback

from bookpack.book import load_book
from bookpack.builders import EpubBuilder
from bookpack.check import LinkChecker
from bookpack.config import BookConfig, ConfigError
from bookpack.epubcheck import validate_epub
from bookpack.errors import BookpackError, iter_causes
from bookpack.resolve import find_book_dir, resolve_theme_dir


# ── Errors ─────────────────────────────────────────────────────────────


def report_error(error):
    """Print an error followed by each link of its cause chain."""
    chain = list(iter_causes(error))
    print(f"Error: {chain[0]}")
    for cause in chain[1:]:
        print(f"  caused by: {cause}")


# ── Resolve book ───────────────────────────────────────────────────────


def resolve_book(identifier):
    """Find book directory, load config. Exits on failure."""
    project_root = os.getcwd()
    book_dir = find_book_dir(identifier, project_root)

    if not book_dir:
        print(f"Error: Could not find book '{identifier}'")
        print(f"  Searched in: {os.path.join(project_root, 'books')}")
        print("  Tip: Run from the project root, or pass a direct path.")
        sys.exit(1)

    try:
        config = BookConfig.load(book_dir)
    except ConfigError as e:
        report_error(e)
        sys.exit(1)

    return book_dir, config


def load_or_exit(config):
    try:
        return load_book(config)
    except (ConfigError, BookpackError) as e:
        report_error(e)
        sys.exit(1)


def output_dir_for(args):
    return args.output_dir or os.path.join(os.getcwd(), "output")


# ── Build command ──────────────────────────────────────────────────────


def cmd_build(args):
    """Build the book's EPUB."""
    _, config = resolve_book(args.book)
    config.summary()
    book = load_or_exit(config)

    output_dir = output_dir_for(args)
    print(f"  Output:  {output_dir}")

    try:
        theme_dir = resolve_theme_dir(args.theme_dir)
        builder = EpubBuilder(
            config=config,
            book=book,
            output_dir=output_dir,
            theme_dir=theme_dir,
            verbose=args.verbose,
            no_validate=args.no_validate,
            json_report=args.json_report,
        )
        builder.build()
    except (ConfigError, BookpackError) as e:
        print("  ✗ EPUB generation failed")
        report_error(e)
        sys.exit(1)

    print(f"\n{'─' * 60}")
    print("  Done.")


# ── Check command ──────────────────────────────────────────────────────


def cmd_check(args):
    """Report broken asset links without building."""
    _, config = resolve_book(args.book)
    book = load_or_exit(config)

    color = not args.no_color and sys.stdout.isatty()

    print(f"\n  Checking: {config.title}")
    print(f"  Source:   {book.src_dir}")
    print()

    checker = LinkChecker(book, verbose=args.verbose, color=color)
    sys.exit(0 if checker.run() else 1)


# ── Validate command ───────────────────────────────────────────────────


def cmd_validate(args):
    """Run epubcheck on an existing epub."""
    _, config = resolve_book(args.book)

    epub_file = os.path.join(output_dir_for(args), f"{config.prefix}.epub")

    if not os.path.exists(epub_file):
        print(f"  Error: {epub_file} not found. Build it first.")
        sys.exit(1)

    print(f"\n{'─' * 60}")
    print(f"  Validating: {epub_file}")
    print(f"{'─' * 60}")

    valid = validate_epub(epub_file, verbose=True, json_report=args.json_report)
    sys.exit(0 if valid else 1)


# ── Argument Parser ────────────────────────────────────────────────────


def build_parser():
    parser = argparse.ArgumentParser(
        prog="bookpack",
        description="Package a markdown book as an EPUB",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
examples:
  %(prog)s example                    Build example's EPUB
  %(prog)s build 1 --no-validate      Build book 1, skip epubcheck
  %(prog)s check example              Report broken asset links
  %(prog)s validate example           Run epubcheck on the built EPUB
        """,
    )

    sub = parser.add_subparsers(dest="command")

    # ── build (default when no subcommand) ─────────────────
    build_p = sub.add_parser("build", help="Build the EPUB (default)")
    _add_book_arg(build_p)
    build_p.add_argument("--output-dir", help="Override output directory")
    build_p.add_argument(
        "--theme-dir",
        help="Directory holding index.html (default: $BOOKPACK_THEME_DIR or the bundled theme)",
    )
    build_p.add_argument(
        "--no-validate", action="store_true", help="Skip epubcheck after the build"
    )
    build_p.add_argument(
        "--json-report",
        nargs="?",
        const=True,
        default=None,
        help="Save epubcheck JSON report",
    )
    build_p.add_argument("--verbose", "-v", action="store_true")

    # ── check ──────────────────────────────────────────────
    check_p = sub.add_parser("check", help="Report broken asset links")
    _add_book_arg(check_p)
    check_p.add_argument("--verbose", "-v", action="store_true")
    check_p.add_argument("--no-color", action="store_true", help="Plain output")

    # ── validate ───────────────────────────────────────────
    val_p = sub.add_parser("validate", help="Run epubcheck on an existing epub")
    _add_book_arg(val_p)
    val_p.add_argument("--output-dir", help="Override output directory")
    val_p.add_argument("--json-report", nargs="?", const=True, default=None)

    return parser


def _add_book_arg(parser):
    parser.add_argument("book", help="Book number, keyword, or path")


# ── Main ───────────────────────────────────────────────────────────────


KNOWN_COMMANDS = {"build", "check", "validate"}


def parse_args(argv):
    parser = build_parser()

    # Allow bare "bookpack mybook" without the "build" subcommand
    if argv and argv[0] not in KNOWN_COMMANDS and not argv[0].startswith("-"):
        argv = ["build"] + list(argv)

    return parser, parser.parse_args(argv)


def main(argv=None):
    parser, args = parse_args(sys.argv[1:] if argv is None else argv)

    dispatch = {
        "build": cmd_build,
        "check": cmd_check,
        "validate": cmd_validate,
    }

    handler = dispatch.get(args.command)
    if handler:
        handler(args)
    else:
        parser.print_help()


def run():
    """Console-script wrapper: cancellation and crash-log handling."""
    try:
        main()
    except KeyboardInterrupt:
        print("\nCancelled.")
        sys.exit(1)
    except Exception as e:
        log_path = "build_error.log"
        with open(log_path, "w") as f:
            traceback.print_exc(file=f)
        print(f"\nUnexpected error: {e}")
        print(f"Full traceback written to {log_path}")
        sys.exit(1)


if __name__ == "__main__":
    run()
