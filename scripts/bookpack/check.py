"""
Link checker.

Reports every broken asset link in every chapter, so authors can fix
them all in one pass instead of meeting them one build failure at a
time. Building still stops at the first broken link.
"""

import os

from bookpack.errors import BrokenLink
from bookpack.resources import chapter_dir, find_links, is_local_link, resolve_asset


SYMBOLS_COLOR = {"error": "\033[31m✗\033[0m", "ok": "\033[32m✓\033[0m"}
SYMBOLS_PLAIN = {"error": "[ERROR]", "ok": "[OK]"}


def broken_links(book):
    """
    Every unresolvable local link in the book.

    Returns a list of (chapter, BrokenLink) pairs in document order.
    """
    src_dir = os.path.realpath(book.src_dir)
    problems = []
    for chapter in book.chapters():
        base_dir = chapter_dir(src_dir, chapter)
        for link in find_links(chapter.content):
            if not is_local_link(link):
                continue
            try:
                resolve_asset(link, base_dir, src_dir)
            except BrokenLink as e:
                problems.append((chapter, e))
    return problems


class LinkChecker:
    """
    Usage:
        checker = LinkChecker(book, color=True)
        success = checker.run()
    """

    def __init__(self, book, verbose=False, color=True):
        self.book = book
        self.verbose = verbose
        self.symbols = SYMBOLS_COLOR if color else SYMBOLS_PLAIN

    def run(self):
        """Check all chapters. Returns True if no broken links were found."""
        problems = broken_links(self.book)

        by_chapter = {}
        for chapter, error in problems:
            by_chapter.setdefault(chapter.path, []).append(error)

        for chapter in self.book.chapters():
            errors = by_chapter.get(chapter.path)
            if errors:
                print(f"  {chapter.path}")
                for error in errors:
                    print(f"  {self.symbols['error']} '{error.link}': {error.path} {error.reason}")
                print()
            elif self.verbose:
                print(f"  {self.symbols['ok']} {chapter.path}")

        print(f"{'─' * 50}")
        chapters = len(self.book.chapters())
        if problems:
            print(f"  {len(problems)} broken link(s) across {len(by_chapter)}/{chapters} chapters")
        else:
            print(f"  No broken links across {chapters} chapters.")

        return not problems
