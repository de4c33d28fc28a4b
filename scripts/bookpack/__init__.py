"""
bookpack: package a markdown book as an EPUB.

Public API:
    from bookpack.config import BookConfig
    from bookpack.book import load_book
    from bookpack.builders import EpubBuilder
    from bookpack.resources import find_links, find_assets
    from bookpack.check import LinkChecker
    from bookpack.epubcheck import validate_epub
"""

__version__ = "0.3.1"
