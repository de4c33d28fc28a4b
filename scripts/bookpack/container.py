"""
EPUB container writer.

A small facade over ebooklib. Everything handed to it is held in memory
and only turned into an ebooklib book when generate() is called, so a
failed build never reaches the output sink.
"""

import re
import uuid
import posixpath

from ebooklib import epub

from bookpack.errors import PackagingFailure
from bookpack.toc import build_nav, content_uids


STYLESHEET_NAME = "stylesheet.css"

# field name -> Dublin Core element
DC_FIELDS = {
    "description": "description",
    "subject": "subject",
    "license": "rights",
}

METADATA_FIELDS = {"generator", "title", "author", "language", "identifier"} | set(DC_FIELDS)

HEAD = re.compile(r"<head\b[^>]*>(.*?)</head>", re.DOTALL | re.IGNORECASE)
LINK_TAG = re.compile(r"<link\b([^>]*?)/?>", re.IGNORECASE)
ATTRIBUTE = re.compile(r'([\w-]+)\s*=\s*"([^"]*)"')


def stylesheet_href(path):
    """Href of the shared stylesheet as seen from a content document."""
    return posixpath.relpath(STYLESHEET_NAME, posixpath.dirname(path) or ".")


def head_links(html):
    """Attributes of each <link> in a page's <head>, in order."""
    head = HEAD.search(html)
    if not head:
        return []
    return [dict(ATTRIBUTE.findall(tag.group(1))) for tag in LINK_TAG.finditer(head.group(1))]


class EpubContainer:
    """
    Collects metadata, content, resources, and the stylesheet for one book.

    Usage:
        container = EpubContainer()
        container.metadata("title", "My Book")
        container.add_content(unit)
        container.add_resource("img/logo.png", data, "image/png")
        container.stylesheet(css_bytes)
        container.generate(sink)
    """

    def __init__(self):
        self._metadata = {}
        self._units = []
        self._resources = {}
        self._stylesheet = b""

    # ── Collection ─────────────────────────────────────────

    def metadata(self, name, value):
        if name not in METADATA_FIELDS:
            raise PackagingFailure(f"Invalid metadata field: {name}")
        self._metadata[name] = str(value)

    def add_content(self, unit):
        self._units.append(unit)

    def add_resource(self, path, data, mimetype):
        # Re-adding a path replaces the earlier entry
        self._resources[path] = (bytes(data), mimetype)

    def stylesheet(self, data):
        self._stylesheet = bytes(data)

    # ── Serialization ──────────────────────────────────────

    def generate(self, sink):
        """Serialize the package into a writable binary file object."""
        if not self._units:
            raise PackagingFailure("The book has no content")

        try:
            book = self._build()
            writer = epub.EpubWriter(sink, book, {})
            writer.process()
            writer.write()
        except PackagingFailure:
            raise
        except Exception as e:
            raise PackagingFailure(f"Unable to write the EPUB package: {e}") from e

    def _build(self):
        book = epub.EpubBook()
        meta = self._metadata

        title = meta.get("title", "Untitled")
        book.set_identifier(meta.get("identifier") or f"urn:uuid:{uuid.uuid5(uuid.NAMESPACE_URL, title)}")
        book.set_title(title)
        book.set_language(meta.get("language", "en"))

        if meta.get("author"):
            book.add_author(meta["author"])
        if meta.get("generator"):
            book.add_metadata(None, "meta", "", {"name": "generator", "content": meta["generator"]})
        for name, element in DC_FIELDS.items():
            if meta.get(name):
                book.add_metadata("DC", element, meta[name])

        css = epub.EpubItem(
            uid="stylesheet",
            file_name=STYLESHEET_NAME,
            media_type="text/css",
            content=self._stylesheet,
        )
        book.add_item(css)

        uids = content_uids(self._units)
        chapters = []
        for unit in self._units:
            chapter = epub.EpubHtml(
                uid=uids[unit.path],
                title=unit.title,
                file_name=unit.path,
                lang=book.language,
            )
            chapter.content = unit.html.encode("utf-8")
            stylesheet = stylesheet_href(unit.path)
            chapter.add_link(href=stylesheet, rel="stylesheet", type="text/css")
            # ebooklib rebuilds <head>, so the page's own links are carried over
            for attrs in head_links(unit.html):
                if attrs.get("href") and attrs["href"] != stylesheet:
                    chapter.add_link(**attrs)
            book.add_item(chapter)
            chapters.append(chapter)

        for index, (path, (data, mimetype)) in enumerate(self._resources.items()):
            book.add_item(epub.EpubItem(
                uid=f"resource_{index}",
                file_name=path,
                media_type=mimetype,
                content=data,
            ))

        book.toc = build_nav(self._units, uids)
        book.add_item(epub.EpubNcx())
        book.add_item(epub.EpubNav())
        book.spine = chapters

        return book
