"""
Asset discovery: find every file a chapter references and resolve it.

Two kinds of reference are recognised:

    1. Markdown images, ![alt](path) and ![alt][ref]. The parser tags
       these, so their destination is taken verbatim.
    2. Raw HTML, <img src="..."> and <a href="...">. Markdown treats raw
       HTML as opaque, so the attribute is recovered with HTML_LINK. Only
       the first match on each line of a raw-HTML fragment is captured;
       a second <img> on the same line is not seen, even when the first
       match is an anchor such as href="#top".

Footnote definitions are visited where they are written, not where the
footnotes extension renders them.

Plain markdown links, [text](target), are navigation and are never
collected.
"""

import os
import re
import mimetypes
import xml.etree.ElementTree as etree
from urllib.parse import urlsplit

from markdown.blockprocessors import BlockProcessor
from markdown.extensions import Extension
from markdown.extensions.footnotes import FootnoteBlockProcessor, FootnoteExtension
from markdown.treeprocessors import Treeprocessor
from markdown.util import HTML_PLACEHOLDER_RE

from bookpack.errors import BrokenLink
from bookpack.render import new_markdown
from bookpack.resolve import resolve_link


HTML_LINK = re.compile(r'(<(?:a|img) [^>]*?(?:src|href)=")([^"]+?)"')

DEFAULT_MIMETYPE = "application/octet-stream"

FOOTNOTE_MARKER = "footnote-definition"


class Asset:
    """One resolved, on-disk file referenced from a chapter."""

    def __init__(self, filename, location_on_disk):
        self.location_on_disk = location_on_disk
        # Archive entry names always use forward slashes
        self.filename = filename.replace("\\", "/")
        mimetype, _ = mimetypes.guess_type(location_on_disk)
        self.mimetype = mimetype or DEFAULT_MIMETYPE

    def __eq__(self, other):
        if not isinstance(other, Asset):
            return NotImplemented
        return (
            self.location_on_disk == other.location_on_disk
            and self.filename == other.filename
            and self.mimetype == other.mimetype
        )

    def __repr__(self):
        return f"Asset({self.filename!r}, {self.location_on_disk!r}, {self.mimetype!r})"


# ── Link extraction ────────────────────────────────────────────────────


class _FootnoteMarker(BlockProcessor):
    """
    Leave an empty marker element where a footnote definition is written.

    The footnotes extension lifts definitions out of the text and renders
    them at the end of the document; the marker lets the collector visit
    each one in place.
    """

    def test(self, parent, block):
        return FootnoteBlockProcessor.RE.search(block) is not None

    def run(self, parent, blocks):
        block = blocks[0]
        match = FootnoteBlockProcessor.RE.search(block)
        before = block[:match.start()]
        if before.strip():
            # Text ahead of the definition becomes its own block first
            blocks[0:1] = [before.rstrip("\n"), block[match.start():]]
            return True

        marker = etree.SubElement(parent, FOOTNOTE_MARKER)
        marker.set("ref", match.group(1))
        # Fall through to the footnotes extension, which stores the definition
        return False


class _LinkCollector(Treeprocessor):
    """Walk the parsed tree in document order, recording asset links."""

    def __init__(self, md, found):
        super().__init__(md)
        self.found = found
        self._footnotes = {}
        self._placed = set()

    def run(self, root):
        self._footnotes = self._footnote_items(root)
        self._placed = set()
        self._visit(root)

    def _footnote_items(self, root):
        """Footnote id -> its rendered <li>, when the footnotes extension is loaded."""
        footnotes = next(
            (ext for ext in self.md.registeredExtensions if isinstance(ext, FootnoteExtension)),
            None,
        )
        if footnotes is None:
            return {}

        by_id = {li.get("id"): li for li in root.iter("li") if li.get("id")}
        items = {}
        for ref in footnotes.footnotes:
            li = by_id.get(footnotes.makeFootnoteId(ref))
            if li is not None:
                items[ref] = li
        return items

    def _visit(self, element):
        if element.tag == FOOTNOTE_MARKER:
            note = self._footnotes.pop(element.get("ref"), None)
            if note is not None:
                self._placed.add(note)
                self._visit_children(note)
            return
        if element in self._placed:
            return

        if element.tag == "img" and element.get("src"):
            self.found.append(element.get("src"))
        self._visit_children(element)

    def _visit_children(self, element):
        self._scan_text(element.text)
        for child in element:
            self._visit(child)
            self._scan_text(child.tail)

    def _scan_text(self, text):
        if not text:
            return
        for placeholder in HTML_PLACEHOLDER_RE.finditer(text):
            index = int(placeholder.group(1))
            stash = self.md.htmlStash.rawHtmlBlocks
            if index < len(stash) and isinstance(stash[index], str):
                self.found.extend(html_links(stash[index]))


class LinkCollectorExtension(Extension):
    """Python-Markdown extension exposing the links found during convert()."""

    def __init__(self, **kwargs):
        self.links = []
        super().__init__(**kwargs)

    def extendMarkdown(self, md):
        if "footnote" in md.parser.blockprocessors:
            # Ahead of the footnotes extension's own processor (17)
            md.parser.blockprocessors.register(_FootnoteMarker(md.parser), "footnote_marker", 17.5)
        # After "inline" (20) so images and inline HTML are already in the tree
        md.treeprocessors.register(_LinkCollector(md, self.links), "collect_links", 15)


def html_links(fragment):
    """First src/href of an <a> or <img> tag on each line of raw HTML."""
    links = []
    for line in fragment.splitlines():
        match = HTML_LINK.search(line)
        if match:
            links.append(match.group(2))
    return links


def find_links(src):
    """
    Every asset link in a chapter's markdown, in document order.

    Duplicates are kept; a file referenced twice appears twice.
    """
    collector = LinkCollectorExtension()
    new_markdown([collector]).convert(src)
    return list(collector.links)


def is_local_link(link):
    """True for links that name a file on disk rather than a URL or anchor."""
    if not link or link.startswith("#"):
        return False
    scheme = urlsplit(link).scheme
    # A one-letter "scheme" is a Windows drive letter, not a URL
    return len(scheme) <= 1


# ── Asset collection ───────────────────────────────────────────────────


def chapter_dir(src_dir, chapter):
    """Directory containing a chapter's source file."""
    return os.path.dirname(os.path.join(src_dir, *chapter.path.split("/")))


def resolve_asset(link, base_dir, src_dir):
    """
    Resolve one local link to an Asset named relative to src_dir.

    src_dir must already be canonical. Raises BrokenLink if the target is
    missing, is not a file, or lies outside src_dir.
    """
    full_filename = resolve_link(link, base_dir)

    relative = os.path.relpath(full_filename, src_dir)
    if relative == os.pardir or relative.startswith(os.pardir + os.sep):
        raise BrokenLink(link, full_filename, f"is outside the source directory {src_dir}")
    return Asset(relative, full_filename)


def find_assets(book, verbose=False):
    """
    Collect an Asset for every reference in every chapter.

    Chapters are visited depth-first in document order. The first broken
    link aborts the whole search; no partial list is returned. The same
    file referenced from two chapters yields two Assets.
    """
    src_dir = os.path.realpath(book.src_dir)
    assets = []

    for chapter in book.chapters():
        if verbose:
            print(f"  Searching {chapter} for links and assets")

        base_dir = chapter_dir(src_dir, chapter)
        for link in find_links(chapter.content):
            if not is_local_link(link):
                continue
            try:
                assets.append(resolve_asset(link, base_dir, src_dir))
            except BrokenLink as e:
                raise BrokenLink(e.link, e.path, f"{e.reason} (in {chapter.path})") from e

    return assets


def unique_assets(assets):
    """Drop repeated archive paths, keeping the first occurrence."""
    seen = set()
    unique = []
    for asset in assets:
        if asset.filename in seen:
            continue
        seen.add(asset.filename)
        unique.append(asset)
    return unique
