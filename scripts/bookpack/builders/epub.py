"""
EPUB builder.

Pipeline: metadata → chapters (markdown → HTML → fix-ups → page
template) → stylesheet → discovered assets → container write-out →
optional epubcheck validation.
"""

from bookpack.builders.base import BaseBuilder
from bookpack.container import EpubContainer, stylesheet_href
from bookpack.epubcheck import validate_epub
from bookpack.errors import IoFailure, RenderFailure
from bookpack.postprocess import fix_html
from bookpack.render import PageTemplate, render_markdown
from bookpack.resources import find_assets, unique_assets
from bookpack.stylesheet import generate_stylesheet
from bookpack.toc import ContentUnit, nesting_level, toc_children


GENERATOR = "bookpack"


class EpubBuilder(BaseBuilder):
    format_name = "EPUB"
    extension = ".epub"

    def __init__(self, config, book, output_dir, theme_dir, epub_config=None,
                 container=None, **kwargs):
        super().__init__(config, book, output_dir, **kwargs)
        self.theme_dir = theme_dir
        self.epub_config = epub_config if epub_config is not None else config.epub_options()
        self.container = container if container is not None else EpubContainer()
        self.template = PageTemplate(theme_dir)

    # ── Package emitter ────────────────────────────────────

    def generate(self, sink):
        self.log(f"  Theme: {self.theme_dir}")

        self.populate_metadata()
        self.generate_chapters()

        self.embed_stylesheets()
        self.additional_assets()

        self.log("  Writing package...")
        self.container.generate(sink)

    def populate_metadata(self):
        book = self.book
        self.container.metadata("generator", GENERATOR)
        self.container.metadata("title", book.title)
        self.container.metadata("language", book.language)

        if book.description:
            self.container.metadata("description", book.description)
        if book.authors:
            self.container.metadata("author", ", ".join(book.authors))
        if book.identifier:
            self.container.metadata("identifier", book.identifier)

    # ── Content assembler ──────────────────────────────────

    def generate_chapters(self):
        self.log("  Rendering chapters")

        for chapter in self.book.chapters():
            self.log(f"    Adding chapter \"{chapter}\"")
            self.add_chapter(chapter)

    def add_chapter(self, chapter):
        path = chapter.output_path
        title = str(chapter)

        try:
            html = render_markdown(chapter.content)
            html = fix_html(html)
            html = self.template.render(
                html, title=title, stylesheet=stylesheet_href(path)
            )
        except RenderFailure as e:
            raise RenderFailure(f"Unable to render chapter {chapter.path}") from e

        unit = ContentUnit(
            path=path,
            title=title,
            html=html,
            level=nesting_level(chapter),
            children=toc_children(chapter),
        )
        self.container.add_content(unit)
        return unit

    # ── Stylesheet & assets ────────────────────────────────

    def embed_stylesheets(self):
        """Generate the stylesheet and add it to the document."""
        self.log("  Embedding stylesheets")

        self.container.stylesheet(generate_stylesheet(self.epub_config))

    def additional_assets(self):
        self.log("  Embedding additional assets")

        # A broken link anywhere aborts the build before anything is embedded
        assets = find_assets(self.book, verbose=self.verbose)

        unique = unique_assets(assets)
        if len(unique) != len(assets):
            self.log(f"    Skipping {len(assets) - len(unique)} repeated asset reference(s)")

        for asset in unique:
            self.log(f"    Embedding {asset.filename}")
            self.load_asset(asset)

    def load_asset(self, asset):
        try:
            with open(asset.location_on_disk, "rb") as f:
                content = f.read()
        except OSError as e:
            raise IoFailure("Unable to open asset", asset.location_on_disk) from e

        filename = asset.filename.replace("\\", "/")
        self.container.add_resource(filename, content, asset.mimetype)

    # ── Full build ─────────────────────────────────────────

    def build(self):
        path = super().build()

        if self.kwargs.get("no_validate") or not self.config.epub.get("validate", True):
            return path

        validate_epub(
            path,
            verbose=self.verbose,
            json_report=self.kwargs.get("json_report"),
        )
        return path
