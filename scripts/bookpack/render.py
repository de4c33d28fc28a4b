"""
Markdown rendering and the page template.

Chapters are rendered with Python-Markdown (no smart quotes) and the
resulting HTML is wrapped in the theme's index.html Jinja2 template.
"""

import markdown
from jinja2 import Environment, FileSystemLoader, TemplateError

from bookpack.errors import RenderFailure


# Shared by rendering and asset discovery so both see the same document
MARKDOWN_EXTENSIONS = ["fenced_code", "tables", "footnotes", "sane_lists"]

TEMPLATE_NAME = "index.html"


def new_markdown(extensions=None):
    """A fresh Markdown instance with the book extensions plus any extras."""
    return markdown.Markdown(
        extensions=MARKDOWN_EXTENSIONS + list(extensions or []),
        output_format="xhtml",
    )


def render_markdown(text):
    """Render chapter markdown to an HTML fragment."""
    try:
        return new_markdown().convert(text)
    except Exception as e:
        raise RenderFailure(f"Markdown rendering failed: {e}") from e


class PageTemplate:
    """The theme's page template, loaded once per build."""

    def __init__(self, theme_dir):
        self.theme_dir = theme_dir
        env = Environment(
            loader=FileSystemLoader(theme_dir),
            autoescape=False,
            keep_trailing_newline=True,
        )
        try:
            self._template = env.get_template(TEMPLATE_NAME)
        except TemplateError as e:
            raise RenderFailure(
                f"Unable to load {TEMPLATE_NAME} from theme {theme_dir}: {e}"
            ) from e

    def render(self, content, title="", stylesheet="stylesheet.css"):
        try:
            return self._template.render(
                content=content, title=title, stylesheet=stylesheet
            )
        except TemplateError as e:
            raise RenderFailure(f"Template rendering failed: {e}") from e
