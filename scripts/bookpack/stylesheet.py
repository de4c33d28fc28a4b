"""
The book stylesheet: built-in defaults plus any user stylesheets.
"""

from bookpack.errors import IoFailure


DEFAULT_CSS = """\
body {
    margin: 0 5%;
    line-height: 1.5;
    text-align: justify;
}

h1, h2, h3, h4, h5, h6 {
    text-align: left;
    page-break-after: avoid;
}

p {
    margin: 0.5em 0;
}

img {
    display: block;
    max-width: 100%;
    margin: 0 auto;
}

pre, code {
    font-family: monospace;
    font-size: 0.9em;
}

pre {
    white-space: pre-wrap;
    padding: 0.5em;
    border-left: 3px solid #ccc;
}

table {
    border-collapse: collapse;
    margin: 1em 0;
}

th, td {
    border: 1px solid #ccc;
    padding: 0.25em 0.5em;
}

blockquote {
    margin: 1em 2em;
    font-style: italic;
}

.footnote {
    font-size: 0.85em;
}
"""


def generate_stylesheet(config):
    """
    Concatenate the stylesheets into one byte string.

    The built-in stylesheet comes first (when enabled), then each
    additional stylesheet in the configured order.
    """
    stylesheet = bytearray()

    if config.use_default_css:
        stylesheet.extend(DEFAULT_CSS.encode("utf-8"))

    for additional_css in config.additional_css:
        try:
            with open(additional_css, "rb") as f:
                stylesheet.extend(f.read())
        except OSError as e:
            raise IoFailure("Unable to read stylesheet", additional_css) from e

    return bytes(stylesheet)
