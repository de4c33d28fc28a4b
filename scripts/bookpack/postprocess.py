"""
Structural fix-ups applied to rendered chapter HTML before packaging.

EPUB readers expect <img> to sit inside a block element, so every
self-closing image is wrapped in a <p>. The fix is a regex over
renderer output, not an HTML parse; Python-Markdown emits images in the
one form "<img ... />", which is all the pattern needs to handle.
"""

import re


# Optional <p> / </p> around the image tell us whether it is already wrapped
IMG = re.compile(r"(?P<open><p>)?(?P<img><img\s+[^>]*/>)(?P<close></p>)?")


def fix_html(html):
    """Apply every structural fix to a chapter's HTML."""
    html = fix_img(html)
    return html


def fix_img(html):
    """
    Put each <img ... /> inside its own <p>.

    An image already sitting alone in a <p> is left untouched, so running
    the fix twice gives the same result as running it once.
    """
    return IMG.sub(_wrap_img, html)


def _wrap_img(match):
    if match.group("open") and match.group("close"):
        return match.group(0)
    return "".join([
        match.group("open") or "",
        f"<p>{match.group('img')}</p>",
        match.group("close") or "",
    ])
