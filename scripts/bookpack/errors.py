"""
Error types raised while packaging a book.

Every failure is fatal: the builder aborts on the first one and the CLI
prints the whole causal chain (``raise ... from`` links each layer).
"""


class BookpackError(Exception):
    """Base class for all packaging errors."""
    pass


class BrokenLink(BookpackError):
    """An asset reference could not be resolved to an existing regular file."""

    def __init__(self, link, path, reason="does not exist"):
        self.link = link
        self.path = path
        self.reason = reason
        super().__init__(f"Broken link '{link}': {path} {reason}")


class IoFailure(BookpackError):
    """A stylesheet, chapter, or asset file could not be opened or read."""

    def __init__(self, message, path):
        self.path = path
        super().__init__(f"{message}: {path}")


class RenderFailure(BookpackError):
    """Markdown or page-template rendering failed."""
    pass


class PackagingFailure(BookpackError):
    """The container writer rejected metadata, content, a resource, or output."""
    pass


def iter_causes(error):
    """Yield an exception followed by each exception in its cause chain."""
    seen = set()
    while error is not None and id(error) not in seen:
        seen.add(id(error))
        yield error
        error = error.__cause__
