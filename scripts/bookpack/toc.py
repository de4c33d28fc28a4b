"""
Table of contents: per-chapter TOC data and the nested navigation tree.

Each chapter contributes only its direct sub-chapters as TOC children.
Deeper levels appear when those sub-chapters are assembled in turn, so
the navigation ends up with the same shape as the chapter tree.
"""

from dataclasses import dataclass, field

from ebooklib import epub


@dataclass(frozen=True)
class TocEntry:
    path: str
    title: str


@dataclass
class ContentUnit:
    """One chapter, assembled and ready for the container writer."""

    path: str
    title: str
    html: str
    level: int = 0
    children: list = field(default_factory=list)


def nesting_level(chapter):
    """Zero-based depth: "3.2.1" is level 2, an unnumbered chapter level 0."""
    if not chapter.number:
        return 0
    return len(chapter.number) - 1


def toc_children(chapter):
    """A TocEntry for each direct sub-chapter, in document order."""
    return [
        TocEntry(sub.output_path, str(sub))
        for sub in chapter.sub_chapters()
    ]


def content_uid(path):
    """A manifest id derived from an archive path."""
    safe = "".join(c if c.isalnum() or c in "-_" else "_" for c in path)
    return f"chapter_{safe}"


def content_uids(units):
    """
    Map each unit's path to a manifest id, unique across the book.

    Paths such as "a/b.html" and "a_b.html" sanitize to the same id; later
    ones get a numeric suffix.
    """
    uids = {}
    taken = set()
    for unit in units:
        if unit.path in uids:
            continue
        uid = base = content_uid(unit.path)
        suffix = 2
        while uid in taken:
            uid = f"{base}_{suffix}"
            suffix += 1
        taken.add(uid)
        uids[unit.path] = uid
    return uids


# ── Navigation tree ────────────────────────────────────────────────────


def nav_tree(units):
    """
    Arrange content units into a forest of (unit, [child nodes]) pairs.

    A unit listed in another unit's children nests under that unit. A
    unit with level > 0 that nobody claims goes under the most recent
    unit one level up. Everything else is a root.
    """
    by_path = {unit.path: unit for unit in units}
    claimed = {
        child.path
        for unit in units
        for child in unit.children
        if child.path in by_path
    }

    nodes = {unit.path: (unit, []) for unit in units}
    roots = []
    last_at_level = {}

    for unit in units:
        node = nodes[unit.path]

        for child in unit.children:
            if child.path in nodes:
                node[1].append(nodes[child.path])

        if unit.path not in claimed:
            parent = last_at_level.get(unit.level - 1) if unit.level > 0 else None
            if parent is not None:
                parent[1].append(node)
            else:
                roots.append(node)

        last_at_level[unit.level] = node
        for deeper in [lvl for lvl in last_at_level if lvl > unit.level]:
            del last_at_level[deeper]

    return roots


def build_nav(units, uids=None):
    """The nav structure ebooklib expects for book.toc."""
    if uids is None:
        uids = content_uids(units)
    return [_nav_node(node, uids) for node in nav_tree(units)]


def _nav_node(node, uids):
    unit, children = node
    if not children:
        return epub.Link(unit.path, unit.title, uids[unit.path])
    section = epub.Section(unit.title, href=unit.path)
    return (section, [_nav_node(child, uids) for child in children])
