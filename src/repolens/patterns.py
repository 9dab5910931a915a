"""Presence checks over a file tree.

Two kinds of lookup:

- ``contains_path``: does any full path (root to node) contain a substring,
  e.g. ``.github/workflows``.
- ``contains_file_named``: is any entry, at any depth, literally named one
  of the given names, e.g. ``README.md``.

Both are case-insensitive and return False instead of raising on input that
is not a tree.
"""

from __future__ import annotations

from typing import Any, Iterator, Mapping, Sequence, Tuple

from .tree import FolderNode


def contains_path(tree: Any, patterns: Sequence[str]) -> bool:
    """True if any node path contains any of ``patterns`` as a substring."""
    needles = [p.lower() for p in patterns if p]
    if not needles:
        return False
    for path, _ in _walk(tree):
        lower = path.lower()
        if any(needle in lower for needle in needles):
            return True
    return False


def contains_file_named(tree: Any, names: Sequence[str]) -> bool:
    """True if any entry name at any depth equals one of ``names``."""
    wanted = {n.lower() for n in names if n}
    if not wanted:
        return False
    for path, _ in _walk(tree):
        if path.rsplit("/", 1)[-1].lower() in wanted:
            return True
    return False


def _walk(tree: Any, prefix: str = "") -> Iterator[Tuple[str, Any]]:
    if not isinstance(tree, Mapping):
        return
    for name, node in tree.items():
        if not isinstance(name, str):
            continue
        path = f"{prefix}/{name}" if prefix else name
        yield path, node
        children = _children(node)
        if children is not None:
            yield from _walk(children, path)


def _children(node: Any) -> Mapping | None:
    if isinstance(node, FolderNode):
        return node.children
    # Raw fetcher dicts are walked too, so unvalidated input degrades to "no match".
    if isinstance(node, Mapping) and node.get("type") == "folder":
        children = node.get("children")
        if isinstance(children, Mapping):
            return children
    return None
