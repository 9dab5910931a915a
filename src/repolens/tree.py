"""File tree model shared by every detector.

A tree is a plain mapping of entry name to node, where a node is either a
``FileNode`` or a ``FolderNode`` holding its own children mapping. Raw
structures coming from a fetcher are validated once, here, so that the
detectors never have to deal with loosely shaped input.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, Mapping, Tuple, Union


class TreeError(ValueError):
    """Raised when a raw structure is not a valid file tree."""


@dataclass(frozen=True)
class FileNode:
    """A file entry."""

    explanation: str = ""


@dataclass(frozen=True)
class FolderNode:
    """A folder entry and its children."""

    children: Dict[str, "Node"] = field(default_factory=dict)


Node = Union[FileNode, FolderNode]
FileTree = Dict[str, Node]


def parse_tree(raw: Any) -> FileTree:
    """Validate a ``{name: {"type": ..., "children": ...}}`` structure.

    Raises TreeError on anything that is not a well-formed tree.
    """
    if not isinstance(raw, Mapping):
        raise TreeError(f"Expected a mapping of entries, got {type(raw).__name__}")

    tree: FileTree = {}
    for name, entry in raw.items():
        if not isinstance(name, str) or not name or "/" in name:
            raise TreeError(f"Invalid entry name: {name!r}")
        if not isinstance(entry, Mapping):
            raise TreeError(f"Entry {name!r} must be a mapping")

        kind = entry.get("type")
        if kind == "file":
            tree[name] = FileNode(explanation=str(entry.get("explanation") or ""))
        elif kind == "folder":
            children = entry.get("children", {})
            if children is None:
                children = {}
            try:
                tree[name] = FolderNode(children=parse_tree(children))
            except TreeError as e:
                raise TreeError(f"{name}/{e}") from e
        else:
            raise TreeError(f"Entry {name!r} has unknown type {kind!r}")
    return tree


def build_tree(paths: Iterable[str], max_depth: int | None = None) -> FileTree:
    """Build a tree from flat ``/``-separated paths.

    Every component but the last is a folder. A trailing ``/`` marks the
    whole path as a folder. Paths deeper than ``max_depth`` are cut off and
    their last kept component becomes a folder.
    """
    tree: FileTree = {}
    for path in paths:
        is_dir = path.endswith("/")
        parts = [p for p in path.replace("\\", "/").split("/") if p]
        if not parts:
            continue
        if max_depth is not None and len(parts) > max_depth:
            parts = parts[:max_depth]
            is_dir = True

        current = tree
        for i, part in enumerate(parts):
            last = i == len(parts) - 1
            existing = current.get(part)
            if last and not is_dir:
                if existing is None:
                    current[part] = FileNode()
                continue
            if not isinstance(existing, FolderNode):
                existing = FolderNode()
                current[part] = existing
            current = existing.children
    return tree


def iter_paths(tree: FileTree, prefix: str = "") -> Iterator[Tuple[str, Node]]:
    """Yield ``(path, node)`` for every entry, depth-first."""
    for name, node in tree.items():
        path = f"{prefix}/{name}" if prefix else name
        yield path, node
        if isinstance(node, FolderNode):
            yield from iter_paths(node.children, path)


def file_paths(tree: FileTree) -> list[str]:
    """Flat list of file paths (folders excluded)."""
    return [path for path, node in iter_paths(tree) if isinstance(node, FileNode)]


def tree_to_dict(tree: FileTree) -> dict[str, Any]:
    """Serialize a tree back to its boundary shape."""
    out: dict[str, Any] = {}
    for name, node in tree.items():
        if isinstance(node, FolderNode):
            out[name] = {"type": "folder", "children": tree_to_dict(node.children)}
        else:
            entry: dict[str, Any] = {"type": "file"}
            if node.explanation:
                entry["explanation"] = node.explanation
            out[name] = entry
    return out
