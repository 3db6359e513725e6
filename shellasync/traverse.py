"""
Generic enter/exit walker over the syntax tree.

Children are visited in dataclass field order (the order the source reads).
A visitor hook may return a `Replace` to substitute the current node in its
parent slot. By default a replacement is not descended into again, so a rewrite
such as wrapping a call in `await` happens exactly once per node.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Iterator, Optional, Tuple

from .ast import Node


@dataclass
class Replace:
    node: Node
    # When False the replacement is traversed as if it had been in the tree.
    skip: bool = True


class Path:
    __slots__ = ("node", "parent", "key", "index", "skipped")

    def __init__(self, node: Node, parent: Optional[Node], key: Optional[str], index: Optional[int]) -> None:
        self.node = node
        self.parent = parent
        self.key = key
        self.index = index
        self.skipped = False

    def skip(self) -> None:
        """Do not descend into the children of this node."""
        self.skipped = True


class Visitor:
    def enter(self, path: Path) -> Optional[Replace]:
        return None

    def exit(self, path: Path) -> Optional[Replace]:
        return None


def iter_child_slots(node: Node) -> Iterator[Tuple[str, Optional[int], Node]]:
    for f in fields(node):
        if f.name == "loc":
            continue
        value = getattr(node, f.name)
        if isinstance(value, Node):
            yield f.name, None, value
        elif isinstance(value, list):
            for idx, item in enumerate(value):
                if isinstance(item, Node):
                    yield f.name, idx, item


def iter_nodes(node: Node) -> Iterator[Node]:
    """Pre-order iteration over ``node`` and all its descendants."""
    yield node
    for _, _, child in iter_child_slots(node):
        yield from iter_nodes(child)


def traverse(node: Node, visitor: Visitor) -> Node:
    """Walk ``node`` itself and its subtree; returns the (possibly replaced) root."""
    return _visit(node, visitor, None, None, None)


def traverse_children(node: Node, visitor: Visitor) -> None:
    """Walk the subtree below ``node`` without calling hooks for ``node`` itself."""
    for key, index, child in list(iter_child_slots(node)):
        replacement = _visit(child, visitor, node, key, index)
        if replacement is not child:
            _set_slot(node, key, index, replacement)


def _visit(node: Node, visitor: Visitor, parent: Optional[Node], key: Optional[str], index: Optional[int]) -> Node:
    path = Path(node, parent, key, index)
    result = visitor.enter(path)
    if result is not None:
        return _apply(result, visitor, parent, key, index)
    if not path.skipped:
        traverse_children(node, visitor)
    result = visitor.exit(path)
    if result is not None:
        return _apply(result, visitor, parent, key, index)
    return node


def _apply(result: Replace, visitor: Visitor, parent: Optional[Node], key: Optional[str], index: Optional[int]) -> Node:
    if result.skip:
        return result.node
    return _visit(result.node, visitor, parent, key, index)


def _set_slot(node: Node, key: str, index: Optional[int], value: Node) -> None:
    if index is None:
        setattr(node, key, value)
    else:
        getattr(node, key)[index] = value
