"""Shared helpers for working with the lark Tree/Token parse tree."""
from __future__ import annotations

from typing import Iterable, List, Optional, Set, TypeGuard, Union

from lark import Token, Tree
from lark.tree import Meta
from typing_extensions import TypeAlias

from .token_types import Tok

Node: TypeAlias = Union[Tree, Token]


def make_meta(tok: Tok, end: Optional[int] = None) -> Meta:
    """Meta block carrying the position of the node's first token."""
    meta = Meta()
    meta.empty = False
    meta.line = tok.line
    meta.column = tok.column
    meta.start_pos = tok.start
    meta.end_pos = end if end is not None else tok.end
    return meta


def make_tree(label: str, children: List[Node], tok: Tok, end: Optional[int] = None) -> Tree:
    return Tree(label, children, make_meta(tok, end))


def make_token(tok: Tok) -> Token:
    return Token(
        tok.type.name, tok.value,
        start_pos=tok.start, line=tok.line, column=tok.column, end_pos=tok.end,
    )


def is_tree(node: object) -> TypeGuard[Tree]:
    return isinstance(node, Tree)

def is_token(node: object) -> TypeGuard[Token]:
    return isinstance(node, Token)

def tree_label(node: object) -> Optional[str]:
    return node.data if is_tree(node) else None

def tree_children(node: object) -> List[Node]:
    if not is_tree(node):
        return []

    return list(node.children)

def node_meta(node: object) -> Optional[Meta]:
    if is_tree(node):
        return node.meta
    return None

def find_tree_by_label(node: Node, labels: Iterable[str]) -> Optional[Tree]:
    lookup: Set[str] = set(labels)

    if is_tree(node) and tree_label(node) in lookup:
        return node

    for child in tree_children(node):
        found = find_tree_by_label(child, lookup)
        if found is not None:
            return found

    return None

def count_labels(node: Node, label: str) -> int:
    total = 1 if tree_label(node) == label else 0

    for child in tree_children(node):
        total += count_labels(child, label)

    return total
