"""
AST transformation pass run between the RD parser and the evaluator.

Prune folds number and string literals into ready-made AwkValue constants,
drops grouping parentheses (the parser already used them), and spells every
exponent operator as '^'. split_program then sorts the top-level items.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from lark import Token, Transformer, Tree

from .lexer_rd import decode_escapes
from .tree import Node, is_tree, tree_children, tree_label
from .types import AwkFunction, AwkSyntaxError, AwkValue


class Prune(Transformer):
    # ---- literals ----
    def number(self, c: List[Token]) -> AwkValue:
        return AwkValue.from_num(float(c[0].value))

    def string(self, c: List[Token]) -> AwkValue:
        return AwkValue.from_str(decode_escapes(c[0].value))

    # ---- grouping ----
    def group(self, c: List[Node]) -> Node:
        return c[0]

    # ---- operator spelling ----
    def POW(self, tok: Token) -> Token:
        return tok.update(value='^')

    def POW_ASSIGN(self, tok: Token) -> Token:
        return tok.update(value='^=')


@dataclass
class ProgramParts:
    """Top-level items of one program, each list in source order."""

    begin: List[Tree] = field(default_factory=list)
    rules: List[Tree] = field(default_factory=list)
    end: List[Tree] = field(default_factory=list)
    functions: Dict[str, AwkFunction] = field(default_factory=dict)

    @property
    def needs_input(self) -> bool:
        """BEGIN-only programs never read the main input."""
        return bool(self.rules or self.end)


def split_program(program: Tree) -> ProgramParts:
    parts = ProgramParts()

    for item in tree_children(program):
        label = tree_label(item)

        match label:
            case 'begin':
                parts.begin.append(item.children[0])
            case 'end':
                parts.end.append(item.children[0])
            case 'rule':
                parts.rules.append(item)
            case 'function_def':
                name_tok, params, body = item.children
                parts.functions[str(name_tok)] = AwkFunction(
                    name=str(name_tok),
                    params=[str(p) for p in params.children],
                    body=body,
                )
            case _:
                raise AwkSyntaxError(f"unexpected top-level item '{label}'")

    return parts


def rule_parts(rule: Tree) -> tuple[Node | None, Tree | None]:
    """(pattern, action) of a rule; either may be missing but not both."""
    pattern = None
    action = None

    for child in tree_children(rule):
        if is_tree(child) and tree_label(child) == 'block':
            action = child
        else:
            pattern = child

    return pattern, action
