from __future__ import annotations

import math
from typing import Any, Callable

from ..regex import compile_ere
from ..tree import Node, is_token, node_meta, tree_label
from ..types import AwkValue, Frame

EvalFunc = Callable[[Node, Frame], AwkValue]


def token_text(node: Any) -> str:
    return str(node.value) if is_token(node) else ''

def is_literal_node(node: Any) -> bool:
    return isinstance(node, AwkValue)

def is_empty_node(node: Any) -> bool:
    return tree_label(node) == 'empty'

def node_source_span(node: Any) -> tuple[int | None, int | None]:
    meta = node_meta(node)
    if meta is None:
        return None, None

    return getattr(meta, "start_pos", None), getattr(meta, "end_pos", None)

def to_int(value: AwkValue) -> int:
    """Truncate toward zero; NaN and infinities become 0."""
    num = value.to_num()
    if math.isnan(num) or math.isinf(num):
        return 0
    return int(num)

def regex_source(node: Node, frame: Frame, eval_func: EvalFunc) -> str:
    """ERE text of an operand: a /literal/ as written, anything else by its string value."""
    if tree_label(node) == 'regex':
        return token_text(node.children[0])

    return eval_func(node, frame).to_str(frame.state.convfmt())

def dynamic_regex(node: Node, frame: Frame, eval_func: EvalFunc):
    return compile_ere(regex_source(node, frame, eval_func))

def match_record(frame: Frame, pattern: str) -> bool:
    return compile_ere(pattern).search(frame.state.record.text) is not None
