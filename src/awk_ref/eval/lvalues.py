from __future__ import annotations

from dataclasses import dataclass
from typing import List, Union

from lark import Tree

from ..runtime import assign_var, get_array, read_var
from ..tree import Node, tree_label
from ..types import AwkArray, AwkRuntimeError, AwkValue, Frame
from .common import EvalFunc, to_int, token_text
from .expr import apply_arith


@dataclass
class VarRef:
    name: str
    frame: Frame

    def get(self) -> AwkValue:
        return read_var(self.name, self.frame)

    def set(self, value: AwkValue) -> AwkValue:
        return assign_var(self.name, value, self.frame)


@dataclass
class ElemRef:
    array: AwkArray
    key: str

    def get(self) -> AwkValue:
        return self.array.get(self.key)

    def set(self, value: AwkValue) -> AwkValue:
        self.array.set(self.key, value)
        return value


@dataclass
class FieldRef:
    index: int
    frame: Frame

    def get(self) -> AwkValue:
        return self.frame.state.record.get(self.index)

    def set(self, value: AwkValue) -> AwkValue:
        self.frame.state.record.set(self.index, value)
        return value


LValue = Union[VarRef, ElemRef, FieldRef]


def subscript_key(subscripts: Tree, frame: Frame, eval_func: EvalFunc) -> str:
    """Join a (possibly multi-dimensional) subscript with SUBSEP."""
    convfmt = frame.state.convfmt()
    parts: List[str] = [eval_func(child, frame).to_str(convfmt) for child in subscripts.children]

    if len(parts) == 1:
        return parts[0]

    return frame.state.subsep().join(parts)


def resolve_lvalue(node: Node, frame: Frame, eval_func: EvalFunc) -> LValue:
    match tree_label(node):
        case 'var':
            return VarRef(token_text(node.children[0]), frame)
        case 'index':
            name_tok, subscripts = node.children
            key = subscript_key(subscripts, frame, eval_func)
            return ElemRef(get_array(token_text(name_tok), frame), key)
        case 'field':
            return FieldRef(to_int(eval_func(node.children[0], frame)), frame)
        case label:
            raise AwkRuntimeError(f"'{label}' is not assignable")


def eval_var(n: Tree, frame: Frame) -> AwkValue:
    return read_var(token_text(n.children[0]), frame)


def eval_index(n: Tree, frame: Frame, eval_func: EvalFunc) -> AwkValue:
    return resolve_lvalue(n, frame, eval_func).get()


def eval_field(n: Tree, frame: Frame, eval_func: EvalFunc) -> AwkValue:
    return frame.state.record.get(to_int(eval_func(n.children[0], frame)))


def eval_assign(n: Tree, frame: Frame, eval_func: EvalFunc) -> AwkValue:
    target, op_tok, rhs_node = n.children
    ref = resolve_lvalue(target, frame, eval_func)
    rhs = eval_func(rhs_node, frame)
    op = token_text(op_tok)

    if op == '=':
        return ref.set(rhs)

    return ref.set(apply_arith(op[:-1], ref.get(), rhs))


def eval_pre_incdec(n: Tree, frame: Frame, eval_func: EvalFunc) -> AwkValue:
    op_tok, target = n.children
    ref = resolve_lvalue(target, frame, eval_func)
    delta = 1 if token_text(op_tok) == '++' else -1
    return ref.set(AwkValue.from_num(ref.get().to_num() + delta))


def eval_post_incdec(n: Tree, frame: Frame, eval_func: EvalFunc) -> AwkValue:
    target, op_tok = n.children
    ref = resolve_lvalue(target, frame, eval_func)
    delta = 1 if token_text(op_tok) == '++' else -1
    old = ref.get().to_num()
    ref.set(AwkValue.from_num(old + delta))
    return AwkValue.from_num(old)


def eval_in(n: Tree, frame: Frame, eval_func: EvalFunc) -> AwkValue:
    subscripts, name_tok = n.children
    key = subscript_key(subscripts, frame, eval_func)
    return AwkValue.from_bool(get_array(token_text(name_tok), frame).contains(key))


def eval_delete(n: Tree, frame: Frame, eval_func: EvalFunc) -> None:
    arr = get_array(token_text(n.children[0]), frame)

    if len(n.children) == 1:
        arr.clear()
        return

    arr.delete(subscript_key(n.children[1], frame, eval_func))
