from __future__ import annotations

from lark import Tree

from ..runtime import call_builtin, call_function
from ..types import AwkRuntimeError, AwkValue, Frame
from .common import EvalFunc, token_text


def eval_call(n: Tree, frame: Frame, eval_func: EvalFunc) -> AwkValue:
    name_tok, args = n.children
    name = token_text(name_tok)
    fn = frame.state.functions.get(name)

    if fn is None:
        raise AwkRuntimeError(f"function '{name}' not defined")

    return call_function(fn, args.children, frame, eval_func)


def eval_builtin_call(n: Tree, frame: Frame, eval_func: EvalFunc) -> AwkValue:
    name_tok, args = n.children
    return call_builtin(token_text(name_tok), args.children, frame, eval_func)
