from __future__ import annotations

from typing import Optional

from lark import Tree

from ..runtime import assign_var, get_array
from ..types import (
    AwkBreakSignal,
    AwkContinueSignal,
    AwkExitSignal,
    AwkNextFileSignal,
    AwkNextSignal,
    AwkReturnSignal,
    AwkValue,
    Frame,
    UNINIT_VALUE,
)
from .common import EvalFunc, is_empty_node, to_int, token_text


def eval_block(n: Tree, frame: Frame, eval_func: EvalFunc) -> None:
    for stmt in n.children:
        eval_func(stmt, frame)


def eval_if_stmt(n: Tree, frame: Frame, eval_func: EvalFunc) -> None:
    cond, then_stmt, *rest = n.children

    if eval_func(cond, frame).truthy():
        eval_func(then_stmt, frame)
    elif rest:
        eval_func(rest[0], frame)


def _run_body(body: Tree, frame: Frame, eval_func: EvalFunc) -> bool:
    """Run one loop iteration; False when the loop should stop."""
    try:
        eval_func(body, frame)
    except AwkBreakSignal:
        return False
    except AwkContinueSignal:
        pass

    return True


def eval_while_stmt(n: Tree, frame: Frame, eval_func: EvalFunc) -> None:
    cond, body = n.children

    while eval_func(cond, frame).truthy():
        if not _run_body(body, frame, eval_func):
            break


def eval_do_stmt(n: Tree, frame: Frame, eval_func: EvalFunc) -> None:
    body, cond = n.children

    while True:
        if not _run_body(body, frame, eval_func):
            break
        if not eval_func(cond, frame).truthy():
            break


def eval_for_stmt(n: Tree, frame: Frame, eval_func: EvalFunc) -> None:
    init, cond, update, body = n.children

    if not is_empty_node(init):
        eval_func(init, frame)

    while is_empty_node(cond) or eval_func(cond, frame).truthy():
        if not _run_body(body, frame, eval_func):
            break
        if not is_empty_node(update):
            eval_func(update, frame)


def eval_for_in_stmt(n: Tree, frame: Frame, eval_func: EvalFunc) -> None:
    var_tok, array_tok, body = n.children
    name = token_text(var_tok)
    arr = get_array(token_text(array_tok), frame)

    for key in arr.keys():
        # keys deleted by an earlier iteration are skipped
        if not arr.contains(key):
            continue

        assign_var(name, AwkValue.from_input(key), frame)
        if not _run_body(body, frame, eval_func):
            break


def eval_expr_stmt(n: Tree, frame: Frame, eval_func: EvalFunc) -> None:
    eval_func(n.children[0], frame)


def eval_break_stmt(frame: Frame) -> None:
    raise AwkBreakSignal()

def eval_continue_stmt(frame: Frame) -> None:
    raise AwkContinueSignal()

def eval_next_stmt(frame: Frame) -> None:
    raise AwkNextSignal()

def eval_nextfile_stmt(frame: Frame) -> None:
    raise AwkNextFileSignal()


def eval_exit_stmt(n: Tree, frame: Frame, eval_func: EvalFunc) -> None:
    code: Optional[int] = None

    if n.children:
        code = to_int(eval_func(n.children[0], frame)) & 0xFF

    raise AwkExitSignal(code)


def eval_return_stmt(n: Tree, frame: Frame, eval_func: EvalFunc) -> None:
    value = eval_func(n.children[0], frame) if n.children else UNINIT_VALUE
    raise AwkReturnSignal(value)
