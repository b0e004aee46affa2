"""print/printf output and the three getline forms."""

from __future__ import annotations

from typing import Optional, TextIO, Tuple

from lark import Tree

from ..format import sprintf
from ..tree import Node, tree_label
from ..types import AwkIOError, AwkValue, Frame
from ..utils import warn
from .common import EvalFunc, is_empty_node, token_text
from .lvalues import resolve_lvalue

GETLINE_OK = AwkValue.from_num(1)
GETLINE_EOF = AwkValue.from_num(0)
GETLINE_ERROR = AwkValue.from_num(-1)

# ---------------- output ----------------

def _output_stream(redirect: Optional[Tree], frame: Frame, eval_func: EvalFunc) -> Tuple[TextIO, str]:
    io = frame.state.io

    if redirect is None:
        return io.stdout, '/dev/stdout'

    op_tok, target_node = redirect.children
    target = eval_func(target_node, frame).to_str(frame.state.convfmt())
    return io.get_output(token_text(op_tok), target), target


def eval_print_stmt(n: Tree, frame: Frame, eval_func: EvalFunc) -> None:
    keyword, items, *rest = n.children
    state = frame.state

    if token_text(keyword) == 'printf':
        values = [eval_func(item, frame) for item in items.children]
        convfmt = state.convfmt()
        text = sprintf(values[0].to_str(convfmt), values[1:], convfmt)
    elif not items.children:
        text = state.record.text + state.setting('ORS')
    else:
        ofmt = state.ofmt()
        rendered = [eval_func(item, frame).to_output_str(ofmt) for item in items.children]
        text = state.setting('OFS').join(rendered) + state.setting('ORS')

    stream, target = _output_stream(rest[0] if rest else None, frame, eval_func)

    try:
        stream.write(text)
    except OSError as exc:
        raise AwkIOError(target, exc.strerror or str(exc)) from None

# ---------------- getline ----------------

def _store(target: Node, text: str, frame: Frame, eval_func: EvalFunc) -> None:
    """Put a record read by getline into its lvalue, or into $0 when there is none."""
    if is_empty_node(target):
        frame.state.record.set_text(text)
        return

    resolve_lvalue(target, frame, eval_func).set(AwkValue.from_input(text))


def eval_simple_getline(n: Tree, frame: Frame, eval_func: EvalFunc) -> AwkValue:
    """getline [var]: next record of the main input; NR and FNR advance."""
    main = frame.state.main_input
    if main is None:
        return GETLINE_EOF

    try:
        text = main.next_record()
    except AwkIOError as exc:
        warn(str(exc))
        return GETLINE_ERROR

    if text is None:
        return GETLINE_EOF

    _store(n.children[0], text, frame, eval_func)
    return GETLINE_OK


def eval_file_getline(n: Tree, frame: Frame, eval_func: EvalFunc) -> AwkValue:
    """getline [var] < file: NR and FNR are left alone."""
    target, source = n.children
    state = frame.state
    name = eval_func(source, frame).to_str(state.convfmt())

    try:
        text = state.io.read_record('<', name, state.setting('RS'))
    except AwkIOError as exc:
        warn(str(exc))
        return GETLINE_ERROR

    if text is None:
        return GETLINE_EOF

    _store(target, text, frame, eval_func)
    return GETLINE_OK


def eval_pipe_getline(n: Tree, frame: Frame, eval_func: EvalFunc) -> AwkValue:
    """cmd | getline [var]: NR advances, FNR does not."""
    _, status = _read_pipe(n, frame, eval_func)
    return status


def _read_pipe(n: Tree, frame: Frame, eval_func: EvalFunc) -> Tuple[str, AwkValue]:
    cmd_node, target = n.children
    state = frame.state

    # cmd | getline | getline reads the same command twice
    if tree_label(cmd_node) == 'pipe_getline':
        command, _ = _read_pipe(cmd_node, frame, eval_func)
    else:
        command = eval_func(cmd_node, frame).to_str(state.convfmt())

    try:
        text = state.io.read_record('|', command, state.setting('RS'))
    except AwkIOError as exc:
        warn(str(exc))
        return command, GETLINE_ERROR

    if text is None:
        return command, GETLINE_EOF

    state.set_number('NR', state.number('NR') + 1)
    _store(target, text, frame, eval_func)
    return command, GETLINE_OK
