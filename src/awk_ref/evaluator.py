from __future__ import annotations

from types import SimpleNamespace
from typing import Callable, Optional, TextIO

from lark import Tree

from .ast_transforms import ProgramParts, rule_parts
from .runtime import InterpState, MainInput, init_stdlib
from .tree import Node, node_meta, tree_label
from .types import (
    AwkExitSignal,
    AwkNextFileSignal,
    AwkNextSignal,
    AwkRuntimeError,
    AwkValue,
    Frame,
)
from .eval.common import is_literal_node, node_source_span
from .eval.control import (
    eval_block,
    eval_break_stmt,
    eval_continue_stmt,
    eval_do_stmt,
    eval_exit_stmt,
    eval_expr_stmt,
    eval_for_in_stmt,
    eval_for_stmt,
    eval_if_stmt,
    eval_next_stmt,
    eval_nextfile_stmt,
    eval_return_stmt,
    eval_while_stmt,
)
from .eval.expr import (
    eval_arith,
    eval_compare,
    eval_concat,
    eval_logical,
    eval_match,
    eval_power,
    eval_regex,
    eval_ternary,
    eval_unary,
)
from .eval.fn import eval_builtin_call, eval_call
from .eval.io import eval_file_getline, eval_pipe_getline, eval_print_stmt, eval_simple_getline
from .eval.lvalues import (
    eval_assign,
    eval_delete,
    eval_field,
    eval_in,
    eval_index,
    eval_post_incdec,
    eval_pre_incdec,
    eval_var,
)


def _maybe_attach_location(exc: AwkRuntimeError, node: Node, frame: Frame) -> None:
    if getattr(exc, "_augmented", False):
        return

    meta = node_meta(node)

    if meta is not None and getattr(meta, "line", None) is not None:
        exc.awk_meta = meta
        exc._augmented = True  # type: ignore[attr-defined]
        return

    start, _ = node_source_span(node)
    if start is None:
        return

    source = frame.state.source
    if source is None:
        return

    line = source.count("\n", 0, start) + 1
    last_nl = source.rfind("\n", 0, start)
    col = start + 1 if last_nl == -1 else start - last_nl
    exc.awk_meta = SimpleNamespace(line=line, column=col)
    exc._augmented = True  # type: ignore[attr-defined]

# ---------------- Core evaluator ----------------

def eval_node(n: Node, frame: Frame) -> Optional[AwkValue]:
    try:
        return _eval_node_inner(n, frame)
    except AwkRuntimeError as e:
        _maybe_attach_location(e, n, frame)
        raise


def _eval_node_inner(n: Node, frame: Frame) -> Optional[AwkValue]:
    if is_literal_node(n):
        return n

    d = tree_label(n)
    handler = _NODE_DISPATCH.get(d) if d is not None else None
    if handler is not None:
        return handler(n, frame)

    match d:
        case 'and' | 'or':
            return eval_logical(d, n, frame, eval_node)
        case 'empty' | 'empty_stmt':
            return None
        case _:
            raise AwkRuntimeError(f"Unknown node: {d}")


_NODE_DISPATCH: dict[str, Callable[[Tree, Frame], Optional[AwkValue]]] = {
    # statements
    'block': lambda n, frame: eval_block(n, frame, eval_node),
    'if_stmt': lambda n, frame: eval_if_stmt(n, frame, eval_node),
    'while_stmt': lambda n, frame: eval_while_stmt(n, frame, eval_node),
    'do_stmt': lambda n, frame: eval_do_stmt(n, frame, eval_node),
    'for_stmt': lambda n, frame: eval_for_stmt(n, frame, eval_node),
    'for_in_stmt': lambda n, frame: eval_for_in_stmt(n, frame, eval_node),
    'expr_stmt': lambda n, frame: eval_expr_stmt(n, frame, eval_node),
    'print_stmt': lambda n, frame: eval_print_stmt(n, frame, eval_node),
    'delete_stmt': lambda n, frame: eval_delete(n, frame, eval_node),
    'break_stmt': lambda _, frame: eval_break_stmt(frame),
    'continue_stmt': lambda _, frame: eval_continue_stmt(frame),
    'next_stmt': lambda _, frame: eval_next_stmt(frame),
    'nextfile_stmt': lambda _, frame: eval_nextfile_stmt(frame),
    'exit_stmt': lambda n, frame: eval_exit_stmt(n, frame, eval_node),
    'return_stmt': lambda n, frame: eval_return_stmt(n, frame, eval_node),
    # expressions
    'assign': lambda n, frame: eval_assign(n, frame, eval_node),
    'ternary': lambda n, frame: eval_ternary(n, frame, eval_node),
    'in_expr': lambda n, frame: eval_in(n, frame, eval_node),
    'match': lambda n, frame: eval_match(n, frame, eval_node),
    'compare': lambda n, frame: eval_compare(n, frame, eval_node),
    'concat': lambda n, frame: eval_concat(n, frame, eval_node),
    'arith': lambda n, frame: eval_arith(n, frame, eval_node),
    'unary': lambda n, frame: eval_unary(n, frame, eval_node),
    'power': lambda n, frame: eval_power(n, frame, eval_node),
    'pre_incdec': lambda n, frame: eval_pre_incdec(n, frame, eval_node),
    'post_incdec': lambda n, frame: eval_post_incdec(n, frame, eval_node),
    'var': eval_var,
    'index': lambda n, frame: eval_index(n, frame, eval_node),
    'field': lambda n, frame: eval_field(n, frame, eval_node),
    'regex': eval_regex,
    'call': lambda n, frame: eval_call(n, frame, eval_node),
    'builtin_call': lambda n, frame: eval_builtin_call(n, frame, eval_node),
    'simple_getline': lambda n, frame: eval_simple_getline(n, frame, eval_node),
    'file_getline': lambda n, frame: eval_file_getline(n, frame, eval_node),
    'pipe_getline': lambda n, frame: eval_pipe_getline(n, frame, eval_node),
}

# ---------------- Program driver ----------------

def _run_special(blocks, frame: Frame, section: str) -> None:
    try:
        for block in blocks:
            eval_node(block, frame)
    except (AwkNextSignal, AwkNextFileSignal):
        raise AwkRuntimeError(f"'next' or 'nextfile' called from {section}") from None


def _pattern_matches(idx: int, pattern: Optional[Node], frame: Frame) -> bool:
    if pattern is None:
        return True

    if tree_label(pattern) == 'pattern':
        return bool(eval_node(pattern.children[0], frame).truthy())

    start, end = pattern.children
    active = frame.state.range_active

    if not active.get(idx):
        if not eval_node(start, frame).truthy():
            return False
        active[idx] = True

    # the record that starts a range may also end it
    if eval_node(end, frame).truthy():
        active[idx] = False

    return True


def _print_record(frame: Frame) -> None:
    state = frame.state
    state.io.stdout.write(state.record.text + state.setting('ORS'))


def _run_main_loop(parts: ProgramParts, frame: Frame) -> None:
    state = frame.state
    main = state.main_input
    assert main is not None
    rules = [rule_parts(rule) for rule in parts.rules]

    while True:
        text = main.next_record()
        if text is None:
            return

        state.record.set_text(text)

        try:
            for idx, (pattern, action) in enumerate(rules):
                if not _pattern_matches(idx, pattern, frame):
                    continue

                if action is None:
                    _print_record(frame)
                else:
                    eval_node(action, frame)
        except AwkNextSignal:
            continue
        except AwkNextFileSignal:
            main.skip_file()


def execute_program(parts: ProgramParts, state: InterpState, stdin: TextIO) -> int:
    """Run BEGIN, the record loop and END; return the exit status."""
    init_stdlib()
    frame = Frame(state)
    state.main_input = MainInput(state, stdin)

    try:
        try:
            _run_special(parts.begin, frame, 'BEGIN')
            if parts.needs_input:
                _run_main_loop(parts, frame)
        except AwkExitSignal as sig:
            if sig.code is not None:
                state.exit_code = sig.code

        # exit inside END stops immediately
        try:
            _run_special(parts.end, frame, 'END')
        except AwkExitSignal as sig:
            if sig.code is not None:
                state.exit_code = sig.code
    finally:
        state.main_input.close_current()
        state.io.close_all()

    if state.exit_code is not None:
        return state.exit_code

    return 2 if state.input_failed else 0
