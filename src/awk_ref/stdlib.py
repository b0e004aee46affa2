"""Built-in awk functions registered via awk_ref.runtime."""

from __future__ import annotations

import math
import re
from typing import List, Optional

from .fields import split_fields, split_regex
from .format import sprintf
from .regex import compile_ere
from .runtime import get_array, register_builtin
from .tree import Node, tree_label
from .types import (
    AwkArray,
    AwkInvalidArgument,
    AwkTypeError,
    AwkValue,
    Frame,
    UntypedRef,
)
from .eval.common import EvalFunc, dynamic_regex, regex_source, token_text
from .eval.lvalues import FieldRef, resolve_lvalue

LVALUE_LABELS = ('var', 'index', 'field')

# ---------------- string functions ----------------

@register_builtin("length", max_args=1, lazy=True)
def std_length(frame: Frame, args: List[Node], eval_func: EvalFunc) -> AwkValue:
    if not args:
        return AwkValue.from_num(len(frame.state.record.text))

    node = args[0]
    if tree_label(node) == 'var':
        name = token_text(node.children[0])
        bound = frame.scope_for(name).get(name)

        if isinstance(bound, AwkArray):
            return AwkValue.from_num(len(bound))
        if isinstance(bound, UntypedRef):
            return AwkValue.from_num(0)

    return AwkValue.from_num(len(eval_func(node, frame).to_str(frame.state.convfmt())))


def _round_half_up(num: float) -> float:
    if math.isnan(num) or math.isinf(num):
        return num
    return float(math.floor(num + 0.5))


@register_builtin("substr", min_args=2, max_args=3)
def std_substr(frame: Frame, args: List[AwkValue]) -> AwkValue:
    text = args[0].to_str(frame.state.convfmt())
    start = _round_half_up(args[1].to_num())
    length = _round_half_up(args[2].to_num()) if len(args) == 3 else math.inf

    if math.isnan(start) or math.isnan(length):
        return AwkValue.from_str('')

    # characters at positions [start, start + length), clamped to 1..len
    end = start + length
    first = max(start, 1.0)
    last = min(end, float(len(text) + 1))

    if last <= first:
        return AwkValue.from_str('')

    return AwkValue.from_str(text[int(first) - 1:int(last) - 1])


@register_builtin("index", min_args=2, max_args=2)
def std_index(frame: Frame, args: List[AwkValue]) -> AwkValue:
    convfmt = frame.state.convfmt()
    haystack = args[0].to_str(convfmt)
    needle = args[1].to_str(convfmt)
    return AwkValue.from_num(haystack.find(needle) + 1)


@register_builtin("split", min_args=2, max_args=3, lazy=True)
def std_split(frame: Frame, args: List[Node], eval_func: EvalFunc) -> AwkValue:
    state = frame.state
    text = eval_func(args[0], frame).to_str(state.convfmt())

    if tree_label(args[1]) != 'var':
        raise AwkTypeError("split: second argument is not an array")

    arr = get_array(token_text(args[1].children[0]), frame)

    if len(args) == 3 and tree_label(args[2]) == 'regex':
        # a /regex/ literal is always an ERE, even a single character
        pieces = split_regex(text, compile_ere(token_text(args[2].children[0])))
    else:
        sep = regex_source(args[2], frame, eval_func) if len(args) == 3 else state.setting('FS')
        pieces = split_fields(text, sep)

    arr.clear()
    for idx, piece in enumerate(pieces, start=1):
        arr.set(str(idx), AwkValue.from_input(piece))

    return AwkValue.from_num(len(pieces))


def expand_replacement(repl: str, matched: str) -> str:
    """``&`` is the matched text, ``\\&`` a literal ampersand, ``\\\\`` one backslash."""
    out: List[str] = []
    idx = 0

    while idx < len(repl):
        ch = repl[idx]

        if ch == '\\' and idx + 1 < len(repl) and repl[idx + 1] in '&\\':
            out.append(repl[idx + 1])
            idx += 2
            continue

        out.append(matched if ch == '&' else ch)
        idx += 1

    return ''.join(out)


def substitute(rx: re.Pattern[str], repl: str, text: str, global_: bool) -> tuple[str, int]:
    """Replace the first (or every) match; returns (new text, count).

    An empty match directly after the previous match is not replaced, so
    ``gsub(/x*/, "-", "abc")`` gives ``-a-b-c-``.
    """
    out: List[str] = []
    pos = 0
    prev_end = -1
    count = 0

    while pos <= len(text):
        m = rx.search(text, pos)
        if m is None:
            break

        start, end = m.span()

        if start == end and start == prev_end:
            if start >= len(text):
                break
            out.append(text[pos:start + 1])
            pos = start + 1
            continue

        out.append(text[pos:start])
        out.append(expand_replacement(repl, m.group()))
        count += 1
        prev_end = end

        if start == end:
            if start < len(text):
                out.append(text[start])
            pos = start + 1
        else:
            pos = end

        if not global_:
            break

    out.append(text[pos:])
    return ''.join(out), count


def _sub_common(frame: Frame, args: List[Node], eval_func: EvalFunc, global_: bool) -> AwkValue:
    convfmt = frame.state.convfmt()
    rx = dynamic_regex(args[0], frame, eval_func)
    repl = eval_func(args[1], frame).to_str(convfmt)

    if len(args) == 3:
        if tree_label(args[2]) in LVALUE_LABELS:
            ref = resolve_lvalue(args[2], frame, eval_func)
        else:
            # a non-lvalue target is evaluated and the result dropped
            text = eval_func(args[2], frame).to_str(convfmt)
            return AwkValue.from_num(substitute(rx, repl, text, global_)[1])
    else:
        ref = FieldRef(0, frame)

    result, count = substitute(rx, repl, ref.get().to_str(convfmt), global_)

    if count:
        ref.set(AwkValue.from_str(result))

    return AwkValue.from_num(count)


@register_builtin("sub", min_args=2, max_args=3, lazy=True)
def std_sub(frame: Frame, args: List[Node], eval_func: EvalFunc) -> AwkValue:
    return _sub_common(frame, args, eval_func, global_=False)


@register_builtin("gsub", min_args=2, max_args=3, lazy=True)
def std_gsub(frame: Frame, args: List[Node], eval_func: EvalFunc) -> AwkValue:
    return _sub_common(frame, args, eval_func, global_=True)


@register_builtin("match", min_args=2, max_args=2, lazy=True)
def std_match(frame: Frame, args: List[Node], eval_func: EvalFunc) -> AwkValue:
    state = frame.state
    text = eval_func(args[0], frame).to_str(state.convfmt())
    m = dynamic_regex(args[1], frame, eval_func).search(text)

    if m is None:
        state.set_number('RSTART', 0)
        state.set_number('RLENGTH', -1)
        return AwkValue.from_num(0)

    state.set_number('RSTART', m.start() + 1)
    state.set_number('RLENGTH', m.end() - m.start())
    return AwkValue.from_num(m.start() + 1)


@register_builtin("sprintf", min_args=1)
def std_sprintf(frame: Frame, args: List[AwkValue]) -> AwkValue:
    convfmt = frame.state.convfmt()
    return AwkValue.from_str(sprintf(args[0].to_str(convfmt), args[1:], convfmt))


@register_builtin("tolower", min_args=1, max_args=1)
def std_tolower(frame: Frame, args: List[AwkValue]) -> AwkValue:
    return AwkValue.from_str(args[0].to_str(frame.state.convfmt()).lower())


@register_builtin("toupper", min_args=1, max_args=1)
def std_toupper(frame: Frame, args: List[AwkValue]) -> AwkValue:
    return AwkValue.from_str(args[0].to_str(frame.state.convfmt()).upper())

# ---------------- arithmetic functions ----------------

@register_builtin("sin", min_args=1, max_args=1)
def std_sin(_frame: Frame, args: List[AwkValue]) -> AwkValue:
    x = args[0].to_num()
    if math.isinf(x):
        return AwkValue.from_num(math.nan)
    return AwkValue.from_num(math.sin(x))


@register_builtin("cos", min_args=1, max_args=1)
def std_cos(_frame: Frame, args: List[AwkValue]) -> AwkValue:
    x = args[0].to_num()
    if math.isinf(x):
        return AwkValue.from_num(math.nan)
    return AwkValue.from_num(math.cos(x))


@register_builtin("atan2", min_args=2, max_args=2)
def std_atan2(_frame: Frame, args: List[AwkValue]) -> AwkValue:
    return AwkValue.from_num(math.atan2(args[0].to_num(), args[1].to_num()))


@register_builtin("exp", min_args=1, max_args=1)
def std_exp(_frame: Frame, args: List[AwkValue]) -> AwkValue:
    try:
        return AwkValue.from_num(math.exp(args[0].to_num()))
    except OverflowError:
        return AwkValue.from_num(math.inf)


@register_builtin("log", min_args=1, max_args=1)
def std_log(_frame: Frame, args: List[AwkValue]) -> AwkValue:
    x = args[0].to_num()

    if x < 0:
        raise AwkInvalidArgument(f"log: received negative argument {args[0].to_str()}")
    if x == 0:
        return AwkValue.from_num(-math.inf)

    return AwkValue.from_num(math.log(x))


@register_builtin("sqrt", min_args=1, max_args=1)
def std_sqrt(_frame: Frame, args: List[AwkValue]) -> AwkValue:
    x = args[0].to_num()

    if x < 0:
        raise AwkInvalidArgument(f"sqrt: received negative argument {args[0].to_str()}")

    return AwkValue.from_num(math.sqrt(x))


@register_builtin("int", min_args=1, max_args=1)
def std_int(_frame: Frame, args: List[AwkValue]) -> AwkValue:
    x = args[0].to_num()
    if math.isnan(x) or math.isinf(x):
        return AwkValue.from_num(x)
    return AwkValue.from_num(math.trunc(x))


@register_builtin("rand", max_args=0)
def std_rand(frame: Frame, _args: List[AwkValue]) -> AwkValue:
    return AwkValue.from_num(frame.state.rng.random())


@register_builtin("srand", max_args=1)
def std_srand(frame: Frame, args: List[AwkValue]) -> AwkValue:
    seed: Optional[float] = args[0].to_num() if args else None
    return AwkValue.from_num(frame.state.reseed(seed))

# ---------------- I/O functions ----------------

@register_builtin("close", min_args=1, max_args=1)
def std_close(frame: Frame, args: List[AwkValue]) -> AwkValue:
    target = args[0].to_str(frame.state.convfmt())
    return AwkValue.from_num(frame.state.io.close(target))


@register_builtin("fflush", max_args=1)
def std_fflush(frame: Frame, args: List[AwkValue]) -> AwkValue:
    target = args[0].to_str(frame.state.convfmt()) if args else None
    return AwkValue.from_num(frame.state.io.flush(target))


@register_builtin("system", min_args=1, max_args=1)
def std_system(frame: Frame, args: List[AwkValue]) -> AwkValue:
    command = args[0].to_str(frame.state.convfmt())
    return AwkValue.from_num(frame.state.io.run_system(command))
