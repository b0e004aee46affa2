from __future__ import annotations

import importlib
import os
import random
import re
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Sequence, TextIO

from .fields import Record
from .io_manager import IOManager, RecordReader
from .lexer_rd import decode_escapes
from .tree import Node, tree_label
from .types import (
    AwkArray, AwkFunction, AwkValue, Binding, Frame, UntypedRef,
    AwkRuntimeError, AwkTypeError, AwkIOError, AwkInvalidArgument,
    AwkReturnSignal, DEFAULT_CONVFMT, UNINIT_VALUE,
)
from .utils import report_error, warn

# ---------------- builtin registry ----------------

EvalFunc = Callable[[Node, Frame], AwkValue]
BuiltinFn = Callable[..., AwkValue]


@dataclass(frozen=True)
class BuiltinFunction:
    """A registered builtin.

    Eager builtins get ``(frame, values)``. Lazy builtins (``lazy=True``) get
    ``(frame, arg_nodes, eval_func)`` because they need an array or lvalue
    argument rather than its value.
    """
    fn: BuiltinFn
    min_args: int
    max_args: Optional[int]
    lazy: bool = False


class Builtins:
    functions: Dict[str, BuiltinFunction] = {}


_STDLIB_INITIALIZED = False


def init_stdlib() -> None:
    """Load the builtin module (idempotent) so register_builtin hooks run."""
    global _STDLIB_INITIALIZED

    if _STDLIB_INITIALIZED:
        return

    importlib.import_module("awk_ref.stdlib")
    _STDLIB_INITIALIZED = True


def register_builtin(name: str, *, min_args: int = 0, max_args: Optional[int] = None, lazy: bool = False):
    def dec(fn: BuiltinFn):
        Builtins.functions[name] = BuiltinFunction(fn=fn, min_args=min_args, max_args=max_args, lazy=lazy)
        return fn

    return dec


def call_builtin(name: str, arg_nodes: Sequence[Node], frame: Frame, eval_func: EvalFunc) -> AwkValue:
    builtin = Builtins.functions.get(name)
    if builtin is None:
        raise AwkRuntimeError(f"function '{name}' not defined")

    count = len(arg_nodes)
    if count < builtin.min_args or (builtin.max_args is not None and count > builtin.max_args):
        raise AwkInvalidArgument(_arity_message(name, builtin, count))

    if builtin.lazy:
        return builtin.fn(frame, list(arg_nodes), eval_func)

    return builtin.fn(frame, [eval_func(arg, frame) for arg in arg_nodes])


def _arity_message(name: str, builtin: BuiltinFunction, count: int) -> str:
    if builtin.max_args == builtin.min_args:
        expected = str(builtin.min_args)
    elif builtin.max_args is None:
        expected = f"at least {builtin.min_args}"
    else:
        expected = f"{builtin.min_args} to {builtin.max_args}"

    return f"{name}: called with {count} arguments, expects {expected}"

# ---------------- interpreter state ----------------

_ASSIGNMENT_RE = re.compile(r'[A-Za-z_][A-Za-z0-9_]*=')

SPECIAL_DEFAULTS = {
    'FS': ' ',
    'OFS': ' ',
    'ORS': '\n',
    'RS': '\n',
    'SUBSEP': '\x1c',
    'CONVFMT': DEFAULT_CONVFMT,
    'OFMT': DEFAULT_CONVFMT,
    'FILENAME': '',
}


class InterpState:
    """Everything one program run owns: globals, the record, streams, functions."""

    def __init__(self, io: IOManager, functions: Optional[Dict[str, AwkFunction]] = None, source: Optional[str] = None):
        self.globals: Dict[str, Binding] = {}
        self.record = Record(self.globals)
        self.io = io
        self.functions: Dict[str, AwkFunction] = functions or {}
        self.source = source

        self.seed = 0.0
        self.rng = random.Random(0)

        self.range_active: Dict[int, bool] = {}
        self.exit_code: Optional[int] = None
        self.input_failed = False
        self.main_input: Optional[MainInput] = None

        for name, value in SPECIAL_DEFAULTS.items():
            self.globals[name] = AwkValue.from_str(value)

        for name in ('NR', 'FNR', 'RSTART'):
            self.globals[name] = AwkValue.from_num(0)
        self.globals['RLENGTH'] = AwkValue.from_num(-1)

        environ = AwkArray()
        for key, value in os.environ.items():
            environ.set(key, AwkValue.from_input(value))
        self.globals['ENVIRON'] = environ

    # ---- settings read at use time ----

    def setting(self, name: str) -> str:
        val = self.globals.get(name)
        if isinstance(val, AwkValue):
            return val.to_str(self.convfmt())
        return SPECIAL_DEFAULTS.get(name, '')

    def convfmt(self) -> str:
        val = self.globals.get('CONVFMT')
        if isinstance(val, AwkValue):
            return val.to_str()
        return DEFAULT_CONVFMT

    def ofmt(self) -> str:
        return self.setting('OFMT')

    def subsep(self) -> str:
        return self.setting('SUBSEP')

    def number(self, name: str) -> float:
        val = self.globals.get(name)
        if isinstance(val, AwkValue):
            return val.to_num()
        return 0.0

    def set_number(self, name: str, num: float) -> None:
        self.globals[name] = AwkValue.from_num(num)

    # ---- command line ----

    def set_argv(self, argv: Sequence[str]) -> None:
        arr = AwkArray()
        for idx, arg in enumerate(argv):
            arr.set(str(idx), AwkValue.from_input(arg))
        self.globals['ARGV'] = arr
        self.set_number('ARGC', len(argv))

    def apply_assignment(self, text: str) -> bool:
        """Apply a ``name=value`` operand; False if ``text`` is not one."""
        if not is_assignment_operand(text):
            return False

        name, _, value = text.partition('=')
        assign_var(name, AwkValue.from_input(decode_escapes(value)), Frame(self))
        return True

    def reseed(self, seed: Optional[float] = None) -> float:
        previous = self.seed
        self.seed = float(int(time.time())) if seed is None else seed
        self.rng.seed(self.seed)
        return previous


def is_assignment_operand(text: str) -> bool:
    return _ASSIGNMENT_RE.match(text) is not None

# ---------------- variables ----------------

def read_var(name: str, frame: Frame) -> AwkValue:
    scope = frame.scope_for(name)
    val = scope.get(name)

    if scope is frame.state.globals and name == 'NF':
        return AwkValue.from_num(frame.state.record.nf)

    if val is None or isinstance(val, UntypedRef):
        return UNINIT_VALUE

    if isinstance(val, AwkArray):
        raise AwkTypeError(f"attempt to use array '{name}' in a scalar context")

    return val


def assign_var(name: str, value: AwkValue, frame: Frame) -> AwkValue:
    scope = frame.scope_for(name)

    if isinstance(scope.get(name), AwkArray):
        raise AwkTypeError(f"attempt to use array '{name}' in a scalar context")

    if scope is frame.state.globals and name == 'NF':
        count = value.to_num()
        frame.state.record.set_nf(int(count))
        return AwkValue.from_num(int(count))

    scope[name] = value
    return value


def get_array(name: str, frame: Frame) -> AwkArray:
    """Array bound to ``name``, created on first use."""
    scope = frame.scope_for(name)
    val = scope.get(name)

    if isinstance(val, AwkArray):
        return val

    if val is None:
        arr = AwkArray()
        scope[name] = arr
        return arr

    if isinstance(val, UntypedRef):
        arr = materialize_array(val)
        scope[name] = arr
        return arr

    raise AwkTypeError(f"attempt to use scalar '{name}' as an array")


def materialize_array(ref: UntypedRef) -> AwkArray:
    """Turn an untyped parameter into an array, binding the caller's slot too."""
    if ref.scope is None or ref.name is None:
        return AwkArray()

    existing = ref.scope.get(ref.name)

    if isinstance(existing, AwkArray):
        return existing

    if isinstance(existing, AwkValue):
        raise AwkTypeError(f"attempt to use scalar '{ref.name}' as an array")

    arr = materialize_array(existing) if isinstance(existing, UntypedRef) else AwkArray()
    ref.scope[ref.name] = arr
    return arr

# ---------------- user functions ----------------

def bind_argument(node: Node, frame: Frame, eval_func: EvalFunc) -> Binding:
    """Arrays (and names not yet typed) pass by reference, everything else by value."""
    if tree_label(node) == 'var':
        name = str(node.children[0])
        scope = frame.scope_for(name)
        val = scope.get(name)

        if isinstance(val, AwkArray):
            return val

        if val is None and not (scope is frame.state.globals and name == 'NF'):
            return UntypedRef(scope, name)

        if isinstance(val, UntypedRef):
            return UntypedRef(scope, name)

    return eval_func(node, frame)


def call_function(fn: AwkFunction, arg_nodes: Sequence[Node], frame: Frame, eval_func: EvalFunc) -> AwkValue:
    if len(arg_nodes) > len(fn.params):
        raise AwkInvalidArgument(
            f"function '{fn.name}' called with {len(arg_nodes)} args, accepts only {len(fn.params)}"
        )

    local_scope: Dict[str, Binding] = {}

    for idx, param in enumerate(fn.params):
        if idx < len(arg_nodes):
            local_scope[param] = bind_argument(arg_nodes[idx], frame, eval_func)
        else:
            local_scope[param] = UntypedRef()

    callee = Frame(frame.state, local_scope)

    try:
        eval_func(fn.body, callee)
    except AwkReturnSignal as signal:
        return signal.value

    return UNINIT_VALUE

# ---------------- main input ----------------

class MainInput:
    """Walks ARGV at use time: file operands, ``name=value`` operands, stdin."""

    def __init__(self, state: InterpState, stdin: TextIO):
        self.state = state
        self.stdin = stdin
        self.next_arg = 1
        self.reader: Optional[RecordReader] = None
        self.used_file = False
        self.exhausted = False

    def _argv(self, idx: int) -> Optional[str]:
        argv = self.state.globals.get('ARGV')
        if not isinstance(argv, AwkArray):
            return None

        key = str(idx)
        if not argv.contains(key):
            return None

        return argv.get(key).to_str(self.state.convfmt())

    def _open_next(self) -> bool:
        """Advance to the next readable operand; False when none remain."""
        while self.next_arg < int(self.state.number('ARGC')):
            arg = self._argv(self.next_arg)
            self.next_arg += 1

            if not arg:
                continue

            if self.state.apply_assignment(arg):
                continue

            self.used_file = True
            try:
                self.reader = self.state.io.open_file_reader(arg)
            except AwkIOError as exc:
                warn_always(f"cannot open file '{arg}' for reading: {exc.reason}")
                self.state.input_failed = True
                continue

            self._start_file(arg)
            return True

        if not self.used_file:
            self.used_file = True
            self.reader = RecordReader(self.stdin, '-', owned=False)
            self._start_file('')
            return True

        return False

    def _start_file(self, name: str) -> None:
        self.state.globals['FILENAME'] = AwkValue.from_str(name)
        self.state.set_number('FNR', 0)

    def next_record(self) -> Optional[str]:
        """Next main-input record (NR/FNR updated), or None at the end of all input."""
        if self.exhausted:
            return None

        while True:
            if self.reader is None and not self._open_next():
                self.exhausted = True
                return None

            assert self.reader is not None
            text = self.reader.read_record(self.state.setting('RS'))
            if text is not None:
                self.state.set_number('NR', self.state.number('NR') + 1)
                self.state.set_number('FNR', self.state.number('FNR') + 1)
                return text

            self.close_current()

    def close_current(self) -> None:
        if self.reader is not None:
            try:
                self.reader.close()
            except OSError as exc:
                warn(f"close of '{self.reader.name}' failed: {exc}")
            self.reader = None

    def skip_file(self) -> None:
        """nextfile: abandon the current operand."""
        self.close_current()


def warn_always(message: str) -> None:
    report_error(f"warning: {message}")
