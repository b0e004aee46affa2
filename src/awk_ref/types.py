from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional, Union
from typing_extensions import TypeAlias

if TYPE_CHECKING:
    from lark import Tree

    from .runtime import InterpState

# ---------- Value Model ----------

NUM = 'num'
STR = 'str'
STRNUM = 'strnum'
UNINIT = 'uninit'

DEFAULT_CONVFMT = '%.6g'

_NUM_PREFIX_RE = re.compile(r'[ \t\n\r\f\v]*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)')
_NUM_FULL_RE = re.compile(r'[ \t\n\r\f\v]*[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?[ \t\n\r\f\v]*\Z')


def str_to_num(text: str) -> float:
    """Numeric value of the longest leading decimal prefix, 0 if none."""
    m = _NUM_PREFIX_RE.match(text)
    if m is None:
        return 0.0

    return float(m.group(1))


def looks_numeric(text: str) -> bool:
    return _NUM_FULL_RE.match(text) is not None


def num_to_str(num: float, fmt: str = DEFAULT_CONVFMT) -> str:
    """Integral values print as integers, everything else through ``fmt``."""
    if math.isnan(num):
        return '-nan' if math.copysign(1.0, num) < 0 else 'nan'

    if math.isinf(num):
        return '-inf' if num < 0 else 'inf'

    if num == int(num):
        return str(int(num))

    if fmt == DEFAULT_CONVFMT:
        return '%.6g' % num

    from .format import format_number
    return format_number(fmt, num)


class AwkValue:
    """Dual string/number scalar.

    ``kind`` records where the value came from: a numeric context (num), a
    string constant or string operation (str), user input that may look
    numeric (strnum), or nothing at all (uninit). The other form is computed
    on demand and cached.
    """

    __slots__ = ('kind', '_str', '_num', '_str_fmt', '_numeric')

    def __init__(self, kind: str, s: Optional[str] = None, n: Optional[float] = None):
        self.kind = kind
        self._str = s
        self._num = n
        self._str_fmt: Optional[str] = None
        self._numeric: Optional[bool] = None

    @classmethod
    def from_num(cls, num: float) -> 'AwkValue':
        return cls(NUM, None, float(num))

    @classmethod
    def from_str(cls, text: str) -> 'AwkValue':
        return cls(STR, text, None)

    @classmethod
    def from_input(cls, text: str) -> 'AwkValue':
        """Strnum value: string from input that compares as a number if it looks like one."""
        return cls(STRNUM, text, None)

    @classmethod
    def from_bool(cls, flag: bool) -> 'AwkValue':
        return ONE if flag else ZERO

    def to_num(self) -> float:
        if self._num is None:
            self._num = str_to_num(self._str or '')

        return self._num

    def to_str(self, convfmt: str = DEFAULT_CONVFMT) -> str:
        if self.kind != NUM:
            return self._str if self._str is not None else ''

        if self._str is None or self._str_fmt != convfmt:
            self._str = num_to_str(self._num, convfmt)
            self._str_fmt = convfmt

        return self._str

    def to_output_str(self, ofmt: str) -> str:
        """String form used by print: numbers go through OFMT."""
        if self.kind != NUM:
            return self.to_str()

        return num_to_str(self._num, ofmt)

    def is_numeric(self) -> bool:
        """True when comparisons involving this value may be numeric."""
        if self.kind == NUM or self.kind == UNINIT:
            return True

        if self.kind == STR:
            return False

        if self._numeric is None:
            self._numeric = looks_numeric(self._str or '')

        return self._numeric

    def truthy(self) -> bool:
        match self.kind:
            case 'num':
                return self._num != 0
            case 'str':
                return self._str != ''
            case 'uninit':
                return False
            case _:
                if self.is_numeric():
                    return self.to_num() != 0
                return self._str != ''

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AwkValue):
            return NotImplemented
        return compare_values(self, other) == 0

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        if self.kind == NUM:
            return f"AwkValue(num={self._num!r})"
        return f"AwkValue({self.kind}={self._str!r})"


UNINIT_VALUE = AwkValue(UNINIT, '', 0.0)
ZERO = AwkValue.from_num(0)
ONE = AwkValue.from_num(1)


def compare_values(lhs: AwkValue, rhs: AwkValue, convfmt: str = DEFAULT_CONVFMT) -> int:
    """Three-way compare: numeric when both sides are numeric-like, else by code point."""
    if lhs.is_numeric() and rhs.is_numeric():
        x, y = lhs.to_num(), rhs.to_num()
        return (x > y) - (x < y)

    s, t = lhs.to_str(convfmt), rhs.to_str(convfmt)
    return (s > t) - (s < t)


@dataclass
class AwkArray:
    """String-keyed associative array. Reads auto-vivify missing keys."""
    items: Dict[str, AwkValue] = field(default_factory=dict)

    def get(self, key: str) -> AwkValue:
        val = self.items.get(key)
        if val is None:
            val = UNINIT_VALUE
            self.items[key] = val

        return val

    def set(self, key: str, val: AwkValue) -> None:
        self.items[key] = val

    def contains(self, key: str) -> bool:
        return key in self.items

    def delete(self, key: str) -> None:
        self.items.pop(key, None)

    def clear(self) -> None:
        self.items.clear()

    def keys(self) -> List[str]:
        """Snapshot of the keys, safe to iterate while the body mutates the array."""
        return list(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __repr__(self) -> str:
        pairs = ", ".join(f"{k!r}: {v!r}" for k, v in self.items.items())
        return "{" + pairs + "}"


@dataclass
class UntypedRef:
    """Function parameter whose kind is not known yet.

    When the caller passed a bare name that was unbound, ``scope``/``name``
    point at the caller's slot so a later array use binds the array there too.
    """
    scope: Optional[Dict[str, 'Binding']] = None
    name: Optional[str] = None


Binding: TypeAlias = Union[AwkValue, AwkArray, UntypedRef]


@dataclass
class AwkFunction:
    name: str
    params: List[str]
    body: 'Tree'


class Frame:
    """One activation: the shared interpreter state plus function locals."""

    def __init__(self, state: 'InterpState', locals_: Optional[Dict[str, Binding]] = None):
        self.state = state
        self.locals: Optional[Dict[str, Binding]] = locals_

    def scope_for(self, name: str) -> Dict[str, Binding]:
        if self.locals is not None and name in self.locals:
            return self.locals

        return self.state.globals

# ---------- Exceptions (keep Awk* canonical) ----------

class AwkSyntaxError(Exception):
    """Parse-time failure: position plus what the parser expected there."""

    def __init__(self, message: str, line: int = 0, column: int = 0, expected: Optional[str] = None, near: Optional[str] = None):
        self.message = message
        self.line = line
        self.column = column
        self.expected = expected
        self.near = near
        super().__init__(message)

    def __str__(self) -> str:
        msg = self.message

        if self.near:
            msg = f"{msg} near '{self.near}'"

        if self.expected:
            msg = f"{msg} (expected {self.expected})"

        if self.line:
            return f"{msg} at line {self.line}, col {self.column}"

        return msg


class AwkRuntimeError(Exception):
    awk_meta: Optional[object]

    def __init__(self, message: str):
        super().__init__(message)
        self.awk_meta = None

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        msg = super().__str__()

        meta = getattr(self, "awk_meta", None)
        if meta is None:
            return msg

        line = getattr(meta, "line", None)
        col = getattr(meta, "column", None)

        if line is None:
            return msg

        if col is None:
            return f"{msg} (line {line})"

        return f"{msg} (line {line}, col {col})"

class AwkTypeError(AwkRuntimeError):
    pass

class AwkDivisionByZero(AwkRuntimeError):
    def __init__(self, op: str = '/'):
        super().__init__(f"division by zero in {op}")
        self.op = op

class AwkInvalidArgument(AwkRuntimeError):
    pass

class AwkRegexError(AwkRuntimeError):
    def __init__(self, pattern: str, reason: str):
        super().__init__(f"bad regular expression /{pattern}/: {reason}")
        self.pattern = pattern
        self.reason = reason

class AwkIOError(AwkRuntimeError):
    def __init__(self, target: str, reason: str):
        super().__init__(f"can't open '{target}': {reason}")
        self.target = target
        self.reason = reason

# ---------- Control-flow signals ----------

class AwkNextSignal(Exception):
    """Internal control flow for `next`."""

class AwkNextFileSignal(Exception):
    """Internal control flow for `nextfile`."""

class AwkExitSignal(Exception):
    """Internal control flow for `exit [expr]`; ``code`` is None when omitted."""
    def __init__(self, code: Optional[int] = None):
        self.code = code

class AwkReturnSignal(Exception):
    """Internal control-flow exception used to implement `return`."""
    def __init__(self, value: AwkValue):
        self.value = value

class AwkBreakSignal(Exception):
    """Internal control flow for `break`."""

class AwkContinueSignal(Exception):
    """Internal control flow for `continue`."""
