"""printf-style formatting shared by printf, sprintf, CONVFMT and OFMT."""

from __future__ import annotations

import math
import re
from typing import TYPE_CHECKING, Iterator, List, Optional, Sequence

if TYPE_CHECKING:
    from .types import AwkValue

_SPEC_RE = re.compile(r'%([-+ #0]*)(\*|\d+)?(?:\.(\*|\d*))?(?:hh|h|ll|l|L|q|j|z|t)?([a-zA-Z%])?')

_UNSIGNED_MASK = (1 << 64) - 1


class _Args:
    """Argument cursor; missing arguments read as the uninitialized value."""

    def __init__(self, values: Sequence['AwkValue']):
        self._it: Iterator['AwkValue'] = iter(values)

    def next(self) -> 'AwkValue':
        from .types import UNINIT_VALUE
        return next(self._it, UNINIT_VALUE)


def format_number(fmt: str, num: float) -> str:
    """Apply a CONVFMT/OFMT style format to a single number."""
    from .types import AwkValue
    return sprintf(fmt, [AwkValue.from_num(num)])


def sprintf(fmt: str, args: Sequence['AwkValue'], convfmt: str = '%.6g') -> str:
    out: List[str] = []
    cursor = _Args(args)
    idx = 0

    while idx < len(fmt):
        pct = fmt.find('%', idx)
        if pct < 0:
            out.append(fmt[idx:])
            break

        out.append(fmt[idx:pct])
        m = _SPEC_RE.match(fmt, pct)
        flags, width, prec, conv = m.group(1), m.group(2), m.group(3), m.group(4)
        idx = m.end()

        # incomplete directive at the end of the format prints as-is
        if conv is None:
            out.append(fmt[pct:idx])
            continue

        if conv == '%':
            out.append('%')
            continue

        if width == '*':
            w = int(cursor.next().to_num())
            if w < 0:
                flags += '-'
                w = -w
            width = str(w)

        precision: Optional[int] = None
        if prec == '*':
            p = int(cursor.next().to_num())
            precision = p if p >= 0 else None
        elif prec is not None:
            precision = int(prec) if prec else 0

        if conv not in 'cdiouxXeEfFgGs':
            out.append(fmt[pct:idx])
            continue

        out.append(_format_one(flags, width or '', precision, conv, cursor.next(), convfmt))

    return ''.join(out)


def _pad(text: str, flags: str, width: str) -> str:
    if not width:
        return text

    w = int(width)
    if '-' in flags:
        return text.ljust(w)

    return text.rjust(w)


def _format_one(flags: str, width: str, precision: Optional[int], conv: str, value: 'AwkValue', convfmt: str) -> str:
    prec_part = '' if precision is None else f'.{precision}'

    match conv:
        case 's':
            text = value.to_str(convfmt)
            if precision is not None:
                text = text[:precision]
            return _pad(text, flags, width)
        case 'c':
            return _pad(_char_of(value, convfmt), flags, width)
        case 'd' | 'i' | 'u' | 'o' | 'x' | 'X':
            num = value.to_num()

            if math.isnan(num) or math.isinf(num):
                return _pad(('%' + flags.replace('0', '') + 'f') % num, flags, width)

            ival = int(num)
            if conv in 'uoxX' and ival < 0:
                ival &= _UNSIGNED_MASK

            if conv == 'o' and '#' in flags:
                digits = ('%' + prec_part + 'o') % ival
                if not digits.startswith('0'):
                    digits = '0' + digits
                if '0' in flags and '-' not in flags and width:
                    return digits.rjust(int(width), '0')
                return _pad(digits, flags, width)

            pyconv = 'd' if conv in 'iu' else conv
            return ('%' + flags + width + prec_part + pyconv) % ival
        case _:
            return ('%' + flags + width + prec_part + conv) % value.to_num()


def _char_of(value: 'AwkValue', convfmt: str) -> str:
    from .types import NUM, STRNUM

    if value.kind == NUM or (value.kind == STRNUM and value.is_numeric()):
        code = int(value.to_num())
        try:
            return chr(code & 0x10FFFF if code >= 0 else code & 0xFF)
        except ValueError:
            return ''

    return value.to_str(convfmt)[:1]
