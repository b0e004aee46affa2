"""Translate POSIX extended regular expressions into Python ``re`` patterns.

Differences handled here:

* bracket expressions: POSIX classes (``[:alpha:]``), a leading ``]``,
  and backslash escapes inside brackets;
* ``$`` only matches at the very end of the string (``\\Z``);
* ``.`` matches newline (compiled with ``re.DOTALL``);
* quantifiers with nothing to repeat are literals;
* awk escape sequences (``\\n``, ``\\/``, ``\\"``, octal) become literals.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import List, Pattern

from .types import AwkRegexError

_CLASSES = {
    'alpha': r'a-zA-Z',
    'digit': r'0-9',
    'alnum': r'a-zA-Z0-9',
    'upper': r'A-Z',
    'lower': r'a-z',
    'space': r' \t\n\r\f\v',
    'blank': r' \t',
    'punct': r'!-/:-@\[-`{-~',
    'print': r' -~',
    'graph': r'!-~',
    'cntrl': r'\x00-\x1f\x7f',
    'xdigit': r'0-9A-Fa-f',
    'word': r'a-zA-Z0-9_',
}

_LITERAL_ESCAPES = {
    'n': '\n',
    't': '\t',
    'r': '\r',
    'f': '\f',
    'v': '\v',
    'a': '\a',
    'b': '\b',
    '/': '/',
    '"': '"',
}

# gawk-compatible shorthand classes passed straight through
_PASSTHROUGH = set('sSwW')


def _octal(src: str, idx: int) -> tuple[str, int]:
    end = idx
    while end < len(src) and end < idx + 3 and src[end] in '01234567':
        end += 1
    return chr(int(src[idx:end], 8)), end


def _bracket(src: str, idx: int) -> tuple[str, int]:
    """Translate the bracket expression starting after '[' at ``idx``."""
    out: List[str] = ['[']

    if idx < len(src) and src[idx] == '^':
        out.append('^')
        idx += 1

    if idx < len(src) and src[idx] == ']':
        out.append(r'\]')
        idx += 1

    while idx < len(src):
        ch = src[idx]

        if ch == ']':
            return ''.join(out) + ']', idx + 1

        if ch == '[' and src.startswith('[:', idx):
            close = src.find(':]', idx + 2)
            if close == -1:
                raise ValueError("unterminated character class")
            name = src[idx + 2:close]
            if name not in _CLASSES:
                raise ValueError(f"invalid character class '{name}'")
            out.append(_CLASSES[name])
            idx = close + 2
            continue

        if ch == '[' and src.startswith(('[.', '[='), idx):
            marker = src[idx + 1]
            close = src.find(marker + ']', idx + 2)
            if close == -1:
                raise ValueError("unterminated collating element")
            out.append(re.escape(src[idx + 2:close]))
            idx = close + 2
            continue

        if ch == '\\' and idx + 1 < len(src):
            nxt = src[idx + 1]
            if nxt in _LITERAL_ESCAPES:
                out.append(re.escape(_LITERAL_ESCAPES[nxt]))
                idx += 2
            elif nxt in '01234567':
                lit, idx = _octal(src, idx + 1)
                out.append(re.escape(lit))
            else:
                out.append(re.escape(nxt))
                idx += 2
            continue

        if ch in '[\\':
            out.append('\\' + ch)
        else:
            out.append(ch)
        idx += 1

    raise ValueError("unterminated [] expression")


def translate(ere: str) -> str:
    """Return the Python pattern text equivalent to ``ere``."""
    out: List[str] = []
    idx = 0
    # True when the previous atom can take a quantifier
    can_repeat = False

    while idx < len(ere):
        ch = ere[idx]

        if ch == '\\':
            if idx + 1 >= len(ere):
                out.append(r'\\')
                idx += 1
                can_repeat = True
                continue

            nxt = ere[idx + 1]
            if nxt in _LITERAL_ESCAPES:
                out.append(re.escape(_LITERAL_ESCAPES[nxt]))
                idx += 2
            elif nxt in '01234567':
                lit, idx = _octal(ere, idx + 1)
                out.append(re.escape(lit))
            elif nxt in _PASSTHROUGH:
                out.append('\\' + nxt)
                idx += 2
            else:
                out.append(re.escape(nxt))
                idx += 2
            can_repeat = True
            continue

        if ch == '[':
            text, idx = _bracket(ere, idx + 1)
            out.append(text)
            can_repeat = True
            continue

        if ch in '*+?':
            out.append(ch if can_repeat else '\\' + ch)
            idx += 1
            continue

        if ch == '{':
            m = re.match(r'\{(\d*)(,?)(\d*)\}', ere[idx:])
            if can_repeat and m and (m.group(1) or m.group(3)):
                out.append(m.group(0))
                idx += len(m.group(0))
            else:
                out.append(r'\{')
                idx += 1
                can_repeat = True
            continue

        if ch == '}':
            out.append(r'\}')
            idx += 1
            can_repeat = True
            continue

        if ch == '(':
            out.append('(?:')
            idx += 1
            can_repeat = False
            continue

        if ch == ')':
            out.append(')')
            idx += 1
            can_repeat = True
            continue

        if ch == '|':
            out.append('|')
            idx += 1
            can_repeat = False
            continue

        if ch == '^':
            out.append('^')
            idx += 1
            can_repeat = False
            continue

        if ch == '$':
            out.append(r'\Z')
            idx += 1
            can_repeat = False
            continue

        if ch == '.':
            out.append('.')
        else:
            out.append(re.escape(ch))
        idx += 1
        can_repeat = True

    return ''.join(out)


@lru_cache(maxsize=512)
def compile_ere(ere: str) -> Pattern[str]:
    """Compile an ERE once per distinct text; malformed input is fatal."""
    try:
        return re.compile(translate(ere), re.DOTALL)
    except (re.error, ValueError) as exc:
        raise AwkRegexError(ere, str(exc)) from None
