"""Record and field splitting state.

The current record keeps ``$0`` as text and splits fields lazily, using the
field separator in effect when the record was read (or assigned). Assigning
a field or NF rebuilds ``$0`` with OFS.
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional

from .regex import compile_ere
from .types import (
    AwkInvalidArgument,
    AwkValue,
    Binding,
    DEFAULT_CONVFMT,
    UNINIT_VALUE,
)

_DEFAULT_FS_RE = re.compile(r'[ \t\n]+')


def split_regex(text: str, rx: re.Pattern[str]) -> List[str]:
    """Split on non-empty matches of ``rx``; an empty text has no fields."""
    if not text:
        return []

    parts: List[str] = []
    pos = 0

    for m in rx.finditer(text):
        if m.end() == m.start():
            continue
        parts.append(text[pos:m.start()])
        pos = m.end()

    parts.append(text[pos:])
    return parts


def split_fields(text: str, fs: str, paragraph: bool = False) -> List[str]:
    """Split ``text`` the way awk splits a record with separator ``fs``.

    * ``" "``: runs of blanks and newlines, leading/trailing ignored
    * any other single character: that literal character
    * ``""``: one field per character
    * anything longer: an extended regular expression

    In paragraph mode (``RS == ""``) newline always separates fields too.
    """
    if fs == ' ':
        stripped = text.strip(' \t\n')
        if not stripped:
            return []
        return _DEFAULT_FS_RE.split(stripped)

    if not text:
        return []

    if fs == '':
        return list(text)

    if len(fs) == 1 and fs != '\\':
        if paragraph and fs != '\n':
            return re.split('[' + re.escape(fs) + '\n]', text)
        return text.split(fs)

    if paragraph:
        return split_regex(text, compile_ere('(' + fs + ')|\n'))

    return split_regex(text, compile_ere(fs))


class Record:
    """``$0`` and its fields, rebuilt in either direction on assignment."""

    def __init__(self, variables: Dict[str, Binding]):
        self._vars = variables
        self._text = ''
        self._value = AwkValue.from_input('')
        self._fields: Optional[List[AwkValue]] = []
        self._fs = ' '
        self._paragraph = False

    # ---------------- settings ----------------

    def _setting(self, name: str, default: str) -> str:
        val = self._vars.get(name)
        if isinstance(val, AwkValue):
            return val.to_str(self._convfmt())
        return default

    def _convfmt(self) -> str:
        val = self._vars.get('CONVFMT')
        if isinstance(val, AwkValue):
            return val.to_str()
        return DEFAULT_CONVFMT

    # ---------------- whole record ----------------

    @property
    def text(self) -> str:
        return self._text

    def set_text(self, text: str) -> None:
        """Install a new record; fields are split later with the current FS."""
        self._text = text
        self._value = AwkValue.from_input(text)
        self._fields = None
        self._fs = self._setting('FS', ' ')
        self._paragraph = self._setting('RS', '\n') == ''

    def _ensure_split(self) -> List[AwkValue]:
        if self._fields is None:
            pieces = split_fields(self._text, self._fs, self._paragraph)
            self._fields = [AwkValue.from_input(p) for p in pieces]

        return self._fields

    def _rebuild(self) -> None:
        fields = self._ensure_split()
        convfmt = self._convfmt()
        self._text = self._setting('OFS', ' ').join(f.to_str(convfmt) for f in fields)
        self._value = AwkValue.from_input(self._text)

    # ---------------- fields ----------------

    @property
    def nf(self) -> int:
        return len(self._ensure_split())

    def set_nf(self, count: int) -> None:
        if count < 0:
            raise AwkInvalidArgument(f"NF set to negative value {count}")

        fields = self._ensure_split()
        if count < len(fields):
            del fields[count:]
        else:
            fields.extend([UNINIT_VALUE] * (count - len(fields)))

        self._rebuild()

    def get(self, idx: int) -> AwkValue:
        if idx == 0:
            return self._value

        if idx < 0:
            raise AwkInvalidArgument(f"trying to access out of range field {idx}")

        fields = self._ensure_split()
        if idx > len(fields):
            return UNINIT_VALUE

        return fields[idx - 1]

    def set(self, idx: int, value: AwkValue) -> None:
        if idx == 0:
            self.set_text(value.to_str(self._convfmt()))
            return

        if idx < 0:
            raise AwkInvalidArgument(f"trying to access out of range field {idx}")

        fields = self._ensure_split()
        if idx > len(fields):
            fields.extend([UNINIT_VALUE] * (idx - len(fields)))

        fields[idx - 1] = value
        self._rebuild()
