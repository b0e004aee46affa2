"""Output and input streams keyed by their redirection target.

Every target string maps to at most one open stream per direction. Output
targets open on first use (``>`` truncates, ``>>`` appends, ``|`` spawns a
shell command writing to its stdin) and stay open until ``close``. Input
targets work the same way for ``getline < file`` and ``cmd | getline``.
End of input is ``None``; failing to open or spawn raises ``AwkIOError``.
"""

from __future__ import annotations

import re
import subprocess
import sys
from dataclasses import dataclass
from typing import Dict, Optional, TextIO

from .regex import compile_ere
from .types import AwkIOError
from .utils import warn

ENCODING = 'utf-8'
ERRORS = 'surrogateescape'

_BLANK_LINES_RE = re.compile(r'\n\n+')

_STDOUT_NAMES = ('/dev/stdout', '-')
_STDIN_NAMES = ('/dev/stdin', '-')


def exit_status(returncode: int) -> int:
    """Shell-style status: signals map to 256 + signal number."""
    if returncode < 0:
        return 256 - returncode
    return returncode


class RecordReader:
    """Reads records from a text stream according to RS.

    * one character: that character ends a record
    * ``""``: paragraph mode, records end at one or more blank lines
    * longer: an extended regular expression ends a record
    """

    def __init__(self, stream: TextIO, name: str, proc: Optional[subprocess.Popen] = None, owned: bool = True):
        self.stream = stream
        self.name = name
        self.proc = proc
        self.owned = owned
        self._buf = ''
        self._eof = False

    def _fill(self) -> bool:
        if self._eof:
            return False

        chunk = self.stream.readline()
        if not chunk:
            self._eof = True
            return False

        self._buf += chunk
        return True

    def read_record(self, rs: str) -> Optional[str]:
        if rs == '':
            return self._read_paragraph()

        if len(rs) == 1:
            return self._read_until_char(rs)

        return self._read_until_regex(compile_ere(rs))

    def _read_until_char(self, sep: str) -> Optional[str]:
        # newline fast path: one readline per record
        if sep == '\n' and not self._buf and not self._eof:
            line = self.stream.readline()
            if not line:
                self._eof = True
                return None
            return line[:-1] if line.endswith('\n') else line

        while True:
            idx = self._buf.find(sep)
            if idx >= 0:
                rec = self._buf[:idx]
                self._buf = self._buf[idx + 1:]
                return rec

            if not self._fill():
                return self._take_rest()

    def _read_until_regex(self, rx: re.Pattern[str]) -> Optional[str]:
        while True:
            m = _first_nonempty(rx, self._buf)

            # a match touching the end of the buffer might still grow
            if m is not None and (m.end() < len(self._buf) or self._eof):
                rec = self._buf[:m.start()]
                self._buf = self._buf[m.end():]
                return rec

            if not self._fill():
                if m is not None:
                    continue
                return self._take_rest()

    def _read_paragraph(self) -> Optional[str]:
        while True:
            self._buf = self._buf.lstrip('\n')
            if self._buf or not self._fill():
                break

        if not self._buf:
            return None

        while True:
            m = _BLANK_LINES_RE.search(self._buf)

            if m is not None and (m.end() < len(self._buf) or self._eof):
                rec = self._buf[:m.start()]
                self._buf = self._buf[m.end():]
                return rec

            if not self._fill():
                rec = self._buf.rstrip('\n')
                self._buf = ''
                return rec

    def _take_rest(self) -> Optional[str]:
        if not self._buf:
            return None

        rec = self._buf
        self._buf = ''
        return rec

    def close(self) -> int:
        if self.owned:
            self.stream.close()

        if self.proc is not None:
            return exit_status(self.proc.wait())

        return 0


def _first_nonempty(rx: re.Pattern[str], text: str) -> Optional[re.Match[str]]:
    for m in rx.finditer(text):
        if m.end() > m.start():
            return m
    return None


@dataclass
class OutputStream:
    target: str
    kind: str  # '>', '>>', '|' or 'std'
    stream: TextIO
    proc: Optional[subprocess.Popen] = None

    def close(self) -> int:
        if self.kind == 'std':
            self.stream.flush()
            return 0

        self.stream.close()

        if self.proc is not None:
            return exit_status(self.proc.wait())

        return 0


class IOManager:
    """Open-stream table owned by one interpreter run."""

    def __init__(self, stdout: Optional[TextIO] = None, stdin: Optional[TextIO] = None, stderr: Optional[TextIO] = None):
        self.stdout = stdout if stdout is not None else sys.stdout
        self.stdin = stdin if stdin is not None else sys.stdin
        self.stderr = stderr if stderr is not None else sys.stderr
        self.outputs: Dict[str, OutputStream] = {}
        self.inputs: Dict[str, RecordReader] = {}

    # ---------------- output ----------------

    def get_output(self, kind: str, target: str) -> TextIO:
        """Stream for ``print > target`` and friends, opened on first use."""
        existing = self.outputs.get(target)
        if existing is not None:
            return existing.stream

        if kind != '|' and target in _STDOUT_NAMES:
            out = OutputStream(target, 'std', self.stdout)
        elif kind != '|' and target == '/dev/stderr':
            out = OutputStream(target, 'std', self.stderr)
        elif kind == '|':
            self.flush_all()
            try:
                proc = subprocess.Popen(
                    target, shell=True, stdin=subprocess.PIPE,
                    text=True, encoding=ENCODING, errors=ERRORS,
                )
            except OSError as exc:
                raise AwkIOError(target, exc.strerror or str(exc)) from None
            out = OutputStream(target, '|', proc.stdin, proc)
        else:
            mode = 'a' if kind == '>>' else 'w'
            try:
                stream = open(target, mode, encoding=ENCODING, errors=ERRORS, newline='')
            except OSError as exc:
                raise AwkIOError(target, exc.strerror or str(exc)) from None
            out = OutputStream(target, kind, stream)

        self.outputs[target] = out
        return out.stream

    # ---------------- input ----------------

    def open_input(self, kind: str, target: str) -> RecordReader:
        """Reader for ``getline < target`` (kind '<') or ``target | getline`` (kind '|')."""
        existing = self.inputs.get(target)
        if existing is not None:
            return existing

        if kind == '|':
            self.flush_all()
            try:
                proc = subprocess.Popen(
                    target, shell=True, stdout=subprocess.PIPE,
                    text=True, encoding=ENCODING, errors=ERRORS,
                )
            except OSError as exc:
                raise AwkIOError(target, exc.strerror or str(exc)) from None
            reader = RecordReader(proc.stdout, target, proc)
        else:
            reader = self.open_file_reader(target)

        self.inputs[target] = reader
        return reader

    def open_file_reader(self, target: str) -> RecordReader:
        if target in _STDIN_NAMES:
            return RecordReader(self.stdin, target, owned=False)

        try:
            stream = open(target, 'r', encoding=ENCODING, errors=ERRORS, newline='\n')
        except OSError as exc:
            raise AwkIOError(target, exc.strerror or str(exc)) from None

        return RecordReader(stream, target)

    def read_record(self, kind: str, target: str, rs: str) -> Optional[str]:
        return self.open_input(kind, target).read_record(rs)

    # ---------------- closing ----------------

    def close(self, target: str) -> int:
        """Close every stream keyed by ``target``; -1 if none was open."""
        status: Optional[int] = None

        out = self.outputs.pop(target, None)
        if out is not None:
            status = self._safe_close(out.close, target)

        reader = self.inputs.pop(target, None)
        if reader is not None:
            status = self._safe_close(reader.close, target)

        if status is None:
            warn(f"close: '{target}' is not an open file, pipe or co-process")
            return -1

        return status

    def _safe_close(self, closer, target: str) -> int:
        try:
            return closer()
        except OSError as exc:
            warn(f"close of '{target}' failed: {exc}")
            return -1

    def flush(self, target: Optional[str] = None) -> int:
        if target is None:
            self.flush_all()
            return 0

        out = self.outputs.get(target)
        if out is None:
            warn(f"fflush: '{target}' is not an open file, pipe or co-process")
            return -1

        out.stream.flush()
        return 0

    def flush_all(self) -> None:
        self.stdout.flush()
        for out in self.outputs.values():
            try:
                out.stream.flush()
            except OSError as exc:
                warn(f"flush of '{out.target}' failed: {exc}")

    def close_all(self) -> None:
        """Flush and close everything, waiting for child processes."""
        for target in list(self.outputs):
            self.close(target)

        for target in list(self.inputs):
            self.close(target)

        self.stdout.flush()

    # ---------------- commands ----------------

    def run_system(self, command: str) -> int:
        self.flush_all()
        try:
            proc = subprocess.run(command, shell=True)
        except OSError as exc:
            warn(f"system: can't run '{command}': {exc}")
            return -1

        return exit_status(proc.returncode)
