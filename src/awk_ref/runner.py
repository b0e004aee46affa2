from __future__ import annotations

import sys
import threading
import traceback
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, TextIO, Tuple

from .ast_transforms import ProgramParts, Prune, split_program
from .evaluator import execute_program
from .io_manager import ENCODING, ERRORS, IOManager
from .lexer_rd import decode_escapes
from .parser_rd import parse_source
from .runtime import InterpState, assign_var
from .types import AwkRuntimeError, AwkSyntaxError, AwkValue, Frame
from .utils import debug_py_trace_enabled, report_error

USAGE = "usage: awk [-F fs][-v var=value][prog | -f progfile ...][file ...]"

# each awk call level costs roughly twenty Python frames
RECURSION_LIMIT = 200_000
THREAD_STACK_SIZE = 512 * 1024 * 1024


class UsageError(Exception):
    pass


def load_program(source: str) -> ProgramParts:
    """Parse, prune and sort one program; raises AwkSyntaxError."""
    tree = parse_source(source)
    return split_program(Prune().transform(tree))


def field_separator(text: str) -> str:
    """Value of ``-F``: a lone ``t`` means tab, otherwise escapes are decoded."""
    if text == 't':
        return '\t'
    return decode_escapes(text)


def run(
    source: str,
    args: Sequence[str] = (),
    stdin: Optional[TextIO] = None,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
    assignments: Sequence[str] = (),
    field_sep: Optional[str] = None,
    program_name: str = "awk",
) -> int:
    """Run ``source`` over ``args`` and return the exit status.

    Parse errors propagate as AwkSyntaxError before anything runs; fatal
    runtime errors propagate as AwkRuntimeError after open streams are closed.
    """
    parts = load_program(source)

    io_manager = IOManager(stdout=stdout, stdin=stdin, stderr=stderr)
    state = InterpState(io_manager, functions=parts.functions, source=source)
    state.set_argv([program_name, *args])

    if field_sep is not None:
        assign_var('FS', AwkValue.from_str(field_separator(field_sep)), Frame(state))

    for text in assignments:
        if not state.apply_assignment(text):
            raise UsageError(f"invalid -v argument '{text}'")

    return _run_deep(execute_program, parts, state, io_manager.stdin)


def _run_deep(func: Callable[..., int], *args: Any) -> int:
    """Call ``func`` on a worker thread with a large stack and recursion limit.

    Exceptions raised by ``func`` are re-raised in the calling thread; running
    out of stack becomes a fatal AwkRuntimeError.
    """
    outcome: Dict[str, Any] = {}

    def worker() -> None:
        try:
            outcome["status"] = func(*args)
        except RecursionError:
            outcome["error"] = AwkRuntimeError("function call nesting too deep")
        except BaseException as exc:
            outcome["error"] = exc

    old_limit = sys.getrecursionlimit()
    sys.setrecursionlimit(max(old_limit, RECURSION_LIMIT))
    old_stack = threading.stack_size(THREAD_STACK_SIZE)

    try:
        thread = threading.Thread(target=worker, name="awk-main", daemon=True)
        thread.start()
    finally:
        threading.stack_size(old_stack)

    try:
        thread.join()
    finally:
        sys.setrecursionlimit(old_limit)

    if "error" in outcome:
        raise outcome["error"]

    return outcome["status"]


def parse_command_line(argv: Sequence[str]) -> Tuple[str, List[str], List[str], Optional[str]]:
    """Split argv into (program text, operands, -v assignments, -F value)."""
    program_files: List[str] = []
    assignments: List[str] = []
    field_sep: Optional[str] = None
    idx = 0

    def option_value(flag: str) -> str:
        nonlocal idx
        arg = argv[idx]
        if len(arg) > 2:
            return arg[2:]
        idx += 1
        if idx >= len(argv):
            raise UsageError(f"option requires an argument -- {flag}")
        return argv[idx]

    while idx < len(argv):
        arg = argv[idx]

        if arg == '--':
            idx += 1
            break

        if not arg.startswith('-') or arg == '-':
            break

        flag = arg[1]

        if flag == 'F':
            field_sep = option_value('F')
        elif flag == 'v':
            assignments.append(option_value('v'))
        elif flag == 'f':
            program_files.append(option_value('f'))
        else:
            raise UsageError(f"unknown option {arg}")

        idx += 1

    operands = list(argv[idx:])

    if program_files:
        chunks = []
        for name in program_files:
            try:
                if name == '-':
                    chunks.append(sys.stdin.read())
                else:
                    chunks.append(Path(name).read_text(encoding=ENCODING, errors=ERRORS))
            except OSError as exc:
                raise UsageError(f"can't open file {name}: {exc.strerror or exc}") from None
        source = "\n".join(chunks)
    elif operands:
        source = operands.pop(0)
    else:
        raise UsageError("no program text")

    return source, operands, assignments, field_sep


def _print_trace(exc: BaseException) -> None:
    if not debug_py_trace_enabled():
        return

    print("\nPython traceback:", file=sys.stderr)
    print("".join(traceback.format_tb(exc.__traceback__)), file=sys.stderr, end="")


def _configure_stream(stream: TextIO) -> None:
    """Switch a process stream to utf-8 with surrogateescape and no newline translation."""
    reconfigure = getattr(stream, "reconfigure", None)
    if reconfigure is not None:
        reconfigure(encoding=ENCODING, errors=ERRORS, newline="\n")


def main(argv: Optional[Sequence[str]] = None) -> None:
    if argv is None:
        argv = sys.argv[1:]

    _configure_stream(sys.stdin)
    _configure_stream(sys.stdout)

    try:
        source, operands, assignments, field_sep = parse_command_line(argv)
    except UsageError as exc:
        report_error(str(exc))
        print(USAGE, file=sys.stderr)
        sys.exit(2)

    try:
        status = run(
            source,
            operands,
            stdin=sys.stdin,
            stdout=sys.stdout,
            assignments=assignments,
            field_sep=field_sep,
        )
    except UsageError as exc:
        report_error(str(exc))
        sys.exit(2)
    except AwkSyntaxError as exc:
        report_error(str(exc))
        _print_trace(exc)
        sys.exit(2)
    except AwkRuntimeError as exc:
        sys.stdout.flush()
        report_error(str(exc))
        _print_trace(exc)
        sys.exit(2)

    sys.stdout.flush()
    sys.exit(status)


if __name__ == "__main__":
    main()
