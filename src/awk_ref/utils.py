from __future__ import annotations

import os as _os
import sys


def _env_flag(name: str) -> bool:
    return _os.environ.get(name, "").strip().lower() in ("1", "true", "yes", "on")


def debug_py_trace_enabled() -> bool:
    """Print Python tracebacks alongside fatal awk errors."""
    return _env_flag("AWKREF_DEBUG_PY_TRACE")


def lint_enabled() -> bool:
    """Report suspicious but legal operations on stderr."""
    return _env_flag("AWKREF_LINT")


def warn(message: str) -> None:
    if lint_enabled():
        print(f"awk: warning: {message}", file=sys.stderr)


def report_error(message: str) -> None:
    print(f"awk: {message}", file=sys.stderr)
