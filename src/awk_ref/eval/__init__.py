"""Evaluator helper modules for the awk runtime."""

__all__ = [
    "common",
    "control",
    "expr",
    "fn",
    "io",
    "lvalues",
]
