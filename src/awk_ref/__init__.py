"""A POSIX awk interpreter: recursive-descent parser and tree-walking evaluator."""

from .runner import load_program, main, run

__all__ = ["load_program", "main", "run"]
