# Quip language package
# This package provides a line-oriented interpreter for the Quip language.
from .interpreter import run_program, run_source, Interpreter, RunResult
from .errors import QuipError, ErrorVal

__all__ = [
    'run_program',
    'run_source',
    'Interpreter',
    'RunResult',
    'QuipError',
    'ErrorVal',
]
