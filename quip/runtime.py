"""Session state shared across one Quip program execution."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Tuple

from .environment import Environment
from .errors import NAME_ERROR, error


@dataclass(frozen=True)
class FunctionDef:
    """A user-defined function.

    `body` is a private copy of the function's source lines with one
    indentation unit removed, taken when the definition runs.
    `first_line` is the program line number of the first body line.
    """
    name: str
    params: Tuple[str, ...]
    body: Tuple[str, ...]
    first_line: int = 1

    def __repr__(self) -> str:
        return f"<function {self.name}({', '.join(self.params)})>"


class Runtime:
    """The global scope, the active scope and the function table.

    `reset()` must run before each independent program execution; the
    interpreter does this at the start of every run.
    """
    def __init__(self):
        self.reset()

    def reset(self):
        self.global_env = Environment()
        self.current_env = self.global_env
        self.functions: Dict[str, FunctionDef] = {}
        self.call_depth = 0

    @contextmanager
    def scope(self, env: Environment) -> Iterator[Environment]:
        """Make env the active scope for the duration of the block."""
        previous = self.current_env
        self.current_env = env
        try:
            yield env
        finally:
            self.current_env = previous

    def declare_variable(self, name: str, value: Any, is_const: bool):
        if self.current_env.is_declared(name):
            raise error(NAME_ERROR, f'Variable "{name}" already declared in this scope')
        if is_const:
            self.current_env.declare_const(name, value)
        else:
            self.current_env.declare_var(name, value)

    def assign_variable(self, name: str, value: Any):
        self.current_env.set(name, value)

    def get_variable(self, name: str) -> Any:
        return self.current_env.get(name)

    def define_function(self, func: FunctionDef):
        # redefinition replaces the previous definition
        self.functions[func.name] = func

    def lookup_function(self, name: str) -> FunctionDef:
        if name not in self.functions:
            raise error(NAME_ERROR, f'Function "{name}" not found')
        return self.functions[name]
