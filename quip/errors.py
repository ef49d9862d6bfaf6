from dataclasses import dataclass
from typing import List, Optional


SYNTAX_ERROR = 'SyntaxError'
NAME_ERROR = 'NameError'
TYPE_ERROR = 'TypeError'
RANGE_ERROR = 'RangeError'
ARITY_ERROR = 'ArityError'
EVALUATION_ERROR = 'EvaluationError'
LIMIT_ERROR = 'LimitError'


@dataclass
class ErrorVal:
    """A Quip error: its kind (one of the constants above) and a message."""
    name: str
    message: str

    def __repr__(self) -> str:
        return f"Error(name={self.name!r}, message={self.message!r})"


class QuipError(Exception):
    """Exception type used to propagate Quip runtime errors."""
    def __init__(self, err: ErrorVal):
        super().__init__(f"{err.name}: {err.message}")
        self.err = err
        # filled in as the error unwinds through the block interpreter
        self.line: Optional[int] = None
        self.source: Optional[str] = None
        self.output: List[str] = []

    @property
    def kind(self) -> str:
        return self.err.name

    def describe(self) -> str:
        text = f"{self.err.name}: {self.err.message}"
        if self.line is not None:
            text += f" (line {self.line}: {self.source})"
        return text


def error(kind: str, message: str) -> QuipError:
    return QuipError(ErrorVal(kind, message))
