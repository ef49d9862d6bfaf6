"""Block interpreter for the Quip language.

A Quip program is a list of source lines. Each line is classified by a
fixed, ordered set of statement patterns (first match wins) and executed
immediately; there is no separate parse phase for statements. Constructs
that own an indented body (`if`/`else`, `repeat`, `while`, `function`)
take the run of following lines indented by at least one unit, strip one
unit from each, and hand the copy to a recursive `interpret_block` call
running in a fresh child scope. Nested bodies are found the same way when
the copy is interpreted.

A body is a contiguous run: the first line without the indentation prefix
ends it, and that includes an empty line. Indented lines after a blank
line inside a body are therefore rejected as unexpected indentation. A
comment line written with the body's indentation keeps the body going.

Output is a single list of strings threaded through the whole recursive
execution. `return` does not use the exception channel: block execution
yields `Completed` or `Returned`, and the function call protocol unwraps
the latter.
"""

from __future__ import annotations

import math
import re
import sys
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Tuple, Union

from .environment import Environment
from .errors import (
    ARITY_ERROR, LIMIT_ERROR, NAME_ERROR, SYNTAX_ERROR, TYPE_ERROR,
    QuipError, error,
)
from .expressions import ExpressionEvaluator, is_quoted_literal
from .parser import parse_expression
from .ast import Call
from .runtime import FunctionDef, Runtime
from .values import NULL, is_truthy, to_string, type_name


INDENT = '    '

# Python frames used by one Quip call nested a few blocks deep
FRAMES_PER_CALL = 25

IDENT = r'[A-Za-z_]\w*'
LET_RE = re.compile(rf'^let\s+({IDENT})\s*=\s*(.+)$')
SET_RE = re.compile(rf'^set\s+({IDENT})\s*=\s*(.+)$')
ASSIGN_RE = re.compile(rf'^({IDENT})\s*=(?!=)\s*(.+)$')
SAY_RE = re.compile(r'^say\s+(.+)$')
IF_RE = re.compile(r'^if\s+(.+):$')
ELSE_RE = re.compile(r'^else\s*:$')
REPEAT_RE = re.compile(r'^repeat\s+(.+):$')
WHILE_RE = re.compile(r'^while\s+(.+):$')
FUNCTION_RE = re.compile(rf'^function\s+({IDENT})\s*\(([^)]*)\)\s*:$')
RETURN_RE = re.compile(r'^return(?:\s+(.+))?$')
CALL_RE = re.compile(rf'^({IDENT})\s*\((.*)\)$')

RESERVED_WORDS = frozenset({
    'let', 'set', 'say', 'if', 'else', 'repeat', 'while', 'function',
    'return', 'true', 'false', 'null',
})


@dataclass
class Completed:
    """The block ran to its end."""
    output: List[str]


@dataclass
class Returned:
    """A `return` statement unwound the block carrying a value."""
    value: Any


BlockResult = Union[Completed, Returned]


@dataclass
class RunResult:
    """Outcome of a whole program run: the output and the error, if any."""
    output: List[str] = field(default_factory=list)
    error: Optional[QuipError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def block_end(lines: Sequence[str], start: int, end: int) -> int:
    """Return the index one past the indented body beginning at `start`."""
    stop = start
    while stop < end and lines[stop].startswith(INDENT):
        stop += 1
    return stop


def dedent(lines: Sequence[str], start: int, stop: int) -> List[str]:
    return [line[len(INDENT):] for line in lines[start:stop]]


def is_skippable(line: str) -> bool:
    text = line.strip()
    return text == '' or text.startswith('#')


def check_name(name: str, what: str = 'variable'):
    if name in RESERVED_WORDS:
        raise error(SYNTAX_ERROR, f'"{name}" is a reserved word and cannot be used as a {what} name')


class Interpreter:
    """Core interpreter that executes Quip programs."""
    def __init__(self, debug_level: int = 0, debug_file: Optional[str] = None,
                 max_iterations: Optional[int] = 1_000_000, max_call_depth: int = 500):
        self.runtime = Runtime()
        self.evaluator = ExpressionEvaluator(self.runtime, self.call_function)
        self.debug_level = debug_level
        self.debug_fp = open(debug_file, 'w', encoding='utf-8') if debug_level > 0 and debug_file else None
        self.max_iterations = max_iterations or None
        self.max_call_depth = max_call_depth

    def debug(self, msg: str, level: int = 1):
        if self.debug_level >= level:
            if self.debug_fp:
                self.debug_fp.write(msg + '\n')
                self.debug_fp.flush()
            else:
                print(msg, file=sys.stderr)

    def close(self):
        if self.debug_fp:
            self.debug_fp.close()
            self.debug_fp = None

    # Public API
    def run(self, lines: Sequence[str]) -> List[str]:
        """Run a whole program and return its output lines.

        On failure the raised QuipError carries the output produced before
        the failing line in `err.output`.
        """
        self.runtime.reset()
        output: List[str] = []
        self.debug(f"run: {len(lines)} lines")
        recursion_limit = sys.getrecursionlimit()
        sys.setrecursionlimit(max(recursion_limit, self.max_call_depth * FRAMES_PER_CALL + 1000))
        try:
            self.interpret_block(lines, 0, len(lines), self.runtime.global_env, output)
        except QuipError as ex:
            ex.output = list(output)
            self.debug(f"run failed: {ex.describe()}")
            raise
        except RecursionError:
            ex = error(LIMIT_ERROR, 'maximum nesting depth exceeded')
            ex.output = list(output)
            raise ex from None
        finally:
            sys.setrecursionlimit(recursion_limit)
        self.debug(f"run finished: {len(output)} output lines")
        return output

    def execute(self, lines: Sequence[str]) -> RunResult:
        """Like `run`, but report failure in the result instead of raising."""
        try:
            return RunResult(self.run(lines))
        except QuipError as ex:
            return RunResult(ex.output, ex)

    def interpret_block(self, lines: Sequence[str], start: int, end: int, env: Environment,
                        output: List[str], first_line: int = 1) -> BlockResult:
        """Execute lines[start:end] in env, appending to output.

        `first_line` is the program line number of lines[0], used only for
        error reporting.
        """
        i = start
        with self.runtime.scope(env):
            while i < end:
                if is_skippable(lines[i]):
                    i += 1
                    continue
                try:
                    i, result = self.execute_line(lines, i, end, env, output, first_line)
                except QuipError as ex:
                    if ex.line is None:
                        ex.line = first_line + i
                        ex.source = lines[i].strip()
                    raise
                if isinstance(result, Returned):
                    return result
        return Completed(output)

    def execute_line(self, lines: Sequence[str], i: int, end: int, env: Environment,
                     output: List[str], first_line: int) -> Tuple[int, Optional[BlockResult]]:
        """Execute the statement at lines[i]; return the next index and any return signal."""
        raw = lines[i]
        if raw[:1].isspace():
            raise error(SYNTAX_ERROR, 'unexpected indentation')
        line = raw.strip()

        m = LET_RE.match(line)
        if m:
            self.declare(m.group(1), m.group(2), env, output, is_const=False)
            return i + 1, None

        m = SET_RE.match(line)
        if m:
            self.declare(m.group(1), m.group(2), env, output, is_const=True)
            return i + 1, None

        m = ASSIGN_RE.match(line)
        if m:
            name, expr = m.groups()
            check_name(name)
            if not env.is_reachable(name):
                raise error(NAME_ERROR, f'Variable "{name}" not declared')
            value = self.evaluator.evaluate(expr, env, output)
            self.runtime.assign_variable(name, value)
            self.debug(f"assign {name} = {to_string(value)}", 2)
            return i + 1, None

        m = SAY_RE.match(line)
        if m:
            output.append(self.say_text(m.group(1).strip(), env, output))
            return i + 1, None

        m = IF_RE.match(line)
        if m:
            return self.execute_if(m.group(1), lines, i, end, env, output, first_line)

        m = REPEAT_RE.match(line)
        if m:
            count = self.repeat_count(m.group(1), env, output)
            body_end = block_end(lines, i + 1, end)
            for n in range(count):
                self.debug(f"repeat iteration {n + 1}", 3)
                result = self.run_body(lines, i + 1, body_end, env, output, first_line)
                if isinstance(result, Returned):
                    return body_end, result
            return body_end, None

        m = WHILE_RE.match(line)
        if m:
            condition = m.group(1)
            body_end = block_end(lines, i + 1, end)
            iterations = 0
            while True:
                cond = self.evaluator.evaluate(condition, env, output)
                self.debug(f"while {condition} -> {to_string(cond)}", 3)
                if not is_truthy(cond):
                    break
                iterations += 1
                self.check_iterations(iterations)
                result = self.run_body(lines, i + 1, body_end, env, output, first_line)
                if isinstance(result, Returned):
                    return body_end, result
            return body_end, None

        m = FUNCTION_RE.match(line)
        if m:
            name, params_text = m.groups()
            check_name(name, 'function')
            params = self.parse_params(params_text)
            body_end = block_end(lines, i + 1, end)
            func = FunctionDef(name, tuple(params), tuple(dedent(lines, i + 1, body_end)),
                               first_line + i + 1)
            if name in self.runtime.functions:
                self.debug(f"redefine function {name}", 2)
            self.runtime.define_function(func)
            self.debug(f"define function {func!r}", 2)
            return body_end, None

        m = RETURN_RE.match(line)
        if m:
            if self.runtime.call_depth == 0:
                raise error(SYNTAX_ERROR, 'return used outside a function body')
            expr = m.group(1)
            value = self.evaluator.evaluate(expr, env, output) if expr is not None else NULL
            return i + 1, Returned(value)

        m = CALL_RE.match(line)
        if m:
            node = parse_expression(line)
            if isinstance(node, Call):
                self.evaluator.eval_node(node, env, output)
                return i + 1, None

        if ELSE_RE.match(line):
            raise error(SYNTAX_ERROR, 'else without matching if')

        raise error(SYNTAX_ERROR, f'Unknown or unsupported statement: {line}')

    # Statement helpers
    def declare(self, name: str, expr: str, env: Environment, output: List[str], is_const: bool):
        check_name(name)
        value = self.evaluator.evaluate(expr, env, output)
        self.runtime.declare_variable(name, value, is_const)
        kind = 'const' if is_const else 'var'
        self.debug(f"declare {kind} {name}: {type_name(value)} = {to_string(value)}", 2)

    def say_text(self, arg: str, env: Environment, output: List[str]) -> str:
        if is_quoted_literal(arg):
            return arg[1:-1]
        try:
            return to_string(self.evaluator.evaluate(arg, env, output))
        except QuipError as ex:
            if ex.kind == LIMIT_ERROR:
                raise
            return f'Error in say: {ex.err.message}'

    def execute_if(self, condition: str, lines: Sequence[str], i: int, end: int, env: Environment,
                   output: List[str], first_line: int) -> Tuple[int, Optional[BlockResult]]:
        cond = self.evaluator.evaluate(condition, env, output)
        truthy = is_truthy(cond)
        self.debug(f"if {condition} -> {truthy}", 3)
        body_end = block_end(lines, i + 1, end)
        next_index = body_end
        else_body: Optional[Tuple[int, int]] = None
        j = body_end
        while j < end and is_skippable(lines[j]) and not lines[j].startswith(INDENT):
            j += 1
        if j < end and ELSE_RE.match(lines[j].rstrip()):
            else_end = block_end(lines, j + 1, end)
            else_body = (j + 1, else_end)
            next_index = else_end
        result: Optional[BlockResult] = None
        if truthy:
            result = self.run_body(lines, i + 1, body_end, env, output, first_line)
        elif else_body is not None:
            result = self.run_body(lines, else_body[0], else_body[1], env, output, first_line)
        if isinstance(result, Returned):
            return next_index, result
        return next_index, None

    def run_body(self, lines: Sequence[str], start: int, stop: int, env: Environment,
                 output: List[str], first_line: int) -> BlockResult:
        body = dedent(lines, start, stop)
        return self.interpret_block(body, 0, len(body), Environment(parent=env), output,
                                    first_line + start)

    def repeat_count(self, expr: str, env: Environment, output: List[str]) -> int:
        count = self.evaluator.evaluate(expr, env, output)
        if not isinstance(count, float) or not math.isfinite(count) or count < 0 or count != int(count):
            raise error(TYPE_ERROR, f'repeat count must be a non-negative integer, got {to_string(count)}')
        return int(count)

    def check_iterations(self, iterations: int):
        self.debug(f"while iteration {iterations}", 3)
        if self.max_iterations is not None and iterations > self.max_iterations:
            raise error(LIMIT_ERROR, f'while loop exceeded {self.max_iterations} iterations')

    def parse_params(self, text: str) -> List[str]:
        if not text.strip():
            return []
        params = [p.strip() for p in text.split(',')]
        for param in params:
            if not re.match(rf'^{IDENT}$', param):
                raise error(SYNTAX_ERROR, f'invalid parameter name "{param}"')
            check_name(param, 'parameter')
        if len(set(params)) != len(params):
            raise error(SYNTAX_ERROR, 'duplicate parameter name')
        return params

    # Function call protocol
    def call_function(self, func: FunctionDef, args: List[Any], output: List[str]) -> Any:
        """Run a function body with args bound; return its value (null if none)."""
        if len(args) != len(func.params):
            raise error(ARITY_ERROR, f'Function "{func.name}" expects {len(func.params)} arguments, got {len(args)}')
        if self.runtime.call_depth >= self.max_call_depth:
            raise error(LIMIT_ERROR, f'maximum call depth of {self.max_call_depth} exceeded')
        # functions see globals and their own locals, never the caller's scope
        call_env = Environment(parent=self.runtime.global_env)
        for param, arg in zip(func.params, args):
            call_env.declare_var(param, arg)
        self.debug(f"call {func.name}({', '.join(to_string(a) for a in args)})")
        self.runtime.call_depth += 1
        try:
            result = self.interpret_block(func.body, 0, len(func.body), call_env, output, func.first_line)
        finally:
            self.runtime.call_depth -= 1
        if isinstance(result, Returned):
            self.debug(f"return {func.name} -> {to_string(result.value)}", 2)
            return result.value
        return NULL


def run_program(lines: Sequence[str], debug_level: int = 0, **options: Any) -> List[str]:
    """Convenience function to run a Quip program given as source lines."""
    interpreter = Interpreter(debug_level=debug_level, **options)
    try:
        return interpreter.run(lines)
    finally:
        interpreter.close()


def run_source(source: str, debug_level: int = 0, **options: Any) -> List[str]:
    """Split program text into lines and run it."""
    return run_program(source.splitlines(), debug_level=debug_level, **options)
