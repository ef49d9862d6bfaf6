"""Expression evaluation for Quip.

An expression arrives as raw text together with the scope to resolve names
against. Whole-token values (a quoted string, a number, `true`/`false`,
a list or map literal, a bare name) are recognised directly; everything
else is parsed by `quip.parser` and the resulting tree is walked here.
Names and index chains such as `grid[1][0]` are resolved against the
environment while walking, so resolved strings never need re-quoting.
"""

from __future__ import annotations

import json
import math
import re
from typing import Any, Callable, List, Optional

from .ast import (
    Node, Literal, Name, ListLit, MapLit, Index, Call,
    UnaryOp, BinaryOp, Logical, Conditional,
)
from .environment import Environment
from .errors import (
    EVALUATION_ERROR, RANGE_ERROR, SYNTAX_ERROR, TYPE_ERROR,
    QuipError, error,
)
from .parser import KEYWORD_LITERALS, parse_expression
from .runtime import FunctionDef, Runtime
from .values import (
    NullVal, ListVal, MapVal,
    from_python, is_truthy, parse_number, to_string, type_name, values_equal,
)


NAME_RE = re.compile(r'^[A-Za-z_]\w*$')

Invoke = Callable[[FunctionDef, List[Any], List[str]], Any]


def is_quoted_literal(text: str) -> bool:
    """True if text is a single string literal such as `"hi"` or `'hi'`."""
    if len(text) < 2 or text[0] not in '"\'' or text[-1] != text[0]:
        return False
    return text[0] not in text[1:-1]


class ExpressionEvaluator:
    """Evaluates expression text against an environment.

    Calls to user functions are delegated to `invoke`, supplied by the
    block interpreter, which runs the function body and appends whatever
    it says to `output`.
    """
    def __init__(self, runtime: Runtime, invoke: Invoke):
        self.runtime = runtime
        self.invoke = invoke

    def evaluate(self, source: str, env: Environment, output: Optional[List[str]] = None) -> Any:
        if output is None:
            output = []
        text = source.strip()
        if not text:
            raise error(EVALUATION_ERROR, 'expression evaluation failed: empty expression')
        if is_quoted_literal(text):
            return text[1:-1]
        number = parse_number(text)
        if number is not None:
            return number
        if text in KEYWORD_LITERALS:
            return KEYWORD_LITERALS[text]
        if NAME_RE.match(text):
            return env.get(text)
        if text[0] == '[' and text[-1] == ']':
            return self.collection_literal(text, env, output, 'list')
        if text[0] == '{' and text[-1] == '}':
            return self.collection_literal(text, env, output, 'map')
        return self.eval_node(parse_expression(text), env, output)

    def collection_literal(self, text: str, env: Environment, output: List[str], kind: str) -> Any:
        try:
            return from_python(json.loads(text.replace("'", '"')))
        except ValueError:
            pass
        # not plain data: elements may be expressions, or the text may be
        # an indexed literal like [1, 2][0]
        try:
            node = parse_expression(text)
        except QuipError:
            raise error(SYNTAX_ERROR, f'Invalid {kind} syntax: {text}') from None
        return self.eval_node(node, env, output)

    def eval_node(self, node: Node, env: Environment, output: List[str]) -> Any:
        if isinstance(node, Literal):
            return node.value
        if isinstance(node, Name):
            return env.get(node.name)
        if isinstance(node, ListLit):
            return ListVal([self.eval_node(el, env, output) for el in node.elements])
        if isinstance(node, MapLit):
            entries = {}
            for key, val_node in node.entries:
                entries[key] = self.eval_node(val_node, env, output)
            return MapVal(entries)
        if isinstance(node, Index):
            target = self.eval_node(node.target, env, output)
            index = self.eval_node(node.index, env, output)
            return index_value(target, index)
        if isinstance(node, Call):
            func = self.runtime.lookup_function(node.name)
            args = [self.eval_node(arg, env, output) for arg in node.args]
            return self.invoke(func, args, output)
        if isinstance(node, UnaryOp):
            operand = self.eval_node(node.operand, env, output)
            if node.op == '!':
                return not is_truthy(operand)
            if node.op == '-':
                if isinstance(operand, float):
                    return -operand
                raise error(TYPE_ERROR, f'unary - expects a number, got {type_name(operand)}')
            raise error(EVALUATION_ERROR, f'unsupported unary operator {node.op}')
        if isinstance(node, Logical):
            left = self.eval_node(node.left, env, output)
            # short-circuit: the deciding operand is the result
            if node.op == '&&':
                if not is_truthy(left):
                    return left
                return self.eval_node(node.right, env, output)
            if is_truthy(left):
                return left
            return self.eval_node(node.right, env, output)
        if isinstance(node, Conditional):
            if is_truthy(self.eval_node(node.condition, env, output)):
                return self.eval_node(node.then_expr, env, output)
            return self.eval_node(node.else_expr, env, output)
        if isinstance(node, BinaryOp):
            left = self.eval_node(node.left, env, output)
            right = self.eval_node(node.right, env, output)
            return apply_binary_op(node.op, left, right)
        raise error(EVALUATION_ERROR, f'unexpected expression node {type(node).__name__}')


def integer_index(index: Any) -> int:
    if isinstance(index, float) and math.isfinite(index) and index == int(index):
        return int(index)
    raise error(TYPE_ERROR, f'index must be an integer, got {to_string(index)}')


def index_value(target: Any, index: Any) -> Any:
    """Apply one `[index]` step to a value."""
    if isinstance(target, NullVal):
        raise error(TYPE_ERROR, 'Cannot index into null')
    if isinstance(target, str):
        i = integer_index(index)
        if i < 0 or i >= len(target):
            raise error(RANGE_ERROR, f'Index {i} out of range for string')
        return target[i]
    if isinstance(target, ListVal):
        i = integer_index(index)
        if i < 0 or i >= len(target.items):
            raise error(RANGE_ERROR, f'Index {i} out of range for list')
        return target.items[i]
    if isinstance(target, MapVal):
        if isinstance(index, str):
            key = index
        elif isinstance(index, float):
            key = to_string(index)
        else:
            raise error(TYPE_ERROR, f'map key must be a string, got {type_name(index)}')
        if key not in target.entries:
            raise error(RANGE_ERROR, f'Key "{key}" not found in map')
        return target.entries[key]
    raise error(TYPE_ERROR, f'Cannot index into type {type_name(target)}')


def _comparable(a: Any, b: Any):
    if isinstance(a, float) and isinstance(b, float):
        return a, b
    if isinstance(a, str) and isinstance(b, str):
        return a, b
    if isinstance(a, float) and isinstance(b, str) and parse_number(b) is not None:
        return a, parse_number(b)
    if isinstance(a, str) and isinstance(b, float) and parse_number(a) is not None:
        return parse_number(a), b
    return None


def apply_binary_op(op: str, a: Any, b: Any) -> Any:
    if op == '+':
        # If either operand is a string, perform concatenation
        if isinstance(a, str) or isinstance(b, str):
            return to_string(a) + to_string(b)
        if isinstance(a, float) and isinstance(b, float):
            return a + b
        raise error(TYPE_ERROR, f'unsupported + for {type_name(a)} and {type_name(b)}')
    if op in ('-', '*', '/', '%'):
        if not (isinstance(a, float) and isinstance(b, float)):
            raise error(TYPE_ERROR, f'unsupported {op} for {type_name(a)} and {type_name(b)}')
        if op == '-':
            return a - b
        if op == '*':
            return a * b
        if b == 0.0:
            raise error(EVALUATION_ERROR, 'division by zero' if op == '/' else 'modulo by zero')
        if op == '/':
            return a / b
        return math.fmod(a, b)
    if op in ('==', '!='):
        eq = values_equal(a, b)
        return eq if op == '==' else not eq
    if op in ('<', '>', '<=', '>='):
        pair = _comparable(a, b)
        if pair is None:
            raise error(TYPE_ERROR, f'comparison not supported for {type_name(a)} and {type_name(b)}')
        x, y = pair
        if op == '<':
            return x < y
        if op == '>':
            return x > y
        if op == '<=':
            return x <= y
        return x >= y
    raise error(EVALUATION_ERROR, f'unknown operator {op}')
