"""Parser for Quip expressions.

Quip programs are dispatched one line at a time by the block interpreter,
so there is no program grammar. What remains is the compound expression
language used on the right-hand side of declarations, in conditions, in
`say` arguments and in call arguments. It is parsed by a Lark LALR parser
configured with the grammar below; the resulting parse tree is turned into
`quip.ast` nodes by `ExpressionTransformer`.

Operator precedence, lowest first: ternary `?:`, `||`, `&&`, equality,
relational comparison, `+ -`, `* / %`, unary `! -`, then indexing and
calls. String literals are taken verbatim between their quotes.

The `parse_expression` function is the public entry point. Parsed trees
are cached per expression text, which keeps `while` conditions cheap.
"""

from __future__ import annotations

from functools import lru_cache
from typing import List

from lark import Lark, Transformer
from lark.exceptions import LarkError

from .ast import (
    Node, Literal, Name, ListLit, MapLit, Index, Call,
    UnaryOp, BinaryOp, Logical, Conditional,
)
from .errors import EVALUATION_ERROR, error
from .values import NULL


QUIP_EXPRESSION_GRAMMAR = r"""
    ?start: expression

    ?expression: conditional
    ?conditional: logic_or "?" expression ":" expression -> ternary
                | logic_or
    ?logic_or: logic_or OR logic_and -> logical
             | logic_and
    ?logic_and: logic_and AND equality -> logical
              | equality
    ?equality: equality (EQ | NE) compare -> binary
             | compare
    ?compare: compare (LT | GT | LE | GE) term -> binary
            | term
    ?term: term (PLUS | MINUS) factor -> binary
         | factor
    ?factor: factor (STAR | SLASH | PERCENT) unary -> binary
           | unary
    ?unary: (BANG | MINUS) unary -> unary_op
          | postfix
    ?postfix: primary
            | postfix "[" expression "]" -> index
    ?primary: NUMBER -> number
            | STRING -> string
            | NAME "(" [arguments] ")" -> call
            | NAME -> name
            | "(" expression ")"
            | "[" [expression ("," expression)*] "]" -> list_lit
            | "{" [pair ("," pair)*] "}" -> map_lit
    arguments: expression ("," expression)*
    pair: (STRING | NAME) ":" expression

    NUMBER: /(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?/
    STRING: /"[^"]*"/ | /'[^']*'/
    NAME: /[A-Za-z_]\w*/

    OR: "||"
    AND: "&&"
    EQ: "=="
    NE: "!="
    LE: "<="
    GE: ">="
    LT: "<"
    GT: ">"
    PLUS: "+"
    MINUS: "-"
    STAR: "*"
    SLASH: "/"
    PERCENT: "%"
    BANG: "!"

    %import common.WS
    %ignore WS
"""


KEYWORD_LITERALS = {
    'true': True,
    'false': False,
    'null': NULL,
}


class ExpressionTransformer(Transformer):
    """Transforms the raw parse tree into expression nodes."""

    def number(self, items):
        return Literal(float(items[0]))

    def string(self, items):
        return Literal(str(items[0])[1:-1])

    def name(self, items):
        word = str(items[0])
        if word in KEYWORD_LITERALS:
            return Literal(KEYWORD_LITERALS[word])
        return Name(word)

    def call(self, items):
        name = str(items[0])
        args: List[Node] = items[1] if len(items) > 1 else []
        return Call(name=name, args=args)

    def arguments(self, items):
        return list(items)

    def index(self, items):
        return Index(target=items[0], index=items[1])

    def list_lit(self, items):
        return ListLit(list(items))

    def map_lit(self, items):
        return MapLit(list(items))

    def pair(self, items):
        key_token = items[0]
        key = str(key_token)
        if key_token.type == 'STRING':
            key = key[1:-1]
        return (key, items[1])

    def unary_op(self, items):
        return UnaryOp(op=str(items[0]), operand=items[1])

    def binary(self, items):
        return BinaryOp(op=str(items[1]), left=items[0], right=items[2])

    def logical(self, items):
        return Logical(op=str(items[1]), left=items[0], right=items[2])

    def ternary(self, items):
        return Conditional(condition=items[0], then_expr=items[1], else_expr=items[2])


QUIP_PARSER = Lark(
    QUIP_EXPRESSION_GRAMMAR,
    parser='lalr',
    maybe_placeholders=False,
)


@lru_cache(maxsize=1024)
def parse_expression(source: str) -> Node:
    """Parse an expression into an AST node.

    Any grammar error is raised as an EvaluationError naming the
    expression text.
    """
    try:
        tree = QUIP_PARSER.parse(source)
        return ExpressionTransformer().transform(tree)
    except LarkError:
        raise error(EVALUATION_ERROR, f'expression evaluation failed: {source}') from None
