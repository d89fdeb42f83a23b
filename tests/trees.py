"""Shorthand constructors for the parsed trees used across the tests."""

from tera.nodes import (
    Assign,
    BinaryOp,
    Block,
    Call,
    Identifier,
    If,
    Index,
    Interpolation,
    Literal,
    MatrixLiteral,
    Statement,
    StringTemplate,
    UnaryOp,
    While,
)


def num(value, unit=None, pm=None, pm_unit=None, imaginary=False, position=None):
    return Literal(value, unit, pm, pm_unit, imaginary, position)


def var(name):
    return Identifier(name)


def op(left, symbol, right, position=None):
    return BinaryOp(symbol, left, right, position)


def neg(operand):
    return UnaryOp("-", operand)


def call(name, *args, position=None):
    return Call(name, list(args), position)


def let(name, value):
    return Statement(Assign(name, value))


def block(*body):
    return Block(list(body))


def text(*parts):
    """text("a = ", (var("a"), "nm")) builds the template "a = {a|nm|}"."""
    built = []
    for part in parts:
        if isinstance(part, str):
            built.append(part)
        elif isinstance(part, tuple):
            built.append(Interpolation(part[0], part[1]))
        else:
            built.append(Interpolation(part))
    return StringTemplate(built)


def matrix(*rows):
    return MatrixLiteral([list(row) for row in rows])


def index(target, *indices):
    return Index(target, list(indices))


__all__ = [
    "Assign", "Block", "If", "Statement", "While", "MatrixLiteral",
    "num", "var", "op", "neg", "call", "let", "block", "text", "matrix", "index",
]
