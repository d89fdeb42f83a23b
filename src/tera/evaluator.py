"""
Tree-walking evaluator.

evaluate(node, env) returns one of the values in tera.values (Quantity,
Matrix, Text, Truth or Nothing). Control flow is ordinary recursion: blocks,
if and while produce their value directly, and any TeraError raised below
aborts the statement in progress and propagates to the host unchanged. The
only thing added on the way out is the source position of the innermost
node that has one.
"""

from typing import Any, Callable, Dict, List, Optional
import logging
import operator
import sys

from .config import TeraConfig, get_config
from .environment import Environment
from .errors import (
    AssertionFailed,
    IterationLimit,
    TeraError,
    TypeMismatch,
    UndefinedFunction,
    UserError,
)
from .matrix import Matrix
from .nodes import (
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
    Node,
    Statement,
    StringTemplate,
    UnaryOp,
    While,
)
from .quantity import BINARY_FUNCTIONS, UNARY_FUNCTIONS, Quantity
from .render import Renderer
from .units import DIMENSIONLESS, UnitTable, conversion_factor, convert_uncertainty
from .values import NOTHING, Nothing, Text, Truth, Value, type_name

logger = logging.getLogger(__name__)

Sink = Callable[[str], Any]

_ARITHMETIC = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": operator.truediv,
}
_COMPARISONS = ("==", "!=", "<", ">", "<=", ">=")
_UNCERTAINTY_OPS = ("±", "+-")
_NOT_OPS = ("!", "not")
# both sides are always evaluated
_STRICT_LOGICAL = {
    "xor": lambda a, b: a != b,
    "nand": lambda a, b: not (a and b),
}

# names callable from Tera; "neg" is only reachable through unary minus
CALLABLE_UNARY = ("sin", "cos", "exp", "abs", "arg", "sigma", "value")


class Evaluator:
    def __init__(
        self,
        table: UnitTable,
        sink: Optional[Sink] = None,
        config: Optional[TeraConfig] = None,
    ):
        self.table = table
        self.config = config if config is not None else get_config()
        self.renderer = Renderer(table, self.config)
        self.sink: Sink = sink if sink is not None else sys.stdout.write
        self._dispatch: Dict[type, Callable[[Any, Environment], Value]] = {
            Literal: self._literal,
            Identifier: self._identifier,
            UnaryOp: self._unary,
            BinaryOp: self._binary,
            Call: self._call,
            Statement: self._statement,
            Block: self._block,
            If: self._if,
            While: self._while,
            Assign: self._assign,
            StringTemplate: self._template,
            Interpolation: self._interpolation,
            MatrixLiteral: self._matrix,
            Index: self._index,
        }
        self._statements: Dict[str, Callable[[Call, Environment], Value]] = {
            "print": self._print,
            "write": self._write,
            "assert": self._assert,
            "error": self._error,
        }

    def evaluate(self, node: Node, env: Environment) -> Value:
        handler = self._dispatch.get(type(node))
        if handler is None:
            raise TypeMismatch(f"Cannot evaluate a {type(node).__name__} node.")
        try:
            return handler(node, env)
        except TeraError as exc:
            if exc.position is None:
                exc.position = getattr(node, "position", None)
            raise

    def execute(self, body: List[Node], env: Environment) -> Value:
        """Run statements in order in env; the value is that of the last one."""
        result: Value = NOTHING
        for stmt in body:
            result = self.evaluate(stmt, env)
        return result

    # -- helpers -----------------------------------------------------------

    def _expect_quantity(self, value: Value, what: str) -> Quantity:
        if not isinstance(value, Quantity):
            raise TypeMismatch(f"{what} needs a Quantity, found {type_name(value)}.")
        return value

    def _expect_truth(self, value: Value, what: str) -> Truth:
        if not isinstance(value, Truth):
            raise TypeMismatch(
                f"{what} needs a true/false condition such as a comparison, found {type_name(value)}."
            )
        return value

    def _expect_index(self, value: Value) -> int:
        q = self._expect_quantity(value, "An index")
        if q.is_complex or not q.unit.is_plain or not q.is_exact or not q.re.is_integer():
            raise TypeMismatch("An index must be a plain integer.")
        return int(q.re)

    def _arguments(self, node: Call, env: Environment, count: int) -> List[Value]:
        if len(node.args) != count:
            raise TypeMismatch(
                f"'{node.name}' takes {count} argument{'s' if count != 1 else ''}, "
                f"{len(node.args)} given."
            )
        return [self.evaluate(arg, env) for arg in node.args]

    # -- expressions -------------------------------------------------------

    def _literal(self, node: Literal, env: Environment) -> Quantity:
        unit = self.table.resolve(node.unit) if node.unit else DIMENSIONLESS
        sigma = 0.0
        if node.uncertainty is not None:
            if node.uncertainty < 0:
                raise TypeMismatch("An uncertainty cannot be negative.")
            sigma = float(node.uncertainty)
            if node.uncertainty_unit:
                sigma = convert_uncertainty(sigma, self.table.resolve(node.uncertainty_unit), unit)
        if node.imaginary:
            q = Quantity.complex_value(0.0, node.value, 0.0, sigma, unit)
        else:
            q = Quantity.real(node.value, sigma, unit)
        if unit.is_affine:
            # °C and friends are only a way of writing kelvin
            q = q.to(unit.coherent())
        return q

    def _identifier(self, node: Identifier, env: Environment) -> Value:
        return env.lookup(node.name)

    def _unary(self, node: UnaryOp, env: Environment) -> Value:
        operand = self.evaluate(node.operand, env)
        if node.op == "-":
            return UNARY_FUNCTIONS["neg"](self._expect_quantity(operand, "Unary '-'"))
        if node.op == "+":
            return self._expect_quantity(operand, "Unary '+'")
        if node.op in _NOT_OPS:
            return Truth(not self._expect_truth(operand, f"'{node.op}'").value)
        raise TypeMismatch(f"Unknown unary operator '{node.op}'.")

    def _binary(self, node: BinaryOp, env: Environment) -> Value:
        op = node.op
        if op in ("and", "or"):
            left = self._expect_truth(self.evaluate(node.left, env), f"'{op}'")
            if op == "and" and not left.value:
                return left
            if op == "or" and left.value:
                return left
            return self._expect_truth(self.evaluate(node.right, env), f"'{op}'")

        left = self.evaluate(node.left, env)
        right = self.evaluate(node.right, env)
        if op in _STRICT_LOGICAL:
            a = self._expect_truth(left, f"'{op}'").value
            b = self._expect_truth(right, f"'{op}'").value
            return Truth(_STRICT_LOGICAL[op](a, b))
        if op in _COMPARISONS:
            return self._compare(op, left, right)
        if op in _ARITHMETIC:
            x = self._expect_quantity(left, f"Operator '{op}'")
            y = self._expect_quantity(right, f"Operator '{op}'")
            return _ARITHMETIC[op](x, y)
        if op == "^":
            x = self._expect_quantity(left, "Operator '^'")
            y = self._expect_quantity(right, "Operator '^'")
            return x.raise_to(y, warn_inexact=self.config.warn_inexact_exponent)
        if op in _UNCERTAINTY_OPS:
            return self._with_uncertainty(left, right)
        raise TypeMismatch(f"Unknown binary operator '{op}'.")

    def _compare(self, op: str, left: Value, right: Value) -> Truth:
        if isinstance(left, Quantity) and isinstance(right, Quantity):
            return Truth(left.compare(op, right, rel_tol=self.config.equality_rel_tol))
        if op in ("==", "!=") and type(left) is type(right) and isinstance(left, (Text, Truth)):
            return Truth((left == right) == (op == "=="))
        raise TypeMismatch(
            f"Cannot compare {type_name(left)} with {type_name(right)} using '{op}'."
        )

    def _with_uncertainty(self, left: Value, right: Value) -> Quantity:
        """x ± s: add |s| (in x's unit) to x's uncertainty in quadrature."""
        x = self._expect_quantity(left, "Operator '±'")
        s = self._expect_quantity(right, "Operator '±'")
        if x.is_complex or s.is_complex:
            raise TypeMismatch("Operator '±' works on real quantities only.")
        extra = abs(s.re) * conversion_factor(s.unit, x.unit)
        return Quantity.real(x.re, (x.sigma_re ** 2 + extra ** 2) ** 0.5, x.unit)

    def _call(self, node: Call, env: Environment) -> Value:
        name = node.name
        if name in CALLABLE_UNARY:
            (arg,) = self._arguments(node, env, 1)
            return UNARY_FUNCTIONS[name](self._expect_quantity(arg, f"'{name}'"))
        if name in BINARY_FUNCTIONS:
            x, y = self._arguments(node, env, 2)
            return BINARY_FUNCTIONS[name](
                self._expect_quantity(x, f"'{name}'"), self._expect_quantity(y, f"'{name}'")
            )
        handler = self._statements.get(name)
        if handler is None:
            raise UndefinedFunction(f"Unknown function '{name}'.")
        return handler(node, env)

    def _print(self, node: Call, env: Environment) -> Nothing:
        text = "".join(self.renderer.render(self.evaluate(arg, env)) for arg in node.args)
        self.sink(text + "\n")
        return NOTHING

    def _write(self, node: Call, env: Environment) -> Nothing:
        if not node.args:
            raise TypeMismatch("'write' takes one or more arguments, 0 given.")
        self.sink("".join(self.renderer.render(self.evaluate(arg, env)) for arg in node.args))
        return NOTHING

    def _assert(self, node: Call, env: Environment) -> Nothing:
        if len(node.args) not in (1, 2):
            raise TypeMismatch(f"'assert' takes 1 or 2 arguments, {len(node.args)} given.")
        cond = self._expect_truth(self.evaluate(node.args[0], env), "'assert'")
        if cond.value:
            return NOTHING
        if len(node.args) == 2:
            msg = self.renderer.render(self.evaluate(node.args[1], env))
        else:
            msg = "assertion failed"
        raise AssertionFailed(msg)

    def _error(self, node: Call, env: Environment) -> Nothing:
        (msg,) = self._arguments(node, env, 1)
        raise UserError(self.renderer.render(msg))

    def _template(self, node: StringTemplate, env: Environment) -> Text:
        pieces = []
        for part in node.parts:
            if isinstance(part, str):
                pieces.append(part)
            else:
                pieces.append(self.evaluate(part, env).text)
        return Text("".join(pieces))

    def _interpolation(self, node: Interpolation, env: Environment) -> Text:
        value = self.evaluate(node.expr, env)
        return Text(self.renderer.interpolate(value, node.unit))

    def _matrix(self, node: MatrixLiteral, env: Environment) -> Matrix:
        rows = [[self.evaluate(cell, env) for cell in row] for row in node.rows]
        return Matrix.from_rows(rows)

    def _index(self, node: Index, env: Environment) -> Value:
        target = self.evaluate(node.target, env)
        if not isinstance(target, Matrix):
            raise TypeMismatch(f"Only matrices can be indexed, found {type_name(target)}.")
        if len(node.indices) not in (1, 2):
            raise TypeMismatch(f"A matrix takes 1 or 2 indices, {len(node.indices)} given.")
        indices = [self._expect_index(self.evaluate(i, env)) for i in node.indices]
        return target.index(*indices)

    # -- statements and control flow --------------------------------------

    def _statement(self, node: Statement, env: Environment) -> Nothing:
        self.evaluate(node.expr, env)
        return NOTHING

    def _block(self, node: Block, env: Environment) -> Value:
        return self.execute(node.body, env.child())

    def _if(self, node: If, env: Environment) -> Value:
        cond = self._expect_truth(self.evaluate(node.condition, env), "'if'")
        if cond.value:
            return self.evaluate(node.then, env)
        if node.orelse is not None:
            return self.evaluate(node.orelse, env)
        return NOTHING

    def _while(self, node: While, env: Environment) -> Value:
        result: Value = NOTHING
        limit = self.config.max_iterations
        count = 0
        while self._expect_truth(self.evaluate(node.condition, env), "'while'").value:
            count += 1
            if limit is not None and count > limit:
                raise IterationLimit(f"The loop did not finish within {limit} iterations.")
            result = self.evaluate(node.body, env)
        logger.debug("while loop finished after %d iterations", count)
        return result

    def _assign(self, node: Assign, env: Environment) -> Value:
        return env.assign(node.name, self.evaluate(node.value, env))
