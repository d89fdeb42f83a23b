"""
Parsed expression tree consumed by the evaluator.

The parser owns every lexical concern (unit-suffix grammar, digit-group
separators, the uncertainty operator, imaginary suffixes, string escapes)
and hands the evaluator a tree of these nodes. Each node may carry the
source position (line, column) it was parsed from.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple, Union

Position = Optional[Tuple[int, int]]


@dataclass
class Node:
    pass


@dataclass
class Literal(Node):
    """
    A number with an optional unit suffix and uncertainty clause.

    `5μm ± 1nm` is Literal(5, unit="μm", uncertainty=1, uncertainty_unit="nm");
    `(100 ± 1)Ω` is Literal(100, unit="Ω", uncertainty=1). With
    imaginary=True the number (and its uncertainty) is the imaginary part.
    """

    value: float
    unit: Optional[str] = None
    uncertainty: Optional[float] = None
    uncertainty_unit: Optional[str] = None
    imaginary: bool = False
    position: Position = field(default=None, compare=False)


@dataclass
class Identifier(Node):
    name: str
    position: Position = field(default=None, compare=False)


@dataclass
class UnaryOp(Node):
    op: str
    operand: Node
    position: Position = field(default=None, compare=False)


@dataclass
class BinaryOp(Node):
    op: str
    left: Node
    right: Node
    position: Position = field(default=None, compare=False)


@dataclass
class Call(Node):
    name: str
    args: List[Node] = field(default_factory=list)
    position: Position = field(default=None, compare=False)


@dataclass
class Statement(Node):
    """An expression terminated by ';': evaluated for its effects only."""

    expr: Node
    position: Position = field(default=None, compare=False)


@dataclass
class Block(Node):
    body: List[Node] = field(default_factory=list)
    position: Position = field(default=None, compare=False)


@dataclass
class If(Node):
    condition: Node
    then: Block
    orelse: Optional[Union[Block, "If"]] = None
    position: Position = field(default=None, compare=False)


@dataclass
class While(Node):
    condition: Node
    body: Block
    position: Position = field(default=None, compare=False)


@dataclass
class Assign(Node):
    name: str
    value: Node
    position: Position = field(default=None, compare=False)


@dataclass
class Interpolation(Node):
    """A `{expr}` or `{expr|unit|}` span inside a string template."""

    expr: Node
    unit: Optional[str] = None
    position: Position = field(default=None, compare=False)


@dataclass
class StringTemplate(Node):
    parts: List[Union[str, Interpolation]] = field(default_factory=list)
    position: Position = field(default=None, compare=False)


@dataclass
class MatrixLiteral(Node):
    rows: List[List[Node]] = field(default_factory=list)
    position: Position = field(default=None, compare=False)

    @staticmethod
    def column(items: Sequence[Node], position: Position = None) -> "MatrixLiteral":
        """[a, b, c] written as a plain list is an N x 1 matrix."""
        return MatrixLiteral([[item] for item in items], position)


@dataclass
class Index(Node):
    target: Node
    indices: List[Node] = field(default_factory=list)
    position: Position = field(default=None, compare=False)
