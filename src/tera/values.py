"""
The closed set of values a Tera expression can produce.

Quantity and Matrix live in their own modules; this module holds the small
non-numeric variants and the Value union every consumer matches against.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from .matrix import Matrix
    from .quantity import Quantity


@dataclass(frozen=True)
class Text:
    text: str

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class Truth:
    """Result of a comparison or logical operator."""

    value: bool

    def __bool__(self) -> bool:
        return self.value


@dataclass(frozen=True)
class Nothing:
    """The unit value: what a block yields when it produces no result."""


NOTHING = Nothing()
TRUE = Truth(True)
FALSE = Truth(False)

Value = Union["Quantity", "Matrix", Text, Truth, Nothing]


def type_name(value: object) -> str:
    """Name of a value's kind as used in error messages."""
    from .matrix import Matrix
    from .quantity import Quantity

    if isinstance(value, Quantity):
        return "Quantity"
    if isinstance(value, Matrix):
        return "Matrix"
    if isinstance(value, Text):
        return "Text"
    if isinstance(value, Truth):
        return "Truth"
    if isinstance(value, Nothing):
        return "Nothing"
    return type(value).__name__
