from typing import Optional, Tuple

Position = Tuple[int, int]


class TeraError(Exception):
    """
    Base class for every error signaled while evaluating a Tera program.

    The error kind is the class name. The parser may attach a source
    position (line, column); the evaluator fills it in from the innermost
    node that carries one when the error does not have one yet.
    """

    def __init__(self, message: str, position: Optional[Position] = None):
        super().__init__(message)
        self.message = message
        self.position = position

    @property
    def kind(self) -> str:
        return type(self).__name__

    def __str__(self) -> str:
        if self.position is None:
            return f"{self.kind}: {self.message}"
        line, col = self.position
        return f"{self.kind} at {line}:{col}: {self.message}"


class UnitMismatch(TeraError):
    pass


class UnknownUnit(TeraError):
    pass


class UndefinedFunction(TeraError):
    pass


class UndefinedVariable(TeraError):
    pass


class TypeMismatch(TeraError):
    pass


class IndexOutOfRange(TeraError):
    pass


class RaggedMatrix(TeraError):
    pass


class InvalidComparison(TeraError):
    pass


class DivisionByZero(TeraError):
    pass


class AssertionFailed(TeraError):
    """Raised by assert(cond, msg) when cond is false; carries msg."""

    def __init__(self, msg: str, position: Optional[Position] = None):
        super().__init__(msg, position)
        self.msg = msg


class UserError(TeraError):
    """Raised unconditionally by error(msg)."""


class IterationLimit(TeraError):
    """Raised when a while loop exceeds the configured max_iterations."""
