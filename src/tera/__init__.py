from .config import (
    CONFIG,
    TeraConfig,
    get_config,
    reset_config,
    set_config,
)
from .environment import Environment
from .errors import (
    AssertionFailed,
    DivisionByZero,
    IndexOutOfRange,
    InvalidComparison,
    IterationLimit,
    RaggedMatrix,
    TeraError,
    TypeMismatch,
    UndefinedFunction,
    UndefinedVariable,
    UnitMismatch,
    UnknownUnit,
    UserError,
)
from .evaluator import Evaluator
from .interpreter import Interpreter, format_error
from .logging_config import setup_logging
from .matrix import Matrix
from .quantity import BINARY_FUNCTIONS, UNARY_FUNCTIONS, Quantity
from .render import Renderer
from .units import DIMENSIONLESS, Unit, UnitTable, combine, commensurable, convert, power
from .values import FALSE, NOTHING, TRUE, Nothing, Text, Truth, Value
