"""
Host entry point: one root environment, programs run to completion.
"""

from typing import Dict, Optional
import logging

import mpmath

from .config import TeraConfig
from .environment import Environment
from .errors import TeraError
from .evaluator import Evaluator, Sink
from .nodes import Block
from .quantity import Quantity
from .units import UnitTable
from .values import FALSE, TRUE, Value

logger = logging.getLogger(__name__)


def install_constants(env: Environment) -> None:
    env.define("true", TRUE)
    env.define("false", FALSE)
    env.define("pi", Quantity.real(float(mpmath.pi)))


class Interpreter:
    """
    Runs parsed Tera programs against a persistent root environment.

        interp = Interpreter(sink=out.append)
        interp.run(program)
        interp.bindings["a"]

    Successive run() calls share the root frame, so a host can feed a
    program statement by statement.
    """

    def __init__(
        self,
        table: Optional[UnitTable] = None,
        sink: Optional[Sink] = None,
        config: Optional[TeraConfig] = None,
    ):
        self.table = table if table is not None else UnitTable()
        self.evaluator = Evaluator(self.table, sink=sink, config=config)
        self.env = Environment()
        install_constants(self.env)

    @property
    def bindings(self) -> Dict[str, Value]:
        return self.env.bindings()

    def run(self, program: Block) -> Value:
        """Evaluate the program's statements in the root frame."""
        logger.debug("running program with %d top-level statements", len(program.body))
        try:
            value = self.evaluator.execute(program.body, self.env)
        except TeraError as exc:
            logger.debug("program stopped: %s", exc)
            raise
        logger.debug("program finished")
        return value

    def render(self, value: Value) -> str:
        return self.evaluator.renderer.render(value)


def format_error(exc: TeraError, source: Optional[str] = None) -> str:
    """
    One-line report "Kind at line:col: message"; with the program source,
    the offending line follows with a caret under the column.
    """
    report = str(exc)
    if source is None or exc.position is None:
        return report
    line, col = exc.position
    lines = source.splitlines()
    if not 1 <= line <= len(lines):
        return report
    text = lines[line - 1]
    return f"{report}\n    {text}\n    {' ' * max(col - 1, 0)}^"
