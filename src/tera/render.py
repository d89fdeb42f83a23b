"""
Value to text.

Quantities render so that the text is again a valid Tera literal:
`5`, `5 ± 0.1`, `5nm`, `(5000 ± 1)nm`, `(1 ± 0.1)|N.m/s2|`, `3 + 4i`,
`((3 ± 0.1) + (4 ± 0.2)i)m`. Matrices render as `[a, b; c, d]`.
"""

from typing import Optional, Tuple
import math
import re

import mpmath

from .config import TeraConfig, get_config
from .errors import TypeMismatch
from .matrix import Matrix
from .quantity import Quantity
from .units import Unit, UnitTable, base_form
from .values import Nothing, Text, Truth, Value, type_name

_SIMPLE_SYMBOL_RE = re.compile(r"[^\s\d.*/^()|+\-]+")


def order10(x: float) -> int:
    if x == 0:
        return 0
    return int(math.floor(math.log10(abs(x))))


def place_from_val_sig(x: float, sig: int) -> float:
    """Return the decimal place (power of 10) corresponding to sig figs."""
    if sig < 1:
        raise ValueError("sig must be >= 1")
    if x == 0:
        return 10 ** (-(sig - 1))
    return 10.0 ** (order10(x) - sig + 1)


def round_to_place(x: float, place: float) -> float:
    if place == 0:
        return x
    dp = -order10(place)
    return round(x, dp)


def ceil_to_place(x: float, place: float) -> float:
    """
    Ceiling to a place, but robust to tiny floating errors.
    Example: x=0.30000000000000004 at place=0.1 should stay 0.3, not jump to 0.4.
    """
    if place == 0:
        return x
    k = x / place
    k_round = round(k)
    if abs(k - k_round) < 1e-12:
        return k_round * place
    return math.ceil(k - 1e-12) * place


def fmt_place(x: float, place: float) -> str:
    """Format rounded to place, preserving trailing zeros where applicable."""
    if place == 0:
        return f"{x:g}"
    dp = -order10(place)
    xr = round_to_place(x, place)
    if dp >= 0:
        return f"{xr:.{dp}f}"
    return str(int(round(xr, 0)))


def fmt_number(x: float, digits: int = 15) -> str:
    """Shortest text for x with at most `digits` significant digits."""
    if math.isnan(x):
        return "nan"
    if math.isinf(x):
        return "inf" if x > 0 else "-inf"
    if x == 0:
        return "0"
    s = mpmath.nstr(mpmath.mpf(x), digits, strip_zeros=True)
    mantissa, sep, exponent = s.partition("e")
    if mantissa.endswith(".0"):
        mantissa = mantissa[:-2]
    return f"{mantissa}e{exponent}" if sep else mantissa


def report_pair(mid: float, u: float, config: TeraConfig) -> Tuple[str, str]:
    """
    Text for a value and its uncertainty.

    With config.uncertainty_digits set, u is rounded UP to that many
    significant digits and mid is rounded to the same decimal place.
    """
    digits = config.uncertainty_digits
    if digits is None or u <= 0 or not math.isfinite(u):
        return fmt_number(mid, config.significant_digits), fmt_number(u, config.significant_digits)
    place = place_from_val_sig(u, digits)
    u_p = ceil_to_place(u, place)
    place = place_from_val_sig(u_p, digits)
    mid_p = round_to_place(mid, place)
    return fmt_place(mid_p, place), fmt_place(u_p, place)


def unit_suffix(symbol: str) -> str:
    """`nm` stays bare; compound symbols such as `N.m/s2` are wrapped in pipes."""
    if not symbol:
        return ""
    if _SIMPLE_SYMBOL_RE.fullmatch(symbol):
        return symbol
    return f"|{symbol}|"


class Renderer:
    """
    Renders values for print, write and string interpolation.

    Units without a display symbol (results of * / ^) are shown in coherent
    SI, using a named derived unit from the table when one matches.
    """

    def __init__(self, table: Optional[UnitTable] = None, config: Optional[TeraConfig] = None):
        self._table = table
        self._config = config if config is not None else get_config()

    @property
    def config(self) -> TeraConfig:
        return self._config

    def render(self, value: Value) -> str:
        if isinstance(value, Quantity):
            return self.quantity(value)
        if isinstance(value, Matrix):
            return self.matrix(value)
        if isinstance(value, Text):
            return value.text
        if isinstance(value, Truth):
            return "true" if value.value else "false"
        if isinstance(value, Nothing):
            return "()"
        raise TypeMismatch(f"Cannot render a value of type {type_name(value)}.")

    def _display_unit(self, q: Quantity) -> Tuple[Quantity, str]:
        u = q.unit
        if u.symbol:
            return q, u.symbol
        if u.is_plain:
            return q, ""
        coherent = u.coherent()
        q = q.to(coherent)
        if coherent.is_dimensionless:
            return q, ""
        named = self._table.preferred_symbol(coherent) if self._table is not None else None
        return q, named or base_form(coherent.dims)

    def quantity(self, q: Quantity) -> str:
        q, symbol = self._display_unit(q)
        suffix = unit_suffix(symbol)
        cfg = self._config

        if not q.is_complex:
            if q.is_exact:
                return f"{fmt_number(q.re, cfg.significant_digits)}{suffix}"
            mid, u = report_pair(q.re, q.sigma_re, cfg)
            body = f"{mid} ± {u}"
            return f"({body}){suffix}" if suffix else body

        sign = "-" if q.im < 0 else "+"
        if q.is_exact:
            re_s = fmt_number(q.re, cfg.significant_digits)
            im_s = fmt_number(abs(q.im), cfg.significant_digits)
            body = f"{re_s} {sign} {im_s}i"
        else:
            re_mid, re_u = report_pair(q.re, q.sigma_re, cfg)
            im_mid, im_u = report_pair(abs(q.im), q.sigma_im, cfg)
            body = f"({re_mid} ± {re_u}) {sign} ({im_mid} ± {im_u})i"
        return f"({body}){suffix}" if suffix else body

    def cell(self, value: Value) -> str:
        if isinstance(value, Text):
            escaped = value.text.replace("\\", "\\\\").replace('"', '\\"')
            return f'"{escaped}"'
        return self.render(value)

    def matrix(self, m: Matrix) -> str:
        rows = "; ".join(", ".join(self.cell(c) for c in row) for row in m.rows)
        return f"[{rows}]"

    def coerce(self, value: Value, unit_text: str) -> Quantity:
        """Convert value to the unit named by unit_text, for `{expr|unit|}`."""
        if not isinstance(value, Quantity):
            raise TypeMismatch(
                f"Only quantities can be converted to '{unit_text}', found {type_name(value)}."
            )
        if self._table is None:
            raise TypeMismatch("Unit coercion needs a unit table.")
        target: Unit = self._table.resolve(unit_text)
        return value.to(target)

    def interpolate(self, value: Value, unit_text: Optional[str] = None) -> str:
        if unit_text:
            return self.quantity(self.coerce(value, unit_text))
        return self.render(value)


def render_quantity(q: Quantity, table: Optional[UnitTable] = None) -> str:
    return Renderer(table).quantity(q)


def render(value: Value, table: Optional[UnitTable] = None) -> str:
    return Renderer(table).render(value)
