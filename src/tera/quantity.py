"""
Quantity: magnitude x uncertainty x unit x realness.

Uncertainties are standard deviations propagated to first order under the
assumption that operands are independent. Real and imaginary channels are
propagated separately: each operation knows the closed-form partial
derivatives of its real and imaginary output with respect to the real and
imaginary inputs, and the channel uncertainty is the quadrature sum of
derivative times input uncertainty.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple, Union
import math
import warnings

import mpmath

from .config import get_config
from .errors import DivisionByZero, InvalidComparison, TypeMismatch, UnitMismatch
from .units import DIMENSIONLESS, Unit, combine, commensurable, conversion_factor, convert, power, unit_str

Number = Union[int, float]
Magnitude = Union[float, complex]


@dataclass(frozen=True)
class Quantity:
    re: float
    im: float = 0.0
    sigma_re: float = 0.0
    sigma_im: float = 0.0
    unit: Unit = DIMENSIONLESS
    is_complex: bool = False

    def __post_init__(self) -> None:
        for name in ("re", "im", "sigma_re", "sigma_im"):
            object.__setattr__(self, name, float(getattr(self, name)))
        if self.sigma_re < 0 or self.sigma_im < 0:
            raise ValueError("uncertainty must be >= 0")
        if not self.is_complex and (self.im != 0.0 or self.sigma_im != 0.0):
            raise ValueError("A real quantity cannot have an imaginary part; pass is_complex=True.")

    @staticmethod
    def real(value: Number, sigma: Number = 0.0, unit: Unit = DIMENSIONLESS) -> "Quantity":
        return Quantity(value, 0.0, sigma, 0.0, unit)

    @staticmethod
    def complex_value(
        re: Number,
        im: Number,
        sigma_re: Number = 0.0,
        sigma_im: Number = 0.0,
        unit: Unit = DIMENSIONLESS,
    ) -> "Quantity":
        return Quantity(re, im, sigma_re, sigma_im, unit, True)

    @staticmethod
    def from_number(x: Union[Number, complex]) -> "Quantity":
        """Exact dimensionless constant (for mixing with plain numbers)."""
        if isinstance(x, bool):
            raise TypeMismatch("Booleans are not quantities.")
        if isinstance(x, complex):
            return Quantity.complex_value(x.real, x.imag)
        return Quantity.real(x)

    @property
    def magnitude(self) -> Magnitude:
        return complex(self.re, self.im) if self.is_complex else self.re

    @property
    def uncertainty(self) -> Union[float, Tuple[float, float]]:
        return (self.sigma_re, self.sigma_im) if self.is_complex else self.sigma_re

    @property
    def is_exact(self) -> bool:
        return self.sigma_re == 0.0 and self.sigma_im == 0.0

    @property
    def is_zero(self) -> bool:
        return self.re == 0.0 and self.im == 0.0

    def _coerce(self, other: Any) -> "Quantity":
        if isinstance(other, Quantity):
            return other
        if isinstance(other, (int, float, complex)):
            return Quantity.from_number(other)
        raise TypeMismatch(f"Cannot combine a Quantity with {type(other).__name__}.")

    def _factor_from(self, other: "Quantity", op: str) -> float:
        """Factor that expresses other's magnitude in self's unit."""
        if not commensurable(self.unit, other.unit):
            raise UnitMismatch(
                f"Operator '{op}' needs commensurable units, "
                f"found '{unit_str(self.unit)}' and '{unit_str(other.unit)}'."
            )
        return conversion_factor(other.unit, self.unit)

    def to(self, target: Unit) -> "Quantity":
        """Express this quantity in target (same dimension), magnitude and uncertainty."""
        f = conversion_factor(self.unit, target)
        return Quantity(
            convert(self.re, self.unit, target),
            self.im * f,
            self.sigma_re * f,
            self.sigma_im * f,
            target,
            self.is_complex,
        )

    def __add__(self, other: Any) -> "Quantity":
        o = self._coerce(other)
        f = self._factor_from(o, "+")
        return Quantity(
            self.re + o.re * f,
            self.im + o.im * f,
            math.hypot(self.sigma_re, o.sigma_re * f),
            math.hypot(self.sigma_im, o.sigma_im * f),
            self.unit,
            self.is_complex or o.is_complex,
        )

    def __sub__(self, other: Any) -> "Quantity":
        o = self._coerce(other)
        f = self._factor_from(o, "-")
        return Quantity(
            self.re - o.re * f,
            self.im - o.im * f,
            math.hypot(self.sigma_re, o.sigma_re * f),
            math.hypot(self.sigma_im, o.sigma_im * f),
            self.unit,
            self.is_complex or o.is_complex,
        )

    def __mul__(self, other: Any) -> "Quantity":
        o = self._coerce(other)
        unit = combine(self.unit, o.unit, "mul")
        if not (self.is_complex or o.is_complex):
            z = self.re * o.re
            sigma = _product_sigma(z, self.re, self.sigma_re, o.re, o.sigma_re, "mul")
            return Quantity(z, 0.0, sigma, 0.0, unit)

        a, b, sa, sb = self.re, self.im, self.sigma_re, self.sigma_im
        c, d, sc, sd = o.re, o.im, o.sigma_re, o.sigma_im
        # (a + bi)(c + di) = (ac - bd) + (ad + bc)i
        return Quantity(
            a * c - b * d,
            a * d + b * c,
            math.hypot(c * sa, d * sb, a * sc, b * sd),
            math.hypot(d * sa, c * sb, b * sc, a * sd),
            unit,
            True,
        )

    def __truediv__(self, other: Any) -> "Quantity":
        o = self._coerce(other)
        if o.is_zero:
            raise DivisionByZero("Division by a quantity of zero magnitude.")
        unit = combine(self.unit, o.unit, "div")
        if not (self.is_complex or o.is_complex):
            z = self.re / o.re
            sigma = _product_sigma(z, self.re, self.sigma_re, o.re, o.sigma_re, "div")
            return Quantity(z, 0.0, sigma, 0.0, unit)

        a, b, sa, sb = self.re, self.im, self.sigma_re, self.sigma_im
        c, d, sc, sd = o.re, o.im, o.sigma_re, o.sigma_im
        # (a + bi)/(c + di) = ((ac + bd) + (bc - ad)i) / (c^2 + d^2)
        den = c * c + d * d
        den2 = den * den
        num_re = a * c + b * d
        num_im = b * c - a * d
        sigma_re = math.hypot(
            c * sa / den,
            d * sb / den,
            (a * den - 2.0 * c * num_re) * sc / den2,
            (b * den - 2.0 * d * num_re) * sd / den2,
        )
        sigma_im = math.hypot(
            d * sa / den,
            c * sb / den,
            (b * den - 2.0 * c * num_im) * sc / den2,
            (a * den + 2.0 * d * num_im) * sd / den2,
        )
        return Quantity(num_re / den, num_im / den, sigma_re, sigma_im, unit, True)

    def __neg__(self) -> "Quantity":
        return Quantity(-self.re, -self.im, self.sigma_re, self.sigma_im, self.unit, self.is_complex)

    def __pos__(self) -> "Quantity":
        return self

    def __radd__(self, other: Any) -> "Quantity":
        return self._coerce(other).__add__(self)

    def __rsub__(self, other: Any) -> "Quantity":
        return self._coerce(other).__sub__(self)

    def __rmul__(self, other: Any) -> "Quantity":
        return self._coerce(other).__mul__(self)

    def __rtruediv__(self, other: Any) -> "Quantity":
        return self._coerce(other).__truediv__(self)

    def compare(self, op: str, other: Any, *, rel_tol: Optional[float] = None) -> bool:
        """
        Compare magnitudes after rescaling other into this unit.

        Uncertainties are ignored. == and != use a relative tolerance so that
        a value survives a round trip through a scaled unit.
        """
        o = self._coerce(other)
        if self.is_complex or o.is_complex:
            raise InvalidComparison(f"Complex quantities cannot be compared with '{op}'.")
        if not commensurable(self.unit, o.unit):
            raise UnitMismatch(
                f"Comparison '{op}' needs commensurable units, "
                f"found '{unit_str(self.unit)}' and '{unit_str(o.unit)}'."
            )
        tol = get_config().equality_rel_tol if rel_tol is None else rel_tol
        x = self.re
        y = convert(o.re, o.unit, self.unit)
        equal = math.isclose(x, y, rel_tol=tol, abs_tol=0.0)
        if op == "==":
            return equal
        if op == "!=":
            return not equal
        if op == "<":
            return x < y and not equal
        if op == ">":
            return x > y and not equal
        if op == "<=":
            return x < y or equal
        if op == ">=":
            return x > y or equal
        raise ValueError(f"Unknown comparison operator {op!r}.")

    def __str__(self) -> str:
        from .render import render_quantity

        return render_quantity(self)


def _product_sigma(z: float, x: float, sx: float, y: float, sy: float, op: str) -> float:
    """Real * and / : relative quadrature, absolute form when an operand is zero."""
    if x != 0.0 and y != 0.0:
        return abs(z) * math.hypot(sx / x, sy / y)
    if op == "mul":
        return math.hypot(y * sx, x * sy)
    return math.hypot(sx / y, x * sy / (y * y))


def _holomorphic(w: complex, dw: complex, q: Quantity, unit: Unit) -> Quantity:
    """
    Propagate through an analytic f with f(q) = w and f'(q) = dw.

    Cauchy-Riemann gives d(re)/da = Re f', d(re)/db = -Im f',
    d(im)/da = Im f', d(im)/db = Re f'.
    """
    return Quantity(
        w.real,
        w.imag,
        math.hypot(dw.real * q.sigma_re, dw.imag * q.sigma_im),
        math.hypot(dw.imag * q.sigma_re, dw.real * q.sigma_im),
        unit,
        True,
    )


def _scaled_sigma(derivative: float, sigma: float) -> float:
    # exact inputs stay exact even where the derivative blows up
    if sigma == 0.0:
        return 0.0
    return abs(derivative) * sigma


def _real_power(x: float, n: float) -> float:
    """x ** n for x >= 0 or integer n; overflow gives a signed infinity."""
    try:
        return x ** n
    except OverflowError:
        if x < 0 and int(n) % 2:
            return -math.inf
        return math.inf


def _real_power_derivative(x: float, n: float) -> float:
    if x != 0.0:
        return n * _real_power(x, n - 1)
    if n == 0 or n > 1:
        return 0.0
    if n == 1:
        return 1.0
    return math.inf


def _q_pow(self: Quantity, exponent: Any, *, warn_inexact: Optional[bool] = None) -> Quantity:
    """
    self ^ exponent, with the exponent treated as exact.

    The exponent must be a real, dimensionless quantity (or number). The
    result unit is the base unit raised to the exponent, so a dimensional
    base needs a rational exponent (UnitMismatch otherwise).
    """
    e = self._coerce(exponent)
    if e.is_complex:
        raise TypeMismatch("The exponent of '^' must be real.")
    if not e.unit.is_dimensionless:
        raise UnitMismatch(f"The exponent of '^' must be dimensionless, found '{unit_str(e.unit)}'.")
    n = convert(e.re, e.unit, DIMENSIONLESS)

    if warn_inexact is None:
        warn_inexact = get_config().warn_inexact_exponent
    if warn_inexact and not e.is_exact:
        warnings.warn(
            f"The exponent uncertainty ({e.sigma_re:g}) is ignored; exponents are treated as exact.",
            RuntimeWarning,
            stacklevel=2,
        )

    if self.is_zero and n < 0:
        raise DivisionByZero("Zero raised to a negative power.")
    unit = power(self.unit, n)

    if not self.is_complex and (self.re >= 0 or float(n).is_integer()):
        x = self.re
        z = _real_power(x, n)
        return Quantity(z, 0.0, _scaled_sigma(_real_power_derivative(x, n), self.sigma_re), 0.0, unit)

    z = mpmath.mpc(self.re, self.im)
    w = complex(mpmath.power(z, n))
    if self.is_zero:
        dw = complex(_real_power_derivative(0.0, n))
    else:
        dw = complex(n * mpmath.power(z, n - 1))
    if math.isinf(dw.real) or math.isinf(dw.imag):
        if self.is_exact:
            return Quantity(w.real, w.imag, 0.0, 0.0, unit, True)
        return Quantity(w.real, w.imag, math.inf, math.inf, unit, True)
    return _holomorphic(w, dw, self, unit)


def _q_rpow(self: Quantity, base: Any) -> Quantity:
    return _q_pow(self._coerce(base), self)


Quantity.__pow__ = _q_pow
Quantity.__rpow__ = _q_rpow
Quantity.raise_to = _q_pow


def _plain_argument(q: Quantity, name: str) -> Quantity:
    """Angles and other dimensionless arguments rescaled to scale 1 (radians)."""
    if not q.unit.is_dimensionless:
        raise UnitMismatch(f"'{name}' needs a dimensionless argument, found '{unit_str(q.unit)}'.")
    return q if q.unit.is_plain else q.to(DIMENSIONLESS)


def _analytic(name: str, f: Callable[[Any], Any], df: Callable[[Any], Any]) -> Callable[[Quantity], Quantity]:
    def apply(q: Quantity) -> Quantity:
        x = _plain_argument(q, name)
        if not x.is_complex:
            arg = mpmath.mpf(x.re)
            return Quantity(float(f(arg)), 0.0, _scaled_sigma(float(df(arg)), x.sigma_re), 0.0, DIMENSIONLESS)
        z = mpmath.mpc(x.re, x.im)
        return _holomorphic(complex(f(z)), complex(df(z)), x, DIMENSIONLESS)

    apply.__name__ = name
    return apply


def _q_abs(q: Quantity) -> Quantity:
    if not q.is_complex:
        return Quantity(abs(q.re), 0.0, q.sigma_re, 0.0, q.unit)
    r = math.hypot(q.re, q.im)
    if r == 0.0:
        sigma = math.hypot(q.sigma_re, q.sigma_im)
    else:
        sigma = math.hypot(q.re * q.sigma_re, q.im * q.sigma_im) / r
    return Quantity(r, 0.0, sigma, 0.0, q.unit)


def _q_arg(q: Quantity) -> Quantity:
    phi = math.atan2(q.im, q.re)
    r2 = q.re * q.re + q.im * q.im
    if r2 == 0.0:
        # the phase of an uncertain zero can be anything
        sigma = 0.0 if q.is_exact else math.pi
    else:
        sigma = math.hypot(q.im * q.sigma_re, q.re * q.sigma_im) / r2
    return Quantity(phi, 0.0, sigma, 0.0, DIMENSIONLESS)


def _q_sigma(q: Quantity) -> Quantity:
    return Quantity(q.sigma_re, q.sigma_im, 0.0, 0.0, q.unit, q.is_complex)


def _q_value(q: Quantity) -> Quantity:
    return Quantity(q.re, q.im, 0.0, 0.0, q.unit, q.is_complex)


def _q_neg(q: Quantity) -> Quantity:
    return -q


UNARY_FUNCTIONS: Dict[str, Callable[[Quantity], Quantity]] = {
    "sin": _analytic("sin", mpmath.sin, mpmath.cos),
    "cos": _analytic("cos", mpmath.cos, lambda z: -mpmath.sin(z)),
    "exp": _analytic("exp", mpmath.exp, mpmath.exp),
    "abs": _q_abs,
    "arg": _q_arg,
    "sigma": _q_sigma,
    "value": _q_value,
    "neg": _q_neg,
}


def _extremum(name: str, pick_left: Callable[[Quantity, Quantity], bool]) -> Callable[[Quantity, Quantity], Quantity]:
    def apply(x: Quantity, y: Quantity) -> Quantity:
        if x.is_complex or y.is_complex:
            raise InvalidComparison(f"'{name}' is not defined for complex quantities.")
        if pick_left(x, y):
            return x
        return y.to(x.unit)

    apply.__name__ = name
    return apply


BINARY_FUNCTIONS: Dict[str, Callable[[Quantity, Quantity], Quantity]] = {
    "max": _extremum("max", lambda x, y: x.compare(">=", y)),
    "min": _extremum("min", lambda x, y: x.compare("<=", y)),
}
