"""
Unit algebra for Tera quantities.

A Unit is a dimension vector over the seven SI base dimensions, a scale
relative to the coherent SI unit and an optional display symbol. Named
units are resolved through a UnitTable, which delegates the actual unit
knowledge (prefixes, derived units, conversion factors) to a pint
UnitRegistry and only keeps the dimension vector and scale it reports.
"""

from dataclasses import dataclass
from fractions import Fraction
from typing import Dict, Iterable, Optional, Tuple, Union
import math
import re

import pint

from .errors import UnitMismatch, UnknownUnit

Number = Union[int, float, Fraction]
Dims = Tuple[Fraction, ...]

# pint dimension names, in Tera's dimension-vector order
BASE_DIMENSIONS = (
    "[length]",
    "[mass]",
    "[time]",
    "[current]",
    "[temperature]",
    "[substance]",
    "[luminosity]",
)
BASE_SYMBOLS = ("m", "kg", "s", "A", "K", "mol", "cd")

# order used when spelling a unit out in base units, e.g. kg.m2.s-2
_BASE_FORM_ORDER = (1, 3, 5, 0, 2, 4, 6)


def _to_fraction(value: Number) -> Fraction:
    if isinstance(value, Fraction):
        return value
    if isinstance(value, int):
        return Fraction(value, 1)
    return Fraction(float(value)).limit_denominator(1000)


ZERO_DIMS: Dims = (Fraction(0),) * 7


@dataclass(frozen=True)
class Unit:
    dims: Dims = ZERO_DIMS
    scale: float = 1.0
    symbol: Optional[str] = None
    offset: float = 0.0

    def __post_init__(self) -> None:
        if len(self.dims) != 7:
            raise ValueError("A unit needs exactly seven dimension exponents.")
        if not self.scale > 0:
            raise ValueError("Unit scale must be positive.")
        object.__setattr__(self, "dims", tuple(_to_fraction(d) for d in self.dims))
        object.__setattr__(self, "scale", float(self.scale))

    @property
    def is_dimensionless(self) -> bool:
        return all(d == 0 for d in self.dims)

    @property
    def is_plain(self) -> bool:
        """True for the unit of a bare number (no dimension, no scaling)."""
        return self.is_dimensionless and self.scale == 1.0 and self.offset == 0.0

    @property
    def is_affine(self) -> bool:
        return self.offset != 0.0

    def coherent(self) -> "Unit":
        """The SI-coherent unit with the same dimension (scale 1, no symbol)."""
        return Unit(self.dims)

    def __str__(self) -> str:
        return unit_str(self)


DIMENSIONLESS = Unit()


def _require_multiplicative(u: Unit) -> None:
    if u.is_affine:
        raise UnitMismatch(
            f"Affine unit '{unit_str(u)}' cannot be multiplied, divided or raised to a power."
        )


def _derived(dims: Dims, scale: float) -> Unit:
    if not 0.0 < scale < math.inf:
        raise UnitMismatch(
            f"The resulting unit {base_form(dims) or '(dimensionless)'} has a scale "
            "outside the floating-point range."
        )
    return Unit(dims, scale)


def combine(u1: Unit, u2: Unit, op: str) -> Unit:
    """Multiply ("mul") or divide ("div") two units."""
    if op not in ("mul", "div"):
        raise ValueError(f"Unknown unit operation {op!r}.")
    _require_multiplicative(u1)
    _require_multiplicative(u2)
    if u2.is_plain:
        return u1
    if op == "mul":
        if u1.is_plain:
            return u2
        dims = tuple(a + b for a, b in zip(u1.dims, u2.dims))
        return _derived(dims, u1.scale * u2.scale)
    dims = tuple(a - b for a, b in zip(u1.dims, u2.dims))
    return _derived(dims, u1.scale / u2.scale)


def _scale_power(scale: float, n: float) -> float:
    try:
        return scale ** n
    except OverflowError:
        return math.inf


def power(u: Unit, n: Number) -> Unit:
    """
    Raise u to the power n.

    A unit with a dimension needs a rational n (within 1e-9), since its
    exponents are kept as fractions.
    """
    _require_multiplicative(u)
    if u.is_plain or n == 1:
        return u
    if u.is_dimensionless:
        return _derived(u.dims, _scale_power(u.scale, float(n)))
    frac = _to_fraction(n)
    if not math.isclose(float(frac), float(n), rel_tol=1e-9, abs_tol=1e-12):
        raise UnitMismatch(
            f"The exponent of a dimensional quantity must be rational, "
            f"found {float(n):g} for '{unit_str(u)}'."
        )
    if frac == 0:
        return DIMENSIONLESS
    return _derived(tuple(d * frac for d in u.dims), _scale_power(u.scale, float(frac)))


def commensurable(u1: Unit, u2: Unit) -> bool:
    return u1.dims == u2.dims


def conversion_factor(from_unit: Unit, to_unit: Unit) -> float:
    if not commensurable(from_unit, to_unit):
        raise UnitMismatch(
            f"Cannot convert '{unit_str(from_unit)}' to '{unit_str(to_unit)}': "
            "the units have different dimensions."
        )
    if from_unit.scale == to_unit.scale:
        return 1.0
    return from_unit.scale / to_unit.scale


def convert(value: float, from_unit: Unit, to_unit: Unit) -> float:
    """Express value, given in from_unit, in to_unit."""
    f = conversion_factor(from_unit, to_unit)
    if from_unit.offset == to_unit.offset:
        return value * f
    si = value * from_unit.scale + from_unit.offset
    return (si - to_unit.offset) / to_unit.scale


def convert_uncertainty(sigma: float, from_unit: Unit, to_unit: Unit) -> float:
    """Uncertainties are differences, so offsets never apply."""
    return sigma * conversion_factor(from_unit, to_unit)


def _format_exponent(exponent: Fraction) -> str:
    if exponent.denominator == 1:
        return str(exponent.numerator)
    return f"^({exponent.numerator}/{exponent.denominator})"


def base_form(dims: Dims) -> str:
    """Spell a dimension vector in SI base units, e.g. kg.m2.s-2."""
    parts = []
    for i in _BASE_FORM_ORDER:
        exponent = dims[i]
        if exponent == 0:
            continue
        exp_s = "" if exponent == 1 else _format_exponent(exponent)
        parts.append(f"{BASE_SYMBOLS[i]}{exp_s}")
    return ".".join(parts)


def unit_str(u: Unit) -> str:
    if u.symbol:
        return u.symbol
    if u.is_plain:
        return ""
    text = base_form(u.dims)
    if u.scale != 1.0:
        return f"{u.scale:g}·{text}" if text else f"{u.scale:g}"
    return text


# Tera writes units compactly (N.m/s2, μm, Ω); pint wants N*m/s**2, um, ohm.
_TEXT_REPLACEMENTS = (
    ("°C", "degC"),
    ("°F", "degF"),
    ("°", "degree"),
    ("Ω", "ohm"),
    ("Ω", "ohm"),
    ("μ", "u"),
    ("µ", "u"),
    ("·", "*"),
    ("×", "*"),
    ("^", "**"),
)
_DOT_PRODUCT_RE = re.compile(r"\.(?=[^\W\d]|\()")
_TRAILING_EXPONENT_RE = re.compile(r"([^\W\d_]|\))(-?\d+)")
_WORD_RE = re.compile(r"[^\W\d_]+")


def normalize_unit_text(text: str) -> str:
    s = text.strip()
    for old, new in _TEXT_REPLACEMENTS:
        s = s.replace(old, new)
    s = _DOT_PRODUCT_RE.sub("*", s)
    return _TRAILING_EXPONENT_RE.sub(r"\1**\2", s)


# coherent derived units preferred when rendering a unit that has no symbol
PREFERRED_SYMBOLS = (
    "Hz", "N", "Pa", "J", "W", "C", "V", "F", "Ω", "S", "Wb", "T", "H", "lx",
    "m", "kg", "s", "A", "K", "mol", "cd",
)


class UnitTable:
    """
    Immutable lookup from unit text to Unit.

    Each table owns its pint registry, so a host (or a test) can build an
    isolated table with extra definitions:

        UnitTable(definitions=["furlong = 201.168 * meter"])
    """

    def __init__(
        self,
        definitions: Iterable[str] = (),
        *,
        registry: Optional[pint.UnitRegistry] = None,
    ):
        self._registry = registry if registry is not None else pint.UnitRegistry()
        for line in definitions:
            self._registry.define(line)
        self._cache: Dict[str, Unit] = {}
        self._preferred: Dict[Dims, str] = {}
        for symbol in PREFERRED_SYMBOLS:
            u = self.resolve(symbol)
            if u.scale == 1.0 and u.dims not in self._preferred:
                self._preferred[u.dims] = symbol

    @property
    def registry(self) -> pint.UnitRegistry:
        return self._registry

    def resolve(self, text: str) -> Unit:
        key = (text or "").strip()
        if not key:
            return DIMENSIONLESS
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        u = self._build(key)
        self._cache[key] = u
        return u

    def __contains__(self, text: str) -> bool:
        try:
            self.resolve(text)
        except UnknownUnit:
            return False
        return True

    def _ascii_micro(self, expr: str) -> str:
        """mum, muA, miA: ASCII spellings of the micro prefix, unless pint knows the word."""

        def swap(match: "re.Match") -> str:
            word = match.group(0)
            if len(word) > 2 and word[:2] in ("mu", "mi") and word not in self._registry:
                return "u" + word[2:]
            return word

        return _WORD_RE.sub(swap, expr)

    def _build(self, key: str) -> Unit:
        expr = self._ascii_micro(normalize_unit_text(key))
        try:
            parsed = self._registry.parse_units(expr)
            one = self._registry.Quantity(1.0, parsed)
            zero = self._registry.Quantity(0.0, parsed)
            # the difference is a delta unit, so the scale comes out exact for °C
            step = (one - zero).to_base_units()
            origin = zero.to_base_units()
        except Exception as exc:
            raise UnknownUnit(f"Unknown unit '{key}'.") from exc

        dimensionality = step.dimensionality
        foreign = [name for name in dimensionality if name not in BASE_DIMENSIONS]
        if foreign:
            raise UnknownUnit(f"Unit '{key}' uses non-SI dimensions {foreign}.")
        dims = tuple(
            _to_fraction(dimensionality[name]) if name in dimensionality else Fraction(0)
            for name in BASE_DIMENSIONS
        )
        return Unit(dims, float(step.magnitude), symbol=key, offset=float(origin.magnitude))

    def preferred_symbol(self, u: Unit) -> Optional[str]:
        """Named coherent unit for u's dimension, if there is one."""
        return self._preferred.get(u.dims)
