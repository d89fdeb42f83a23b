import math

import pytest

from tera import Quantity
from tera.errors import DivisionByZero, InvalidComparison, TypeMismatch, UnitMismatch
from tera.quantity import BINARY_FUNCTIONS, UNARY_FUNCTIONS


def q(value, sigma=0.0, unit=None, table=None):
    if unit is None:
        return Quantity.real(value, sigma)
    return Quantity.real(value, sigma, table.resolve(unit))


def test_additive_uncertainty_is_quadrature(table):
    x = q(3, 1, "m", table)
    y = q(4, 1, "m", table)
    z = x + y
    assert z.re == 7
    assert math.isclose(z.sigma_re, math.sqrt(2))
    assert math.isclose((x - y).sigma_re, math.sqrt(2))


def test_addition_rescales_into_left_unit(table):
    z = q(1, 0, "km", table) + q(500, 10, "m", table)
    assert z.unit.symbol == "km"
    assert math.isclose(z.re, 1.5)
    assert math.isclose(z.sigma_re, 0.01)


def test_addition_of_incommensurable_units_raises(table):
    with pytest.raises(UnitMismatch):
        q(1, 0, "m", table) + q(1, 0, "s", table)


def test_product_uses_relative_quadrature():
    z = q(10, 1) * q(20, 2)
    assert z.re == 200
    assert math.isclose(z.sigma_re, 200 * math.sqrt(0.01 + 0.01))


def test_product_with_zero_operand_falls_back_to_absolute_form():
    z = q(0, 1) * q(5)
    assert z.re == 0
    assert math.isclose(z.sigma_re, 5)


def test_division(table):
    z = q(10, 0, "m", table) / q(2, 0, "s", table)
    assert z.re == 5
    assert z.unit.dims == table.resolve("m/s").dims
    with pytest.raises(DivisionByZero):
        q(1) / q(0)


def test_negation_keeps_uncertainty():
    for x in (q(2.5, 0.3), q(-1, 0.01), Quantity.complex_value(1, -2, 0.1, 0.2)):
        assert (-x).uncertainty == x.uncertainty
        assert (-x).magnitude == -x.magnitude


def test_sigma_and_value_strip_uncertainty(table):
    x = q(5, 0.2, "Ω", table)
    s = UNARY_FUNCTIONS["sigma"](x)
    assert s.re == 0.2 and s.is_exact and s.unit == x.unit
    v = UNARY_FUNCTIONS["value"](x)
    assert v.re == 5 and v.is_exact
    assert UNARY_FUNCTIONS["sigma"](v).re == 0


def test_integer_power(table):
    z = q(2, 0.1, "m", table) ** 3
    assert z.re == 8
    assert math.isclose(z.sigma_re, 3 * 4 * 0.1)
    assert z.unit.dims == table.resolve("m3").dims


def test_power_warns_about_exponent_uncertainty():
    with pytest.warns(RuntimeWarning):
        q(2) ** q(2, 0.1)


def test_power_needs_dimensionless_real_exponent(table):
    with pytest.raises(UnitMismatch):
        q(2) ** q(2, 0, "m", table)
    with pytest.raises(TypeMismatch):
        q(2) ** Quantity.complex_value(0, 1)
    with pytest.raises(DivisionByZero):
        q(0) ** -1


def test_negative_base_fractional_power_is_complex():
    z = q(-4) ** 0.5
    assert z.is_complex
    assert abs(z.re) < 1e-12
    assert math.isclose(z.im, 2)


def test_analytic_functions_propagate_derivative():
    s = UNARY_FUNCTIONS["sin"](q(0, 0.1))
    assert s.re == 0
    assert math.isclose(s.sigma_re, 0.1)
    e = UNARY_FUNCTIONS["exp"](q(1, 0.1))
    assert math.isclose(e.re, math.e)
    assert math.isclose(e.sigma_re, math.e * 0.1)


def test_analytic_functions_accept_angle_units(table):
    s = UNARY_FUNCTIONS["sin"](q(90, 0, "°", table))
    assert math.isclose(s.re, 1)
    with pytest.raises(UnitMismatch):
        UNARY_FUNCTIONS["cos"](q(1, 0, "m", table))


def test_complex_arithmetic():
    z = Quantity.complex_value(1, 2) * Quantity.complex_value(3, 4)
    assert (z.re, z.im) == (-5, 10)
    w = z / Quantity.complex_value(3, 4)
    assert math.isclose(w.re, 1) and math.isclose(w.im, 2)
    assert (q(1) + Quantity.complex_value(0, 1)).is_complex


def test_complex_division_uncertainty_matches_direct_jacobian():
    # 1 / (c + di) with only d uncertain: d(re)/dd = -2cd/den^2, d(im)/dd = (d^2 - c^2)/den^2
    c, d, sd = 3.0, 4.0, 0.1
    z = q(1) / Quantity.complex_value(c, d, 0.0, sd)
    den = c * c + d * d
    assert math.isclose(z.sigma_re, abs(-2 * c * d / den ** 2) * sd)
    assert math.isclose(z.sigma_im, abs((d * d - c * c) / den ** 2) * sd)


def test_abs_and_arg_of_complex():
    z = Quantity.complex_value(3, 4, 0.3, 0.4)
    r = UNARY_FUNCTIONS["abs"](z)
    assert r.re == 5 and not r.is_complex
    assert math.isclose(r.sigma_re, math.hypot(3 * 0.3, 4 * 0.4) / 5)
    phi = UNARY_FUNCTIONS["arg"](z)
    assert math.isclose(phi.re, math.atan2(4, 3))


def test_comparisons_rescale_and_ignore_uncertainty(table):
    km = q(1, 0.5, "km", table)
    assert km.compare(">", q(999, 0, "m", table))
    assert km.compare("==", q(1000, 0, "m", table))
    assert not km.compare("!=", q(1000, 0, "m", table))
    assert q(1, 0, "m", table).compare("<=", q(1, 0, "m", table))
    with pytest.raises(UnitMismatch):
        km.compare("<", q(1, 0, "s", table))


def test_complex_comparison_raises():
    with pytest.raises(InvalidComparison):
        Quantity.complex_value(1, 1).compare("<", q(1))
    with pytest.raises(InvalidComparison):
        BINARY_FUNCTIONS["max"](Quantity.complex_value(1, 1), q(1))


def test_max_and_min_answer_in_left_unit(table):
    a = q(1, 0, "km", table)
    b = q(500, 0, "m", table)
    assert BINARY_FUNCTIONS["max"](a, b) is a
    low = BINARY_FUNCTIONS["min"](a, b)
    assert low.unit.symbol == "km"
    assert math.isclose(low.re, 0.5)


def test_construction_invariants():
    with pytest.raises(ValueError):
        Quantity(1.0, sigma_re=-1.0)
    with pytest.raises(ValueError):
        Quantity(1.0, im=2.0)
    with pytest.raises(TypeMismatch):
        q(1) + "one"


def test_power_overflow_is_infinite(table):
    assert (q(10) ** 400).re == math.inf
    assert (q(-10) ** 401).re == -math.inf
    with pytest.raises(UnitMismatch):
        q(1, 0, "nm", table) ** 40


def test_irrational_power_of_a_dimensional_base(table):
    with pytest.raises(UnitMismatch):
        q(2, 0, "m", table) ** math.pi
    z = q(1, 0, "°", table) ** math.pi
    assert z.re == 1
    assert z.unit.is_dimensionless
