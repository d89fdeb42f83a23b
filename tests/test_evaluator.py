import math

import pytest

from tera import Interpreter, TeraConfig, format_error, set_config
from tera.errors import (
    IndexOutOfRange,
    IterationLimit,
    TypeMismatch,
    UndefinedFunction,
    UndefinedVariable,
    UnitMismatch,
    UserError,
)
from tera.nodes import Assign, UnaryOp
from tera.values import FALSE, NOTHING, TRUE, Text
from trees import If, Statement, While, block, call, index, let, matrix, neg, num, op, text, var


def run(interp, *body):
    return interp.run(block(*body))


def test_literals(interp, table):
    q = run(interp, num(5, "μm", 1, "nm"))
    assert q.unit.symbol == "μm"
    assert math.isclose(q.sigma_re, 0.001)
    z = run(interp, num(4, imaginary=True))
    assert z.is_complex and z.im == 4
    with pytest.raises(TypeMismatch):
        run(interp, num(1, pm=-1))


def test_celsius_literal_is_kelvin(interp):
    t = run(interp, num(25, "°C", 0.5))
    assert math.isclose(t.re, 298.15)
    assert t.sigma_re == 0.5
    assert interp.render(t) == "(298.15 ± 0.5)K"


def test_block_value_and_scope(interp):
    assert run(interp, block(let("y", num(1)), num(3))).re == 3
    assert run(interp, block(let("y", num(1)))) is NOTHING
    assert run(interp, block()) is NOTHING
    with pytest.raises(UndefinedVariable):
        run(interp, var("y"))


def test_if_else_chain(interp):
    def classify(x):
        return If(
            op(num(x), "<", num(0)),
            block(text("negative")),
            If(op(num(x), "==", num(0)), block(text("zero")), block(text("positive"))),
        )

    assert run(interp, classify(-1)) == Text("negative")
    assert run(interp, classify(0)) == Text("zero")
    assert run(interp, classify(2)) == Text("positive")
    assert run(interp, If(var("false"), block(num(1)))) is NOTHING


def test_conditions_must_be_truth(interp):
    with pytest.raises(TypeMismatch):
        run(interp, If(num(1), block(num(1))))
    with pytest.raises(TypeMismatch):
        run(interp, While(num(1), block(num(1))))


def test_logical_operators_short_circuit(interp):
    assert run(interp, op(var("false"), "and", var("undefined"))) == FALSE
    assert run(interp, op(var("true"), "or", var("undefined"))) == TRUE
    assert run(interp, op(var("true"), "and", op(num(1), "<", num(2)))) == TRUE
    assert run(interp, UnaryOp("not", var("false"))) == TRUE
    with pytest.raises(TypeMismatch):
        run(interp, op(num(1), "and", var("true")))


def test_equality_of_text_and_truth(interp):
    assert run(interp, op(text("a"), "==", text("a"))) == TRUE
    assert run(interp, op(text("a"), "!=", text("b"))) == TRUE
    assert run(interp, op(var("true"), "==", var("false"))) == FALSE
    with pytest.raises(TypeMismatch):
        run(interp, op(text("a"), "<", text("b")))
    with pytest.raises(TypeMismatch):
        run(interp, op(text("a"), "+", num(1)))


def test_uncertainty_operator(interp, table):
    q = run(interp, op(num(5, "m", 0.04), "±", num(3, "cm")))
    assert q.re == 5
    assert math.isclose(q.sigma_re, 0.05)


def test_unary_minus(interp):
    q = run(interp, neg(num(2, pm=0.1)))
    assert q.re == -2 and q.sigma_re == 0.1
    with pytest.raises(TypeMismatch):
        run(interp, neg(text("x")))


def test_power_operator(interp):
    assert run(interp, op(num(2), "^", num(10))).re == 1024


def test_builtin_calls(interp):
    assert math.isclose(run(interp, call("cos", num(0))).re, 1)
    assert run(interp, call("max", num(1, "km"), num(5, "m"))).re == 1
    assert run(interp, call("abs", neg(num(3)))).re == 3
    assert math.isclose(run(interp, call("sin", var("pi"))).re, 0, abs_tol=1e-12)
    with pytest.raises(UndefinedFunction):
        run(interp, call("tan", num(1)))
    with pytest.raises(UndefinedFunction):
        run(interp, call("neg", num(1)))
    with pytest.raises(TypeMismatch):
        run(interp, call("sin", num(1), num(2)))
    with pytest.raises(TypeMismatch):
        run(interp, call("sin", text("x")))


def test_print_and_write_go_to_the_sink(interp, output):
    run(
        interp,
        Statement(call("write", text("x = "), num(5, "nm"))),
        Statement(call("print", text(";"))),
        Statement(call("print")),
    )
    assert "".join(output) == "x = 5nm;\n\n"
    with pytest.raises(TypeMismatch):
        run(interp, call("write"))


def test_error_builtin(interp):
    with pytest.raises(UserError) as excinfo:
        run(interp, call("error", text("boom ", num(2))))
    assert excinfo.value.message == "boom 2"


def test_assert_passes_silently(interp):
    assert run(interp, call("assert", op(num(1), "<", num(2)))) is NOTHING


def test_matrix_literal_and_indexing(interp):
    run(interp, let("m", matrix([num(1), num(2)], [num(3), num(4)])))
    assert run(interp, index(var("m"), num(-1), num(1))).re == 3
    assert run(interp, index(var("m"), num(2), num(-1))).re == 4
    with pytest.raises(IndexOutOfRange):
        run(interp, index(var("m"), num(3)))
    with pytest.raises(TypeMismatch):
        run(interp, index(var("m"), num(1.5)))
    with pytest.raises(TypeMismatch):
        run(interp, index(var("m"), num(1, "m")))
    with pytest.raises(TypeMismatch):
        run(interp, index(num(1), num(1)))
    with pytest.raises(TypeMismatch):
        run(interp, matrix([var("true")]))


def test_assignment_value_and_nothing(interp):
    assert run(interp, let("x", num(2))) is NOTHING
    assert run(interp, Assign("y", num(3))).re == 3
    with pytest.raises(TypeMismatch):
        run(interp, Assign("z", block()))


def test_iteration_limit(table):
    interp = Interpreter(table, config=TeraConfig(max_iterations=10))
    with pytest.raises(IterationLimit):
        interp.run(block(While(var("true"), block(num(1)))))


def test_global_config_is_snapshot_at_construction(table, output):
    set_config(significant_digits=3)
    interp = Interpreter(table, sink=output.append)
    set_config(significant_digits=15)
    interp.run(block(Statement(call("print", op(num(1), "/", num(3))))))
    assert output == ["0.333\n"]


def test_runs_share_the_root_frame(interp):
    interp.run(block(let("a", num(2))))
    assert interp.run(block(op(var("a"), "*", num(3)))).re == 6
    assert "pi" in interp.bindings


def test_format_error_points_at_the_column(interp):
    source = 'x = 1 + "s";'
    with pytest.raises(TypeMismatch) as excinfo:
        interp.run(block(Statement(op(num(1), "+", text("s"), position=(1, 7)))))
    report = format_error(excinfo.value, source)
    assert report.splitlines() == [
        "TypeMismatch at 1:7: Operator '+' needs a Quantity, found Text.",
        '    x = 1 + "s";',
        "          ^",
    ]
    assert format_error(excinfo.value) == report.splitlines()[0]


def test_xor_and_nand(interp):
    cases = [
        ("true", "xor", "false", TRUE),
        ("true", "xor", "true", FALSE),
        ("false", "xor", "false", FALSE),
        ("true", "nand", "true", FALSE),
        ("false", "nand", "true", TRUE),
        ("false", "nand", "false", TRUE),
    ]
    for left, symbol, right, expected in cases:
        assert run(interp, op(var(left), symbol, var(right))) == expected


def test_xor_and_nand_evaluate_both_sides(interp):
    with pytest.raises(UndefinedVariable):
        run(interp, op(var("false"), "nand", var("undefined")))
    with pytest.raises(UndefinedVariable):
        run(interp, op(var("true"), "xor", var("undefined")))
    with pytest.raises(TypeMismatch):
        run(interp, op(var("true"), "xor", num(1)))


def test_power_overflow_and_unit_range(interp):
    assert run(interp, op(num(10), "^", num(400))).re == math.inf
    with pytest.raises(UnitMismatch):
        run(interp, op(num(1, "nm"), "^", num(40)))
    with pytest.raises(UnitMismatch):
        run(interp, op(num(2, "m"), "^", var("pi")))
