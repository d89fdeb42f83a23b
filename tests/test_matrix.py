import pytest

from tera import Matrix, Quantity, Text
from tera.errors import IndexOutOfRange, RaggedMatrix, TypeMismatch
from tera.values import TRUE


def grid(*rows):
    return Matrix.from_rows([[Quantity.real(v) for v in row] for row in rows])


def test_shape_and_two_index_lookup():
    m = grid([1, 2, 3], [4, 5, 6])
    assert m.shape == (2, 3)
    assert m.index(2, 3).re == 6
    assert m.index(1, -1).re == 3


def test_negative_row_equals_last_row():
    m = grid([1, 2], [3, 4], [5, 6])
    rows, _ = m.shape
    assert len(m) == rows
    assert list(m)[-1] == m.rows[rows - 1]
    assert m.index(-1) == m.index(rows)
    assert m.index(-1, 2) == m.index(rows, 2)


def test_single_index_on_column_returns_cell():
    m = Matrix.column([Quantity.real(7), Text("x")])
    assert m.is_column
    assert m.index(1).re == 7
    assert m.index(2) == Text("x")


def test_single_index_on_wide_matrix_returns_row():
    m = grid([1, 2], [3, 4])
    row = m.index(2)
    assert isinstance(row, Matrix)
    assert row.shape == (1, 2)
    assert [c.re for c in row.rows[0]] == [3, 4]


@pytest.mark.parametrize("i", [0, 3, -3])
def test_out_of_range(i):
    with pytest.raises(IndexOutOfRange):
        grid([1], [2]).index(i)


def test_ragged_rows_rejected():
    with pytest.raises(RaggedMatrix):
        grid([1, 2], [3])


def test_cells_must_be_quantity_text_or_matrix():
    inner = grid([1])
    m = Matrix.from_rows([[inner, Text("a")]])
    assert m.index(1, 1) is inner
    with pytest.raises(TypeMismatch):
        Matrix.from_rows([[TRUE]])
