from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple, Union

from .errors import IndexOutOfRange, RaggedMatrix, TypeMismatch
from .quantity import Quantity
from .values import Text, type_name

Cell = Union[Quantity, Text, "Matrix"]


@dataclass(frozen=True)
class Matrix:
    """
    Rectangular grid of cells, indexed from 1.

    Cells are quantities, texts or nested matrices. A nested matrix is only
    displayed; indexing always addresses the top-level grid.
    """

    rows: Tuple[Tuple[Cell, ...], ...]

    @staticmethod
    def from_rows(rows: Iterable[Sequence[Cell]]) -> "Matrix":
        grid = tuple(tuple(row) for row in rows)
        if grid:
            width = len(grid[0])
            for i, row in enumerate(grid, start=1):
                if len(row) != width:
                    raise RaggedMatrix(
                        f"Row {i} has {len(row)} cells but row 1 has {width}."
                    )
        for row in grid:
            for cell in row:
                if not isinstance(cell, (Quantity, Text, Matrix)):
                    raise TypeMismatch(
                        f"A matrix cell must be a Quantity, Text or Matrix, found {type_name(cell)}."
                    )
        return Matrix(grid)

    @staticmethod
    def column(cells: Iterable[Cell]) -> "Matrix":
        """A bracketed list [a, b, c] is an N x 1 matrix."""
        return Matrix.from_rows([cell] for cell in cells)

    @property
    def shape(self) -> Tuple[int, int]:
        return len(self.rows), (len(self.rows[0]) if self.rows else 0)

    @property
    def is_column(self) -> bool:
        return self.shape[1] == 1

    def index(self, i: int, j: Optional[int] = None) -> Union[Cell, "Matrix"]:
        """
        m[i, j] returns a cell. m[i] on a single-column matrix returns that
        row's sole cell; on a wider matrix it returns row i as a 1 x n matrix.
        """
        n_rows, n_cols = self.shape
        r = _normalize(i, n_rows, "row")
        if j is None:
            if n_cols == 1:
                return self.rows[r][0]
            return Matrix((self.rows[r],))
        c = _normalize(j, n_cols, "column")
        return self.rows[r][c]

    def __iter__(self):
        return iter(self.rows)

    def __len__(self) -> int:
        return len(self.rows)


def _normalize(idx: int, length: int, axis: str) -> int:
    """1-based index (negative counts from the end) to a 0-based offset."""
    if not isinstance(idx, int) or isinstance(idx, bool):
        raise TypeMismatch(f"The {axis} index must be an integer.")
    pos = length + 1 + idx if idx < 0 else idx
    if pos < 1 or pos > length:
        raise IndexOutOfRange(f"The {axis} index {idx} is out of range for length {length}.")
    return pos - 1
