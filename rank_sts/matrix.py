"""GF(2) bit matrices, rank computation and rank probabilities."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from rank_sts.errors import ContractViolation, MissingInputError


class BitMatrix:
    """Fixed-shape M×Q matrix of 0/1 cells stored as ``numpy.uint8``.

    The elimination code only touches the matrix through the row-level
    operations below, so every mutation works on complete rows.
    """

    def __init__(self, rows: int, cols: int) -> None:
        if rows < 0 or cols < 0:
            raise ContractViolation(f"matrix dimensions must be >= 0, got {rows}x{cols}")
        self._cells = np.zeros((rows, cols), dtype=np.uint8)

    @classmethod
    def from_array(cls, values) -> BitMatrix:
        arr = np.asarray(values)
        if arr.ndim != 2:
            raise ContractViolation(f"expected a 2-D array, got shape {arr.shape}")
        matrix = cls(*arr.shape)
        matrix._cells[:] = arr.astype(np.uint8) & 1
        return matrix

    @property
    def rows(self) -> int:
        return self._cells.shape[0]

    @property
    def cols(self) -> int:
        return self._cells.shape[1]

    @property
    def shape(self) -> tuple[int, int]:
        return self._cells.shape

    def __getitem__(self, index: tuple[int, int]) -> int:
        return int(self._cells[index])

    def to_array(self) -> np.ndarray:
        """Return a copy of the cells."""
        return self._cells.copy()

    # ── row operations ──

    def clear(self) -> None:
        self._cells.fill(0)

    def swap_rows(self, a: int, b: int) -> None:
        self._cells[[a, b]] = self._cells[[b, a]]

    def xor_row_into(self, src: int, dst: np.ndarray | list[int], start_col: int = 0) -> None:
        """XOR row *src* into every row in *dst* over columns ``start_col..cols-1``."""
        if len(dst) == 0:
            return
        self._cells[dst, start_col:] ^= self._cells[src, start_col:]

    def rows_with_one(self, col: int, start: int, stop: int) -> np.ndarray:
        """Indices of rows in ``[start, stop)`` holding a 1 in column *col*."""
        return np.flatnonzero(self._cells[start:stop, col]) + start

    def is_zero_row(self, row: int) -> bool:
        return not self._cells[row].any()

    # ── materializer ──

    def fill_from_stream(self, stream: np.ndarray | None, k: int) -> None:
        """Copy the *k*-th matrix of *stream* into this matrix.

        Cell ``(i, j)`` receives ``stream[k*M*Q + j + i*M]``.
        """
        if stream is None:
            raise MissingInputError("bit stream is absent")
        idx = stream_indices(self.rows, self.cols, k)
        if idx.size and idx.max() >= len(stream):
            raise ContractViolation(
                f"matrix {k} needs bit {int(idx.max())} but the stream has {len(stream)} bits"
            )
        self._cells[:] = np.asarray(stream)[idx]


def stream_indices(rows: int, cols: int, k: int) -> np.ndarray:
    """Stream positions feeding each cell of matrix *k* (shape rows×cols)."""
    i = np.arange(rows, dtype=np.int64)[:, None]
    j = np.arange(cols, dtype=np.int64)[None, :]
    return k * (rows * cols) + j + i * rows


# ════════════════════════ RANK ════════════════════════

def _forward_pivot(matrix: BitMatrix, i: int) -> bool:
    if matrix[i, i] == 1:
        return True
    below = matrix.rows_with_one(i, i + 1, matrix.rows)
    if below.size == 0:
        return False
    matrix.swap_rows(i, int(below[0]))
    return True


def _backward_pivot(matrix: BitMatrix, i: int) -> bool:
    if matrix[i, i] == 1:
        return True
    above = matrix.rows_with_one(i, 0, i)
    if above.size == 0:
        return False
    # nearest row above wins
    matrix.swap_rows(i, int(above[-1]))
    return True


def compute_rank(matrix: BitMatrix) -> int:
    """Rank of *matrix* over GF(2).

    The matrix is reduced in place: a forward pass clears each pivot column
    below the diagonal, then a backward pass clears it above the diagonal
    over the full row width. The rank is ``min(M, Q)`` less the number of
    all-zero rows left behind.
    """
    m = min(matrix.rows, matrix.cols)

    for i in range(m - 1):
        if _forward_pivot(matrix, i):
            matrix.xor_row_into(i, matrix.rows_with_one(i, i + 1, matrix.rows), start_col=i)

    for i in range(m - 1, 0, -1):
        if _backward_pivot(matrix, i):
            matrix.xor_row_into(i, matrix.rows_with_one(i, 0, i))

    rank = m
    for row in range(matrix.rows):
        if matrix.is_zero_row(row):
            rank -= 1
    return rank


# ════════════════════════ PROBABILITIES ════════════════════════

@dataclass(frozen=True)
class RankProbabilities:
    """Probabilities of rank == m, rank == m-1 and rank < m-1."""
    full: float
    minus_one: float
    lower: float

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.full, self.minus_one, self.lower)


def _rank_probability(rows: int, cols: int, r: int) -> float:
    p = 2.0 ** (r * (cols + rows - r) - rows * cols)
    for i in range(r):
        p *= (1.0 - 2.0 ** (i - cols)) * (1.0 - 2.0 ** (i - rows)) / (1.0 - 2.0 ** (i - r))
    return p


def rank_probabilities(rows: int = 32, cols: int = 32) -> RankProbabilities:
    """Theoretical rank distribution of a uniform random rows×cols matrix."""
    if rows < 2 or cols < 2:
        raise ContractViolation(f"matrix must be at least 2x2, got {rows}x{cols}")
    m = min(rows, cols)
    full = _rank_probability(rows, cols, m)
    minus_one = _rank_probability(rows, cols, m - 1)
    return RankProbabilities(full=full, minus_one=minus_one, lower=1.0 - full - minus_one)
